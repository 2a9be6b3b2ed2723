"""
Record access API routes.
"""
from datetime import datetime, timezone
from typing import Annotated
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from app.core import config
from app.core.crm.session import SalesforceSessionProvider, get_crm_provider
from app.core.rate_limit import limiter
from app.features.record_access.schemas import RecordAccessRequest, RecordAccessResponse
from app.features.record_access.service import check_record_access
from app.features.users.dependencies import resolve_target_user, validate_user_id
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


@router.post("/record-access", response_model=RecordAccessResponse)
@router.post("/record-access/{user_id}", response_model=RecordAccessResponse)
@limiter.limit(config.RATE_LIMIT)
async def post_record_access(
    request: Request,
    body: RecordAccessRequest,
    provider: Annotated[SalesforceSessionProvider, Depends(get_crm_provider)],
    user_id: str | None = None,
):
    """
    Check record access for multiple records.

    The body and user id are validated before logging in to the CRM, so a rejected
    request makes no remote call.
    """
    if user_id is not None:
        validate_user_id(user_id)
    session = await run_in_threadpool(provider.authenticate)
    user = await resolve_target_user(session, user_id)
    results = await check_record_access(session, user.id, body.record_ids)
    return RecordAccessResponse(
        user_id=user.id,
        username=user.username,
        timestamp=datetime.now(timezone.utc),
        results=results,
    )
