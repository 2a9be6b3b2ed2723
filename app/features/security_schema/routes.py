"""
Security schema API routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from app.core import config
from app.core.crm.session import SalesforceSessionProvider, get_crm_provider
from app.core.rate_limit import limiter
from app.features.security_schema.schemas import SecuritySchemaResponse
from app.features.security_schema.service import fetch_security_schema
from app.features.users.dependencies import validate_user_id
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


@router.get("/security-schema", response_model=SecuritySchemaResponse)
@router.get("/security-schema/{user_id}", response_model=SecuritySchemaResponse)
@limiter.limit(config.RATE_LIMIT)
async def get_security_schema(
    request: Request,
    provider: Annotated[SalesforceSessionProvider, Depends(get_crm_provider)],
    user_id: str | None = None,
):
    """
    Get object and field level security for a user.

    Without a user id, the schema of the user the service logs in as is returned.
    """
    log.info("Security schema requested for user %s", user_id or "<authenticated user>")
    if user_id is not None:
        validate_user_id(user_id)
    session = await run_in_threadpool(provider.authenticate)
    user, permissions = await fetch_security_schema(
        session, user_id, drop_empty=config.DROP_EMPTY_PERMISSIONS
    )
    return SecuritySchemaResponse(user_id=user.id, permissions=permissions)
