"""
Resolution of the user a request is about.
"""
from simple_salesforce import format_soql
from starlette.concurrency import run_in_threadpool

from app.core import config
from app.core.crm.ids import is_salesforce_id
from app.core.crm.session import CRMSession, parse_rows
from app.core.errors import NotFoundError, ValidationError
from app.features.users.schemas import UserRecord
from app.utils import get_logger

log = get_logger(__name__)


def validate_user_id(user_id: str) -> str:
    """
    Reject a user id that cannot be used in a query.

    Raises:
        ValidationError: If the id is blank, or malformed while strict id validation is on
    """
    user_id = user_id.strip()
    if not user_id:
        raise ValidationError("No user ID available")
    if config.STRICT_ID_VALIDATION and not is_salesforce_id(user_id):
        raise ValidationError("Invalid user ID", details=f"{user_id!r} is not a Salesforce id")
    return user_id


async def resolve_target_user(session: CRMSession, user_id: str | None = None) -> UserRecord:
    """
    Get the user a request targets, defaulting to the logged-in user.

    Args:
        session: Authenticated CRM session
        user_id: Requested user id, or None for the session's own user

    Returns:
        The matching User row

    Raises:
        ValidationError: If no user id can be resolved
        NotFoundError: If no User row has this id
    """
    if user_id is None:
        identity = await run_in_threadpool(session.identity)
        user_id = identity.user_id
        log.debug("No user ID requested, using authenticated user %s", user_id)

    user_id = validate_user_id(user_id or "")

    rows = await run_in_threadpool(
        session.query, format_soql("SELECT Id, Username FROM User WHERE Id = {}", user_id)
    )
    if not rows:
        log.info("User not found with ID %s", user_id)
        raise NotFoundError("User not found", details=user_id)

    return parse_rows(UserRecord, rows[:1])[0]
