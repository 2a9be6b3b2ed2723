"""
Fetching of a user's permission grants.
"""
from typing import List, Tuple

from simple_salesforce import format_soql
from starlette.concurrency import run_in_threadpool

from app.core.crm.session import CRMSession, parse_rows
from app.features.security_schema.aggregator import aggregate
from app.features.security_schema.schemas import (
    FieldPermissionRow,
    ObjectPermissionRow,
    ObjectPermissions,
)
from app.features.users.dependencies import resolve_target_user
from app.features.users.schemas import UserRecord
from app.utils import get_logger


log = get_logger(__name__)


async def get_permission_set_ids(session: CRMSession, user_id: str) -> List[str]:
    """Ids of the permission sets (profile included) assigned to a user, without duplicates."""
    rows = await run_in_threadpool(
        session.query,
        format_soql("SELECT PermissionSetId FROM PermissionSetAssignment WHERE AssigneeId = {}", user_id),
    )
    return list(dict.fromkeys(row["PermissionSetId"] for row in rows if row.get("PermissionSetId")))


async def fetch_security_schema(
    session: CRMSession,
    user_id: str | None,
    drop_empty: bool = False
) -> Tuple[UserRecord, List[ObjectPermissions]]:
    """
    Get the aggregated object and field permissions of a user.

    Args:
        session: Authenticated CRM session
        user_id: Target user, or None for the logged-in user
        drop_empty: Leave out objects and fields without any permission

    Returns:
        The resolved user and the sorted permission tree
    """
    user = await resolve_target_user(session, user_id)

    permission_set_ids = await get_permission_set_ids(session, user.id)
    if not permission_set_ids:
        log.info("User %s has no permission set assignments", user.id)
        return user, []

    object_rows = await run_in_threadpool(
        session.query,
        format_soql(
            "SELECT SobjectType, PermissionsCreate, PermissionsRead, PermissionsEdit, PermissionsDelete "
            "FROM ObjectPermissions WHERE ParentId IN {}",
            permission_set_ids,
        ),
    )
    field_rows = await run_in_threadpool(
        session.query,
        format_soql(
            "SELECT SobjectType, Field, PermissionsRead, PermissionsEdit "
            "FROM FieldPermissions WHERE ParentId IN {}",
            permission_set_ids,
        ),
    )
    log.info(
        "Fetched %d object and %d field permission rows from %d permission sets for user %s",
        len(object_rows), len(field_rows), len(permission_set_ids), user.id
    )

    permissions = aggregate(
        parse_rows(ObjectPermissionRow, object_rows),
        parse_rows(FieldPermissionRow, field_rows),
        drop_empty=drop_empty,
    )
    return user, permissions
