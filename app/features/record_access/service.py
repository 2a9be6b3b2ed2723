"""
Per-record access checks.

Record ids are grouped by their object type prefix and each group is
looked up with a single UserRecordAccess query. The lookups run
concurrently; if one fails the whole check fails, so callers never get
a partial answer.
"""
import asyncio
from typing import Dict, Iterable, List

from simple_salesforce import format_soql
from starlette.concurrency import run_in_threadpool

from app.core.crm.ids import key_prefix
from app.core.crm.session import CRMSession, parse_rows
from app.features.record_access.schemas import NO_ACCESS, RecordAccessResult, UserRecordAccessRow
from app.utils import get_logger


log = get_logger(__name__)

RECORD_PERMISSION_LETTERS = ("r", "e", "d", "t")


def partition_record_ids(record_ids: Iterable[str]) -> Dict[str, List[str]]:
    """Group ids by object type prefix, keeping first-seen order and dropping repeats."""
    partitions: Dict[str, List[str]] = {}
    for record_id in dict.fromkeys(record_ids):
        partitions.setdefault(key_prefix(record_id), []).append(record_id)
    return partitions


def access_result(row: UserRecordAccessRow) -> RecordAccessResult:
    flags = (row.has_read_access, row.has_edit_access, row.has_delete_access, row.has_transfer_access)
    permissions = [letter for letter, granted in zip(RECORD_PERMISSION_LETTERS, flags) if granted]
    return RecordAccessResult(
        object_type_prefix=key_prefix(row.record_id),
        permissions=permissions,
        max_access_level=(row.max_access_level or NO_ACCESS) if permissions else NO_ACCESS,
    )


def backfill_missing(
    results: Dict[str, RecordAccessResult],
    record_ids: Iterable[str]
) -> Dict[str, RecordAccessResult]:
    """Add a no-access entry for every id the lookup returned nothing for."""
    for record_id in record_ids:
        if record_id not in results:
            results[record_id] = RecordAccessResult(object_type_prefix=key_prefix(record_id))
    return results


async def lookup_partition(session: CRMSession, user_id: str, record_ids: List[str]) -> List[UserRecordAccessRow]:
    rows = await run_in_threadpool(
        session.query,
        format_soql(
            "SELECT RecordId, HasReadAccess, HasEditAccess, HasDeleteAccess, HasTransferAccess, MaxAccessLevel "
            "FROM UserRecordAccess WHERE UserId = {} AND RecordId IN {}",
            user_id,
            record_ids,
        ),
    )
    return parse_rows(UserRecordAccessRow, rows)


async def check_record_access(
    session: CRMSession,
    user_id: str,
    record_ids: List[str]
) -> Dict[str, RecordAccessResult]:
    """
    Get the access a user has on each record.

    Args:
        session: Authenticated CRM session
        user_id: Id of an existing user
        record_ids: Records to check

    Returns:
        Exactly one entry per distinct record id; records the lookup did not
        return are reported with no permissions and max access level "None"
    """
    partitions = partition_record_ids(record_ids)
    log.info(
        "Checking access of user %s on %d records in %d object types",
        user_id, sum(len(ids) for ids in partitions.values()), len(partitions)
    )

    lookups = await asyncio.gather(
        *(lookup_partition(session, user_id, ids) for ids in partitions.values())
    )

    requested = set(record_ids)
    results: Dict[str, RecordAccessResult] = {}
    for rows in lookups:
        for row in rows:
            # 15-char ids come back in their 18-char form
            record_id = row.record_id if row.record_id in requested else row.record_id[:15]
            if record_id in requested:
                results[record_id] = access_result(row)

    return backfill_missing(results, record_ids)
