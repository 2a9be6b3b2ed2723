"""
Print the security schema of a user as JSON.

Uses the same credentials and aggregation as the HTTP service, which is
handy for diffing permissions between users or over time.

Usage:
    uv run python -m scripts.export_security_schema [USER_ID] [--drop-empty]
"""
import argparse
import asyncio
import sys

from app.core import config
from app.core.crm.session import SalesforceSessionProvider
from app.core.errors import ServiceError
from app.features.security_schema.schemas import SecuritySchemaResponse
from app.features.security_schema.service import fetch_security_schema
from app.utils import get_logger


log = get_logger(__name__)


async def export_security_schema(user_id: str | None, drop_empty: bool) -> SecuritySchemaResponse:
    session = SalesforceSessionProvider().authenticate()
    user, permissions = await fetch_security_schema(session, user_id, drop_empty=drop_empty)
    return SecuritySchemaResponse(user_id=user.id, permissions=permissions)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("user_id", nargs="?", help="user to export (default: the login user)")
    parser.add_argument(
        "--drop-empty",
        action="store_true",
        default=config.DROP_EMPTY_PERMISSIONS,
        help="leave out objects and fields without permissions",
    )
    args = parser.parse_args(argv)

    try:
        schema = asyncio.run(export_security_schema(args.user_id, args.drop_empty))
    except ServiceError as e:
        log.error("Export failed: %s (%s)", e.message, e.details)
        return 1

    print(schema.model_dump_json(by_alias=True, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
