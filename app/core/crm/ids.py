"""
Salesforce record id helpers.

Ids are never pasted into query text by hand: queries are built with
simple_salesforce.format_soql, which quotes and escapes every value.
"""
import re

# 15-char case-sensitive id, optionally followed by the 3-char checksum suffix
SALESFORCE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9]{15}(?:[a-zA-Z0-9]{3})?$")

KEY_PREFIX_LENGTH = 3


def is_salesforce_id(value: str) -> bool:
    return bool(SALESFORCE_ID_PATTERN.match(value))


def key_prefix(record_id: str) -> str:
    """The object type prefix Salesforce encodes in the first characters of an id."""
    return record_id[:KEY_PREFIX_LENGTH]
