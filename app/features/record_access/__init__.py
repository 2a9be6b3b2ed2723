"""
Record access feature module.

Checks what a user can do on individual records, batching the lookups by
the object type prefix encoded in each record id.
"""
