"""
Security schema feature module.

Aggregates a user's object- and field-level permission grants, collected
from every permission set assigned to the user, into one sorted tree.
"""
