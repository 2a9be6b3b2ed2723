"""
Permission aggregation.

Turns flat ObjectPermissions / FieldPermissions rows, collected across all
permission sets of a user, into one entry per object with its fields.
Grouping and ordering are separate steps so each can be checked alone.

A user can hold the same object or field through several permission sets,
so rows of one object or field are merged by union: a later row never takes
away a letter an earlier row granted.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.features.security_schema.schemas import (
    FieldPermissionRow,
    FieldPermissions,
    ObjectPermissionRow,
    ObjectPermissions,
)
from app.utils import get_logger


log = get_logger(__name__)

# Canonical letter order; output never follows input order
OBJECT_PERMISSION_LETTERS = ("c", "r", "e", "d")
FIELD_PERMISSION_LETTERS = ("r", "w")

CheckpointHook = Callable[[str, Dict[str, Any]], None]


def log_checkpoint(name: str, data: Dict[str, Any]) -> None:
    log.debug("Permission aggregation %s: %s", name, data)


def ordered_letters(granted: Iterable[str], order: Iterable[str]) -> List[str]:
    granted = set(granted)
    return [letter for letter in order if letter in granted]


def object_row_letters(row: ObjectPermissionRow) -> set[str]:
    flags = zip(OBJECT_PERMISSION_LETTERS, (row.can_create, row.can_read, row.can_edit, row.can_delete))
    return {letter for letter, granted in flags if granted}


def field_row_letters(row: FieldPermissionRow) -> set[str]:
    flags = zip(FIELD_PERMISSION_LETTERS, (row.can_read, row.can_edit))
    return {letter for letter, granted in flags if granted}


# ============================================================================
# Grouping
# ============================================================================

def group_field_permissions(
    rows: Iterable[FieldPermissionRow],
    drop_empty: bool = False
) -> Dict[str, List[FieldPermissions]]:
    """
    Group field rows by object, one entry per field.

    Letters of rows granting the same field are unioned, like object rows.
    With drop_empty, fields whose union is empty are left out.
    """
    letters_by_field: Dict[str, Dict[str, set[str]]] = {}
    for row in rows:
        fields = letters_by_field.setdefault(row.sobject_type, {})
        fields.setdefault(row.field_name, set()).update(field_row_letters(row))

    grouped: Dict[str, List[FieldPermissions]] = {}
    for sobject_type, fields in letters_by_field.items():
        entries = [
            FieldPermissions(field=name, permissions=ordered_letters(letters, FIELD_PERMISSION_LETTERS))
            for name, letters in fields.items()
            if letters or not drop_empty
        ]
        if entries:
            grouped[sobject_type] = entries
    return grouped


def group_object_permissions(
    rows: Iterable[ObjectPermissionRow],
    drop_empty: bool = False
) -> Dict[str, List[str]]:
    """
    Merge object rows into one letter list per object.

    Letters of rows sharing an object are unioned. With drop_empty, objects
    whose union is empty are left out.
    """
    letters_by_object: Dict[str, set[str]] = {}
    for row in rows:
        letters_by_object.setdefault(row.sobject_type, set()).update(object_row_letters(row))

    return {
        sobject_type: ordered_letters(letters, OBJECT_PERMISSION_LETTERS)
        for sobject_type, letters in letters_by_object.items()
        if letters or not drop_empty
    }


# ============================================================================
# Ordering
# ============================================================================

def sort_field_permissions(grouped: Dict[str, List[FieldPermissions]]) -> Dict[str, List[FieldPermissions]]:
    return {
        sobject_type: sorted(fields, key=lambda f: f.field)
        for sobject_type, fields in grouped.items()
    }


def sort_object_permissions(objects: Iterable[ObjectPermissions]) -> List[ObjectPermissions]:
    return sorted(objects, key=lambda o: o.sobject_type)


# ============================================================================
# Aggregation
# ============================================================================

def aggregate(
    object_rows: Iterable[ObjectPermissionRow],
    field_rows: Iterable[FieldPermissionRow],
    drop_empty: bool = False,
    on_checkpoint: Optional[CheckpointHook] = log_checkpoint,
) -> List[ObjectPermissions]:
    """
    Build the sorted permission tree for one user.

    Args:
        object_rows: Object-level grants of the user's permission sets
        field_rows: Field-level grants of the user's permission sets
        drop_empty: Leave out objects and fields that resolve to no letter
        on_checkpoint: Called with ("grouped", ...) and ("aggregated", ...);
            never needed for the result

    Returns:
        Objects sorted by type, each with its fields sorted by name.
        Fields of objects that have no object-level row are not returned.
    """
    fields_by_object = sort_field_permissions(group_field_permissions(field_rows, drop_empty))
    letters_by_object = group_object_permissions(object_rows, drop_empty)

    if on_checkpoint:
        on_checkpoint("grouped", {
            "object_count": len(letters_by_object),
            "field_counts": {name: len(fields) for name, fields in fields_by_object.items()},
        })

    objects = sort_object_permissions(
        ObjectPermissions(
            sobject_type=sobject_type,
            permissions=letters,
            fields=fields_by_object.get(sobject_type, []),
        )
        for sobject_type, letters in letters_by_object.items()
    )

    if on_checkpoint:
        on_checkpoint("aggregated", {
            "object_count": len(objects),
            "objects": [(o.sobject_type, len(o.fields)) for o in objects],
        })

    return objects
