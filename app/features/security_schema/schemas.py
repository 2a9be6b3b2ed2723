"""
Pydantic schemas for the security schema.

Row models validate what the CRM returns before aggregation runs;
response models define the JSON sent back to callers.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from app.core.schemas import CRMFlag, CamelModel


# ============================================================================
# CRM Rows
# ============================================================================

class PermissionRow(BaseModel):
    """Common handling for permission rows."""
    sobject_type: str = Field(..., min_length=1, alias="SobjectType")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ObjectPermissionRow(PermissionRow):
    """One ObjectPermissions row (object-level grant of one permission set)."""
    can_create: CRMFlag = Field(False, alias="PermissionsCreate")
    can_read: CRMFlag = Field(False, alias="PermissionsRead")
    can_edit: CRMFlag = Field(False, alias="PermissionsEdit")
    can_delete: CRMFlag = Field(False, alias="PermissionsDelete")


class FieldPermissionRow(PermissionRow):
    """One FieldPermissions row. `qualified_name` has the form Object.Field."""
    qualified_name: str = Field(..., min_length=1, alias="Field")
    can_read: CRMFlag = Field(False, alias="PermissionsRead")
    can_edit: CRMFlag = Field(False, alias="PermissionsEdit")

    @property
    def field_name(self) -> str:
        """The part after the object prefix, or the whole name when there is none."""
        _, separator, name = self.qualified_name.partition(".")
        return name if separator else self.qualified_name


# ============================================================================
# Responses
# ============================================================================

class FieldPermissions(CamelModel):
    """Permissions on one field: letters drawn from r, w."""
    field: str
    permissions: List[str] = []


class ObjectPermissions(CamelModel):
    """Permissions on one object: letters drawn from c, r, e, d, plus its fields."""
    sobject_type: str
    permissions: List[str] = []
    fields: List[FieldPermissions] = []


class SecuritySchemaResponse(CamelModel):
    user_id: str
    permissions: List[ObjectPermissions] = []
