"""
Pydantic schemas for record access checks.
"""
from datetime import datetime
from typing import Annotated, Dict, List

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from app.core import config
from app.core.crm.ids import is_salesforce_id
from app.core.schemas import CRMFlag, CamelModel


NO_ACCESS = "None"

RecordId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class RecordAccessRequest(CamelModel):
    """Body of a record access check."""
    record_ids: List[RecordId] = Field(
        ...,
        min_length=1,
        max_length=config.MAX_RECORD_IDS,
        description=f"Ids of the records to check (1 to {config.MAX_RECORD_IDS})",
    )

    @field_validator("record_ids")
    @classmethod
    def record_ids_well_formed(cls, v: List[str]) -> List[str]:
        """In strict mode, every id must look like a Salesforce id."""
        if config.STRICT_ID_VALIDATION:
            invalid = [record_id for record_id in v if not is_salesforce_id(record_id)]
            if invalid:
                raise ValueError(f"Invalid record ids: {', '.join(invalid)}")
        return v


class UserRecordAccessRow(BaseModel):
    """One UserRecordAccess row."""
    record_id: str = Field(..., min_length=1, alias="RecordId")
    has_read_access: CRMFlag = Field(False, alias="HasReadAccess")
    has_edit_access: CRMFlag = Field(False, alias="HasEditAccess")
    has_delete_access: CRMFlag = Field(False, alias="HasDeleteAccess")
    has_transfer_access: CRMFlag = Field(False, alias="HasTransferAccess")
    max_access_level: str | None = Field(None, alias="MaxAccessLevel")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RecordAccessResult(CamelModel):
    """Access of one user on one record: letters drawn from r, e, d, t."""
    object_type_prefix: str
    permissions: List[str] = []
    max_access_level: str = NO_ACCESS


class RecordAccessResponse(CamelModel):
    user_id: str
    username: str
    timestamp: datetime
    results: Dict[str, RecordAccessResult] = {}
