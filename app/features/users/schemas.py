"""
Pydantic schemas for CRM users.
"""
from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """A row of the CRM User object."""
    id: str = Field(..., alias="Id")
    username: str = Field(..., alias="Username")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
