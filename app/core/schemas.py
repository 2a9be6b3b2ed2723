from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Permission flag in a CRM row; some objects report an ungranted flag as null
CRMFlag = Annotated[bool, BeforeValidator(lambda v: False if v is None else v)]


class CamelModel(BaseModel):
    """Base for request and response bodies, which use camelCase keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
