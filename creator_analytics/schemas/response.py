from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, Any

class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class CamelModel(BaseModel):
    """
    Base for response bodies consumed by the admin dashboards.
    Serializes snake_case fields as camelCase and accepts either on input.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
