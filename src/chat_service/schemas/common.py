from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.helpers import to_camel


class CamelModel(BaseModel):
    """Base schema that serializes field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(CamelModel):
    """Body returned for every handled error."""

    detail: Any = Field(..., description="Human readable message or validation details")
    code: str = Field(..., description="Stable machine-readable error code")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    retry_after_ms: Optional[int] = Field(
        None, description="Suggested wait before retrying, for transient upstream failures"
    )
