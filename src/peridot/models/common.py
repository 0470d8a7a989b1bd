"""Shared Pydantic definitions: ID types and the error envelope."""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

# Upper bounds match the INTEGER and BIGINT key columns.
MAX_ID = 2_147_483_647
MAX_BIG_ID = 9_223_372_036_854_775_807

# A negative ID must fail to decode.
EntityId = Annotated[int, Field(ge=0, le=MAX_ID)]
BigEntityId = Annotated[int, Field(ge=0, le=MAX_BIG_ID)]
# Back-references must point at a real row, never the zero ID.
RefId = Annotated[int, Field(ge=1, le=MAX_ID)]


class ErrorDetail(BaseModel):
    """Error detail in API responses."""

    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    details: dict[str, Any] | list[Any] | str | None = None
    trace_id: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: ErrorDetail
