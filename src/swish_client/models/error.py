"""Error body returned by the Swish API"""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class ApiErrorDetail(BaseModel):
    """One entry of a Swish error response"""

    error_code: Optional[str] = Field(None, description="Swish error code, e.g. RF02")
    error_message: Optional[str] = Field(None, description="Human-readable message")
    additional_information: Optional[str] = Field(None, description="Extra details")

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("error_code", "error_message", "additional_information", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        """Numbers become text; any other non-string value is dropped"""
        if isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return None


def first_error(content: bytes) -> Optional[ApiErrorDetail]:
    """
    Decode the first entry of a Swish error array

    Later entries are never inspected, so a malformed tail does not hide a
    usable first error. An entry that is not an object yields an empty detail.

    Returns:
        The first entry, or None when the body is not a non-empty JSON array
    """
    try:
        decoded = json.loads(content)
    except ValueError:
        return None

    if not isinstance(decoded, list) or not decoded:
        return None

    entry = decoded[0]
    if not isinstance(entry, dict):
        return ApiErrorDetail()
    return ApiErrorDetail.model_validate(entry)
