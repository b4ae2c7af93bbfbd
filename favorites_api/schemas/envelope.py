"""Response envelope shared by every endpoint."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """Single problem reported back to the client."""

    field: str | None = Field(None, description="Input field that caused the error")
    message: str = Field(..., description="Human-readable explanation")


class ApiResponse(BaseModel):
    """Uniform ``success``/``message``/``data``/``errors`` wrapper."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "success": False,
                "message": "Validation failed. Please provide all required fields.",
                "errors": [
                    {"field": "title", "message": "Title is required"},
                    {"field": "year", "message": "Year must be after 1800"},
                ],
            }
        },
    )

    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Summary of the outcome")
    data: Any | None = Field(None, description="Operation payload on success")
    errors: list[FieldError] | None = Field(
        None, description="Problems that prevented the operation"
    )
    retry_after: str | None = Field(
        None,
        serialization_alias="retryAfter",
        description="Rate-limit window remaining, only set on 429 responses",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialise for the wire, omitting absent optional members."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
