"""Error response schemas for consistent API error formatting."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema.

    All API errors return this format for consistency. ``field`` is only
    present for validation errors that can name the offending input.
    """

    type: str
    message: str
    field: str | None = None
