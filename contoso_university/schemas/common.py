from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Standard message response."""
    message: str = Field(..., description="Human readable message")
    details: Optional[dict] = Field(default=None, description="Optional extra data")


class ErrorViewModel(BaseModel):
    """Model of the error page."""
    request_id: Optional[str] = Field(default=None, description="Correlation ID of the failed request")
    original_path: Optional[str] = Field(default=None, description="Path that raised the error")

    @property
    def show_request_id(self) -> bool:
        return bool(self.request_id)
