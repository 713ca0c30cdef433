"""Pydantic schemas for waitlist API responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Envelope shared by every waitlist endpoint."""

    success: bool = Field(True, description="Whether the operation succeeded.")
    message: str | None = Field(
        default=None, description="Human-readable message suitable for display."
    )


class RegistrationData(BaseModel):
    id: str
    email: str
    status: str
    created_at: datetime


class RegistrationResponse(ApiResponse):
    """Returned by POST /api/waitlist.

    ``data`` is present only when a new entry was created (HTTP 201); repeat
    signups get a message and HTTP 200.
    """

    data: RegistrationData | None = None


class ConfirmationData(BaseModel):
    email: str
    status: str
    confirmed_at: datetime | None = None


class ConfirmationResponse(ApiResponse):
    data: ConfirmationData


class UnsubscribeData(BaseModel):
    email: str
    removed_at: datetime


class UnsubscribeResponse(ApiResponse):
    data: UnsubscribeData


class ErrorResponse(BaseModel):
    """Error envelope produced by the global exception handlers."""

    success: bool = False
    error: str
    code: str
    request_id: str | None = None
    resetTime: int | None = Field(
        default=None,
        description="Epoch milliseconds when the rate limit window resets (429 only).",
    )
