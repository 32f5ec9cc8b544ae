"""Request/response schemas for the admin endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AdminCheckResponse(BaseModel):
    is_authenticated: bool
    username: str


class DeleteResponse(BaseModel):
    success: bool


class PromotionalRequest(BaseModel):
    """Custom message included in the promotional email body."""

    message: str = ""


class BroadcastResponse(BaseModel):
    """Outcome of sending one email to every waitlist entry."""

    message: str
    sent: int
    total: int
    failed_emails: list[str] = []
