"""Data contracts for token endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RtcTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    channel_name: str | None = Field(default=None, alias="channelName", description="Channel to join")
    uid: Any = Field(default=None, description="Numeric user id; generated when omitted or unusable")


class RtcTokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token: str = Field(..., description="Signed Agora RTC token")
    app_id: str = Field(..., alias="appId")
    channel: str
    uid: int
    role: str
    expires_in: int = Field(..., alias="expiresIn", ge=1, description="Seconds until expiration")
    expires_at: str = Field(..., alias="expiresAt", description="ISO-8601 expiry time")
    timestamp: str = Field(..., description="ISO-8601 issuance time")


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str | None = None
