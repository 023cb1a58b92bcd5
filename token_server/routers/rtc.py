"""RTC token issuance endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from ..core.config import Settings
from ..core.errors import MissingChannelError
from ..schemas.rtc import ErrorResponse, RtcTokenRequest, RtcTokenResponse
from ..services import rtc as rtc_service

logger = logging.getLogger(__name__)

router = APIRouter()

TOKEN_QUERY_EXAMPLE = "/token?channel=my-room-123&uid=456"


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _to_response(token: rtc_service.RtcToken) -> RtcTokenResponse:
    return RtcTokenResponse(
        token=token.token,
        app_id=token.app_id,
        channel=token.channel,
        uid=token.uid,
        role=token.role,
        expires_in=token.expires_in,
        expires_at=token.expires_at_iso,
        timestamp=token.issued_at_iso,
    )


@router.get(
    "/token",
    response_model=RtcTokenResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_rtc_token(
    request: Request,
    channel: str | None = Query(default=None),
    channel_name: str | None = Query(default=None, alias="channelName"),
    uid: str | None = Query(default=None),
) -> RtcTokenResponse | JSONResponse:
    """Issue a publisher token for the channel given in the query string."""

    logger.info("GET token request channel=%s uid=%s", channel or channel_name, uid)
    try:
        token = rtc_service.issue_token(_settings(request), channel or channel_name, uid)
    except MissingChannelError:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Channel name is required",
                "example": TOKEN_QUERY_EXAMPLE,
                "parameters": {
                    "channel": "Unique room name (required)",
                    "uid": "User id (optional, generated when omitted)",
                },
            },
        )
    return _to_response(token)


@router.post(
    "/token",
    response_model=RtcTokenResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_rtc_token(request: Request, payload: RtcTokenRequest) -> RtcTokenResponse | JSONResponse:
    """Issue a publisher token for the channel given in the JSON body."""

    logger.info("POST token request channel=%s uid=%s", payload.channel_name, payload.uid)
    try:
        token = rtc_service.issue_token(_settings(request), payload.channel_name, payload.uid)
    except MissingChannelError:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "channelName is required in the request body"},
        )
    return _to_response(token)
