"""RTC token issuance.

Validates a token request, computes the privilege expiry and hands signing to
the Agora token builder. The issuer keeps no state between calls."""
from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from agora_token_builder import RtcTokenBuilder
from agora_token_builder.RtcTokenBuilder import Role_Publisher

from ..core.config import Settings
from ..core.errors import MissingChannelError, SigningFailedError

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 24 * 3600
RANDOM_UID_UPPER_BOUND = 1_000_000
MAX_UID = 2**32 - 1

ROLE_PUBLISHER = Role_Publisher
ROLE_NAME = "publisher"


class TokenSigner(Protocol):
    def __call__(
        self,
        app_id: str,
        app_certificate: str,
        channel_name: str,
        uid: int,
        role: int,
        privilege_expired_ts: int,
    ) -> str: ...


def agora_signer(
    app_id: str,
    app_certificate: str,
    channel_name: str,
    uid: int,
    role: int,
    privilege_expired_ts: int,
) -> str:
    """Sign with the Agora RTC token builder."""

    return RtcTokenBuilder.buildTokenWithUid(
        app_id, app_certificate, channel_name, uid, role, privilege_expired_ts
    )


@dataclass(slots=True, frozen=True)
class RtcToken:
    token: str
    app_id: str
    channel: str
    uid: int
    issued_at: int
    expires_at: int
    role: str = ROLE_NAME
    expires_in: int = TOKEN_TTL_SECONDS

    @property
    def issued_at_iso(self) -> str:
        return to_iso8601(self.issued_at)

    @property
    def expires_at_iso(self) -> str:
        return to_iso8601(self.expires_at)


def to_iso8601(epoch_seconds: int) -> str:
    """Render unix seconds as UTC ISO-8601 with millisecond precision."""

    rendered = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def validate_channel(channel_name: object) -> str:
    if not isinstance(channel_name, str) or not channel_name.strip():
        raise MissingChannelError()
    return channel_name


def resolve_uid(uid_input: object) -> int:
    """Use an explicit uid in the unsigned 32-bit range, otherwise pick one in [0, 1_000_000)."""

    uid: int | None = None
    if isinstance(uid_input, int) and not isinstance(uid_input, bool):
        uid = uid_input
    elif isinstance(uid_input, str):
        candidate = uid_input.strip()
        if candidate.isascii() and candidate.isdigit():
            uid = int(candidate)
    if uid is not None and 0 <= uid <= MAX_UID:
        return uid
    return secrets.randbelow(RANDOM_UID_UPPER_BOUND)


def issue_token(
    config: Settings,
    channel_name: object,
    uid_input: object = None,
    *,
    signer: TokenSigner | None = None,
) -> RtcToken:
    """Produce a publisher token for ``channel_name`` valid for 24 hours.

    Raises ``MissingChannelError`` before signing when the channel is absent or
    blank, and ``SigningFailedError`` when the signer rejects the inputs.
    """

    channel = validate_channel(channel_name)
    uid = resolve_uid(uid_input)

    issued_at = int(time.time())
    expires_at = issued_at + TOKEN_TTL_SECONDS

    sign = signer or agora_signer
    try:
        token = sign(config.app_id, config.app_certificate, channel, uid, ROLE_PUBLISHER, expires_at)
    except Exception as exc:  # noqa: BLE001 - any signer failure maps to one error kind
        raise SigningFailedError(str(exc) or exc.__class__.__name__) from exc
    if not token:
        raise SigningFailedError("signer returned an empty token")

    logger.info("Token issued channel=%s uid=%s token_length=%d", channel, uid, len(token))
    return RtcToken(
        token=token,
        app_id=config.app_id,
        channel=channel,
        uid=uid,
        issued_at=issued_at,
        expires_at=expires_at,
    )
