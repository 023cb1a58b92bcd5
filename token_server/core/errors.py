"""Error taxonomy shared by the token issuer and the HTTP layer."""
from __future__ import annotations

from collections.abc import Sequence


class TokenServerError(Exception):
    """Base class for every error raised by the token server."""


class ConfigMissingError(TokenServerError):
    """Raised at startup when required secrets are absent."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Missing required environment variables: {', '.join(self.missing)}")


class MissingChannelError(TokenServerError):
    """Raised when a token request carries no usable channel name."""

    def __init__(self, message: str = "channel name is required") -> None:
        super().__init__(message)


class SigningFailedError(TokenServerError):
    """Raised when the external signer rejects the request."""
