from __future__ import annotations

import pytest

from token_server.core.config import Settings
from token_server.main import create_app

APP_ID = "970ca35de60c44645bbae8a215061b33"
APP_CERTIFICATE = "5cfd2fd1755d40ecb72977518be15d3b"


class RecordingSigner:
    """Signer stand-in that records every call it receives."""

    def __init__(self, token: str = "signed-token") -> None:
        self.token = token
        self.calls: list[tuple] = []

    def __call__(self, *args):
        self.calls.append(args)
        return self.token


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_id=APP_ID,
        app_certificate=APP_CERTIFICATE,
        app_env="test",
        _env_file=None,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def signer() -> RecordingSigner:
    return RecordingSigner()
