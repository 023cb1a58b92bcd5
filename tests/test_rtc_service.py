"""Tests for the token issuer."""
from __future__ import annotations

import pytest

from token_server.core.errors import MissingChannelError, SigningFailedError
from token_server.services import rtc


def test_issue_token_with_explicit_uid(monkeypatch, settings, signer) -> None:
    monkeypatch.setattr(rtc.time, "time", lambda: 1_700_000_000.7)

    result = rtc.issue_token(settings, "demo-room", 7, signer=signer)

    assert result.token == "signed-token"
    assert result.uid == 7
    assert result.channel == "demo-room"
    assert result.app_id == settings.app_id
    assert result.role == "publisher"
    assert result.expires_in == 86400
    assert result.issued_at == 1_700_000_000
    assert result.expires_at == 1_700_000_000 + 86400
    assert signer.calls == [
        (
            settings.app_id,
            settings.app_certificate,
            "demo-room",
            7,
            rtc.ROLE_PUBLISHER,
            1_700_000_000 + 86400,
        )
    ]


@pytest.mark.parametrize("channel", [None, "", "   ", 42])
def test_missing_channel_never_reaches_signer(settings, signer, channel) -> None:
    with pytest.raises(MissingChannelError):
        rtc.issue_token(settings, channel, 7, signer=signer)

    assert signer.calls == []


@pytest.mark.parametrize(
    "uid_input,expected",
    [(456, 456), ("456", 456), (" 12 ", 12), (0, 0), ("0", 0), (2**32 - 1, 2**32 - 1), ("4294967295", 4294967295)],
)
def test_resolve_uid_uses_explicit_value(uid_input, expected) -> None:
    assert rtc.resolve_uid(uid_input) == expected


@pytest.mark.parametrize(
    "uid_input", [None, "", "abc", "-5", -5, "4.5", 4.5, True, [1], 2**32, "99999999999"]
)
def test_resolve_uid_falls_back_to_random_range(uid_input) -> None:
    for _ in range(50):
        uid = rtc.resolve_uid(uid_input)
        assert 0 <= uid < rtc.RANDOM_UID_UPPER_BOUND


def test_independent_calls_compute_their_own_expiry(monkeypatch, settings, signer) -> None:
    monkeypatch.setattr(rtc.time, "time", lambda: 1_000.0)
    first = rtc.issue_token(settings, "room", 1, signer=signer)

    monkeypatch.setattr(rtc.time, "time", lambda: 5_000.0)
    second = rtc.issue_token(settings, "room", 1, signer=signer)

    assert first.expires_at == 1_000 + 86400
    assert second.expires_at == 5_000 + 86400
    assert second.expires_at - second.issued_at == 86400


def test_signer_failure_becomes_signing_failed(settings) -> None:
    def broken_signer(*_args):
        raise ValueError("invalid app certificate")

    with pytest.raises(SigningFailedError) as exc:
        rtc.issue_token(settings, "room", 1, signer=broken_signer)

    assert str(exc.value) == "invalid app certificate"


def test_empty_token_is_a_signing_failure(settings) -> None:
    with pytest.raises(SigningFailedError):
        rtc.issue_token(settings, "room", 1, signer=lambda *_args: "")


def test_expires_at_rendered_as_iso8601(monkeypatch, settings, signer) -> None:
    monkeypatch.setattr(rtc.time, "time", lambda: 0)

    result = rtc.issue_token(settings, "room", 1, signer=signer)

    assert result.issued_at_iso == "1970-01-01T00:00:00.000Z"
    assert result.expires_at_iso == "1970-01-02T00:00:00.000Z"


def test_agora_signer_produces_version_prefixed_token(settings) -> None:
    result = rtc.issue_token(settings, "demo-room", 7)

    assert result.token.startswith("006" + settings.app_id)
    assert len(result.token) > len(settings.app_id) + 3


def test_signer_receives_library_publisher_role(settings, signer) -> None:
    from agora_token_builder.RtcTokenBuilder import Role_Publisher

    rtc.issue_token(settings, "room", 3, signer=signer)

    assert signer.calls[0][4] == Role_Publisher
