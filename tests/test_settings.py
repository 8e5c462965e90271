# tests/test_settings.py
"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from newsroom_admin.core.settings import Settings, settings


def test_defaults() -> None:
    loaded = Settings(SECRET_KEY="k")
    assert loaded.min_authorized_persons == 2
    assert loaded.otp_length == 6
    assert loaded.otp_ttl_seconds == 600


def test_min_authorized_persons_from_env(monkeypatch) -> None:
    monkeypatch.setenv("MIN_AUTHORIZED_PERSONS", "3")
    assert Settings(SECRET_KEY="k").min_authorized_persons == 3


@pytest.mark.parametrize("value", ["1", "0"])
def test_min_authorized_persons_below_two_rejected(monkeypatch, value) -> None:
    monkeypatch.setenv("MIN_AUTHORIZED_PERSONS", value)
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY="k")


def test_min_authorized_persons_assignment_validated() -> None:
    with pytest.raises(ValidationError):
        settings.min_authorized_persons = 1
    assert settings.min_authorized_persons == 2
