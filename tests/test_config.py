from __future__ import annotations

import pytest
from pydantic import ValidationError

from otp_relay.config import DEFAULT_RELAY_URL, DEFAULT_SEMAPHORE_OTP_URL, Settings, get_settings

ENV_VARS = [
    "SEMAPHORE_API_KEY",
    "SEMAPHORE_SENDER_NAME",
    "SEMAPHORE_OTP_URL",
    "OTP_RELAY_URL",
    "OTP_UPSTREAM",
    "OTP_UPSTREAM_TIMEOUT",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings()

    assert settings.semaphore_api_key is None
    assert settings.semaphore_sender_name is None
    assert settings.semaphore_otp_url == DEFAULT_SEMAPHORE_OTP_URL
    assert settings.relay_url == DEFAULT_RELAY_URL
    assert settings.upstream == "semaphore"
    assert settings.upstream_timeout == 10.0
    assert settings.log_level == "INFO"


def test_reads_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SEMAPHORE_API_KEY", "abc123")
    clean_env.setenv("OTP_UPSTREAM", "RELAY")
    clean_env.setenv("OTP_UPSTREAM_TIMEOUT", "2.5")
    clean_env.setenv("LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.semaphore_api_key == "abc123"
    assert settings.upstream == "relay"
    assert settings.upstream_timeout == 2.5
    assert settings.log_level == "DEBUG"


def test_blank_api_key_counts_as_missing(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SEMAPHORE_API_KEY", "   ")

    assert Settings().semaphore_api_key is None


def test_unknown_upstream_is_rejected(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("OTP_UPSTREAM", "carrier-pigeon")

    with pytest.raises(ValidationError):
        Settings()


def test_get_settings_is_cached(clean_env: pytest.MonkeyPatch) -> None:
    first = get_settings()
    clean_env.setenv("SEMAPHORE_API_KEY", "late")

    assert get_settings() is first
    assert get_settings().semaphore_api_key is None

    get_settings.cache_clear()
    assert get_settings().semaphore_api_key == "late"


@pytest.mark.parametrize("value", ["ten", "0", "-1"])
def test_malformed_timeout_is_a_validation_error(
    value: str, clean_env: pytest.MonkeyPatch
) -> None:
    clean_env.setenv("OTP_UPSTREAM_TIMEOUT", value)

    with pytest.raises(ValidationError):
        Settings()


def test_unknown_log_level_is_rejected(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("LOG_LEVEL", "loud")

    with pytest.raises(ValidationError):
        Settings()
