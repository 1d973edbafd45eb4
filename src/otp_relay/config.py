from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UpstreamName = Literal["semaphore", "relay"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_SEMAPHORE_OTP_URL = "https://api.semaphore.co/api/v4/otp"
DEFAULT_RELAY_URL = "http://quest4inno.mooo.com:3000/send-otp"


def _env(name: str) -> str | None:
    # Treat empty strings the same as unset variables
    value = os.getenv(name, "").strip()
    return value or None


class Settings(BaseModel):
    model_config = ConfigDict(validate_default=True)

    # --- Semaphore gateway ---
    # Absence is reported per request (500), never at startup.
    semaphore_api_key: str | None = Field(default_factory=lambda: _env("SEMAPHORE_API_KEY"))
    semaphore_sender_name: str | None = Field(
        default_factory=lambda: _env("SEMAPHORE_SENDER_NAME")
    )
    semaphore_otp_url: str = Field(
        default_factory=lambda: _env("SEMAPHORE_OTP_URL") or DEFAULT_SEMAPHORE_OTP_URL
    )

    # --- Self-hosted relay ---
    relay_url: str = Field(default_factory=lambda: _env("OTP_RELAY_URL") or DEFAULT_RELAY_URL)

    # Which upstream adapter handles outbound calls
    upstream: UpstreamName = Field(
        default_factory=lambda: (_env("OTP_UPSTREAM") or "semaphore").lower()  # type: ignore[return-value]
    )

    # Outbound timeout in seconds; the raw string is parsed by validation
    # so a bad value surfaces as a ValidationError like every other field.
    upstream_timeout: float = Field(
        default_factory=lambda: _env("OTP_UPSTREAM_TIMEOUT") or 10.0, gt=0  # type: ignore[return-value]
    )

    log_level: LogLevel = Field(
        default_factory=lambda: (_env("LOG_LEVEL") or "INFO").upper()  # type: ignore[return-value]
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
