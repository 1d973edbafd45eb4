from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class SendOtpBody(BaseModel):
    """JSON body of an inbound send-OTP call: { "phone": ..., "message": ... }"""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    phone: str | None = None
    message: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> SendOtpBody:
        """
        Build from whatever the HTTP layer decoded.

        Anything that is not a JSON object, or carries non-string fields,
        becomes an empty body so the presence checks reject it.
        """
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError:
            return cls()


@dataclass(frozen=True)
class InboundRequest:
    method: str
    body: Any = None

    def parsed_body(self) -> SendOtpBody:
        return SendOtpBody.from_raw(self.body)


@dataclass(frozen=True)
class RelayResponse:
    status_code: int
    # None means "no body" (CORS preflight)
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
