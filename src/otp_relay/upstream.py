from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from .config import Settings


class UpstreamTransportError(RuntimeError):
    """The gateway could not be reached, timed out, or answered with non-JSON."""


@dataclass(frozen=True)
class OutboundOtp:
    phone: str
    message: str | None = None
    api_key: str | None = None
    sender_name: str | None = None


@dataclass(frozen=True)
class UpstreamResult:
    status_code: int
    payload: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class UpstreamGateway(ABC):
    """
    One outbound SMS gateway.

    Subclasses decide how the OTP request is encoded and what a transport
    failure looks like to the caller; sending and decoding are shared.
    """

    name: str = "upstream"
    requires_api_key: bool = False
    # Inbound body fields that must be non-empty before calling out
    required_fields: tuple[str, ...] = ("phone",)

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    def encode(self, outbound: OutboundOtp) -> dict[str, Any]:
        """Keyword arguments for httpx's post(): the body in this gateway's encoding."""

    @abstractmethod
    def failure_body(self, exc: Exception) -> dict[str, Any]:
        """JSON body returned to the caller when the gateway call itself fails."""

    async def send(self, outbound: OutboundOtp) -> UpstreamResult:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.url, **self.encode(outbound))
        except httpx.HTTPError as exc:
            raise UpstreamTransportError(f"{self.name} request failed: {exc}") from exc

        try:
            payload = resp.json()
        except ValueError as exc:
            # An error page (e.g. a 502 from a proxy) still carries a usable status
            if not resp.is_success:
                return UpstreamResult(status_code=resp.status_code, payload=None)
            raise UpstreamTransportError(
                f"{self.name} returned a non-JSON response (status {resp.status_code})"
            ) from exc

        return UpstreamResult(status_code=resp.status_code, payload=payload)


class SemaphoreGateway(UpstreamGateway):
    """Semaphore OTP API: form-encoded, authenticated with an API key."""

    name = "semaphore"
    requires_api_key = True
    required_fields = ("phone", "message")

    def encode(self, outbound: OutboundOtp) -> dict[str, Any]:
        data = {
            "apikey": outbound.api_key or "",
            "number": outbound.phone,
            "message": outbound.message or "",
        }
        if outbound.sender_name:
            data["sendername"] = outbound.sender_name
        return {"data": data}

    def failure_body(self, exc: Exception) -> dict[str, Any]:
        return {"success": False, "message": "Internal server error"}


class SelfHostedRelay(UpstreamGateway):
    """Our own relay server: JSON body, no API key of its own."""

    name = "relay"

    def encode(self, outbound: OutboundOtp) -> dict[str, Any]:
        body: dict[str, Any] = {"phone": outbound.phone}
        if outbound.message:
            body["message"] = outbound.message
        return {"json": body}

    def failure_body(self, exc: Exception) -> dict[str, Any]:
        return {"error": "Failed to send OTP", "details": str(exc)}


def build_gateway(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> UpstreamGateway:
    if settings.upstream == "relay":
        return SelfHostedRelay(settings.relay_url, settings.upstream_timeout, transport)
    return SemaphoreGateway(settings.semaphore_otp_url, settings.upstream_timeout, transport)
