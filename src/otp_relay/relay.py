from __future__ import annotations

from typing import Any, Final, cast

from .config import Settings
from .logger import get_logger, mask_phone
from .sms import InboundRequest, RelayResponse, SendOtpBody
from .upstream import OutboundOtp, UpstreamGateway, UpstreamTransportError

logger = get_logger("relay")

SUCCESS_MESSAGE: Final[str] = "OTP sent successfully"
DEFAULT_FAILURE_MESSAGE: Final[str] = "Failed to send OTP"
INVALID_CONFIGURATION: Final[str] = "OTP relay configuration is invalid"

FIELD_LABELS: Final[dict[str, str]] = {
    "phone": "Phone number",
    "message": "message",
}


# --- Errors that stop the pipeline before any outbound call ---


class RelayError(Exception):
    status_code: int = 500

    def __init__(self, error: str) -> None:
        super().__init__(error)
        self.error = error

    def to_response(self) -> RelayResponse:
        return RelayResponse(status_code=self.status_code, body={"error": self.error})


class ClientInputError(RelayError):
    def __init__(self, error: str, status_code: int = 400) -> None:
        super().__init__(error)
        self.status_code = status_code


class ConfigurationError(RelayError):
    status_code = 500


# --- Pipeline steps ---


def check_method(method: str) -> None:
    if method.upper() != "POST":
        raise ClientInputError("Method not allowed", status_code=405)


def required_fields_error(fields: tuple[str, ...]) -> str:
    """
    "Phone number required" / "Phone number and message required"
    """
    labels = [FIELD_LABELS.get(f, f) for f in fields]
    if len(labels) > 1:
        joined = ", ".join(labels[:-1]) + " and " + labels[-1]
    else:
        joined = labels[0]
    return f"{joined} required"


def check_body(body: SendOtpBody, gateway: UpstreamGateway) -> None:
    if any(not getattr(body, f, None) for f in gateway.required_fields):
        raise ClientInputError(required_fields_error(gateway.required_fields))


def check_configuration(settings: Settings, gateway: UpstreamGateway) -> None:
    if gateway.requires_api_key and not settings.semaphore_api_key:
        logger.error(
            "upstream_config_missing: API key is not configured; refusing to call %s",
            gateway.name,
            extra={"event": "upstream_config_missing", "upstream": gateway.name},
        )
        raise ConfigurationError("SEMAPHORE_API_KEY not configured")


def upstream_message(payload: Any) -> str:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return DEFAULT_FAILURE_MESSAGE


def handle_unconfigured(request: InboundRequest) -> RelayResponse:
    """
    Answer a request when the settings themselves could not be loaded.

    Preflight and the method check still behave normally; anything that
    would reach the gateway gets a JSON 500 instead.
    """
    if request.method.upper() == "OPTIONS":
        return RelayResponse(status_code=200)

    try:
        check_method(request.method)
    except ClientInputError as exc:
        return exc.to_response()

    logger.error(
        "relay_config_invalid: settings could not be loaded; refusing %s request",
        request.method,
        extra={"event": "relay_config_invalid"},
    )
    return ConfigurationError(INVALID_CONFIGURATION).to_response()


async def handle(
    request: InboundRequest,
    *,
    settings: Settings,
    gateway: UpstreamGateway,
) -> RelayResponse:
    """
    Validate one send-OTP request, forward it to the gateway once, and map
    the outcome onto a JSON response.

    Order: method -> body -> configuration -> outbound call. The first
    failing step answers the request and nothing after it runs.
    """
    if request.method.upper() == "OPTIONS":
        return RelayResponse(status_code=200)

    try:
        check_method(request.method)
        body = request.parsed_body()
        check_body(body, gateway)
        check_configuration(settings, gateway)
    except ClientInputError as exc:
        logger.info("Rejected %s request: %s", request.method, exc.error)
        return exc.to_response()
    except ConfigurationError as exc:
        return exc.to_response()

    # check_body guarantees a non-empty phone
    outbound = OutboundOtp(
        phone=cast(str, body.phone),
        message=body.message,
        api_key=settings.semaphore_api_key,
        sender_name=settings.semaphore_sender_name,
    )

    try:
        result = await gateway.send(outbound)
    except UpstreamTransportError as exc:
        logger.exception(
            "OTP relay error via %s for %s", gateway.name, mask_phone(outbound.phone)
        )
        return RelayResponse(status_code=500, body=gateway.failure_body(exc))

    if not result.ok:
        logger.warning(
            "%s answered %s for %s",
            gateway.name,
            result.status_code,
            mask_phone(outbound.phone),
        )
        return RelayResponse(
            status_code=result.status_code,
            body={
                "success": False,
                "message": upstream_message(result.payload),
                "data": result.payload,
            },
        )

    logger.info("OTP sent via %s to %s", gateway.name, mask_phone(outbound.phone))
    return RelayResponse(
        status_code=200,
        body={"success": True, "message": SUCCESS_MESSAGE, "data": result.payload},
    )
