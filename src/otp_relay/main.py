from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import Settings, get_settings
from .logger import get_logger, setup_logging
from .relay import handle, handle_unconfigured
from .sms import InboundRequest, RelayResponse
from .upstream import UpstreamGateway, build_gateway

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: configure logging once before serving requests.
    # Broken settings are reported per request, not here.
    settings = load_settings()
    setup_logging(settings.log_level if settings else "INFO")
    yield


app = FastAPI(title="otp-relay", version="0.1.0", lifespan=lifespan)

# Every method is routed to the handler so it answers 405 itself,
# with the same JSON body and CORS headers as every other response.
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# --- Dependencies ---


def load_settings() -> Settings | None:
    """Cached settings, or None when the environment holds an invalid value."""
    try:
        return get_settings()
    except ValidationError:
        logger.exception("relay_config_invalid: could not load settings from the environment")
        return None


def get_gateway(settings: Settings | None = Depends(load_settings)) -> UpstreamGateway | None:
    if settings is None:
        return None
    return build_gateway(settings)


async def read_json_body(request: Request) -> Any:
    """Decoded JSON body, or None when the body is empty or not valid JSON."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def to_http_response(result: RelayResponse) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code, headers=result.headers)
    return JSONResponse(result.body, status_code=result.status_code, headers=result.headers)


# --- Routes ---


@app.api_route("/api/send-otp", methods=ALL_METHODS)
async def send_otp(
    request: Request,
    settings: Settings | None = Depends(load_settings),
    gateway: UpstreamGateway | None = Depends(get_gateway),
) -> Response:
    """
    Forward an OTP send request to the configured SMS gateway.

    Accepts JSON:

      { "phone": "+639171234567", "message": "Your code is {otp}" }
    """
    body = await read_json_body(request) if request.method == "POST" else None
    inbound = InboundRequest(method=request.method, body=body)

    if settings is None or gateway is None:
        return to_http_response(handle_unconfigured(inbound))

    result = await handle(inbound, settings=settings, gateway=gateway)
    return to_http_response(result)
