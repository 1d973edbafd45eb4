from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import get_settings
from .logger import setup_logging
from .relay import handle
from .sms import InboundRequest, RelayResponse
from .upstream import build_gateway


def send_once(phone: str, message: str | None = None, upstream: str | None = None) -> RelayResponse:
    """
    Send one OTP through the same handler the HTTP endpoint uses.

    Handy for checking gateway credentials from a shell without a browser.
    """
    settings = get_settings()
    if upstream:
        settings = settings.model_copy(update={"upstream": upstream})

    body: dict[str, str] = {"phone": phone}
    if message is not None:
        body["message"] = message

    return asyncio.run(
        handle(
            InboundRequest(method="POST", body=body),
            settings=settings,
            gateway=build_gateway(settings),
        )
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="otp-relay", description="Send one OTP via the relay.")
    parser.add_argument("phone", type=str)
    parser.add_argument("--message", "-m", type=str, default=None)
    parser.add_argument("--upstream", choices=["semaphore", "relay"], default=None)
    args = parser.parse_args(argv)

    setup_logging(get_settings().log_level)

    result = send_once(args.phone, message=args.message, upstream=args.upstream)
    print(json.dumps(result.body, indent=2))
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
