from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from otp_relay.config import Settings, get_settings
from otp_relay.logger import get_logger
from otp_relay.upstream import (
    OutboundOtp,
    SelfHostedRelay,
    SemaphoreGateway,
    UpstreamResult,
)


FAKE_URL = "http://upstream.test/otp"


class RecordingGateway:
    """Replaces the network call with a canned result and records what was sent."""

    def start_recording(self) -> None:
        self.result = UpstreamResult(status_code=200, payload={"message": "Sent"})
        self.error: Exception | None = None
        self.calls: list[OutboundOtp] = []

    async def send(self, outbound: OutboundOtp) -> Any:
        self.calls.append(outbound)
        if self.error is not None:
            raise self.error
        return self.result


class FakeSemaphore(RecordingGateway, SemaphoreGateway):
    def __init__(self) -> None:
        SemaphoreGateway.__init__(self, FAKE_URL)
        self.start_recording()


class FakeRelay(RecordingGateway, SelfHostedRelay):
    def __init__(self) -> None:
        SelfHostedRelay.__init__(self, FAKE_URL)
        self.start_recording()


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        semaphore_api_key="test-key",
        semaphore_sender_name=None,
        upstream="semaphore",
    )


@pytest.fixture
def semaphore_gateway() -> FakeSemaphore:
    return FakeSemaphore()


@pytest.fixture
def relay_gateway() -> FakeRelay:
    return FakeRelay()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    # setup_logging binds a handler to whatever sys.stdout was at the time
    yield
    get_logger().handlers.clear()
