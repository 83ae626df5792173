"""Shared test fixtures for the Slack sink."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from slack_sink.config import SinkSettings
from slack_sink.scheduler.engine import BatchScheduler
from slack_sink.schemas.event import LogEvent, LogLevel

WEBHOOK_URL = "https://hooks.slack.test/services/T000/B000/XXXX"


class InMemoryScheduler(BatchScheduler):
    """Queue without a timer: flush() hands everything queued to the callback as one batch."""

    def __init__(self) -> None:
        super().__init__()
        self.items: list[Any] = []
        self.started = False
        self.shut_down = False

    def enqueue(self, item: Any) -> None:
        self.items.append(item)

    def start(self) -> None:
        self.started = True

    async def flush(self) -> None:
        if self.items and self._callback is not None:
            batch, self.items = self.items, []
            await self._callback(batch)

    async def shutdown(self) -> None:
        self.shut_down = True
        await self.flush()


@pytest.fixture
def webhook_url() -> str:
    return WEBHOOK_URL


@pytest.fixture
def scheduler() -> InMemoryScheduler:
    return InMemoryScheduler()


@pytest.fixture
def make_scheduler() -> Callable[[], InMemoryScheduler]:
    """Factory fixture for tests that need more than one sink."""
    return InMemoryScheduler


@pytest.fixture
def make_settings() -> Callable[..., SinkSettings]:
    """Factory fixture: SinkSettings pointed at the mocked webhook."""

    def _factory(**overrides: Any) -> SinkSettings:
        values: dict[str, Any] = {"WEBHOOK_URL": WEBHOOK_URL}
        values.update(overrides)
        return SinkSettings(**values)

    return _factory


@pytest.fixture
def make_event() -> Callable[..., LogEvent]:
    """Factory fixture: build a LogEvent with sensible defaults."""

    def _factory(
        message: str = "Hello {Name}",
        level: LogLevel = LogLevel.INFORMATION,
        properties: dict[str, Any] | None = None,
        exception: BaseException | None = None,
        timestamp: datetime | None = None,
    ) -> LogEvent:
        return LogEvent(
            timestamp=timestamp or datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc),
            level=level,
            message_template=message,
            properties={"Name": "world"} if properties is None else properties,
            exception=exception,
        )

    return _factory
