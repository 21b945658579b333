"""Shared fixtures: fake timers, mock transport client, in-memory settings."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from querydesk.client import ApiClient
from querydesk.config import Settings, StorageSettings
from querydesk.observability import MetricsStore


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock: timers only fire when ``advance`` passes their deadline."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted(
            (t for t in self.timers if not t.cancelled and t.when <= self.now),
            key=lambda t: t.when,
        )
        for timer in due:
            self.timers.remove(timer)
            timer.callback()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def settings() -> Settings:
    return Settings(storage=StorageSettings(backend="memory"))


@pytest.fixture
def metrics() -> MetricsStore:
    return MetricsStore()


@pytest.fixture
def make_client(metrics):
    """Build an ApiClient whose requests are answered by ``handler``."""

    def _make(handler, chunk_size: int = 64 * 1024) -> ApiClient:
        return ApiClient(
            "http://querydesk.test",
            transport=httpx.MockTransport(handler),
            upload_chunk_size=chunk_size,
            metrics=metrics,
        )

    return _make
