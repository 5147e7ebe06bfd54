"""Pytest configuration and shared fixtures."""

from unittest.mock import Mock

import pytest

from models.feedback import FeedbackConfig
from models.user import ActingUser
from services.api_client import ApiClient
from services.feedback_service import FeedbackService


class ManualTimer:
    """Timer handle that only fires when the test says so."""

    def __init__(self, delay_ms, callback):
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.callback()


class ManualScheduler:
    """Scheduler double that records timers instead of starting threads."""

    def __init__(self):
        self.timers = []

    def call_later(self, delay_ms, callback):
        timer = ManualTimer(delay_ms, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def run_pending(self, max_delay_ms=None):
        """Fire pending timers (and the ones they schedule) up to a delay."""
        for _ in range(100):
            due = [
                t
                for t in self.pending
                if max_delay_ms is None or t.delay_ms <= max_delay_ms
            ]
            if not due:
                return
            for timer in due:
                if not timer.cancelled:
                    timer.fire()


@pytest.fixture
def scheduler():
    """Create a manual scheduler."""
    return ManualScheduler()


@pytest.fixture
def mock_client():
    """Create a mock ApiClient that accepts every submission."""
    client = Mock(spec=ApiClient)
    client.post.return_value = {"id": 42}
    client.put.return_value = {"id": 42}
    return client


@pytest.fixture
def sample_user():
    """Create a signed-in farmer."""
    return ActingUser(id=7, email="farmer@example.com", role="farmer", name="Amina")


@pytest.fixture
def make_service(mock_client, scheduler):
    """Factory for FeedbackService instances wired to the shared doubles."""

    def _make(user=None, **config):
        return FeedbackService(
            mock_client,
            config=FeedbackConfig(**config),
            user_provider=(lambda: user) if user is not None else None,
            scheduler=scheduler,
        )

    return _make


@pytest.fixture
def feedback_service(make_service):
    """Create a FeedbackService with default configuration."""
    return make_service()
