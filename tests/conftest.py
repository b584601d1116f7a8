"""Shared test fixtures."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from bookmark_router.agent import Decision, ToolInvocation
from bookmark_router.models import Bookmark, DestinationResult, MediaItem, User
from bookmark_router.parser import parse_bookmarks

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def bird_items() -> list[dict]:
    """Raw bird JSON objects."""
    with open(FIXTURES_DIR / "bird_bookmarks.json") as f:
        return json.load(f)


@pytest.fixture
def parsed_bookmarks(bird_items) -> list[Bookmark]:
    return parse_bookmarks(bird_items)


@pytest.fixture
def sample_bookmarks() -> list[Bookmark]:
    """A list of sample Bookmark objects for testing."""
    return [
        Bookmark(
            id="1234567890",
            author=User(username="testuser", display_name="Test User", id="111"),
            text="This is a test tweet with a link https://example.com/article",
            created_at="Mon Feb 10 18:30:00 +0000 2025",
            conversation_id="1234567890",
        ),
        Bookmark(
            id="9876543210",
            author=User(username="photouser", display_name="Photo User", id="222"),
            text="Check out this image",
            created_at="Sun Feb 09 12:00:00 +0000 2025",
            media=[MediaItem(type="photo", url="https://pbs.twimg.com/media/test123.jpg")],
        ),
        Bookmark(
            id="5555555555",
            author=User(username="quoter", display_name="The Quoter"),
            text="Great take on this topic",
            created_at="Sat Feb 08 09:00:00 +0000 2025",
            quoted_tweet=Bookmark(
                id="4444444444",
                author=User(username="originalauthor", display_name="Original Author"),
                text="Hot take: tests are documentation",
                created_at="Fri Feb 07 08:00:00 +0000 2025",
            ),
        ),
    ]


class FakeClock:
    """Deterministic, manually advanced clock for ledger tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 2, 10, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FakeDecider:
    """Returns canned decisions and records the prompts it was given."""

    def __init__(self, decision: Decision | None = None):
        self.decision = decision or Decision(
            status="success",
            invocations=[ToolInvocation("skip_bookmark", {"reason": "just a joke"})],
        )
        self.calls: list[tuple[str, str, list[dict]]] = []

    def decide(self, system_prompt, user_prompt, tools):
        self.calls.append((system_prompt, user_prompt, tools))
        return self.decision


@pytest.fixture
def fake_decider() -> FakeDecider:
    return FakeDecider()


class RecordingDestination:
    """Destination double that records every payload it receives."""

    def __init__(self, name: str, configured: bool = True, result: DestinationResult | None = None):
        self.name = name
        self.configured = configured
        self.result = result or DestinationResult(success=True, message=f"sent to {name}")
        self.sent: list[dict] = []
        self.closed = False

    def is_configured(self) -> bool:
        return self.configured

    def send(self, payload: dict) -> DestinationResult:
        self.sent.append(payload)
        return self.result

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_destination():
    """Factory for RecordingDestination doubles."""
    return RecordingDestination
