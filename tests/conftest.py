"""Shared fakes for zombie report tests."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from zombie_report.config import Settings
from zombie_report.models import Channel
from zombie_report.slack_client import SlackApiError


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def ts(dt: datetime, fraction: str = "000100") -> str:
    return f"{int(dt.timestamp())}.{fraction}"


class FakeSlackClient:
    """In-memory stand-in for SlackClient that records every call."""

    def __init__(
        self,
        *,
        members: Optional[Dict[str, List[str]]] = None,
        names: Optional[Dict[str, str]] = None,
        single_names: Optional[Dict[str, str]] = None,
        messages: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        channels: Optional[List[Channel]] = None,
        failing_channels: Optional[set] = None,
        fail_send: bool = False,
        fail_members: bool = False,
        fail_names: bool = False,
    ) -> None:
        self.members = members or {}
        self.names = names or {}
        self.single_names = single_names or {}
        self.messages = messages or {}
        self.channels = channels or []
        self.failing_channels = failing_channels or set()
        self.fail_send = fail_send
        self.fail_members = fail_members
        self.fail_names = fail_names
        self.calls: List[tuple] = []
        self.sent: List[tuple] = []
        self.closed = False

    async def fetch_members(self, channel_id: str) -> List[str]:
        self.calls.append(("fetch_members", channel_id))
        if self.fail_members:
            raise SlackApiError("conversations.members", "not_in_channel")
        return list(self.members.get(channel_id, []))

    async def fetch_all_channels(self) -> List[Channel]:
        self.calls.append(("fetch_all_channels",))
        return list(self.channels)

    async def fetch_user_names(self) -> Dict[str, str]:
        self.calls.append(("fetch_user_names",))
        if self.fail_names:
            raise SlackApiError("users.list", "invalid_auth")
        return dict(self.names)

    async def get_user_display_name(self, user_id: str) -> str:
        self.calls.append(("get_user_display_name", user_id))
        if user_id not in self.single_names:
            raise SlackApiError("users.info", "user_not_found")
        return self.single_names[user_id]

    async def fetch_messages(self, channel_id: str, oldest: datetime, latest: datetime):
        self.calls.append(("fetch_messages", channel_id))
        if channel_id in self.failing_channels:
            raise SlackApiError("conversations.history", "channel_not_found")
        return list(self.messages.get(channel_id, []))

    async def send_direct_message(self, user_id: str, text: str) -> None:
        self.calls.append(("send_direct_message", user_id))
        if self.fail_send:
            raise SlackApiError("chat.postMessage", "channel_not_found")
        self.sent.append((user_id, text))

    async def close(self) -> None:
        self.closed = True


def make_settings(**overrides) -> Settings:
    values: Dict[str, Any] = {
        "slack_token": "xoxb-test",
        "channels": [Channel("C1", "general")],
        "report_recipient": "UBOSS",
        "workspace": "acme",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def new_york_local(monkeypatch):
    """Run the test with the process-local zone set to America/New_York."""

    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
