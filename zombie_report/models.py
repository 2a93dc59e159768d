"""Dataclasses representing zombie report domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Dict, List, Optional

from .errors import ChannelSkipError


@dataclass(slots=True, frozen=True)
class Channel:
    id: str
    name: str = ""


@dataclass(slots=True, frozen=True)
class Member:
    id: str
    display_name: str


@dataclass(slots=True, frozen=True)
class MessageLink:
    """A pull request reference found in a message.

    `timestamp` is the Slack message ts (``"1700000000.123456"``). Links that
    did not come from Slack carry an empty `channel_id`.
    """

    channel_id: str
    timestamp: str
    link_url: str

    def permalink(self, workspace: str) -> str:
        if not self.channel_id:
            return f"https://{self.link_url}"
        message_id = self.timestamp.replace(".", "", 1)
        return f"https://{workspace}.slack.com/archives/{self.channel_id}/p{message_id}"

    def time(self, tz: Optional[tzinfo] = None) -> datetime:
        seconds = int(self.timestamp.split(".", 1)[0])
        if tz is None:
            return datetime.fromtimestamp(seconds).astimezone()
        return datetime.fromtimestamp(seconds, tz=tz)


@dataclass(slots=True, frozen=True)
class ActiveMember:
    display_name: str
    messages: tuple[MessageLink, ...]


@dataclass(slots=True, frozen=True)
class MemberReport:
    display_name: str


@dataclass(slots=True)
class ChannelScan:
    """Outcome of scanning one channel; `error` is set when it was skipped."""

    channel: Channel
    message_count: int = 0
    link_count: int = 0
    error: Optional[ChannelSkipError] = None

    @property
    def skipped(self) -> bool:
        return self.error is not None


@dataclass(slots=True)
class ScanResult:
    links: Dict[str, List[MessageLink]] = field(default_factory=dict)
    channels: List[ChannelScan] = field(default_factory=list)

    @property
    def scanned_count(self) -> int:
        return sum(1 for scan in self.channels if not scan.skipped)

    @property
    def skipped(self) -> List[ChannelScan]:
        return [scan for scan in self.channels if scan.skipped]


@dataclass(slots=True, frozen=True)
class Report:
    mode: str
    workspace: str
    window_from: datetime
    window_to: datetime
    by_day: bool
    royal_zombies: tuple[MemberReport, ...]
    other_zombies: tuple[MemberReport, ...]
    active: tuple[ActiveMember, ...]
    total_count: int
    channel_count: int
    tz: Optional[tzinfo] = None


__all__ = [
    "Channel",
    "Member",
    "MessageLink",
    "ActiveMember",
    "MemberReport",
    "ChannelScan",
    "ScanResult",
    "Report",
]
