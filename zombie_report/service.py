"""Core orchestration logic for the zombie report."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import httpx

from .config import Settings
from .errors import ConfigError, FetchError, SendError
from .formatter import format_report
from .github_client import GitHubClient
from .models import ActiveMember, Channel, Member, MemberReport, MessageLink, Report
from .scanner import merge_github_activity, scan_links
from .slack_client import SlackApiError, SlackClient

MODES = ("daily", "weekly", "deep-scan")
DEFAULT_DAYS = {"daily": 1, "weekly": 7, "deep-scan": 1}

logger = logging.getLogger(__name__)

RolePredicate = Callable[[str, str], bool]


def resolve_window(
    mode: str, days_override: Optional[int] = None, now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """Return ``(from, to)``: `to` is now, `from` is midnight N days earlier.

    Midnight is taken in the zone of `to`. When `to` carries the local
    clock's offset, the local zone rules pick the offset of that midnight so
    windows spanning a DST change still start at wall-clock 00:00.
    """

    to = now or datetime.now().astimezone()
    days = DEFAULT_DAYS.get(mode, 1)
    if days_override and days_override > 0:
        days = days_override
    start_day = (to - timedelta(days=days)).date()
    if is_local_time(to):
        start = datetime.combine(start_day, time.min).astimezone()
    else:
        start = datetime.combine(start_day, time.min, tzinfo=to.tzinfo)
    return start, to


def is_local_time(dt: datetime) -> bool:
    """True when `dt` holds a fixed offset equal to the local clock's at that instant."""

    return isinstance(dt.tzinfo, timezone) and dt.utcoffset() == dt.astimezone().utcoffset()


def classify(
    members: Iterable[Member],
    links: Mapping[str, Sequence[MessageLink]],
    is_royal: RolePredicate,
) -> Tuple[List[MemberReport], List[MemberReport], List[ActiveMember]]:
    """Split members into royal zombies, other zombies and active members."""

    royal: List[MemberReport] = []
    other: List[MemberReport] = []
    active: List[ActiveMember] = []
    for member in members:
        messages = links.get(member.id)
        if messages:
            active.append(ActiveMember(member.display_name, tuple(messages)))
        elif is_royal(member.id, member.display_name):
            royal.append(MemberReport(member.display_name))
        else:
            other.append(MemberReport(member.display_name))

    royal.sort(key=lambda entry: entry.display_name.lower())
    other.sort(key=lambda entry: entry.display_name.lower())
    active.sort(key=lambda entry: entry.display_name.lower())
    return royal, other, active


class ZombieReportService:
    """Runs one audit of channel members against their recent PR activity."""

    def __init__(
        self,
        settings: Settings,
        client: SlackClient,
        *,
        client_factory: Callable[[str], SlackClient] = SlackClient,
        github_client: Optional[GitHubClient] = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.client_factory = client_factory
        self.github_client = github_client

    # region Pipeline steps
    async def select_targets(self, mode: str) -> Tuple[SlackClient, List[Channel]]:
        if mode != "deep-scan":
            return self.client, list(self.settings.channels)

        if not self.settings.user_token:
            raise ConfigError("user_token is required for deep-scan mode")
        scan_client = self.client_factory(self.settings.user_token)
        try:
            channels = await scan_client.fetch_all_channels()
        except (SlackApiError, httpx.HTTPError) as exc:
            await scan_client.close()
            raise FetchError(f"fetching channels: {exc}") from exc
        logger.info("Deep scan discovered %d channels", len(channels))
        return scan_client, channels

    async def resolve_members(self) -> List[Member]:
        primary = self.settings.primary_channel
        try:
            member_ids = await self.client.fetch_members(primary.id)
        except (SlackApiError, httpx.HTTPError) as exc:
            raise FetchError(f"fetching members of {primary.id}: {exc}") from exc
        try:
            names = await self.client.fetch_user_names()
        except (SlackApiError, httpx.HTTPError) as exc:
            raise FetchError(f"fetching users: {exc}") from exc

        members: List[Member] = []
        for user_id in member_ids:
            name = names.get(user_id) or await self._lookup_name(user_id)
            if self.settings.is_whitelisted(user_id, name):
                continue
            members.append(Member(user_id, name))
        logger.info("Tracking %d of %d members in %s", len(members), len(member_ids), primary.id)
        return members

    async def _lookup_name(self, user_id: str) -> str:
        try:
            return await self.client.get_user_display_name(user_id) or user_id
        except (SlackApiError, httpx.HTTPError) as exc:
            logger.warning("Could not resolve name for %s: %s", user_id, exc)
            return user_id

    async def _github_activity(
        self,
        links: Dict[str, List[MessageLink]],
        members: List[Member],
        window: Tuple[datetime, datetime],
    ) -> Dict[str, List[MessageLink]]:
        if self.github_client is None:
            return links
        try:
            prs = await self.github_client.fetch_prs(*window)
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.warning("GitHub activity unavailable: %s", exc)
            return links
        logger.info("Found %d GitHub pull requests", len(prs))
        return merge_github_activity(links, members, prs, self.settings.github_users)

    # endregion

    async def build_report(
        self,
        mode: str,
        days_override: Optional[int] = None,
        by_day: bool = False,
        *,
        now: Optional[datetime] = None,
    ) -> Report:
        window_from, window_to = resolve_window(mode, days_override, now)
        scan_client, targets = await self.select_targets(mode)
        try:
            members = await self.resolve_members()
            scan = await scan_links(
                scan_client,
                targets,
                window_from,
                window_to,
                primary_channel_id=self.settings.primary_channel.id,
            )
        finally:
            if scan_client is not self.client:
                await scan_client.close()

        links = await self._github_activity(scan.links, members, (window_from, window_to))
        royal, other, active = classify(members, links, self.settings.is_royal)
        return Report(
            mode=mode,
            workspace=self.settings.workspace,
            window_from=window_from,
            window_to=window_to,
            by_day=by_day,
            royal_zombies=tuple(royal),
            other_zombies=tuple(other),
            active=tuple(active),
            total_count=len(members),
            channel_count=scan.scanned_count,
            tz=None if is_local_time(window_to) else window_to.tzinfo,
        )

    async def render(
        self, mode: str, days_override: Optional[int] = None, by_day: bool = False
    ) -> List[str]:
        return format_report(await self.build_report(mode, days_override, by_day))

    async def send_report(self, messages: Sequence[str]) -> None:
        recipient = self.settings.report_recipient
        for text in messages:
            try:
                await self.client.send_direct_message(recipient, text)
            except (SlackApiError, httpx.HTTPError) as exc:
                raise SendError(f"sending report to {recipient}: {exc}") from exc
        logger.info("Sent %d message(s) to %s", len(messages), recipient)

    async def close(self) -> None:
        await self.client.close()
        if self.github_client is not None:
            await self.github_client.close()


def create_service(settings: Settings) -> ZombieReportService:
    github_client = None
    if settings.github_enabled:
        github_client = GitHubClient(settings.github_token, settings.github_org)
    return ZombieReportService(
        settings, SlackClient(settings.slack_token), github_client=github_client
    )


__all__ = [
    "MODES",
    "DEFAULT_DAYS",
    "resolve_window",
    "is_local_time",
    "classify",
    "ZombieReportService",
    "create_service",
]
