"""Scan channel history for pull request links."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import httpx

from .errors import ChannelSkipError, FetchError
from .github_client import GitHubPR
from .models import Channel, ChannelScan, Member, MessageLink, ScanResult
from .slack_client import SlackApiError, SlackClient

PR_LINK_PATTERN = re.compile(r"github\.com/[^/\s]+/[^/\s]+/pull/\d+")

logger = logging.getLogger(__name__)


def extract_link(text: str) -> Optional[str]:
    """Return the first pull request reference in `text`, if any."""

    match = PR_LINK_PATTERN.search(text or "")
    return match.group(0) if match else None


async def scan_links(
    client: SlackClient,
    targets: Iterable[Channel],
    oldest: datetime,
    latest: datetime,
    *,
    primary_channel_id: Optional[str] = None,
) -> ScanResult:
    """Walk each target's history and collect pull request links per author.

    Channels are scanned in the given order and messages within a channel
    oldest first, so each author's list is in discovery order. A channel that
    cannot be read is recorded as skipped, except the primary channel whose
    failure raises `FetchError`.
    """

    result = ScanResult()
    for channel in targets:
        scan = ChannelScan(channel=channel)
        result.channels.append(scan)
        try:
            messages = await client.fetch_messages(channel.id, oldest, latest)
        except (SlackApiError, httpx.HTTPError) as exc:
            if channel.id == primary_channel_id:
                raise FetchError(f"fetching messages for primary channel {channel.id}: {exc}") from exc
            scan.error = ChannelSkipError(channel.id, str(exc))
            logger.info("Skipping channel %s (%s): %s", channel.name, channel.id, exc)
            continue

        scan.message_count = len(messages)
        for message in messages:
            author = message.get("user")
            if not author:
                continue
            link = extract_link(message.get("text", ""))
            if link is None:
                continue
            result.links.setdefault(author, []).append(
                MessageLink(channel_id=channel.id, timestamp=message["ts"], link_url=link)
            )
            scan.link_count += 1

    logger.info(
        "Scanned %d/%d channels, %d authors with links",
        result.scanned_count,
        len(result.channels),
        len(result.links),
    )
    return result


def merge_github_activity(
    links: Dict[str, List[MessageLink]],
    members: Iterable[Member],
    prs: Iterable[GitHubPR],
    github_users: Dict[str, str],
) -> Dict[str, List[MessageLink]]:
    """Append pull requests opened by mapped members to their link lists.

    `github_users` maps a Slack user id or display name to a GitHub login.
    Returns a new mapping; `links` is left untouched.
    """

    by_name = {key.lower(): login for key, login in github_users.items()}
    by_login: Dict[str, List[GitHubPR]] = {}
    for pr in prs:
        by_login.setdefault(pr.author.lower(), []).append(pr)

    merged = {user_id: list(entries) for user_id, entries in links.items()}
    for member in members:
        login = github_users.get(member.id) or by_name.get(member.display_name.lower())
        if not login:
            continue
        for pr in sorted(by_login.get(login.lower(), []), key=lambda pr: pr.created):
            link = extract_link(pr.html_url)
            if link is None:
                continue
            merged.setdefault(member.id, []).append(
                MessageLink(
                    channel_id="",
                    timestamp=f"{pr.created.timestamp():.6f}",
                    link_url=link,
                )
            )
    return merged


__all__ = ["PR_LINK_PATTERN", "extract_link", "scan_links", "merge_github_activity"]
