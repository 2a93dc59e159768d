"""Render a report into Slack-sized message bodies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence

from .models import ActiveMember, MemberReport, MessageLink, Report

SLACK_MAX_LEN = 3500
MODE_LABELS = {"daily": "Daily", "weekly": "Weekly", "deep-scan": "Deep Scan"}
TIME_FORMAT = "%a %Y-%m-%d %H:%M"


@dataclass(slots=True)
class _LinkEntry:
    link: MessageLink
    count: int = 1


def format_report(report: Report, max_len: int = SLACK_MAX_LEN) -> List[str]:
    """Return the report as one or more messages no longer than `max_len`.

    Each block is kept whole; a block longer than `max_len` is sent on its own.
    """

    return paginate(build_blocks(report), max_len)


def build_blocks(report: Report) -> List[str]:
    label = MODE_LABELS.get(report.mode, "Daily")
    blocks = [
        f":zombie: Zombie Report ({label}: {report.window_from.strftime(TIME_FORMAT)}"
        f" to {report.window_to.strftime(TIME_FORMAT)})\n"
    ]

    if not report.royal_zombies and not report.other_zombies:
        blocks.append("Everyone posted activity! No zombies detected.\n")
    else:
        for header, members in (
            (":crown: *Royal Members*", report.royal_zombies),
            (":busts_in_silhouette: *Other Members*", report.other_zombies),
        ):
            block = format_group(header, members)
            if block:
                blocks.append(block)

    if report.active:
        blocks.append(":white_check_mark: *Active Members*\n")
        tz = report.tz
        for member in report.active:
            blocks.append(format_active_member(member, report.workspace, by_day=report.by_day, tz=tz))

    blocks.append(
        f"\nActive: {len(report.active)}/{report.total_count} | Channels: {report.channel_count}\n"
    )
    return blocks


def paginate(blocks: Iterable[str], max_len: int = SLACK_MAX_LEN) -> List[str]:
    messages: List[str] = []
    current = ""
    for block in blocks:
        if current and len(current) + len(block) > max_len:
            messages.append(current)
            current = ""
        current += block
    if current:
        messages.append(current)
    return messages


def format_group(header: str, members: Sequence[MemberReport]) -> str:
    if not members:
        return ""
    names = " | ".join(f"@{member.display_name}" for member in members)
    return f"{header}\n{names}\n\n"


def format_active_member(
    member: ActiveMember,
    workspace: str,
    *,
    by_day: bool = False,
    tz: Optional[tzinfo] = None,
) -> str:
    if by_day:
        body = " ".join(format_day_links(member.messages, workspace, tz))
    else:
        body = " ".join(_numbered_links(dedupe_links(member.messages), workspace))
    return f"@{member.display_name}: {body}\n"


def dedupe_links(messages: Iterable[MessageLink]) -> List[_LinkEntry]:
    """Collapse repeats of the same PR, keeping the first message seen."""

    entries: Dict[str, _LinkEntry] = {}
    for message in messages:
        entry = entries.get(message.link_url)
        if entry is None:
            entries[message.link_url] = _LinkEntry(message)
        else:
            entry.count += 1
    return list(entries.values())


def _numbered_links(entries: Sequence[_LinkEntry], workspace: str) -> List[str]:
    links = []
    for number, entry in enumerate(entries, start=1):
        text = f"<{entry.link.permalink(workspace)}|{number}>"
        if entry.count > 1:
            text += f"({entry.count})"
        links.append(text)
    return links


def format_day_links(
    messages: Sequence[MessageLink], workspace: str, tz: Optional[tzinfo] = None
) -> List[str]:
    """Group links into per-day segments joined by week-aware separators.

    Segments in the same Monday-start week are separated by ``|``, the first
    segment of a new week by ``||``. Weekend day labels are bold.
    """

    buckets: Dict[date, List[MessageLink]] = {}
    for message in messages:
        buckets.setdefault(message.time(tz).date(), []).append(message)

    parts: List[str] = []
    previous: Optional[date] = None
    for day in sorted(buckets):
        if previous is not None:
            parts.append("||" if _starts_new_week(previous, day) else "|")
        label = day.strftime("%a")
        if day.weekday() >= 5:
            label = f"*{label}*"
        links = " ".join(_numbered_links(dedupe_links(buckets[day]), workspace))
        parts.append(f"{label} {day.day}: {links}")
        previous = day
    return parts


def _starts_new_week(previous: date, current: date) -> bool:
    return previous.isocalendar()[:2] != current.isocalendar()[:2]


__all__ = [
    "SLACK_MAX_LEN",
    "MODE_LABELS",
    "format_report",
    "build_blocks",
    "paginate",
    "format_group",
    "format_active_member",
    "dedupe_links",
    "format_day_links",
]
