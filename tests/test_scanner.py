"""Tests for link extraction and channel scanning."""

import pytest

from conftest import FakeSlackClient, ts, utc
from zombie_report.errors import ChannelSkipError, FetchError
from zombie_report.github_client import GitHubPR
from zombie_report.models import Channel, Member, MessageLink
from zombie_report.scanner import extract_link, merge_github_activity, scan_links

FROM = utc(2026, 3, 10)
TO = utc(2026, 3, 11, 12)


def test_extract_link_first_match_only():
    text = "see https://github.com/acme/api/pull/12 and github.com/acme/web/pull/3"
    assert extract_link(text) == "github.com/acme/api/pull/12"


def test_extract_link_inside_slack_markup():
    text = "<https://github.com/acme/api/pull/7|acme/api#7> ready"
    assert extract_link(text) == "github.com/acme/api/pull/7"


@pytest.mark.parametrize(
    "text",
    [
        "https://github.com/acme/api/issues/12",
        "https://github.com/acme/pull/12",
        "github.com/acme/api/pull/",
        "",
    ],
)
def test_extract_link_rejects_non_pr_urls(text):
    assert extract_link(text) is None


@pytest.mark.asyncio
async def test_scan_collects_links_in_channel_then_time_order():
    client = FakeSlackClient(
        messages={
            "C1": [
                {"user": "U1", "ts": ts(utc(2026, 3, 10, 9)), "text": "github.com/a/b/pull/1"},
                {"user": "U2", "ts": ts(utc(2026, 3, 10, 10)), "text": "no link here"},
                {"user": "U1", "ts": ts(utc(2026, 3, 10, 11)), "text": "github.com/a/b/pull/2"},
            ],
            "C2": [
                {"user": "U1", "ts": ts(utc(2026, 3, 10, 8)), "text": "github.com/a/c/pull/9"},
                {"ts": ts(utc(2026, 3, 10, 8)), "text": "bot post github.com/a/c/pull/9"},
            ],
        }
    )
    result = await scan_links(client, [Channel("C1"), Channel("C2")], FROM, TO)

    assert list(result.links) == ["U1"]
    assert [(m.channel_id, m.link_url) for m in result.links["U1"]] == [
        ("C1", "github.com/a/b/pull/1"),
        ("C1", "github.com/a/b/pull/2"),
        ("C2", "github.com/a/c/pull/9"),
    ]
    assert result.scanned_count == 2
    assert result.channels[0].message_count == 3
    assert result.channels[0].link_count == 2


@pytest.mark.asyncio
async def test_scan_records_skipped_channels():
    client = FakeSlackClient(failing_channels={"C2"})
    result = await scan_links(
        client, [Channel("C1"), Channel("C2", "secret")], FROM, TO, primary_channel_id="C1"
    )

    assert result.scanned_count == 1
    assert [scan.channel.id for scan in result.skipped] == ["C2"]
    error = result.skipped[0].error
    assert isinstance(error, ChannelSkipError)
    assert error.channel_id == "C2"
    assert "channel_not_found" in error.reason


@pytest.mark.asyncio
async def test_scan_primary_channel_failure_raises():
    client = FakeSlackClient(failing_channels={"C1"})
    with pytest.raises(FetchError):
        await scan_links(client, [Channel("C1")], FROM, TO, primary_channel_id="C1")


def test_merge_github_activity_by_id_and_name():
    links = {"U1": [MessageLink("C1", "1773136800.000100", "github.com/acme/api/pull/1")]}
    members = [Member("U1", "ann"), Member("U2", "Ben"), Member("U3", "cy")]
    prs = [
        GitHubPR("Octo-Ann", "fix", "https://github.com/acme/api/pull/4", utc(2026, 3, 10, 14)),
        GitHubPR("benh", "feat", "https://github.com/acme/web/pull/8", utc(2026, 3, 10, 9)),
        GitHubPR("stranger", "x", "https://github.com/acme/web/pull/9", utc(2026, 3, 10, 9)),
    ]

    merged = merge_github_activity(links, members, prs, {"U1": "octo-ann", "ben": "benh"})

    assert [m.link_url for m in merged["U1"]] == [
        "github.com/acme/api/pull/1",
        "github.com/acme/api/pull/4",
    ]
    assert merged["U1"][1].channel_id == ""
    assert merged["U1"][1].permalink("acme") == "https://github.com/acme/api/pull/4"
    assert [m.link_url for m in merged["U2"]] == ["github.com/acme/web/pull/8"]
    assert "U3" not in merged
    assert len(links["U1"]) == 1
