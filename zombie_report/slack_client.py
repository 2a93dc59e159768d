"""HTTP client for interacting with Slack Web API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from .models import Channel

SLACK_API_BASE = "https://slack.com/api"
PAGE_LIMIT = 200

logger = logging.getLogger(__name__)

NameStrategy = Callable[[Dict[str, Any]], Optional[str]]

# Tried in order; the user id terminates the chain.
DISPLAY_NAME_CHAIN: Tuple[NameStrategy, ...] = (
    lambda user: (user.get("profile") or {}).get("display_name"),
    lambda user: user.get("real_name") or (user.get("profile") or {}).get("real_name"),
    lambda user: user.get("name"),
)


def display_name_for(user: Dict[str, Any]) -> str:
    for strategy in DISPLAY_NAME_CHAIN:
        name = strategy(user)
        if name:
            return name
    return user["id"]


class SlackApiError(RuntimeError):
    """Raised when Slack returns an error response."""

    def __init__(self, method: str, error: str) -> None:
        super().__init__(f"Slack API error for {method}: {error}")
        self.method = method
        self.error = error


class SlackClient:
    """Async wrapper around the Slack Web API endpoints used by the zombie report."""

    def __init__(
        self,
        token: str,
        timeout: float = 10.0,
        *,
        page_delay: float = 0.2,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.page_delay = page_delay
        self._client = http_client or httpx.AsyncClient(base_url=SLACK_API_BASE, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"}

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self, http_method: str, method: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        while True:
            if http_method == "POST":
                response = await self._client.post(method, json=params, headers=self._headers)
            else:
                response = await self._client.get(method, params=params, headers=self._headers)

            if response.status_code == 429:
                retry_after = float(response.headers.get("Retry-After", "1"))
                logger.warning("Rate limited on %s, retrying in %.1fs", method, retry_after)
                await asyncio.sleep(retry_after)
                continue

            response.raise_for_status()
            data = response.json()
            if not data.get("ok"):
                raise SlackApiError(method, data.get("error", "unknown_error"))
            return data

    async def _paginate(
        self, method: str, key: str, params: Dict[str, Any]
    ) -> AsyncIterator[Any]:
        """Yield items under `key` until Slack stops returning a cursor."""

        cursor: Optional[str] = None
        while True:
            page_params = {**params, "limit": PAGE_LIMIT}
            if cursor:
                page_params["cursor"] = cursor
            data = await self._request("GET", method, page_params)
            for item in data.get(key, []):
                yield item

            cursor = (data.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
            if self.page_delay:
                await asyncio.sleep(self.page_delay)

    async def fetch_members(self, channel_id: str) -> List[str]:
        return [
            member
            async for member in self._paginate(
                "conversations.members", "members", {"channel": channel_id}
            )
        ]

    async def fetch_all_channels(self) -> List[Channel]:
        params = {"types": "public_channel,private_channel", "exclude_archived": "true"}
        return [
            Channel(id=channel["id"], name=channel.get("name") or channel["id"])
            async for channel in self._paginate("conversations.list", "channels", params)
            if not channel.get("is_archived")
        ]

    async def fetch_user_names(self) -> Dict[str, str]:
        names: Dict[str, str] = {}
        async for user in self._paginate("users.list", "members", {}):
            if user.get("deleted"):
                continue
            names[user["id"]] = display_name_for(user)
        return names

    async def get_user_display_name(self, user_id: str) -> str:
        data = await self._request("GET", "users.info", {"user": user_id})
        return display_name_for(data.get("user") or {"id": user_id})

    async def fetch_messages(
        self, channel_id: str, oldest: datetime, latest: datetime
    ) -> List[Dict[str, Any]]:
        """Return messages with ``oldest <= ts < latest``, oldest first."""

        lower = oldest.timestamp()
        upper = latest.timestamp()
        params = {
            "channel": channel_id,
            "oldest": f"{lower:.6f}",
            "latest": f"{upper:.6f}",
            "inclusive": "true",
        }
        messages = []
        async for message in self._paginate("conversations.history", "messages", params):
            if message.get("subtype") == "channel_join":
                continue
            ts = float(message.get("ts", 0))
            if lower <= ts < upper:
                messages.append(message)
        messages.sort(key=lambda message: float(message["ts"]))
        return messages

    async def send_direct_message(self, user_id: str, text: str) -> None:
        await self._request("POST", "chat.postMessage", {"channel": user_id, "text": text})


__all__ = ["SlackClient", "SlackApiError", "display_name_for", "DISPLAY_NAME_CHAIN"]
