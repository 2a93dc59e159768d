"""HTTP client for the GitHub pull request search API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

GITHUB_API_BASE = "https://api.github.com"
PER_PAGE = 100


@dataclass(slots=True, frozen=True)
class GitHubPR:
    author: str
    title: str
    html_url: str
    created: datetime


class GitHubClient:
    """Searches an organization's pull requests created within a window."""

    def __init__(
        self,
        token: str,
        org: str,
        timeout: float = 10.0,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.org = org
        self._client = http_client or httpx.AsyncClient(
            base_url=GITHUB_API_BASE,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_prs(self, oldest: datetime, latest: datetime) -> List[GitHubPR]:
        query = (
            f"org:{self.org} is:pr "
            f"created:{_utc_day(oldest)}..{_utc_day(latest)}"
        )
        prs: List[GitHubPR] = []
        page = 1
        seen = 0
        while True:
            params: Dict[str, Any] = {"q": query, "per_page": PER_PAGE, "page": page}
            response = await self._client.get("/search/issues", params=params)
            response.raise_for_status()
            data = response.json()

            items = data.get("items", [])
            seen += len(items)
            for item in items:
                created = datetime.fromisoformat(item["created_at"].replace("Z", "+00:00"))
                # search dates are whole days; trim to the exact window
                if not oldest <= created < latest:
                    continue
                prs.append(
                    GitHubPR(
                        author=(item.get("user") or {}).get("login", ""),
                        title=item.get("title", ""),
                        html_url=item.get("html_url", ""),
                        created=created,
                    )
                )

            if not items or seen >= data.get("total_count", 0):
                break
            page += 1
        return prs


def _utc_day(dt: datetime) -> str:
    # search qualifiers compare whole UTC dates
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d")


__all__ = ["GitHubClient", "GitHubPR"]
