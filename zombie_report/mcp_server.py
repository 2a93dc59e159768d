"""MCP server exposing the zombie report as a tool."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .formatter import format_report
from .service import MODES, create_service

mcp = FastMCP("zombie-report")

_settings = load_settings(
    os.getenv("ZOMBIE_REPORT_CONFIG", "config.yaml"), os.getenv("ZOMBIE_REPORT_ENV")
)
_service = create_service(_settings)
_run_lock = asyncio.Lock()


@mcp.tool()
async def get_zombie_report(
    mode: str = "daily", days: Optional[int] = None, by_day: bool = False
) -> dict:
    """Return the zombie report messages and member counts for the mode."""

    if mode not in MODES:
        raise ValueError("mode must be one of: daily, weekly, deep-scan")
    async with _run_lock:
        report = await _service.build_report(mode, days, by_day)
    return {
        "mode": mode,
        "from": report.window_from.isoformat(),
        "to": report.window_to.isoformat(),
        "active": len(report.active),
        "total": report.total_count,
        "channels": report.channel_count,
        "messages": format_report(report),
    }


if __name__ == "__main__":  # pragma: no cover
    mcp.run()


__all__ = ["mcp", "get_zombie_report"]
