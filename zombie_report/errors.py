"""Error taxonomy for zombie report runs."""

from __future__ import annotations


class ZombieReportError(RuntimeError):
    """Base class for errors that abort or degrade a report run."""


class ConfigError(ZombieReportError):
    """Raised when configuration is missing or invalid."""


class FetchError(ZombieReportError):
    """Raised when data required for the report cannot be fetched."""


class ChannelSkipError(ZombieReportError):
    """Recorded when a single channel's history could not be scanned."""

    def __init__(self, channel_id: str, reason: str) -> None:
        super().__init__(f"skipped channel {channel_id}: {reason}")
        self.channel_id = channel_id
        self.reason = reason


class SendError(ZombieReportError):
    """Raised when the finished report cannot be delivered."""


__all__ = [
    "ZombieReportError",
    "ConfigError",
    "FetchError",
    "ChannelSkipError",
    "SendError",
]
