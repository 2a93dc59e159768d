"""Configuration helpers for the zombie report."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .models import Channel

ENV_OVERRIDES = {
    "slack_token": "SLACK_TOKEN",
    "user_token": "SLACK_USER_TOKEN",
    "github_token": "GITHUB_TOKEN",
    "api_key": "ZOMBIE_REPORT_API_KEY",
}


@dataclass(slots=True)
class Settings:
    """Runtime configuration loaded from a YAML file and the environment."""

    slack_token: str
    channels: List[Channel]
    report_recipient: str
    workspace: str = ""
    user_token: Optional[str] = None
    whitelist: List[str] = field(default_factory=list)
    royal_members: List[str] = field(default_factory=list)
    github_token: Optional[str] = None
    github_org: Optional[str] = None
    github_users: Dict[str, str] = field(default_factory=dict)
    api_key: Optional[str] = None

    @property
    def primary_channel(self) -> Channel:
        return self.channels[0]

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_token and self.github_org)

    def is_whitelisted(self, user_id: str, display_name: str) -> bool:
        return _matches(self.whitelist, user_id, display_name)

    def is_royal(self, user_id: str, display_name: str) -> bool:
        return _matches(self.royal_members, user_id, display_name)


def _matches(entries: List[str], user_id: str, display_name: str) -> bool:
    lowered = display_name.lower()
    return any(entry == user_id or entry.lower() == lowered for entry in entries)


def load_settings(path: str | Path = "config.yaml", env_file: str | None = None) -> Settings:
    """Load settings from a YAML file; token env vars take precedence."""

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    config_path = Path(path).expanduser()
    try:
        with config_path.open(encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigError(f"reading config {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"parsing config {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("config must be a mapping")

    for key, env_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            raw[key] = value

    return settings_from_dict(raw)


def settings_from_dict(raw: Dict[str, Any]) -> Settings:
    slack_token = raw.get("slack_token")
    report_recipient = raw.get("report_recipient")

    if not slack_token:
        raise ConfigError("slack_token is required")
    channels = [_parse_channel(entry) for entry in raw.get("channels") or []]
    if not channels:
        raise ConfigError("at least one channel is required")
    if not report_recipient:
        raise ConfigError("report_recipient is required")

    return Settings(
        slack_token=slack_token,
        channels=channels,
        report_recipient=report_recipient,
        workspace=raw.get("workspace") or "",
        user_token=raw.get("user_token") or None,
        whitelist=_string_list(raw, "whitelist"),
        royal_members=_string_list(raw, "royal_members"),
        github_token=raw.get("github_token") or None,
        github_org=raw.get("github_org") or None,
        github_users=_string_map(raw, "github_users"),
        api_key=raw.get("api_key") or None,
    )


def _parse_channel(entry: Any) -> Channel:
    if not isinstance(entry, dict) or not entry.get("id"):
        raise ConfigError(f"channel entry needs an id: {entry!r}")
    return Channel(id=str(entry["id"]), name=str(entry.get("name") or entry["id"]))


def _string_list(raw: Dict[str, Any], key: str) -> List[str]:
    value = raw.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    return [str(entry) for entry in value]


def _string_map(raw: Dict[str, Any], key: str) -> Dict[str, str]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping")
    return {str(k): str(v) for k, v in value.items()}


__all__ = ["Settings", "load_settings", "settings_from_dict"]
