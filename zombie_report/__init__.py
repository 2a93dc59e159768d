"""Audit Slack channel members against their recent pull request activity."""

__version__ = "1.0.0"
