"""Data models for the content moderation system."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ModerationAction(str, Enum):
    allow = "allow"
    warn = "warn"
    block = "block"
    auto_ban = "auto-ban"


@dataclass
class ModerationResult:
    """Result of a content moderation check."""

    is_allowed: bool
    flagged_words: list[str] = field(default_factory=list)
    severity: Severity = Severity.low
    action: ModerationAction = ModerationAction.allow


@dataclass
class WarningLogEntry:
    """A warning as kept in the global audit log."""

    id: str
    user_id: str
    username: str
    reason: str
    description: str
    date: str
    issued_by: str
