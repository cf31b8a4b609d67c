"""Runtime settings, loaded from a YAML file.

Every key is optional; anything missing keeps its default. Example::

    data_dir: ~/.rolapet/data
    moderation:
      max_warnings_before_ban: 3
      default_banned_words: [odio, violencia]
    ratings:
      window_days: 60
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_BANNED_WORDS = [
    "odio",
    "violencia",
    "discriminación",
    "amenaza",
    "insulto",
    "agresión",
    "racismo",
    "xenofobia",
]

DEFAULT_CATEGORIES = [
    {"id": "1", "name": "Repuestos", "type": "product"},
    {"id": "2", "name": "Accesorios", "type": "product"},
    {"id": "3", "name": "Mantenimiento", "type": "service"},
    {"id": "4", "name": "Reparación", "type": "service"},
    {"id": "5", "name": "Seguridad", "type": "product"},
]


@dataclass
class ModerationSettings:
    max_warnings_before_ban: int = 3
    # Warnings issued by the moderator itself go through the same ledger
    # path as admin warnings and therefore count toward the ban threshold.
    automatic_warnings_count_toward_ban: bool = True
    default_banned_words: list[str] = field(default_factory=lambda: list(DEFAULT_BANNED_WORDS))


@dataclass
class RatingSettings:
    window_days: int = 60


@dataclass
class ContentSettings:
    auto_approved_post_types: list[str] = field(default_factory=lambda: ["social"])


@dataclass
class UserSettings:
    minors_require_legal_consent: bool = True
    deletion_grace_days: int = 30


@dataclass
class Settings:
    """Top-level settings for an application context."""

    data_dir: Path = field(default_factory=lambda: Path.home() / ".rolapet" / "data")
    key_prefix: str = "rolapet_"
    moderation: ModerationSettings = field(default_factory=ModerationSettings)
    ratings: RatingSettings = field(default_factory=RatingSettings)
    content: ContentSettings = field(default_factory=ContentSettings)
    users: UserSettings = field(default_factory=UserSettings)


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Load settings from a YAML file. A missing *path* yields the defaults."""
    if path is None or not Path(path).exists():
        return Settings()

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")

    settings = Settings()
    if data.get("data_dir"):
        settings.data_dir = Path(data["data_dir"]).expanduser()
    settings.key_prefix = data.get("key_prefix", settings.key_prefix)

    mod = data.get("moderation", {}) or {}
    settings.moderation = ModerationSettings(
        max_warnings_before_ban=int(mod.get("max_warnings_before_ban", 3)),
        automatic_warnings_count_toward_ban=bool(
            mod.get("automatic_warnings_count_toward_ban", True)
        ),
        default_banned_words=[
            str(w).lower() for w in mod.get("default_banned_words", DEFAULT_BANNED_WORDS)
        ],
    )

    ratings = data.get("ratings", {}) or {}
    settings.ratings = RatingSettings(window_days=int(ratings.get("window_days", 60)))

    content = data.get("content", {}) or {}
    settings.content = ContentSettings(
        auto_approved_post_types=list(content.get("auto_approved_post_types", ["social"])),
    )

    users = data.get("users", {}) or {}
    settings.users = UserSettings(
        minors_require_legal_consent=bool(users.get("minors_require_legal_consent", True)),
        deletion_grace_days=int(users.get("deletion_grace_days", 30)),
    )
    return settings
