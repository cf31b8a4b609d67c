"""Social feed models: posts and flat, parent-linked comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PostType(str, Enum):
    news = "news"
    social = "social"
    provider = "provider"
    announcement = "announcement"


@dataclass
class Post:
    id: str
    user_id: str
    username: str
    type: PostType
    content: str
    created_at: str
    updated_at: str
    title: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    likes: int = 0
    is_approved: bool = False
    is_hidden: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = PostType(self.type)


@dataclass
class Comment:
    """A comment on a post. Replies point at their parent through ``parent_id``."""

    id: str
    post_id: str
    user_id: str
    username: str
    content: str
    created_at: str
    parent_id: Optional[str] = None
    likes: int = 0
    is_hidden: bool = False


@dataclass
class CommentNode:
    """A comment with its replies, rebuilt on read."""

    comment: Comment
    replies: list[CommentNode] = field(default_factory=list)
