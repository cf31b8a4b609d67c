"""Social feed: posts, comments and likes.

All user-written text goes through the
:class:`~rolapet.moderation.moderator.ContentModerator` before it is stored;
blocked content is rejected with :attr:`ErrorKind.auto_moderated`.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from rolapet.config import ContentSettings
from rolapet.content.models import Comment, CommentNode, Post, PostType
from rolapet.moderation.models import ModerationAction, ModerationResult
from rolapet.moderation.moderator import ContentModerator
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.users.service import UserService
from rolapet.utils import Clock, new_id, utc_now

log = logging.getLogger(__name__)

BANNED_MESSAGE = "Contenido rechazado: Has sido baneado por uso de lenguaje inapropiado"
BLOCKED_MESSAGE = "Contenido rechazado: Contiene palabras prohibidas"


def _rejection(result: ModerationResult) -> OperationResult:
    if result.action == ModerationAction.auto_ban:
        return OperationResult.fail(ErrorKind.auto_moderated, BANNED_MESSAGE)
    return OperationResult.fail(ErrorKind.auto_moderated, BLOCKED_MESSAGE)


class ContentService:
    """Posts and comments written by registered, active users."""

    def __init__(
        self,
        store: BaseStore,
        users: UserService,
        moderator: ContentModerator,
        settings: Optional[ContentSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._users = users
        self._moderator = moderator
        self._settings = settings or ContentSettings()
        self._clock = clock or utc_now

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _post_to_dict(p: Post) -> dict:
        d = asdict(p)
        d["type"] = p.type.value
        return d

    def _check_author(self, user_id: str) -> Optional[OperationResult]:
        user = self._users.get_user(user_id)
        if user is None:
            return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")
        if not user.is_active:
            return OperationResult.fail(
                ErrorKind.permission,
                "Tu cuenta ha sido desactivada. Contacta al administrador.",
            )
        return None

    def _toggle_post_like(self, post_id: str, user_id: str, like: bool) -> OperationResult:
        with self._store.collection("posts") as posts:
            post = next((p for p in posts if p["id"] == post_id), None)
            if post is None:
                return OperationResult.fail(ErrorKind.not_found, "Publicación no encontrada")

            with self._store.collection("postLikes", {}) as likes:
                likers = likes.setdefault(post_id, [])
                if like:
                    if user_id in likers:
                        return OperationResult.fail(
                            ErrorKind.already_liked,
                            "Ya le diste me gusta a esta publicación",
                        )
                    likers.append(user_id)
                    post["likes"] = post.get("likes", 0) + 1
                    return OperationResult.ok("Me gusta registrado")

                if user_id not in likers:
                    return OperationResult.fail(
                        ErrorKind.not_liked,
                        "No le has dado me gusta a esta publicación",
                    )
                likes[post_id] = [u for u in likers if u != user_id]
                post["likes"] = max(0, post.get("likes", 0) - 1)
                return OperationResult.ok("Me gusta eliminado")

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def create_post(
        self,
        user_id: str,
        type: str,
        content: str,
        title: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> OperationResult:
        try:
            post_type = PostType(type)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Tipo de publicación inválido: {type}")
        if not content or not content.strip():
            return OperationResult.fail(ErrorKind.validation, "El contenido es obligatorio")

        rejected = self._check_author(user_id)
        if rejected is not None:
            return rejected

        moderation = self._moderator.moderate(content, user_id)
        if not moderation.is_allowed:
            return _rejection(moderation)

        author = self._users.get_user(user_id)
        now = self._clock().isoformat()
        post = Post(
            id=new_id("post"),
            user_id=user_id,
            username=author.username if author else "",
            type=post_type,
            content=content,
            title=title,
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
            is_approved=post_type.value in self._settings.auto_approved_post_types,
        )
        with self._store.collection("posts") as posts:
            posts.append(self._post_to_dict(post))

        if moderation.action == ModerationAction.warn:
            return OperationResult.ok("Publicación creada con advertencia de moderación", post)
        return OperationResult.ok("Publicación creada exitosamente", post)

    def update_post(
        self,
        post_id: str,
        user_id: str,
        content: Optional[str] = None,
        title: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> OperationResult:
        """Edit a post owned by *user_id*. New content is moderated again."""
        post = self.get_post(post_id)
        if post is None:
            return OperationResult.fail(ErrorKind.not_found, "Publicación no encontrada")
        if post.user_id != user_id:
            return OperationResult.fail(
                ErrorKind.permission,
                "No tienes permiso para editar esta publicación",
            )

        if content:
            moderation = self._moderator.moderate(content, user_id)
            if not moderation.is_allowed:
                return _rejection(moderation)

        with self._store.collection("posts") as posts:
            record = next(p for p in posts if p["id"] == post_id)
            if content:
                record["content"] = content
            if title is not None:
                record["title"] = title
            if tags is not None:
                record["tags"] = list(tags)
            record["updated_at"] = self._clock().isoformat()
            updated = Post(**record)

        return OperationResult.ok("Publicación actualizada exitosamente", updated)

    def review_post(self, post_id: str, approved: bool) -> OperationResult:
        with self._store.collection("posts") as posts:
            record = next((p for p in posts if p["id"] == post_id), None)
            if record is None:
                return OperationResult.fail(ErrorKind.not_found, "Publicación no encontrada")
            record["is_approved"] = approved
        return OperationResult.ok("Publicación aprobada" if approved else "Publicación rechazada")

    def hide_post(self, post_id: str) -> OperationResult:
        with self._store.collection("posts") as posts:
            record = next((p for p in posts if p["id"] == post_id), None)
            if record is None:
                return OperationResult.fail(ErrorKind.not_found, "Publicación no encontrada")
            record["is_hidden"] = True
        return OperationResult.ok("Publicación ocultada")

    def like_post(self, post_id: str, user_id: str) -> OperationResult:
        return self._toggle_post_like(post_id, user_id, like=True)

    def unlike_post(self, post_id: str, user_id: str) -> OperationResult:
        return self._toggle_post_like(post_id, user_id, like=False)

    def get_post(self, post_id: str) -> Optional[Post]:
        for d in self._store.get("posts") or []:
            if d["id"] == post_id:
                return Post(**d)
        return None

    def get_posts(
        self,
        types: Optional[list[str]] = None,
        user_id: Optional[str] = None,
        keywords: Optional[list[str]] = None,
    ) -> list[Post]:
        """Approved, visible posts matching every given filter."""
        posts = [Post(**d) for d in self._store.get("posts") or []]
        posts = [p for p in posts if p.is_approved and not p.is_hidden]
        if types:
            posts = [p for p in posts if p.type.value in types]
        if user_id:
            posts = [p for p in posts if p.user_id == user_id]
        if keywords:
            lowered = [k.lower() for k in keywords]
            posts = [
                p
                for p in posts
                if any(k in f"{p.title or ''} {p.content}".lower() for k in lowered)
            ]
        return posts

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def create_comment(
        self,
        post_id: str,
        user_id: str,
        content: str,
        parent_id: Optional[str] = None,
    ) -> OperationResult:
        if not content or not content.strip():
            return OperationResult.fail(ErrorKind.validation, "El contenido es obligatorio")

        rejected = self._check_author(user_id)
        if rejected is not None:
            return rejected

        moderation = self._moderator.moderate(content, user_id)
        if not moderation.is_allowed:
            return OperationResult.fail(
                ErrorKind.auto_moderated,
                BANNED_MESSAGE
                if moderation.action == ModerationAction.auto_ban
                else "Comentario rechazado por contenido inapropiado",
            )

        if self.get_post(post_id) is None:
            return OperationResult.fail(ErrorKind.not_found, "Publicación no encontrada")

        author = self._users.get_user(user_id)
        with self._store.collection("comments") as comments:
            if parent_id is not None:
                parent = next((c for c in comments if c["id"] == parent_id), None)
                if parent is None or parent["post_id"] != post_id:
                    return OperationResult.fail(ErrorKind.not_found, "Comentario no encontrado")

            comment = Comment(
                id=new_id("com"),
                post_id=post_id,
                user_id=user_id,
                username=author.username if author else "",
                content=content,
                created_at=self._clock().isoformat(),
                parent_id=parent_id,
            )
            comments.append(asdict(comment))

        return OperationResult.ok("Comentario publicado", comment)

    def hide_comment(self, comment_id: str) -> OperationResult:
        with self._store.collection("comments") as comments:
            record = next((c for c in comments if c["id"] == comment_id), None)
            if record is None:
                return OperationResult.fail(ErrorKind.not_found, "Comentario no encontrado")
            record["is_hidden"] = True
        return OperationResult.ok("Comentario ocultado")

    def get_comments(self, post_id: str) -> list[Comment]:
        return [Comment(**d) for d in self._store.get("comments") or [] if d["post_id"] == post_id]

    def get_comment_tree(self, post_id: str) -> list[CommentNode]:
        """Visible comments of *post_id* as a reply tree, oldest first at every level.

        A hidden comment takes its whole sub-thread with it.
        """
        nodes = {c.id: CommentNode(comment=c) for c in self.get_comments(post_id)}
        roots: list[CommentNode] = []
        for node in nodes.values():
            parent_id = node.comment.parent_id
            if parent_id is None:
                roots.append(node)
            elif parent_id in nodes:
                nodes[parent_id].replies.append(node)

        def visible(branch: list[CommentNode]) -> list[CommentNode]:
            kept = []
            for node in branch:
                if node.comment.is_hidden:
                    continue
                node.replies = visible(node.replies)
                kept.append(node)
            return kept

        return visible(roots)
