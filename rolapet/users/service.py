"""User registry backed by the ``users`` collection.

Handles registration, profile edits, role assignment and the data-deletion
workflow. Account standing (warnings, bans) lives in
:mod:`rolapet.moderation.ledger`.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from typing import Any, Optional

from rolapet.config import UserSettings
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.users.models import (
    DeletionRequest,
    User,
    UserRole,
    user_from_dict,
    user_to_dict,
)
from rolapet.utils import Clock, new_id, utc_now

log = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Fields a profile update may never touch.
_PROTECTED_FIELDS = {"id", "role", "warnings", "created_at", "is_active"}


class UserService:
    """Registration and profile management."""

    def __init__(
        self,
        store: BaseStore,
        settings: Optional[UserSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._settings = settings or UserSettings()
        self._clock = clock or utc_now

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _users(self) -> list[dict]:
        return self._store.get("users") or []

    @staticmethod
    def _deletion_from_dict(d: dict) -> DeletionRequest:
        return DeletionRequest(
            id=d["id"],
            user_id=d["user_id"],
            requested_at=d.get("requested_at", ""),
            scheduled_deletion_date=d.get("scheduled_deletion_date", ""),
            status=d.get("status", "pending"),
            completed_at=d.get("completed_at", ""),
        )

    @staticmethod
    def _deletion_to_dict(r: DeletionRequest) -> dict:
        return {
            "id": r.id,
            "user_id": r.user_id,
            "requested_at": r.requested_at,
            "scheduled_deletion_date": r.scheduled_deletion_date,
            "status": r.status,
            "completed_at": r.completed_at,
        }

    # ------------------------------------------------------------------
    # Registration and lookup
    # ------------------------------------------------------------------

    def register(
        self,
        email: str,
        username: str,
        name: str,
        is_of_age: bool,
        document_id: Optional[str] = None,
        legal_consent: Optional[str] = None,
    ) -> OperationResult:
        """Create a new account with role ``user``."""
        if not email or not username or not name:
            return OperationResult.fail(ErrorKind.validation, "Todos los campos son obligatorios")
        if not _EMAIL_RE.match(email):
            return OperationResult.fail(ErrorKind.validation, "Email inválido")
        if not is_of_age and not legal_consent and self._settings.minors_require_legal_consent:
            return OperationResult.fail(
                ErrorKind.validation,
                "Los menores de edad requieren consentimiento notariado",
            )

        with self._store.collection("users") as users:
            if any(u.get("email", "").lower() == email.lower() for u in users):
                return OperationResult.fail(ErrorKind.duplicate, "El email ya está registrado")
            if any(u.get("username") == username for u in users):
                return OperationResult.fail(ErrorKind.duplicate, "El nombre de usuario ya existe")

            user = User(
                id=new_id("usr"),
                email=email,
                username=username,
                name=name,
                created_at=self._clock().isoformat(),
                is_of_age=is_of_age,
                document_id=document_id,
                legal_consent=legal_consent,
            )
            users.append(user_to_dict(user))

        log.info("Registered user %s (%s)", user.id, username)
        return OperationResult.ok("Usuario registrado exitosamente", user)

    def get_user(self, user_id: str) -> Optional[User]:
        for d in self._users():
            if d["id"] == user_id:
                return user_from_dict(d)
        return None

    def get_user_by_email(self, email: str) -> Optional[User]:
        for d in self._users():
            if d.get("email", "").lower() == email.lower():
                return user_from_dict(d)
        return None

    def get_user_by_username(self, username: str) -> Optional[User]:
        for d in self._users():
            if d.get("username") == username:
                return user_from_dict(d)
        return None

    def list_users(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[User]:
        users = [user_from_dict(d) for d in self._users()]
        if role:
            users = [u for u in users if u.role.value == role]
        if is_active is not None:
            users = [u for u in users if u.is_active == is_active]
        if search:
            term = search.lower()
            users = [
                u
                for u in users
                if term in u.username.lower() or term in u.email.lower() or term in u.name.lower()
            ]
        return users

    def get_stats(self) -> dict[str, Any]:
        users = [user_from_dict(d) for d in self._users()]
        return {
            "total": len(users),
            "active": sum(1 for u in users if u.is_active),
            "inactive": sum(1 for u in users if not u.is_active),
            "by_role": {role.value: sum(1 for u in users if u.role == role) for role in UserRole},
        }

    # ------------------------------------------------------------------
    # Profile and roles
    # ------------------------------------------------------------------

    def update_user(self, user_id: str, /, **updates: Any) -> OperationResult:
        """Apply profile *updates*. Identity, role and standing fields are ignored."""
        with self._store.collection("users") as users:
            target = next((d for d in users if d["id"] == user_id), None)
            if target is None:
                return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")

            email = updates.get("email")
            if email and email != target.get("email"):
                if not _EMAIL_RE.match(email):
                    return OperationResult.fail(ErrorKind.validation, "Email inválido")
                if any(d.get("email") == email and d["id"] != user_id for d in users):
                    return OperationResult.fail(ErrorKind.duplicate, "El email ya está registrado")

            username = updates.get("username")
            if username and username != target.get("username"):
                if any(d.get("username") == username and d["id"] != user_id for d in users):
                    return OperationResult.fail(ErrorKind.duplicate, "El nombre de usuario ya existe")

            for key, value in updates.items():
                if key in _PROTECTED_FIELDS or key not in target:
                    continue
                target[key] = value
            user = user_from_dict(target)

        return OperationResult.ok("Perfil actualizado exitosamente", user)

    def assign_role(self, user_id: str, role: str) -> OperationResult:
        try:
            role_enum = UserRole(role)
        except ValueError:
            return OperationResult.fail(ErrorKind.validation, f"Rol inválido: {role}")

        with self._store.collection("users") as users:
            target = next((d for d in users if d["id"] == user_id), None)
            if target is None:
                return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")
            target["role"] = role_enum.value

        log.info("User %s now has role %s", user_id, role_enum.value)
        return OperationResult.ok(f"Rol {role_enum.value} asignado exitosamente")

    def remove_role(self, user_id: str) -> OperationResult:
        return self.assign_role(user_id, UserRole.user.value)

    # ------------------------------------------------------------------
    # Data deletion
    # ------------------------------------------------------------------

    def request_data_deletion(self, user_id: str) -> OperationResult:
        if self.get_user(user_id) is None:
            return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")

        now = self._clock()
        with self._store.collection("deletionRequests") as requests:
            if any(r["user_id"] == user_id and r.get("status") == "pending" for r in requests):
                return OperationResult.fail(
                    ErrorKind.duplicate,
                    "Ya tienes una solicitud de eliminación pendiente",
                )
            request = DeletionRequest(
                id=new_id("req"),
                user_id=user_id,
                requested_at=now.isoformat(),
                scheduled_deletion_date=(
                    now + timedelta(days=self._settings.deletion_grace_days)
                ).isoformat(),
            )
            requests.append(self._deletion_to_dict(request))

        return OperationResult.ok(
            "Solicitud de eliminación registrada. Tus datos serán eliminados en "
            f"{self._settings.deletion_grace_days} días.",
            request,
        )

    def process_data_deletion(self, request_id: str) -> OperationResult:
        """Delete the user and their vehicles and anonymise their posts."""
        with self._store.collection("deletionRequests") as requests:
            entry = next((r for r in requests if r["id"] == request_id), None)
            if entry is None:
                return OperationResult.fail(ErrorKind.not_found, "Solicitud no encontrada")
            if entry.get("status", "pending") != "pending":
                return OperationResult.fail(ErrorKind.validation, "La solicitud ya fue procesada")
            user_id = entry["user_id"]

            with self._store.collection("users") as users:
                users[:] = [u for u in users if u["id"] != user_id]
            with self._store.collection("vehicles") as vehicles:
                vehicles[:] = [v for v in vehicles if v.get("user_id") != user_id]
            with self._store.collection("posts") as posts:
                for post in posts:
                    if post.get("user_id") == user_id:
                        post["user_id"] = "deleted"
                        post["username"] = "Usuario eliminado"

            entry["status"] = "completed"
            entry["completed_at"] = self._clock().isoformat()
            request = self._deletion_from_dict(entry)

        log.info("Processed data deletion for user %s", user_id)
        return OperationResult.ok("Datos de usuario eliminados exitosamente", request)

    def list_deletion_requests(self, status: Optional[str] = None) -> list[DeletionRequest]:
        requests = [self._deletion_from_dict(d) for d in self._store.get("deletionRequests") or []]
        if status:
            requests = [r for r in requests if r.status == status]
        return requests
