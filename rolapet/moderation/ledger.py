"""Warning ledger: per-user warnings, threshold bans and admin deactivation.

Warnings are stored twice: on the user record (``users`` collection), which
is what the threshold is checked against, and in the global ``warnings``
log used for audit. Neither copy is ever edited or pruned.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from rolapet.config import ModerationSettings
from rolapet.moderation.models import WarningLogEntry
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore
from rolapet.users.models import WarningRecord, warning_from_dict, warning_to_dict
from rolapet.utils import Clock, new_id, utc_now

log = logging.getLogger(__name__)

AUTO_BAN_REASON = "Baneo automático"
DEACTIVATION_REASON = "Cuenta desactivada"
SYSTEM_ISSUER = "system"


class WarningLedger:
    """Accumulates warnings and deactivates accounts that reach the threshold."""

    def __init__(
        self,
        store: BaseStore,
        settings: Optional[ModerationSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._settings = settings or ModerationSettings()
        self._clock = clock or utc_now

    @property
    def threshold(self) -> int:
        return self._settings.max_warnings_before_ban

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _new_warning(self, reason: str, description: str, issued_by: str) -> WarningRecord:
        return WarningRecord(
            id=new_id("warn"),
            reason=reason,
            description=description,
            date=self._clock().isoformat(),
            issued_by=issued_by,
        )

    def _log_warning(self, user: dict, warning: WarningRecord) -> None:
        entry = WarningLogEntry(
            id=warning.id,
            user_id=user["id"],
            username=user.get("username", ""),
            reason=warning.reason,
            description=warning.description,
            date=warning.date,
            issued_by=warning.issued_by,
        )
        with self._store.collection("warnings") as warnings:
            warnings.append(asdict(entry))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_warning(
        self,
        user_id: str,
        reason: str,
        description: str,
        issued_by: str,
        counts_toward_ban: bool = True,
    ) -> OperationResult:
        """Append a warning to *user_id*.

        When the user's warning count reaches the threshold the account is
        deactivated and the returned message is a ban notice. The payload is
        the new :class:`WarningRecord` either way.
        """
        with self._store.collection("users") as users:
            user = next((u for u in users if u["id"] == user_id), None)
            if user is None:
                return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")

            warning = self._new_warning(reason, description, issued_by)
            user.setdefault("warnings", []).append(warning_to_dict(warning))
            count = len(user["warnings"])
            banned = counts_toward_ban and count >= self.threshold
            if banned:
                user["is_active"] = False

        self._log_warning(user, warning)

        if banned:
            log.info("User %s deactivated after %d warnings", user_id, count)
            return OperationResult.ok(
                f"Usuario baneado automáticamente por acumular {self.threshold} advertencias",
                warning,
            )
        log.debug("Warning %s issued to %s by %s (%d total)", warning.id, user_id, issued_by, count)
        return OperationResult.ok("Advertencia registrada exitosamente", warning)

    def auto_ban(self, user_id: str, reason: str) -> OperationResult:
        """Deactivate *user_id* immediately, regardless of prior warnings."""
        with self._store.collection("users") as users:
            user = next((u for u in users if u["id"] == user_id), None)
            if user is None:
                return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")

            warning = self._new_warning(AUTO_BAN_REASON, reason, SYSTEM_ISSUER)
            user["is_active"] = False
            user.setdefault("warnings", []).append(warning_to_dict(warning))

        self._log_warning(user, warning)
        log.info("User %s auto-banned: %s", user_id, reason)
        return OperationResult.ok("Usuario baneado automáticamente", warning)

    def get_warnings(self, user_id: str) -> list[WarningRecord]:
        """Warnings of *user_id* in the order they were issued. Unknown users have none."""
        for u in self._store.get("users") or []:
            if u["id"] == user_id:
                return [warning_from_dict(w) for w in u.get("warnings", [])]
        return []

    def get_all_warnings(self) -> list[WarningLogEntry]:
        """The global warning log, oldest first."""
        return [WarningLogEntry(**d) for d in self._store.get("warnings") or []]

    def deactivate_user(self, user_id: str, admin_id: str, reason: str) -> OperationResult:
        """Explicit admin deactivation. Admin accounts cannot be deactivated."""
        with self._store.collection("users") as users:
            user = next((u for u in users if u["id"] == user_id), None)
            if user is None:
                return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")
            if user.get("role") == "admin":
                return OperationResult.fail(
                    ErrorKind.permission,
                    "No se puede desactivar una cuenta de administrador",
                )
            user["is_active"] = False

        self.add_warning(user_id, DEACTIVATION_REASON, reason, admin_id)
        log.info("User %s deactivated by %s", user_id, admin_id)
        return OperationResult.ok("Usuario desactivado exitosamente")

    def reactivate_user(self, user_id: str, admin_id: str) -> OperationResult:
        """Re-enable *user_id*. Accumulated warnings are kept."""
        with self._store.collection("users") as users:
            user = next((u for u in users if u["id"] == user_id), None)
            if user is None:
                return OperationResult.fail(ErrorKind.not_found, "Usuario no encontrado")
            user["is_active"] = True

        log.info("User %s reactivated by %s", user_id, admin_id)
        return OperationResult.ok("Usuario reactivado exitosamente")

    def is_active(self, user_id: str) -> bool:
        for u in self._store.get("users") or []:
            if u["id"] == user_id:
                return bool(u.get("is_active", True))
        return False
