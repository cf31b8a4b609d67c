"""Keyword-based content moderator.

Text is matched against the banned-word list (``bannedWords`` collection)
using case-insensitive whole-word matching. The number of distinct words
found decides the outcome:

==============  ========  ==========
flagged words   severity  action
==============  ========  ==========
0               low       allow
1               low       warn
2-3             medium    block
4 or more       high      auto-ban
==============  ========  ==========

``warn`` and ``block`` record a system warning for the author through the
:class:`~rolapet.moderation.ledger.WarningLedger`; ``auto-ban`` deactivates
the author at once.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from rolapet.config import ModerationSettings
from rolapet.moderation.ledger import SYSTEM_ISSUER, WarningLedger
from rolapet.moderation.models import ModerationAction, ModerationResult, Severity
from rolapet.results import ErrorKind, OperationResult
from rolapet.storage import BaseStore

log = logging.getLogger(__name__)

AUTOMATIC_REASON = "Moderación automática"


def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)


def classify(flagged_count: int) -> tuple[Severity, ModerationAction]:
    """Map a count of distinct flagged words to ``(severity, action)``."""
    if flagged_count == 0:
        return Severity.low, ModerationAction.allow
    if flagged_count == 1:
        return Severity.low, ModerationAction.warn
    if flagged_count <= 3:
        return Severity.medium, ModerationAction.block
    return Severity.high, ModerationAction.auto_ban


class ContentModerator:
    """Evaluates content and applies the resulting sanction to its author."""

    def __init__(
        self,
        store: BaseStore,
        ledger: WarningLedger,
        settings: Optional[ModerationSettings] = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._settings = settings or ModerationSettings()
        self._patterns: dict[str, re.Pattern[str]] = {}

    def _pattern(self, word: str) -> re.Pattern[str]:
        pattern = self._patterns.get(word)
        if pattern is None:
            pattern = self._patterns[word] = _word_pattern(word)
        return pattern

    # -- matching ------------------------------------------------------------

    def find_banned_words(self, content: str) -> list[str]:
        """Distinct banned words present in *content*, in list order."""
        return [w for w in self.get_banned_words() if self._pattern(w).search(content)]

    def moderate(self, content: str, user_id: str) -> ModerationResult:
        """Check *content* written by *user_id* and apply any sanction.

        A missing user does not prevent matching; the sanction is then simply
        not recorded.
        """
        flagged = self.find_banned_words(content)
        severity, action = classify(len(flagged))

        if action == ModerationAction.auto_ban:
            self._ledger.auto_ban(
                user_id, f"Uso de múltiples palabras prohibidas: {', '.join(flagged)}"
            )
        elif action in (ModerationAction.warn, ModerationAction.block):
            self._ledger.add_warning(
                user_id,
                AUTOMATIC_REASON,
                f"Contenido inapropiado detectado. Palabras: {', '.join(flagged)}",
                SYSTEM_ISSUER,
                counts_toward_ban=self._settings.automatic_warnings_count_toward_ban,
            )

        if flagged:
            log.debug("Content by %s flagged %s -> %s", user_id, flagged, action.value)

        return ModerationResult(
            is_allowed=action not in (ModerationAction.block, ModerationAction.auto_ban),
            flagged_words=flagged,
            severity=severity,
            action=action,
        )

    # -- banned-word list ----------------------------------------------------

    def get_banned_words(self) -> list[str]:
        return list(self._store.get("bannedWords") or [])

    def add_banned_word(self, word: str) -> OperationResult:
        word = word.strip().lower()
        if not word:
            return OperationResult.fail(ErrorKind.validation, "La palabra no puede estar vacía")
        with self._store.collection("bannedWords") as words:
            if word in words:
                return OperationResult.fail(ErrorKind.duplicate, "La palabra ya está en la lista")
            words.append(word)
        log.info("Banned word added: %s", word)
        return OperationResult.ok("Palabra prohibida agregada", word)

    def remove_banned_word(self, word: str) -> OperationResult:
        word = word.strip().lower()
        with self._store.collection("bannedWords") as words:
            if word not in words:
                return OperationResult.fail(ErrorKind.not_found, "Palabra no encontrada")
            words[:] = [w for w in words if w != word]
        log.info("Banned word removed: %s", word)
        return OperationResult.ok("Palabra prohibida eliminada", word)
