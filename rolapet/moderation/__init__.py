"""Content moderation and account standing.

- :class:`~rolapet.moderation.moderator.ContentModerator` matches text
  against the banned-word list and decides what to do with it.
- :class:`~rolapet.moderation.ledger.WarningLedger` records warnings and
  deactivates accounts that reach the threshold.
"""
