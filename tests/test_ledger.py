"""Tests for the warning ledger."""

from datetime import datetime, timezone

from rolapet.context import ADMIN_USER_ID, AppContext
from rolapet.moderation.ledger import AUTO_BAN_REASON, DEACTIVATION_REASON
from rolapet.results import ErrorKind
from rolapet.storage import MemoryStore

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def _context() -> AppContext:
    return AppContext.create(store=MemoryStore(), clock=lambda: NOW)


def _user(ctx: AppContext, username: str = "rider") -> str:
    return ctx.users.register(f"{username}@example.com", username, "Rider", True).data.id


def test_warning_for_unknown_user_fails():
    ctx = _context()
    result = ctx.ledger.add_warning("nope", "Spam", "Too many links", ADMIN_USER_ID)
    assert not result.success
    assert result.error == ErrorKind.not_found


def test_two_warnings_keep_account_active():
    ctx = _context()
    user_id = _user(ctx)

    first = ctx.ledger.add_warning(user_id, "Spam", "Links", ADMIN_USER_ID)
    second = ctx.ledger.add_warning(user_id, "Spam", "More links", ADMIN_USER_ID)
    assert first.message == "Advertencia registrada exitosamente"
    assert second.message == "Advertencia registrada exitosamente"
    assert ctx.ledger.is_active(user_id)


def test_third_warning_bans():
    ctx = _context()
    user_id = _user(ctx)

    for _ in range(2):
        ctx.ledger.add_warning(user_id, "Spam", "Links", ADMIN_USER_ID)
    third = ctx.ledger.add_warning(user_id, "Spam", "Links again", ADMIN_USER_ID)

    assert third.success
    assert "baneado" in third.message
    assert third.data.description == "Links again"
    assert not ctx.users.get_user(user_id).is_active


def test_warnings_are_kept_in_order_with_timestamps():
    ctx = _context()
    user_id = _user(ctx)
    ctx.ledger.add_warning(user_id, "first", "", ADMIN_USER_ID)
    ctx.ledger.add_warning(user_id, "second", "", ADMIN_USER_ID)

    warnings = ctx.ledger.get_warnings(user_id)
    assert [w.reason for w in warnings] == ["first", "second"]
    assert all(w.date == NOW.isoformat() for w in warnings)
    assert warnings[0].id != warnings[1].id


def test_global_log_records_every_warning_including_the_banning_one():
    ctx = _context()
    user_id = _user(ctx, "logged")
    for i in range(3):
        ctx.ledger.add_warning(user_id, f"w{i}", "", ADMIN_USER_ID)

    log = ctx.ledger.get_all_warnings()
    assert len(log) == 3
    assert {e.username for e in log} == {"logged"}
    assert {e.user_id for e in log} == {user_id}


def test_get_warnings_for_missing_user_is_empty():
    ctx = _context()
    assert ctx.ledger.get_warnings("missing") == []


def test_auto_ban_bypasses_threshold():
    ctx = _context()
    user_id = _user(ctx)

    result = ctx.ledger.auto_ban(user_id, "Uso de múltiples palabras prohibidas")
    assert result.success
    assert not ctx.ledger.is_active(user_id)

    warnings = ctx.ledger.get_warnings(user_id)
    assert len(warnings) == 1
    assert warnings[0].reason == AUTO_BAN_REASON
    assert warnings[0].issued_by == "system"


def test_auto_ban_unknown_user():
    ctx = _context()
    assert ctx.ledger.auto_ban("ghost", "x").error == ErrorKind.not_found


def test_admin_cannot_be_deactivated():
    ctx = _context()
    result = ctx.ledger.deactivate_user(ADMIN_USER_ID, ADMIN_USER_ID, "test")
    assert result.error == ErrorKind.permission
    assert ctx.ledger.is_active(ADMIN_USER_ID)


def test_deactivate_and_reactivate():
    ctx = _context()
    user_id = _user(ctx)

    assert ctx.ledger.deactivate_user(user_id, ADMIN_USER_ID, "Fraude").success
    assert not ctx.ledger.is_active(user_id)
    warnings = ctx.ledger.get_warnings(user_id)
    assert warnings[-1].reason == DEACTIVATION_REASON
    assert warnings[-1].description == "Fraude"
    assert warnings[-1].issued_by == ADMIN_USER_ID

    assert ctx.ledger.reactivate_user(user_id, ADMIN_USER_ID).success
    assert ctx.ledger.is_active(user_id)
    # Warnings survive reactivation
    assert len(ctx.ledger.get_warnings(user_id)) == 1


def test_deactivate_unknown_user():
    ctx = _context()
    assert ctx.ledger.deactivate_user("ghost", ADMIN_USER_ID, "x").error == ErrorKind.not_found
    assert ctx.ledger.reactivate_user("ghost", ADMIN_USER_ID).error == ErrorKind.not_found


def test_threshold_notice_for_already_inactive_account():
    ctx = _context()
    user_id = _user(ctx)
    ctx.ledger.add_warning(user_id, "Spam", "Links", ADMIN_USER_ID)
    ctx.ledger.deactivate_user(user_id, ADMIN_USER_ID, "Fraude")

    third = ctx.ledger.add_warning(user_id, "Spam", "Links again", ADMIN_USER_ID)
    assert third.success
    assert "baneado" in third.message
    assert not ctx.ledger.is_active(user_id)
