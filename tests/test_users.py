"""Tests for registration, profiles, roles and data deletion."""

from datetime import datetime, timezone

import pytest

from rolapet.context import ADMIN_USER_ID, AppContext
from rolapet.results import ErrorKind
from rolapet.storage import MemoryStore
from rolapet.users.models import UserRole

NOW = datetime(2026, 2, 1, tzinfo=timezone.utc)


def _context() -> AppContext:
    return AppContext.create(store=MemoryStore(), clock=lambda: NOW)


def test_admin_is_seeded():
    ctx = _context()
    admin = ctx.users.get_user(ADMIN_USER_ID)
    assert admin.is_admin
    assert admin.username == "admin"
    assert ctx.users.get_user_by_email("ADMIN@rolapet.com").id == ADMIN_USER_ID


def test_register_creates_active_user():
    ctx = _context()
    result = ctx.users.register("ana@example.com", "ana", "Ana Gómez", True)
    assert result.success
    user = result.data
    assert user.role == UserRole.user
    assert user.is_active
    assert user.warnings == []
    assert user.created_at == NOW.isoformat()
    assert ctx.users.get_user_by_username("ana").id == user.id


@pytest.mark.parametrize(
    "email,username,name",
    [("", "ana", "Ana"), ("ana@example.com", "", "Ana"), ("no-at-sign", "ana", "Ana")],
)
def test_register_validation(email, username, name):
    ctx = _context()
    assert ctx.users.register(email, username, name, True).error == ErrorKind.validation


def test_register_duplicates():
    ctx = _context()
    ctx.users.register("ana@example.com", "ana", "Ana", True)
    assert ctx.users.register("ANA@example.com", "ana2", "Ana", True).error == ErrorKind.duplicate
    assert ctx.users.register("other@example.com", "ana", "Ana", True).error == ErrorKind.duplicate


def test_minors_need_legal_consent():
    ctx = _context()
    assert ctx.users.register("kid@example.com", "kid", "Kid", False).error == ErrorKind.validation
    result = ctx.users.register("kid@example.com", "kid", "Kid", False, legal_consent="consent.pdf")
    assert result.success
    assert result.data.legal_consent == "consent.pdf"


def test_update_user_ignores_protected_fields():
    ctx = _context()
    user_id = ctx.users.register("ana@example.com", "ana", "Ana", True).data.id

    result = ctx.users.update_user(
        user_id, name="Ana María", phone="3001234567", role="admin", is_active=False, user_id="other"
    )
    assert result.success
    user = ctx.users.get_user(user_id)
    assert user.name == "Ana María"
    assert user.phone == "3001234567"
    assert user.role == UserRole.user
    assert user.is_active


def test_update_user_rejects_taken_email_and_username():
    ctx = _context()
    user_id = ctx.users.register("ana@example.com", "ana", "Ana", True).data.id
    ctx.users.register("beto@example.com", "beto", "Beto", True)

    assert ctx.users.update_user(user_id, email="beto@example.com").error == ErrorKind.duplicate
    assert ctx.users.update_user(user_id, username="beto").error == ErrorKind.duplicate
    assert ctx.users.update_user(user_id, email="bad").error == ErrorKind.validation
    assert ctx.users.update_user("ghost", name="x").error == ErrorKind.not_found


def test_assign_and_remove_role():
    ctx = _context()
    user_id = ctx.users.register("ana@example.com", "ana", "Ana", True).data.id

    assert ctx.users.assign_role(user_id, "provider").success
    assert ctx.users.get_user(user_id).role == UserRole.provider
    assert ctx.users.assign_role(user_id, "superuser").error == ErrorKind.validation
    assert ctx.users.assign_role("ghost", "admin").error == ErrorKind.not_found

    assert ctx.users.remove_role(user_id).success
    assert ctx.users.get_user(user_id).role == UserRole.user


def test_list_users_and_stats():
    ctx = _context()
    ana = ctx.users.register("ana@example.com", "ana", "Ana", True).data.id
    ctx.users.register("beto@example.com", "beto", "Beto", True)
    ctx.ledger.deactivate_user(ana, ADMIN_USER_ID, "Fraude")

    assert [u.username for u in ctx.users.list_users(role="admin")] == ["admin"]
    assert [u.username for u in ctx.users.list_users(is_active=False)] == ["ana"]
    assert [u.username for u in ctx.users.list_users(search="BET")] == ["beto"]

    stats = ctx.users.get_stats()
    assert stats["total"] == 3
    assert stats["active"] == 2
    assert stats["inactive"] == 1
    assert stats["by_role"] == {"user": 2, "provider": 0, "admin": 1}


def test_data_deletion_flow():
    ctx = _context()
    user_id = ctx.users.register("ana@example.com", "ana", "Ana", True).data.id
    vehicle = ctx.vehicles.register_vehicle(user_id, "scooter", "Xiaomi", "Pro 2", 2023).data
    post = ctx.content.create_post(user_id, "social", "Mi primera rodada").data

    request = ctx.users.request_data_deletion(user_id)
    assert request.success
    assert request.data.scheduled_deletion_date == datetime(2026, 3, 3, tzinfo=timezone.utc).isoformat()
    assert ctx.users.request_data_deletion(user_id).error == ErrorKind.duplicate
    assert [r.id for r in ctx.users.list_deletion_requests(status="pending")] == [request.data.id]

    done = ctx.users.process_data_deletion(request.data.id)
    assert done.success
    assert done.data.status == "completed"
    assert ctx.users.get_user(user_id) is None
    assert ctx.vehicles.get_vehicle(vehicle.id) is None

    anonymised = ctx.content.get_post(post.id)
    assert anonymised.user_id == "deleted"
    assert anonymised.username == "Usuario eliminado"

    assert ctx.users.process_data_deletion("missing").error == ErrorKind.not_found
    assert ctx.users.request_data_deletion("ghost").error == ErrorKind.not_found


def test_processed_deletion_request_cannot_run_twice():
    ctx = _context()
    user_id = ctx.users.register("ana@example.com", "ana", "Ana", True).data.id
    request = ctx.users.request_data_deletion(user_id).data
    assert ctx.users.process_data_deletion(request.id).success

    again = ctx.users.process_data_deletion(request.id)
    assert again.error == ErrorKind.validation
    assert ctx.users.list_deletion_requests(status="completed")[0].id == request.id
