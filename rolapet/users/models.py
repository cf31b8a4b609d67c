"""User domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    user = "user"
    provider = "provider"
    admin = "admin"


@dataclass
class WarningRecord:
    """A warning issued to a user. Append-only."""

    id: str
    reason: str
    description: str
    date: str
    issued_by: str


@dataclass
class User:
    """A registered account."""

    id: str
    email: str
    username: str
    name: str
    role: UserRole = UserRole.user
    is_active: bool = True
    created_at: str = ""
    is_of_age: bool = True
    document_id: Optional[str] = None
    legal_consent: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    vehicles: list[str] = field(default_factory=list)
    warnings: list[WarningRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.role, str):
            self.role = UserRole(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


@dataclass
class DeletionRequest:
    id: str
    user_id: str
    requested_at: str
    scheduled_deletion_date: str
    status: str = "pending"  # pending | completed
    completed_at: str = ""


def warning_from_dict(d: dict) -> WarningRecord:
    return WarningRecord(
        id=d["id"],
        reason=d.get("reason", ""),
        description=d.get("description", ""),
        date=d.get("date", ""),
        issued_by=d.get("issued_by", "system"),
    )


def warning_to_dict(w: WarningRecord) -> dict:
    return {
        "id": w.id,
        "reason": w.reason,
        "description": w.description,
        "date": w.date,
        "issued_by": w.issued_by,
    }


def user_from_dict(d: dict) -> User:
    role_val = d.get("role", "user")
    try:
        role_val = UserRole(role_val)
    except ValueError:
        role_val = UserRole.user
    return User(
        id=d["id"],
        email=d.get("email", ""),
        username=d.get("username", ""),
        name=d.get("name", ""),
        role=role_val,
        is_active=d.get("is_active", True),
        created_at=d.get("created_at", ""),
        is_of_age=d.get("is_of_age", True),
        document_id=d.get("document_id"),
        legal_consent=d.get("legal_consent"),
        phone=d.get("phone"),
        address=d.get("address"),
        vehicles=list(d.get("vehicles", [])),
        warnings=[warning_from_dict(w) for w in d.get("warnings", [])],
    )


def user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "username": u.username,
        "name": u.name,
        "role": u.role.value if isinstance(u.role, UserRole) else u.role,
        "is_active": u.is_active,
        "created_at": u.created_at,
        "is_of_age": u.is_of_age,
        "document_id": u.document_id,
        "legal_consent": u.legal_consent,
        "phone": u.phone,
        "address": u.address,
        "vehicles": list(u.vehicles),
        "warnings": [warning_to_dict(w) for w in u.warnings],
    }
