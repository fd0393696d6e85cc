from __future__ import annotations

import threading
import time
import uuid
from typing import Any

import bcrypt

from ..onboarding.models import UserPreferences, coerce_preferences
from .config import DEFAULT_AUTH_CONFIG, MAX_PASSWORD_BYTES, AuthConfig

_users: dict[str, dict[str, Any]] = {}
_roles: list[dict[str, str]] = []
_lock = threading.Lock()


class UserExistsError(ValueError):
    """An account with this email already exists."""


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    encoded = plain.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode())


def _full_name(record: dict[str, Any]) -> str:
    parts = [record.get("first_name")]
    if record.get("middle_initial"):
        parts.append(f"{record['middle_initial']}.")
    parts.append(record.get("last_name"))
    if record.get("suffix"):
        parts.append(record["suffix"])
    return " ".join(p for p in parts if p)


def _role_of(user_id: str) -> str:
    roles = {r["role"] for r in _roles if r["user_id"] == user_id}
    if "admin" in roles:
        return "admin"
    return "user"


def _public(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": record["id"],
        "email": record["email"],
        "first_name": record["first_name"],
        "last_name": record["last_name"],
        "middle_initial": record.get("middle_initial"),
        "suffix": record.get("suffix"),
        "full_name": _full_name(record),
        "onboarding_complete": record["onboarding_complete"],
        "role": _role_of(record["id"]),
        "created_at": record["created_at"],
    }


def create_user(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    middle_initial: str | None = None,
    suffix: str | None = None,
    role: str = "user",
) -> dict[str, Any]:
    """Create an account plus its role row. Returns the public user dict."""
    email_key = email.strip().lower()
    with _lock:
        if any(u["email"] == email_key for u in _users.values()):
            raise UserExistsError(f"A user with email {email_key} already exists")
        user_id = uuid.uuid4().hex
        _users[user_id] = {
            "id": user_id,
            "email": email_key,
            "password_hash": _hash_password(password),
            "first_name": first_name.strip(),
            "last_name": last_name.strip(),
            "middle_initial": middle_initial or None,
            "suffix": suffix or None,
            "onboarding_complete": False,
            "user_preferences": None,
            "created_at": time.time(),
        }
        _roles.append({"user_id": user_id, "role": role})
        return _public(_users[user_id])


def authenticate(email: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns the public user dict or ``None``."""
    email_key = email.strip().lower()
    with _lock:
        record = next((u for u in _users.values() if u["email"] == email_key), None)
        if record and _verify_password(password, record["password_hash"]):
            return _public(record)
    return None


def get_user(user_id: str) -> dict[str, Any] | None:
    with _lock:
        record = _users.get(user_id)
        return _public(record) if record else None


def list_users() -> list[dict[str, Any]]:
    with _lock:
        records = sorted(_users.values(), key=lambda u: u["created_at"], reverse=True)
        return [_public(r) for r in records]


def deactivate_user(user_id: str) -> int:
    """Delete every role row of *user_id*; returns how many were removed."""
    with _lock:
        before = len(_roles)
        _roles[:] = [r for r in _roles if r["user_id"] != user_id]
        return before - len(_roles)


def update_profile(user_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
    with _lock:
        record = _users.get(user_id)
        if record is None:
            return None
        for key in ("first_name", "last_name"):
            if changes.get(key):
                record[key] = changes[key].strip()
        for key in ("middle_initial", "suffix"):
            if key in changes:
                record[key] = changes[key] or None
        return _public(record)


def change_password(user_id: str, current_password: str, new_password: str) -> bool:
    """Replace the password if *current_password* checks out."""
    with _lock:
        record = _users.get(user_id)
        if record is None or not _verify_password(current_password, record["password_hash"]):
            return False
        record["password_hash"] = _hash_password(new_password)
        return True


def get_preferences(user_id: str) -> UserPreferences:
    with _lock:
        record = _users.get(user_id)
        raw = record.get("user_preferences") if record else None
    return coerce_preferences(raw)


def save_preferences(user_id: str, preferences: UserPreferences) -> dict[str, Any] | None:
    """Store completed onboarding answers and mark onboarding complete."""
    with _lock:
        record = _users.get(user_id)
        if record is None:
            return None
        record["user_preferences"] = preferences.model_dump()
        record["onboarding_complete"] = True
        return _public(record)


def _seed_users(config: AuthConfig = DEFAULT_AUTH_CONFIG) -> None:
    """Pre-seed demo accounts on import."""
    create_user(config.admin_email, config.admin_password, "Wanderer", "Admin", role="admin")
    create_user(config.demo_email, config.demo_password, "Juan", "Dela Cruz")


def reset_users() -> None:
    with _lock:
        _users.clear()
        _roles.clear()
    _seed_users()


_seed_users()
