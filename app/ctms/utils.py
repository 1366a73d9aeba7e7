from __future__ import annotations

from datetime import datetime
from typing import Any

from flask import g, jsonify, request

from app.ctms.models import User


def success(data: Any = None, *, message: str | None = None, status: int = 200, **extra: Any):
    body: dict[str, Any] = {"status": "Success"}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def failed(message: str, status: int = 400, **extra: Any):
    body: dict[str, Any] = {"status": "Failed", "message": message}
    body.update(extra)
    return jsonify(body), status


def json_payload() -> dict[str, Any]:
    """Request body as a dict; form posts are accepted too. Never raises."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    if request.form:
        return request.form.to_dict()
    return {}


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        # RBAC decorator should prevent this.
        raise RuntimeError("No current user")
    return u


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def parse_optional_int(value: Any, field: str) -> int | None:
    """Empty -> None; otherwise int or ValueError with a readable message."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{field} must be an integer.") from e


def iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def iso_day(dt: datetime | None) -> str | None:
    return dt.date().isoformat() if dt else None
