from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import g, jsonify

from app.ctms.models import User


def user_has_role(user: User | None, *roles: str) -> bool:
    """True when the user is active and holds at least one of `roles`."""
    if not user or not user.is_active:
        return False
    return not set(roles).isdisjoint(user.role_keys)


def is_admin(user: User | None) -> bool:
    return user_has_role(user, "admin")


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user or not user.is_active:
            return jsonify({"status": "Failed", "message": getattr(g, "auth_error", None) or "Unauthorized"}), 401
        return fn(*args, **kwargs)

    return wrapped


def require_roles(*roles: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Route allow-list. Unauthenticated -> 401, authenticated without any listed role -> 403.
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            if not user or not user.is_active:
                return jsonify({"status": "Failed", "message": getattr(g, "auth_error", None) or "Unauthorized"}), 401
            if not user_has_role(user, *roles):
                g.missing_roles = roles
                return jsonify({"status": "Failed", "message": "Permission denied"}), 403
            return fn(*args, **kwargs)

        return wrapped

    return decorator
