from __future__ import annotations

import re
import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, request
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from app.ctms.audit import record_event
from app.ctms.constants import ROLE_ADMIN, ROLE_NAMES, ROLE_WRITER, ROLES
from app.ctms.db import db_session
from app.ctms.models import Role, User
from app.ctms.rbac import is_admin, require_login, require_roles
from app.ctms.security import TokenError, decode_token, issue_token, token_from_request
from app.ctms.utils import current_user, failed, json_payload, parse_bool, success

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user from the `token` header.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    g.auth_error = None

    token = token_from_request(request)
    if not token:
        return

    try:
        payload = decode_token(token, secret=current_app.config["JWT_SECRET"])
    except TokenError as e:
        g.auth_error = str(e)
        return

    try:
        user = db_session().get(User, int(payload["sub"]))
    except ValueError:
        g.auth_error = "Invalid token."
        return
    if not user or not user.is_active:
        g.auth_error = "User not found or inactive."
        return
    g.current_user = user


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "roles": user.role_keys,
        "isActive": user.is_active,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def _is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def _parse_roles(raw) -> list[str] | None:
    """None when absent; otherwise a de-duplicated list of known role keys (ValueError on unknown)."""
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = [r for r in raw.split(",")]
    keys: list[str] = []
    for r in raw:
        key = str(r).strip().lower()
        if not key:
            continue
        if key not in ROLES:
            raise ValueError(f"Unknown role {key!r}. Must be one of: {', '.join(ROLES)}")
        if key not in keys:
            keys.append(key)
    return keys


def _ensure_roles(s: Session, keys: list[str]) -> list[Role]:
    roles = []
    for key in keys:
        role = s.query(Role).filter(Role.key == key).one_or_none()
        if not role:
            role = Role(key=key, name=ROLE_NAMES.get(key, key.title()))
            s.add(role)
        roles.append(role)
    return roles


def _validate_password(password: str) -> str | None:
    if not password:
        return "Password is required."
    if len(password) < 8:
        return "Password must be at least 8 characters."
    return None


@bp.post("/registration")
def registration():
    """
    Open registration. The very first account becomes admin; afterwards only an
    admin caller may hand out roles other than writer.
    """
    s = db_session()
    payload = json_payload()
    email = (payload.get("email") or "").strip().lower()
    name = (payload.get("name") or "").strip()
    password = payload.get("password") or ""

    if not email or not _is_valid_email(email):
        return failed("A valid email is required.")
    pw_error = _validate_password(password)
    if pw_error:
        return failed(pw_error)
    try:
        requested = _parse_roles(payload.get("roles"))
    except ValueError as e:
        return failed(str(e))

    if s.query(User).filter(User.email == email).one_or_none():
        return failed("An account with this email already exists.", 409)

    actor: User | None = getattr(g, "current_user", None)
    first_user = s.query(User).count() == 0
    if first_user:
        role_keys = [ROLE_ADMIN]
    elif is_admin(actor):
        role_keys = requested or [ROLE_WRITER]
    else:
        if requested and set(requested) - {ROLE_WRITER}:
            return failed("Only an admin can assign roles other than writer.", 403)
        role_keys = [ROLE_WRITER]

    user = User(name=name, email=email, password_hash=generate_password_hash(password), is_active=True)
    user.roles.extend(_ensure_roles(s, role_keys))
    s.add(user)
    s.flush()

    record_event(
        s,
        actor=actor or user,
        action="user.create",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": email, "roles": role_keys},
    )
    s.commit()
    return success(serialize_user(user), message="Registration successful", status=201)


@bp.post("/login")
def login():
    payload = json_payload()
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        return failed("Too many login attempts. Please wait 5 minutes.", 429)

    _record_attempt(ip)

    try:
        s = db_session()
        user = s.query(User).filter(User.email == email).one_or_none()
        if not user or not user.is_active or not check_password_hash(user.password_hash, password):
            record_event(
                s,
                actor=None,
                action="auth.login_failed",
                entity_type="User",
                entity_id=email,
                reason="Invalid credentials",
                metadata={"email": email},
            )
            s.commit()
            return failed("Invalid credentials.", 401)

        _login_attempts[ip].clear()
        token = issue_token(
            user,
            secret=current_app.config["JWT_SECRET"],
            ttl_hours=int(current_app.config.get("TOKEN_TTL_HOURS") or 24),
        )
        record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
        s.commit()
        return success(token=token, data=serialize_user(user))
    except Exception:
        current_app.logger.exception("Login crashed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        raise


@bp.post("/profileDetails")
@require_login
def profile_details():
    # List-wrapped for the client, which reads data[0].
    return success([serialize_user(current_user())])


@bp.put("/profileUpdate/<int:user_id>")
@require_login
def profile_update(user_id: int):
    s = db_session()
    actor = current_user()
    user = s.get(User, user_id)
    if not user:
        return failed("User not found", 404)
    if user.id != actor.id and not is_admin(actor):
        return failed("You can only update your own profile.", 403)

    payload = json_payload()
    before = {"name": user.name, "email": user.email, "roles": user.role_keys, "is_active": user.is_active}

    if "name" in payload:
        user.name = (payload.get("name") or "").strip()

    if "email" in payload:
        email = (payload.get("email") or "").strip().lower()
        if not email or not _is_valid_email(email):
            return failed("A valid email is required.")
        if email != user.email:
            if s.query(User).filter(User.email == email).one_or_none():
                return failed("An account with this email already exists.", 409)
            user.email = email

    if payload.get("password"):
        pw_error = _validate_password(payload["password"])
        if pw_error:
            return failed(pw_error)
        user.password_hash = generate_password_hash(payload["password"])

    if "roles" in payload or "isActive" in payload:
        if not is_admin(actor):
            return failed("Only an admin can change roles or account status.", 403)
        if user.id == actor.id:
            return failed("You cannot change your own roles or account status.", 403)
        if "roles" in payload:
            try:
                keys = _parse_roles(payload.get("roles")) or []
            except ValueError as e:
                return failed(str(e))
            user.roles.clear()
            user.roles.extend(_ensure_roles(s, keys))
        if "isActive" in payload:
            user.is_active = parse_bool(payload.get("isActive"))

    user.updated_at = datetime.utcnow()
    after = {"name": user.name, "email": user.email, "roles": user.role_keys, "is_active": user.is_active}
    record_event(
        s,
        actor=actor,
        action="user.update",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"before": before, "after": after, "password_changed": bool(payload.get("password"))},
    )
    s.commit()
    return success(serialize_user(user), message="Profile updated")


@bp.delete("/profileDelete/<int:user_id>")
@require_login
def profile_delete(user_id: int):
    s = db_session()
    actor = current_user()
    user = s.get(User, user_id)
    if not user:
        return failed("User not found", 404)
    if user.id != actor.id and not is_admin(actor):
        return failed("You can only delete your own profile.", 403)

    record_event(
        s,
        actor=actor,
        action="user.delete",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"email": user.email, "roles": user.role_keys},
    )
    # Write the event first; the FK nulls out actor_user_id on a self-delete.
    s.flush()
    s.delete(user)
    s.commit()
    return success(message="Profile deleted")


@bp.get("/viewUserList")
@require_roles("admin", "manager", "writer")
def view_user_list():
    s = db_session()
    users = s.query(User).order_by(User.name.asc(), User.email.asc()).all()
    return success([serialize_user(u) for u in users])


@bp.post("/getUserByEmail/<email>")
@require_login
def get_user_by_email(email: str):
    s = db_session()
    user = s.query(User).filter(User.email == email.strip().lower()).one_or_none()
    if not user:
        return failed("User not found", 404)
    return success(serialize_user(user))
