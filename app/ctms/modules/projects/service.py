from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import or_

from app.ctms.audit import record_event
from app.ctms.constants import PROJECT_STATUSES, ROLE_ADMIN, ROLE_MANAGER, ROLE_WRITER
from app.ctms.utils import iso, parse_bool, parse_optional_int

if TYPE_CHECKING:
    from sqlalchemy.orm import Query, Session
    from app.ctms.models import User
    from app.ctms.modules.projects.models import Project


def _user_ref(user: "User | None") -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def serialize_project(p: "Project") -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "word": p.word,
        "private": p.private,
        "status": p.status,
        "writer": _user_ref(p.writer),
        "manager": _user_ref(p.manager),
        "createdBy": p.created_by,
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


def _resolve_user(s: "Session", raw: Any, field: str, role: str) -> "User | None":
    """Accept a user id (int/str) or an email; the user must hold `role`."""
    from app.ctms.models import User

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, dict):
        raw = raw.get("id") or raw.get("email")
    user = None
    if isinstance(raw, int) or (isinstance(raw, str) and raw.strip().isdigit()):
        user = s.get(User, int(raw))
    elif isinstance(raw, str):
        user = s.query(User).filter(User.email == raw.strip().lower()).one_or_none()
    if user is None:
        raise ValueError(f"{field} not found.")
    if role not in user.role_keys:
        raise ValueError(f"{field} must have the {role} role.")
    return user


def validate_project_payload(payload: dict, *, partial: bool = False) -> list[str]:
    """Returns list of errors."""
    errors = []
    if not partial or "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            errors.append("Name is required.")
    status = (payload.get("status") or "").strip()
    if status and status not in PROJECT_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(PROJECT_STATUSES)}")
    try:
        word = parse_optional_int(payload.get("word"), "word")
        if word is not None and word < 0:
            errors.append("word must be zero or positive.")
    except ValueError as e:
        errors.append(str(e))
    return errors


def create_project(s: "Session", payload: dict, user: "User") -> "Project":
    from app.ctms.modules.projects.models import Project

    now = datetime.utcnow()
    project = Project(
        name=(payload.get("name") or "").strip(),
        word=parse_optional_int(payload.get("word"), "word"),
        private=parse_bool(payload.get("private")),
        status=(payload.get("status") or "ongoing").strip(),
        writer=_resolve_user(s, payload.get("writer"), "writer", ROLE_WRITER),
        manager=_resolve_user(s, payload.get("manager"), "manager", ROLE_MANAGER),
        created_by=user.email,
        created_at=now,
        updated_at=now,
    )
    s.add(project)
    s.flush()

    record_event(
        s,
        actor=user,
        action="project.create",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"name": project.name, "writer_id": project.writer_id, "manager_id": project.manager_id},
    )
    return project


def update_project(s: "Session", project: "Project", payload: dict, user: "User") -> "Project":
    """Partial update: only keys present in the payload are touched."""
    changes: dict[str, dict] = {}

    def _set(attr: str, new) -> None:
        old = getattr(project, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(project, attr, new)

    if "name" in payload:
        _set("name", (payload.get("name") or "").strip())
    if "word" in payload:
        _set("word", parse_optional_int(payload.get("word"), "word"))
    if "private" in payload:
        _set("private", parse_bool(payload.get("private")))
    if "status" in payload and (payload.get("status") or "").strip():
        _set("status", payload["status"].strip())
    if "writer" in payload:
        writer = _resolve_user(s, payload.get("writer"), "writer", ROLE_WRITER)
        _set("writer_id", writer.id if writer else None)
        project.writer = writer
    if "manager" in payload:
        manager = _resolve_user(s, payload.get("manager"), "manager", ROLE_MANAGER)
        _set("manager_id", manager.id if manager else None)
        project.manager = manager

    project.updated_at = datetime.utcnow()

    record_event(
        s,
        actor=user,
        action="project.edit",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"name": project.name, "changes": changes},
    )
    return project


def delete_project(s: "Session", project: "Project", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="project.delete",
        entity_type="Project",
        entity_id=str(project.id),
        metadata={"name": project.name, "topic_count": len(project.topics)},
    )
    s.delete(project)


def scope_projects(q: "Query", user: "User") -> "Query":
    """
    Admins see every project. Managers/writers see projects they are assigned to.
    """
    from app.ctms.modules.projects.models import Project

    keys = set(user.role_keys)
    if ROLE_ADMIN in keys:
        return q
    conds = []
    if ROLE_MANAGER in keys:
        conds.append(Project.manager_id == user.id)
    if ROLE_WRITER in keys:
        conds.append(Project.writer_id == user.id)
    if not conds:
        return q.filter(Project.id.is_(None))
    return q.filter(or_(*conds))
