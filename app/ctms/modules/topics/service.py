from __future__ import annotations

import re
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.ctms.audit import record_event
from app.ctms.constants import ARTICLE_ASSIGNED, MONTH_ABBRS, ROLE_ADMIN, TOPIC_STATUSES
from app.ctms.modules.topics.similarity import SimilarTitle, find_similar
from app.ctms.utils import iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.ctms.models import User
    from app.ctms.modules.topics.models import Topic

_MONTH_RE = re.compile(r"^(%s)-\d{2}$" % "|".join(MONTH_ABBRS))


class DuplicateTopicError(Exception):
    """A topic with a near-identical title already exists in the project."""

    def __init__(self, matches: list[SimilarTitle]):
        super().__init__("A similar topic already exists in this project.")
        self.matches = matches


def serialize_topic(t: "Topic", *, include_article: bool = True) -> dict[str, Any]:
    project = t.project
    out: dict[str, Any] = {
        "id": t.id,
        "title": t.title,
        "keyword": t.keyword,
        "instructions": t.instructions,
        "month": t.month,
        "status": t.status,
        "createdBy": t.created_by,
        "createdById": t.created_by_id,
        "writerAssignedAt": iso(t.created_at),
        "updatedAt": iso(t.updated_at),
        "project": {
            "id": project.id,
            "name": project.name,
            "word": project.word,
            "writer": project.writer_id,
            "manager": project.manager_id,
        }
        if project
        else None,
    }
    if include_article:
        out["article"] = {"id": t.article.id, "status": t.article.status} if t.article else None
    return out


def validate_topic_payload(payload: dict, *, partial: bool = False) -> list[str]:
    errors = []
    if not partial or "title" in payload:
        if not (payload.get("title") or "").strip():
            errors.append("Title is required.")
    if not partial and not payload.get("project"):
        errors.append("Project is required.")
    month = (payload.get("month") or "").strip()
    if month and not _MONTH_RE.match(month):
        errors.append("Invalid month. Expected a label like 'Jan-26'.")
    status = (payload.get("status") or "").strip()
    if status and status not in TOPIC_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(TOPIC_STATUSES)}")
    return errors


def check_similar_titles(s: "Session", project_id: int, title: str, *, threshold: float, exclude_id: int | None = None) -> list[SimilarTitle]:
    from app.ctms.modules.topics.models import Topic

    q = s.query(Topic.id, Topic.title).filter(Topic.project_id == project_id)
    if exclude_id is not None:
        q = q.filter(Topic.id != exclude_id)
    existing = [(tid, ttl) for tid, ttl in q.all() if ttl]
    return find_similar(title, existing, threshold=threshold)


def create_topic(
    s: "Session",
    payload: dict,
    user: "User",
    *,
    threshold: float,
    force: bool = False,
) -> "Topic":
    """
    Create a Topic and its Article in one go.
    Raises LookupError (unknown project) or DuplicateTopicError (unless `force`).
    """
    from app.ctms.modules.articles.models import Article
    from app.ctms.modules.projects.models import Project
    from app.ctms.modules.topics.models import Topic

    try:
        project_id = int(payload.get("project"))
    except (TypeError, ValueError):
        raise LookupError("Project not found.")
    project = s.get(Project, project_id)
    if project is None:
        raise LookupError("Project not found.")

    title = (payload.get("title") or "").strip()
    matches = check_similar_titles(s, project.id, title, threshold=threshold)
    if matches and not force:
        raise DuplicateTopicError(matches)

    now = datetime.utcnow()
    topic = Topic(
        title=title,
        keyword=(payload.get("keyword") or "").strip() or None,
        instructions=(payload.get("instructions") or "").strip() or None,
        month=(payload.get("month") or "").strip() or None,
        project=project,
        status=(payload.get("status") or "assigned").strip(),
        created_by=user.email,
        created_by_id=user.id,
        created_at=now,
        updated_at=now,
    )
    topic.article = Article(status=ARTICLE_ASSIGNED, created_at=now, updated_at=now)
    s.add(topic)
    s.flush()

    record_event(
        s,
        actor=user,
        action="topic.create",
        entity_type="Topic",
        entity_id=str(topic.id),
        metadata={
            "title": topic.title,
            "project_id": project.id,
            "article_id": topic.article.id,
            "forced": bool(matches and force),
            "similar": [m.title for m in matches],
        },
    )
    return topic


def update_topic(s: "Session", topic: "Topic", payload: dict, user: "User") -> "Topic":
    from app.ctms.modules.projects.models import Project

    changes: dict[str, dict] = {}

    def _set(attr: str, new) -> None:
        old = getattr(topic, attr)
        if new != old:
            changes[attr] = {"old": old, "new": new}
            setattr(topic, attr, new)

    if "title" in payload:
        _set("title", (payload.get("title") or "").strip())
    for attr in ("keyword", "instructions", "month"):
        if attr in payload:
            _set(attr, (payload.get(attr) or "").strip() or None)
    if "status" in payload and (payload.get("status") or "").strip():
        _set("status", payload["status"].strip())
    if "project" in payload and payload.get("project"):
        try:
            project = s.get(Project, int(payload["project"]))
        except (TypeError, ValueError):
            project = None
        if project is None:
            raise LookupError("Project not found.")
        _set("project_id", project.id)
        topic.project = project

    topic.updated_at = datetime.utcnow()
    record_event(
        s,
        actor=user,
        action="topic.edit",
        entity_type="Topic",
        entity_id=str(topic.id),
        metadata={"title": topic.title, "changes": changes},
    )
    return topic


def can_delete_topic(topic: "Topic", user: "User") -> bool:
    """Only the creator may delete a topic; admins may delete any."""
    if ROLE_ADMIN in user.role_keys:
        return True
    return topic.created_by_id is not None and topic.created_by_id == user.id


def delete_topic(s: "Session", topic: "Topic", user: "User") -> None:
    record_event(
        s,
        actor=user,
        action="topic.delete",
        entity_type="Topic",
        entity_id=str(topic.id),
        metadata={
            "title": topic.title,
            "project_id": topic.project_id,
            "article_id": topic.article.id if topic.article else None,
        },
    )
    s.delete(topic)
