from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.ctms.audit import record_event
from app.ctms.constants import ROLE_ADMIN, ROLE_MANAGER, ROLE_WRITER
from app.ctms.modules.articles.workflow import TransitionResult, apply_update
from app.ctms.utils import iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.ctms.models import User
    from app.ctms.modules.articles.models import Article


def serialize_article(a: "Article") -> dict[str, Any]:
    topic = a.topic
    project = topic.project if topic else None
    return {
        "id": a.id,
        "status": a.status,
        "contentLink": a.content_link,
        "publishLink": a.publish_link,
        "writerSubmittedAt": iso(a.writer_submitted_at),
        "publishedAt": iso(a.published_at),
        "publisher": a.publisher,
        "createdAt": iso(a.created_at),
        "updatedAt": iso(a.updated_at),
        "topic": {
            "id": topic.id,
            "title": topic.title,
            "keyword": topic.keyword,
            "instructions": topic.instructions,
            "month": topic.month,
            "project": {
                "id": project.id,
                "name": project.name,
                "writer": project.writer_id,
                "manager": project.manager_id,
            }
            if project
            else None,
        }
        if topic
        else None,
    }


def effective_roles(article: "Article", user: "User") -> set[str]:
    """
    Roles the user may exercise on this article: admin everywhere, manager/writer
    only on projects they are assigned to.
    """
    keys = set(user.role_keys)
    if ROLE_ADMIN in keys:
        return keys
    project = article.topic.project if article.topic else None
    if project is None:
        return set()
    out = set()
    if ROLE_MANAGER in keys and project.manager_id == user.id:
        out.add(ROLE_MANAGER)
    if ROLE_WRITER in keys and project.writer_id == user.id:
        out.add(ROLE_WRITER)
    return out


def update_article(s: "Session", article: "Article", payload: dict, user: "User") -> TransitionResult:
    """Run the workflow for `user` and audit the transition. Raises WorkflowError."""
    result = apply_update(article, payload, roles=effective_roles(article, user), actor_email=user.email)
    for action in result.actions:
        record_event(
            s,
            actor=user,
            action=f"article.{action}",
            entity_type="Article",
            entity_id=str(article.id),
            metadata={
                "topic_id": article.topic_id,
                "old_status": result.old_status,
                "new_status": result.new_status,
                "content_link": article.content_link,
                "publish_link": article.publish_link,
                "topic_changes": result.topic_changes or None,
            },
        )
    return result


def can_delete_article(article: "Article", user: "User") -> bool:
    """Admins, or the manager of the article's project."""
    keys = set(user.role_keys)
    if ROLE_ADMIN in keys:
        return True
    project = article.topic.project if article.topic else None
    return ROLE_MANAGER in keys and project is not None and project.manager_id == user.id


def delete_article(s: "Session", article: "Article", user: "User") -> None:
    """
    An Article never exists without its Topic, so deleting it removes the Topic too.
    """
    topic = article.topic
    record_event(
        s,
        actor=user,
        action="article.delete",
        entity_type="Article",
        entity_id=str(article.id),
        metadata={"topic_id": article.topic_id, "title": topic.title if topic else None, "status": article.status},
    )
    s.delete(topic if topic is not None else article)
