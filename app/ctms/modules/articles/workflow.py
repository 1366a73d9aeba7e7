"""
Article status workflow.

    assigned --(writer sets contentLink)--> submitted --(manager sets publishLink)--> published
        ^                                                                                |
        +------------- revision (manager/admin; clears contentLink) <--------------------+

Which transition happens is decided by which fields the caller sends, checked
against the caller's roles. Admins bypass the state preconditions but not the
role checks (admin holds every capability anyway). Leaving the published state
clears the publish fields; the Topic is completed only while its Article is
published.

This module is pure: it mutates the Article (and its Topic) in memory and
returns a summary of what changed. Persistence and auditing belong to service.py.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TYPE_CHECKING

from app.ctms.constants import (
    ARTICLE_ASSIGNED,
    ARTICLE_PUBLISHED,
    ARTICLE_REVISION,
    ARTICLE_STATUSES,
    ARTICLE_SUBMITTED,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_WRITER,
)

if TYPE_CHECKING:
    from app.ctms.modules.articles.models import Article


class WorkflowError(ValueError):
    """Business-rule violation (HTTP 400)."""

    status_code = 400


class WorkflowForbidden(WorkflowError):
    """The caller's roles do not allow the requested transition (HTTP 403)."""

    status_code = 403


@dataclass
class TransitionResult:
    old_status: str
    new_status: str
    actions: list[str] = field(default_factory=list)
    topic_changes: dict[str, Any] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.actions)


# Which roles may perform each action.
SUBMIT_ROLES = frozenset({ROLE_WRITER, ROLE_ADMIN})
PUBLISH_ROLES = frozenset({ROLE_MANAGER, ROLE_ADMIN})
REVISION_ROLES = frozenset({ROLE_MANAGER, ROLE_ADMIN})


def _text(payload: Mapping[str, Any], key: str) -> str:
    v = payload.get(key)
    if v is None:
        return ""
    return str(v).strip()


def can_submit(roles: Iterable[str]) -> bool:
    return not SUBMIT_ROLES.isdisjoint(roles)


def can_publish(roles: Iterable[str]) -> bool:
    return not PUBLISH_ROLES.isdisjoint(roles)


def can_request_revision(roles: Iterable[str]) -> bool:
    return not REVISION_ROLES.isdisjoint(roles)


def _unpublish(article: "Article") -> None:
    """An article that leaves the published state stops counting as published."""
    article.publish_link = None
    article.published_at = None
    article.publisher = None


def submit(article: "Article", content_link: str, *, roles: frozenset[str], now: datetime) -> None:
    if not can_submit(roles):
        raise WorkflowForbidden("Only writers or admins can submit content.")
    if article.status == ARTICLE_PUBLISHED:
        if ROLE_ADMIN not in roles:
            raise WorkflowError("Cannot update a published article.")
        _unpublish(article)
    article.content_link = content_link
    article.status = ARTICLE_SUBMITTED
    # First submission wins; revision clears the stamp so a resubmission re-stamps it.
    if article.writer_submitted_at is None:
        article.writer_submitted_at = now


def publish(article: "Article", publish_link: str, *, roles: frozenset[str], actor_email: str, now: datetime) -> None:
    if not can_publish(roles):
        raise WorkflowForbidden("Only managers or admins can publish articles.")
    if ROLE_ADMIN not in roles and article.status != ARTICLE_SUBMITTED:
        raise WorkflowError("Only submitted articles can be published.")
    article.publish_link = publish_link
    article.status = ARTICLE_PUBLISHED
    article.publisher = article.publisher or actor_email
    article.published_at = now


def request_revision(article: "Article", *, roles: frozenset[str]) -> None:
    if not can_request_revision(roles):
        raise WorkflowForbidden("Only managers or admins can request a revision.")
    article.status = ARTICLE_REVISION
    article.content_link = None
    article.writer_submitted_at = None
    _unpublish(article)


def apply_update(
    article: "Article",
    payload: Mapping[str, Any],
    *,
    roles: Iterable[str],
    actor_email: str,
    now: datetime | None = None,
) -> TransitionResult:
    """
    Apply an update payload to an article.

    Recognised keys: contentLink, publishLink, status ("revision", or a status
    that merely restates what the links imply), instructions (mirrored onto the
    Topic together with a revision). Empty strings count as absent.

    Raises WorkflowForbidden / WorkflowError; on error the article may be
    partially modified, so callers must roll back.
    """
    role_set = frozenset(roles)
    now = now or datetime.utcnow()
    result = TransitionResult(old_status=article.status, new_status=article.status)

    content_link = _text(payload, "contentLink")
    publish_link = _text(payload, "publishLink")
    status = _text(payload, "status").lower()
    instructions = _text(payload, "instructions")

    if status and status not in ARTICLE_STATUSES:
        raise WorkflowError(f"Invalid status. Must be one of: {', '.join(ARTICLE_STATUSES)}")
    if status == ARTICLE_ASSIGNED:
        raise WorkflowError("Status cannot be reset to 'assigned'; request a revision instead.")
    if status == ARTICLE_SUBMITTED and not content_link:
        raise WorkflowError("Status 'submitted' requires a contentLink.")
    if status == ARTICLE_PUBLISHED and not publish_link:
        raise WorkflowError("Status 'published' requires a publishLink.")
    if status == ARTICLE_REVISION and (content_link or publish_link):
        raise WorkflowError("A revision request cannot carry links.")
    if instructions and status != ARTICLE_REVISION:
        raise WorkflowError("Instructions can only be sent with a revision request; update the topic instead.")

    if content_link:
        submit(article, content_link, roles=role_set, now=now)
        result.actions.append("submit")

    if publish_link:
        publish(article, publish_link, roles=role_set, actor_email=actor_email, now=now)
        result.actions.append("publish")

    if status == ARTICLE_REVISION:
        request_revision(article, roles=role_set)
        result.actions.append("revision")
        if instructions:
            result.topic_changes["instructions"] = instructions

    if not result.changed:
        raise WorkflowError("Nothing to update.")

    _mirror_topic(article, result)
    article.updated_at = now
    result.new_status = article.status
    return result


def _mirror_topic(article: "Article", result: TransitionResult) -> None:
    topic = getattr(article, "topic", None)
    if topic is None:
        return
    # A topic is completed exactly while its article is published.
    wanted = "completed" if article.status == ARTICLE_PUBLISHED else "assigned"
    if topic.status != wanted:
        result.topic_changes.setdefault("status", wanted)
    for key, value in result.topic_changes.items():
        setattr(topic, key, value)
