from __future__ import annotations

from flask import Blueprint, current_app, request

from app.ctms.constants import DEFAULT_SIMILARITY_THRESHOLD
from app.ctms.db import db_session
from app.ctms.models import User
from app.ctms.modules.projects.models import Project
from app.ctms.modules.projects.service import scope_projects
from app.ctms.modules.topics.models import Topic
from app.ctms.modules.topics.service import (
    DuplicateTopicError,
    can_delete_topic,
    create_topic,
    delete_topic,
    serialize_topic,
    update_topic,
    validate_topic_payload,
)
from app.ctms.notify import notify_topic
from app.ctms.rbac import is_admin, require_roles
from app.ctms.utils import current_user, failed, json_payload, parse_bool, success

bp = Blueprint("topics", __name__)


def _manages(user: User, project: Project | None) -> bool:
    if is_admin(user):
        return True
    return project is not None and project.manager_id == user.id


@bp.post("/addTopic")
@require_roles("admin", "manager")
def add_topic():
    s = db_session()
    u = current_user()
    payload = json_payload()

    errors = validate_topic_payload(payload)
    if errors:
        return failed(" ".join(errors))

    try:
        project = s.get(Project, int(payload.get("project")))
    except (TypeError, ValueError):
        project = None
    if project is None:
        return failed("Project not found", 404)
    if not _manages(u, project):
        return failed("You can only add topics to projects you manage.", 403)

    force = parse_bool(payload.get("force")) or parse_bool(request.args.get("force"))
    threshold = current_app.config.get("SIMILARITY_THRESHOLD")
    threshold = float(DEFAULT_SIMILARITY_THRESHOLD if threshold is None else threshold)
    try:
        topic = create_topic(s, payload, u, threshold=threshold, force=force)
    except LookupError as e:
        s.rollback()
        return failed(str(e), 404)
    except DuplicateTopicError as e:
        s.rollback()
        current_app.logger.info(
            "Rejected similar topic title=%r project_id=%s best=%.3f", payload.get("title"), project.id, e.matches[0].score
        )
        return failed(
            str(e),
            409,
            similarTopics=[{"id": m.topic_id, "title": m.title, "score": m.score} for m in e.matches],
        )
    s.commit()

    notify_topic(current_app.config, "added", topic)
    return success(serialize_topic(topic), message="Topic and Article Added", status=201)


@bp.get("/viewTopicList")
@require_roles("admin", "manager", "writer")
def view_topic_list():
    s = db_session()
    u = current_user()
    q = scope_projects(s.query(Topic).join(Topic.project), u)
    month = (request.args.get("month") or "").strip()
    if month:
        q = q.filter(Topic.month == month)
    project_id = request.args.get("project", type=int)
    if project_id:
        q = q.filter(Topic.project_id == project_id)
    topics = q.order_by(Topic.created_at.desc(), Topic.id.desc()).all()
    return success([serialize_topic(t) for t in topics])


@bp.put("/updateTopic/<int:topic_id>")
@require_roles("admin", "manager")
def update_topic_put(topic_id: int):
    s = db_session()
    u = current_user()
    topic = s.get(Topic, topic_id)
    if not topic:
        return failed("Topic not found", 404)
    if not _manages(u, topic.project):
        return failed("You can only update topics of projects you manage.", 403)

    payload = json_payload()
    errors = validate_topic_payload(payload, partial=True)
    if errors:
        return failed(" ".join(errors))
    if "project" in payload and payload.get("project"):
        try:
            target = s.get(Project, int(payload["project"]))
        except (TypeError, ValueError):
            target = None
        if target is not None and not _manages(u, target):
            return failed("You can only move topics to projects you manage.", 403)

    try:
        update_topic(s, topic, payload, u)
    except LookupError as e:
        s.rollback()
        return failed(str(e), 404)
    s.commit()

    notify_topic(current_app.config, "updated", topic)
    return success(serialize_topic(topic), message="Topic updated successfully")


@bp.delete("/deleteTopic/<int:topic_id>")
@require_roles("admin", "manager")
def delete_topic_delete(topic_id: int):
    s = db_session()
    u = current_user()
    topic = s.get(Topic, topic_id)
    if not topic:
        return failed("Topic not found", 404)
    if not can_delete_topic(topic, u):
        return failed("Only the topic's creator or an admin can delete it.", 403)

    snapshot = serialize_topic(topic)
    delete_topic(s, topic, u)
    s.commit()

    notify_topic(current_app.config, "deleted", topic)
    return success(snapshot, message="Topic Deleted")
