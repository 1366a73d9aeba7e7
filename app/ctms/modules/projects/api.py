from __future__ import annotations

from flask import Blueprint, current_app

from app.ctms.db import db_session
from app.ctms.modules.projects.models import Project
from app.ctms.modules.projects.service import (
    create_project,
    delete_project,
    scope_projects,
    serialize_project,
    update_project,
    validate_project_payload,
)
from app.ctms.notify import notify_project
from app.ctms.rbac import require_roles
from app.ctms.utils import current_user, failed, json_payload, success

bp = Blueprint("projects", __name__)


@bp.post("/addProject")
@require_roles("admin")
def add_project():
    s = db_session()
    u = current_user()
    payload = json_payload()

    errors = validate_project_payload(payload)
    if errors:
        return failed(" ".join(errors))
    try:
        project = create_project(s, payload, u)
    except ValueError as e:
        s.rollback()
        return failed(str(e))
    s.commit()

    notify_project(current_app.config, "added", project)
    return success(serialize_project(project), message="Project Added", status=201)


@bp.get("/viewProjectList")
@require_roles("admin", "manager", "writer")
def view_project_list():
    s = db_session()
    u = current_user()
    projects = scope_projects(s.query(Project), u).order_by(Project.created_at.desc(), Project.id.desc()).all()
    return success([serialize_project(p) for p in projects])


@bp.put("/updateProject/<int:project_id>")
@require_roles("admin")
def update_project_put(project_id: int):
    s = db_session()
    u = current_user()
    project = s.get(Project, project_id)
    if not project:
        return failed("Project not found", 404)

    payload = json_payload()
    errors = validate_project_payload(payload, partial=True)
    if errors:
        return failed(" ".join(errors))
    try:
        update_project(s, project, payload, u)
    except ValueError as e:
        s.rollback()
        return failed(str(e))
    s.commit()

    notify_project(current_app.config, "updated", project)
    return success(serialize_project(project), message="Project Updated")


@bp.delete("/deleteProject/<int:project_id>")
@require_roles("admin")
def delete_project_delete(project_id: int):
    s = db_session()
    u = current_user()
    project = s.get(Project, project_id)
    if not project:
        return failed("Project not found", 404)

    snapshot = serialize_project(project)
    delete_project(s, project, u)
    s.commit()

    notify_project(current_app.config, "deleted", project)
    return success(snapshot, message="Project Deleted")
