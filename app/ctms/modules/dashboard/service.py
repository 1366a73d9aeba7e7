"""
Dashboard / report rows: one row per Topic, joined with its Project and Article.

Row dates are YYYY-MM-DD strings (or None). Stats are computed from rows so
that the dashboard cards and the exported report always agree.
"""
from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

from openpyxl import Workbook
from openpyxl.styles import Font

from app.ctms.constants import ARTICLE_REVISION, ROLE_ADMIN, ROLE_MANAGER, ROLE_WRITER
from app.ctms.utils import iso_day

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.ctms.models import User
    from app.ctms.modules.topics.models import Topic

REPORT_COLUMNS = (
    ("Project", "project"),
    ("Type", "projectType"),
    ("Topic", "topic"),
    ("Month", "month"),
    ("Manager", "managerName"),
    ("Writer", "writerName"),
    ("Status", "status"),
    ("Assigned", "writerAssignedAt"),
    ("Submitted", "writerSubmittedAt"),
    ("Published", "publishedAt"),
)

REPORT_FILTERS = ("project", "manager", "writer", "month", "status")


def build_row(topic: "Topic") -> dict[str, Any]:
    project = topic.project
    article = topic.article
    manager = project.manager if project else None
    writer = project.writer if project else None
    return {
        "topicId": topic.id,
        "articleId": article.id if article else None,
        "project": project.name if project else "N/A",
        "projectType": "Private" if project and project.private else "Public",
        "managerName": (manager.name or manager.email) if manager else "N/A",
        "managerEmail": manager.email if manager else None,
        "writerName": (writer.name or writer.email) if writer else "N/A",
        "writerEmail": writer.email if writer else None,
        "topic": topic.title,
        "month": topic.month,
        "status": article.status if article else None,
        "writerAssignedAt": iso_day(topic.created_at),
        "writerSubmittedAt": iso_day(article.writer_submitted_at) if article else None,
        "publishedAt": iso_day(article.published_at) if article else None,
    }


def dashboard_rows(s: "Session", user: "User") -> list[dict[str, Any]]:
    from app.ctms.modules.projects.service import scope_projects
    from app.ctms.modules.topics.models import Topic

    q = scope_projects(s.query(Topic).join(Topic.project), user)
    topics = q.order_by(Topic.created_at.desc(), Topic.id.desc()).all()
    return [build_row(t) for t in topics]


def projects_assigned_count(s: "Session", user: "User") -> int:
    from app.ctms.modules.projects.models import Project

    if ROLE_MANAGER not in user.role_keys:
        return 0
    return s.query(Project).filter(Project.manager_id == user.id).count()


def admin_stats(rows: Iterable[Mapping[str, Any]], today: date) -> dict[str, int]:
    stats = {
        "assignedThisMonth": 0,
        "privateAssigned": 0,
        "publicAssigned": 0,
        "received": 0,
        "privateReceived": 0,
        "publicReceived": 0,
        "published": 0,
        "dueContent": 0,
        "receivedNotPublished": 0,
    }
    this_month = today.strftime("%Y-%m")
    for r in rows:
        assigned = r.get("writerAssignedAt")
        submitted = r.get("writerSubmittedAt")
        published = r.get("publishedAt")
        is_private = r.get("projectType") == "Private"
        if assigned and assigned[:7] == this_month:
            stats["assignedThisMonth"] += 1
            stats["privateAssigned" if is_private else "publicAssigned"] += 1
        if submitted:
            stats["received"] += 1
            stats["privateReceived" if is_private else "publicReceived"] += 1
        if published:
            stats["published"] += 1
        if assigned and not submitted and not published:
            stats["dueContent"] += 1
        if submitted and not published:
            stats["receivedNotPublished"] += 1
    return stats


def writer_stats(rows: Iterable[Mapping[str, Any]], email: str) -> dict[str, int]:
    mine = [r for r in rows if r.get("writerEmail") == email]
    return {
        "totalAssigned": len(mine),
        "submitted": sum(1 for r in mine if r.get("writerSubmittedAt")),
        "dueContent": sum(1 for r in mine if r.get("writerAssignedAt") and not r.get("writerSubmittedAt")),
        # revision clears the submission stamp, so count on status alone
        "forRevision": sum(1 for r in mine if r.get("status") == ARTICLE_REVISION),
    }


def manager_stats(rows: Iterable[Mapping[str, Any]], email: str, projects_assigned: int) -> dict[str, int]:
    mine = [r for r in rows if r.get("managerEmail") == email]
    return {
        "projectsAssigned": projects_assigned or len({r.get("project") for r in mine}),
        "totalContentAssigned": len(mine),
        "contentReceived": sum(1 for r in mine if r.get("writerSubmittedAt")),
        "dueContent": sum(1 for r in mine if r.get("writerAssignedAt") and not r.get("writerSubmittedAt")),
    }


def stats_for(user: "User", rows: list[dict[str, Any]], *, projects_assigned: int, today: date) -> dict[str, Any]:
    keys = set(user.role_keys)
    out: dict[str, Any] = {}
    if ROLE_ADMIN in keys:
        out["admin"] = admin_stats(rows, today)
    if ROLE_MANAGER in keys:
        out["manager"] = manager_stats(rows, user.email, projects_assigned)
    if ROLE_WRITER in keys:
        out["writer"] = writer_stats(rows, user.email)
    return out


def filter_rows(rows: Iterable[Mapping[str, Any]], filters: Mapping[str, str]) -> list[Mapping[str, Any]]:
    """
    Report filters. `status` follows the report's date-based meaning:
    assigned/submitted/published keep rows that have reached that stage;
    revision matches the current status.
    """
    out = []
    for r in rows:
        if filters.get("project") and r.get("project") != filters["project"]:
            continue
        if filters.get("manager") and filters["manager"] not in (r.get("managerName"), r.get("managerEmail")):
            continue
        if filters.get("writer") and filters["writer"] not in (r.get("writerName"), r.get("writerEmail")):
            continue
        if filters.get("month") and r.get("month") != filters["month"]:
            continue
        status = filters.get("status")
        if status == "assigned" and not r.get("writerAssignedAt"):
            continue
        if status == "submitted" and not r.get("writerSubmittedAt"):
            continue
        if status == "published" and not r.get("publishedAt"):
            continue
        if status == ARTICLE_REVISION and r.get("status") != ARTICLE_REVISION:
            continue
        out.append(r)
    return out


def export_csv(rows: Iterable[Mapping[str, Any]]) -> bytes:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow([label for label, _ in REPORT_COLUMNS])
    for r in rows:
        w.writerow([r.get(key) or "" for _, key in REPORT_COLUMNS])
    return out.getvalue().encode("utf-8")


def export_xlsx(rows: Iterable[Mapping[str, Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"
    ws.append([label for label, _ in REPORT_COLUMNS])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for r in rows:
        ws.append([r.get(key) or "" for _, key in REPORT_COLUMNS])
    ws.freeze_panes = "A2"
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
