from __future__ import annotations

import json
from datetime import date, datetime, time, timedelta

from flask import Blueprint, request

from app.ctms.db import db_session
from app.ctms.models import AuditEvent
from app.ctms.rbac import require_roles
from app.ctms.utils import failed, iso, success

bp = Blueprint("admin", __name__)


def _parse_date(s: str) -> date | None:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def _serialize_event(e: AuditEvent) -> dict:
    return {
        "id": e.id,
        "createdAt": iso(e.created_at),
        "requestId": e.request_id,
        "actor": e.actor_user_email,
        "action": e.action,
        "entityType": e.entity_type,
        "entityId": e.entity_id,
        "reason": e.reason,
        "metadata": json.loads(e.metadata_json) if e.metadata_json else None,
    }


@bp.get("/auditEvents")
@require_roles("admin")
def audit_list():
    """
    Audit trail (newest first, max 200) with simple filters:
    - action (contains)
    - actor_email (contains)
    - entity_type / entity_id (exact)
    - date range (YYYY-MM-DD, inclusive)
    """
    s = db_session()
    action = (request.args.get("action") or "").strip()
    actor_email = (request.args.get("actor_email") or "").strip()
    entity_type = (request.args.get("entity_type") or "").strip()
    entity_id = (request.args.get("entity_id") or "").strip()
    date_from = _parse_date(request.args.get("date_from") or "")
    date_to = _parse_date(request.args.get("date_to") or "")

    if (request.args.get("date_from") or "").strip() and not date_from:
        return failed("date_from must be YYYY-MM-DD")
    if (request.args.get("date_to") or "").strip() and not date_to:
        return failed("date_to must be YYYY-MM-DD")

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.like(f"%{action}%"))
    if actor_email:
        q = q.filter(AuditEvent.actor_user_email.like(f"%{actor_email.lower()}%"))
    if entity_type:
        q = q.filter(AuditEvent.entity_type == entity_type)
    if entity_id:
        q = q.filter(AuditEvent.entity_id == entity_id)
    if date_from:
        q = q.filter(AuditEvent.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        q = q.filter(AuditEvent.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    events = q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(200).all()
    return success([_serialize_event(e) for e in events])
