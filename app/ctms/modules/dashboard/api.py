from __future__ import annotations

import io
from datetime import datetime

from flask import Blueprint, request, send_file

from app.ctms.audit import record_event
from app.ctms.db import db_session
from app.ctms.modules.dashboard.service import (
    REPORT_FILTERS,
    dashboard_rows,
    export_csv,
    export_xlsx,
    filter_rows,
    projects_assigned_count,
    stats_for,
)
from app.ctms.rbac import require_roles
from app.ctms.utils import current_user, failed, success

bp = Blueprint("dashboard", __name__)

_EXPORT_FORMATS = {
    "csv": ("text/csv", export_csv),
    "xlsx": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", export_xlsx),
}


@bp.get("/getDashboardData")
@require_roles("admin", "writer", "manager")
def get_dashboard_data():
    s = db_session()
    u = current_user()
    rows = dashboard_rows(s, u)
    assigned = projects_assigned_count(s, u)
    return success(
        rows,
        projectsAssignedCount=assigned,
        stats=stats_for(u, rows, projects_assigned=assigned, today=datetime.utcnow().date()),
    )


@bp.get("/exportReport")
@require_roles("admin")
def export_report():
    s = db_session()
    u = current_user()
    fmt = (request.args.get("format") or "csv").strip().lower()
    if fmt not in _EXPORT_FORMATS:
        return failed(f"Unsupported format. Must be one of: {', '.join(_EXPORT_FORMATS)}")

    filters = {k: (request.args.get(k) or "").strip() for k in REPORT_FILTERS}
    rows = filter_rows(dashboard_rows(s, u), filters)
    mimetype, render = _EXPORT_FORMATS[fmt]
    data = render(rows)

    record_event(
        s,
        actor=u,
        action="report.export",
        entity_type="Report",
        metadata={"format": fmt, "filters": {k: v for k, v in filters.items() if v}, "row_count": len(rows)},
    )
    s.commit()

    filename = f"content-report_{datetime.utcnow().date().isoformat()}.{fmt}"
    return send_file(io.BytesIO(data), mimetype=mimetype, as_attachment=True, download_name=filename, max_age=0)
