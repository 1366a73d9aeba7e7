"""
Central constants for the CTMS application.
"""
from __future__ import annotations

# Role keys. A user holds any subset of these.
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_WRITER = "writer"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_WRITER)

ROLE_NAMES = {
    ROLE_ADMIN: "Administrator",
    ROLE_MANAGER: "Manager",
    ROLE_WRITER: "Writer",
}

PROJECT_STATUSES = ("ongoing", "paused")

TOPIC_STATUSES = ("pending", "assigned", "completed")

# assigned -> submitted -> published, with revision as a reset side channel
ARTICLE_ASSIGNED = "assigned"
ARTICLE_SUBMITTED = "submitted"
ARTICLE_REVISION = "revision"
ARTICLE_PUBLISHED = "published"
ARTICLE_STATUSES = (ARTICLE_ASSIGNED, ARTICLE_SUBMITTED, ARTICLE_REVISION, ARTICLE_PUBLISHED)

# Editorial calendar labels for Topic.month are "Mon-YY", e.g. "Jan-26".
MONTH_ABBRS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

DEFAULT_SIMILARITY_THRESHOLD = 0.8
