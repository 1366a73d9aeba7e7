"""
Email notifications for project/topic changes.

Sending is fire-and-forget: a missing SMTP config or a failed send is logged
and swallowed so it can never fail the request that triggered it.
"""
from __future__ import annotations

import logging
import smtplib
from collections.abc import Iterable, Mapping
from email.message import EmailMessage
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from app.ctms.modules.projects.models import Project
    from app.ctms.modules.topics.models import Topic

logger = logging.getLogger(__name__)

_PROJECT_MESSAGES = {
    "added": ("New Project Assigned", 'A new project titled "{name}" has been added to the system.'),
    "updated": ("Project Updated", 'The project titled "{name}" has been updated.'),
    "deleted": ("Project Deleted", 'The project titled "{name}" has been deleted from the system.'),
}

_TOPIC_MESSAGES = {
    "added": ("New Topic Assigned", 'A new topic "{title}" has been added to project "{project}".'),
    "updated": ("Topic Updated", 'The topic "{title}" in project "{project}" has been updated.'),
    "deleted": ("Topic Deleted", 'The topic "{title}" has been removed from project "{project}".'),
}


def send_email(config: Mapping[str, Any], to: str, subject: str, body: str) -> bool:
    """Send one plain-text email. Returns False (never raises) on any failure."""
    if not config.get("NOTIFICATIONS_ENABLED", True):
        logger.debug("Notifications disabled; not emailing %s", to)
        return False
    host = (config.get("SMTP_HOST") or "").strip()
    sender = (config.get("EMAIL_FROM") or "").strip()
    if not host or not sender:
        logger.warning("SMTP not configured (SMTP_HOST/EMAIL_FROM); skipping email to %s", to)
        return False

    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, int(config.get("SMTP_PORT") or 587), timeout=10) as smtp:
            if config.get("SMTP_USE_TLS", True):
                smtp.starttls()
            username = (config.get("SMTP_USERNAME") or "").strip()
            if username:
                smtp.login(username, config.get("SMTP_PASSWORD") or "")
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error sending email to %s: %s", to, e)
        return False
    logger.info("Email sent to %s (%s)", to, subject)
    return True


def _recipients(project: "Project | None") -> list[str]:
    if project is None:
        return []
    out: list[str] = []
    for label, user in (("writer", project.writer), ("manager", project.manager)):
        if user is not None and user.email:
            if user.email not in out:
                out.append(user.email)
        else:
            logger.warning("Project %s has no %s email; skipping", project.id, label)
    return out


def _dispatch(config: Mapping[str, Any], recipients: Iterable[str], subject: str, body: str) -> int:
    sent = 0
    for to in recipients:
        if send_email(config, to, subject, body):
            sent += 1
    return sent


def notify_project(config: Mapping[str, Any], action: str, project: "Project") -> int:
    if action not in _PROJECT_MESSAGES:
        return 0
    subject, template = _PROJECT_MESSAGES[action]
    return _dispatch(config, _recipients(project), subject, template.format(name=project.name))


def notify_topic(config: Mapping[str, Any], action: str, topic: "Topic") -> int:
    if action not in _TOPIC_MESSAGES:
        return 0
    subject, template = _TOPIC_MESSAGES[action]
    project = topic.project
    body = template.format(title=topic.title, project=project.name if project else "N/A")
    return _dispatch(config, _recipients(project), subject, body)
