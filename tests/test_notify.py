import smtplib
from types import SimpleNamespace

import pytest

from app.ctms import notify


class FakeSMTP:
    sent: list = []
    fail = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, msg):
        if FakeSMTP.fail:
            raise smtplib.SMTPServerDisconnected("connection dropped")
        FakeSMTP.sent.append(msg)


@pytest.fixture()
def smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail = False
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


CONFIG = {
    "NOTIFICATIONS_ENABLED": True,
    "SMTP_HOST": "smtp.example.com",
    "SMTP_PORT": 587,
    "SMTP_USE_TLS": True,
    "SMTP_USERNAME": "mailer",
    "SMTP_PASSWORD": "secret",
    "EMAIL_FROM": "ctms@example.com",
}


def test_send_email(smtp):
    assert notify.send_email(CONFIG, "w@x.io", "Hello", "Body text") is True
    [msg] = smtp.sent
    assert msg["To"] == "w@x.io"
    assert msg["From"] == "ctms@example.com"
    assert msg["Subject"] == "Hello"


def test_send_email_skips_without_config(smtp):
    assert notify.send_email({**CONFIG, "SMTP_HOST": ""}, "w@x.io", "Hello", "Body") is False
    assert notify.send_email({**CONFIG, "NOTIFICATIONS_ENABLED": False}, "w@x.io", "Hello", "Body") is False
    assert smtp.sent == []


def test_send_failure_is_swallowed(smtp):
    smtp.fail = True
    assert notify.send_email(CONFIG, "w@x.io", "Hello", "Body") is False


def test_notify_project_emails_writer_and_manager(smtp):
    project = SimpleNamespace(
        id=1,
        name="Acme Blog",
        writer=SimpleNamespace(email="w@x.io"),
        manager=SimpleNamespace(email="m@x.io"),
    )
    assert notify.notify_project(CONFIG, "added", project) == 2
    assert sorted(m["To"] for m in smtp.sent) == ["m@x.io", "w@x.io"]
    assert smtp.sent[0]["Subject"] == "New Project Assigned"
    assert "Acme Blog" in smtp.sent[0].get_content()


def test_notify_topic_skips_missing_people(smtp):
    project = SimpleNamespace(id=1, name="Acme Blog", writer=None, manager=SimpleNamespace(email="m@x.io"))
    topic = SimpleNamespace(title="Cold brew", project=project)
    assert notify.notify_topic(CONFIG, "deleted", topic) == 1
    assert "Cold brew" in smtp.sent[0].get_content()
    assert notify.notify_topic(CONFIG, "archived", topic) == 0


def test_topic_is_created_even_if_mail_fails(app, client, team, smtp):
    app.config.update(CONFIG)
    smtp.fail = True
    body = {"title": "How to brew cold coffee", "project": team["project_id"]}
    r = client.post("/api/addTopic", json=body, headers=team["headers"]["manager"])
    assert r.status_code == 201


def test_project_changes_send_mail(app, client, team, smtp):
    app.config.update(CONFIG)
    r = client.put(
        f"/api/updateProject/{team['project_id']}",
        json={"word": 900},
        headers=team["headers"]["admin"],
    )
    assert r.status_code == 200
    assert {m["Subject"] for m in smtp.sent} == {"Project Updated"}
    assert len(smtp.sent) == 2
