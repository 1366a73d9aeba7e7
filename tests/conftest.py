import pytest
from werkzeug.security import generate_password_hash

from app.ctms import create_app
from app.ctms import auth as auth_module
from app.ctms.constants import ROLE_NAMES, ROLES
from app.ctms.db import session_scope
from app.ctms.models import Base, Role, User

PASSWORD = "password123"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("NOTIFICATIONS_ENABLED", "false")
    for k in ("JWT_SECRET", "TOKEN_TTL_HOURS", "SIMILARITY_THRESHOLD", "SMTP_HOST", "EMAIL_FROM"):
        monkeypatch.delenv(k, raising=False)
    auth_module._login_attempts.clear()

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add_all([Role(key=key, name=ROLE_NAMES[key]) for key in ROLES])

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    def _make(email: str, *roles: str, name: str = "", password: str = PASSWORD) -> int:
        with session_scope(app) as s:
            u = User(
                name=name or email.split("@")[0].title(),
                email=email,
                password_hash=generate_password_hash(password),
                is_active=True,
            )
            u.roles.extend(s.query(Role).filter(Role.key.in_(roles)).all())
            s.add(u)
            s.flush()
            return u.id

    return _make


@pytest.fixture()
def login(client):
    def _login(email: str, password: str = PASSWORD) -> dict:
        r = client.post("/api/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.json
        return {"token": r.json["token"]}

    return _login


@pytest.fixture()
def team(client, make_user, login):
    """
    admin, a manager and a writer assigned to one project, plus an unassigned
    manager and writer.
    """
    ids = {
        "admin": make_user("admin@example.com", "admin", name="Ada Admin"),
        "manager": make_user("manager@example.com", "manager", name="Max Manager"),
        "writer": make_user("writer@example.com", "writer", name="Wendy Writer"),
        "other_manager": make_user("other.manager@example.com", "manager"),
        "other_writer": make_user("other.writer@example.com", "writer"),
    }
    headers = {key: login(f"{key.replace('_', '.')}@example.com") for key in ids}

    r = client.post(
        "/api/addProject",
        json={"name": "Acme Blog", "word": 1200, "writer": ids["writer"], "manager": ids["manager"]},
        headers=headers["admin"],
    )
    assert r.status_code == 201, r.json

    return {"ids": ids, "headers": headers, "project_id": r.json["data"]["id"]}


@pytest.fixture()
def add_topic(client, team):
    def _add(title: str, *, headers: dict | None = None, **extra) -> dict:
        body = {"title": title, "project": team["project_id"], "month": "Jan-26", **extra}
        r = client.post("/api/addTopic", json=body, headers=headers or team["headers"]["manager"])
        assert r.status_code == 201, r.json
        return r.json["data"]

    return _add
