from sqlalchemy import create_engine

from app.ctms.models import Base, Role, User
from scripts._db_utils import script_session
from scripts.assign_role import assign_role
from scripts.init_db import seed_only


def _db(tmp_path):
    url = f"sqlite:///{tmp_path/'seed.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    return url


def test_seed_is_idempotent(tmp_path, monkeypatch):
    url = _db(tmp_path)
    monkeypatch.setenv("ADMIN_EMAIL", "Boss@Example.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "password123")

    seed_only(database_url=url)
    seed_only(database_url=url)

    with script_session(url) as s:
        assert sorted(r.key for r in s.query(Role)) == ["admin", "manager", "writer"]
        [admin] = s.query(User).all()
        assert admin.email == "boss@example.com"
        assert admin.role_keys == ["admin"]


def test_assign_role(tmp_path, monkeypatch):
    url = _db(tmp_path)
    monkeypatch.setenv("ADMIN_EMAIL", "boss@example.com")
    seed_only(database_url=url)

    assert assign_role(url, "boss@example.com", "manager") == "manager role attached to boss@example.com"
    assert assign_role(url, "boss@example.com", "manager") == "User already has manager role: boss@example.com"
    assert assign_role(url, "nobody@example.com", "writer") == "User not found: nobody@example.com"

    with script_session(url) as s:
        user = s.query(User).filter(User.email == "boss@example.com").one()
        assert user.role_keys == ["admin", "manager"]
