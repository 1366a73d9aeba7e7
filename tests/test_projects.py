from app.ctms.db import session_scope
from app.ctms.models import AuditEvent
from app.ctms.modules.articles.models import Article
from app.ctms.modules.projects.models import Project
from app.ctms.modules.topics.models import Topic


def test_add_project_assigns_people(client, team):
    r = client.get("/api/viewProjectList", headers=team["headers"]["admin"])
    assert r.status_code == 200
    [project] = r.json["data"]
    assert project["name"] == "Acme Blog"
    assert project["word"] == 1200
    assert project["private"] is False
    assert project["status"] == "ongoing"
    assert project["writer"]["email"] == "writer@example.com"
    assert project["manager"]["email"] == "manager@example.com"
    assert project["createdBy"] == "admin@example.com"


def test_only_admin_adds_projects(client, team):
    r = client.post("/api/addProject", json={"name": "Side Project"}, headers=team["headers"]["manager"])
    assert r.status_code == 403


def test_add_project_validation(client, team):
    admin = team["headers"]["admin"]
    assert client.post("/api/addProject", json={"name": ""}, headers=admin).status_code == 400
    assert client.post("/api/addProject", json={"name": "X", "word": "lots"}, headers=admin).status_code == 400
    assert client.post("/api/addProject", json={"name": "X", "status": "archived"}, headers=admin).status_code == 400

    # a writer cannot be set as the manager
    r = client.post(
        "/api/addProject",
        json={"name": "X", "manager": "writer@example.com"},
        headers=admin,
    )
    assert r.status_code == 400
    assert "manager" in r.json["message"]


def test_project_list_is_scoped(client, team):
    admin = team["headers"]["admin"]
    r = client.post(
        "/api/addProject",
        json={"name": "Private Docs", "private": True, "writer": "other.writer@example.com"},
        headers=admin,
    )
    assert r.status_code == 201

    def names(who):
        r = client.get("/api/viewProjectList", headers=team["headers"][who])
        return {p["name"] for p in r.json["data"]}

    assert names("admin") == {"Acme Blog", "Private Docs"}
    assert names("writer") == {"Acme Blog"}
    assert names("manager") == {"Acme Blog"}
    assert names("other_writer") == {"Private Docs"}
    assert names("other_manager") == set()


def test_update_project(client, team):
    pid = team["project_id"]
    r = client.put(
        f"/api/updateProject/{pid}",
        json={"status": "paused", "manager": team["ids"]["other_manager"]},
        headers=team["headers"]["admin"],
    )
    assert r.status_code == 200
    assert r.json["data"]["status"] == "paused"
    assert r.json["data"]["manager"]["email"] == "other.manager@example.com"
    # untouched fields survive a partial update
    assert r.json["data"]["word"] == 1200

    r = client.put(f"/api/updateProject/{pid}", json={"status": "paused"}, headers=team["headers"]["manager"])
    assert r.status_code == 403
    r = client.put("/api/updateProject/9999", json={"status": "paused"}, headers=team["headers"]["admin"])
    assert r.status_code == 404


def test_delete_project_cascades(app, client, team, add_topic):
    add_topic("Spring cleaning checklist")
    add_topic("Choosing a standing desk")

    r = client.delete(f"/api/deleteProject/{team['project_id']}", headers=team["headers"]["admin"])
    assert r.status_code == 200

    with session_scope(app) as s:
        assert s.query(Project).count() == 0
        assert s.query(Topic).count() == 0
        assert s.query(Article).count() == 0
        ev = s.query(AuditEvent).filter(AuditEvent.action == "project.delete").one()
        assert '"topic_count": 2' in ev.metadata_json


def test_deleting_a_user_unassigns_projects(client, team):
    r = client.delete(f"/api/profileDelete/{team['ids']['writer']}", headers=team["headers"]["admin"])
    assert r.status_code == 200

    [project] = client.get("/api/viewProjectList", headers=team["headers"]["admin"]).json["data"]
    assert project["writer"] is None
    assert project["manager"]["email"] == "manager@example.com"
