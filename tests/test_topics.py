from app.ctms.db import session_scope
from app.ctms.modules.articles.models import Article
from app.ctms.modules.topics.models import Topic


def test_add_topic_creates_one_assigned_article(app, team, add_topic):
    topic = add_topic("How to brew cold coffee", keyword="cold brew", instructions="1500 words, 3 images")
    assert topic["status"] == "assigned"
    assert topic["month"] == "Jan-26"
    assert topic["createdBy"] == "manager@example.com"
    assert topic["project"]["id"] == team["project_id"]
    assert topic["article"]["status"] == "assigned"

    with session_scope(app) as s:
        articles = s.query(Article).filter(Article.topic_id == topic["id"]).all()
        assert len(articles) == 1
        assert articles[0].content_link is None


def test_similar_title_is_rejected(client, team, add_topic):
    add_topic("How to Brew Cold Coffee")

    body = {"title": "how to brew cold coffee!", "project": team["project_id"], "month": "Feb-26"}
    r = client.post("/api/addTopic", json=body, headers=team["headers"]["manager"])
    assert r.status_code == 409
    assert r.json["status"] == "Failed"
    [match] = r.json["similarTopics"]
    assert match["title"] == "How to Brew Cold Coffee"
    assert match["score"] >= 0.8


def test_force_overrides_similarity(client, team, add_topic):
    add_topic("How to Brew Cold Coffee")

    body = {"title": "How to brew cold coffee", "project": team["project_id"], "force": True}
    r = client.post("/api/addTopic", json=body, headers=team["headers"]["manager"])
    assert r.status_code == 201

    del body["force"]
    r = client.post("/api/addTopic?force=1", json=body, headers=team["headers"]["manager"])
    assert r.status_code == 201


def test_similarity_is_per_project(client, team, add_topic):
    add_topic("How to Brew Cold Coffee")
    r = client.post(
        "/api/addProject",
        json={"name": "Coffee Corner", "manager": team["ids"]["manager"]},
        headers=team["headers"]["admin"],
    )
    other_project = r.json["data"]["id"]

    body = {"title": "How to Brew Cold Coffee", "project": other_project}
    r = client.post("/api/addTopic", json=body, headers=team["headers"]["manager"])
    assert r.status_code == 201


def test_distinct_titles_are_accepted(team, add_topic):
    add_topic("How to Brew Cold Coffee")
    add_topic("Best budget laptops for students")
    add_topic("How to train your puppy")


def test_add_topic_permissions_and_validation(client, team):
    pid = team["project_id"]
    r = client.post("/api/addTopic", json={"title": "Hi", "project": pid}, headers=team["headers"]["writer"])
    assert r.status_code == 403
    # a manager, but not this project's
    r = client.post("/api/addTopic", json={"title": "Hi", "project": pid}, headers=team["headers"]["other_manager"])
    assert r.status_code == 403

    manager = team["headers"]["manager"]
    assert client.post("/api/addTopic", json={"project": pid}, headers=manager).status_code == 400
    assert client.post("/api/addTopic", json={"title": "Hi"}, headers=manager).status_code == 400
    assert client.post("/api/addTopic", json={"title": "Hi", "project": pid, "month": "January"}, headers=manager).status_code == 400
    assert client.post("/api/addTopic", json={"title": "Hi", "project": 9999}, headers=manager).status_code == 404


def test_topic_list_filters(client, team, add_topic):
    add_topic("Winter tyres explained", month="Dec-25")
    add_topic("Summer road trip packing list", month="Jun-26")

    r = client.get("/api/viewTopicList?month=Jun-26", headers=team["headers"]["writer"])
    assert r.status_code == 200
    assert [t["title"] for t in r.json["data"]] == ["Summer road trip packing list"]

    r = client.get("/api/viewTopicList", headers=team["headers"]["other_writer"])
    assert r.json["data"] == []


def test_update_topic(client, team, add_topic):
    topic = add_topic("Winter tyres explained")
    r = client.put(
        f"/api/updateTopic/{topic['id']}",
        json={"keyword": "winter tyres", "month": "Nov-25"},
        headers=team["headers"]["manager"],
    )
    assert r.status_code == 200
    assert r.json["data"]["keyword"] == "winter tyres"
    assert r.json["data"]["title"] == "Winter tyres explained"

    r = client.put(f"/api/updateTopic/{topic['id']}", json={"keyword": "x"}, headers=team["headers"]["other_manager"])
    assert r.status_code == 403


def test_only_creator_or_admin_deletes_topic(app, client, team, add_topic):
    by_manager = add_topic("Winter tyres explained")
    by_admin = add_topic("Summer road trip packing list", headers=team["headers"]["admin"])

    # the project's manager did not create this one
    r = client.delete(f"/api/deleteTopic/{by_admin['id']}", headers=team["headers"]["manager"])
    assert r.status_code == 403

    r = client.delete(f"/api/deleteTopic/{by_manager['id']}", headers=team["headers"]["manager"])
    assert r.status_code == 200
    r = client.delete(f"/api/deleteTopic/{by_admin['id']}", headers=team["headers"]["admin"])
    assert r.status_code == 200

    with session_scope(app) as s:
        assert s.query(Topic).count() == 0
        assert s.query(Article).count() == 0


def test_similar_non_latin_title_is_rejected(client, team, add_topic):
    add_topic("ব্লগ লেখার টিপস")

    body = {"title": "ব্লগ লেখার টিপস", "project": team["project_id"]}
    r = client.post("/api/addTopic", json=body, headers=team["headers"]["manager"])
    assert r.status_code == 409
    assert r.json["similarTopics"][0]["title"] == "ব্লগ লেখার টিপস"


def test_creator_keeps_delete_rights_after_email_change(client, team, add_topic, login):
    topic = add_topic("Winter tyres explained")
    manager = team["headers"]["manager"]

    r = client.put(f"/api/profileUpdate/{team['ids']['manager']}", json={"email": "max@example.com"}, headers=manager)
    assert r.status_code == 200

    # a new manager registered under the old address is not the creator
    r = client.post(
        "/api/registration",
        json={"email": "manager@example.com", "password": "password123", "roles": ["manager"]},
        headers=team["headers"]["admin"],
    )
    assert r.status_code == 201
    r = client.delete(f"/api/deleteTopic/{topic['id']}", headers=login("manager@example.com"))
    assert r.status_code == 403

    r = client.delete(f"/api/deleteTopic/{topic['id']}", headers=manager)
    assert r.status_code == 200


def test_configured_zero_threshold_is_honoured(app, client, team, add_topic):
    add_topic("Winter tyres explained")
    app.config["SIMILARITY_THRESHOLD"] = 0.0

    body = {"title": "Cold brew coffee at home", "project": team["project_id"], "month": "Feb-26"}
    r = client.post("/api/addTopic", json=body, headers=team["headers"]["manager"])
    assert r.status_code == 409
