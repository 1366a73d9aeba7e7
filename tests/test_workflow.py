from datetime import datetime
from types import SimpleNamespace

import pytest

from app.ctms.modules.articles.workflow import WorkflowError, WorkflowForbidden, apply_update

T0 = datetime(2026, 1, 5, 9, 0)
T1 = datetime(2026, 1, 9, 17, 30)


def _article(status="assigned", **kw):
    topic = SimpleNamespace(status="assigned", instructions=None)
    fields = dict(
        status=status,
        content_link=None,
        publish_link=None,
        writer_submitted_at=None,
        published_at=None,
        publisher=None,
        updated_at=None,
        topic=topic,
    )
    fields.update(kw)
    return SimpleNamespace(**fields)


def test_writer_submits():
    a = _article()
    result = apply_update(a, {"contentLink": "https://docs/1"}, roles={"writer"}, actor_email="w@x.io", now=T0)
    assert result.actions == ["submit"]
    assert (result.old_status, result.new_status) == ("assigned", "submitted")
    assert a.content_link == "https://docs/1"
    assert a.writer_submitted_at == T0
    assert a.updated_at == T0


def test_resubmission_keeps_first_submission_time():
    a = _article("submitted", content_link="https://docs/1", writer_submitted_at=T0)
    apply_update(a, {"contentLink": "https://docs/2"}, roles={"writer"}, actor_email="w@x.io", now=T1)
    assert a.content_link == "https://docs/2"
    assert a.writer_submitted_at == T0


def test_writer_cannot_publish():
    a = _article("submitted", content_link="https://docs/1")
    with pytest.raises(WorkflowForbidden):
        apply_update(a, {"publishLink": "https://site/1"}, roles={"writer"}, actor_email="w@x.io")


def test_writer_cannot_touch_published_article():
    a = _article("published", content_link="https://docs/1", publish_link="https://site/1")
    with pytest.raises(WorkflowError) as exc:
        apply_update(a, {"contentLink": "https://docs/2"}, roles={"writer"}, actor_email="w@x.io")
    assert exc.value.status_code == 400


def test_manager_publishes_submitted_article():
    a = _article("submitted", content_link="https://docs/1", writer_submitted_at=T0)
    result = apply_update(a, {"publishLink": "https://site/1"}, roles={"manager"}, actor_email="m@x.io", now=T1)
    assert result.new_status == "published"
    assert a.publisher == "m@x.io"
    assert a.published_at == T1
    assert a.topic.status == "completed"


def test_manager_cannot_publish_unsubmitted_article():
    a = _article("assigned")
    with pytest.raises(WorkflowError):
        apply_update(a, {"publishLink": "https://site/1"}, roles={"manager"}, actor_email="m@x.io")


def test_manager_cannot_submit():
    with pytest.raises(WorkflowForbidden):
        apply_update(_article(), {"contentLink": "https://docs/1"}, roles={"manager"}, actor_email="m@x.io")


def test_admin_can_submit_and_publish_in_one_go():
    a = _article()
    result = apply_update(
        a,
        {"contentLink": "https://docs/1", "publishLink": "https://site/1"},
        roles={"admin"},
        actor_email="a@x.io",
        now=T0,
    )
    assert result.actions == ["submit", "publish"]
    assert a.status == "published"
    assert a.writer_submitted_at == T0


def test_admin_keeps_original_publisher():
    a = _article("published", publish_link="https://site/1", publisher="m@x.io", published_at=T0)
    apply_update(a, {"publishLink": "https://site/1b"}, roles={"admin"}, actor_email="a@x.io", now=T1)
    assert a.publish_link == "https://site/1b"
    assert a.publisher == "m@x.io"
    assert a.published_at == T1


@pytest.mark.parametrize("status", ["submitted", "published", "assigned"])
def test_revision_clears_content_link(status):
    a = _article(status, content_link="https://docs/1", writer_submitted_at=T0, publish_link="https://site/1")
    a.topic.status = "completed"
    result = apply_update(
        a,
        {"status": "revision", "instructions": "Tighten the intro"},
        roles={"manager"},
        actor_email="m@x.io",
    )
    assert result.actions == ["revision"]
    assert a.status == "revision"
    assert a.content_link is None
    assert a.writer_submitted_at is None
    assert a.topic.status == "assigned"
    assert a.topic.instructions == "Tighten the intro"


def test_writer_cannot_request_revision():
    with pytest.raises(WorkflowForbidden):
        apply_update(_article("submitted"), {"status": "revision"}, roles={"writer"}, actor_email="w@x.io")


def test_writer_resubmits_after_revision():
    a = _article("revision")
    apply_update(a, {"contentLink": "https://docs/2"}, roles={"writer"}, actor_email="w@x.io", now=T1)
    assert a.status == "submitted"
    assert a.writer_submitted_at == T1


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"contentLink": "   "},
        {"status": "archived"},
        {"status": "assigned"},
        {"status": "submitted"},
        {"status": "published"},
        {"status": "revision", "contentLink": "https://docs/1"},
        {"instructions": "more detail please"},
    ],
)
def test_rejected_payloads(payload):
    a = _article("submitted", content_link="https://docs/0")
    with pytest.raises(WorkflowError):
        apply_update(a, payload, roles={"admin"}, actor_email="a@x.io")
    assert a.status in ("assigned", "submitted", "revision", "published")


def test_status_that_restates_the_link_is_accepted():
    a = _article()
    result = apply_update(
        a, {"status": "submitted", "contentLink": "https://docs/1"}, roles={"writer"}, actor_email="w@x.io"
    )
    assert result.new_status == "submitted"


def test_admin_resubmitting_published_article_reopens_it():
    a = _article("published", content_link="https://docs/1", publish_link="https://site/1", publisher="m@x.io", published_at=T0)
    a.topic.status = "completed"
    result = apply_update(a, {"contentLink": "https://docs/2"}, roles={"admin"}, actor_email="a@x.io", now=T1)
    assert result.new_status == "submitted"
    assert a.topic.status == "assigned"
    assert (a.publish_link, a.published_at, a.publisher) == (None, None, None)


def test_revision_clears_publish_fields():
    a = _article("published", content_link="https://docs/1", publish_link="https://site/1", publisher="m@x.io", published_at=T0)
    apply_update(a, {"status": "revision"}, roles={"manager"}, actor_email="m@x.io")
    assert (a.publish_link, a.published_at, a.publisher) == (None, None, None)


def test_submit_leaves_assigned_topic_alone():
    a = _article()
    result = apply_update(a, {"contentLink": "https://docs/1"}, roles={"writer"}, actor_email="w@x.io")
    assert result.topic_changes == {}
    assert a.topic.status == "assigned"
