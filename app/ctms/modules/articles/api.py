from __future__ import annotations

from flask import Blueprint, current_app, g, request

from app.ctms.constants import ARTICLE_PUBLISHED, ARTICLE_STATUSES
from app.ctms.db import db_session
from app.ctms.modules.articles.models import Article
from app.ctms.modules.articles.service import (
    can_delete_article,
    delete_article,
    effective_roles,
    serialize_article,
    update_article,
)
from app.ctms.modules.articles.workflow import WorkflowError
from app.ctms.modules.projects.service import scope_projects
from app.ctms.modules.projects.models import Project
from app.ctms.modules.topics.models import Topic
from app.ctms.rbac import require_roles
from app.ctms.utils import current_user, failed, json_payload, success

bp = Blueprint("articles", __name__)


def _article_query(s):
    return s.query(Article).join(Article.topic).join(Topic.project)


@bp.get("/viewArticleList")
@require_roles("admin", "manager", "writer")
def view_article_list():
    s = db_session()
    u = current_user()
    q = scope_projects(_article_query(s), u)

    status = (request.args.get("status") or "").strip()
    if status:
        if status not in ARTICLE_STATUSES:
            return failed(f"Invalid status. Must be one of: {', '.join(ARTICLE_STATUSES)}")
        q = q.filter(Article.status == status)
    month = (request.args.get("month") or "").strip()
    if month:
        q = q.filter(Topic.month == month)
    project_id = request.args.get("project", type=int)
    if project_id:
        q = q.filter(Project.id == project_id)

    articles = q.order_by(Article.updated_at.desc(), Article.id.desc()).all()
    return success([serialize_article(a) for a in articles])


@bp.get("/viewPublishedArticles")
@require_roles("admin")
def view_published_articles():
    s = db_session()
    articles = (
        _article_query(s)
        .filter(Article.status == ARTICLE_PUBLISHED)
        .order_by(Article.published_at.desc(), Article.id.desc())
        .all()
    )
    return success([serialize_article(a) for a in articles])


@bp.put("/updateArticle/<int:article_id>")
@require_roles("admin", "writer", "manager")
def update_article_put(article_id: int):
    s = db_session()
    u = current_user()
    article = s.get(Article, article_id)
    if not article:
        return failed("Article not found", 404)
    if not effective_roles(article, u):
        return failed("You are not assigned to this article's project.", 403)

    try:
        result = update_article(s, article, json_payload(), u)
    except WorkflowError as e:
        s.rollback()
        current_app.logger.info(
            "Article update rejected id=%s user=%s: %s (request_id=%s)",
            article_id,
            u.email,
            e,
            getattr(g, "request_id", None),
        )
        return failed(str(e), e.status_code)
    s.commit()

    current_app.logger.info(
        "Article %s %s -> %s by %s", article.id, result.old_status, result.new_status, u.email
    )
    return success(serialize_article(article), message="Article updated")


@bp.delete("/deleteArticle/<int:article_id>")
@require_roles("admin", "manager")
def delete_article_delete(article_id: int):
    s = db_session()
    u = current_user()
    article = s.get(Article, article_id)
    if not article:
        return failed("Article not found", 404)
    if not can_delete_article(article, u):
        return failed("Unauthorized", 403)

    delete_article(s, article, u)
    s.commit()
    return success(message="Article Deleted")
