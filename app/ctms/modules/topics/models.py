from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.ctms.models import Base

if TYPE_CHECKING:
    from app.ctms.modules.articles.models import Article
    from app.ctms.modules.projects.models import Project


class Topic(Base):
    __tablename__ = "topics"
    __table_args__ = (
        Index("idx_topics_project", "project_id"),
        Index("idx_topics_month", "month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(String(512), nullable=False)
    keyword: Mapped[str | None] = mapped_column(String(255), nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    month: Mapped[str | None] = mapped_column(String(8), nullable=True)  # "Jan-26"

    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)

    # pending | assigned | completed
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="assigned")

    created_by: Mapped[str | None] = mapped_column(String(320), nullable=True)  # creator email, display only
    created_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # Topic creation is the moment the writer is assigned.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    project: Mapped["Project"] = relationship("Project", back_populates="topics", lazy="selectin")
    article: Mapped["Article | None"] = relationship(
        "Article",
        back_populates="topic",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
