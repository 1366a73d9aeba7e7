from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.ctms.models import Base

if TYPE_CHECKING:
    from app.ctms.modules.topics.models import Topic


class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (
        CheckConstraint(
            "status IN ('assigned', 'submitted', 'revision', 'published')",
            name="ck_articles_status",
        ),
        Index("idx_articles_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # 1:1 with Topic
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, unique=True)

    content_link: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    publish_link: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="assigned")

    writer_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(320), nullable=True)  # publisher email

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    topic: Mapped["Topic"] = relationship("Topic", back_populates="article", lazy="selectin")
