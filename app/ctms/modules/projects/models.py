from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.ctms.models import Base, User

if TYPE_CHECKING:
    from app.ctms.modules.topics.models import Topic


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_writer", "writer_id"),
        Index("idx_projects_manager", "manager_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    word: Mapped[int | None] = mapped_column(Integer, nullable=True)  # word-count quota
    private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ongoing")  # ongoing | paused

    writer_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    manager_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(320), nullable=True)  # creator email
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    writer: Mapped[User | None] = relationship("User", foreign_keys=[writer_id], lazy="selectin")
    manager: Mapped[User | None] = relationship("User", foreign_keys=[manager_id], lazy="selectin")

    topics: Mapped[list["Topic"]] = relationship(
        "Topic",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
