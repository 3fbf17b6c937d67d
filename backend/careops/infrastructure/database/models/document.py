"""SQLAlchemy ORM model for tenant-scoped documents."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from careops.infrastructure.database.base import Base


class DocumentModel(Base):
    """ORM model: maps to the 'documents' table.

    Every collection of every tenant shares this table; ``position`` keeps
    insertion order for snapshot delivery.
    """

    __tablename__ = "documents"

    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)
    collection: Mapped[str] = mapped_column(String(100), nullable=False)
    id: Mapped[str] = mapped_column(String(128), nullable=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "collection", "id", name="uq_documents_key"),
        Index("ix_documents_scope", "tenant_id", "collection"),
    )

    def __repr__(self) -> str:
        return (
            f"<DocumentModel(id={self.id}, "
            f"tenant='{self.tenant_id}', collection='{self.collection}')>"
        )
