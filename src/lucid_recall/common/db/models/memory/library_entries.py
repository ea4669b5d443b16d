# ORM model for long-form library entries (reflections, notes, documents)
from lucid_recall.common.db.models.base import MainDB_Base, utc_now
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, Index, func
from pgvector.sqlalchemy import Vector
from datetime import datetime
from typing import Optional

class LibraryEntry(MainDB_Base):
    """
    Long-form entries written by or for the user.
    Entries go stale faster than facts, so entry search ranks them by age (created_at).
    """
    __tablename__ = "library_entries"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)

    title: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    entry_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=utc_now, nullable=True)

    embedding: Mapped[Optional[list[float]]] = mapped_column(Vector(1536), nullable=True)

    __table_args__ = (
        Index('idx_library_entries_user_created', 'user_id', 'created_at'),
        Index(
            'idx_library_entries_embedding_cosine',
            'embedding',
            postgresql_using='hnsw',
            postgresql_with={'m': 16, 'ef_construction': 64},
            postgresql_ops={'embedding': 'vector_cosine_ops'}
        ),
    )
