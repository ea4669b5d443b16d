# ORM model for facts extracted about the user, embedded for semantic search
from lucid_recall.common.db.models.base import MainDB_Base, utc_now
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, Boolean, Float, Index, func
from pgvector.sqlalchemy import Vector
from datetime import datetime
from typing import Optional

class Fact(MainDB_Base):
    """
    A single extracted fact about the user (e.g. "Works as a pastry chef").
    Deactivated facts (is_active = False) are superseded and never retrieved.
    """
    __tablename__ = "facts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)

    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    last_observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, server_default=func.now())

    embedding: Mapped[Optional[list[float]]] = mapped_column(Vector(1536), nullable=True)

    __table_args__ = (
        Index('idx_facts_user_active', 'user_id', 'is_active'),
        Index(
            'idx_facts_embedding_cosine',
            'embedding',
            postgresql_using='hnsw',
            postgresql_with={'m': 16, 'ef_construction': 64},
            postgresql_ops={'embedding': 'vector_cosine_ops'}
        ),
    )
