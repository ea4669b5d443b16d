# ORM model for rolling conversation summaries
from lucid_recall.common.db.models.base import MainDB_Base, utc_now
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, ForeignKey, Index, func
from pgvector.sqlalchemy import Vector
from datetime import datetime
from typing import Optional

class ConversationSummary(MainDB_Base):
    """
    Rolling summary of a conversation, written from both the user's and the model's perspective.

    Ownership is resolved through the parent conversation (conversations.user_id),
    so similarity queries must join on conversations to scope by owner.
    """
    __tablename__ = "summaries"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    conversation_id: Mapped[str] = mapped_column(String, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)

    summary_type: Mapped[str] = mapped_column(String(50), nullable=False, default="rolling")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_perspective: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    model_perspective: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    embedding: Mapped[Optional[list[float]]] = mapped_column(Vector(1536), nullable=True)

    __table_args__ = (
        Index('idx_summaries_conversation_id', 'conversation_id'),
        Index(
            'idx_summaries_embedding_cosine',
            'embedding',
            postgresql_using='hnsw',
            postgresql_with={'m': 16, 'ef_construction': 64},
            postgresql_ops={'embedding': 'vector_cosine_ops'}
        ),
    )
