# ORM models for conversations and their turns (user/assistant messages) with pgvector
from lucid_recall.common.db.models.base import MainDB_Base, utc_now
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, Boolean, Integer, ForeignKey, Index, func
from pgvector.sqlalchemy import Vector
from datetime import datetime
from typing import Optional

class Conversation(MainDB_Base):
    """
    A single chat conversation owned by one user.
    Only the columns needed for ownership checks and summaries are mapped here;
    the full table is owned by the chat service.
    """
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

class ConversationTurn(MainDB_Base):
    """
    Store every conversation turn with its text embedding for semantic search.

    Retrieval possibilities:
    - Similarity search: ORDER BY embedding <=> query_vec (cosine), scoped by user_id
    - Conversation-scoped search: additionally WHERE conversation_id = ...
    - Temporal: ORDER BY created_at

    NOTE: the table is named `messages` to match the chat service schema.
    """
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    conversation_id: Mapped[str] = mapped_column(String, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False)

    # "user" | "assistant"
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    token_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now())

    # Embedding vector (1536 dimensions, gemini-embedding-001 / text-embedding-ada-002)
    # Nullable since turns are embedded asynchronously after they are saved
    embedding: Mapped[Optional[list[float]]] = mapped_column(Vector(1536), nullable=True)

    __table_args__ = (
        Index('idx_messages_conversation_id', 'conversation_id', 'created_at'),
        Index('idx_messages_user_id', 'user_id'),
        Index(
            'idx_messages_embedding_cosine',
            'embedding',
            postgresql_using='hnsw',
            postgresql_with={'m': 16, 'ef_construction': 64},
            postgresql_ops={'embedding': 'vector_cosine_ops'}
        ),
    )
