# request bodies for the context search routes

from pydantic import BaseModel, Field
from typing import Any, Optional

class ContextSearchRequest(BaseModel):
    """
    Request body for running the recursive context search directly.
    `config` holds per-call overrides merged onto the service defaults (e.g. {"max_depth": 2}).
    """
    query: str
    owner_id: str
    conversation_id: Optional[str] = None
    config: Optional[dict[str, Any]] = None

class RecallRequest(BaseModel):
    """
    Request body for the chat flow: the trigger heuristic decides whether to search at all.
    """
    message: str
    owner_id: str
    conversation_id: Optional[str] = None
    config: Optional[dict[str, Any]] = Field(default=None, description="Per-call SearchConfig overrides.")
