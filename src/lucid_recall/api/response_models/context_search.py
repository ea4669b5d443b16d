# response models for the context search routes

from pydantic import BaseModel
from typing import Optional
from lucid_recall.memory.context_search.types import RecursiveSearchResult

class ContextSearchResponse(BaseModel):
    result: RecursiveSearchResult
    prompt_context: str
    elapsed_ms: float

class RecallResponse(BaseModel):
    """
    Response for the recall route. `result` is None when the trigger heuristic skipped the search.
    """
    triggered: bool
    trigger_reason: str
    result: Optional[RecursiveSearchResult] = None
    prompt_context: str
    elapsed_ms: float
