# data contracts for the recursive context search engine

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

class ChunkSource(str, Enum):
    """Memory sources a chunk can come from. Values double as chunk id prefixes."""
    TURN = "turn"
    FACT = "fact"
    ENTRY = "entry"
    SUMMARY = "summary"

class SearchScope(str, Enum):
    """
    Which records are eligible for retrieval.
    - CONVERSATION: conversation turns are restricted to the current conversation.
    - USER / ALL: every record owned by the caller. Never crosses owners.
    """
    CONVERSATION = "conversation"
    USER = "user"
    ALL = "all"

class ContextChunk(BaseModel):
    """
    A single normalized, source-tagged unit of retrieved text.
    Identity is source + underlying record (e.g. "fact_42"), never source + query.
    """
    id: str = Field(description="Source-prefixed record id, the dedup key within a search session.")
    source: ChunkSource
    content: str
    similarity: float = Field(ge=-1.0, le=1.0, description="Cosine similarity (1 - cosine distance), higher is more relevant.")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Source-specific attributes for rendering only.")

class SearchConfig(BaseModel):
    """
    Configuration for a single recursive search call.
    Frozen: build a new one with `with_overrides` rather than mutating.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_depth: int = Field(default=3, ge=1, description="Hard ceiling on search rounds.")
    max_chunks: int = Field(default=20, ge=1, description="Cap on the final bundle size.")
    min_similarity: float = Field(default=0.4, ge=-1.0, le=1.0, description="Similarity floor for inclusion.")
    search_scope: SearchScope = SearchScope.USER
    target_token_budget: int = Field(default=4000, ge=1, description="Soft stop once the ranked bundle reaches this estimate.")
    evaluation_max_tokens: int = Field(default=500, ge=1, description="Output budget for the sufficiency evaluation call.")
    source_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for one source search (embed + store).")
    evaluation_timeout_seconds: float = Field(default=20.0, gt=0, description="Timeout for one sufficiency evaluation call.")
    max_follow_up_queries: int = Field(default=3, ge=1, description="Max follow-up queries accepted from one evaluation.")

    def with_overrides(self, overrides: Optional[dict[str, Any]] = None) -> "SearchConfig":
        """Returns a new, validated config with the given fields replaced."""
        if not overrides:
            return self
        return SearchConfig.model_validate({**self.model_dump(), **overrides})

class OwnerScope(BaseModel):
    """The access-control boundary of one search: the caller and, optionally, their current conversation."""
    model_config = ConfigDict(frozen=True)

    owner_id: str
    conversation_id: Optional[str] = None

class SourceSearchOutcome(BaseModel):
    """Result of one source search; `error` is set when the source failed and degraded to no chunks."""
    source: ChunkSource
    chunks: list[ContextChunk] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

class SufficiencyEvaluation(BaseModel):
    """Judgment returned by the sufficiency evaluator for one round."""
    sufficient: bool
    reasoning: str
    new_queries: list[str] = Field(default_factory=list)

class RecursiveSearchResult(BaseModel):
    """
    The contract returned to callers of search_recursively.
    Serializes with camelCase `searchQueries` / `totalTokens` for the chat flow.
    """
    model_config = ConfigDict(populate_by_name=True)

    query: str
    context: list[ContextChunk] = Field(default_factory=list)
    iterations: int = 0
    sufficient: bool = False
    search_queries: list[list[str]] = Field(default_factory=list, alias="searchQueries")
    total_tokens: int = Field(default=0, alias="totalTokens")
    reasoning: Optional[str] = None
