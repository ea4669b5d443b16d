from lucid_recall.memory.context_search.types import (
    ChunkSource,
    ContextChunk,
    OwnerScope,
    RecursiveSearchResult,
    SearchConfig,
    SearchScope,
)
from lucid_recall.memory.context_search.errors import ContextSearchContractError
from lucid_recall.memory.context_search.orchestrator import RecursiveContextSearch
from lucid_recall.memory.context_search.evaluator import SufficiencyEvaluator
from lucid_recall.memory.context_search.trigger import should_use_recursive_search, TriggerDecision
from lucid_recall.memory.context_search.formatting import format_context_for_prompt

__all__ = [
    "ChunkSource",
    "ContextChunk",
    "OwnerScope",
    "RecursiveSearchResult",
    "SearchConfig",
    "SearchScope",
    "ContextSearchContractError",
    "RecursiveContextSearch",
    "SufficiencyEvaluator",
    "should_use_recursive_search",
    "TriggerDecision",
    "format_context_for_prompt",
]
