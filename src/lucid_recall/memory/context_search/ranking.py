# ranking, limiting and token estimation helpers shared by the evaluator and orchestrator

import math
from typing import Iterable

from lucid_recall.memory.context_search.types import ContextChunk

# coarse heuristic, consistent rather than precise; never used for billing
CHARS_PER_TOKEN = 4

def rank_and_limit(chunks: Iterable[ContextChunk], max_chunks: int) -> list[ContextChunk]:
    """
    Sorts chunks by similarity (descending) and keeps the first max_chunks.
    Pure sort-and-slice: source-specific biases are applied upstream by the searchers.
    """
    ranked = sorted(chunks, key=lambda chunk: chunk.similarity, reverse=True)
    return ranked[:max_chunks]

def estimate_tokens(chunks: Iterable[ContextChunk]) -> int:
    """Estimates tokens as ceil(total content chars / 4)."""
    total_chars = sum(len(chunk.content) for chunk in chunks)
    return math.ceil(total_chars / CHARS_PER_TOKEN)
