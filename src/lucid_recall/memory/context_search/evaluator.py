# sufficiency evaluator: asks the reasoning backend whether the collected context can answer the query

import asyncio
import json
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, StrictBool, ValidationError

from lucid_recall.common.services.llm_service.llm_client import TypedLLMClient
from lucid_recall.memory.context_search.prompts import SufficiencyEvaluationPrompts
from lucid_recall.memory.context_search.ranking import estimate_tokens
from lucid_recall.memory.context_search.types import ContextChunk, SearchConfig, SufficiencyEvaluation
from lucid_recall.common.logging.logger import logger

class SufficiencyEvaluationLLMOutput(BaseModel):
    """Expected JSON shape of the reasoning backend's judgment."""
    sufficient: StrictBool = Field(description="Whether the retrieved context can answer the query.")
    reasoning: Optional[str] = Field(default=None, description="Brief explanation of the judgment.")
    missing_information: Optional[list[str]] = None
    new_search_queries: Optional[list[str]] = None

class ParseFailure(Enum):
    """Sentinel for a judgment that could not be decoded into SufficiencyEvaluationLLMOutput."""
    UNPARSEABLE = "unparseable"

def _strip_markdown_fences(text: str) -> str:
    """Strip markdown code fences (```json ... ``` or ``` ... ```) from LLM output."""
    stripped = text.strip()
    if stripped.startswith("```"):
        # remove opening fence (```json or ```)
        first_newline = stripped.index("\n") if "\n" in stripped else len(stripped)
        stripped = stripped[first_newline + 1:]
        # remove closing fence
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3].rstrip()
    return stripped

def parse_sufficiency_output(raw: Optional[str]) -> Union[SufficiencyEvaluationLLMOutput, ParseFailure]:
    """
    Strict parse with fallback, never raises.

    Tries in order:
    1. Strip markdown code fences, then validate the whole text as the expected JSON shape
    2. Validate the substring between the first '{' and the last '}'
    3. Return ParseFailure.UNPARSEABLE
    """
    if not raw or not raw.strip():
        return ParseFailure.UNPARSEABLE

    candidates = [_strip_markdown_fences(raw)]
    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start >= 0 and end > start:
        candidates.append(raw[start:end])

    for candidate in candidates:
        try:
            return SufficiencyEvaluationLLMOutput.model_validate_json(candidate)
        except (ValidationError, json.JSONDecodeError, ValueError):
            continue
    return ParseFailure.UNPARSEABLE

def render_context_for_evaluation(chunks: list[ContextChunk]) -> str:
    """Compact `[index] (source, similarity=X): content` rendering, 1-based."""
    return "\n\n".join(
        f"[{index}] ({chunk.source.value}, similarity={chunk.similarity:.2f}): {chunk.content}"
        for index, chunk in enumerate(chunks, start=1)
    )

class SufficiencyEvaluator():
    """
    Decides whether the ranked chunks of the current round are enough to answer the query,
    and if not, which follow-up queries to run next.

    Every failure path fails toward termination: provider errors, timeouts and unparseable
    output all come back as sufficient = True so the loop never gains an extra round from an error.
    """

    def __init__(self, llm_client: TypedLLMClient):
        self.llm_client = llm_client

    async def evaluate(self, query: str, ranked_chunks: list[ContextChunk], config: SearchConfig) -> SufficiencyEvaluation:
        # nothing to judge: retry the original query verbatim rather than spend a reasoning call
        if not ranked_chunks:
            return SufficiencyEvaluation(sufficient=False, reasoning="No context found", new_queries=[query])

        estimated_tokens = estimate_tokens(ranked_chunks)
        # budget exhaustion is a stopping condition on its own, regardless of adequacy
        if estimated_tokens >= config.target_token_budget:
            return SufficiencyEvaluation(
                sufficient=True,
                reasoning=f"Token budget reached ({estimated_tokens} tokens)",
            )

        user_prompt = SufficiencyEvaluationPrompts.user_prompt_template.format(
            query=query,
            chunk_count=len(ranked_chunks),
            estimated_tokens=estimated_tokens,
            context_text=render_context_for_evaluation(ranked_chunks),
        )

        try:
            raw = await asyncio.wait_for(
                self.llm_client.acomplete(
                    system_prompt=SufficiencyEvaluationPrompts.system_prompt,
                    user_prompt=user_prompt,
                    max_tokens=config.evaluation_max_tokens,
                ),
                timeout=config.evaluation_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Context evaluation timed out after {config.evaluation_timeout_seconds}s")
            return SufficiencyEvaluation(sufficient=True, reasoning="Evaluation error: timed out")
        except Exception as e:
            logger.warning(f"Error evaluating context: {e}")
            # On error, assume context is sufficient to avoid extra rounds
            return SufficiencyEvaluation(sufficient=True, reasoning=f"Evaluation error: {e}")

        parsed = parse_sufficiency_output(raw)
        if parsed is ParseFailure.UNPARSEABLE:
            logger.warning(f"Could not parse evaluation response: {str(raw)[:200]}")
            return SufficiencyEvaluation(sufficient=True, reasoning="Could not parse evaluation response")

        new_queries = [] if parsed.sufficient else self._clean_queries(parsed.new_search_queries or [], config.max_follow_up_queries)
        return SufficiencyEvaluation(
            sufficient=parsed.sufficient,
            reasoning=parsed.reasoning or "No reasoning provided",
            new_queries=new_queries,
        )

    @staticmethod
    def _clean_queries(queries: list[str], max_queries: int) -> list[str]:
        """Strips follow-up queries, dropping blanks and duplicates (first occurrence wins)."""
        cleaned: list[str] = []
        seen: set[str] = set()
        for query in queries:
            normalized = query.strip()
            if not normalized or normalized.lower() in seen:
                continue
            seen.add(normalized.lower())
            cleaned.append(normalized)
        return cleaned[:max_queries]
