# recursive context search orchestrator: iterate search -> evaluate -> reformulate, bounded by depth and token budget

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from lucid_recall.memory.context_search.errors import ContextSearchContractError
from lucid_recall.memory.context_search.evaluator import SufficiencyEvaluator
from lucid_recall.memory.context_search.ranking import estimate_tokens, rank_and_limit
from lucid_recall.memory.context_search.searchers import SourceSearcher
from lucid_recall.memory.context_search.types import (
    ContextChunk,
    OwnerScope,
    RecursiveSearchResult,
    SearchConfig,
    SearchScope,
    SourceSearchOutcome,
)
from lucid_recall.common.logging.logger import logger

@dataclass
class SearchState:
    """Orchestrator-local state of one search_recursively call; discarded when the call returns."""
    collected: dict[str, ContextChunk] = field(default_factory=dict)
    queries_by_iteration: list[list[str]] = field(default_factory=list)
    iteration: int = 0
    sufficient: bool = False
    reasoning: Optional[str] = None

class RecursiveContextSearch():
    """
    Bounded-depth retrieval planner over the user's memory (turns, facts, entries, summaries).

    Each round runs every query of the current batch against every source concurrently,
    upserts the hits into a map keyed by chunk id, ranks, and asks the evaluator whether
    the context is sufficient. Terminates when the evaluator says sufficient (which includes
    token budget exhaustion), when max_depth rounds have run, when the evaluator proposes
    no further queries, or when every source failed in a round.

    - Collaborators are injected, so every piece can be swapped for a test double.
    - Holds no per-request state; safe to share across requests.
    """

    def __init__(
        self,
        searchers: Sequence[SourceSearcher],
        evaluator: SufficiencyEvaluator,
        default_config: Optional[SearchConfig] = None,
    ):
        if not searchers:
            raise ValueError("RecursiveContextSearch needs at least one source searcher")
        self.searchers = list(searchers)
        self.evaluator = evaluator
        self.default_config = default_config or SearchConfig()

    async def search_recursively(
        self,
        query: str,
        owner_id: str,
        conversation_id: Optional[str] = None,
        config: Optional[SearchConfig] = None,
    ) -> RecursiveSearchResult:
        """
        Main entry point: recursively search the owner's memory for context relevant to the query.

        Args:
            query: The user's question or message.
            owner_id: The authenticated caller; every source query is scoped to their records.
            conversation_id: The current conversation, required when config.search_scope is "conversation".
            config: Per-call configuration; defaults to the orchestrator's default config.

        Returns:
            RecursiveSearchResult with the ranked, limited context bundle and a trace of the queries run.

        Raises:
            ContextSearchContractError: blank query, missing owner, or conversation scope without a conversation.
        """
        cfg = config or self.default_config
        owner_scope = self._validate_request(query, owner_id, conversation_id, cfg)

        logger.info(
            f"Starting recursive context search: query='{query[:100]}', owner={owner_id}, "
            f"conversation={conversation_id}, config={cfg.model_dump()}"
        )

        state = SearchState()
        current_queries = [query]

        while state.iteration < cfg.max_depth and not state.sufficient:
            state.queries_by_iteration.append(current_queries)

            outcomes = await self._run_round(current_queries, owner_scope, cfg)
            # fan-in point: the round's writes happen only after every search has finished
            for outcome in outcomes:
                for chunk in outcome.chunks:
                    # upsert: identity dedups, last write wins on metadata
                    state.collected[chunk.id] = chunk

            state.iteration += 1

            if outcomes and all(outcome.failed for outcome in outcomes):
                # every source is down; another round would only fail again
                failures = "; ".join(f"{outcome.source.value}: {outcome.error}" for outcome in outcomes)
                state.sufficient = True
                state.reasoning = f"All context sources failed, proceeding without retrieved context ({failures})"
                logger.warning(f"Stopping recursive context search at iteration {state.iteration}: {failures}")
                break

            current_context = rank_and_limit(state.collected.values(), cfg.max_chunks)
            evaluation = await self.evaluator.evaluate(query, current_context, cfg)
            state.sufficient = evaluation.sufficient
            state.reasoning = evaluation.reasoning

            if not state.sufficient and state.iteration < cfg.max_depth:
                current_queries = evaluation.new_queries
                if not current_queries:
                    # evaluator found nothing more to try
                    logger.debug("No more search queries generated, stopping search")
                    break
                logger.debug(f"Generated new search queries at iteration {state.iteration}: {current_queries}")

        final_context = rank_and_limit(state.collected.values(), cfg.max_chunks)
        total_tokens = estimate_tokens(final_context)

        logger.info(
            f"Recursive context search complete: iterations={state.iteration}, chunks={len(final_context)}, "
            f"total_tokens={total_tokens}, sufficient={state.sufficient}"
        )

        return RecursiveSearchResult(
            query=query,
            context=final_context,
            iterations=state.iteration,
            sufficient=state.sufficient,
            search_queries=state.queries_by_iteration,
            total_tokens=total_tokens,
            reasoning=state.reasoning,
        )

    async def _run_round(
        self,
        queries: list[str],
        owner_scope: OwnerScope,
        config: SearchConfig,
    ) -> list[SourceSearchOutcome]:
        """Fans out every (query, source) pair of the round concurrently and joins them."""
        searches = [
            searcher.try_search(search_query, owner_scope, config)
            for search_query in queries
            for searcher in self.searchers
        ]
        return list(await asyncio.gather(*searches))

    @staticmethod
    def _validate_request(
        query: Any,
        owner_id: Any,
        conversation_id: Optional[str],
        config: SearchConfig,
    ) -> OwnerScope:
        """Caller contract checks; these fail loud before any provider call."""
        if not isinstance(query, str) or not query.strip():
            raise ContextSearchContractError("query must be a non-empty string")
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise ContextSearchContractError("owner_id is required to search memory")
        if config.search_scope == SearchScope.CONVERSATION and not conversation_id:
            raise ContextSearchContractError("conversation scope requires a conversation_id")
        return OwnerScope(owner_id=owner_id, conversation_id=conversation_id)
