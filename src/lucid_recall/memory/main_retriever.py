# the main memory retriever layer/interface for the chat-answering flow

from typing import Optional
from pydantic import BaseModel

from lucid_recall.memory.context_search.formatting import format_context_for_prompt
from lucid_recall.memory.context_search.orchestrator import RecursiveContextSearch
from lucid_recall.memory.context_search.trigger import should_use_recursive_search
from lucid_recall.memory.context_search.types import RecursiveSearchResult, SearchConfig

from lucid_recall.common.logging.logger import logger

class RecalledContext(BaseModel):
    """What the chat flow gets back for one user message."""
    triggered: bool
    trigger_reason: str
    result: Optional[RecursiveSearchResult] = None
    prompt_context: str = ""

class MainRetriever():
    """
    Entry point the chat-answering flow calls for long-term memory.
    - Gates the expensive recursive search behind the lexical trigger heuristic.
    - Returns the search result plus a ready-to-inject prompt block.

    Most turns do not reference past context, so most calls return without touching any provider.
    """

    def __init__(self, context_search: RecursiveContextSearch):
        self.context_search = context_search

    async def recall_for_message(
        self,
        message: str,
        owner_id: str,
        conversation_id: Optional[str] = None,
        config: Optional[SearchConfig] = None,
    ) -> RecalledContext:
        decision = should_use_recursive_search(message)
        if not decision.should_search:
            return RecalledContext(triggered=False, trigger_reason=decision.reason)

        logger.info(f"Recursive search triggered for owner {owner_id}: {decision.reason}")
        result = await self.context_search.search_recursively(
            query=message,
            owner_id=owner_id,
            conversation_id=conversation_id,
            config=config,
        )
        return RecalledContext(
            triggered=True,
            trigger_reason=decision.reason,
            result=result,
            prompt_context=format_context_for_prompt(result),
        )

    async def search(
        self,
        query: str,
        owner_id: str,
        conversation_id: Optional[str] = None,
        config: Optional[SearchConfig] = None,
    ) -> RecursiveSearchResult:
        """Runs the recursive search directly, skipping the trigger heuristic (explicit recall requests)."""
        return await self.context_search.search_recursively(
            query=query,
            owner_id=owner_id,
            conversation_id=conversation_id,
            config=config,
        )
