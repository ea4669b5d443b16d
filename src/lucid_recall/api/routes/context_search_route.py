# routes exposing the recursive context search to the chat-answering flow

import time
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from lucid_recall.common.logging.logger import logger

# dependencies
from lucid_recall.core.dependencies import get_main_retriever
from lucid_recall.memory.main_retriever import MainRetriever
from lucid_recall.memory.context_search.errors import ContextSearchContractError
from lucid_recall.memory.context_search.formatting import format_context_for_prompt
from lucid_recall.memory.context_search.types import SearchConfig

# request and response models
from lucid_recall.api.request_models.context_search import ContextSearchRequest, RecallRequest
from lucid_recall.api.response_models.context_search import ContextSearchResponse, RecallResponse

router = APIRouter(prefix="/context-search", tags=["Context Search"])

def _resolve_config(main_retriever: MainRetriever, overrides: Optional[dict[str, Any]]) -> SearchConfig:
    """Merges request overrides onto the service defaults; invalid overrides are a 422."""
    try:
        return main_retriever.context_search.default_config.with_overrides(overrides)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Invalid search config: {e}")

@router.post("/search", response_model=ContextSearchResponse, response_model_by_alias=True)
async def search_context(
    request: ContextSearchRequest,
    main_retriever: MainRetriever = Depends(get_main_retriever),
):
    """
    Runs the recursive search for the query, skipping the trigger heuristic.
    """
    config = _resolve_config(main_retriever, request.config)
    start = time.perf_counter()
    try:
        result = await main_retriever.search(
            query=request.query,
            owner_id=request.owner_id,
            conversation_id=request.conversation_id,
            config=config,
        )
    except ContextSearchContractError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Context search for owner {request.owner_id} took {elapsed_ms:.2f}ms, {len(result.context)} chunk(s)")
    return ContextSearchResponse(
        result=result,
        prompt_context=format_context_for_prompt(result),
        elapsed_ms=round(elapsed_ms, 2),
    )

@router.post("/recall", response_model=RecallResponse, response_model_by_alias=True)
async def recall_context(
    request: RecallRequest,
    main_retriever: MainRetriever = Depends(get_main_retriever),
):
    """
    Chat flow entry: searches only when the message looks like it references past context.
    """
    config = _resolve_config(main_retriever, request.config)
    start = time.perf_counter()
    try:
        recalled = await main_retriever.recall_for_message(
            message=request.message,
            owner_id=request.owner_id,
            conversation_id=request.conversation_id,
            config=config,
        )
    except ContextSearchContractError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"Recall for owner {request.owner_id} took {elapsed_ms:.2f}ms (triggered: {recalled.triggered})")
    return RecallResponse(
        triggered=recalled.triggered,
        trigger_reason=recalled.trigger_reason,
        result=recalled.result,
        prompt_context=recalled.prompt_context,
        elapsed_ms=round(elapsed_ms, 2),
    )
