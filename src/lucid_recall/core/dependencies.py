from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine
from lucid_recall.memory.context_search.orchestrator import RecursiveContextSearch
from lucid_recall.memory.main_retriever import MainRetriever

# This is the location to conveniently return any app lifetime dependencies to be used in routes
def get_main_db_engine(request: Request) -> AsyncEngine:
    """
    FastAPI dependency to get the shared main DB engine from the application state.
    """
    return request.app.state.main_db_engine

def get_context_search(request: Request) -> RecursiveContextSearch:
    return request.app.state.context_search

def get_main_retriever(request: Request) -> MainRetriever:
    return request.app.state.main_retriever
