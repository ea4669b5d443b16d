"""
Tests for the per-source searchers: owner isolation, conversation scoping, chunk normalization,
entry recency ordering, the owner backstop, and best-effort degradation on failure.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from lucid_recall.memory.context_search.errors import ContextSearchContractError
from lucid_recall.memory.context_search.searchers import (
    EntrySearcher,
    FactSearcher,
    SummarySearcher,
    TurnSearcher,
    build_default_searchers,
)
from lucid_recall.memory.context_search.similarity_store import SimilarityRecord, recency_score
from lucid_recall.memory.context_search.types import ChunkSource, OwnerScope, SearchConfig, SearchScope

from conftest import EMBEDDING_DIM, InMemorySimilarityStore, StoredRecord, unit

QUERY = "pizza shop"
NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def store(fake_embedding_client):
    # the query points along axis 0; records are placed at known angles from it
    fake_embedding_client.vectors[QUERY] = unit(0)
    return InMemorySimilarityStore()


def near(weight: float) -> list[float]:
    """Vector whose cosine similarity to unit(0) is exactly `weight`."""
    vector = [0.0] * EMBEDDING_DIM
    vector[0] = weight
    vector[1] = (1 - weight ** 2) ** 0.5
    return vector


class TestOwnerScoping:

    @pytest.mark.asyncio
    async def test_never_returns_other_owners_records(self, query_embedder, store):
        store.add(ChunkSource.FACT, StoredRecord("1", "owner-a", "A likes pizza", near(0.6)))
        store.add(ChunkSource.FACT, StoredRecord("2", "owner-b", "B loves pizza shops", near(0.99)))
        searcher = FactSearcher(query_embedder, store)

        chunks = await searcher.search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())

        assert [c.id for c in chunks] == ["fact_1"]

    @pytest.mark.asyncio
    async def test_blank_owner_is_a_contract_error(self, query_embedder, store):
        searcher = FactSearcher(query_embedder, store)
        with pytest.raises(ContextSearchContractError):
            await searcher.try_search(QUERY, OwnerScope(owner_id="  "), SearchConfig())
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_conversation_scope_narrows_turns_only(self, query_embedder, store):
        store.add(ChunkSource.TURN, StoredRecord("1", "owner-a", "in this chat", near(0.8), conversation_id="c1"))
        store.add(ChunkSource.TURN, StoredRecord("2", "owner-a", "in another chat", near(0.9), conversation_id="c2"))
        store.add(ChunkSource.FACT, StoredRecord("3", "owner-a", "fact", near(0.7)))
        config = SearchConfig(search_scope=SearchScope.CONVERSATION)
        scope = OwnerScope(owner_id="owner-a", conversation_id="c1")

        turns = await TurnSearcher(query_embedder, store).search(QUERY, scope, config)
        facts = await FactSearcher(query_embedder, store).search(QUERY, scope, config)

        assert [c.id for c in turns] == ["turn_1"]
        assert [c.id for c in facts] == ["fact_3"]

    @pytest.mark.asyncio
    async def test_user_scope_searches_every_conversation(self, query_embedder, store):
        store.add(ChunkSource.TURN, StoredRecord("1", "owner-a", "in this chat", near(0.8), conversation_id="c1"))
        store.add(ChunkSource.TURN, StoredRecord("2", "owner-a", "in another chat", near(0.9), conversation_id="c2"))
        scope = OwnerScope(owner_id="owner-a", conversation_id="c1")

        turns = await TurnSearcher(query_embedder, store).search(QUERY, scope, SearchConfig())

        assert [c.id for c in turns] == ["turn_2", "turn_1"]

    @pytest.mark.asyncio
    async def test_conversation_scope_without_conversation_id_fails_fast(self, query_embedder, store):
        config = SearchConfig(search_scope=SearchScope.CONVERSATION)
        with pytest.raises(ContextSearchContractError):
            await TurnSearcher(query_embedder, store).try_search(QUERY, OwnerScope(owner_id="owner-a"), config)


class TestChunkNormalization:

    @pytest.mark.asyncio
    async def test_ids_are_source_prefixed(self, query_embedder, store):
        for source in ChunkSource:
            store.add(source, StoredRecord("7", "owner-a", f"{source.value} content", near(0.9)))
        scope = OwnerScope(owner_id="owner-a")

        ids = []
        for searcher in build_default_searchers(query_embedder, store):
            ids.extend(c.id for c in await searcher.search(QUERY, scope, SearchConfig()))

        assert ids == ["turn_7", "fact_7", "entry_7", "summary_7"]

    @pytest.mark.asyncio
    async def test_min_similarity_filters(self, query_embedder, store):
        store.add(ChunkSource.FACT, StoredRecord("1", "owner-a", "close", near(0.5)))
        store.add(ChunkSource.FACT, StoredRecord("2", "owner-a", "far", near(0.3)))
        chunks = await FactSearcher(query_embedder, store).search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())
        assert [c.id for c in chunks] == ["fact_1"]

    @pytest.mark.asyncio
    async def test_per_source_limits(self, query_embedder, store):
        for i in range(12):
            store.add(ChunkSource.FACT, StoredRecord(str(i), "owner-a", "fact", near(0.9)))
            store.add(ChunkSource.SUMMARY, StoredRecord(str(i), "owner-a", "summary", near(0.9)))
        scope = OwnerScope(owner_id="owner-a")

        facts = await FactSearcher(query_embedder, store).search(QUERY, scope, SearchConfig())
        summaries = await SummarySearcher(query_embedder, store).search(QUERY, scope, SearchConfig())

        assert len(facts) == 10
        assert len(summaries) == 5

    @pytest.mark.asyncio
    async def test_summary_renders_both_perspectives(self, query_embedder, store):
        store.add(ChunkSource.SUMMARY, StoredRecord(
            "1", "owner-a", "raw summary", near(0.9), conversation_id="c1",
            attributes={"user_perspective": "wants to open a shop", "model_perspective": "suggested a plan"},
        ))
        chunks = await SummarySearcher(query_embedder, store).search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())
        assert chunks[0].content == "User perspective: wants to open a shop\nModel perspective: suggested a plan"
        assert chunks[0].metadata["conversation_id"] == "c1"

    @pytest.mark.asyncio
    async def test_turn_metadata_carries_role(self, query_embedder, store):
        store.add(ChunkSource.TURN, StoredRecord("1", "owner-a", "hi", near(0.9), conversation_id="c1", attributes={"role": "user"}))
        chunks = await TurnSearcher(query_embedder, store).search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())
        assert chunks[0].metadata["role"] == "user"
        assert chunks[0].source == ChunkSource.TURN


class TestEntryRecency:

    def test_recency_score_decays_with_age(self):
        assert recency_score(0.8, NOW, NOW) == pytest.approx(0.8)
        assert recency_score(0.8, NOW - timedelta(days=60), NOW) == pytest.approx(0.4)
        assert recency_score(0.8, None, NOW) == pytest.approx(0.8)

    def test_recency_score_handles_naive_and_future_timestamps(self):
        naive_now = NOW.replace(tzinfo=None)
        assert recency_score(0.6, naive_now - timedelta(days=60), NOW) == pytest.approx(0.3)
        assert recency_score(0.6, NOW + timedelta(days=5), NOW) == pytest.approx(0.6)

    @pytest.mark.asyncio
    async def test_recent_entries_win_selection_but_keep_raw_similarity(self, query_embedder, fake_embedding_client):
        fake_embedding_client.vectors[QUERY] = unit(0)
        store = InMemorySimilarityStore(clock=lambda: NOW)
        for i in range(5):
            store.add(ChunkSource.ENTRY, StoredRecord(f"old{i}", "owner-a", "old", near(0.9), created_at=NOW - timedelta(days=600)))
        store.add(ChunkSource.ENTRY, StoredRecord("new", "owner-a", "new", near(0.6), created_at=NOW - timedelta(days=1)))

        chunks = await EntrySearcher(query_embedder, store).search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())

        assert len(chunks) == 5
        assert chunks[0].id == "entry_new"
        assert chunks[0].similarity == pytest.approx(0.6)
        assert store.calls[-1][2] == 5

    @pytest.mark.asyncio
    async def test_fresh_entry_beats_a_crowd_of_older_more_similar_entries(self, query_embedder, fake_embedding_client):
        # more old entries than any fixed candidate pool, all more similar than the fresh one
        fake_embedding_client.vectors[QUERY] = unit(0)
        store = InMemorySimilarityStore(clock=lambda: NOW)
        for i in range(20):
            store.add(ChunkSource.ENTRY, StoredRecord(f"old{i}", "owner-a", "old", near(0.9), created_at=NOW - timedelta(days=600)))
        store.add(ChunkSource.ENTRY, StoredRecord("new", "owner-a", "new", near(0.6), created_at=NOW - timedelta(days=1)))

        chunks = await EntrySearcher(query_embedder, store).search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())

        assert [chunk.id for chunk in chunks][0] == "entry_new"
        assert chunks[0].similarity == pytest.approx(0.6)
        assert all(chunk.similarity == pytest.approx(0.9) for chunk in chunks[1:])


class TestOwnerBackstop:

    @pytest.mark.asyncio
    async def test_records_of_another_owner_are_dropped(self, query_embedder):
        class LeakyStore:
            async def search(self, **kwargs):
                return [
                    SimilarityRecord(record_id="1", owner_id="owner-b", content="not yours", similarity=0.95),
                    SimilarityRecord(record_id="2", owner_id="owner-a", content="yours", similarity=0.8),
                ]

        chunks = await FactSearcher(query_embedder, LeakyStore()).search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())

        assert [chunk.id for chunk in chunks] == ["fact_2"]
        assert chunks[0].content == "yours"


class TestFailureDegradation:

    @pytest.mark.asyncio
    async def test_store_error_degrades_to_empty_outcome(self, query_embedder):
        class BrokenStore:
            async def search(self, **kwargs):
                raise ConnectionError("db down")

        outcome = await FactSearcher(query_embedder, BrokenStore()).try_search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())

        assert outcome.failed
        assert outcome.chunks == []
        assert "db down" in outcome.error

    @pytest.mark.asyncio
    async def test_search_returns_empty_list_on_failure(self, query_embedder):
        class BrokenStore:
            async def search(self, **kwargs):
                raise RuntimeError("boom")

        assert await FactSearcher(query_embedder, BrokenStore()).search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig()) == []

    @pytest.mark.asyncio
    async def test_timeout_degrades_to_empty_outcome(self, query_embedder):
        class SlowStore:
            async def search(self, **kwargs):
                await asyncio.sleep(1)
                return []

        config = SearchConfig(source_timeout_seconds=0.01)
        outcome = await FactSearcher(query_embedder, SlowStore()).try_search(QUERY, OwnerScope(owner_id="owner-a"), config)

        assert outcome.failed
        assert "timed out" in outcome.error

    @pytest.mark.asyncio
    async def test_no_matches_is_not_a_failure(self, query_embedder, store):
        outcome = await FactSearcher(query_embedder, store).try_search(QUERY, OwnerScope(owner_id="owner-a"), SearchConfig())
        assert not outcome.failed
        assert outcome.chunks == []
