"""
Tests for the sufficiency evaluator: short-circuits, strict parse with fallback, fail-open paths,
and follow-up query cleaning.
"""

import json

import pytest

from lucid_recall.memory.context_search.evaluator import (
    ParseFailure,
    SufficiencyEvaluationLLMOutput,
    SufficiencyEvaluator,
    parse_sufficiency_output,
    render_context_for_evaluation,
)
from lucid_recall.common.services.llm_service.llm_client import TypedLLMClient, LLMProvider
from lucid_recall.memory.context_search.types import ChunkSource, SearchConfig

from conftest import FakeLLMClient, chunk

QUERY = "what did we discuss about the pizza shop idea"


def judgment(sufficient: bool, queries=None, reasoning="because") -> str:
    return json.dumps({
        "sufficient": sufficient,
        "reasoning": reasoning,
        "missing_information": [],
        "new_search_queries": queries or [],
    })


class TestParseSufficiencyOutput:

    def test_plain_json(self):
        parsed = parse_sufficiency_output(judgment(True))
        assert isinstance(parsed, SufficiencyEvaluationLLMOutput)
        assert parsed.sufficient is True

    def test_markdown_fenced_json(self):
        parsed = parse_sufficiency_output(f"```json\n{judgment(False, ['a'])}\n```")
        assert parsed.sufficient is False
        assert parsed.new_search_queries == ["a"]

    def test_json_embedded_in_prose(self):
        parsed = parse_sufficiency_output(f"Here is my answer: {judgment(True)} Hope that helps.")
        assert parsed.sufficient is True

    def test_null_optional_fields_are_accepted(self):
        parsed = parse_sufficiency_output('{"sufficient": false, "reasoning": null, "new_search_queries": null}')
        assert parsed.sufficient is False
        assert parsed.new_search_queries is None

    @pytest.mark.parametrize("raw", [
        "",
        None,
        "not json at all",
        '{"reasoning": "missing the verdict"}',
        '{"sufficient": "yes"}',
        '{"sufficient": true',
    ])
    def test_unparseable(self, raw):
        assert parse_sufficiency_output(raw) is ParseFailure.UNPARSEABLE


class TestRenderContext:

    def test_one_based_index_with_source_and_similarity(self):
        rendered = render_context_for_evaluation([
            chunk("turn_1", 0.812, content="we talked pizza", source=ChunkSource.TURN),
            chunk("fact_1", 0.5, content="likes dough"),
        ])
        assert rendered == "[1] (turn, similarity=0.81): we talked pizza\n\n[2] (fact, similarity=0.50): likes dough"


class TestSufficiencyEvaluator:

    @pytest.mark.asyncio
    async def test_empty_context_retries_original_query_without_llm(self, llm_client, fake_llm_client):
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, [], SearchConfig())
        assert evaluation.sufficient is False
        assert evaluation.reasoning == "No context found"
        assert evaluation.new_queries == [QUERY]
        assert fake_llm_client.calls == []

    @pytest.mark.asyncio
    async def test_token_budget_short_circuits(self, llm_client, fake_llm_client):
        chunks = [chunk("fact_1", 0.9, content="a" * 400)]
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, chunks, SearchConfig(target_token_budget=100))
        assert evaluation.sufficient is True
        assert evaluation.reasoning == "Token budget reached (100 tokens)"
        assert fake_llm_client.calls == []

    @pytest.mark.asyncio
    async def test_insufficient_judgment_returns_follow_up_queries(self, llm_client, fake_llm_client):
        fake_llm_client.responses = [judgment(False, ["pizza shop financial plan", "pizza shop location decision"])]
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, [chunk("turn_1", 0.8)], SearchConfig())
        assert evaluation.sufficient is False
        assert evaluation.new_queries == ["pizza shop financial plan", "pizza shop location decision"]

    @pytest.mark.asyncio
    async def test_prompt_contents_and_output_budget(self, llm_client, fake_llm_client):
        fake_llm_client.responses = [judgment(True)]
        await SufficiencyEvaluator(llm_client).evaluate(
            QUERY, [chunk("turn_1", 0.8, content="pizza talk")], SearchConfig(evaluation_max_tokens=321)
        )
        call = fake_llm_client.calls[0]
        assert call["max_tokens"] == 321
        assert QUERY in call["user_prompt"]
        assert "pizza talk" in call["user_prompt"]
        assert "1 chunks" in call["user_prompt"]

    @pytest.mark.asyncio
    async def test_sufficient_judgment_drops_queries(self, llm_client, fake_llm_client):
        fake_llm_client.responses = [judgment(True, ["unused"])]
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, [chunk("turn_1", 0.8)], SearchConfig())
        assert evaluation.sufficient is True
        assert evaluation.new_queries == []

    @pytest.mark.asyncio
    async def test_follow_up_queries_are_cleaned_and_capped(self, llm_client, fake_llm_client):
        fake_llm_client.responses = [judgment(False, [" a ", "", "A", "b", "c", "d"])]
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, [chunk("turn_1", 0.8)], SearchConfig(max_follow_up_queries=3))
        assert evaluation.new_queries == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_missing_reasoning_gets_default(self, llm_client, fake_llm_client):
        fake_llm_client.responses = ['{"sufficient": true}']
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, [chunk("turn_1", 0.8)], SearchConfig())
        assert evaluation.reasoning == "No reasoning provided"

    @pytest.mark.asyncio
    async def test_provider_error_fails_open(self, llm_client, fake_llm_client):
        fake_llm_client.responses = [RuntimeError("503 overloaded")]
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, [chunk("turn_1", 0.8)], SearchConfig())
        assert evaluation.sufficient is True
        assert evaluation.reasoning == "Evaluation error: 503 overloaded"
        assert evaluation.new_queries == []

    @pytest.mark.asyncio
    async def test_unparseable_output_fails_open(self, llm_client, fake_llm_client):
        fake_llm_client.responses = ["I think it is probably fine"]
        evaluation = await SufficiencyEvaluator(llm_client).evaluate(QUERY, [chunk("turn_1", 0.8)], SearchConfig())
        assert evaluation.sufficient is True
        assert evaluation.reasoning == "Could not parse evaluation response"

    @pytest.mark.asyncio
    async def test_timeout_fails_open(self):
        slow = FakeLLMClient(responses=[judgment(False, ["more"])], delay=1.0)
        evaluator = SufficiencyEvaluator(TypedLLMClient(provider=LLMProvider.GOOGLE_GENAI, client=slow))
        evaluation = await evaluator.evaluate(QUERY, [chunk("turn_1", 0.8)], SearchConfig(evaluation_timeout_seconds=0.01))
        assert evaluation.sufficient is True
        assert evaluation.reasoning == "Evaluation error: timed out"
