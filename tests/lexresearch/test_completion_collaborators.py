"""Tests for the text-completion client, query enhancer and analysis generator."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from lexresearch.errors import CollaboratorFailure
from lexresearch.llm.completion import CompletionContext, OpenAICompletionClient
from lexresearch.models import DocumentType, LegalArea, LegalJurisdiction
from lexresearch.tools.analysis import GENERATION_FAILED, AnalysisGenerator
from lexresearch.tools.precedents import extract_precedents
from lexresearch.tools.query_enhancer import QueryEnhancer
from lexresearch.usage import reset_tally, start_tally
from libs.common.settings import Settings

from conftest import FakeCompletion, make_document, make_request


def chat_response(text, prompt_tokens=10, completion_tokens=5):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


def openai_client(create):
    client = MagicMock()
    client.chat.completions.create = create
    return client


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


class TestOpenAICompletionClient:

    @pytest.mark.asyncio
    async def test_returns_stripped_text_and_counts_tokens(self):
        create = AsyncMock(return_value=chat_response("  enhanced query  "))
        client = OpenAICompletionClient(Settings(app_env="test"), client=openai_client(create))

        tally, token = start_tally()
        try:
            text = await client.complete("prompt", CompletionContext(practice_area="regulatory"))
        finally:
            reset_tally(token)

        assert text == "enhanced query"
        assert tally.total_tokens == 15
        assert tally.calls == 1
        assert tally.providers == ["openai"]
        messages = create.call_args.kwargs["messages"]
        assert "practice area: regulatory" in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "prompt"}

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        create = AsyncMock(side_effect=[connection_error(), chat_response("ok")])
        settings = Settings(app_env="test", completion_max_attempts=2)
        client = OpenAICompletionClient(settings, client=openai_client(create))

        assert await client.complete("prompt", CompletionContext()) == "ok"
        assert create.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_raises_collaborator_failure(self):
        create = AsyncMock(side_effect=connection_error())
        settings = Settings(app_env="test", completion_max_attempts=1)
        client = OpenAICompletionClient(settings, client=openai_client(create))

        with pytest.raises(CollaboratorFailure) as exc_info:
            await client.complete("prompt", CompletionContext())
        assert exc_info.value.collaborator == "text_completion"

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        create = AsyncMock(return_value=SimpleNamespace(choices=[], usage=None))
        client = OpenAICompletionClient(Settings(app_env="test"), client=openai_client(create))

        with pytest.raises(CollaboratorFailure):
            await client.complete("prompt", CompletionContext())


class TestQueryEnhancer:

    @pytest.mark.asyncio
    async def test_uses_first_line_without_label(self):
        completion = FakeCompletion('Enhanced query: "personal data processing obligations"\nextra notes')
        enhancer = QueryEnhancer(completion)

        enhanced = await enhancer.enhance("data protection", [LegalArea.REGULATORY])

        assert enhanced == "personal data processing obligations"
        assert "regulatory" in completion.prompts[0]

    @pytest.mark.asyncio
    async def test_failure_returns_original(self, failing_completion):
        enhancer = QueryEnhancer(failing_completion)
        assert await enhancer.enhance("data protection", [LegalArea.REGULATORY]) == "data protection"

    @pytest.mark.asyncio
    async def test_empty_response_returns_original(self):
        enhancer = QueryEnhancer(FakeCompletion("   \n  "))
        assert await enhancer.enhance("data protection", [LegalArea.REGULATORY]) == "data protection"


class TestAnalysisGenerator:

    @pytest.fixture
    def documents(self):
        return [
            make_document("a", document_type=DocumentType.CASE_LAW, excerpt="Consent is required."),
            make_document("b", jurisdiction=LegalJurisdiction.KENYA),
        ]

    @pytest.mark.asyncio
    async def test_structured_response(self, documents):
        completion = FakeCompletion(
            '```json\n{"summary": "Both jurisdictions require consent.", '
            '"key_findings": ["Consent is central"], "jurisdictional_notes": ["Kenya has a regulator"], '
            '"recommended_actions": ["Review policies"], "research_gaps": [], "confidence_level": 0.9}\n```'
        )
        generator = AnalysisGenerator(completion)

        analysis = await generator.analyze(documents, extract_precedents(documents), make_request())

        assert analysis.summary == "Both jurisdictions require consent."
        assert analysis.key_findings == ["Consent is central"]
        assert analysis.confidence_level == 0.9
        assert "Documents Found: 2" in completion.prompts[0]
        assert "Precedents Found: 1" in completion.prompts[0]

    @pytest.mark.asyncio
    async def test_unstructured_response_becomes_summary(self, documents):
        generator = AnalysisGenerator(FakeCompletion("Consent is required in both jurisdictions."))

        analysis = await generator.analyze(documents, [], make_request())

        assert analysis.summary == "Consent is required in both jurisdictions."
        assert analysis.confidence_level == 0.6
        assert "Unstructured analysis response" in analysis.limitations

    @pytest.mark.asyncio
    async def test_failure_degrades(self, documents, failing_completion):
        analysis = await AnalysisGenerator(failing_completion).analyze(documents, [], make_request())

        assert analysis.confidence_level == 0.5
        assert analysis.limitations == [GENERATION_FAILED]
        assert analysis.key_findings == []

    @pytest.mark.asyncio
    async def test_out_of_range_confidence_clamped(self, documents):
        generator = AnalysisGenerator(FakeCompletion('{"summary": "s", "confidence_level": 7}'))
        assert (await generator.analyze(documents, [], make_request())).confidence_level == 1.0
