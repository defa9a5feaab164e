"""Research orchestrator: the ``research()`` entry point.

A cache layer wraps a LangGraph state machine:

    01_enhance_query -> 02_search_parallel -> 03_deduplicate -> 04_rank
        -> 05_enrich -> 06_aggregate -> END

Validation is the only fatal input stage. Collaborator failures degrade
inside their stage; unexpected errors in deduplication, ranking, enrichment
or aggregation surface as ``PipelineFailure``. A run that exceeds its
deadline raises ``DeadlineExceeded`` and nothing is cached.
"""

import asyncio
import time
import uuid
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from langgraph.graph import END, StateGraph

from lexresearch.errors import DeadlineExceeded, PipelineFailure
from lexresearch.llm.completion import OpenAICompletionClient, TextCompletionClient
from lexresearch.models import (
    ResearchRequest,
    ResearchResult,
    ResultMetadata,
    SemanticSearchOptions,
    SourceDescriptor,
    WeightFactors,
)
from lexresearch.observability.logging import bind_request, configure_logging, unbind_request
from lexresearch.orchestrators.search_orchestrator import SearchOrchestrator
from lexresearch.registry import SourceRegistry, build_default_registry
from lexresearch.schemas.research_state import ResearchState
from lexresearch.tools.analysis import AnalysisGenerator
from lexresearch.tools.citations import generate_citations
from lexresearch.tools.precedents import extract_precedents
from lexresearch.tools.quality import (
    compute_quality_metrics,
    generate_suggestions,
    overall_confidence,
    related_queries,
)
from lexresearch.tools.query_enhancer import QueryEnhancer
from lexresearch.tools.ranking import DocumentRanker, deduplicate
from lexresearch.tools.search_tasks import ComparativeSearchTask, CorpusSearchTask, JurisdictionSearchTask
from lexresearch.usage import LoggingUsageRecorder, UsageEvent, UsageRecorder, reset_tally, start_tally
from lexresearch.validation import validate_request
from libs.caching.research_cache import ResearchCache, compute_fingerprint
from libs.common.settings import Settings, get_settings

logger = structlog.get_logger(__name__)


def new_request_id() -> str:
    return f"research_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class ResearchOrchestrator:
    """Runs one research request end to end.

    All collaborators are injected; ``build_research_orchestrator`` wires
    the default production set.
    """

    def __init__(
        self,
        search_task: JurisdictionSearchTask,
        completion: TextCompletionClient,
        comparative_task: Optional[ComparativeSearchTask] = None,
        registry: Optional[SourceRegistry] = None,
        cache: Optional[ResearchCache] = None,
        usage_recorder: Optional[UsageRecorder] = None,
        settings: Optional[Settings] = None,
        ranker: Optional[DocumentRanker] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or build_default_registry()
        self.search_task = search_task
        self.comparative_task = comparative_task
        self.completion = completion
        self.cache = cache
        self.usage_recorder = usage_recorder or LoggingUsageRecorder()
        self.ranker = ranker or DocumentRanker()

        self.searcher = SearchOrchestrator(search_task, comparative_task)
        self.enhancer = QueryEnhancer(completion)
        self.analyzer = AnalysisGenerator(completion)
        self.weights = WeightFactors(
            relevance=self.settings.ranking_relevance_weight,
            recency=self.settings.ranking_recency_weight,
            authority=self.settings.ranking_authority_weight,
            jurisdiction=self.settings.ranking_jurisdiction_weight,
        )

        self.graph = self._build_graph()

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        graph = StateGraph(ResearchState)

        graph.add_node("01_enhance_query", self._enhance_query_node)
        graph.add_node("02_search_parallel", self._search_parallel_node)
        graph.add_node("03_deduplicate", self._deduplicate_node)
        graph.add_node("04_rank", self._rank_node)
        graph.add_node("05_enrich", self._enrich_node)
        graph.add_node("06_aggregate", self._aggregate_node)

        graph.set_entry_point("01_enhance_query")
        graph.add_edge("01_enhance_query", "02_search_parallel")
        graph.add_edge("02_search_parallel", "03_deduplicate")
        graph.add_edge("03_deduplicate", "04_rank")
        graph.add_edge("04_rank", "05_enrich")
        graph.add_edge("05_enrich", "06_aggregate")
        graph.add_edge("06_aggregate", END)

        compiled_graph = graph.compile()
        logger.info("Research graph compiled successfully")
        return compiled_graph

    def build_options(self, request: ResearchRequest) -> SemanticSearchOptions:
        """Per-request search hints: configured weights plus request constraints."""
        return SemanticSearchOptions(
            enable_vector_search=request.semantic_search,
            similarity_threshold=request.confidence_threshold,
            max_candidates=request.max_results,
            include_conceptual_matches=request.semantic_search,
            weight_factors=self.weights,
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def research(
        self,
        payload: Union[ResearchRequest, Mapping[str, Any]],
        *,
        deadline_seconds: Optional[float] = None,
    ) -> ResearchResult:
        """Validate, serve from cache or run the pipeline, then cache and record usage.

        Raises:
            ValidationError: the request is invalid; no work was done.
            PipelineFailure: an internal stage failed unexpectedly.
            DeadlineExceeded: the deadline elapsed; nothing was cached.
        """
        request = validate_request(payload)
        if deadline_seconds is None:
            deadline_seconds = self.settings.research_deadline_seconds

        request_id = new_request_id()
        bind_request(request_id)
        try:
            fingerprint = compute_fingerprint(request)
            logger.info(
                "Research started",
                query_preview=request.query[:50],
                jurisdictions=[j.value for j in request.jurisdictions],
                max_results=request.max_results,
                fingerprint=fingerprint[:16],
            )

            if self.cache is not None:
                cached = await self.cache.get(fingerprint)
                if cached is not None:
                    return cached.model_copy(
                        update={"metadata": cached.metadata.model_copy(update={"caching_used": True})}
                    )

            tally, token = start_tally()
            try:
                state = ResearchState(
                    request_id=request_id,
                    request=request,
                    options=self.build_options(request),
                    started_at=time.time(),
                )
                result = await self._run(state, deadline_seconds)
            finally:
                reset_tally(token)

            result = result.model_copy(
                update={"metadata": result.metadata.model_copy(update={"fingerprint": fingerprint})}
            )

            if self.cache is not None:
                await self.cache.put(fingerprint, result)

            await self._record_usage(result, tally)

            logger.info("Research completed", execution_time_ms=result.execution_time_ms, **result.summary())
            return result
        finally:
            unbind_request()

    async def _run(self, state: ResearchState, deadline_seconds: Optional[float]) -> ResearchResult:
        if deadline_seconds is None:
            final = await self.graph.ainvoke(state)
        else:
            try:
                final = await asyncio.wait_for(self.graph.ainvoke(state), timeout=deadline_seconds)
            except asyncio.TimeoutError as e:
                logger.warning("Research deadline exceeded, result discarded", deadline_seconds=deadline_seconds)
                raise DeadlineExceeded(deadline_seconds) from e
        # LangGraph returns the channel values as a dict
        if isinstance(final, dict):
            final = state.model_copy(update=final)
        return final.result

    async def _record_usage(self, result: ResearchResult, tally) -> None:
        event = UsageEvent(
            request_id=result.request_id,
            provider=self.completion.provider,
            model=self.completion.model,
            tokens_used=tally.total_tokens,
            cost=tally.total_tokens / 1000 * self.settings.cost_per_1k_tokens,
            processing_time_ms=result.execution_time_ms,
            completion_calls=tally.calls,
            success=True,
        )
        try:
            await asyncio.wait_for(
                self.usage_recorder.record(event),
                timeout=self.settings.usage_record_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Usage recording timed out", timeout_seconds=self.settings.usage_record_timeout_seconds
            )
        except Exception as e:
            logger.warning("Usage recording failed", error=str(e), error_type=type(e).__name__)

    # ------------------------------------------------------------------
    # Graph nodes
    # ------------------------------------------------------------------

    async def _enhance_query_node(self, state: ResearchState) -> Dict[str, Any]:
        """01_enhance_query: never fails, falls back to the original query."""
        start_time = time.time()
        enhanced = await self.enhancer.enhance(state.request.query, state.request.legal_areas)
        logger.info(
            "01_enhance_query completed",
            enhanced=enhanced != state.request.query,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return {"enhanced_query": enhanced}

    async def _search_parallel_node(self, state: ResearchState) -> Dict[str, Any]:
        """02_search_parallel: isolate-and-collect fan-out."""
        query = state.enhanced_query or state.request.query
        outcome = await self.searcher.search(query, state.request, state.options)

        providers: List[str] = [self.search_task.name]
        if outcome.comparative_ran and self.comparative_task is not None:
            providers.append(self.comparative_task.name)
        providers.append(self.completion.provider)

        return {
            "candidates": outcome.documents,
            "failed_jurisdictions": outcome.failed_jurisdictions,
            "comparative_ran": outcome.comparative_ran,
            "providers_used": providers,
        }

    async def _deduplicate_node(self, state: ResearchState) -> Dict[str, Any]:
        """03_deduplicate"""
        try:
            unique = deduplicate(state.candidates)
        except Exception as e:
            logger.error("03_deduplicate failed", error=str(e), error_type=type(e).__name__)
            raise PipelineFailure("03_deduplicate", e) from e
        return {"unique_documents": unique}

    async def _rank_node(self, state: ResearchState) -> Dict[str, Any]:
        """04_rank: composite score, stable sort, truncate to max_results."""
        try:
            ranked = self.ranker.rank_with_scores(state.unique_documents, state.request, state.options)
        except Exception as e:
            logger.error("04_rank failed", error=str(e), error_type=type(e).__name__)
            raise PipelineFailure("04_rank", e) from e
        return {
            "ranked_documents": [doc for doc, _ in ranked],
            "ranked_scores": [score for _, score in ranked],
        }

    async def _enrich_node(self, state: ResearchState) -> Dict[str, Any]:
        """05_enrich: citations and precedents, plus the analysis when requested."""
        request = state.request
        documents = state.ranked_documents
        start_time = time.time()
        try:
            citations = generate_citations(documents, request.citation_format) if request.include_citations else []
            precedents = extract_precedents(documents, request.include_related_cases)
        except Exception as e:
            logger.error("05_enrich failed", error=str(e), error_type=type(e).__name__)
            raise PipelineFailure("05_enrich", e) from e

        analysis = None
        if request.include_analysis:
            analysis = await self.analyzer.analyze(documents, precedents, request)

        logger.info(
            "05_enrich completed",
            citations=len(citations),
            precedents=len(precedents),
            analysis=analysis is not None,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return {"citations": citations, "precedents": precedents, "analysis": analysis}

    async def _aggregate_node(self, state: ResearchState) -> Dict[str, Any]:
        """06_aggregate: confidence, quality metrics and result assembly."""
        try:
            result = self._assemble(state)
        except Exception as e:
            logger.error("06_aggregate failed", error=str(e), error_type=type(e).__name__)
            raise PipelineFailure("06_aggregate", e) from e
        return {"result": result, "contributing_sources": result.sources}

    def _assemble(self, state: ResearchState) -> ResearchResult:
        request = state.request
        documents = state.ranked_documents

        sources: List[SourceDescriptor] = []
        for doc in documents:
            if doc.source not in sources:
                sources.append(doc.source)

        metrics = compute_quality_metrics(documents, state.ranked_scores, request.jurisdictions, self.ranker.now())
        strategy = ["semantic" if request.semantic_search else "keyword", "jurisdictional"]
        if state.comparative_ran:
            strategy.append("comparative")

        return ResearchResult(
            request_id=state.request_id,
            request=request,
            query=request.query,
            enhanced_query=state.enhanced_query or request.query,
            execution_time_ms=max(0, int((time.time() - state.started_at) * 1000)),
            total_documents=len(documents),
            documents=documents,
            citations=state.citations,
            precedents=state.precedents,
            analysis=state.analysis,
            overall_confidence=overall_confidence(documents, state.precedents),
            sources=sources,
            suggestions=generate_suggestions(request, documents, metrics, len(state.unique_documents)),
            related_queries=related_queries(request),
            metadata=ResultMetadata(
                search_strategy=strategy,
                providers_used=state.providers_used,
                caching_used=False,
                quality_score=metrics.quality_score,
                completeness=metrics.completeness,
                freshness=metrics.freshness,
                diversity_score=metrics.diversity_score,
                sources_failed=state.failed_jurisdictions,
            ),
        )


def build_research_orchestrator(
    settings: Optional[Settings] = None,
    search_task: Optional[JurisdictionSearchTask] = None,
    completion: Optional[TextCompletionClient] = None,
) -> ResearchOrchestrator:
    """Wire the default collaborators: corpus search, OpenAI completion, Redis cache."""
    settings = settings or get_settings()
    configure_logging(settings)
    registry = build_default_registry()
    search_task = search_task or CorpusSearchTask(registry, settings.corpus_path)
    return ResearchOrchestrator(
        search_task=search_task,
        completion=completion or OpenAICompletionClient(settings),
        comparative_task=ComparativeSearchTask(search_task, registry),
        registry=registry,
        cache=ResearchCache(settings=settings) if settings.cache_enabled else None,
        usage_recorder=LoggingUsageRecorder(),
        settings=settings,
    )
