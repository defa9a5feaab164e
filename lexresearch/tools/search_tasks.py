"""Per-jurisdiction and comparative search tasks.

Every adapter implements ``JurisdictionSearchTask`` so the orchestrator can
treat them uniformly. Adapters return candidates only; final ordering is the
ranker's job. ``BaseSearchTask`` applies the request's structural filters and
the per-source hints from ``SemanticSearchOptions``.
"""

from __future__ import annotations

import asyncio
import json
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import httpx
import pydantic
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from lexresearch.errors import CollaboratorFailure
from lexresearch.models import (
    CredibilityRating,
    LegalDocument,
    LegalJurisdiction,
    ResearchRequest,
    SemanticSearchOptions,
    SourceDescriptor,
)
from lexresearch.registry import SourceRegistry
from libs.common.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

CREDIBILITY_CONFIDENCE = {
    CredibilityRating.VERY_HIGH: 0.95,
    CredibilityRating.HIGH: 0.9,
    CredibilityRating.MEDIUM: 0.75,
    CredibilityRating.LOW: 0.5,
    CredibilityRating.UNKNOWN: 0.4,
}


@runtime_checkable
class JurisdictionSearchTask(Protocol):
    """Searches the source(s) of one jurisdiction."""

    name: str

    async def search(
        self,
        query: str,
        jurisdiction: LegalJurisdiction,
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:
        ...


class BaseSearchTask:
    """Shared filtering for concrete adapters; subclasses implement ``_fetch``."""

    name = "base"

    def __init__(self, registry: SourceRegistry):
        self.registry = registry

    async def _fetch(
        self,
        query: str,
        source: SourceDescriptor,
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:  # pragma: no cover
        raise NotImplementedError

    def apply_hints(
        self,
        documents: Sequence[LegalDocument],
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:
        """Drop candidates outside the request's constraints, then cap the count."""
        kept: List[LegalDocument] = []
        for doc in documents:
            if doc.document_type not in request.document_types:
                continue
            if doc.language not in request.languages:
                continue
            if request.date_range and not request.date_range.contains(doc.publication_date):
                continue
            if doc.relevance_score < options.similarity_threshold:
                continue
            kept.append(doc)
        return kept[: options.max_candidates]

    async def search(
        self,
        query: str,
        jurisdiction: LegalJurisdiction,
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:
        source = self.registry.sources_for(jurisdiction)
        start_time = time.time()
        candidates = await self._fetch(query, source, request, options)
        documents = self.apply_hints(candidates, request, options)
        logger.info(
            "Jurisdiction search completed",
            adapter=self.name,
            jurisdiction=jurisdiction.value,
            candidates=len(candidates),
            kept=len(documents),
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return documents


def _tokens(text: str) -> List[str]:
    t = re.sub(r"[^\w\s]", " ", text.lower())
    t = re.sub(r"\s+", " ", t).strip()
    return [w for w in t.split() if len(w) > 2]


class CorpusSearchTask(BaseSearchTask):
    """Keyword search over a local JSONL corpus of legal documents.

    Loads the corpus on first use. Scoring: title match (x3), key terms (x2),
    excerpt/content prefix (x1), normalised by the best attainable score.
    Each row is a ``LegalDocument`` without ``source``, ``relevance_score``
    or (optionally) ``confidence_score``; those are filled in here.
    """

    name = "corpus"

    def __init__(self, registry: SourceRegistry, corpus_path: Optional[str] = None):
        super().__init__(registry)
        self.corpus_path = corpus_path or get_settings().corpus_path
        self._rows: Optional[List[Dict[str, Any]]] = None
        self._load_lock = asyncio.Lock()

    def _load(self) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        if not self.corpus_path:
            logger.warning("No corpus path configured for corpus search")
            return rows
        try:
            with open(Path(self.corpus_path), "r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        rows.append(json.loads(line))
                    except json.JSONDecodeError:
                        logger.warning("Skipping malformed corpus line", line=line_no)
        except FileNotFoundError:
            logger.warning("Corpus file not found", path=self.corpus_path)
        logger.info("Corpus loaded", path=self.corpus_path, documents=len(rows))
        return rows

    async def _ensure_loaded(self) -> List[Dict[str, Any]]:
        async with self._load_lock:
            if self._rows is None:
                self._rows = await asyncio.to_thread(self._load)
        return self._rows

    @staticmethod
    def _score(qtokens: set, row: Dict[str, Any]) -> float:
        title = (row.get("title") or "").lower()
        key_terms = " ".join((row.get("metadata") or {}).get("key_terms") or []).lower()
        text = ((row.get("excerpt") or "") + " " + (row.get("content") or "")[:2000]).lower()
        score = 0.0
        for t in qtokens:
            if t in title:
                score += 3.0
            if t in key_terms:
                score += 2.0
            if t in text:
                score += 1.0
        return min(1.0, score / (6.0 * len(qtokens)))

    async def _fetch(
        self,
        query: str,
        source: SourceDescriptor,
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:
        rows = await self._ensure_loaded()
        qtokens = set(_tokens(query))
        if not qtokens:
            return []

        scored: List[Tuple[float, Dict[str, Any]]] = []
        for row in rows:
            if row.get("jurisdiction") != source.jurisdiction.value:
                continue
            score = self._score(qtokens, row)
            if score > 0:
                scored.append((score, row))
        scored.sort(key=lambda x: x[0], reverse=True)

        documents: List[LegalDocument] = []
        for score, row in scored:
            payload = {
                "confidence_score": CREDIBILITY_CONFIDENCE[source.credibility],
                **row,
                "source": source,
                "relevance_score": round(score, 4),
            }
            try:
                documents.append(LegalDocument.model_validate(payload))
            except pydantic.ValidationError as e:
                logger.warning("Skipping invalid corpus document", doc_id=row.get("id"), error=str(e))
        return documents


class HttpSourceSearchTask(BaseSearchTask):
    """Queries a jurisdiction's remote search API registered in the source registry.

    The endpoint receives a JSON body and must answer with
    ``{"documents": [...]}``, each entry a ``LegalDocument`` without ``source``.
    """

    name = "http"

    def __init__(
        self,
        registry: SourceRegistry,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(registry)
        self.settings = settings or get_settings()
        self._client = client

    async def _post(self, client: httpx.AsyncClient, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.settings.source_max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                response = await client.post(endpoint, json=body)
                response.raise_for_status()
                return response.json()

    async def _fetch(
        self,
        query: str,
        source: SourceDescriptor,
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:
        if not source.api_endpoint:
            raise CollaboratorFailure(self.name, f"No API endpoint configured for {source.id}")

        body = {
            "query": query,
            "jurisdiction": source.jurisdiction.value,
            "legal_areas": [a.value for a in request.legal_areas],
            "document_types": [t.value for t in request.document_types],
            "languages": [lang.value for lang in request.languages],
            "semantic": options.enable_vector_search,
            "conceptual_matches": options.include_conceptual_matches,
            "limit": options.max_candidates,
        }
        try:
            if self._client is not None:
                data = await self._post(self._client, source.api_endpoint, body)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.settings.source_timeout_seconds)) as client:
                    data = await self._post(client, source.api_endpoint, body)
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorFailure(self.name, f"Source {source.id} request failed: {e}") from e
        if not isinstance(data, dict):
            raise CollaboratorFailure(self.name, f"Source {source.id} returned a non-object response")

        documents: List[LegalDocument] = []
        for row in data.get("documents") or []:
            if not isinstance(row, dict):
                logger.warning("Skipping malformed source document", source=source.id)
                continue
            try:
                documents.append(LegalDocument.model_validate({**row, "source": source}))
            except pydantic.ValidationError as e:
                logger.warning("Skipping invalid source document", source=source.id, error=str(e))
        return documents


class ComparativeSearchTask:
    """Cross-jurisdictional search for comparative analysis.

    Runs the delegate adapter against the international source and re-labels
    the hits as comparative material. Only dispatched for multi-jurisdiction
    requests.
    """

    name = "comparative"

    def __init__(self, delegate: JurisdictionSearchTask, registry: SourceRegistry):
        self.delegate = delegate
        self.registry = registry

    async def search(
        self,
        query: str,
        jurisdictions: Sequence[LegalJurisdiction],
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> List[LegalDocument]:
        logger.info(
            "Executing comparative search",
            jurisdictions=[j.value for j in jurisdictions],
        )
        hits = await self.delegate.search(query, LegalJurisdiction.INTERNATIONAL, request, options)
        comparative_source = self.registry.comparative_source
        return [
            doc.model_copy(
                update={
                    "source": comparative_source,
                    "metadata": doc.metadata.model_copy(update={"comparative": True}),
                }
            )
            for doc in hits
        ]
