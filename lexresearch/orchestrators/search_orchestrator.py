"""Concurrent fan-out of search tasks across the requested jurisdictions.

One task per jurisdiction, plus the comparative task when more than one
jurisdiction is requested. Tasks are isolated: a failing task is logged and
contributes nothing, the others still count.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Optional

import structlog

from lexresearch.models import LegalDocument, LegalJurisdiction, ResearchRequest, SemanticSearchOptions
from lexresearch.tools.search_tasks import ComparativeSearchTask, JurisdictionSearchTask

logger = structlog.get_logger(__name__)


@dataclass
class TaskOutcome:
    """What one search task produced."""

    name: str
    jurisdiction: LegalJurisdiction
    documents: List[LegalDocument] = field(default_factory=list)
    error: Optional[str] = None
    comparative: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class SearchOutcome:
    """Joined result of every dispatched task, in dispatch order."""

    tasks: List[TaskOutcome] = field(default_factory=list)

    @property
    def documents(self) -> List[LegalDocument]:
        return [doc for task in self.tasks for doc in task.documents]

    @property
    def failed_jurisdictions(self) -> List[LegalJurisdiction]:
        return [task.jurisdiction for task in self.tasks if not task.succeeded and not task.comparative]

    @property
    def comparative_ran(self) -> bool:
        return any(task.comparative for task in self.tasks)


class SearchOrchestrator:
    """Dispatches and joins jurisdiction searches (isolate-and-collect)."""

    def __init__(
        self,
        search_task: JurisdictionSearchTask,
        comparative_task: Optional[ComparativeSearchTask] = None,
    ):
        self.search_task = search_task
        self.comparative_task = comparative_task

    async def search(
        self,
        query: str,
        request: ResearchRequest,
        options: SemanticSearchOptions,
    ) -> SearchOutcome:
        start_time = time.time()

        labels: List[TaskOutcome] = []
        coros: List[Awaitable[List[LegalDocument]]] = []
        for jurisdiction in request.jurisdictions:
            labels.append(TaskOutcome(name=self.search_task.name, jurisdiction=jurisdiction))
            coros.append(self.search_task.search(query, jurisdiction, request, options))

        if len(request.jurisdictions) > 1 and self.comparative_task is not None:
            labels.append(
                TaskOutcome(
                    name=self.comparative_task.name,
                    jurisdiction=LegalJurisdiction.INTERNATIONAL,
                    comparative=True,
                )
            )
            coros.append(self.comparative_task.search(query, request.jurisdictions, request, options))

        results = await asyncio.gather(*coros, return_exceptions=True)

        outcome = SearchOutcome()
        for label, result in zip(labels, results):
            outcome.tasks.append(self._collect(label, result))

        logger.info(
            "02_search_parallel completed",
            tasks=len(outcome.tasks),
            failed=len([t for t in outcome.tasks if not t.succeeded]),
            documents=len(outcome.documents),
            comparative=outcome.comparative_ran,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return outcome

    @staticmethod
    def _collect(label: TaskOutcome, result: Any) -> TaskOutcome:
        if isinstance(result, Exception):
            logger.warning(
                "Search task failed, continuing without it",
                task=label.name,
                jurisdiction=label.jurisdiction.value,
                error=str(result),
                error_type=type(result).__name__,
            )
            label.error = str(result) or type(result).__name__
            return label
        if isinstance(result, BaseException):
            # Cancellation and interpreter exits are not task failures.
            raise result
        label.documents = list(result)
        return label
