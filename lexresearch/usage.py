"""Usage accounting for research requests.

Completion clients add token counts to the tally bound to the current
request context; the orchestrator reads it back once the pipeline finishes
and hands a ``UsageEvent`` to the configured recorder.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, Field

from lexresearch.models import utcnow

logger = structlog.get_logger(__name__)


class UsageEvent(BaseModel):
    """Cost, latency and token accounting for one completed request."""

    request_id: str
    provider: str
    model: str
    analysis_type: str = "legal_research"
    tokens_used: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0.0)
    processing_time_ms: int = Field(default=0, ge=0)
    completion_calls: int = Field(default=0, ge=0)
    success: bool = True
    timestamp: datetime = Field(default_factory=utcnow)


@dataclass
class UsageTally:
    """Mutable per-request counters shared by every task of one request."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    calls: int = 0
    providers: List[str] = field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def add(self, provider: str, prompt_tokens: int = 0, completion_tokens: int = 0) -> None:
        self.prompt_tokens += prompt_tokens
        self.completion_tokens += completion_tokens
        self.calls += 1
        if provider not in self.providers:
            self.providers.append(provider)


_current_tally: contextvars.ContextVar[Optional[UsageTally]] = contextvars.ContextVar(
    "lexresearch_usage_tally", default=None
)


def start_tally() -> tuple[UsageTally, contextvars.Token]:
    """Bind a fresh tally to the current context."""
    tally = UsageTally()
    return tally, _current_tally.set(tally)


def reset_tally(token: contextvars.Token) -> None:
    _current_tally.reset(token)


def current_tally() -> Optional[UsageTally]:
    return _current_tally.get()


@runtime_checkable
class UsageRecorder(Protocol):
    """Collaborator receiving one event per completed, non-cached request."""

    async def record(self, event: UsageEvent) -> None:
        ...


class LoggingUsageRecorder:
    """Records usage as a structured log event."""

    async def record(self, event: UsageEvent) -> None:
        logger.info(
            "Research usage recorded",
            request_id=event.request_id,
            provider=event.provider,
            model=event.model,
            analysis_type=event.analysis_type,
            tokens=event.tokens_used,
            cost=round(event.cost, 6),
            processing_time_ms=event.processing_time_ms,
            completion_calls=event.completion_calls,
            success=event.success,
        )
