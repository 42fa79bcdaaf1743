"""
Stage events emitted by the generation orchestrator.

Each pipeline stage reports when it starts, completes, fails, or is skipped.
Reporters are plain callables so tests and routes can collect the events.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    AUTHORIZE = "authorize"
    VALIDATE = "validate"
    PROVIDER_CHECK = "provider_check"
    GENERATE = "generate"
    FETCH = "fetch"
    HASH = "hash"
    STAGE = "stage"
    PIN_CONTENT = "pin_content"
    BUILD_PROOF = "build_proof"
    PIN_METADATA = "pin_metadata"
    PERSIST = "persist"


class Outcome(str, Enum):
    STARTED = "started"
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"
    WARNING = "warning"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StageEvent:
    """
    A single stage boundary.

    Attributes:
        stage: Pipeline stage
        outcome: What happened at the boundary
        elapsed_ms: Milliseconds since the pipeline started
        detail: Optional human-readable context
    """

    stage: Stage
    outcome: Outcome
    elapsed_ms: int
    detail: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "outcome": self.outcome.value,
            "elapsedMs": self.elapsed_ms,
            "detail": self.detail,
        }


class ProgressReporter:
    """Receives stage events. The base reporter discards them."""

    def __call__(self, event: StageEvent) -> None:
        pass


class LoggingProgressReporter(ProgressReporter):
    """Logs each stage event."""

    def __init__(self, label: str = "pipeline"):
        self.label = label

    def __call__(self, event: StageEvent) -> None:
        message = f"[{self.label}] {event.stage.value} {event.outcome.value} at {event.elapsed_ms}ms"
        if event.detail:
            message += f": {event.detail}"

        if event.outcome == Outcome.FAILED:
            logger.error(message)
        elif event.outcome == Outcome.WARNING:
            logger.warning(message)
        elif event.outcome == Outcome.PROGRESS:
            logger.debug(message)
        else:
            logger.info(message)


class CollectingProgressReporter(LoggingProgressReporter):
    """Logs and keeps every event for inclusion in an API response."""

    def __init__(self, label: str = "pipeline"):
        super().__init__(label)
        self.events: list[StageEvent] = []

    def __call__(self, event: StageEvent) -> None:
        super().__call__(event)
        self.events.append(event)

    def as_dicts(self) -> list[dict]:
        return [event.to_dict() for event in self.events]
