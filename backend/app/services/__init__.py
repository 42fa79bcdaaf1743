"""Service layer for business logic and external integrations."""

from .artwork_store import ArtworkRecordStore
from .cleanup_scheduler import CleanupScheduler
from .content_fetcher import ContentFetcher
from .content_store import (
    ContentStore,
    LocalContentStore,
    PinataContentStore,
    PinResult,
    build_content_store,
)
from .database import Database
from .orchestrator import GenerationOrchestrator, GenerationResult, PublishResult
from .progress import (
    CollectingProgressReporter,
    LoggingProgressReporter,
    ProgressReporter,
    StageEvent,
)
from .provider_factory import ProviderRegistry, build_provider_registry
from .registry import ArtworkRegistry, UnconfiguredRegistry, Web3Registry, build_registry
from .staging import StagingArea
from .verification import VerificationService

__all__ = [
    "ArtworkRecordStore",
    "CleanupScheduler",
    "ContentFetcher",
    "ContentStore",
    "LocalContentStore",
    "PinataContentStore",
    "PinResult",
    "build_content_store",
    "Database",
    "GenerationOrchestrator",
    "GenerationResult",
    "PublishResult",
    "ProgressReporter",
    "LoggingProgressReporter",
    "CollectingProgressReporter",
    "StageEvent",
    "ProviderRegistry",
    "build_provider_registry",
    "ArtworkRegistry",
    "UnconfiguredRegistry",
    "Web3Registry",
    "build_registry",
    "StagingArea",
    "VerificationService",
]
