"""
Service container.

Every service is constructed once at process start and handed out by
reference through the get_container dependency.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx
from fastapi import Request

from app.config import Settings
from app.services import (
    ArtworkRecordStore,
    ArtworkRegistry,
    CleanupScheduler,
    ContentFetcher,
    ContentStore,
    Database,
    GenerationOrchestrator,
    ProviderRegistry,
    StagingArea,
    VerificationService,
    build_content_store,
    build_provider_registry,
    build_registry,
)
from proof_engine import ProofPackageBuilder

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    http_client: httpx.AsyncClient
    database: Database
    record_store: ArtworkRecordStore
    providers: ProviderRegistry
    fetcher: ContentFetcher
    content_store: ContentStore
    proof_builder: ProofPackageBuilder
    staging: StagingArea
    cleanup: CleanupScheduler
    registry: ArtworkRegistry
    orchestrator: GenerationOrchestrator
    verifier: VerificationService

    async def startup(self) -> None:
        await self.database.create_schema()
        self.cleanup.start()
        logger.info("Services started")

    async def shutdown(self) -> None:
        self.cleanup.stop()
        await self.database.dispose()
        await self.http_client.aclose()
        logger.info("Services stopped")


def build_container(
    settings: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
    database: Optional[Database] = None,
    registry: Optional[ArtworkRegistry] = None,
    content_store: Optional[ContentStore] = None,
) -> ServiceContainer:
    """
    Wire all services from settings.

    Keyword overrides replace the corresponding collaborator, for tests and
    alternative deployments.
    """
    client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(settings.DOWNLOAD_TIMEOUT))
    database = database or Database(settings.DATABASE_URL)
    record_store = ArtworkRecordStore(database)
    providers = build_provider_registry(settings, client)
    fetcher = ContentFetcher(client, timeout=settings.DOWNLOAD_TIMEOUT)
    content_store = content_store or build_content_store(settings, client)
    proof_builder = ProofPackageBuilder(settings.PROMPT_ENCRYPTION_KEY or None)
    staging = StagingArea(Path(settings.STORAGE_PATH) / "staging")
    cleanup = CleanupScheduler(
        staging,
        ttl_hours=settings.STAGING_TTL_HOURS,
        interval_hours=settings.CLEANUP_INTERVAL_HOURS,
    )
    registry = registry or build_registry(
        settings.RPC_URL,
        settings.PROOF_OF_ART_ADDRESS,
        settings.REGISTRAR_PRIVATE_KEY,
        settings.REGISTRY_TX_TIMEOUT,
    )

    orchestrator = GenerationOrchestrator(
        providers=providers,
        fetcher=fetcher,
        content_store=content_store,
        proof_builder=proof_builder,
        record_store=record_store,
        staging=staging,
        generation_timeout=settings.GENERATION_TIMEOUT,
        content_pin_timeout=settings.CONTENT_PIN_TIMEOUT,
        metadata_pin_timeout=settings.METADATA_PIN_TIMEOUT,
        progress_interval=settings.PROGRESS_INTERVAL,
        max_prompt_length=settings.MAX_PROMPT_LENGTH,
    )

    return ServiceContainer(
        settings=settings,
        http_client=client,
        database=database,
        record_store=record_store,
        providers=providers,
        fetcher=fetcher,
        content_store=content_store,
        proof_builder=proof_builder,
        staging=staging,
        cleanup=cleanup,
        registry=registry,
        orchestrator=orchestrator,
        verifier=VerificationService(registry, record_store),
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the application's service container."""
    return request.app.state.container
