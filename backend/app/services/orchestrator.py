"""
Generation orchestrator.

Sequences provider call, download, hashing, pinning, proof building and
persistence. Two shapes are offered:

- split: generate() stops after hashing and stages the bytes; publish()
  pins them later, given the content hash
- single: generate_and_publish() runs every step in one call

Pinning the content is fatal on failure. Pinning the proof package and saving
the record are not: their failures become warnings and the result status
turns "partial".
"""

import asyncio
import contextlib
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from app.middleware import (
    GenerationFailedError,
    GenerationTimeoutError,
    MetadataPinFailedError,
    PinFailedError,
    ProviderUnavailableError,
    StoreError,
    UnauthorizedError,
)
from app.models.artwork import ArtworkRecord
from app.models.creator import Creator
from proof_engine import (
    ProofPackageBuilder,
    ValidationError,
    compute_package_identity,
    content_hash,
    normalize_prompt,
    prompt_hash,
    validate_hash,
)
from .artwork_store import ArtworkRecordStore
from .content_fetcher import ContentFetcher
from .content_store import ContentStore
from .progress import LoggingProgressReporter, Outcome, ProgressReporter, Stage, StageEvent
from .provider_factory import ProviderRegistry
from .providers import ModelRef
from .staging import StagingArea

logger = logging.getLogger(__name__)

ARTWORK_PIN_NAME = "AI Generated Artwork"


@dataclass
class GenerationResult:
    """Outcome of steps 1-6: content produced, fetched and hashed."""

    image_url: str
    content: bytes
    content_hash: str
    prompt_hash: str
    prompt: str
    model: str
    metadata: dict[str, Any]
    staged: bool = False
    timing: dict[str, int] = field(default_factory=dict)


@dataclass
class PublishResult:
    """Outcome of step 7: content pinned, proof built, record saved."""

    ipfs_cid: str
    ipfs_url: str
    proof_package: dict[str, Any]
    proof_identity: str
    metadata_uri: Optional[str]
    artwork: Optional[ArtworkRecord]
    record_saved: bool
    warnings: list[str] = field(default_factory=list)
    timing: dict[str, int] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return "partial" if self.warnings else "complete"


class _Run:
    """Clock, stage timings and warnings for one pipeline invocation."""

    def __init__(self, reporter: Optional[ProgressReporter]):
        self.reporter = reporter or LoggingProgressReporter()
        self.started = time.monotonic()
        self.timing: dict[str, int] = {}
        self.warnings: list[str] = []

    def elapsed_ms(self, since: Optional[float] = None) -> int:
        return int((time.monotonic() - (since or self.started)) * 1000)

    def emit(self, stage: Stage, outcome: Outcome, detail: Optional[str] = None) -> None:
        self.reporter(StageEvent(stage, outcome, self.elapsed_ms(), detail))

    def warn(self, stage: Stage, message: str) -> None:
        self.warnings.append(message)
        self.emit(stage, Outcome.WARNING, message)

    def skip(self, stage: Stage, reason: str) -> None:
        self.emit(stage, Outcome.SKIPPED, reason)

    @contextmanager
    def stage(self, stage: Stage) -> Iterator[float]:
        start = time.monotonic()
        self.emit(stage, Outcome.STARTED)
        try:
            yield start
        except Exception as e:
            self.emit(stage, Outcome.FAILED, getattr(e, "message", None) or str(e))
            raise
        self.timing[stage.value] = self.elapsed_ms(start)
        self.emit(stage, Outcome.COMPLETED)

    def finish(self) -> dict[str, int]:
        self.timing["total"] = self.elapsed_ms()
        return dict(self.timing)


class GenerationOrchestrator:
    """
    Runs the generation and publication pipeline.

    Collaborators are injected so each can be replaced in tests.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        fetcher: ContentFetcher,
        content_store: ContentStore,
        proof_builder: ProofPackageBuilder,
        record_store: ArtworkRecordStore,
        staging: Optional[StagingArea] = None,
        generation_timeout: float = 300.0,
        content_pin_timeout: float = 60.0,
        metadata_pin_timeout: float = 5.0,
        progress_interval: float = 5.0,
        max_prompt_length: int = 1000,
    ):
        self.providers = providers
        self.fetcher = fetcher
        self.content_store = content_store
        self.proof_builder = proof_builder
        self.record_store = record_store
        self.staging = staging
        self.generation_timeout = generation_timeout
        self.content_pin_timeout = content_pin_timeout
        self.metadata_pin_timeout = metadata_pin_timeout
        self.progress_interval = progress_interval
        self.max_prompt_length = max_prompt_length

    # Public operations

    async def generate(
        self,
        creator: Optional[Creator],
        prompt: str,
        model: str,
        parameters: Optional[dict[str, Any]] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> GenerationResult:
        """
        Produce, fetch, hash and stage content without pinning it.

        Raises:
            UnauthorizedError: No creator, or the anonymous creator
            ValidationError: Bad prompt or model id
            ProviderUnavailableError: Model provider has no credentials
            GenerationTimeoutError: Provider exceeded the generation timeout
            GenerationFailedError: Provider reported an error
            DownloadFailedError: Content could not be fetched
        """
        run = _Run(reporter)
        result = await self._produce(run, creator, prompt, model, parameters or {})

        if self.staging is None:
            run.skip(Stage.STAGE, "no staging area configured")
        else:
            with run.stage(Stage.STAGE):
                try:
                    self.staging.save(
                        result.content,
                        metadata={
                            "model": result.model,
                            "promptHash": result.prompt_hash,
                            "creatorAddress": creator.address,
                        },
                    )
                    result.staged = True
                except OSError as e:
                    run.warn(Stage.STAGE, f"Content could not be staged: {e}")

        result.timing = run.finish()
        logger.info(
            f"Generated {result.content_hash[:16]} with {result.model} "
            f"in {result.timing['total']}ms"
        )
        return result

    async def publish(
        self,
        creator: Optional[Creator],
        content_hash_value: str,
        prompt_hash_value: str,
        content: Optional[bytes] = None,
        model: Optional[str] = None,
        prompt: Optional[str] = None,
        parameters: Optional[dict[str, Any]] = None,
        biometric_data: Any = None,
        encrypt_prompt: bool = False,
        private: bool = False,
        reporter: Optional[ProgressReporter] = None,
    ) -> PublishResult:
        """
        Pin previously generated content and record its proof.

        Content is taken from ``content`` when given, otherwise from the
        staging area. Its hash is re-derived and must match the claim.

        Raises:
            UnauthorizedError: No creator, or the anonymous creator
            ValidationError: Malformed hashes, missing content, or a hash mismatch
            PinFailedError: Content could not be pinned
        """
        run = _Run(reporter)

        with run.stage(Stage.AUTHORIZE):
            self._authorize(creator)

        with run.stage(Stage.VALIDATE):
            claimed_content_hash = validate_hash(content_hash_value, field="contentHash")
            claimed_prompt_hash = validate_hash(prompt_hash_value, field="promptHash")
            staged_metadata: dict[str, Any] = {}

            if content is None:
                if self.staging is not None:
                    content = self.staging.load(claimed_content_hash)
                    staged_metadata = self.staging.get_metadata(claimed_content_hash) or {}
                if content is None:
                    raise ValidationError(
                        "No content supplied and nothing staged for contentHash",
                        details={"contentHash": claimed_content_hash},
                    )

            computed = content_hash(content)
            if computed != claimed_content_hash:
                raise ValidationError(
                    "Content does not match contentHash",
                    details={"contentHash": claimed_content_hash, "computed": computed},
                )
            if prompt is not None and prompt_hash(prompt) != claimed_prompt_hash:
                raise ValidationError(
                    "Prompt does not match promptHash",
                    details={"promptHash": claimed_prompt_hash},
                )

        model_used = model or staged_metadata.get("model") or "unknown"
        result = await self._publish_steps(
            run,
            creator,
            content,
            claimed_content_hash,
            claimed_prompt_hash,
            model_used,
            prompt=normalize_prompt(prompt) if prompt is not None else None,
            parameters=parameters or {},
            biometric_data=biometric_data,
            encrypt_prompt=encrypt_prompt,
            private=private,
        )

        if self.staging is not None:
            try:
                self.staging.discard(claimed_content_hash)
            except OSError as e:
                logger.warning(f"Could not discard staged content {claimed_content_hash[:16]}: {e}")

        result.timing = run.finish()
        return result

    async def generate_and_publish(
        self,
        creator: Optional[Creator],
        prompt: str,
        model: str,
        parameters: Optional[dict[str, Any]] = None,
        biometric_data: Any = None,
        encrypt_prompt: bool = False,
        private: bool = False,
        reporter: Optional[ProgressReporter] = None,
    ) -> tuple[GenerationResult, PublishResult]:
        """Run every pipeline step in one call. Raises what generate() and publish() raise."""
        run = _Run(reporter)
        generated = await self._produce(run, creator, prompt, model, parameters or {})
        run.skip(Stage.STAGE, "single-call pipeline")

        published = await self._publish_steps(
            run,
            creator,
            generated.content,
            generated.content_hash,
            generated.prompt_hash,
            generated.model,
            prompt=generated.prompt,
            parameters=parameters or {},
            biometric_data=biometric_data,
            encrypt_prompt=encrypt_prompt,
            private=private,
        )

        timing = run.finish()
        generated.timing = timing
        published.timing = timing
        logger.info(
            f"Published {generated.content_hash[:16]} as {published.ipfs_cid} "
            f"({published.status}) in {timing['total']}ms"
        )
        return generated, published

    # Pipeline steps

    def _authorize(self, creator: Optional[Creator]) -> Creator:
        if creator is None or creator.anonymous:
            raise UnauthorizedError()
        return creator

    def _validate(self, prompt: str, model: str) -> tuple[str, ModelRef]:
        normalized = normalize_prompt(prompt or "")
        if not 1 <= len(normalized) <= self.max_prompt_length:
            raise ValidationError(
                f"Prompt must be 1-{self.max_prompt_length} characters",
                details={"field": "prompt", "length": len(normalized)},
            )
        model_ref, _ = self.providers.resolve(model)
        return normalized, model_ref

    async def _produce(
        self,
        run: _Run,
        creator: Optional[Creator],
        prompt: str,
        model: str,
        parameters: dict[str, Any],
    ) -> GenerationResult:
        with run.stage(Stage.AUTHORIZE):
            self._authorize(creator)

        with run.stage(Stage.VALIDATE):
            normalized, model_ref = self._validate(prompt, model)

        with run.stage(Stage.PROVIDER_CHECK):
            provider = self.providers.get(model_ref.kind)
            if provider is None or not provider.is_configured():
                raise ProviderUnavailableError(model_ref.model_id)

        with run.stage(Stage.GENERATE) as started:
            output = await self._generate_with_heartbeat(
                run, started, provider.generate(normalized, model_ref, parameters), model_ref
            )

        with run.stage(Stage.FETCH):
            content = await self.fetcher.fetch(output.content_url)

        with run.stage(Stage.HASH):
            digest = content_hash(content)
            p_hash = prompt_hash(normalized)

        return GenerationResult(
            image_url=output.content_url,
            content=content,
            content_hash=digest,
            prompt_hash=p_hash,
            prompt=normalized,
            model=model_ref.model_id,
            metadata=output.metadata,
        )

    async def _generate_with_heartbeat(self, run: _Run, started: float, call, model_ref: ModelRef):
        task = asyncio.ensure_future(call)
        deadline = started + self.generation_timeout

        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task
                    raise GenerationTimeoutError(
                        model_ref.model_id, self.generation_timeout, run.elapsed_ms(started)
                    )

                done, _ = await asyncio.wait(
                    {task}, timeout=min(self.progress_interval, remaining)
                )
                if done:
                    break
                run.emit(Stage.GENERATE, Outcome.PROGRESS, f"waiting on {model_ref.model_id}")
        finally:
            # the caller may be cancelled while waiting
            if not task.done():
                task.cancel()

        try:
            return task.result()
        except GenerationFailedError:
            raise
        except Exception as e:
            logger.exception(f"Provider {model_ref.kind.value} raised unexpectedly")
            raise GenerationFailedError(
                model_ref.model_id, str(e) or type(e).__name__, run.elapsed_ms(started)
            ) from e

    async def _publish_steps(
        self,
        run: _Run,
        creator: Creator,
        content: bytes,
        digest: str,
        p_hash: str,
        model_used: str,
        prompt: Optional[str],
        parameters: dict[str, Any],
        biometric_data: Any,
        encrypt_prompt: bool,
        private: bool,
    ) -> PublishResult:
        with run.stage(Stage.PIN_CONTENT):
            pinned = await self._pin_content(content, digest, p_hash, model_used, creator)

        with run.stage(Stage.BUILD_PROOF):
            package = self.proof_builder.build(
                creator_address=creator.address,
                content=content,
                ipfs_cid=pinned.cid,
                model_used=model_used,
                parameters=parameters,
                prompt=prompt,
                prompt_hash_value=p_hash,
                biometric_data=biometric_data,
                encrypt_prompt=encrypt_prompt,
                private=private,
            )
            identity = compute_package_identity(package)

        metadata_uri = None
        with run.stage(Stage.PIN_METADATA):
            try:
                metadata_pin = await self._pin_metadata(package, digest)
                metadata_uri = f"ipfs://{metadata_pin.cid}"
            except MetadataPinFailedError as e:
                run.warn(Stage.PIN_METADATA, e.message)

        artwork = None
        record_saved = False
        with run.stage(Stage.PERSIST):
            try:
                artwork = await self.record_store.upsert(
                    ArtworkRecord(
                        content_hash=digest,
                        prompt_hash=p_hash,
                        creator_address=creator.address,
                        ipfs_cid=pinned.cid,
                        model_used=model_used,
                        metadata_uri=metadata_uri,
                    )
                )
                record_saved = artwork.is_persisted
                if not record_saved:
                    run.warn(Stage.PERSIST, "Record store unavailable; artwork not saved")
            except StoreError as e:
                run.warn(Stage.PERSIST, f"Failed to save artwork: {e.message}")

        return PublishResult(
            ipfs_cid=pinned.cid,
            ipfs_url=pinned.url,
            proof_package=package,
            proof_identity=identity,
            metadata_uri=metadata_uri,
            artwork=artwork,
            record_saved=record_saved,
            warnings=run.warnings,
        )

    async def _pin_content(
        self, content: bytes, digest: str, p_hash: str, model_used: str, creator: Creator
    ):
        attributes = {
            "name": ARTWORK_PIN_NAME,
            "keyValues": {
                "creator": creator.address,
                "model": model_used,
                "promptHash": p_hash,
                "contentHash": digest,
            },
        }
        filename = f"artwork-{int(time.time() * 1000)}.png"
        try:
            return await asyncio.wait_for(
                self.content_store.pin_bytes(content, filename, attributes),
                timeout=self.content_pin_timeout,
            )
        except asyncio.TimeoutError:
            raise PinFailedError(f"timed out after {self.content_pin_timeout:g} seconds")

    async def _pin_metadata(self, package: dict[str, Any], digest: str):
        """Pin the proof package. Every failure is raised as MetadataPinFailedError."""
        try:
            return await asyncio.wait_for(
                self.content_store.pin_json(package, f"proof-{digest[:16]}.json"),
                timeout=self.metadata_pin_timeout,
            )
        except asyncio.TimeoutError:
            raise MetadataPinFailedError(f"timed out after {self.metadata_pin_timeout:g} seconds")
        except PinFailedError as e:
            raise MetadataPinFailedError(e.message, details=e.details) from e
        except Exception as e:
            logger.exception(f"Content store {self.content_store.name} raised unexpectedly")
            raise MetadataPinFailedError(str(e) or type(e).__name__) from e
