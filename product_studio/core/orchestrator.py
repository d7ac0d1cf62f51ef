"""Request orchestration: single, batch and iterative-edit generation."""

import inspect
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from .generation_client import GenerationClient
from .preview import render_preview
from ..models.enums import BatchItemStatus, OrchestratorState
from ..models.schemas import (
    BatchItemResult,
    BatchProgress,
    BatchReport,
    GeneratedArtifact,
    GenerationSettings,
    PreviewResult,
    SourceImage,
)
from ..utils.config import Config
from ..utils.errors import (
    ArtifactNotFound,
    EmptyEditInstruction,
    OperationAlreadyInProgress,
    OperationError,
    ServiceUnavailable,
)
from ..utils.logger import get_logger
from ..utils.messages import MessageCatalog
from ..utils.retry import retry_async

logger = get_logger(__name__)

ProgressCallback = Callable[[BatchProgress], Any]


class Orchestrator:
    """
    Coordinates generation requests for one working session.
    
    Owns the mapping from source id to its current generated image. Only
    one operation runs at a time; a second call while one is in flight is
    rejected with ``OperationAlreadyInProgress`` and changes nothing.
    Batches run strictly one image after another.
    """
    
    def __init__(
        self,
        client: GenerationClient,
        transient_retry_attempts: int = 1,
        retry_initial_delay: float = 1.0,
        aspect_presets: Optional[Mapping[str, str]] = None,
        messages: Optional[MessageCatalog] = None,
    ):
        """
        Initialize orchestrator.
        
        Args:
            client: GenerationClient instance
            transient_retry_attempts: Attempts per request when the service
                is temporarily unavailable (1 disables retrying)
            retry_initial_delay: First backoff delay in seconds
            aspect_presets: Named aspect ratios used for previews
            messages: Catalog used by describe_error (built-in English by default)
        """
        self.client = client
        self.aspect_presets = aspect_presets
        self.messages = messages or MessageCatalog()
        
        self._artifacts: Dict[str, GeneratedArtifact] = {}
        self._state = OrchestratorState.IDLE
        self._progress: Optional[BatchProgress] = None
        self._cancel_requested = False
        
        # Only transient failures are retried; quota, credential and
        # content failures go straight back to the caller
        retry = retry_async(
            max_attempts=max(1, transient_retry_attempts),
            initial_delay=retry_initial_delay,
            exceptions=(ServiceUnavailable,),
        )
        self._generate_call = retry(self.client.generate)
        self._refine_call = retry(self.client.refine)
    
    @classmethod
    def from_config(cls, client: GenerationClient, config: Config) -> "Orchestrator":
        return cls(
            client,
            transient_retry_attempts=config.transient_retry_attempts,
            retry_initial_delay=config.retry_initial_delay_seconds,
            aspect_presets=config.aspect_presets,
            messages=MessageCatalog.from_config(config),
        )
    
    @property
    def state(self) -> OrchestratorState:
        return self._state
    
    @property
    def busy(self) -> bool:
        return self._state != OrchestratorState.IDLE
    
    @property
    def progress(self) -> Optional[BatchProgress]:
        """Progress of the running batch, or None outside a batch."""
        return self._progress
    
    def current(self, source_id: str) -> Optional[GeneratedArtifact]:
        """Current generated image for a source, if any."""
        return self._artifacts.get(source_id)
    
    def artifacts(self) -> Dict[str, GeneratedArtifact]:
        """Snapshot of the source id -> current artifact mapping."""
        return dict(self._artifacts)
    
    def forget(self, source_id: str) -> bool:
        """
        Drop the artifact of a source removed from the working set.
        
        Returns:
            True if an artifact was dropped
            
        Raises:
            OperationAlreadyInProgress: If an operation is running
        """
        self._ensure_idle()
        return self._artifacts.pop(source_id, None) is not None
    
    def cancel_batch(self) -> bool:
        """
        Ask the running batch to stop before its next dispatch.
        
        The attempt in flight still completes and its result is kept.
        
        Returns:
            True if a batch was running
        """
        if self._state != OrchestratorState.BATCH_RUNNING:
            return False
        self._cancel_requested = True
        logger.info("Batch cancellation requested", extra={"progress": self._progress_dict()})
        return True
    
    async def generate(
        self,
        source: SourceImage,
        settings: GenerationSettings,
        auxiliary: Optional[SourceImage] = None,
    ) -> GeneratedArtifact:
        """
        Generate (or regenerate) the image for one source.
        
        On success the new artifact supersedes any previous one for the
        source; on failure the previous artifact is left untouched.
        
        Raises:
            OperationAlreadyInProgress: If another operation is running
            OperationError: Classified generation failure
        """
        with self._operation(OrchestratorState.GENERATING):
            start_time = time.time()
            artifact = await self._generate_call(source, settings, auxiliary)
            self._supersede(artifact)
            
            logger.info(
                "Generation complete",
                extra={
                    "source_id": source.id,
                    "artifact_id": artifact.id,
                    "processing_time_seconds": round(time.time() - start_time, 3),
                }
            )
            return artifact
    
    async def generate_batch(
        self,
        sources: Sequence[SourceImage],
        settings: GenerationSettings,
        auxiliary: Optional[SourceImage] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchReport:
        """
        Generate images for every source, one after another.
        
        Recoverable per-image failures are recorded and the batch moves on.
        A hard-stop failure (credential, quota, rate limit) halts the batch
        at that image. Progress is reported after every attempt. Results of
        completed attempts replace those sources' artifacts once the loop
        ends, whether it finished, halted or was cancelled.
        
        Args:
            sources: Ordered source images
            settings: Styling settings shared by the whole batch
            auxiliary: Optional auxiliary model image
            on_progress: Called (or awaited) with BatchProgress after each attempt
            
        Returns:
            BatchReport with a result for every source
            
        Raises:
            OperationAlreadyInProgress: If another operation is running
        """
        with self._operation(OrchestratorState.BATCH_RUNNING):
            start_time = time.time()
            total = len(sources)
            self._progress = BatchProgress(completed=0, total=total)
            self._cancel_requested = False
            
            staged: Dict[str, GeneratedArtifact] = {}
            items: List[BatchItemResult] = []
            halted_at: Optional[str] = None
            cancelled = False
            
            logger.info(
                f"Starting batch of {total} images",
                extra={"total": total, "source_ids": [s.id for s in sources]}
            )
            
            try:
                for index, source in enumerate(sources):
                    if self._cancel_requested:
                        cancelled = True
                        break
                    
                    try:
                        artifact = await self._generate_call(source, settings, auxiliary)
                    except OperationError as e:
                        items.append(
                            BatchItemResult(
                                source_id=source.id,
                                status=BatchItemStatus.FAILED,
                                error=e,
                            )
                        )
                        logger.warning(
                            f"Batch item {index + 1}/{total} failed",
                            extra={
                                "source_id": source.id,
                                "error_code": e.code.value,
                                "hard_stop": e.hard_stop,
                                "recoverable": e.recoverable,
                            }
                        )
                        if e.hard_stop:
                            halted_at = source.id
                    else:
                        staged[source.id] = artifact
                        items.append(
                            BatchItemResult(source_id=source.id, status=BatchItemStatus.SUCCEEDED)
                        )
                    
                    self._progress = BatchProgress(completed=index + 1, total=total)
                    await self._report_progress(on_progress, self._progress)
                    
                    if halted_at is not None:
                        break
            finally:
                # Everything completed so far supersedes, nothing later does
                self._artifacts.update(staged)
                progress = self._progress
                self._progress = None
                self._cancel_requested = False
            
            for source in sources[len(items):]:
                items.append(
                    BatchItemResult(source_id=source.id, status=BatchItemStatus.NOT_ATTEMPTED)
                )
            
            report = BatchReport(
                items=items,
                progress=progress,
                halted=halted_at is not None,
                halted_at=halted_at,
                cancelled=cancelled,
            )
            
            logger.info(
                "Batch finished",
                extra={
                    "total": total,
                    "succeeded": len(report.succeeded),
                    "failed": len(report.failed),
                    "not_attempted": len(report.not_attempted),
                    "halted_at": halted_at,
                    "cancelled": cancelled,
                    "processing_time_seconds": round(time.time() - start_time, 3),
                }
            )
            return report
    
    async def refine(self, source_id: str, edit_instruction: str) -> GeneratedArtifact:
        """
        Edit the current image of a source with a free-text instruction.
        
        Raises:
            EmptyEditInstruction: If the instruction is blank (no request is sent)
            OperationAlreadyInProgress: If another operation is running
            ArtifactNotFound: If the source has no generated image yet
            OperationError: Classified generation failure
        """
        if not edit_instruction or not edit_instruction.strip():
            raise EmptyEditInstruction()
        
        with self._operation(OrchestratorState.REFINING):
            prior = self._artifacts.get(source_id)
            if prior is None:
                raise ArtifactNotFound(detail=source_id)
            
            artifact = await self._refine_call(prior, edit_instruction)
            self._supersede(artifact)
            
            logger.info(
                "Refinement complete",
                extra={
                    "source_id": source_id,
                    "previous_artifact_id": prior.id,
                    "artifact_id": artifact.id,
                }
            )
            return artifact
    
    def render_preview(
        self,
        source_id: str,
        settings: GenerationSettings,
    ) -> Optional[PreviewResult]:
        """Composited preview of a source's current image, or None if there is none."""
        artifact = self._artifacts.get(source_id)
        if artifact is None:
            return None
        return render_preview(artifact, settings, presets=self.aspect_presets)
    
    def describe_error(self, error: BaseException, locale: Optional[str] = None) -> str:
        """User-facing text for a failure raised by any operation."""
        return self.messages.describe(error, locale=locale)

    @contextmanager
    def _operation(self, state: OrchestratorState) -> Iterator[None]:
        self._ensure_idle()
        self._state = state
        try:
            yield
        finally:
            self._state = OrchestratorState.IDLE
    
    def _ensure_idle(self):
        if self.busy:
            logger.warning(
                "Rejected call while busy",
                extra={"state": self._state.value}
            )
            raise OperationAlreadyInProgress(detail=self._state.value)
    
    def _supersede(self, artifact: GeneratedArtifact):
        self._artifacts[artifact.source_id] = artifact
    
    def _progress_dict(self) -> Optional[dict]:
        return self._progress.model_dump() if self._progress else None
    
    @staticmethod
    async def _report_progress(callback: Optional[ProgressCallback], progress: BatchProgress):
        if callback is None:
            return
        result = callback(progress)
        if inspect.isawaitable(result):
            await result
