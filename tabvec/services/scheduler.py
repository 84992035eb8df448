"""Tick-driven scheduler for queued column operations.

The host UI submits one request per confirmed dialog and calls :meth:`OperationScheduler.tick`
once per redraw. Embeddings run as a resumable job, one provider batch per tick; PCA, clustering
and similarity each complete within the tick that picks them up, and only while no embeddings
job is active. Operation errors are returned in the :class:`TickResult` rather than raised.

Classes:
    TickStatus: What a tick did.
    TickResult: Status plus the affected kind, created column, error and persist signal.
    OperationScheduler: Owns the request slots, the active job and the busy state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from tabvec.core.config import Settings, get_settings
from tabvec.core.errors import (
    MissingEmbeddingConfigError,
    OperationCancelledError,
    UnsupportedAlgorithmError,
    VectorOpsError,
)
from tabvec.models.state import BusyState, EmbeddingColumnConfig
from tabvec.models.table import DataTable
from tabvec.schemas.operations import (
    ClusterAlgorithm,
    ClusterRequest,
    EmbeddingsRequest,
    OperationKind,
    PcaRequest,
    SimilarityRequest,
    parse_request,
)
from tabvec.services.column_ops import run_clustering, run_pca, run_similarity
from tabvec.services.embeddings import EmbeddingJob, JobProgress, request_embeddings
from tabvec.services.materialize import EMBEDDINGS_NAMING, materialize_column
from tabvec.services.providers import EmbeddingProvider
from tabvec.services.validation import ColumnShape, validate_column

_LOGGER = logging.getLogger(__name__)

# Order in which waiting requests are picked up once no embeddings job is active.
_SINGLE_TICK_KINDS = (OperationKind.PCA, OperationKind.CLUSTER, OperationKind.SIMILARITY)

_STATIC_MESSAGES = {
    OperationKind.PCA: "Running PCA...",
    OperationKind.CLUSTER: "Clustering...",
    OperationKind.SIMILARITY: "Scoring similarity...",
}


class TickStatus(str, Enum):
    IDLE = "idle"
    CONTINUE = "continue"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class TickResult:
    status: TickStatus
    kind: Optional[OperationKind] = None
    column: Optional[str] = None
    error: Optional[Exception] = None
    persist_workspace: bool = False


class OperationScheduler:
    def __init__(
        self,
        table: DataTable,
        provider: EmbeddingProvider,
        settings: Settings | None = None,
    ) -> None:
        self._table = table
        self._provider = provider
        self._settings = settings or get_settings()
        self._busy = BusyState()
        self._pending: dict[OperationKind, Any] = {}
        self._job: Optional[EmbeddingJob] = None
        self._configs: dict[str, EmbeddingColumnConfig] = {}
        self._cancel_requested = False
        self._cancelled_kind: Optional[OperationKind] = None

    @property
    def table(self) -> DataTable:
        return self._table

    @property
    def busy(self) -> BusyState:
        return self._busy

    @property
    def active_job(self) -> Optional[EmbeddingJob]:
        return self._job

    @property
    def guard_active(self) -> bool:
        """True while the host must ignore input aimed at the table."""

        return self._busy.active or self._job is not None or bool(self._pending)

    @property
    def pending_kinds(self) -> tuple[OperationKind, ...]:
        return tuple(self._pending)

    @property
    def embedding_configs(self) -> Mapping[str, EmbeddingColumnConfig]:
        return MappingProxyType(self._configs)

    def register_embedding_config(self, column: str, config: EmbeddingColumnConfig) -> None:
        """Record the model behind an embeddings column created outside this scheduler."""

        self._configs[column] = config

    def submit(self, request: Any) -> None:
        """Validate ``request`` and place it in its kind's slot.

        Raises the validation error directly; nothing is queued in that case. A request of a kind
        that is already waiting replaces the earlier one.
        """

        if isinstance(request, Mapping):
            request = parse_request(dict(request))
        self._validate(request)

        if request.kind in self._pending:
            _LOGGER.debug("Replacing pending %s request", request.kind.value)
        self._pending[request.kind] = request
        if not self._busy.active:
            self._busy.start(self._start_message(request))
        _LOGGER.info("Queued %s request for column %r", request.kind.value, request.source_column)

    def cancel(self) -> bool:
        """Drop every pending request now and the active job on the next tick."""

        if self._job is None and not self._pending:
            return False
        if self._cancelled_kind is None:
            self._cancelled_kind = (
                OperationKind.EMBEDDINGS if self._job is not None else next(iter(self._pending))
            )
        self._pending.clear()
        self._cancel_requested = True
        return True

    def tick(self) -> TickResult:
        if self._cancel_requested:
            return self._apply_cancel()

        if self._job is None and OperationKind.EMBEDDINGS in self._pending:
            request = self._pending.pop(OperationKind.EMBEDDINGS)
            try:
                self._job = EmbeddingJob.from_request(
                    request,
                    self._table.get_column(request.source_column),
                    batch_size=self._settings.embedding_batch_size,
                )
            except VectorOpsError as exc:
                return self._fail(OperationKind.EMBEDDINGS, exc)

        if self._job is not None:
            return self._advance_job(self._job)

        for kind in _SINGLE_TICK_KINDS:
            request = self._pending.pop(kind, None)
            if request is not None:
                return self._run_single(kind, request)

        if self._busy.active:
            self._busy.clear()
        return TickResult(TickStatus.IDLE)

    def run_until_idle(self, max_ticks: int = 10_000) -> list[TickResult]:
        """Drive ticks until nothing is left to do; returns every non-idle result."""

        results: list[TickResult] = []
        for _ in range(max_ticks):
            result = self.tick()
            if result.status is TickStatus.IDLE:
                return results
            results.append(result)
        _LOGGER.warning("Scheduler still busy after %d ticks", max_ticks)
        return results

    def _validate(self, request: Any) -> None:
        if isinstance(request, EmbeddingsRequest):
            validate_column(self._table, request.source_column, ColumnShape.TEXT)
            return

        validate_column(self._table, request.source_column, ColumnShape.VECTOR_OF_NUMBERS)
        if isinstance(request, ClusterRequest) and request.algorithm is not ClusterAlgorithm.KMEANS:
            raise UnsupportedAlgorithmError(request.algorithm.value)
        if (
            isinstance(request, SimilarityRequest)
            and request.query_vector is None
            and request.source_column not in self._configs
        ):
            raise MissingEmbeddingConfigError(request.source_column)

    def _advance_job(self, job: EmbeddingJob) -> TickResult:
        try:
            outcome = job.advance(self._provider)
        except (VectorOpsError, ValueError) as exc:
            self._job = None
            return self._fail(OperationKind.EMBEDDINGS, exc)

        self._busy.update(self._progress_message(job), job.progress)
        if outcome is JobProgress.CONTINUE:
            return TickResult(TickStatus.CONTINUE, kind=OperationKind.EMBEDDINGS)
        return self._finalize_job(job)

    def _finalize_job(self, job: EmbeddingJob) -> TickResult:
        self._job = None
        try:
            name = materialize_column(
                self._table,
                job.row_vectors(),
                job.new_column_name,
                source_column=job.source_column,
                rule=EMBEDDINGS_NAMING,
                hidden=job.hide_new_column,
            )
        except (VectorOpsError, ValueError) as exc:
            return self._fail(OperationKind.EMBEDDINGS, exc)

        self._configs[name] = EmbeddingColumnConfig(
            provider=job.provider,
            model_name=job.model_name,
            dimensions=job.dimensions,
        )
        flow = job.then_similarity
        if flow is not None:
            self._pending[OperationKind.SIMILARITY] = SimilarityRequest(
                source_column=name,
                new_column_name=flow.similarity_column,
                prompt_text=flow.prompt_text,
            )
        self._settle_busy()
        return TickResult(
            TickStatus.DONE,
            kind=OperationKind.EMBEDDINGS,
            column=name,
            persist_workspace=True,
        )

    def _run_single(self, kind: OperationKind, request: Any) -> TickResult:
        self._busy.start(_STATIC_MESSAGES[kind])
        try:
            if isinstance(request, PcaRequest):
                name = run_pca(self._table, request, settings=self._settings)
            elif isinstance(request, ClusterRequest):
                name = run_clustering(self._table, request, settings=self._settings)
            else:
                query = self._resolve_query(request)
                name = run_similarity(self._table, request, query, settings=self._settings)
        except (VectorOpsError, ValueError) as exc:
            return self._fail(kind, exc)

        self._settle_busy()
        # nothing appended for an empty table, so there is nothing to persist
        return TickResult(TickStatus.DONE, kind=kind, column=name, persist_workspace=name is not None)

    def _resolve_query(self, request: SimilarityRequest) -> list[float]:
        if request.query_vector is not None:
            return list(request.query_vector)
        config = self._configs.get(request.source_column)
        if config is None:
            raise MissingEmbeddingConfigError(request.source_column)
        vectors = request_embeddings(
            self._provider,
            config.provider,
            config.model_name,
            [request.prompt_text],
            config.dimensions,
        )
        return vectors[0]

    def _fail(self, kind: OperationKind, exc: Exception) -> TickResult:
        _LOGGER.warning("%s operation failed: %s", kind.value, exc)
        self._settle_busy()
        return TickResult(TickStatus.FAILED, kind=kind, error=exc)

    def _apply_cancel(self) -> TickResult:
        kind = self._cancelled_kind
        if self._job is not None:
            _LOGGER.info("Cancelled embeddings job for %r", self._job.source_column)
        self._job = None
        self._cancel_requested = False
        self._cancelled_kind = None
        # requests submitted after cancel() survive
        self._settle_busy()
        return TickResult(
            TickStatus.CANCELLED,
            kind=kind,
            error=OperationCancelledError("Operation cancelled"),
        )

    def _settle_busy(self) -> None:
        """Clear the overlay, or hand it to the next waiting request."""

        if self._job is not None:
            return
        for kind in (OperationKind.EMBEDDINGS, *_SINGLE_TICK_KINDS):
            request = self._pending.get(kind)
            if request is not None:
                self._busy.start(self._start_message(request))
                return
        self._busy.clear()

    def _start_message(self, request: Any) -> str:
        if isinstance(request, EmbeddingsRequest):
            return f"Generating embeddings with {self._provider.display_name(request.provider)}..."
        return _STATIC_MESSAGES[request.kind]

    def _progress_message(self, job: EmbeddingJob) -> str:
        return (
            f"Generating embeddings with {self._provider.display_name(job.provider)}... "
            f"{job.next_start}/{job.total_uniques}"
        )
