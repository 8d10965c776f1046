"""Reconciler for asynchronous AI generation jobs.

Triggers an edge function for a consultation, then re-reads the consultation
on a fixed cadence until the result shows up, the record reports failure, or
the polling budget runs out.

## Failure channels

Two ways a run can fail, both surfaced as GenerationStatus.FAILED:

1. **Fail fast**: the trigger call raises TriggerError. No poll is issued.
2. **Fail slow**: the trigger was accepted but polling never sees a result
   (GenerationTimeoutError, after one extra final read) or the persisted
   status says failed (ReportedFailureError, reported on the first poll that
   sees it; a failed status left over from an earlier attempt is ignored until
   the row shows another status).

## Delivery guarantees

Every run owns a CancellableTask. State changes are published only while the
run's token is live, so at most one terminal state is delivered per start()
and nothing is delivered after close(). The reconciler never writes the
consultation; it is a pure reader, so several reconcilers may watch the same
consultation at once.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional, Protocol
from uuid import UUID

import structlog

from axishair.generation.policy import PollingPolicy
from axishair.generation.timer import CancellableTask, CancellationToken
from axishair.models.generation_job import GenerationJob, GenerationKind, GenerationStatus
from axishair.services.exceptions import (
    GenerationError,
    GenerationTimeoutError,
    ReportedFailureError,
    SubjectNotFoundError,
)

logger = structlog.get_logger(__name__)


class GenerationTrigger(Protocol):
    """Starts an external generation job. Returning means "accepted", not "complete"."""

    async def invoke(self, kind: GenerationKind, subject_id: UUID) -> None: ...


class SubjectStateReader(Protocol):
    """Idempotent read of the persisted generation fields for a subject."""

    async def read(self, subject_id: UUID, kind: GenerationKind) -> GenerationJob: ...


@dataclass(frozen=True)
class GenerationSnapshot:
    """What the UI layer observes: a status plus the result once done."""

    subject_id: UUID
    kind: GenerationKind
    status: GenerationStatus
    result_payload: Optional[str] = None
    result_timestamp: Optional[datetime] = None
    error_message: Optional[str] = None

    @classmethod
    def from_job(cls, job: GenerationJob) -> "GenerationSnapshot":
        """Build a snapshot from persisted state alone (nobody is watching the job)."""
        status = job.status
        if job.has_result and status != GenerationStatus.FAILED:
            status = GenerationStatus.DONE
        return cls(
            subject_id=job.subject_id,
            kind=job.kind,
            status=status,
            result_payload=job.result_payload,
            result_timestamp=job.result_timestamp,
        )


StatusListener = Callable[[GenerationSnapshot], None]


class AsyncJobReconciler:
    """Drive one (consultation, kind) generation from trigger to done/failed.

    Example:
        reconciler = AsyncJobReconciler(
            subject_id=consultation.id,
            kind=GenerationKind.RECOMMENDATION,
            trigger=edge_client,
            reader=ConsultationStateReader(session_factory),
            initial=consultation.generation_job(GenerationKind.RECOMMENDATION),
            on_change=render,
        )
        reconciler.start()
        snapshot = await reconciler.wait()
    """

    def __init__(
        self,
        subject_id: UUID,
        kind: GenerationKind,
        trigger: GenerationTrigger,
        reader: SubjectStateReader,
        policy: PollingPolicy | None = None,
        initial: GenerationJob | None = None,
        on_change: StatusListener | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.subject_id = subject_id
        self.kind = kind
        self.policy = policy or PollingPolicy()
        self._trigger = trigger
        self._reader = reader
        self._on_change = on_change
        self._sleep = sleep
        self._job = initial or GenerationJob.empty(subject_id, kind)
        self._snapshot = GenerationSnapshot(
            subject_id=subject_id, kind=kind, status=GenerationStatus.IDLE
        )
        self._run: CancellableTask | None = None
        self._closed = False

    @property
    def snapshot(self) -> GenerationSnapshot:
        return self._snapshot

    @property
    def status(self) -> GenerationStatus:
        return self._snapshot.status

    @property
    def in_flight(self) -> bool:
        return self._run is not None and not self._run.done()

    def start(self, regenerate: bool = False) -> GenerationSnapshot:
        """Start a generation run, or resolve immediately from an existing result.

        Args:
            regenerate: Trigger even if a result already exists or a run is in flight

        Returns:
            Snapshot right after the call: done (existing result) or generating
        """
        if self._closed:
            raise RuntimeError(f"Reconciler for {self.subject_id}/{self.kind.value} is closed")

        if self._job.has_result and not regenerate:
            self._cancel_run()
            self._publish(
                None,
                GenerationSnapshot(
                    subject_id=self.subject_id,
                    kind=self.kind,
                    status=GenerationStatus.DONE,
                    result_payload=self._job.result_payload,
                    result_timestamp=self._job.result_timestamp,
                ),
            )
            return self._snapshot

        if self.in_flight and not regenerate:
            logger.info(
                "generation.already_in_flight",
                subject_id=str(self.subject_id),
                kind=self.kind.value,
            )
            return self._snapshot

        self._cancel_run()
        baseline = self._job

        async def run(token: CancellationToken) -> None:
            await self._run_generation(token, baseline)

        self._run = CancellableTask(run, name=f"generation:{self.kind.value}:{self.subject_id}")
        self._publish(
            self._run.token,
            GenerationSnapshot(
                subject_id=self.subject_id, kind=self.kind, status=GenerationStatus.GENERATING
            ),
        )
        return self._snapshot

    def sync(self, job: GenerationJob) -> None:
        """Adopt fresher persisted data from the caller. Ignored while a run is in flight."""
        if job.subject_id != self.subject_id or job.kind != self.kind:
            raise ValueError("GenerationJob does not belong to this reconciler")
        if not self.in_flight:
            self._job = job

    def retry(self) -> GenerationSnapshot:
        """User-invoked restart, allowed from any state."""
        return self.start(regenerate=True)

    def close(self) -> None:
        """Stop observing. The external job keeps running; no callbacks fire after this."""
        self._closed = True
        if self._run is not None:
            # Keep the handle so wait() can observe the unwind
            self._run.cancel()

    async def wait(self) -> GenerationSnapshot:
        """Wait for the current run (if any) to finish and return the latest snapshot."""
        if self._run is not None:
            await self._run.wait()
        return self._snapshot

    async def _run_generation(self, token: CancellationToken, baseline: GenerationJob) -> None:
        start_time = time.monotonic()
        logger.info(
            "generation.started",
            subject_id=str(self.subject_id),
            kind=self.kind.value,
            regenerate=baseline.has_result,
        )

        try:
            job = await self._reconcile(token, baseline)
        except (GenerationError, SubjectNotFoundError) as e:
            self._fail(token, e, time.monotonic() - start_time)
            return
        except Exception as e:
            logger.error(
                "generation.crashed",
                subject_id=str(self.subject_id),
                kind=self.kind.value,
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )
            self._fail(token, e, time.monotonic() - start_time)
            return

        if token.cancelled:
            return
        self._job = job
        self._publish(
            token,
            GenerationSnapshot(
                subject_id=self.subject_id,
                kind=self.kind,
                status=GenerationStatus.DONE,
                result_payload=job.result_payload,
                result_timestamp=job.result_timestamp,
            ),
        )
        logger.info(
            "generation.succeeded",
            subject_id=str(self.subject_id),
            kind=self.kind.value,
            duration_seconds=time.monotonic() - start_time,
        )

    async def _reconcile(
        self, token: CancellationToken, baseline: GenerationJob
    ) -> GenerationJob:
        """Trigger, then poll until a result that differs from `baseline` is seen.

        A failed status already present in `baseline` is left over from an
        earlier attempt; it only counts once a poll has shown another status.

        Raises:
            TriggerError: Trigger call failed (no polling happens)
            ReportedFailureError: Persisted status reports failure
            GenerationTimeoutError: No result after max_attempts polls and the final read
        """
        await self._trigger.invoke(self.kind, self.subject_id)

        stale_failure = baseline.reported_failure
        attempts = 0
        while attempts < self.policy.max_attempts:
            await self._sleep(self.policy.interval_seconds)
            attempts += 1
            job = await self._poll(token, attempts)
            if job is None:
                continue
            if job.is_newer_than(baseline):
                return job
            if not job.reported_failure:
                stale_failure = False
            elif not stale_failure:
                raise ReportedFailureError(
                    f"{self.kind.value} generation reported failure for {self.subject_id}"
                )

        # Budget exhausted: one last look before giving up
        final = await self._poll(token, attempts + 1, final=True)
        if final is not None and final.is_newer_than(baseline):
            return final
        if final is not None and final.reported_failure and not stale_failure:
            raise ReportedFailureError(
                f"{self.kind.value} generation reported failure for {self.subject_id}"
            )
        raise GenerationTimeoutError(
            f"No {self.kind.value} result for {self.subject_id} after "
            f"{attempts} polls ({self.policy.timeout_seconds:g}s)"
        )

    async def _poll(
        self, token: CancellationToken, attempt: int, final: bool = False
    ) -> GenerationJob | None:
        """Read the subject once. Read errors count as an empty poll."""
        try:
            job = await self._reader.read(self.subject_id, self.kind)
        except SubjectNotFoundError:
            raise
        except Exception as e:
            logger.warning(
                "generation.poll_failed",
                subject_id=str(self.subject_id),
                kind=self.kind.value,
                attempt=attempt,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return None

        logger.debug(
            "generation.poll",
            subject_id=str(self.subject_id),
            kind=self.kind.value,
            attempt=attempt,
            final=final,
            has_result=job.has_result,
            persisted_status=job.status.value,
            cancelled=token.cancelled,
        )
        return job

    def _fail(self, token: CancellationToken, error: Exception, duration: float) -> None:
        if token.cancelled:
            return
        self._publish(
            token,
            GenerationSnapshot(
                subject_id=self.subject_id,
                kind=self.kind,
                status=GenerationStatus.FAILED,
                error_message=str(error) or type(error).__name__,
            ),
        )
        logger.warning(
            "generation.failed",
            subject_id=str(self.subject_id),
            kind=self.kind.value,
            error_type=type(error).__name__,
            error_message=str(error),
            duration_seconds=duration,
        )

    def _publish(self, token: CancellationToken | None, snapshot: GenerationSnapshot) -> None:
        # token is None only for the synchronous existing-result short-circuit
        if self._closed or (token is not None and token.cancelled):
            return
        self._snapshot = snapshot
        if self._on_change is not None:
            self._on_change(snapshot)

    def _cancel_run(self) -> None:
        if self._run is not None:
            self._run.cancel()
            self._run = None
