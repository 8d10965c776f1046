"""Registry of live reconcilers, one per (consultation, kind)."""

import asyncio
from collections import OrderedDict
from typing import Awaitable, Callable
from uuid import UUID

import structlog

from axishair.generation.policy import PollingPolicy
from axishair.generation.reconciler import (
    AsyncJobReconciler,
    GenerationSnapshot,
    GenerationTrigger,
    StatusListener,
    SubjectStateReader,
)
from axishair.models.generation_job import GenerationJob, GenerationKind, GenerationStatus

logger = structlog.get_logger(__name__)

MonitorKey = tuple[UUID, GenerationKind]

# Failure messages kept for callers that ask after the reconciler is gone
RECENT_FAILURE_LIMIT = 256


class GenerationMonitor:
    """Owns every reconciler started through the API or CLI.

    Reusing the reconciler for a key is what keeps a second start() from
    triggering a duplicate job while one is in flight; only an explicit
    regenerate/retry restarts it. A reconciler is dropped as soon as it
    delivers done or failed, after which the consultation row is the source
    of truth again. shutdown() is the teardown hook: it stops all local
    observers without touching the jobs running at the edge.
    """

    def __init__(
        self,
        trigger: GenerationTrigger,
        reader: SubjectStateReader,
        policy: PollingPolicy | None = None,
        on_change: StatusListener | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.trigger = trigger
        self.reader = reader
        self.policy = policy or PollingPolicy()
        self._on_change = on_change
        self._sleep = sleep
        self._reconcilers: dict[MonitorKey, AsyncJobReconciler] = {}
        self._failures: OrderedDict[MonitorKey, GenerationSnapshot] = OrderedDict()

    def __len__(self) -> int:
        """Number of reconcilers still generating."""
        return len(self._reconcilers)

    def start(
        self,
        subject_id: UUID,
        kind: GenerationKind,
        initial: GenerationJob | None = None,
        regenerate: bool = False,
    ) -> GenerationSnapshot:
        """Start (or join) the generation for a consultation.

        Args:
            subject_id: Consultation ID
            kind: Generation kind
            initial: Persisted generation state the caller already loaded
            regenerate: Force a new job even if a result exists or one is in flight

        Returns:
            Snapshot right after starting
        """
        key = (subject_id, kind)
        reconciler = self._reconcilers.get(key)
        if reconciler is None:
            reconciler = AsyncJobReconciler(
                subject_id=subject_id,
                kind=kind,
                trigger=self.trigger,
                reader=self.reader,
                policy=self.policy,
                initial=initial,
                on_change=self._listener(key),
                sleep=self._sleep,
            )
            self._reconcilers[key] = reconciler
        elif initial is not None:
            reconciler.sync(initial)

        return reconciler.start(regenerate=regenerate)

    def retry(
        self, subject_id: UUID, kind: GenerationKind, initial: GenerationJob | None = None
    ) -> GenerationSnapshot:
        """Restart generation from any state (including failed)."""
        return self.start(subject_id, kind, initial=initial, regenerate=True)

    def snapshot(self, subject_id: UUID, kind: GenerationKind) -> GenerationSnapshot | None:
        """Latest snapshot of a run still generating, None if nothing is watching it."""
        reconciler = self._reconcilers.get((subject_id, kind))
        return reconciler.snapshot if reconciler else None

    def last_failure(self, subject_id: UUID, kind: GenerationKind) -> GenerationSnapshot | None:
        """Failed snapshot of the most recent finished run, if that run failed."""
        return self._failures.get((subject_id, kind))

    async def wait(self, subject_id: UUID, kind: GenerationKind) -> GenerationSnapshot | None:
        """Wait for the watched run to reach a terminal state.

        Returns None when nothing is generating for the key (including runs
        that already finished and were dropped).
        """
        reconciler = self._reconcilers.get((subject_id, kind))
        if reconciler is None:
            return None
        return await reconciler.wait()

    def stop(self, subject_id: UUID, kind: GenerationKind) -> bool:
        """Stop watching a consultation. Returns False if it was not watched."""
        reconciler = self._reconcilers.pop((subject_id, kind), None)
        if reconciler is None:
            return False
        reconciler.close()
        logger.info("generation.watch_stopped", subject_id=str(subject_id), kind=kind.value)
        return True

    async def shutdown(self) -> None:
        """Close all reconcilers and wait for their tasks to unwind."""
        reconcilers = list(self._reconcilers.values())
        self._reconcilers.clear()
        for reconciler in reconcilers:
            reconciler.close()
        await asyncio.gather(*(r.wait() for r in reconcilers), return_exceptions=True)
        if reconcilers:
            logger.info("generation.monitor_stopped", closed=len(reconcilers))

    def _listener(self, key: MonitorKey) -> StatusListener:
        def on_change(snapshot: GenerationSnapshot) -> None:
            logger.info(
                "generation.status_changed",
                subject_id=str(snapshot.subject_id),
                kind=snapshot.kind.value,
                status=snapshot.status.value,
                error_message=snapshot.error_message,
            )
            if snapshot.status == GenerationStatus.FAILED:
                self._failures[key] = snapshot
                self._failures.move_to_end(key)
                while len(self._failures) > RECENT_FAILURE_LIMIT:
                    self._failures.popitem(last=False)
            else:
                self._failures.pop(key, None)

            if snapshot.status.is_terminal:
                self._reconcilers.pop(key, None)

            if self._on_change is not None:
                self._on_change(snapshot)

        return on_change
