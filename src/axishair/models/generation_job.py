"""GenerationJob value - AI generation state attached to a consultation.

There is no generation table: the edge functions write their results as flat
columns on the consultation row. GenerationJob lifts those columns into one
value so the reconciler can reason about a single shape for both kinds.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID


class GenerationKind(str, Enum):
    """Which edge function capability is being invoked."""

    RECOMMENDATION = "recommendation"
    PREVIEW_IMAGE = "preview_image"

    @property
    def function_name(self) -> str:
        """Edge function slug that produces this kind of result."""
        if self is GenerationKind.RECOMMENDATION:
            return "generate-recommendation"
        return "generate-preview-image"


class GenerationStatus(str, Enum):
    """Generation lifecycle status."""

    IDLE = "idle"
    GENERATING = "generating"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.DONE, GenerationStatus.FAILED)


@dataclass(frozen=True)
class GenerationJob:
    """Generation result for one (consultation, kind) pair.

    Invariant: result_payload and result_timestamp are either both set or both None.
    """

    subject_id: UUID
    kind: GenerationKind
    result_payload: Optional[str] = None
    result_timestamp: Optional[datetime] = None
    status: GenerationStatus = GenerationStatus.IDLE

    def __post_init__(self) -> None:
        if (self.result_payload is None) != (self.result_timestamp is None):
            raise ValueError(
                "result_payload and result_timestamp must be set together "
                f"(subject={self.subject_id}, kind={self.kind.value})"
            )

    @property
    def has_result(self) -> bool:
        return self.result_payload is not None

    @property
    def reported_failure(self) -> bool:
        """True when the persisted status explicitly marks the job failed.

        A previous result may still be present (failed regeneration keeps the old image).
        """
        return self.status == GenerationStatus.FAILED

    def is_newer_than(self, baseline: Optional["GenerationJob"]) -> bool:
        """True if this job carries a result that differs from the baseline's result.

        Payload and timestamp are compared as a pair: the preview function
        replaces the URL without touching any timestamp column.
        """
        if not self.has_result:
            return False
        if baseline is None or not baseline.has_result:
            return True
        return (self.result_payload, self.result_timestamp) != (
            baseline.result_payload,
            baseline.result_timestamp,
        )

    @classmethod
    def empty(cls, subject_id: UUID, kind: GenerationKind) -> "GenerationJob":
        return cls(subject_id=subject_id, kind=kind)
