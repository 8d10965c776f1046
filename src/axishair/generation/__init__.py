"""Trigger-and-poll reconciliation for AI generation jobs."""

from axishair.generation.monitor import GenerationMonitor
from axishair.generation.policy import PollingPolicy
from axishair.generation.reader import ConsultationStateReader
from axishair.generation.reconciler import AsyncJobReconciler, GenerationSnapshot

__all__ = [
    "AsyncJobReconciler",
    "ConsultationStateReader",
    "GenerationMonitor",
    "GenerationSnapshot",
    "PollingPolicy",
]
