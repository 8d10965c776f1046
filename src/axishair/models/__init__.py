"""SQLModel database entities and generation value types.

All table models are imported here to ensure they're registered with SQLModel
metadata for Alembic autogenerate support.
"""

from axishair.models.client import Client
from axishair.models.consultation import Consultation, ConsultationStatus, InvalidStateTransition
from axishair.models.generation_job import GenerationJob, GenerationKind, GenerationStatus

__all__ = [
    "Client",
    "Consultation",
    "ConsultationStatus",
    "InvalidStateTransition",
    "GenerationJob",
    "GenerationKind",
    "GenerationStatus",
]
