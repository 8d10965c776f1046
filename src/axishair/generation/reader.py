"""Subject-state reader backed by the consultations table."""

from typing import Callable
from uuid import UUID

from axishair.models.generation_job import GenerationJob, GenerationKind
from axishair.repositories.consultation import ConsultationRepository
from axishair.services.exceptions import SubjectNotFoundError


class ConsultationStateReader:
    """Reads a consultation's generation columns with a fresh session per call.

    A new session per read keeps every poll independent: no identity-map
    caching between polls, and no transaction held open while sleeping.
    """

    def __init__(self, session_factory: Callable):
        """Initialize reader.

        Args:
            session_factory: Factory function to create new database sessions
        """
        self.session_factory = session_factory

    async def read(self, subject_id: UUID, kind: GenerationKind) -> GenerationJob:
        """Load the consultation and flatten its result columns for `kind`.

        Raises:
            SubjectNotFoundError: If the consultation no longer exists
        """
        async with self.session_factory() as session:
            consultation = await ConsultationRepository(session).get_by_id(subject_id)
            if consultation is None:
                raise SubjectNotFoundError(f"Consultation {subject_id} not found")
            return consultation.generation_job(kind)
