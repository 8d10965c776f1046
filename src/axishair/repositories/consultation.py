"""Consultation repository for AXIS HAIR backend.

Provides data access methods for Consultation entities.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from axishair.models.consultation import Consultation, ConsultationStatus


class ConsultationRepository:
    """Repository for Consultation entities.

    Generation result columns are never written here: the edge functions own them.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, consultation_id: UUID) -> Consultation | None:
        """Retrieve consultation by UUID.

        Args:
            consultation_id: Consultation's unique identifier

        Returns:
            Consultation if found, None otherwise
        """
        result = await self.session.execute(
            select(Consultation).where(Consultation.id == consultation_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def add(self, consultation: Consultation) -> Consultation:
        """Persist new consultation to database.

        Args:
            consultation: Consultation entity to persist

        Returns:
            Persisted consultation with generated ID
        """
        self.session.add(consultation)
        await self.session.flush()
        return consultation

    async def get_by_stylist(
        self, stylist_id: UUID, limit: int = 1000, offset: int = 0
    ) -> list[Consultation]:
        """Retrieve a stylist's consultations, newest first.

        Args:
            stylist_id: Stylist's user ID
            limit: Maximum number of consultations to return (default: 1000)
            offset: Number of consultations to skip (default: 0)

        Returns:
            List of consultations ordered by created_at (newest first)
        """
        result = await self.session.execute(
            select(Consultation)
            .where(Consultation.stylist_id == stylist_id)  # type: ignore[arg-type]
            .order_by(Consultation.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def get_by_client(self, client_id: UUID) -> list[Consultation]:
        """Retrieve all consultations for a client, newest first."""
        result = await self.session.execute(
            select(Consultation)
            .where(Consultation.client_id == client_id)  # type: ignore[arg-type]
            .order_by(Consultation.created_at.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def update_status(
        self, consultation: Consultation, status: ConsultationStatus
    ) -> Consultation:
        """Apply an approval-lifecycle transition and flush.

        Args:
            consultation: Consultation entity to update
            status: Target status (approved, revision_requested, cancelled, awaiting_approval)

        Raises:
            InvalidStateTransition: If the transition is not allowed from the current status
            ValueError: If the target status cannot be set directly
        """
        if status == ConsultationStatus.APPROVED:
            consultation.approve()
        elif status == ConsultationStatus.REVISION_REQUESTED:
            consultation.request_revision()
        elif status == ConsultationStatus.CANCELLED:
            consultation.cancel()
        elif status == ConsultationStatus.AWAITING_APPROVAL:
            consultation.restore()
        else:
            raise ValueError(f"Status {status.value} cannot be set directly")

        self.session.add(consultation)
        await self.session.flush()
        await self.session.refresh(consultation)
        return consultation
