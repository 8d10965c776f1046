"""Consultation entity - client intake with AI generation results."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from axishair.models.generation_job import GenerationJob, GenerationKind, GenerationStatus


class ConsultationStatus(str, Enum):
    """Consultation approval lifecycle status."""

    PHOTO_UPLOADED = "photo_uploaded"
    PREVIEW_GENERATED = "preview_generated"
    AWAITING_APPROVAL = "awaiting_approval"
    APPROVED = "approved"
    REVISION_REQUESTED = "revision_requested"
    CANCELLED = "cancelled"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    # Persist enum values ("generating"), which is what the edge functions write
    return [member.value for member in enum_cls]


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid consultation state transition."""

    pass


class Consultation(SQLModel, table=True):
    """Consultation holds the intake answers and the generation result columns.

    ai_recommendation/ai_generated_at and preview_image_url/preview_status/
    preview_generated_at are written by the edge functions only.
    """

    __tablename__ = "consultations"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    stylist_id: UUID = Field(index=True)
    client_id: UUID = Field(foreign_key="clients.id", index=True)
    status: ConsultationStatus = Field(
        default=ConsultationStatus.PHOTO_UPLOADED,
        sa_column=Column(
            SAEnum(ConsultationStatus, name="consultation_status", values_callable=_enum_values),
            nullable=False,
            index=True,
        ),
    )

    # Intake
    service_type: Optional[str] = Field(default=None, max_length=50)
    hair_texture: Optional[str] = Field(default=None, max_length=50)
    desired_length: Optional[str] = Field(default=None, max_length=50)
    face_shape: Optional[str] = Field(default=None, max_length=50)
    maintenance_level: Optional[str] = Field(default=None, max_length=50)
    lifestyle: Optional[str] = Field(default=None, max_length=50)
    inspiration_notes: Optional[str] = Field(default=None)

    # Appointment
    estimated_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    appointment_date: Optional[datetime] = Field(default=None, index=True)

    # Images
    original_image_url: Optional[str] = Field(default=None)
    preview_image_url: Optional[str] = Field(default=None)
    preview_status: GenerationStatus = Field(
        default=GenerationStatus.IDLE,
        sa_column=Column(
            SAEnum(GenerationStatus, name="preview_status", values_callable=_enum_values),
            nullable=False,
        ),
    )
    preview_generated_at: Optional[datetime] = Field(default=None)

    # Text recommendation
    ai_recommendation: Optional[str] = Field(default=None)
    ai_generated_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def generation_job(self, kind: GenerationKind) -> GenerationJob:
        """Flatten this row's result columns for one generation kind."""
        if kind is GenerationKind.RECOMMENDATION:
            payload = self.ai_recommendation or None
            return GenerationJob(
                subject_id=self.id,
                kind=kind,
                result_payload=payload,
                result_timestamp=(self.ai_generated_at or self.created_at) if payload else None,
                status=GenerationStatus.DONE if payload else GenerationStatus.IDLE,
            )

        payload = self.preview_image_url or None
        # Rows written before preview_generated_at existed only carry the URL
        timestamp = (self.preview_generated_at or self.created_at) if payload else None
        status = self.preview_status
        if payload and status == GenerationStatus.IDLE:
            status = GenerationStatus.DONE
        return GenerationJob(
            subject_id=self.id,
            kind=kind,
            result_payload=payload,
            result_timestamp=timestamp,
            status=status,
        )

    @property
    def is_cancelled(self) -> bool:
        return self.status == ConsultationStatus.CANCELLED

    def approve(self) -> None:
        """Transition to approved.

        Raises:
            InvalidStateTransition: If consultation is cancelled or already approved
        """
        if self.status in (ConsultationStatus.CANCELLED, ConsultationStatus.APPROVED):
            raise InvalidStateTransition(f"Cannot approve from {self.status.value}.")
        self.status = ConsultationStatus.APPROVED

    def request_revision(self) -> None:
        """Transition to revision_requested.

        Raises:
            InvalidStateTransition: If consultation is cancelled
        """
        if self.status == ConsultationStatus.CANCELLED:
            raise InvalidStateTransition("Cannot request revision on a cancelled consultation.")
        self.status = ConsultationStatus.REVISION_REQUESTED

    def cancel(self) -> None:
        """Cancel the appointment. Cancelled consultations drop out of dashboard metrics.

        Raises:
            InvalidStateTransition: If consultation is already cancelled
        """
        if self.status == ConsultationStatus.CANCELLED:
            raise InvalidStateTransition("Consultation is already cancelled.")
        self.status = ConsultationStatus.CANCELLED

    def restore(self) -> None:
        """Move a cancelled consultation back to awaiting_approval.

        Raises:
            InvalidStateTransition: If consultation is not cancelled
        """
        if self.status != ConsultationStatus.CANCELLED:
            raise InvalidStateTransition(
                f"Cannot restore from {self.status.value}. Consultation must be cancelled."
            )
        self.status = ConsultationStatus.AWAITING_APPROVAL
