"""Consultation API endpoints.

This module implements REST endpoints for:
- POST   /api/consultations/{id}/generations/{kind} - Start (or join) an AI generation
- POST   /api/consultations/{id}/generations/{kind}/retry - Restart after failure or to regenerate
- GET    /api/consultations/{id}/generations/{kind} - Current generation status
- DELETE /api/consultations/{id}/generations/{kind} - Stop watching (the edge job keeps running)
- POST   /api/consultations/{id}/status - Approve / request revision / cancel / restore

Generation runs in the background: start and retry answer 202 with the
"generating" snapshot (or "done" when a result already exists) and clients
poll the GET endpoint.
"""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from axishair.api.dependencies import get_generation_monitor
from axishair.core.dependencies import get_uow
from axishair.generation.monitor import GenerationMonitor
from axishair.generation.reconciler import GenerationSnapshot
from axishair.models.consultation import ConsultationStatus, InvalidStateTransition
from axishair.models.generation_job import GenerationJob, GenerationKind, GenerationStatus
from axishair.uow import UnitOfWork

logger = structlog.get_logger()
router = APIRouter(prefix="/api/consultations", tags=["consultations"])


# Request/Response Models


class StartGenerationRequest(BaseModel):
    """Request model for starting a generation."""

    regenerate: bool = Field(
        default=False,
        description="Trigger a new job even if a result already exists",
    )


class GenerationStatusResponse(BaseModel):
    """Response model for generation status."""

    consultation_id: UUID = Field(..., description="Consultation ID")
    kind: GenerationKind = Field(..., description="recommendation or preview_image")
    status: GenerationStatus = Field(
        ...,
        description="Generation status (idle, generating, done, failed)",
    )
    result_payload: str | None = Field(
        default=None,
        description="Recommendation text or preview image URL (null until done)",
    )
    result_timestamp: datetime | None = Field(
        default=None,
        description="When the result was generated (null until done)",
    )
    error_message: str | None = Field(
        default=None,
        description="Why the last run failed (null unless failed)",
    )
    watching: bool = Field(
        ...,
        description="True if a reconciler is tracking this generation in this process",
    )

    @classmethod
    def from_snapshot(
        cls, snapshot: GenerationSnapshot, watching: bool
    ) -> "GenerationStatusResponse":
        return cls(
            consultation_id=snapshot.subject_id,
            kind=snapshot.kind,
            status=snapshot.status,
            result_payload=snapshot.result_payload,
            result_timestamp=snapshot.result_timestamp,
            error_message=snapshot.error_message,
            watching=watching,
        )


class UpdateStatusRequest(BaseModel):
    """Request model for consultation approval lifecycle changes."""

    status: ConsultationStatus = Field(
        ...,
        description="approved, revision_requested, cancelled, or awaiting_approval (restore)",
    )


class ConsultationStatusResponse(BaseModel):
    """Response model for consultation status updates."""

    consultation_id: UUID
    status: ConsultationStatus


async def _load_generation_job(
    uow: UnitOfWork, consultation_id: UUID, kind: GenerationKind
) -> GenerationJob:
    consultation = await uow.consultations.get_by_id(consultation_id)
    if consultation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Consultation {consultation_id} not found",
        )
    return consultation.generation_job(kind)


# API Endpoints


@router.post(
    "/{consultation_id}/generations/{kind}",
    response_model=GenerationStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_generation(
    consultation_id: UUID,
    kind: GenerationKind,
    request: StartGenerationRequest | None = None,
    uow: UnitOfWork = Depends(get_uow),
    monitor: GenerationMonitor = Depends(get_generation_monitor),
) -> GenerationStatusResponse:
    """Start an AI generation for a consultation.

    If a result already exists and regenerate is false, nothing is triggered and
    the existing result is returned with status "done". A second start while a
    job is in flight joins the running job instead of triggering another.

    Raises:
        HTTPException 404: Consultation not found
    """
    regenerate = request.regenerate if request else False
    job = await _load_generation_job(uow, consultation_id, kind)
    snapshot = monitor.start(consultation_id, kind, initial=job, regenerate=regenerate)

    logger.info(
        "generation.requested",
        consultation_id=str(consultation_id),
        kind=kind.value,
        regenerate=regenerate,
        status=snapshot.status.value,
    )
    return GenerationStatusResponse.from_snapshot(
        snapshot, watching=not snapshot.status.is_terminal
    )


@router.post(
    "/{consultation_id}/generations/{kind}/retry",
    response_model=GenerationStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def retry_generation(
    consultation_id: UUID,
    kind: GenerationKind,
    uow: UnitOfWork = Depends(get_uow),
    monitor: GenerationMonitor = Depends(get_generation_monitor),
) -> GenerationStatusResponse:
    """Restart a generation from any state (the retry button after a failure).

    Raises:
        HTTPException 404: Consultation not found
    """
    job = await _load_generation_job(uow, consultation_id, kind)
    snapshot = monitor.retry(consultation_id, kind, initial=job)
    return GenerationStatusResponse.from_snapshot(
        snapshot, watching=not snapshot.status.is_terminal
    )


@router.get(
    "/{consultation_id}/generations/{kind}",
    response_model=GenerationStatusResponse,
)
async def get_generation_status(
    consultation_id: UUID,
    kind: GenerationKind,
    uow: UnitOfWork = Depends(get_uow),
    monitor: GenerationMonitor = Depends(get_generation_monitor),
) -> GenerationStatusResponse:
    """Current generation status.

    Answers from the live reconciler while a run is generating; otherwise
    reads the consultation row. A row that shows no result (or a failed
    image) is paired with the error of this process's last failed run, if any.

    Raises:
        HTTPException 404: Consultation not found (only checked when not watching)
    """
    snapshot = monitor.snapshot(consultation_id, kind)
    if snapshot is not None:
        return GenerationStatusResponse.from_snapshot(snapshot, watching=True)

    job = await _load_generation_job(uow, consultation_id, kind)
    snapshot = GenerationSnapshot.from_job(job)
    if snapshot.status in (GenerationStatus.IDLE, GenerationStatus.FAILED):
        failure = monitor.last_failure(consultation_id, kind)
        if failure is not None:
            snapshot = failure
    return GenerationStatusResponse.from_snapshot(snapshot, watching=False)


@router.delete(
    "/{consultation_id}/generations/{kind}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def stop_watching_generation(
    consultation_id: UUID,
    kind: GenerationKind,
    monitor: GenerationMonitor = Depends(get_generation_monitor),
) -> Response:
    """Stop the local reconciler. Idempotent: answers 204 even if nothing was watching."""
    monitor.stop(consultation_id, kind)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{consultation_id}/status", response_model=ConsultationStatusResponse)
async def update_consultation_status(
    consultation_id: UUID,
    request: UpdateStatusRequest,
    uow: UnitOfWork = Depends(get_uow),
) -> ConsultationStatusResponse:
    """Approve, request a revision, cancel, or restore a consultation.

    Raises:
        HTTPException 404: Consultation not found
        HTTPException 409: Transition not allowed from the current status
        HTTPException 400: Status cannot be set directly
    """
    consultation = await uow.consultations.get_by_id(consultation_id)
    if consultation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Consultation {consultation_id} not found",
        )

    try:
        await uow.consultations.update_status(consultation, request.status)
    except InvalidStateTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(
        "consultation.status_updated",
        consultation_id=str(consultation_id),
        status=consultation.status.value,
    )
    return ConsultationStatusResponse(consultation_id=consultation.id, status=consultation.status)
