"""Repository layer tests for AXIS HAIR backend.

Tests focus on:
- Enum columns round-trip as their lowercase values (the edge functions write those)
- Stylist scoping and ordering of consultation listings
- Status updates through the repository
- ConsultationStateReader reading fresh rows per poll

Simple CRUD operations are not tested (trust SQLAlchemy/PostgreSQL).
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from sqlalchemy import text

from axishair.generation.reader import ConsultationStateReader
from axishair.models.client import Client
from axishair.models.consultation import (
    Consultation,
    ConsultationStatus,
    InvalidStateTransition,
)
from axishair.models.generation_job import GenerationKind, GenerationStatus
from axishair.repositories.client import ClientRepository
from axishair.repositories.consultation import ConsultationRepository
from axishair.services.exceptions import SubjectNotFoundError


async def create_client(session, stylist_id) -> Client:
    client = await ClientRepository(session).add(
        Client(stylist_id=stylist_id, full_name="Maya Torres")
    )
    await session.commit()
    return client


@pytest.mark.asyncio
async def test_enum_columns_store_values(session):
    """Raw SQL sees "generating", not "GENERATING"."""
    stylist_id = uuid4()
    client = await create_client(session, stylist_id)
    consultation = Consultation(
        stylist_id=stylist_id,
        client_id=client.id,
        status=ConsultationStatus.AWAITING_APPROVAL,
        preview_status=GenerationStatus.GENERATING,
    )
    await ConsultationRepository(session).add(consultation)
    await session.commit()

    row = (
        await session.execute(
            text("SELECT status::text, preview_status::text FROM consultations WHERE id = :id"),
            {"id": consultation.id},
        )
    ).one()

    assert row == ("awaiting_approval", "generating")


@pytest.mark.asyncio
async def test_get_by_stylist_scopes_and_orders(session):
    stylist_id = uuid4()
    other_stylist = uuid4()
    client = await create_client(session, stylist_id)
    base = datetime(2026, 3, 1, 9, 0)

    repo = ConsultationRepository(session)
    for offset in range(3):
        await repo.add(
            Consultation(
                stylist_id=stylist_id,
                client_id=client.id,
                created_at=base + timedelta(hours=offset),
            )
        )
    await repo.add(Consultation(stylist_id=other_stylist, client_id=client.id))
    await session.commit()

    consultations = await repo.get_by_stylist(stylist_id)

    assert len(consultations) == 3
    assert [c.created_at for c in consultations] == [
        base + timedelta(hours=2),
        base + timedelta(hours=1),
        base,
    ]
    assert len(await repo.get_by_stylist(stylist_id, limit=2)) == 2
    assert len(await repo.get_by_client(client.id)) == 4


@pytest.mark.asyncio
async def test_update_status(session):
    stylist_id = uuid4()
    client = await create_client(session, stylist_id)
    repo = ConsultationRepository(session)
    consultation = await repo.add(Consultation(stylist_id=stylist_id, client_id=client.id))
    await session.commit()

    await repo.update_status(consultation, ConsultationStatus.APPROVED)
    await session.commit()
    assert (await repo.get_by_id(consultation.id)).status == ConsultationStatus.APPROVED

    with pytest.raises(InvalidStateTransition):
        await repo.update_status(consultation, ConsultationStatus.APPROVED)
    with pytest.raises(ValueError, match="cannot be set directly"):
        await repo.update_status(consultation, ConsultationStatus.PREVIEW_GENERATED)


@pytest.mark.asyncio
async def test_reader_sees_edge_function_writes(session, session_factory):
    """Each read uses a fresh session, so out-of-band writes show up on the next poll."""
    stylist_id = uuid4()
    client = await create_client(session, stylist_id)
    consultation = await ConsultationRepository(session).add(
        Consultation(stylist_id=stylist_id, client_id=client.id)
    )
    await session.commit()

    reader = ConsultationStateReader(session_factory)
    job = await reader.read(consultation.id, GenerationKind.RECOMMENDATION)
    assert not job.has_result

    # Simulate the edge function writing the result
    await session.execute(
        text(
            "UPDATE consultations SET ai_recommendation = :text, ai_generated_at = :at "
            "WHERE id = :id"
        ),
        {"text": "Soft curtain bangs", "at": datetime(2026, 3, 1, 9, 5), "id": consultation.id},
    )
    await session.commit()

    job = await reader.read(consultation.id, GenerationKind.RECOMMENDATION)
    assert job.status == GenerationStatus.DONE
    assert job.result_payload == "Soft curtain bangs"


@pytest.mark.asyncio
async def test_reader_raises_for_missing_consultation(session, session_factory):
    reader = ConsultationStateReader(session_factory)

    with pytest.raises(SubjectNotFoundError):
        await reader.read(uuid4(), GenerationKind.PREVIEW_IMAGE)
