"""Tests for the watch-generation CLI command."""

from datetime import datetime
from uuid import uuid4

import pytest
from conftest import FakeReader, FakeTrigger

from axishair.cli.watch_generation import parse_args, print_summary, watch_generation
from axishair.generation.monitor import GenerationMonitor
from axishair.generation.policy import PollingPolicy
from axishair.generation.reconciler import GenerationSnapshot
from axishair.models.client import Client
from axishair.models.consultation import Consultation
from axishair.models.generation_job import GenerationJob, GenerationKind, GenerationStatus
from axishair.services.exceptions import SubjectNotFoundError


def test_parse_args_defaults():
    consultation_id = uuid4()

    args = parse_args([str(consultation_id)])

    assert args.consultation_id == consultation_id
    assert args.kind == GenerationKind.RECOMMENDATION
    assert args.regenerate is False
    assert args.verbose is False


def test_parse_args_preview_regenerate():
    args = parse_args([str(uuid4()), "--kind", "preview_image", "--regenerate", "-v"])

    assert args.kind == GenerationKind.PREVIEW_IMAGE
    assert args.regenerate is True
    assert args.verbose is True


def test_parse_args_rejects_bad_input():
    with pytest.raises(SystemExit):
        parse_args(["not-a-uuid"])
    with pytest.raises(SystemExit):
        parse_args([str(uuid4()), "--kind", "video"])


def test_print_summary(capsys):
    snapshot = GenerationSnapshot(
        subject_id=uuid4(),
        kind=GenerationKind.RECOMMENDATION,
        status=GenerationStatus.FAILED,
        error_message="No recommendation after 20 polls (60s)",
    )

    print_summary(snapshot)

    out = capsys.readouterr().out
    assert "Status: failed" in out
    assert "Error: No recommendation after 20 polls (60s)" in out


@pytest.mark.asyncio
async def test_watch_generation_follows_to_done(uow_factory, fast_sleep):
    stylist_id = uuid4()
    async with await uow_factory() as uow:
        client = await uow.clients.add(Client(stylist_id=stylist_id, full_name="Maya Torres"))
        consultation = await uow.consultations.add(
            Consultation(stylist_id=stylist_id, client_id=client.id)
        )

    trigger = FakeTrigger()
    monitor = GenerationMonitor(
        trigger=trigger,
        reader=FakeReader(
            GenerationJob.empty(consultation.id, GenerationKind.PREVIEW_IMAGE),
            GenerationJob(
                subject_id=consultation.id,
                kind=GenerationKind.PREVIEW_IMAGE,
                result_payload="https://cdn/preview.png",
                result_timestamp=datetime(2026, 3, 1, 9, 5),
                status=GenerationStatus.DONE,
            ),
        ),
        policy=PollingPolicy(),
        sleep=fast_sleep,
    )

    snapshot = await watch_generation(
        consultation.id, GenerationKind.PREVIEW_IMAGE, False, uow_factory, monitor
    )

    assert snapshot.status == GenerationStatus.DONE
    assert snapshot.result_payload == "https://cdn/preview.png"
    assert trigger.calls == [(GenerationKind.PREVIEW_IMAGE, consultation.id)]
    assert len(monitor) == 0


@pytest.mark.asyncio
async def test_watch_generation_unknown_consultation(uow_factory, fast_sleep):
    trigger = FakeTrigger()
    monitor = GenerationMonitor(trigger=trigger, reader=FakeReader(), sleep=fast_sleep)

    with pytest.raises(SubjectNotFoundError):
        await watch_generation(
            uuid4(), GenerationKind.RECOMMENDATION, False, uow_factory, monitor
        )

    assert trigger.calls == []
