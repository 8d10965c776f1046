"""CLI command for triggering an AI generation and following it to completion.

Usage:
    python -m axishair.cli CONSULTATION_ID [OPTIONS]

Examples:
    # Generate the text recommendation (no-op if one already exists)
    python -m axishair.cli 3f2b0c6e-...

    # Regenerate the preview image
    python -m axishair.cli 3f2b0c6e-... --kind preview_image --regenerate

    # Verbose logging (shows every poll)
    python -m axishair.cli 3f2b0c6e-... -v
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace
from typing import Callable, Sequence
from uuid import UUID

import structlog

from axishair.core import timezone  # noqa: F401
from axishair.core.config import Settings, configure_logging
from axishair.core.database import setup_db_session
from axishair.generation.monitor import GenerationMonitor
from axishair.generation.policy import PollingPolicy
from axishair.generation.reader import ConsultationStateReader
from axishair.generation.reconciler import GenerationSnapshot
from axishair.models.generation_job import GenerationKind, GenerationStatus
from axishair.services.edge_functions.client import EdgeFunctionClient
from axishair.services.exceptions import SubjectNotFoundError
from axishair.uow import create_uow_factory

logger = structlog.get_logger()


def parse_args(argv: Sequence[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(
        description="Trigger an AI generation for a consultation and wait for the result",
        epilog="Polls the consultation until the edge function writes a result or times out",
    )

    parser.add_argument("consultation_id", type=UUID, help="Consultation ID")

    parser.add_argument(
        "--kind",
        type=GenerationKind,
        choices=list(GenerationKind),
        metavar="{recommendation,preview_image}",
        default=GenerationKind.RECOMMENDATION,
        help="What to generate (default: recommendation)",
    )

    parser.add_argument(
        "--regenerate",
        action="store_true",
        help="Trigger even if a result already exists",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


async def watch_generation(
    consultation_id: UUID,
    kind: GenerationKind,
    regenerate: bool,
    uow_factory: Callable,
    monitor: GenerationMonitor,
) -> GenerationSnapshot:
    """Start a generation through the monitor and wait for a terminal state.

    Raises:
        SubjectNotFoundError: If the consultation does not exist
    """
    async with await uow_factory() as uow:
        consultation = await uow.consultations.get_by_id(consultation_id)
        if consultation is None:
            raise SubjectNotFoundError(f"Consultation {consultation_id} not found")
        initial = consultation.generation_job(kind)

    try:
        snapshot = monitor.start(consultation_id, kind, initial=initial, regenerate=regenerate)
        if snapshot.status.is_terminal:
            return snapshot
        result = await monitor.wait(consultation_id, kind)
        return result or snapshot
    finally:
        await monitor.shutdown()


def print_summary(snapshot: GenerationSnapshot) -> None:
    print("\n" + "=" * 60)
    print(f"Generation: {snapshot.kind.value} for {snapshot.subject_id}")
    print("=" * 60)
    print(f"Status: {snapshot.status.value}")
    if snapshot.result_timestamp:
        print(f"Generated at: {snapshot.result_timestamp.isoformat()}")
    if snapshot.result_payload:
        print()
        print(snapshot.result_payload)
    if snapshot.error_message:
        print(f"Error: {snapshot.error_message}")
    print("=" * 60 + "\n")


async def async_main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point (async).

    Returns:
        Exit code: 0 (done), 1 (failed), 2 (configuration or lookup error)
    """
    args = parse_args(argv)

    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.verbose:
        settings.log_level = "DEBUG"

    configure_logging(settings)

    logger.info(
        "cli.started",
        consultation_id=str(args.consultation_id),
        kind=args.kind.value,
        regenerate=args.regenerate,
    )

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    uow_factory = create_uow_factory(session_factory)
    monitor = GenerationMonitor(
        trigger=EdgeFunctionClient(
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_role_key,
            timeout=settings.edge_function_timeout_seconds,
        ),
        reader=ConsultationStateReader(session_factory),
        policy=PollingPolicy.from_settings(settings),
    )

    try:
        snapshot = await watch_generation(
            args.consultation_id, args.kind, args.regenerate, uow_factory, monitor
        )
    except SubjectNotFoundError as e:
        logger.error("cli.consultation_not_found", consultation_id=str(args.consultation_id))
        print(f"\nError: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        logger.info("cli.interrupted")
        print("\nStopped watching; the edge function keeps running", file=sys.stderr)
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        logger.error(
            "cli.unexpected_error",
            error=str(e),
            error_type=type(e).__name__,
        )
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        return 1

    print_summary(snapshot)
    return 0 if snapshot.status == GenerationStatus.DONE else 1


def main() -> None:
    """Synchronous entry point for CLI."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
