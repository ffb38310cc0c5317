"""Command line entry point: ``raffledraw draw`` and ``raffledraw verify``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, load_settings
from .db.engine import get_sessionmaker, init_db, make_engine
from .raffle.errors import RaffleError
from .raffle.participants import load_participants_from_csv
from .raffle.report import load_template
from .raffle.seed import parse_seed
from .workflows import record_draw_run, render_report, run_draw, verify_draw_run

logger = logging.getLogger("raffledraw")

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raffledraw",
        description="Deterministic, auditable weighted raffle draw.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=settings.log_level,
        help="Diagnostic log level written to stderr (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    draw = subparsers.add_parser("draw", help="Run a draw and print the filled template")
    draw.add_argument("seed", help="Published seed as a hexadecimal string")
    draw.add_argument(
        "--participants",
        default=settings.participants_csv,
        help="Participant CSV (default: %(default)s)",
    )
    draw.add_argument(
        "--template",
        default=settings.template_path,
        help="Results template (default: packaged template)",
    )
    draw.add_argument(
        "--record",
        action="store_true",
        help="Store the run in the audit database",
    )
    draw.add_argument("--db-url", default=settings.db_url, help="Audit database URL")

    verify = subparsers.add_parser("verify", help="Re-derive a recorded draw")
    verify.add_argument("run_id", type=int, help="Identifier of the recorded run")
    verify.add_argument(
        "--participants",
        default=settings.participants_csv,
        help="Participant CSV (default: %(default)s)",
    )
    verify.add_argument("--db-url", default=settings.db_url, help="Audit database URL")
    return parser


def _draw(args: argparse.Namespace, settings: Settings) -> int:
    # Both inputs are parsed before anything is drawn.
    seed = parse_seed(args.seed)
    participants = load_participants_from_csv(args.participants, settings.csv_encoding)
    template = load_template(args.template)

    outcome = run_draw(participants, seed)
    report = render_report(template, outcome)

    if args.record:
        engine = make_engine(args.db_url)
        try:
            init_db(engine)
            with get_sessionmaker(engine).begin() as session:
                run = record_draw_run(session, participants, seed, outcome)
            logger.info("Draw recorded as run %d", run.id)
        finally:
            engine.dispose()

    sys.stdout.write(report)
    sys.stdout.flush()
    return 0


def _verify(args: argparse.Namespace, settings: Settings) -> int:
    participants = load_participants_from_csv(args.participants, settings.csv_encoding)
    engine = make_engine(args.db_url)
    try:
        init_db(engine)
        with get_sessionmaker(engine)() as session:
            verify_draw_run(session, args.run_id, participants)
    finally:
        engine.dispose()
    logger.info("Run %d verified", args.run_id)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = load_settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    # argparse does not check defaults against choices.
    if args.log_level not in LOG_LEVELS:
        parser.error(
            f"invalid log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})"
        )
    logging.basicConfig(
        level=args.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "draw":
            return _draw(args, settings)
        return _verify(args, settings)
    except (RaffleError, LookupError, OSError, SQLAlchemyError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
