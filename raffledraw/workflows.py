import hashlib
import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from .models import DrawRun, DrawWinner
from .raffle.chacha import PRNG_NAME
from .raffle.drawer import DrawConfig, DrawOutcome, TieredDrawer
from .raffle.errors import DrawVerificationError
from .raffle.participants import Participant
from .raffle.pool import build_ticket_pool, shuffle_pool
from .raffle.report import fill_report
from .raffle.seed import format_seed, parse_seed

logger = logging.getLogger(__name__)


def run_draw(
    participants: Sequence[Participant],
    seed: int,
    config: Optional[DrawConfig] = None,
) -> DrawOutcome:
    """Draw every tier for ``participants`` from the published ``seed``.

    The workflow performs the following steps:

    1. Expand participants into the ticket pool (one entry per ticket).
    2. Shuffle the pool with ChaCha12 seeded from ``seed``.
    3. Run the tiered drawer, which also checks the winner invariant.

    Parameters
    ----------
    participants : Sequence[Participant]
        Participants in input order. Order matters for reproducibility.
    seed : int
        Unsigned 64-bit seed.
    config : Optional[DrawConfig], default: None
        Tier sizes and placeholders. The standard configuration is used when
        omitted.

    Returns
    -------
    DrawOutcome
        Winner identifiers grouped by tier, in draw order.

    Raises
    ------
    PoolExhaustedError
        If the pool cannot fill every tier.
    """

    logger.info("Using seed %s", format_seed(seed))
    pool = shuffle_pool(build_ticket_pool(participants), seed)
    return TieredDrawer(config).draw(pool)


def render_report(
    template: str, outcome: DrawOutcome, config: Optional[DrawConfig] = None
) -> str:
    """Fill ``template`` with the winners of ``outcome``."""
    return fill_report(template, outcome, config)


def participants_digest(participants: Sequence[Participant]) -> str:
    """Return a SHA-256 fingerprint of the participant rows in input order.

    Each row is canonicalised as ``id,tickets,submitted,won_prize`` with the
    booleans written as ``0``/``1``, one row per line.
    """

    digest = hashlib.sha256()
    for p in participants:
        row = f"{p.id},{p.tickets},{int(p.submitted)},{int(p.won_prize)}\n"
        digest.update(row.encode("ascii"))
    return digest.hexdigest()


def record_draw_run(
    session: Session,
    participants: Sequence[Participant],
    seed: int,
    outcome: DrawOutcome,
) -> DrawRun:
    """Persist ``outcome`` so the draw can be re-derived and audited later.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session used for persistence.
    participants : Sequence[Participant]
        Participants the draw was run on.
    seed : int
        Seed the draw was run with.
    outcome : DrawOutcome
        Result returned by :func:`run_draw`.

    Returns
    -------
    DrawRun
        Newly persisted run with its winners attached.
    """

    run = DrawRun(
        seed=format_seed(seed),
        prng=PRNG_NAME,
        participant_count=len(participants),
        ticket_count=sum(p.tickets for p in participants),
        participants_digest=participants_digest(participants),
    )
    for tier, participant_ids in outcome.groups().items():
        for position, participant_id in enumerate(participant_ids):
            run.winners.append(
                DrawWinner(tier=tier, position=position, participant_id=participant_id)
            )

    session.add(run)
    session.flush()
    logger.info("Recorded draw run %d with %d winners", run.id, len(run.winners))
    return run


def verify_draw_run(
    session: Session,
    run_id: int,
    participants: Sequence[Participant],
    config: Optional[DrawConfig] = None,
) -> DrawOutcome:
    """Re-run a recorded draw and confirm it reproduces the stored winners.

    Raises
    ------
    LookupError
        If no run with ``run_id`` exists.
    DrawVerificationError
        If the input fingerprint, algorithm or any winner group differs.
    """

    run = session.get(DrawRun, run_id)
    if run is None:
        raise LookupError(f"No draw run with id {run_id}")

    if run.prng != PRNG_NAME:
        raise DrawVerificationError(
            f"Run {run_id} used PRNG {run.prng!r}; this build implements {PRNG_NAME!r}"
        )
    digest = participants_digest(participants)
    if digest != run.participants_digest:
        raise DrawVerificationError(
            f"Participant data does not match run {run_id}: "
            f"digest {digest} != recorded {run.participants_digest}"
        )

    outcome = run_draw(participants, parse_seed(run.seed), config)
    recorded = run.winner_groups()
    for tier, participant_ids in outcome.groups().items():
        if recorded.get(tier, []) != list(participant_ids):
            raise DrawVerificationError(
                f"Run {run_id} does not reproduce: {tier} winners differ"
            )
    extra = set(recorded) - set(outcome.groups())
    if extra:
        raise DrawVerificationError(
            f"Run {run_id} has winners in unexpected tiers: {', '.join(sorted(extra))}"
        )

    logger.info("Run %d verified: %d winners reproduced", run_id, len(outcome.all_winners()))
    return outcome


__all__ = [
    "participants_digest",
    "record_draw_run",
    "render_report",
    "run_draw",
    "verify_draw_run",
]
