"""Ticket pool construction and seeded shuffling."""

from __future__ import annotations

import logging
from typing import Iterable

from .chacha import ChaCha12Rng, shuffle
from .participants import Participant

logger = logging.getLogger(__name__)


def build_ticket_pool(participants: Iterable[Participant]) -> list[Participant]:
    """Expand every participant into one pool entry per ticket held.

    Participant order is preserved; a participant with zero tickets does not
    appear in the pool at all.
    """

    pool: list[Participant] = []
    for participant in participants:
        pool.extend([participant] * participant.tickets)
    return pool


def shuffle_pool(pool: Iterable[Participant], seed: int) -> list[Participant]:
    """Return a ChaCha12 permutation of ``pool`` derived solely from ``seed``."""
    shuffled = list(pool)
    shuffle(shuffled, ChaCha12Rng.seed_from_u64(seed))
    logger.info("Shuffled %d tickets with seed 0x%x", len(shuffled), seed)
    return shuffled


__all__ = ["build_ticket_pool", "shuffle_pool"]
