"""Deterministic weighted raffle: pool building, shuffling, tiered drawing, reporting."""

from .chacha import ChaCha12Rng, PRNG_NAME
from .drawer import (
    CONSOLATION_TIER,
    GRAND_TIER,
    DrawConfig,
    DrawOutcome,
    TieredDrawer,
    VoucherGroup,
    draw_next_eligible,
)
from .errors import (
    DrawInvariantError,
    DrawVerificationError,
    InputParseError,
    PoolExhaustedError,
    RaffleError,
)
from .participants import Participant, load_participants_from_csv, parse_bool
from .pool import build_ticket_pool, shuffle_pool
from .report import fill_report, load_template
from .seed import format_seed, parse_seed

__all__ = [
    "CONSOLATION_TIER",
    "ChaCha12Rng",
    "DrawConfig",
    "DrawInvariantError",
    "DrawOutcome",
    "DrawVerificationError",
    "GRAND_TIER",
    "InputParseError",
    "PRNG_NAME",
    "Participant",
    "PoolExhaustedError",
    "RaffleError",
    "TieredDrawer",
    "VoucherGroup",
    "build_ticket_pool",
    "draw_next_eligible",
    "fill_report",
    "format_seed",
    "load_participants_from_csv",
    "load_template",
    "parse_bool",
    "parse_seed",
    "shuffle_pool",
]
