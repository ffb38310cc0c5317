"""Exception types raised by the raffle draw pipeline."""

from __future__ import annotations


class RaffleError(Exception):
    """Base class for expected failures surfaced to the operator."""


class InputParseError(RaffleError, ValueError):
    """Raised when the seed or participant data cannot be parsed."""


class PoolExhaustedError(RaffleError):
    """Raised when a tier runs out of tickets before its quota is met.

    This is a data problem (too few eligible tickets for the configured tier
    sizes), not something a retry can fix.
    """

    def __init__(self, tier: str, drawn: int, required: int) -> None:
        self.tier = tier
        self.drawn = drawn
        self.required = required
        super().__init__(
            f"Ticket pool exhausted during the {tier!r} tier: "
            f"drew {drawn} of {required} required winners"
        )


class DrawVerificationError(RaffleError):
    """Raised when a recorded draw does not re-derive to the same winners."""


class DrawInvariantError(AssertionError):
    """Raised when the final winner bookkeeping is inconsistent.

    Signals a defect in the drawer itself rather than bad input.
    """


__all__ = [
    "DrawInvariantError",
    "DrawVerificationError",
    "InputParseError",
    "PoolExhaustedError",
    "RaffleError",
]
