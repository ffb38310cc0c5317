"""Tiered winner selection over a shuffled ticket pool.

The draw runs three tiers in a fixed order:

1. grand prizes, open to every participant;
2. consolation prizes, limited to participants who submitted and have not won
   before. Rejected tickets are parked in a skipped queue;
3. vouchers, which replay the skipped queue first and then continue on the
   main pool. Vouchers are split into named sub-groups in draw order.

A participant wins at most once per draw. Tickets belonging to someone who
has already won are burned when they come up.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Iterable, Optional, Sequence

from .errors import DrawInvariantError, PoolExhaustedError
from .participants import Participant

logger = logging.getLogger(__name__)

GRAND_TIER = "grand"
CONSOLATION_TIER = "consolation"
VOUCHER_TIER = "vouchers"

Eligibility = Callable[[Participant], bool]


def _always_eligible(participant: Participant) -> bool:
    return True


def consolation_eligible(participant: Participant) -> bool:
    """Consolation prizes require a submission and no earlier prize."""
    return participant.consolation_eligible


@dataclass(frozen=True)
class VoucherGroup:
    """Named slice of the voucher tier.

    Attributes
    ----------
    name : str
        Group name; the report placeholder is ``{{<name>}}``.
    size : int
        Number of voucher winners in the group.
    """

    name: str
    size: int

    @property
    def token(self) -> str:
        return "{{" + self.name + "}}"


DEFAULT_VOUCHER_GROUPS = (VoucherGroup("GF10", 49), VoucherGroup("FP5", 356))


@dataclass(frozen=True)
class DrawConfig:
    """Tier sizes and report placeholders for one draw.

    Attributes
    ----------
    grand_prizes : int, default: 3
        Winners drawn in the grand prize tier.
    consolation_prizes : int, default: 19
        Winners drawn in the consolation tier.
    voucher_groups : tuple[VoucherGroup, ...]
        Voucher sub-groups, filled in order. Defaults to 49 then 356.
    grand_token : str, default: ``"{{ANY}}"``
        Placeholder replaced once per grand prize winner.
    consolation_token : str, default: ``"{{NPW}}"``
        Placeholder replaced once per consolation winner.
    """

    grand_prizes: int = 3
    consolation_prizes: int = 19
    voucher_groups: tuple[VoucherGroup, ...] = DEFAULT_VOUCHER_GROUPS
    grand_token: str = "{{ANY}}"
    consolation_token: str = "{{NPW}}"

    def __post_init__(self) -> None:
        counts = [self.grand_prizes, self.consolation_prizes]
        counts.extend(group.size for group in self.voucher_groups)
        if any(count < 0 for count in counts):
            raise ValueError("Tier sizes must not be negative")
        names = [group.name for group in self.voucher_groups]
        if len(set(names)) != len(names):
            raise ValueError("Voucher group names must be unique")
        if {GRAND_TIER, CONSOLATION_TIER} & set(names):
            raise ValueError("Voucher group names must not shadow a tier name")

    @property
    def vouchers(self) -> int:
        return sum(group.size for group in self.voucher_groups)

    @property
    def total_winners(self) -> int:
        return self.grand_prizes + self.consolation_prizes + self.vouchers


@dataclass(frozen=True)
class DrawOutcome:
    """Winner identifiers of a completed draw, each group in draw order."""

    grand: tuple[int, ...]
    consolation: tuple[int, ...]
    voucher_groups: tuple[tuple[str, tuple[int, ...]], ...]

    @property
    def vouchers(self) -> tuple[int, ...]:
        return tuple(pid for _, ids in self.voucher_groups for pid in ids)

    def voucher_group(self, name: str) -> tuple[int, ...]:
        for group_name, ids in self.voucher_groups:
            if group_name == name:
                return ids
        raise KeyError(f"Unknown voucher group '{name}'")

    def groups(self) -> dict[str, tuple[int, ...]]:
        """Return every group keyed by tier or voucher group name, in draw order."""
        groups = {GRAND_TIER: self.grand, CONSOLATION_TIER: self.consolation}
        groups.update(self.voucher_groups)
        return groups

    def all_winners(self) -> tuple[int, ...]:
        return self.grand + self.consolation + self.vouchers


@dataclass
class _DrawState:
    """Mutable bookkeeping owned by a single :meth:`TieredDrawer.draw` call."""

    pool: Deque[Participant]
    skipped: Deque[Participant] = field(default_factory=deque)
    winners: set[int] = field(default_factory=set)


def draw_next_eligible(
    source: Deque[Participant],
    winners: set[int],
    eligible: Eligibility = _always_eligible,
    *,
    credit: bool = True,
    skipped: Optional[Deque[Participant]] = None,
) -> Optional[Participant]:
    """Pop tickets from ``source`` until one yields a new eligible winner.

    Parameters
    ----------
    source : Deque[Participant]
        Queue to draw from; tickets are consumed from the front.
    winners : set[int]
        Identifiers already credited in this draw. Their tickets are burned.
    eligible : Callable[[Participant], bool]
        Tier filter. A fresh participant failing it is not credited.
    credit : bool, default: True
        Add the returned participant to ``winners``.
    skipped : Optional[Deque[Participant]], default: None
        Receives tickets rejected by ``eligible``. When omitted, rejected
        tickets are dropped.

    Returns
    -------
    Optional[Participant]
        The drawn participant, or ``None`` once ``source`` is empty.
    """

    while source:
        ticket = source.popleft()
        if ticket.id in winners:
            logger.debug("Burned ticket of existing winner #%d", ticket.id)
            continue
        if not eligible(ticket):
            logger.debug("Skipped ineligible participant #%d", ticket.id)
            if skipped is not None:
                skipped.append(ticket)
            continue
        if credit:
            winners.add(ticket.id)
        return ticket
    return None


def check_winner_invariant(outcome: DrawOutcome, winners: set[int]) -> None:
    """Assert that winner groups are disjoint and agree with ``winners``."""
    drawn = outcome.all_winners()
    if len(set(drawn)) != len(drawn) or len(drawn) != len(winners):
        raise DrawInvariantError(
            f"Winner bookkeeping mismatch: {len(drawn)} recorded winners, "
            f"{len(set(drawn))} distinct, {len(winners)} credited"
        )


class TieredDrawer:
    """Draw grand, consolation and voucher winners from a shuffled pool."""

    def __init__(self, config: Optional[DrawConfig] = None) -> None:
        self.config = config or DrawConfig()

    def draw(self, tickets: Iterable[Participant]) -> DrawOutcome:
        """Run every tier over ``tickets`` (already shuffled).

        Raises
        ------
        PoolExhaustedError
            If any tier cannot be filled.
        DrawInvariantError
            If the resulting groups disagree with the credited winners.
        """

        config = self.config
        state = _DrawState(pool=deque(tickets))
        logger.info("Drawing %d winners from %d tickets", config.total_winners, len(state.pool))

        grand = self._fill(GRAND_TIER, config.grand_prizes, [state.pool], state)
        consolation = self._fill(
            CONSOLATION_TIER,
            config.consolation_prizes,
            [state.pool],
            state,
            eligible=consolation_eligible,
            skipped=state.skipped,
        )
        logger.info("%d ineligible tickets carried over to vouchers", len(state.skipped))
        vouchers = self._fill(
            VOUCHER_TIER, config.vouchers, [state.skipped, state.pool], state
        )

        groups = []
        offset = 0
        for group in config.voucher_groups:
            groups.append((group.name, tuple(vouchers[offset : offset + group.size])))
            offset += group.size

        outcome = DrawOutcome(
            grand=tuple(grand),
            consolation=tuple(consolation),
            voucher_groups=tuple(groups),
        )
        check_winner_invariant(outcome, state.winners)
        return outcome

    def _fill(
        self,
        tier: str,
        count: int,
        sources: Sequence[Deque[Participant]],
        state: _DrawState,
        *,
        eligible: Eligibility = _always_eligible,
        skipped: Optional[Deque[Participant]] = None,
    ) -> list[int]:
        """Draw ``count`` winners for ``tier``, exhausting ``sources`` in order."""
        drawn: list[int] = []
        remaining = iter(sources)
        source = next(remaining)
        while len(drawn) < count:
            ticket = draw_next_eligible(
                source, state.winners, eligible, skipped=skipped
            )
            if ticket is None:
                next_source = next(remaining, None)
                if next_source is None:
                    raise PoolExhaustedError(tier, len(drawn), count)
                source = next_source
                continue
            drawn.append(ticket.id)
        logger.info("Drew %d %s winners", len(drawn), tier)
        return drawn


__all__ = [
    "CONSOLATION_TIER",
    "DEFAULT_VOUCHER_GROUPS",
    "DrawConfig",
    "DrawOutcome",
    "GRAND_TIER",
    "TieredDrawer",
    "VOUCHER_TIER",
    "VoucherGroup",
    "check_winner_invariant",
    "consolation_eligible",
    "draw_next_eligible",
]
