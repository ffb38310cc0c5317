"""Participant records and the CSV loader that produces them."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from .errors import InputParseError

logger = logging.getLogger(__name__)

TRUTHY = frozenset({"t", "true", "1", "on", "y", "yes"})
FALSEY = frozenset({"f", "false", "0", "off", "n", "no"})

ID_COLUMN = "Id"
TICKETS_COLUMN = "RaffleTickets"
SUBMITTED_COLUMN = "Submitted"
WON_PRIZE_COLUMN = "WonPrize"
REQUIRED_COLUMNS = (ID_COLUMN, TICKETS_COLUMN, SUBMITTED_COLUMN, WON_PRIZE_COLUMN)


@dataclass(frozen=True)
class Participant:
    """One raffle entrant.

    Attributes
    ----------
    id : int
        Unique participant identifier printed in the report.
    tickets : int
        Number of raffle tickets held; each ticket is one chance.
    submitted : bool
        Whether the participant submitted an entry. Required for a
        consolation prize.
    won_prize : bool
        Whether the participant already won a prize before this draw.
        Excludes them from consolation prizes.
    """

    id: int
    tickets: int
    submitted: bool
    won_prize: bool

    @property
    def consolation_eligible(self) -> bool:
        return self.submitted and not self.won_prize


def parse_bool(value: str, *, field: str = "value") -> bool:
    """Parse a truthy/falsey token such as ``"yes"`` or ``"0"``.

    Raises
    ------
    InputParseError
        If ``value`` is not one of the accepted tokens.
    """

    token = value.lower()
    if token in TRUTHY:
        return True
    if token in FALSEY:
        return False
    raise InputParseError(
        f"Invalid {field} {value!r}: must be truthy (t, true, 1, on, y, yes) "
        "or falsey (f, false, 0, off, n, no)"
    )


def _parse_count(value: str, *, field: str) -> int:
    # Plain ASCII digits only: no sign, whitespace or digit separators.
    if not (value.isascii() and value.isdecimal()):
        raise InputParseError(
            f"Invalid {field} {value!r}: not a non-negative integer"
        )
    return int(value)


def participant_from_row(row: Mapping[Optional[str], Any]) -> Participant:
    """Build a :class:`Participant` from one CSV row keyed by column name.

    ``csv.DictReader`` collects surplus fields under the ``None`` key and
    pads short rows with ``None`` values; both are rejected.
    """

    extra = row.get(None)
    if extra:
        raise InputParseError(
            f"Row has {len(extra)} field(s) more than the header"
        )
    missing = [column for column in REQUIRED_COLUMNS if row.get(column) is None]
    if missing:
        raise InputParseError(f"Row is missing column(s): {', '.join(missing)}")
    if any(value is None for value in row.values()):
        raise InputParseError("Row has fewer fields than the header")
    return Participant(
        id=_parse_count(row[ID_COLUMN], field=ID_COLUMN),  # type: ignore[arg-type]
        tickets=_parse_count(row[TICKETS_COLUMN], field=TICKETS_COLUMN),  # type: ignore[arg-type]
        submitted=parse_bool(row[SUBMITTED_COLUMN], field=SUBMITTED_COLUMN),  # type: ignore[arg-type]
        won_prize=parse_bool(row[WON_PRIZE_COLUMN], field=WON_PRIZE_COLUMN),  # type: ignore[arg-type]
    )


def read_participants(lines: Iterable[str]) -> list[Participant]:
    """Parse participant CSV text, header line included.

    Errors carry the line number of the offending row. Text that cannot be
    decoded or tokenised is reported as :class:`InputParseError` as well.
    """

    reader = csv.DictReader(lines)
    participants: list[Participant] = []
    try:
        header = reader.fieldnames or []
        missing = [column for column in REQUIRED_COLUMNS if column not in header]
        if missing:
            raise InputParseError(
                f"CSV header is missing column(s): {', '.join(missing)}"
            )

        for row in reader:
            try:
                participants.append(participant_from_row(row))
            except InputParseError as exc:
                raise InputParseError(f"Line {reader.line_num}: {exc}") from exc
    except csv.Error as exc:
        raise InputParseError(f"Line {reader.line_num}: malformed CSV: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise InputParseError(
            f"Undecodable CSV input after line {reader.line_num}: {exc}"
        ) from exc
    return participants


def load_participants_from_csv(
    path: Union[str, Path], encoding: str = "utf-8"
) -> list[Participant]:
    """Read every participant from the CSV file at ``path``."""
    with open(path, encoding=encoding, newline="") as handle:
        participants = read_participants(handle)
    logger.info("Loaded %d participants from %s", len(participants), path)
    return participants


__all__ = [
    "FALSEY",
    "Participant",
    "REQUIRED_COLUMNS",
    "TRUTHY",
    "load_participants_from_csv",
    "parse_bool",
    "participant_from_row",
    "read_participants",
]
