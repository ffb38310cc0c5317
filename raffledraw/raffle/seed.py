"""Parsing and formatting of the published draw seed."""

from __future__ import annotations

from .errors import InputParseError

MAX_SEED = 0xFFFFFFFFFFFFFFFF


def parse_seed(raw: str) -> int:
    """Parse a hexadecimal seed string into an unsigned 64-bit integer.

    An optional ``0x`` prefix and surrounding whitespace are accepted.

    Raises
    ------
    InputParseError
        If ``raw`` is not hexadecimal or does not fit in 64 bits.
    """

    text = raw.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not text or text.startswith(("+", "-")) or "_" in text:
        raise InputParseError(f"Failed to parse seed {raw!r}: not a hexadecimal number")
    try:
        value = int(text, 16)
    except ValueError as exc:
        raise InputParseError(
            f"Failed to parse seed {raw!r}: not a hexadecimal number"
        ) from exc
    if value > MAX_SEED:
        raise InputParseError(f"Failed to parse seed {raw!r}: exceeds 64 bits")
    return value


def format_seed(seed: int) -> str:
    return f"0x{seed:x}"


__all__ = ["MAX_SEED", "format_seed", "parse_seed"]
