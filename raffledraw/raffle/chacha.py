"""ChaCha stream-cipher PRNG compatible with Rust's ``rand`` 0.8 / ``rand_chacha`` 0.3.

Published draws were produced with ``ChaCha12Rng::seed_from_u64`` followed by
``SliceRandom::shuffle``. Everything needed to replay them bit-for-bit lives
here: the PCG32 seed expansion, the ChaCha block function, the uniform index
sampler and the Fisher-Yates shuffle.
"""

from __future__ import annotations

import struct
from typing import MutableSequence, Optional, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

# "expand 32-byte k"
_SIGMA = (0x61707865, 0x3320646E, 0x79622D32, 0x6B206574)

PCG_MULTIPLIER = 6364136223846793005
PCG_INCREMENT = 11634580027462260723

PRNG_NAME = "chacha12-rand0.8"


def pcg32_seed_bytes(state: int, length: int = 32) -> bytes:
    """Expand a 64-bit integer into ``length`` seed bytes.

    Mirrors ``rand_core::SeedableRng::seed_from_u64``: the PCG32 state is
    advanced before every output, and each 32-bit output is written
    little-endian.

    Parameters
    ----------
    state : int
        Unsigned 64-bit seed value.
    length : int, default: 32
        Number of bytes to produce. Must be a multiple of four.
    """

    if not 0 <= state <= _MASK64:
        raise ValueError("seed must be an unsigned 64-bit integer")
    if length % 4:
        raise ValueError("seed length must be a multiple of 4")

    out = bytearray()
    while len(out) < length:
        state = (state * PCG_MULTIPLIER + PCG_INCREMENT) & _MASK64
        xorshifted = (((state >> 18) ^ state) >> 27) & _MASK32
        rot = state >> 59
        word = ((xorshifted >> rot) | (xorshifted << ((32 - rot) & 31))) & _MASK32
        out += struct.pack("<I", word)
    return bytes(out)


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) & _MASK32) | (value >> (32 - shift))


def chacha_block(
    key: tuple[int, ...], counter: int, stream: int, rounds: int
) -> list[int]:
    """Return the sixteen output words of one ChaCha block.

    Uses the original (djb) layout: a 64-bit block counter in words 12-13 and
    a 64-bit stream id in words 14-15.
    """

    state = [
        *_SIGMA,
        *key,
        counter & _MASK32,
        (counter >> 32) & _MASK32,
        stream & _MASK32,
        (stream >> 32) & _MASK32,
    ]
    x = list(state)

    def quarter_round(a: int, b: int, c: int, d: int) -> None:
        x[a] = (x[a] + x[b]) & _MASK32
        x[d] = _rotl(x[d] ^ x[a], 16)
        x[c] = (x[c] + x[d]) & _MASK32
        x[b] = _rotl(x[b] ^ x[c], 12)
        x[a] = (x[a] + x[b]) & _MASK32
        x[d] = _rotl(x[d] ^ x[a], 8)
        x[c] = (x[c] + x[d]) & _MASK32
        x[b] = _rotl(x[b] ^ x[c], 7)

    for _ in range(rounds // 2):
        quarter_round(0, 4, 8, 12)
        quarter_round(1, 5, 9, 13)
        quarter_round(2, 6, 10, 14)
        quarter_round(3, 7, 11, 15)
        quarter_round(0, 5, 10, 15)
        quarter_round(1, 6, 11, 12)
        quarter_round(2, 7, 8, 13)
        quarter_round(3, 4, 9, 14)

    return [(x[i] + state[i]) & _MASK32 for i in range(16)]


class ChaChaRng:
    """Word-oriented ChaCha keystream generator.

    Words are handed out in keystream order. ``next_u64`` joins two
    consecutive words low word first, which matches ``rand_core``'s block RNG
    even across block boundaries.
    """

    rounds: int = 20

    def __init__(self, seed: bytes, *, rounds: Optional[int] = None) -> None:
        if len(seed) != 32:
            raise ValueError("ChaCha seed must be exactly 32 bytes")
        if rounds is not None:
            self.rounds = rounds
        if self.rounds <= 0 or self.rounds % 2:
            raise ValueError("ChaCha rounds must be a positive even number")
        self._key = struct.unpack("<8I", seed)
        self._stream = 0
        self._counter = 0
        self._buffer: list[int] = []
        self._index = 0

    @classmethod
    def seed_from_u64(cls, state: int) -> "ChaChaRng":
        """Create a generator from a 64-bit seed using PCG32 expansion."""
        return cls(pcg32_seed_bytes(state))

    def _refill(self) -> None:
        self._buffer = chacha_block(
            self._key, self._counter, self._stream, self.rounds
        )
        self._counter = (self._counter + 1) & _MASK64
        self._index = 0

    def next_u32(self) -> int:
        if self._index >= len(self._buffer):
            self._refill()
        word = self._buffer[self._index]
        self._index += 1
        return word

    def next_u64(self) -> int:
        low = self.next_u32()
        high = self.next_u32()
        return (high << 32) | low


class ChaCha12Rng(ChaChaRng):
    """ChaCha with 12 rounds, the generator used for official draws."""

    rounds = 12


class ChaCha20Rng(ChaChaRng):
    """ChaCha with the full 20 rounds."""

    rounds = 20


def _sample_below(next_word, bound: int, bits: int) -> int:
    """Widening-multiply rejection sampling over ``[0, bound)``."""
    mask = (1 << bits) - 1
    leading_zeros = bits - bound.bit_length()
    zone = ((bound << leading_zeros) - 1) & mask
    while True:
        product = next_word() * bound
        high, low = product >> bits, product & mask
        if low <= zone:
            return high


def gen_index(rng: ChaChaRng, ubound: int) -> int:
    """Return a uniformly distributed index in ``[0, ubound)``.

    Bounds that fit in 32 bits draw 32-bit words, larger ones draw 64-bit
    words, exactly as ``rand::seq::gen_index`` does on 64-bit targets.
    """

    if ubound <= 0:
        raise ValueError("ubound must be positive")
    if ubound <= _MASK32:
        return _sample_below(rng.next_u32, ubound, 32)
    return _sample_below(rng.next_u64, ubound, 64)


def shuffle(items: MutableSequence[T], rng: ChaChaRng) -> None:
    """Shuffle ``items`` in place with a Fisher-Yates walk from the end."""
    for i in range(len(items) - 1, 0, -1):
        j = gen_index(rng, i + 1)
        items[i], items[j] = items[j], items[i]


__all__ = [
    "ChaCha12Rng",
    "ChaCha20Rng",
    "ChaChaRng",
    "PRNG_NAME",
    "chacha_block",
    "gen_index",
    "pcg32_seed_bytes",
    "shuffle",
]
