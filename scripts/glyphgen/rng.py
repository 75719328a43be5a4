"""
Seeded random stream and string hashing.

Everything random in a run draws from a SeededStream so two runs with the same
seed make exactly the same decisions. The generator is mulberry32, which keeps
all state in one 32-bit word.
"""

import math
import random
import re
import struct
from typing import List, MutableSequence, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

UINT32_MASK = 0xFFFFFFFF
FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
MULBERRY_INCREMENT = 0x6D2B79F5
# Mixed into the run seed to derive the presentation stream.
PRESENTATION_SEED_MIX = 0x9E3779B9

DECIMAL_NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)
RADIX_NUMBER_PATTERN = re.compile(r"0([xX][0-9a-fA-F]+|[bB][01]+|[oO][0-7]+)", re.ASCII)


def _imul(a: int, b: int) -> int:
    return (a * b) & UINT32_MASK


class SeededStream:
    """Deterministic float stream in [0, 1) built on mulberry32."""

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed & UINT32_MASK

    def random(self) -> float:
        self._state = (self._state + MULBERRY_INCREMENT) & UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK
        return ((t ^ (t >> 14)) & UINT32_MASK) / 4294967296

    def item(self, values: Sequence[T]) -> T:
        """Pick one element uniformly."""
        return values[int(self.random() * len(values))]

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both ends inclusive."""
        return int(math.floor(self.random() * (high - low + 1))) + low

    def shuffle(self, values: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates shuffle in place, walking from the end."""
        for i in range(len(values) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            values[i], values[j] = values[j], values[i]
        return values


def presentation_stream(seed: int) -> SeededStream:
    """Second stream used only for display-order shuffles."""
    return SeededStream((seed ^ PRESENTATION_SEED_MIX) & UINT32_MASK)


def fnv1a_32(value: str) -> int:
    """32-bit FNV-1a over the UTF-16 code units of ``value``."""
    data = value.encode("utf-16-le")
    units = struct.unpack(f"<{len(data) // 2}H", data)
    h = FNV_OFFSET_BASIS
    for unit in units:
        h ^= unit
        h = (h * FNV_PRIME) & UINT32_MASK
    return h


def content_hash(value: str) -> str:
    """FNV-1a hash as 8 lowercase hex digits."""
    return f"{fnv1a_32(value):08x}"


def _parse_numeric(text: str) -> Optional[float]:
    """Parse ASCII decimal or 0x/0b/0o integer text; anything else is not a number."""
    if RADIX_NUMBER_PATTERN.fullmatch(text):
        try:
            number = float(int(text, 0))
        except OverflowError:
            return None
    elif DECIMAL_NUMBER_PATTERN.fullmatch(text):
        number = float(text)
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def resolve_seed(seed_input: Optional[str]) -> Tuple[int, Optional[str]]:
    """
    Turn a user supplied seed into ``(resolved_seed, label)``.

    Blank or missing input draws a fresh 32-bit seed and has no label. Numeric
    text is floored; any other text is hashed. In both cases the label is the
    stripped input text.
    """
    if seed_input is None:
        return random.getrandbits(32), None

    normalized = str(seed_input).strip()
    if not normalized:
        return random.getrandbits(32), None

    numeric = _parse_numeric(normalized)
    if numeric is not None:
        return int(math.floor(numeric)), normalized

    return fnv1a_32(normalized), normalized


def seed_summary(seed: int, label: Optional[str]) -> str:
    if label is None:
        return f"random (resolved={seed})"
    return f"{label} (resolved={seed})"


def take_shuffled(stream: SeededStream, ids: Sequence[str], count: int) -> List[str]:
    """Shuffle a copy of ``ids`` and keep the first ``count``."""
    pool = list(ids)
    stream.shuffle(pool)
    return pool[:count]
