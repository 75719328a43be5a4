"""Per-run accumulation state passed through the pipeline stages."""

from collections import Counter
from dataclasses import dataclass, field
from typing import List

from .dedup import Deduplicator
from .phrases import PhraseItem
from .pools import PoolItem

REJECT_RENDER = "render_failure"
REJECT_LAYOUT = "layout_failure"
REJECT_GLYPH_COUNT = "glyph_count_mismatch"
REJECT_DUPLICATE = "duplicate"
REJECT_TINY_GLYPH = "tiny_glyph"


def filter_reason(name: str) -> str:
    return f"filter:{name}"


@dataclass
class RunStats:
    attempts: int = 0
    rejections: Counter = field(default_factory=Counter)

    def reject(self, reason: str) -> None:
        self.rejections[reason] += 1

    def summary(self) -> str:
        if not self.rejections:
            return "no rejections"
        return ", ".join(f"{reason}={count}" for reason, count in sorted(self.rejections.items()))


@dataclass
class PoolCollector:
    items: List[PoolItem] = field(default_factory=list)
    dedup: Deduplicator = field(default_factory=Deduplicator)
    stats: RunStats = field(default_factory=RunStats)


@dataclass
class PhraseCollector:
    items: List[PhraseItem] = field(default_factory=list)
    dedup: Deduplicator = field(default_factory=Deduplicator)
    stats: RunStats = field(default_factory=RunStats)
