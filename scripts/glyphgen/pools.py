"""
Width classes and tight-window sampling.

Admitted items are bucketed into five width classes by glyph count. Each class
is then cut down to a fixed quota by picking the contiguous run of items, in
height order, with the smallest height spread.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import InvariantViolationError
from .rng import SeededStream, take_shuffled

WIDTH_UNITS = [1, 2, 3, 4, 5]
WIDTH_THRESHOLDS = [1, 2, 3, 4]
WIDTH_RULE = "byGlyphCount: w1=1, w2=2, w3=3, w4=4, w5=5+"


@dataclass
class PoolItem:
    """A rendered symbol admitted to the accumulation pool."""

    id: str
    word: str
    mode: str
    hash: str
    symbol: str
    glyph_count: int
    raw_width: float
    raw_height: float
    normalized_scale: float
    normalized_width: float
    normalized_height: float
    normalized_aspect: float
    width_unit: Optional[int] = None


def width_class(glyph_count) -> int:
    """Clamp a glyph count into 1..5; non-numeric counts land in class 1."""
    if not isinstance(glyph_count, (int, float)) or not math.isfinite(glyph_count):
        glyph_count = 0
    return int(min(WIDTH_UNITS[-1], max(WIDTH_UNITS[0], glyph_count)))


def derive_width_pools(items: Iterable[PoolItem]) -> Dict[int, List[str]]:
    """Assign ``width_unit`` on every item and group ids by class."""
    pools: Dict[int, List[str]] = {unit: [] for unit in WIDTH_UNITS}
    for item in items:
        item.width_unit = width_class(item.glyph_count)
        pools[item.width_unit].append(item.id)
    return pools


def has_quota(pools: Mapping[int, Sequence[str]], per_pool: int) -> bool:
    return all(len(pools.get(unit, [])) >= per_pool for unit in WIDTH_UNITS)


def tight_window_start(sorted_heights: Sequence[float], window_size: int) -> int:
    """
    Start index of the size-``window_size`` window with the smallest height
    range, ties broken by closeness of the window median to the global median.
    The earliest window wins any remaining tie.
    """
    heights = np.asarray(sorted_heights, dtype=np.float64)
    count = len(heights)
    if window_size <= 0 or count < window_size:
        raise ValueError(f"Need at least {window_size} heights, got {count}")

    windows = count - window_size + 1
    global_median = heights[(count - 1) // 2]
    ranges = heights[window_size - 1 :] - heights[:windows]
    mid = (window_size - 1) // 2
    median_distances = np.abs(heights[mid : mid + windows] - global_median)
    # lexsort is stable, so equal keys keep their original (earliest) order.
    return int(np.lexsort((median_distances, ranges))[0])


def pick_tight_window(
    entries: Iterable[Tuple[str, Optional[float]]],
    window_size: int,
    stream: SeededStream,
) -> List[str]:
    """
    Choose ``window_size`` ids with homogeneous heights, shuffled for display.

    Returns an empty list when fewer than ``window_size`` entries have a usable
    height.
    """
    usable = sorted(
        ((item_id, float(height)) for item_id, height in entries if _is_usable_height(height)),
        key=lambda entry: (entry[1], entry[0]),
    )
    if window_size <= 0 or len(usable) < window_size:
        return []

    start = tight_window_start([height for _, height in usable], window_size)
    chosen = [item_id for item_id, _ in usable[start : start + window_size]]
    stream.shuffle(chosen)
    return chosen


def _is_usable_height(height) -> bool:
    return isinstance(height, (int, float)) and math.isfinite(height)


def sample_per_width(
    pools: Mapping[int, Sequence[str]],
    per_pool: int,
    heights: Mapping[str, Optional[float]],
    stream: SeededStream,
) -> Dict[int, List[str]]:
    """
    Reduce every width class to ``per_pool`` ids.

    Raises:
        InvariantViolationError: if a class holds fewer than ``per_pool`` ids
    """
    sampled: Dict[int, List[str]] = {}
    for unit in WIDTH_UNITS:
        source_ids = list(pools.get(unit, []))
        if len(source_ids) < per_pool:
            raise InvariantViolationError(
                f"Width pool {unit} only has {len(source_ids)} IDs; need {per_pool}. Increase --base-count."
            )

        picked = pick_tight_window(((i, heights.get(i)) for i in source_ids), per_pool, stream)
        if len(picked) < per_pool:
            picked = take_shuffled(stream, source_ids, per_pool)

        sampled[unit] = picked
    return sampled
