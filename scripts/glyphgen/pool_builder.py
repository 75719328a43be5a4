"""
Glyph pool builder.

Renders single synthetic words as normalized symbols until each of the five
width classes holds enough candidates, then samples a height-homogeneous pool
per class and writes the sprites.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from tqdm import tqdm

from .collector import (
    REJECT_DUPLICATE,
    REJECT_LAYOUT,
    REJECT_RENDER,
    PoolCollector,
    filter_reason,
)
from .dedup import symbol_hash
from .errors import GenerationExhaustedError
from .filters import build_filters, first_rejecting_filter
from .geometry import fit_canonical_frame, symbol_markup
from .paths import ensure_dir, find_json_with_key, get_generated_at, remove_files
from .pools import PoolItem, WIDTH_UNITS, derive_width_pools, has_quota, sample_per_width
from .render import RenderAdapter, ScriptEngine
from .rng import SeededStream, presentation_stream, seed_summary
from .words import POOL_PROFILE, Candidate, WordEngine, WordSynthesizer
from .writer import POOL_MANIFEST_FILE, POOL_MANIFEST_MARKER, PoolRunInfo, pool_output_files, write_pool_corpus

DEFAULT_PER_POOL = 200
DEFAULT_BASE_COUNT = 1200
DEFAULT_OUT_DIR = ".tmp/glyph-pools"
DEFAULT_BAN_CURLY = True
DEFAULT_SYMBOL_PADDING = 20

# Attempts allowed per requested symbol, by filter strictness.
ATTEMPTS_PER_SYMBOL_STRICT = 180
ATTEMPTS_PER_SYMBOL_LENIENT = 70
ATTEMPT_BUDGET_FACTOR = 5
MIN_TARGET_GROWTH = 250


@dataclass
class PoolBuildOptions:
    per_pool: int = DEFAULT_PER_POOL
    base_count: int = DEFAULT_BASE_COUNT
    seed: int = 0
    seed_label: Optional[str] = None
    out_dir: Path = Path(DEFAULT_OUT_DIR)
    manifest_file: str = POOL_MANIFEST_FILE
    ban_curly: bool = DEFAULT_BAN_CURLY
    handwritten: bool = False

    def __post_init__(self):
        self.out_dir = Path(self.out_dir)
        self.base_count = max(self.base_count, self.per_pool * len(WIDTH_UNITS))


def attempt_budget(target_count: int, ban_curly: bool) -> int:
    per_symbol = ATTEMPTS_PER_SYMBOL_STRICT if ban_curly else ATTEMPTS_PER_SYMBOL_LENIENT
    return target_count * per_symbol * ATTEMPT_BUDGET_FACTOR


class GlyphPoolBuilder:
    def __init__(
        self,
        options: PoolBuildOptions,
        word_engine: Optional[WordEngine],
        script_engine: ScriptEngine,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        show_progress: bool = True,
    ):
        self.options = options
        self.config = config or {}
        self.logger = logger or logging.getLogger(__name__)
        self.show_progress = show_progress

        self.stream = SeededStream(options.seed)
        profile = POOL_PROFILE.with_overrides(self.config.get('word_synthesis'))
        self.words = WordSynthesizer(self.stream, word_engine, profile)
        self.renderer = RenderAdapter(script_engine, options.handwritten, self.logger)
        self.filters = build_filters(options.ban_curly, False, self.config.get('filters'))
        self.padding = self.config.get('render', {}).get('symbol_padding', DEFAULT_SYMBOL_PADDING)

    def render_symbol(self, candidate: Candidate, item_id: str) -> Tuple[Optional[PoolItem], Optional[str]]:
        """Render one word into a canonical-frame symbol, or return a rejection reason."""
        result = self.renderer.render_quiet(candidate.text)
        if not result.ok:
            return None, REJECT_RENDER

        try:
            row = self.renderer.layout(result.glyphs, self.padding)
        except ValueError:
            return None, REJECT_LAYOUT

        fit = fit_canonical_frame(row.content, row.view_box)
        item = PoolItem(
            id=item_id,
            word=candidate.text,
            mode=candidate.mode,
            hash=symbol_hash(fit.view_box, fit.content),
            symbol=symbol_markup(item_id, fit.view_box, fit.content),
            glyph_count=result.glyph_count,
            raw_width=row.view_box.width,
            raw_height=row.view_box.height,
            normalized_scale=fit.scale,
            normalized_width=fit.width,
            normalized_height=fit.height,
            normalized_aspect=fit.aspect,
        )
        return item, None

    def accumulate(self) -> Tuple[PoolCollector, Dict[int, List[str]]]:
        """
        Generate symbols until every width class reaches the quota.

        Raises:
            GenerationExhaustedError: if the attempt budget runs out first
        """
        per_pool = self.options.per_pool
        target_count = max(self.options.base_count, per_pool * len(WIDTH_UNITS))
        max_attempts = attempt_budget(target_count, self.options.ban_curly)
        collector = PoolCollector()
        stats = collector.stats

        self.logger.info(f"Accumulating candidates: target={target_count}, attempt budget={max_attempts}")

        with tqdm(total=target_count, desc="Accumulating symbols", disable=not self.show_progress) as pbar:
            while stats.attempts < max_attempts:
                while len(collector.items) < target_count and stats.attempts < max_attempts:
                    stats.attempts += 1
                    candidate = self.words.next_word()
                    item_id = f"g-{len(collector.items) + 1:04d}"

                    item, reason = self.render_symbol(candidate, item_id)
                    if item is None:
                        stats.reject(reason)
                        continue

                    rejected_by = first_rejecting_filter(self.filters, item.symbol)
                    if rejected_by:
                        stats.reject(filter_reason(rejected_by))
                        continue

                    if not collector.dedup.admit(item.hash):
                        stats.reject(REJECT_DUPLICATE)
                        continue

                    collector.items.append(item)
                    pbar.update(1)

                pools = derive_width_pools(collector.items)
                if has_quota(pools, per_pool):
                    self.logger.info(
                        f"Accumulated {len(collector.items)} symbols ({len(collector.dedup)} unique hashes) "
                        f"in {stats.attempts} attempts ({stats.summary()})"
                    )
                    return collector, pools

                target_count += max(MIN_TARGET_GROWTH, per_pool * 2)
                pbar.total = target_count
                pbar.refresh()
                sizes = ", ".join(f"w{unit}={len(pools[unit])}" for unit in WIDTH_UNITS)
                self.logger.debug(f"Width pools below quota ({sizes}); raising target to {target_count}")

        raise GenerationExhaustedError(
            f"Could not satisfy per-pool={per_pool} after {stats.attempts} attempts. "
            "Try increasing --base-count or lowering --per-pool.",
            stats.attempts,
        )

    def prepare_output(self) -> Path:
        """Remove files owned by a previous pool run, including manifests written under another name."""
        out_dir = ensure_dir(self.options.out_dir)
        remove_files(out_dir / name for name in pool_output_files(self.options.manifest_file))
        remove_files(find_json_with_key(out_dir, POOL_MANIFEST_MARKER))
        return out_dir

    def build(self, generated_at: Optional[str] = None) -> Dict[str, Any]:
        """Run the full pipeline and return the written manifest."""
        options = self.options
        generated_at = generated_at or get_generated_at()
        out_dir = self.prepare_output()

        collector, pools = self.accumulate()
        items_by_id = {item.id: item for item in collector.items}
        heights = {item.id: item.normalized_height for item in collector.items}
        sampled = sample_per_width(pools, options.per_pool, heights, presentation_stream(options.seed))

        info = PoolRunInfo(
            generated_at=generated_at,
            per_pool=options.per_pool,
            base_count=options.base_count,
            seed=options.seed,
            seed_label=options.seed_label,
            seed_summary=seed_summary(options.seed, options.seed_label),
            ban_curly=options.ban_curly,
            handwritten=options.handwritten,
        )
        manifest = write_pool_corpus(out_dir, options.manifest_file, sampled, items_by_id, info)

        self.logger.info(f"Generated {len(WIDTH_UNITS)} width pools in {manifest['outDir']}")
        for unit in WIDTH_UNITS:
            self.logger.info(f"  w{unit}: {manifest['poolFiles'][str(unit)]} ({options.per_pool} symbols)")
        self.logger.info(f"Single sprite: {manifest['singleSpriteFile']} ({len(WIDTH_UNITS)} symbols, w1..w5)")
        self.logger.info(f"Manifest: {out_dir / options.manifest_file}")
        self.logger.info(f"Seed: {info.seed_summary}")
        return manifest
