"""
Phrase and glyph-slice builder.

Generates phrases with an exact glyph count, renders each accepted phrase as a
zero-origin SVG and every one of its glyphs as a separate slice, then pads all
slices to one shared height.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from .collector import (
    REJECT_DUPLICATE,
    REJECT_GLYPH_COUNT,
    REJECT_LAYOUT,
    REJECT_TINY_GLYPH,
    PhraseCollector,
    filter_reason,
)
from .errors import GenerationExhaustedError, InvalidArgumentError
from .filters import build_filters, first_rejecting_filter
from .geometry import format_number, sanitize_paint, to_zero_origin
from .paths import ensure_dir, find_json_with_key, get_generated_at, remove_files
from .phrases import GlyphSlice, PhraseCandidate, PhraseItem, select_phrase
from .render import RenderAdapter, ScriptEngine
from .rng import SeededStream, content_hash, seed_summary
from .words import PHRASE_PROFILE, WordEngine, WordSynthesizer
from .writer import (
    PHRASE_MANIFEST_FILE,
    PHRASE_MANIFEST_MARKER,
    PHRASES_DIR,
    PhraseRunInfo,
    write_phrase_corpus,
)

DEFAULT_COUNT = 20
DEFAULT_MIN_GLYPHS = 1
DEFAULT_MAX_GLYPHS = 10
DEFAULT_OUT_DIR = ".tmp/glyph-phrases"
DEFAULT_BAN_CURLY = True
DEFAULT_BAN_DOT = False
DEFAULT_MIN_RAW_GLYPH_HEIGHT = 40.0

# Attempts allowed per requested phrase, by number of active filters.
ATTEMPTS_PER_PHRASE = {0: 3500, 1: 6500, 2: 9000}


@dataclass
class PhraseBuildOptions:
    count: int = DEFAULT_COUNT
    min_glyphs: int = DEFAULT_MIN_GLYPHS
    max_glyphs: int = DEFAULT_MAX_GLYPHS
    seed: int = 0
    seed_label: Optional[str] = None
    out_dir: Path = Path(DEFAULT_OUT_DIR)
    manifest_file: str = PHRASE_MANIFEST_FILE
    ban_curly: bool = DEFAULT_BAN_CURLY
    ban_dot: bool = DEFAULT_BAN_DOT
    min_raw_glyph_height: float = DEFAULT_MIN_RAW_GLYPH_HEIGHT
    handwritten: bool = False

    def __post_init__(self):
        self.out_dir = Path(self.out_dir)
        if self.min_glyphs > self.max_glyphs:
            raise InvalidArgumentError(f"min_glyphs ({self.min_glyphs}) must be <= max_glyphs ({self.max_glyphs})")


def attempt_budget(count: int, ban_curly: bool, ban_dot: bool) -> int:
    return count * ATTEMPTS_PER_PHRASE[int(ban_curly) + int(ban_dot)]


class PhraseSliceBuilder:
    def __init__(
        self,
        options: PhraseBuildOptions,
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
        profile = PHRASE_PROFILE.with_overrides(self.config.get('word_synthesis'))
        self.words = WordSynthesizer(self.stream, word_engine, profile)
        self.renderer = RenderAdapter(script_engine, options.handwritten, self.logger)
        self.filters = build_filters(options.ban_curly, options.ban_dot, self.config.get('filters'))
        self.padding = self.config.get('render', {}).get('phrase_padding', 0)

    def target_glyph_count(self, accepted: int) -> int:
        """Cycle targets through [min_glyphs, max_glyphs] as phrases are accepted."""
        span = self.options.max_glyphs - self.options.min_glyphs + 1
        return self.options.min_glyphs + accepted % span

    def slice_glyphs(self, candidate: PhraseCandidate, phrase_id: str) -> Optional[List[GlyphSlice]]:
        """
        Lay out every glyph on its own. Returns None if any glyph is shorter
        than the minimum raw height.
        """
        slices = []
        for index, glyph in enumerate(candidate.glyphs, start=1):
            row = self.renderer.layout([glyph], self.padding)
            if row.view_box.height < self.options.min_raw_glyph_height:
                return None
            slices.append(
                GlyphSlice(
                    index=index,
                    file=f"{PHRASES_DIR}/{phrase_id}/glyph-{index:02d}.svg",
                    content=sanitize_paint(row.content),
                    view_box=row.view_box,
                )
            )
        return slices

    def accumulate(self) -> PhraseCollector:
        """
        Generate phrases until ``count`` are accepted.

        Raises:
            GenerationExhaustedError: if the attempt budget runs out first
        """
        options = self.options
        max_attempts = attempt_budget(options.count, options.ban_curly, options.ban_dot)
        collector = PhraseCollector()
        stats = collector.stats

        with tqdm(total=options.count, desc="Generating phrases", disable=not self.show_progress) as pbar:
            while len(collector.items) < options.count and stats.attempts < max_attempts:
                stats.attempts += 1
                target = self.target_glyph_count(len(collector.items))

                candidate = select_phrase(self.stream, self.words, target, self.renderer)
                if candidate is None:
                    stats.reject(REJECT_GLYPH_COUNT)
                    continue

                try:
                    row = self.renderer.layout(candidate.glyphs, self.padding)
                except ValueError:
                    stats.reject(REJECT_LAYOUT)
                    continue
                document = to_zero_origin(sanitize_paint(row.content), row.view_box)

                rejected_by = first_rejecting_filter(self.filters, document.svg_text)
                if rejected_by:
                    stats.reject(filter_reason(rejected_by))
                    continue

                phrase_hash = content_hash(document.svg_text)
                if phrase_hash in collector.dedup:
                    stats.reject(REJECT_DUPLICATE)
                    continue

                phrase_id = f"phrase-{len(collector.items) + 1:03d}"
                try:
                    glyphs = self.slice_glyphs(candidate, phrase_id)
                except ValueError:
                    stats.reject(REJECT_LAYOUT)
                    continue
                if glyphs is None:
                    stats.reject(REJECT_TINY_GLYPH)
                    continue

                collector.dedup.admit(phrase_hash)
                collector.items.append(
                    PhraseItem(
                        id=phrase_id,
                        phrase=candidate.phrase,
                        hash=phrase_hash,
                        glyph_count=candidate.glyph_count,
                        phrase_file=f"{PHRASES_DIR}/{phrase_id}/phrase.svg",
                        document=document,
                        glyphs=glyphs,
                    )
                )
                pbar.update(1)

        if len(collector.items) < options.count:
            raise GenerationExhaustedError(
                f"Generated {len(collector.items)}/{options.count} phrases after {stats.attempts} attempts. "
                "Try reducing --count or widening the glyph range.",
                stats.attempts,
            )

        self.logger.info(
            f"Accepted {len(collector.items)} phrases in {stats.attempts} attempts ({stats.summary()})"
        )
        return collector

    def prepare_output(self) -> Path:
        """Clear the phrase tree and manifest left by a previous run."""
        out_dir = ensure_dir(self.options.out_dir)
        shutil.rmtree(out_dir / PHRASES_DIR, ignore_errors=True)
        remove_files([out_dir / self.options.manifest_file])
        remove_files(find_json_with_key(out_dir, PHRASE_MANIFEST_MARKER))
        ensure_dir(out_dir / PHRASES_DIR)
        return out_dir

    def build(self, generated_at: Optional[str] = None) -> Dict[str, Any]:
        """Run the full pipeline and return the written manifest."""
        options = self.options
        generated_at = generated_at or get_generated_at()
        out_dir = self.prepare_output()
        collector = self.accumulate()

        info = PhraseRunInfo(
            generated_at=generated_at,
            count=options.count,
            min_glyphs=options.min_glyphs,
            max_glyphs=options.max_glyphs,
            seed=options.seed,
            seed_label=options.seed_label,
            seed_summary=seed_summary(options.seed, options.seed_label),
            ban_curly=options.ban_curly,
            ban_dot=options.ban_dot,
            min_raw_glyph_height=options.min_raw_glyph_height,
            handwritten=options.handwritten,
        )
        manifest = write_phrase_corpus(out_dir, options.manifest_file, collector.items, info)

        self.logger.info(f"Generated {options.count} phrase bundles in {manifest['outDir']}")
        self.logger.info(f"Glyph range: {options.min_glyphs}-{options.max_glyphs}")
        self.logger.info(f"Ban curly diacritics: {options.ban_curly}")
        self.logger.info(f"Ban singular DOT diacritic: {options.ban_dot}")
        self.logger.info(f"Min raw glyph height: {format_number(options.min_raw_glyph_height)}")
        self.logger.info(f"Unified glyph height: {format_number(manifest['glyphTargetHeight'])}")
        self.logger.info(f"Manifest: {out_dir / options.manifest_file}")
        self.logger.info(f"Seed: {info.seed_summary}")
        return manifest
