"""
Final height equalization and file emission.

Writers receive fully sampled, in-memory corpora. Asset files are written
first and the manifest last, so a failed run never leaves a manifest behind.
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import InvariantViolationError
from .geometry import apply_scale, build_sprite, to_fixed_height, with_symbol_id
from .paths import ensure_dir, relative_to_cwd, write_json_atomic, write_text
from .phrases import PhraseItem
from .pools import WIDTH_RULE, WIDTH_THRESHOLDS, WIDTH_UNITS, PoolItem

SINGLE_SPRITE_FILE = "glyph-pool.svg"
POOL_MANIFEST_FILE = "glyph-pools-manifest.json"
PHRASE_MANIFEST_FILE = "manifest.json"
PHRASES_DIR = "phrases"

# Top-level keys that mark a JSON file in the output directory as one of our manifests.
POOL_MANIFEST_MARKER = "widthUnits"
PHRASE_MANIFEST_MARKER = "glyphTargetHeight"


def pool_file_name(unit: int) -> str:
    return f"glyph-pool-w{unit}.svg"


def pool_output_files(manifest_file: str) -> List[str]:
    """Every file a pool run owns inside its output directory."""
    return [pool_file_name(unit) for unit in WIDTH_UNITS] + [SINGLE_SPRITE_FILE, manifest_file]


@dataclass
class PoolRunInfo:
    generated_at: str
    per_pool: int
    base_count: int
    seed: int
    seed_label: Optional[str]
    seed_summary: str
    ban_curly: bool
    handwritten: bool


def min_sampled_height(items: Sequence[PoolItem]) -> float:
    """
    Smallest normalized height among sampled items.

    Raises:
        InvariantViolationError: if no item has a positive finite height
    """
    heights = [item.normalized_height for item in items if math.isfinite(item.normalized_height)]
    if not heights or min(heights) <= 0:
        raise InvariantViolationError("No sampled symbol has a usable height to derive the pool target height.")
    return min(heights)


def write_pool_corpus(
    out_dir: Path,
    manifest_file: str,
    sampled: Mapping[int, List[str]],
    items_by_id: Mapping[str, PoolItem],
    info: PoolRunInfo,
) -> Dict[str, Any]:
    """Write the five width sprites, the one-per-class sprite and the manifest."""
    out_dir = ensure_dir(out_dir)

    sampled_items = []
    for unit in WIDTH_UNITS:
        for item_id in sampled[unit]:
            if item_id not in items_by_id:
                raise InvariantViolationError(f'Missing sampled symbol "{item_id}" in pool {unit}.')
            sampled_items.append(items_by_id[item_id])
    target_height = min_sampled_height(sampled_items)

    pool_files = {}
    pool_target_heights = {}
    manifest_items = []
    single_sprite_symbols = []

    for unit in WIDTH_UNITS:
        key = str(unit)
        filename = pool_file_name(unit)
        pool_symbols = []

        for item_id in sampled[unit]:
            item = items_by_id[item_id]
            factor = target_height / item.normalized_height if item.normalized_height > 0 else 1
            pool_symbols.append(apply_scale(item.symbol, factor))
            manifest_items.append(
                {
                    "id": item.id,
                    "word": item.word,
                    "mode": item.mode,
                    "hash": item.hash,
                    "glyphCount": item.glyph_count,
                    "widthUnit": unit,
                    "file": filename,
                    "rawWidth": item.raw_width,
                    "rawHeight": item.raw_height,
                    "normalizedScale": item.normalized_scale * factor,
                    "normalizedWidth": item.normalized_width * factor,
                    "normalizedHeight": item.normalized_height * factor,
                    "normalizedAspect": item.normalized_aspect,
                    "heightNormalizeScale": factor,
                }
            )

        header = (
            f"<!-- Generated by build_glyph_pools at {info.generated_at}; width=w{key}; "
            f"count={info.per_pool}; seed={info.seed_summary}; banCurly={str(info.ban_curly).lower()} -->"
        )
        write_text(out_dir / filename, build_sprite(pool_symbols, header))
        pool_files[key] = filename
        pool_target_heights[key] = target_height

        if pool_symbols:
            single_sprite_symbols.append(with_symbol_id(pool_symbols[0], f"w{key}"))

    single_header = (
        f"<!-- Generated by build_glyph_pools at {info.generated_at}; symbols={len(WIDTH_UNITS)}; "
        f"one-per-width(w1..w5); seed={info.seed_summary}; banCurly={str(info.ban_curly).lower()} -->"
    )
    write_text(out_dir / SINGLE_SPRITE_FILE, build_sprite(single_sprite_symbols, single_header))

    manifest = {
        "generatedAt": info.generated_at,
        "perPool": info.per_pool,
        "baseCount": info.base_count,
        "total": info.per_pool * len(WIDTH_UNITS),
        "seed": info.seed_label,
        "resolvedSeed": info.seed,
        "seedSummary": info.seed_summary,
        "banCurlyDiacritics": info.ban_curly,
        "handwritten": info.handwritten,
        "widthUnits": WIDTH_UNITS,
        "widthThresholds": WIDTH_THRESHOLDS,
        "widthRule": WIDTH_RULE,
        "poolTargetHeights": pool_target_heights,
        "singleSpriteFile": SINGLE_SPRITE_FILE,
        "poolFiles": pool_files,
        "pools": {str(unit): list(sampled[unit]) for unit in WIDTH_UNITS},
        "outDir": relative_to_cwd(out_dir),
        "items": manifest_items,
    }
    write_json_atomic(out_dir / manifest_file, manifest)
    return manifest


@dataclass
class PhraseRunInfo:
    generated_at: str
    count: int
    min_glyphs: int
    max_glyphs: int
    seed: int
    seed_label: Optional[str]
    seed_summary: str
    ban_curly: bool
    ban_dot: bool
    min_raw_glyph_height: float
    handwritten: bool


def max_raw_glyph_height(items: Sequence[PhraseItem]) -> float:
    """
    Tallest natural glyph height across the corpus.

    Raises:
        InvariantViolationError: if there is no positive finite glyph height
    """
    heights = [glyph.view_box.height for item in items for glyph in item.glyphs]
    if not heights:
        raise InvariantViolationError("Failed to resolve a valid unified glyph target height.")
    target = max(heights)
    if not math.isfinite(target) or target <= 0:
        raise InvariantViolationError("Failed to resolve a valid unified glyph target height.")
    return target


def write_phrase_corpus(
    out_dir: Path,
    manifest_file: str,
    items: Sequence[PhraseItem],
    info: PhraseRunInfo,
) -> Dict[str, Any]:
    """Write phrase documents, pad-equalized glyph slices and the manifest."""
    out_dir = ensure_dir(out_dir)
    glyph_target_height = max_raw_glyph_height(items)

    manifest_items = []
    for item in items:
        write_text(out_dir / item.phrase_file, item.document.svg_text)

        manifest_glyphs = []
        for glyph in item.glyphs:
            padded = to_fixed_height(glyph.content, glyph.view_box, glyph_target_height)
            write_text(out_dir / glyph.file, padded.svg_text)
            manifest_glyphs.append(
                {
                    "index": glyph.index,
                    "file": glyph.file,
                    "rawWidth": glyph.view_box.width,
                    "rawHeight": glyph.view_box.height,
                    "width": padded.width,
                    "height": padded.height,
                    "viewBox": padded.view_box,
                }
            )

        manifest_items.append(
            {
                "id": item.id,
                "phrase": item.phrase,
                "hash": item.hash,
                "glyphCount": item.glyph_count,
                "phraseFile": item.phrase_file,
                "phraseWidth": item.document.width,
                "phraseHeight": item.document.height,
                "phraseViewBox": item.document.view_box,
                "glyphs": manifest_glyphs,
            }
        )

    manifest = {
        "generatedAt": info.generated_at,
        "count": info.count,
        "minGlyphs": info.min_glyphs,
        "maxGlyphs": info.max_glyphs,
        "seed": info.seed_label,
        "resolvedSeed": info.seed,
        "seedSummary": info.seed_summary,
        "banCurlyDiacritics": info.ban_curly,
        "banDotDiacritic": info.ban_dot,
        "minRawGlyphHeight": info.min_raw_glyph_height,
        "handwritten": info.handwritten,
        "glyphTargetHeight": glyph_target_height,
        "outDir": relative_to_cwd(out_dir),
        "items": manifest_items,
    }
    write_json_atomic(out_dir / manifest_file, manifest)
    return manifest
