"""
Build phrase SVGs together with per-glyph slices padded to one shared height.

Writes phrases/phrase-NNN/phrase.svg, phrases/phrase-NNN/glyph-NN.svg and a
JSON manifest into --out-dir.
"""

import argparse
import logging
import sys
from typing import List, Optional

from glyphgen import PhraseBuildOptions, PhraseSliceBuilder, load_engines, resolve_seed
from glyphgen.cli import (
    add_common_arguments,
    add_curly_arguments,
    parse_positive_int,
    parse_positive_number,
    resolve_engine_specs,
    run_builder,
)
from glyphgen.errors import InvalidArgumentError
from glyphgen.phrase_builder import (
    DEFAULT_BAN_CURLY,
    DEFAULT_BAN_DOT,
    DEFAULT_COUNT,
    DEFAULT_MAX_GLYPHS,
    DEFAULT_MIN_GLYPHS,
    DEFAULT_MIN_RAW_GLYPH_HEIGHT,
    DEFAULT_OUT_DIR,
)
from glyphgen.writer import PHRASE_MANIFEST_FILE

BUILDER_NAME = "glyph_phrases"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build phrase SVGs and equal-height glyph slices")
    parser.add_argument("--count", default=str(DEFAULT_COUNT), help="Number of phrases to generate")
    parser.add_argument("--min-glyphs", default=str(DEFAULT_MIN_GLYPHS), help="Minimum glyphs per phrase")
    parser.add_argument("--max-glyphs", default=str(DEFAULT_MAX_GLYPHS), help="Maximum glyphs per phrase")
    parser.add_argument(
        "--min-raw-glyph-height", default=str(DEFAULT_MIN_RAW_GLYPH_HEIGHT),
        help="Reject phrases containing a glyph shorter than this (raw units)",
    )
    add_curly_arguments(parser, DEFAULT_BAN_CURLY)

    dot = parser.add_mutually_exclusive_group()
    dot.add_argument("--ban-dot-diacritic", dest="ban_dot", action="store_true",
                     help="Reject the singular dot diacritic")
    dot.add_argument("--allow-dot-diacritic", dest="ban_dot", action="store_false",
                     help="Allow the singular dot diacritic")
    parser.set_defaults(ban_dot=DEFAULT_BAN_DOT)

    add_common_arguments(parser, DEFAULT_OUT_DIR, PHRASE_MANIFEST_FILE)
    return parser


def run(args: argparse.Namespace, config: dict, logger: logging.Logger) -> None:
    count = parse_positive_int("--count", args.count)
    min_glyphs = parse_positive_number("--min-glyphs", args.min_glyphs)
    max_glyphs = parse_positive_number("--max-glyphs", args.max_glyphs)
    if min_glyphs > max_glyphs:
        raise InvalidArgumentError(
            f"--min-glyphs ({args.min_glyphs}) must be <= --max-glyphs ({args.max_glyphs})."
        )
    min_glyphs = parse_positive_int("--min-glyphs", args.min_glyphs)
    max_glyphs = parse_positive_int("--max-glyphs", args.max_glyphs)
    min_raw_glyph_height = parse_positive_number("--min-raw-glyph-height", args.min_raw_glyph_height)
    seed, seed_label = resolve_seed(args.seed)

    specs = resolve_engine_specs(args, config)
    word_engine, script_engine = load_engines(specs['words'], specs['script'])

    render_config = config.get('render', {})
    options = PhraseBuildOptions(
        count=count,
        min_glyphs=min_glyphs,
        max_glyphs=max_glyphs,
        seed=seed,
        seed_label=seed_label,
        out_dir=args.out_dir,
        manifest_file=args.manifest,
        ban_curly=args.ban_curly,
        ban_dot=args.ban_dot,
        min_raw_glyph_height=min_raw_glyph_height,
        handwritten=args.handwritten or render_config.get('handwritten', False),
    )
    builder = PhraseSliceBuilder(options, word_engine, script_engine, config=config, logger=logger)
    builder.build()


def main(argv: Optional[List[str]] = None) -> int:
    return run_builder(BUILDER_NAME, build_parser(), argv, run)


if __name__ == "__main__":
    sys.exit(main())
