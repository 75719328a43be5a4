"""
Build width-bucketed glyph pool sprites.

Writes glyph-pool-w1.svg .. glyph-pool-w5.svg, a one-per-width glyph-pool.svg
and a JSON manifest into --out-dir.
"""

import argparse
import logging
import sys
from typing import List, Optional

from glyphgen import GlyphPoolBuilder, PoolBuildOptions, load_engines, resolve_seed
from glyphgen.cli import (
    add_common_arguments,
    add_curly_arguments,
    parse_positive_int,
    resolve_engine_specs,
    run_builder,
)
from glyphgen.pool_builder import DEFAULT_BAN_CURLY, DEFAULT_BASE_COUNT, DEFAULT_OUT_DIR, DEFAULT_PER_POOL
from glyphgen.writer import POOL_MANIFEST_FILE

BUILDER_NAME = "glyph_pools"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build glyph pool SVG sprites bucketed by width")
    parser.add_argument(
        "--per-pool", "--count-per-pool", dest="per_pool", default=str(DEFAULT_PER_POOL),
        help="Symbols kept in each width pool",
    )
    parser.add_argument(
        "--base-count", default=str(DEFAULT_BASE_COUNT),
        help="Initial number of candidates to accumulate before sampling",
    )
    add_curly_arguments(parser, DEFAULT_BAN_CURLY)
    add_common_arguments(parser, DEFAULT_OUT_DIR, POOL_MANIFEST_FILE)
    return parser


def run(args: argparse.Namespace, config: dict, logger: logging.Logger) -> None:
    per_pool = parse_positive_int("--per-pool", args.per_pool)
    base_count = parse_positive_int("--base-count", args.base_count)
    seed, seed_label = resolve_seed(args.seed)

    specs = resolve_engine_specs(args, config)
    word_engine, script_engine = load_engines(specs['words'], specs['script'])

    render_config = config.get('render', {})
    options = PoolBuildOptions(
        per_pool=per_pool,
        base_count=base_count,
        seed=seed,
        seed_label=seed_label,
        out_dir=args.out_dir,
        manifest_file=args.manifest,
        ban_curly=args.ban_curly,
        handwritten=args.handwritten or render_config.get('handwritten', False),
    )
    builder = GlyphPoolBuilder(options, word_engine, script_engine, config=config, logger=logger)
    builder.build()


def main(argv: Optional[List[str]] = None) -> int:
    return run_builder(BUILDER_NAME, build_parser(), argv, run)


if __name__ == "__main__":
    sys.exit(main())
