"""Argument validation and shared entry-point plumbing for the builder scripts."""

import argparse
import logging
import math
from pathlib import Path
from typing import Callable, List, Optional

from .config import get_builder_config, get_engine_specs
from .errors import GlyphGenError, InvalidArgumentError
from .logging import setup_logger


def parse_positive_number(flag: str, value) -> float:
    """
    Parse a flag value that must be a finite number greater than zero.

    Raises:
        InvalidArgumentError: naming the flag and the rejected value
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Invalid {flag} value: {value}") from None
    if not math.isfinite(number) or number <= 0:
        raise InvalidArgumentError(f"Invalid {flag} value: {value}")
    return number


def parse_positive_int(flag: str, value) -> int:
    """Like ``parse_positive_number`` but floored to an integer."""
    number = parse_positive_number(flag, value)
    floored = int(math.floor(number))
    if floored <= 0:
        raise InvalidArgumentError(f"Invalid {flag} value: {value}")
    return floored


def add_common_arguments(parser: argparse.ArgumentParser, default_out_dir: str, default_manifest: str) -> None:
    parser.add_argument("--seed", help="Deterministic seed (number or any text); random when omitted")
    parser.add_argument("--out-dir", type=Path, default=Path(default_out_dir), help="Output directory")
    parser.add_argument("--manifest", default=default_manifest, help="Manifest file name inside --out-dir")
    parser.add_argument("--handwritten", action="store_true", help="Render with the handwritten script style")
    parser.add_argument("--config", type=Path, help="Builder config path")
    parser.add_argument("--word-engine", help="Word engine import spec (module:attribute)")
    parser.add_argument("--script-engine", help="Script engine import spec (module:attribute)")
    parser.add_argument("--log-dir", type=Path, help="Also write logs to a timestamped file here")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")


def add_curly_arguments(parser: argparse.ArgumentParser, default: bool) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--ban-curly", dest="ban_curly", action="store_true", help="Reject curly diacritics")
    group.add_argument("--allow-curly", dest="ban_curly", action="store_false", help="Allow curly diacritics")
    parser.set_defaults(ban_curly=default)


def resolve_engine_specs(args: argparse.Namespace, config: dict) -> dict:
    """Engine specs from the config, overridden by CLI flags."""
    specs = get_engine_specs(config)
    if args.word_engine:
        specs['words'] = args.word_engine
    if args.script_engine:
        specs['script'] = args.script_engine
    return specs


def run_builder(
    name: str,
    parser: argparse.ArgumentParser,
    argv: Optional[List[str]],
    run: Callable[[argparse.Namespace, dict, logging.Logger], None],
) -> int:
    """
    Parse ``argv``, set up logging and config, then call ``run``.

    Returns the process exit code; every ``GlyphGenError`` is logged and
    mapped to 1.
    """
    args = parser.parse_args(argv)
    logger = setup_logger(name, args.log_dir, logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = get_builder_config(name, args.config)
        run(args, config, logger)
    except GlyphGenError as e:
        logger.error(str(e))
        return 1
    return 0
