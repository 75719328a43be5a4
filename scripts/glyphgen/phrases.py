"""Phrase assembly sized to hit an exact glyph count."""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .geometry import SvgDocument, ViewBox
from .render import RenderAdapter
from .rng import SeededStream
from .words import Candidate

PHRASE_SEPARATOR = " "


@dataclass
class PhraseCandidate:
    phrase: str
    glyphs: List[Any]
    glyph_count: int


def max_words_for_target(target_glyph_count: int) -> int:
    """Upper bound on words per phrase for a glyph target."""
    if target_glyph_count <= 2:
        return 1
    if target_glyph_count <= 4:
        return 2
    if target_glyph_count <= 7:
        return 3
    return 4


def build_phrase(stream: SeededStream, next_word: Callable[[], Candidate], target_glyph_count: int) -> str:
    word_count = stream.randint(1, max_words_for_target(target_glyph_count))
    return PHRASE_SEPARATOR.join(next_word().text for _ in range(word_count))


def select_phrase(
    stream: SeededStream,
    next_word: Callable[[], Candidate],
    target_glyph_count: int,
    renderer: RenderAdapter,
) -> Optional[PhraseCandidate]:
    """
    Assemble one phrase and keep it only if it renders to exactly
    ``target_glyph_count`` glyphs. Returns None for any miss.
    """
    phrase = build_phrase(stream, next_word, target_glyph_count)

    result = renderer.render_quiet(phrase)
    if not result.ok:
        return None

    if result.glyph_count != target_glyph_count:
        return None

    return PhraseCandidate(phrase=phrase, glyphs=list(result.glyphs), glyph_count=result.glyph_count)


@dataclass
class GlyphSlice:
    """One glyph of an accepted phrase, laid out on its own."""

    index: int
    file: str
    content: str
    view_box: ViewBox


@dataclass
class PhraseItem:
    id: str
    phrase: str
    hash: str
    glyph_count: int
    phrase_file: str
    document: SvgDocument
    glyphs: List[GlyphSlice]
