import sys
import types
from typing import Any, List, Sequence

import pytest

from glyphgen.errors import InvalidCombinationError
from glyphgen.filters import CURLY_DIACRITIC_SIGNATURES, SINGULAR_DOT_DIACRITIC_SIGNATURES
from glyphgen.render import RowLayout, ScriptResult
from glyphgen.rng import SeededStream
from glyphgen.words import WordConstraints

GLYPH_GAP = 2


class FakeWordEngine:
    """Small deterministic grammar: root plus a vowel tail, ERG is never valid."""

    roots = ["ml", "kt", "bral", "[placeholder]", ""]

    def generate_word(self, constraints: WordConstraints) -> str:
        if constraints.case == "ERG":
            raise InvalidCombinationError("ERG is not valid here")
        word = constraints.root + ("o" if constraints.shortcut else "ei")
        if constraints.vn:
            word += "u"
        if constraints.slot_v_affixes:
            word = constraints.slot_v_affixes[0].cs + word
        return word


def glyph_height(chunk: str) -> int:
    return 40 + (ord(chunk[0]) % 7) * 5


def glyph_width(chunk: str) -> int:
    return 8 + (ord(chunk[-1]) % 5) * 2


class FakeScriptEngine:
    """
    Every word becomes one glyph per two characters. Texts with digits cannot
    be written. Glyphs containing "sh" carry a curly diacritic and glyphs
    containing "z" carry the dot diacritic.
    """

    def __init__(self):
        self.handwritten_calls: List[bool] = []

    def text_to_script(self, text: str, handwritten: bool = False) -> ScriptResult:
        self.handwritten_calls.append(handwritten)
        if any(ch.isdigit() for ch in text):
            return ScriptResult(ok=False, reason="digits are not writable")
        glyphs = [word[i : i + 2] for word in text.split() for i in range(0, len(word), 2)]
        if not glyphs:
            return ScriptResult(ok=False, reason="empty text")
        return ScriptResult(ok=True, glyphs=glyphs)

    def layout_row(self, glyphs: Sequence[Any], padding: float) -> RowLayout:
        if not glyphs:
            return RowLayout(content="", view_box="")

        parts = []
        x = 0
        max_height = 0
        for chunk in glyphs:
            width = glyph_width(chunk)
            height = glyph_height(chunk)
            parts.append(
                f'<path data-glyph="{chunk}" d="M {x} 0 l {width} 0 l 0 {height} l {-width} 0 z" fill="#112233"/>'
            )
            if "sh" in chunk:
                parts.append(f'<path d="M {x} 0 {CURLY_DIACRITIC_SIGNATURES[0]}" stroke="black"/>')
            if "z" in chunk:
                parts.append(f'<path d="M {x} -5 {SINGULAR_DOT_DIACRITIC_SIGNATURES[0]}"/>')
            x += width + GLYPH_GAP
            max_height = max(max_height, height)

        total_width = x - GLYPH_GAP
        view_box = f"{-padding} {-padding} {total_width + 2 * padding} {max_height + 2 * padding}"
        return RowLayout(content="".join(parts), view_box=view_box)


class FixedWordEngine:
    """Returns the same word for every request."""

    roots = ["kt"]

    def __init__(self, word: str):
        self.word = word

    def generate_word(self, constraints: WordConstraints) -> str:
        return self.word


class ScriptedStream(SeededStream):
    """Replays preset draws, then repeats ``default``. Counts every draw."""

    def __init__(self, values: Sequence[float] = (), default: float = 0.0):
        super().__init__(0)
        self.values = list(values)
        self.default = default
        self.draws = 0

    def random(self) -> float:
        self.draws += 1
        if self.values:
            return self.values.pop(0)
        return self.default


class FailingScriptEngine(FakeScriptEngine):
    def text_to_script(self, text: str, handwritten: bool = False) -> ScriptResult:
        return ScriptResult(ok=False, reason="nothing is writable")


@pytest.fixture
def word_engine() -> FakeWordEngine:
    return FakeWordEngine()


@pytest.fixture
def script_engine() -> FakeScriptEngine:
    return FakeScriptEngine()


@pytest.fixture
def engine_module(monkeypatch) -> str:
    """Register the fake engines as an importable module and return its name."""
    module = types.ModuleType("fake_glyph_engines")
    module.FakeWordEngine = FakeWordEngine
    module.FakeScriptEngine = FakeScriptEngine
    module.FailingScriptEngine = FailingScriptEngine
    monkeypatch.setitem(sys.modules, "fake_glyph_engines", module)
    return "fake_glyph_engines"
