"""
Adapter around the external script-layout engine.

The engine turns text into an ordered glyph sequence and lays glyphs out as a
row of SVG content with a tight viewBox. Exploratory generation expects most
texts to fail, so ``render_quiet`` hands those failures back as plain results
without logging anything.
"""

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from .errors import MissingDependencyError
from .geometry import ViewBox, parse_view_box


@dataclass
class ScriptResult:
    ok: bool
    glyphs: List[Any] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def glyph_count(self) -> int:
        if not isinstance(self.glyphs, (list, tuple)):
            return 0
        return len(self.glyphs)


@dataclass
class RowLayout:
    """Raw engine output: inner SVG markup and its viewBox attribute text."""

    content: str
    view_box: str


@dataclass
class RenderedRow:
    content: str
    view_box: ViewBox


class ScriptEngine(Protocol):
    def text_to_script(self, text: str, handwritten: bool = False) -> ScriptResult:
        ...

    def layout_row(self, glyphs: Sequence[Any], padding: float) -> RowLayout:
        ...


class RenderAdapter:
    def __init__(self, engine: ScriptEngine, handwritten: bool = False, logger: Optional[logging.Logger] = None):
        self.engine = engine
        self.handwritten = handwritten
        self.logger = logger or logging.getLogger(__name__)

    def render_quiet(self, text: str) -> ScriptResult:
        """Parse ``text`` into glyphs; failures come back as ``ok=False``."""
        try:
            result = self.engine.text_to_script(text, self.handwritten)
        except ValueError as e:
            return ScriptResult(ok=False, reason=str(e))

        if result is None:
            return ScriptResult(ok=False, reason="engine returned no result")
        return result

    def render(self, text: str) -> ScriptResult:
        """
        Like ``render_quiet`` but reports failures on the logger.

        This is the diagnostic variant for one-off renders outside the
        generation loops; the builders call ``render_quiet`` because most
        candidates are expected to fail.
        """
        result = self.render_quiet(text)
        if not result.ok:
            self.logger.warning(f"Failed to render {text!r}: {result.reason}")
        return result

    def layout(self, glyphs: Sequence[Any], padding: float = 0) -> RenderedRow:
        """
        Lay glyphs out as one row.

        Raises:
            ValueError: if the engine produced no usable viewBox
        """
        row = self.engine.layout_row(list(glyphs), padding)
        if not row.view_box:
            raise ValueError("No viewBox generated.")
        return RenderedRow(content=row.content, view_box=parse_view_box(row.view_box))


def load_object(spec: str) -> Any:
    """Import ``module`` or ``module:attribute``."""
    module_name, _, attribute = spec.partition(":")
    module = importlib.import_module(module_name)
    return getattr(module, attribute) if attribute else module


def _instantiate(obj: Any) -> Any:
    # Classes and factory functions are called; plain modules act as the engine.
    return obj() if callable(obj) else obj


def load_engines(word_spec: str, script_spec: str) -> Tuple[Any, ScriptEngine]:
    """
    Load the word and script engines from import specs.

    Raises:
        MissingDependencyError: listing every spec that could not be imported
    """
    loaded = {}
    missing = []
    for role, spec in (("word", word_spec), ("script", script_spec)):
        try:
            loaded[role] = load_object(spec)
        except (ImportError, AttributeError):
            missing.append(spec)

    if missing:
        raise MissingDependencyError(
            f"Missing engine modules: {', '.join(missing)}. "
            "Install the word and script engines or pass --word-engine/--script-engine."
        )

    return _instantiate(loaded["word"]), _instantiate(loaded["script"])
