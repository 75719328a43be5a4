"""Error types raised by the glyph corpus builders."""


class GlyphGenError(Exception):
    """Base class for every fatal builder error."""


class InvalidArgumentError(GlyphGenError, ValueError):
    """A CLI flag or option value is malformed or out of range."""


class MissingDependencyError(GlyphGenError):
    """A required word or script engine module could not be imported."""


class InvalidCombinationError(ValueError):
    """Raised by word engines when a constraint combination is not a valid word."""


class GenerationExhaustedError(GlyphGenError):
    """The attempt budget ran out before a quota was met."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class InvariantViolationError(GlyphGenError):
    """Internal state that a completed run relies on does not hold."""
