"""
Signature filters over normalized SVG text.

Each filter is a named list of literal path fragments. A candidate whose
whitespace-collapsed markup contains any fragment is rejected.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .geometry import collapse_whitespace

CURLY_FILTER = "curly"
DOT_FILTER = "dot"

CURLY_DIACRITIC_SIGNATURES = (
    "q -6.55 11.7 -14.4 12.25",
    "q 6.55 -11.7 14.4 -12.25",
    "q -0.75 -5.3 -5.4 -8.4",
    "q 0.75 5.3 5.4 8.4",
    "q -3.3 5.85 -2.55 11.1",
)
SINGULAR_DOT_DIACRITIC_SIGNATURES = (
    "l 7.5 7.5 l 7.5 -7.5 l -7.5 -7.5 l -7.5 7.5 z",
)


@dataclass(frozen=True)
class SignatureFilter:
    name: str
    signatures: Tuple[str, ...]

    def matches(self, svg_text: str) -> bool:
        normalized = collapse_whitespace(svg_text)
        return any(signature in normalized for signature in self.signatures)


def _extra_signatures(config: Optional[Dict[str, Any]], name: str) -> Tuple[str, ...]:
    if not config:
        return ()
    section = config.get(name) or {}
    return tuple(str(s) for s in section.get("extra_signatures", []))


def build_filters(
    ban_curly: bool,
    ban_dot: bool = False,
    config: Optional[Dict[str, Any]] = None,
) -> List[SignatureFilter]:
    """Active filters in application order; ``config`` is the ``filters`` section."""
    filters = []
    if ban_curly:
        filters.append(
            SignatureFilter(CURLY_FILTER, CURLY_DIACRITIC_SIGNATURES + _extra_signatures(config, CURLY_FILTER))
        )
    if ban_dot:
        filters.append(
            SignatureFilter(DOT_FILTER, SINGULAR_DOT_DIACRITIC_SIGNATURES + _extra_signatures(config, DOT_FILTER))
        )
    return filters


def first_rejecting_filter(filters: Sequence[SignatureFilter], svg_text: str) -> Optional[str]:
    """Name of the first filter matching ``svg_text``, or None when it passes."""
    for signature_filter in filters:
        if signature_filter.matches(svg_text):
            return signature_filter.name
    return None
