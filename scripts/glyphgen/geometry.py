"""
SVG geometry normalization.

All coordinates written by these helpers go through ``format_number`` so the
emitted markup is identical from run to run.
"""

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List

SVG_NS = "http://www.w3.org/2000/svg"
NUMBER_QUANTUM = Decimal("0.000001")
IDENTITY_EPSILON = 0.000001

# Canonical symbol frame shared by every pool symbol.
CANONICAL_MIN_X = -120
CANONICAL_MIN_Y = -90
CANONICAL_WIDTH = 240
CANONICAL_HEIGHT = 180
CANONICAL_PADDING_RATIO = 0.07

KEPT_PAINT_VALUES = ("none", "currentcolor", "inherit")
PAINT_ATTRIBUTE_PATTERN = re.compile(r'\s(fill|stroke)="([^"]+)"', re.IGNORECASE)
SYMBOL_ID_PATTERN = re.compile(r'<symbol\b[^>]*\bid="[^"]*"')
ID_ATTRIBUTE_PATTERN = re.compile(r'\bid="[^"]*"')


def format_number(value: float) -> str:
    """Round to 6 decimals (half away from zero) and drop trailing zeros."""
    rounded = Decimal(value).quantize(NUMBER_QUANTUM, rounding=ROUND_HALF_UP)
    if rounded == 0:
        return "0"
    return format(rounded.normalize(), "f")


@dataclass(frozen=True)
class ViewBox:
    min_x: float
    min_y: float
    width: float
    height: float

    def __str__(self) -> str:
        return " ".join(format_number(v) for v in (self.min_x, self.min_y, self.width, self.height))


CANONICAL_FRAME = ViewBox(CANONICAL_MIN_X, CANONICAL_MIN_Y, CANONICAL_WIDTH, CANONICAL_HEIGHT)


def parse_view_box(value: str) -> ViewBox:
    """
    Parse a ``viewBox`` attribute.

    Raises:
        ValueError: for anything other than four finite numbers with positive size
    """
    parts = value.strip().split()
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        raise ValueError(f"Invalid viewBox: {value}") from None

    if len(numbers) != 4 or not all(math.isfinite(n) for n in numbers):
        raise ValueError(f"Invalid viewBox: {value}")

    min_x, min_y, width, height = numbers
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid viewBox dimensions: {value}")

    return ViewBox(min_x, min_y, width, height)


def sanitize_paint(content: str) -> str:
    """Rewrite explicit fill/stroke colors to ``currentColor``."""

    def replace(match: "re.Match[str]") -> str:
        value = match.group(2).strip().lower()
        if value in KEPT_PAINT_VALUES or value.startswith("url("):
            return match.group(0)
        return f' {match.group(1).lower()}="currentColor"'

    return PAINT_ATTRIBUTE_PATTERN.sub(replace, content)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


@dataclass
class SvgDocument:
    """A standalone SVG file and the size it was written at."""

    svg_text: str
    width: float
    height: float
    view_box: str


def _svg_document(content: str, width: str, height: str) -> str:
    return "\n".join(
        [
            f'<svg xmlns="{SVG_NS}" viewBox="0 0 {width} {height}" width="{width}" height="{height}" '
            'fill="currentColor" stroke="none">',
            content,
            "</svg>",
            "",
        ]
    )


def _is_identity(value: float) -> bool:
    return abs(value) < IDENTITY_EPSILON


def to_zero_origin(content: str, view_box: ViewBox, scale: float = 1) -> SvgDocument:
    """Move the viewBox origin to (0, 0), optionally scaling uniformly."""
    applied_scale = scale if math.isfinite(scale) and scale > 0 else 1
    scaled_width = view_box.width * applied_scale
    scaled_height = view_box.height * applied_scale
    width = format_number(scaled_width)
    height = format_number(scaled_height)

    if _is_identity(view_box.min_x) and _is_identity(view_box.min_y):
        zero_origin_content = content
    else:
        tx = format_number(-view_box.min_x)
        ty = format_number(-view_box.min_y)
        zero_origin_content = f'<g transform="translate({tx} {ty})">{content}</g>'

    if _is_identity(applied_scale - 1):
        transformed = zero_origin_content
    else:
        transformed = f'<g transform="scale({format_number(applied_scale)})">{zero_origin_content}</g>'

    return SvgDocument(
        svg_text=_svg_document(transformed, width, height),
        width=scaled_width,
        height=scaled_height,
        view_box=f"0 0 {width} {height}",
    )


def to_fixed_height(content: str, view_box: ViewBox, target_height: float) -> SvgDocument:
    """
    Pad vertically to ``target_height`` with the content centred.

    The canvas never shrinks below the natural height and the natural width is
    kept as is.
    """
    if math.isfinite(target_height) and target_height >= view_box.height:
        canvas_height = target_height
    else:
        canvas_height = view_box.height
    y_pad = (canvas_height - view_box.height) / 2
    tx_value = -view_box.min_x
    ty_value = -view_box.min_y + y_pad
    width = format_number(view_box.width)
    height = format_number(canvas_height)

    if _is_identity(tx_value) and _is_identity(ty_value):
        transformed = content
    else:
        transformed = f'<g transform="translate({format_number(tx_value)} {format_number(ty_value)})">{content}</g>'

    return SvgDocument(
        svg_text=_svg_document(transformed, width, height),
        width=view_box.width,
        height=canvas_height,
        view_box=f"0 0 {width} {height}",
    )


@dataclass
class CanonicalFit:
    view_box: str
    content: str
    scale: float
    width: float
    height: float
    aspect: float


def fit_canonical_frame(
    content: str,
    source: ViewBox,
    frame: ViewBox = CANONICAL_FRAME,
    padding_ratio: float = CANONICAL_PADDING_RATIO,
) -> CanonicalFit:
    """
    Scale ``source`` uniformly to fit inside ``frame`` minus padding, centred.

    Width and height are reported as fractions of the frame size.
    """
    usable_width = frame.width * (1 - padding_ratio * 2)
    usable_height = frame.height * (1 - padding_ratio * 2)
    scale = min(usable_width / source.width, usable_height / source.height)

    source_cx = source.min_x + source.width / 2
    source_cy = source.min_y + source.height / 2
    frame_cx = frame.min_x + frame.width / 2
    frame_cy = frame.min_y + frame.height / 2
    translate_x = frame_cx - source_cx * scale
    translate_y = frame_cy - source_cy * scale

    transform = (
        f"translate({format_number(translate_x)} {format_number(translate_y)}) "
        f"scale({format_number(scale)})"
    )
    normalized_content = f'<g fill="currentColor" transform="{transform}">{sanitize_paint(content)}</g>'
    width = (source.width * scale) / frame.width
    height = (source.height * scale) / frame.height

    return CanonicalFit(
        view_box=str(frame),
        content=normalized_content,
        scale=scale,
        width=width,
        height=height,
        aspect=width / height if height > 0 else 1,
    )


def symbol_markup(symbol_id: str, view_box: str, content: str) -> str:
    return f'<symbol id="{symbol_id}" viewBox="{view_box}">{content}</symbol>'


def apply_scale(symbol_text: str, factor: float) -> str:
    """Wrap a symbol's content in one extra ``scale()`` group; identity is a no-op."""
    if not math.isfinite(factor) or factor <= 0 or _is_identity(factor - 1):
        return symbol_text

    open_index = symbol_text.find(">")
    close_index = symbol_text.rfind("</symbol>")
    if open_index < 0 or close_index < 0 or close_index <= open_index:
        return symbol_text

    head = symbol_text[: open_index + 1]
    body = symbol_text[open_index + 1 : close_index]
    tail = symbol_text[close_index:]
    return f'{head}<g transform="scale({format_number(factor)})">{body}</g>{tail}'


def with_symbol_id(symbol_text: str, symbol_id: str) -> str:
    return SYMBOL_ID_PATTERN.sub(
        lambda match: ID_ATTRIBUTE_PATTERN.sub(f'id="{symbol_id}"', match.group(0)),
        symbol_text,
        count=1,
    )


def build_sprite(symbols: List[str], header_comment: str) -> str:
    """Hidden SVG sprite with every symbol under ``<defs>``."""
    return "\n".join(
        [
            header_comment,
            f'<svg xmlns="{SVG_NS}" aria-hidden="true" style="position:absolute;width:0;height:0;overflow:hidden">',
            "  <defs>",
            *[f"    {symbol}" for symbol in symbols],
            "  </defs>",
            "</svg>",
            "",
        ]
    )
