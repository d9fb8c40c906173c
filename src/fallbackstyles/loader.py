"""Font binary ingestion backed by fontTools."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
import io
from pathlib import Path
import struct

from fontTools.ttLib import TTFont, TTLibError

from fallbackstyles.exceptions import FontParseError
from fallbackstyles.models import WeightAxis


_PARSE_ERRORS = (
    TTLibError,
    KeyError,
    AssertionError,
    ValueError,
    IndexError,
    EOFError,
    struct.error,
)

_MIME_TYPES = {
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}


@dataclass(slots=True)
class ParsedFont:
    """Metadata and character map extracted from one font binary."""

    family_name: str | None
    units_per_em: int
    ascender: int
    descender: int
    line_gap: int = 0
    axes: WeightAxis | None = None
    is_variable: bool = False
    static_weight: int = 400
    file_name: str | None = None
    glyph_ids: dict[int, int] = field(default_factory=dict, repr=False)
    data: bytes = field(default=b"", repr=False)

    def char_to_glyph_index(self, char: str) -> int:
        """Return the glyph index mapped to ``char`` (``0`` when absent)."""
        if len(char) != 1:
            return 0
        return self.glyph_ids.get(ord(char), 0)

    def covers(self, text: str) -> bool:
        return all(self.char_to_glyph_index(char) for char in text if not char.isspace())

    @property
    def codepoint_count(self) -> int:
        return len(self.glyph_ids)


def _family_name(font: TTFont) -> str | None:
    if "name" not in font:
        return None
    table = font["name"]
    for name_id in (16, 1):
        value = table.getDebugName(name_id)
        if value:
            return value.strip()
    return None


def _weight_axis(font: TTFont) -> WeightAxis | None:
    if "fvar" not in font:
        return None
    for axis in font["fvar"].axes:
        if axis.axisTag != "wght":
            continue
        label = None
        if "name" in font:
            label = font["name"].getDebugName(axis.axisNameID)
        return WeightAxis(
            min=float(axis.minValue),
            max=float(axis.maxValue),
            default=float(axis.defaultValue),
            name=label or "Weight",
        )
    return None


def _open(data: bytes) -> TTFont:
    return TTFont(io.BytesIO(data), lazy=False)


def _label(file_name: str | None) -> str:
    return f"'{file_name}'" if file_name else "font data"


def validate_font_bytes(data: bytes) -> None:
    """Raise :class:`FontParseError` when ``data`` is not a usable font.

    Runs inside the validation worker; the caller parses the bytes again
    once the worker reports success.
    """
    parse_font_bytes(data)


def parse_font_bytes(data: bytes, file_name: str | None = None) -> ParsedFont:
    """Parse a font binary into a :class:`ParsedFont`."""
    if not data:
        raise FontParseError(f"{_label(file_name)} is empty.")
    try:
        font = _open(data)
        head = font["head"]
        hhea = font["hhea"]
        cmap = font.getBestCmap() or {}
        glyph_ids = {codepoint: font.getGlyphID(name) for codepoint, name in cmap.items()}
        axes = _weight_axis(font)
        static_weight = 400
        if "OS/2" in font and font["OS/2"].usWeightClass:
            static_weight = int(font["OS/2"].usWeightClass)
        family_name = _family_name(font)
    except _PARSE_ERRORS as exc:
        raise FontParseError(f"Unable to parse {_label(file_name)}: {exc}") from exc

    if not head.unitsPerEm:
        raise FontParseError(f"{_label(file_name)} declares zero units per em.")

    return ParsedFont(
        family_name=family_name,
        units_per_em=int(head.unitsPerEm),
        ascender=int(hhea.ascent),
        descender=int(hhea.descent),
        line_gap=int(hhea.lineGap),
        axes=axes,
        is_variable=axes is not None,
        static_weight=static_weight,
        file_name=file_name,
        glyph_ids=glyph_ids,
        data=bytes(data),
    )


def parse_font_file(path: Path | str) -> ParsedFont:
    """Read and parse a font file from disk."""
    source = Path(path)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise FontParseError(f"Unable to read font file '{source}': {exc}") from exc
    return parse_font_bytes(data, source.name)


def font_mime_type(file_name: str | None) -> str:
    if not file_name:
        return "font/ttf"
    return _MIME_TYPES.get(Path(file_name).suffix.lower(), "font/ttf")


def font_data_url(data: bytes, file_name: str | None = None) -> str:
    """Build a ``data:`` URL usable as an ``@font-face`` source."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{font_mime_type(file_name)};base64,{encoded}"


__all__ = [
    "ParsedFont",
    "font_data_url",
    "font_mime_type",
    "parse_font_bytes",
    "parse_font_file",
    "validate_font_bytes",
]
