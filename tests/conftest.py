from __future__ import annotations

from collections.abc import Callable, Iterable
import io

from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
import pytest

from fallbackstyles.loader import ParsedFont, parse_font_bytes


FontFactory = Callable[..., bytes]


def _rect_glyph():
    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((500, 0))
    pen.lineTo((500, 700))
    pen.lineTo((100, 700))
    pen.closePath()
    return pen.glyph()


def _glyph_name(codepoint: int) -> str:
    return f"uni{codepoint:04X}" if codepoint <= 0xFFFF else f"u{codepoint:05X}"


def build_font_bytes(
    chars: Iterable[str] | str = "",
    *,
    family: str = "Test Sans",
    weight: int = 400,
    variable: bool = False,
    axis: tuple[float, float, float] = (100.0, 400.0, 900.0),
) -> bytes:
    """Build a minimal TrueType binary mapping ``chars`` to box glyphs."""
    codepoints = sorted({ord(char) for char in chars})
    glyph_order = [".notdef", *(_glyph_name(codepoint) for codepoint in codepoints)]

    builder = FontBuilder(1000, isTTF=True)
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap({codepoint: _glyph_name(codepoint) for codepoint in codepoints})
    builder.setupGlyf({name: _rect_glyph() for name in glyph_order})
    builder.setupMaxp()
    builder.setupHorizontalMetrics({name: (600, 100) for name in glyph_order})
    builder.setupHorizontalHeader(ascent=800, descent=-200)
    builder.setupOS2(
        sTypoAscender=800,
        sTypoDescender=-200,
        usWinAscent=800,
        usWinDescent=200,
        usWeightClass=weight,
    )
    builder.setupNameTable({"familyName": family, "styleName": "Regular"})
    builder.setupPost()
    if variable:
        minimum, default, maximum = axis
        builder.setupFvar(
            axes=[("wght", minimum, default, maximum, "Weight")],
            instances=[],
        )

    buffer = io.BytesIO()
    builder.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def font_bytes() -> FontFactory:
    return build_font_bytes


@pytest.fixture
def make_font() -> Callable[..., ParsedFont]:
    def factory(
        chars: Iterable[str] | str = "",
        *,
        file_name: str | None = None,
        **options: object,
    ) -> ParsedFont:
        family = str(options.get("family", "Test Sans"))
        name = file_name or f"{family.replace(' ', '')}.ttf"
        return parse_font_bytes(build_font_bytes(chars, **options), name)  # type: ignore[arg-type]

    return factory
