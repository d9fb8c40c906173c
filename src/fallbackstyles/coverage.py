"""Per-character glyph coverage over a primary typeface and its fallback stack."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import logging
import math
from typing import TYPE_CHECKING

from fallbackstyles.models import FontHandle, Style, Typeface
from fallbackstyles.resolver import resolve_typeface
from fallbackstyles.stack import StackEntry, build_stack, primary_for_language


if TYPE_CHECKING:
    from fallbackstyles.languages import Language


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GlyphChoice:
    """Typeface selected to render one character."""

    char: str
    typeface_id: str
    entry: StackEntry | None = field(default=None, compare=False, repr=False)
    is_missing_from_primary: bool = False
    verified: bool = True


@dataclass(frozen=True, slots=True)
class RenderedGlyph:
    """A glyph choice together with the relative size used by the preview."""

    choice: GlyphChoice
    relative_size: float = 1.0
    line_height: float | str | None = None
    weight: int | None = None


@dataclass(frozen=True, slots=True)
class CoverageReport:
    total: int
    missing: int
    missing_chars: tuple[str, ...] = ()
    percent: int | None = None

    @property
    def verifiable(self) -> bool:
        return self.percent is not None

    @property
    def complete(self) -> bool:
        return self.missing == 0

    def describe(self) -> str:
        if self.percent is None:
            return "unknown"
        return f"{self.percent}%"


def _has_glyph(handle: FontHandle, char: str) -> bool:
    try:
        return handle.char_to_glyph_index(char) != 0
    except (KeyError, ValueError, TypeError) as exc:
        logger.debug("Glyph lookup failed for %r: %s", char, exc)
        return False


def render_char(char: str, primary: Typeface, stack: Sequence[StackEntry]) -> GlyphChoice:
    """Choose the typeface that renders ``char``.

    The primary wins when its handle maps the character, or when it has no
    handle and cannot be checked. Otherwise the first stack entry that maps
    the character (or cannot be checked) is used. When nothing matches, the
    last entry is forced and the choice is marked unverified.
    """
    if primary.font is None or _has_glyph(primary.font, char):
        return GlyphChoice(char, primary.id, verified=primary.font is not None)

    for entry in stack:
        handle = entry.typeface.font if entry.typeface is not None else None
        if handle is None:
            return GlyphChoice(
                char,
                entry.typeface_id,
                entry,
                is_missing_from_primary=True,
                verified=False,
            )
        if _has_glyph(handle, char):
            return GlyphChoice(char, entry.typeface_id, entry, is_missing_from_primary=True)

    if not stack:
        return GlyphChoice(char, primary.id, is_missing_from_primary=True, verified=False)
    last = stack[-1]
    return GlyphChoice(
        char, last.typeface_id, last, is_missing_from_primary=True, verified=False
    )


def _checked_chars(text: str) -> list[str]:
    return [char for char in text if not char.isspace()]


def measure_coverage(text: str, primary: Typeface, stack: Sequence[StackEntry]) -> CoverageReport:
    """Count the characters no parsed typeface can draw.

    Whitespace is ignored. Entries without a parsed handle never count as
    covering, and the percentage is ``None`` when nothing can be verified.
    """
    chars = _checked_chars(text)
    verifiable = primary.font is not None or any(entry.verifiable for entry in stack)
    if primary.font is None:
        # An unparsed primary is assumed to draw everything.
        missing_chars: list[str] = []
    else:
        handles = [entry.typeface.font for entry in stack if entry.verifiable]
        missing_chars = [
            char
            for char in chars
            if not _has_glyph(primary.font, char)
            and not any(_has_glyph(handle, char) for handle in handles)  # type: ignore[arg-type]
        ]

    total = len(chars)
    missing = len(missing_chars)
    percent: int | None = None
    if verifiable:
        # Halves round up.
        percent = math.floor((total - missing) * 100 / total + 0.5) if total else 100
    return CoverageReport(
        total=total,
        missing=missing,
        missing_chars=tuple(dict.fromkeys(missing_chars)),
        percent=percent,
    )


def render_text(
    style: Style,
    text: str,
    language_id: str | None = None,
) -> list[RenderedGlyph]:
    """Resolve every character of ``text`` for a language preview.

    Fallback glyphs carry their em size relative to the primary, including
    the language's scale override.
    """
    primary = primary_for_language(style, language_id)
    stack = build_stack(style, language_id)
    primary_settings = resolve_typeface(style, primary)
    primary_size = primary_settings.font_size or 1
    multiplier = 100.0
    if language_id is not None:
        multiplier = style.scale_overrides.get(language_id) or 100.0

    rendered: list[RenderedGlyph] = []
    for char in text:
        choice = render_char(char, primary, stack)
        if choice.entry is None:
            rendered.append(
                RenderedGlyph(
                    choice,
                    line_height=primary_settings.line_height,
                    weight=primary_settings.weight,
                )
            )
            continue
        settings = choice.entry.settings
        rendered.append(
            RenderedGlyph(
                choice,
                relative_size=settings.font_size / primary_size * multiplier / 100,
                line_height=settings.line_height,
                weight=settings.weight,
            )
        )
    return rendered


def language_coverage(
    style: Style,
    language: Language,
    text: str | None = None,
) -> CoverageReport:
    """Coverage of a catalog language (or of a text override) for one Style."""
    sample = text if text is not None else language.coverage_text
    return measure_coverage(
        sample,
        primary_for_language(style, language.id),
        build_stack(style, language.id),
    )


def coverage_by_language(
    style: Style,
    languages: Iterable[Language],
    text_overrides: dict[str, str] | None = None,
) -> dict[str, CoverageReport]:
    overrides = text_overrides or {}
    return {
        language.id: language_coverage(style, language, overrides.get(language.id))
        for language in languages
    }


__all__ = [
    "CoverageReport",
    "GlyphChoice",
    "RenderedGlyph",
    "coverage_by_language",
    "language_coverage",
    "measure_coverage",
    "render_char",
    "render_text",
]
