"""Data model shared by the resolver, the stack builder, and the emitter.

Style
: One named bundle of typographic defaults. It owns an ordered registry of
  `Typeface` entries (index 0 is always the primary) plus the per-language
  override maps.

Typeface
: One uploaded binary or named system font. Optional fields override the
  Style defaults once resolved; `None` means "inherit".

FallbackOverride
: Tagged union describing how one language replaces the general cascade:
  `SystemFallbackOverride` (system family only), `DirectOverride` (one
  typeface first) or `PartialOverride` (substitute specific candidates).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Protocol, TypeAlias, runtime_checkable


LINE_HEIGHT_AUTO = "auto"
SYSTEM_TYPEFACE_ID = "system"
LEGACY_OVERRIDE = "legacy"
PRIMARY_STYLE_ID = "primary"
DEFAULT_FALLBACK_FONT = "sans-serif"

LineHeight: TypeAlias = float | Literal["auto"]


class Role(str, Enum):
    """Position-derived role of a typeface inside a registry."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class Provenance(str, Enum):
    """How a typeface entered the registry."""

    GENERAL = "general"
    LANGUAGE_SPECIFIC = "language-specific"
    CLONE = "clone"
    PRIMARY_OVERRIDE = "primary-override"


@runtime_checkable
class FontHandle(Protocol):
    """Minimal surface the engine needs from a parsed font binary."""

    units_per_em: int
    ascender: int
    descender: int

    def char_to_glyph_index(self, char: str) -> int: ...


@dataclass(frozen=True, slots=True)
class WeightAxis:
    """Range of a variable font ``wght`` axis."""

    min: float = 100
    max: float = 900
    default: float = 400
    name: str = "Weight"


@dataclass(slots=True)
class FontScales:
    """Percent scales applied to the primary (active) and fallback typefaces."""

    active: float = 100
    fallback: float = 100


@dataclass(slots=True)
class Typeface:
    """One entry of a Style registry."""

    id: str
    role: Role = Role.FALLBACK
    provenance: Provenance = Provenance.GENERAL
    name: str | None = None
    file_name: str | None = None
    font: FontHandle | None = field(default=None, repr=False, compare=False)
    font_url: str | None = field(default=None, repr=False, compare=False)
    axes: WeightAxis | None = None
    is_variable: bool = False
    static_weight: int = 400
    base_font_size: float | None = None
    scale: float | None = None
    line_height: LineHeight | None = None
    letter_spacing: float | None = None
    weight: int | None = None
    ascent_override: float | None = None
    descent_override: float | None = None
    line_gap_override: float | None = None
    color: str | None = None
    hidden: bool = False
    cloned_from: str | None = None

    def __post_init__(self) -> None:
        if self.role is Role.PRIMARY and self.provenance is Provenance.PRIMARY_OVERRIDE:
            raise ValueError(
                f"Typeface '{self.id}' cannot be the registry primary and a primary override."
            )

    @property
    def is_clone(self) -> bool:
        return self.provenance is Provenance.CLONE

    @property
    def is_lang_specific(self) -> bool:
        return self.provenance is not Provenance.GENERAL

    @property
    def is_primary_override(self) -> bool:
        return self.provenance is Provenance.PRIMARY_OVERRIDE

    @property
    def is_system(self) -> bool:
        """A named typeface known only by its family string."""
        return self.font is None and not self.font_url

    @property
    def label(self) -> str:
        return self.name or self.file_name or self.id


@dataclass(frozen=True, slots=True)
class SystemFallbackOverride:
    """Render the language with the Style's system family only."""


@dataclass(frozen=True, slots=True)
class DirectOverride:
    """Place one typeface first in the language's cascade."""

    typeface_id: str


@dataclass(frozen=True, slots=True)
class PartialOverride:
    """Substitute specific general candidates for one language."""

    substitutions: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> PartialOverride:
        return cls(tuple((str(key), str(value)) for key, value in mapping.items()))

    def as_dict(self) -> dict[str, str]:
        return dict(self.substitutions)

    def originals(self) -> tuple[str, ...]:
        return tuple(original for original, _ in self.substitutions)

    def replacements(self) -> tuple[str, ...]:
        return tuple(replacement for _, replacement in self.substitutions)

    def with_substitution(self, original_id: str, override_id: str) -> PartialOverride:
        items = [(key, value) for key, value in self.substitutions if key != original_id]
        items.append((original_id, override_id))
        return PartialOverride(tuple(items))

    def without(self, original_id: str) -> PartialOverride:
        return PartialOverride(
            tuple((key, value) for key, value in self.substitutions if key != original_id)
        )

    def __bool__(self) -> bool:
        return bool(self.substitutions)


FallbackOverride: TypeAlias = SystemFallbackOverride | DirectOverride | PartialOverride


def coerce_override(value: object) -> FallbackOverride | None:
    """Convert the serialized override shapes into the tagged union.

    ``"legacy"`` selects the system fallback, any other string is a typeface
    id, and a mapping is a partial substitution. ``None``, ``"cascade"``, and
    empty mappings mean "no override".
    """
    if value is None:
        return None
    if isinstance(value, (SystemFallbackOverride, DirectOverride)):
        return value
    if isinstance(value, PartialOverride):
        return value or None
    if isinstance(value, str):
        token = value.strip()
        if not token or token == "cascade":
            return None
        if token == LEGACY_OVERRIDE:
            return SystemFallbackOverride()
        return DirectOverride(token)
    if isinstance(value, Mapping):
        partial = PartialOverride.from_mapping(value)
        return partial or None
    raise TypeError(f"Unsupported fallback override value: {value!r}")


def override_to_plain(value: FallbackOverride) -> str | dict[str, str]:
    """Return the document shape of an override (string or mapping)."""
    match value:
        case SystemFallbackOverride():
            return LEGACY_OVERRIDE
        case DirectOverride(typeface_id=typeface_id):
            return typeface_id
        case PartialOverride():
            return value.as_dict()
    raise TypeError(f"Unsupported fallback override value: {value!r}")


@dataclass(frozen=True, slots=True)
class ResolvedSettings:
    """Effective visual parameters for one typeface within one Style."""

    base_font_size: float
    scale: float
    line_height: LineHeight
    letter_spacing: float
    weight: int
    ascent_override: float | None = None
    descent_override: float | None = None
    line_gap_override: float | None = None

    @property
    def font_size(self) -> float:
        return self.base_font_size * self.scale / 100


@dataclass(slots=True)
class Style:
    """Typographic defaults plus a typeface registry and override maps."""

    id: str = PRIMARY_STYLE_ID
    base_font_size: float = 60
    base_rem: float = 16
    font_scales: FontScales = field(default_factory=FontScales)
    line_height: LineHeight = 1.2
    letter_spacing: float = 0
    weight: int = 400
    fallback_line_height: LineHeight | None = None
    fallback_letter_spacing: float | None = None
    fallback_font: str = DEFAULT_FALLBACK_FONT
    typefaces: list[Typeface] = field(default_factory=list)
    primary_overrides: dict[str, str] = field(default_factory=dict)
    fallback_overrides: dict[str, FallbackOverride] = field(default_factory=dict)
    scale_overrides: dict[str, float] = field(default_factory=dict)
    line_height_overrides: dict[str, LineHeight] = field(default_factory=dict)
    missing_color: str = "#ff0000"
    missing_bg_color: str = "#ffecec"

    def __post_init__(self) -> None:
        if not self.typefaces:
            self.typefaces.append(Typeface(id=PRIMARY_STYLE_ID, role=Role.PRIMARY))

    @property
    def primary(self) -> Typeface:
        return self.typefaces[0]

    def get(self, typeface_id: str | None) -> Typeface | None:
        if typeface_id is None:
            return None
        for typeface in self.typefaces:
            if typeface.id == typeface_id:
                return typeface
        return None

    def index_of(self, typeface_id: str) -> int:
        for index, typeface in enumerate(self.typefaces):
            if typeface.id == typeface_id:
                return index
        return -1

    def ids(self) -> set[str]:
        return {typeface.id for typeface in self.typefaces}

    def fallbacks(self) -> Iterator[Typeface]:
        return (typeface for typeface in self.typefaces if typeface.role is Role.FALLBACK)

    def fallback_override(self, language_id: str) -> FallbackOverride | None:
        return self.fallback_overrides.get(language_id)


@dataclass(slots=True)
class HeadingStyle:
    """Relative size and line height of one heading level."""

    scale: float = 1.0
    line_height: LineHeight = 1.2


DEFAULT_HEADING_STYLES: dict[str, tuple[float, float]] = {
    "h1": (1.0, 1.2),
    "h2": (0.8, 1.2),
    "h3": (0.6, 1.2),
    "h4": (0.5, 1.2),
    "h5": (0.4, 1.2),
    "h6": (0.3, 1.2),
}


def default_heading_styles() -> dict[str, HeadingStyle]:
    return {
        tag: HeadingStyle(scale=scale, line_height=line_height)
        for tag, (scale, line_height) in DEFAULT_HEADING_STYLES.items()
    }


__all__ = [
    "DEFAULT_FALLBACK_FONT",
    "DEFAULT_HEADING_STYLES",
    "LEGACY_OVERRIDE",
    "LINE_HEIGHT_AUTO",
    "PRIMARY_STYLE_ID",
    "SYSTEM_TYPEFACE_ID",
    "DirectOverride",
    "FallbackOverride",
    "FontHandle",
    "FontScales",
    "HeadingStyle",
    "LineHeight",
    "PartialOverride",
    "Provenance",
    "ResolvedSettings",
    "Role",
    "Style",
    "SystemFallbackOverride",
    "Typeface",
    "WeightAxis",
    "coerce_override",
    "default_heading_styles",
    "override_to_plain",
]
