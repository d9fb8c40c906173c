"""Effective-settings resolution for typefaces inside a Style.

Each field is resolved independently. The registry primary always renders
at 100% and reads the Style's global values. Fallbacks (clones and primary
overrides included) inherit the *fallback* scale bucket; ordinary fallbacks
read the fallback-only line height and letter spacing when the Style defines
them, while primary overrides read the global values so they feel like the
primary font for their language.
"""

from __future__ import annotations

from dataclasses import dataclass

from fallbackstyles.models import (
    LineHeight,
    ResolvedSettings,
    Role,
    Style,
    Typeface,
)


COMMON_WEIGHTS: tuple[tuple[str, int], ...] = (
    ("Thin", 100),
    ("Extra Light", 200),
    ("Light", 300),
    ("Regular", 400),
    ("Medium", 500),
    ("Semi Bold", 600),
    ("Bold", 700),
    ("Extra Bold", 800),
    ("Black", 900),
)


@dataclass(frozen=True, slots=True)
class WeightOption:
    label: str
    value: int


def _is_set(value: object) -> bool:
    return value is not None and value != ""


def resolve_weight(typeface: Typeface, requested: int) -> int:
    """Clamp a requested weight to what the typeface can render.

    Named typefaces cannot be inspected and keep the request. Variable fonts
    clamp to their ``wght`` axis; static fonts render their single weight.
    """
    if typeface.font is None:
        return requested
    axis = typeface.axes
    if axis is not None:
        clamped = max(axis.min, min(axis.max, requested))
        return int(round(clamped))
    return typeface.static_weight


def _weight_available(typeface: Typeface, weight: int) -> bool:
    if typeface.font is None:
        return True
    if typeface.axes is not None:
        return typeface.axes.min <= weight <= typeface.axes.max
    return weight == typeface.static_weight


def weight_options(typeface: Typeface) -> list[WeightOption]:
    """List the common weights a typeface can render, for weight pickers."""
    options = [
        WeightOption(f"{label} {value}", value)
        for label, value in COMMON_WEIGHTS
        if _weight_available(typeface, value)
    ]
    if typeface.font is None:
        return options
    axis = typeface.axes
    if axis is not None and not options:
        default = int(round(axis.default))
        return [WeightOption(f"Default {default}", default)]
    if axis is None and not any(option.value == typeface.static_weight for option in options):
        return [WeightOption(f"Weight {typeface.static_weight}", typeface.static_weight)]
    return options


def snap_weight(typeface: Typeface, requested: int | None) -> int:
    """Snap a weight to the nearest available option (ties keep the lighter)."""
    target = requested if requested is not None else 400
    options = weight_options(typeface)
    if not options:
        return target
    if any(option.value == target for option in options):
        return target
    best = options[0].value
    for option in options[1:]:
        if abs(option.value - target) < abs(best - target):
            best = option.value
    return best


def _line_height_default(style: Style, typeface: Typeface) -> LineHeight:
    if typeface.is_primary_override:
        return style.line_height
    if _is_set(style.fallback_line_height):
        return style.fallback_line_height  # type: ignore[return-value]
    return style.line_height


def _letter_spacing_default(style: Style, typeface: Typeface) -> float:
    if typeface.is_primary_override:
        return style.letter_spacing
    if _is_set(style.fallback_letter_spacing):
        return style.fallback_letter_spacing  # type: ignore[return-value]
    return style.letter_spacing


def resolve_typeface(style: Style, typeface: Typeface) -> ResolvedSettings:
    """Resolve an already located typeface."""
    if typeface.role is Role.PRIMARY:
        return ResolvedSettings(
            base_font_size=style.base_font_size,
            scale=100,
            line_height=style.line_height,
            letter_spacing=style.letter_spacing,
            weight=resolve_weight(typeface, style.weight),
            ascent_override=typeface.ascent_override,
            descent_override=typeface.descent_override,
            line_gap_override=typeface.line_gap_override,
        )

    requested_weight = typeface.weight if _is_set(typeface.weight) else style.weight
    return ResolvedSettings(
        base_font_size=(
            typeface.base_font_size
            if _is_set(typeface.base_font_size)
            else style.base_font_size
        ),
        scale=typeface.scale if _is_set(typeface.scale) else style.font_scales.fallback,
        line_height=(
            typeface.line_height
            if _is_set(typeface.line_height)
            else _line_height_default(style, typeface)
        ),
        letter_spacing=(
            typeface.letter_spacing
            if _is_set(typeface.letter_spacing)
            else _letter_spacing_default(style, typeface)
        ),
        weight=resolve_weight(typeface, int(requested_weight)),
        ascent_override=typeface.ascent_override,
        descent_override=typeface.descent_override,
        line_gap_override=typeface.line_gap_override,
    )


def resolve(style: Style, typeface_id: str) -> ResolvedSettings | None:
    """Return the effective settings of a typeface, or ``None`` when unknown."""
    typeface = style.get(typeface_id)
    if typeface is None:
        return None
    return resolve_typeface(style, typeface)


def system_fallback_settings(style: Style) -> ResolvedSettings:
    """Settings applied to the Style's terminal system family."""
    line_height = (
        style.fallback_line_height if _is_set(style.fallback_line_height) else style.line_height
    )
    letter_spacing = (
        style.fallback_letter_spacing
        if _is_set(style.fallback_letter_spacing)
        else style.letter_spacing
    )
    return ResolvedSettings(
        base_font_size=style.base_font_size,
        scale=style.font_scales.fallback,
        line_height=line_height,  # type: ignore[arg-type]
        letter_spacing=letter_spacing,  # type: ignore[arg-type]
        weight=style.weight,
    )


__all__ = [
    "COMMON_WEIGHTS",
    "WeightOption",
    "resolve",
    "resolve_typeface",
    "resolve_weight",
    "snap_weight",
    "system_fallback_settings",
    "weight_options",
]
