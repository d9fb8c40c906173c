"""Shared helpers for typeface naming and CSS value formatting."""

from __future__ import annotations

from pathlib import PurePath


_WEIGHT_SUFFIXES = (
    "regular",
    "bold",
    "italic",
    "medium",
    "light",
    "thin",
    "black",
    "semibold",
    "extrabold",
    "extralight",
)


def normalize_font_name(name: str | None) -> str:
    """Return a comparison key for a family or file name.

    ``"Inter-Regular.ttf"``, ``"inter regular"`` and ``"Inter"`` all map to
    ``"inter"`` so that the same font uploaded twice is recognised.
    """
    if not name:
        return ""
    value = name.strip().lower()
    suffix = PurePath(value).suffix
    if suffix and len(suffix) <= 6 and value.rfind(".") > 0:
        value = value[: -len(suffix)]
    for token in _WEIGHT_SUFFIXES:
        for separator in ("-", " ", "_"):
            ending = f"{separator}{token}"
            if value.endswith(ending):
                value = value[: -len(ending)]
    return value.replace("-", " ").replace("_", " ").strip()


def strip_extension(file_name: str) -> str:
    """Drop the extension of a font file name."""
    return PurePath(file_name).stem if "." in file_name else file_name


def primary_family_name(style_id: str) -> str:
    return f"UploadedFont-{style_id}"


def fallback_family_name(style_id: str, typeface_id: str) -> str:
    return f"FallbackFont-{style_id}-{typeface_id}"


def quote_family(name: str) -> str:
    """Quote a family name for use in a CSS declaration."""
    escaped = name.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def format_number(value: float) -> str:
    """Format a CSS number without float noise (``90.00000000000001`` -> ``90``)."""
    rounded = round(float(value), 4)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


def format_percent(ratio: float) -> str:
    """Format a units-per-em ratio as a CSS percentage."""
    return f"{format_number(ratio * 100)}%"


__all__ = [
    "fallback_family_name",
    "format_number",
    "format_percent",
    "normalize_font_name",
    "primary_family_name",
    "quote_family",
    "strip_extension",
]
