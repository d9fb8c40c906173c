"""State transitions over a Style's typeface registry and override maps.

Every function mutates the Style in place and re-establishes the registry
invariant: the entry at index 0 has the primary role, every other entry is
a fallback. Functions that can be refused (duplicates, unknown ids) return
``False`` or ``None`` instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterable
import dataclasses
import logging
from typing import Any
import uuid

from fallbackstyles.loader import ParsedFont, font_data_url
from fallbackstyles.models import (
    DirectOverride,
    FallbackOverride,
    LineHeight,
    PartialOverride,
    Provenance,
    Role,
    Style,
    SystemFallbackOverride,
    Typeface,
    coerce_override,
)
from fallbackstyles.utils import normalize_font_name, strip_extension


logger = logging.getLogger(__name__)

OVERRIDE_FIELDS: tuple[str, ...] = (
    "base_font_size",
    "scale",
    "line_height",
    "letter_spacing",
    "weight",
    "ascent_override",
    "descent_override",
    "line_gap_override",
)

_PROTECTED_FIELDS = frozenset({"id", "role", "provenance", "cloned_from"})


def new_typeface_id(prefix: str = "font") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def typeface_from_font(
    font: ParsedFont,
    url: str | None = None,
    *,
    typeface_id: str | None = None,
    provenance: Provenance = Provenance.GENERAL,
) -> Typeface:
    """Build a fallback typeface around a parsed binary."""
    file_name = font.file_name
    return Typeface(
        id=typeface_id or new_typeface_id(),
        provenance=provenance,
        name=font.family_name or (strip_extension(file_name) if file_name else None),
        file_name=file_name,
        font=font,
        font_url=url or font_data_url(font.data, file_name),
        axes=font.axes,
        is_variable=font.is_variable,
        static_weight=font.static_weight,
    )


def system_typeface(name: str, typeface_id: str | None = None) -> Typeface:
    """Build a typeface known only by its family name."""
    return Typeface(id=typeface_id or new_typeface_id("system"), name=name)


def _sync_roles(style: Style) -> None:
    for index, typeface in enumerate(style.typefaces):
        if index == 0:
            if typeface.provenance is not Provenance.GENERAL:
                typeface.provenance = Provenance.GENERAL
                typeface.cloned_from = None
            typeface.role = Role.PRIMARY
        else:
            typeface.role = Role.FALLBACK


def _name_keys(typeface: Typeface) -> set[str]:
    return {
        key
        for key in (normalize_font_name(typeface.name), normalize_font_name(typeface.file_name))
        if key
    }


def load_primary(
    style: Style,
    font: ParsedFont,
    url: str | None = None,
    file_name: str | None = None,
) -> Typeface:
    """Attach a parsed binary to the registry primary."""
    primary = style.primary
    file_name = file_name or font.file_name
    primary.font = font
    primary.font_url = url or font_data_url(font.data, file_name)
    primary.file_name = file_name
    primary.name = font.family_name or (strip_extension(file_name) if file_name else None)
    primary.axes = font.axes
    primary.is_variable = font.is_variable
    primary.static_weight = font.static_weight
    return primary


def is_duplicate(style: Style, typeface: Typeface) -> bool:
    """Whether ``typeface`` repeats the primary or an existing general fallback."""
    if style.get(typeface.id) is not None:
        return True
    keys = _name_keys(typeface)
    if not keys:
        return False
    if keys & _name_keys(style.primary):
        return True
    if typeface.provenance is not Provenance.GENERAL:
        return False
    return any(
        keys & _name_keys(existing)
        for existing in style.fallbacks()
        if existing.provenance is Provenance.GENERAL
    )


def add_fallback(style: Style, typeface: Typeface) -> bool:
    """Append a fallback unless it duplicates an existing entry."""
    if is_duplicate(style, typeface):
        logger.info("Skipping duplicate typeface '%s'.", typeface.label)
        return False
    typeface.role = Role.FALLBACK
    style.typefaces.append(typeface)
    _sync_roles(style)
    return True


def add_fallbacks(style: Style, typefaces: Iterable[Typeface]) -> list[str]:
    return [typeface.id for typeface in typefaces if add_fallback(style, typeface)]


def _drop_references(style: Style, typeface_id: str) -> list[str]:
    """Remove overrides naming ``typeface_id``; return clones left unreachable."""
    orphaned: list[str] = []
    for language_id, target in list(style.primary_overrides.items()):
        if target == typeface_id:
            del style.primary_overrides[language_id]

    for language_id, override in list(style.fallback_overrides.items()):
        match override:
            case DirectOverride(typeface_id=target) if target == typeface_id:
                del style.fallback_overrides[language_id]
            case PartialOverride():
                kept: list[tuple[str, str]] = []
                for original, replacement in override.substitutions:
                    if replacement == typeface_id:
                        continue
                    if original == typeface_id:
                        orphaned.append(replacement)
                        continue
                    kept.append((original, replacement))
                if kept:
                    style.fallback_overrides[language_id] = PartialOverride(tuple(kept))
                else:
                    del style.fallback_overrides[language_id]
            case _:
                pass
    return orphaned


def remove_typeface(style: Style, typeface_id: str) -> bool:
    """Remove a typeface and every override that references it.

    The last remaining entry cannot be removed. Removing the primary
    promotes the next entry. Clones substituted for the removed typeface
    are removed with it.
    """
    index = style.index_of(typeface_id)
    if index < 0:
        return False
    if len(style.typefaces) == 1:
        logger.debug("Refusing to remove the only typeface of style '%s'.", style.id)
        return False
    del style.typefaces[index]
    orphaned = _drop_references(style, typeface_id)
    for clone_id in orphaned:
        clone = style.get(clone_id)
        if clone is not None and clone.is_clone:
            style.typefaces.remove(clone)
            _drop_references(style, clone_id)
    _sync_roles(style)
    return True


def reorder(style: Style, old_index: int, new_index: int) -> bool:
    """Move a registry entry; index 0 becomes the primary."""
    count = len(style.typefaces)
    if not (0 <= old_index < count and 0 <= new_index < count):
        return False
    if old_index == new_index:
        return True
    typeface = style.typefaces.pop(old_index)
    style.typefaces.insert(new_index, typeface)
    _sync_roles(style)
    return True


def update_typeface(style: Style, typeface_id: str, **changes: Any) -> bool:
    """Set optional fields of a typeface; ``None`` restores inheritance."""
    typeface = style.get(typeface_id)
    if typeface is None:
        return False
    known = {item.name for item in dataclasses.fields(Typeface)}
    for name, value in changes.items():
        if name not in known or name in _PROTECTED_FIELDS:
            raise TypeError(f"Typeface field '{name}' cannot be updated.")
        if value == "":
            value = None
        setattr(typeface, name, value)
    return True


def reset_typeface_overrides(style: Style, typeface_id: str) -> bool:
    typeface = style.get(typeface_id)
    if typeface is None:
        return False
    for name in OVERRIDE_FIELDS:
        setattr(typeface, name, None)
    return True


def clone_typeface(
    style: Style,
    typeface_id: str,
    provenance: Provenance = Provenance.CLONE,
    *,
    clone_id: str | None = None,
) -> Typeface | None:
    """Duplicate a typeface with a fresh id; the parsed handle is shared."""
    source = style.get(typeface_id)
    if source is None:
        return None
    clone = dataclasses.replace(
        source,
        id=clone_id or new_typeface_id(provenance.value),
        role=Role.FALLBACK,
        provenance=provenance,
        cloned_from=source.id,
        hidden=False,
    )
    style.typefaces.append(clone)
    _sync_roles(style)
    return clone


def set_fallback_override(
    style: Style,
    language_id: str,
    value: FallbackOverride | str | dict[str, str] | None,
) -> FallbackOverride | None:
    """Record how ``language_id`` replaces the general cascade.

    ``"legacy"`` selects the system family, a string selects one typeface,
    a mapping substitutes specific candidates. ``None`` clears the entry.
    """
    override = coerce_override(value)
    if override is None:
        style.fallback_overrides.pop(language_id, None)
        return None
    match override:
        case DirectOverride(typeface_id=target) if style.get(target) is None:
            logger.debug("Fallback override for '%s' targets unknown '%s'.", language_id, target)
        case _:
            pass
    style.fallback_overrides[language_id] = override
    return override


def clear_fallback_override(style: Style, language_id: str) -> None:
    style.fallback_overrides.pop(language_id, None)


def _remove_unreferenced_clones(style: Style) -> None:
    referenced = set(style.primary_overrides.values())
    for override in style.fallback_overrides.values():
        match override:
            case DirectOverride(typeface_id=target):
                referenced.add(target)
            case PartialOverride():
                referenced.update(override.replacements())
            case SystemFallbackOverride():
                pass
    style.typefaces[:] = [
        typeface
        for index, typeface in enumerate(style.typefaces)
        if index == 0
        or typeface.provenance is not Provenance.CLONE
        or typeface.id in referenced
    ]


def reset_fallback_overrides(style: Style) -> None:
    """Drop every fallback override together with the clones they used."""
    style.fallback_overrides.clear()
    _remove_unreferenced_clones(style)
    _sync_roles(style)


def map_language_fallback(
    style: Style,
    language_id: str,
    original_id: str,
) -> Typeface | None:
    """Give ``language_id`` its own copy of a general fallback.

    The copy replaces the original for this language only, so its settings
    can change without touching other languages.
    """
    original = style.get(original_id)
    if original is None or original.role is Role.PRIMARY:
        return None
    existing = style.fallback_override(language_id)
    partial = existing if isinstance(existing, PartialOverride) else PartialOverride()
    previous = partial.as_dict().get(original_id)
    if previous is not None and style.get(previous) is not None:
        return style.get(previous)
    clone = clone_typeface(style, original_id, Provenance.CLONE)
    if clone is None:
        return None
    style.fallback_overrides[language_id] = partial.with_substitution(original_id, clone.id)
    return clone


def unmap_language_fallback(style: Style, language_id: str, original_id: str) -> bool:
    """Undo :func:`map_language_fallback` and delete the copy."""
    existing = style.fallback_override(language_id)
    if not isinstance(existing, PartialOverride):
        return False
    clone_id = existing.as_dict().get(original_id)
    if clone_id is None:
        return False
    remaining = existing.without(original_id)
    if remaining:
        style.fallback_overrides[language_id] = remaining
    else:
        del style.fallback_overrides[language_id]
    clone = style.get(clone_id)
    if clone is not None and clone.is_clone:
        style.typefaces.remove(clone)
        _sync_roles(style)
    return True


def add_language_specific_fallback(
    style: Style,
    language_id: str,
    typeface: Typeface,
) -> bool:
    """Admit a typeface for one language and place it first in its cascade.

    A refused typeface keeps its previous provenance.
    """
    previous = typeface.provenance
    typeface.provenance = Provenance.LANGUAGE_SPECIFIC
    if not add_fallback(style, typeface):
        typeface.provenance = previous
        return False
    style.fallback_overrides[language_id] = DirectOverride(typeface.id)
    return True


def add_language_specific_primary(
    style: Style,
    language_id: str,
    typeface: Typeface | None = None,
) -> Typeface | None:
    """Map a primary override for ``language_id``.

    Without ``typeface`` the registry primary is cloned so the language can
    tune its own copy. A refused typeface (id already registered) leaves the
    existing mapping untouched.
    """
    if typeface is None:
        clone = clone_typeface(style, style.primary.id, Provenance.PRIMARY_OVERRIDE)
        if clone is None:
            return None
        clear_primary_override(style, language_id)
        style.primary_overrides[language_id] = clone.id
        return clone
    if style.get(typeface.id) is not None:
        return None
    clear_primary_override(style, language_id)
    typeface.provenance = Provenance.PRIMARY_OVERRIDE
    typeface.role = Role.FALLBACK
    style.typefaces.append(typeface)
    _sync_roles(style)
    style.primary_overrides[language_id] = typeface.id
    return typeface


def clear_primary_override(style: Style, language_id: str) -> bool:
    typeface_id = style.primary_overrides.pop(language_id, None)
    if typeface_id is None:
        return False
    typeface = style.get(typeface_id)
    still_used = typeface_id in style.primary_overrides.values()
    if typeface is not None and typeface.is_primary_override and not still_used:
        style.typefaces.remove(typeface)
        _sync_roles(style)
    return True


def set_scale_override(style: Style, language_id: str, scale: float | None) -> None:
    if scale is None or scale == "":
        style.scale_overrides.pop(language_id, None)
        return
    style.scale_overrides[language_id] = float(scale)


def reset_scale_overrides(style: Style) -> None:
    style.scale_overrides.clear()


def set_line_height_override(
    style: Style,
    language_id: str,
    line_height: LineHeight | None,
) -> None:
    if line_height is None or line_height == "":
        style.line_height_overrides.pop(language_id, None)
        return
    style.line_height_overrides[language_id] = line_height


def reset_line_height_overrides(style: Style) -> None:
    style.line_height_overrides.clear()


__all__ = [
    "OVERRIDE_FIELDS",
    "add_fallback",
    "add_fallbacks",
    "add_language_specific_fallback",
    "add_language_specific_primary",
    "clear_fallback_override",
    "clear_primary_override",
    "clone_typeface",
    "is_duplicate",
    "load_primary",
    "map_language_fallback",
    "new_typeface_id",
    "remove_typeface",
    "reorder",
    "reset_fallback_overrides",
    "reset_line_height_overrides",
    "reset_scale_overrides",
    "reset_typeface_overrides",
    "set_fallback_override",
    "set_line_height_override",
    "set_scale_override",
    "system_typeface",
    "typeface_from_font",
    "unmap_language_fallback",
    "update_typeface",
]
