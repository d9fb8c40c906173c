"""Per-language fallback stack construction.

The stack is the ordered list of families a language tries after its
primary typeface. It is a pure function of the Style value: nothing is
cached, so a stale reference left by a half-applied edit only drops the
affected entry instead of breaking the cascade.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

from fallbackstyles.models import (
    SYSTEM_TYPEFACE_ID,
    DirectOverride,
    FallbackOverride,
    PartialOverride,
    ResolvedSettings,
    Role,
    Style,
    SystemFallbackOverride,
    Typeface,
)
from fallbackstyles.resolver import resolve_typeface, system_fallback_settings
from fallbackstyles.utils import (
    fallback_family_name,
    normalize_font_name,
    primary_family_name,
    quote_family,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StackEntry:
    """One family of a language cascade with its resolved settings."""

    family: str
    typeface_id: str
    settings: ResolvedSettings
    typeface: Typeface | None = field(default=None, compare=False, repr=False)

    @property
    def is_system(self) -> bool:
        return self.typeface_id == SYSTEM_TYPEFACE_ID

    @property
    def verifiable(self) -> bool:
        return self.typeface is not None and self.typeface.font is not None


def excluded_ids(style: Style) -> set[str]:
    """Typeface ids claimed by a language-specific override.

    Keys and values of partial overrides, targets of direct overrides, and
    every primary override.
    """
    claimed: set[str] = set()
    for override in style.fallback_overrides.values():
        match override:
            case DirectOverride(typeface_id=typeface_id):
                claimed.add(typeface_id)
            case PartialOverride():
                claimed.update(override.originals())
                claimed.update(override.replacements())
            case SystemFallbackOverride():
                pass
    claimed.update(style.primary_overrides.values())
    return claimed


def _matches_primary(typeface: Typeface, primary: Typeface) -> bool:
    primary_keys = {
        key
        for key in (normalize_font_name(primary.name), normalize_font_name(primary.file_name))
        if key
    }
    if not primary_keys:
        return False
    candidate_keys = {
        normalize_font_name(typeface.name),
        normalize_font_name(typeface.file_name),
    }
    return bool(primary_keys & candidate_keys)


def general_candidates(style: Style) -> list[Typeface]:
    """Fallbacks eligible for every language without a specific claim."""
    primary = style.primary
    claimed = excluded_ids(style)
    return [
        typeface
        for typeface in style.typefaces
        if typeface.role is Role.FALLBACK
        and not typeface.hidden
        and not typeface.is_lang_specific
        and typeface.id != primary.id
        and typeface.id not in claimed
        and not _matches_primary(typeface, primary)
    ]


def _entry(style: Style, typeface: Typeface) -> StackEntry | None:
    if not (typeface.font_url or typeface.name):
        return None
    return StackEntry(
        family=quote_family(fallback_family_name(style.id, typeface.id)),
        typeface_id=typeface.id,
        settings=resolve_typeface(style, typeface),
        typeface=typeface,
    )


def _system_entry(style: Style) -> StackEntry:
    return StackEntry(
        family=style.fallback_font,
        typeface_id=SYSTEM_TYPEFACE_ID,
        settings=system_fallback_settings(style),
    )


def _append_system(style: Style, stack: list[StackEntry]) -> None:
    if not style.fallback_font:
        return
    if any(entry.family == style.fallback_font for entry in stack):
        return
    stack.append(_system_entry(style))


def _extend(style: Style, stack: list[StackEntry], typefaces: Iterable[Typeface]) -> None:
    placed = {entry.typeface_id for entry in stack}
    for typeface in typefaces:
        if typeface.id in placed:
            continue
        entry = _entry(style, typeface)
        if entry is not None:
            stack.append(entry)
            placed.add(typeface.id)


def _direct_stack(style: Style, typeface_id: str) -> list[StackEntry]:
    stack: list[StackEntry] = []
    target = style.get(typeface_id)
    if target is None:
        logger.debug("Fallback override references unknown typeface '%s'.", typeface_id)
    elif not target.hidden:
        if target.is_system and target.name:
            return [
                StackEntry(
                    family=target.name,
                    typeface_id=target.id,
                    settings=resolve_typeface(style, target),
                    typeface=target,
                )
            ]
        entry = _entry(style, target)
        if entry is not None:
            stack.append(entry)
    _extend(style, stack, general_candidates(style))
    _append_system(style, stack)
    return stack


def _partial_stack(style: Style, override: PartialOverride) -> list[StackEntry]:
    stack: list[StackEntry] = []
    for replacement_id in override.replacements():
        typeface = style.get(replacement_id)
        if typeface is None:
            logger.debug("Partial override references unknown typeface '%s'.", replacement_id)
            continue
        if typeface.hidden:
            continue
        _extend(style, stack, [typeface])
    substituted = set(override.originals())
    _extend(
        style,
        stack,
        (typeface for typeface in general_candidates(style) if typeface.id not in substituted),
    )
    _append_system(style, stack)
    return stack


def build_stack(style: Style, language_id: str | None = None) -> list[StackEntry]:
    """Return the ordered fallback cascade for a language."""
    override: FallbackOverride | None = (
        style.fallback_override(language_id) if language_id is not None else None
    )
    match override:
        case SystemFallbackOverride():
            return [_system_entry(style)]
        case DirectOverride(typeface_id=typeface_id):
            return _direct_stack(style, typeface_id)
        case PartialOverride():
            return _partial_stack(style, override)
        case None:
            stack: list[StackEntry] = []
            _extend(style, stack, general_candidates(style))
            _append_system(style, stack)
            return stack
    raise TypeError(f"Unsupported fallback override: {override!r}")


def primary_for_language(style: Style, language_id: str | None = None) -> Typeface:
    """Return the typeface standing in as primary for a language."""
    if language_id is not None:
        override_id = style.primary_overrides.get(language_id)
        typeface = style.get(override_id)
        if typeface is not None:
            return typeface
    return style.primary


def primary_family(style: Style, language_id: str | None = None) -> str | None:
    """Family reference of the language's primary, when one can be emitted."""
    typeface = primary_for_language(style, language_id)
    if typeface.role is Role.PRIMARY:
        if typeface.font_url:
            return quote_family(primary_family_name(style.id))
        if typeface.name:
            return quote_family(fallback_family_name(style.id, typeface.id))
        return None
    entry = _entry(style, typeface)
    return entry.family if entry is not None else None


def family_list(style: Style, language_id: str | None = None) -> list[str]:
    """Complete ``font-family`` value for a language, primary first."""
    families: list[str] = []
    head = primary_family(style, language_id)
    if head:
        families.append(head)
    for entry in build_stack(style, language_id):
        if entry.family not in families:
            families.append(entry.family)
    return families


__all__ = [
    "StackEntry",
    "build_stack",
    "excluded_ids",
    "family_list",
    "general_candidates",
    "primary_family",
    "primary_for_language",
]
