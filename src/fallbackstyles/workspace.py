"""Application state and the change events emitted by its transitions.

`Workspace` owns the Styles plus the presentation state that is persisted
alongside them (heading styles, text overrides, visible languages). Every
mutation goes through a method that applies the registry transition and
then notifies subscribers with a `ChangeEvent`. Subscribers such as the
autosaver react to ``save_worthy`` events only.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any

from fallbackstyles import registry
from fallbackstyles.loader import ParsedFont
from fallbackstyles.models import (
    LINE_HEIGHT_AUTO,
    PRIMARY_STYLE_ID,
    FallbackOverride,
    HeadingStyle,
    LineHeight,
    Provenance,
    Style,
    Typeface,
    default_heading_styles,
)


logger = logging.getLogger(__name__)

DEFAULT_LINE_HEIGHT = 1.2


class ChangeKind(str, Enum):
    """Category of a workspace mutation."""

    STYLE = "style"
    REGISTRY = "registry"
    OVERRIDES = "overrides"
    HEADINGS = "headings"
    TEXT = "text"
    VIEW = "view"
    LOAD = "load"
    RESET = "reset"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    kind: ChangeKind
    style_id: str | None = None
    save_worthy: bool = True
    detail: str | None = None


Listener = Callable[[ChangeEvent], None]


class Workspace:
    """Mutable application state with explicit change notification."""

    def __init__(
        self,
        styles: dict[str, Style] | None = None,
        *,
        heading_styles: dict[str, HeadingStyle] | None = None,
        heading_style_map: dict[str, str] | None = None,
        text_overrides: dict[str, str] | None = None,
        visible_language_ids: Iterable[str] | None = None,
        active_style_id: str = PRIMARY_STYLE_ID,
        extras: dict[str, Any] | None = None,
    ) -> None:
        self.styles: dict[str, Style] = styles or {PRIMARY_STYLE_ID: Style()}
        self.heading_styles: dict[str, HeadingStyle] = (
            heading_styles if heading_styles is not None else default_heading_styles()
        )
        self.heading_style_map: dict[str, str] = dict(heading_style_map or {})
        self.text_overrides: dict[str, str] = dict(text_overrides or {})
        self.visible_language_ids: list[str] = list(visible_language_ids or [])
        self.active_style_id = (
            active_style_id if active_style_id in self.styles else next(iter(self.styles))
        )
        # Keys of the persisted document this engine does not interpret.
        self.extras: dict[str, Any] = dict(extras or {})
        self._listeners: list[Listener] = []
        self._saved_line_heights: dict[str, float] = {}

    # Events ------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(
        self,
        kind: ChangeKind,
        style_id: str | None = None,
        *,
        save_worthy: bool = True,
        detail: str | None = None,
    ) -> None:
        event = ChangeEvent(kind, style_id, save_worthy, detail)
        for listener in list(self._listeners):
            listener(event)

    # Lookups -----------------------------------------------------------

    def style(self, style_id: str | None = None) -> Style:
        key = style_id or self.active_style_id
        try:
            return self.styles[key]
        except KeyError:
            raise KeyError(f"Unknown style '{key}'.") from None

    @property
    def active_style(self) -> Style:
        return self.style()

    def style_for_heading(self, tag: str) -> Style:
        style_id = self.heading_style_map.get(tag)
        if style_id and style_id in self.styles:
            return self.styles[style_id]
        return self.styles.get(PRIMARY_STYLE_ID) or self.active_style

    def overridden_language_ids(self, style_id: str | None = None) -> list[str]:
        """Languages that carry any override in a Style, in first-seen order."""
        style = self.style(style_id)
        ordered: dict[str, None] = {}
        for mapping in (
            style.primary_overrides,
            style.fallback_overrides,
            style.scale_overrides,
            style.line_height_overrides,
        ):
            ordered.update(dict.fromkeys(mapping))
        return list(ordered)

    def _key(self, style_id: str | None) -> str:
        return style_id or self.active_style_id

    # Registry ------------------------------------------------------------

    def load_primary(
        self,
        font: ParsedFont,
        url: str | None = None,
        file_name: str | None = None,
        *,
        style_id: str | None = None,
    ) -> Typeface:
        typeface = registry.load_primary(self.style(style_id), font, url, file_name)
        self._emit(ChangeKind.REGISTRY, self._key(style_id), detail="primary")
        return typeface

    def add_fallback(self, typeface: Typeface, *, style_id: str | None = None) -> bool:
        added = registry.add_fallback(self.style(style_id), typeface)
        if added:
            self._emit(ChangeKind.REGISTRY, self._key(style_id), detail=typeface.id)
        return added

    def add_fallbacks(
        self,
        typefaces: Iterable[Typeface],
        *,
        style_id: str | None = None,
    ) -> list[str]:
        added = registry.add_fallbacks(self.style(style_id), typefaces)
        if added:
            self._emit(ChangeKind.REGISTRY, self._key(style_id))
        return added

    def remove_typeface(self, typeface_id: str, *, style_id: str | None = None) -> bool:
        removed = registry.remove_typeface(self.style(style_id), typeface_id)
        if removed:
            self._emit(ChangeKind.REGISTRY, self._key(style_id), detail=typeface_id)
        return removed

    def reorder(self, old_index: int, new_index: int, *, style_id: str | None = None) -> bool:
        moved = registry.reorder(self.style(style_id), old_index, new_index)
        if moved and old_index != new_index:
            self._emit(ChangeKind.REGISTRY, self._key(style_id))
        return moved

    def update_typeface(
        self,
        typeface_id: str,
        *,
        style_id: str | None = None,
        **changes: Any,
    ) -> bool:
        updated = registry.update_typeface(self.style(style_id), typeface_id, **changes)
        if updated:
            self._emit(ChangeKind.REGISTRY, self._key(style_id), detail=typeface_id)
        return updated

    def reset_typeface_overrides(self, typeface_id: str, *, style_id: str | None = None) -> bool:
        reset = registry.reset_typeface_overrides(self.style(style_id), typeface_id)
        if reset:
            self._emit(ChangeKind.REGISTRY, self._key(style_id), detail=typeface_id)
        return reset

    def clone_typeface(
        self,
        typeface_id: str,
        provenance: Provenance = Provenance.CLONE,
        *,
        style_id: str | None = None,
    ) -> Typeface | None:
        clone = registry.clone_typeface(self.style(style_id), typeface_id, provenance)
        if clone is not None:
            self._emit(ChangeKind.REGISTRY, self._key(style_id), detail=clone.id)
        return clone

    # Overrides -----------------------------------------------------------

    def set_fallback_override(
        self,
        language_id: str,
        value: FallbackOverride | str | dict[str, str] | None,
        *,
        style_id: str | None = None,
    ) -> FallbackOverride | None:
        override = registry.set_fallback_override(self.style(style_id), language_id, value)
        self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)
        return override

    def clear_fallback_override(self, language_id: str, *, style_id: str | None = None) -> None:
        registry.clear_fallback_override(self.style(style_id), language_id)
        self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)

    def reset_fallback_overrides(self, *, style_id: str | None = None) -> None:
        registry.reset_fallback_overrides(self.style(style_id))
        self._emit(ChangeKind.OVERRIDES, self._key(style_id))

    def map_language_fallback(
        self,
        language_id: str,
        original_id: str,
        *,
        style_id: str | None = None,
    ) -> Typeface | None:
        clone = registry.map_language_fallback(self.style(style_id), language_id, original_id)
        if clone is not None:
            self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)
        return clone

    def unmap_language_fallback(
        self,
        language_id: str,
        original_id: str,
        *,
        style_id: str | None = None,
    ) -> bool:
        removed = registry.unmap_language_fallback(self.style(style_id), language_id, original_id)
        if removed:
            self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)
        return removed

    def add_language_specific_fallback(
        self,
        language_id: str,
        typeface: Typeface,
        *,
        style_id: str | None = None,
    ) -> bool:
        added = registry.add_language_specific_fallback(
            self.style(style_id), language_id, typeface
        )
        if added:
            self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)
        return added

    def add_language_specific_primary(
        self,
        language_id: str,
        typeface: Typeface | None = None,
        *,
        style_id: str | None = None,
    ) -> Typeface | None:
        result = registry.add_language_specific_primary(
            self.style(style_id), language_id, typeface
        )
        if result is not None:
            self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)
        return result

    def clear_primary_override(self, language_id: str, *, style_id: str | None = None) -> bool:
        cleared = registry.clear_primary_override(self.style(style_id), language_id)
        if cleared:
            self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)
        return cleared

    def set_scale_override(
        self,
        language_id: str,
        scale: float | None,
        *,
        style_id: str | None = None,
    ) -> None:
        registry.set_scale_override(self.style(style_id), language_id, scale)
        self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)

    def reset_scale_overrides(self, *, style_id: str | None = None) -> None:
        registry.reset_scale_overrides(self.style(style_id))
        self._emit(ChangeKind.OVERRIDES, self._key(style_id))

    def set_line_height_override(
        self,
        language_id: str,
        line_height: LineHeight | None,
        *,
        style_id: str | None = None,
    ) -> None:
        registry.set_line_height_override(self.style(style_id), language_id, line_height)
        self._emit(ChangeKind.OVERRIDES, self._key(style_id), detail=language_id)

    def reset_line_height_overrides(self, *, style_id: str | None = None) -> None:
        registry.reset_line_height_overrides(self.style(style_id))
        self._emit(ChangeKind.OVERRIDES, self._key(style_id))

    # Style defaults ------------------------------------------------------

    def set_active_style(self, style_id: str) -> None:
        self.style(style_id)
        self.active_style_id = style_id
        self._emit(ChangeKind.VIEW, style_id)

    def set_font_scales(
        self,
        *,
        active: float | None = None,
        fallback: float | None = None,
        style_id: str | None = None,
    ) -> None:
        scales = self.style(style_id).font_scales
        if active is not None:
            scales.active = float(active)
        if fallback is not None:
            scales.fallback = float(fallback)
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="font_scales")

    def set_line_height(self, value: LineHeight, *, style_id: str | None = None) -> None:
        style = self.style(style_id)
        if value != LINE_HEIGHT_AUTO:
            value = float(value)
        style.line_height = value
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="line_height")

    def toggle_line_height_auto(self, *, style_id: str | None = None) -> LineHeight:
        """Switch between ``auto`` and the last numeric line height."""
        key = self._key(style_id)
        style = self.style(style_id)
        if style.line_height == LINE_HEIGHT_AUTO:
            restored = self._saved_line_heights.pop(key, DEFAULT_LINE_HEIGHT)
            self.set_line_height(restored, style_id=style_id)
        else:
            self._saved_line_heights[key] = float(style.line_height)
            self.set_line_height(LINE_HEIGHT_AUTO, style_id=style_id)
        return style.line_height

    def set_letter_spacing(self, value: float, *, style_id: str | None = None) -> None:
        self.style(style_id).letter_spacing = float(value)
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="letter_spacing")

    def set_weight(self, value: int, *, style_id: str | None = None) -> None:
        self.style(style_id).weight = int(value)
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="weight")

    def set_base_font_size(self, value: float, *, style_id: str | None = None) -> None:
        self.style(style_id).base_font_size = float(value)
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="base_font_size")

    def set_fallback_font(self, family: str, *, style_id: str | None = None) -> None:
        self.style(style_id).fallback_font = family
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="fallback_font")

    def set_fallback_line_height(
        self,
        value: LineHeight | None,
        *,
        style_id: str | None = None,
    ) -> None:
        self.style(style_id).fallback_line_height = value
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="fallback_line_height")

    def set_fallback_letter_spacing(
        self,
        value: float | None,
        *,
        style_id: str | None = None,
    ) -> None:
        self.style(style_id).fallback_letter_spacing = value
        self._emit(ChangeKind.STYLE, self._key(style_id), detail="fallback_letter_spacing")

    # Headings and text -----------------------------------------------------

    def update_heading_style(
        self,
        tag: str,
        *,
        scale: float | None = None,
        line_height: LineHeight | None = None,
    ) -> HeadingStyle:
        heading = self.heading_styles.setdefault(tag, HeadingStyle())
        if scale is not None:
            heading.scale = float(scale)
        if line_height is not None:
            heading.line_height = line_height
        self._emit(ChangeKind.HEADINGS, detail=tag)
        return heading

    def assign_heading_style(self, tag: str, style_id: str) -> None:
        self.style(style_id)
        self.heading_style_map[tag] = style_id
        self._emit(ChangeKind.HEADINGS, style_id, detail=tag)

    def set_text_override(self, language_id: str, text: str, default: str | None = None) -> None:
        """Store a preview text; blank text or the default sample clears it."""
        if not text.strip() or text == default:
            self.reset_text_override(language_id)
            return
        self.text_overrides[language_id] = text
        self._emit(ChangeKind.TEXT, detail=language_id)

    def reset_text_override(self, language_id: str) -> None:
        if self.text_overrides.pop(language_id, None) is not None:
            self._emit(ChangeKind.TEXT, detail=language_id)

    def set_visible_languages(self, language_ids: Iterable[str]) -> None:
        self.visible_language_ids = list(dict.fromkeys(language_ids))
        self._emit(ChangeKind.VIEW)

    # Whole-state operations ------------------------------------------------

    def replace_state(self, other: Workspace) -> None:
        """Adopt the state of ``other`` (an imported document) in place."""
        self.styles = other.styles
        self.heading_styles = other.heading_styles
        self.heading_style_map = other.heading_style_map
        self.text_overrides = other.text_overrides
        self.visible_language_ids = other.visible_language_ids
        self.active_style_id = other.active_style_id
        self.extras = other.extras
        self._saved_line_heights.clear()
        logger.debug("Workspace replaced (%d styles).", len(self.styles))
        self._emit(ChangeKind.LOAD)

    def reset(self) -> None:
        """Return to a fresh state. The event is not save-worthy."""
        self.styles = {PRIMARY_STYLE_ID: Style()}
        self.heading_styles = default_heading_styles()
        self.heading_style_map = {}
        self.text_overrides = {}
        self.visible_language_ids = []
        self.active_style_id = PRIMARY_STYLE_ID
        self.extras = {}
        self._saved_line_heights.clear()
        self._emit(ChangeKind.RESET, save_worthy=False)


__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "Listener",
    "Workspace",
]
