"""Stylesheet emission.

Every typeface gets its own ``@font-face`` family derived from the Style id
and the typeface id, so the browser can never merge two entries or run its
own fallback matching between them. Per-language rules then list exactly
the families chosen by the stack builder.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import logging
from typing import TYPE_CHECKING

from fallbackstyles.models import LINE_HEIGHT_AUTO, LineHeight, Style, Typeface
from fallbackstyles.resolver import resolve_typeface
from fallbackstyles.stack import family_list
from fallbackstyles.utils import (
    fallback_family_name,
    format_number,
    format_percent,
    primary_family_name,
    quote_family,
)


if TYPE_CHECKING:
    from fallbackstyles.workspace import Workspace


logger = logging.getLogger(__name__)

_INDENT = "  "


def css_line_height(value: LineHeight | None) -> str:
    """Render a line height, mapping ``auto`` to ``normal``."""
    if value is None or value == LINE_HEIGHT_AUTO:
        return "normal"
    return format_number(float(value))


def _block(selector: str, declarations: Sequence[str]) -> str:
    body = "\n".join(f"{_INDENT}{declaration}" for declaration in declarations)
    return f"{selector} {{\n{body}\n}}"


def _metric_declarations(
    ascent: float | None,
    descent: float | None,
    line_gap: float | None,
) -> list[str]:
    declarations: list[str] = []
    if line_gap is not None:
        declarations.append(f"line-gap-override: {format_percent(line_gap)};")
    if ascent is not None:
        declarations.append(f"ascent-override: {format_percent(ascent)};")
    if descent is not None:
        declarations.append(f"descent-override: {format_percent(descent)};")
    return declarations


def _source_url(style: Style, typeface: Typeface) -> str | None:
    if typeface.font_url:
        return typeface.font_url
    if not typeface.name:
        return None
    for sibling in style.typefaces:
        if not sibling.font_url:
            continue
        same_name = sibling.name == typeface.name
        same_file = bool(typeface.file_name) and sibling.file_name == typeface.file_name
        if same_name or same_file:
            logger.warning(
                "Recovered font source for typeface '%s' from sibling '%s'.",
                typeface.id,
                sibling.id,
            )
            return sibling.font_url
    return None


def _primary_block(style: Style) -> str | None:
    primary = style.primary
    if not primary.font_url:
        return None
    settings = resolve_typeface(style, primary)
    declarations = [
        f"font-family: {quote_family(primary_family_name(style.id))};",
        f"src: url('{primary.font_url}');",
        *_metric_declarations(
            settings.ascent_override,
            settings.descent_override,
            settings.line_gap_override,
        ),
    ]
    return _block("@font-face", declarations)


def _typeface_block(style: Style, typeface: Typeface) -> str:
    settings = resolve_typeface(style, typeface)
    url = _source_url(style, typeface)
    source = f"url('{url}')" if url else f"local({quote_family(typeface.name or '')})"
    declarations = [
        f"font-family: {quote_family(fallback_family_name(style.id, typeface.id))};",
        f"src: {source};",
    ]
    if settings.scale != 100:
        declarations.append(f"size-adjust: {format_number(settings.scale)}%;")
    if typeface.is_variable or typeface.axes is not None:
        declarations.append(f"font-variation-settings: 'wght' {settings.weight};")
    declarations.extend(
        _metric_declarations(
            settings.ascent_override,
            settings.descent_override,
            settings.line_gap_override,
        )
    )
    return _block("@font-face", declarations)


def font_face_rules(style: Style) -> list[str]:
    """Return the ``@font-face`` blocks of one Style in registry order."""
    rules: list[str] = []
    primary_rule = _primary_block(style)
    if primary_rule:
        rules.append(primary_rule)
    for typeface in style.typefaces:
        if not (typeface.font_url or typeface.name):
            continue
        rules.append(_typeface_block(style, typeface))
    return rules


def emit(styles: Iterable[Style]) -> str:
    """Emit the ``@font-face`` document for every Style."""
    rules: list[str] = []
    for style in styles:
        rules.extend(font_face_rules(style))
    if not rules:
        return ""
    return "\n\n".join(rules) + "\n"


def _root_variables(workspace: Workspace, style: Style) -> str:
    declarations = [
        f"--font-size-base: {format_number(style.base_font_size)}px;",
        f"--font-scale-fallback: {format_number(style.font_scales.fallback)}%;",
        f"--line-height-base: {css_line_height(style.line_height)};",
    ]
    for tag, heading in workspace.heading_styles.items():
        declarations.append(f"--{tag}-scale: {format_number(heading.scale)}em;")
        declarations.append(f"--{tag}-line-height: {css_line_height(heading.line_height)};")
    return _block(":root", declarations)


def _heading_rules(workspace: Workspace) -> list[str]:
    rules: list[str] = []
    for tag, heading in workspace.heading_styles.items():
        style = workspace.style_for_heading(tag)
        declarations: list[str] = []
        families = family_list(style)
        if families:
            declarations.append(f"font-family: {', '.join(families)};")
        font_size = round(heading.scale * style.base_font_size)
        declarations.append(f"font-size: {font_size}px;")
        declarations.append(f"line-height: {css_line_height(heading.line_height)};")
        rules.append(_block(tag, declarations))
    return rules


def _language_rule(style: Style, language_id: str) -> str | None:
    families = family_list(style, language_id)
    if not families:
        return None
    declarations = [f"font-family: {', '.join(families)};"]
    line_height = style.line_height_overrides.get(language_id)
    if line_height is not None:
        declarations.append(f"line-height: {css_line_height(line_height)};")
    return _block(f'[lang="{language_id}"]', declarations)


def emit_document(
    workspace: Workspace,
    language_ids: Iterable[str] | None = None,
    *,
    include_font_face: bool = True,
    include_comments: bool = True,
) -> str:
    """Emit a complete stylesheet for a workspace.

    Language rules default to the workspace's visible languages plus every
    language that carries an override in the active Style.
    """
    style = workspace.active_style
    if language_ids is None:
        ordered = list(workspace.visible_language_ids)
        for language_id in workspace.overridden_language_ids(style.id):
            if language_id not in ordered:
                ordered.append(language_id)
        language_ids = ordered

    sections: list[tuple[str, list[str]]] = []
    if include_font_face:
        faces = [rule for each in workspace.styles.values() for rule in font_face_rules(each)]
        sections.append(("Font faces", faces))
    sections.append(("Variables", [_root_variables(workspace, style)]))
    sections.append(("Headings", _heading_rules(workspace)))
    language_rules = [
        rule
        for rule in (_language_rule(style, language_id) for language_id in language_ids)
        if rule is not None
    ]
    sections.append(("Languages", language_rules))

    chunks: list[str] = []
    for title, rules in sections:
        if not rules:
            continue
        if include_comments:
            chunks.append(f"/* {title} */")
        chunks.append("\n\n".join(rules))
    return "\n\n".join(chunks) + "\n" if chunks else ""


__all__ = [
    "css_line_height",
    "emit",
    "emit_document",
    "font_face_rules",
]
