"""Configuration export, import and repair.

Documents are versioned::

    {"metadata": {"version": 1, "exportedAt": ..., "appName": ...},
     "data": {"fontStyles": {...}, "headerStyles": {...}, ...}}

Older exports are the bare ``data`` mapping; both shapes are accepted.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from fallbackstyles.document import (
    DOCUMENT_VERSION,
    ConfigData,
    ConfigDocument,
    ConfigMetadata,
    FontStyleDocument,
    HeaderStyleDocument,
)
from fallbackstyles.exceptions import ConfigFormatError
from fallbackstyles.loader import ParsedFont, font_data_url
from fallbackstyles.models import LEGACY_OVERRIDE, default_heading_styles
from fallbackstyles.settings import DEFAULT_APP_NAME
from fallbackstyles.workspace import Workspace


logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "fallbackstyles"

_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")


def serialize_config(
    workspace: Workspace,
    *,
    app_name: str = DEFAULT_APP_NAME,
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    """Return the versioned document for ``workspace``.

    Parsed handles and font URLs are never written.
    """
    when = exported_at or datetime.now(timezone.utc)
    data = ConfigData(
        active_font_style_id=workspace.active_style_id,
        font_styles={
            style_id: FontStyleDocument.from_style(style)
            for style_id, style in workspace.styles.items()
        },
        header_styles={
            tag: HeaderStyleDocument.from_heading(heading)
            for tag, heading in workspace.heading_styles.items()
        },
        header_font_style_map=dict(workspace.heading_style_map),
        text_overrides=dict(workspace.text_overrides),
        visible_language_ids=list(workspace.visible_language_ids),
        **workspace.extras,
    )
    document = ConfigDocument(
        metadata=ConfigMetadata(
            version=DOCUMENT_VERSION,
            exported_at=when.isoformat(),
            app_name=app_name,
        ),
        data=data,
    )
    return document.model_dump(mode="json", by_alias=True, exclude_none=True)


def normalize_config(raw: Any) -> dict[str, Any] | None:
    """Return the ``data`` mapping of a versioned or legacy document.

    ``None`` means the payload is neither.
    """
    if not isinstance(raw, Mapping) or not raw:
        return None
    metadata = raw.get("metadata")
    data = raw.get("data")
    if isinstance(metadata, Mapping) and isinstance(data, Mapping):
        version = metadata.get("version")
        if isinstance(version, int) and version >= 1:
            return dict(data)
    if "fontStyles" in raw or "headerStyles" in raw:
        return dict(raw)
    return None


def _font_ids(style: Mapping[str, Any]) -> set[str]:
    fonts = style.get("fonts") or []
    return {str(font["id"]) for font in fonts if isinstance(font, Mapping) and "id" in font}


def _malformed(language_id: str, style_id: str) -> str:
    return f"Removed malformed override for language {language_id} in style '{style_id}'."


def _clean_fallback_overrides(
    style_id: str,
    overrides: Mapping[str, Any],
    existing: set[str],
    warnings: list[str],
) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for language_id, value in overrides.items():
        if isinstance(value, str):
            if value in (LEGACY_OVERRIDE, "cascade") or value in existing:
                cleaned[language_id] = value
            else:
                warnings.append(
                    f"Removed orphaned override for language {language_id} in style "
                    f"'{style_id}': font {value} not found."
                )
            continue
        if isinstance(value, Mapping):
            nested: dict[str, str] = {}
            for original_id, target_id in value.items():
                if not isinstance(target_id, str):
                    warnings.append(_malformed(language_id, style_id))
                elif target_id in existing:
                    nested[original_id] = target_id
                else:
                    warnings.append(
                        f"Removed orphaned granular override in language {language_id} of "
                        f"style '{style_id}': target font {target_id} not found."
                    )
            if nested:
                cleaned[language_id] = nested
            continue
        warnings.append(_malformed(language_id, style_id))
    return cleaned


def validate_config(data: Mapping[str, Any] | None) -> tuple[dict[str, Any] | None, list[str]]:
    """Drop overrides that reference missing typefaces.

    Returns the cleaned copy together with one message per repair. The
    repairs are also logged as warnings.
    """
    if data is None:
        return None, []
    cleaned = copy.deepcopy(dict(data))
    styles = cleaned.get("fontStyles")
    warnings: list[str] = []
    if not isinstance(styles, Mapping):
        return cleaned, warnings

    colors = cleaned.get("colors") if isinstance(cleaned.get("colors"), Mapping) else {}
    for style_id, style in styles.items():
        if not isinstance(style, dict):
            continue
        if not style.get("missingColor") and colors.get("missing"):
            style["missingColor"] = colors["missing"]
        if not style.get("missingBgColor") and colors.get("missingBg"):
            style["missingBgColor"] = colors["missingBg"]

        existing = _font_ids(style)
        overrides = style.get("fallbackFontOverrides")
        if isinstance(overrides, Mapping):
            style["fallbackFontOverrides"] = _clean_fallback_overrides(
                style_id, overrides, existing, warnings
            )

        primary_overrides = style.get("primaryFontOverrides")
        if isinstance(primary_overrides, Mapping):
            kept: dict[str, Any] = {}
            for language_id, font_id in primary_overrides.items():
                if not isinstance(font_id, str):
                    warnings.append(_malformed(language_id, style_id))
                elif font_id in existing:
                    kept[language_id] = font_id
                else:
                    warnings.append(
                        f"Removed orphaned primary override for language {language_id} in "
                        f"style '{style_id}': font {font_id} not found."
                    )
            style["primaryFontOverrides"] = kept

    for message in warnings:
        logger.warning(message)
    return cleaned, warnings


def workspace_from_data(data: Mapping[str, Any]) -> Workspace:
    """Build a workspace from an already normalized and validated mapping."""
    try:
        parsed = ConfigData.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigFormatError(f"Invalid configuration document: {exc}") from exc

    styles = {
        style_id: document.to_style(style_id)
        for style_id, document in parsed.font_styles.items()
    }
    heading_styles = default_heading_styles()
    if parsed.header_styles:
        heading_styles.update(
            {tag: header.to_heading() for tag, header in parsed.header_styles.items()}
        )
    return Workspace(
        styles or None,
        heading_styles=heading_styles,
        heading_style_map=parsed.header_font_style_map,
        text_overrides=parsed.text_overrides,
        visible_language_ids=parsed.visible_language_ids,
        active_style_id=parsed.active_font_style_id,
        extras=dict(parsed.model_extra or {}),
    )


def deserialize_config(raw: Any) -> Workspace:
    """Normalize, repair and load a configuration document."""
    data = normalize_config(raw)
    if data is None:
        raise ConfigFormatError("Not a configuration document.")
    cleaned, _ = validate_config(data)
    return workspace_from_data(cleaned or {})


def required_font_files(workspace: Workspace) -> list[str]:
    """File names whose binaries must be supplied to re-derive font handles."""
    seen: dict[str, None] = {}
    for style in workspace.styles.values():
        for typeface in style.typefaces:
            if typeface.file_name:
                seen.setdefault(typeface.file_name)
    return list(seen)


def attach_fonts(workspace: Workspace, fonts: Mapping[str, ParsedFont]) -> list[str]:
    """Re-attach parsed binaries by file name; return the names still missing."""
    missing: dict[str, None] = {}
    for style in workspace.styles.values():
        for typeface in style.typefaces:
            if not typeface.file_name:
                continue
            font = fonts.get(typeface.file_name)
            if font is None:
                missing.setdefault(typeface.file_name)
                continue
            typeface.font = font
            typeface.font_url = font_data_url(font.data, typeface.file_name)
            if typeface.axes is None:
                typeface.axes = font.axes
                typeface.is_variable = font.is_variable
    return list(missing)


def export_file_name(name: str = DEFAULT_EXPORT_NAME, when: datetime | None = None) -> str:
    """Return ``name-DDmonYYYY-HHMMam.json`` for ``when`` (local time by default)."""
    moment = when or datetime.now()
    hours = moment.hour % 12 or 12
    suffix = "pm" if moment.hour >= 12 else "am"
    stamp = (
        f"{moment.day:02d}{_MONTHS[moment.month - 1]}{moment.year}"
        f"-{hours:02d}{moment.minute:02d}{suffix}"
    )
    return f"{name}-{stamp}.json"


def load_config_file(path: Path | str) -> Workspace:
    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigFormatError(f"Unable to read configuration '{source}': {exc}") from exc
    return deserialize_config(raw)


def write_export(
    workspace: Workspace,
    directory: Path | str,
    *,
    name: str = DEFAULT_EXPORT_NAME,
    app_name: str = DEFAULT_APP_NAME,
    when: datetime | None = None,
) -> Path:
    """Write the versioned document into ``directory`` and return its path."""
    moment = when or datetime.now()
    target = Path(directory) / export_file_name(name, moment)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = serialize_config(workspace, app_name=app_name, exported_at=moment.astimezone())
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return target


__all__ = [
    "DEFAULT_EXPORT_NAME",
    "attach_fonts",
    "deserialize_config",
    "export_file_name",
    "load_config_file",
    "normalize_config",
    "required_font_files",
    "serialize_config",
    "validate_config",
    "workspace_from_data",
    "write_export",
]
