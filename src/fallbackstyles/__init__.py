"""Primary public API for fallbackstyles.

Resolve per-language font cascades, measure glyph coverage and emit the
matching CSS for multilingual typography configurations.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from fallbackstyles.config import (
    deserialize_config,
    export_file_name,
    load_config_file,
    normalize_config,
    serialize_config,
    validate_config,
)
from fallbackstyles.coverage import (
    CoverageReport,
    GlyphChoice,
    language_coverage,
    measure_coverage,
    render_char,
    render_text,
)
from fallbackstyles.exceptions import (
    ConfigFormatError,
    FallbackStylesError,
    FontParseError,
    FontValidationError,
    FontValidationTimeout,
    SettingsError,
)
from fallbackstyles.languages import Language, get_language, load_languages
from fallbackstyles.loader import ParsedFont, parse_font_bytes, parse_font_file
from fallbackstyles.models import (
    DirectOverride,
    PartialOverride,
    Provenance,
    ResolvedSettings,
    Role,
    Style,
    SystemFallbackOverride,
    Typeface,
)
from fallbackstyles.persistence import AutoSaver, StateStore, restore_workspace
from fallbackstyles.resolver import resolve
from fallbackstyles.sandbox import SafeFontLoader
from fallbackstyles.settings import EngineSettings, load_settings
from fallbackstyles.stack import StackEntry, build_stack
from fallbackstyles.stylesheet import emit, emit_document
from fallbackstyles.workspace import ChangeEvent, ChangeKind, Workspace


try:
    __version__ = _pkg_version("fallbackstyles")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "AutoSaver",
    "ChangeEvent",
    "ChangeKind",
    "ConfigFormatError",
    "CoverageReport",
    "DirectOverride",
    "EngineSettings",
    "FallbackStylesError",
    "FontParseError",
    "FontValidationError",
    "FontValidationTimeout",
    "GlyphChoice",
    "Language",
    "ParsedFont",
    "PartialOverride",
    "Provenance",
    "ResolvedSettings",
    "Role",
    "SafeFontLoader",
    "SettingsError",
    "StackEntry",
    "StateStore",
    "Style",
    "SystemFallbackOverride",
    "Typeface",
    "Workspace",
    "__version__",
    "build_stack",
    "deserialize_config",
    "emit",
    "emit_document",
    "export_file_name",
    "get_language",
    "language_coverage",
    "load_config_file",
    "load_languages",
    "load_settings",
    "measure_coverage",
    "normalize_config",
    "parse_font_bytes",
    "parse_font_file",
    "render_char",
    "render_text",
    "resolve",
    "restore_workspace",
    "serialize_config",
    "validate_config",
]
