from __future__ import annotations

from datetime import datetime
import json
import logging

import pytest

from fallbackstyles.config import (
    deserialize_config,
    export_file_name,
    load_config_file,
    normalize_config,
    serialize_config,
    validate_config,
    write_export,
)
from fallbackstyles.exceptions import ConfigFormatError
from fallbackstyles.models import (
    DirectOverride,
    PartialOverride,
    Provenance,
    Role,
    SystemFallbackOverride,
    Typeface,
)
from fallbackstyles.workspace import Workspace


def _workspace() -> Workspace:
    workspace = Workspace(extras={"theme": "dark"})
    style = workspace.active_style
    style.primary.name = "Inter"
    style.primary.file_name = "Inter.ttf"
    workspace.add_fallback(Typeface(id="noto", name="Noto Sans JP", file_name="NotoSansJP.otf"))
    workspace.add_fallback(Typeface(id="arial", name="Arial", line_height="auto"))
    workspace.map_language_fallback("ko-KR", "noto")
    workspace.set_fallback_override("ar", "legacy")
    workspace.set_fallback_override("ja-JP", "noto")
    workspace.add_language_specific_primary("th-TH")
    workspace.set_scale_override("th-TH", 115)
    workspace.set_line_height_override("vi-VN", "auto")
    workspace.set_text_override("fr-FR", "Bonjour")
    workspace.set_visible_languages(["ja-JP", "ar"])
    workspace.update_heading_style("h1", scale=1.5)
    return workspace


def _document(font_styles: dict, **data: object) -> dict:
    return {
        "metadata": {"version": 1, "appName": "fallbackstyles"},
        "data": {"fontStyles": font_styles, **data},
    }


def test_round_trip_preserves_overrides_and_extras() -> None:
    workspace = _workspace()

    document = serialize_config(workspace, exported_at=datetime(2024, 3, 5, 14, 7))
    restored = deserialize_config(json.loads(json.dumps(document)))

    original = workspace.active_style
    style = restored.active_style
    assert [typeface.id for typeface in style.typefaces] == [
        typeface.id for typeface in original.typefaces
    ]
    assert style.fallback_overrides == original.fallback_overrides
    assert style.fallback_overrides["ar"] == SystemFallbackOverride()
    assert style.fallback_overrides["ja-JP"] == DirectOverride("noto")
    assert isinstance(style.fallback_overrides["ko-KR"], PartialOverride)
    assert style.primary_overrides == original.primary_overrides
    assert style.scale_overrides == {"th-TH": 115.0}
    assert style.line_height_overrides == {"vi-VN": "auto"}
    assert style.get("arial").line_height == "auto"  # type: ignore[union-attr]
    assert restored.text_overrides == {"fr-FR": "Bonjour"}
    assert restored.visible_language_ids == ["ja-JP", "ar"]
    assert restored.heading_styles["h1"].scale == 1.5
    assert restored.extras == {"theme": "dark"}


def test_serialized_document_shape() -> None:
    document = serialize_config(_workspace(), exported_at=datetime(2024, 3, 5, 14, 7))

    assert document["metadata"]["version"] == 1
    assert document["metadata"]["exportedAt"] == "2024-03-05T14:07:00"
    data = document["data"]
    assert data["activeFontStyleId"] == "primary"
    assert data["theme"] == "dark"
    fonts = data["fontStyles"]["primary"]["fonts"]
    assert fonts[0]["type"] == "primary"
    assert all("font" not in font and "fontUrl" not in font for font in fonts)
    provenance = {font["id"]: font for font in fonts}
    assert provenance["noto"]["isClone"] is False
    clones = [font for font in fonts if font.get("isClone")]
    assert clones and clones[0]["clonedFrom"] == "noto"
    assert any(font["isPrimaryOverride"] for font in fonts)


def test_provenance_flags_restore_roles() -> None:
    restored = deserialize_config(
        _document(
            {
                "primary": {
                    "fonts": [
                        {"id": "p", "type": "primary", "isLangSpecific": True},
                        {"id": "c", "isClone": True, "clonedFrom": "p"},
                        {"id": "o", "isPrimaryOverride": True},
                    ],
                }
            }
        )
    )

    style = restored.active_style
    assert style.primary.role is Role.PRIMARY
    assert style.primary.provenance is Provenance.GENERAL
    assert style.get("c").provenance is Provenance.CLONE  # type: ignore[union-attr]
    assert style.get("o").provenance is Provenance.PRIMARY_OVERRIDE  # type: ignore[union-attr]


def test_validate_removes_orphaned_overrides(caplog: pytest.LogCaptureFixture) -> None:
    data = normalize_config(
        _document(
            {
                "primary": {
                    "fonts": [{"id": "p"}, {"id": "a"}, {"id": "a-fr"}],
                    "fallbackFontOverrides": {
                        "ar": "legacy",
                        "de-DE": "cascade",
                        "ja-JP": "ghost",
                        "fr-FR": {"a": "a-fr", "b": "b-fr"},
                        "ko-KR": {"a": "gone"},
                        "th-TH": 12,
                    },
                    "primaryFontOverrides": {"vi-VN": "a", "hi-IN": "missing"},
                }
            }
        )
    )

    with caplog.at_level(logging.WARNING, logger="fallbackstyles"):
        cleaned, warnings = validate_config(data)

    assert cleaned is not None
    style = cleaned["fontStyles"]["primary"]
    assert style["fallbackFontOverrides"] == {
        "ar": "legacy",
        "de-DE": "cascade",
        "fr-FR": {"a": "a-fr"},
    }
    assert style["primaryFontOverrides"] == {"vi-VN": "a"}
    assert len(warnings) == 5
    assert "font ghost not found" in warnings[0]
    assert sum("orphaned" in record.getMessage() for record in caplog.records) == 4
    assert data is not None
    assert data["fontStyles"]["primary"]["fallbackFontOverrides"]["ja-JP"] == "ghost"


def test_validate_migrates_legacy_colors() -> None:
    cleaned, warnings = validate_config(
        {
            "fontStyles": {"primary": {"fonts": []}, "alt": {"missingColor": "#00f"}},
            "colors": {"missing": "#f0f", "missingBg": "#fee"},
        }
    )

    assert warnings == []
    assert cleaned is not None
    assert cleaned["fontStyles"]["primary"]["missingColor"] == "#f0f"
    assert cleaned["fontStyles"]["primary"]["missingBgColor"] == "#fee"
    assert cleaned["fontStyles"]["alt"]["missingColor"] == "#00f"


def test_validate_passes_through_empty_input() -> None:
    assert validate_config(None) == (None, [])
    assert validate_config({"textOverrides": {}}) == ({"textOverrides": {}}, [])


def test_normalize_accepts_versioned_and_legacy_forms() -> None:
    legacy = {"fontStyles": {"primary": {}}, "textOverrides": {"fr-FR": "Salut"}}

    assert normalize_config(_document({"primary": {}})) == {"fontStyles": {"primary": {}}}
    assert normalize_config(legacy) == legacy
    assert normalize_config({"headerStyles": {}}) == {"headerStyles": {}}


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {},
        [],
        "fontStyles",
        {"unrelated": True},
        {"metadata": {"version": 0}, "data": {}},
        {"metadata": {"version": "1"}, "data": {}},
    ],
)
def test_normalize_rejects_other_payloads(raw: object) -> None:
    assert normalize_config(raw) is None


def test_deserialize_rejects_unknown_document() -> None:
    with pytest.raises(ConfigFormatError):
        deserialize_config({"hello": "world"})


def test_deserialize_reports_invalid_values() -> None:
    with pytest.raises(ConfigFormatError):
        deserialize_config(_document({"primary": {"baseFontSize": "large"}}))


def test_legacy_document_without_styles_gets_default_style() -> None:
    workspace = deserialize_config({"headerStyles": {"h1": {"scale": 2}}})

    assert list(workspace.styles) == ["primary"]
    assert workspace.heading_styles["h1"].scale == 2
    assert workspace.heading_styles["h6"].scale == 0.3


@pytest.mark.parametrize(
    ("when", "expected"),
    [
        (datetime(2024, 3, 5, 14, 7), "fallbackstyles-05mar2024-0207pm.json"),
        (datetime(2024, 12, 31, 0, 0), "fallbackstyles-31dec2024-1200am.json"),
        (datetime(2025, 1, 9, 12, 30), "fallbackstyles-09jan2025-1230pm.json"),
        (datetime(2025, 7, 20, 9, 5), "fallbackstyles-20jul2025-0905am.json"),
    ],
)
def test_export_file_name(when: datetime, expected: str) -> None:
    assert export_file_name(when=when) == expected


def test_export_file_name_custom_prefix() -> None:
    assert export_file_name("cjk", datetime(2024, 3, 5, 14, 7)) == "cjk-05mar2024-0207pm.json"


def test_write_export_and_load_config_file(tmp_path) -> None:
    workspace = _workspace()

    path = write_export(workspace, tmp_path / "exports", when=datetime(2024, 3, 5, 14, 7))

    assert path.name == "fallbackstyles-05mar2024-0207pm.json"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["metadata"]["appName"] == "fallbackstyles"
    loaded = load_config_file(path)
    assert loaded.active_style.fallback_overrides == workspace.active_style.fallback_overrides


def test_load_config_file_errors(tmp_path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigFormatError):
        load_config_file(broken)
    with pytest.raises(ConfigFormatError):
        load_config_file(tmp_path / "missing.json")


def test_validate_drops_non_string_targets() -> None:
    data = normalize_config(
        _document(
            {
                "primary": {
                    "fonts": [{"id": "p", "type": "primary"}, {"id": "a"}],
                    "fallbackFontOverrides": {"fr-FR": {"a": ["b"], "p": "a"}, "de-DE": ["a"]},
                    "primaryFontOverrides": {"es-ES": ["p"], "it-IT": {"id": "a"}},
                }
            }
        )
    )

    cleaned, warnings = validate_config(data)

    assert cleaned is not None
    style = cleaned["fontStyles"]["primary"]
    assert style["fallbackFontOverrides"] == {"fr-FR": {"p": "a"}}
    assert style["primaryFontOverrides"] == {}
    assert len(warnings) == 4
    assert all("malformed" in message for message in warnings)


def test_malformed_targets_do_not_break_loading() -> None:
    workspace = deserialize_config(
        _document(
            {
                "primary": {
                    "fonts": [{"id": "p", "type": "primary"}],
                    "fallbackFontOverrides": {"fr-FR": {"a": ["b"]}},
                    "primaryFontOverrides": {"fr-FR": ["p"]},
                }
            }
        )
    )

    style = workspace.active_style
    assert style.fallback_overrides == {}
    assert style.primary_overrides == {}
