from __future__ import annotations

import logging

from fallbackstyles import registry
from fallbackstyles.models import FontScales, Style, Typeface, WeightAxis
from fallbackstyles.stylesheet import css_line_height, emit, emit_document, font_face_rules
from fallbackstyles.workspace import Workspace


def _style() -> Style:
    style = Style(id="body", font_scales=FontScales(active=100, fallback=90), weight=500)
    style.primary.name = "Inter"
    style.primary.font_url = "data:font/ttf;base64,AAAA"
    style.primary.ascent_override = 0.9
    style.primary.descent_override = 0.25
    style.primary.line_gap_override = 0
    registry.add_fallback(
        style,
        Typeface(
            id="noto",
            name="Noto Sans JP",
            file_name="NotoSansJP.ttf",
            font_url="data:font/ttf;base64,BBBB",
            axes=WeightAxis(min=100, max=900),
            is_variable=True,
        ),
    )
    registry.add_fallback(style, registry.system_typeface("Arial", "arial"))
    return style


def test_primary_face_uses_uploaded_family_and_metric_overrides() -> None:
    rules = font_face_rules(_style())

    assert rules[0] == (
        "@font-face {\n"
        "  font-family: 'UploadedFont-body';\n"
        "  src: url('data:font/ttf;base64,AAAA');\n"
        "  line-gap-override: 0%;\n"
        "  ascent-override: 90%;\n"
        "  descent-override: 25%;\n"
        "}"
    )


def test_fallback_faces_carry_size_adjust_and_variation() -> None:
    rules = font_face_rules(_style())
    noto = next(rule for rule in rules if "FallbackFont-body-noto" in rule)
    arial = next(rule for rule in rules if "FallbackFont-body-arial" in rule)

    assert "src: url('data:font/ttf;base64,BBBB');" in noto
    assert "size-adjust: 90%;" in noto
    assert "font-variation-settings: 'wght' 500;" in noto
    assert "src: local('Arial');" in arial
    assert "font-variation-settings" not in arial


def test_full_scale_fallback_has_no_size_adjust() -> None:
    style = _style()
    style.font_scales.fallback = 100

    assert all("size-adjust" not in rule for rule in font_face_rules(style))


def test_source_recovered_from_sibling(caplog) -> None:
    style = _style()
    clone = registry.clone_typeface(style, "noto", clone_id="noto-ja")
    assert clone is not None
    clone.font_url = None

    with caplog.at_level(logging.WARNING, logger="fallbackstyles"):
        rules = font_face_rules(style)

    recovered = next(rule for rule in rules if "FallbackFont-body-noto-ja" in rule)
    assert "src: url('data:font/ttf;base64,BBBB');" in recovered
    assert "Recovered font source" in caplog.text


def test_emit_is_empty_without_faces() -> None:
    assert emit([]) == ""
    assert emit([Style()]) == ""


def test_emit_joins_blocks() -> None:
    output = emit([_style()])

    assert output.endswith("}\n")
    assert output.count("@font-face") == 4
    assert "\n\n@font-face" in output


def test_line_height_rendering() -> None:
    assert css_line_height("auto") == "normal"
    assert css_line_height(None) == "normal"
    assert css_line_height(1.25) == "1.25"
    assert css_line_height(2.0) == "2"


def test_document_sections() -> None:
    style = _style()
    style.line_height_overrides["ja-JP"] = "auto"
    registry.set_fallback_override(style, "ar", "legacy")
    workspace = Workspace({"body": style}, visible_language_ids=["ja-JP"])

    css = emit_document(workspace)

    assert css.index("/* Font faces */") < css.index("/* Variables */")
    assert css.index("/* Headings */") < css.index("/* Languages */")
    assert "--font-size-base: 60px;" in css
    assert "--font-scale-fallback: 90%;" in css
    assert "--h2-scale: 0.8em;" in css
    assert "font-size: 48px;" in css
    assert (
        '[lang="ja-JP"] {\n'
        "  font-family: 'UploadedFont-body', 'FallbackFont-body-noto', "
        "'FallbackFont-body-arial', sans-serif;\n"
        "  line-height: normal;\n"
        "}"
    ) in css
    assert "[lang=\"ar\"] {\n  font-family: 'UploadedFont-body', sans-serif;\n}" in css


def test_document_without_comments_or_faces() -> None:
    workspace = Workspace({"body": _style()})

    css = emit_document(workspace, ["fr-FR"], include_font_face=False, include_comments=False)

    assert "/*" not in css
    assert "@font-face" not in css
    assert '[lang="fr-FR"]' in css


def test_document_is_deterministic() -> None:
    workspace = Workspace({"body": _style()}, visible_language_ids=["de-DE"])

    assert emit_document(workspace) == emit_document(workspace)
