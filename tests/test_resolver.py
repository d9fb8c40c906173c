from __future__ import annotations

import pytest

from fallbackstyles import registry
from fallbackstyles.models import FontScales, Provenance, Style, Typeface, WeightAxis
from fallbackstyles.resolver import (
    resolve,
    resolve_weight,
    snap_weight,
    system_fallback_settings,
    weight_options,
)


def _style_with_fallback(**style_options: object) -> tuple[Style, Typeface]:
    style = Style(**style_options)  # type: ignore[arg-type]
    fallback = registry.system_typeface("Noto Sans", "noto")
    assert registry.add_fallback(style, fallback)
    return style, fallback


@pytest.mark.parametrize("active", [50, 100, 120, 300])
def test_primary_always_resolves_at_full_scale(active: float) -> None:
    style = Style(font_scales=FontScales(active=active, fallback=70))
    style.primary.scale = 150

    settings = resolve(style, style.primary.id)

    assert settings is not None
    assert settings.scale == 100


@pytest.mark.parametrize("fallback_scale", [60, 80, 100, 135])
def test_fallback_tracks_fallback_bucket(fallback_scale: float) -> None:
    style, fallback = _style_with_fallback()
    style.font_scales.fallback = fallback_scale

    assert resolve(style, fallback.id).scale == fallback_scale  # type: ignore[union-attr]


def test_primary_override_tracks_fallback_bucket_under_changing_active() -> None:
    style = Style()
    clone = registry.add_language_specific_primary(style, "fr")
    assert clone is not None

    for active, fallback in ((100, 100), (150, 90), (70, 110)):
        style.font_scales = FontScales(active=active, fallback=fallback)
        assert resolve(style, clone.id).scale == fallback  # type: ignore[union-attr]


def test_primary_override_clone_scenario_resolves_to_fallback_scale() -> None:
    style = Style(font_scales=FontScales(active=120, fallback=80))
    clone = registry.add_language_specific_primary(style, "fr")
    assert clone is not None
    assert clone.provenance is Provenance.PRIMARY_OVERRIDE

    settings = resolve(style, clone.id)

    assert settings is not None
    assert settings.scale == 80


def test_own_values_win_over_style_defaults() -> None:
    style, fallback = _style_with_fallback(base_font_size=40, weight=500)
    fallback.scale = 90
    fallback.base_font_size = 32
    fallback.letter_spacing = 0.05
    fallback.weight = 700

    settings = resolve(style, fallback.id)

    assert settings is not None
    assert settings.scale == 90
    assert settings.base_font_size == 32
    assert settings.letter_spacing == 0.05
    assert settings.weight == 700
    assert settings.font_size == pytest.approx(28.8)


def test_fallback_only_values_skip_primary_overrides() -> None:
    style, fallback = _style_with_fallback(line_height=1.4, letter_spacing=0.1)
    style.fallback_line_height = 1.8
    style.fallback_letter_spacing = 0.3
    clone = registry.add_language_specific_primary(style, "ja")
    assert clone is not None

    ordinary = resolve(style, fallback.id)
    override = resolve(style, clone.id)

    assert ordinary is not None and override is not None
    assert ordinary.line_height == 1.8
    assert ordinary.letter_spacing == 0.3
    assert override.line_height == 1.4
    assert override.letter_spacing == 0.1


def test_auto_line_height_is_kept() -> None:
    style, fallback = _style_with_fallback(line_height="auto")
    assert resolve(style, fallback.id).line_height == "auto"  # type: ignore[union-attr]


def test_unknown_id_resolves_to_none() -> None:
    assert resolve(Style(), "missing") is None


def test_variable_weight_is_clamped_to_axis(make_font) -> None:
    font = make_font("A", variable=True, axis=(300.0, 400.0, 700.0))
    typeface = registry.typeface_from_font(font)

    assert resolve_weight(typeface, 900) == 700
    assert resolve_weight(typeface, 100) == 300
    assert resolve_weight(typeface, 500) == 500


def test_static_font_renders_its_own_weight(make_font) -> None:
    typeface = registry.typeface_from_font(make_font("A", weight=600))

    assert resolve_weight(typeface, 400) == 600
    assert [option.value for option in weight_options(typeface)] == [600]
    assert snap_weight(typeface, 900) == 600


def test_named_typeface_keeps_requested_weight() -> None:
    typeface = Typeface(id="named", name="Arial")

    assert resolve_weight(typeface, 350) == 350
    assert len(weight_options(typeface)) == 9


def test_snap_weight_prefers_lighter_on_tie() -> None:
    typeface = Typeface(
        id="var",
        name="Var",
        font=object(),  # type: ignore[arg-type]
        axes=WeightAxis(min=300, max=500),
        is_variable=True,
    )

    assert [option.value for option in weight_options(typeface)] == [300, 400, 500]
    assert snap_weight(typeface, 450) == 400
    assert snap_weight(typeface, 800) == 500


def test_system_settings_follow_fallback_defaults() -> None:
    style = Style(font_scales=FontScales(active=100, fallback=85))
    style.fallback_line_height = 1.6

    settings = system_fallback_settings(style)

    assert settings.scale == 85
    assert settings.line_height == 1.6
    assert settings.letter_spacing == style.letter_spacing
