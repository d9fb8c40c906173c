from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fallbackstyles.cli import app
from fallbackstyles.languages import get_language
from fallbackstyles.settings import CONFIG_ENV
from fallbackstyles.user_dir import HOME_ENV


runner = CliRunner()

ENV = {"COLUMNS": "200", "NO_COLOR": "1"}


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.setenv(HOME_ENV, str(tmp_path / "home"))
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    logger = logging.getLogger("fallbackstyles")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def _config(tmp_path: Path, **style: object) -> Path:
    document = {
        "metadata": {"version": 1, "appName": "fallbackstyles"},
        "data": {
            "activeFontStyleId": "primary",
            "fontStyles": {
                "primary": {
                    "fonts": [
                        {"id": "main", "type": "primary", "name": "Inter", "fileName": "Inter.ttf"},
                        {"id": "noto", "name": "Noto Sans JP", "fileName": "NotoSansJP.ttf"},
                    ],
                    "fallbackFontOverrides": {"ar": "legacy"},
                    **style,
                }
            },
            "visibleLanguageIds": ["ja-JP"],
        },
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def fonts_dir(tmp_path, font_bytes) -> Path:
    folder = tmp_path / "fonts"
    folder.mkdir()
    (folder / "Inter.ttf").write_bytes(font_bytes("ABCabc", family="Inter"))
    (folder / "NotoSansJP.ttf").write_bytes(
        font_bytes(get_language("ja-JP").coverage_text, family="Noto Sans JP")
    )
    return folder


def test_no_arguments_shows_help() -> None:
    result = runner.invoke(app, [], env=ENV)

    assert "Usage" in result.output
    assert "stack" in result.output


def test_stack_lists_general_cascade(tmp_path) -> None:
    result = runner.invoke(app, ["stack", str(_config(tmp_path))], env=ENV)

    assert result.exit_code == 0, result.output
    assert "'FallbackFont-primary-noto'" in result.output
    assert "sans-serif" in result.output
    assert "Noto Sans JP" in result.output


def test_stack_for_legacy_language_has_only_system_family(tmp_path) -> None:
    result = runner.invoke(app, ["stack", str(_config(tmp_path)), "--lang", "ar"], env=ENV)

    assert result.exit_code == 0, result.output
    assert "FallbackFont-primary-noto" not in result.output
    assert "sans-serif" in result.output


def test_unknown_style_exits_with_error(tmp_path) -> None:
    result = runner.invoke(app, ["stack", str(_config(tmp_path)), "--style", "nope"], env=ENV)

    assert result.exit_code == 1
    assert "Unknown style 'nope'" in result.output


def test_broken_config_exits_with_error(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("[1, 2", encoding="utf-8")

    result = runner.invoke(app, ["css", str(path)], env=ENV)

    assert result.exit_code == 1
    assert "error" in result.output


def test_coverage_with_fonts(tmp_path, fonts_dir) -> None:
    config = _config(tmp_path)

    result = runner.invoke(app, ["coverage", str(config), "--fonts", str(fonts_dir)], env=ENV)

    assert result.exit_code == 0, result.output
    assert "ja-JP" in result.output
    assert "100% (sample)" in result.output


def test_coverage_without_fonts_is_unknown(tmp_path) -> None:
    config = _config(tmp_path)

    result = runner.invoke(app, ["coverage", str(config), "-l", "fr-FR", "-l", "xx"], env=ENV)

    assert result.exit_code == 0, result.output
    assert "fr-FR" in result.output
    assert "unknown" in result.output
    assert "Unknown language 'xx'" in result.output


def test_coverage_warns_about_missing_binaries(tmp_path) -> None:
    empty = tmp_path / "empty-fonts"
    empty.mkdir()

    result = runner.invoke(
        app, ["coverage", str(_config(tmp_path)), "--fonts", str(empty)], env=ENV
    )

    assert result.exit_code == 0, result.output
    assert "Font file 'Inter.ttf' was not found" in result.output


def test_css_to_stdout(tmp_path, fonts_dir) -> None:
    config = _config(tmp_path, lineHeightOverrides={"ja-JP": "auto"})

    result = runner.invoke(app, ["css", str(config), "--fonts", str(fonts_dir)], env=ENV)

    assert result.exit_code == 0, result.output
    assert "/* Font faces */" in result.output
    assert "font-family: 'UploadedFont-primary';" in result.output
    assert '[lang="ja-JP"]' in result.output
    assert "line-height: normal;" in result.output
    assert '[lang="ar"]' in result.output


def test_css_to_file_without_comments(tmp_path) -> None:
    target = tmp_path / "out" / "fonts.css"

    result = runner.invoke(
        app,
        ["css", str(_config(tmp_path)), "-l", "ko-KR", "-o", str(target), "--no-comments"],
        env=ENV,
    )

    assert result.exit_code == 0, result.output
    assert "Wrote" in result.output
    content = target.read_text(encoding="utf-8")
    assert "/*" not in content
    assert ":root {" in content
    assert '[lang="ko-KR"]' in content
    assert '[lang="ja-JP"]' not in content


def test_check_reports_and_exports_repairs(tmp_path) -> None:
    config = _config(tmp_path, primaryFontOverrides={"ko-KR": "ghost"})
    exports = tmp_path / "exports"

    result = runner.invoke(app, ["check", str(config), "--export", str(exports)], env=ENV)

    assert result.exit_code == 0, result.output
    assert "config.json: repaired (1 style(s), 2 typeface(s), 1 repair(s))" in result.output
    assert "orphaned primary override" in result.output
    written = list(exports.glob("fallbackstyles-*.json"))
    assert len(written) == 1
    payload = json.loads(written[0].read_text(encoding="utf-8"))
    assert payload["data"]["fontStyles"]["primary"]["primaryFontOverrides"] == {}


def test_check_valid_document(tmp_path) -> None:
    result = runner.invoke(app, ["check", str(_config(tmp_path))], env=ENV)

    assert result.exit_code == 0, result.output
    assert "valid (1 style(s), 2 typeface(s), 0 repair(s))" in result.output


def test_check_rejects_other_json(tmp_path) -> None:
    path = tmp_path / "other.json"
    path.write_text('{"hello": "world"}', encoding="utf-8")

    result = runner.invoke(app, ["check", str(path)], env=ENV)

    assert result.exit_code == 1
    assert "is not a configuration document" in result.output


def test_languages_search() -> None:
    result = runner.invoke(app, ["languages", "--search", "japan"], env=ENV)

    assert result.exit_code == 0, result.output
    assert "ja-JP" in result.output
    assert "fr-FR" not in result.output


def test_missing_settings_file_is_an_error(tmp_path) -> None:
    result = runner.invoke(
        app, ["--settings", str(tmp_path / "absent.yaml"), "languages"], env=ENV
    )

    assert result.exit_code == 1
    assert "does not exist" in result.output
