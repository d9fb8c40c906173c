from __future__ import annotations

from pathlib import Path

from fallbackstyles.user_dir import (
    HOME_ENV,
    configure_user_dir,
    get_user_dir,
    user_dir_context,
)


def test_default_root_is_under_home(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv(HOME_ENV, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    user_dir = configure_user_dir()

    assert user_dir.root == Path.home() / ".fallbackstyles"
    assert not user_dir.is_explicit


def test_environment_changes_are_followed(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(HOME_ENV, str(tmp_path / "one"))
    configure_user_dir()
    assert get_user_dir().root == tmp_path / "one"

    monkeypatch.setenv(HOME_ENV, str(tmp_path / "two"))
    assert get_user_dir().root == tmp_path / "two"
    assert get_user_dir().settings_path == tmp_path / "two" / "settings.yaml"


def test_context_overrides_and_restores(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(HOME_ENV, str(tmp_path / "env"))
    configure_user_dir()

    with user_dir_context(tmp_path / "explicit") as user_dir:
        monkeypatch.setenv(HOME_ENV, str(tmp_path / "ignored"))
        assert user_dir.is_explicit
        assert get_user_dir().root == tmp_path / "explicit"

    assert get_user_dir().root == tmp_path / "ignored"


def test_data_helpers_create_directories(tmp_path) -> None:
    with user_dir_context(tmp_path) as user_dir:
        folder = user_dir.data_dir("cache", "fonts")
        path = user_dir.data_path("exports", "config.json")
        lazy = user_dir.data_dir("later", create=False)

    assert folder.is_dir()
    assert path.parent.is_dir()
    assert not path.exists()
    assert not lazy.exists()
    assert user_dir.store_root == tmp_path / "state"
