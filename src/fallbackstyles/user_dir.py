"""Resolution of the per-user directory holding settings and saved state."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import os
from pathlib import Path
from threading import RLock


__all__ = [
    "HOME_ENV",
    "UserDir",
    "configure_user_dir",
    "get_user_dir",
    "user_dir_context",
]

HOME_ENV = "FALLBACKSTYLES_HOME"

_USER_DIR: UserDir | None = None
_LOCK = RLock()


def _resolve_root(root: str | Path | None) -> tuple[Path, bool]:
    if root is not None:
        return Path(root).expanduser(), True
    env_root = os.environ.get(HOME_ENV)
    if env_root:
        return Path(env_root).expanduser(), False
    return Path.home() / ".fallbackstyles", False


@dataclass(slots=True)
class UserDir:
    """Resolved user root plus helpers for the files stored beneath it."""

    root: Path
    is_explicit: bool = False

    def data_dir(self, *parts: str | Path, create: bool = True) -> Path:
        target = self.root.joinpath(*parts)
        if create:
            target.mkdir(parents=True, exist_ok=True)
        return target

    def data_path(self, *parts: str | Path, create: bool = True) -> Path:
        target = self.root.joinpath(*parts)
        if create:
            target.parent.mkdir(parents=True, exist_ok=True)
        return target

    @property
    def settings_path(self) -> Path:
        return self.root / "settings.yaml"

    @property
    def store_root(self) -> Path:
        return self.root / "state"


def configure_user_dir(root: str | Path | None = None) -> UserDir:
    """Replace the user dir singleton with a freshly resolved one."""
    global _USER_DIR
    resolved, explicit = _resolve_root(root)
    with _LOCK:
        _USER_DIR = UserDir(root=resolved, is_explicit=explicit)
        return _USER_DIR


def get_user_dir() -> UserDir:
    """Return the user dir, following ``$FALLBACKSTYLES_HOME`` changes."""
    global _USER_DIR
    with _LOCK:
        if _USER_DIR is None:
            return configure_user_dir()
        if not _USER_DIR.is_explicit:
            current, _ = _resolve_root(None)
            if current != _USER_DIR.root:
                _USER_DIR = UserDir(root=current)
        return _USER_DIR


@contextmanager
def user_dir_context(root: str | Path) -> Iterator[UserDir]:
    """Temporarily point the user dir at ``root``."""
    global _USER_DIR
    with _LOCK:
        previous = _USER_DIR
    try:
        yield configure_user_dir(root)
    finally:
        with _LOCK:
            _USER_DIR = previous
