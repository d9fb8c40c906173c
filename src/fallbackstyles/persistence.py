"""On-disk state store and debounced autosave.

The store keeps the serialized configuration as ``config.json`` and every
uploaded font binary under ``fonts/``. Binaries are keyed by file name so
that a reloaded document can find them again.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import shutil
import threading
from typing import Any, Protocol
from urllib.parse import quote, unquote

from fallbackstyles.config import (
    attach_fonts,
    deserialize_config,
    required_font_files,
    serialize_config,
)
from fallbackstyles.exceptions import ConfigFormatError, FontParseError
from fallbackstyles.loader import ParsedFont, parse_font_bytes
from fallbackstyles.settings import DEFAULT_APP_NAME
from fallbackstyles.workspace import ChangeEvent, Workspace


logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
FONTS_DIR = "fonts"


class FontLoader(Protocol):
    def load_bytes(self, data: bytes, file_name: str | None = None) -> ParsedFont: ...


class StateStore:
    """Directory-backed key/value store for the document and font blobs."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser()

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE

    @property
    def fonts_dir(self) -> Path:
        return self.root / FONTS_DIR

    def _font_path(self, key: str) -> Path:
        if not key:
            raise ValueError("Font key must not be empty.")
        return self.fonts_dir / quote(key, safe="")

    def save_config(self, payload: dict[str, Any]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        temporary = self.config_path.with_suffix(".json.tmp")
        temporary.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        temporary.replace(self.config_path)

    def load_config(self) -> dict[str, Any] | None:
        if not self.config_path.exists():
            return None
        try:
            return json.loads(self.config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigFormatError(f"Stored configuration is corrupt: {exc}") from exc

    def save_font(self, key: str, data: bytes) -> None:
        target = self._font_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def get_font(self, key: str) -> bytes | None:
        target = self._font_path(key)
        if not target.exists():
            return None
        return target.read_bytes()

    def delete_font(self, key: str) -> bool:
        target = self._font_path(key)
        if not target.exists():
            return False
        target.unlink()
        return True

    def font_keys(self) -> list[str]:
        if not self.fonts_dir.is_dir():
            return []
        return sorted(unquote(path.name) for path in self.fonts_dir.iterdir() if path.is_file())

    def clear(self) -> None:
        if self.config_path.exists():
            self.config_path.unlink()
        if self.fonts_dir.exists():
            shutil.rmtree(self.fonts_dir)


def store_fonts(store: StateStore, workspace: Workspace) -> list[str]:
    """Save the binaries of every parsed typeface not yet in the store."""
    known = set(store.font_keys())
    written: list[str] = []
    for style in workspace.styles.values():
        for typeface in style.typefaces:
            font = typeface.font
            key = typeface.file_name
            if not key or key in known or not isinstance(font, ParsedFont) or not font.data:
                continue
            store.save_font(key, font.data)
            known.add(key)
            written.append(key)
    return written


def prune_fonts(store: StateStore, workspace: Workspace) -> list[str]:
    """Delete stored binaries no typeface refers to any more."""
    needed = set(required_font_files(workspace))
    removed = [key for key in store.font_keys() if key not in needed]
    for key in removed:
        store.delete_font(key)
    return removed


class AutoSaver:
    """Persist the workspace after a quiet period following save-worthy events."""

    def __init__(
        self,
        workspace: Workspace,
        store: StateStore,
        delay: float = 1.0,
        *,
        app_name: str = DEFAULT_APP_NAME,
    ) -> None:
        self.workspace = workspace
        self.store = store
        self.delay = delay
        self.app_name = app_name
        self.save_count = 0
        self._timer: threading.Timer | None = None
        self._lock = threading.RLock()
        self._resetting = 0
        self._generation = 0
        self._unsubscribe = workspace.subscribe(self._on_change)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def is_resetting(self) -> bool:
        return self._resetting > 0

    def _on_change(self, event: ChangeEvent) -> None:
        if not event.save_worthy or self.is_resetting:
            return
        self.schedule()

    def schedule(self) -> None:
        with self._lock:
            self._cancel_timer()
            if self.delay <= 0:
                self._save()
                return
            self._generation += 1
            timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _cancel_timer(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            if self.is_resetting:
                return
            try:
                self._save()
            except OSError as exc:
                logger.error("Autosave failed: %s", exc)

    def _save(self) -> None:
        payload = serialize_config(self.workspace, app_name=self.app_name)
        self.store.save_config(payload)
        store_fonts(self.store, self.workspace)
        self.save_count += 1
        logger.debug("Workspace saved to %s.", self.store.config_path)

    def flush(self) -> bool:
        """Save immediately when a save is pending; return whether it ran."""
        with self._lock:
            if self._timer is None or self.is_resetting:
                return False
            self._cancel_timer()
            self._save()
            return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()

    @contextmanager
    def resetting(self) -> Iterator[None]:
        """Drop pending saves and ignore new events for the duration."""
        with self._lock:
            self._resetting += 1
            self._cancel_timer()
        try:
            yield
        finally:
            with self._lock:
                self._resetting -= 1

    def close(self, *, flush: bool = True) -> None:
        if flush:
            self.flush()
        self.cancel()
        self._unsubscribe()


@dataclass(slots=True)
class RestoreResult:
    workspace: Workspace
    missing_fonts: list[str] = field(default_factory=list)
    rejected_fonts: list[str] = field(default_factory=list)


def restore_workspace(store: StateStore, loader: FontLoader | None = None) -> RestoreResult:
    """Reload the saved document and re-derive font handles from stored blobs."""
    raw = store.load_config()
    if raw is None:
        return RestoreResult(Workspace())
    workspace = deserialize_config(raw)
    parsed: dict[str, ParsedFont] = {}
    rejected: list[str] = []
    for file_name in required_font_files(workspace):
        data = store.get_font(file_name)
        if data is None:
            continue
        try:
            if loader is not None:
                parsed[file_name] = loader.load_bytes(data, file_name)
            else:
                parsed[file_name] = parse_font_bytes(data, file_name)
        except FontParseError as exc:
            logger.warning("Stored font '%s' could not be restored: %s", file_name, exc)
            rejected.append(file_name)
    missing = [name for name in attach_fonts(workspace, parsed) if name not in rejected]
    return RestoreResult(workspace, missing, rejected)


def reset_application(
    workspace: Workspace,
    store: StateStore,
    saver: AutoSaver | None = None,
) -> None:
    """Wipe the store and the workspace without letting autosave resurrect them."""
    if saver is None:
        store.clear()
        workspace.reset()
        return
    with saver.resetting():
        store.clear()
        workspace.reset()


__all__ = [
    "AutoSaver",
    "RestoreResult",
    "StateStore",
    "prune_fonts",
    "reset_application",
    "restore_workspace",
    "store_fonts",
]
