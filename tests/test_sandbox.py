from __future__ import annotations

from multiprocessing.connection import Connection
import sys
import time

import pytest

from fallbackstyles.exceptions import FontParseError, FontValidationError, FontValidationTimeout
from fallbackstyles.sandbox import SafeFontLoader


def _stalling_worker(conn: Connection) -> None:
    while True:
        try:
            message = conn.recv()
        except (EOFError, OSError):
            break
        if message is None:
            break
        request_id, data = message
        if data == b"stall":
            time.sleep(30)
            continue
        conn.send((request_id, True, None))


def test_valid_font_is_loaded(font_bytes) -> None:
    with SafeFontLoader(timeout=10) as loader:
        font = loader.load_bytes(font_bytes("xyz", family="Safe"), "Safe.ttf")
        assert loader.worker_alive

    assert font.family_name == "Safe"
    assert font.char_to_glyph_index("y") > 0
    assert not loader.worker_alive


def test_invalid_font_is_rejected_by_worker() -> None:
    with SafeFontLoader(timeout=10) as loader:
        with pytest.raises(FontValidationError, match="broken.ttf"):
            loader.load_bytes(b"garbage", "broken.ttf")
        assert loader.worker_alive


def test_load_file_validates_disk_contents(tmp_path, font_bytes) -> None:
    path = tmp_path / "Disk.ttf"
    path.write_bytes(font_bytes("a", family="Disk"))

    with SafeFontLoader(timeout=10) as loader:
        assert loader.load_file(path).file_name == "Disk.ttf"
        (tmp_path / "Empty.ttf").write_bytes(b"")
        with pytest.raises(FontValidationError):
            loader.load_file(tmp_path / "Empty.ttf")
        with pytest.raises(FontParseError):
            loader.load_file(tmp_path / "absent.ttf")


@pytest.mark.skipif(sys.platform == "win32", reason="requires the fork start method")
def test_stalled_worker_is_replaced() -> None:
    loader = SafeFontLoader(timeout=0.2, start_method="fork", worker_target=_stalling_worker)
    try:
        loader.validate(b"ok")
        first_pid = loader.worker_pid

        with pytest.raises(FontValidationTimeout):
            loader.validate(b"stall", "slow.ttf")
        assert not loader.worker_alive

        loader.validate(b"ok")
        assert loader.worker_pid != first_pid
    finally:
        loader.close()


def test_reset_worker_terminates_process() -> None:
    loader = SafeFontLoader(timeout=10)
    try:
        with pytest.raises(FontValidationError):
            loader.validate(b"")
        assert loader.worker_alive
        loader.reset_worker()
        assert not loader.worker_alive
        assert loader.worker_pid is None
    finally:
        loader.close()
