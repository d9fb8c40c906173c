"""Out-of-process validation of untrusted font binaries.

A single worker process parses each candidate binary before the calling
process touches it. A worker that does not answer within the timeout is
terminated and discarded; the next request starts a fresh one. Bytes that
pass validation are parsed a second time in the caller before admission.

This module must stay importable from the worker process so that ``spawn``
based start methods can find :func:`_worker_main`.
"""

from __future__ import annotations

from collections.abc import Callable
import itertools
import logging
import multiprocessing
from multiprocessing.connection import Connection
from multiprocessing.context import BaseContext
from pathlib import Path
import threading
from typing import Any

from fallbackstyles.exceptions import (
    FontParseError,
    FontValidationError,
    FontValidationTimeout,
)
from fallbackstyles.loader import ParsedFont, parse_font_bytes, validate_font_bytes


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3.0

WorkerTarget = Callable[[Connection], None]


def _worker_main(conn: Connection) -> None:
    """Serve validation requests until the pipe closes or ``None`` arrives."""
    while True:
        try:
            message = conn.recv()
        except (EOFError, OSError):
            break
        if message is None:
            break
        request_id, data = message
        try:
            validate_font_bytes(data)
        except FontParseError as exc:
            conn.send((request_id, False, str(exc)))
        except Exception as exc:  # noqa: BLE001 - untrusted input may fail anywhere
            conn.send((request_id, False, f"{type(exc).__name__}: {exc}"))
        else:
            conn.send((request_id, True, None))
    conn.close()


class SafeFontLoader:
    """Validate font bytes in a worker process, then parse them locally."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        start_method: str | None = None,
        worker_target: WorkerTarget = _worker_main,
    ) -> None:
        self.timeout = timeout
        self._context: BaseContext = multiprocessing.get_context(start_method)
        self._worker_target = worker_target
        self._process: Any = None
        self._conn: Connection | None = None
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    @property
    def worker_alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    @property
    def worker_pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def _ensure_worker(self) -> Connection:
        if self._conn is not None and self.worker_alive:
            return self._conn
        self._discard()
        parent_conn, child_conn = self._context.Pipe()
        process = self._context.Process(
            target=self._worker_target,
            args=(child_conn,),
            name="fallbackstyles-font-validator",
            daemon=True,
        )
        process.start()
        child_conn.close()
        self._process = process
        self._conn = parent_conn
        logger.debug("Started font validation worker (pid %s).", process.pid)
        return parent_conn

    def _discard(self) -> None:
        process, conn = self._process, self._conn
        self._process = None
        self._conn = None
        if conn is not None:
            conn.close()
        if process is not None:
            if process.is_alive():
                process.terminate()
            process.join(timeout=1.0)

    def reset_worker(self) -> None:
        """Terminate the current worker; a new one starts on the next request."""
        with self._lock:
            self._discard()

    def validate(self, data: bytes, file_name: str | None = None) -> None:
        """Raise when the worker rejects ``data`` or does not answer in time."""
        label = file_name or "font data"
        with self._lock:
            conn = self._ensure_worker()
            request_id = next(self._ids)
            try:
                conn.send((request_id, bytes(data)))
                while True:
                    if not conn.poll(self.timeout):
                        logger.warning("Timed out validating %s; recycling worker.", label)
                        self._discard()
                        raise FontValidationTimeout(f"Font validation timed out for {label}.")
                    answer_id, ok, error = conn.recv()
                    if answer_id == request_id:
                        break
                    logger.debug("Dropping stale validation answer %s.", answer_id)
            except (EOFError, OSError) as exc:
                self._discard()
                raise FontValidationError(f"Worker error while validating {label}: {exc}") from exc
        if not ok:
            raise FontValidationError(f"Worker validation failed for {label}: {error}")

    def load_bytes(self, data: bytes, file_name: str | None = None) -> ParsedFont:
        """Validate ``data`` out of process, then parse it in this process."""
        self.validate(data, file_name)
        return parse_font_bytes(data, file_name)

    def load_file(self, path: Path | str) -> ParsedFont:
        source = Path(path)
        try:
            data = source.read_bytes()
        except OSError as exc:
            raise FontParseError(f"Unable to read font file '{source}': {exc}") from exc
        return self.load_bytes(data, source.name)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None and self.worker_alive:
                try:
                    self._conn.send(None)
                except (BrokenPipeError, OSError):
                    pass
            self._discard()

    def __enter__(self) -> SafeFontLoader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["DEFAULT_TIMEOUT", "SafeFontLoader"]
