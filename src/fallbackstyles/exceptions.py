"""Exception hierarchy for font ingestion and configuration handling."""

from __future__ import annotations


class FallbackStylesError(RuntimeError):
    """Base exception for every failure raised by the engine."""


class FontParseError(FallbackStylesError):
    """Raised when a font binary cannot be parsed."""


class FontValidationError(FontParseError):
    """Raised when the sandboxed validation worker rejects a font binary."""


class FontValidationTimeout(FontValidationError):
    """Raised when the validation worker does not answer in time."""


class ConfigFormatError(FallbackStylesError):
    """Raised when a configuration document is neither versioned nor legacy."""


class SettingsError(FallbackStylesError):
    """Raised when the engine settings file is invalid."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigFormatError",
    "FallbackStylesError",
    "FontParseError",
    "FontValidationError",
    "FontValidationTimeout",
    "SettingsError",
    "exception_hint",
    "exception_messages",
]
