"""CLI command implementations exposed via `fallbackstyles.cli`."""

from __future__ import annotations

from .check import check
from .coverage import coverage
from .css import css
from .languages import languages
from .stack import stack


__all__ = ["check", "coverage", "css", "languages", "stack"]
