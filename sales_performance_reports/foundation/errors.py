"""Exception taxonomy for report builds.

Row-level errors (:class:`MissingReferenceError`, :class:`InvalidRecordError`)
describe a single fact row that cannot take part in aggregation. The
aggregator excludes such rows and counts them instead of failing the build.
:class:`ConfigurationError` is fatal and raised before any computation.
"""

from __future__ import annotations

from typing import Any


class ReportError(Exception):
    """Base class for all report build errors."""


class RowError(ReportError):
    """A fact row that must be excluded from aggregation."""

    def __init__(self, message: str, *, index: int, key: Any = None) -> None:
        super().__init__(message)
        self.index = index
        self.key = key


class MissingReferenceError(RowError):
    """Fact row references a customer/product key absent from the dimension."""


class InvalidRecordError(RowError):
    """Fact row carries a negative quantity or sales amount."""


class ConfigurationError(ReportError, ValueError):
    """Report configuration is unusable (e.g. unordered revenue thresholds)."""
