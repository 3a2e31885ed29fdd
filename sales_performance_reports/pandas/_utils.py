"""Shared utilities for pandas conversion operations."""

from decimal import Decimal
from typing import Any

import numpy as np


def decimal_to_float(value: Decimal | None) -> float | None:
    """Convert Decimal to float for pandas compatibility; ``None`` passes through."""
    if value is None:
        return None
    return float(value)


def to_python_scalar(value: Any) -> Any:
    """Unwrap numpy scalars produced by ``DataFrame.to_dict("records")``.

    Example:
        >>> import numpy as np
        >>> to_python_scalar(np.int64(3))
        3
    """
    if isinstance(value, np.generic):
        return value.item()
    return value


def require_columns(df, required: list[str], what: str) -> None:
    """Raise ValueError when ``df`` lacks any of ``required``."""
    missing_cols = set(required) - set(df.columns)
    if missing_cols:
        raise ValueError(f"{what} DataFrame missing required columns: {sorted(missing_cols)}")
