from __future__ import annotations

import math
from typing import Any, Optional


def to_number(value: Any) -> Optional[float]:
    """
    Best-effort numeric coercion of an upstream JSON value.
    Returns None for absent, non-numeric or non-finite values.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return float(value)

    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            out = float(s)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(out):
        return None
    return out


def number_or(value: Any, default: float = 0.0) -> float:
    out = to_number(value)
    return default if out is None else out


def opt_str(value: Any) -> Optional[str]:
    """Falsy -> None, anything else -> str."""
    if not value:
        return None
    return str(value)
