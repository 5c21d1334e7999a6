"""Result-limit parsing shared by the recommendation endpoints."""

import math
from typing import Any


def clamp_limit(raw: Any, default: int, maximum: int) -> int:
    """Coerce a client-supplied limit into ``[1, maximum]``.

    Missing or non-numeric values fall back to *default*; fractional values
    are truncated.
    """
    if raw is None or isinstance(raw, bool):
        value = float(default)
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError):
            value = float(default)
        if math.isnan(value):
            value = float(default)
    value = min(max(value, 1.0), float(maximum))
    return int(value)
