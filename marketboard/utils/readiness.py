# marketboard/utils/readiness.py
from __future__ import annotations

import time
from typing import Any, Dict, Optional

from marketboard.utils.time import to_utc_datetime

# data is stale if age > STALE_MULTIPLIER * polling interval
STALE_MULTIPLIER_DEFAULT = 2.5


def data_staleness(
    last_updated: Any,
    polling_ms: Optional[int],
    now_ts: float | None = None,
    stale_multiplier: float = STALE_MULTIPLIER_DEFAULT,
) -> Dict[str, Any]:
    """
    Age of the current row snapshot against the polling cadence.

    Output:
      age_s, allowed_age_s, stale, stale_by_s, never_updated

    With no snapshot yet, the data counts as stale only once polling has had
    time to produce one, so callers decide that from never_updated.
    """
    now = float(now_ts) if now_ts is not None else time.time()
    allowed_age_s = (polling_ms / 1000.0) * stale_multiplier if polling_ms and polling_ms > 0 else None

    dt = to_utc_datetime(last_updated)
    age_s = max(0.0, now - dt.timestamp()) if dt is not None else None

    stale = False
    stale_by_s = 0.0
    if allowed_age_s is not None and age_s is not None and age_s > allowed_age_s:
        stale = True
        stale_by_s = age_s - allowed_age_s

    return {
        "age_s": age_s,
        "allowed_age_s": allowed_age_s,
        "stale": stale,
        "stale_by_s": stale_by_s,
        "stale_multiplier": stale_multiplier,
        "never_updated": dt is None,
    }
