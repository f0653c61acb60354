"""Wall-clock helper shared by the services."""

from __future__ import annotations

import datetime


def now_ts() -> int:
    """Current UTC time as whole epoch seconds."""
    return int(datetime.datetime.now(datetime.UTC).timestamp())
