from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from .exceptions import PayloadParseError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_epoch_time(value: Any) -> datetime:
    """
    Parse a JSON epoch-seconds value into an aware UTC datetime.

    Integers are taken as-is, floats are truncated toward zero.
    Anything else (including booleans) raises PayloadParseError.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadParseError(
            f"epoch time must be a JSON number, got {type(value).__name__}"
        )

    if isinstance(value, float):
        if not math.isfinite(value):
            raise PayloadParseError(f"epoch time is not finite: {value!r}")
        seconds = math.trunc(value)
    else:
        seconds = value

    try:
        return EPOCH + timedelta(seconds=seconds)
    except OverflowError as exc:
        raise PayloadParseError(f"epoch time out of range: {value!r}") from exc

