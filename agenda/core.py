# agenda/core.py

from datetime import datetime, timedelta
from typing import Tuple


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    return start_a < end_b and start_b < end_a


def occupied_window(at: datetime, half_width: timedelta) -> Tuple[datetime, datetime]:
    """The span around an appointment's start that counts as busy."""
    return at - half_width, at + half_width
