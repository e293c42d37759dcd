"""Utility modules for cross-cutting concerns."""

from utils.timezone import (
    now_utc,
    now_local,
    to_local,
    coerce_datetime,
    start_of_day,
    end_of_day,
    ms_until_next_midnight,
)
from utils.fields import pick_string, resolve_address, address_display, person_name
