# habitgrid/timeutils.py
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Tuple, Union
from zoneinfo import ZoneInfo

UTC_TIMEZONE = ZoneInfo("UTC")

SLOT_MINUTES = 30
MINUTES_PER_DAY = 24 * 60
END_OF_DAY_SLOT = "11:59 PM"
END_OF_DAY_MINUTES = MINUTES_PER_DAY - 1

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


# -----------------------
# Time values
# -----------------------
@dataclass(frozen=True)
class ClockTime:
    """A wall-clock time of day, already reduced to minutes since midnight."""
    minutes: int


@dataclass(frozen=True)
class Instant:
    """A full timestamp (tz-aware once parsed)."""
    value: datetime


TimeValue = Union[ClockTime, Instant]


def _parse_clock(text: str) -> ClockTime:
    m = _CLOCK_RE.match(text)
    if not m:
        raise ValueError(f"not a 12-hour clock time: {text!r}")
    hours, minutes, period = int(m.group(1)), int(m.group(2)), m.group(3).upper()
    if not 1 <= hours <= 12 or minutes > 59:
        raise ValueError(f"clock time out of range: {text!r}")
    if text.strip().upper() == END_OF_DAY_SLOT:
        return ClockTime(END_OF_DAY_MINUTES)
    hours24 = hours % 12
    if period == "PM":
        hours24 += 12
    return ClockTime(hours24 * 60 + minutes)


def _parse_instant(text: str) -> Instant:
    # Supabase returns "...Z" or "+00:00"; naive strings are taken as UTC
    dt_value = datetime.fromisoformat(text.strip().replace("Z", "+00:00"))
    if dt_value.tzinfo is None:
        dt_value = dt_value.replace(tzinfo=UTC_TIMEZONE)
    return Instant(dt_value)


def parse_time(value: Union[str, datetime, TimeValue]) -> TimeValue:
    """
    Resolve a raw time field into ClockTime or Instant.
    Full timestamps are told apart from clock strings by their 'T' separator.
    Raises ValueError on anything else.
    """
    if isinstance(value, (ClockTime, Instant)):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC_TIMEZONE)
        return Instant(value)
    if not isinstance(value, str):
        raise ValueError(f"unsupported time value: {value!r}")
    if "T" in value:
        return _parse_instant(value)
    return _parse_clock(value)


def minutes_of(value: TimeValue, tz: ZoneInfo) -> int:
    if isinstance(value, ClockTime):
        return value.minutes
    local = value.value.astimezone(tz)
    return local.hour * 60 + local.minute


def to_minutes(value, tz: ZoneInfo) -> int:
    """
    Minutes since local midnight in [0, 1439].
    Never raises: malformed or legacy values come back as 0.
    """
    try:
        return minutes_of(parse_time(value), tz)
    except (ValueError, TypeError, OverflowError) as e:
        logging.debug("Unparseable time %r, using 0: %s", value, e)
        return 0


# -----------------------
# Formatting & conversion
# -----------------------
def format_clock(minutes: int) -> str:
    hours, mins = divmod(int(minutes) % MINUTES_PER_DAY, 60)
    period = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12}:{mins:02d} {period}"


def format_time_for_display(value, tz: ZoneInfo) -> str:
    """Render a stored time (instant or clock string) as 'h:mm AM' in tz."""
    return format_clock(to_minutes(value, tz))


def convert_to_utc(base_date: date, clock: str, tz: ZoneInfo) -> datetime:
    # e.g. 2025-06-02 + "9:00 AM" in Europe/London -> 2025-06-02T08:00:00+00:00
    minutes = _parse_clock(clock).minutes
    local = datetime.combine(base_date, time(minutes // 60, minutes % 60), tzinfo=tz)
    return local.astimezone(UTC_TIMEZONE)


def to_stored_time(base_date: date, value, tz: ZoneInfo) -> str:
    """
    Value to write to a timestamptz column: clock strings become the UTC
    instant on base_date in tz, full timestamps pass through unchanged.
    """
    parsed = parse_time(value)
    if isinstance(parsed, ClockTime):
        return convert_to_utc(base_date, value, tz).isoformat()
    return value if isinstance(value, str) else parsed.value.isoformat()


def duration_hours(start_minutes: int, end_minutes: int) -> float:
    if end_minutes < start_minutes:
        end_minutes += MINUTES_PER_DAY
    return (end_minutes - start_minutes) / 60


# -----------------------
# Slot grid
# -----------------------
def time_slots() -> List[str]:
    """48 half-hour slots from 12:00 AM, then the 11:59 PM sentinel."""
    slots = [format_clock(i * SLOT_MINUTES) for i in range(MINUTES_PER_DAY // SLOT_MINUTES)]
    slots.append(END_OF_DAY_SLOT)
    return slots


def slot_index(clock: str) -> int:
    """Position of clock in time_slots(); ValueError if it is not a slot."""
    minutes = _parse_clock(clock).minutes
    if minutes == END_OF_DAY_MINUTES:
        return MINUTES_PER_DAY // SLOT_MINUTES
    if minutes % SLOT_MINUTES:
        raise ValueError(f"{clock!r} is not on the {SLOT_MINUTES}-minute grid")
    return minutes // SLOT_MINUTES


def slots_between(start: str, end: str) -> List[str]:
    return time_slots()[slot_index(start):slot_index(end) + 1]


def drag_range(start_slot: str, end_slot: str) -> Tuple[str, str]:
    """
    Turn a dragged slot range into (start, end) clock strings.
    The end is the slot after the last one dragged over, or the last slot
    itself when the drag reaches the end of the grid.
    """
    slots = time_slots()
    first, last = sorted((slot_index(start_slot), slot_index(end_slot)))
    end_idx = last + 1 if last + 1 < len(slots) else last
    return slots[first], slots[end_idx]
