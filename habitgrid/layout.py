# habitgrid/layout.py
# Lays out a day's activities or plans on the 30-minute grid:
#   - which items are visible in the display window
#   - which side-by-side column each overlapping item gets
#   - pixel top/height relative to the window start
# Rows are plain dicts (as returned by Supabase); nothing here mutates them.
import logging
import math
from typing import Any, Dict, List
from zoneinfo import ZoneInfo

from habitgrid.settings import DisplayWindow
from habitgrid.timeutils import END_OF_DAY_MINUTES, MINUTES_PER_DAY, SLOT_MINUTES, to_minutes

SLOT_HEIGHT_PX = 40
COLUMN_WIDTH_PX = 80


def _span(item: Dict[str, Any], tz: ZoneInfo) -> tuple:
    return to_minutes(item.get("start_time"), tz), to_minutes(item.get("end_time"), tz)


def assign_columns(items: List[Dict[str, Any]], tz: ZoneInfo) -> List[Dict[str, Any]]:
    """
    Give every item a 'column' so that overlapping items sit side by side.

    Items are walked in start order (stable for equal starts). Each one joins
    the first group holding a member it overlaps, taking the next column in
    that group; otherwise it opens a new group at column 0. Groups are never
    merged, so an item bridging two groups only joins the earlier one.
    """
    spans = [_span(item, tz) for item in items]
    order = sorted(range(len(items)), key=lambda i: spans[i][0])

    groups: List[List[int]] = []
    positioned: List[Dict[str, Any]] = []
    for i in order:
        start, end = spans[i]
        found = None
        for group in groups:
            # half-open: touching endpoints do not overlap
            if any(start < spans[j][1] and end > spans[j][0] for j in group):
                found = group
                break
        if found is None:
            found = []
            groups.append(found)

        placed = dict(items[i])
        placed["column"] = len(found)
        placed["total_columns"] = 1
        found.append(i)
        positioned.append(placed)

    logging.debug("Assigned columns for %s item(s) in %s group(s)", len(positioned), len(groups))
    return positioned


def compute_position(item: Dict[str, Any], window: DisplayWindow, tz: ZoneInfo) -> Dict[str, int]:
    start, end = _span(item, tz)
    win_start = to_minutes(window.start_time, tz)
    win_end = to_minutes(window.end_time, tz)

    if end == END_OF_DAY_MINUTES:
        # runs to end of day: stop at the window's own end
        eff_end = win_end
    elif end < start:
        eff_end = min(end + MINUTES_PER_DAY, win_end)
    else:
        eff_end = min(end, win_end)
    eff_start = max(start, win_start)

    relative_start = eff_start - win_start
    duration = eff_end - eff_start
    return {
        "top": math.floor(relative_start / SLOT_MINUTES) * SLOT_HEIGHT_PX,
        "height": max(SLOT_HEIGHT_PX, math.ceil(duration / SLOT_MINUTES) * SLOT_HEIGHT_PX),
    }


def is_visible(item: Dict[str, Any], window: DisplayWindow, tz: ZoneInfo) -> bool:
    # overnight items are not special-cased here
    start, end = _span(item, tz)
    return start < to_minutes(window.end_time, tz) and end > to_minutes(window.start_time, tz)


def layout_items(items: List[Dict[str, Any]], window: DisplayWindow, tz: ZoneInfo) -> List[Dict[str, Any]]:
    """Filter to the window, assign columns, then add pixel geometry."""
    visible = [item for item in items if is_visible(item, window, tz)]
    hidden = len(items) - len(visible)
    if hidden:
        logging.info("Layout: %s item(s) outside %s-%s", hidden, window.start_time, window.end_time)

    positioned = assign_columns(visible, tz)
    for placed in positioned:
        placed.update(compute_position(placed, window, tz))
        placed["left"] = placed["column"] * COLUMN_WIDTH_PX
    return positioned
