# habitgrid/planner.py
# Builds the day view: both grid columns (plans, activities) laid out for the
# current display window, plus the visible slot labels.
import logging
from datetime import date
from typing import Any, Dict, List

from habitgrid.layout import layout_items
from habitgrid.settings import Settings
from habitgrid.store import load_activities, load_plans
from habitgrid.timeutils import format_time_for_display, slots_between


def _with_display_times(rows: List[Dict[str, Any]], settings: Settings) -> List[Dict[str, Any]]:
    for row in rows:
        row["start_display"] = format_time_for_display(row.get("start_time"), settings.tz)
        row["end_display"] = format_time_for_display(row.get("end_time"), settings.tz)
        activity_type = row.get("activity_type")
        if activity_type and "color" not in row:
            row["color"] = activity_type.get("color")
    return rows


def plan_day(
    activities: List[Dict[str, Any]],
    plans: List[Dict[str, Any]],
    settings: Settings,
) -> Dict[str, Any]:
    """Pure part of the day view; no store access."""
    window = settings.window
    return {
        "timezone": settings.tz_name,
        "window": window.to_record(),
        "slots": slots_between(window.start_time, window.end_time),
        "activities": _with_display_times(layout_items(activities, window, settings.tz), settings),
        "plans": _with_display_times(layout_items(plans, window, settings.tz), settings),
    }


def build_day_view(supabase: Any, user_id: str, day: date, settings: Settings) -> Dict[str, Any]:
    activities = load_activities(supabase, user_id, day)
    plans = load_plans(supabase, user_id, day)
    view = plan_day(activities, plans, settings)
    view["date"] = day.isoformat()
    logging.info(
        "Day view %s: %s/%s activit(ies), %s/%s plan(s) visible",
        day, len(view["activities"]), len(activities), len(view["plans"]), len(plans),
    )
    return view
