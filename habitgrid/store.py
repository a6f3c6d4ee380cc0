# habitgrid/store.py
# Tiny data access helpers (Supabase). Every query is scoped to one user.
import logging
from datetime import date
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from habitgrid.timeutils import to_stored_time
from habitgrid.validation import (
    ValidationError,
    missing_keys,
    validate_activity,
    validate_activity_type,
    validate_plan,
)

ACTIVITY_WITH_TYPE = "*, activity_type:activity_types(*)"


class StoreError(RuntimeError):
    """A Supabase call failed; 'operation' names what we were doing."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


def _execute(operation: str, query) -> List[Dict]:
    try:
        resp = query.execute()
    except Exception as e:
        logging.exception("Supabase %s failed", operation)
        raise StoreError(operation, e) from e
    return resp.data or []


def _one(operation: str, query) -> Optional[Dict]:
    rows = _execute(operation, query)
    return rows[0] if rows else None


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise ValueError("user_id is required")
    return str(user_id)


def _with_stored_times(row: Dict, day: date, tz: ZoneInfo) -> Dict:
    # start_time/end_time columns are timestamptz: clock strings become UTC instants on day
    errors = {}
    for key in ("start_time", "end_time"):
        try:
            row[key] = to_stored_time(day, row[key], tz)
        except ValueError:
            errors[key] = "Must be a clock time or timestamp"
    if errors:
        raise ValidationError(errors)
    return row


# -----------------------
# Activities
# -----------------------
def load_activities(supabase: Any, user_id: str, day: date) -> List[Dict]:
    """One day's activities (with their joined type), earliest first."""
    user_id = _require_user(user_id)
    data = _execute(
        "load_activities",
        supabase.table("activities").select(ACTIVITY_WITH_TYPE)
        .eq("user_id", user_id)
        .eq("date", day.isoformat())
        .order("start_time"),
    )
    logging.info("Fetched %s activit(ies) for %s on %s", len(data), user_id, day)
    return data


def load_activities_between(supabase: Any, user_id: str, start: date, end: date) -> List[Dict]:
    if end < start:
        raise ValueError(f"date range ends before it starts: {start} > {end}")
    user_id = _require_user(user_id)
    data = _execute(
        "load_activities_between",
        supabase.table("activities").select(ACTIVITY_WITH_TYPE)
        .eq("user_id", user_id)
        .gte("date", start.isoformat())
        .lte("date", end.isoformat()),
    )
    logging.info("Fetched %s activit(ies) for %s between %s and %s", len(data), user_id, start, end)
    return data


def add_activity(supabase: Any, user_id: str, day: date, data: Dict) -> Optional[Dict]:
    row = validate_activity(data)
    row.update({"user_id": _require_user(user_id), "date": day.isoformat()})
    return _one("add_activity", supabase.table("activities").insert([row]))


def update_activity(supabase: Any, user_id: str, activity_id: str, day: date, data: Dict, tz: ZoneInfo) -> Optional[Dict]:
    row = _with_stored_times(validate_activity(data), day, tz)
    return _one(
        "update_activity",
        supabase.table("activities").update(row)
        .eq("id", activity_id)
        .eq("user_id", _require_user(user_id)),
    )


def delete_activity(supabase: Any, user_id: str, activity_id: str) -> int:
    deleted = _execute(
        "delete_activity",
        supabase.table("activities").delete()
        .eq("id", activity_id)
        .eq("user_id", _require_user(user_id)),
    )
    logging.info("Deleted %s activit(ies) with id %s", len(deleted), activity_id)
    return len(deleted)


# -----------------------
# Activity types
# -----------------------
def load_activity_types(supabase: Any, user_id: str) -> List[Dict]:
    data = _execute(
        "load_activity_types",
        supabase.table("activity_types").select("*")
        .eq("user_id", _require_user(user_id))
        .order("name"),
    )
    logging.info("Fetched %s activity type(s) for %s", len(data), user_id)
    return data


def add_activity_type(supabase: Any, user_id: str, data: Dict) -> Optional[Dict]:
    row = validate_activity_type(data)
    row["user_id"] = _require_user(user_id)
    return _one("add_activity_type", supabase.table("activity_types").insert([row]))


def update_activity_type(supabase: Any, user_id: str, type_id: str, data: Dict) -> Optional[Dict]:
    row = validate_activity_type(data)
    return _one(
        "update_activity_type",
        supabase.table("activity_types").update(row)
        .eq("id", type_id)
        .eq("user_id", _require_user(user_id)),
    )


def delete_activity_type(supabase: Any, user_id: str, type_id: str) -> int:
    deleted = _execute(
        "delete_activity_type",
        supabase.table("activity_types").delete()
        .eq("id", type_id)
        .eq("user_id", _require_user(user_id)),
    )
    return len(deleted)


# -----------------------
# Plans
# -----------------------
def load_plans(supabase: Any, user_id: str, day: date) -> List[Dict]:
    user_id = _require_user(user_id)
    data = _execute(
        "load_plans",
        supabase.table("plans").select("*")
        .eq("date", day.isoformat())
        .eq("user_id", user_id),
    )
    logging.info("Fetched %s plan(s) for %s on %s", len(data), user_id, day)
    return data


def add_plan(supabase: Any, user_id: str, day: date, data: Dict, tz: ZoneInfo) -> Optional[Dict]:
    row = _with_stored_times(validate_plan(data), day, tz)
    # new plans always start unfinished
    row.update({"date": day.isoformat(), "user_id": _require_user(user_id), "is_finished": False})
    return _one("add_plan", supabase.table("plans").insert([row]))


def update_plan(supabase: Any, user_id: str, plan_id: str, day: date, data: Dict, tz: ZoneInfo) -> Optional[Dict]:
    row = _with_stored_times(validate_plan(data), day, tz)
    return _one(
        "update_plan",
        supabase.table("plans").update(row)
        .eq("id", plan_id)
        .eq("user_id", _require_user(user_id)),
    )


def delete_plan(supabase: Any, user_id: str, plan_id: str) -> int:
    deleted = _execute(
        "delete_plan",
        supabase.table("plans").delete()
        .eq("id", plan_id)
        .eq("user_id", _require_user(user_id)),
    )
    return len(deleted)


def toggle_plan(supabase: Any, user_id: str, plan: Dict) -> Optional[Dict]:
    missing = missing_keys(plan, ["id"])
    if missing:
        raise ValueError(f"Missing required keys on plan: {missing}")
    return _one(
        "toggle_plan",
        supabase.table("plans").update({"is_finished": not plan.get("is_finished", False)})
        .eq("id", plan["id"])
        .eq("user_id", _require_user(user_id)),
    )
