# habitgrid/stats.py
import logging
from typing import Any, Dict, List
from zoneinfo import ZoneInfo

import pandas as pd

from habitgrid.timeutils import duration_hours, to_minutes
from habitgrid.validation import DEFAULT_COLOR


def activity_stats(activities: List[Dict[str, Any]], tz: ZoneInfo) -> List[Dict[str, Any]]:
    """
    Hours spent per activity type.
    Activities without a joined type are skipped; overnight activities wrap
    past midnight. Types with no time at all are dropped, then
    totals are rounded to the nearest half hour.
    """
    rows = []
    skipped = 0
    for activity in activities:
        activity_type = activity.get("activity_type")
        if not activity_type:
            skipped += 1
            continue
        rows.append({
            "type": activity_type.get("name") or "Unknown",
            "color": activity_type.get("color") or DEFAULT_COLOR,
            "duration": duration_hours(
                to_minutes(activity.get("start_time"), tz),
                to_minutes(activity.get("end_time"), tz),
            ),
        })
    if skipped:
        logging.info("Stats: skipped %s activit(ies) without a type", skipped)
    if not rows:
        return []

    df = pd.DataFrame(rows)
    # first color seen for a type wins
    totals = df.groupby("type", sort=False).agg(duration=("duration", "sum"), color=("color", "first")).reset_index()
    # drop empty types before rounding, so a short type still shows as 0.0h
    totals = totals[totals["duration"] > 0].copy()
    # half-up rounding to 0.5h (Series.round would round half to even)
    totals["duration"] = (totals["duration"] * 2 + 0.5) // 1 / 2
    totals = totals.sort_values("duration", ascending=False, kind="stable")
    return [
        {"type": r["type"], "duration": float(r["duration"]), "color": r["color"]}
        for r in totals.to_dict(orient="records")
    ]


def summarize(stats: List[Dict[str, Any]]) -> Dict[str, Any]:
    total = sum(s["duration"] for s in stats)
    return {"total_hours": total, "types": stats}
