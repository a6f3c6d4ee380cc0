# habitgrid/day_main.py
import argparse
import json
import logging
import os
import sys
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from supabase import create_client

from habitgrid.planner import build_day_view
from habitgrid.settings import DisplayWindowStore, Settings, load_env_files, load_settings, mask_secret
from habitgrid.stats import activity_stats, summarize
from habitgrid.store import StoreError, load_activities_between


# -----------------------
# Helpers
# -----------------------
def _assert_required_env(settings: Settings) -> None:
    """
    Prints masked credentials so you can confirm which config is in use,
    then exits with status 2 if any are missing.
    """
    print("\n[HabitGrid Env Preflight]")
    print(f"  SUPABASE_URL: {mask_secret(settings.supabase_url)}")
    print(f"  SUPABASE key: {mask_secret(settings.supabase_key)}")
    print(f"  Timezone:     {settings.tz_name}")

    missing = []
    if not settings.supabase_url:
        missing.append("SUPABASE_URL")
    if not settings.supabase_key:
        missing.append("SUPABASE_SERVICE_ROLE_KEY or SUPABASE_SERVICE_KEY")
    if missing:
        print(
            "\nERROR: Missing required environment variables.\n"
            f"Please set {', '.join(missing)} in your environment (.env, .env.dev, etc.).\n"
        )
        sys.exit(2)
    print("[Env OK]\n")


def resolve_date(value: Optional[str], settings: Settings) -> date:
    if not value or value.lower() == "today":
        return datetime.now(settings.tz).date()
    return datetime.strptime(value, "%Y-%m-%d").date()


def _print_column(title: str, rows: List[Dict[str, Any]], name_key: str) -> None:
    print(f"{title} ({len(rows)})")
    for row in rows:
        print(
            f"  [col {row['column']}] {row['start_display']:>8} - {row['end_display']:<8} "
            f"{row.get(name_key) or 'Untitled'}  (top={row['top']}px height={row['height']}px)"
        )


def print_day_view(view: Dict[str, Any]) -> None:
    window = view["window"]
    print(f"=== {view['date']} ({window['startTime']} - {window['endTime']}, {view['timezone']}) ===")
    _print_column("Plans", view["plans"], "plan_name")
    _print_column("Activities", view["activities"], "activity_name")


# -----------------------
# CLI
# -----------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="habitgrid",
        description="Show a day's activities and plans on the time grid, or activity statistics.",
    )
    p.add_argument("--date", help="Day in YYYY-MM-DD (default: 'today' in the timezone).", default=None)
    p.add_argument("--user", help="Owning user_id.", default=os.getenv("HABITGRID_USER_ID"))
    p.add_argument("--timezone", help="IANA timezone (default: HABITGRID_TZ / TZ / Europe/London).", default=None)
    p.add_argument("--start", help="Display window start slot, e.g. '7:00 AM'.", default=None)
    p.add_argument("--end", help="Display window end slot, e.g. '10:00 PM'.", default=None)
    p.add_argument("--save-window", help="Persist --start/--end for later runs.", action="store_true", default=False)
    p.add_argument("--stats-from", help="Statistics range start (YYYY-MM-DD).", default=None)
    p.add_argument("--stats-to", help="Statistics range end (YYYY-MM-DD, default: --stats-from).", default=None)
    p.add_argument("--json", help="Print JSON instead of text.", action="store_true", default=False)
    return p.parse_args(argv)


# -----------------------
# Main
# -----------------------
def main(argv: Optional[List[str]] = None) -> int:
    load_env_files()
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO"), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    settings = load_settings(args.timezone)
    try:
        if args.start:
            settings.window = settings.window.with_start(args.start)
        if args.end:
            settings.window = settings.window.with_end(args.end)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2
    if args.save_window:
        DisplayWindowStore(settings.state_file).save(settings.window)

    _assert_required_env(settings)
    if not args.user:
        print("ERROR: --user (or HABITGRID_USER_ID) is required.")
        return 2

    sb = create_client(settings.supabase_url, settings.supabase_key)
    logging.info("Supabase client created.")

    try:
        if args.stats_from:
            start = resolve_date(args.stats_from, settings)
            end = resolve_date(args.stats_to, settings) if args.stats_to else start
            rows = load_activities_between(sb, args.user, start, end)
            summary = summarize(activity_stats(rows, settings.tz))
            if args.json:
                print(json.dumps(summary, indent=2))
            else:
                print(f"=== Activity stats {start} .. {end} ({summary['total_hours']}h) ===")
                for stat in summary["types"]:
                    print(f"  {stat['type']:<24} {stat['duration']:>5}h  {stat['color']}")
            return 0

        view = build_day_view(sb, args.user, resolve_date(args.date, settings), settings)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2
    except StoreError as e:
        logging.error("%s", e)
        return 1

    if args.json:
        print(json.dumps(view, indent=2, default=str))
    else:
        print_day_view(view)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        logging.exception("Runner crashed")
        sys.exit(1)
