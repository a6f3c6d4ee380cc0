"""
Railway server for HabitGrid.
Provides an HTTP API over the day-grid layout and activity statistics.
"""
import logging
import os
from datetime import datetime

from flask import Flask, jsonify, request
from supabase import create_client

from habitgrid.layout import layout_items
from habitgrid.planner import build_day_view
from habitgrid.settings import DisplayWindow, load_env_files, load_settings
from habitgrid.stats import activity_stats, summarize
from habitgrid.store import StoreError, add_plan, load_activities_between
from habitgrid.timeutils import drag_range

load_env_files()
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO"), logging.INFO),
    format="%(asctime)s %(levelname)s %(message)s",
)

app = Flask(__name__)


def get_supabase(settings):
    return create_client(settings.supabase_url, settings.supabase_key)


def _error(message, status):
    return jsonify({'ok': False, 'error': message}), status


def _parse_day(value, field):
    if not value:
        raise ValueError(f"Missing required field: {field}")
    return datetime.strptime(value, "%Y-%m-%d").date()


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({'status': 'ok', 'service': 'habitgrid'})


@app.route('/layout', methods=['POST'])
def layout():
    """
    Lay out posted items; no store access.
    Expects JSON: { "items": [...], "window": {"startTime": ..., "endTime": ...}, "timezone": "..." }
    """
    data = request.get_json(silent=True) or {}
    items = data.get('items')
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        return _error('Missing required field: items', 400)
    try:
        settings = load_settings(data.get('timezone'))
        if data.get('window'):
            settings.window = DisplayWindow.from_record(data['window'])
    except (ValueError, KeyError, TypeError) as e:
        return _error(f'Invalid window: {e}', 400)

    return jsonify({'ok': True, 'items': layout_items(items, settings.window, settings.tz)})


@app.route('/days/<day>', methods=['GET'])
def day_view(day):
    """Day view for one user: /days/2025-06-02?user_id=<uuid>"""
    try:
        run_date = _parse_day(day, 'date')
        user_id = request.args.get('user_id')
        if not user_id:
            raise ValueError('Missing required field: user_id')
        settings = load_settings(request.args.get('timezone'))
        if request.args.get('start') or request.args.get('end'):
            settings.window = DisplayWindow(
                request.args.get('start', settings.window.start_time),
                request.args.get('end', settings.window.end_time),
            )
    except ValueError as e:
        return _error(str(e), 400)

    if not settings.has_credentials:
        return _error('Missing Supabase credentials in environment', 500)
    try:
        view = build_day_view(get_supabase(settings), user_id, run_date, settings)
    except StoreError as e:
        return _error(str(e), 500)
    return jsonify({'ok': True, **view})


@app.route('/days/<day>/plans', methods=['POST'])
def create_plan(day):
    """
    Add a plan to one day.
    Expects JSON: { "user_id": "uuid", "plan_name": "...", and either
    "start_slot"/"end_slot" (a dragged slot range) or "start_time"/"end_time" }
    """
    data = request.get_json(silent=True) or {}
    try:
        run_date = _parse_day(day, 'date')
        user_id = data.get('user_id')
        if not user_id:
            raise ValueError('Missing required field: user_id')
        plan = {k: data.get(k) for k in ('plan_name', 'start_time', 'end_time', 'is_finished') if k in data}
        if data.get('start_slot') and data.get('end_slot'):
            plan['start_time'], plan['end_time'] = drag_range(data['start_slot'], data['end_slot'])
        settings = load_settings(data.get('timezone'))
        if not settings.has_credentials:
            return _error('Missing Supabase credentials in environment', 500)
        created = add_plan(get_supabase(settings), user_id, run_date, plan, settings.tz)
    except ValueError as e:
        return _error(str(e), 400)
    except StoreError as e:
        return _error(str(e), 500)
    return jsonify({'ok': True, 'plan': created}), 201


@app.route('/stats', methods=['GET'])
def stats():
    """Hours per activity type: /stats?user_id=<uuid>&from=YYYY-MM-DD&to=YYYY-MM-DD"""
    try:
        user_id = request.args.get('user_id')
        if not user_id:
            raise ValueError('Missing required field: user_id')
        start = _parse_day(request.args.get('from'), 'from')
        end = _parse_day(request.args.get('to'), 'to') if request.args.get('to') else start
        settings = load_settings(request.args.get('timezone'))
        if not settings.has_credentials:
            return _error('Missing Supabase credentials in environment', 500)
        rows = load_activities_between(get_supabase(settings), user_id, start, end)
    except ValueError as e:
        return _error(str(e), 400)
    except StoreError as e:
        return _error(str(e), 500)

    return jsonify({'ok': True, 'from': start.isoformat(), 'to': end.isoformat(),
                    **summarize(activity_stats(rows, settings.tz))})


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 8000))
    app.run(host='0.0.0.0', port=port)
