# habitgrid/settings.py
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from habitgrid.timeutils import slot_index

DEFAULT_TZ = "Europe/London"
DEFAULT_START_TIME = "7:00 AM"
DEFAULT_END_TIME = "10:00 PM"
DEFAULT_STATE_FILE = Path.home() / ".habitgrid" / "display_times.json"


def load_env_files() -> None:
    # .env then .env.dev; neither overrides variables already in the process env
    load_dotenv()
    load_dotenv(".env.dev")


def _get_env(*names, default=None):
    for name in names:
        # check as-is, UPPER, and lower
        for variant in (name, name.upper(), name.lower()):
            val = os.getenv(variant)
            if val:
                return val
    return default


def mask_secret(value: Optional[str], keep_start: int = 6, keep_end: int = 4) -> str:
    if not value:
        return "<missing>"
    if len(value) <= keep_start + keep_end:
        return value[0:1] + "…"
    return f"{value[:keep_start]}…{value[-keep_end:]}"


# -----------------------
# Display window
# -----------------------
@dataclass(frozen=True)
class DisplayWindow:
    """Visible part of the day, as two grid slots ('7:00 AM', '10:00 PM')."""
    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME

    def __post_init__(self):
        if slot_index(self.start_time) > slot_index(self.end_time):
            raise ValueError(f"display window starts after it ends: {self.start_time} > {self.end_time}")

    def with_start(self, start_time: str) -> "DisplayWindow":
        return DisplayWindow(start_time, self.end_time)

    def with_end(self, end_time: str) -> "DisplayWindow":
        return DisplayWindow(self.start_time, end_time)

    def to_record(self) -> dict:
        return {"startTime": self.start_time, "endTime": self.end_time}

    @classmethod
    def from_record(cls, record: dict) -> "DisplayWindow":
        return cls(record["startTime"], record["endTime"])


class DisplayWindowStore:
    """Persists the display window between sessions as a small JSON record."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_STATE_FILE

    def load(self) -> DisplayWindow:
        if not self.path.exists():
            return DisplayWindow()
        try:
            record = json.loads(self.path.read_text(encoding="utf-8"))
            return DisplayWindow.from_record(record)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logging.warning("Ignoring unreadable display window file %s: %s", self.path, e)
            return DisplayWindow()

    def save(self, window: DisplayWindow) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(window.to_record()), encoding="utf-8")
        logging.info("Saved display window %s-%s to %s", window.start_time, window.end_time, self.path)


# -----------------------
# Settings
# -----------------------
@dataclass
class Settings:
    tz_name: str = DEFAULT_TZ
    window: DisplayWindow = field(default_factory=DisplayWindow)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    state_file: Path = DEFAULT_STATE_FILE

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.tz_name)

    @property
    def has_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings(tz_name: Optional[str] = None) -> Settings:
    """Build Settings from the environment and the persisted display window."""
    tz_name = tz_name or _get_env("HABITGRID_TZ", "TZ", default=DEFAULT_TZ)
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logging.warning("Unknown timezone %r; falling back to %s", tz_name, DEFAULT_TZ)
        tz_name = DEFAULT_TZ

    state_file = Path(_get_env("HABITGRID_STATE_FILE", default=str(DEFAULT_STATE_FILE)))
    return Settings(
        tz_name=tz_name,
        window=DisplayWindowStore(state_file).load(),
        supabase_url=_get_env("SUPABASE_URL"),
        # Prefer SUPABASE_SERVICE_ROLE_KEY; fall back to legacy SUPABASE_SERVICE_KEY
        supabase_key=_get_env("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY"),
        state_file=state_file,
    )
