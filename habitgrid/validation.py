# habitgrid/validation.py
import re
from typing import Any, Dict, List

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
MAX_TYPE_NAME = 50
DEFAULT_COLOR = "#000000"


class ValidationError(ValueError):
    """Raised with every failing field of a record, not just the first."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


def _required_str(data: Dict[str, Any], key: str, message: str, errors: Dict[str, str]) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        errors[key] = message
        return ""
    return value


def validate_activity(data: Dict[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}
    clean = {
        "activity_name": _required_str(data, "activity_name", "Name is required", errors),
        "activity_type_id": _required_str(data, "activity_type_id", "Activity type is required", errors),
        "start_time": _required_str(data, "start_time", "Start time is required", errors),
        "end_time": _required_str(data, "end_time", "End time is required", errors),
    }
    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        errors["notes"] = "Notes must be text"
    elif notes:
        clean["notes"] = notes
    if errors:
        raise ValidationError(errors)
    return clean


def validate_plan(data: Dict[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}
    clean: Dict[str, Any] = {
        "plan_name": _required_str(data, "plan_name", "Plan name is required", errors),
    }
    for key in ("start_time", "end_time"):
        if not isinstance(data.get(key), str):
            errors[key] = "Must be a time string"
        else:
            clean[key] = data[key]
    finished = data.get("is_finished", False)
    if not isinstance(finished, bool):
        errors["is_finished"] = "Must be true or false"
    clean["is_finished"] = finished
    if errors:
        raise ValidationError(errors)
    return clean


def validate_activity_type(data: Dict[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}
    name = data.get("name")
    if not isinstance(name, str) or not name:
        errors["name"] = "Activity type name is required"
    elif len(name) > MAX_TYPE_NAME:
        errors["name"] = f"Activity type name must be less than {MAX_TYPE_NAME} characters"

    color = data.get("color") or DEFAULT_COLOR
    if not isinstance(color, str) or not _COLOR_RE.match(color):
        errors["color"] = "Invalid color format"
    if errors:
        raise ValidationError(errors)
    return {"name": name, "color": color}


def missing_keys(row: Dict[str, Any], keys: List[str]) -> List[str]:
    return [k for k in keys if not row.get(k)]
