from __future__ import annotations

import copy
import itertools
import uuid
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from app.core.field_validation import VALID_FIELD_TYPES


_OPTIONS = [
    {"label": "Option 1", "value": "option1"},
    {"label": "Option 2", "value": "option2"},
]

_DEFAULTS: dict[str, dict[str, Any]] = {
    "text": {"label": "Text Input", "placeholder": "Enter text", "required": False, "gridSize": 6, "validations": {}},
    "email": {"label": "Email", "placeholder": "Enter email", "required": False, "gridSize": 6, "validations": {"email": True}},
    "number": {"label": "Number", "placeholder": "Enter number", "required": False, "gridSize": 6, "validations": {}},
    "date": {"label": "Date", "required": False, "gridSize": 6, "validations": {}},
    "time": {"label": "Time", "required": False, "gridSize": 6, "validations": {}},
    "week": {"label": "Week", "required": False, "gridSize": 6, "validations": {}},
    "color": {"label": "Color", "required": False, "gridSize": 6, "validations": {}},
    "password": {"label": "Password", "placeholder": "Enter password", "required": False, "gridSize": 6, "validations": {}},
    "url": {"label": "URL", "placeholder": "https://", "required": False, "gridSize": 6, "validations": {"url": True}},
    "tel": {"label": "Phone", "placeholder": "Enter phone number", "required": False, "gridSize": 6, "validations": {}},
    "textarea": {"label": "Textarea", "placeholder": "Enter text", "required": False, "gridSize": 12, "rows": 4, "validations": {}},
    "select": {"label": "Select", "required": False, "gridSize": 6, "options": _OPTIONS, "validations": {}},
    "multiselect": {"label": "Multi Select", "required": False, "gridSize": 6, "options": _OPTIONS, "validations": {}},
    "checkbox": {"label": "Checkbox", "required": False, "gridSize": 6, "validations": {}},
    "radio": {"label": "Radio Group", "required": False, "gridSize": 6, "options": _OPTIONS, "validations": {}},
    "switch": {"label": "Switch", "required": False, "gridSize": 6, "validations": {}},
    "file": {
        "label": "File Upload",
        "required": False,
        "gridSize": 6,
        "multiple": False,
        "validations": {"fileType": ["image/png", "image/jpeg", "application/pdf"], "fileSize": 5},
    },
    "rating": {"label": "Rating", "required": False, "gridSize": 6, "max": 5, "validations": {}},
    "header": {"text": "Header Text", "variant": "h4", "gridSize": 12, "align": "left"},
    "paragraph": {"text": "Paragraph text goes here", "gridSize": 12, "align": "left"},
    "divider": {"gridSize": 12},
    "spacer": {"gridSize": 12, "height": 24},
    "hidden": {"value": "", "gridSize": 12},
    "step": {"title": "Step", "description": "", "gridSize": 12},
}

FIELD_DEFAULTS: Mapping[str, Mapping[str, Any]] = MappingProxyType(
    {t: MappingProxyType({"type": t, **cfg}) for t, cfg in _DEFAULTS.items()}
)

_name_counter = itertools.count(1)


def defaults_for(field_type: str) -> dict[str, Any]:
    """Fresh copy of the default configuration for a field type ({} if unknown)."""
    defaults = FIELD_DEFAULTS.get(field_type)
    if defaults is None:
        return {}
    return copy.deepcopy(dict(defaults))


def generate_field_id() -> str:
    return f"field_{uuid.uuid4()}"


def create_field(field_type: str, **overrides: Any) -> dict[str, Any]:
    if field_type not in VALID_FIELD_TYPES:
        raise ValueError(f"Unknown field type: {field_type}")
    return {
        "id": generate_field_id(),
        "name": f"field_{next(_name_counter)}",
        **defaults_for(field_type),
        **overrides,
    }


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    try:
        return len(value) == 0
    except TypeError:
        return False


def check_field_dependency(field: Mapping, data: Mapping) -> bool:
    """
    Whether `field` is shown for the submitted `data`.
    Fields without a dependency, or with an unknown condition, are always shown.
    """
    depends_on = field.get("dependsOn")
    if not depends_on:
        return True

    expected = depends_on.get("value")
    condition = depends_on.get("condition") or "equals"
    actual = data.get(depends_on.get("field"))

    if condition == "equals":
        return actual == expected
    if condition == "not_equals":
        return actual != expected
    if condition == "contains":
        return isinstance(actual, list) and expected in actual
    if condition == "not_empty":
        return not _is_empty(actual)
    if condition == "empty":
        return _is_empty(actual)
    return True


def generate_form_steps(fields: list[Mapping]) -> list[dict[str, Any]]:
    steps: list[dict[str, Any]] = []
    current: dict[str, Any] = {"title": "Step 1", "fields": []}

    for f in fields:
        if f.get("type") == "step":
            if current["fields"]:
                steps.append(current)
            current = {"title": f.get("title") or f"Step {len(steps) + 1}", "fields": []}
        else:
            current["fields"].append(f)

    if current["fields"]:
        steps.append(current)

    return steps or [{"title": "Form", "fields": list(fields)}]
