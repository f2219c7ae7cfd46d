from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field as dc_field
from typing import Any


VALID_FIELD_TYPES = (
    "text", "email", "number", "date", "time", "week", "color", "password", "url", "tel",
    "textarea", "select", "multiselect", "checkbox", "radio", "switch", "file", "rating",
    "header", "paragraph", "divider", "spacer", "hidden", "step",
)

# carry no input value
LAYOUT_FIELD_TYPES = ("header", "paragraph", "divider", "spacer", "step")

FIELD_TYPES_REQUIRING_LABEL = tuple(
    t for t in VALID_FIELD_TYPES if t not in LAYOUT_FIELD_TYPES and t != "hidden"
)

FIELD_TYPES_REQUIRING_NAME = tuple(t for t in VALID_FIELD_TYPES if t not in LAYOUT_FIELD_TYPES)

FIELD_TYPES_REQUIRING_OPTIONS = ("select", "multiselect", "radio")

FIELD_TYPES_WITH_PLACEHOLDER = (
    "text", "email", "number", "password", "url", "tel", "textarea", "select", "multiselect",
)

FIELD_TYPES_REQUIRING_TEXT = ("header", "paragraph")

VALID_VALIDATION_TYPES = (
    "required", "minLength", "maxLength", "min", "max", "pattern", "email", "url", "fileSize", "fileType",
)

VALID_GRID_SIZES = (1, 2, 3, 4, 6, 12)

DEPENDENCY_CONDITIONS = ("equals", "not_equals", "contains", "not_empty", "empty")

HEADER_VARIANTS = ("h1", "h2", "h3", "h4", "h5", "h6")

# used with fullmatch: a trailing newline must not slip past the end anchor
FIELD_NAME_RE = re.compile(r"[a-zA-Z][a-zA-Z0-9_]*")

# JS named groups and their backreferences, rewritten to Python spelling
JS_NAMED_GROUP_RE = re.compile(r"(?<!\\)\(\?<(?![=!])")
JS_NAMED_BACKREF_RE = re.compile(r"\\k<(\w+)>")

LABEL_MAX = 100
TEXT_MAX = 1000
PLACEHOLDER_MAX = 200
HELPER_TEXT_MAX = 500


@dataclass(frozen=True)
class FieldValidationResult:
    """Authoring-time result: flat, human-readable messages."""
    is_valid: bool
    errors: list[str] = dc_field(default_factory=list)
    warnings: list[str] = dc_field(default_factory=list)

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def compile_js_pattern(pattern: str) -> re.Pattern:
    """
    Compile a `validations.pattern` written for the browser.

    Named groups `(?<name>...)` and `\\k<name>` backreferences are
    rewritten to Python's `(?P<name>...)` / `(?P=name)`. Other JS-only
    syntax (the `u`/`v` flag escapes such as `\\p{L}`) is not translated
    and raises `re.error` like any invalid pattern.
    """
    pattern = JS_NAMED_GROUP_RE.sub("(?P<", pattern)
    pattern = JS_NAMED_BACKREF_RE.sub(r"(?P=\1)", pattern)
    return re.compile(pattern)


def _is_int(value: Any) -> bool:
    # bool is an int subclass in Python, never accept it as a number
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def _int_in_range(value: Any, lo: int, hi: int) -> bool:
    return _is_int(value) and lo <= value <= hi


def _check_options(ftype: str, options: Any, errors: list[str]) -> None:
    if not isinstance(options, list):
        errors.append(f"Options array is required for {ftype} fields")
        return
    if not options:
        errors.append(f"At least one option is required for {ftype} fields")
        return

    values: list[Any] = []
    for index, option in enumerate(options, start=1):
        if not isinstance(option, Mapping):
            errors.append(f"Option {index} must be an object")
            values.append(None)
            continue
        if _is_blank(option.get("label")):
            errors.append(f"Option {index} must have a non-empty label")
        value = option.get("value")
        if value is None or value == "":
            errors.append(f"Option {index} must have a value")
        values.append(value)

    # values may be unhashable (lists, dicts), compare pairwise
    if any(values[i] in values[:i] for i in range(1, len(values))):
        errors.append("Option values must be unique")


def _check_type_extras(field: Mapping, errors: list[str], warnings: list[str]) -> None:
    ftype = field.get("type")

    if ftype == "textarea":
        rows = field.get("rows")
        if rows is not None and not _int_in_range(rows, 1, 20):
            errors.append("Textarea rows must be an integer between 1 and 20")

    elif ftype == "file":
        multiple = field.get("multiple")
        if multiple is not None and not isinstance(multiple, bool):
            errors.append("File multiple property must be a boolean")

    elif ftype == "rating":
        mx = field.get("max")
        if mx is not None and not _int_in_range(mx, 1, 10):
            errors.append("Rating max value must be an integer between 1 and 10")

    elif ftype == "header":
        variant = field.get("variant")
        if variant and variant not in HEADER_VARIANTS:
            errors.append("Header variant must be one of: h1, h2, h3, h4, h5, h6")
        align = field.get("align")
        if align and align not in ("left", "center", "right"):
            errors.append("Header align must be one of: left, center, right")

    elif ftype == "paragraph":
        align = field.get("align")
        if align and align not in ("left", "center", "right", "justify"):
            errors.append("Paragraph align must be one of: left, center, right, justify")

    elif ftype == "spacer":
        height = field.get("height")
        if height is not None and not _int_in_range(height, 1, 200):
            errors.append("Spacer height must be an integer between 1 and 200 pixels")

    elif ftype == "hidden":
        value = field.get("value")
        if value is None or value == "":
            warnings.append("Hidden field should have a default value")

    elif ftype == "step":
        title = field.get("title")
        if isinstance(title, str) and len(title) > 100:
            errors.append("Step title cannot exceed 100 characters")
        description = field.get("description")
        if isinstance(description, str) and len(description) > 500:
            errors.append("Step description cannot exceed 500 characters")


def _check_validations(validations: Mapping, errors: list[str]) -> None:
    for vtype, value in validations.items():
        if vtype not in VALID_VALIDATION_TYPES:
            errors.append(f"Invalid validation type: {vtype}")

        elif vtype in ("minLength", "maxLength"):
            if not _is_int(value) or value < 0:
                errors.append(f"{vtype} must be a non-negative integer")

        elif vtype in ("min", "max"):
            if not _is_number(value):
                errors.append(f"{vtype} must be a number")

        elif vtype == "pattern":
            if not isinstance(value, str):
                errors.append("Pattern validation must be a string")
            else:
                try:
                    compile_js_pattern(value)
                except re.error:
                    errors.append("Pattern validation must be a valid regular expression")

        elif vtype in ("required", "email", "url"):
            if not isinstance(value, bool):
                errors.append(f"{vtype} validation must be a boolean")

        elif vtype == "fileSize":
            if not _int_in_range(value, 1, 100):
                errors.append("File size validation must be an integer between 1 and 100 MB")

        elif vtype == "fileType":
            if not isinstance(value, list) or not value:
                errors.append("File type validation must be a non-empty array")
            else:
                for mime in value:
                    if not isinstance(mime, str) or "/" not in mime:
                        errors.append("File type must be a valid MIME type (e.g., 'image/jpeg')")

    # cross-checks only when both sides are well-formed
    min_len, max_len = validations.get("minLength"), validations.get("maxLength")
    if _is_int(min_len) and _is_int(max_len) and min_len > max_len:
        errors.append("Minimum length cannot be greater than maximum length")

    mn, mx = validations.get("min"), validations.get("max")
    if _is_number(mn) and _is_number(mx) and mn > mx:
        errors.append("Minimum value cannot be greater than maximum value")


def _check_depends_on(depends_on: Mapping, errors: list[str]) -> None:
    if _is_blank(depends_on.get("field")):
        errors.append("Dependency field name is required and must be a string")

    condition = depends_on.get("condition")
    # emptiness checks do not compare against a value
    if "value" not in depends_on and condition not in ("empty", "not_empty"):
        errors.append("Dependency value is required")

    if condition and condition not in DEPENDENCY_CONDITIONS:
        errors.append(
            "Dependency condition must be one of: " + ", ".join(DEPENDENCY_CONDITIONS)
        )


def validate_field(field: Any) -> FieldValidationResult:
    """
    Validate one field configuration.

    Every violation is reported; nothing short-circuits after the
    presence/shape check of the argument itself. Whether `dependsOn.field`
    names a real sibling is left to validate_fields.
    """
    if field is None:
        return FieldValidationResult(False, ["Field configuration is required"], [])
    if not isinstance(field, Mapping):
        return FieldValidationResult(False, ["Field configuration must be an object"], [])

    errors: list[str] = []
    warnings: list[str] = []

    ftype = field.get("type")

    if _is_blank(field.get("id")):
        errors.append("Field ID is required and must be a non-empty string")

    if not isinstance(ftype, str) or not ftype:
        errors.append("Field type is required and must be a string")
    elif ftype not in VALID_FIELD_TYPES:
        errors.append(f"Invalid field type: {ftype}. Valid types are: {', '.join(VALID_FIELD_TYPES)}")

    name = field.get("name")
    if name is None or _is_blank(name):
        if ftype in FIELD_TYPES_REQUIRING_NAME or name is not None:
            errors.append("Field name is required and must be a non-empty string")
    elif not FIELD_NAME_RE.fullmatch(name):
        errors.append("Field name must start with a letter and contain only letters, numbers, and underscores")

    if ftype in FIELD_TYPES_REQUIRING_LABEL:
        label = field.get("label")
        if _is_blank(label):
            errors.append(f"Label is required for {ftype} fields")
        elif len(label) > LABEL_MAX:
            errors.append(f"Label cannot exceed {LABEL_MAX} characters")

    if ftype in FIELD_TYPES_REQUIRING_TEXT:
        text = field.get("text")
        if _is_blank(text):
            errors.append(f"Text content is required for {ftype} fields")
        elif len(text) > TEXT_MAX:
            errors.append(f"Text content cannot exceed {TEXT_MAX} characters")

    if ftype in FIELD_TYPES_WITH_PLACEHOLDER:
        placeholder = field.get("placeholder")
        if placeholder is not None and not isinstance(placeholder, str):
            errors.append("Placeholder must be a string")
        elif placeholder and len(placeholder) > PLACEHOLDER_MAX:
            errors.append(f"Placeholder cannot exceed {PLACEHOLDER_MAX} characters")

    helper_text = field.get("helperText")
    if helper_text is not None and not isinstance(helper_text, str):
        errors.append("Helper text must be a string")
    elif helper_text and len(helper_text) > HELPER_TEXT_MAX:
        errors.append(f"Helper text cannot exceed {HELPER_TEXT_MAX} characters")

    required = field.get("required")
    if required is not None and not isinstance(required, bool):
        errors.append("Required property must be a boolean")

    grid_size = field.get("gridSize")
    if grid_size is not None and (not _is_int(grid_size) or grid_size not in VALID_GRID_SIZES):
        errors.append(f"Grid size must be one of: {', '.join(str(s) for s in VALID_GRID_SIZES)}")

    if ftype in FIELD_TYPES_REQUIRING_OPTIONS:
        _check_options(ftype, field.get("options"), errors)

    _check_type_extras(field, errors, warnings)

    validations = field.get("validations")
    if isinstance(validations, Mapping):
        _check_validations(validations, errors)

    depends_on = field.get("dependsOn")
    if isinstance(depends_on, Mapping):
        _check_depends_on(depends_on, errors)

    return FieldValidationResult(not errors, errors, warnings)


def validate_fields(fields: Any) -> FieldValidationResult:
    """
    Validate a whole field array: every field, id/name uniqueness and
    dependency references between siblings.
    """
    if not isinstance(fields, list):
        return FieldValidationResult(False, ["Fields must be an array"], [])
    if not fields:
        return FieldValidationResult(False, ["Form must have at least one field"], [])

    errors: list[str] = []
    warnings: list[str] = []
    seen_names: set[str] = set()
    seen_ids: set[str] = set()

    for index, field in enumerate(fields, start=1):
        result = validate_field(field)
        errors.extend(f"Field {index}: {e}" for e in result.errors)
        warnings.extend(f"Field {index}: {w}" for w in result.warnings)

        if not isinstance(field, Mapping):
            continue

        name = field.get("name")
        if isinstance(name, str) and name:
            if name in seen_names:
                errors.append(f"Duplicate field name: {name}")
            else:
                seen_names.add(name)

        fid = field.get("id")
        if isinstance(fid, str) and fid:
            if fid in seen_ids:
                errors.append(f"Duplicate field ID: {fid}")
            else:
                seen_ids.add(fid)

    sibling_names = {
        f.get("name") for f in fields if isinstance(f, Mapping) and isinstance(f.get("name"), str)
    }
    for index, field in enumerate(fields, start=1):
        if not isinstance(field, Mapping):
            continue
        depends_on = field.get("dependsOn")
        if not isinstance(depends_on, Mapping):
            continue
        target = depends_on.get("field")
        if isinstance(target, str) and target and target not in sibling_names:
            errors.append(f"Field {index}: Dependent field '{target}' does not exist")

    return FieldValidationResult(not errors, errors, warnings)


def validation_summary(fields: list, result: FieldValidationResult) -> dict[str, int]:
    """Counts shown next to the real-time validation report."""
    invalid = 0
    for f in fields:
        if not validate_field(f).is_valid:
            invalid += 1
    return {
        "total_fields": len(fields),
        "valid_fields": len(fields) - invalid,
        "error_count": len(result.errors),
        "warning_count": len(result.warnings),
    }
