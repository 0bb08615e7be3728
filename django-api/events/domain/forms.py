"""Custom registration forms.

Two concerns live here:

- Definition rules for the form an organizer attaches to a NORMAL event.
- Validation of a participant's responses against that definition. Each
  response becomes one variant of the ``Answer`` union, keyed by the declared
  field type, and is stored as a tagged map ``field_id -> {"kind": ..., ...}``.

Every rule is checked and all violations are reported together.
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from events.domain.enums import FieldType
from events.domain.models import FormField

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CHOICE_TYPES = (FieldType.DROPDOWN, FieldType.CHECKBOX)
TRUTHY = {"true", "1", "yes", "on"}


@dataclass(frozen=True)
class BlankAnswer:
    kind: ClassVar[str] = "blank"

    def to_json(self) -> dict[str, Any]:
        return {"kind": self.kind}


@dataclass(frozen=True)
class TextAnswer:
    value: str
    kind: ClassVar[str] = "text"

    def to_json(self) -> dict[str, Any]:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class ChoiceAnswer:
    value: str
    kind: ClassVar[str] = "choice"

    def to_json(self) -> dict[str, Any]:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class ChoicesAnswer:
    values: tuple[str, ...]
    kind: ClassVar[str] = "choices"

    def to_json(self) -> dict[str, Any]:
        return {"kind": self.kind, "values": list(self.values)}


@dataclass(frozen=True)
class FlagAnswer:
    checked: bool
    kind: ClassVar[str] = "flag"

    def to_json(self) -> dict[str, Any]:
        return {"kind": self.kind, "checked": self.checked}


@dataclass(frozen=True)
class NumberAnswer:
    value: int | float
    kind: ClassVar[str] = "number"

    def to_json(self) -> dict[str, Any]:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class EmailAnswer:
    value: str
    kind: ClassVar[str] = "email"

    def to_json(self) -> dict[str, Any]:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class FileAnswer:
    original_name: str
    path: str
    mime_type: str
    size: int
    kind: ClassVar[str] = "file"

    def to_json(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "original_name": self.original_name,
            "path": self.path,
            "mime_type": self.mime_type,
            "size": self.size,
        }


Answer = (
    BlankAnswer
    | TextAnswer
    | ChoiceAnswer
    | ChoicesAnswer
    | FlagAnswer
    | NumberAnswer
    | EmailAnswer
    | FileAnswer
)


class FormValidationError(ValueError):
    """Raised with every violation found in a form definition or a response set."""

    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


# -- definition ----------------------------------------------------------------


def _as_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in TRUTHY
    return bool(raw)


def normalize_definition(raw_fields: Iterable[Mapping[str, Any] | FormField]) -> tuple[FormField, ...]:
    """Build FormFields from raw definitions, raising FormValidationError on any rule break."""
    fields: list[FormField] = []
    violations: list[str] = []
    seen: set[str] = set()

    for index, raw in enumerate(raw_fields or ()):
        if isinstance(raw, FormField):
            raw = raw.to_json()
        field_id = str(raw.get("field_id") or f"field_{index}").strip()
        label = str(raw.get("label") or "").strip()
        type_name = str(raw.get("type") or FieldType.TEXT).strip().lower()
        options = tuple(str(option).strip() for option in raw.get("options") or () if str(option).strip())
        required = _as_bool(raw.get("required", False))
        try:
            order = int(raw.get("order", index))
        except (TypeError, ValueError):
            order = index

        if not field_id:
            violations.append(f"Field #{index + 1} is missing field_id")
        elif field_id in seen:
            violations.append(f"Duplicate field_id: {field_id}")
        seen.add(field_id)

        if not label:
            violations.append(f"Field {field_id} is missing a label")

        try:
            field_type = FieldType(type_name)
        except ValueError:
            violations.append(f"Unsupported field type for {field_id}: {type_name}")
            continue

        if field_type in CHOICE_TYPES and required and not options:
            violations.append(f"Field {field_id} requires at least one option")

        fields.append(
            FormField(
                field_id=field_id,
                label=label,
                type=field_type,
                required=required,
                options=options,
                order=order,
            )
        )

    if violations:
        raise FormValidationError(violations)
    return tuple(sorted(fields, key=lambda f: f.order))


# -- responses -----------------------------------------------------------------


def _selected_values(raw: Any) -> list[str]:
    if isinstance(raw, (list, tuple)):
        return [str(value).strip() for value in raw if str(value).strip()]
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    if raw is True or raw == 1:
        return ["true"]
    return []


def _parse_number(text: str) -> int | float | None:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _checkbox_answer(form_field: FormField, raw: Any, violations: list[str]) -> Answer:
    selected = _selected_values(raw)
    if form_field.options:
        if form_field.required and not selected:
            violations.append(f"Field is required: {form_field.label}")
        invalid = [value for value in selected if value not in form_field.options]
        if invalid:
            violations.append(f"Invalid checkbox option for field: {form_field.label}")
        return ChoicesAnswer(values=tuple(selected))

    checked = _as_bool(raw) if not isinstance(raw, (list, tuple)) else bool(selected)
    if form_field.required and not checked:
        violations.append(f"Field is required: {form_field.label}")
    return FlagAnswer(checked=checked)


def _scalar_answer(form_field: FormField, raw: Any, violations: list[str]) -> Answer:
    text = "" if raw is None else str(raw).strip()
    if not text:
        if form_field.required:
            violations.append(f"Field is required: {form_field.label}")
        return BlankAnswer()

    if form_field.type == FieldType.DROPDOWN:
        if form_field.options and text not in form_field.options:
            violations.append(f"Invalid dropdown option for field: {form_field.label}")
        return ChoiceAnswer(value=text)

    if form_field.type == FieldType.NUMBER:
        number = _parse_number(text)
        if number is None:
            violations.append(f"Invalid numeric value for field: {form_field.label}")
            return BlankAnswer()
        return NumberAnswer(value=number)

    if form_field.type == FieldType.EMAIL:
        if not EMAIL_PATTERN.match(text):
            violations.append(f"Invalid email for field: {form_field.label}")
        return EmailAnswer(value=text.lower())

    return TextAnswer(value=text)


def validate_responses(
    fields: Iterable[FormField],
    responses: Mapping[str, Any] | None,
    files: Mapping[str, FileAnswer] | None = None,
) -> dict[str, Answer]:
    """Validate responses against the form and return one Answer per declared field.

    Undeclared response keys are dropped.

    Raises:
        FormValidationError: With every violation found across all fields.
    """
    responses = responses or {}
    files = files or {}
    answers: dict[str, Answer] = {}
    violations: list[str] = []

    for form_field in fields:
        if form_field.type == FieldType.FILE:
            stored = files.get(form_field.field_id)
            if stored is None:
                if form_field.required:
                    violations.append(f"Field is required: {form_field.label}")
                answers[form_field.field_id] = BlankAnswer()
            else:
                answers[form_field.field_id] = stored
            continue

        raw = responses.get(form_field.field_id)
        if form_field.type == FieldType.CHECKBOX:
            answers[form_field.field_id] = _checkbox_answer(form_field, raw, violations)
        else:
            answers[form_field.field_id] = _scalar_answer(form_field, raw, violations)

    if violations:
        raise FormValidationError(violations)
    return answers


def serialize_answers(answers: Mapping[str, Answer]) -> dict[str, dict[str, Any]]:
    return {field_id: answer.to_json() for field_id, answer in answers.items()}
