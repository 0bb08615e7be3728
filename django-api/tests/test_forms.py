"""Unit tests for custom registration forms."""

import pytest

from events.domain.forms import (
    BlankAnswer,
    ChoiceAnswer,
    ChoicesAnswer,
    EmailAnswer,
    FileAnswer,
    FlagAnswer,
    FormValidationError,
    NumberAnswer,
    TextAnswer,
    normalize_definition,
    serialize_answers,
    validate_responses,
)


@pytest.fixture
def form():
    return normalize_definition(
        [
            {"field_id": "college", "label": "College", "type": "text", "required": True},
            {"field_id": "year", "label": "Year", "type": "number", "order": 1},
            {"field_id": "track", "label": "Track", "type": "dropdown", "options": ["AI", "Web"], "order": 2},
            {"field_id": "langs", "label": "Languages", "type": "checkbox", "options": ["Py", "Go"], "required": True, "order": 3},
            {"field_id": "consent", "label": "Consent", "type": "checkbox", "order": 4},
            {"field_id": "mail", "label": "Alt email", "type": "email", "order": 5},
            {"field_id": "resume", "label": "Resume", "type": "file", "order": 6},
        ]
    )


class TestDefinition:
    """Tests for normalize_definition."""

    def test_fields_sorted_by_order(self):
        """Fields come back in declared order regardless of input order."""
        fields = normalize_definition(
            [
                {"field_id": "b", "label": "B", "type": "text", "order": 2},
                {"field_id": "a", "label": "A", "type": "text", "order": 1},
            ]
        )
        assert [field.field_id for field in fields] == ["a", "b"]

    def test_missing_field_id_defaults_to_position(self):
        """A field without an id is named after its position."""
        (field,) = normalize_definition([{"label": "Name", "type": "text"}])
        assert field.field_id == "field_0"

    def test_every_violation_reported(self):
        """Duplicate ids, missing labels, bad types and missing options are all listed."""
        with pytest.raises(FormValidationError) as excinfo:
            normalize_definition(
                [
                    {"field_id": "x", "label": "X", "type": "text"},
                    {"field_id": "x", "label": "", "type": "text"},
                    {"field_id": "y", "label": "Y", "type": "signature"},
                    {"field_id": "z", "label": "Z", "type": "dropdown", "required": True},
                ]
            )
        assert excinfo.value.violations == [
            "Duplicate field_id: x",
            "Field x is missing a label",
            "Unsupported field type for y: signature",
            "Field z requires at least one option",
        ]


class TestResponses:
    """Tests for validate_responses."""

    def test_valid_responses_become_typed_answers(self, form):
        """Each declared field yields one answer of its kind."""
        resume = FileAnswer(original_name="cv.pdf", path="registration-files/cv.pdf", mime_type="application/pdf", size=10)
        answers = validate_responses(
            form,
            {
                "college": "  IIIT ",
                "year": "3",
                "track": "AI",
                "langs": ["Py", "Go"],
                "consent": "on",
                "mail": "Me@Example.com",
                "undeclared": "dropped",
            },
            {"resume": resume},
        )
        assert answers == {
            "college": TextAnswer("IIIT"),
            "year": NumberAnswer(3),
            "track": ChoiceAnswer("AI"),
            "langs": ChoicesAnswer(("Py", "Go")),
            "consent": FlagAnswer(True),
            "mail": EmailAnswer("me@example.com"),
            "resume": resume,
        }

    def test_optional_blank_fields(self, form):
        """Unanswered optional fields are recorded as blank."""
        answers = validate_responses(form, {"college": "IIIT", "langs": ["Py"]})
        assert answers["year"] == BlankAnswer()
        assert answers["resume"] == BlankAnswer()
        assert answers["consent"] == FlagAnswer(False)

    def test_every_violation_reported(self, form):
        """All field problems are reported in one error."""
        with pytest.raises(FormValidationError) as excinfo:
            validate_responses(
                form,
                {"year": "three", "track": "Design", "langs": "Py,Rust", "consent": "false", "mail": "nope"},
            )
        assert excinfo.value.violations == [
            "Field is required: College",
            "Invalid numeric value for field: Year",
            "Invalid dropdown option for field: Track",
            "Invalid checkbox option for field: Languages",
            "Invalid email for field: Alt email",
        ]

    def test_required_file_missing(self):
        """A required file field needs a stored upload."""
        fields = normalize_definition([{"field_id": "id", "label": "ID card", "type": "file", "required": True}])
        with pytest.raises(FormValidationError) as excinfo:
            validate_responses(fields, {})
        assert excinfo.value.violations == ["Field is required: ID card"]

    def test_serialize_answers_is_tagged(self, form):
        """Stored answers carry their kind."""
        answers = validate_responses(form, {"college": "IIIT", "consent": "yes", "langs": ["Go"]})
        stored = serialize_answers(answers)
        assert stored["college"] == {"kind": "text", "value": "IIIT"}
        assert stored["consent"] == {"kind": "flag", "checked": True}
        assert stored["langs"] == {"kind": "choices", "values": ["Go"]}
        assert stored["year"] == {"kind": "blank"}
