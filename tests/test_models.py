"""Tests for auto-form field definition models."""

import random

import pytest
from pydantic import ValidationError

from auto_form.exceptions import ConfigurationError
from auto_form.models.dependencies import HidesDependency
from auto_form.models.field_definitions import (
    ArrayField,
    CheckboxField,
    FormDefinition,
    InputField,
    SelectField,
    Step,
    find_field,
    has_options,
    is_array_field,
    iter_fields,
    list_fields,
    root_fields,
)
from auto_form.models.validation_result import FieldError, ValidationResult

from conftest import option_list


def _input(key: str, **kwargs) -> dict:
    return {"id": f"id-{key}", "key": key, "label": key.title(), "type": "input", **kwargs}


class TestFieldVariants:
    """Tests for per-variant construction."""

    def test_basic_input(self):
        """Test creating a basic input field."""
        field = InputField(id="1", key="email", label="Email")
        assert field.type == "input"
        assert field.required is False
        assert field.placeholder is None
        assert field.dependencies == []

    def test_name_is_accepted_for_key(self):
        """Test the `name` spelling of the key."""
        field = InputField.model_validate({"id": "1", "name": "email", "label": "Email"})
        assert field.key == "email"

    def test_options_not_constructible_on_input(self):
        """Test that variant-foreign attributes are rejected."""
        with pytest.raises(ValidationError):
            InputField(id="1", key="email", label="Email", options=option_list("a"))

    def test_select_requires_options(self):
        """Test that select without options is a configuration error."""
        with pytest.raises(ConfigurationError, match="non-empty 'options'"):
            SelectField(id="1", key="color", label="Color")

    def test_checkbox_rejects_empty_options(self):
        """Test that an empty option list is a configuration error."""
        with pytest.raises(ConfigurationError):
            CheckboxField(id="1", key="tags", label="Tags", options=[])

    def test_duplicate_option_values(self):
        """Test that option values must be unique."""
        with pytest.raises(ConfigurationError, match="duplicate option"):
            SelectField(
                id="1",
                key="color",
                label="Color",
                options=[{"label": "Red", "value": "r"}, {"label": "Rose", "value": "r"}],
            )

    def test_array_requires_children(self):
        """Test that array without children is a configuration error."""
        with pytest.raises(ConfigurationError, match="children"):
            ArrayField(id="1", key="items", label="Items")

    def test_array_item_count_bounds(self):
        """Test that min_items may not exceed max_items."""
        with pytest.raises(ConfigurationError, match="min_items"):
            ArrayField(
                id="1",
                key="items",
                label="Items",
                children=[_input("name")],
                min_items=3,
                max_items=1,
            )

    def test_invalid_key(self):
        """Test that keys must be identifier-like."""
        with pytest.raises(ConfigurationError, match="Invalid characters"):
            InputField(id="1", key="first name", label="First name")

    def test_fields_are_immutable(self):
        """Test that definitions cannot be mutated after construction."""
        field = InputField(id="1", key="email", label="Email")
        with pytest.raises(ValidationError):
            field.label = "Other"


class TestSiblingLevels:
    """Tests for key uniqueness and dependency scoping."""

    def test_duplicate_top_level_keys(self):
        """Test duplicate keys at the top level."""
        with pytest.raises(ConfigurationError, match="Duplicate field key: 'email'"):
            FormDefinition(fields=[_input("email"), _input("email")])

    def test_duplicate_keys_inside_array(self):
        """Test duplicate keys among array children report the item path."""
        with pytest.raises(ConfigurationError, match=r"items\[\]\.name"):
            ArrayField(
                id="1",
                key="items",
                label="Items",
                children=[_input("name"), _input("name")],
            )

    def test_same_key_at_different_levels(self):
        """Test that a child may reuse a top-level key."""
        form = FormDefinition(
            fields=[
                _input("name"),
                {
                    "id": "a",
                    "key": "people",
                    "label": "People",
                    "type": "array",
                    "children": [_input("name")],
                },
            ]
        )
        assert [f.key for f in list_fields(form)] == ["name", "people"]

    def test_duplicate_keys_across_steps(self):
        """Test that all steps share one top level."""
        with pytest.raises(ConfigurationError, match="Duplicate"):
            FormDefinition(
                steps=[
                    Step(id="s1", title="One", fields=[_input("email")]),
                    Step(id="s2", title="Two", fields=[_input("email")]),
                ]
            )

    def test_fields_and_steps_are_exclusive(self):
        """Test that a form has either fields or steps."""
        with pytest.raises(ConfigurationError, match="both"):
            FormDefinition(
                fields=[_input("a")],
                steps=[Step(id="s1", title="One", fields=[_input("b")])],
            )

    def test_empty_form(self):
        """Test that a form must contain fields."""
        with pytest.raises(ConfigurationError, match="no fields"):
            FormDefinition()

    def test_property_unique_keys_in_random_trees(self):
        """Test that every sound random tree lists unique keys at every level."""
        rng = random.Random(1234)

        def level(depth: int) -> list[dict]:
            keys = rng.sample([f"k{i}" for i in range(20)], rng.randint(1, 6))
            fields = []
            for key in keys:
                if depth < 2 and rng.random() < 0.3:
                    fields.append(
                        {
                            "id": key,
                            "key": key,
                            "label": key,
                            "type": "array",
                            "children": level(depth + 1),
                        }
                    )
                else:
                    fields.append(_input(key))
            return fields

        for _ in range(50):
            form = FormDefinition(fields=level(0))
            stack = [list_fields(form)]
            while stack:
                siblings = stack.pop()
                keys = [f.key for f in siblings]
                assert len(keys) == len(set(keys))
                stack.extend(list_fields(f) for f in siblings if is_array_field(f))


class TestTreeAccess:
    """Tests for list_fields / find_field / iter_fields."""

    def test_list_fields_keeps_order(self, country_form):
        """Test declaration order is preserved."""
        assert [f.key for f in list_fields(country_form)] == ["country", "state"]

    def test_list_fields_flattens_steps(self):
        """Test steps are flattened in order."""
        form = FormDefinition(
            steps=[
                Step(id="s1", title="One", fields=[_input("a"), _input("b")]),
                Step(id="s2", title="Two", fields=[_input("c")]),
            ]
        )
        assert [f.key for f in list_fields(form)] == ["a", "b", "c"]
        assert [f.key for f in list_fields(form.steps[1])] == ["c"]

    def test_root_fields_checks_bare_lists(self):
        """Test that a bare field list gets the sibling checks of a form."""
        a = InputField(id="1", key="a", label="A")
        with pytest.raises(ConfigurationError, match="Duplicate field key"):
            root_fields([a, a])

        dangling = InputField(
            id="2",
            key="b",
            label="B",
            dependencies=[{"sourceField": "ghost", "type": "HIDES", "value": True}],
        )
        with pytest.raises(ConfigurationError, match="ghost"):
            root_fields([dangling])

    def test_root_fields_checks_standalone_steps(self):
        """Test that a Step outside a form gets the sibling checks of a form."""
        step = Step(
            id="s1", title="One", fields=[_input("a"), {**_input("a"), "id": "id-a2"}]
        )
        with pytest.raises(ConfigurationError, match="Duplicate field key: 'a'"):
            root_fields(step)

    def test_root_fields_of_sound_trees(self, contacts_form):
        """Test that sound trees pass through unchanged."""
        assert [f.key for f in root_fields(contacts_form)] == ["contacts"]
        fields = [InputField(id="1", key="a", label="A"), InputField(id="2", key="b", label="B")]
        assert [f.key for f in root_fields(fields)] == ["a", "b"]

    def test_find_field(self, country_form):
        """Test lookup by key."""
        assert find_field(country_form, "state").label == "State"
        assert find_field(country_form, "zip") is None

    def test_find_field_in_array(self, contacts_form):
        """Test lookup by path into array children, with or without index."""
        assert find_field(contacts_form, "contacts.type").type == "select"
        assert find_field(contacts_form, "contacts[3].value").key == "value"
        assert find_field(contacts_form, "contacts.missing") is None

    def test_is_array_field(self, contacts_form, country_form):
        """Test array detection."""
        assert is_array_field(find_field(contacts_form, "contacts"))
        assert not is_array_field(find_field(country_form, "country"))
        assert has_options(find_field(country_form, "country"))
        assert not has_options(find_field(country_form, "state"))

    def test_iter_fields(self, contacts_form):
        """Test depth-first walk with item paths."""
        paths = [path for path, _ in iter_fields(contacts_form)]
        assert paths == [
            "contacts",
            "contacts[].name",
            "contacts[].type",
            "contacts[].value",
            "contacts[].channel",
        ]

    def test_ui_schema_export(self, contacts_form):
        """Test exporting presentation hints."""
        ui_schema = contacts_form.to_ui_schema()
        assert ui_schema["contacts"]["ui:widget"] == "array"
        items = ui_schema["contacts"]["items"]
        assert items["type"]["ui:options"] == option_list("Email", "Phone")


class TestDependencyAttachment:
    """Tests for dependency validation at construction time."""

    def test_dangling_source_field(self):
        """Test a dependency on an unknown sibling."""
        with pytest.raises(ConfigurationError, match="unknown sibling 'country'"):
            FormDefinition(
                fields=[
                    _input(
                        "state",
                        dependencies=[{"sourceField": "country", "type": "HIDES", "value": "US"}],
                    )
                ]
            )

    def test_self_dependency(self):
        """Test a field depending on itself."""
        with pytest.raises(ConfigurationError, match="cannot depend on itself"):
            FormDefinition(
                fields=[
                    _input(
                        "state",
                        dependencies=[{"sourceField": "state", "type": "HIDES", "value": "x"}],
                    )
                ]
            )

    def test_child_cannot_reference_ancestor_level(self):
        """Test that array children only see their own siblings."""
        with pytest.raises(ConfigurationError, match=r"contacts\[\]\.value"):
            FormDefinition(
                fields=[
                    _input("mode"),
                    {
                        "id": "a",
                        "key": "contacts",
                        "label": "Contacts",
                        "type": "array",
                        "children": [
                            _input(
                                "value",
                                dependencies=[{"sourceField": "mode", "type": "HIDES", "value": "x"}],
                            )
                        ],
                    },
                ]
            )

    def test_sets_options_needs_option_field(self):
        """Test SETS_OPTIONS on a field without options."""
        with pytest.raises(ConfigurationError, match="has no options"):
            InputField(
                id="1",
                key="state",
                label="State",
                dependencies=[
                    {
                        "sourceField": "country",
                        "type": "SETS_OPTIONS",
                        "value": "US",
                        "options": option_list("NY"),
                    }
                ],
            )

    def test_sets_options_needs_options(self):
        """Test SETS_OPTIONS with an empty replacement set."""
        with pytest.raises(ConfigurationError, match="SETS_OPTIONS"):
            SelectField(
                id="1",
                key="state",
                label="State",
                options=option_list("NY"),
                dependencies=[
                    {"sourceField": "country", "type": "SETS_OPTIONS", "value": "US", "options": []}
                ],
            )

    def test_when_and_value_are_exclusive(self):
        """Test that a dependency declares one predicate."""
        with pytest.raises(ConfigurationError, match="both"):
            HidesDependency.model_validate(
                {"sourceField": "a", "type": "HIDES", "value": 1, "when": lambda v: True}
            )

    def test_value_shorthand(self):
        """Test that `value` becomes an EQUALS condition."""
        dep = HidesDependency.model_validate({"sourceField": "a", "value": "x"})
        assert dep.applies("x")
        assert not dep.applies("y")
        assert dep.is_serializable


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_valid_result(self):
        """Test that a result without errors is valid."""
        result = ValidationResult(data={"email": "test@example.com"})
        assert result.is_valid
        assert result.errors == []
        assert result.stale_paths == []

    def test_grouping_by_path(self):
        """Test grouping messages under their value path."""
        result = ValidationResult(
            errors=[
                FieldError(path="contacts[0].name", code="required", message="Name is required"),
                FieldError(path="contacts[0].name", code="rule", message="Too short"),
                FieldError(path="email", code="rule", message="Invalid email"),
            ],
        )
        assert not result.is_valid
        assert result.messages_by_path() == {
            "contacts[0].name": ["Name is required", "Too short"],
            "email": ["Invalid email"],
        }
        assert [e.code for e in result.errors_at("contacts[0].name")] == ["required", "rule"]
        assert result.errors_at("missing") == []
        assert result.to_pairs()[2] == ("email", "Invalid email")

    def test_structured_details(self):
        """Test option and item-count details ride along with the message."""
        error = FieldError(
            path="state", code="invalid_option", message="'ZZ' is not available", allowed=["NY"]
        )
        assert error.allowed == ["NY"]
        assert error.limit is None

    def test_unknown_code_rejected(self):
        """Test that error codes are a closed set."""
        with pytest.raises(ValidationError):
            FieldError(path="a", code="bogus", message="x")

    def test_errors_are_frozen(self):
        """Test that errors cannot be mutated after construction."""
        error = FieldError(path="a", code="rule", message="x")
        with pytest.raises(ValidationError):
            error.path = "b"
