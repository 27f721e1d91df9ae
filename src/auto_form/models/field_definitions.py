"""
Field definition models for dynamic forms.

A form is a tree of typed field definitions. Each variant is its own
model carrying only the attributes valid for it; FieldConfig is the
discriminated union over the `type` tag, so consumers can switch on
`field.type` exhaustively.

Invariants checked at construction (ConfigurationError):
- select / checkbox / radio declare a non-empty option set
- array declares a non-empty children tree (the schema of one item)
- keys are unique among siblings at every level
- dependencies reference an existing sibling other than the target
"""

import re
from collections.abc import Iterator
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from auto_form.exceptions import ConfigurationError
from auto_form.models.dependencies import (
    Dependency,
    FieldOption,
    SetsOptionsDependency,
    check_dependencies,
)
from auto_form.values import field_keys, join_path

# Valid field key pattern (alphanumeric + underscore)
VALID_FIELD_KEY = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

MAX_KEY_LENGTH = 100

FieldType = Literal[
    "input", "textarea", "select", "checkbox", "switch", "radio", "date", "range-date", "array"
]


def _check_field_key(key: str) -> tuple[bool, str | None]:
    """Validate a field key."""
    if not key:
        return False, "Field key cannot be empty"
    if len(key) > MAX_KEY_LENGTH:
        return False, "Field key too long"
    if not VALID_FIELD_KEY.match(key):
        return False, "Invalid characters in field key"
    return True, None


class _FieldBase(BaseModel):
    """Attributes shared by every field variant."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., min_length=1, description="Stable identifier")
    key: str = Field(
        ...,
        validation_alias=AliasChoices("key", "name"),
        serialization_alias="key",
        description="Property name of the field's value in form data",
    )
    label: str = Field(..., description="Human-readable label")
    placeholder: str | None = Field(default=None, description="Placeholder text")
    description: str | None = Field(default=None, description="Help text")
    required: bool = Field(default=False, description="Whether a non-empty value is required")
    rules: Any = Field(
        default=None,
        description="Opaque rule chain: a chain string like '.min(5).email()' or a pre-built validator",
    )
    dependencies: list[Dependency] = Field(
        default_factory=list, description="Rules observing sibling fields, in declaration order"
    )

    @model_validator(mode="after")
    def _check_base(self) -> "_FieldBase":
        ok, problem = _check_field_key(self.key)
        if not ok:
            raise ConfigurationError(f"Field '{self.id}': {problem} ({self.key!r})")
        if not isinstance(self, ChoiceField):
            for dep in self.dependencies:
                if isinstance(dep, SetsOptionsDependency):
                    raise ConfigurationError(
                        f"Field '{self.key}' of type '{self.type}' has no options "
                        f"for SETS_OPTIONS dependency on '{dep.source_field}'"
                    )
        return self


class ChoiceField(_FieldBase):
    """Base for variants with an option set."""

    options: list[FieldOption] = Field(
        default_factory=list, description="Available options, in display order"
    )

    @model_validator(mode="after")
    def _check_options(self) -> "ChoiceField":
        if not self.options:
            raise ConfigurationError(
                f"Field '{self.key}' of type '{self.type}' must have non-empty 'options'"
            )
        values = [o.value for o in self.options]
        if len(values) != len(set(values)):
            raise ConfigurationError(f"Field '{self.key}' has duplicate option values")
        return self

    @property
    def option_values(self) -> list[str]:
        return [o.value for o in self.options]


class InputField(_FieldBase):
    type: Literal["input"] = "input"


class TextareaField(_FieldBase):
    type: Literal["textarea"] = "textarea"


class SelectField(ChoiceField):
    type: Literal["select"] = "select"


class CheckboxField(ChoiceField):
    """Multi-select: the value is the list of checked option values."""

    type: Literal["checkbox"] = "checkbox"


class RadioField(ChoiceField):
    type: Literal["radio"] = "radio"


class SwitchField(_FieldBase):
    """Boolean toggle."""

    type: Literal["switch"] = "switch"


class DateField(_FieldBase):
    type: Literal["date"] = "date"


class RangeDateField(_FieldBase):
    """A (start, end) date pair."""

    type: Literal["range-date"] = "range-date"


class ArrayField(_FieldBase):
    """
    Repeated sub-form: the value is a list of item objects.

    `children` describes the schema of ONE item. Dependencies among
    children are scoped to the item they belong to.
    """

    type: Literal["array"] = "array"
    children: list["FieldConfig"] = Field(
        default_factory=list, description="Field tree of one array item"
    )
    min_items: int | None = Field(default=None, ge=0, description="Minimum item count")
    max_items: int | None = Field(default=None, ge=0, description="Maximum item count")

    @model_validator(mode="after")
    def _check_children(self) -> "ArrayField":
        if not self.children:
            raise ConfigurationError(f"Array field '{self.key}' must have non-empty 'children'")
        if (
            self.min_items is not None
            and self.max_items is not None
            and self.min_items > self.max_items
        ):
            raise ConfigurationError(
                f"Array field '{self.key}' has min_items > max_items "
                f"({self.min_items} > {self.max_items})"
            )
        check_sibling_level(self.children, f"{self.key}[]")
        return self


FieldConfig = Annotated[
    Union[
        InputField,
        TextareaField,
        SelectField,
        CheckboxField,
        SwitchField,
        RadioField,
        DateField,
        RangeDateField,
        ArrayField,
    ],
    Field(discriminator="type"),
]

ArrayField.model_rebuild()


class Step(BaseModel):
    """A page of a multi-step form. Grouping only: no effect on compilation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., description="Step identifier")
    title: str = Field(..., description="Step title")
    description: str | None = Field(default=None, description="Step description")
    fields: list[FieldConfig] = Field(default_factory=list, description="Fields on this step")


class FormDefinition(BaseModel):
    """
    A complete form: either flat `fields` or a list of `steps`.

    All steps compose one data object, so the top level for key
    uniqueness and dependency scoping spans every step.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default="form", description="Form identifier")
    title: str | None = Field(default=None, description="Form title")
    description: str | None = Field(default=None, description="Form description")
    fields: list[FieldConfig] = Field(default_factory=list, description="Top-level fields")
    steps: list[Step] = Field(default_factory=list, description="Optional multi-page grouping")

    @model_validator(mode="after")
    def _check_form(self) -> "FormDefinition":
        if self.fields and self.steps:
            raise ConfigurationError(f"Form '{self.id}' declares both 'fields' and 'steps'")
        if not self.all_fields:
            raise ConfigurationError(f"Form '{self.id}' has no fields")
        check_sibling_level(self.all_fields)
        return self

    @property
    def all_fields(self) -> list["FieldConfig"]:
        if self.steps:
            return [f for step in self.steps for f in step.fields]
        return list(self.fields)

    def to_ui_schema(self) -> dict[str, Any]:
        """Export presentation hints keyed by field key (nested for arrays)."""
        return _ui_schema(self.all_fields)


def _ui_schema(fields: list["FieldConfig"]) -> dict[str, Any]:
    ui_schema: dict[str, Any] = {}
    for field in fields:
        field_ui: dict[str, Any] = {"ui:widget": field.type, "ui:title": field.label}
        if field.placeholder:
            field_ui["ui:placeholder"] = field.placeholder
        if field.description:
            field_ui["ui:help"] = field.description
        if isinstance(field, ChoiceField):
            field_ui["ui:options"] = [o.model_dump() for o in field.options]
        if isinstance(field, ArrayField):
            field_ui["items"] = _ui_schema(field.children)
        ui_schema[field.key] = field_ui
    return ui_schema


def check_sibling_level(fields: list[Any], prefix: str = "") -> None:
    """
    Validate one sibling level: unique keys, then dependency references.

    Raises:
        ConfigurationError: On duplicate keys or bad dependencies.
    """
    seen: set[str] = set()
    for field in fields:
        if field.key in seen:
            raise ConfigurationError(f"Duplicate field key: '{join_path(prefix, field.key)}'")
        seen.add(field.key)
    check_dependencies(fields, prefix)


Tree = Union[FormDefinition, Step, ArrayField, list]


def list_fields(tree: Tree) -> list[FieldConfig]:
    """Top-level fields of a tree in declaration order (steps are flattened)."""
    if isinstance(tree, FormDefinition):
        return tree.all_fields
    if isinstance(tree, Step):
        return list(tree.fields)
    if isinstance(tree, ArrayField):
        return list(tree.children)
    if isinstance(tree, list):
        return list(tree)
    raise TypeError(f"Not a field tree: {type(tree).__name__}")


def root_fields(tree: Tree) -> list[FieldConfig]:
    """
    Top-level fields of a tree that is about to be evaluated or compiled.

    FormDefinition and ArrayField check their sibling levels when they are
    constructed; a bare field list or a standalone Step is checked here.

    Raises:
        ConfigurationError: On duplicate keys or bad dependencies.
    """
    fields = list_fields(tree)
    if isinstance(tree, (list, Step)):
        check_sibling_level(fields)
    return fields


def iter_fields(tree: Tree, prefix: str = "") -> Iterator[tuple[str, FieldConfig]]:
    """Walk every level depth-first, yielding (path, field); array children use "key[]"."""
    for field in list_fields(tree):
        path = join_path(prefix, field.key)
        yield path, field
        if isinstance(field, ArrayField):
            yield from iter_fields(field, f"{path}[]")


def find_field(tree: Tree, key: str) -> FieldConfig | None:
    """
    Find a field by key, or by dotted path into array children.

    Item indices in the path are ignored: "contacts[1].type" and
    "contacts.type" both find the `type` child of `contacts`.
    """
    fields = list_fields(tree)
    found = None
    for part in field_keys(key):
        found = next((f for f in fields if f.key == part), None)
        if found is None:
            return None
        fields = found.children if isinstance(found, ArrayField) else []
    return found


def is_array_field(field: Any) -> bool:
    return isinstance(field, ArrayField)


def has_options(field: Any) -> bool:
    return isinstance(field, ChoiceField)
