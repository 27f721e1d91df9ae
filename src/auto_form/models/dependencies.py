"""
Dependency models: rules linking one field to a sibling field.

A dependency is declared on its TARGET field and observes the value of
its source field:

- HIDES: the target is hidden while the predicate holds.
- SETS_OPTIONS: the target's option set is replaced while the predicate
  holds (last matching rule wins).

Predicates are either Python callables or declarative Conditions. Only
Conditions survive serialization.
"""

from collections.abc import Callable, Sequence
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from auto_form.exceptions import ConfigurationError
from auto_form.values import MISSING, is_empty, join_path


class FieldOption(BaseModel):
    """A selectable option."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str = Field(..., description="Human-readable option label")
    value: str = Field(..., description="Value stored in form data")


class ConditionOperator(str, Enum):
    """Operators for declarative conditions over a source value."""

    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    IN = "IN"
    NOT_IN = "NOT_IN"
    EXISTS = "EXISTS"
    ABSENT = "ABSENT"
    TRUTHY = "TRUTHY"
    FALSY = "FALSY"


class Condition(BaseModel):
    """
    Declarative predicate over a source field's current value.

    Absent values (MISSING) never equal anything, so NOT_EQUALS and NOT_IN
    hold for them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    operator: ConditionOperator = Field(
        default=ConditionOperator.EQUALS, description="Comparison operator"
    )
    value: Any = Field(default=None, description="Comparison value (list for IN/NOT_IN)")

    @model_validator(mode="after")
    def _check_value(self) -> "Condition":
        if self.operator in (ConditionOperator.IN, ConditionOperator.NOT_IN):
            if not isinstance(self.value, (list, tuple)):
                raise ConfigurationError(
                    f"Condition {self.operator.value} needs a list value, got {self.value!r}"
                )
        return self

    def matches(self, source_value: Any) -> bool:
        op = self.operator
        if op is ConditionOperator.EQUALS:
            return source_value is not MISSING and source_value == self.value
        if op is ConditionOperator.NOT_EQUALS:
            return source_value is MISSING or source_value != self.value
        if op is ConditionOperator.IN:
            return source_value is not MISSING and source_value in self.value
        if op is ConditionOperator.NOT_IN:
            return source_value is MISSING or source_value not in self.value
        if op is ConditionOperator.EXISTS:
            return not is_empty(source_value)
        if op is ConditionOperator.ABSENT:
            return is_empty(source_value)
        if op is ConditionOperator.TRUTHY:
            return bool(source_value)
        return not source_value


Predicate = Union[Condition, Callable[..., Any]]


class _DependencyBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    source_field: str = Field(..., description="Key of the observed sibling field")
    when: Predicate = Field(..., description="Callable predicate or declarative Condition")

    @model_validator(mode="before")
    @classmethod
    def _value_shorthand(cls, data: Any) -> Any:
        """Builder shorthand: {"value": v} means EQUALS v on the source value."""
        if isinstance(data, dict) and "value" in data:
            data = dict(data)
            value = data.pop("value")
            if data.get("when") is not None:
                raise ConfigurationError(
                    f"Dependency on '{data.get('sourceField', data.get('source_field'))}' "
                    "declares both 'when' and 'value'"
                )
            data["when"] = Condition(operator=ConditionOperator.EQUALS, value=value)
        return data

    @property
    def is_serializable(self) -> bool:
        return isinstance(self.when, Condition)


class HidesDependency(_DependencyBase):
    """Hide the target while the predicate over the source value holds."""

    type: Literal["HIDES"] = "HIDES"

    def applies(self, source_value: Any) -> bool:
        if isinstance(self.when, Condition):
            return self.when.matches(source_value)
        return bool(self.when(source_value))


class SetsOptionsDependency(_DependencyBase):
    """Replace the target's options while the predicate over (source, target) holds."""

    type: Literal["SETS_OPTIONS"] = "SETS_OPTIONS"
    options: list[FieldOption] = Field(
        default_factory=list, description="Option set that replaces the target's options"
    )

    @model_validator(mode="after")
    def _check_options(self) -> "SetsOptionsDependency":
        if not self.options:
            raise ConfigurationError(
                f"SETS_OPTIONS dependency on '{self.source_field}' must have non-empty 'options'"
            )
        return self

    def applies(self, source_value: Any, target_value: Any) -> bool:
        if isinstance(self.when, Condition):
            return self.when.matches(source_value)
        return bool(self.when(source_value, target_value))


Dependency = Annotated[
    Union[HidesDependency, SetsOptionsDependency],
    Field(discriminator="type"),
]


def check_dependencies(fields: Sequence[Any], prefix: str = "") -> None:
    """
    Validate the dependencies declared at one sibling level.

    Every source_field must name another field of the same level.

    Raises:
        ConfigurationError: On a dangling or self-referencing source field.
    """
    keys = {f.key for f in fields}
    for target in fields:
        for dep in target.dependencies:
            path = join_path(prefix, target.key)
            if dep.source_field == target.key:
                raise ConfigurationError(f"Field '{path}' cannot depend on itself")
            if dep.source_field not in keys:
                raise ConfigurationError(
                    f"Field '{path}' depends on unknown sibling '{dep.source_field}'"
                )

