"""
Schema compiler.

Walks a field tree and produces a CompiledForm: a validator whose shape
mirrors the tree (an object of named entries, arrays of item objects),
plus a value-shape descriptor, default values and a JSON Schema export.

Leaf rule chains are compiled by a RuleAdapter (PydanticRuleAdapter by
default). The compiler adds what the rule language does not know about:
presence for required fields, membership in the ACTIVE option set for
select/radio/checkbox, item counts and recursion for arrays.
"""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from auto_form.adapters.base import RuleAdapter, RuleValidator
from auto_form.adapters.pydantic_rules import PydanticRuleAdapter
from auto_form.config import AutoFormConfig, get_config
from auto_form.evaluator import Evaluation, evaluate
from auto_form.exceptions import RuleChainError, SchemaCompilationError
from auto_form.models.field_definitions import (
    ArrayField,
    CheckboxField,
    ChoiceField,
    FormDefinition,
    Tree,
    root_fields,
)
from auto_form.models.validation_result import FieldError, ValidationResult
from auto_form.values import MISSING, is_empty, join_path

logger = logging.getLogger(__name__)

# Constraint keywords carried over from adapter-generated JSON Schema
_JSON_SCHEMA_CONSTRAINTS = ("minLength", "maxLength", "pattern", "minItems", "maxItems")

_LEAF_SHAPES: dict[str, Any] = {
    "input": "string",
    "textarea": "string",
    "select": "string",
    "radio": "string",
    "checkbox": ["string"],
    "switch": "boolean",
    "date": "date",
    "range-date": ["date", "date"],
}

_DATE_SCHEMA = {"type": "string", "format": "date"}


@dataclass
class _Run:
    """Mutable state of one validate() call."""

    evaluation: Evaluation
    config: AutoFormConfig
    errors: list[FieldError] = field(default_factory=list)

    def error(self, path: str, code: str, message: str, **extra: Any) -> None:
        self.errors.append(FieldError(path=path, code=code, message=message, **extra))

    def presence_waived(self, path: str) -> bool:
        """Hidden fields, including children of a hidden array, need no value."""
        return self.config.skip_hidden_required and self.evaluation.is_hidden(path)


def _child_path(path: str, relative: str) -> str:
    if not relative:
        return path
    if relative.startswith("["):
        return f"{path}{relative}"
    return f"{path}.{relative}"


class CompiledLeaf:
    """Validator for a single non-array field."""

    def __init__(self, field_config: Any, validator: RuleValidator):
        self.field = field_config
        self.validator = validator

    def validate(self, value: Any, path: str, run: _Run) -> None:
        if is_empty(value):
            waived = run.presence_waived(path)
            if self.field.required and not waived:
                run.error(path, "required", f"{self.field.label} is required")
                return
            # "" and [] are present values: chains like .nonempty() still apply
            if value is MISSING or value is None or waived:
                return

        problems = self.validator.validate(value)
        for relative, message in problems:
            run.error(_child_path(path, relative), "rule", message)
        if problems:
            return

        if isinstance(self.field, ChoiceField) and not is_empty(value):
            allowed = [o.value for o in run.evaluation.options_for(path)]
            chosen = value if isinstance(self.field, CheckboxField) else [value]
            for choice in chosen:
                if choice not in allowed:
                    run.error(
                        path,
                        "invalid_option",
                        f"{choice!r} is not one of the available options",
                        allowed=allowed,
                    )

    def shape(self) -> Any:
        return copy.deepcopy(_LEAF_SHAPES[self.field.type])

    def json_schema(self) -> dict[str, Any]:
        f = self.field
        if f.type in ("select", "radio"):
            prop: dict[str, Any] = {"type": "string", "enum": f.option_values}
        elif f.type == "checkbox":
            prop = {
                "type": "array",
                "items": {"type": "string", "enum": f.option_values},
                "uniqueItems": True,
            }
        elif f.type == "switch":
            prop = {"type": "boolean"}
        elif f.type == "date":
            prop = dict(_DATE_SCHEMA)
        elif f.type == "range-date":
            prop = {
                "type": "array",
                "prefixItems": [dict(_DATE_SCHEMA), dict(_DATE_SCHEMA)],
                "minItems": 2,
                "maxItems": 2,
            }
        else:
            prop = {"type": "string"}

        generated = getattr(self.validator, "json_schema", None)
        if callable(generated):
            schema = generated()
            for keyword in _JSON_SCHEMA_CONSTRAINTS:
                if keyword in schema and keyword not in prop:
                    prop[keyword] = schema[keyword]
        return _annotate(prop, f)


class CompiledArray:
    """Validator for an array field: item count, then each item object."""

    def __init__(self, field_config: ArrayField, validator: RuleValidator, item: "CompiledObject"):
        self.field = field_config
        self.validator = validator
        self.item = item

    def validate(self, value: Any, path: str, run: _Run) -> None:
        items = [] if value is MISSING or value is None else value
        if not isinstance(items, list):
            run.error(path, "type", "Expected a list of items")
            return
        if not items:
            waived = run.presence_waived(path)
            if self.field.required and not waived:
                run.error(path, "required", f"{self.field.label} is required")
                return
            # a present [] still answers to min_items and the array's rules
            if value is MISSING or value is None or waived:
                return

        for relative, message in self.validator.validate(items):
            run.error(_child_path(path, relative), "rule", message)

        min_items, max_items = self.field.min_items, self.field.max_items
        if min_items is not None and len(items) < min_items:
            run.error(path, "min_items", f"At least {min_items} item(s) required", limit=min_items)
        if max_items is not None and len(items) > max_items:
            run.error(path, "max_items", f"At most {max_items} item(s) allowed", limit=max_items)

        for index, item in enumerate(items):
            self.item.validate(item, f"{path}[{index}]", run)

    def shape(self) -> list[Any]:
        return [self.item.shape()]

    def json_schema(self) -> dict[str, Any]:
        prop: dict[str, Any] = {"type": "array", "items": self.item.json_schema()}
        if self.field.min_items is not None:
            prop["minItems"] = self.field.min_items
        if self.field.max_items is not None:
            prop["maxItems"] = self.field.max_items
        return _annotate(prop, self.field)


CompiledNode = Union[CompiledLeaf, CompiledArray]


class CompiledObject:
    """Validator for one sibling level; its keys are exactly the sibling keys."""

    def __init__(self, entries: dict[str, CompiledNode]):
        self.entries = entries

    def keys(self) -> list[str]:
        return list(self.entries)

    def validate(self, values: Any, prefix: str, run: _Run) -> None:
        if not isinstance(values, Mapping):
            run.error(prefix or "$", "type", "Expected an object")
            return
        if run.config.reject_unknown_keys:
            for key in values:
                if key not in self.entries:
                    run.error(join_path(prefix, key), "unknown", f"Unknown field '{key}'")
        for key, node in self.entries.items():
            node.validate(values.get(key, MISSING), join_path(prefix, key), run)

    def shape(self) -> dict[str, Any]:
        return {key: node.shape() for key, node in self.entries.items()}

    def json_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {key: node.json_schema() for key, node in self.entries.items()},
            "required": [key for key, node in self.entries.items() if node.field.required],
        }


def _annotate(prop: dict[str, Any], field_config: Any) -> dict[str, Any]:
    prop["title"] = field_config.label
    if field_config.description:
        prop["description"] = field_config.description
    return prop


class CompiledForm:
    """
    Compiled validator for a field tree.

    Usage:
        compiled = compile_form(form)
        result = compiled.validate({"country": "US", "state": "NY"})
        if not result.is_valid:
            print(result.messages_by_path())
    """

    def __init__(self, tree: Tree, root: CompiledObject, config: AutoFormConfig | None = None):
        self.tree = tree
        self.root = root
        self._config = config

    @property
    def config(self) -> AutoFormConfig:
        return self._config or get_config()

    def keys(self) -> list[str]:
        """Top-level keys in declaration order."""
        return self.root.keys()

    def validate(
        self, values: Mapping[str, Any], evaluation: Evaluation | None = None
    ) -> ValidationResult:
        """
        Validate form data. Never raises for invalid data.

        Args:
            values: Form data to validate.
            evaluation: Dependency evaluation for `values`. Computed when
                omitted; select/radio/checkbox values are checked against
                its active options.
        """
        if evaluation is None:
            evaluation = evaluate(self.tree, values if isinstance(values, Mapping) else None)
        run = _Run(evaluation=evaluation, config=self.config)
        self.root.validate(values, "", run)

        logger.debug(f"Validated form data: {len(run.errors)} error(s)")
        return ValidationResult(
            errors=run.errors,
            data=None if run.errors else copy.deepcopy(dict(values)),
            stale_paths=sorted(evaluation.stale_paths),
        )

    def value_shape(self) -> dict[str, Any]:
        """Type names of the form data, e.g. {"contacts": [{"name": "string"}]}."""
        return self.root.shape()

    def default_values(self) -> dict[str, Any]:
        return default_values(self.tree)

    def to_json_schema(self) -> dict[str, Any]:
        """Export as JSON Schema dict."""
        schema: dict[str, Any] = {"$schema": self.config.json_schema_version}
        if isinstance(self.tree, FormDefinition):
            if self.tree.title:
                schema["title"] = self.tree.title
            if self.tree.description:
                schema["description"] = self.tree.description
        schema.update(self.root.json_schema())
        schema["additionalProperties"] = not self.config.reject_unknown_keys
        return schema


def _default_for(field_config: Any) -> Any:
    if field_config.type in ("input", "textarea"):
        return ""
    if field_config.type in ("checkbox", "array"):
        return []
    if field_config.type == "switch":
        return False
    return None


def default_values(tree: Tree) -> dict[str, Any]:
    """Initial form data: "" for text, [] for checkbox/array, False for switch, else None."""
    return {f.key: _default_for(f) for f in root_fields(tree)}


def _compile_level(fields: list[Any], prefix: str, adapter: RuleAdapter) -> CompiledObject:
    entries: dict[str, CompiledNode] = {}
    for field_config in fields:
        path = join_path(prefix, field_config.key)
        if field_config.key in entries:
            raise SchemaCompilationError(path, "duplicate key")
        if isinstance(field_config, ChoiceField) and not field_config.options:
            raise SchemaCompilationError(path, "option set is empty")

        try:
            validator = adapter.compile(field_config.rules, field_config)
        except RuleChainError as e:
            raise SchemaCompilationError(path, str(e)) from e

        if isinstance(field_config, ArrayField):
            if not field_config.children:
                raise SchemaCompilationError(path, "array has no children")
            item = _compile_level(field_config.children, f"{path}[]", adapter)
            entries[field_config.key] = CompiledArray(field_config, validator, item)
        else:
            entries[field_config.key] = CompiledLeaf(field_config, validator)
    return CompiledObject(entries)


def compile_form(
    tree: Tree,
    adapter: RuleAdapter | None = None,
    config: AutoFormConfig | None = None,
) -> CompiledForm:
    """
    Compile a field tree into a validator.

    Args:
        tree: A FormDefinition, Step, ArrayField or list of fields.
        adapter: Rule-chain adapter. Defaults to PydanticRuleAdapter.
        config: Validation policy. Defaults to the global configuration.

    Raises:
        SchemaCompilationError: If a rule chain cannot be compiled or an
            option set is empty. `error.path` names the field, with array
            children addressed as "contacts[].email".
    """
    adapter = adapter or PydanticRuleAdapter()
    root = _compile_level(root_fields(tree), "", adapter)
    logger.debug(f"Compiled form with keys {root.keys()}")
    return CompiledForm(tree, root, config)
