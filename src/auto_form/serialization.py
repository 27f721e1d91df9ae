"""
Round trip of form definitions to plain data and JSON.

The plain form uses the builder's camelCase attribute names
(`sourceField`, `minItems`, ...). Loading re-runs every construction
check, so a tree that violates them is rejected with ConfigurationError.
"""

import json
from typing import Any

from pydantic import ValidationError

from auto_form.config import get_config
from auto_form.exceptions import ConfigurationError
from auto_form.models.field_definitions import FormDefinition, iter_fields


def _check_serializable(form: FormDefinition) -> None:
    for path, field in iter_fields(form):
        if field.rules is not None and not isinstance(field.rules, str):
            raise ConfigurationError(
                f"Field '{path}' uses a pre-built validator; only rule-chain strings serialize"
            )
        for dep in field.dependencies:
            if not dep.is_serializable:
                raise ConfigurationError(
                    f"Field '{path}' has a callable predicate on '{dep.source_field}'; "
                    "only declarative conditions serialize"
                )


def dump_form(form: FormDefinition) -> dict[str, Any]:
    """
    Convert a form to plain serializable data.

    Raises:
        ConfigurationError: If the form holds callables or pre-built validators.
    """
    _check_serializable(form)
    return form.model_dump(mode="json", by_alias=True, exclude_none=True)


def load_form(data: dict[str, Any]) -> FormDefinition:
    """
    Build a form from plain data.

    Raises:
        ConfigurationError: If the data does not describe a sound form.
    """
    try:
        return FormDefinition.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid form definition: {e}") from e


def dump_form_json(form: FormDefinition, indent: int | None = None) -> str:
    if indent is None:
        indent = get_config().indent_json_output
    return json.dumps(dump_form(form), indent=indent)


def load_form_json(text: str) -> FormDefinition:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON: {str(e)}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("Form definition must be a JSON object")
    return load_form(data)
