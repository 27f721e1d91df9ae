"""
Dependency evaluator.

`evaluate(tree, values)` is a pure function of the field tree and a value
snapshot. It computes which fields are hidden and which option set is
active for every option-bearing field. Nothing is retained between
calls; callers re-evaluate on every settled value change.

Rules:
- HIDES: a field is hidden if ANY of its HIDES predicates holds.
- SETS_OPTIONS: predicates are checked in declaration order and the LAST
  one that holds supplies the active options; if none holds, the
  declared options are active.
- Array items are evaluated independently against their own item values.
- A value that is no longer among its field's active options is flagged
  as stale, never cleared.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from auto_form.models.dependencies import FieldOption, HidesDependency, SetsOptionsDependency
from auto_form.models.field_definitions import (
    ArrayField,
    ChoiceField,
    Tree,
    root_fields,
)
from auto_form.values import MISSING, is_empty, join_path, path_ancestors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evaluation:
    """Hidden set and active options for one value snapshot."""

    hidden_paths: frozenset[str] = frozenset()
    active_options: Mapping[str, tuple[FieldOption, ...]] = field(default_factory=dict)
    stale_paths: frozenset[str] = frozenset()

    def is_hidden(self, path: str) -> bool:
        """True if the field at path, or an array field enclosing it, is hidden."""
        if path in self.hidden_paths:
            return True
        return any(p in self.hidden_paths for p in path_ancestors(path))

    def options_for(self, path: str) -> list[FieldOption]:
        """Active options of the field at path; empty for fields without options."""
        return list(self.active_options.get(path, ()))

    def is_stale(self, path: str) -> bool:
        return path in self.stale_paths


def _lookup(values: Any, key: str) -> Any:
    if isinstance(values, Mapping):
        return values.get(key, MISSING)
    return MISSING


def is_hidden(field_config: Any, values: Any) -> bool:
    """OR across the field's HIDES dependencies, evaluated against sibling values."""
    for dep in field_config.dependencies:
        if isinstance(dep, HidesDependency) and dep.applies(_lookup(values, dep.source_field)):
            return True
    return False


def active_options(field_config: ChoiceField, values: Any) -> tuple[FieldOption, ...]:
    """Options of the last SETS_OPTIONS dependency that holds, else the declared options."""
    current = _lookup(values, field_config.key)
    options = tuple(field_config.options)
    for dep in field_config.dependencies:
        if isinstance(dep, SetsOptionsDependency) and dep.applies(
            _lookup(values, dep.source_field), current
        ):
            options = tuple(dep.options)
    return options


def _is_stale(value: Any, options: tuple[FieldOption, ...]) -> bool:
    if is_empty(value):
        return False
    allowed = {o.value for o in options}
    if isinstance(value, list):
        return any(v not in allowed for v in value)
    return value not in allowed


def _evaluate_level(
    fields: list[Any],
    values: Any,
    prefix: str,
    hidden: set[str],
    options: dict[str, tuple[FieldOption, ...]],
    stale: set[str],
) -> None:
    for field_config in fields:
        path = join_path(prefix, field_config.key)
        current = _lookup(values, field_config.key)

        if is_hidden(field_config, values):
            hidden.add(path)

        if isinstance(field_config, ChoiceField):
            active = active_options(field_config, values)
            options[path] = active
            if _is_stale(current, active):
                stale.add(path)

        if isinstance(field_config, ArrayField) and isinstance(current, list):
            for index, item in enumerate(current):
                _evaluate_level(
                    field_config.children,
                    item,
                    join_path(prefix, field_config.key, index),
                    hidden,
                    options,
                    stale,
                )


def dependents(tree: Tree, prefix: str = "") -> dict[str, tuple[str, ...]]:
    """
    Index from source field to the fields whose dependencies observe it.

    Paths are compile-time paths, so array children appear once as
    "contacts[].type" and stand for every item.

    >>> dependents(form)
    {'country': ('state',)}
    """
    index: dict[str, list[str]] = {}
    for field_config in root_fields(tree):
        path = join_path(prefix, field_config.key)
        for dep in field_config.dependencies:
            targets = index.setdefault(join_path(prefix, dep.source_field), [])
            if path not in targets:
                targets.append(path)
        if isinstance(field_config, ArrayField):
            for source, targets in dependents(field_config, f"{path}[]").items():
                index.setdefault(source, []).extend(targets)
    return {source: tuple(targets) for source, targets in index.items()}


def evaluate(tree: Tree, values: Mapping[str, Any] | None = None) -> Evaluation:
    """
    Evaluate dependencies of a field tree against a value snapshot.

    Args:
        tree: A FormDefinition, Step, ArrayField or list of fields.
        values: Current form data keyed by field key. Missing keys reach
            predicates as MISSING.

    Returns:
        Evaluation with hidden paths, active options and stale paths.
        Array children are addressed as "contacts[0].type".
    """
    hidden: set[str] = set()
    options: dict[str, tuple[FieldOption, ...]] = {}
    stale: set[str] = set()
    _evaluate_level(root_fields(tree), values or {}, "", hidden, options, stale)

    if stale:
        logger.debug(f"Values outside active options: {sorted(stale)}")

    return Evaluation(
        hidden_paths=frozenset(hidden),
        active_options=options,
        stale_paths=frozenset(stale),
    )
