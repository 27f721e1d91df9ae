"""
Form session: the live value snapshot of one rendered form.

The field tree is immutable; only the value snapshot changes. Every
change produces a new ValueSnapshot with a higher version, and the
dependency evaluation is recomputed once the change has settled:

    session = FormSession(form)
    session.set_value("country", "CA")
    session.hidden("state")          # True

Writes inside `batch()` are applied to the snapshot immediately, but
evaluation and subscriber notification run once, after the outermost
batch exits, so no evaluation ever sees a half-applied batch.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from auto_form.adapters.base import RuleAdapter
from auto_form.compiler import CompiledForm, compile_form, default_values
from auto_form.config import AutoFormConfig
from auto_form.evaluator import Evaluation, dependents, evaluate
from auto_form.models.dependencies import FieldOption
from auto_form.models.field_definitions import ArrayField, Tree, find_field
from auto_form.models.validation_result import ValidationResult
from auto_form.values import MISSING, get_path, item_template, remove_path, set_path

logger = logging.getLogger(__name__)

Subscriber = Callable[["ValueSnapshot", Evaluation], None]


@dataclass(frozen=True)
class ValueSnapshot:
    """Immutable, versioned form data."""

    values: Mapping[str, Any] = field(default_factory=dict)
    version: int = 0

    def get(self, path: str, default: Any = MISSING) -> Any:
        return get_path(self.values, path, default)

    def with_value(self, path: str, value: Any) -> "ValueSnapshot":
        return ValueSnapshot(set_path(self.values, path, value), self.version + 1)

    def without_value(self, path: str) -> "ValueSnapshot":
        return ValueSnapshot(remove_path(self.values, path), self.version + 1)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)


class FormSession:
    """
    Value snapshot, evaluation and compiled schema of one form instance.

    Compilation is lazy: a tree whose rule chains fail to compile still
    evaluates hidden fields and options; only `compiled_schema()` and
    `validate()` raise SchemaCompilationError.
    """

    def __init__(
        self,
        form: Tree,
        adapter: RuleAdapter | None = None,
        config: AutoFormConfig | None = None,
        initial: Mapping[str, Any] | None = None,
    ):
        self.form = form
        self._adapter = adapter
        self._config = config
        self._compiled: CompiledForm | None = None
        self._subscribers: list[Subscriber] = []
        self._batch_depth = 0
        self._pending = False
        self._dependents = dependents(form)

        values = dict(initial) if initial is not None else default_values(form)
        self._snapshot = ValueSnapshot(values)
        self._evaluation = evaluate(form, values)
        self._settled_snapshot = self._snapshot

    @property
    def snapshot(self) -> ValueSnapshot:
        return self._snapshot

    @property
    def values(self) -> Mapping[str, Any]:
        return self._snapshot.values

    @property
    def evaluation(self) -> Evaluation:
        """Evaluation of the last settled snapshot."""
        return self._evaluation

    # -- writes ---------------------------------------------------------

    def set_value(self, path: str, value: Any) -> ValueSnapshot:
        """Replace one field's value, then re-evaluate (after the batch, if any)."""
        self._snapshot = self._snapshot.with_value(path, value)
        logger.debug(
            f"Set {path} (version {self._snapshot.version}), affects {list(self.dependents_of(path))}"
        )
        self._changed()
        return self._snapshot

    def clear_value(self, path: str) -> ValueSnapshot:
        """Remove a value from the snapshot; hidden fields keep theirs unless cleared here."""
        self._snapshot = self._snapshot.without_value(path)
        logger.debug(f"Cleared {path} (version {self._snapshot.version})")
        self._changed()
        return self._snapshot

    def append_item(self, array_path: str, item: Mapping[str, Any] | None = None) -> int:
        """
        Append an item to an array field.

        Returns:
            Index of the new item.
        """
        array_field = self._array_field(array_path)
        items = list(self._snapshot.get(array_path, None) or [])
        items.append(dict(item) if item is not None else default_values(array_field))
        self.set_value(array_path, items)
        return len(items) - 1

    def remove_item(self, array_path: str, index: int) -> None:
        self._array_field(array_path)
        items = list(self._snapshot.get(array_path, None) or [])
        if not 0 <= index < len(items):
            raise IndexError(f"{array_path} has no item {index}")
        del items[index]
        self.set_value(array_path, items)

    def _array_field(self, array_path: str) -> ArrayField:
        found = find_field(self.form, array_path)
        if not isinstance(found, ArrayField):
            raise KeyError(f"'{array_path}' is not an array field")
        return found

    @contextmanager
    def batch(self) -> Iterator["FormSession"]:
        """Defer evaluation and notifications until the outermost batch exits."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending:
                self._settle()

    def _changed(self) -> None:
        if self._batch_depth:
            self._pending = True
            return
        self._settle()

    def _settle(self) -> None:
        self._pending = False
        if self._settled_snapshot.version == self._snapshot.version:
            return
        self._evaluation = evaluate(self.form, self._snapshot.values)
        self._settled_snapshot = self._snapshot
        if self._evaluation.stale_paths:
            logger.warning(
                f"Values no longer among active options: {sorted(self._evaluation.stale_paths)}"
            )
        for callback in list(self._subscribers):
            callback(self._snapshot, self._evaluation)

    # -- reads ----------------------------------------------------------

    def hidden(self, path: str) -> bool:
        return self._evaluation.is_hidden(path)

    def options_for(self, path: str) -> list[FieldOption]:
        return self._evaluation.options_for(path)

    def dependents_of(self, path: str) -> tuple[str, ...]:
        """Compile-time paths of the fields whose dependencies observe `path`."""
        return self._dependents.get(item_template(path), ())

    def compiled_schema(self) -> CompiledForm:
        if self._compiled is None:
            self._compiled = compile_form(self.form, self._adapter, self._config)
        return self._compiled

    def validate(self) -> ValidationResult:
        """Validate the settled snapshot against the compiled schema."""
        snapshot = self._settled_snapshot
        return self.compiled_schema().validate(snapshot.values, self._evaluation)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call `callback(snapshot, evaluation)` after every settled change.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
