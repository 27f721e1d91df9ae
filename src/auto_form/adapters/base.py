"""
Validator adapter interface.

The rule language is external to the form core: an adapter turns a
field's opaque `rules` value into a RuleValidator. The compiler only
composes validators over the field tree.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RuleValidator(Protocol):
    """A compiled rule chain."""

    def validate(self, value: Any) -> list[tuple[str, str]]:
        """Return (relative path, message) pairs; an empty list means valid."""
        ...


class RuleAdapter(Protocol):
    """Compiles rule chains into validators."""

    def compile(self, rules: Any, field: Any) -> RuleValidator:
        """
        Compile `rules` for `field`.

        Raises:
            RuleChainError: If the rule chain cannot be compiled.
        """
        ...
