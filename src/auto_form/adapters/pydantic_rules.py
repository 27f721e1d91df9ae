"""
Default validator adapter backed by pydantic.

Rule chains are the builder's chained-call strings, for example
".min(5).email()" or "z.string().max(80).trim()". Each call maps to a
pydantic constraint on the base type implied by the field variant:

    input/textarea/select/radio  str
    checkbox                     list[str]
    switch                       bool
    date                         datetime.date
    range-date                   (date, date), start <= end
    array                        list of items (items checked by the compiler)

Pre-built validators are accepted as-is: any object with a `validate`
method, a pydantic TypeAdapter, or any type pydantic can build a
TypeAdapter for (e.g. `Annotated[str, StringConstraints(min_length=2)]`).
"""

import ast
import re
from collections.abc import Callable
from datetime import date
from typing import Annotated, Any, get_origin

from pydantic import (
    AfterValidator,
    AnyUrl,
    Field,
    PydanticUserError,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)
from pydantic.errors import PydanticInvalidForJsonSchema
from pydantic.networks import validate_email
from pydantic_core import SchemaError

from auto_form.exceptions import RuleChainError

_CALL = re.compile(
    r"""\s*\.\s*(?P<name>[A-Za-z_]\w*)\s*\((?P<args>(?:[^()"']|"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')*)\)\s*"""
)

# Calls that only restate the base type
_BASE_MARKERS = frozenset({"string", "date", "boolean", "array", "optional"})

_URL_ADAPTER = TypeAdapter(AnyUrl)


def parse_rule_chain(chain: str) -> list[tuple[str, tuple[Any, ...]]]:
    """
    Split a rule chain into (name, args) calls.

    >>> parse_rule_chain(".min(5).regex('^[a-z]+$')")
    [('min', (5,)), ('regex', ('^[a-z]+$',))]

    Raises:
        RuleChainError: If the chain is not a sequence of calls with literal args.
    """
    text = chain.strip()
    if text.startswith("z."):
        text = text[1:]
    calls: list[tuple[str, tuple[Any, ...]]] = []
    pos = 0
    while pos < len(text):
        match = _CALL.match(text, pos)
        if not match:
            raise RuleChainError(f"Cannot parse rule chain {chain!r} at {text[pos:]!r}")
        raw_args = match.group("args").strip()
        try:
            args = ast.literal_eval(f"({raw_args},)") if raw_args else ()
        except (ValueError, SyntaxError) as e:
            raise RuleChainError(
                f"Invalid arguments for .{match.group('name')}() in {chain!r}: {raw_args}"
            ) from e
        calls.append((match.group("name"), args))
        pos = match.end()
    return calls


def _field_kind(field: Any) -> str:
    return {
        "input": "string",
        "textarea": "string",
        "select": "string",
        "radio": "string",
        "checkbox": "list",
        "switch": "bool",
        "date": "date",
        "range-date": "date_range",
        "array": "items",
    }[field.type]


def _ordered_range(value: tuple[date, date]) -> tuple[date, date]:
    start, end = value
    if start > end:
        raise ValueError("Range start must not be after range end")
    return value


_BASE_TYPES: dict[str, Any] = {
    "string": str,
    "list": list[str],
    "bool": bool,
    "date": date,
    "date_range": Annotated[tuple[date, date], AfterValidator(_ordered_range)],
    "items": list[Any],
}


class _ChainBuilder:
    """Accumulates constraints for one field while walking its rule chain."""

    def __init__(self, kind: str, chain: str):
        self.kind = kind
        self.chain = chain
        self.constraints: dict[str, Any] = {}
        self.validators: list[Callable[[Any], Any]] = []

    def fail(self, message: str) -> RuleChainError:
        return RuleChainError(f"{message} in rule chain {self.chain!r}")

    def require(self, name: str, *kinds: str) -> None:
        if self.kind not in kinds:
            raise self.fail(f".{name}() does not apply to {self.kind} values")

    def single(self, name: str, args: tuple[Any, ...], expected: type) -> Any:
        if len(args) != 1 or not isinstance(args[0], expected) or isinstance(args[0], bool):
            raise self.fail(f".{name}() takes one {expected.__name__} argument")
        return args[0]

    def bound(self, name: str, args: tuple[Any, ...], length_key: str, date_key: str) -> None:
        if self.kind == "date":
            raw = self.single(name, args, str)
            try:
                self.constraints[date_key] = date.fromisoformat(raw)
            except ValueError as e:
                raise self.fail(f".{name}() needs an ISO date, got {raw!r}") from e
            return
        self.require(name, "string", "list", "items")
        self.constraints[length_key] = self.single(name, args, int)

    def apply(self, name: str, args: tuple[Any, ...]) -> None:
        if name in _BASE_MARKERS:
            return
        if name == "min":
            self.bound(name, args, "min_length", "ge")
        elif name == "max":
            self.bound(name, args, "max_length", "le")
        elif name == "length":
            self.require(name, "string", "list", "items")
            size = self.single(name, args, int)
            self.constraints["min_length"] = size
            self.constraints["max_length"] = size
        elif name == "nonempty":
            self.require(name, "string", "list", "items")
            self.constraints["min_length"] = max(1, self.constraints.get("min_length", 0))
        elif name == "trim":
            self.require(name, "string")
            self.constraints["strip_whitespace"] = True
        elif name == "regex":
            self.require(name, "string")
            pattern = self.single(name, args, str)
            try:
                re.compile(pattern)
            except re.error as e:
                raise self.fail(f"Invalid pattern {pattern!r}") from e
            self.constraints["pattern"] = pattern
        elif name == "email":
            self.require(name, "string")
            self.validators.append(_check_email)
        elif name == "url":
            self.require(name, "string")
            self.validators.append(_check_url)
        elif name == "startsWith":
            self.require(name, "string")
            prefix = self.single(name, args, str)
            self.validators.append(_starts_with(prefix))
        elif name == "endsWith":
            self.require(name, "string")
            suffix = self.single(name, args, str)
            self.validators.append(_ends_with(suffix))
        else:
            raise self.fail(f"Unknown rule .{name}()")

    def annotation(self) -> Any:
        metadata: list[Any] = []
        if self.constraints:
            if self.kind == "string":
                metadata.append(StringConstraints(**self.constraints))
            else:
                metadata.append(Field(**self.constraints))
        metadata.extend(AfterValidator(v) for v in self.validators)
        base = _BASE_TYPES[self.kind]
        if not metadata:
            return base
        return Annotated[(base, *metadata)]


def _check_email(value: str) -> str:
    validate_email(value)
    return value


def _check_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        raise ValueError("Invalid URL")
    return value


def _starts_with(prefix: str) -> Callable[[str], str]:
    def check(value: str) -> str:
        if not value.startswith(prefix):
            raise ValueError(f"Must start with {prefix!r}")
        return value

    return check


def _ends_with(suffix: str) -> Callable[[str], str]:
    def check(value: str) -> str:
        if not value.endswith(suffix):
            raise ValueError(f"Must end with {suffix!r}")
        return value

    return check


def _loc_to_path(loc: tuple[Any, ...]) -> str:
    path = ""
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path.lstrip(".")


class PydanticRuleValidator:
    """RuleValidator over a pydantic TypeAdapter."""

    def __init__(self, adapter: TypeAdapter, rules: Any = None):
        self.adapter = adapter
        self.rules = rules

    def validate(self, value: Any) -> list[tuple[str, str]]:
        try:
            self.adapter.validate_python(value)
        except ValidationError as exc:
            return [(_loc_to_path(err["loc"]), err["msg"]) for err in exc.errors()]
        return []

    def json_schema(self) -> dict[str, Any]:
        try:
            return self.adapter.json_schema()
        except PydanticInvalidForJsonSchema:
            return {}


class DuckRuleValidator:
    """RuleValidator over a caller-supplied object with a `validate` method."""

    def __init__(self, validator: Any):
        self.validator = validator

    def validate(self, value: Any) -> list[tuple[str, str]]:
        try:
            result = self.validator.validate(value)
        except ValueError as exc:
            return [("", str(exc))]
        if result is None or result is True:
            return []
        if result is False:
            return [("", "Invalid value")]
        if isinstance(result, str):
            return [("", result)]
        pairs: list[tuple[str, str]] = []
        for item in result:
            if isinstance(item, str):
                pairs.append(("", item))
            else:
                path, message = item
                pairs.append((str(path), str(message)))
        return pairs


class PydanticRuleAdapter:
    """
    Compile rule chains with pydantic.

    Usage:
        adapter = PydanticRuleAdapter()
        validator = adapter.compile(".min(2).max(40)", field)
        validator.validate("x")  # [("", "String should have at least 2 characters")]
    """

    def compile(self, rules: Any, field: Any) -> PydanticRuleValidator | DuckRuleValidator:
        kind = _field_kind(field)

        if isinstance(rules, TypeAdapter):
            return PydanticRuleValidator(rules, rules)
        if (
            rules is not None
            and not isinstance(rules, (str, type))
            and get_origin(rules) is None
            and callable(getattr(rules, "validate", None))
        ):
            return DuckRuleValidator(rules)

        if rules is None or isinstance(rules, str):
            builder = _ChainBuilder(kind, rules or "")
            for name, args in parse_rule_chain(rules or ""):
                builder.apply(name, args)
            annotation = builder.annotation()
        else:
            annotation = rules

        try:
            adapter = TypeAdapter(annotation)
        except (PydanticUserError, SchemaError, TypeError) as e:
            raise RuleChainError(f"Cannot build validator from {rules!r}: {e}") from e
        return PydanticRuleValidator(adapter, rules)
