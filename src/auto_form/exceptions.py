"""
Exception types for the auto-form system.

Configuration and compilation problems are raised as soon as they are
detected. Runtime validation failures are never raised; they are returned
as a ValidationResult (see auto_form.models.validation_result).
"""


class AutoFormError(Exception):
    """Base class for all auto-form errors."""


class ConfigurationError(AutoFormError):
    """
    A field or dependency tree is malformed.

    Raised at tree-construction time (duplicate keys, missing options,
    self-dependencies, dangling source fields). A tree that raised this
    error is not usable.
    """


class RuleChainError(AutoFormError):
    """A rule chain value could not be compiled by a validator adapter."""


class SchemaCompilationError(AutoFormError):
    """
    A field tree could not be compiled into a validator.

    Attributes:
        path: Path of the offending field, e.g. "contacts[].email".
    """

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")
