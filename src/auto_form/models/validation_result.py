"""
Outcome of validating form data against a compiled form.

A ValidationResult is returned, never raised. Each FieldError names the
value path it applies to ("contacts[2].email", or "$" for the data as a
whole), so the result reduces to the (path, message) pairs a rendering
layer displays next to its widgets.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ErrorCode = Literal[
    "required",
    "rule",
    "invalid_option",
    "min_items",
    "max_items",
    "unknown",
    "type",
]


class FieldError(BaseModel):
    """One failed check at a value path."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Value path, e.g. 'contacts[2].email'; '$' for the whole object")
    code: ErrorCode = Field(..., description="Which check failed")
    message: str = Field(..., description="Human-readable message")
    allowed: list[str] | None = Field(
        default=None, description="Active option values, for invalid_option"
    )
    limit: int | None = Field(default=None, description="Item bound, for min_items / max_items")


class ValidationResult(BaseModel):
    """Errors found in one value snapshot, plus the data when there were none."""

    errors: list[FieldError] = Field(default_factory=list, description="Failed checks in tree order")
    data: dict[str, Any] | None = Field(
        default=None, description="Deep copy of the validated data; None when invalid"
    )
    stale_paths: list[str] = Field(
        default_factory=list,
        description="Option-bearing fields whose value is outside their active options",
    )

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def errors_at(self, path: str) -> list[FieldError]:
        return [e for e in self.errors if e.path == path]

    def messages_by_path(self) -> dict[str, list[str]]:
        """Group messages under their value path, keeping tree order."""
        grouped: dict[str, list[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.path, []).append(error.message)
        return grouped

    def to_pairs(self) -> list[tuple[str, str]]:
        return [(e.path, e.message) for e in self.errors]
