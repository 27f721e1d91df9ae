"""
Data models for auto-form.

This module contains Pydantic models for:
- Field definitions (closed set of variants, array sub-forms, steps)
- Dependencies between sibling fields
- Validation results
"""

from auto_form.models.dependencies import (
    Condition,
    ConditionOperator,
    Dependency,
    FieldOption,
    HidesDependency,
    SetsOptionsDependency,
)
from auto_form.models.field_definitions import (
    ArrayField,
    CheckboxField,
    ChoiceField,
    DateField,
    FieldConfig,
    FieldType,
    FormDefinition,
    InputField,
    RadioField,
    RangeDateField,
    SelectField,
    Step,
    SwitchField,
    TextareaField,
    find_field,
    has_options,
    is_array_field,
    iter_fields,
    list_fields,
    root_fields,
)
from auto_form.models.validation_result import (
    ErrorCode,
    FieldError,
    ValidationResult,
)

__all__ = [
    # Fields
    "ArrayField",
    "CheckboxField",
    "ChoiceField",
    "DateField",
    "FieldConfig",
    "FieldOption",
    "FieldType",
    "FormDefinition",
    "InputField",
    "RadioField",
    "RangeDateField",
    "SelectField",
    "Step",
    "SwitchField",
    "TextareaField",
    # Tree access
    "find_field",
    "has_options",
    "is_array_field",
    "iter_fields",
    "list_fields",
    "root_fields",
    # Dependencies
    "Condition",
    "ConditionOperator",
    "Dependency",
    "HidesDependency",
    "SetsOptionsDependency",
    # Validation
    "ValidationResult",
    "ErrorCode",
    "FieldError",
]
