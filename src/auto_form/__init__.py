"""
auto-form: Dynamic Form Descriptions with Reactive Dependencies.

Declare a form as a tree of typed fields, compile it into a validator,
and evaluate which fields are hidden and which options are active as the
form data changes.

Simple Usage:
    from auto_form import FormDefinition, compile_form, evaluate

    form = FormDefinition.model_validate({
        "fields": [
            {"id": "1", "key": "country", "label": "Country", "type": "select",
             "options": [{"label": "US", "value": "US"}, {"label": "CA", "value": "CA"}]},
            {"id": "2", "key": "state", "label": "State", "type": "input",
             "dependencies": [{"sourceField": "country", "type": "HIDES",
                               "when": {"operator": "NOT_EQUALS", "value": "US"}}]},
        ]
    })

    evaluate(form, {"country": "CA"}).is_hidden("state")   # True
    compile_form(form).validate({"country": "US", "state": "NY"}).is_valid

Live Forms:
    from auto_form import FormSession

    session = FormSession(form)
    with session.batch():
        session.set_value("country", "US")
        session.set_value("state", "NY")
    session.hidden("state")     # False
    result = session.validate()

Serialization:
    from auto_form import dump_form_json, load_form_json

    text = dump_form_json(form)
    form = load_form_json(text)
"""

from auto_form.adapters import (
    PydanticRuleAdapter,
    RuleAdapter,
    RuleValidator,
)
from auto_form.compiler import (
    CompiledForm,
    compile_form,
    default_values,
)
from auto_form.config import (
    AutoFormConfig,
    get_config,
    setup_logging,
    update_config,
)
from auto_form.evaluator import (
    Evaluation,
    dependents,
    evaluate,
)
from auto_form.exceptions import (
    AutoFormError,
    ConfigurationError,
    RuleChainError,
    SchemaCompilationError,
)
from auto_form.models import (
    ArrayField,
    CheckboxField,
    Condition,
    ConditionOperator,
    DateField,
    ErrorCode,
    FieldConfig,
    FieldError,
    FieldOption,
    FormDefinition,
    HidesDependency,
    InputField,
    RadioField,
    RangeDateField,
    SelectField,
    SetsOptionsDependency,
    Step,
    SwitchField,
    TextareaField,
    ValidationResult,
    find_field,
    is_array_field,
    iter_fields,
    list_fields,
    root_fields,
)
from auto_form.serialization import (
    dump_form,
    dump_form_json,
    load_form,
    load_form_json,
)
from auto_form.session import (
    FormSession,
    ValueSnapshot,
)
from auto_form.theme import (
    ThemePreference,
    create_theme_preference,
)
from auto_form.values import MISSING

__all__ = [
    # Field definitions
    "ArrayField",
    "CheckboxField",
    "DateField",
    "FieldConfig",
    "FieldOption",
    "FormDefinition",
    "InputField",
    "RadioField",
    "RangeDateField",
    "SelectField",
    "Step",
    "SwitchField",
    "TextareaField",
    "find_field",
    "is_array_field",
    "iter_fields",
    "list_fields",
    "root_fields",
    # Dependencies
    "Condition",
    "ConditionOperator",
    "HidesDependency",
    "SetsOptionsDependency",
    "MISSING",
    # Compilation & evaluation
    "CompiledForm",
    "compile_form",
    "default_values",
    "Evaluation",
    "dependents",
    "evaluate",
    "FormSession",
    "ValueSnapshot",
    # Rule adapters
    "PydanticRuleAdapter",
    "RuleAdapter",
    "RuleValidator",
    # Validation
    "ValidationResult",
    "ErrorCode",
    "FieldError",
    # Serialization
    "dump_form",
    "dump_form_json",
    "load_form",
    "load_form_json",
    # Errors
    "AutoFormError",
    "ConfigurationError",
    "RuleChainError",
    "SchemaCompilationError",
    # Configuration
    "AutoFormConfig",
    "get_config",
    "setup_logging",
    "update_config",
    # Theme
    "ThemePreference",
    "create_theme_preference",
]

__version__ = "0.1.0"
