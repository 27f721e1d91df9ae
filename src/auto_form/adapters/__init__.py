"""
Validator adapters for rule chains.
"""

from auto_form.adapters.base import RuleAdapter, RuleValidator
from auto_form.adapters.pydantic_rules import (
    DuckRuleValidator,
    PydanticRuleAdapter,
    PydanticRuleValidator,
    parse_rule_chain,
)

__all__ = [
    "RuleAdapter",
    "RuleValidator",
    "PydanticRuleAdapter",
    "PydanticRuleValidator",
    "DuckRuleValidator",
    "parse_rule_chain",
]
