from .rule_config import (
    CATEGORY_CATALOGUE,
    PRESETS,
    DataTypeRule,
    DataTypeRules,
    DdlRule,
    DdlRules,
    FunctionRule,
    FunctionRules,
    RuleCategory,
    RuleConfig,
    RuleConfigBuilder,
    SyntaxRule,
    SyntaxRules,
    WarningRule,
    WarningSettings,
    is_enabled,
    preset,
)
from .rule_service import ConversionRuleService, SessionRuleStore

__all__ = [
    "CATEGORY_CATALOGUE",
    "PRESETS",
    "DataTypeRule",
    "DataTypeRules",
    "DdlRule",
    "DdlRules",
    "FunctionRule",
    "FunctionRules",
    "RuleCategory",
    "RuleConfig",
    "RuleConfigBuilder",
    "SyntaxRule",
    "SyntaxRules",
    "WarningRule",
    "WarningSettings",
    "is_enabled",
    "preset",
    "ConversionRuleService",
    "SessionRuleStore",
]
