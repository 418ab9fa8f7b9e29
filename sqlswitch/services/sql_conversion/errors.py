"""Exception types raised by the SQL conversion engine."""


class ConversionError(Exception):
    """Base class for all conversion engine errors."""


class UnknownRuleError(ConversionError):
    """Raised when a rule identifier is not part of the closed rule catalogue."""

    def __init__(self, category, rule_id):
        self.category = category
        self.rule_id = rule_id
        super().__init__(f"Unknown rule '{rule_id}' in category '{category}'")


class UnsupportedDialectError(ConversionError, ValueError):
    """Raised when a dialect name does not match any supported dialect."""


class RuleConfigError(ConversionError, ValueError):
    """Raised for invalid rule configuration files or overrides."""
