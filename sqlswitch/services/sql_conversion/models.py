"""
Core data model for SQL conversion.

Defines the dialect tags, the warning taxonomy threaded through every
converter, the per-call options and the result envelope returned by the
orchestrator.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import UnsupportedDialectError


class Dialect(str, Enum):
    ORACLE = "oracle"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"

    @classmethod
    def from_string(cls, value) -> "Dialect":
        """Resolve a dialect from its name, value or a common alias."""
        if isinstance(value, Dialect):
            return value
        key = str(value or "").strip().lower()
        aliases = {
            "oracle": cls.ORACLE,
            "mysql": cls.MYSQL,
            "postgresql": cls.POSTGRESQL,
            "postgres": cls.POSTGRESQL,
            "pg": cls.POSTGRESQL,
        }
        if key not in aliases:
            raise UnsupportedDialectError(
                f"Unsupported dialect '{value}'. Expected one of: oracle, mysql, postgresql"
            )
        return aliases[key]

    @property
    def display_name(self) -> str:
        return {"oracle": "Oracle", "mysql": "MySQL", "postgresql": "PostgreSQL"}[self.value]


class WarningType(str, Enum):
    SYNTAX_DIFFERENCE = "syntax-difference"
    UNSUPPORTED_FUNCTION = "unsupported-function"
    UNSUPPORTED_STATEMENT = "unsupported-statement"
    PARTIAL_SUPPORT = "partial-support"
    MANUAL_REVIEW_NEEDED = "manual-review-needed"
    PERFORMANCE_WARNING = "performance-warning"
    DATA_TYPE_MISMATCH = "data-type-mismatch"


class WarningSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ConversionWarning:
    type: WarningType
    message: str
    severity: WarningSeverity = WarningSeverity.WARNING
    suggestion: Optional[str] = None

    def escalated(self) -> "ConversionWarning":
        """Return a copy with ``warning`` severity raised to ``error``."""
        if self.severity is WarningSeverity.WARNING:
            return replace(self, severity=WarningSeverity.ERROR)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "severity": self.severity.value,
            "suggestion": self.suggestion,
        }


@dataclass
class StageResult:
    """SQL produced by one conversion stage plus what the stage recorded."""
    sql: str
    applied_rules: List[str] = field(default_factory=list)
    warnings: List[ConversionWarning] = field(default_factory=list)

    def absorb(self, other: "StageResult") -> "StageResult":
        """Take over the SQL of *other* and append its rules and warnings."""
        self.sql = other.sql
        self.applied_rules.extend(other.applied_rules)
        self.warnings.extend(other.warnings)
        return self


@dataclass(frozen=True)
class ConversionOptions:
    strict_mode: bool = False
    enable_comments: bool = True
    format_sql: bool = True
    replace_unsupported_functions: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConversionOptions":
        """Build options from a request payload (camelCase or snake_case keys)."""
        if not data:
            return cls()
        keys = {
            "strict_mode": ("strictMode", "strict_mode"),
            "enable_comments": ("enableComments", "enable_comments"),
            "format_sql": ("formatSql", "format_sql"),
            "replace_unsupported_functions": ("replaceUnsupportedFunctions", "replace_unsupported_functions"),
        }
        values = {}
        for attr, names in keys.items():
            for name in names:
                if name in data and data[name] is not None:
                    values[attr] = bool(data[name])
                    break
        return cls(**values)

    def to_dict(self) -> Dict[str, bool]:
        return {
            "strictMode": self.strict_mode,
            "enableComments": self.enable_comments,
            "formatSql": self.format_sql,
            "replaceUnsupportedFunctions": self.replace_unsupported_functions,
        }


@dataclass
class ConversionResult:
    original_sql: str
    converted_sql: str
    source_dialect: Optional[Dialect]
    target_dialect: Optional[Dialect]
    warnings: List[ConversionWarning] = field(default_factory=list)
    applied_rules: List[str] = field(default_factory=list)
    elapsed_millis: int = 0
    success: bool = True
    error: Optional[str] = None

    @property
    def has_errors(self) -> bool:
        return any(w.severity is WarningSeverity.ERROR for w in self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        """JSON response shape."""
        return {
            "originalSql": self.original_sql,
            "convertedSql": self.converted_sql,
            "sourceDialect": self.source_dialect.name if self.source_dialect else None,
            "targetDialect": self.target_dialect.name if self.target_dialect else None,
            "warnings": [w.to_dict() for w in self.warnings],
            "appliedRules": list(self.applied_rules),
            "conversionTime": self.elapsed_millis,
            "success": self.success,
            "error": self.error,
        }
