"""
Rule configuration for SQL conversion.

A RuleConfig is a tree of toggles grouped by concern. Each group is a
frozen dataclass whose fields carry their documented defaults, and each
group has a matching enum naming its rules, so lookups go through a
closed catalogue rather than free-form strings.

Presets
-------
- ``default``: every conversion rule on, standard advisory warnings.
- ``minimal``: only structurally necessary conversions, advisory warnings off.
- ``strict``:  ``default`` plus extra advisory warnings and a lower IN-list limit.

Every preset spells out every toggle; presets are never deltas of each other.
"""
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any, Callable, Dict, Type, Union

from ..errors import RuleConfigError, UnknownRuleError


# ---------------------------------------------------------------------------
# Rule groups
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataTypeRules:
    convert_varchar2: bool = True
    convert_number: bool = True
    convert_clob: bool = True
    convert_blob: bool = True
    convert_date: bool = True
    convert_boolean: bool = True
    convert_raw: bool = True
    convert_float: bool = True
    remove_byte_suffix: bool = True


@dataclass(frozen=True)
class FunctionRules:
    convert_nvl: bool = True
    convert_nvl2: bool = True
    convert_decode: bool = True
    convert_date_functions: bool = True
    convert_string_functions: bool = True
    convert_aggregate_functions: bool = True
    convert_analytic_functions: bool = True
    convert_rownum: bool = True
    handle_dual_table: bool = True
    convert_sequences: bool = True


@dataclass(frozen=True)
class DdlRules:
    remove_tablespace: bool = True
    remove_storage_clause: bool = True
    remove_physical_attributes: bool = True
    remove_schema_prefix: bool = True
    convert_comments: bool = True
    convert_constraints: bool = True
    convert_indexes: bool = True
    convert_sequences: bool = True
    convert_triggers: bool = False
    convert_views: bool = True
    convert_partitions: bool = False


@dataclass(frozen=True)
class SyntaxRules:
    convert_oracle_join: bool = True
    convert_hierarchical_query: bool = True
    convert_pivot: bool = True
    convert_merge: bool = True
    handle_oracle_hints: bool = True
    convert_casting: bool = True
    convert_returning: bool = True


@dataclass(frozen=True)
class WarningSettings:
    warn_select_star: bool = True
    warn_large_in_clause: bool = True
    max_in_clause_size: int = 100
    warn_missing_index: bool = False
    warn_unsupported_syntax: bool = True
    warn_partial_conversion: bool = True
    warn_deprecated_syntax: bool = False
    warn_potential_data_loss: bool = True


# ---------------------------------------------------------------------------
# Rule identifiers (value == field name in the owning group)
# ---------------------------------------------------------------------------

class DataTypeRule(Enum):
    VARCHAR2 = "convert_varchar2"
    NUMBER = "convert_number"
    CLOB = "convert_clob"
    BLOB = "convert_blob"
    DATE = "convert_date"
    BOOLEAN = "convert_boolean"
    RAW = "convert_raw"
    FLOAT = "convert_float"
    BYTE_SUFFIX = "remove_byte_suffix"


class FunctionRule(Enum):
    NVL = "convert_nvl"
    NVL2 = "convert_nvl2"
    DECODE = "convert_decode"
    DATE_FUNCTIONS = "convert_date_functions"
    STRING_FUNCTIONS = "convert_string_functions"
    AGGREGATE_FUNCTIONS = "convert_aggregate_functions"
    ANALYTIC_FUNCTIONS = "convert_analytic_functions"
    ROWNUM = "convert_rownum"
    DUAL_TABLE = "handle_dual_table"
    SEQUENCES = "convert_sequences"


class DdlRule(Enum):
    TABLESPACE = "remove_tablespace"
    STORAGE = "remove_storage_clause"
    PHYSICAL_ATTRIBUTES = "remove_physical_attributes"
    SCHEMA_PREFIX = "remove_schema_prefix"
    COMMENTS = "convert_comments"
    CONSTRAINTS = "convert_constraints"
    INDEXES = "convert_indexes"
    SEQUENCES = "convert_sequences"
    TRIGGERS = "convert_triggers"
    VIEWS = "convert_views"
    PARTITIONS = "convert_partitions"


class SyntaxRule(Enum):
    ORACLE_JOIN = "convert_oracle_join"
    HIERARCHICAL_QUERY = "convert_hierarchical_query"
    PIVOT = "convert_pivot"
    MERGE = "convert_merge"
    ORACLE_HINTS = "handle_oracle_hints"
    CASTING = "convert_casting"
    RETURNING = "convert_returning"


class WarningRule(Enum):
    SELECT_STAR = "warn_select_star"
    LARGE_IN_CLAUSE = "warn_large_in_clause"
    MISSING_INDEX = "warn_missing_index"
    UNSUPPORTED_SYNTAX = "warn_unsupported_syntax"
    PARTIAL_CONVERSION = "warn_partial_conversion"
    DEPRECATED_SYNTAX = "warn_deprecated_syntax"
    POTENTIAL_DATA_LOSS = "warn_potential_data_loss"


RuleId = Union[DataTypeRule, FunctionRule, DdlRule, SyntaxRule, WarningRule]


class RuleCategory(Enum):
    DATA_TYPES = "data_types"
    FUNCTIONS = "functions"
    DDL = "ddl"
    SYNTAX = "syntax"
    WARNINGS = "warnings"


# category -> (RuleConfig attribute, group dataclass, rule enum)
CATEGORY_CATALOGUE: Dict[RuleCategory, tuple] = {
    RuleCategory.DATA_TYPES: ("data_types", DataTypeRules, DataTypeRule),
    RuleCategory.FUNCTIONS: ("functions", FunctionRules, FunctionRule),
    RuleCategory.DDL: ("ddl", DdlRules, DdlRule),
    RuleCategory.SYNTAX: ("syntax", SyntaxRules, SyntaxRule),
    RuleCategory.WARNINGS: ("warnings", WarningSettings, WarningRule),
}

_CATEGORY_BY_ENUM = {enum_cls: category for category, (_, _, enum_cls) in CATEGORY_CATALOGUE.items()}


# ---------------------------------------------------------------------------
# RuleConfig
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleConfig:
    data_types: DataTypeRules = DataTypeRules()
    functions: FunctionRules = FunctionRules()
    ddl: DdlRules = DdlRules()
    syntax: SyntaxRules = SyntaxRules()
    warnings: WarningSettings = WarningSettings()

    # ---------- presets ----------
    @classmethod
    def default(cls) -> "RuleConfig":
        return cls(
            data_types=DataTypeRules(
                convert_varchar2=True, convert_number=True, convert_clob=True,
                convert_blob=True, convert_date=True, convert_boolean=True,
                convert_raw=True, convert_float=True, remove_byte_suffix=True,
            ),
            functions=FunctionRules(
                convert_nvl=True, convert_nvl2=True, convert_decode=True,
                convert_date_functions=True, convert_string_functions=True,
                convert_aggregate_functions=True, convert_analytic_functions=True,
                convert_rownum=True, handle_dual_table=True, convert_sequences=True,
            ),
            ddl=DdlRules(
                remove_tablespace=True, remove_storage_clause=True,
                remove_physical_attributes=True, remove_schema_prefix=True,
                convert_comments=True, convert_constraints=True, convert_indexes=True,
                convert_sequences=True, convert_triggers=False, convert_views=True,
                convert_partitions=False,
            ),
            syntax=SyntaxRules(
                convert_oracle_join=True, convert_hierarchical_query=True,
                convert_pivot=True, convert_merge=True, handle_oracle_hints=True,
                convert_casting=True, convert_returning=True,
            ),
            warnings=WarningSettings(
                warn_select_star=True, warn_large_in_clause=True, max_in_clause_size=100,
                warn_missing_index=False, warn_unsupported_syntax=True,
                warn_partial_conversion=True, warn_deprecated_syntax=False,
                warn_potential_data_loss=True,
            ),
        )

    @classmethod
    def minimal(cls) -> "RuleConfig":
        return cls(
            data_types=DataTypeRules(
                convert_varchar2=True, convert_number=True, convert_clob=True,
                convert_blob=True, convert_date=False, convert_boolean=False,
                convert_raw=True, convert_float=True, remove_byte_suffix=True,
            ),
            functions=FunctionRules(
                convert_nvl=True, convert_nvl2=True, convert_decode=False,
                convert_date_functions=False, convert_string_functions=False,
                convert_aggregate_functions=True, convert_analytic_functions=False,
                convert_rownum=True, handle_dual_table=True, convert_sequences=True,
            ),
            ddl=DdlRules(
                remove_tablespace=True, remove_storage_clause=True,
                remove_physical_attributes=True, remove_schema_prefix=True,
                convert_comments=True, convert_constraints=False, convert_indexes=False,
                convert_sequences=True, convert_triggers=False, convert_views=True,
                convert_partitions=False,
            ),
            syntax=SyntaxRules(
                convert_oracle_join=True, convert_hierarchical_query=True,
                convert_pivot=True, convert_merge=True, handle_oracle_hints=True,
                convert_casting=True, convert_returning=True,
            ),
            warnings=WarningSettings(
                warn_select_star=False, warn_large_in_clause=False, max_in_clause_size=100,
                warn_missing_index=False, warn_unsupported_syntax=True,
                warn_partial_conversion=True, warn_deprecated_syntax=False,
                warn_potential_data_loss=False,
            ),
        )

    @classmethod
    def strict(cls) -> "RuleConfig":
        base = cls.default()
        return replace(
            base,
            warnings=WarningSettings(
                warn_select_star=True, warn_large_in_clause=True, max_in_clause_size=50,
                warn_missing_index=True, warn_unsupported_syntax=True,
                warn_partial_conversion=True, warn_deprecated_syntax=True,
                warn_potential_data_loss=True,
            ),
        )

    # ---------- lookup ----------
    def is_enabled(self, rule: RuleId) -> bool:
        """Lookup with the category inferred from the rule's enum type."""
        category = _CATEGORY_BY_ENUM.get(type(rule))
        if category is None:
            raise UnknownRuleError("unknown", rule)
        return is_enabled(self, category, rule)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return asdict(self)


PRESETS: Dict[str, Callable[[], RuleConfig]] = {
    "default": RuleConfig.default,
    "minimal": RuleConfig.minimal,
    "strict": RuleConfig.strict,
}


def preset(name: str) -> RuleConfig:
    """Return the named preset, raising RuleConfigError for unknown names."""
    factory = PRESETS.get(str(name).strip().lower())
    if factory is None:
        raise RuleConfigError(f"Unknown preset '{name}'. Expected one of: {', '.join(PRESETS)}")
    return factory()


def _resolve_category(category: Union[RuleCategory, str]) -> RuleCategory:
    if isinstance(category, RuleCategory):
        return category
    try:
        return RuleCategory(str(category).lower())
    except ValueError:
        raise UnknownRuleError(category, "*") from None


def _resolve_rule(category: RuleCategory, rule_id: Union[RuleId, str]) -> Enum:
    enum_cls = CATEGORY_CATALOGUE[category][2]
    if isinstance(rule_id, enum_cls):
        return rule_id
    if isinstance(rule_id, str):
        key = rule_id.strip()
        if key.upper() in enum_cls.__members__:
            return enum_cls[key.upper()]
        for member in enum_cls:
            if member.value == key.lower():
                return member
    raise UnknownRuleError(category.value, rule_id)


def is_enabled(config: RuleConfig, category: Union[RuleCategory, str], rule_id: Union[RuleId, str]) -> bool:
    """
    Total lookup over the rule catalogue.

    Args:
        config: The rule configuration to inspect.
        category: A RuleCategory or its value (e.g. ``"ddl"``).
        rule_id: A rule enum member, its name (``"TABLESPACE"``) or its field
            name (``"remove_tablespace"``).

    Returns:
        Whether the rule is switched on.

    Raises:
        UnknownRuleError: the category or rule is not part of the catalogue.
    """
    resolved_category = _resolve_category(category)
    rule = _resolve_rule(resolved_category, rule_id)
    attr = CATEGORY_CATALOGUE[resolved_category][0]
    return bool(getattr(getattr(config, attr), rule.value))


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class RuleConfigBuilder:
    """
    Compose a RuleConfig from per-category option blocks.

    Starts from ``RuleConfig.default()`` unless a base config is given, so
    ``RuleConfigBuilder().build() == RuleConfig.default()``.

    Example::

        config = (RuleConfigBuilder()
                  .data_types(convert_date=False)
                  .warnings(max_in_clause_size=20)
                  .build())
    """

    def __init__(self, base: RuleConfig = None):
        self._config = base if base is not None else RuleConfig.default()

    def _update(self, category: RuleCategory, options: Dict[str, Any]) -> "RuleConfigBuilder":
        attr, group_cls, _ = CATEGORY_CATALOGUE[category]
        known = {f.name: f for f in fields(group_cls)}
        for name, value in options.items():
            if name not in known:
                raise RuleConfigError(f"Unknown option '{name}' for category '{category.value}'")
            expected = int if known[name].type in (int, "int") else bool
            if expected is bool and not isinstance(value, bool):
                raise RuleConfigError(f"Option '{category.value}.{name}' must be a boolean, got {value!r}")
            if expected is int and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
                raise RuleConfigError(f"Option '{category.value}.{name}' must be a positive integer, got {value!r}")
        group = replace(getattr(self._config, attr), **options)
        self._config = replace(self._config, **{attr: group})
        return self

    def data_types(self, **options) -> "RuleConfigBuilder":
        return self._update(RuleCategory.DATA_TYPES, options)

    def functions(self, **options) -> "RuleConfigBuilder":
        return self._update(RuleCategory.FUNCTIONS, options)

    def ddl(self, **options) -> "RuleConfigBuilder":
        return self._update(RuleCategory.DDL, options)

    def syntax(self, **options) -> "RuleConfigBuilder":
        return self._update(RuleCategory.SYNTAX, options)

    def warnings(self, **options) -> "RuleConfigBuilder":
        return self._update(RuleCategory.WARNINGS, options)

    def category(self, category: Union[RuleCategory, str], **options) -> "RuleConfigBuilder":
        try:
            resolved = category if isinstance(category, RuleCategory) else RuleCategory(str(category).lower())
        except ValueError:
            raise RuleConfigError(f"Unknown rule category '{category}'") from None
        return self._update(resolved, options)

    def build(self) -> RuleConfig:
        return self._config
