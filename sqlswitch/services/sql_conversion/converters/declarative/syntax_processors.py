"""
Oracle syntax processors.

Each processor is a pure function ``(sql, target_dialect) -> ProcessorOutcome``
that recognises one Oracle-specific construct and removes it, rewrites it for
the target dialect, or leaves the text untouched and reports a warning.

Contract shared by every processor:
  * no trigger construct in the input -> input returned unchanged, no rule;
  * rewriting processors are idempotent (a second run finds nothing);
  * a processor that fires names exactly one applied rule.

Patterns are compiled once at import time. ``PROCESSORS`` lists the
processors in pipeline order together with the rule that gates each one.
"""
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ...models import ConversionWarning, Dialect, WarningSeverity, WarningType
from ...rules.rule_config import DdlRule, FunctionRule, RuleId, SyntaxRule, WarningRule

_I = re.IGNORECASE


@dataclass(frozen=True)
class ProcessorOutcome:
    sql: str
    applied_rule: Optional[str] = None
    warning: Optional[ConversionWarning] = None

    @property
    def fired(self) -> bool:
        return self.applied_rule is not None


def _unchanged(sql: str) -> ProcessorOutcome:
    return ProcessorOutcome(sql)


def _strip(pattern: re.Pattern, sql: str, rule_name: str, replacement: str = "",
           warning: Optional[ConversionWarning] = None) -> ProcessorOutcome:
    """Remove every match of *pattern*; fire only when something was removed."""
    new_sql, count = pattern.subn(replacement, sql)
    if count == 0:
        return _unchanged(sql)
    return ProcessorOutcome(new_sql, rule_name, warning)


def _is_open_source_target(target: Dialect) -> bool:
    return target in (Dialect.MYSQL, Dialect.POSTGRESQL)


# ---------------------------------------------------------------------------
# Phase 1: option and hint stripping
# ---------------------------------------------------------------------------

PARTITION_PATTERN = re.compile(r"\bPARTITION\s+BY\s+(RANGE|LIST|HASH)\b", _I)


def detect_partitioning(sql: str, target: Dialect) -> ProcessorOutcome:
    """Warning-only: partition clauses are reported, never rewritten."""
    match = PARTITION_PATTERN.search(sql)
    if not match or not _is_open_source_target(target):
        return _unchanged(sql)
    kind = match.group(1).upper()
    warning = ConversionWarning(
        type=WarningType.MANUAL_REVIEW_NEEDED,
        message=f"PARTITION BY {kind} detected; {target.display_name} partitioning syntax differs from Oracle.",
        severity=WarningSeverity.WARNING,
        suggestion=f"Review the partition definitions against the {target.display_name} partitioning documentation.",
    )
    return ProcessorOutcome(sql, f"Detected PARTITION BY {kind}", warning)


LOCAL_INDEX_PATTERN = re.compile(r"\s+LOCAL\b(?!\s+TIME\b)\s*(\([^)]*\))?", _I)
GLOBAL_INDEX_PATTERN = re.compile(r"\s+GLOBAL\b(?!\s+TEMPORARY\b)", _I)


def strip_index_scope(sql: str, target: Dialect) -> ProcessorOutcome:
    """Drop LOCAL/GLOBAL partitioned-index keywords."""
    new_sql, local_count = LOCAL_INDEX_PATTERN.subn(" ", sql)
    new_sql, global_count = GLOBAL_INDEX_PATTERN.subn(" ", new_sql)
    if local_count + global_count == 0:
        return _unchanged(sql)
    warning = None
    if local_count:
        warning = ConversionWarning(
            type=WarningType.PARTIAL_SUPPORT,
            message="LOCAL partitioned index converted to a regular index.",
            severity=WarningSeverity.INFO,
        )
    return ProcessorOutcome(new_sql, "Removed LOCAL/GLOBAL index keyword", warning)


LOB_OPTION_PATTERN = re.compile(r"\s+(SECUREFILE|BASICFILE)\b", _I)
LOB_STORAGE_PATTERN = re.compile(
    r"\s*\bLOB\s*\([^)]*\)\s*STORE\s+AS\b"
    r"(?:\s+(?:SECUREFILE|BASICFILE)\b)?"
    r"(?:\s+(?!(?:SECUREFILE|BASICFILE|TABLESPACE|PARTITION|LOB)\b)\"?\w+\"?)?"
    r"(?:\s*\((?:[^()]|\([^()]*\))*\))?",
    _I,
)


def strip_lob_options(sql: str, target: Dialect) -> ProcessorOutcome:
    """Open-source targets lose the whole LOB storage clause; Oracle keeps it minus SECUREFILE/BASICFILE."""
    if _is_open_source_target(target):
        return _strip(LOB_STORAGE_PATTERN, sql, "Removed LOB storage clause")
    return _strip(LOB_OPTION_PATTERN, sql, "Removed SECUREFILE/BASICFILE LOB option", " ")


TABLESPACE_PATTERN = re.compile(r"\s*\bTABLESPACE\s+[\"']?\w+[\"']?", _I)


def strip_tablespace(sql: str, target: Dialect) -> ProcessorOutcome:
    """MySQL has no tablespace clause on tables; other targets keep it."""
    if target is not Dialect.MYSQL:
        return _unchanged(sql)
    return _strip(TABLESPACE_PATTERN, sql, "Removed TABLESPACE clause")


STORAGE_PATTERN = re.compile(r"\s*\bSTORAGE\s*\([^)]*\)", _I)


def strip_storage_clause(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(STORAGE_PATTERN, sql, "Removed STORAGE clause")


PHYSICAL_ATTRIBUTE_PATTERN = re.compile(r"\s*\b(PCTFREE|PCTUSED|INITRANS|MAXTRANS)\s+\d+", _I)


def strip_physical_attributes(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(PHYSICAL_ATTRIBUTE_PATTERN, sql, "Removed physical attributes (PCTFREE/PCTUSED/INITRANS/MAXTRANS)")


CONSTRAINT_STATE_PATTERN = re.compile(
    r"(?P<clause>\)|\b(?:KEY|NULL|UNIQUE|CASCADE|INDEX|DEFERRABLE|DEFERRED|IMMEDIATE)|\bTABLESPACE\s+\"?\w+\"?)"
    r"\s+(ENABLE|DISABLE)\b(?!\s+ROW\s+MOVEMENT\b)(\s+(VALIDATE|NOVALIDATE)\b)?",
    _I,
)


def strip_constraint_state(sql: str, target: Dialect) -> ProcessorOutcome:
    if target is Dialect.ORACLE:
        return _unchanged(sql)
    return _strip(CONSTRAINT_STATE_PATTERN, sql, "Removed constraint state (ENABLE/DISABLE [NO]VALIDATE)",
                  r"\g<clause>")


USING_INDEX_PATTERN = re.compile(
    r"\s+USING\s+INDEX\b"
    r"(\s+(?!TABLESPACE\b)[^\s,;()]+)?"
    r"(\s*\([^)]*\))?"
    r"(\s+TABLESPACE\s+[^\s,;)]+)?",
    _I,
)


def strip_using_index(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(USING_INDEX_PATTERN, sql, "Removed USING INDEX clause")


COMPRESSION_PATTERN = re.compile(
    r"\s*\b(COMPRESS|NOCOMPRESS)\b(\s+FOR\s+(OLTP|QUERY|ARCHIVE)(\s+(LOW|HIGH))?)?(\s+\d+)?", _I
)


def strip_compression(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(COMPRESSION_PATTERN, sql, "Removed COMPRESS/NOCOMPRESS option")


COMMENT_ON_PATTERN = re.compile(
    r"\bCOMMENT\s+ON\s+(COLUMN|TABLE)\s+(\S+)\s+IS\s+'(?:[^']|'')*'\s*;?", _I
)


def remove_comment_on(sql: str, target: Dialect) -> ProcessorOutcome:
    """MySQL has no standalone COMMENT ON; the comment must move inline."""
    if target is not Dialect.MYSQL:
        return _unchanged(sql)
    matches = list(COMMENT_ON_PATTERN.finditer(sql))
    if not matches:
        return _unchanged(sql)
    new_sql = COMMENT_ON_PATTERN.sub("", sql)
    kinds = {m.group(1).upper() for m in matches}
    if kinds == {"TABLE"}:
        suggestion = "ALTER TABLE <table> COMMENT = '<text>'"
    else:
        suggestion = "ALTER TABLE ... MODIFY COLUMN ... COMMENT '...'"
    warning = ConversionWarning(
        type=WarningType.SYNTAX_DIFFERENCE,
        message=f"Removed {len(matches)} COMMENT ON statement(s); MySQL has no standalone COMMENT ON.",
        severity=WarningSeverity.WARNING,
        suggestion=f"Attach comments inline, e.g. {suggestion}",
    )
    return ProcessorOutcome(new_sql, "Removed COMMENT ON statement", warning)


SEGMENT_CREATION_PATTERN = re.compile(r"\s*\bSEGMENT\s+CREATION\s+(IMMEDIATE|DEFERRED)\b", _I)


def strip_segment_creation(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(SEGMENT_CREATION_PATTERN, sql, "Removed SEGMENT CREATION clause")


LOGGING_PATTERN = re.compile(r"\s*\b(NO)?LOGGING\b", _I)


def strip_logging(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(LOGGING_PATTERN, sql, "Removed LOGGING/NOLOGGING option")


PARALLEL_PATTERN = re.compile(r"\s*\b(NO)?PARALLEL\b(?!\s*\()(\s+\d+)?", _I)


def strip_parallel(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(PARALLEL_PATTERN, sql, "Removed PARALLEL/NOPARALLEL option")


RESULT_CACHE_PATTERN = re.compile(r"/\*\+?\s*RESULT_CACHE[^*]*\*/", _I)


def strip_result_cache_hint(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(RESULT_CACHE_PATTERN, sql, "Removed RESULT_CACHE hint")


CACHE_PATTERN = re.compile(r"\s*\b(NO)?CACHE\b(?!\s*[()])(\s+\d+)?", _I)


def strip_cache(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(CACHE_PATTERN, sql, "Removed CACHE/NOCACHE option")


ROWDEPENDENCIES_PATTERN = re.compile(r"\s*\b(NO)?ROWDEPENDENCIES\b", _I)


def strip_rowdependencies(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(ROWDEPENDENCIES_PATTERN, sql, "Removed ROWDEPENDENCIES option")


MONITORING_PATTERN = re.compile(r"\s*\b(NO)?MONITORING\b", _I)


def strip_monitoring(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(MONITORING_PATTERN, sql, "Removed MONITORING option")


DEFAULT_SYSDATE_PATTERN = re.compile(r"\bDEFAULT\s+(SYSDATE|SYSTIMESTAMP)\b", _I)


def convert_default_sysdate(sql: str, target: Dialect) -> ProcessorOutcome:
    if not _is_open_source_target(target):
        return _unchanged(sql)
    return _strip(DEFAULT_SYSDATE_PATTERN, sql, "Converted DEFAULT SYSDATE to DEFAULT CURRENT_TIMESTAMP",
                  "DEFAULT CURRENT_TIMESTAMP")


FLASHBACK_ARCHIVE_PATTERN = re.compile(
    r"\s*\b(NO\s+)?FLASHBACK\s+ARCHIVE\b(\s+(?!(?:ENABLE|DISABLE|ROW)\b)\"?\w+\"?)?", _I
)


def strip_flashback_archive(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(FLASHBACK_ARCHIVE_PATTERN, sql, "Removed FLASHBACK ARCHIVE clause")


ROW_MOVEMENT_PATTERN = re.compile(r"\s*\b(ENABLE|DISABLE)\s+ROW\s+MOVEMENT\b", _I)


def strip_row_movement(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(ROW_MOVEMENT_PATTERN, sql, "Removed ROW MOVEMENT clause")


SEQUENCE_REFERENCE_PATTERN = re.compile(r"\b([A-Za-z_][A-Za-z0-9_$#]*)\.(NEXTVAL|CURRVAL)\b", _I)


def convert_sequence_references(sql: str, target: Dialect) -> ProcessorOutcome:
    """``seq.NEXTVAL`` -> ``nextval('seq')`` (PostgreSQL) or a NULL placeholder (MySQL)."""
    if not _is_open_source_target(target) or not SEQUENCE_REFERENCE_PATTERN.search(sql):
        return _unchanged(sql)

    if target is Dialect.POSTGRESQL:
        new_sql = SEQUENCE_REFERENCE_PATTERN.sub(lambda m: f"{m.group(2).lower()}('{m.group(1)}')", sql)
        return ProcessorOutcome(new_sql, "Converted sequence NEXTVAL/CURRVAL to nextval()/currval()")

    new_sql = SEQUENCE_REFERENCE_PATTERN.sub(
        lambda m: f"NULL /* sequence {m.group(1)} {m.group(2).upper()} unsupported */", sql
    )
    warning = ConversionWarning(
        type=WarningType.UNSUPPORTED_FUNCTION,
        message="MySQL has no sequences; NEXTVAL/CURRVAL references were replaced with NULL.",
        severity=WarningSeverity.WARNING,
        suggestion="Use an AUTO_INCREMENT column or a sequence emulation table.",
    )
    return ProcessorOutcome(new_sql, "Replaced sequence NEXTVAL/CURRVAL references", warning)


# ---------------------------------------------------------------------------
# Phase 2: identifier normalization
# ---------------------------------------------------------------------------

# Any word.word chain, quoted or not. Numeric literals such as 1.5 match as
# well; callers relying on decimals must disable SCHEMA_PREFIX.
SCHEMA_PREFIX_PATTERN = re.compile(r'(?:"?\w+"?\.)+"?(\w+)"?')


def strip_schema_prefix(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(SCHEMA_PREFIX_PATTERN, sql, "Removed schema prefix", r"\1")


QUOTED_IDENTIFIER_PATTERN = re.compile(r'"([A-Za-z_][A-Za-z0-9_]*)"')


def unquote_identifiers(sql: str, target: Dialect) -> ProcessorOutcome:
    return _strip(QUOTED_IDENTIFIER_PATTERN, sql, "Removed double-quoted identifier syntax", r"\1")


# ---------------------------------------------------------------------------
# Pipeline order
# ---------------------------------------------------------------------------

Processor = Callable[[str, Dialect], ProcessorOutcome]


@dataclass(frozen=True)
class ProcessorSpec:
    processor: Processor
    gate: RuleId

    @property
    def name(self) -> str:
        return self.processor.__name__


PROCESSORS: Tuple[ProcessorSpec, ...] = (
    ProcessorSpec(detect_partitioning, WarningRule.UNSUPPORTED_SYNTAX),
    ProcessorSpec(strip_index_scope, DdlRule.INDEXES),
    ProcessorSpec(strip_lob_options, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_tablespace, DdlRule.TABLESPACE),
    ProcessorSpec(strip_storage_clause, DdlRule.STORAGE),
    ProcessorSpec(strip_physical_attributes, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_constraint_state, DdlRule.CONSTRAINTS),
    ProcessorSpec(strip_using_index, DdlRule.CONSTRAINTS),
    ProcessorSpec(strip_compression, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(remove_comment_on, DdlRule.COMMENTS),
    ProcessorSpec(strip_segment_creation, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_logging, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_parallel, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_result_cache_hint, SyntaxRule.ORACLE_HINTS),
    ProcessorSpec(strip_cache, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_rowdependencies, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_monitoring, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(convert_default_sysdate, FunctionRule.DATE_FUNCTIONS),
    ProcessorSpec(strip_flashback_archive, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(strip_row_movement, DdlRule.PHYSICAL_ATTRIBUTES),
    ProcessorSpec(convert_sequence_references, FunctionRule.SEQUENCES),
    ProcessorSpec(strip_schema_prefix, DdlRule.SCHEMA_PREFIX),
    ProcessorSpec(unquote_identifiers, DdlRule.SCHEMA_PREFIX),
)

DETECTION_ONLY = frozenset({"detect_partitioning"})
