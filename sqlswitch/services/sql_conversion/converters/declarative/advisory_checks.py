"""
Advisory checks - warning-only detectors run against the original statement.

The SELECT *, IN-list and LIKE checks inspect a lenient sqlglot parse; when
sqlglot returns nothing usable they report nothing. The Oracle construct
checks are lexical.
"""
import re
from typing import Callable, List, Optional, Tuple

from sqlglot import exp

from ...models import ConversionWarning, Dialect, WarningSeverity, WarningType
from ...rules.rule_config import RuleConfig, RuleId, SyntaxRule, WarningRule
from ...utils.parser_utils import parse_lenient

_I = re.IGNORECASE


# ----------------------------------------------------------------------
# AST checks
# ----------------------------------------------------------------------

def check_select_star(tree: exp.Expression, rule_config: RuleConfig) -> List[ConversionWarning]:
    for select in tree.find_all(exp.Select):
        if any(isinstance(p, exp.Star) for p in select.expressions):
            return [ConversionWarning(
                type=WarningType.PERFORMANCE_WARNING,
                message="Query selects all columns with '*'.",
                severity=WarningSeverity.INFO,
                suggestion="List the required columns explicitly.",
            )]
    return []


def check_large_in_lists(tree: exp.Expression, rule_config: RuleConfig) -> List[ConversionWarning]:
    limit = rule_config.warnings.max_in_clause_size
    findings: List[ConversionWarning] = []
    for in_expr in tree.find_all(exp.In):
        expressions = in_expr.args.get("expressions") or []
        if isinstance(expressions, list) and len(expressions) > limit:
            findings.append(ConversionWarning(
                type=WarningType.PERFORMANCE_WARNING,
                message=f"IN list has {len(expressions)} items (max {limit}).",
                severity=WarningSeverity.WARNING,
                suggestion="Load the values into a temporary table and join against it.",
            ))
    return findings


def check_leading_wildcard_like(tree: exp.Expression, rule_config: RuleConfig) -> List[ConversionWarning]:
    for like in tree.find_all(exp.Like):
        pattern = like.args.get("expression")
        if isinstance(pattern, exp.Literal) and pattern.is_string and pattern.this.startswith("%"):
            return [ConversionWarning(
                type=WarningType.PERFORMANCE_WARNING,
                message="LIKE pattern starts with a wildcard; an index on the column cannot be used.",
                severity=WarningSeverity.INFO,
                suggestion="Consider a full-text index or a reversed-value index.",
            )]
    return []


AST_CHECKS: Tuple[Tuple[RuleId, Callable[[exp.Expression, RuleConfig], List[ConversionWarning]]], ...] = (
    (WarningRule.SELECT_STAR, check_select_star),
    (WarningRule.LARGE_IN_CLAUSE, check_large_in_lists),
    (WarningRule.MISSING_INDEX, check_leading_wildcard_like),
)


# ----------------------------------------------------------------------
# Lexical checks for Oracle constructs
# ----------------------------------------------------------------------

ORACLE_OUTER_JOIN_PATTERN = re.compile(r"\(\s*\+\s*\)")
CONNECT_BY_PATTERN = re.compile(r"\bCONNECT\s+BY\b", _I)
PIVOT_PATTERN = re.compile(r"\b(UN)?PIVOT\s*\(", _I)
MERGE_PATTERN = re.compile(r"\bMERGE\s+INTO\b", _I)
RETURNING_PATTERN = re.compile(r"\bRETURNING\b.+\bINTO\b", _I | re.DOTALL)
LONG_TYPE_PATTERN = re.compile(r"\bLONG(\s+RAW)?\b", _I)


def _lexical_checks(sql: str, target: Dialect, rule_config: RuleConfig) -> List[ConversionWarning]:
    findings: List[ConversionWarning] = []

    if rule_config.is_enabled(SyntaxRule.ORACLE_JOIN) and ORACLE_OUTER_JOIN_PATTERN.search(sql):
        findings.append(ConversionWarning(
            type=WarningType.MANUAL_REVIEW_NEEDED,
            message="Oracle (+) outer join syntax detected.",
            severity=WarningSeverity.WARNING,
            suggestion="Rewrite as ANSI LEFT/RIGHT OUTER JOIN ... ON ...",
        ))

    if rule_config.is_enabled(SyntaxRule.HIERARCHICAL_QUERY) and CONNECT_BY_PATTERN.search(sql):
        findings.append(ConversionWarning(
            type=WarningType.MANUAL_REVIEW_NEEDED,
            message="Hierarchical query (CONNECT BY) is not supported.",
            severity=WarningSeverity.WARNING,
            suggestion="Rewrite using WITH RECURSIVE.",
        ))

    if target is Dialect.MYSQL:
        if rule_config.is_enabled(SyntaxRule.PIVOT) and PIVOT_PATTERN.search(sql):
            findings.append(ConversionWarning(
                type=WarningType.UNSUPPORTED_STATEMENT,
                message="PIVOT/UNPIVOT is not supported in MySQL.",
                severity=WarningSeverity.WARNING,
                suggestion="Use conditional aggregation: SUM(CASE WHEN ... THEN ... END).",
            ))
        if rule_config.is_enabled(SyntaxRule.MERGE) and MERGE_PATTERN.search(sql):
            findings.append(ConversionWarning(
                type=WarningType.UNSUPPORTED_STATEMENT,
                message="MERGE INTO is not supported in MySQL.",
                severity=WarningSeverity.WARNING,
                suggestion="Use INSERT ... ON DUPLICATE KEY UPDATE.",
            ))
        if rule_config.is_enabled(SyntaxRule.RETURNING) and RETURNING_PATTERN.search(sql):
            findings.append(ConversionWarning(
                type=WarningType.UNSUPPORTED_STATEMENT,
                message="RETURNING ... INTO is not supported in MySQL.",
                severity=WarningSeverity.WARNING,
                suggestion="Query LAST_INSERT_ID() or re-select the row after the statement.",
            ))

    if rule_config.is_enabled(WarningRule.DEPRECATED_SYNTAX) and LONG_TYPE_PATTERN.search(sql):
        findings.append(ConversionWarning(
            type=WarningType.SYNTAX_DIFFERENCE,
            message="Deprecated LONG / LONG RAW data type detected.",
            severity=WarningSeverity.INFO,
            suggestion="Migrate LONG columns to CLOB and LONG RAW to BLOB.",
        ))
    return findings


def run_advisory_checks(sql: str, source: Dialect, target: Dialect,
                        rule_config: RuleConfig) -> List[ConversionWarning]:
    """
    Run every enabled advisory check against *sql*.

    Args:
        sql: The statement as submitted.
        source: Dialect the statement is written in.
        target: Dialect it is being converted to.
        rule_config: Effective rule configuration.

    Returns:
        Warnings in check order; empty when nothing was found.
    """
    findings: List[ConversionWarning] = []

    enabled_ast_checks = [check for rule, check in AST_CHECKS if rule_config.is_enabled(rule)]
    if enabled_ast_checks:
        tree: Optional[exp.Expression] = parse_lenient(sql, source)
        if tree is not None:
            for check in enabled_ast_checks:
                findings.extend(check(tree, rule_config))

    if source is Dialect.ORACLE:
        findings.extend(_lexical_checks(sql, target, rule_config))
    return findings
