"""
Function and expression conversion between dialect pairs.

Simple renames are regex substitutions; calls whose arguments move around
(ADD_MONTHS, INSTR, DECODE, ...) are rewritten by locating the balanced
argument list and rebuilding the call. Every rewrite is tagged with the
rule that gates it, and one applied rule is recorded per group that fired.
"""
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from sqlswitch.utils.logger import setup_logger
from ...models import (ConversionWarning, Dialect, StageResult, WarningSeverity,
                       WarningType)
from ...rules.rule_config import DdlRule, FunctionRule, RuleId, SyntaxRule
from ...utils.sql_preprocessing import find_matching_paren, rewrite_calls, split_top_level
from ..base_converter import BaseConverter

_I = re.IGNORECASE

STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")

CallBuilder = Callable[[List[str]], Optional[str]]


def _call_pattern(name: str) -> re.Pattern:
    return re.compile(rf"\b{name}\s*\(", _I)


def _arity(count: int, template: str) -> CallBuilder:
    """Builder that formats *template* with the arguments when exactly *count* are given."""
    def build(args: List[str]) -> Optional[str]:
        if len(args) != count:
            return None
        return template.format(*args)
    return build


def _append_clause(sql: str, clause: str) -> str:
    stripped = sql.rstrip()
    if stripped.endswith(";"):
        return f"{stripped[:-1].rstrip()} {clause};"
    return f"{stripped} {clause}"


# ---------------------------------------------------------------------------
# Date format masks
# ---------------------------------------------------------------------------

class MaskTranslator:
    """Single-pass, longest-token-first translation of a date format mask."""

    def __init__(self, mapping: Dict[str, str], case_sensitive: bool):
        self.case_sensitive = case_sensitive
        self.mapping = mapping if case_sensitive else {k.upper(): v for k, v in mapping.items()}
        tokens = sorted(mapping, key=len, reverse=True)
        self.pattern = re.compile("|".join(re.escape(t) for t in tokens), 0 if case_sensitive else _I)

    def _lookup(self, match: re.Match) -> str:
        token = match.group(0)
        return self.mapping[token if self.case_sensitive else token.upper()]

    def recognises(self, mask: str) -> bool:
        return bool(self.pattern.search(mask))

    def translate(self, mask: str) -> str:
        return self.pattern.sub(self._lookup, mask)

    def translate_literal(self, literal: str) -> Optional[str]:
        """Translate a quoted mask; None for non-literals and non-date masks."""
        if not STRING_LITERAL.fullmatch(literal.strip()):
            return None
        inner = literal.strip()[1:-1]
        if not self.recognises(inner):
            return None
        return f"'{self.translate(inner)}'"


ORACLE_TO_MYSQL_MASK = {
    "YYYY": "%Y", "YY": "%y", "MONTH": "%M", "MON": "%b", "MM": "%m",
    "DDD": "%j", "DD": "%d", "DAY": "%W", "DY": "%a",
    "HH24": "%H", "HH12": "%h", "HH": "%h", "MI": "%i", "SS": "%s",
    "AM": "%p", "PM": "%p", "FF": "%f",
}
MYSQL_TO_ORACLE_MASK = {
    "%Y": "YYYY", "%y": "YY", "%m": "MM", "%c": "MM", "%d": "DD", "%e": "DD",
    "%j": "DDD", "%H": "HH24", "%k": "HH24", "%h": "HH12", "%I": "HH12",
    "%l": "HH12", "%i": "MI", "%s": "SS", "%S": "SS", "%p": "AM",
    "%M": "MONTH", "%b": "MON", "%W": "DAY", "%a": "DY", "%f": "FF6",
    "%T": "HH24:MI:SS", "%%": "%",
}

ORACLE_MASK_TO_MYSQL = MaskTranslator(ORACLE_TO_MYSQL_MASK, case_sensitive=False)
POSTGRESQL_MASK_TO_MYSQL = MaskTranslator({**ORACLE_TO_MYSQL_MASK, "US": "%f"}, case_sensitive=False)
MYSQL_MASK_TO_ORACLE = MaskTranslator(MYSQL_TO_ORACLE_MASK, case_sensitive=True)
MYSQL_MASK_TO_POSTGRESQL = MaskTranslator({**MYSQL_TO_ORACLE_MASK, "%f": "US"}, case_sensitive=True)


def _format_call(function_name: str, translator: MaskTranslator, single_arg: Optional[str] = None) -> CallBuilder:
    def build(args: List[str]) -> Optional[str]:
        if len(args) == 2:
            mask = translator.translate_literal(args[1])
            return f"{function_name}({args[0]}, {mask})" if mask else None
        if len(args) == 1 and single_arg:
            return single_arg.format(args[0])
        return None
    return build


# ---------------------------------------------------------------------------
# Argument-reshuffling builders
# ---------------------------------------------------------------------------

def _decode_to_case(args: List[str]) -> Optional[str]:
    if len(args) < 3:
        return None
    expr, rest = args[0], args[1:]
    default = rest.pop() if len(rest) % 2 == 1 else None
    branches = []
    for search, value in zip(rest[0::2], rest[1::2]):
        condition = f"{expr} IS NULL" if search.upper() == "NULL" else f"{expr} = {search}"
        branches.append(f"WHEN {condition} THEN {value}")
    case = "CASE " + " ".join(branches)
    if default is not None:
        case += f" ELSE {default}"
    return case + " END"


def _nvl2_to_case(args: List[str]) -> Optional[str]:
    if len(args) != 3:
        return None
    return f"CASE WHEN {args[0]} IS NOT NULL THEN {args[1]} ELSE {args[2]} END"


GROUP_CONCAT_BODY = re.compile(
    r"^(?P<expr>.*?)(?:\s+ORDER\s+BY\s+(?P<order>.*?))?(?:\s+SEPARATOR\s+(?P<sep>'(?:[^']|'')*'))?\s*$",
    _I | re.DOTALL,
)
ORDER_BY_SPLIT = re.compile(r"^(?P<head>.*?)\s+ORDER\s+BY\s+(?P<order>.*)$", _I | re.DOTALL)


def _parse_group_concat(args: List[str]) -> Optional[Tuple[str, Optional[str], str]]:
    if len(args) != 1:
        return None
    match = GROUP_CONCAT_BODY.match(args[0])
    if not match:
        return None
    return match.group("expr"), match.group("order"), match.group("sep") or "','"


def _group_concat_to_string_agg(args: List[str]) -> Optional[str]:
    parsed = _parse_group_concat(args)
    if parsed is None:
        return None
    expr, order, sep = parsed
    order_clause = f" ORDER BY {order}" if order else ""
    return f"STRING_AGG({expr}, {sep}{order_clause})"


def _group_concat_to_listagg(args: List[str]) -> Optional[str]:
    parsed = _parse_group_concat(args)
    if parsed is None:
        return None
    expr, order, sep = parsed
    return f"LISTAGG({expr}, {sep}) WITHIN GROUP (ORDER BY {order or expr})"


def _split_string_agg(args: List[str]) -> Optional[Tuple[str, str, Optional[str]]]:
    if len(args) != 2:
        return None
    match = ORDER_BY_SPLIT.match(args[1])
    if match:
        return args[0], match.group("head"), match.group("order")
    return args[0], args[1], None


def _string_agg_to_group_concat(args: List[str]) -> Optional[str]:
    parsed = _split_string_agg(args)
    if parsed is None:
        return None
    expr, sep, order = parsed
    order_clause = f" ORDER BY {order}" if order else ""
    return f"GROUP_CONCAT({expr}{order_clause} SEPARATOR {sep})"


def _string_agg_to_listagg(args: List[str]) -> Optional[str]:
    parsed = _split_string_agg(args)
    if parsed is None:
        return None
    expr, sep, order = parsed
    return f"LISTAGG({expr}, {sep}) WITHIN GROUP (ORDER BY {order or expr})"


POSITION_ARGS = re.compile(r"^(?P<needle>.+?)\s+IN\s+(?P<haystack>.+)$", _I | re.DOTALL)


def _position_call(template: str) -> CallBuilder:
    def build(args: List[str]) -> Optional[str]:
        if len(args) != 1:
            return None
        match = POSITION_ARGS.match(args[0])
        if not match:
            return None
        return template.format(needle=match.group("needle"), haystack=match.group("haystack"))
    return build


EXTRACT_ARGS = re.compile(r"^(YEAR|MONTH|DAY|HOUR|MINUTE|SECOND)\s+FROM\s+(.+)$", _I | re.DOTALL)


def _extract_to_mysql(args: List[str]) -> Optional[str]:
    if len(args) != 1:
        return None
    match = EXTRACT_ARGS.match(args[0])
    if not match:
        return None
    return f"{match.group(1).upper()}({match.group(2)})"


def _substring_to_substr(args: List[str]) -> Optional[str]:
    if len(args) < 2:
        return None
    return f"SUBSTR({', '.join(args)})"


# ---------------------------------------------------------------------------
# LISTAGG ... WITHIN GROUP (ORDER BY ...)
# ---------------------------------------------------------------------------

LISTAGG_PATTERN = _call_pattern("LISTAGG")
WITHIN_GROUP_PATTERN = re.compile(r"\s*WITHIN\s+GROUP\s*\(\s*ORDER\s+BY\s+", _I)


def convert_listagg(sql: str, target: Dialect) -> str:
    """LISTAGG -> GROUP_CONCAT (MySQL) or STRING_AGG (PostgreSQL), keeping the ordering."""
    out: List[str] = []
    pos = 0
    while True:
        match = LISTAGG_PATTERN.search(sql, pos)
        if not match:
            break
        close_index = find_matching_paren(sql, match.end() - 1)
        if close_index == -1:
            break
        args = split_top_level(sql[match.end():close_index])
        end = close_index + 1
        order = None
        within = WITHIN_GROUP_PATTERN.match(sql, end)
        if within:
            group_open = sql.index("(", end)
            group_close = find_matching_paren(sql, group_open)
            if group_close != -1:
                order = sql[within.end():group_close].strip()
                end = group_close + 1
        if len(args) not in (1, 2):
            out.append(sql[pos:match.end()])
            pos = match.end()
            continue
        expr = args[0]
        sep = args[1] if len(args) == 2 else "''"
        order_clause = f" ORDER BY {order}" if order else ""
        if target is Dialect.MYSQL:
            replacement = f"GROUP_CONCAT({expr}{order_clause} SEPARATOR {sep})"
        else:
            replacement = f"STRING_AGG({expr}, {sep}{order_clause})"
        out.append(sql[pos:match.start()])
        out.append(replacement)
        pos = end
    out.append(sql[pos:])
    return "".join(out)


# ---------------------------------------------------------------------------
# PostgreSQL :: casts
# ---------------------------------------------------------------------------

PG_CAST_PATTERN = re.compile(
    r"('(?:[^']|'')*'|[A-Za-z_][\w.]*(?:\([^()]*\))?|\d+(?:\.\d+)?)"
    r"\s*::\s*"
    r"([A-Za-z_]\w*(?:\s+(?:PRECISION|VARYING))?)"
    r"(\s*\(\s*\d+(?:\s*,\s*\d+)?\s*\))?",
    _I,
)
MYSQL_CAST_TYPES = {
    "INTEGER": "SIGNED", "INT": "SIGNED", "INT4": "SIGNED", "INT8": "SIGNED",
    "BIGINT": "SIGNED", "SMALLINT": "SIGNED", "TINYINT": "SIGNED",
    "TEXT": "CHAR", "LONGTEXT": "CHAR", "VARCHAR": "CHAR", "CHARACTER VARYING": "CHAR", "CHAR": "CHAR",
    "NUMERIC": "DECIMAL", "DECIMAL": "DECIMAL", "REAL": "FLOAT", "FLOAT": "FLOAT",
    "DOUBLE PRECISION": "DOUBLE", "DOUBLE": "DOUBLE",
    "TIMESTAMP": "DATETIME", "TIMESTAMPTZ": "DATETIME", "DATETIME": "DATETIME",
    "DATE": "DATE", "TIME": "TIME", "BOOLEAN": "UNSIGNED", "BOOL": "UNSIGNED", "JSON": "JSON",
}
ORACLE_CAST_TYPES = {
    "INTEGER": "NUMBER(10)", "INT": "NUMBER(10)", "INT4": "NUMBER(10)", "INT8": "NUMBER(19)",
    "BIGINT": "NUMBER(19)", "SMALLINT": "NUMBER(5)",
    "TEXT": "VARCHAR2(4000)", "CLOB": "VARCHAR2(4000)", "VARCHAR": "VARCHAR2", "CHARACTER VARYING": "VARCHAR2",
    "NUMERIC": "NUMBER", "DOUBLE PRECISION": "BINARY_DOUBLE", "REAL": "BINARY_FLOAT",
    "TIMESTAMPTZ": "TIMESTAMP WITH TIME ZONE", "BOOLEAN": "NUMBER(1)", "BOOL": "NUMBER(1)",
}
# Cast targets that take a length/precision suffix
PARAMETERISED_CAST_TYPES = frozenset({"CHAR", "DECIMAL", "VARCHAR2", "NUMBER", "DATETIME", "TIMESTAMP"})


def convert_casts(sql: str, target: Dialect) -> str:
    """``expr::type`` -> ``CAST(expr AS type)``, mapping the type for the target."""
    type_map = MYSQL_CAST_TYPES if target is Dialect.MYSQL else ORACLE_CAST_TYPES

    def replace(match: re.Match) -> str:
        base = re.sub(r"\s+", " ", match.group(2)).upper()
        params = (match.group(3) or "").strip()
        mapped = type_map.get(base, base)
        if base == "VARCHAR" and target is Dialect.ORACLE and not params:
            mapped = "VARCHAR2(4000)"
        if params and mapped in PARAMETERISED_CAST_TYPES:
            mapped += params
        return f"CAST({match.group(1)} AS {mapped})"

    # Chained casts (x::text::int) are resolved inside-out
    for _ in range(5):
        new_sql = PG_CAST_PATTERN.sub(replace, sql)
        if new_sql == sql:
            break
        sql = new_sql
    return sql


# ---------------------------------------------------------------------------
# Rewrite tables
# ---------------------------------------------------------------------------

GROUP_LABELS: Dict[RuleId, str] = {
    FunctionRule.NVL: "null-handling functions",
    FunctionRule.NVL2: "NVL2 functions",
    FunctionRule.DECODE: "conditional functions",
    FunctionRule.DATE_FUNCTIONS: "date functions",
    FunctionRule.STRING_FUNCTIONS: "string functions",
    FunctionRule.AGGREGATE_FUNCTIONS: "aggregate functions",
    FunctionRule.ANALYTIC_FUNCTIONS: "analytic functions",
    FunctionRule.ROWNUM: "row limiting clauses",
    FunctionRule.DUAL_TABLE: "DUAL table references",
    FunctionRule.SEQUENCES: "sequence functions",
    SyntaxRule.CASTING: "type casts",
    DdlRule.PHYSICAL_ATTRIBUTES: "table options",
}


@dataclass(frozen=True)
class FunctionRewrite:
    gate: Optional[RuleId]
    apply: Callable[[str], str]
    label: Optional[str] = None

    @property
    def group(self) -> str:
        return self.label or GROUP_LABELS[self.gate]


def _sub(pattern: str, replacement, gate: Optional[RuleId], label: Optional[str] = None) -> FunctionRewrite:
    compiled = re.compile(pattern, _I)
    return FunctionRewrite(gate, lambda sql: compiled.sub(replacement, sql), label)


def _call(name: str, build: CallBuilder, gate: Optional[RuleId]) -> FunctionRewrite:
    pattern = _call_pattern(name)
    return FunctionRewrite(gate, lambda sql: rewrite_calls(sql, pattern, build))


def _length_swap(mapping: Dict[str, str]) -> Callable[[re.Match], str]:
    return lambda m: f"{mapping[m.group(1).upper()]}("


def _limit_to_fetch(match: re.Match) -> str:
    count, comma_count, offset = match.group(1), match.group(2), match.group(3)
    if comma_count:
        return f"OFFSET {count} ROWS FETCH NEXT {comma_count} ROWS ONLY"
    if offset:
        return f"OFFSET {offset} ROWS FETCH NEXT {count} ROWS ONLY"
    return f"FETCH FIRST {count} ROWS ONLY"


def _sequence_call_to_oracle(match: re.Match) -> str:
    return f"{match.group(2)}.{match.group(1).upper()}"


_F = FunctionRule
_LIMIT = r"\bLIMIT\s+(\d+)(?:\s*,\s*(\d+)|\s+OFFSET\s+(\d+))?"
_MYSQL_TABLE_OPTIONS = r"\s*\b(?:ENGINE|(?:DEFAULT\s+)?(?:CHARSET|CHARACTER\s+SET)|COLLATE|AUTO_INCREMENT)\s*=\s*\w+"

ORACLE_TO_MYSQL: Tuple[FunctionRewrite, ...] = (
    _sub(r"\bNVL\s*\(", "IFNULL(", _F.NVL),
    _sub(r"\bSYSTIMESTAMP\b", "NOW(6)", _F.DATE_FUNCTIONS),
    _sub(r"\bSYSDATE\b", "NOW()", _F.DATE_FUNCTIONS),
    _call("TO_CHAR", _format_call("DATE_FORMAT", ORACLE_MASK_TO_MYSQL, "CAST({} AS CHAR)"), _F.DATE_FUNCTIONS),
    _call("TO_DATE", _format_call("STR_TO_DATE", ORACLE_MASK_TO_MYSQL), _F.DATE_FUNCTIONS),
    _call("TO_TIMESTAMP", _format_call("STR_TO_DATE", ORACLE_MASK_TO_MYSQL), _F.DATE_FUNCTIONS),
    _call("ADD_MONTHS", _arity(2, "DATE_ADD({0}, INTERVAL {1} MONTH)"), _F.DATE_FUNCTIONS),
    _call("MONTHS_BETWEEN", _arity(2, "TIMESTAMPDIFF(MONTH, {1}, {0})"), _F.DATE_FUNCTIONS),
    _call("TRUNC", _arity(1, "DATE({0})"), _F.DATE_FUNCTIONS),
    _sub(r"\bSUBSTR\s*\(", "SUBSTRING(", _F.STRING_FUNCTIONS),
    _sub(r"\b(LENGTHB|LENGTH)\s*\(", _length_swap({"LENGTHB": "LENGTH", "LENGTH": "CHAR_LENGTH"}), _F.STRING_FUNCTIONS),
    _call("INSTR", _arity(2, "LOCATE({1}, {0})"), _F.STRING_FUNCTIONS),
    _call("TO_NUMBER", _arity(1, "CAST({0} AS DECIMAL(38,10))"), _F.STRING_FUNCTIONS),
    FunctionRewrite(_F.AGGREGATE_FUNCTIONS, lambda sql: convert_listagg(sql, Dialect.MYSQL)),
)

ORACLE_TO_POSTGRESQL: Tuple[FunctionRewrite, ...] = (
    _sub(r"\bNVL\s*\(", "COALESCE(", _F.NVL),
    _sub(r"\b(SYSDATE|SYSTIMESTAMP)\b", "CURRENT_TIMESTAMP", _F.DATE_FUNCTIONS),
    _call("TO_DATE", _arity(2, "TO_TIMESTAMP({0}, {1})"), _F.DATE_FUNCTIONS),
    _call("ADD_MONTHS", _arity(2, "({0} + ({1}) * INTERVAL '1 month')"), _F.DATE_FUNCTIONS),
    _call("TRUNC", _arity(1, "DATE_TRUNC('day', {0})"), _F.DATE_FUNCTIONS),
    _call("INSTR", _arity(2, "POSITION({1} IN {0})"), _F.STRING_FUNCTIONS),
    _sub(r"\bLENGTHB\s*\(", "OCTET_LENGTH(", _F.STRING_FUNCTIONS),
    FunctionRewrite(_F.AGGREGATE_FUNCTIONS, lambda sql: convert_listagg(sql, Dialect.POSTGRESQL)),
    _call("MEDIAN", _arity(1, "PERCENTILE_CONT(0.5) WITHIN GROUP (ORDER BY {0})"), _F.ANALYTIC_FUNCTIONS),
    _sub(r"\s+FROM\s+DUAL\b", "", _F.DUAL_TABLE),
)

MYSQL_TO_POSTGRESQL: Tuple[FunctionRewrite, ...] = (
    _sub(r"`([^`]+)`", r"\1", None, "backtick identifiers"),
    _sub(_MYSQL_TABLE_OPTIONS, "", DdlRule.PHYSICAL_ATTRIBUTES),
    _sub(r"\bIFNULL\s*\(", "COALESCE(", _F.NVL),
    _call("IF", _arity(3, "CASE WHEN {0} THEN {1} ELSE {2} END"), _F.DECODE),
    _sub(r"\bCURDATE\s*\(\s*\)", "CURRENT_DATE", _F.DATE_FUNCTIONS),
    _sub(r"\bCURTIME\s*\(\s*\)", "CURRENT_TIME", _F.DATE_FUNCTIONS),
    _call("DATE_FORMAT", _format_call("TO_CHAR", MYSQL_MASK_TO_POSTGRESQL), _F.DATE_FUNCTIONS),
    _call("STR_TO_DATE", _format_call("TO_TIMESTAMP", MYSQL_MASK_TO_POSTGRESQL), _F.DATE_FUNCTIONS),
    _call("YEAR", _arity(1, "EXTRACT(YEAR FROM {0})"), _F.DATE_FUNCTIONS),
    _call("MONTH", _arity(1, "EXTRACT(MONTH FROM {0})"), _F.DATE_FUNCTIONS),
    _call("DAY", _arity(1, "EXTRACT(DAY FROM {0})"), _F.DATE_FUNCTIONS),
    _call("LOCATE", _arity(2, "POSITION({0} IN {1})"), _F.STRING_FUNCTIONS),
    _sub(r"\bRAND\s*\(\s*\)", "RANDOM()", _F.STRING_FUNCTIONS),
    _call("GROUP_CONCAT", _group_concat_to_string_agg, _F.AGGREGATE_FUNCTIONS),
    _sub(r"\bLAST_INSERT_ID\s*\(\s*\)", "LASTVAL()", _F.SEQUENCES),
)

MYSQL_TO_ORACLE: Tuple[FunctionRewrite, ...] = (
    _sub(r"`([^`]+)`", r"\1", None, "backtick identifiers"),
    _sub(_MYSQL_TABLE_OPTIONS, "", DdlRule.PHYSICAL_ATTRIBUTES),
    _sub(r"\bAUTO_INCREMENT\b", "GENERATED BY DEFAULT AS IDENTITY", _F.SEQUENCES),
    _sub(r"\bIFNULL\s*\(", "NVL(", _F.NVL),
    _call("IF", _arity(3, "CASE WHEN {0} THEN {1} ELSE {2} END"), _F.DECODE),
    _sub(r"\bNOW\s*\(\s*\)", "SYSDATE", _F.DATE_FUNCTIONS),
    _sub(r"\bCURDATE\s*\(\s*\)", "TRUNC(SYSDATE)", _F.DATE_FUNCTIONS),
    _call("DATE_FORMAT", _format_call("TO_CHAR", MYSQL_MASK_TO_ORACLE), _F.DATE_FUNCTIONS),
    _call("STR_TO_DATE", _format_call("TO_DATE", MYSQL_MASK_TO_ORACLE), _F.DATE_FUNCTIONS),
    _sub(r"\b(CHAR_LENGTH|LENGTH)\s*\(", _length_swap({"CHAR_LENGTH": "LENGTH", "LENGTH": "LENGTHB"}), _F.STRING_FUNCTIONS),
    _sub(r"\bSUBSTRING\s*\(", "SUBSTR(", _F.STRING_FUNCTIONS),
    _call("LOCATE", _arity(2, "INSTR({1}, {0})"), _F.STRING_FUNCTIONS),
    _call("GROUP_CONCAT", _group_concat_to_listagg, _F.AGGREGATE_FUNCTIONS),
    _sub(_LIMIT, _limit_to_fetch, _F.ROWNUM),
)

POSTGRESQL_TO_MYSQL: Tuple[FunctionRewrite, ...] = (
    FunctionRewrite(SyntaxRule.CASTING, lambda sql: convert_casts(sql, Dialect.MYSQL)),
    _call("COALESCE", _arity(2, "IFNULL({0}, {1})"), _F.NVL),
    _call("TO_CHAR", _format_call("DATE_FORMAT", POSTGRESQL_MASK_TO_MYSQL), _F.DATE_FUNCTIONS),
    _call("EXTRACT", _extract_to_mysql, _F.DATE_FUNCTIONS),
    _call("POSITION", _position_call("LOCATE({needle}, {haystack})"), _F.STRING_FUNCTIONS),
    _sub(r"\bILIKE\b", "LIKE", _F.STRING_FUNCTIONS),
    _sub(r"\bRANDOM\s*\(\s*\)", "RAND()", _F.STRING_FUNCTIONS),
    _call("STRING_AGG", _string_agg_to_group_concat, _F.AGGREGATE_FUNCTIONS),
)

POSTGRESQL_TO_ORACLE: Tuple[FunctionRewrite, ...] = (
    FunctionRewrite(SyntaxRule.CASTING, lambda sql: convert_casts(sql, Dialect.ORACLE)),
    _call("COALESCE", _arity(2, "NVL({0}, {1})"), _F.NVL),
    _sub(r"\bNOW\s*\(\s*\)", "SYSDATE", _F.DATE_FUNCTIONS),
    _call("SUBSTRING", _substring_to_substr, _F.STRING_FUNCTIONS),
    _call("POSITION", _position_call("INSTR({haystack}, {needle})"), _F.STRING_FUNCTIONS),
    _call("STRING_AGG", _string_agg_to_listagg, _F.AGGREGATE_FUNCTIONS),
    _sub(r"\b(nextval|currval)\s*\(\s*'([^']+)'(?:::regclass)?\s*\)", _sequence_call_to_oracle, _F.SEQUENCES),
    _sub(_LIMIT, _limit_to_fetch, _F.ROWNUM),
)

REWRITE_TABLES: Dict[Tuple[Dialect, Dialect], Tuple[FunctionRewrite, ...]] = {
    (Dialect.ORACLE, Dialect.MYSQL): ORACLE_TO_MYSQL,
    (Dialect.ORACLE, Dialect.POSTGRESQL): ORACLE_TO_POSTGRESQL,
    (Dialect.MYSQL, Dialect.POSTGRESQL): MYSQL_TO_POSTGRESQL,
    (Dialect.MYSQL, Dialect.ORACLE): MYSQL_TO_ORACLE,
    (Dialect.POSTGRESQL, Dialect.MYSQL): POSTGRESQL_TO_MYSQL,
    (Dialect.POSTGRESQL, Dialect.ORACLE): POSTGRESQL_TO_ORACLE,
}

# ---------------------------------------------------------------------------
# Oracle-only constructs
# ---------------------------------------------------------------------------

DECODE_PATTERN = _call_pattern("DECODE")
NVL2_PATTERN = _call_pattern("NVL2")
ROWNUM_PATTERN = re.compile(r"\bROWNUM\b", _I)
_ROWNUM_CONDITION = r"ROWNUM\s*(<=|<|=)\s*(\d+)"
ROWNUM_LIMIT_PATTERNS = (
    (re.compile(r"\bWHERE\s+" + _ROWNUM_CONDITION + r"\s+AND\s+", _I), "WHERE "),
    (re.compile(r"\s+AND\s+" + _ROWNUM_CONDITION + r"\b", _I), ""),
    (re.compile(r"\s+WHERE\s+" + _ROWNUM_CONDITION + r"\b", _I), ""),
)
KEEP_DENSE_RANK_PATTERN = re.compile(r"\bKEEP\s*\(\s*DENSE_RANK\s+(FIRST|LAST)\b", _I)
MEDIAN_PATTERN = _call_pattern("MEDIAN")


def _rownum_limit(operator: str, value: str) -> Optional[int]:
    limit = int(value)
    if operator == "<":
        return limit - 1
    if operator == "=":
        return 1 if limit == 1 else None
    return limit


class FunctionConverter(BaseConverter):
    """Rewrites built-in functions and expression syntax for the target dialect."""

    def __init__(self, source_dialect, target_dialect, rule_config, replace_unsupported_functions: bool = False):
        super().__init__(source_dialect, target_dialect, rule_config)
        self.replace_unsupported_functions = replace_unsupported_functions
        self.logger = setup_logger("FunctionConverter")

    def convert_statement(self, statement: str) -> StageResult:
        result = StageResult(sql=statement)
        if self.source_dialect == self.target_dialect:
            return result

        sql = statement
        fired: List[str] = []

        if self.source_dialect is Dialect.ORACLE:
            sql = self._convert_conditionals(sql, result, fired)

        for rewrite in REWRITE_TABLES.get((self.source_dialect, self.target_dialect), ()):
            if rewrite.gate is not None and not self.rule_config.is_enabled(rewrite.gate):
                continue
            new_sql = rewrite.apply(sql)
            if new_sql != sql:
                sql = new_sql
                if rewrite.group not in fired:
                    fired.append(rewrite.group)

        if self.source_dialect is Dialect.ORACLE:
            sql = self._convert_rownum(sql, result, fired)
            self._check_analytic_functions(sql, result)

        pair = f"{self.source_dialect.display_name} -> {self.target_dialect.display_name}"
        for group in fired:
            result.applied_rules.append(f"Converted {group} ({pair})")
        if fired:
            self.logger.debug(f"Function groups converted ({pair}): {', '.join(fired)}")
        result.sql = sql
        return result

    # ---------- DECODE / NVL2 ----------
    def _convert_conditionals(self, sql: str, result: StageResult, fired: List[str]) -> str:
        for rule, pattern, build, name in (
            (FunctionRule.DECODE, DECODE_PATTERN, _decode_to_case, "DECODE"),
            (FunctionRule.NVL2, NVL2_PATTERN, _nvl2_to_case, "NVL2"),
        ):
            if not self.rule_config.is_enabled(rule) or not pattern.search(sql):
                continue
            if not self.replace_unsupported_functions:
                result.warnings.append(ConversionWarning(
                    type=WarningType.UNSUPPORTED_FUNCTION,
                    message=f"{name} has no direct {self.target_dialect.display_name} equivalent and was left unchanged.",
                    severity=WarningSeverity.WARNING,
                    suggestion=f"Rewrite {name} as CASE WHEN ... END or enable replaceUnsupportedFunctions.",
                ))
                continue
            new_sql = rewrite_calls(sql, pattern, build)
            if new_sql != sql:
                sql = new_sql
                fired.append(GROUP_LABELS[rule])
        return sql

    # ---------- ROWNUM ----------
    def _convert_rownum(self, sql: str, result: StageResult, fired: List[str]) -> str:
        if not self.rule_config.is_enabled(FunctionRule.ROWNUM) or not ROWNUM_PATTERN.search(sql):
            return sql
        for pattern, replacement in ROWNUM_LIMIT_PATTERNS:
            match = pattern.search(sql)
            if not match:
                continue
            limit = _rownum_limit(match.group(1), match.group(2))
            if limit is None:
                continue
            sql = _append_clause(sql[:match.start()] + replacement + sql[match.end():], f"LIMIT {limit}")
            fired.append(GROUP_LABELS[FunctionRule.ROWNUM])
            break

        if ROWNUM_PATTERN.search(sql):
            result.warnings.append(ConversionWarning(
                type=WarningType.MANUAL_REVIEW_NEEDED,
                message=f"ROWNUM usage could not be converted automatically for {self.target_dialect.display_name}.",
                severity=WarningSeverity.WARNING,
                suggestion="Use ROW_NUMBER() OVER (...) or a LIMIT clause.",
            ))
        return sql

    # ---------- analytic functions ----------
    def _check_analytic_functions(self, sql: str, result: StageResult) -> None:
        if not self.rule_config.is_enabled(FunctionRule.ANALYTIC_FUNCTIONS):
            return
        if KEEP_DENSE_RANK_PATTERN.search(sql):
            result.warnings.append(ConversionWarning(
                type=WarningType.MANUAL_REVIEW_NEEDED,
                message="KEEP (DENSE_RANK FIRST/LAST) aggregates have no direct equivalent.",
                severity=WarningSeverity.WARNING,
                suggestion="Rewrite with ROW_NUMBER() OVER (...) in a subquery.",
            ))
        if self.target_dialect is Dialect.MYSQL and MEDIAN_PATTERN.search(sql):
            result.warnings.append(ConversionWarning(
                type=WarningType.UNSUPPORTED_FUNCTION,
                message="MEDIAN is not available in MySQL.",
                severity=WarningSeverity.WARNING,
                suggestion="Compute the median with window functions (ROW_NUMBER and COUNT).",
            ))
