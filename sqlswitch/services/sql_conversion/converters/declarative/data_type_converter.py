"""
Regex-driven data type conversion between dialect pairs.

Replacement tables are ordered: specific forms (``NUMBER(p,s)``,
``TIMESTAMP WITH TIME ZONE``) come before the bare keyword they contain.
Entries for Oracle sources carry the DataTypeRule that governs them.
"""
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

from sqlswitch.utils.logger import setup_logger
from ...models import (ConversionWarning, Dialect, StageResult, WarningSeverity,
                       WarningType)
from ...rules.rule_config import DataTypeRule, WarningRule
from ..base_converter import BaseConverter

_I = re.IGNORECASE


@dataclass(frozen=True)
class TypeReplacement:
    pattern: re.Pattern
    replacement: Union[str, Callable[[re.Match], str]]
    gate: Optional[DataTypeRule] = None

    def apply(self, sql: str) -> str:
        return self.pattern.sub(self.replacement, sql)


def _t(pattern: str, replacement, gate: Optional[DataTypeRule] = None) -> TypeReplacement:
    return TypeReplacement(re.compile(pattern, _I), replacement, gate)


def _mysql_integer(match: re.Match) -> str:
    precision = int(match.group(1))
    if precision <= 3:
        return "TINYINT"
    if precision <= 5:
        return "SMALLINT"
    if precision <= 9:
        return "INT"
    return "BIGINT"


def _postgres_integer(match: re.Match) -> str:
    precision = int(match.group(1))
    if precision <= 4:
        return "SMALLINT"
    if precision <= 9:
        return "INTEGER"
    return "BIGINT"


_N = DataTypeRule

BYTE_SUFFIX_PATTERN = re.compile(r"\(\s*(\d+)\s+(BYTE|CHAR)\s*\)", _I)
WIDE_NUMBER_PATTERN = re.compile(r"\bNUMBER\s*\(\s*(\d+)\s*\)", _I)
TIMEZONE_TYPE_PATTERN = re.compile(
    r"\bTIMESTAMP(\s*\(\s*\d+\s*\))?\s+WITH\s+(LOCAL\s+)?TIME\s+ZONE\b|\bTIMESTAMPTZ\b", _I
)

# Width specifications on MySQL integer types carry no meaning elsewhere
_MYSQL_INT_WIDTH = _t(r"\b(INT|INTEGER|BIGINT|SMALLINT|MEDIUMINT)\s*\(\s*\d+\s*\)", r"\1")

ORACLE_TO_MYSQL: Tuple[TypeReplacement, ...] = (
    _t(r"\bNUMBER\s*\(\s*(\d+)\s*\)", _mysql_integer, _N.NUMBER),
    _t(r"\bNUMBER\s*\(\s*(\d+)\s*,\s*(\d+)\s*\)", r"DECIMAL(\1,\2)", _N.NUMBER),
    _t(r"\bNUMBER\b", "DECIMAL", _N.NUMBER),
    _t(r"\bN?VARCHAR2\s*\(", "VARCHAR(", _N.VARCHAR2),
    _t(r"\bNCHAR\s*\(", "CHAR(", _N.VARCHAR2),
    _t(r"\bN?CLOB\b", "LONGTEXT", _N.CLOB),
    _t(r"\bBLOB\b", "LONGBLOB", _N.BLOB),
    _t(r"\bLONG\s+RAW\b", "LONGBLOB", _N.RAW),
    _t(r"\bLONG\b", "LONGTEXT", _N.CLOB),
    _t(r"\bRAW\s*\(\s*(\d+)\s*\)", r"VARBINARY(\1)", _N.RAW),
    _t(r"\bDATE\b", "DATETIME", _N.DATE),
    _t(r"\bTIMESTAMP(\s*\(\s*\d+\s*\))?\s+WITH\s+(LOCAL\s+)?TIME\s+ZONE\b", r"DATETIME\1", _N.DATE),
    _t(r"\bTIMESTAMP\b", "DATETIME", _N.DATE),
    _t(r"\bINTERVAL\s+YEAR\b.*?\bTO\s+MONTH\b", "VARCHAR(30)"),
    _t(r"\bINTERVAL\s+DAY\b.*?\bTO\s+SECOND\b(\s*\(\s*\d+\s*\))?", "VARCHAR(30)"),
    _t(r"\bFLOAT\b(?!\s*\()", "DOUBLE", _N.FLOAT),
    _t(r"\bFLOAT\s*\(\s*(\d+)\s*\)", lambda m: "FLOAT" if int(m.group(1)) <= 24 else "DOUBLE", _N.FLOAT),
    _t(r"\bBINARY_FLOAT\b", "FLOAT", _N.FLOAT),
    _t(r"\bBINARY_DOUBLE\b", "DOUBLE", _N.FLOAT),
    _t(r"\bBOOLEAN\b", "TINYINT(1)", _N.BOOLEAN),
    _t(r"\bBFILE\b", "VARCHAR(255)"),
    _t(r"\bXMLTYPE\b", "LONGTEXT"),
)

ORACLE_TO_POSTGRESQL: Tuple[TypeReplacement, ...] = (
    _t(r"\bNUMBER\s*\(\s*(\d+)\s*\)", _postgres_integer, _N.NUMBER),
    _t(r"\bNUMBER\s*\(\s*(\d+)\s*,\s*(\d+)\s*\)", r"NUMERIC(\1,\2)", _N.NUMBER),
    _t(r"\bNUMBER\b", "NUMERIC", _N.NUMBER),
    _t(r"\bN?VARCHAR2\s*\(", "VARCHAR(", _N.VARCHAR2),
    _t(r"\bNCHAR\s*\(", "CHAR(", _N.VARCHAR2),
    _t(r"\bN?CLOB\b", "TEXT", _N.CLOB),
    _t(r"\bBLOB\b", "BYTEA", _N.BLOB),
    _t(r"\bLONG\s+RAW\b", "BYTEA", _N.RAW),
    _t(r"\bLONG\b", "TEXT", _N.CLOB),
    _t(r"\bRAW\s*\(\s*\d+\s*\)", "BYTEA", _N.RAW),
    _t(r"\bDATE\b", "TIMESTAMP", _N.DATE),
    _t(r"\bTIMESTAMP(\s*\(\s*\d+\s*\))?\s+WITH\s+(LOCAL\s+)?TIME\s+ZONE\b", r"TIMESTAMPTZ\1", _N.DATE),
    _t(r"\bINTERVAL\s+YEAR\b.*?\bTO\s+MONTH\b", "INTERVAL"),
    _t(r"\bINTERVAL\s+DAY\b.*?\bTO\s+SECOND\b(\s*\(\s*\d+\s*\))?", "INTERVAL"),
    _t(r"\bFLOAT\b(?!\s*\()", "DOUBLE PRECISION", _N.FLOAT),
    _t(r"\bFLOAT\s*\(\s*(\d+)\s*\)", lambda m: "REAL" if int(m.group(1)) <= 24 else "DOUBLE PRECISION", _N.FLOAT),
    _t(r"\bBINARY_FLOAT\b", "REAL", _N.FLOAT),
    _t(r"\bBINARY_DOUBLE\b", "DOUBLE PRECISION", _N.FLOAT),
    _t(r"\bBFILE\b", "VARCHAR(255)"),
    _t(r"\bXMLTYPE\b", "XML"),
)

MYSQL_TO_POSTGRESQL: Tuple[TypeReplacement, ...] = (
    _t(r"\bTINYINT\s*\(\s*1\s*\)", "BOOLEAN"),
    _MYSQL_INT_WIDTH,
    _t(r"\bTINYINT\b(\s*\(\s*\d+\s*\))?", "SMALLINT"),
    _t(r"\bMEDIUMINT\b", "INTEGER"),
    _t(r"\bBIGINT\s+UNSIGNED\b", "NUMERIC(20)"),
    _t(r"\bINT\s+UNSIGNED\b", "BIGINT"),
    _t(r"\b(LONG|MEDIUM|TINY)TEXT\b", "TEXT"),
    _t(r"\b(LONG|MEDIUM|TINY)?BLOB\b", "BYTEA"),
    _t(r"\b(VAR)?BINARY\s*\(\s*\d+\s*\)", "BYTEA"),
    _t(r"\bDATETIME\b", "TIMESTAMP"),
    _t(r"\bYEAR\b(?!\s*\()", "SMALLINT"),
    _t(r"\bDOUBLE\b(?!\s+PRECISION)", "DOUBLE PRECISION"),
    _t(r"\bFLOAT\b", "REAL"),
    _t(r"\bENUM\s*\([^)]*\)", "VARCHAR(255)"),
    _t(r"\bBIGINT\s+AUTO_INCREMENT\b", "BIGSERIAL"),
    _t(r"\bINT(EGER)?\s+AUTO_INCREMENT\b", "SERIAL"),
    _t(r"\s*\bAUTO_INCREMENT\b(?!\s*=)", ""),
    _t(r"\bJSON\b", "JSONB"),
)

MYSQL_TO_ORACLE: Tuple[TypeReplacement, ...] = (
    _t(r"\bTINYINT\s*\(\s*1\s*\)", "NUMBER(1)"),
    _MYSQL_INT_WIDTH,
    _t(r"\bVARCHAR\s*\(", "VARCHAR2("),
    _t(r"\bTINYINT\b", "NUMBER(3)"),
    _t(r"\bSMALLINT\b", "NUMBER(5)"),
    _t(r"\bMEDIUMINT\b", "NUMBER(7)"),
    _t(r"\bBIGINT\b", "NUMBER(19)"),
    _t(r"\bINT(EGER)?\b", "NUMBER(10)"),
    _t(r"\bDATETIME\b", "DATE"),
    _t(r"\b(LONG|MEDIUM|TINY)?TEXT\b", "CLOB"),
    _t(r"\b(LONG|MEDIUM|TINY)BLOB\b", "BLOB"),
    _t(r"\bDOUBLE\b", "BINARY_DOUBLE"),
    _t(r"\bBOOL(EAN)?\b", "NUMBER(1)"),
)

POSTGRESQL_TO_MYSQL: Tuple[TypeReplacement, ...] = (
    _t(r"\bBIGSERIAL\b", "BIGINT AUTO_INCREMENT"),
    _t(r"\bSMALLSERIAL\b", "SMALLINT AUTO_INCREMENT"),
    _t(r"\bSERIAL\b", "INT AUTO_INCREMENT"),
    _t(r"\bTEXT\b", "LONGTEXT"),
    _t(r"\bBYTEA\b", "LONGBLOB"),
    _t(r"\bTIMESTAMP\s+WITH(OUT)?\s+TIME\s+ZONE\b", "DATETIME"),
    _t(r"\bTIMESTAMPTZ\b", "DATETIME"),
    _t(r"\bTIMESTAMP\b", "DATETIME"),
    _t(r"\bDOUBLE\s+PRECISION\b", "DOUBLE"),
    _t(r"\bREAL\b", "FLOAT"),
    _t(r"\bJSONB\b", "JSON"),
    _t(r"\bUUID\b", "CHAR(36)"),
    _t(r"\bBOOLEAN\b", "TINYINT(1)"),
    _t(r"\[\]", ""),
)

POSTGRESQL_TO_ORACLE: Tuple[TypeReplacement, ...] = (
    _t(r"\bVARCHAR\s*\(", "VARCHAR2("),
    _t(r"\b(BIG)?SERIAL\b", "NUMBER GENERATED ALWAYS AS IDENTITY"),
    _t(r"\bBIGINT\b", "NUMBER(19)"),
    _t(r"\bSMALLINT\b", "NUMBER(5)"),
    _t(r"\bINT(EGER)?\b", "NUMBER(10)"),
    _t(r"\bNUMERIC\b", "NUMBER"),
    _t(r"\bTEXT\b", "CLOB"),
    _t(r"\bBYTEA\b", "BLOB"),
    _t(r"\bTIMESTAMPTZ\b", "TIMESTAMP WITH TIME ZONE"),
    _t(r"\bBOOLEAN\b", "NUMBER(1)"),
    _t(r"\bDOUBLE\s+PRECISION\b", "BINARY_DOUBLE"),
    _t(r"\bREAL\b", "BINARY_FLOAT"),
)

REPLACEMENT_TABLES: Dict[Tuple[Dialect, Dialect], Tuple[TypeReplacement, ...]] = {
    (Dialect.ORACLE, Dialect.MYSQL): ORACLE_TO_MYSQL,
    (Dialect.ORACLE, Dialect.POSTGRESQL): ORACLE_TO_POSTGRESQL,
    (Dialect.MYSQL, Dialect.POSTGRESQL): MYSQL_TO_POSTGRESQL,
    (Dialect.MYSQL, Dialect.ORACLE): MYSQL_TO_ORACLE,
    (Dialect.POSTGRESQL, Dialect.MYSQL): POSTGRESQL_TO_MYSQL,
    (Dialect.POSTGRESQL, Dialect.ORACLE): POSTGRESQL_TO_ORACLE,
}


class DataTypeConverter(BaseConverter):
    """Rewrites column and variable data types for the target dialect."""

    def __init__(self, source_dialect, target_dialect, rule_config):
        super().__init__(source_dialect, target_dialect, rule_config)
        self.logger = setup_logger("DataTypeConverter")

    def convert_statement(self, statement: str) -> StageResult:
        result = StageResult(sql=statement)
        if self.source_dialect == self.target_dialect:
            return result

        result.warnings.extend(self._data_loss_warnings(statement))

        sql = statement
        if self.source_dialect is Dialect.ORACLE and self.rule_config.is_enabled(DataTypeRule.BYTE_SUFFIX):
            stripped = BYTE_SUFFIX_PATTERN.sub(r"(\1)", sql)
            if stripped != sql:
                sql = stripped
                result.applied_rules.append("Removed BYTE/CHAR length semantics")

        table = REPLACEMENT_TABLES.get((self.source_dialect, self.target_dialect), ())
        changed = False
        for entry in table:
            if entry.gate is not None and not self.rule_config.is_enabled(entry.gate):
                continue
            new_sql = entry.apply(sql)
            if new_sql != sql:
                sql = new_sql
                changed = True

        if changed:
            rule_name = (f"Converted data types ({self.source_dialect.display_name} -> "
                         f"{self.target_dialect.display_name})")
            result.applied_rules.append(rule_name)
            self.logger.debug(rule_name)

        result.sql = sql
        return result

    def _data_loss_warnings(self, sql: str) -> List[ConversionWarning]:
        if not self.rule_config.is_enabled(WarningRule.POTENTIAL_DATA_LOSS):
            return []
        warnings: List[ConversionWarning] = []

        if self.source_dialect is Dialect.ORACLE and self.rule_config.is_enabled(DataTypeRule.NUMBER):
            for match in WIDE_NUMBER_PATTERN.finditer(sql):
                precision = int(match.group(1))
                if precision > 18:
                    warnings.append(ConversionWarning(
                        type=WarningType.DATA_TYPE_MISMATCH,
                        message=f"NUMBER({precision}) exceeds the BIGINT range and may overflow.",
                        severity=WarningSeverity.WARNING,
                        suggestion=f"Use DECIMAL({precision}) / NUMERIC({precision}) if values can exceed 18 digits.",
                    ))

        if self.target_dialect is Dialect.MYSQL and TIMEZONE_TYPE_PATTERN.search(sql):
            if self.source_dialect is not Dialect.ORACLE or self.rule_config.is_enabled(DataTypeRule.DATE):
                warnings.append(ConversionWarning(
                    type=WarningType.DATA_TYPE_MISMATCH,
                    message="Time zone aware timestamps become DATETIME in MySQL; time zone information is lost.",
                    severity=WarningSeverity.WARNING,
                    suggestion="Store timestamps in UTC or keep the offset in a separate column.",
                ))
        return warnings
