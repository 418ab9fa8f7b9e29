"""
Oracle PACKAGE body conversion.

Each PROCEDURE/FUNCTION found in the package body is re-emitted as a
standalone routine: schema-qualified PL/pgSQL routines for PostgreSQL,
``<package>_<name>`` routines inside a ``DELIMITER //`` block for MySQL.
"""
import re
from typing import List, Optional

from sqlswitch.utils.logger import setup_logger
from ...models import (ConversionWarning, Dialect, StageResult, WarningSeverity,
                       WarningType)
from ...rules.rule_config import WarningRule
from ...utils.sql_preprocessing import rewrite_calls, split_top_level
from ..base_converter import BaseConverter
from .package_parser import (ExtractedRoutine, PackageBody, Parameter, RoutineSections, parse_package_body,
                             split_routine_body)

_I = re.IGNORECASE

BYTE_SUFFIX = re.compile(r"\(\s*(\d+)\s+(?:BYTE|CHAR)\s*\)", _I)
NVL_CALL = re.compile(r"\bNVL\s*\(", _I)
SYSDATE = re.compile(r"\bSYSDATE\b", _I)
DBMS_OUTPUT_CALL = re.compile(r"\bDBMS_OUTPUT\s*\.\s*PUT_LINE\s*\(", _I)
DBMS_OUTPUT_STATEMENT = re.compile(r"\bDBMS_OUTPUT\s*\.\s*PUT_LINE\s*\((?:[^;']|'(?:[^']|'')*')*\)\s*;", _I)
RAISE_APPLICATION_ERROR_CALL = re.compile(r"\bRAISE_APPLICATION_ERROR\s*\(", _I)
STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
RETURN_STATEMENT = re.compile(r"\bRETURN\b", _I)
LEADING_DECLARE = re.compile(r"^\s*DECLARE\b\s*", _I)
STARTS_WITH_BLOCK = re.compile(r"^\s*(DECLARE|BEGIN)\b", _I)
ASSIGNMENT = re.compile(r"(?<![.\w:])([A-Za-z_]\w*)\s*:=\s*")
ELSIF = re.compile(r"\bELSIF\b", _I)
EXCEPTION_HANDLER = re.compile(r"\bEXCEPTION\s+WHEN\b", _I)
VARIABLE_DECLARATION = re.compile(
    r'^"?(\w+)"?\s+(?:CONSTANT\s+)?(.+?)(?:\s*(?::=|\bDEFAULT\b)\s*(.+))?$', _I | re.DOTALL
)
CURSOR_DECLARATION = re.compile(r"^CURSOR\s+(\w+)\s+IS\s+(.+)$", _I | re.DOTALL)
UNSUPPORTED_DECLARATION = re.compile(r"^(TYPE\s|SUBTYPE\s|PRAGMA\s|PROCEDURE\s|FUNCTION\s|\w+\s+EXCEPTION$)", _I)
ANCHORED_TYPE = re.compile(r"%(?:ROW)?TYPE\b", _I)

POSTGRES_TYPES = (
    (re.compile(r"\bN?VARCHAR2\b", _I), "VARCHAR"),
    (re.compile(r"\bNUMBER\b", _I), "NUMERIC"),
    (re.compile(r"\bDATE\b", _I), "TIMESTAMP"),
    (re.compile(r"\bN?CLOB\b", _I), "TEXT"),
    (re.compile(r"\bBLOB\b", _I), "BYTEA"),
    (re.compile(r"\b(?:PLS_INTEGER|BINARY_INTEGER|INT)\b", _I), "INTEGER"),
)


def to_postgres_type(data_type: str) -> str:
    converted = BYTE_SUFFIX.sub(r"(\1)", data_type)
    for pattern, replacement in POSTGRES_TYPES:
        converted = pattern.sub(replacement, converted)
    return converted


def to_mysql_type(data_type: str) -> str:
    data_type = BYTE_SUFFIX.sub(r"(\1)", data_type.strip())
    upper = data_type.upper()
    if re.match(r"^NUMBER\b", upper):
        return "DECIMAL(38,10)"
    varchar = re.match(r"^N?VARCHAR2\s*(\(\s*\d+\s*\))?$", upper)
    if varchar:
        return f"VARCHAR{varchar.group(1).replace(' ', '')}" if varchar.group(1) else "VARCHAR(4000)"
    simple = {
        "CLOB": "LONGTEXT", "NCLOB": "LONGTEXT", "BLOB": "LONGBLOB", "DATE": "DATETIME",
        "BOOLEAN": "TINYINT(1)", "PLS_INTEGER": "INT", "BINARY_INTEGER": "INT",
        "INTEGER": "INT", "INT": "INT",
    }
    return simple.get(upper, data_type)


def _raise_exception(args: List[str]) -> Optional[str]:
    if len(args) < 2:
        return None
    message = args[1]
    if STRING_LITERAL.fullmatch(message):
        return f"RAISE EXCEPTION {message}"
    return f"RAISE EXCEPTION '%', {message}"


def _signal(args: List[str]) -> Optional[str]:
    if len(args) < 2:
        return None
    return f"SIGNAL SQLSTATE '45000' SET MESSAGE_TEXT = {args[1]}"


def _raise_notice(args: List[str]) -> Optional[str]:
    if len(args) != 1:
        return None
    return f"RAISE NOTICE '%', {args[0]}"


def _indent(text: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line if line.strip() else line for line in text.splitlines())


class PackageBodyConverter(BaseConverter):
    """
    Decomposes an Oracle package body into standalone target routines.
    """

    def __init__(self, source_dialect, target_dialect, rule_config, enable_comments: bool = True):
        super().__init__(source_dialect, target_dialect, rule_config)
        self.enable_comments = enable_comments
        self.logger = setup_logger("PackageBodyConverter")

    def convert_statement(self, statement: str) -> StageResult:
        package = parse_package_body(statement)
        result = StageResult(sql=statement)
        self.logger.info(f"Package {package.name}: {len(package.routines)} routine(s) extracted")

        if not package.header_found:
            result.warnings.append(ConversionWarning(
                type=WarningType.MANUAL_REVIEW_NEEDED,
                message="PACKAGE BODY header not recognised; the input was treated as the body of unknown_package.",
                severity=WarningSeverity.WARNING,
                suggestion="Check that the statement starts with CREATE [OR REPLACE] PACKAGE BODY <name> IS|AS.",
            ))

        if not package.routines:
            return self._passthrough(statement, package, result)

        if self.target_dialect is Dialect.POSTGRESQL:
            result.sql = self._assemble_postgres(package, result)
        elif self.target_dialect is Dialect.MYSQL:
            result.sql = self._assemble_mysql(package, result)
        return result

    # ---------- helpers ----------
    def _comment(self, text: str) -> List[str]:
        return [f"-- {text}"] if self.enable_comments else []

    def _record_routine(self, package: PackageBody, routine: ExtractedRoutine, emitted_name: str,
                        result: StageResult) -> None:
        kind = routine.kind.lower()
        result.applied_rules.append(
            f"Converted package {kind} {package.name}.{routine.name} to {self.target_dialect.display_name} {kind} {emitted_name}"
        )
        if self.rule_config.is_enabled(WarningRule.PARTIAL_CONVERSION):
            result.warnings.append(ConversionWarning(
                type=WarningType.PARTIAL_SUPPORT,
                message=f"{routine.kind.title()} {package.name}.{routine.name} was converted structurally; review the translated body.",
                severity=WarningSeverity.WARNING,
                suggestion="Test the routine against the target database before deploying.",
            ))

    def _missing_return(self, routine: ExtractedRoutine, result: StageResult) -> bool:
        if not routine.is_function or RETURN_STATEMENT.search(routine.body):
            return False
        result.warnings.append(ConversionWarning(
            type=WarningType.MANUAL_REVIEW_NEEDED,
            message=f"Function {routine.name} has no RETURN statement; RETURN NULL was added.",
            severity=WarningSeverity.WARNING,
            suggestion="Add the intended return value.",
        ))
        return True

    def _local_routines(self, routine: ExtractedRoutine, sections: RoutineSections,
                        result: StageResult) -> List[str]:
        """Report local routines lifted out of *routine*; returns the comment lines left in their place."""
        lines: List[str] = []
        for local in sections.local_routines:
            kind = local.kind.lower()
            lines += self._comment(f"Unsupported local {kind}: {local.name}")
            result.warnings.append(ConversionWarning(
                type=WarningType.MANUAL_REVIEW_NEEDED,
                message=f"Local {kind} {local.name} declared inside {routine.name} was not converted.",
                severity=WarningSeverity.WARNING,
                suggestion=f"Move {local.name} out to a standalone {kind} and call it from {routine.name}.",
            ))
            self.logger.warning(f"Routine {routine.name}: local {kind} {local.name} dropped")
        return lines

    def _passthrough(self, statement: str, package: PackageBody, result: StageResult) -> StageResult:
        preserved = statement.strip().replace("*/", "* /")
        lines: List[str] = []
        if self.target_dialect is Dialect.MYSQL:
            lines += ["DELIMITER //", ""]
        lines += self._comment("No procedures or functions found in package body")
        lines += ["/*", preserved, "*/"]
        if self.target_dialect is Dialect.MYSQL:
            lines += ["", "DELIMITER ;"]
        result.sql = "\n".join(lines)
        result.applied_rules.append(f"Preserved package body {package.name} as a comment")
        result.warnings.append(ConversionWarning(
            type=WarningType.MANUAL_REVIEW_NEEDED,
            message=f"No procedures or functions could be extracted from package {package.name}.",
            severity=WarningSeverity.WARNING,
            suggestion="Convert the package contents manually; the original body is kept as a comment.",
        ))
        self.logger.warning(f"Package {package.name}: nothing extracted, body preserved as comment")
        return result

    # ---------- PostgreSQL ----------
    def _postgres_parameters(self, parameters: List[Parameter]) -> str:
        rendered = []
        for param in parameters:
            mode = "INOUT" if param.mode == "IN OUT" else param.mode
            text = f"{mode} {param.name} {to_postgres_type(param.data_type)}".strip()
            if param.default is not None:
                text += f" DEFAULT {param.default}"
            rendered.append(text)
        return ", ".join(rendered)

    def _postgres_body(self, routine: ExtractedRoutine, result: StageResult) -> str:
        body = routine.body
        sections = split_routine_body(body)
        if sections.local_routines:
            notes = self._local_routines(routine, sections, result)
            parts = [sections.declarations, *notes, "BEGIN", sections.statements]
            body = "\n".join(part for part in parts if part)
        body = to_postgres_type(body)
        body = NVL_CALL.sub("COALESCE(", body)
        body = SYSDATE.sub("CURRENT_TIMESTAMP", body)
        body = rewrite_calls(body, DBMS_OUTPUT_CALL, _raise_notice)
        body = rewrite_calls(body, RAISE_APPLICATION_ERROR_CALL, _raise_exception)
        if not STARTS_WITH_BLOCK.match(body):
            body = "DECLARE\n" + body
        if self._missing_return(routine, result):
            body += "\n    RETURN NULL;"
            if self.enable_comments:
                body += " -- REVIEW: no return value in the original function"
        return body

    def _assemble_postgres(self, package: PackageBody, result: StageResult) -> str:
        schema = package.name.lower()
        blocks: List[str] = []
        header = self._comment(f"Converted from Oracle package body {package.name}")
        blocks.append("\n".join(header + [f"CREATE SCHEMA IF NOT EXISTS {schema};"]))

        for routine in package.routines:
            qualified = f"{schema}.{routine.name.lower()}"
            params = self._postgres_parameters(routine.parsed_parameters())
            lines = self._comment(f"{routine.kind.title()}: {qualified}")
            lines.append(f"CREATE OR REPLACE {routine.kind} {qualified}({params})")
            if routine.is_function:
                lines.append(f"RETURNS {to_postgres_type(routine.return_type)}")
            lines.append("LANGUAGE plpgsql AS $$")
            lines.append(self._postgres_body(routine, result))
            lines.append("END;")
            lines.append("$$;")
            blocks.append("\n".join(lines))
            self._record_routine(package, routine, qualified, result)
        return "\n\n".join(blocks)

    # ---------- MySQL ----------
    def _anchored_type(self, routine: ExtractedRoutine, subject: str, data_type: str,
                       result: StageResult) -> None:
        if not data_type or not ANCHORED_TYPE.search(data_type):
            return
        result.warnings.append(ConversionWarning(
            type=WarningType.MANUAL_REVIEW_NEEDED,
            message=f"{subject} in {routine.name} uses the anchored type {data_type}, which MySQL does not support.",
            severity=WarningSeverity.WARNING,
            suggestion="Replace %TYPE/%ROWTYPE with the referenced column's MySQL type.",
        ))

    def _mysql_parameters(self, routine: ExtractedRoutine, result: StageResult) -> str:
        rendered = []
        dropped_defaults = False
        for param in routine.parsed_parameters():
            self._anchored_type(routine, f"Parameter {param.name}", param.data_type, result)
            data_type = to_mysql_type(param.data_type)
            if routine.is_function:
                rendered.append(f"{param.name} {data_type}")
            else:
                mode = "INOUT" if param.mode == "IN OUT" else param.mode
                rendered.append(f"{mode} {param.name} {data_type}")
            dropped_defaults = dropped_defaults or param.default is not None
        if dropped_defaults:
            result.warnings.append(ConversionWarning(
                type=WarningType.SYNTAX_DIFFERENCE,
                message=f"MySQL routine parameters cannot have defaults; defaults of {routine.name} were dropped.",
                severity=WarningSeverity.INFO,
            ))
        return ", ".join(rendered)

    def _mysql_declarations(self, text: str, routine: ExtractedRoutine, result: StageResult) -> List[str]:
        declarations: List[str] = []
        text = LEADING_DECLARE.sub("", text)
        for raw in split_top_level(text, ";"):
            decl = " ".join(raw.split())
            if not decl:
                continue
            cursor = CURSOR_DECLARATION.match(decl)
            if cursor:
                declarations.append(f"DECLARE {cursor.group(1)} CURSOR FOR {cursor.group(2)};")
                continue
            variable = VARIABLE_DECLARATION.match(decl)
            if UNSUPPORTED_DECLARATION.match(decl) or ANCHORED_TYPE.search(decl) or not variable:
                declarations += self._comment(f"Unsupported declaration: {decl}")
                result.warnings.append(ConversionWarning(
                    type=WarningType.MANUAL_REVIEW_NEEDED,
                    message=f"Declaration in {routine.name} has no MySQL equivalent: {decl}",
                    severity=WarningSeverity.WARNING,
                ))
                continue
            name, data_type, default = variable.groups()
            line = f"DECLARE {name} {to_mysql_type(data_type)}"
            if default:
                line += f" DEFAULT {default.strip()}"
            declarations.append(line + ";")
        return declarations

    def _mysql_statements(self, text: str, routine: ExtractedRoutine, result: StageResult) -> str:
        marker = "-- DBMS_OUTPUT removed" if self.enable_comments else ""
        text = DBMS_OUTPUT_STATEMENT.sub(marker, text)
        text = rewrite_calls(text, RAISE_APPLICATION_ERROR_CALL, _signal)
        text = NVL_CALL.sub("IFNULL(", text)
        text = SYSDATE.sub("NOW()", text)
        text = ASSIGNMENT.sub(r"SET \1 = ", text)
        text = ELSIF.sub("ELSEIF", text)
        if EXCEPTION_HANDLER.search(text):
            result.warnings.append(ConversionWarning(
                type=WarningType.MANUAL_REVIEW_NEEDED,
                message=f"EXCEPTION block in {routine.name} must be rewritten as a DECLARE ... HANDLER.",
                severity=WarningSeverity.WARNING,
                suggestion="DECLARE EXIT HANDLER FOR SQLEXCEPTION BEGIN ... END;",
            ))
        return text

    def _mysql_body(self, routine: ExtractedRoutine, result: StageResult) -> str:
        sections = split_routine_body(routine.body)
        lines = self._mysql_declarations(sections.declarations, routine, result)
        lines += self._local_routines(routine, sections, result)
        statements = self._mysql_statements(sections.statements, routine, result)
        if statements:
            lines.append(statements)
        if self._missing_return(routine, result):
            lines.append("RETURN NULL;")
        return _indent("\n".join(lines))

    def _assemble_mysql(self, package: PackageBody, result: StageResult) -> str:
        blocks: List[str] = ["DELIMITER //"]
        for routine in package.routines:
            routine_name = f"{package.name}_{routine.name}".lower()
            params = self._mysql_parameters(routine, result)
            lines = self._comment(f"{routine.kind.title()}: {routine_name}")
            lines.append(f"CREATE {routine.kind} {routine_name}({params})")
            if routine.is_function:
                self._anchored_type(routine, "Return type", routine.return_type, result)
                lines.append(f"RETURNS {to_mysql_type(routine.return_type)}")
                lines.append("DETERMINISTIC")
            lines.append("BEGIN")
            lines.append(self._mysql_body(routine, result))
            lines.append("END//")
            blocks.append("\n".join(lines))
            self._record_routine(package, routine, routine_name, result)
        blocks.append("DELIMITER ;")
        return "\n\n".join(blocks)
