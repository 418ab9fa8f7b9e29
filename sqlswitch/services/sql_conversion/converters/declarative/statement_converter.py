import re
from enum import Enum
from typing import List

from sqlswitch.utils.logger import setup_logger
from ...models import (ConversionOptions, ConversionWarning, Dialect, StageResult,
                       WarningSeverity, WarningType)
from ...rules.rule_config import RuleConfig
from ...utils.sql_preprocessing import strip_comments
from ..base_converter import BaseConverter
from ..procedural.package_body_converter import PackageBodyConverter
from ..procedural.package_parser import parse_package_spec
from .advisory_checks import run_advisory_checks
from .data_type_converter import DataTypeConverter
from .function_converter import FunctionConverter
from .oracle_preprocessor import OracleSyntaxPreprocessor

PACKAGE_BODY_PATTERN = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:EDITIONABLE\s+|NONEDITIONABLE\s+)?PACKAGE\s+BODY\b", re.IGNORECASE
)
PACKAGE_SPEC_PATTERN = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:EDITIONABLE\s+|NONEDITIONABLE\s+)?PACKAGE\s+(?!BODY\b)", re.IGNORECASE
)


class StatementKind(Enum):
    GENERIC = "generic"
    PACKAGE_BODY = "package_body"
    PACKAGE_SPEC = "package_spec"


def classify_statement(sql: str, source_dialect: Dialect) -> StatementKind:
    """Classify a statement, ignoring comments. Package paths apply to Oracle sources only."""
    if source_dialect is not Dialect.ORACLE:
        return StatementKind.GENERIC
    text = strip_comments(sql)
    if PACKAGE_BODY_PATTERN.match(text):
        return StatementKind.PACKAGE_BODY
    if PACKAGE_SPEC_PATTERN.match(text):
        return StatementKind.PACKAGE_SPEC
    return StatementKind.GENERIC


class StatementConverter(BaseConverter):
    """
    Acts as a router, inspecting the SQL statement and delegating to the
    appropriate conversion path.
    """
    def __init__(self, source_dialect: Dialect, target_dialect: Dialect, rule_config: RuleConfig,
                 options: ConversionOptions = None):
        super().__init__(source_dialect, target_dialect, rule_config)
        self.logger = setup_logger('StatementConverter')
        self.options = options or ConversionOptions()
        self.preprocessor = OracleSyntaxPreprocessor(source_dialect, target_dialect, rule_config)
        self.data_type_converter = DataTypeConverter(source_dialect, target_dialect, rule_config)
        self.function_converter = FunctionConverter(
            source_dialect, target_dialect, rule_config,
            replace_unsupported_functions=self.options.replace_unsupported_functions,
        )
        self.package_converter = PackageBodyConverter(
            source_dialect, target_dialect, rule_config, enable_comments=self.options.enable_comments,
        )

    def convert_statement(self, statement: str) -> StageResult:
        """
        Classifies a single SQL statement and routes it to the package
        path or the generic pipeline.

        Args:
            statement: SQL text of one statement.
        """
        kind = classify_statement(statement, self.source_dialect)
        self.logger.info(f"Routing statement as {kind.value}")

        if kind is StatementKind.PACKAGE_BODY:
            return self.package_converter.convert_statement(statement)
        if kind is StatementKind.PACKAGE_SPEC:
            return self._convert_package_spec(statement)
        return self._convert_generic(statement)

    def _convert_generic(self, statement: str) -> StageResult:
        result = StageResult(sql=statement)
        if self.source_dialect is Dialect.ORACLE:
            result.absorb(self.preprocessor.convert_statement(result.sql))
        result.absorb(self.data_type_converter.convert_statement(result.sql))
        result.absorb(self.function_converter.convert_statement(result.sql))
        result.warnings.extend(
            run_advisory_checks(statement, self.source_dialect, self.target_dialect, self.rule_config)
        )
        return result

    def _convert_package_spec(self, statement: str) -> StageResult:
        name, members = parse_package_spec(statement)
        lines: List[str] = []
        if self.options.enable_comments:
            lines.append(f"-- Oracle package specification {name} has no {self.target_dialect.display_name} equivalent")
            for kind, member in members:
                lines.append(f"-- {kind.title()}: {member}")
        lines += ["/*", statement.strip().replace("*/", "* /"), "*/"]

        result = StageResult(sql="\n".join(lines))
        result.applied_rules.append(f"Converted package specification {name} to a comment")
        result.warnings.append(ConversionWarning(
            type=WarningType.UNSUPPORTED_STATEMENT,
            message=f"Package specification {name} declares {len(members)} member(s) and was kept as a comment.",
            severity=WarningSeverity.INFO,
            suggestion="Convert the package body; its routines become standalone procedures and functions.",
        ))
        return result
