from sqlswitch.services.sql_conversion import ConversionOrchestrator, ConversionOptions, Dialect, RuleConfig
from sqlswitch.services.sql_conversion.models import WarningSeverity, WarningType
from sqlswitch.services.sql_conversion.rules import ConversionRuleService
from sqlswitch.services.sql_conversion.utils.manual_review_logger import ManualReviewLogger
from sqlswitch.services.sql_conversion.utils.statement_validator import ValidationResult

DECODE_QUERY = "SELECT DECODE(status, 'A', 'Active', 'Unknown') FROM emp"


class RejectingValidator:
    def __init__(self):
        self.calls = []

    def validate(self, sql, dialect, strict=False):
        self.calls.append((sql, dialect, strict))
        return ValidationResult(valid=False, errors=["unexpected token"])


class AcceptingValidator:
    def validate(self, sql, dialect, strict=False):
        return ValidationResult(valid=True)


def exploding_factory(*args, **kwargs):
    raise RuntimeError("boom")


def test_date_column_follows_rule_config():
    orchestrator = ConversionOrchestrator()
    sql = "CREATE TABLE emp (hire_date DATE)"

    assert orchestrator.convert(sql, "oracle", "mysql").converted_sql == "CREATE TABLE emp (hire_date DATETIME)"
    assert orchestrator.convert(sql, "oracle", "mysql", rule_config=RuleConfig.minimal()).converted_sql == sql
    assert orchestrator.convert(sql, "oracle", "pg").converted_sql == "CREATE TABLE emp (hire_date TIMESTAMP)"


def test_result_echoes_input_and_dialects():
    result = ConversionOrchestrator().convert("SELECT NVL(a, 0) FROM t", Dialect.ORACLE, Dialect.POSTGRESQL)
    assert result.success
    assert result.original_sql == "SELECT NVL(a, 0) FROM t"
    assert result.converted_sql == "SELECT COALESCE(a, 0) FROM t"
    assert result.source_dialect is Dialect.ORACLE
    assert result.target_dialect is Dialect.POSTGRESQL
    assert result.elapsed_millis >= 0


def test_converter_failure_becomes_failed_result():
    orchestrator = ConversionOrchestrator(converter_factory=exploding_factory)
    result = orchestrator.convert("SELECT 1 FROM dual", "oracle", "mysql")

    assert result.success is False
    assert result.error == "Conversion failed: boom"
    assert result.converted_sql == "SELECT 1 FROM dual"
    assert result.original_sql == "SELECT 1 FROM dual"


def test_empty_and_oversized_input_rejected():
    empty = ConversionOrchestrator().convert("   \n", "oracle", "mysql")
    assert empty.success is False
    assert empty.error == "SQL input is empty"

    oversized = ConversionOrchestrator(max_sql_length=10).convert("SELECT 1 FROM dual", "oracle", "mysql")
    assert oversized.success is False
    assert "maximum length of 10" in oversized.error


def test_unsupported_dialect_fails_without_raising():
    result = ConversionOrchestrator().convert("SELECT 1", "db2", "mysql")
    assert result.success is False
    assert "Unsupported dialect 'db2'" in result.error
    assert result.source_dialect is None


def test_validator_rejection_returns_original_sql():
    validator = RejectingValidator()
    orchestrator = ConversionOrchestrator(validator=validator)
    sql = "CREATE TABLE t (id NUMBER(10)) NOLOGGING"
    result = orchestrator.convert(sql, "oracle", "mysql", options=ConversionOptions(strict_mode=True))

    assert result.success is True
    assert result.converted_sql == sql
    assert result.applied_rules == []
    assert len(result.warnings) == 1
    assert result.warnings[0].type is WarningType.SYNTAX_DIFFERENCE
    assert result.warnings[0].severity is WarningSeverity.ERROR
    assert result.warnings[0].message == "Syntax validation failed: unexpected token"
    assert validator.calls == [(sql, Dialect.ORACLE, True)]


def test_accepting_validator_lets_conversion_run():
    result = ConversionOrchestrator(validator=AcceptingValidator()).convert(
        "CREATE TABLE t (id NUMBER(10)) NOLOGGING", "oracle", "mysql"
    )
    assert result.converted_sql == "CREATE TABLE t (id BIGINT)"


def test_strict_mode_escalates_warnings():
    orchestrator = ConversionOrchestrator()
    relaxed = orchestrator.convert(DECODE_QUERY, "oracle", "mysql")
    strict = orchestrator.convert(DECODE_QUERY, "oracle", "mysql", options=ConversionOptions(strict_mode=True))

    assert [w.severity for w in relaxed.warnings] == [WarningSeverity.WARNING]
    assert [w.severity for w in strict.warnings] == [WarningSeverity.ERROR]
    assert strict.has_errors
    assert strict.success


def test_formatter_is_applied_and_failures_are_soft():
    upper = ConversionOrchestrator(formatter=lambda sql, dialect: sql.upper())
    assert upper.convert("select nvl(a, 0) from t", "oracle", "mysql").converted_sql == "SELECT IFNULL(A, 0) FROM T"

    unformatted = upper.convert("select nvl(a, 0) from t", "oracle", "mysql",
                                options=ConversionOptions(format_sql=False))
    assert unformatted.converted_sql == "select IFNULL(a, 0) from t"

    def broken(sql, dialect):
        raise ValueError("no formatter for this dialect")

    result = ConversionOrchestrator(formatter=broken).convert("SELECT NVL(a, 0) FROM t", "oracle", "mysql")
    assert result.success
    assert result.converted_sql == "SELECT IFNULL(a, 0) FROM t"
    assert result.warnings[-1].severity is WarningSeverity.INFO
    assert "formatting failed" in result.warnings[-1].message


def test_same_dialect_only_runs_advisories():
    result = ConversionOrchestrator().convert("SELECT * FROM emp", "oracle", "oracle")
    assert result.converted_sql == "SELECT * FROM emp"
    assert result.applied_rules == []
    assert [w.type for w in result.warnings] == [WarningType.PERFORMANCE_WARNING]


def test_review_logger_collects_unsupported_functions():
    review_logger = ManualReviewLogger()
    ConversionOrchestrator().convert(DECODE_QUERY, "oracle", "mysql", review_logger=review_logger)

    assert len(review_logger.review_items) == 1
    item = review_logger.review_items[0]
    assert item["object_name"] == "SELECT statement"
    assert item["issue_type"] == "unsupported-function"


def test_session_rule_config_is_used():
    service = ConversionRuleService()
    service.set_config_for_session("analyst", RuleConfig.minimal())
    orchestrator = ConversionOrchestrator(rule_service=service)
    sql = "CREATE TABLE emp (hire_date DATE)"

    assert orchestrator.convert_for_session(sql, "oracle", "mysql", "analyst").converted_sql == sql
    assert orchestrator.convert_for_session(sql, "oracle", "mysql", "guest").converted_sql == (
        "CREATE TABLE emp (hire_date DATETIME)"
    )


def test_convert_request_returns_response_dict():
    response = ConversionOrchestrator().convert_request({
        "sql": "SELECT NVL2(bonus, 'Y', 'N') FROM emp",
        "sourceDialect": "ORACLE",
        "targetDialect": "MYSQL",
        "options": {"replaceUnsupportedFunctions": True},
    })
    assert response["success"] is True
    assert response["error"] is None
    assert response["sourceDialect"] == "ORACLE"
    assert response["targetDialect"] == "MYSQL"
    assert response["convertedSql"] == "SELECT CASE WHEN bonus IS NOT NULL THEN 'Y' ELSE 'N' END FROM emp"
    assert response["originalSql"] == "SELECT NVL2(bonus, 'Y', 'N') FROM emp"
    assert "Converted NVL2 functions (Oracle -> MySQL)" in response["appliedRules"]


def test_package_without_routines_is_preserved():
    package = "CREATE OR REPLACE PACKAGE BODY cfg_pkg AS\n  g_limit NUMBER := 100;\nEND cfg_pkg;"
    result = ConversionOrchestrator().convert(package, "oracle", "mysql")

    assert result.success
    assert result.converted_sql.startswith("DELIMITER //")
    assert result.applied_rules == ["Preserved package body cfg_pkg as a comment"]
