import json

from sqlswitch.services.sql_conversion.models import ConversionWarning, WarningSeverity, WarningType
from sqlswitch.services.sql_conversion.utils.manual_review_logger import ManualReviewLogger, describe_statement


class RecordingLogger:
    def __init__(self):
        self.records = []

    def info(self, msg):
        self.records.append(("info", msg))

    def warning(self, msg):
        self.records.append(("warning", msg))

    def error(self, msg):
        self.records.append(("error", msg))


def warning(type_, severity=WarningSeverity.WARNING, message="needs a look"):
    return ConversionWarning(type=type_, message=message, severity=severity, suggestion="check it")


def test_describe_statement():
    assert describe_statement("CREATE OR REPLACE PACKAGE BODY hr.emp_pkg AS") == "PACKAGE BODY hr.emp_pkg"
    assert describe_statement("create global temporary table tmp_rows (id number)") == "TABLE tmp_rows"
    assert describe_statement("  select * from emp") == "SELECT statement"
    assert describe_statement("") == "statement"


def test_only_review_worthy_warnings_are_recorded():
    review = ManualReviewLogger()
    recorded = review.log_warnings("TABLE emp", [
        warning(WarningType.MANUAL_REVIEW_NEEDED),
        warning(WarningType.PERFORMANCE_WARNING, WarningSeverity.INFO),
        warning(WarningType.SYNTAX_DIFFERENCE, WarningSeverity.ERROR),
        warning(WarningType.UNSUPPORTED_FUNCTION),
    ])

    assert recorded == 3
    assert [item["issue_type"] for item in review.review_items] == [
        "manual-review-needed", "syntax-difference", "unsupported-function",
    ]
    assert review.review_items[0]["object_type"] == "TABLE"
    assert review.review_items[1]["severity"] == "ERROR"
    assert review.review_items[0]["status"] == "PENDING_REVIEW"


def test_items_are_mirrored_to_logger():
    logger = RecordingLogger()
    review = ManualReviewLogger(logger=logger)
    review.log_warnings("SELECT statement", [
        warning(WarningType.UNSUPPORTED_FUNCTION),
        warning(WarningType.SYNTAX_DIFFERENCE, WarningSeverity.ERROR, "bad syntax"),
    ])

    levels = [level for level, _ in logger.records]
    assert levels == ["warning", "error"]
    assert "MANUAL REVIEW [ERROR] SELECT statement" in logger.records[1][1]


def test_write_log_creates_json_file(tmp_path):
    review = ManualReviewLogger(output_dir=str(tmp_path / "review"))
    review.log_warnings("PACKAGE BODY emp_pkg", [warning(WarningType.PARTIAL_SUPPORT, WarningSeverity.ERROR)])

    path = review.write_manual_review_log()
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    assert data["total_items_requiring_review"] == 1
    assert data["summary_by_object"] == {"PACKAGE BODY emp_pkg": 1}
    assert data["review_items"][0]["object_type"] == "PACKAGE"
    assert "Detailed log available at" in review.create_summary_report()


def test_nothing_written_without_items_or_directory(tmp_path):
    assert ManualReviewLogger(output_dir=str(tmp_path)).write_manual_review_log() is None

    review = ManualReviewLogger()
    review.log_warnings("TABLE t", [warning(WarningType.MANUAL_REVIEW_NEEDED)])
    assert review.write_manual_review_log() is None


def test_summary_report():
    assert ManualReviewLogger().create_summary_report() == "No manual review items found."

    review = ManualReviewLogger()
    review.log_warnings("TABLE t", [warning(WarningType.MANUAL_REVIEW_NEEDED, WarningSeverity.ERROR, "broken")])
    report = review.create_summary_report()
    assert "Total Items Requiring Review: 1" in report
    assert "  - TABLE t - broken" in report
