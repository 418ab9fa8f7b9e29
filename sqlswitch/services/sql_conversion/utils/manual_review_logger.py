"""
Manual Review Logger - Tracks conversion warnings requiring manual attention
Collects them per conversion and can write a separate, easily accessible JSON log.
"""
import json
import os
import re
from datetime import datetime
from typing import Dict, Iterable, Optional

from ..models import ConversionWarning, WarningSeverity, WarningType

REVIEW_WARNING_TYPES = frozenset({
    WarningType.MANUAL_REVIEW_NEEDED,
    WarningType.UNSUPPORTED_STATEMENT,
    WarningType.UNSUPPORTED_FUNCTION,
})

OBJECT_PATTERN = re.compile(
    r'\bCREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:GLOBAL\s+TEMPORARY|UNIQUE|BITMAP|EDITIONABLE|NONEDITIONABLE)\s+)?'
    r'(PACKAGE\s+BODY|PACKAGE|TABLE|VIEW|INDEX|SEQUENCE|TRIGGER|PROCEDURE|FUNCTION)\s+([\w."$#]+)',
    re.IGNORECASE,
)
LEADING_KEYWORD = re.compile(r"^\s*(\w+)")


def describe_statement(sql: str) -> str:
    """Short label such as ``TABLE hr.employees`` or ``SELECT statement``."""
    match = OBJECT_PATTERN.search(sql)
    if match:
        return f"{' '.join(match.group(1).upper().split())} {match.group(2)}"
    keyword = LEADING_KEYWORD.match(sql)
    return f"{keyword.group(1).upper()} statement" if keyword else "statement"


class ManualReviewLogger:
    """Handles logging of manual review items to a dedicated file."""

    def __init__(self, output_dir: Optional[str] = None, logger=None):
        self.output_dir = output_dir
        self.logger = logger
        self.review_items = []
        self.log_file_path = None

    def log_manual_review_item(self,
                               object_name: str,
                               issue_type: str,
                               message: str,
                               severity: str = 'WARNING',
                               suggested_action: Optional[str] = None):
        """Log an item that requires manual review."""
        review_item = {
            'timestamp': datetime.now().isoformat(),
            'object_name': object_name,
            'object_type': self._detect_object_type(object_name),
            'issue_type': issue_type,
            'severity': severity,
            'message': message,
            'suggested_action': suggested_action,
            'status': 'PENDING_REVIEW'
        }
        self.review_items.append(review_item)

        # Also log to main logger if available
        if self.logger:
            log_msg = f"MANUAL REVIEW [{severity}] {object_name} - {issue_type}: {message}"
            if severity == 'ERROR':
                self.logger.error(log_msg)
            else:
                self.logger.warning(log_msg)

    def log_warnings(self, object_name: str, warnings: Iterable[ConversionWarning]) -> int:
        """Record every warning that needs a human; returns how many were recorded."""
        recorded = 0
        for warning in warnings:
            if warning.type not in REVIEW_WARNING_TYPES and warning.severity is not WarningSeverity.ERROR:
                continue
            self.log_manual_review_item(
                object_name=object_name,
                issue_type=warning.type.value,
                message=warning.message,
                severity=warning.severity.value.upper(),
                suggested_action=warning.suggestion,
            )
            recorded += 1
        return recorded

    def write_manual_review_log(self) -> Optional[str]:
        """Write all manual review items to a dedicated log file."""
        if not self.review_items or not self.output_dir:
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_filename = f"manual_review_required_{timestamp}.json"
        self.log_file_path = os.path.join(self.output_dir, log_filename)

        os.makedirs(self.output_dir, exist_ok=True)

        summary_data = {
            'conversion_timestamp': timestamp,
            'total_items_requiring_review': len(self.review_items),
            'summary_by_type': self._create_summary_by_type(),
            'summary_by_severity': self._create_summary_by_severity(),
            'summary_by_object': self._create_summary_by_object(),
            'review_items': self.review_items,
        }

        with open(self.log_file_path, 'w', encoding='utf-8') as f:
            json.dump(summary_data, f, indent=2, ensure_ascii=False)

        if self.logger:
            self.logger.info(f"Manual review log written to: {self.log_file_path}")
        return self.log_file_path

    def create_summary_report(self) -> str:
        """Create a human-readable summary report."""
        if not self.review_items:
            return "No manual review items found."

        report_lines = [
            "=" * 80,
            "MANUAL REVIEW REQUIRED - CONVERSION SUMMARY",
            "=" * 80,
            f"Total Items Requiring Review: {len(self.review_items)}",
            ""
        ]

        report_lines.extend([
            "BY SEVERITY:",
            *[f"  {severity}: {count} items" for severity, count in self._create_summary_by_severity().items()],
            ""
        ])
        report_lines.extend([
            "BY ISSUE TYPE:",
            *[f"  {issue_type}: {count} items" for issue_type, count in self._create_summary_by_type().items()],
            ""
        ])
        report_lines.extend([
            "BY OBJECT:",
            *[f"  {name}: {count} items" for name, count in self._create_summary_by_object().items()],
            ""
        ])

        high_priority = [item for item in self.review_items if item['severity'] == 'ERROR']
        if high_priority:
            report_lines.extend([
                "HIGH PRIORITY ITEMS (ERRORS):",
                *[f"  - {item['object_name']} - {item['message']}" for item in high_priority],
                ""
            ])

        if self.log_file_path:
            report_lines.append(f"Detailed log available at: {self.log_file_path}")
        report_lines.append("=" * 80)
        return "\n".join(report_lines)

    def _create_summary_by_type(self) -> Dict[str, int]:
        summary = {}
        for item in self.review_items:
            summary[item['issue_type']] = summary.get(item['issue_type'], 0) + 1
        return dict(sorted(summary.items(), key=lambda x: x[1], reverse=True))

    def _create_summary_by_severity(self) -> Dict[str, int]:
        summary = {}
        for item in self.review_items:
            summary[item['severity']] = summary.get(item['severity'], 0) + 1
        return summary

    def _create_summary_by_object(self) -> Dict[str, int]:
        summary = {}
        for item in self.review_items:
            summary[item['object_name']] = summary.get(item['object_name'], 0) + 1
        return dict(sorted(summary.items(), key=lambda x: x[1], reverse=True))

    def _detect_object_type(self, object_name: str) -> str:
        """Detect object type from the statement label."""
        first_word = object_name.split(" ", 1)[0].upper()
        if first_word in ('TABLE', 'VIEW', 'INDEX', 'SEQUENCE', 'TRIGGER', 'PROCEDURE', 'FUNCTION', 'PACKAGE'):
            return first_word
        return 'UNKNOWN'
