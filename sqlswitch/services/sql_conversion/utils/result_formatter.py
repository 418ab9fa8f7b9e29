"""
Result formatting utilities for SQL conversion.
Handles the human-readable report printed next to converted SQL.
"""
from typing import Dict, Iterable, List

from ..models import ConversionResult, ConversionWarning


def summarize_warnings(warnings: Iterable[ConversionWarning]) -> Dict[str, int]:
    """Count warnings per severity, in info/warning/error order."""
    summary = {"info": 0, "warning": 0, "error": 0}
    for warning in warnings:
        summary[warning.severity.value] += 1
    return summary


def format_conversion_report(result: ConversionResult) -> str:
    """
    Create a plain-text report of one conversion.

    Args:
        result: The conversion result to describe.

    Returns:
        Multi-line report: status line, applied rules and warnings.
    """
    source = result.source_dialect.display_name if result.source_dialect else "?"
    target = result.target_dialect.display_name if result.target_dialect else "?"
    status = "success" if result.success else "failed"
    lines: List[str] = [f"{source} -> {target}: {status} in {result.elapsed_millis} ms"]
    if result.error:
        lines.append(f"Error: {result.error}")

    if result.applied_rules:
        lines.append(f"Applied rules ({len(result.applied_rules)}):")
        lines.extend(f"  - {rule}" for rule in result.applied_rules)

    if result.warnings:
        counts = summarize_warnings(result.warnings)
        lines.append("Warnings ({}): {}".format(
            len(result.warnings), ", ".join(f"{n} {sev}" for sev, n in counts.items() if n)
        ))
        for warning in result.warnings:
            lines.append(f"  [{warning.severity.value.upper()}] {warning.type.value}: {warning.message}")
            if warning.suggestion:
                lines.append(f"      suggestion: {warning.suggestion}")
    return "\n".join(lines)
