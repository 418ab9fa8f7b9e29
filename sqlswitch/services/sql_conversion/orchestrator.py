"""ConversionOrchestrator – high-level driver for a single SQL conversion.

Responsibilities
----------------
1. Resolve the dialects and the effective rule configuration (explicit
   config, the caller's session config, or the default preset).
2. Run the optional statement validator; a rejection short-circuits with
   the original SQL and one error warning per validator message.
3. Delegate to `StatementConverter`, which classifies the statement and
   runs the package path or the generic pipeline.
4. Apply the per-call options (strict mode escalation, formatting).
5. Record manual-review items and emit the `ConversionResult`.

All detailed rewrite logic lives in the converter layer; the orchestrator
only sequences, times and guards it. Any unexpected exception is caught
here, once, and turned into a failed result.

FUNCTIONS:
==========
Public Functions (called by external code):
  - convert(): Convert one statement with explicit options / rule config.
  - convert_for_session(): Same, using the rule config stored for a session.
  - convert_request(): Map a JSON-shaped request dict to convert().

NOTE: Functions starting with _ are private (internal use only).
"""

import time
from typing import Any, Callable, Dict, List, Optional

from sqlswitch.config import config as app_config
from sqlswitch.utils.logger import setup_logger
from sqlswitch.utils.timing import elapsed_millis, timed
from .converters.declarative.advisory_checks import run_advisory_checks
from .converters.declarative.statement_converter import StatementConverter
from .models import (ConversionOptions, ConversionResult, ConversionWarning, Dialect,
                     StageResult, WarningSeverity, WarningType)
from .rules.rule_config import RuleConfig
from .rules.rule_service import ConversionRuleService
from .utils.manual_review_logger import ManualReviewLogger, describe_statement
from .utils.sql_preprocessing import normalize_sql_text

DEFAULT_MAX_SQL_LENGTH = 1_000_000

Formatter = Callable[[str, Dialect], str]


class ConversionOrchestrator:

    def __init__(self, rule_service: Optional[ConversionRuleService] = None, validator=None,
                 formatter: Optional[Formatter] = None, max_sql_length: Optional[int] = None,
                 converter_factory: Callable[..., StatementConverter] = StatementConverter):
        self.logger = setup_logger("ConversionOrchestrator")
        self.rule_service = rule_service or ConversionRuleService()
        self.validator = validator
        self.formatter = formatter
        self.converter_factory = converter_factory
        configured_max = app_config.get("conversion", {}).get("max_sql_length", DEFAULT_MAX_SQL_LENGTH)
        self.max_sql_length = max_sql_length or configured_max

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------
    def convert(self, sql: str, source_dialect, target_dialect,
                options: Optional[ConversionOptions] = None,
                rule_config: Optional[RuleConfig] = None,
                review_logger: Optional[ManualReviewLogger] = None) -> ConversionResult:
        """
        Convert one SQL statement. Never raises.

        Args:
            sql: SQL text.
            source_dialect: Dialect or dialect name of the input.
            target_dialect: Dialect or dialect name to convert to.
            options: Per-call options; defaults apply when omitted.
            rule_config: Rule configuration; the service default when omitted.
            review_logger: Collects warnings that need manual review.

        Returns:
            ConversionResult; `success` is False only for fatal engine failures.
        """
        start = time.perf_counter()
        original_sql = sql
        source: Optional[Dialect] = None
        target: Optional[Dialect] = None
        try:
            source = Dialect.from_string(source_dialect)
            target = Dialect.from_string(target_dialect)
            options = options or ConversionOptions()
            rule_config = rule_config or self.rule_service.get_default_config()
            self.logger.info(f"Starting SQL conversion: {source.display_name} -> {target.display_name}")

            problem = self._check_input(sql)
            if problem:
                return self._failed(original_sql, source, target, problem, start)

            sql = normalize_sql_text(sql)
            rejection = self._validate(sql, source, options)
            if rejection is not None:
                rejection.sql = original_sql
                return self._finish(original_sql, source, target, rejection, options, start, review_logger)

            if source == target:
                stage = StageResult(sql=sql)
                stage.warnings.extend(run_advisory_checks(sql, source, target, rule_config))
            else:
                converter = self.converter_factory(source, target, rule_config, options)
                stage, stage_ms = timed(converter.convert_statement, sql)
                self.logger.debug(f"Statement converted in {stage_ms} ms with {len(stage.applied_rules)} rule(s)")

            stage = self._apply_formatting(stage, target, options)
            return self._finish(original_sql, source, target, stage, options, start, review_logger)
        except Exception as e:
            self.logger.error(f"Conversion failed: {e}", exc_info=True)
            return self._failed(original_sql, source, target, f"Conversion failed: {e}", start)

    def convert_for_session(self, sql: str, source_dialect, target_dialect, session_id: Optional[str],
                            options: Optional[ConversionOptions] = None,
                            review_logger: Optional[ManualReviewLogger] = None) -> ConversionResult:
        """Convert using the rule configuration stored for *session_id*."""
        rule_config = self.rule_service.get_config_for_session(session_id)
        return self.convert(sql, source_dialect, target_dialect, options=options,
                            rule_config=rule_config, review_logger=review_logger)

    def convert_request(self, request: Dict[str, Any], session_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Map a request of the shape ``{sql, sourceDialect, targetDialect, options}``
        to a conversion and return the response dict.
        """
        options = ConversionOptions.from_dict(request.get("options"))
        result = self.convert_for_session(
            request.get("sql", ""), request.get("sourceDialect"), request.get("targetDialect"),
            session_id, options=options,
        )
        return result.to_dict()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _check_input(self, sql: str) -> Optional[str]:
        if sql is None or not str(sql).strip():
            return "SQL input is empty"
        if len(sql) > self.max_sql_length:
            return f"SQL input exceeds the maximum length of {self.max_sql_length} characters"
        return None

    def _validate(self, sql: str, source: Dialect, options: ConversionOptions) -> Optional[StageResult]:
        if self.validator is None:
            return None
        validation = self.validator.validate(sql, source, strict=options.strict_mode)
        if validation.valid:
            return None
        self.logger.warning(f"Validator rejected the statement ({len(validation.errors)} error(s)); no rules applied")
        rejection = StageResult(sql=sql)
        for message in validation.errors or ["Statement failed syntax validation"]:
            rejection.warnings.append(ConversionWarning(
                type=WarningType.SYNTAX_DIFFERENCE,
                message=f"Syntax validation failed: {message}",
                severity=WarningSeverity.ERROR,
                suggestion=f"Fix the {source.display_name} syntax and convert again.",
            ))
        return rejection

    def _apply_formatting(self, stage: StageResult, target: Dialect, options: ConversionOptions) -> StageResult:
        if not options.format_sql or self.formatter is None:
            return stage
        try:
            stage.sql = self.formatter(stage.sql, target)
        except Exception as e:
            self.logger.warning(f"Formatter failed, keeping unformatted SQL: {e}")
            stage.warnings.append(ConversionWarning(
                type=WarningType.SYNTAX_DIFFERENCE,
                message=f"SQL formatting failed; unformatted output returned ({e}).",
                severity=WarningSeverity.INFO,
            ))
        return stage

    def _finish(self, sql: str, source: Dialect, target: Dialect, stage: StageResult,
                options: ConversionOptions, start: float,
                review_logger: Optional[ManualReviewLogger]) -> ConversionResult:
        warnings: List[ConversionWarning] = list(stage.warnings)
        if options.strict_mode:
            warnings = [w.escalated() for w in warnings]
        if review_logger is not None:
            review_logger.log_warnings(describe_statement(sql), warnings)

        result = ConversionResult(
            original_sql=sql,
            converted_sql=stage.sql,
            source_dialect=source,
            target_dialect=target,
            warnings=warnings,
            applied_rules=list(stage.applied_rules),
            elapsed_millis=elapsed_millis(start),
        )
        self.logger.info(
            f"Finished SQL conversion in {result.elapsed_millis} ms: "
            f"{len(result.applied_rules)} rule(s), {len(result.warnings)} warning(s)"
        )
        return result

    def _failed(self, sql: str, source: Optional[Dialect], target: Optional[Dialect],
                error: str, start: float) -> ConversionResult:
        return ConversionResult(
            original_sql=sql,
            converted_sql=sql,
            source_dialect=source,
            target_dialect=target,
            elapsed_millis=elapsed_millis(start),
            success=False,
            error=error,
        )
