import re

from sqlswitch.utils.logger import setup_logger
from ...models import StageResult
from ..base_converter import BaseConverter
from .syntax_processors import PROCESSORS

BLANK_LINE_RUN = re.compile(r"\n\s*\n\s*\n")


class OracleSyntaxPreprocessor(BaseConverter):
    """
    Runs the Oracle syntax processors in their fixed order.

    Hint and option stripping runs first, identifier normalization last.
    Each processor is skipped when its gating rule is disabled.
    """

    def __init__(self, source_dialect, target_dialect, rule_config):
        super().__init__(source_dialect, target_dialect, rule_config)
        self.logger = setup_logger("OracleSyntaxPreprocessor")

    def convert_statement(self, statement: str) -> StageResult:
        result = StageResult(sql=statement)
        for spec in PROCESSORS:
            if not self.rule_config.is_enabled(spec.gate):
                continue
            outcome = spec.processor(result.sql, self.target_dialect)
            if not outcome.fired:
                continue
            self.logger.debug(f"Processor {spec.name} fired: {outcome.applied_rule}")
            result.sql = outcome.sql
            result.applied_rules.append(outcome.applied_rule)
            if outcome.warning is not None:
                result.warnings.append(outcome.warning)

        # Removals can leave runs of empty lines behind
        result.sql = BLANK_LINE_RUN.sub("\n\n", result.sql).strip()
        return result
