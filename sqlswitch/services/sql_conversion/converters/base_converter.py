from ..models import Dialect, StageResult
from ..rules.rule_config import RuleConfig


class BaseConverter:
    """
    A base class for all converters to ensure a consistent interface.
    """
    def __init__(self, source_dialect: Dialect, target_dialect: Dialect, rule_config: RuleConfig):
        self.source_dialect = source_dialect
        self.target_dialect = target_dialect
        self.rule_config = rule_config

    def convert_statement(self, statement: str) -> StageResult:
        """
        The main conversion method that each converter must implement.

        Args:
            statement (str): A single SQL statement to convert.

        Returns:
            A StageResult with the converted SQL, the applied rule names and any warnings.
        """
        raise NotImplementedError("Each converter must implement its own convert_statement method.")
