"""
Syntax pre-check run before conversion.

Tokenizing with sqlglot catches unterminated literals and stray characters;
in strict mode the statement must also parse.
"""
import time
from dataclasses import dataclass, field
from typing import List

import sqlglot
import sqlglot.errors

from sqlswitch.utils.logger import setup_logger
from sqlswitch.utils.timing import elapsed_millis
from ..models import Dialect
from .dialect_utils import get_sqlglot_dialect


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    elapsed_millis: int = 0


class StatementValidator:

    def __init__(self):
        self.logger = setup_logger("StatementValidator")

    def validate(self, sql: str, dialect: Dialect, strict: bool = False) -> ValidationResult:
        start = time.perf_counter()
        read = get_sqlglot_dialect(dialect)
        errors: List[str] = []
        try:
            sqlglot.tokenize(sql, read=read)
            if strict:
                sqlglot.parse(sql, read=read)
        except sqlglot.errors.ParseError as e:
            for detail in e.errors or [{"description": str(e)}]:
                line = detail.get("line")
                location = f" (line {line}, col {detail.get('col')})" if line else ""
                errors.append(f"{detail.get('description')}{location}")
        except sqlglot.errors.SqlglotError as e:
            errors.append(str(e))

        if errors:
            self.logger.warning(f"Validation failed for {dialect.display_name} statement: {errors[0]}")
        return ValidationResult(valid=not errors, errors=errors, elapsed_millis=elapsed_millis(start))
