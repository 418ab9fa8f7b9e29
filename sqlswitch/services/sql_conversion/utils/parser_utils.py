import logging
from typing import Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import ErrorLevel

from ..models import Dialect
from .dialect_utils import get_sqlglot_dialect

logger = logging.getLogger(__name__)


def parse_lenient(sql: str, dialect: Dialect) -> Optional[exp.Expression]:
    """
    Parse with sqlglot errors ignored. Returns None when nothing usable
    comes back; callers treat that as "no finding".
    """
    try:
        return sqlglot.parse_one(sql, read=get_sqlglot_dialect(dialect), error_level=ErrorLevel.IGNORE)
    except Exception as e:
        logger.debug(f"Lenient parse produced no tree: {e}")
        return None
