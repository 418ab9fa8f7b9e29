"""
SQLGlot dialect utilities for SQL conversion.
Handles mapping between the engine's dialect tags and their SQLGlot dialect names.
"""
from ..models import Dialect

_SQLGLOT_DIALECTS = {
    Dialect.ORACLE: 'oracle',
    Dialect.MYSQL: 'mysql',
    Dialect.POSTGRESQL: 'postgres',
}


def get_sqlglot_dialect(dialect) -> str:
    """
    Get the SQLGlot dialect name used for tokenizing and parsing.

    Args:
        dialect: A Dialect or a dialect name (e.g., 'oracle', 'postgresql', 'pg')

    Returns:
        SQLGlot dialect string
    """
    return _SQLGLOT_DIALECTS[Dialect.from_string(dialect)]
