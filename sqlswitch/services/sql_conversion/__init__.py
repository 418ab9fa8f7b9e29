"""
SQL Conversion Package - dialect conversion between Oracle, MySQL and PostgreSQL.

Main Components:
    - ConversionOrchestrator: Main entry point for SQL conversion operations
    - StatementConverter: Routes a statement to the package path or the generic pipeline
    - Syntax processors: Ordered Oracle clause/hint rewriters
    - Package body converter: Oracle packages to standalone routines
    - Rules: Rule configuration, presets and the per-session store

Usage:
    from sqlswitch.services.sql_conversion import ConversionOrchestrator

    orchestrator = ConversionOrchestrator()
    result = orchestrator.convert(
        "CREATE TABLE t (id NUMBER(10)) NOLOGGING",
        source_dialect="oracle",
        target_dialect="mysql",
    )
"""

from .models import ConversionOptions, ConversionResult, ConversionWarning, Dialect
from .orchestrator import ConversionOrchestrator
from .rules import ConversionRuleService, RuleConfig

__all__ = [
    'ConversionOrchestrator',
    'ConversionOptions',
    'ConversionResult',
    'ConversionWarning',
    'ConversionRuleService',
    'Dialect',
    'RuleConfig',
]
