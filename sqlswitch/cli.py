import json
import sys
from pathlib import Path

import typer
import yaml

from sqlswitch.services.sql_conversion import ConversionOrchestrator
from sqlswitch.services.sql_conversion.errors import RuleConfigError, UnsupportedDialectError
from sqlswitch.services.sql_conversion.models import ConversionOptions, Dialect
from sqlswitch.services.sql_conversion.rules import PRESETS, preset
from sqlswitch.services.sql_conversion.utils.config_loader import load_rule_config
from sqlswitch.services.sql_conversion.utils.manual_review_logger import ManualReviewLogger
from sqlswitch.services.sql_conversion.utils.result_formatter import format_conversion_report
from sqlswitch.services.sql_conversion.utils.statement_validator import StatementValidator
from sqlswitch.utils.logger import set_console_level, setup_logger

app = typer.Typer(help="Convert SQL between Oracle, MySQL and PostgreSQL.")


def _read_sql(input_path: str) -> str:
    if input_path == "-":
        return sys.stdin.read()
    path = Path(input_path)
    if not path.is_file():
        raise typer.BadParameter(f"File not found: {input_path}", param_hint="INPUT_PATH")
    return path.read_text(encoding="utf-8")


def _dialect(value: str, option: str) -> Dialect:
    try:
        return Dialect.from_string(value)
    except UnsupportedDialectError as e:
        raise typer.BadParameter(str(e), param_hint=option) from None


@app.command()
def convert(
    input_path: str = typer.Argument("-", help="SQL file to convert, or '-' to read stdin"),
    source: str = typer.Option(..., "--source", "-s", help="Source dialect: oracle, mysql or postgresql"),
    target: str = typer.Option(..., "--target", "-t", help="Target dialect: oracle, mysql or postgresql"),
    preset_name: str = typer.Option(None, "--preset", help="Rule preset: default, minimal or strict"),
    rules: str = typer.Option(None, "--rules", help="YAML/JSON rule configuration file (overrides --preset)"),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON result envelope"),
    no_comments: bool = typer.Option(False, "--no-comments", help="Omit explanatory comments from the output"),
    strict: bool = typer.Option(False, "--strict", help="Escalate warnings to errors and parse strictly"),
    replace_unsupported: bool = typer.Option(False, "--replace-unsupported", help="Rewrite DECODE/NVL2 as CASE"),
    validate: bool = typer.Option(False, "--validate", help="Syntax-check the input with sqlglot first"),
    review_log: str = typer.Option(None, "--review-log", help="Directory for the manual review JSON log"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log conversion progress to stderr"),
) -> None:
    """Convert one SQL statement and print the result."""
    if verbose:
        set_console_level("INFO")
    source_dialect = _dialect(source, "--source")
    target_dialect = _dialect(target, "--target")
    try:
        if rules:
            rule_config = load_rule_config(rules)
        elif preset_name:
            rule_config = preset(preset_name)
        else:
            rule_config = None
    except RuleConfigError as e:
        raise typer.BadParameter(str(e), param_hint="--rules/--preset") from None

    options = ConversionOptions(
        strict_mode=strict,
        enable_comments=not no_comments,
        replace_unsupported_functions=replace_unsupported,
    )
    orchestrator = ConversionOrchestrator(validator=StatementValidator() if validate else None)
    review_logger = ManualReviewLogger(output_dir=review_log, logger=setup_logger("ManualReview"))

    result = orchestrator.convert(
        _read_sql(input_path), source_dialect, target_dialect,
        options=options, rule_config=rule_config, review_logger=review_logger,
    )

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo(result.converted_sql)
        typer.echo(format_conversion_report(result), err=True)

    if review_log:
        written = review_logger.write_manual_review_log()
        if written and not as_json:
            typer.echo(f"Manual review log written to {written}", err=True)
    raise typer.Exit(code=0 if result.success else 1)


@app.command()
def presets(name: str = typer.Argument(None, help="Show a single preset")) -> None:
    """Print the toggles of every rule preset."""
    names = [name] if name else list(PRESETS)
    for preset_key in names:
        try:
            data = preset(preset_key).to_dict()
        except RuleConfigError as e:
            raise typer.BadParameter(str(e), param_hint="NAME") from None
        typer.echo(yaml.safe_dump({preset_key: data}, sort_keys=False))


if __name__ == "__main__":
    app()
