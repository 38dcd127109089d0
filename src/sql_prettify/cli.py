"""Command-line interface for sql-prettify.

This module provides a CLI for formatting SQL files, checking whether files
are already formatted, and displaying the statements a file parses into.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table as RichTable
from typing_extensions import Annotated

from sql_prettify.config import FormatterConfig, load_config
from sql_prettify.errors import SqlPrettifyError
from sql_prettify.parser.orchestrator import SQLParser
from sql_prettify.printer.printer import SQLPrinter
from sql_prettify.sql_tree.nodes import (
    CommentStatement,
    CreateStatement,
    DeleteStatement,
    GrantStatement,
    InsertStatement,
    OpaqueStatement,
    SelectStatement,
    StatementNode,
    UpdateStatement,
)

app = typer.Typer(
    name="sql-prettify",
    help="Format SQL into a canonical, aligned layout",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

STDIN_PATH = "-"


def get_config(
    dialect: Optional[str] = None,
    strict: Optional[bool] = None,
) -> FormatterConfig:
    """Get configuration from environment or CLI options.

    Args:
        dialect: Override the sqlglot dialect from environment
        strict: Override strict mode from environment

    Returns:
        FormatterConfig instance
    """
    config = load_config()

    # Override config values if provided via CLI
    if dialect:
        config.dialect = dialect
    if strict is not None:
        config.strict = strict

    return config


def configure_logging(config: FormatterConfig, verbose: bool = False) -> None:
    """Send library logs to stderr through rich."""
    level = logging.DEBUG if verbose else config.get_log_level()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def read_source(path: str) -> str:
    """Read SQL text from a file, or from stdin for ``-``.

    Raises:
        ValueError: If the file does not exist
    """
    if path == STDIN_PATH:
        return sys.stdin.read()
    source = Path(path)
    if not source.is_file():
        raise ValueError(f"File not found: {path}")
    return source.read_text(encoding="utf-8")


def summarize_statement(statement: StatementNode) -> str:
    """One-line description of a statement for display."""
    if isinstance(statement, SelectStatement):
        sources = ", ".join(
            getattr(source, "qualified_name", "(subquery)") for source in statement.from_sources
        )
        summary = f"{len(statement.columns)} column(s)"
        if sources:
            summary += f" from {sources}"
        if statement.joins:
            summary += f", {len(statement.joins)} join(s)"
        return summary
    if isinstance(statement, CreateStatement):
        prefix = "OR REPLACE " if statement.replace else ""
        return f"{prefix}{statement.target.qualified_name}"
    if isinstance(statement, InsertStatement):
        source = "SELECT" if statement.query is not None else f"{len(statement.values)} row(s)"
        return f"into {statement.target.qualified_name} from {source}"
    if isinstance(statement, (UpdateStatement, DeleteStatement)):
        return statement.target.qualified_name
    if isinstance(statement, GrantStatement):
        if statement.is_fallback:
            return statement.statement
        return f"{statement.privilege} on {statement.on_name} to {statement.to_name}"
    if isinstance(statement, CommentStatement):
        return statement.text.splitlines()[0]
    if isinstance(statement, OpaqueStatement):
        return statement.sql
    return ""


@app.command(name="format")
def format_command(
    paths: Annotated[
        List[str], typer.Argument(help="SQL files to format ('-' reads from stdin)")
    ],
    write: Annotated[
        bool, typer.Option("--write", "-w", help="Rewrite files in place")
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path (stdout if not specified)"),
    ] = None,
    dialect: Annotated[
        Optional[str], typer.Option("--dialect", "-d", help="sqlglot dialect to parse with")
    ] = None,
    strict: Annotated[
        Optional[bool],
        typer.Option("--strict/--no-strict", help="Fail on statements that cannot be rendered"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Format SQL files.

    Formatted SQL is printed to stdout unless --write or --output is given.

    Example:
        sql-prettify format query.sql

        sql-prettify format models/*.sql --write

        cat query.sql | sql-prettify format - --dialect snowflake
    """
    try:
        config = get_config(dialect, strict)
        configure_logging(config, verbose)

        if write and STDIN_PATH in paths:
            raise ValueError("--write cannot be used with stdin")

        parser = SQLParser(grammar=config.get_grammar())
        printer = SQLPrinter(config)

        results = []
        for path in paths:
            source = read_source(path)
            formatted = printer.print_document(parser.parse(source))

            if write:
                if formatted != source:
                    Path(path).write_text(formatted, encoding="utf-8")
                    err_console.print(f"[green]✓[/green] Formatted {escape(path)}")
                else:
                    err_console.print(f"[blue]Unchanged {escape(path)}[/blue]")
            else:
                results.append(formatted)

        if write:
            return

        # Output result
        if output:
            output.write_text("\n".join(results), encoding="utf-8")
            err_console.print(f"[green]✓[/green] Formatted SQL written to {escape(str(output))}")
        else:
            typer.echo("\n".join(results), nl=False)

    except (SqlPrettifyError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except Exception as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def check(
    paths: Annotated[List[str], typer.Argument(help="SQL files to check")],
    dialect: Annotated[
        Optional[str], typer.Option("--dialect", "-d", help="sqlglot dialect to parse with")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Check that SQL files are already formatted.

    Exits with status 1 and lists the files that formatting would change.

    Example:
        sql-prettify check models/*.sql
    """
    try:
        config = get_config(dialect)
        configure_logging(config, verbose)

        parser = SQLParser(grammar=config.get_grammar())
        printer = SQLPrinter(config)

        unformatted = []
        for path in paths:
            source = read_source(path)
            if printer.print_document(parser.parse(source)) != source:
                unformatted.append(path)

    except (SqlPrettifyError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except Exception as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if unformatted:
        for path in unformatted:
            err_console.print(f"[yellow]Would reformat[/yellow] {escape(path)}")
        err_console.print(f"[red]✗ {len(unformatted)} of {len(paths)} file(s) need formatting[/red]")
        raise typer.Exit(1)

    err_console.print(f"[green]✓ {len(paths)} file(s) already formatted[/green]")


@app.command(name="show-tree")
def show_tree(
    path: Annotated[str, typer.Argument(help="SQL file to parse ('-' reads from stdin)")],
    dialect: Annotated[
        Optional[str], typer.Option("--dialect", "-d", help="sqlglot dialect to parse with")
    ] = None,
) -> None:
    """Display the statements a SQL file parses into.

    Example:
        sql-prettify show-tree query.sql
    """
    try:
        config = get_config(dialect)
        configure_logging(config)

        parser = SQLParser(grammar=config.get_grammar())
        document = parser.parse(read_source(path))

        rich_table = RichTable(title=f"Statements: {escape(path)}")
        rich_table.add_column("#", style="cyan", justify="right")
        rich_table.add_column("Kind", style="magenta")
        rich_table.add_column("Summary", style="yellow")

        for index, statement in enumerate(document.statements, start=1):
            rich_table.add_row(str(index), statement.kind, escape(summarize_statement(statement)))

        console.print(rich_table)

    except (SqlPrettifyError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except Exception as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
