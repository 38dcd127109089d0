"""Library entry point: format SQL text in one call."""

from typing import Optional

from sql_prettify.config import FormatterConfig, load_config
from sql_prettify.parser.orchestrator import SQLParser
from sql_prettify.printer.printer import SQLPrinter


def format_sql(text: str, config: Optional[FormatterConfig] = None) -> str:
    """Format SQL text.

    Args:
        text: One or more ``;``-separated SQL statements
        config: Formatter configuration (loaded from the environment if omitted)

    Returns:
        The formatted SQL, ending with a newline.

    Raises:
        StatementParseError: If a statement cannot be parsed.
        UnsupportedStatementError: In strict mode, for statements without a renderer.

    Example:
        >>> format_sql("select a, b from t")
        'SELECT a\\n     , b\\nFROM t\\n;\\n'
    """
    config = config or load_config()
    parser = SQLParser(grammar=config.get_grammar())
    document = parser.parse(text)
    return SQLPrinter(config).print_document(document)
