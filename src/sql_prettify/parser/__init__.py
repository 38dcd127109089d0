"""Parsing: grammar handle, tree restoration and the statement orchestrator."""

from sql_prettify.parser.grammar import SqlglotGrammar
from sql_prettify.parser.orchestrator import SQLParser
from sql_prettify.parser.restoration import TreeRestorer

__all__ = ["SqlglotGrammar", "SQLParser", "TreeRestorer"]
