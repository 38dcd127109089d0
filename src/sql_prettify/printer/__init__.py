"""Printing: layout documents and the SQL printer."""

from sql_prettify.printer.doc import HARDLINE, Indent, Join, render
from sql_prettify.printer.printer import SQLPrinter

__all__ = ["HARDLINE", "Indent", "Join", "render", "SQLPrinter"]
