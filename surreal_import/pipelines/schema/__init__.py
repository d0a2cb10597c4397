"""Target table declaration for imported files."""

from .definitions import (
    quote_identifier,
    define_table_statement,
    clear_table_statement,
    define_index_statement,
    table_setup_statements,
)
from .setup import prepare_table

__all__ = [
    "quote_identifier",
    "define_table_statement",
    "clear_table_statement",
    "define_index_statement",
    "table_setup_statements",
    "prepare_table",
]
