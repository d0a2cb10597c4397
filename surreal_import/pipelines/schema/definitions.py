"""SurrealDB statements declaring import target tables.

Target tables are SCHEMALESS: every CSV column becomes a field as-is.
Table names are quoted with backticks because they default to file
stems, which may contain characters that are not valid identifiers.
"""

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from surreal_import.pipelines.ingest.models import IndexDefinition


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier, escaping embedded backticks."""
    return "`" + name.replace("`", "\\`") + "`"


def define_table_statement(table: str) -> str:
    return f"DEFINE TABLE IF NOT EXISTS {quote_identifier(table)} SCHEMALESS"


def clear_table_statement(table: str) -> str:
    return f"DELETE {quote_identifier(table)}"


def define_index_statement(table: str, index: "IndexDefinition") -> str:
    statement = (
        f"DEFINE INDEX IF NOT EXISTS {quote_identifier(index.name)} "
        f"ON TABLE {quote_identifier(table)} FIELDS {index.fields}"
    )
    if index.unique:
        statement += " UNIQUE"
    return statement


def table_setup_statements(
    table: str,
    indexes: List["IndexDefinition"],
    clear: bool = False,
) -> List[str]:
    """Statements run before a file is imported, in execution order."""
    statements = []
    if clear:
        statements.append(clear_table_statement(table))
    statements.append(define_table_statement(table))
    statements.extend(define_index_statement(table, index) for index in indexes)
    return statements
