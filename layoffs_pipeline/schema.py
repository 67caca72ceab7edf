import sqlite3
from typing import Dict, List

from layoffs_pipeline.errors import StageError

# Business columns of a layoff record, in table order
BUSINESS_COLUMNS = [
    'company',
    'location',
    'industry',
    'total_laid_off',
    'percentage_laid_off',
    'event_date',
    'stage',
    'country',
    'funds_raised_millions',
]

INTEGER_COLUMNS = ('total_laid_off', 'funds_raised_millions')

RANK_COLUMN = 'row_num'


def create_layoffs_table(cursor, table: str, date_type: str = "TEXT", with_rank: bool = False) -> None:
    """
    (Re)create a layoffs table.

    Args:
        cursor: SQLite cursor
        table: Table name
        date_type: Declared type of the event_date column (TEXT or DATE)
        with_rank: Whether to add the transient row_num column
    """
    rank_ddl = f",\n            {RANK_COLUMN} INTEGER" if with_rank else ""
    cursor.execute(f"DROP TABLE IF EXISTS {table}")
    cursor.execute(f"""
        CREATE TABLE {table} (
            company TEXT,
            location TEXT,
            industry TEXT,
            total_laid_off INTEGER DEFAULT NULL,
            percentage_laid_off TEXT,
            event_date {date_type},
            stage TEXT,
            country TEXT,
            funds_raised_millions INTEGER DEFAULT NULL{rank_ddl}
        )
    """)


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    cursor = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
    )
    return cursor.fetchone() is not None


def require_table(conn: sqlite3.Connection, table: str) -> None:
    """Raise StageError if a stage input table is missing."""
    if not table_exists(conn, table):
        raise StageError(f"Table '{table}' does not exist")


def column_types(conn: sqlite3.Connection, table: str) -> Dict[str, str]:
    """Map column name to declared type for a table."""
    return {row[1]: row[2] for row in conn.execute(f"PRAGMA table_info({table})")}


def count_rows(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def copy_table(conn: sqlite3.Connection, source: str, target: str) -> int:
    """
    Create target with the same layout as source and copy every row into it.

    Returns:
        Number of rows copied
    """
    require_table(conn, source)
    types = column_types(conn, source)
    with_rank = RANK_COLUMN in types
    columns: List[str] = BUSINESS_COLUMNS + ([RANK_COLUMN] if with_rank else [])
    column_list = ", ".join(columns)

    cursor = conn.cursor()
    create_layoffs_table(cursor, target, date_type=types.get('event_date') or "TEXT", with_rank=with_rank)
    cursor.execute(f"""
        INSERT INTO {target} ({column_list})
        SELECT {column_list} FROM {source} ORDER BY rowid
    """)
    return cursor.rowcount
