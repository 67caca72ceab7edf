"""
Duplicate detection and removal.

Rows are ranked within groups that agree on all nine business columns.
SQLite, like MySQL, cannot delete through a window-function CTE, so the
ranked rows are materialized into their own table before rank > 1 is
deleted.
"""
import logging
import sqlite3

import pandas as pd

from layoffs_pipeline.schema import BUSINESS_COLUMNS, RANK_COLUMN, create_layoffs_table, require_table

logger = logging.getLogger(__name__)


def ranked_select(table: str) -> str:
    """SELECT of every business column plus its rank inside its duplicate group."""
    columns = ", ".join(BUSINESS_COLUMNS)
    # NULLs fall into the same partition; rowid keeps the rank stable
    return f"""
        SELECT {columns},
               ROW_NUMBER() OVER (
                   PARTITION BY {columns}
                   ORDER BY rowid
               ) AS {RANK_COLUMN}
        FROM {table}
    """


def find_duplicates(conn: sqlite3.Connection, table: str) -> pd.DataFrame:
    """
    Return the redundant rows of a table (rank 2, 3, ...).
    """
    require_table(conn, table)
    query = f"""
        WITH duplicate_cte AS ({ranked_select(table)})
        SELECT * FROM duplicate_cte
        WHERE {RANK_COLUMN} > 1
    """
    return pd.read_sql(query, conn)


def remove_duplicates(conn: sqlite3.Connection, source: str = "layoffs_staging",
                      target: str = "layoffs_staging2") -> int:
    """
    Materialize ranked rows of source into target and delete the duplicates.

    Args:
        conn: SQLite connection
        source: Table to deduplicate (left untouched)
        target: Table receiving one representative per duplicate group

    Returns:
        Number of duplicate rows removed
    """
    require_table(conn, source)
    cursor = conn.cursor()
    create_layoffs_table(cursor, target, with_rank=True)

    cursor.execute(f"""
        INSERT INTO {target} ({', '.join(BUSINESS_COLUMNS)}, {RANK_COLUMN})
        {ranked_select(source)}
    """)
    ranked = cursor.rowcount

    cursor.execute(f"DELETE FROM {target} WHERE {RANK_COLUMN} > 1")
    removed = cursor.rowcount

    logger.info(f"Ranked {ranked} records from '{source}', removed {removed} duplicates into '{target}'")
    return removed
