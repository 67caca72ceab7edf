import logging
import sqlite3

import pandas as pd

from layoffs_pipeline.schema import (
    BUSINESS_COLUMNS,
    column_types,
    count_rows,
    create_layoffs_table,
    require_table,
)

logger = logging.getLogger(__name__)


def finalize(conn: sqlite3.Connection, source: str = "layoffs_populated",
             target: str = "layoffs_clean") -> int:
    """
    Build the cleaned table: the nine business columns only, without row_num.

    Returns:
        Number of records in the cleaned table
    """
    require_table(conn, source)
    columns = ", ".join(BUSINESS_COLUMNS)

    cursor = conn.cursor()
    create_layoffs_table(cursor, target, date_type="DATE")
    cursor.execute(f"""
        INSERT INTO {target} ({columns})
        SELECT {columns} FROM {source} ORDER BY rowid
    """)

    total = count_rows(conn, target)
    logger.info(f"Final table '{target}' holds {total} cleaned records")
    return total


def load_table(conn: sqlite3.Connection, table: str = "layoffs_clean") -> pd.DataFrame:
    """
    Read a stage table into a DataFrame.

    event_date is parsed into datetimes once the column has been declared DATE.
    """
    require_table(conn, table)
    parse_dates = ['event_date'] if column_types(conn, table).get('event_date') == 'DATE' else None
    return pd.read_sql(f"SELECT * FROM {table}", conn, parse_dates=parse_dates)
