import logging
import sqlite3
from typing import Dict

import pandas as pd

from layoffs_pipeline.schema import copy_table, require_table

logger = logging.getLogger(__name__)

# Rows missing both layoff measures carry no usable information
UNINFORMATIVE_PREDICATE = "total_laid_off IS NULL AND percentage_laid_off IS NULL"


def find_uninformative(conn: sqlite3.Connection, table: str) -> pd.DataFrame:
    """Rows where both total_laid_off and percentage_laid_off are NULL."""
    require_table(conn, table)
    return pd.read_sql(f"SELECT * FROM {table} WHERE {UNINFORMATIVE_PREDICATE}", conn)


def find_ambiguous_industries(conn: sqlite3.Connection, table: str) -> pd.DataFrame:
    """
    (company, location) keys whose rows disagree on a non-null industry.

    Returns:
        DataFrame with company, location and the number of distinct industries
    """
    require_table(conn, table)
    return pd.read_sql(f"""
        SELECT company, location, COUNT(DISTINCT industry) AS industry_count
        FROM {table}
        WHERE industry IS NOT NULL
        GROUP BY company, location
        HAVING COUNT(DISTINCT industry) > 1
    """, conn)


def backfill_industry(conn: sqlite3.Connection, table: str) -> int:
    """
    Fill missing industries from rows with the same company and location.

    When siblings disagree, the lexicographically smallest industry wins.
    A NULL company or location never matches anything.

    Returns:
        Number of rows updated
    """
    sibling_industry = f"""
        SELECT MIN(t2.industry)
        FROM {table} AS t2
        WHERE t2.company = {table}.company
          AND t2.location = {table}.location
          AND t2.industry IS NOT NULL
    """
    cursor = conn.execute(f"""
        UPDATE {table}
        SET industry = ({sibling_industry})
        WHERE industry IS NULL
          AND ({sibling_industry}) IS NOT NULL
    """)
    logger.info(f"Backfilled industry for {cursor.rowcount} records in '{table}'")
    return cursor.rowcount


def delete_uninformative(conn: sqlite3.Connection, table: str) -> int:
    """Delete rows missing both layoff measures. Returns rows deleted."""
    cursor = conn.execute(f"DELETE FROM {table} WHERE {UNINFORMATIVE_PREDICATE}")
    logger.info(f"Deleted {cursor.rowcount} uninformative records from '{table}'")
    return cursor.rowcount


def handle_nulls(conn: sqlite3.Connection, source: str = "layoffs_standardized",
                 target: str = "layoffs_populated") -> Dict[str, int]:
    """
    Copy source into target, backfill industries, then drop uninformative rows.

    Backfill always runs before deletion so every row gets the chance to be
    populated, including rows about to be removed.

    Returns:
        Counts for each step
    """
    copy_table(conn, source, target)

    uninformative = find_uninformative(conn, target)
    logger.info(f"Found {len(uninformative)} records with no layoff figures in '{target}'")

    ambiguous = find_ambiguous_industries(conn, target)
    if not ambiguous.empty:
        keys = list(ambiguous[['company', 'location']].itertuples(index=False, name=None))
        logger.warning(
            f"{len(ambiguous)} company/location keys have conflicting industries; "
            f"backfill uses the alphabetically first one: {keys[:5]}"
        )

    return {
        'uninformative_found': len(uninformative),
        'ambiguous_keys': len(ambiguous),
        'industries_backfilled': backfill_industry(conn, target),
        'uninformative_deleted': delete_uninformative(conn, target),
    }
