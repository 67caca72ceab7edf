import logging
import sqlite3
from typing import Dict, Iterable, Optional

import pandas as pd

from layoffs_pipeline.config import COUNTRY_PREFIXES, DATE_FORMAT, INDUSTRY_PREFIXES
from layoffs_pipeline.schema import (
    BUSINESS_COLUMNS,
    RANK_COLUMN,
    column_types,
    copy_table,
    create_layoffs_table,
)

logger = logging.getLogger(__name__)

ISO_DATE_FORMAT = '%Y-%m-%d'


def _like_prefix(prefix: str) -> str:
    """LIKE pattern matching values that start with prefix (ESCAPE '\\')."""
    escaped = prefix.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return escaped + '%'


def trim_company(conn: sqlite3.Connection, table: str) -> int:
    """Strip leading and trailing spaces from company names."""
    cursor = conn.execute(f"""
        UPDATE {table}
        SET company = TRIM(company)
        WHERE company <> TRIM(company)
    """)
    logger.info(f"Trimmed {cursor.rowcount} company names in '{table}'")
    return cursor.rowcount


def canonicalize_industry(conn: sqlite3.Connection, table: str,
                          prefixes: Optional[Dict[str, str]] = None) -> int:
    """
    Collapse industry variants onto canonical labels.

    Args:
        conn: SQLite connection
        table: Table to update in place
        prefixes: Mapping of prefix -> canonical label, e.g. {'Crypto': 'Crypto'}

    Returns:
        Number of rows changed
    """
    prefixes = INDUSTRY_PREFIXES if prefixes is None else prefixes
    changed = 0
    for prefix, canonical in prefixes.items():
        cursor = conn.execute(f"""
            UPDATE {table}
            SET industry = ?
            WHERE industry LIKE ? ESCAPE '\\'
              AND industry <> ?
        """, (canonical, _like_prefix(prefix), canonical))
        if cursor.rowcount:
            logger.info(f"Set {cursor.rowcount} industries starting with '{prefix}' to '{canonical}'")
        changed += cursor.rowcount
    return changed


def strip_country_punctuation(conn: sqlite3.Connection, table: str,
                              prefixes: Optional[Iterable[str]] = None) -> int:
    """Remove trailing periods from countries starting with one of the prefixes."""
    prefixes = COUNTRY_PREFIXES if prefixes is None else prefixes
    changed = 0
    for prefix in prefixes:
        cursor = conn.execute(f"""
            UPDATE {table}
            SET country = RTRIM(country, '.')
            WHERE country LIKE ? ESCAPE '\\'
              AND country LIKE '%.'
        """, (_like_prefix(prefix),))
        changed += cursor.rowcount
    logger.info(f"Removed trailing periods from {changed} countries in '{table}'")
    return changed


def parse_dates(values: pd.Series, date_format: str = DATE_FORMAT) -> pd.Series:
    """Parse text dates; anything not matching date_format becomes NaT."""
    return pd.to_datetime(values, format=date_format, errors='coerce')


def preview_date_conversion(conn: sqlite3.Connection, table: str,
                            date_format: str = DATE_FORMAT) -> pd.DataFrame:
    """
    Show each text date beside its parsed value without writing anything.
    """
    df = pd.read_sql(f"SELECT event_date FROM {table}", conn)
    df['formatted_date'] = parse_dates(df['event_date'], date_format).dt.date
    return df


def _retype_date_column(conn: sqlite3.Connection, table: str) -> None:
    """Rebuild table so event_date is declared DATE. SQLite has no MODIFY COLUMN."""
    with_rank = RANK_COLUMN in column_types(conn, table)
    columns = ", ".join(BUSINESS_COLUMNS + ([RANK_COLUMN] if with_rank else []))
    old_table = f"{table}_text_dates"

    cursor = conn.cursor()
    cursor.execute(f"DROP TABLE IF EXISTS {old_table}")
    cursor.execute(f"ALTER TABLE {table} RENAME TO {old_table}")
    create_layoffs_table(cursor, table, date_type="DATE", with_rank=with_rank)
    cursor.execute(f"""
        INSERT INTO {table} ({columns})
        SELECT {columns} FROM {old_table} ORDER BY rowid
    """)
    cursor.execute(f"DROP TABLE {old_table}")


def convert_dates(conn: sqlite3.Connection, table: str, date_format: str = DATE_FORMAT) -> int:
    """
    Convert event_date from text to ISO dates and declare the column DATE.

    Text that does not match date_format is set to NULL rather than failing
    the run; those rows are counted and logged as a data-quality gap.

    Returns:
        Number of non-null text dates that could not be parsed
    """
    df = pd.read_sql(f"SELECT rowid AS rid, event_date FROM {table}", conn)
    parsed = parse_dates(df['event_date'], date_format)
    iso_dates = parsed.dt.strftime(ISO_DATE_FORMAT).astype(object).where(parsed.notna(), None)

    unparsed = df['event_date'].notna() & parsed.isna()
    if unparsed.any():
        samples = df.loc[unparsed, 'event_date'].unique()[:5].tolist()
        logger.warning(
            f"{int(unparsed.sum())} dates in '{table}' do not match '{date_format}' "
            f"and were set to NULL, e.g. {samples}"
        )

    conn.executemany(
        f"UPDATE {table} SET event_date = ? WHERE rowid = ?",
        list(zip(iso_dates.tolist(), df['rid'].tolist())),
    )
    _retype_date_column(conn, table)
    logger.info(f"Converted {int(parsed.notna().sum())} dates in '{table}' to DATE")
    return int(unparsed.sum())


def standardize(conn: sqlite3.Connection, source: str = "layoffs_staging2",
                target: str = "layoffs_standardized",
                industry_prefixes: Optional[Dict[str, str]] = None,
                country_prefixes: Optional[Iterable[str]] = None,
                date_format: str = DATE_FORMAT) -> Dict[str, int]:
    """
    Copy source into target and standardize company, industry, country and date.

    Returns:
        Counts of rows touched by each step
    """
    copy_table(conn, source, target)
    return {
        'companies_trimmed': trim_company(conn, target),
        'industries_canonicalized': canonicalize_industry(conn, target, industry_prefixes),
        'countries_stripped': strip_country_punctuation(conn, target, country_prefixes),
        'dates_unparsed': convert_dates(conn, target, date_format),
    }
