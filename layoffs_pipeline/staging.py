import csv
import logging
import os
import sqlite3
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from layoffs_pipeline.errors import IngestionError
from layoffs_pipeline.schema import (
    BUSINESS_COLUMNS,
    INTEGER_COLUMNS,
    copy_table,
    create_layoffs_table,
)

logger = logging.getLogger(__name__)

# CSV header names that map onto a column under another name
HEADER_ALIASES = {
    'date': 'event_date',
}

# Cell values treated as missing
NULL_MARKERS = ('', 'NULL')

# SQLite INTEGER is a signed 64-bit value
SQLITE_INT_MIN = -2 ** 63
SQLITE_INT_MAX = 2 ** 63 - 1


def _canonical_header(name: str) -> str:
    name = name.strip()
    return HEADER_ALIASES.get(name, name)


def validate_csv_structure(csv_file: str, required_columns: Optional[List[str]] = None) -> List[str]:
    """
    Validate the structure of the CSV file.

    Args:
        csv_file: Path to the CSV file
        required_columns: Column names that must be present (default: all business columns)

    Returns:
        The header with aliases resolved

    Raises:
        IngestionError: if the file is missing, empty or lacks a required column
    """
    required_columns = required_columns or BUSINESS_COLUMNS
    if not os.path.exists(csv_file):
        raise IngestionError(f"CSV file not found: {csv_file}")

    with open(csv_file, newline='', encoding='utf-8-sig') as f:
        reader = csv.DictReader(f)
        csv_columns = reader.fieldnames
    if not csv_columns:
        raise IngestionError(f"CSV file is empty or has no headers: {csv_file}")

    header = [_canonical_header(col) for col in csv_columns]
    missing_columns = [col for col in required_columns if col not in header]
    if missing_columns:
        raise IngestionError(f"CSV file is missing required columns: {missing_columns}")
    return header


def _clean_cell(value: Optional[str]) -> Optional[str]:
    # Surrounding whitespace is kept; trimming happens during standardization
    if value is None or value.strip() in NULL_MARKERS:
        return None
    return value


def _to_int(value: Optional[str]) -> Optional[int]:
    """
    Parse an integer cell, accepting integral decimals like '12.0'.

    Raises:
        ValueError: if the cell is not integral or does not fit a SQLite INTEGER
    """
    if value is None:
        return None
    try:
        number = int(value)
    except ValueError:
        try:
            decimal_value = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"not an integer: {value!r}") from None
        if not decimal_value.is_finite() or decimal_value != decimal_value.to_integral_value():
            raise ValueError(f"not an integer: {value!r}")
        number = int(decimal_value)
    if not SQLITE_INT_MIN <= number <= SQLITE_INT_MAX:
        raise ValueError(f"out of range for INTEGER: {value!r}")
    return number


def parse_row(row: Dict[str, Optional[str]]) -> tuple:
    """
    Turn one CSV row (aliased keys) into a tuple of column values.

    Raises:
        ValueError: if an integer column holds a non-integral or out-of-range value
    """
    values = []
    for column in BUSINESS_COLUMNS:
        cell = _clean_cell(row.get(column))
        if column in INTEGER_COLUMNS:
            cell = _to_int(cell)
        values.append(cell)
    return tuple(values)


def ingest_csv(conn: sqlite3.Connection, csv_file: str, table: str = "layoffs") -> int:
    """
    Load the raw extract from a CSV file into the raw layoffs table.

    The table is recreated on every call. Blank cells and the literal NULL
    become SQL NULL. Rows with an unparseable integer column are skipped.

    Args:
        conn: SQLite connection
        csv_file: Path to the CSV file
        table: Name of the raw table

    Returns:
        Number of rows inserted
    """
    header = validate_csv_structure(csv_file)

    cursor = conn.cursor()
    create_layoffs_table(cursor, table)

    placeholders = ", ".join("?" for _ in BUSINESS_COLUMNS)
    insert_sql = f"INSERT INTO {table} ({', '.join(BUSINESS_COLUMNS)}) VALUES ({placeholders})"

    record_count = 0
    skipped = 0
    with open(csv_file, newline='', encoding='utf-8-sig') as f:
        reader = csv.reader(f)
        next(reader)  # header already validated
        for line_number, cells in enumerate(reader, start=2):
            if not cells:
                continue
            row = dict(zip(header, cells))
            try:
                cursor.execute(insert_sql, parse_row(row))
                record_count += 1
            except ValueError as e:
                skipped += 1
                logger.warning(f"Skipping line {line_number} of {csv_file}: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} malformed rows while ingesting {csv_file}")
    logger.info(f"Ingested {record_count} records into '{table}'")
    return record_count


def snapshot_table(conn: sqlite3.Connection, source: str = "layoffs", target: str = "layoffs_staging") -> int:
    """
    Copy the raw table into a working copy so the original remains unchanged.

    Returns:
        Number of rows copied
    """
    copied = copy_table(conn, source, target)
    logger.info(f"Copied {copied} records from '{source}' into '{target}'")
    return copied
