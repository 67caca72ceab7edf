"""
Pytest configuration and fixtures for the layoffs cleaning tests.
"""
import csv
import logging
import sqlite3
from typing import Callable, Generator, Iterable, List, Optional

import pytest

from layoffs_pipeline.schema import BUSINESS_COLUMNS, RANK_COLUMN, create_layoffs_table

CSV_HEADER = [
    'company', 'location', 'industry', 'total_laid_off', 'percentage_laid_off',
    'date', 'stage', 'country', 'funds_raised_millions',
]


def layoff(company="Acme", location="SF", industry="Retail", total_laid_off=100,
           percentage_laid_off="0.1", event_date="3/5/2023", stage="Series B",
           country="United States", funds_raised_millions=50) -> tuple:
    """Build one row of business column values, in table order."""
    return (company, location, industry, total_laid_off, percentage_laid_off,
            event_date, stage, country, funds_raised_millions)


@pytest.fixture
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite connection, closed after the test."""
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def make_table(conn) -> Callable[..., str]:
    """
    Factory creating a layoffs table filled with the given rows.

    Rows are tuples of the nine business values; with_rank tables take a
    tenth row_num value.
    """
    def _make(table: str, rows: Iterable[tuple], date_type: str = "TEXT", with_rank: bool = False) -> str:
        create_layoffs_table(conn.cursor(), table, date_type=date_type, with_rank=with_rank)
        columns = BUSINESS_COLUMNS + ([RANK_COLUMN] if with_rank else [])
        placeholders = ", ".join("?" for _ in columns)
        conn.executemany(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})", list(rows)
        )
        conn.commit()
        return table
    return _make


@pytest.fixture
def write_csv(tmp_path) -> Callable[..., str]:
    """Factory writing rows of strings to a CSV file under tmp_path."""
    def _write(rows: List[List[str]], header: Optional[List[str]] = None, name: str = "layoffs.csv") -> str:
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header if header is not None else CSV_HEADER)
            writer.writerows(rows)
        return str(path)
    return _write


def fetch_all(conn: sqlite3.Connection, table: str, columns: str = "*") -> list:
    return conn.execute(f"SELECT {columns} FROM {table} ORDER BY rowid").fetchall()


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Drop handlers the CLI attaches so they do not leak across tests."""
    yield
    package_logger = logging.getLogger("layoffs_pipeline")
    for handler in list(package_logger.handlers):
        handler.close()
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
