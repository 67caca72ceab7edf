#!/usr/bin/env python3
"""
Layoffs cleaning pipeline.

Runs every cleaning stage against a SQLite database, each stage reading one
table and writing a fresh one:

    layoffs -> layoffs_staging -> layoffs_staging2 -> layoffs_standardized
            -> layoffs_populated -> layoffs_clean

The raw layoffs table is never modified, so a run can always be repeated.
"""

import argparse
import logging
import os
import sqlite3
import sys
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from layoffs_pipeline import config
from layoffs_pipeline.dedup import remove_duplicates
from layoffs_pipeline.errors import PipelineError
from layoffs_pipeline.export import export_table, upload_file_to_s3
from layoffs_pipeline.finalize import finalize
from layoffs_pipeline.nulls import handle_nulls
from layoffs_pipeline.schema import count_rows, table_exists
from layoffs_pipeline.staging import ingest_csv, snapshot_table
from layoffs_pipeline.standardize import standardize
from utils.logger import setup_logger

logger = logging.getLogger("layoffs_pipeline.run_pipeline")


class LayoffsPipeline:
    """Cleans the layoffs extract stored in a SQLite database."""

    def __init__(
        self,
        db_path: str = config.DB_PATH,
        tables: Optional[Dict[str, str]] = None,
        industry_prefixes: Optional[Dict[str, str]] = None,
        country_prefixes: Optional[Iterable[str]] = None,
        date_format: str = config.DATE_FORMAT,
    ):
        """
        Args:
            db_path: Path to the SQLite database file
            tables: Stage name -> table name overrides
            industry_prefixes: Industry prefix -> canonical label
            country_prefixes: Country prefixes whose trailing periods are stripped
            date_format: strptime format of the raw text dates
        """
        self.db_path = db_path
        self.tables = dict(config.TABLES, **(tables or {}))
        self.industry_prefixes = industry_prefixes
        self.country_prefixes = country_prefixes
        self.date_format = date_format
        self._ensure_db_directory()

    def _ensure_db_directory(self) -> None:
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def run(self, csv_file: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the full cleaning pipeline.

        Args:
            csv_file: Optional CSV to (re)load into the raw table first

        Returns:
            Per-stage counts

        Raises:
            PipelineError: if any stage fails; the failing stage is rolled back,
                           including its DROP/CREATE TABLE statements
        """
        t = self.tables
        summary: Dict[str, Any] = {}
        conn = self.connect()
        try:
            # Explicit BEGIN so each stage's DDL rolls back with its DML
            if csv_file:
                conn.execute("BEGIN")
                summary['ingested'] = ingest_csv(conn, csv_file, t['raw'])
                conn.commit()

            conn.execute("BEGIN")
            summary['staged'] = snapshot_table(conn, t['raw'], t['staging'])
            conn.commit()

            conn.execute("BEGIN")
            summary['duplicates_removed'] = remove_duplicates(conn, t['staging'], t['deduplicated'])
            conn.commit()

            conn.execute("BEGIN")
            summary.update(standardize(
                conn, t['deduplicated'], t['standardized'],
                industry_prefixes=self.industry_prefixes,
                country_prefixes=self.country_prefixes,
                date_format=self.date_format,
            ))
            conn.commit()

            conn.execute("BEGIN")
            summary.update(handle_nulls(conn, t['standardized'], t['populated']))
            conn.commit()

            conn.execute("BEGIN")
            summary['clean_records'] = finalize(conn, t['populated'], t['clean'])
            conn.commit()
        except (sqlite3.Error, pd.errors.DatabaseError, PipelineError, ValueError) as e:
            conn.rollback()
            logger.error(f"Pipeline aborted: {e}")
            if isinstance(e, PipelineError):
                raise
            raise PipelineError(f"Pipeline aborted: {e}") from e
        finally:
            conn.close()

        logger.info(f"Pipeline completed successfully: {summary}")
        return summary

    def get_table_stats(self) -> Dict[str, int]:
        """
        Record counts for each stage table; -1 for tables not created yet.
        """
        conn = self.connect()
        try:
            return {
                stage: count_rows(conn, table) if table_exists(conn, table) else -1
                for stage, table in self.tables.items()
            }
        finally:
            conn.close()

    def export(self, output_file: str, stage: str = 'clean') -> Optional[str]:
        """Export a stage table to Parquet or CSV."""
        if stage not in self.tables:
            raise PipelineError(f"Unknown stage '{stage}', expected one of {list(self.tables)}")
        return export_table(self.db_path, self.tables[stage], output_file)


def default_export_path(export_dir: str = config.EXPORT_DIR) -> str:
    ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return os.path.join(export_dir, f"{ts}_layoffs_clean.parquet")


def main(argv=None) -> int:
    """Command-line entry point for the pipeline."""
    parser = argparse.ArgumentParser(description='Clean the layoffs extract stored in SQLite')
    parser.add_argument('--csv', type=str, default=config.CSV_FILE,
                        help='CSV extract to load into the raw table before cleaning')
    parser.add_argument('--db', type=str, default=config.DB_PATH, help='Path to SQLite database')
    parser.add_argument('--export', type=str, default=None,
                        help='Export the cleaned table to this .parquet or .csv file')
    parser.add_argument('--export-only', action='store_true', help='Only export data without processing')
    parser.add_argument('--s3-bucket', type=str, default=config.S3_BUCKET,
                        help='Upload the exported file to this S3 bucket')
    parser.add_argument('--log-dir', type=str, default=config.LOG_DIR,
                        help='Directory for log files (empty string disables file logging)')
    args = parser.parse_args(argv)

    setup_logger("layoffs_pipeline", log_file="layoffs_pipeline.log",
                 level=config.LOG_LEVEL, log_dir=args.log_dir or None)

    pipeline = LayoffsPipeline(db_path=args.db)
    try:
        if not args.export_only:
            pipeline.run(csv_file=args.csv)

        export_file = None
        if args.export or args.export_only or args.s3_bucket:
            export_file = pipeline.export(args.export or default_export_path())
    except (PipelineError, ValueError) as e:
        logger.error(f"Run failed: {e}")
        return 1

    if export_file and args.s3_bucket:
        if not upload_file_to_s3(export_file, args.s3_bucket):
            return 1

    stats = pipeline.get_table_stats()
    print("\nTable statistics:")
    for stage, table in pipeline.tables.items():
        print(f"{table}: {stats[stage]} records")
    return 0


if __name__ == "__main__":
    sys.exit(main())
