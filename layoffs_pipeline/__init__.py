"""
Layoffs Data Cleaning Package

Modules:
    staging.py      - Loads the raw CSV extract and snapshots it into a working copy.
    dedup.py        - Ranks identical rows and removes the duplicates.
    standardize.py  - Trims, canonicalizes and converts text dates to DATE.
    nulls.py        - Backfills missing industries and drops uninformative rows.
    finalize.py     - Drops the helper rank column into the cleaned table.
    export.py       - Exports tables to Parquet/CSV and uploads them to S3.
    run_pipeline.py - Orchestrates the full cleaning run.

Version: 1.0.0
"""

__version__ = "1.0.0"
