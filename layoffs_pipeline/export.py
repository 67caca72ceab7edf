import logging
import os
import sqlite3
from typing import Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from layoffs_pipeline.config import AWS_REGION
from layoffs_pipeline.finalize import load_table

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('.parquet', '.csv')


def export_table(db_file: str, table: str, output_file: str) -> Optional[str]:
    """
    Export a table to Parquet or CSV, picked by the output file's suffix.

    Args:
        db_file: Path to the SQLite database file
        table: Table to export
        output_file: Destination path ending in .parquet or .csv

    Returns:
        The output path, or None if the table was empty
    """
    suffix = os.path.splitext(output_file)[1].lower()
    if suffix not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported export format '{suffix}', expected one of {SUPPORTED_FORMATS}")

    conn = sqlite3.connect(db_file)
    try:
        df = load_table(conn, table)
    finally:
        conn.close()

    if df.empty:
        logger.warning(f"Table '{table}' in {db_file} is empty. No data to export.")
        return None

    output_dir = os.path.dirname(output_file)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    if suffix == '.parquet':
        df.to_parquet(output_file, index=False, engine='pyarrow')
    else:
        df.to_csv(output_file, index=False)
    logger.info(f"Exported {len(df)} records from table '{table}' to {output_file}")
    return output_file


def upload_file_to_s3(local_file: str, bucket: str, s3_key: Optional[str] = None,
                      region: str = AWS_REGION) -> bool:
    """
    Upload a local file to S3. Credentials come from the usual boto3 chain
    (environment, .env via config, shared profile).

    Returns:
        True on success, False if the upload failed
    """
    s3_key = s3_key or os.path.basename(local_file)
    s3_client = boto3.client('s3', region_name=region)
    try:
        s3_client.upload_file(local_file, bucket, s3_key)
    except (ClientError, BotoCoreError, S3UploadFailedError) as e:
        logger.error(f"Failed to upload {local_file} to s3://{bucket}/{s3_key}: {e}")
        return False
    logger.info(f"Uploaded {local_file} to s3://{bucket}/{s3_key}")
    return True
