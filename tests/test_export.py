"""
Unit tests for table export and S3 upload.
"""
import sqlite3
from unittest import mock

import pandas as pd
import pytest
from botocore.exceptions import ClientError

from conftest import layoff
from layoffs_pipeline.export import export_table, upload_file_to_s3
from layoffs_pipeline.schema import create_layoffs_table


@pytest.fixture
def db_file(tmp_path):
    """SQLite file with a small cleaned table and an empty one."""
    path = str(tmp_path / "layoffs.db")
    conn = sqlite3.connect(path)
    cursor = conn.cursor()
    create_layoffs_table(cursor, 'layoffs_clean', date_type="DATE")
    create_layoffs_table(cursor, 'empty_table', date_type="DATE")
    conn.executemany(
        "INSERT INTO layoffs_clean VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [layoff(event_date='2023-03-05'), layoff(company='Beta', event_date=None)],
    )
    conn.commit()
    conn.close()
    return path


def test_export_parquet(db_file, tmp_path):
    output = str(tmp_path / "out" / "clean.parquet")
    assert export_table(db_file, 'layoffs_clean', output) == output

    df = pd.read_parquet(output)
    assert df['company'].tolist() == ['Acme', 'Beta']
    assert df['event_date'].iloc[0] == pd.Timestamp(2023, 3, 5)
    assert pd.isna(df['event_date'].iloc[1])


def test_export_csv(db_file, tmp_path):
    output = str(tmp_path / "clean.csv")
    export_table(db_file, 'layoffs_clean', output)

    df = pd.read_csv(output)
    assert list(df.columns)[:3] == ['company', 'location', 'industry']
    assert df['event_date'].iloc[0] == '2023-03-05'


def test_export_empty_table_returns_none(db_file, tmp_path, caplog):
    output = str(tmp_path / "empty.parquet")
    assert export_table(db_file, 'empty_table', output) is None
    assert 'No data to export' in caplog.text


def test_export_rejects_unknown_format(db_file, tmp_path):
    with pytest.raises(ValueError):
        export_table(db_file, 'layoffs_clean', str(tmp_path / "clean.xlsx"))


class TestUploadFileToS3:

    def test_upload_uses_basename_as_default_key(self, tmp_path):
        local = tmp_path / "clean.parquet"
        local.write_bytes(b"data")
        with mock.patch('layoffs_pipeline.export.boto3.client') as client_factory:
            assert upload_file_to_s3(str(local), 'my-bucket', region='eu-central-1') is True

        client_factory.assert_called_once_with('s3', region_name='eu-central-1')
        client_factory.return_value.upload_file.assert_called_once_with(str(local), 'my-bucket', 'clean.parquet')

    def test_client_error_reported_as_failure(self, tmp_path, caplog):
        local = tmp_path / "clean.parquet"
        local.write_bytes(b"data")
        error = ClientError({'Error': {'Code': 'AccessDenied', 'Message': 'denied'}}, 'PutObject')
        with mock.patch('layoffs_pipeline.export.boto3.client') as client_factory:
            client_factory.return_value.upload_file.side_effect = error
            assert upload_file_to_s3(str(local), 'my-bucket', 'key.parquet') is False

        assert 'Failed to upload' in caplog.text
