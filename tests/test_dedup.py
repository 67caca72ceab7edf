"""
Unit tests for duplicate detection and removal.
"""
import pytest

from conftest import fetch_all, layoff
from layoffs_pipeline.dedup import find_duplicates, remove_duplicates
from layoffs_pipeline.errors import StageError
from layoffs_pipeline.schema import column_types


class TestFindDuplicates:

    def test_reports_only_redundant_rows(self, conn, make_table):
        make_table('layoffs_staging', [layoff(), layoff(), layoff(), layoff(company="Beta")])
        duplicates = find_duplicates(conn, 'layoffs_staging')
        assert len(duplicates) == 2
        assert sorted(duplicates['row_num'].tolist()) == [2, 3]
        assert set(duplicates['company']) == {'Acme'}

    def test_nulls_compare_equal(self, conn, make_table):
        row = layoff(industry=None, total_laid_off=None, funds_raised_millions=None)
        make_table('layoffs_staging', [row, row])
        assert len(find_duplicates(conn, 'layoffs_staging')) == 1

    def test_single_column_difference_is_not_duplicate(self, conn, make_table):
        make_table('layoffs_staging', [layoff(), layoff(funds_raised_millions=51)])
        assert find_duplicates(conn, 'layoffs_staging').empty

    def test_missing_table_raises(self, conn):
        with pytest.raises(StageError):
            find_duplicates(conn, 'layoffs_staging')


class TestRemoveDuplicates:

    def test_identical_rows_collapse_to_one(self, conn, make_table):
        make_table('layoffs_staging', [layoff(), layoff(), layoff(company="Beta")])

        removed = remove_duplicates(conn, 'layoffs_staging', 'layoffs_staging2')

        assert removed == 1
        rows = fetch_all(conn, 'layoffs_staging2')
        assert len(rows) == 2
        assert {row[0] for row in rows} == {'Acme', 'Beta'}
        assert all(row[-1] == 1 for row in rows)

    def test_target_keeps_rank_column_and_source_untouched(self, conn, make_table):
        make_table('layoffs_staging', [layoff(), layoff()])
        remove_duplicates(conn, 'layoffs_staging', 'layoffs_staging2')

        assert 'row_num' in column_types(conn, 'layoffs_staging2')
        assert len(fetch_all(conn, 'layoffs_staging')) == 2

    def test_no_residual_duplicates(self, conn, make_table):
        row = layoff(percentage_laid_off=None)
        make_table('layoffs_staging', [row, row, layoff(), layoff(), layoff(location="NYC")])
        remove_duplicates(conn, 'layoffs_staging', 'layoffs_staging2')

        assert find_duplicates(conn, 'layoffs_staging2').empty
        assert len(fetch_all(conn, 'layoffs_staging2')) == 3

    def test_rerun_replaces_target(self, conn, make_table):
        make_table('layoffs_staging', [layoff(), layoff()])
        remove_duplicates(conn, 'layoffs_staging', 'layoffs_staging2')
        assert remove_duplicates(conn, 'layoffs_staging', 'layoffs_staging2') == 1
        assert len(fetch_all(conn, 'layoffs_staging2')) == 1
