import os

from dotenv import load_dotenv

load_dotenv()  # load environment variables from .env file

# Paths
DB_PATH = os.environ.get("LAYOFFS_DB_PATH", "database/layoffs.db")
CSV_FILE = os.environ.get("LAYOFFS_CSV")
EXPORT_DIR = os.environ.get("LAYOFFS_EXPORT_DIR", "data/export")
LOG_DIR = os.environ.get("LAYOFFS_LOG_DIR", "logs")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# AWS
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
S3_BUCKET = os.environ.get("LAYOFFS_S3_BUCKET")

# Text dates in the raw extract look like 3/5/2023
DATE_FORMAT = os.environ.get("LAYOFFS_DATE_FORMAT", "%m/%d/%Y")

# Stage tables, in pipeline order
TABLES = {
    'raw': 'layoffs',
    'staging': 'layoffs_staging',
    'deduplicated': 'layoffs_staging2',
    'standardized': 'layoffs_standardized',
    'populated': 'layoffs_populated',
    'clean': 'layoffs_clean',
}

# Industry values starting with a key collapse to its canonical label
INDUSTRY_PREFIXES = {
    'Crypto': 'Crypto',
}

# Country values starting with one of these lose trailing periods
COUNTRY_PREFIXES = ('United States',)
