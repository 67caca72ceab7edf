#!/usr/bin/env python3
"""
Layoffs Data Generator

Generates a synthetic, deliberately dirty layoffs extract shaped like the
public layoffs dataset: exact duplicate rows, padded company names, Crypto
industry variants, "United States." countries, NULL cells, malformed dates
and missing industries that other rows of the same company can fill in.
"""
import os
from datetime import date, timedelta
from typing import Dict, List

import numpy as np
import pandas as pd

DEFAULT_OUTPUT_DIR = os.path.join("data", "sample")
DEFAULT_NUM_COMPANIES = 60
DEFAULT_NUM_RECORDS = 500
DEFAULT_SEED = 42

CSV_COLUMNS = [
    'company', 'location', 'industry', 'total_laid_off', 'percentage_laid_off',
    'date', 'stage', 'country', 'funds_raised_millions',
]

INDUSTRIES = ['Retail', 'Finance', 'Healthcare', 'Transportation', 'Food', 'Media', 'Crypto']
CRYPTO_VARIANTS = ['Crypto', 'Crypto Currency', 'CryptoCurrency']
STAGES = ['Seed', 'Series A', 'Series B', 'Series C', 'Post-IPO', 'Acquired', 'Unknown']
LOCATIONS = {
    'SF Bay Area': 'United States',
    'New York City': 'United States',
    'Seattle': 'United States',
    'London': 'United Kingdom',
    'Berlin': 'Germany',
    'Bengaluru': 'India',
    'Toronto': 'Canada',
}
MALFORMED_DATES = ['2023-03-05', 'unknown', '13/45/2022']
START_DATE = date(2020, 3, 1)
DATE_RANGE_DAYS = 1100


def _format_date(d: date) -> str:
    return f"{d.month}/{d.day}/{d.year}"


def generate_companies(num_companies: int, rng: np.random.Generator) -> List[Dict[str, str]]:
    """Each company gets one location and one industry used for all its rows."""
    location_names = list(LOCATIONS)
    companies = []
    for i in range(num_companies):
        location = location_names[rng.integers(len(location_names))]
        companies.append({
            'company': f"Company{i:03d}",
            'location': location,
            'industry': INDUSTRIES[rng.integers(len(INDUSTRIES))],
            'country': LOCATIONS[location],
            'stage': STAGES[rng.integers(len(STAGES))],
        })
    return companies


def generate_layoff_records(num_records: int = DEFAULT_NUM_RECORDS,
                            num_companies: int = DEFAULT_NUM_COMPANIES,
                            seed: int = DEFAULT_SEED) -> List[Dict[str, str]]:
    """
    Generate dirty layoff records as CSV-ready strings.

    Roughly 5% of the output are exact copies of other rows.
    """
    rng = np.random.default_rng(seed)
    companies = generate_companies(num_companies, rng)

    records = []
    num_unique = max(1, int(num_records * 0.95))
    for _ in range(num_unique):
        company = companies[rng.integers(len(companies))]
        name = company['company']
        if rng.random() < 0.05:
            name = f" {name}  "

        industry = company['industry']
        if industry == 'Crypto':
            industry = CRYPTO_VARIANTS[rng.integers(len(CRYPTO_VARIANTS))]
        if rng.random() < 0.08:
            industry = 'NULL'

        country = company['country']
        if country == 'United States' and rng.random() < 0.1:
            country = 'United States.'

        event_date = _format_date(START_DATE + timedelta(days=int(rng.integers(DATE_RANGE_DAYS))))
        if rng.random() < 0.02:
            event_date = MALFORMED_DATES[rng.integers(len(MALFORMED_DATES))]

        total = str(int(rng.integers(5, 5000))) if rng.random() < 0.7 else 'NULL'
        percentage = f"{rng.uniform(0.01, 1.0):.2f}" if rng.random() < 0.6 else 'NULL'
        funds = str(int(rng.integers(1, 2000))) if rng.random() < 0.85 else 'NULL'

        records.append({
            'company': name,
            'location': company['location'],
            'industry': industry,
            'total_laid_off': total,
            'percentage_laid_off': percentage,
            'date': event_date,
            'stage': company['stage'],
            'country': country,
            'funds_raised_millions': funds,
        })

    num_duplicates = num_records - num_unique
    for idx in rng.integers(len(records), size=num_duplicates):
        records.append(dict(records[idx]))
    rng.shuffle(records)
    return records


def write_layoffs_csv(output_file: str, num_records: int = DEFAULT_NUM_RECORDS,
                      seed: int = DEFAULT_SEED) -> str:
    output_dir = os.path.dirname(output_file)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    df = pd.DataFrame(generate_layoff_records(num_records, seed=seed), columns=CSV_COLUMNS)
    df.to_csv(output_file, index=False)
    return output_file


if __name__ == "__main__":
    output_file = os.path.join(DEFAULT_OUTPUT_DIR, "layoffs.csv")
    write_layoffs_csv(output_file)
    print(f"Generated CSV file at: {output_file}")
