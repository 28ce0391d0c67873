"""Example usage of the record linking system with CSV files."""

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from config.models import BM25Config, DatasetSelection, MatchConfig
from core import matcher
from core.sources import load_csv, resolve_sources, write_csv


def create_company_linker(
    worker_threads: int = 1,
    min_score: float = 0.0
) -> matcher.RecordLinker:
    """
    Create a linker configured for company name matching.

    Args:
        worker_threads: Number of threads used to score secondary rows
        min_score: Minimum BM25 score for a match to be accepted

    Returns:
        RecordLinker: Configured linker instance
    """
    return matcher.RecordLinker(
        bm25_config=BM25Config(k1=1.2, b=0.75),
        match_config=MatchConfig(
            min_score=min_score,
            min_overlap=1,
            worker_threads=worker_threads,
            preprocess_method='name'
        )
    )


def link_csv_files(
    base_file: Path,
    match_files: List[Path],
    output_file: Optional[Path] = None,
    worker_threads: int = 1
) -> pd.DataFrame:
    """
    Merge company records from several CSV files into a base file.

    Args:
        base_file: Path to base CSV file
        match_files: Paths to CSV files merged into the base file
        output_file: Optional path for output CSV file
        worker_threads: Number of threads used to score secondary rows

    Returns:
        pd.DataFrame: Merged rows, one per base row
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    paths = resolve_sources([base_file] + list(match_files))

    # Name counts double on the base side; city helps break ties
    datasets = [load_csv(paths[0], DatasetSelection({'naam': 2.0, 'plaats': 1.0}))]
    datasets.extend(
        load_csv(path, DatasetSelection.uniform(['company', 'city']))
        for path in paths[1:]
    )

    linker = create_company_linker(worker_threads=worker_threads, min_score=1.0)
    results = linker.link(datasets)

    logging.info("\nMatching Statistics:")
    for report in linker.reports:
        logging.info(
            f"{report.dataset}: {report.rows_matched}/{report.rows_processed} "
            f"matched ({report.match_rate * 100:.1f}%)"
        )

    if output_file:
        logging.info(f"\nSaving results to: {output_file}")
        write_csv(results, output_file)

    return results


if __name__ == "__main__":
    results_df = link_csv_files(
        base_file=Path('data/base_data.csv'),
        match_files=[Path('data/company_data.csv')],
        output_file=Path('data/output_data.csv'),
        worker_threads=4
    )
