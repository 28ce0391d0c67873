"""Main record linking system implementation."""

from typing import Dict, List, Optional, Sequence
from concurrent.futures import ThreadPoolExecutor
import logging
import time
import pandas as pd
import xxhash

from core.accumulator import MergeAccumulator
from core.analyzer import BM25Scorer
from core.dataset import Dataset
from core.errors import InsufficientSourcesError
from core.index import BM25Index
from core.preprocessor import BasePreprocessor, registry
from config.models import (
    BM25Config,
    DatasetSelection,
    LinkReport,
    MatchConfig,
    MatchResult
)
from config.rules import ColumnNamingRule, PascalPrefixRule

class RecordLinker:
    """
    Merges secondary datasets into a primary dataset by BM25 top-1 matching.
    """

    def __init__(
        self,
        bm25_config: Optional[BM25Config] = None,
        match_config: Optional[MatchConfig] = None,
        naming_rule: Optional[ColumnNamingRule] = None
    ):
        """
        Initialize the record linker.

        Args:
            bm25_config: BM25 parameters for the primary index
            match_config: Thresholds, placeholders and threading for linking
            naming_rule: Rule naming the columns contributed by secondary datasets
        """
        self.bm25_config = bm25_config or BM25Config()
        self.match_config = match_config or MatchConfig()
        self.naming_rule = naming_rule or PascalPrefixRule()
        self.preprocessor: BasePreprocessor = registry.create(
            self.match_config.preprocess_method
        )
        self.scorer = BM25Scorer()
        self.reports: List[LinkReport] = []
        self.logger = logging.getLogger(__name__)

    def _resolve_selection(self, dataset: Dataset) -> DatasetSelection:
        """Drop selected fields the dataset does not have."""
        unknown = [name for name in dataset.selection.names if name not in dataset.headers]
        for name in unknown:
            self.logger.warning(
                f"Field '{name}' not found in {dataset.name}. Ignoring it."
            )

        selection = DatasetSelection({
            name: weight for name, weight in dataset.selection.fields.items()
            if name not in unknown
        })
        if not selection:
            self.logger.warning(
                f"No fields selected for {dataset.name}; its rows will not match."
            )
        return selection

    def output_columns(self, dataset: Dataset) -> List[str]:
        """Columns a secondary dataset contributes to the output."""
        return self.naming_rule.column_names(
            dataset.name,
            dataset.headers,
            self.match_config.certainty_column
        )

    def build_index(self, dataset: Dataset) -> BM25Index:
        """
        Index every row of the primary dataset and consolidate.

        Args:
            dataset: Primary dataset; its selection gives the field weights

        Returns:
            BM25Index: Consolidated index, one document per row in file order
        """
        index = BM25Index(
            field_weights=self._resolve_selection(dataset).fields,
            config=self.bm25_config,
            preprocessor=self.preprocessor
        )
        index.start()
        for record in dataset.records():
            index.add_document(record)
        index.consolidate()

        if not len(index):
            self.logger.warning(
                f"{dataset.name} has no rows; output will be empty."
            )
        return index

    def _build_query(self, record: Dict[str, str], selection: DatasetSelection) -> List[str]:
        """Union of the token sequences of the selected fields."""
        tokens: List[str] = []
        for name in selection.names:
            tokens.extend(self.preprocessor.tokenize(record.get(name)))
        return tokens

    @staticmethod
    def _query_key(tokens: List[str]) -> int:
        """Hash of the token sequence; each token is length-prefixed."""
        digest = xxhash.xxh3_128()
        for token in tokens:
            data = token.encode('utf-8')
            digest.update(len(data).to_bytes(8, 'little'))
            digest.update(data)
        return digest.intdigest()

    def _match_record(
        self,
        index: BM25Index,
        record: Dict[str, str],
        selection: DatasetSelection,
        cache: Dict[int, Optional[MatchResult]]
    ) -> Optional[MatchResult]:
        tokens = self._build_query(record, selection)
        if not tokens:
            return None

        key = self._query_key(tokens)
        if key not in cache:
            cache[key] = self.scorer.best_match(
                index,
                tokens,
                min_score=self.match_config.min_score,
                min_overlap=self.match_config.min_overlap
            )
        return cache[key]

    def match_dataset(
        self,
        index: BM25Index,
        accumulator: MergeAccumulator,
        dataset: Dataset
    ) -> LinkReport:
        """
        Match each row of a secondary dataset and write it onto its best primary row.

        Scoring may run in a thread pool since the index is read-only;
        write-back is applied in file order so later rows win on conflicts.
        """
        start_time = time.time()
        report = LinkReport(dataset=dataset.name)
        selection = self._resolve_selection(dataset)
        columns = self.output_columns(dataset)
        cache: Dict[int, Optional[MatchResult]] = {}

        def score(record):
            return record, self._match_record(index, record, selection, cache)

        records = dataset.records()
        if self.match_config.worker_threads > 1:
            with ThreadPoolExecutor(max_workers=self.match_config.worker_threads) as executor:
                results = list(executor.map(score, records))
        else:
            results = map(score, records)

        for record, match in results:
            report.rows_processed += 1
            if match is None:
                continue

            values = [record[header] for header in dataset.headers] + [match.score]
            overwritten = accumulator.write(
                match.doc_id,
                dataset.name,
                dict(zip(columns, values))
            )
            report.rows_matched += 1
            if overwritten:
                report.rows_overwritten += 1

        report.elapsed = time.time() - start_time
        self.logger.info(
            f"{dataset.name}: {report.rows_matched} of {report.rows_processed} rows "
            f"matched ({report.match_rate * 100:.1f}%), "
            f"{report.rows_overwritten} overwrote an earlier match"
        )
        return report

    def link(self, datasets: Sequence[Dataset]) -> pd.DataFrame:
        """
        Merge every secondary dataset into the first (primary) dataset.

        Args:
            datasets: Primary dataset followed by one or more secondary datasets

        Returns:
            pd.DataFrame: One row per primary row, in primary order

        Raises:
            InsufficientSourcesError: If fewer than two datasets are given
        """
        if len(datasets) < 2:
            raise InsufficientSourcesError(len(datasets))

        start_time = time.time()
        primary, secondaries = datasets[0], list(datasets[1:])

        self.logger.info("Loading data...")
        index = self.build_index(primary)

        accumulator = MergeAccumulator(
            primary.headers,
            absent_value=self.match_config.absent_value
        )
        for doc_id in range(len(index)):
            accumulator.add_row(index.document(doc_id))

        # Reserve every secondary column before matching so the schema is uniform
        for dataset in secondaries:
            accumulator.reserve(dataset.name, self.output_columns(dataset))

        self.reports = []
        for dataset in secondaries:
            self.logger.info(f"Merging {dataset.name} ...")
            self.reports.append(self.match_dataset(index, accumulator, dataset))

        self.logger.info(
            f"Linking completed in {time.time() - start_time:.2f} seconds"
        )
        return accumulator.to_dataframe()
