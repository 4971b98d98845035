"""Near-zero-variance screening via frequency ratio and percent-unique heuristics."""

import math
from dataclasses import asdict, dataclass

import pandas as pd
from loguru import logger

from prep_tlbx.data.dataset import Dataset
from prep_tlbx.utils.validation import check_freq_cut, check_unique_cut

from .base_analyser import BaseAnalyser


@dataclass(frozen=True)
class VarianceReport:
    """Near-zero-variance statistics of one numeric column.

    Attributes:
        column: Column name.
        frequency_ratio: Count of the most frequent value over the count of the second
            most frequent; ``inf`` if only one distinct value is observed.
        percent_unique: ``100 * distinct / non-missing``.
        near_zero_variance: ``frequency_ratio > freq_cut and percent_unique < unique_cut``.
    """

    column: str
    frequency_ratio: float
    percent_unique: float
    near_zero_variance: bool


@dataclass(frozen=True)
class VarianceFilterResult:
    """Reports for all numeric columns plus the filtered dataset.

    Attributes:
        reports: One report per numeric column in dataset order.
        dataset: Input dataset without the flagged columns.
        freq_cut: Frequency-ratio threshold used.
        unique_cut: Percent-unique threshold used.
    """

    reports: list[VarianceReport]
    dataset: Dataset
    freq_cut: float
    unique_cut: float

    @property
    def flagged_columns(self) -> list[str]:
        return [r.column for r in self.reports if r.near_zero_variance]

    @property
    def table(self) -> pd.DataFrame:
        """Reports as a DataFrame indexed by column name."""
        return pd.DataFrame(
            [asdict(r) for r in self.reports],
            columns=["column", "frequency_ratio", "percent_unique", "near_zero_variance"],
        ).set_index("column")


def _column_report(series: pd.Series, freq_cut: float, unique_cut: float) -> VarianceReport:
    counts = series.value_counts(dropna=True)
    n_observed = int(counts.sum())
    if n_observed == 0:
        logger.warning("Column '{}' has no observed values; variance statistics undefined", series.name)
        return VarianceReport(str(series.name), math.nan, math.nan, near_zero_variance=False)

    # value_counts() sorts by descending frequency
    frequency_ratio = math.inf if len(counts) == 1 else float(counts.iloc[0] / counts.iloc[1])
    percent_unique = 100.0 * len(counts) / n_observed
    return VarianceReport(
        column=str(series.name),
        frequency_ratio=frequency_ratio,
        percent_unique=percent_unique,
        near_zero_variance=frequency_ratio > freq_cut and percent_unique < unique_cut,
    )


class VarianceFilter(BaseAnalyser):
    """Flag and drop numeric columns that are (nearly) constant.

    A column is *near-zero-variance* when its dominant value heavily outnumbers the
    runner-up **and** it has few distinct values relative to its length:

    - ``freq_cut``: minimum imbalance ratio (most / second most frequent count) to flag.
    - ``unique_cut``: maximum uniqueness percentage (distinct / observed x 100) to flag.

    Both thresholds must be given explicitly; a common starting point is
    ``freq_cut=95/5`` and ``unique_cut=10``. Missing cells are ignored in the counts;
    categorical columns are never analyzed and always kept.

    Example:
        >>> vf = VarianceFilter(freq_cut=19.0, unique_cut=10.0)
        >>> vf.analyze(ds)
        >>> reduced = vf.filter(ds)
        >>> vf.fit(ds).result().table
    """

    def __init__(self, freq_cut: float, unique_cut: float) -> None:
        """Initialize the filter.

        Raises:
            InvalidParameter: If ``freq_cut`` is not a finite number ``>= 1`` or
                ``unique_cut`` is not in ``(0, 100]``.
        """
        self.freq_cut = check_freq_cut(freq_cut)
        self.unique_cut = check_unique_cut(unique_cut)
        self._result: VarianceFilterResult | None = None

    def analyze(self, dataset: Dataset) -> list[VarianceReport]:
        """Compute a VarianceReport for every numeric column, in dataset order."""
        return [_column_report(dataset.df[col], self.freq_cut, self.unique_cut) for col in dataset.numeric_cols]

    def filter(self, dataset: Dataset) -> Dataset:
        """Return a new Dataset without the near-zero-variance columns."""
        return self._apply(dataset, self.analyze(dataset))

    def _apply(self, dataset: Dataset, reports: list[VarianceReport]) -> Dataset:
        flagged = [r.column for r in reports if r.near_zero_variance]
        if flagged:
            logger.info("Dropping {} near-zero-variance columns: {}", len(flagged), flagged)
        return dataset.drop(flagged)

    def fit(self, dataset: Dataset) -> "VarianceFilter":
        reports = self.analyze(dataset)
        self._result = VarianceFilterResult(
            reports=reports,
            dataset=self._apply(dataset, reports),
            freq_cut=self.freq_cut,
            unique_cut=self.unique_cut,
        )
        return self

    def result(self) -> VarianceFilterResult:
        if self._result is None:
            raise ValueError("Must call fit() before result()")
        return self._result
