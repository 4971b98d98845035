"""Missing-value profiling: counts, proportions and per-column / per-row summaries."""

from dataclasses import asdict, dataclass

import pandas as pd
from loguru import logger

from prep_tlbx.data.columns import ColumnRef
from prep_tlbx.data.dataset import Dataset

from .base_analyser import BaseAnalyser


@dataclass(frozen=True)
class ColumnSummary:
    """Missingness of one column."""

    column: str
    n_missing: int
    prop_missing: float
    n_complete: int
    prop_complete: float


@dataclass(frozen=True)
class CaseSummary:
    """Missingness of one row (case) across all columns."""

    row: int
    n_missing: int
    prop_missing: float


def _mask(dataset: Dataset, column: ColumnRef | None) -> pd.DataFrame | pd.Series:
    if column is None:
        return dataset.missing_mask
    return dataset.df[dataset.resolve(column)].isna()


def _n_cells(dataset: Dataset, column: ColumnRef | None) -> int:
    if column is None:
        return dataset.n_rows * dataset.n_cols
    dataset.resolve(column)
    return dataset.n_rows


def count_missing(dataset: Dataset, column: ColumnRef | None = None) -> int:
    """Number of missing cells in the whole dataset, or in one column.

    Raises:
        InvalidColumn: If ``column`` is given and does not exist.
    """
    mask = _mask(dataset, column)
    return int(mask.to_numpy().sum())


def count_complete(dataset: Dataset, column: ColumnRef | None = None) -> int:
    """Number of observed (non-missing) cells; ``count_complete + count_missing`` is the cell count."""
    return _n_cells(dataset, column) - count_missing(dataset, column)


def proportion_missing(dataset: Dataset, column: ColumnRef | None = None) -> float:
    """Missing cells divided by total cells (or by column length); ``0.0`` for an empty selection."""
    total = _n_cells(dataset, column)
    return count_missing(dataset, column) / total if total else 0.0


def proportion_complete(dataset: Dataset, column: ColumnRef | None = None) -> float:
    total = _n_cells(dataset, column)
    return count_complete(dataset, column) / total if total else 0.0


def summarize_columns(dataset: Dataset) -> list[ColumnSummary]:
    """One summary per column, worst offenders first.

    Sorted by descending missing count; ties keep the dataset's column order.
    """
    n_rows = dataset.n_rows
    counts = dataset.missing_mask.sum()
    summaries = [
        ColumnSummary(
            column=col,
            n_missing=int(counts[col]),
            prop_missing=float(counts[col] / n_rows) if n_rows else 0.0,
            n_complete=n_rows - int(counts[col]),
            prop_complete=float((n_rows - counts[col]) / n_rows) if n_rows else 0.0,
        )
        for col in dataset.columns
    ]
    # sorted() is stable, so equal counts stay in column order
    return sorted(summaries, key=lambda s: -s.n_missing)


def summarize_cases(dataset: Dataset) -> list[CaseSummary]:
    """One summary per row, in row-index order."""
    n_cols = dataset.n_cols
    counts = dataset.missing_mask.sum(axis=1).to_numpy()
    return [
        CaseSummary(row=row, n_missing=int(n), prop_missing=float(n) / n_cols if n_cols else 0.0)
        for row, n in enumerate(counts)
    ]


@dataclass(frozen=True)
class MissingProfileResult:
    """Missingness profile of a dataset snapshot.

    Attributes:
        column_summaries: Per-column summaries, most missing first.
        case_summaries: Per-row summaries in row order.
        n_missing: Total missing cells.
        n_cells: Total cells (rows x columns).
    """

    column_summaries: list[ColumnSummary]
    case_summaries: list[CaseSummary]
    n_missing: int
    n_cells: int

    @property
    def n_complete(self) -> int:
        return self.n_cells - self.n_missing

    @property
    def prop_missing(self) -> float:
        return self.n_missing / self.n_cells if self.n_cells else 0.0

    @property
    def columns_with_missing(self) -> list[str]:
        return [s.column for s in self.column_summaries if s.n_missing > 0]

    @property
    def complete_cases(self) -> list[int]:
        """Row indices without any missing cell."""
        return [c.row for c in self.case_summaries if c.n_missing == 0]

    def columns_frame(self) -> pd.DataFrame:
        """Column summaries as a DataFrame (one row per column)."""
        return pd.DataFrame(
            [asdict(s) for s in self.column_summaries],
            columns=["column", "n_missing", "prop_missing", "n_complete", "prop_complete"],
        )

    def cases_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(c) for c in self.case_summaries], columns=["row", "n_missing", "prop_missing"])


class MissingProfiler(BaseAnalyser):
    """Read-only missingness profile of a Dataset.

    Example:
        >>> profile = MissingProfiler(ds).fit().result()
        >>> profile.columns_frame().head()
        >>> profile.prop_missing
    """

    def __init__(self, dataset: Dataset) -> None:
        self._dataset = dataset
        self._result: MissingProfileResult | None = None

    def fit(self) -> "MissingProfiler":
        ds = self._dataset
        self._result = MissingProfileResult(
            column_summaries=summarize_columns(ds),
            case_summaries=summarize_cases(ds),
            n_missing=count_missing(ds),
            n_cells=ds.n_rows * ds.n_cols,
        )
        logger.debug(
            "Profiled {} rows x {} cols: {} missing cells ({:.1%})",
            ds.n_rows,
            ds.n_cols,
            self._result.n_missing,
            self._result.prop_missing,
        )
        return self

    def result(self) -> MissingProfileResult:
        if self._result is None:
            raise ValueError("Must call fit() before result()")
        return self._result
