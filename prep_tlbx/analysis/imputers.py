"""Missing-value imputation strategies sharing one ``impute(dataset)`` interface."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from numbers import Integral
from typing import ClassVar

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from loguru import logger
from sklearn.impute import SimpleImputer

from prep_tlbx.data.columns import ColumnRef
from prep_tlbx.data.dataset import Dataset
from prep_tlbx.errors import InsufficientDonors, InvalidParameter, Issue, UndefinedMean
from prep_tlbx.utils.validation import check_flag, check_k


DISTANCE_EPSILON = 1e-8
"""Added to neighbor distances before inverting them, so duplicate rows get a finite weight."""


class ImputationMethod(StrEnum):
    """Closed set of imputation strategies."""

    MEAN = "mean"
    KNN = "knn"


@dataclass(frozen=True)
class ImputationResult:
    """Outcome of an imputation run.

    Attributes:
        dataset: New Dataset with the same shape as the input; only missing cells changed.
        imputed_mask: Boolean frame, ``True`` where a missing cell received a value.
        method: Strategy that produced the result.
        issues: Non-fatal data-quality reports (undefined means, donor shortfalls).
    """

    dataset: Dataset
    imputed_mask: pd.DataFrame
    method: ImputationMethod
    issues: tuple[Issue, ...] = ()

    @property
    def n_imputed(self) -> int:
        return int(self.imputed_mask.to_numpy().sum())

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues]


@dataclass(frozen=True)
class NeighborSet:
    """Donor rows selected for one target cell, nearest first.

    Attributes:
        row: Row of the target cell.
        column: Target column.
        donors: Donor row indices (at most ``k``), ordered by distance then row index.
        distances: Distance of each donor to ``row`` over the comparable features.
        weights: Aggregation weight of each donor; sums to 1 when donors exist.
    """

    row: int
    column: str
    donors: tuple[int, ...]
    distances: tuple[float, ...]
    weights: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.donors)


class Imputer(ABC):
    """Common interface of all imputation strategies."""

    method: ClassVar[ImputationMethod]

    @abstractmethod
    def impute(self, dataset: Dataset) -> ImputationResult:
        """Return a new, imputed Dataset together with any data-quality issues."""
        ...


class MeanImputer(Imputer):
    """Fill each missing numeric cell with the mean of the column's observed values.

    Uses :class:`sklearn.impute.SimpleImputer` (``strategy="mean"``) on the numeric
    columns. Entirely missing columns have no mean; they are left untouched and
    reported as :class:`~prep_tlbx.errors.UndefinedMean`. Categorical columns pass
    through unchanged.

    Warning:
        Mean imputation keeps each column's mean but shrinks its variance and
        weakens correlations with other columns. Prefer :class:`KnnImputer` when
        downstream steps (e.g. PCA) depend on the covariance structure.
    """

    method = ImputationMethod.MEAN

    def impute(self, dataset: Dataset) -> ImputationResult:
        frame = dataset.to_frame()
        mask = dataset.missing_mask
        numeric = dataset.numeric_cols

        undefined = [col for col in numeric if mask[col].all() and dataset.n_rows > 0]
        targets = [col for col in numeric if mask[col].any() and col not in undefined]
        if targets:
            frame[targets] = SimpleImputer(strategy="mean").fit_transform(frame[targets])

        issues = tuple(UndefinedMean(col) for col in undefined)
        for issue in issues:
            logger.warning(issue.message)
        logger.debug("Mean-imputed {} columns", len(targets))

        return ImputationResult(
            dataset=dataset.replace(frame),
            imputed_mask=mask & frame.notna(),
            method=self.method,
            issues=issues,
        )


def _nearest_donors(
    target: np.ndarray,
    features: np.ndarray,
    row: int,
    column: str,
    k: int,
    distance_weighted: bool,
) -> NeighborSet:
    """Rank donors for ``(row, column)`` by mean-squared-difference distance.

    Comparison is pairwise-complete: a feature counts only where both the target row
    and the donor observe it. Donors sharing no observed feature with the target row
    are not usable.
    """
    donors = np.flatnonzero(~np.isnan(target))
    donors = donors[donors != row]

    diff = features[donors] - features[row]
    comparable = ~np.isnan(diff)
    n_comparable = comparable.sum(axis=1)
    sq_sum = np.where(comparable, diff, 0.0) ** 2
    sq_sum = sq_sum.sum(axis=1)

    usable = n_comparable > 0
    donors = donors[usable]
    distances = np.sqrt(sq_sum[usable] / n_comparable[usable])

    # primary key distance, secondary key row index
    order = np.lexsort((donors, distances))[:k]
    donors, distances = donors[order], distances[order]

    if len(donors) == 0:
        weights = np.empty(0)
    elif distance_weighted:
        weights = 1.0 / (distances + DISTANCE_EPSILON)
        weights = weights / weights.sum()
    else:
        weights = np.full(len(donors), 1.0 / len(donors))

    return NeighborSet(
        row=int(row),
        column=column,
        donors=tuple(int(d) for d in donors),
        distances=tuple(float(d) for d in distances),
        weights=tuple(float(w) for w in weights),
    )


def _impute_column(
    target: np.ndarray,
    features: np.ndarray,
    column: str,
    k: int,
    distance_weighted: bool,
) -> tuple[np.ndarray, list[InsufficientDonors]]:
    filled = target.copy()
    issues: list[InsufficientDonors] = []
    for row in np.flatnonzero(np.isnan(target)):
        neighbors = _nearest_donors(target, features, row, column, k, distance_weighted)
        if len(neighbors) < k:
            issues.append(InsufficientDonors(column=column, row=int(row), requested=k, available=len(neighbors)))
        if len(neighbors) == 0:
            continue
        donor_values = target[list(neighbors.donors)]
        if distance_weighted:
            filled[row] = float(np.dot(neighbors.weights, donor_values))
        else:
            filled[row] = float(donor_values.mean())
    return filled, issues


class KnnImputer(Imputer):
    r"""Fill missing numeric cells from the ``k`` nearest donor rows.

    For a missing cell :math:`(r, c)` the donors are all other rows that observe
    column ``c``. Distance to each donor is computed over the remaining numeric
    columns, pairwise-complete, as the root of the mean squared difference

    .. math:: d(r, j) = \sqrt{\tfrac{1}{|F_{rj}|} \sum_{f \in F_{rj}} (x_{rf} - x_{jf})^2}

    where :math:`F_{rj}` are the features observed in both rows. Averaging over
    :math:`|F_{rj}|` keeps distances comparable between pairs with different
    overlaps. The ``k`` closest donors (ties: lower row index first) are aggregated
    by their plain mean, or, with ``distance_weighted=True``, by the weighted mean
    with :math:`w_j \propto 1 / (d(r, j) + \varepsilon)`.

    Distances are always computed on the original data, so the result does not
    depend on the order in which columns are processed.

    When fewer than ``k`` donors are usable the cell is imputed from all of them
    and an :class:`~prep_tlbx.errors.InsufficientDonors` issue is attached to the
    result; with no usable donor the cell stays missing.

    Example:
        >>> result = KnnImputer(k=5, distance_weighted=True).impute(ds)
        >>> result.dataset.df.isna().sum()
        >>> result.warnings
    """

    method = ImputationMethod.KNN

    def __init__(
        self,
        k: int,
        distance_weighted: bool,
        target_columns: Iterable[ColumnRef] | None = None,
        n_jobs: int | None = None,
    ) -> None:
        """Initialize the KNN imputer.

        Args:
            k: Number of neighbors, ``>= 1``.
            distance_weighted: Weight donors by inverse distance instead of a plain mean.
            target_columns: Columns to impute; defaults to every numeric column with missing values.
            n_jobs: Impute target columns in parallel with joblib (``-1`` = all cores).
                ``None`` runs sequentially in-process.

        Raises:
            InvalidParameter: If ``k`` is not a positive integer or ``distance_weighted`` is not a bool.
        """
        self.k = check_k(k)
        self.distance_weighted = check_flag("distance_weighted", distance_weighted)
        self.target_columns = list(target_columns) if target_columns is not None else None
        self.n_jobs = n_jobs

    def _resolve_targets(self, dataset: Dataset) -> list[str]:
        if self.target_columns is None:
            mask = dataset.missing_mask
            return [col for col in dataset.numeric_cols if mask[col].any()]
        targets = dataset.resolve_many(self.target_columns)
        for col in targets:
            if not dataset.is_numeric(col):
                raise InvalidParameter("target_columns", col, "KNN imputation needs numeric columns")
        return list(dict.fromkeys(targets))

    @staticmethod
    def _arrays(dataset: Dataset, column: str) -> tuple[np.ndarray, np.ndarray]:
        features = [col for col in dataset.numeric_cols if col != column]
        target = dataset.df[column].to_numpy(dtype=float)
        return target, dataset.df.loc[:, features].to_numpy(dtype=float)

    def neighbors(self, dataset: Dataset, row: int, column: ColumnRef) -> NeighborSet:
        """Return the NeighborSet used for cell ``(row, column)``.

        Raises:
            InvalidColumn: If ``column`` does not exist.
            InvalidParameter: If ``column`` is not numeric or ``row`` is out of range.
        """
        col = dataset.resolve(column)
        if not dataset.is_numeric(col):
            raise InvalidParameter("column", col, "KNN imputation needs numeric columns")
        if isinstance(row, bool) or not isinstance(row, Integral) or not 0 <= row < dataset.n_rows:
            raise InvalidParameter("row", row, f"must be a row index in [0, {dataset.n_rows})")
        target, features = self._arrays(dataset, col)
        return _nearest_donors(target, features, int(row), col, self.k, self.distance_weighted)

    def impute(self, dataset: Dataset) -> ImputationResult:
        targets = self._resolve_targets(dataset)
        tasks = [(col, *self._arrays(dataset, col)) for col in targets]

        if self.n_jobs is None:
            outputs = [_impute_column(t, f, col, self.k, self.distance_weighted) for col, t, f in tasks]
        else:
            outputs = Parallel(n_jobs=self.n_jobs)(
                delayed(_impute_column)(t, f, col, self.k, self.distance_weighted) for col, t, f in tasks
            )

        frame = dataset.to_frame()
        issues: list[Issue] = []
        for col, (filled, col_issues) in zip(targets, outputs, strict=True):
            frame[col] = filled
            issues.extend(col_issues)
            if col_issues:
                logger.warning(
                    "{}: {} cells had fewer than k={} usable donors ({} left missing)",
                    col,
                    len(col_issues),
                    self.k,
                    sum(issue.available == 0 for issue in col_issues),
                )

        mask = dataset.missing_mask
        result = ImputationResult(
            dataset=dataset.replace(frame),
            imputed_mask=mask & frame.notna(),
            method=self.method,
            issues=tuple(issues),
        )
        logger.debug("KNN-imputed {} cells in {} columns (k={})", result.n_imputed, len(targets), self.k)
        return result


_IMPUTERS: dict[ImputationMethod, type[Imputer]] = {
    ImputationMethod.MEAN: MeanImputer,
    ImputationMethod.KNN: KnnImputer,
}


def make_imputer(method: ImputationMethod | str, **params: object) -> Imputer:
    """Instantiate the imputer for ``method`` with its parameters.

    Example:
        >>> make_imputer("knn", k=3, distance_weighted=False).impute(ds)

    Raises:
        InvalidParameter: If ``method`` is not a known strategy.
    """
    try:
        key = ImputationMethod(method)
    except ValueError:
        raise InvalidParameter("method", method, f"expected one of {[m.value for m in ImputationMethod]}") from None
    return _IMPUTERS[key](**params)


__all__ = [
    "DISTANCE_EPSILON",
    "ImputationMethod",
    "ImputationResult",
    "Imputer",
    "KnnImputer",
    "MeanImputer",
    "NeighborSet",
    "make_imputer",
]
