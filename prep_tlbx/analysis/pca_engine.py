"""Principal component analysis on complete numeric columns."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

import numpy as np
import pandas as pd
from loguru import logger

from prep_tlbx.data.columns import ColumnRef
from prep_tlbx.data.dataset import Dataset
from prep_tlbx.errors import DegenerateColumn, InvalidParameter, MissingValuesPresent
from prep_tlbx.utils.validation import check_flag


@dataclass(frozen=True)
class PrincipalComponent:
    """One principal axis.

    Attributes:
        name: ``PC1``, ``PC2``, ...
        loadings: Unit-length eigenvector, indexed by input column. Sign is fixed so
            the entry with the largest magnitude is positive.
        eigenvalue: Variance of the data along this axis.
        explained_variance_ratio: ``eigenvalue / sum(all eigenvalues)``.
    """

    name: str
    loadings: pd.Series
    eigenvalue: float
    explained_variance_ratio: float


@dataclass(frozen=True)
class PcaResult:
    """PCA outputs packaged for reporting and downstream projection.

    Attributes:
        components: Components ordered by descending eigenvalue (all of them; no cutoff).
        scores: Observation coordinates w.r.t. the components; columns ``PC1..PCk``,
            same index as the input data.
        center: Value subtracted from each column (zeros when not centering).
        scale: Value each centered column was divided by (ones when not scaling).
        columns: Input columns in the order used for the loading vectors.
    """

    components: list[PrincipalComponent]
    scores: pd.DataFrame
    center: pd.Series
    scale: pd.Series
    columns: list[str]

    @property
    def n_components(self) -> int:
        return len(self.components)

    @property
    def eigenvalues(self) -> np.ndarray:
        return np.array([pc.eigenvalue for pc in self.components])

    @property
    def explained_variance_ratio(self) -> np.ndarray:
        return np.array([pc.explained_variance_ratio for pc in self.components])

    @property
    def loadings(self) -> pd.DataFrame:
        """Loading matrix; index = input columns, columns = ``PC1..PCk``."""
        return pd.DataFrame({pc.name: pc.loadings for pc in self.components}, index=self.columns)

    @property
    def explained_variance(self) -> pd.DataFrame:
        """DataFrame with columns ``PC``, ``variance``, ``explained_ratio``, ``cumulative_ratio``."""
        ratios = self.explained_variance_ratio
        return pd.DataFrame(
            {
                "PC": [pc.name for pc in self.components],
                "variance": self.eigenvalues,
                "explained_ratio": ratios,
                "cumulative_ratio": ratios.cumsum(),
            },
        )

    def n_components_for(self, min_var_explained: float) -> int:
        """Smallest number of leading components whose cumulative ratio reaches ``min_var_explained``.

        A caller-side aid for choosing a cutoff; the fit itself keeps every component.

        Raises:
            InvalidParameter: If ``min_var_explained`` is not in ``(0, 1]``.
        """
        if not 0 < min_var_explained <= 1:
            raise InvalidParameter("min_var_explained", min_var_explained, "must be in (0, 1]")
        cumulative = self.explained_variance_ratio.cumsum()
        # tolerate rounding so that 1.0 is reachable
        reached = np.flatnonzero(cumulative >= min_var_explained - 1e-12)
        return int(reached[0]) + 1 if len(reached) else self.n_components

    def top_loading_features(
        self,
        n_components: int = 3,
        method: Literal["max", "l2"] = "l2",
    ) -> pd.Index:
        """Input columns ordered by how strongly the leading ``n_components`` load on them.

        ``"l2"`` combines a column's loadings as a Euclidean norm, ``"max"`` keeps the
        largest absolute loading. Ties keep the input column order.
        """
        if method not in ("max", "l2"):
            raise InvalidParameter("method", method, "must be one of {'max', 'l2'}")
        leading = self.components[: max(1, n_components)]
        strengths = np.abs(np.column_stack([pc.loadings.reindex(self.columns).to_numpy() for pc in leading]))
        scores = strengths.max(axis=1) if method == "max" else np.sqrt((strengths**2).sum(axis=1))
        order = np.argsort(-scores, kind="stable")
        return pd.Index(self.columns)[order]


def _complete_block(dataset: Dataset, columns: list[str]) -> pd.DataFrame:
    block = dataset.df.loc[:, columns]
    missing = block.isna().sum()
    if missing.any():
        raise MissingValuesPresent({col: int(n) for col, n in missing.items() if n})
    return block.astype(float)


class PcaEngine:
    r"""Eigendecomposition-based PCA with optional centering and scaling.

    The selected columns form :math:`X \in \mathbb{R}^{n \times p}`. Each column is
    centered by its mean and, if ``scale``, divided by its sample standard deviation,
    giving :math:`Z`. The components are the eigenvectors of
    :math:`Z^\top Z / (n - 1)` (the covariance matrix, or the correlation matrix when
    scaled), ordered by descending eigenvalue; scores are :math:`Z V`.

    The engine never chooses how many components to keep. Use
    :attr:`PcaResult.explained_variance` (elbow) or :meth:`PcaResult.n_components_for`
    (cumulative threshold) to decide.

    Input must be complete: impute first (see :mod:`prep_tlbx.analysis.imputers`).

    Example:
        >>> result = PcaEngine(center=True, scale=True).fit(ds, columns=["a", "b", "c"])
        >>> result.explained_variance
        >>> PcaEngine.project(result, new_ds)
    """

    def __init__(self, center: bool = True, scale: bool = True) -> None:
        self.center = check_flag("center", center)
        self.scale = check_flag("scale", scale)

    def _select_columns(self, dataset: Dataset, columns: Iterable[ColumnRef] | None) -> list[str]:
        cols = dataset.numeric_cols if columns is None else list(dict.fromkeys(dataset.resolve_many(columns)))
        if not cols:
            raise InvalidParameter("columns", columns, "no numeric columns selected for PCA")
        non_numeric = [col for col in cols if not dataset.is_numeric(col)]
        if non_numeric:
            raise InvalidParameter("columns", non_numeric, "PCA needs numeric columns")
        return cols

    def fit(self, dataset: Dataset, columns: Iterable[ColumnRef] | None = None) -> PcaResult:
        """Compute all principal components of the selected columns.

        Args:
            dataset: Source data; the selected columns must be complete.
            columns: Columns to analyze (default: all numeric columns).

        Returns:
            PcaResult with every component and the scores of ``dataset``.

        Raises:
            InvalidColumn: If a column does not exist.
            InvalidParameter: If a column is not numeric, none are selected, or there are fewer than 2 rows.
            MissingValuesPresent: If any selected cell is missing.
            DegenerateColumn: If ``scale`` is set and a column is constant, or the data has no variance at all.
        """
        cols = self._select_columns(dataset, columns)
        block = _complete_block(dataset, cols)
        n_rows = len(block)
        if n_rows < 2:
            raise InvalidParameter("dataset", n_rows, "PCA needs at least 2 rows")

        center = block.mean() if self.center else pd.Series(0.0, index=cols)
        if self.scale:
            std = block.std()
            degenerate = [col for col in cols if block[col].nunique() < 2 or not std[col] > 0]
            if degenerate:
                raise DegenerateColumn(degenerate)
            scale = std
        else:
            scale = pd.Series(1.0, index=cols)

        z = block.sub(center).div(scale).to_numpy()
        cross = z.T @ z / (n_rows - 1)
        eigvals, eigvecs = np.linalg.eigh(cross)

        # eigh returns ascending eigenvalues; stable sort keeps a deterministic tie order
        order = np.argsort(-eigvals, kind="stable")
        eigvals = np.clip(eigvals[order], 0.0, None)
        eigvecs = eigvecs[:, order]
        flip = eigvecs[np.abs(eigvecs).argmax(axis=0), np.arange(eigvecs.shape[1])] < 0
        eigvecs[:, flip] *= -1

        total = eigvals.sum()
        if total <= 0:
            raise DegenerateColumn(cols)
        ratios = eigvals / total

        names = [f"PC{i + 1}" for i in range(len(eigvals))]
        components = [
            PrincipalComponent(
                name=name,
                loadings=pd.Series(eigvecs[:, i], index=cols, name=name),
                eigenvalue=float(eigvals[i]),
                explained_variance_ratio=float(ratios[i]),
            )
            for i, name in enumerate(names)
        ]
        scores = pd.DataFrame(z @ eigvecs, columns=names, index=block.index)

        logger.debug(
            "PCA on {} columns x {} rows (center={}, scale={}): PC1 explains {:.1%}",
            len(cols),
            n_rows,
            self.center,
            self.scale,
            ratios[0],
        )
        return PcaResult(
            components=components,
            scores=scores,
            center=center.rename("center"),
            scale=scale.rename("scale"),
            columns=cols,
        )

    @staticmethod
    def project(result: PcaResult, dataset: Dataset) -> pd.DataFrame:
        """Center/scale ``dataset`` with the fitted parameters and multiply by the loading matrix.

        Raises:
            InvalidColumn: If a fitted column is absent from ``dataset``.
            MissingValuesPresent: If any of those cells is missing.
        """
        cols = dataset.resolve_many(result.columns)
        block = _complete_block(dataset, cols)
        z = block.sub(result.center).div(result.scale).to_numpy()
        return pd.DataFrame(z @ result.loadings.to_numpy(), columns=result.loadings.columns, index=block.index)

    @staticmethod
    def inverse_transform(result: PcaResult, scores: pd.DataFrame) -> pd.DataFrame:
        """Map scores on the leading ``k`` components back to the original units.

        With all components the reconstruction is exact up to floating-point error.

        Raises:
            InvalidParameter: If ``scores`` has more columns than fitted components.
        """
        k = scores.shape[1]
        if k > result.n_components:
            raise InvalidParameter("scores", k, f"at most {result.n_components} components were fitted")
        loadings = result.loadings.to_numpy()[:, :k]
        z = scores.to_numpy() @ loadings.T
        restored = z * result.scale.to_numpy() + result.center.to_numpy()
        return pd.DataFrame(restored, columns=result.columns, index=scores.index)


__all__ = ["PcaEngine", "PcaResult", "PrincipalComponent"]
