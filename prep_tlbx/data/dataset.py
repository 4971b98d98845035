"""Immutable tabular container passed between preprocessing stages."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Integral, Real

import pandas as pd

from prep_tlbx.errors import InvalidColumn, InvalidParameter

from .columns import ColumnKind, ColumnMetadata, ColumnRef, default_pretty_name


def _infer_kind(series: pd.Series) -> ColumnKind:
    if pd.api.types.is_bool_dtype(series):
        return ColumnKind.CATEGORICAL
    if pd.api.types.is_numeric_dtype(series):
        return ColumnKind.NUMERIC
    # object columns built from python lists, e.g. [1, None, 4]
    observed = series.dropna()
    if len(observed) and all(isinstance(v, Real) and not isinstance(v, bool) for v in observed):
        return ColumnKind.NUMERIC
    return ColumnKind.CATEGORICAL


@dataclass(frozen=True, eq=False)
class Dataset:
    """Immutable snapshot of tabular data and per-column metadata.

    Rows are addressed by position (``0..n_rows-1``); that position is the unit of a
    "case" in missingness profiling and neighbor search. Missing cells are whatever
    :func:`pandas.isna` recognises (``NaN``, ``None``, ``pd.NA``) and are never coerced.

    Every transform in the toolbox returns a new ``Dataset``; the wrapped frame is
    never modified in place. Build instances with :meth:`from_frame` or :meth:`from_rows`
    rather than the raw constructor.

    Example:
        >>> ds = Dataset.from_rows([[1, None], [2, 4], [None, 6], [4, 8]], columns=["a", "b"])
        >>> ds.numeric_cols
        ['a', 'b']
        >>> ds.resolve(1)
        'b'
    """

    df: pd.DataFrame
    """Underlying data; columns in reproducible order, positional index."""
    kinds: Mapping[str, ColumnKind]
    """Declared kind for every column in ``df``."""
    pretty_by_col: Mapping[str, str] = field(default_factory=dict)
    """Mapping from column names to display-friendly labels."""

    def __post_init__(self) -> None:
        unknown = [col for col in self.df.columns if col not in self.kinds]
        if unknown:
            raise InvalidParameter("kinds", dict(self.kinds), f"no kind declared for columns {unknown}")

    # ------------------------------------------------------------------ constructors
    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        *,
        categorical: Iterable[str] | None = None,
        kinds: Mapping[str, ColumnKind | str] | None = None,
        pretty_by_col: Mapping[str, str] | None = None,
    ) -> "Dataset":
        """Wrap a DataFrame, declaring or inferring column kinds.

        Args:
            df: Source data. It is copied; column names are converted to ``str`` and the
                index is reset to positions.
            categorical: Columns to force to :attr:`ColumnKind.CATEGORICAL`.
            kinds: Explicit kind per column; overrides inference (and ``categorical``).
            pretty_by_col: Optional display labels.

        Returns:
            New Dataset.

        Raises:
            InvalidColumn: If ``categorical`` or ``kinds`` name unknown columns.
            InvalidParameter: If column names are duplicated or a kind is not recognised.
        """
        frame = df.copy()
        frame.columns = [str(col) for col in frame.columns]
        if frame.columns.duplicated().any():
            dupes = frame.columns[frame.columns.duplicated()].tolist()
            raise InvalidParameter("columns", dupes, "column names must be unique")
        frame = frame.reset_index(drop=True)

        resolved: dict[str, ColumnKind] = {col: _infer_kind(frame[col]) for col in frame.columns}
        for col in categorical or ():
            if col not in resolved:
                raise InvalidColumn(col, frame.columns)
            resolved[col] = ColumnKind.CATEGORICAL
        for col, kind in (kinds or {}).items():
            if col not in resolved:
                raise InvalidColumn(col, frame.columns)
            try:
                resolved[col] = ColumnKind(kind)
            except ValueError:
                raise InvalidParameter("kinds", kind, f"expected one of {[k.value for k in ColumnKind]}") from None

        for col, kind in resolved.items():
            if kind is not ColumnKind.NUMERIC:
                continue
            try:
                frame[col] = pd.to_numeric(frame[col]).astype(float)
            except (TypeError, ValueError):
                raise InvalidParameter(col, frame[col].dtype, "declared numeric but holds non-numeric values") from None

        pretty = {col: default_pretty_name(col) for col in frame.columns}
        pretty.update({str(k): v for k, v in (pretty_by_col or {}).items() if str(k) in pretty})
        return cls(df=frame, kinds=resolved, pretty_by_col=pretty)

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[object]],
        columns: Sequence[str],
        *,
        categorical: Iterable[str] | None = None,
    ) -> "Dataset":
        """Build a Dataset from a list of rows; ``None`` cells are missing.

        Raises:
            InvalidParameter: If a row length differs from ``len(columns)``.
        """
        for i, row in enumerate(rows):
            if len(row) != len(columns):
                raise InvalidParameter("rows", i, f"row has {len(row)} cells, expected {len(columns)}")
        return cls.from_frame(pd.DataFrame(list(rows), columns=list(columns)), categorical=categorical)

    # ------------------------------------------------------------------ column access
    @property
    def columns(self) -> list[str]:
        return self.df.columns.tolist()

    @property
    def numeric_cols(self) -> list[str]:
        """Numeric column names in dataset order."""
        return [col for col in self.columns if self.kinds[col] is ColumnKind.NUMERIC]

    @property
    def categorical_cols(self) -> list[str]:
        return [col for col in self.columns if self.kinds[col] is ColumnKind.CATEGORICAL]

    def resolve(self, ref: ColumnRef) -> str:
        """Resolve a column reference (name or position) to a column name.

        Raises:
            InvalidColumn: If no such column exists.
        """
        if isinstance(ref, Integral) and not isinstance(ref, bool):
            pos = int(ref)
            if 0 <= pos < self.n_cols:
                return self.columns[pos]
            raise InvalidColumn(ref, self.columns)
        if isinstance(ref, str) and ref in self.kinds:
            return str(ref)
        raise InvalidColumn(ref, self.columns)

    def resolve_many(self, refs: Iterable[ColumnRef]) -> list[str]:
        return [self.resolve(ref) for ref in refs]

    def column(self, ref: ColumnRef) -> pd.Series:
        """Return a copy of one column."""
        return self.df[self.resolve(ref)].copy()

    def is_numeric(self, ref: ColumnRef) -> bool:
        return self.kinds[self.resolve(ref)] is ColumnKind.NUMERIC

    def metadata(self, ref: ColumnRef) -> ColumnMetadata:
        name = self.resolve(ref)
        return ColumnMetadata(name=name, kind=self.kinds[name], pretty_name=self.pretty_by_col.get(name, name))

    def get_pretty_name(self, ref: ColumnRef) -> str:
        return self.metadata(ref).pretty_name

    # ------------------------------------------------------------------ shape / missingness
    @property
    def n_rows(self) -> int:
        return len(self.df)

    @property
    def n_cols(self) -> int:
        return self.df.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.n_rows, self.n_cols

    @property
    def missing_mask(self) -> pd.DataFrame:
        """Boolean frame, ``True`` where a cell is missing."""
        return self.df.isna()

    # ------------------------------------------------------------------ derived datasets
    def replace(self, df: pd.DataFrame) -> "Dataset":
        """Return a new Dataset over ``df`` keeping kinds and labels of surviving columns.

        Columns of ``df`` that are new to this dataset get inferred kinds.
        """
        kinds = {col: self.kinds[col] for col in df.columns if col in self.kinds}
        pretty = {col: self.pretty_by_col[col] for col in df.columns if col in self.pretty_by_col}
        return Dataset.from_frame(df, kinds=kinds, pretty_by_col=pretty)

    def drop(self, columns: Iterable[ColumnRef]) -> "Dataset":
        """Return a new Dataset without the given columns; rows are unchanged."""
        names = self.resolve_many(columns)
        return self.replace(self.df.drop(columns=names))

    def select(self, columns: Iterable[ColumnRef]) -> "Dataset":
        """Return a new Dataset restricted to the given columns, in the given order."""
        return self.replace(self.df.loc[:, self.resolve_many(columns)])

    def to_frame(self) -> pd.DataFrame:
        """Return a copy of the underlying DataFrame."""
        return self.df.copy()

    def __len__(self) -> int:
        return self.n_rows
