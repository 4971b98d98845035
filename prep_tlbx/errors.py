"""Error taxonomy and non-fatal issue records shared by all preprocessing stages.

Fatal problems (bad input structure, violated preconditions) are raised as
subclasses of :class:`PrepError`. Data-quality shortfalls that still admit a
reasonable answer are *not* raised; they are collected as frozen issue records
and attached to the result of the stage that produced them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass


class PrepError(ValueError):
    """Base class for all fatal preprocessing errors."""


class InvalidColumn(PrepError, KeyError):
    """A referenced column does not exist in the dataset."""

    def __init__(self, ref: object, available: Iterable[str] = ()) -> None:
        self.ref = ref
        self.available = list(available)
        msg = f"Unknown column {ref!r}."
        if self.available:
            msg += f" Available: {self.available}"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class InvalidParameter(PrepError):
    """A caller-supplied parameter is out of range or of the wrong type."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid {name}={value!r}: {reason}")


class MissingValuesPresent(PrepError):
    """Complete data was required but the selected columns contain missing cells."""

    def __init__(self, missing_by_col: dict[str, int]) -> None:
        self.missing_by_col = dict(missing_by_col)
        detail = ", ".join(f"{col} ({n})" for col, n in self.missing_by_col.items())
        super().__init__(f"Missing values present in: {detail}. Impute or drop them first.")


class DegenerateColumn(PrepError):
    """A column has zero (or undefined) standard deviation and cannot be scaled."""

    def __init__(self, columns: Sequence[str]) -> None:
        self.columns = list(columns)
        super().__init__(f"Cannot scale columns with zero standard deviation: {self.columns}")


@dataclass(frozen=True)
class UndefinedMean:
    """An entirely missing numeric column that the mean imputer left untouched."""

    column: str

    @property
    def message(self) -> str:
        return f"Column '{self.column}' has no observed values; mean is undefined, column left as is."


@dataclass(frozen=True)
class InsufficientDonors:
    """Fewer usable donor rows than requested neighbors for one missing cell.

    Attributes:
        column: Target column being imputed.
        row: Positional row index of the missing cell.
        requested: Number of neighbors asked for (``k``).
        available: Number of usable donors actually found; ``0`` means the cell stayed missing.
    """

    column: str
    row: int
    requested: int
    available: int

    @property
    def message(self) -> str:
        if self.available == 0:
            return f"No usable donors for row {self.row} in '{self.column}'; cell left missing."
        return (
            f"Only {self.available} of {self.requested} donors available for row {self.row} "
            f"in '{self.column}'; imputed from all available donors."
        )


Issue = UndefinedMean | InsufficientDonors


__all__ = [
    "DegenerateColumn",
    "InsufficientDonors",
    "InvalidColumn",
    "InvalidParameter",
    "Issue",
    "MissingValuesPresent",
    "PrepError",
    "UndefinedMean",
]
