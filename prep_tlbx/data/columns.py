"""Column kinds, references and metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


ColumnRef = str | int
"""Reference to a dataset column: its name (``str`` or ``StrEnum`` member) or its position."""


class ColumnKind(StrEnum):
    """Declared type of a dataset column."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


@dataclass(frozen=True)
class ColumnMetadata:
    """Metadata for a dataset column.

    Attributes:
        name: Column name as used in the underlying DataFrame.
        kind: Numeric or categorical.
        pretty_name: Human-readable label for reports.
    """

    name: str
    kind: ColumnKind
    pretty_name: str

    @property
    def is_numeric(self) -> bool:
        return self.kind is ColumnKind.NUMERIC


def default_pretty_name(column_name: str) -> str:
    """Capitalize and replace underscores, e.g. ``"gdp_per_capita" -> "Gdp Per Capita"``."""
    return column_name.replace("_", " ").title()


__all__ = ["ColumnKind", "ColumnMetadata", "ColumnRef", "default_pretty_name"]
