"""Data module: the Dataset container and column metadata."""

from .columns import ColumnKind, ColumnMetadata, ColumnRef
from .dataset import Dataset


__all__ = ["ColumnKind", "ColumnMetadata", "ColumnRef", "Dataset"]
