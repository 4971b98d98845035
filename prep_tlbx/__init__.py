"""Tabular preprocessing toolbox: missingness profiling, imputation, variance filtering and PCA."""

from loguru import logger

from .analysis import (
    ImputationMethod,
    KnnImputer,
    MeanImputer,
    MissingProfiler,
    PcaEngine,
    PreprocessingConfig,
    PreprocessingPipeline,
    VarianceFilter,
    make_imputer,
)
from .data import ColumnKind, Dataset
from .utils import setup_logging


# library default: silent until setup_logging() is called
logger.disable("prep_tlbx")


__all__ = [
    "ColumnKind",
    "Dataset",
    "ImputationMethod",
    "KnnImputer",
    "MeanImputer",
    "MissingProfiler",
    "PcaEngine",
    "PreprocessingConfig",
    "PreprocessingPipeline",
    "VarianceFilter",
    "make_imputer",
    "setup_logging",
]
