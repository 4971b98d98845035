"""Analysis modules: profiling, imputation, variance filtering and PCA."""

from .base_analyser import BaseAnalyser
from .imputers import (
    ImputationMethod,
    ImputationResult,
    Imputer,
    KnnImputer,
    MeanImputer,
    NeighborSet,
    make_imputer,
)
from .missing_profiler import (
    CaseSummary,
    ColumnSummary,
    MissingProfiler,
    MissingProfileResult,
    count_complete,
    count_missing,
    proportion_complete,
    proportion_missing,
    summarize_cases,
    summarize_columns,
)
from .pca_engine import PcaEngine, PcaResult, PrincipalComponent
from .pipeline import PipelineResult, PreprocessingConfig, PreprocessingPipeline
from .variance_filter import VarianceFilter, VarianceFilterResult, VarianceReport


__all__ = [
    "BaseAnalyser",
    "CaseSummary",
    "ColumnSummary",
    "ImputationMethod",
    "ImputationResult",
    "Imputer",
    "KnnImputer",
    "MeanImputer",
    "MissingProfileResult",
    "MissingProfiler",
    "NeighborSet",
    "PcaEngine",
    "PcaResult",
    "PipelineResult",
    "PreprocessingConfig",
    "PreprocessingPipeline",
    "PrincipalComponent",
    "VarianceFilter",
    "VarianceFilterResult",
    "VarianceReport",
    "count_complete",
    "count_missing",
    "make_imputer",
    "proportion_complete",
    "proportion_missing",
    "summarize_cases",
    "summarize_columns",
]
