"""End-to-end preprocessing: profile, impute, filter, PCA."""

from collections.abc import Mapping
from dataclasses import dataclass, fields

from loguru import logger

from prep_tlbx.data.dataset import Dataset
from prep_tlbx.errors import InvalidParameter, Issue
from prep_tlbx.utils.validation import check_flag, check_freq_cut, check_k, check_unique_cut

from .imputers import ImputationMethod, ImputationResult, make_imputer
from .missing_profiler import MissingProfileResult, MissingProfiler
from .pca_engine import PcaEngine, PcaResult
from .variance_filter import VarianceFilter, VarianceFilterResult


@dataclass(frozen=True)
class PreprocessingConfig:
    """Caller-supplied settings for :class:`PreprocessingPipeline`.

    A stage runs only when it is configured:

    - imputation: set ``imputation``; ``knn`` additionally needs ``k`` and ``distance_weighted``
      (and accepts ``n_jobs``). These three are rejected for any other method.
    - variance filter: set both ``freq_cut`` and ``unique_cut``.
    - PCA: set ``run_pca=True`` (``pca_columns`` defaults to all remaining numeric columns).

    Example:
        >>> cfg = PreprocessingConfig.from_mapping(
        ...     {"imputation": "knn", "k": 5, "distance_weighted": True, "freq_cut": 19, "unique_cut": 10, "run_pca": True}
        ... )
    """

    imputation: ImputationMethod | None = None
    k: int | None = None
    distance_weighted: bool | None = None
    n_jobs: int | None = None
    freq_cut: float | None = None
    unique_cut: float | None = None
    run_pca: bool = False
    pca_columns: tuple[str, ...] | None = None
    center: bool = True
    scale: bool = True

    def __post_init__(self) -> None:
        if self.imputation is not None:
            try:
                object.__setattr__(self, "imputation", ImputationMethod(self.imputation))
            except ValueError:
                raise InvalidParameter(
                    "imputation", self.imputation, f"expected one of {[m.value for m in ImputationMethod]}"
                ) from None
        if self.imputation is ImputationMethod.KNN:
            if self.k is None or self.distance_weighted is None:
                raise InvalidParameter("k", self.k, "knn imputation needs both k and distance_weighted")
            check_k(self.k)
            check_flag("distance_weighted", self.distance_weighted)
        else:
            knn_only = {"k": self.k, "distance_weighted": self.distance_weighted, "n_jobs": self.n_jobs}
            for name, value in knn_only.items():
                if value is not None:
                    raise InvalidParameter(name, value, f"only applies to knn imputation, got {self.imputation}")

        if (self.freq_cut is None) != (self.unique_cut is None):
            raise InvalidParameter("freq_cut", self.freq_cut, "freq_cut and unique_cut must be given together")
        if self.freq_cut is not None:
            check_freq_cut(self.freq_cut)
            check_unique_cut(self.unique_cut)

        check_flag("run_pca", self.run_pca)
        check_flag("center", self.center)
        check_flag("scale", self.scale)
        if self.pca_columns is not None:
            object.__setattr__(self, "pca_columns", tuple(self.pca_columns))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "PreprocessingConfig":
        """Build a config from a plain dict (e.g. parsed YAML/JSON).

        Raises:
            InvalidParameter: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise InvalidParameter("config", unknown, f"unknown keys; expected a subset of {sorted(known)}")
        return cls(**mapping)  # type: ignore[arg-type]

    @property
    def filters_variance(self) -> bool:
        return self.freq_cut is not None


@dataclass(frozen=True)
class PipelineResult:
    """Outputs of every stage that ran.

    Attributes:
        profile: Missingness profile of the *input* dataset.
        imputation: Imputation outcome, if configured.
        variance: Variance-filter outcome, if configured.
        pca: PCA of the final dataset, if configured.
        dataset: Dataset after imputation and filtering.
        issues: Non-fatal issues collected along the way.
    """

    profile: MissingProfileResult
    dataset: Dataset
    imputation: ImputationResult | None = None
    variance: VarianceFilterResult | None = None
    pca: PcaResult | None = None
    issues: tuple[Issue, ...] = ()


class PreprocessingPipeline:
    """Run the configured stages in order; each stage receives the previous stage's Dataset.

    Example:
        >>> result = PreprocessingPipeline(cfg).run(ds)
        >>> result.profile.columns_frame()
        >>> result.pca.explained_variance
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def run(self, dataset: Dataset) -> PipelineResult:
        cfg = self.config
        profile = MissingProfiler(dataset).fit().result()
        current = dataset

        imputation = None
        if cfg.imputation is ImputationMethod.MEAN:
            imputation = make_imputer(cfg.imputation).impute(current)
        elif cfg.imputation is ImputationMethod.KNN:
            imputation = make_imputer(
                cfg.imputation,
                k=cfg.k,
                distance_weighted=cfg.distance_weighted,
                n_jobs=cfg.n_jobs,
            ).impute(current)
        if imputation is not None:
            current = imputation.dataset

        variance = None
        if cfg.filters_variance:
            variance = VarianceFilter(freq_cut=cfg.freq_cut, unique_cut=cfg.unique_cut).fit(current).result()
            current = variance.dataset

        pca = None
        if cfg.run_pca:
            columns = cfg.pca_columns
            if columns is not None and variance is not None:
                dropped = set(variance.flagged_columns)
                skipped = [col for col in columns if col in dropped]
                if skipped:
                    logger.info("PCA skips columns removed by the variance filter: {}", skipped)
                columns = tuple(col for col in columns if col not in dropped)
            pca = PcaEngine(center=cfg.center, scale=cfg.scale).fit(current, columns)

        issues = imputation.issues if imputation is not None else ()
        logger.info(
            "Pipeline done: {} missing cells in, {} imputed, {} columns dropped, {} PCs",
            profile.n_missing,
            imputation.n_imputed if imputation is not None else 0,
            len(variance.flagged_columns) if variance is not None else 0,
            pca.n_components if pca is not None else 0,
        )
        return PipelineResult(
            profile=profile,
            dataset=current,
            imputation=imputation,
            variance=variance,
            pca=pca,
            issues=issues,
        )


__all__ = ["PipelineResult", "PreprocessingConfig", "PreprocessingPipeline"]
