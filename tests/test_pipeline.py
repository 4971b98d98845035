"""Tests for the end-to-end preprocessing pipeline and its configuration."""

import io

import numpy as np
import pandas as pd
import pytest

from prep_tlbx import setup_logging
from prep_tlbx.analysis.imputers import ImputationMethod
from prep_tlbx.analysis.pipeline import PipelineResult, PreprocessingConfig, PreprocessingPipeline
from prep_tlbx.data import Dataset
from prep_tlbx.errors import InsufficientDonors, InvalidParameter


@pytest.fixture
def pipeline_dataset() -> Dataset:
    rng = np.random.default_rng(7)
    base = rng.normal(size=(30, 3))
    df = pd.DataFrame(base, columns=["a", "b", "c"])
    df["b"] = df["a"] * 2 + 0.1 * df["b"]
    df["flat"] = [1.0] * 29 + [2.0]
    df["kind"] = ["x", "y", "z"] * 10
    df.loc[[2, 11, 25], "a"] = np.nan
    df.loc[[5, 17], "c"] = np.nan
    return Dataset.from_frame(df)


class TestPreprocessingConfig:
    """Validation of caller-supplied settings."""

    def test_empty_config_runs_profile_only(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.imputation is None
        assert not cfg.filters_variance
        assert not cfg.run_pca

    def test_method_string_is_normalised(self) -> None:
        cfg = PreprocessingConfig(imputation="mean")  # type: ignore[arg-type]
        assert cfg.imputation is ImputationMethod.MEAN

    def test_unknown_method(self) -> None:
        with pytest.raises(InvalidParameter, match=r"imputation"):
            PreprocessingConfig(imputation="median")  # type: ignore[arg-type]

    def test_knn_requires_k_and_weighting(self) -> None:
        with pytest.raises(InvalidParameter, match=r"k and distance_weighted"):
            PreprocessingConfig(imputation=ImputationMethod.KNN, k=3)

    def test_cuts_given_together(self) -> None:
        with pytest.raises(InvalidParameter, match=r"together"):
            PreprocessingConfig(freq_cut=19.0)

    @pytest.mark.parametrize(
        ("params", "field"),
        [
            ({"imputation": "knn", "k": 0, "distance_weighted": True}, "k"),
            ({"imputation": "knn", "k": 2.5, "distance_weighted": True}, "k"),
            ({"imputation": "knn", "k": 3, "distance_weighted": "yes"}, "distance_weighted"),
            ({"freq_cut": -5.0, "unique_cut": 10.0}, "freq_cut"),
            ({"freq_cut": 19.0, "unique_cut": 500.0}, "unique_cut"),
            ({"run_pca": "true"}, "run_pca"),
            ({"scale": 1}, "scale"),
        ],
    )
    def test_values_checked_on_construction(self, params: dict, field: str) -> None:
        with pytest.raises(InvalidParameter, match=rf"Invalid {field}="):
            PreprocessingConfig(**params)

    def test_from_mapping_checks_values(self) -> None:
        with pytest.raises(InvalidParameter, match=r"Invalid k="):
            PreprocessingConfig.from_mapping({"imputation": "knn", "k": -1, "distance_weighted": False})

    @pytest.mark.parametrize(
        "params",
        [
            {"imputation": "mean", "k": 3},
            {"imputation": "mean", "distance_weighted": True},
            {"imputation": "mean", "n_jobs": 2},
            {"k": 3, "distance_weighted": True},
        ],
    )
    def test_knn_settings_rejected_for_other_methods(self, params: dict) -> None:
        with pytest.raises(InvalidParameter, match=r"only applies to knn imputation"):
            PreprocessingConfig(**params)

    def test_from_mapping(self) -> None:
        cfg = PreprocessingConfig.from_mapping(
            {"imputation": "knn", "k": 3, "distance_weighted": False, "pca_columns": ["a", "b"], "run_pca": True},
        )
        assert cfg.imputation is ImputationMethod.KNN
        assert cfg.pca_columns == ("a", "b")

    def test_from_mapping_rejects_unknown_keys(self) -> None:
        with pytest.raises(InvalidParameter, match=r"unknown keys"):
            PreprocessingConfig.from_mapping({"neighbours": 3})


class TestPreprocessingPipeline:
    """Stage chaining."""

    def test_profile_only(self, pipeline_dataset: Dataset) -> None:
        result = PreprocessingPipeline(PreprocessingConfig()).run(pipeline_dataset)
        assert isinstance(result, PipelineResult)
        assert result.profile.n_missing == 5
        assert result.dataset is pipeline_dataset
        assert result.imputation is None
        assert result.variance is None
        assert result.pca is None

    def test_full_run(self, pipeline_dataset: Dataset) -> None:
        cfg = PreprocessingConfig(
            imputation=ImputationMethod.KNN,
            k=3,
            distance_weighted=True,
            freq_cut=19.0,
            unique_cut=10.0,
            run_pca=True,
        )
        result = PreprocessingPipeline(cfg).run(pipeline_dataset)

        assert result.imputation is not None
        assert result.imputation.n_imputed == 5
        assert result.variance is not None
        assert result.variance.flagged_columns == ["flat"]
        assert result.dataset.columns == ["a", "b", "c", "kind"]
        assert result.pca is not None
        assert result.pca.columns == ["a", "b", "c"]
        assert result.pca.explained_variance_ratio.sum() == pytest.approx(1.0)
        assert result.issues == ()
        # the input snapshot is untouched
        assert pipeline_dataset.df["a"].isna().sum() == 3

    def test_pca_skips_filtered_columns(self, pipeline_dataset: Dataset) -> None:
        cfg = PreprocessingConfig(
            imputation=ImputationMethod.MEAN,
            freq_cut=19.0,
            unique_cut=10.0,
            run_pca=True,
            pca_columns=("a", "flat", "c"),
        )
        result = PreprocessingPipeline(cfg).run(pipeline_dataset)
        assert result.pca is not None
        assert result.pca.columns == ["a", "c"]

    def test_issues_are_collected(self) -> None:
        ds = Dataset.from_frame(pd.DataFrame({"a": [1.0, np.nan, 3.0], "b": [np.nan, 1.0, 2.0]}))
        cfg = PreprocessingConfig(imputation=ImputationMethod.KNN, k=5, distance_weighted=False)
        result = PreprocessingPipeline(cfg).run(ds)
        assert all(isinstance(issue, InsufficientDonors) for issue in result.issues)
        assert len(result.issues) == 2


class TestLogging:
    """Package logging is silent by default and can be enabled."""

    def test_setup_logging_routes_warnings(self) -> None:
        from loguru import logger

        sink = io.StringIO()
        handler_id = setup_logging(level="WARNING", sink=sink)
        try:
            ds = Dataset.from_frame(pd.DataFrame({"a": [1.0, np.nan], "empty": [np.nan, np.nan]}))
            PreprocessingPipeline(PreprocessingConfig(imputation=ImputationMethod.MEAN)).run(ds)
        finally:
            logger.remove(handler_id)
            logger.disable("prep_tlbx")
        assert "mean is undefined" in sink.getvalue()

    def test_setup_logging_keeps_foreign_sinks(self) -> None:
        from loguru import logger

        host_sink = io.StringIO()
        host_id = logger.add(host_sink, level="WARNING", format="{message}")
        first_id = setup_logging(level="WARNING", sink=io.StringIO())
        own_sink = io.StringIO()
        own_id = setup_logging(level="WARNING", sink=own_sink)
        try:
            logger.warning("host message")
        finally:
            logger.remove(host_id)
            logger.remove(own_id)
            logger.disable("prep_tlbx")
        assert "host message" in host_sink.getvalue()
        assert "host message" in own_sink.getvalue()
        # the earlier toolbox handler was replaced, not stacked
        with pytest.raises(ValueError):
            logger.remove(first_id)
