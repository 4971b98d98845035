"""Tests for Dataset and column references."""

from enum import StrEnum

import numpy as np
import pandas as pd
import pytest

from prep_tlbx.data import ColumnKind, Dataset
from prep_tlbx.errors import InvalidColumn, InvalidParameter


class Col(StrEnum):
    X1 = "x1"
    X2 = "x2"


class TestDatasetConstruction:
    """Test building datasets from frames and rows."""

    def test_from_rows_marks_none_as_missing(self, small_dataset: Dataset) -> None:
        assert small_dataset.shape == (4, 2)
        assert small_dataset.missing_mask.to_numpy().sum() == 2
        assert np.isnan(small_dataset.df.loc[2, "x1"])

    def test_numeric_kinds_are_inferred(self, mixed_dataset: Dataset) -> None:
        assert mixed_dataset.numeric_cols == ["age", "income", "score"]
        assert mixed_dataset.categorical_cols == ["city"]
        assert mixed_dataset.kinds["city"] is ColumnKind.CATEGORICAL

    def test_declared_categorical_overrides_inference(self) -> None:
        ds = Dataset.from_frame(pd.DataFrame({"code": [1, 2, 1], "v": [0.1, 0.2, 0.3]}), categorical=["code"])
        assert ds.numeric_cols == ["v"]
        assert ds.categorical_cols == ["code"]

    def test_bool_columns_are_categorical(self) -> None:
        ds = Dataset.from_frame(pd.DataFrame({"flag": [True, False, True]}))
        assert ds.kinds["flag"] is ColumnKind.CATEGORICAL

    def test_index_is_reset_and_input_not_mutated(self) -> None:
        df = pd.DataFrame({"a": [1.0, np.nan]}, index=[10, 20])
        ds = Dataset.from_frame(df)
        assert ds.df.index.tolist() == [0, 1]
        assert df.index.tolist() == [10, 20]

    def test_ragged_rows_raise(self) -> None:
        with pytest.raises(InvalidParameter, match=r"expected 2"):
            Dataset.from_rows([[1, 2], [3]], columns=["a", "b"])

    def test_unknown_categorical_column_raises(self) -> None:
        with pytest.raises(InvalidColumn):
            Dataset.from_frame(pd.DataFrame({"a": [1.0]}), categorical=["nope"])

    def test_non_numeric_declared_numeric_raises(self) -> None:
        with pytest.raises(InvalidParameter, match=r"non-numeric"):
            Dataset.from_frame(pd.DataFrame({"a": ["x", "y"]}), kinds={"a": "numeric"})


class TestColumnReferences:
    """Test resolving names, positions and enum members."""

    def test_resolve_by_name_and_position(self, small_dataset: Dataset) -> None:
        assert small_dataset.resolve("x2") == "x2"
        assert small_dataset.resolve(0) == "x1"

    def test_resolve_enum_member(self, small_dataset: Dataset) -> None:
        assert small_dataset.resolve(Col.X2) == "x2"

    @pytest.mark.parametrize("ref", ["missing", 5, -1, True])
    def test_invalid_references_raise(self, small_dataset: Dataset, ref: object) -> None:
        with pytest.raises(InvalidColumn, match=r"Unknown column"):
            small_dataset.resolve(ref)  # type: ignore[arg-type]

    def test_invalid_column_is_also_key_error(self, small_dataset: Dataset) -> None:
        with pytest.raises(KeyError):
            small_dataset.column("missing")

    def test_pretty_names(self, mixed_dataset: Dataset) -> None:
        assert mixed_dataset.get_pretty_name("age") == "Age"


class TestDerivedDatasets:
    """Transforms return new datasets and keep metadata."""

    def test_drop_keeps_rows_and_kinds(self, mixed_dataset: Dataset) -> None:
        reduced = mixed_dataset.drop(["score"])
        assert reduced.columns == ["age", "income", "city"]
        assert reduced.n_rows == mixed_dataset.n_rows
        assert reduced.kinds["city"] is ColumnKind.CATEGORICAL
        assert "score" in mixed_dataset.columns

    def test_select_orders_columns(self, mixed_dataset: Dataset) -> None:
        assert mixed_dataset.select(["score", 0]).columns == ["score", "age"]

    def test_view_is_frozen(self, small_dataset: Dataset) -> None:
        with pytest.raises(AttributeError):
            small_dataset.df = pd.DataFrame()  # type: ignore[misc]

    def test_to_frame_is_a_copy(self, small_dataset: Dataset) -> None:
        frame = small_dataset.to_frame()
        frame.loc[0, "x1"] = 99.0
        assert small_dataset.df.loc[0, "x1"] == 1.0
