"""Test configuration for the preprocessing toolbox."""

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest


# Ensure the local package is importable when the repo isn't installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def small_dataset():
    """The 4x2 example: [[1, NA], [2, 4], [NA, 6], [4, 8]]."""
    from prep_tlbx.data import Dataset

    return Dataset.from_rows([[1, None], [2, 4], [None, 6], [4, 8]], columns=["x1", "x2"])


@pytest.fixture
def mixed_dataset():
    """Numeric columns with scattered gaps plus one categorical column."""
    from prep_tlbx.data import Dataset

    df = pd.DataFrame(
        {
            "age": [23.0, np.nan, 31.0, 45.0, np.nan, 52.0],
            "income": [30.0, 42.0, np.nan, 61.0, 58.0, 70.0],
            "score": [0.5, 0.7, 0.6, np.nan, 0.9, 0.8],
            "city": ["a", "b", None, "a", "c", "b"],
        },
    )
    return Dataset.from_frame(df)


@pytest.fixture(scope="session")
def correlated_frame() -> pd.DataFrame:
    """Complete data with a known variance structure (mirrors the PCA analyzer fixture)."""
    rng = np.random.default_rng(42)
    n_samples = 100
    comp1 = rng.normal(0, 3, n_samples)
    comp2 = rng.normal(0, 1, n_samples)
    comp3 = rng.normal(0, 0.5, n_samples)
    return pd.DataFrame(
        {
            "feature1": comp1 + 0.5 * comp2,
            "feature2": comp1 - 0.5 * comp2,
            "feature3": comp2 + 0.3 * comp3,
            "feature4": comp3,
        },
    )
