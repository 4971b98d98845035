"""Base analyzer class for the read-only analysis components of the toolbox."""

from abc import ABC, abstractmethod
from typing import Any


class BaseAnalyser(ABC):
    """Abstract base class for analysis components that inspect a Dataset.

    All analyzers must:
    1. Accept a :class:`~prep_tlbx.data.Dataset` in their constructor (or in ``fit``)
    2. Implement fit() to perform the analysis and return self for chaining
    3. Implement result() to return a frozen dataclass with results

    The result() method must return a frozen @dataclass with all analysis outputs.
    Analyzers never modify the Dataset they read; transforms hand back a new one.

    ---

    ### Adding a New Analyzer

    ```python
    from dataclasses import dataclass
    from prep_tlbx.data import Dataset

    @dataclass(frozen=True)
    class MyAnalysisResult:
        '''Results package for MyAnalyzer.'''
        summary: pd.DataFrame

    class MyAnalyzer(BaseAnalyser):
        def __init__(self, dataset: Dataset):
            self._dataset = dataset
            self._fitted = False

        def fit(self) -> "MyAnalyzer":
            # ... computation logic ...
            self._fitted = True
            return self

        def result(self) -> MyAnalysisResult:
            if not self._fitted:
                raise ValueError("Call fit() first")
            return MyAnalysisResult(...)
    ```

    **Key principles:**

    - Pure computation (no plotting, no I/O)
    - Report objects are frozen dataclasses; tables are returned as DataFrames
    - Parameter and column problems are raised as :mod:`prep_tlbx.errors` exceptions
    """

    @abstractmethod
    def fit(self, *args: Any, **kwargs: Any) -> "BaseAnalyser":
        """Fit the analyzer to the data.

        Returns:
            Self for method chaining.
        """
        ...

    @abstractmethod
    def result(self) -> Any:
        """Return analysis results as a frozen dataclass instance.

        Returns:
            A frozen @dataclass containing all analysis results.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        ...
