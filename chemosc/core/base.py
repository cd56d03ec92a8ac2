'''
Shared model contract for the Chemometrics OSC Toolbox.

A filter is fitted once on calibration data, keeps its result, and can then
be applied to further measurements taken on the same channels.
'''

import abc
from dataclasses import asdict, dataclass
from typing import Any, Dict, Generic, Optional, TypeVar

import numpy as np

from chemosc.core.exceptions import raise_not_fitted_error

P = TypeVar('P')  # parameter container
R = TypeVar('R')  # result container
D = TypeVar('D')  # fit input


@dataclass
class ModelResult:
    """Fields every fitted model reports, whatever the algorithm."""

    model_name: str = "Model"
    convergence: bool = True
    iterations: int = 0

    def summary(self) -> str:
        title = f"Model: {self.model_name}"
        return "\n".join([
            title,
            "=" * len(title),
            "",
            f"Convergence: {'Yes' if self.convergence else 'No'}",
            f"Iterations: {self.iterations}",
            "",
        ]) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(ModelResult(self.model_name, self.convergence, self.iterations))


class ModelBase(abc.ABC, Generic[P, R, D]):
    """
    Fit-then-apply skeleton.

    Subclasses implement :meth:`validate_data`, :meth:`fit` and
    :meth:`transform`; ``fit`` is expected to store its result in
    ``self._results`` and set ``self._fitted``.
    """

    def __init__(self, name: str = "Model"):
        self._name = name
        self._fitted = False
        self._results: Optional[R] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def fitted(self) -> bool:
        return self._fitted

    @property
    def results(self) -> R:
        """Result of the last :meth:`fit`; raises NotFittedError before that."""
        self._check_fitted("results")
        return self._results

    def _check_fitted(self, operation: str) -> None:
        if self._fitted:
            return
        raise_not_fitted_error(
            f"{self._name} must be fitted before calling {operation}",
            model_type=type(self).__name__,
            operation=operation
        )

    @abc.abstractmethod
    def fit(self, data: D, **kwargs: Any) -> R:
        """Estimate the model from calibration data and return its result."""

    @abc.abstractmethod
    def transform(self, data: Any) -> np.ndarray:
        """Apply the fitted model to new measurements."""

    @abc.abstractmethod
    def validate_data(self, data: D) -> Any:
        """Check the fit input and return it in the form :meth:`fit` consumes."""

    def fit_transform(self, data: D, **kwargs: Any) -> np.ndarray:
        """Fit on ``data`` and return the filtered calibration measurements."""
        self.fit(data, **kwargs)
        return self.transform(self._calibration_input(data))

    def _calibration_input(self, data: D) -> Any:
        return data

    def __str__(self) -> str:
        return f"{self._name} ({'fitted' if self._fitted else 'not fitted'})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, fitted={self._fitted})"
