'''
Base classes for orthogonal signal correction.

This module provides the result container and the abstract model shared by
the Wold, Sjöblom and Fearn variants. The base class owns everything the
variants have in common: input validation, parameter resolution from the
configuration defaults, preallocation of the component arrays, the final
correction and its fit statistics, and application of the learned filter to
new data. A variant only implements ``_extract_components``, which fills the
weight, score and loading columns one component at a time.
'''

import abc
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from chemosc.core.base import ModelBase, ModelResult
from chemosc.core.config import get_config, get_numerical_config
from chemosc.core.exceptions import (
    raise_parameter_error, raise_singular_error, warn_convergence, warn_numeric
)
from chemosc.core.parameters import OSCParameters
from chemosc.core.types import (
    InnerLoopState, LoadingMatrix, Matrix, MatrixLike, OSCData, OSCVariant,
    ProjectionMatrix, ScoreMatrix, Vector, WeightMatrix
)
from chemosc.core.validation import (
    as_float_array, validate_input_type, validate_matrix_shape, validate_numeric_array,
    validate_osc_inputs
)
from chemosc.models.osc._numba_core import _sum_squares_ratio_core, kernel
from chemosc.utils.matrix_ops import check_response, regress_out, score_angles

# Set up module-level logger
logger = logging.getLogger("chemosc.models.osc.base")

_DISPLAY_NAMES = {
    OSCVariant.WOLD: "Wold",
    OSCVariant.SJOBLOM: "Sjöblom",
    OSCVariant.FEARN: "Fearn",
}


def _empty_matrix() -> np.ndarray:
    return np.zeros((0, 0))


@dataclass
class OSCResult(ModelResult):
    """
    Result container for orthogonal signal correction.

    Attributes:
        model_name: Name of the model (e.g. "Wold OSC")
        convergence: Whether every component's inner loop converged
        iterations: Total number of inner-loop iterations
        variant: Algorithm variant ("wold", "sjoblom" or "fearn")
        correction: Corrected matrix ``X - X W P'`` (same shape as X)
        weights: Weight vectors, one column per component (n_features x n)
        scores: Score vectors, one column per component (n_samples x n)
        loadings: Loading vectors, one column per component (n_features x n)
        r2: Percentage of the sum of squares of X kept by the correction
        angle: Mean angle in degrees between the scores and the response
        component_angles: Angle of each score with the response
        component_iterations: Inner-loop iterations used by each component
        component_converged: Whether each component's inner loop converged
        n_components: Number of orthogonal components removed
        n_samples: Number of rows of X
        n_features: Number of columns of X
        tol: Inner-loop tolerance
        max_iter: Inner-loop iteration bound
        pls_components: Latent-variable cap of the PLS1 fits (None for full rank)
        index: Row labels of X when it was a DataFrame
        columns: Column labels of X when it was a DataFrame
    """

    variant: str = OSCVariant.WOLD.value
    correction: np.ndarray = field(default_factory=_empty_matrix)
    weights: WeightMatrix = field(default_factory=_empty_matrix)
    scores: ScoreMatrix = field(default_factory=_empty_matrix)
    loadings: LoadingMatrix = field(default_factory=_empty_matrix)
    r2: float = 100.0
    angle: float = float("nan")
    component_angles: np.ndarray = field(default_factory=lambda: np.zeros(0))
    component_iterations: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    component_converged: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))
    n_components: int = 0
    n_samples: int = 0
    n_features: int = 0
    tol: float = 1e-6
    max_iter: int = 50
    pls_components: Optional[int] = None
    index: Optional[pd.Index] = None
    columns: Optional[pd.Index] = None

    def summary(self) -> str:
        """
        Generate a text summary of the correction.

        Returns:
            str: Formatted summary with the fit statistics and per-component
            diagnostics
        """
        precision = get_config("output", "float_precision", 4)
        max_rows = get_config("output", "summary_max_components", 10)

        lines = [super().summary().rstrip("\n"), ""]
        lines.append(f"Variant: {self.variant}")
        lines.append(f"Observations: {self.n_samples}")
        lines.append(f"Channels: {self.n_features}")
        lines.append(f"Components removed: {self.n_components}")
        lines.append(f"Tolerance: {self.tol:g}")
        lines.append(f"Max iterations: {self.max_iter}")
        lines.append("")
        lines.append(f"Retained sum of squares (r2): {self.r2:.{precision}f}%")
        lines.append(f"Mean angle to Y: {self.angle:.{precision}f} degrees")

        if self.n_components:
            lines.append("")
            lines.append(f"{'Component':<12}{'Angle':>14}{'Iterations':>12}{'Converged':>11}")
            lines.append("-" * 49)
            for i in range(min(self.n_components, max_rows)):
                lines.append(
                    f"{i + 1:<12}{self.component_angles[i]:>14.{precision}f}"
                    f"{int(self.component_iterations[i]):>12}"
                    f"{'Yes' if self.component_converged[i] else 'No':>11}"
                )
            if self.n_components > max_rows:
                lines.append(f"... {self.n_components - max_rows} more component(s)")

        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the result to a dictionary.

        Returns:
            Dict[str, Any]: Dictionary with the scalar statistics and the arrays
        """
        result = super().to_dict()
        result.update({
            "variant": self.variant,
            "correction": self.correction,
            "weights": self.weights,
            "scores": self.scores,
            "loadings": self.loadings,
            "r2": self.r2,
            "angle": self.angle,
            "component_angles": self.component_angles,
            "component_iterations": self.component_iterations,
            "component_converged": self.component_converged,
            "n_components": self.n_components,
            "n_samples": self.n_samples,
            "n_features": self.n_features,
            "tol": self.tol,
            "max_iter": self.max_iter,
            "pls_components": self.pls_components,
        })
        return result

    def component_labels(self) -> List[str]:
        return [f"OSC{i + 1}" for i in range(self.n_components)]

    @validate_input_type(1, str, "kind")
    def to_frame(self, kind: str = "correction") -> pd.DataFrame:
        """
        Return an array of the result as a labelled DataFrame.

        Args:
            kind: One of "correction", "weights", "scores" or "loadings"

        Returns:
            pd.DataFrame: The array with the row and column labels of X where
            they apply, and "OSC1", "OSC2", ... for component columns

        Raises:
            ValueError: If kind is not recognized
        """
        index = self.index if self.index is not None else pd.RangeIndex(self.n_samples)
        columns = self.columns if self.columns is not None else pd.RangeIndex(self.n_features)

        if kind == "correction":
            return pd.DataFrame(self.correction, index=index, columns=columns)
        if kind == "scores":
            return pd.DataFrame(self.scores, index=index, columns=self.component_labels())
        if kind in ("weights", "loadings"):
            return pd.DataFrame(getattr(self, kind), index=columns, columns=self.component_labels())
        raise ValueError(
            f"kind must be 'correction', 'weights', 'scores' or 'loadings', got {kind!r}"
        )


class OSCModelBase(ModelBase[OSCParameters, OSCResult, OSCData]):
    """
    Abstract base class for orthogonal signal correction models.

    Subclasses set ``variant`` and implement ``_extract_components``. Arguments
    left as None take their defaults from the ``numerical`` configuration
    section.

    Args:
        n_components: Number of orthogonal components to remove
        tol: Relative-change tolerance of the inner loop
        max_iter: Iteration bound of the inner loop
        name: Descriptive model name
    """

    variant: OSCVariant

    def __init__(self,
                 n_components: Optional[int] = None,
                 tol: Optional[float] = None,
                 max_iter: Optional[int] = None,
                 name: Optional[str] = None,
                 **kwargs: Any):
        super().__init__(name=name or f"{_DISPLAY_NAMES[self.variant]} OSC")
        numerical = get_numerical_config()
        self._params = OSCParameters(
            n_components=numerical.default_n_components if n_components is None else n_components,
            tol=numerical.default_tol if tol is None else tol,
            max_iter=numerical.default_max_iter if max_iter is None else max_iter,
            **kwargs
        )
        self._weights: Optional[WeightMatrix] = None
        self._loadings: Optional[LoadingMatrix] = None

    @property
    def params(self) -> OSCParameters:
        """Get a copy of the model parameters."""
        return self._params.copy()

    @property
    def n_components(self) -> int:
        return self._params.n_components

    def validate_data(self, data: OSCData) -> Tuple[Matrix, Matrix]:
        """
        Validate a ``(X, Y)`` pair.

        Returns:
            Tuple containing X as a float matrix and Y as a (n_samples x 1) column

        Raises:
            TypeError: If data is not a pair of array-like inputs
            DimensionError: If X and Y are not aligned by row
            DataError: If X or Y contain NaN or infinite values
        """
        if not isinstance(data, tuple) or len(data) != 2:
            raise TypeError("data must be a tuple (X, Y)")
        return validate_osc_inputs(*data)

    def fit(self, data: OSCData, **kwargs: Any) -> OSCResult:
        """
        Extract the orthogonal components of X with respect to Y.

        Args:
            data: Tuple (X, Y) with X of shape (n_samples, n_features) and Y
                holding one response value per sample
            **kwargs: Not used

        Returns:
            OSCResult: The correction, the component arrays and diagnostics

        Raises:
            DimensionError: If X and Y are not aligned by row
            ParameterError: If more components are requested than X has columns
            SingularMatrixError: If the response has no variance or a weight
                or score vector degenerates
            DataError: If X or Y contain NaN or infinite values
        """
        X, Y = self.validate_data(data)
        n_samples, n_features = X.shape
        self._params.check_against(n_samples, n_features)
        check_response(Y, get_numerical_config().degeneracy_tol)

        n = self._params.n_components
        weights = np.zeros((n_features, n))
        scores = np.zeros((n_samples, n))
        loadings = np.zeros((n_features, n))
        iterations = np.zeros(n, dtype=int)
        converged = np.ones(n, dtype=bool)

        logger.debug(
            f"Fitting {self._name}: {n} component(s) on {n_samples}x{n_features} data"
        )

        if n > 0:
            self._extract_components(X, Y, weights, scores, loadings, iterations, converged)
            correction = X - X @ weights @ loadings.T
            r2 = float(kernel(_sum_squares_ratio_core)(correction, X))
            if r2 > 100.0 + 1e-8:
                warn_numeric(
                    f"Correction increased the sum of squares of X (r2={r2:.4f}%)",
                    operation="correction",
                    issue="r2 above 100",
                    value=r2
                )
        else:
            correction = X.copy()
            r2 = 100.0

        component_angles, angle = score_angles(scores, Y)

        X_input = data[0]
        result = OSCResult(
            model_name=self._name,
            convergence=bool(np.all(converged)),
            iterations=int(np.sum(iterations)),
            variant=self.variant.value,
            correction=correction,
            weights=weights,
            scores=scores,
            loadings=loadings,
            r2=r2,
            angle=angle,
            component_angles=component_angles,
            component_iterations=iterations,
            component_converged=converged,
            n_components=n,
            n_samples=n_samples,
            n_features=n_features,
            tol=self._params.tol,
            max_iter=self._params.max_iter,
            pls_components=self._params.pls_components,
            index=X_input.index if isinstance(X_input, pd.DataFrame) else None,
            columns=X_input.columns if isinstance(X_input, pd.DataFrame) else None,
        )

        self._weights = weights
        self._loadings = loadings
        self._results = result
        self._fitted = True
        return result

    def transform(self, data: MatrixLike) -> np.ndarray:
        """
        Apply the learned filter to new measurements: ``X - X W P'``.

        Args:
            data: Matrix with the same number of columns as the fit data

        Returns:
            np.ndarray: The corrected matrix

        Raises:
            NotFittedError: If the model has not been fitted
            DimensionError: If the number of columns differs from the fit data
            DataError: If data contain NaN or infinite values
        """
        self._check_fitted("transform")
        X = validate_matrix_shape(
            as_float_array(data, "X"),
            expected_cols=self._weights.shape[0],
            matrix_name="X"
        )
        validate_numeric_array(X, "X")
        return X - X @ self._weights @ self._loadings.T

    def _calibration_input(self, data: OSCData) -> MatrixLike:
        return data[0]

    @abc.abstractmethod
    def _extract_components(self,
                            X: Matrix,
                            Y: Matrix,
                            weights: WeightMatrix,
                            scores: ScoreMatrix,
                            loadings: LoadingMatrix,
                            iterations: np.ndarray,
                            converged: np.ndarray) -> None:
        """
        Fill the preallocated component arrays column by column.

        X must not be modified. ``iterations`` and ``converged`` receive the
        per-component inner-loop diagnostics.
        """
        pass

    # Helpers shared by the variants

    def _orthogonal_score(self, score: Vector, projector: ProjectionMatrix) -> Vector:
        """Regress the response out of a score, rejecting scores it fully explains."""
        orthogonal = regress_out(score, projector)
        tol = get_numerical_config().degeneracy_tol
        if np.linalg.norm(orthogonal) <= tol * np.linalg.norm(score):
            raise_singular_error(
                "Score is fully explained by the response; nothing orthogonal remains",
                operation="regress_out",
                values=score
            )
        return orthogonal

    def _check_score(self, score: Vector, matrix: Matrix) -> Vector:
        """Reject a score vector that vanished relative to the matrix it came from."""
        tol = get_numerical_config().degeneracy_tol
        if np.linalg.norm(score) <= tol * max(np.linalg.norm(matrix), np.finfo(np.float64).tiny):
            raise_singular_error(
                "Score vector has zero norm",
                operation="score",
                values=score
            )
        return score

    def _next_state(self, change: float, iteration: int) -> InnerLoopState:
        if change <= self._params.tol:
            return InnerLoopState.CONVERGED
        if iteration >= self._params.max_iter:
            return InnerLoopState.MAX_ITER_REACHED
        return InnerLoopState.RUNNING

    def _report_component(self,
                          log: logging.Logger,
                          component: int,
                          iteration: int,
                          state: InnerLoopState,
                          change: float,
                          iterations: np.ndarray,
                          converged: np.ndarray) -> None:
        """Record the diagnostics of a finished component and warn on non-convergence."""
        iterations[component] = iteration
        converged[component] = state is InnerLoopState.CONVERGED
        if state is InnerLoopState.CONVERGED:
            log.debug(
                f"Component {component + 1} converged after {iteration} iteration(s) "
                f"(change={change:.3e})"
            )
            return

        log.warning(
            f"Component {component + 1} did not converge after {iteration} iteration(s) "
            f"(change={change:.3e}, tol={self._params.tol:g})"
        )
        warn_convergence(
            f"{self._name} component {component + 1} reached max_iter={self._params.max_iter} "
            f"without meeting tol={self._params.tol:g}",
            iterations=iteration,
            tolerance=self._params.tol,
            change=change,
            details="The last iterate is used for this component."
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(n_components={self._params.n_components}, "
            f"tol={self._params.tol:g}, max_iter={self._params.max_iter}, "
            f"fitted={self._fitted})"
        )


def unsupported_option(option: str, value: Any, variant: OSCVariant) -> None:
    """Raise ParameterError for an option the variant does not use."""
    raise_parameter_error(
        f"{option} is not supported by the {_DISPLAY_NAMES[variant]} variant",
        param_name=option,
        param_value=value,
        constraint="wold or sjoblom only"
    )
