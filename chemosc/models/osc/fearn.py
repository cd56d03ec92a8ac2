'''
Fearn orthogonal signal correction.

Fearn's variant works on the original matrix throughout. The projector

    M = I - X'Y (Y'X X'Y)^+ Y'X

removes the direction of the row space of X that is correlated with the
response, and the singular value decomposition of ``Z = X M`` is computed once
per fit. Component ``i`` starts from the ``i``-th singular triple and is
refined by a fixed-point iteration on the weight vector; X is not deflated
between components.

References:
    Fearn, T. (2000). On orthogonal signal correction. Chemometrics and
    Intelligent Laboratory Systems, 50, 47-52.
'''

import logging
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from chemosc.core.config import get_numerical_config
from chemosc.core.exceptions import raise_singular_error
from chemosc.core.types import (
    InnerLoopState, LoadingMatrix, Matrix, OSCVariant, ProjectionMatrix,
    ScoreMatrix, WeightMatrix
)
from chemosc.models.osc._numba_core import _relative_change_core, kernel
from chemosc.models.osc.base import OSCModelBase
from chemosc.utils.matrix_ops import regression_loading, safe_pinv, unit_vector

# Set up module-level logger
logger = logging.getLogger("chemosc.models.osc.fearn")


def orthogonal_projector(X: Matrix, Y: Matrix, rtol: Optional[float] = None) -> ProjectionMatrix:
    """
    Build ``M = I - X'Y (Y'X X'Y)^+ Y'X``.

    Args:
        X: Measurement matrix (n_samples x n_features)
        Y: Response column (n_samples x 1)
        rtol: Relative cutoff passed to the pseudo-inverse

    Returns:
        ProjectionMatrix: Symmetric idempotent matrix (n_features x n_features)

    Raises:
        SingularMatrixError: If X'Y vanishes
    """
    XtY = X.T @ Y
    return np.eye(X.shape[1]) - XtY @ safe_pinv(XtY.T @ XtY, rtol=rtol, name="Y'X X'Y") @ XtY.T


def _decompose_residual(Z: Matrix) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Thin SVD of the response-orthogonal part of X."""
    return linalg.svd(Z, full_matrices=False)


class FearnOSC(OSCModelBase):
    """
    Orthogonal signal correction with Fearn's algorithm.

    Args:
        n_components: Number of orthogonal components to remove
        tol: Relative-change tolerance on the weight vector
        max_iter: Iteration bound of the inner loop
        name: Descriptive model name
    """

    variant = OSCVariant.FEARN

    def __init__(self,
                 n_components: Optional[int] = None,
                 tol: Optional[float] = None,
                 max_iter: Optional[int] = None,
                 name: Optional[str] = None):
        super().__init__(n_components, tol, max_iter, name=name)

    def _extract_components(self,
                            X: Matrix,
                            Y: Matrix,
                            weights: WeightMatrix,
                            scores: ScoreMatrix,
                            loadings: LoadingMatrix,
                            iterations: np.ndarray,
                            converged: np.ndarray) -> None:
        numerical = get_numerical_config()
        relative_change = kernel(_relative_change_core)

        M = orthogonal_projector(X, Y, numerical.pinv_rtol)
        U, s, Vt = _decompose_residual(X @ M)
        logger.debug(f"Singular values of X M: {np.array2string(s, precision=4)}")

        n = weights.shape[1]
        leading = s[0] if s.size else 0.0
        available = int(np.sum(s > numerical.degeneracy_tol * max(leading, np.finfo(np.float64).tiny)))
        if leading == 0.0 or n > available:
            raise_singular_error(
                f"X M has {available} non-zero singular value(s), "
                f"cannot extract {n} component(s)",
                operation="svd",
                values=s
            )

        for i in range(n):
            w_prev = Vt[i]
            t = s[i] * U[:, i]
            state = InnerLoopState.RUNNING
            iteration = 0
            change = np.inf

            while state is InnerLoopState.RUNNING:
                iteration += 1
                if iteration > 1:
                    t = self._check_score(X @ w_prev, X)
                p = regression_loading(X, t)
                w = unit_vector(M @ p, "weight vector")
                change = float(relative_change(w, w_prev))
                w_prev = w
                state = self._next_state(change, iteration)

            # Score and loading of the converged weight
            t = self._check_score(X @ w, X)
            p = regression_loading(X, t)

            weights[:, i] = w
            scores[:, i] = t
            loadings[:, i] = p
            self._report_component(logger, i, iteration, state, change, iterations, converged)
