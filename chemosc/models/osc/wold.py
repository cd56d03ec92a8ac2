'''
Wold orthogonal signal correction.

Each component starts from the first principal score of the working matrix.
The inner loop removes the response-explained part of the score, fits a weight
vector by PLS1 regression of the working matrix on the orthogonalised score,
and recomputes the score from the unit weight until the score stops changing.
The converged score and its loading are then deflated from the working matrix
before the next component is extracted.

References:
    Wold, S., Antti, H., Lindgren, F. and Öhman, J. (1998). Orthogonal signal
    correction of near-infrared spectra. Chemometrics and Intelligent
    Laboratory Systems, 44, 175-185.
'''

import logging
from typing import Optional

import numpy as np

from chemosc.core.config import get_numerical_config
from chemosc.core.types import (
    InnerLoopState, LoadingMatrix, Matrix, OSCVariant, ScoreMatrix, WeightMatrix
)
from chemosc.models.osc._numba_core import _deflate_core, _relative_change_core, kernel
from chemosc.models.osc.base import OSCModelBase
from chemosc.utils.matrix_ops import (
    first_principal_score, pls1_weights, regression_loading, response_projector, unit_vector
)

# Set up module-level logger
logger = logging.getLogger("chemosc.models.osc.wold")


class WoldOSC(OSCModelBase):
    """
    Orthogonal signal correction with Wold's algorithm.

    Args:
        n_components: Number of orthogonal components to remove
        tol: Relative-change tolerance on the score vector
        max_iter: Iteration bound of the inner loop
        pls_components: Latent-variable cap of the PLS1 weight fit. None uses
            the full rank of the working matrix, so the converged score is
            orthogonal to the response; 1 gives a single latent variable.
        name: Descriptive model name

    Examples:
        >>> import numpy as np
        >>> from chemosc import WoldOSC
        >>> rng = np.random.default_rng(0)
        >>> X = rng.standard_normal((10, 5))
        >>> y = X[:, 0] + 0.1 * rng.standard_normal(10)
        >>> result = WoldOSC(n_components=2).fit((X, y))
        >>> result.correction.shape
        (10, 5)
    """

    variant = OSCVariant.WOLD

    def __init__(self,
                 n_components: Optional[int] = None,
                 tol: Optional[float] = None,
                 max_iter: Optional[int] = None,
                 pls_components: Optional[int] = None,
                 name: Optional[str] = None):
        super().__init__(n_components, tol, max_iter, name=name, pls_components=pls_components)

    def _extract_components(self,
                            X: Matrix,
                            Y: Matrix,
                            weights: WeightMatrix,
                            scores: ScoreMatrix,
                            loadings: LoadingMatrix,
                            iterations: np.ndarray,
                            converged: np.ndarray) -> None:
        numerical = get_numerical_config()
        projector = response_projector(Y, numerical.pinv_rtol)
        relative_change = kernel(_relative_change_core)
        deflate = kernel(_deflate_core)

        X_w = X.copy()
        for i in range(weights.shape[1]):
            t = first_principal_score(X_w, numerical.degeneracy_tol)
            state = InnerLoopState.RUNNING
            iteration = 0
            change = np.inf

            while state is InnerLoopState.RUNNING:
                iteration += 1
                t_orth = self._orthogonal_score(t, projector)
                w = unit_vector(
                    pls1_weights(X_w, t_orth, self._params.pls_components),
                    "weight vector"
                )
                t_new = self._check_score(X_w @ w, X_w)
                change = float(relative_change(t_new, t))
                t = t_new
                state = self._next_state(change, iteration)

            p = regression_loading(X_w, t)
            deflate(X_w, t, p)

            weights[:, i] = w
            scores[:, i] = t
            loadings[:, i] = p
            self._report_component(logger, i, iteration, state, change, iterations, converged)
