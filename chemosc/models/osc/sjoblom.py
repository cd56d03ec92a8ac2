'''
Sjöblom orthogonal signal correction.

A variant of Wold's algorithm in which the inner loop derives the weight
directly from the orthogonalised score, ``w = X' t* / (t*' t*)``, instead of
fitting a PLS1 model. Once the score has converged the weight is refined by a
PLS1 regression of the working matrix on the score, the response is regressed
out of the refined score once more, and that final score is deflated.

References:
    Sjöblom, J., Svensson, O., Josefson, M., Kullberg, H. and Wold, S. (1998).
    An evaluation of orthogonal signal correction applied to calibration
    transfer of near infrared spectra. Chemometrics and Intelligent Laboratory
    Systems, 44, 229-244.
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
logger = logging.getLogger("chemosc.models.osc.sjoblom")


class SjoblomOSC(OSCModelBase):
    """
    Orthogonal signal correction with Sjöblom's algorithm.

    Args:
        n_components: Number of orthogonal components to remove
        tol: Relative-change tolerance on the score vector
        max_iter: Iteration bound of the inner loop
        pls_components: Latent-variable cap of the PLS1 refinement (None for
            the full rank of the working matrix)
        name: Descriptive model name
    """

    variant = OSCVariant.SJOBLOM

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
                w = unit_vector(regression_loading(X_w, t_orth), "weight vector")
                t_new = self._check_score(X_w @ w, X_w)
                change = float(relative_change(t_new, t))
                t = t_new
                state = self._next_state(change, iteration)

            # Refinement: PLS1 weight from the converged score, then one more
            # removal of the response from the refined score
            w = unit_vector(
                pls1_weights(X_w, t, self._params.pls_components),
                "weight vector"
            )
            t = self._check_score(X_w @ w, X_w)
            t = self._orthogonal_score(t, projector)
            p = regression_loading(X_w, t)
            deflate(X_w, t, p)

            weights[:, i] = w
            scores[:, i] = t
            loadings[:, i] = p
            self._report_component(logger, i, iteration, state, change, iterations, converged)
