# chemosc/utils/matrix_ops.py
"""
Matrix Operations Module

This module provides the linear-algebra building blocks of orthogonal signal
correction: SVD-based pseudo-inverses, removal of the response-explained part
of a score vector, principal-axis scores, single-response partial least squares
weights and loading regressions. Every function that divides by a norm checks
for degeneracy first and raises SingularMatrixError instead of returning NaN.

Functions:
    safe_pinv: Pseudo-inverse with rank-zero detection
    check_response: Reject responses without variance
    response_projector: Hat matrix of the response column
    regress_out: Remove the response-explained part of a vector
    first_principal_score: Score on the first right singular vector
    pls1_weights: NIPALS PLS1 regression coefficients
    regression_loading: Regress the columns of a matrix on a score
    unit_vector: Normalize a vector to unit length
    safe_reciprocal: Scalar pseudo-inverse
    score_angles: Angles between score columns and the response
"""

import logging
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from chemosc.core.types import Matrix, ProjectionMatrix, Vector
from chemosc.core.exceptions import raise_singular_error

# Set up module-level logger
logger = logging.getLogger("chemosc.utils.matrix_ops")

# Relative size below which a NIPALS weight is treated as numerical noise
_PLS_STOP_TOL = 1e-10


def safe_pinv(matrix: Matrix,
              rtol: Optional[float] = None,
              name: str = "matrix") -> Matrix:
    """
    Compute the Moore-Penrose pseudo-inverse of a matrix.

    The pseudo-inverse is computed from the SVD by ``scipy.linalg.pinv``. A
    matrix whose numerical rank is zero has no meaningful generalized inverse
    in this context and is rejected.

    Args:
        matrix: Matrix to invert
        rtol: Relative cutoff for small singular values (None for SciPy's default)
        name: Name of the matrix for error messages

    Returns:
        Matrix: The pseudo-inverse

    Raises:
        SingularMatrixError: If the matrix has numerical rank zero

    Examples:
        >>> import numpy as np
        >>> from chemosc.utils.matrix_ops import safe_pinv
        >>> safe_pinv(np.array([[4.0]]))
        array([[0.25]])
    """
    matrix = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
    inverse, rank = linalg.pinv(matrix, rtol=rtol, return_rank=True)
    if rank == 0:
        raise_singular_error(
            f"Pseudo-inverse of {name} is degenerate (numerical rank 0)",
            operation="pinv",
            values=matrix
        )
    return inverse


def check_response(Y: Matrix, degeneracy_tol: float = 1e-12) -> None:
    """
    Reject a response that carries no variation.

    A constant response cannot separate orthogonal from predictive variation:
    regressing it out of a score removes only the mean and every extracted
    component would still be driven by the response.

    Args:
        Y: Response column (n_samples x 1)
        degeneracy_tol: Scale-relative variance threshold

    Raises:
        SingularMatrixError: If the response variance is negligible
    """
    y = np.asarray(Y, dtype=np.float64).ravel()
    variance = float(np.var(y))
    scale = max(float(np.mean(y ** 2)), np.finfo(np.float64).tiny)
    if variance <= degeneracy_tol * scale:
        raise_singular_error(
            "Response Y has zero variance; the response projection is degenerate",
            operation="response_projector",
            values=y,
            details="Orthogonal signal correction needs a non-constant response."
        )


def response_projector(Y: Matrix, rtol: Optional[float] = None) -> ProjectionMatrix:
    """
    Build the hat matrix ``Y (Y'Y)^+ Y'`` of the response.

    Args:
        Y: Response column (n_samples x 1)
        rtol: Relative cutoff passed to the pseudo-inverse

    Returns:
        ProjectionMatrix: Symmetric idempotent matrix (n_samples x n_samples)

    Raises:
        SingularMatrixError: If Y'Y is degenerate
    """
    Y = np.asarray(Y, dtype=np.float64).reshape(len(Y), -1)
    return Y @ safe_pinv(Y.T @ Y, rtol=rtol, name="Y'Y") @ Y.T


def regress_out(vector: Vector, projector: ProjectionMatrix) -> Vector:
    """
    Remove the part of a vector explained by the response.

    Args:
        vector: Score vector (n_samples,)
        projector: Hat matrix from :func:`response_projector`

    Returns:
        Vector: ``vector - projector @ vector``
    """
    return vector - projector @ vector


def first_principal_score(matrix: Matrix, degeneracy_tol: float = 1e-12) -> Vector:
    """
    Compute the score of a matrix on its first right singular vector.

    The decomposition is not centred: ``t = X v1`` where ``v1`` is the leading
    right singular vector of ``X`` itself.

    Args:
        matrix: Matrix (n_samples x n_features)
        degeneracy_tol: Threshold on the leading singular value relative to
            the largest absolute entry

    Returns:
        Vector: Score vector (n_samples,)

    Raises:
        SingularMatrixError: If the matrix is numerically zero
    """
    _, s, vt = linalg.svd(matrix, full_matrices=False)
    scale = max(float(np.max(np.abs(matrix))), np.finfo(np.float64).tiny) if matrix.size else 1.0
    if s.size == 0 or s[0] <= degeneracy_tol * scale:
        raise_singular_error(
            "Working matrix has no variation left to extract",
            operation="first_principal_score",
            values=s
        )
    return matrix @ vt[0]


def pls1_weights(X: Matrix,
                 y: Vector,
                 n_components: Optional[int] = None) -> Vector:
    """
    Fit single-response partial least squares by NIPALS.

    Returns the regression coefficients ``b`` such that ``X b`` approximates
    ``y``. No centring is applied. With ``n_components=None`` latent variables
    are extracted until the residual covariance vanishes, which reproduces the
    least-squares projection of ``y`` onto the column space of ``X``.

    Args:
        X: Predictor matrix (n_samples x n_features)
        y: Response vector (n_samples,)
        n_components: Maximum number of latent variables, or None for full rank

    Returns:
        Vector: Regression coefficients (n_features,). All zeros when ``y`` is
        orthogonal to the columns of ``X``.

    Examples:
        >>> import numpy as np
        >>> from chemosc.utils.matrix_ops import pls1_weights
        >>> X = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        >>> b = pls1_weights(X, X @ np.array([2.0, -1.0]))
        >>> np.allclose(b, [2.0, -1.0])
        True
    """
    n_samples, n_features = X.shape
    max_components = min(n_samples, n_features)
    if n_components is not None:
        max_components = min(max_components, n_components)

    E = np.array(X, dtype=np.float64)
    f = np.array(y, dtype=np.float64).ravel()

    W = np.zeros((n_features, max_components))
    P = np.zeros((n_features, max_components))
    q = np.zeros(max_components)

    scale = float(np.linalg.norm(E)) * float(np.linalg.norm(f))
    first_norm = float(np.linalg.norm(E.T @ f))
    if first_norm == 0.0 or first_norm <= _PLS_STOP_TOL * scale:
        return np.zeros(n_features)

    n_fitted = 0
    for a in range(max_components):
        w = E.T @ f
        w_norm = float(np.linalg.norm(w))
        if w_norm <= _PLS_STOP_TOL * first_norm:
            break
        w /= w_norm

        t = E @ w
        tt = float(t @ t)
        if tt == 0.0:
            break

        P[:, a] = E.T @ t / tt
        W[:, a] = w
        q[a] = float(f @ t) / tt

        E -= np.outer(t, P[:, a])
        f -= q[a] * t
        n_fitted += 1

    if n_fitted == 0:
        return np.zeros(n_features)

    W = W[:, :n_fitted]
    P = P[:, :n_fitted]
    # P'W is unit upper triangular for NIPALS PLS1
    coefficients = W @ linalg.solve(P.T @ W, q[:n_fitted])
    logger.debug(f"PLS1 fit used {n_fitted} latent variable(s)")
    return coefficients


def regression_loading(matrix: Matrix, score: Vector, degeneracy_tol: float = 0.0) -> Vector:
    """
    Regress every column of a matrix on a score: ``X' t / (t' t)``.

    Raises:
        SingularMatrixError: If the score has zero norm
    """
    tt = float(score @ score)
    if not np.isfinite(tt) or tt <= degeneracy_tol or tt == 0.0:
        raise_singular_error(
            "Cannot compute loading from a zero score",
            operation="regression_loading",
            values=score
        )
    return matrix.T @ score / tt


def unit_vector(vector: Vector,
                name: str = "vector",
                degeneracy_tol: float = 0.0,
                scale: float = 1.0) -> Vector:
    """
    Normalize a vector to unit Euclidean length.

    Args:
        vector: Vector to normalize
        name: Name of the vector for error messages
        degeneracy_tol: Relative threshold below which the norm counts as zero
        scale: Reference magnitude the threshold is relative to

    Returns:
        Vector: The normalized vector

    Raises:
        SingularMatrixError: If the norm is zero, not finite or below the threshold
    """
    norm = float(np.linalg.norm(vector))
    if not np.isfinite(norm) or norm == 0.0 or norm <= degeneracy_tol * scale:
        raise_singular_error(
            f"Cannot normalize {name}: zero norm",
            operation="normalize",
            values=vector,
            context={"Norm": norm}
        )
    return vector / norm


def safe_reciprocal(value: float) -> float:
    """
    Scalar pseudo-inverse: ``1 / value``, or 0 when ``value`` is 0.

    Examples:
        >>> from chemosc.utils.matrix_ops import safe_reciprocal
        >>> safe_reciprocal(4.0), safe_reciprocal(0.0)
        (0.25, 0.0)
    """
    if value == 0.0:
        return 0.0
    return 1.0 / value


def score_angles(scores: Matrix, y: Vector) -> Tuple[np.ndarray, float]:
    """
    Angle in degrees between each score column and the response.

    The cosine is clipped to [-1, 1] before ``arccos``.

    Args:
        scores: Score matrix (n_samples x n_components)
        y: Response vector (n_samples,)

    Returns:
        Tuple containing:
            - Per-component angles in degrees
            - Their mean, or NaN when there are no components
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    y_norm = float(np.linalg.norm(y))
    n_components = scores.shape[1]
    angles = np.empty(n_components)
    for i in range(n_components):
        t = scores[:, i]
        cosine = float(t @ y) * safe_reciprocal(float(np.linalg.norm(t)) * y_norm)
        angles[i] = np.degrees(np.arccos(np.clip(cosine, -1.0, 1.0)))
    mean_angle = float(np.mean(angles)) if n_components else float("nan")
    return angles, mean_angle
