'''
Numba-Accelerated Core Functions for Orthogonal Signal Correction

This module provides the small numerical kernels executed inside the
per-component loops of the OSC variants. They are compiled with Numba's
@jit decorator; when JIT compilation is disabled through the
``core.enable_numba`` configuration option the same functions run as plain
Python through their ``py_func`` attribute.

Functions:
    _relative_change_core: Relative Euclidean change between two iterates
    _deflate_core: In-place rank-1 deflation of a working matrix
    _sum_squares_ratio_core: Percentage sum-of-squares ratio of two matrices
    kernel: Select the compiled or interpreted version of a kernel
'''

import logging
from typing import Callable

import numpy as np
from numba import jit

from chemosc.core.config import get_config

# Set up module-level logger
logger = logging.getLogger("chemosc.models.osc._numba_core")


@jit(nopython=True, cache=True)
def _relative_change_core(new: np.ndarray, old: np.ndarray) -> float:
    """
    Numba-accelerated relative change ``||new - old|| / ||new||``.

    Args:
        new: Current iterate
        old: Previous iterate

    Returns:
        Relative change, or infinity when the current iterate is zero
    """
    diff_ss = 0.0
    new_ss = 0.0
    for i in range(new.shape[0]):
        d = new[i] - old[i]
        diff_ss += d * d
        new_ss += new[i] * new[i]
    if new_ss == 0.0:
        return np.inf
    return np.sqrt(diff_ss / new_ss)


@jit(nopython=True, cache=True)
def _deflate_core(X: np.ndarray, t: np.ndarray, p: np.ndarray) -> None:
    """
    Numba-accelerated in-place deflation ``X -= t p'``.

    Args:
        X: Working matrix (n_samples x n_features), modified in place
        t: Score vector (n_samples,)
        p: Loading vector (n_features,)
    """
    n, k = X.shape
    for i in range(n):
        for j in range(k):
            X[i, j] -= t[i] * p[j]


@jit(nopython=True, cache=True)
def _sum_squares_ratio_core(numerator: np.ndarray, denominator: np.ndarray) -> float:
    """
    Numba-accelerated ``100 * sum(numerator**2) / sum(denominator**2)``.

    Args:
        numerator: Matrix whose sum of squares is measured
        denominator: Reference matrix of the same shape

    Returns:
        Percentage ratio, or NaN when the reference sum of squares is zero
    """
    num = 0.0
    den = 0.0
    n, k = numerator.shape
    for i in range(n):
        for j in range(k):
            num += numerator[i, j] * numerator[i, j]
            den += denominator[i, j] * denominator[i, j]
    if den == 0.0:
        return np.nan
    return 100.0 * num / den


def kernel(func: Callable) -> Callable:
    """Return the compiled kernel, or its interpreted version when JIT is disabled."""
    if get_config("core", "enable_numba", True):
        return func
    return func.py_func
