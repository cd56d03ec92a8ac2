"""
Chemometrics OSC Toolbox Utilities Module

This module provides the linear-algebra helpers used by the orthogonal signal
correction variants.

Key components:
- Pseudo-inverses with degeneracy detection
- Removal of the response-explained part of a score
- Principal-axis scores and PLS1 regression weights
- Loading regressions, normalisation and score angles
"""

import logging

# Set up module-level logger
logger = logging.getLogger("chemosc.utils")

from .matrix_ops import (
    safe_pinv,
    check_response,
    response_projector,
    regress_out,
    first_principal_score,
    pls1_weights,
    regression_loading,
    unit_vector,
    safe_reciprocal,
    score_angles
)

__all__ = [
    'safe_pinv',
    'check_response',
    'response_projector',
    'regress_out',
    'first_principal_score',
    'pls1_weights',
    'regression_loading',
    'unit_vector',
    'safe_reciprocal',
    'score_angles'
]
