"""
Orthogonal Signal Correction Module

This module removes the systematic variation in a measurement matrix that is
orthogonal to a response. Three algorithm variants share one input/output
contract:

Key components:
- WoldOSC: principal-score start, PLS1 weight fit, deflation per component
- SjoblomOSC: direct weight from the orthogonalised score plus a PLS1 refinement
- FearnOSC: one SVD of the response-orthogonal part of X, no deflation
- compute_osc: functional entry point dispatching on the variant name
"""

import logging

# Set up module-level logger
logger = logging.getLogger("chemosc.models.osc")

from .base import OSCModelBase, OSCResult
from .wold import WoldOSC
from .sjoblom import SjoblomOSC
from .fearn import FearnOSC
from .engine import compute_osc, get_osc_model, list_variants

# Define what's available when using "from chemosc.models.osc import *"
__all__ = [
    'OSCModelBase',
    'OSCResult',
    'WoldOSC',
    'SjoblomOSC',
    'FearnOSC',
    'compute_osc',
    'get_osc_model',
    'list_variants'
]

logger.debug("OSC module initialized successfully")
