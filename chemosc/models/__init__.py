# chemosc/models/__init__.py
"""
Chemometrics OSC Toolbox Models Module

This module collects the preprocessing models of the toolbox. Orthogonal
signal correction lives in the ``osc`` subpackage.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("chemosc.models")

from . import osc
from .osc import (
    OSCModelBase,
    OSCResult,
    WoldOSC,
    SjoblomOSC,
    FearnOSC,
    compute_osc,
    get_osc_model,
    list_variants
)

__all__ = [
    'osc',
    'OSCModelBase',
    'OSCResult',
    'WoldOSC',
    'SjoblomOSC',
    'FearnOSC',
    'compute_osc',
    'get_osc_model',
    'list_variants'
]
