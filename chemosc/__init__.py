# chemosc/__init__.py
"""
Chemometrics OSC Toolbox - Orthogonal Signal Correction for Python

Orthogonal signal correction (OSC) removes the systematic variation of a
measurement matrix, typically a set of spectra, that is unrelated to the
response of interest before a calibration model is built. The toolbox
provides:
- Wold, Sjöblom and Fearn OSC behind a single ``compute_osc`` entry point
- Model classes that learn the filter once and apply it to new measurements
- Layered configuration of the numerical defaults
"""

import logging
from typing import List, Union

# Handlers and level are configured by initialize_config() below
logger = logging.getLogger("chemosc")

from .version import __version__, __author__, __license__, __title__, __description__

from . import core
from . import models
from . import utils

from .core.config import initialize_config, set_config
from .core.exceptions import (
    OSCError,
    ParameterError,
    DimensionError,
    NumericError,
    SingularMatrixError,
    DataError,
    ConfigurationError,
    NotFittedError,
    OSCWarning,
    ConvergenceWarning
)
from .models.osc import (
    OSCModelBase,
    OSCResult,
    WoldOSC,
    SjoblomOSC,
    FearnOSC,
    compute_osc,
    get_osc_model,
    list_variants
)

# Public API functions

def get_version() -> str:
    """
    Return the version of the toolbox.

    Returns:
        str: Version string in format MAJOR.MINOR.PATCH
    """
    return __version__


def set_log_level(level: Union[str, int]) -> None:
    """
    Set the logging level for the toolbox.

    Args:
        level: Logging level, either as string ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
              or as an integer constant from the logging module
    """
    if isinstance(level, int):
        level = logging.getLevelName(level)
    set_config("logging", "log_level", level.upper())
    logger.info(f"Log level set to {level.upper()}")


def enable_numba(enabled: bool = True) -> None:
    """
    Enable or disable the JIT-compiled inner-loop kernels.

    Args:
        enabled: Whether to use Numba-compiled kernels
    """
    set_config("core", "enable_numba", enabled)
    logger.info(f"Numba acceleration {'enabled' if enabled else 'disabled'}")


def list_available_models() -> List[str]:
    """
    List the model classes of the toolbox.

    Returns:
        List of model class names
    """
    return [get_osc_model(variant).__class__.__name__ for variant in list_variants()]


# Initialize the package
initialize_config()

# Define what's available when using "from chemosc import *"
__all__ = [
    # Subpackages
    'core',
    'models',
    'utils',

    # OSC
    'compute_osc',
    'get_osc_model',
    'list_variants',
    'OSCModelBase',
    'OSCResult',
    'WoldOSC',
    'SjoblomOSC',
    'FearnOSC',

    # Exceptions
    'OSCError',
    'ParameterError',
    'DimensionError',
    'NumericError',
    'SingularMatrixError',
    'DataError',
    'ConfigurationError',
    'NotFittedError',
    'OSCWarning',
    'ConvergenceWarning',

    # Public functions
    'get_version',
    'set_log_level',
    'enable_numba',
    'list_available_models',

    # Version info
    '__version__',
    '__author__',
    '__license__'
]

logger.debug(f"Chemometrics OSC Toolbox v{__version__} initialized successfully")
