"""
Chemometrics OSC Toolbox Core Module

This module provides the foundation shared by every model in the toolbox.

Key components:
- Base classes for models and results
- Parameter containers with validation
- Custom type definitions and annotations
- Exception hierarchy for error handling
- Validation utilities for input checking
- Configuration management
"""

import logging

# Set up module-level logger
logger = logging.getLogger("chemosc.core")

from .base import ModelBase, ModelResult

from .parameters import OSCParameters, ParameterBase, resolve_variant

from .types import (
    Vector,
    Matrix,
    MatrixLike,
    ResponseLike,
    OSCData,
    OSCVariant,
    InnerLoopState,
    HasTransform,
    HasSummary
)

from .exceptions import (
    OSCError,
    ParameterError,
    DimensionError,
    NumericError,
    SingularMatrixError,
    DataError,
    ConfigurationError,
    NotFittedError,
    OSCWarning,
    ConvergenceWarning,
    NumericWarning
)

from .validation import (
    validate_matrix_shape,
    validate_vector,
    validate_parameter_bounds,
    validate_numeric_array,
    validate_compatible_shapes,
    validate_osc_inputs,
    validate_input_type
)

from .config import (
    get_config,
    set_config,
    reset_config,
    save_config,
    get_config_manager
)

__all__ = [
    # Base classes
    'ModelBase',
    'ModelResult',

    # Parameters
    'OSCParameters',
    'ParameterBase',
    'resolve_variant',

    # Types
    'Vector',
    'Matrix',
    'MatrixLike',
    'ResponseLike',
    'OSCData',
    'OSCVariant',
    'InnerLoopState',
    'HasTransform',
    'HasSummary',

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
    'NumericWarning',

    # Validation
    'validate_matrix_shape',
    'validate_vector',
    'validate_parameter_bounds',
    'validate_numeric_array',
    'validate_compatible_shapes',
    'validate_osc_inputs',
    'validate_input_type',

    # Configuration
    'get_config',
    'set_config',
    'reset_config',
    'save_config',
    'get_config_manager'
]
