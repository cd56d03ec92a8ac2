# chemosc/core/types.py

"""
Core type annotations and custom types for the Chemometrics OSC Toolbox.

This module defines the type aliases and enumerations shared across the
toolbox so that function signatures document which arrays are matrices,
which are vectors, and which algorithm variants are accepted.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Literal, Protocol, Tuple, TypeVar, Union, runtime_checkable

import numpy as np
import pandas as pd

# Type variables for generic programming
T = TypeVar('T')  # Generic type
R = TypeVar('R')  # Result type
D = TypeVar('D')  # Data type

# NumPy array type aliases
Vector = np.ndarray  # 1D array
Matrix = np.ndarray  # 2D array

# Accepted inputs
MatrixLike = Union[np.ndarray, pd.DataFrame]  # Measurement matrix (samples x channels)
ResponseLike = Union[np.ndarray, pd.Series, pd.DataFrame]  # Response aligned with the rows
OSCData = Tuple[MatrixLike, ResponseLike]

# Specialized array types
WeightMatrix = np.ndarray  # channels x n_components
ScoreMatrix = np.ndarray  # samples x n_components
LoadingMatrix = np.ndarray  # channels x n_components
ProjectionMatrix = np.ndarray  # Symmetric idempotent matrix

# Configuration types
ConfigDict = Dict[str, Any]
ConfigPath = Union[str, Path]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Algorithm variant names
VariantName = Literal["wold", "sjoblom", "fearn"]


class OSCVariant(Enum):
    """Orthogonal signal correction algorithm variants."""
    WOLD = "wold"
    SJOBLOM = "sjoblom"
    FEARN = "fearn"

    @classmethod
    def from_name(cls, name: Union[str, "OSCVariant"]) -> "OSCVariant":
        """Resolve a variant from its name, ignoring case.

        Args:
            name: Variant name ('wold', 'sjoblom'/'sjöblom', 'fearn') or member

        Returns:
            OSCVariant: The matching member

        Raises:
            ValueError: If the name matches no variant
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace("ö", "o")
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown OSC variant: {name!r}")


class InnerLoopState(Enum):
    """Terminal states of a per-component inner loop."""
    RUNNING = "running"
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"


@runtime_checkable
class HasTransform(Protocol):
    """Protocol for fitted filters that can be applied to new data."""

    def transform(self, data: MatrixLike) -> np.ndarray:
        ...


@runtime_checkable
class HasSummary(Protocol):
    """Protocol for objects that render a text summary."""

    def summary(self) -> str:
        ...
