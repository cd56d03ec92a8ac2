# chemosc/core/validation.py

"""
Input checking for orthogonal signal correction.

Every fit passes its measurement matrix and response through
:func:`validate_osc_inputs` before any arithmetic happens. The individual
checks are exposed as well so that models and helpers can reuse them. Each
failure raises one of the toolbox exceptions carrying the offending name,
value or shape.
"""

import functools
import inspect
import operator
from typing import Any, Callable, List, Optional, Tuple, Type, TypeVar, Union, cast

import numpy as np
import pandas as pd

from chemosc.core.exceptions import (
    raise_dimension_error, raise_parameter_error, raise_data_error
)
from chemosc.core.types import Matrix, MatrixLike, ResponseLike, Vector

F = TypeVar('F', bound=Callable[..., Any])

# (comparison that must hold, symbol) for each bound flavour
_LOWER_CHECKS = {True: (operator.ge, ">="), False: (operator.gt, ">")}
_UPPER_CHECKS = {True: (operator.le, "<="), False: (operator.lt, "<")}


def _require_ndarray(value: Any, name: str) -> None:
    if not isinstance(value, np.ndarray):
        raise TypeError(f"{name} should be an ndarray, received {type(value).__name__}")


def as_float_array(data: Union[MatrixLike, ResponseLike], name: str = "array") -> np.ndarray:
    """Return ``data`` as a float64 ndarray, unwrapping pandas containers.

    Raises:
        TypeError: If ``data`` is neither an ndarray nor a pandas object, or
            holds values that cannot be cast to float
    """
    if isinstance(data, (pd.DataFrame, pd.Series)):
        data = data.to_numpy()
    if not isinstance(data, np.ndarray):
        raise TypeError(
            f"{name} must be a NumPy array or pandas object, got {type(data).__name__}"
        )
    try:
        return np.asarray(data, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise TypeError(f"{name} must contain numeric values: {e}") from e


def validate_matrix_shape(
    matrix: np.ndarray,
    expected_rows: Optional[int] = None,
    expected_cols: Optional[int] = None,
    matrix_name: str = "matrix",
    min_rows: Optional[int] = None
) -> np.ndarray:
    """Check that ``matrix`` is two-dimensional with the requested extent.

    Any of ``expected_rows``, ``expected_cols`` and ``min_rows`` may be left
    as None to skip that check. The matrix is returned unchanged.

    Raises:
        TypeError: If ``matrix`` is not an ndarray
        DimensionError: If the number of axes or the extent is wrong
    """
    _require_ndarray(matrix, matrix_name)

    if matrix.ndim != 2:
        raise_dimension_error(
            f"{matrix_name} needs 2 axes (samples x features) but has {matrix.ndim}",
            array_name=matrix_name,
            expected_shape="(n_samples, n_features)",
            actual_shape=matrix.shape
        )

    rows, cols = matrix.shape
    wanted = (expected_rows if expected_rows is not None else "any",
              expected_cols if expected_cols is not None else "any")
    if (expected_rows is not None and rows != expected_rows) or \
            (expected_cols is not None and cols != expected_cols):
        raise_dimension_error(
            f"{matrix_name} is {rows} x {cols}, wanted {wanted[0]} x {wanted[1]}",
            array_name=matrix_name,
            expected_shape=f"({wanted[0]}, {wanted[1]})",
            actual_shape=matrix.shape
        )

    if min_rows is not None and rows < min_rows:
        raise_dimension_error(
            f"{matrix_name} must have at least {min_rows} rows, got {rows}",
            array_name=matrix_name,
            expected_shape=f"(>= {min_rows}, any)",
            actual_shape=matrix.shape
        )

    return matrix


def validate_vector(
    vector: np.ndarray,
    expected_length: Optional[int] = None,
    vector_name: str = "vector"
) -> np.ndarray:
    """Return ``vector`` as a 1-D array.

    A single row or a single column stored in a 2-D array is accepted and
    flattened; anything wider raises.

    Raises:
        TypeError: If ``vector`` is not an ndarray
        DimensionError: If it is not a vector or its length differs from
            ``expected_length``
    """
    _require_ndarray(vector, vector_name)

    if vector.ndim == 2 and 1 in vector.shape:
        vector = vector.ravel()
    if vector.ndim != 1:
        raise_dimension_error(
            f"{vector_name} must hold a single column of values, got shape {vector.shape}",
            array_name=vector_name,
            expected_shape="1D vector",
            actual_shape=vector.shape
        )

    if expected_length is not None and vector.shape[0] != expected_length:
        raise_dimension_error(
            f"{vector_name} holds {vector.shape[0]} values where {expected_length} are needed",
            array_name=vector_name,
            expected_shape=f"vector of length {expected_length}",
            actual_shape=vector.shape
        )

    return vector


def validate_parameter_bounds(
    value: float,
    param_name: str,
    lower_bound: Optional[float] = None,
    upper_bound: Optional[float] = None,
    lower_inclusive: bool = True,
    upper_inclusive: bool = True
) -> float:
    """Check that a finite scalar lies inside the given bounds.

    A bound of None is open. Non-finite values are always rejected.

    Raises:
        ParameterError: If ``value`` is non-finite or out of bounds
    """
    if not np.isfinite(value):
        raise_parameter_error(
            f"{param_name} has to be finite, got {value}",
            param_name=param_name,
            param_value=value,
            constraint="finite"
        )

    limits = []
    if lower_bound is not None:
        limits.append((_LOWER_CHECKS[lower_inclusive], lower_bound))
    if upper_bound is not None:
        limits.append((_UPPER_CHECKS[upper_inclusive], upper_bound))

    for (holds, symbol), bound in limits:
        if not holds(value, bound):
            raise_parameter_error(
                f"{param_name} has to be {symbol} {bound}, got {value}",
                param_name=param_name,
                param_value=value,
                constraint=f"{symbol} {bound}"
            )

    return value


def validate_integer(value: Any, param_name: str) -> int:
    """Return ``value`` as an int; booleans and floats are refused."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise_parameter_error(
            f"{param_name} has to be an integer, got {type(value).__name__}",
            param_name=param_name,
            param_value=value,
            constraint="integer"
        )
    return int(value)


def validate_numeric_array(
    array: np.ndarray,
    array_name: str = "array",
    allow_nan: bool = False,
    allow_inf: bool = False
) -> np.ndarray:
    """Reject NaN and infinite entries unless explicitly allowed.

    The raised error records the index of the first offending entry.

    Raises:
        TypeError: If ``array`` is not an ndarray
        DataError: If a disallowed value is present
    """
    _require_ndarray(array, array_name)

    screens = []
    if not allow_nan:
        screens.append((np.isnan, "NaN"))
    if not allow_inf:
        screens.append((np.isinf, "infinite"))

    for detect, label in screens:
        hits = np.argwhere(detect(array))
        if hits.size:
            raise_data_error(
                f"{array_name} has {label} entries",
                data_name=array_name,
                issue=f"contains {label} values",
                index=tuple(int(i) for i in hits[0])
            )

    return array


def validate_compatible_shapes(
    arrays: List[np.ndarray],
    array_names: List[str],
    axis: int = 0
) -> None:
    """Require every array to match the first one along ``axis``.

    Raises:
        ValueError: If the names do not pair up with the arrays
        DimensionError: On the first array whose extent differs
    """
    if len(arrays) != len(array_names):
        raise ValueError("one name is needed per array")
    if not arrays:
        return

    reference, ref_name = arrays[0], array_names[0]
    extent = reference.shape[axis]
    for array, name in zip(arrays[1:], array_names[1:]):
        if array.shape[axis] != extent:
            raise_dimension_error(
                f"{name} spans {array.shape[axis]} along axis {axis} while "
                f"{ref_name} spans {extent}",
                array_name=name,
                expected_shape=f"compatible with {ref_name} (dim {axis} = {extent})",
                actual_shape=array.shape
            )


def validate_osc_inputs(
    X: MatrixLike,
    Y: ResponseLike
) -> Tuple[Matrix, Vector]:
    """Validate and align a measurement matrix and its response.

    Args:
        X: Measurement matrix (samples x channels)
        Y: Response, one value per sample

    Returns:
        Tuple containing:
            - X as a float64 matrix
            - Y as a float64 column (n_samples x 1)

    Raises:
        TypeError: If inputs are not array-like
        DimensionError: If shapes are incompatible or X has fewer than 2 rows
        DataError: If inputs contain NaN or infinite values
    """
    X_array = validate_matrix_shape(as_float_array(X, "X"), matrix_name="X", min_rows=2)
    Y_array = validate_vector(as_float_array(Y, "Y"), vector_name="Y")
    validate_compatible_shapes([X_array, Y_array], ["X", "Y"], axis=0)
    validate_numeric_array(X_array, "X")
    validate_numeric_array(Y_array, "Y")
    return X_array, Y_array.reshape(-1, 1)


def validate_input_type(
    param_index: int,
    expected_type: Union[Type, Tuple[Type, ...]],
    param_name: Optional[str] = None
) -> Callable[[F], F]:
    """Build a decorator that type-checks one argument of the wrapped callable.

    The argument is located by position, or by keyword when it was passed that
    way. None and omitted arguments are let through.
    """
    allowed = expected_type if isinstance(expected_type, tuple) else (expected_type,)
    allowed_names = " or ".join(t.__name__ for t in allowed)

    def decorator(func: F) -> F:
        names = list(inspect.signature(func).parameters)
        declared = names[param_index] if param_index < len(names) else None
        label = param_name or declared or f"parameter_{param_index}"

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if param_index < len(args):
                value = args[param_index]
            elif declared is not None and declared in kwargs:
                value = kwargs[declared]
            else:
                value = None

            if value is not None and not isinstance(value, allowed):
                raise TypeError(
                    f"{label} should be {allowed_names}, received {type(value).__name__}"
                )
            return func(*args, **kwargs)

        return cast(F, wrapper)

    return decorator
