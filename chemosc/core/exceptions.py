'''
Exceptions and warnings raised by the Chemometrics OSC Toolbox.

Each class lists the keyword fields it accepts in ``_fields``. Supplied
fields become attributes and are echoed in a "Context" block of the message,
and errors additionally record the file and line that raised them, so a
failure deep inside a correction run points back at the offending input.

Hierarchy:
    OSCError
        ParameterError       - argument outside its valid domain
        DimensionError       - incompatible array shapes
        NumericError         - numerical failure during computation
            SingularMatrixError - degenerate pseudo-inverse or normalisation
        DataError            - NaN or infinite input values
        ConfigurationError   - invalid configuration setting
        NotFittedError       - model used before fit()
    OSCWarning
        ConvergenceWarning   - inner loop stopped at its iteration bound
        NumericWarning       - numerical issue that does not stop computation
'''

from typing import Any, Dict, Optional, Tuple
import inspect
import warnings
import numpy as np
from pathlib import Path

# Arrays above this many elements are shown by shape only
_MAX_SHOWN_ELEMENTS = 10


def _summarize_values(values: Any) -> Any:
    if isinstance(values, np.ndarray) and values.size > _MAX_SHOWN_ELEMENTS:
        return f"Array with shape {values.shape}"
    return values


def _is_internal(name: str) -> bool:
    return name in ("__init__", "_compose") or name.startswith(("raise_", "warn_"))


def _raising_frame() -> Any:
    """Return the first frame outside the constructor chain."""
    frame = inspect.currentframe()
    try:
        caller = frame.f_back if frame else None
        while caller is not None and _is_internal(caller.f_code.co_name):
            caller = caller.f_back
        return caller
    finally:
        del frame


class _ContextMixin:
    """Shared constructor for errors and warnings carrying named fields.

    ``_fields`` holds ``(attribute, context label)`` pairs; labels listed in
    ``_summarized`` are passed through :func:`_summarize_values` first.
    """

    _fields: Tuple[Tuple[str, str], ...] = ()
    _summarized: Tuple[str, ...] = ()
    _record_location = False

    def _compose(self,
                 message: str,
                 details: Optional[str],
                 context: Optional[Dict[str, Any]],
                 fields: Dict[str, Any]) -> str:
        known = {name for name, _ in self._fields}
        unexpected = set(fields) - known
        if unexpected:
            raise TypeError(
                f"{type(self).__name__} got unexpected field(s): {', '.join(sorted(unexpected))}"
            )

        self.message = message
        self.details = details
        self.context = dict(context or {})
        for name, label in self._fields:
            value = fields.get(name)
            setattr(self, name, value)
            if value is None or (isinstance(value, str) and not value):
                continue
            if label in self._summarized:
                value = _summarize_values(value)
            elif name == "config_file":
                value = str(value)
            self.context[label] = value

        text = message
        if details:
            text += f"\n\nDetails: {details}"
        if self.context:
            lines = "\n".join(f"  {k}: {v}" for k, v in self.context.items())
            text += f"\n\nContext:\n{lines}"
        if self._record_location:
            caller = _raising_frame()
            if caller is not None:
                info = inspect.getframeinfo(caller)
                text += f"\n\nLocation: {Path(info.filename).name}:{info.lineno}"
            del caller
        return text


class OSCError(_ContextMixin, Exception):
    """Base class of every error raised by the toolbox.

    Attributes:
        message: The primary message
        details: Optional longer explanation
        context: Labelled values describing the failure
    """

    _record_location = True

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None,
                 **fields: Any) -> None:
        super().__init__(self._compose(message, details, context, fields))


class ParameterError(OSCError):
    """An argument violates its constraint (``param_name``, ``param_value``, ``constraint``)."""

    _fields = (("param_name", "Parameter"), ("param_value", "Value"),
               ("constraint", "Constraint"))


class DimensionError(OSCError):
    """Arrays are not aligned by row, or an input has the wrong number of axes."""

    _fields = (("array_name", "Array"), ("expected_shape", "Expected Shape"),
               ("actual_shape", "Actual Shape"))


class NumericError(OSCError):
    """A computation failed numerically.

    ``error_type`` names the failure class, for instance ``"singular"``.
    """

    _fields = (("operation", "Operation"), ("values", "Values"),
               ("error_type", "Error Type"))
    _summarized = ("Values",)


class SingularMatrixError(NumericError):
    """A pseudo-inverse or a normalisation degenerated.

    Every score has the response regressed out of it through a generalized
    inverse. A response without variance, a zero-norm weight vector or a
    vanishing score makes that step meaningless, and the whole computation
    stops here rather than filling the result with NaN.
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None,
                 **fields: Any) -> None:
        fields.setdefault("error_type", "singular")
        super().__init__(message, details, context, **fields)


class DataError(OSCError):
    """An input holds NaN or infinite values; ``index`` is the first offender."""

    _fields = (("data_name", "Data"), ("issue", "Issue"), ("index", "Index"))


class ConfigurationError(OSCError):
    """A configuration file or setting could not be used."""

    _fields = (("config_file", "Config File"), ("setting", "Setting"),
               ("value", "Value"), ("issue", "Issue"))


class NotFittedError(OSCError):
    """A model was asked for results before ``fit`` ran."""

    _fields = (("model_type", "Model Type"), ("operation", "Operation"))


class OSCWarning(_ContextMixin, Warning):
    """Base class of every warning issued by the toolbox."""

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None,
                 **fields: Any) -> None:
        super().__init__(self._compose(message, details, context, fields))


class ConvergenceWarning(OSCWarning):
    """An inner loop stopped at its iteration bound.

    Reaching ``max_iter`` is not fatal. The last iterate is kept, extraction
    carries on, and the caller learns which component missed the tolerance.
    """

    _fields = (("iterations", "Iterations"), ("tolerance", "Tolerance"),
               ("change", "Relative Change"))


class NumericWarning(OSCWarning):
    """A numerical oddity that does not stop the computation."""

    _fields = (("operation", "Operation"), ("issue", "Issue"), ("value", "Value"))
    _summarized = ("Value",)


def raise_parameter_error(message: str, **fields: Any) -> None:
    raise ParameterError(message, **fields)


def raise_dimension_error(message: str, **fields: Any) -> None:
    raise DimensionError(message, **fields)


def raise_singular_error(message: str, **fields: Any) -> None:
    raise SingularMatrixError(message, **fields)


def raise_data_error(message: str, **fields: Any) -> None:
    raise DataError(message, **fields)


def raise_not_fitted_error(message: str, **fields: Any) -> None:
    raise NotFittedError(message, **fields)


def warn_convergence(message: str, **fields: Any) -> None:
    """Issue a :class:`ConvergenceWarning` attributed to the caller's caller."""
    warnings.warn(ConvergenceWarning(message, **fields), stacklevel=3)


def warn_numeric(message: str, **fields: Any) -> None:
    """Issue a :class:`NumericWarning` attributed to the caller's caller."""
    warnings.warn(NumericWarning(message, **fields), stacklevel=3)
