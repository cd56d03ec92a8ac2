# chemosc/core/parameters.py

"""
Parameter containers for the Chemometrics OSC Toolbox.

Every orthogonal signal correction run is driven by the same small set of
settings: how many orthogonal components to remove and when the per-component
inner loop stops. They are gathered in a dataclass so that they can be
validated once, exported with the results and copied between models.
"""

from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Dict, Optional, TypeVar

from chemosc.core.exceptions import raise_parameter_error
from chemosc.core.types import OSCVariant
from chemosc.core.validation import validate_integer, validate_parameter_bounds

P = TypeVar('P', bound='ParameterBase')


class ParameterBase:
    """Dictionary export and copying for parameter containers."""

    def validate(self) -> None:
        """Raise ParameterError when a field breaks its constraint."""

    def to_dict(self) -> Dict[str, Any]:
        if is_dataclass(self):
            return asdict(self)
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}

    def copy(self: P) -> P:
        return type(self)(**self.to_dict())


@dataclass
class OSCParameters(ParameterBase):
    """Settings of an orthogonal signal correction run.

    Attributes:
        n_components: Number of orthogonal components to remove (>= 0)
        tol: Relative-change tolerance of the inner loop (> 0)
        max_iter: Iteration bound of the inner loop (>= 1)
        pls_components: Latent-variable cap of the PLS1 weight fits, or None
            for the full rank of the working matrix
    """

    n_components: int = 1
    tol: float = 1e-6
    max_iter: int = 50
    pls_components: Optional[int] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Coerce integer fields and range-check every setting."""
        self.n_components = validate_integer(self.n_components, "n_components")
        validate_parameter_bounds(self.n_components, "n_components", lower_bound=0)

        if isinstance(self.tol, bool):
            raise_parameter_error(
                "Parameter tol must be a number, got bool",
                param_name="tol",
                param_value=self.tol,
                constraint="> 0"
            )
        try:
            self.tol = float(self.tol)
        except (TypeError, ValueError):
            raise_parameter_error(
                f"Parameter tol must be a number, got {type(self.tol).__name__}",
                param_name="tol",
                param_value=self.tol,
                constraint="> 0"
            )
        validate_parameter_bounds(self.tol, "tol", lower_bound=0.0, lower_inclusive=False)

        self.max_iter = validate_integer(self.max_iter, "max_iter")
        validate_parameter_bounds(self.max_iter, "max_iter", lower_bound=1)

        if self.pls_components is not None:
            self.pls_components = validate_integer(self.pls_components, "pls_components")
            validate_parameter_bounds(self.pls_components, "pls_components", lower_bound=1)

    def check_against(self, n_samples: int, n_features: int) -> None:
        """Validate the component count against the data dimensions.

        Args:
            n_samples: Number of rows of the measurement matrix
            n_features: Number of columns of the measurement matrix

        Raises:
            ParameterError: If more components are requested than there are columns
        """
        if self.n_components > n_features:
            raise_parameter_error(
                f"n_components ({self.n_components}) cannot exceed the number of "
                f"columns of X ({n_features})",
                param_name="n_components",
                param_value=self.n_components,
                constraint=f"0 <= n_components <= {n_features}",
                context={"Samples": n_samples}
            )


def resolve_variant(variant: Any) -> OSCVariant:
    """Resolve a variant name, raising ParameterError when it is unknown.

    Args:
        variant: Variant name or OSCVariant member

    Returns:
        OSCVariant: The resolved variant
    """
    try:
        return OSCVariant.from_name(variant)
    except ValueError:
        raise_parameter_error(
            f"Unknown OSC variant: {variant!r}",
            param_name="variant",
            param_value=variant,
            constraint=f"one of {', '.join(v.value for v in OSCVariant)}"
        )

