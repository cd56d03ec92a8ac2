'''
Functional entry point and variant registry for orthogonal signal correction.
'''

import logging
from typing import Any, Dict, List, Optional, Type, Union

from chemosc.core.config import get_config
from chemosc.core.parameters import resolve_variant
from chemosc.core.types import MatrixLike, OSCVariant, ResponseLike
from chemosc.models.osc.base import OSCModelBase, OSCResult, unsupported_option
from chemosc.models.osc.fearn import FearnOSC
from chemosc.models.osc.sjoblom import SjoblomOSC
from chemosc.models.osc.wold import WoldOSC

# Set up module-level logger
logger = logging.getLogger("chemosc.models.osc.engine")

_MODEL_REGISTRY: Dict[OSCVariant, Type[OSCModelBase]] = {
    OSCVariant.WOLD: WoldOSC,
    OSCVariant.SJOBLOM: SjoblomOSC,
    OSCVariant.FEARN: FearnOSC,
}


def list_variants() -> List[str]:
    """
    List the available algorithm variants.

    Returns:
        List[str]: Variant names accepted by :func:`compute_osc`
    """
    return [variant.value for variant in _MODEL_REGISTRY]


def get_osc_model(variant: Union[str, OSCVariant, None] = None, **kwargs: Any) -> OSCModelBase:
    """
    Create an unfitted model for a variant.

    Args:
        variant: Variant name or member; None uses the configured default
        **kwargs: Constructor arguments of the model class

    Returns:
        OSCModelBase: The model instance

    Raises:
        ParameterError: If the variant is unknown, an option does not apply to
            it, or a constructor argument is out of range
    """
    if variant is None:
        variant = get_config("numerical", "default_variant", OSCVariant.WOLD.value)
    resolved = resolve_variant(variant)

    if resolved is OSCVariant.FEARN and kwargs.get("pls_components") is not None:
        unsupported_option("pls_components", kwargs["pls_components"], resolved)
    if resolved is OSCVariant.FEARN:
        kwargs.pop("pls_components", None)

    return _MODEL_REGISTRY[resolved](**kwargs)


def compute_osc(X: MatrixLike,
                Y: ResponseLike,
                n: Optional[int] = None,
                tol: Optional[float] = None,
                max_iter: Optional[int] = None,
                variant: Union[str, OSCVariant, None] = None,
                pls_components: Optional[int] = None) -> OSCResult:
    """
    Remove the variation in X that is orthogonal to Y.

    Args:
        X: Measurement matrix (n_samples x n_features), array or DataFrame
        Y: Response with one value per sample: 1-D array, single-column
            array, Series or single-column DataFrame
        n: Number of orthogonal components to remove (0 <= n <= n_features)
        tol: Inner-loop tolerance (> 0)
        max_iter: Inner-loop iteration bound (>= 1)
        variant: "wold", "sjoblom" or "fearn"
        pls_components: PLS1 latent-variable cap (Wold and Sjöblom only)

    Returns:
        OSCResult: Correction, weights, scores, loadings, r2 and angle

    Raises:
        DimensionError: If X and Y are not aligned by row or have the wrong number of axes
        ParameterError: If n, tol, max_iter or variant are out of range
        SingularMatrixError: If the response is constant or a pseudo-inverse or
            normalisation degenerates
        DataError: If X or Y contain NaN or infinite values

    Examples:
        >>> import numpy as np
        >>> from chemosc import compute_osc
        >>> rng = np.random.default_rng(1)
        >>> X = rng.standard_normal((10, 5))
        >>> y = X[:, 0] + 0.1 * rng.standard_normal(10)
        >>> result = compute_osc(X, y, n=2, variant="fearn")
        >>> result.weights.shape
        (5, 2)
    """
    model = get_osc_model(
        variant,
        n_components=n,
        tol=tol,
        max_iter=max_iter,
        pls_components=pls_components
    )
    logger.debug(f"compute_osc dispatching to {model!r}")
    return model.fit((X, Y))
