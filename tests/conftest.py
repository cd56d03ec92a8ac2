'''
Pytest configuration and fixtures for the Chemometrics OSC Toolbox test suite.

This module provides the data generators shared by the tests: a seeded random
generator, the small calibration scenario used throughout, and synthetic
spectra whose baseline drift is unrelated to the response.
'''

from typing import Tuple

import numpy as np
import pandas as pd
import pytest

from chemosc.core.config import reset_config


# ---- Basic Data Generation Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def osc_scenario(rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """10 x 5 random matrix with a response driven by its first column."""
    X = rng.standard_normal((10, 5))
    y = X[:, 0] + 0.1 * rng.standard_normal(10)
    return X, y


@pytest.fixture
def spectra(rng: np.random.Generator) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Synthetic spectra: one analyte peak scaled by the concentration plus a
    sample-specific baseline offset and slope that do not depend on it.
    """
    n_samples, n_channels = 30, 60
    wavelengths = np.linspace(1100.0, 2500.0, n_channels)
    concentration = rng.uniform(0.5, 2.0, n_samples)

    peak = np.exp(-0.5 * ((wavelengths - 1700.0) / 60.0) ** 2)
    offset = rng.normal(0.0, 1.0, n_samples)
    slope = rng.normal(0.0, 0.5, n_samples)
    ramp = (wavelengths - wavelengths.mean()) / np.ptp(wavelengths)

    data = (
        np.outer(concentration, peak)
        + offset[:, None]
        + np.outer(slope, ramp)
        + 0.01 * rng.standard_normal((n_samples, n_channels))
    )
    index = pd.Index([f"sample_{i}" for i in range(n_samples)], name="sample")
    columns = pd.Index(np.round(wavelengths, 1), name="wavelength")
    return pd.DataFrame(data, index=index, columns=columns), pd.Series(concentration, index=index)


@pytest.fixture(autouse=True)
def default_configuration():
    """Restore the default configuration after every test."""
    yield
    reset_config()
