# tests/test_osc.py
"""
Tests for orthogonal signal correction.

This module checks the shared input/output contract of the three variants,
the properties specific to each algorithm (orthogonality of the scores to the
response, the single decomposition of Fearn's method, deflation of the
working matrix), the boundary and degenerate cases, and the model interface
used to apply a learned filter to new measurements.
"""

import logging

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from pandas.testing import assert_frame_equal, assert_index_equal
from hypothesis import given, settings, strategies as st

import chemosc.models.osc.fearn as fearn_module
from chemosc import (
    FearnOSC, OSCResult, SjoblomOSC, WoldOSC, compute_osc, get_osc_model, list_variants
)
from chemosc.core.config import set_config
from chemosc.core.exceptions import (
    ConvergenceWarning, DataError, DimensionError, NotFittedError, ParameterError,
    SingularMatrixError
)
from chemosc.core.types import HasSummary, HasTransform

VARIANTS = ["wold", "sjoblom", "fearn"]


# ---- Shared contract ----

@pytest.mark.parametrize("variant", VARIANTS)
class TestSharedContract:
    """Properties every variant must satisfy."""

    def test_output_shapes(self, osc_scenario, variant):
        X, y = osc_scenario
        result = compute_osc(X, y, n=2, tol=1e-6, max_iter=50, variant=variant)

        assert isinstance(result, OSCResult)
        assert result.correction.shape == X.shape
        assert result.weights.shape == (5, 2)
        assert result.scores.shape == (10, 2)
        assert result.loadings.shape == (5, 2)
        assert result.component_iterations.shape == (2,)
        assert result.component_converged.shape == (2,)
        assert result.n_components == 2
        assert result.n_samples == 10
        assert result.n_features == 5
        assert result.variant == variant

    def test_scenario_removes_orthogonal_variation(self, osc_scenario, variant):
        X, y = osc_scenario
        result = compute_osc(X, y, n=2, tol=1e-6, max_iter=50, variant=variant)

        assert 0.0 <= result.r2 < 100.0
        assert abs(result.angle - 90.0) < 3.0

    def test_correction_formula(self, osc_scenario, variant):
        X, y = osc_scenario
        result = compute_osc(X, y, n=2, variant=variant)

        expected = X - X @ result.weights @ result.loadings.T
        assert_allclose(result.correction, expected)
        assert_allclose(
            result.r2, 100.0 * np.sum(result.correction ** 2) / np.sum(X ** 2)
        )

    def test_weights_have_unit_norm(self, osc_scenario, variant):
        X, y = osc_scenario
        result = compute_osc(X, y, n=2, variant=variant)

        assert_allclose(np.linalg.norm(result.weights, axis=0), np.ones(2))

    def test_identical_inputs_give_identical_outputs(self, osc_scenario, variant):
        X, y = osc_scenario
        first = compute_osc(X, y, n=2, variant=variant)
        second = compute_osc(X, y, n=2, variant=variant)

        assert_array_equal(first.correction, second.correction)
        assert_array_equal(first.weights, second.weights)
        assert_array_equal(first.scores, second.scores)
        assert_array_equal(first.loadings, second.loadings)
        assert first.r2 == second.r2

    def test_inputs_are_not_modified(self, osc_scenario, variant):
        X, y = osc_scenario
        X_before, y_before = X.copy(), y.copy()
        compute_osc(X, y, n=2, variant=variant)

        assert_array_equal(X, X_before)
        assert_array_equal(y, y_before)

    def test_zero_components(self, osc_scenario, variant):
        X, y = osc_scenario
        result = compute_osc(X, y, n=0, variant=variant)

        assert_array_equal(result.correction, X)
        assert result.weights.shape == (5, 0)
        assert result.scores.shape == (10, 0)
        assert result.loadings.shape == (5, 0)
        assert result.r2 == 100.0
        assert np.isnan(result.angle)
        assert result.convergence
        assert result.iterations == 0

    def test_constant_response_is_singular(self, osc_scenario, variant):
        X, _ = osc_scenario
        with pytest.raises(SingularMatrixError):
            compute_osc(X, np.full(10, 3.0), n=1, variant=variant)
        with pytest.raises(SingularMatrixError):
            compute_osc(X, np.zeros(10), n=1, variant=variant)

    def test_response_forms_are_equivalent(self, osc_scenario, variant):
        X, y = osc_scenario
        expected = compute_osc(X, y, n=1, variant=variant).correction

        for response in (y.reshape(-1, 1), pd.Series(y), pd.DataFrame({"y": y})):
            result = compute_osc(X, response, n=1, variant=variant)
            assert_allclose(result.correction, expected)

    def test_transform_reproduces_correction(self, osc_scenario, variant):
        X, y = osc_scenario
        model = get_osc_model(variant, n_components=2)
        result = model.fit((X, y))

        assert_allclose(model.transform(X), result.correction)
        assert_allclose(model.fit_transform((X, y)), result.correction)

    def test_transform_new_samples(self, osc_scenario, rng, variant):
        X, y = osc_scenario
        model = get_osc_model(variant, n_components=2)
        model.fit((X, y))

        X_new = rng.standard_normal((3, 5))
        corrected = model.transform(X_new)
        assert corrected.shape == (3, 5)
        assert_allclose(corrected, X_new - X_new @ model.results.weights @ model.results.loadings.T)

        with pytest.raises(DimensionError):
            model.transform(rng.standard_normal((3, 4)))


# ---- Variant-specific behaviour ----

class TestWold:
    """Tests for Wold's algorithm."""

    def test_scores_orthogonal_to_response(self, osc_scenario):
        X, y = osc_scenario
        result = WoldOSC(n_components=2).fit((X, y))

        assert result.convergence
        assert_allclose(result.component_angles, [90.0, 90.0], atol=1e-3)

    def test_deflated_scores_are_orthogonal(self, osc_scenario):
        X, y = osc_scenario
        result = WoldOSC(n_components=2).fit((X, y))

        t1, t2 = result.scores.T
        assert abs(t1 @ t2) < 1e-8 * np.linalg.norm(t1) * np.linalg.norm(t2)

    def test_single_latent_variable(self, osc_scenario):
        X, y = osc_scenario
        result = WoldOSC(n_components=2, pls_components=1, max_iter=200).fit((X, y))

        assert result.pls_components == 1
        assert result.correction.shape == X.shape
        assert np.all(np.isfinite(result.correction))


class TestSjoblom:
    """Tests for Sjöblom's algorithm."""

    def test_final_scores_orthogonal_to_response(self, osc_scenario):
        X, y = osc_scenario
        result = SjoblomOSC(n_components=2, max_iter=500).fit((X, y))

        assert_allclose(result.scores.T @ y, np.zeros(2), atol=1e-8)
        assert_allclose(result.component_angles, [90.0, 90.0], atol=1e-6)

    def test_variant_name_variants(self, osc_scenario):
        X, y = osc_scenario
        for name in ("sjoblom", "Sjöblom", "SJOBLOM"):
            assert compute_osc(X, y, n=1, variant=name).variant == "sjoblom"


class TestFearn:
    """Tests for Fearn's algorithm."""

    def test_decomposition_computed_once(self, osc_scenario, monkeypatch):
        X, y = osc_scenario
        calls = []
        original = fearn_module._decompose_residual

        def counting(Z):
            calls.append(Z.shape)
            return original(Z)

        monkeypatch.setattr(fearn_module, "_decompose_residual", counting)
        for n in (1, 2, 4):
            calls.clear()
            compute_osc(X, y, n=n, variant="fearn")
            assert calls == [(10, 5)]

    def test_changing_n_only_adds_components(self, osc_scenario):
        X, y = osc_scenario
        one = compute_osc(X, y, n=1, variant="fearn")
        three = compute_osc(X, y, n=3, variant="fearn")

        assert_allclose(three.weights[:, :1], one.weights)
        assert_allclose(three.scores[:, :1], one.scores)
        assert_allclose(three.loadings[:, :1], one.loadings)

    def test_weights_orthonormal_and_orthogonal_to_response(self, osc_scenario):
        X, y = osc_scenario
        result = compute_osc(X, y, n=3, variant="fearn")

        assert result.convergence
        assert_allclose(result.weights.T @ result.weights, np.eye(3), atol=1e-10)
        assert_allclose(result.weights.T @ (X.T @ y), np.zeros(3), atol=1e-10)
        assert_allclose(result.component_angles, np.full(3, 90.0), atol=1e-6)

    def test_components_beyond_rank_are_singular(self, osc_scenario):
        X, y = osc_scenario
        # X M has rank at most n_features - 1
        with pytest.raises(SingularMatrixError):
            compute_osc(X, y, n=5, variant="fearn")

    def test_pls_components_not_supported(self, osc_scenario):
        X, y = osc_scenario
        with pytest.raises(ParameterError):
            compute_osc(X, y, n=1, variant="fearn", pls_components=2)
        with pytest.raises(TypeError):
            FearnOSC(n_components=1, pls_components=2)


# ---- Non-convergence ----

@pytest.mark.parametrize("variant", ["wold", "sjoblom"])
def test_iteration_bound_reported(osc_scenario, caplog, variant):
    X, y = osc_scenario
    with caplog.at_level(logging.WARNING, logger="chemosc"):
        with pytest.warns(ConvergenceWarning):
            result = compute_osc(X, y, n=2, tol=1e-15, max_iter=1, variant=variant)

    assert not result.convergence
    assert_array_equal(result.component_iterations, [1, 1])
    assert_array_equal(result.component_converged, [False, False])
    assert result.iterations == 2
    assert "did not converge" in caplog.text
    assert result.correction.shape == X.shape


# ---- Input validation ----

class TestValidation:
    """Tests for rejected inputs."""

    def test_row_mismatch(self, osc_scenario):
        X, y = osc_scenario
        with pytest.raises(DimensionError):
            compute_osc(X, y[:9], n=1)

    def test_wrong_number_of_axes(self, osc_scenario):
        X, y = osc_scenario
        with pytest.raises(DimensionError):
            compute_osc(X[:, 0], y, n=1)
        with pytest.raises(DimensionError):
            compute_osc(X[:, :, None], y, n=1)
        with pytest.raises(DimensionError):
            compute_osc(X, np.column_stack([y, y]), n=1)

    def test_single_sample(self, osc_scenario):
        X, y = osc_scenario
        with pytest.raises(DimensionError):
            compute_osc(X[:1], y[:1], n=1)

    @pytest.mark.parametrize("kwargs", [
        {"n": -1},
        {"n": 6},
        {"n": 1.5},
        {"n": True},
        {"tol": 0.0},
        {"tol": -1e-3},
        {"tol": float("nan")},
        {"max_iter": 0},
        {"max_iter": 2.0},
        {"variant": "pca"},
        {"n": 1, "pls_components": 0},
    ])
    def test_invalid_parameters(self, osc_scenario, kwargs):
        X, y = osc_scenario
        with pytest.raises(ParameterError):
            compute_osc(X, y, **kwargs)

    def test_invalid_values(self, osc_scenario):
        X, y = osc_scenario
        X_nan = X.copy()
        X_nan[3, 2] = np.nan
        with pytest.raises(DataError):
            compute_osc(X_nan, y, n=1)

        y_inf = y.copy()
        y_inf[0] = np.inf
        with pytest.raises(DataError):
            compute_osc(X, y_inf, n=1)

    def test_non_array_input(self, osc_scenario):
        X, y = osc_scenario
        with pytest.raises(TypeError):
            compute_osc(X.tolist(), y, n=1)

    def test_unfitted_model(self, osc_scenario):
        X, _ = osc_scenario
        model = WoldOSC(n_components=1)
        assert not model.fitted
        with pytest.raises(NotFittedError):
            model.transform(X)
        with pytest.raises(NotFittedError):
            model.results

    def test_fit_requires_pair(self, osc_scenario):
        X, _ = osc_scenario
        with pytest.raises(TypeError):
            WoldOSC().fit(X)


# ---- Labelled data and result presentation ----

class TestResultPresentation:
    """Tests for pandas inputs, summaries and exports."""

    def test_spectra_baseline_removed(self, spectra):
        X, y = spectra
        result = compute_osc(X, y, n=1, variant="wold")

        assert result.r2 < 100.0
        assert abs(result.angle - 90.0) < 1.0

    def test_to_frame_keeps_labels(self, spectra):
        X, y = spectra
        result = compute_osc(X, y, n=2, variant="fearn")

        expected = pd.DataFrame(result.correction, index=X.index, columns=X.columns)
        assert_frame_equal(result.to_frame(), expected)

        weights = result.to_frame("weights")
        assert_index_equal(weights.index, X.columns)
        assert list(weights.columns) == ["OSC1", "OSC2"]

        scores = result.to_frame("scores")
        assert_index_equal(scores.index, X.index)

    def test_to_frame_invalid_kind(self, osc_scenario):
        X, y = osc_scenario
        result = compute_osc(X, y, n=1)
        with pytest.raises(ValueError):
            result.to_frame("residuals")
        with pytest.raises(TypeError):
            result.to_frame(3)

    def test_to_frame_without_labels(self, osc_scenario):
        X, y = osc_scenario
        frame = compute_osc(X, y, n=1).to_frame()
        assert frame.shape == (10, 5)
        assert list(frame.index) == list(range(10))

    def test_summary(self, osc_scenario):
        X, y = osc_scenario
        summary = compute_osc(X, y, n=2, variant="wold").summary()

        assert "Model: Wold OSC" in summary
        assert "Variant: wold" in summary
        assert "Components removed: 2" in summary
        assert "Retained sum of squares" in summary

    def test_to_dict(self, osc_scenario):
        X, y = osc_scenario
        result = compute_osc(X, y, n=1, variant="sjoblom")
        exported = result.to_dict()

        assert exported["model_name"] == "Sjöblom OSC"
        assert exported["variant"] == "sjoblom"
        assert exported["n_components"] == 1
        assert_array_equal(exported["correction"], result.correction)

    def test_protocols(self, osc_scenario):
        X, y = osc_scenario
        model = get_osc_model("fearn", n_components=1)
        result = model.fit((X, y))

        assert isinstance(model, HasTransform)
        assert isinstance(result, HasSummary)
        assert not isinstance(result, HasTransform)


# ---- Registry and configuration defaults ----

def test_list_variants():
    assert list_variants() == ["wold", "sjoblom", "fearn"]


def test_get_osc_model_classes():
    assert isinstance(get_osc_model("wold"), WoldOSC)
    assert isinstance(get_osc_model("sjoblom"), SjoblomOSC)
    assert isinstance(get_osc_model("fearn"), FearnOSC)


def test_defaults_come_from_configuration(osc_scenario):
    X, y = osc_scenario
    set_config("numerical", "default_variant", "fearn")
    set_config("numerical", "default_n_components", 2)
    set_config("numerical", "default_max_iter", 7)

    result = compute_osc(X, y)
    assert result.variant == "fearn"
    assert result.n_components == 2
    assert result.max_iter == 7
    assert WoldOSC().params.max_iter == 7


def test_interpreted_kernels_match_compiled(osc_scenario):
    X, y = osc_scenario
    compiled = compute_osc(X, y, n=2, variant="wold")
    set_config("core", "enable_numba", False)
    interpreted = compute_osc(X, y, n=2, variant="wold")

    assert_allclose(interpreted.correction, compiled.correction)
    assert_allclose(interpreted.r2, compiled.r2)


# ---- Property-based tests ----

@st.composite
def calibration_data(draw):
    n_features = draw(st.integers(min_value=2, max_value=5))
    n_samples = draw(st.integers(min_value=n_features + 2, max_value=12))
    n_components = draw(st.integers(min_value=0, max_value=n_features - 1))
    seed = draw(st.integers(min_value=0, max_value=2 ** 32 - 1))
    generator = np.random.default_rng(seed)
    X = generator.standard_normal((n_samples, n_features))
    y = X[:, 0] + 0.5 * generator.standard_normal(n_samples)
    return X, y, n_components


@given(data=calibration_data(), variant=st.sampled_from(VARIANTS))
@settings(max_examples=25, deadline=None)
def test_correction_properties(data, variant):
    """Correction keeps the shape of X and matches the learned filter."""
    X, y, n = data
    model = get_osc_model(variant, n_components=n, max_iter=200)
    result = model.fit((X, y))

    assert result.correction.shape == X.shape
    assert np.all(np.isfinite(result.correction))
    assert result.r2 >= 0.0
    assert_allclose(model.transform(X), result.correction, atol=1e-10)
    if n > 0:
        assert_allclose(np.linalg.norm(result.weights, axis=0), np.ones(n))


@given(data=calibration_data(), variant=st.sampled_from(["sjoblom", "fearn"]))
@settings(max_examples=25, deadline=None)
def test_scores_orthogonal_to_response_property(data, variant):
    """Sjöblom's final scores and Fearn's scores carry no response information."""
    X, y, n = data
    result = get_osc_model(variant, n_components=max(n, 1), max_iter=200).fit((X, y))

    assert_allclose(result.component_angles, np.full(result.n_components, 90.0), atol=1e-6)
