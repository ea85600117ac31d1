"""
Tests for the layer regularization: L1 shrinkage and the norm constraint.
"""

import numpy as np
import pytest

from mlpstack.common.errors import ArgumentError, ValidationError
from mlpstack.ml.regularization import (
    DropoutConfig, DropoutMode, NormConsConfig, RegL1Config, RegL2Config, apply_l1, apply_l2, apply_norm_constraint,
    dropout_gates
)

# --------------------------------------------

class TestRegL1:

    def test_zero_strength_is_bit_identical(self):
        rng = np.random.default_rng(0)
        w = rng.normal(size=(4, 3))
        b = rng.normal(size=3)
        w0, b0 = w.copy(), b.copy()
        apply_l1(w, b, RegL1Config(strength=0.0, biases=True))
        assert np.array_equal(w, w0)
        assert np.array_equal(b, b0)

    def test_shrinks_towards_zero(self):
        w = np.array([[0.5, -0.5], [0.0, 2.0]])
        b = np.array([1.0, -1.0])
        apply_l1(w, b, RegL1Config(strength=0.1))
        np.testing.assert_allclose(w, [[0.4, -0.4], [0.0, 1.9]])
        # biases untouched unless configured
        np.testing.assert_array_equal(b, [1.0, -1.0])

    def test_biases_when_configured(self):
        w = np.zeros((1, 2))
        b = np.array([1.0, -1.0])
        apply_l1(w, b, RegL1Config(strength=0.25, biases=True))
        np.testing.assert_allclose(b, [0.75, -0.75])

    @pytest.mark.parametrize("strength", [-0.1, float('nan'), float('inf')])
    def test_invalid_strength(self, strength):
        with pytest.raises(ArgumentError):
            RegL1Config(strength=strength)

    def test_enabled(self):
        assert not RegL1Config().enabled
        assert RegL1Config(strength=1e-4).enabled

# --------------------------------------------

class TestNormConstraint:

    def test_norm_never_exceeds_max(self):
        rng = np.random.default_rng(1)
        w = rng.normal(scale=10.0, size=(6, 5))
        apply_norm_constraint(w, None, NormConsConfig(max=1.5))
        norms = np.linalg.norm(w, axis=0)
        assert np.all(norms <= 1.5 + 1e-12)
        np.testing.assert_allclose(norms, 1.5)

    def test_small_columns_raised_to_min(self):
        w = np.array([[0.1, 3.0], [0.0, 4.0]])
        apply_norm_constraint(w, None, NormConsConfig(min=1.0, max=10.0))
        np.testing.assert_allclose(np.linalg.norm(w, axis=0), [1.0, 5.0])

    def test_zero_column_untouched(self):
        w = np.array([[0.0, 3.0], [0.0, 4.0]])
        apply_norm_constraint(w, None, NormConsConfig(min=1.0, max=2.0))
        np.testing.assert_array_equal(w[:, 0], [0.0, 0.0])
        assert np.linalg.norm(w[:, 1]) == pytest.approx(2.0)

    def test_bias_included(self):
        w = np.array([[3.0]])
        b = np.array([4.0])
        apply_norm_constraint(w, b, NormConsConfig(max=1.0, biases=True))
        assert np.hypot(w[0, 0], b[0]) == pytest.approx(1.0)
        assert w[0, 0] == pytest.approx(0.6)
        assert b[0] == pytest.approx(0.8)

    def test_bias_excluded_by_default(self):
        w = np.array([[3.0]])
        b = np.array([4.0])
        apply_norm_constraint(w, b, NormConsConfig(max=1.0))
        assert w[0, 0] == pytest.approx(1.0)
        assert b[0] == 4.0

    def test_disabled_is_noop(self):
        w = np.array([[30.0, 0.001]])
        w0 = w.copy()
        apply_norm_constraint(w, None, NormConsConfig())
        assert np.array_equal(w, w0)

    def test_min_without_max_rejected(self):
        with pytest.raises(ArgumentError):
            NormConsConfig(min=2.0)
        with pytest.raises(ArgumentError):
            NormConsConfig.from_dict({'min': 0.5, 'max': 0.0})
        assert not NormConsConfig(min=0.0, max=0.0).enabled

    def test_min_equal_max_fixes_norm(self):
        w = np.array([[0.5, 6.0], [0.0, 8.0]])
        apply_norm_constraint(w, None, NormConsConfig(min=2.0, max=2.0))
        np.testing.assert_allclose(np.linalg.norm(w, axis=0), [2.0, 2.0])

    def test_config_validation(self):
        with pytest.raises(ArgumentError):
            NormConsConfig(min=2.0, max=1.0)
        with pytest.raises(ArgumentError):
            NormConsConfig(min=-1.0)
        with pytest.raises(ArgumentError):
            NormConsConfig(max=float('inf'))

    def test_from_dict(self):
        cfg = NormConsConfig.from_dict({'max': 3.0, 'biases': True})
        assert cfg == NormConsConfig(0.0, 3.0, True)
        with pytest.raises(ValidationError):
            NormConsConfig.from_dict({'maximum': 3.0})

    def test_rejects_non_float64(self):
        w = np.ones((2, 2), dtype=np.float32)
        with pytest.raises(ArgumentError):
            apply_norm_constraint(w, None, NormConsConfig(max=1.0))

# --------------------------------------------

class TestRegL2:

    def test_zero_strength_is_bit_identical(self):
        rng = np.random.default_rng(3)
        w = rng.normal(size=(3, 3))
        b = rng.normal(size=3)
        w0, b0 = w.copy(), b.copy()
        apply_l2(w, b, RegL2Config(strength=0.0, biases=True))
        assert np.array_equal(w, w0)
        assert np.array_equal(b, b0)

    def test_decays_proportionally(self):
        w = np.array([[2.0, -4.0]])
        b = np.array([1.0, 1.0])
        apply_l2(w, b, RegL2Config(strength=0.25))
        np.testing.assert_allclose(w, [[1.5, -3.0]])
        np.testing.assert_array_equal(b, [1.0, 1.0])
        apply_l2(w, b, RegL2Config(strength=0.5, biases=True))
        np.testing.assert_allclose(b, [0.5, 0.5])

    @pytest.mark.parametrize("strength", [-0.1, 1.0, float('nan')])
    def test_invalid_strength(self, strength):
        with pytest.raises(ArgumentError):
            RegL2Config(strength=strength)

# --------------------------------------------

class TestDropoutConfig:

    def test_defaults_disabled(self):
        cfg = DropoutConfig()
        assert cfg.mode is DropoutMode.NONE
        assert not cfg.enabled
        assert dropout_gates(np.random.default_rng(0), (2, 2), cfg) is None

    def test_mode_and_probability_must_agree(self):
        with pytest.raises(ArgumentError):
            DropoutConfig('bernoulli', 0.0)
        with pytest.raises(ArgumentError):
            DropoutConfig('none', 0.2)
        with pytest.raises(ArgumentError):
            DropoutConfig('bernoulli', 1.0)
        with pytest.raises(ArgumentError):
            DropoutConfig('alpha', 0.2)

    def test_from_dict(self):
        cfg = DropoutConfig.from_dict({'mode': 'gaussian', 'p': 0.2})
        assert cfg.mode is DropoutMode.GAUSSIAN
        assert cfg.to_dict() == {'mode': 'gaussian', 'p': 0.2}

    @pytest.mark.parametrize("mode", ['bernoulli', 'gaussian'])
    def test_gates_keep_the_mean(self, mode):
        gates = dropout_gates(np.random.default_rng(1), (20000,), DropoutConfig(mode, 0.4))
        assert gates.shape == (20000,)
        assert gates.mean() == pytest.approx(1.0, abs=0.05)
