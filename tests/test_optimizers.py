"""
Tests for the optimizers and the gradient clipping.
"""

import numpy as np
import pytest

from mlpstack.common.errors import ArgumentError, ValidationError
from mlpstack.ml.optimizers import (
    Adam, AdamConfig, SGD, SGDConfig, clip_gradients, create_optimizer, optimizer_config_from_dict
)

# --------------------------------------------

class TestSGD:

    def test_plain_step(self):
        p = np.array([1.0, -1.0])
        SGD(SGDConfig(learning_rate=0.1, momentum=0.0)).step([p], [np.array([2.0, -4.0])])
        np.testing.assert_allclose(p, [0.8, -0.6])

    def test_momentum_accumulates(self):
        p = np.zeros(1)
        opt = SGD(SGDConfig(learning_rate=1.0, momentum=0.5))
        g = np.ones(1)
        opt.step([p], [g])          # m = 1
        opt.step([p], [g])          # m = 1.5
        np.testing.assert_allclose(p, [-2.5])
        assert opt.steps == 2
        opt.reset()
        assert opt.steps == 0

    def test_nesterov_requires_momentum(self):
        with pytest.raises(ArgumentError):
            SGDConfig(momentum=0.0, nesterov=True)
        with pytest.raises(ArgumentError):
            SGDConfig(learning_rate=0.0)

    def test_minimizes_quadratic(self):
        p = np.array([5.0, -3.0])
        opt = SGD(SGDConfig(learning_rate=0.1, momentum=0.9, nesterov=True))
        for _ in range(300):
            opt.step([p], [2.0 * p])
        np.testing.assert_allclose(p, [0.0, 0.0], atol=1e-6)

# --------------------------------------------

class TestAdam:

    def test_first_step_has_learning_rate_size(self):
        p = np.array([1.0, 1.0])
        Adam(AdamConfig(learning_rate=0.01)).step([p], [np.array([3.0, -0.2])])
        np.testing.assert_allclose(p, [0.99, 1.01], rtol=1e-6)

    @pytest.mark.parametrize("amsgrad", [False, True])
    def test_minimizes_quadratic(self, amsgrad):
        p = np.array([2.0, -1.0])
        opt = Adam(AdamConfig(learning_rate=0.01, amsgrad=amsgrad))
        for _ in range(3000):
            opt.step([p], [2.0 * p])
        np.testing.assert_allclose(p, [0.0, 0.0], atol=5e-2)

    def test_mismatched_lengths(self):
        with pytest.raises(ArgumentError):
            Adam().step([np.zeros(1)], [])

# --------------------------------------------

class TestFactoryAndClipping:

    def test_create_optimizer(self):
        assert isinstance(create_optimizer(SGDConfig()), SGD)
        assert isinstance(create_optimizer(AdamConfig()), Adam)
        with pytest.raises(ArgumentError):
            create_optimizer("adam")

    def test_config_from_dict(self):
        cfg = optimizer_config_from_dict({'type': 'SGD', 'learning_rate': 0.5, 'momentum': 0.0})
        assert cfg == SGDConfig(learning_rate=0.5, momentum=0.0)
        with pytest.raises(ValidationError):
            optimizer_config_from_dict({'learning_rate': 0.5})
        with pytest.raises(ValidationError):
            optimizer_config_from_dict({'type': 'rmsprop'})
        with pytest.raises(ValidationError):
            optimizer_config_from_dict({'type': 'adam', 'lr': 0.1})

    def test_clip_by_value(self):
        g = [np.array([-5.0, 0.5, 5.0])]
        clip_gradients(g, clip_value=1.0)
        np.testing.assert_array_equal(g[0], [-1.0, 0.5, 1.0])

    def test_clip_by_global_norm(self):
        g = [np.array([3.0]), np.array([4.0])]
        clip_gradients(g, clip_norm=1.0)
        np.testing.assert_allclose([g[0][0], g[1][0]], [0.6, 0.8])

    def test_clip_disabled(self):
        g = [np.array([30.0, -40.0])]
        clip_gradients(g)
        np.testing.assert_array_equal(g[0], [30.0, -40.0])
