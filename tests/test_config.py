"""
Tests for the configuration records and their dictionary form.
"""

import pytest

from mlpstack.common.errors import ArgumentError, ValidationError
from mlpstack.ml.activations import ActivationKind
from mlpstack.ml.config import (
    HiddenLayerConfig, NetworkModelConfig, NetworkStackConfig, OutputOptionsConfig, TaskType
)
from mlpstack.ml.optimizers import AdamConfig, SGDConfig
from mlpstack.ml.regularization import DropoutConfig, NormConsConfig, RegL1Config, RegL2Config

# --------------------------------------------

class TestNetworkModelConfig:

    def test_defaults(self):
        cfg = NetworkModelConfig()
        assert cfg.attempts == 1
        assert cfg.epochs == 200
        assert cfg.batch_size is None
        assert cfg.optimizer == AdamConfig()
        assert cfg.hidden_layers == ()
        assert cfg.stop_attempt_patience == 0.25
        assert cfg.partitions == 1

    @pytest.mark.parametrize("kwargs", [
        {'attempts': 0},
        {'epochs': 0},
        {'batch_size': 0},
        {'grad_clip_norm': -1.0},
        {'stop_attempt_patience': 1.5},
        {'partitions': 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ArgumentError):
            NetworkModelConfig(**kwargs)

    def test_hidden_layers_become_tuple(self):
        cfg = NetworkModelConfig(hidden_layers=[HiddenLayerConfig(4)])
        assert isinstance(cfg.hidden_layers, tuple)

    def test_from_dict_nested(self):
        cfg = NetworkModelConfig.from_dict({
            'epochs'        : 300,
            'optimizer'     : {'type': 'sgd', 'learning_rate': 0.05},
            'hidden_layers' : [{'neurons': 16, 'activation': 'relu', 'norm_cons': {'max': 3.0}}],
            'output_options': {'reg_l1': {'strength': 1e-4}},
        })
        assert cfg.epochs == 300
        assert cfg.optimizer == SGDConfig(learning_rate=0.05)
        layer = cfg.hidden_layers[0]
        assert layer.neurons == 16
        assert layer.activation is ActivationKind.RELU
        assert layer.norm_cons == NormConsConfig(max=3.0)
        assert cfg.output_options.reg_l1 == RegL1Config(strength=1e-4)

    def test_from_dict_dropout_and_l2(self):
        layer = HiddenLayerConfig.from_dict({
            'neurons'   : 8,
            'dropout'   : {'mode': 'bernoulli', 'p': 0.2},
            'reg_l2'    : {'strength': 1e-3, 'biases': True},
        })
        assert layer.dropout == DropoutConfig('bernoulli', 0.2)
        assert layer.reg_l2 == RegL2Config(1e-3, True)
        assert HiddenLayerConfig().dropout == DropoutConfig()
        with pytest.raises(ValidationError):
            OutputOptionsConfig.from_dict({'dropout': {'mode': 'bernoulli', 'p': 0.2}})

    def test_from_dict_errors(self):
        with pytest.raises(ValidationError):
            NetworkModelConfig.from_dict({'epoch': 10})
        with pytest.raises(ValidationError):
            NetworkModelConfig.from_dict(['epochs', 10])
        with pytest.raises(ValidationError):
            NetworkModelConfig.from_dict({'hidden_layers': {'neurons': 3}})
        with pytest.raises(ValidationError):
            HiddenLayerConfig.from_dict({'neurons': 3, 'reg_l1': {'power': 2}})

    def test_to_dict(self):
        cfg = NetworkModelConfig(hidden_layers=(HiddenLayerConfig(3, 'elu'),))
        data = cfg.to_dict()
        assert data['hidden_layers'][0]['activation'] == 'elu'
        assert data['output_options'] == OutputOptionsConfig().to_dict()

# --------------------------------------------

class TestLayerAndStackConfig:

    def test_output_only_activation_rejected(self):
        for name in ('linear', 'softmax'):
            with pytest.raises(ArgumentError):
                HiddenLayerConfig(4, name)

    def test_invalid_neurons(self):
        with pytest.raises(ArgumentError):
            HiddenLayerConfig(0)
        with pytest.raises(ArgumentError):
            HiddenLayerConfig(2.5)

    def test_stack_needs_members(self):
        with pytest.raises(ArgumentError):
            NetworkStackConfig()
        with pytest.raises(ArgumentError):
            NetworkStackConfig(models=(NetworkModelConfig(),), max_workers=0)
        cfg = NetworkStackConfig.from_dict({'models': [{'epochs': 5}, {'epochs': 7}], 'max_workers': 2})
        assert [m.epochs for m in cfg.models] == [5, 7]

    def test_task_type_values(self):
        assert TaskType('binary') is TaskType.BINARY
        assert {t.value for t in TaskType} == {'binary', 'categorical', 'regression'}
