'''
Configuration records of the networks and stacks.

All records are frozen dataclasses validated at construction (ArgumentError for values
breaking a numeric invariant). They can also be created from plain dictionaries produced by
an external loader with `from_dict` (ValidationError for structural mismatches):

>>> cfg = NetworkModelConfig.from_dict({
...     'epochs'        : 300,
...     'optimizer'     : {'type': 'sgd', 'learning_rate': 0.05},
...     'hidden_layers' : [{'neurons': 16, 'activation': 'relu', 'norm_cons': {'max': 3.0}}],
... })

---------------------------------------------------------------
file    : mlpstack/ml/config.py
---------------------------------------------------------------
'''

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

from ..common.config_base import ConfigBase, tuple_of
from ..common.errors import ArgumentError
from .activations import ActivationKind, OUTPUT_ONLY, get_activation
from .optimizers import AdamConfig, OptimizerConfig, optimizer_config_from_dict
from .regularization import DropoutConfig, NormConsConfig, RegL1Config, RegL2Config

######################################################################

class TaskType(str, Enum):
    ''' What the network's output vector means. '''
    BINARY      = 'binary'          # independent yes/no decisions, sigmoid outputs
    CATEGORICAL = 'categorical'     # one class out of n, softmax outputs
    REGRESSION  = 'regression'      # real values, linear outputs

######################################################################
#! LAYERS
######################################################################

@dataclass(frozen=True)
class HiddenLayerConfig(ConfigBase):
    """
    One hidden layer.

    Attributes:
        neurons (int):
            Number of neurons, >= 1.
        activation (str | ActivationKind):
            Activation function; 'linear' and 'softmax' are not allowed in hidden layers.
        dropout (DropoutConfig):
            Dropout of the layer's activations during training.
        reg_l1 (RegL1Config):
            L1 shrinkage of the layer's weights.
        reg_l2 (RegL2Config):
            L2 decay of the layer's weights.
        norm_cons (NormConsConfig):
            Norm constraint of the neurons' incoming vectors.
    """
    neurons     : int                               = 10
    activation  : Union[str, ActivationKind]        = ActivationKind.TANH
    dropout     : DropoutConfig                     = field(default_factory=DropoutConfig)
    reg_l1      : RegL1Config                       = field(default_factory=RegL1Config)
    reg_l2      : RegL2Config                       = field(default_factory=RegL2Config)
    norm_cons   : NormConsConfig                    = field(default_factory=NormConsConfig)

    _NESTED = {
        'dropout'   : DropoutConfig.from_dict,
        'reg_l1'    : RegL1Config.from_dict,
        'reg_l2'    : RegL2Config.from_dict,
        'norm_cons' : NormConsConfig.from_dict,
    }

    def __post_init__(self):
        if int(self.neurons) != self.neurons or self.neurons < 1:
            raise ArgumentError(f"Hidden layer needs a positive integer number of neurons, got {self.neurons}.")
        kind = get_activation(self.activation).kind
        if kind in OUTPUT_ONLY:
            raise ArgumentError(f"Activation '{kind.value}' is not allowed in a hidden layer.")
        object.__setattr__(self, 'activation', kind)

@dataclass(frozen=True)
class OutputOptionsConfig(ConfigBase):
    ''' Regularization of the output layer (its activation follows from the task type; no dropout). '''
    reg_l1      : RegL1Config                       = field(default_factory=RegL1Config)
    reg_l2      : RegL2Config                       = field(default_factory=RegL2Config)
    norm_cons   : NormConsConfig                    = field(default_factory=NormConsConfig)

    _NESTED = {
        'reg_l1'    : RegL1Config.from_dict,
        'reg_l2'    : RegL2Config.from_dict,
        'norm_cons' : NormConsConfig.from_dict,
    }

######################################################################
#! MODEL
######################################################################

@dataclass(frozen=True)
class NetworkModelConfig(ConfigBase):
    """
    Training setup of one network.

    Attributes:
        attempts (int):
            Number of independent training attempts (fresh weights each), >= 1.
        epochs (int):
            Maximum number of epochs per attempt, >= 1.
        batch_size (int | None):
            Samples per update; None means the full training set.
        optimizer (SGDConfig | AdamConfig):
            Optimizer and its hyperparameters.
        hidden_layers (tuple of HiddenLayerConfig):
            Hidden layers from input to output; empty means a single-layer network.
        output_options (OutputOptionsConfig):
            Regularization of the output layer.
        grad_clip_value (float):
            Element-wise gradient clipping, 0 = off.
        grad_clip_norm (float):
            Global gradient norm clipping, 0 = off.
        stop_attempt_patience (float):
            Fraction of `epochs` without improvement after which an attempt is stopped; 0 = never.
        partitions (int):
            Number of contiguous parts a batch is split into for the gradient computation.
        seed (int | None):
            Seed of the weight initialization and shuffling.
    """
    attempts                : int                               = 1
    epochs                  : int                               = 200
    batch_size              : Optional[int]                     = None
    optimizer               : OptimizerConfig                   = field(default_factory=AdamConfig)
    hidden_layers           : Tuple[HiddenLayerConfig, ...]     = ()
    output_options          : OutputOptionsConfig               = field(default_factory=OutputOptionsConfig)
    grad_clip_value         : float                             = 0.0
    grad_clip_norm          : float                             = 0.0
    stop_attempt_patience   : float                             = 0.25
    partitions              : int                               = 1
    seed                    : Optional[int]                     = None

    _NESTED = {
        'optimizer'         : optimizer_config_from_dict,
        'hidden_layers'     : tuple_of(HiddenLayerConfig.from_dict),
        'output_options'    : OutputOptionsConfig.from_dict,
    }

    def __post_init__(self):
        if self.attempts < 1:
            raise ArgumentError(f"Number of attempts must be >= 1, got {self.attempts}.")
        if self.epochs < 1:
            raise ArgumentError(f"Number of epochs must be >= 1, got {self.epochs}.")
        if self.batch_size is not None and self.batch_size < 1:
            raise ArgumentError(f"Batch size must be >= 1 or None (full batch), got {self.batch_size}.")
        if self.grad_clip_value < 0.0 or self.grad_clip_norm < 0.0:
            raise ArgumentError("Gradient clipping thresholds must be non-negative.")
        if not 0.0 <= self.stop_attempt_patience <= 1.0:
            raise ArgumentError(f"Attempt patience must be a fraction in [0, 1], got {self.stop_attempt_patience}.")
        if self.partitions < 1:
            raise ArgumentError(f"Number of partitions must be >= 1, got {self.partitions}.")
        object.__setattr__(self, 'hidden_layers', tuple(self.hidden_layers))

######################################################################
#! STACK
######################################################################

@dataclass(frozen=True)
class NetworkStackConfig(ConfigBase):
    """
    Members of a network stack.

    Attributes:
        models (tuple of NetworkModelConfig):
            One configuration per member, at least one.
        max_workers (int):
            Members trained concurrently; 1 trains them one after another.
    """
    models          : Tuple[NetworkModelConfig, ...]    = ()
    max_workers     : int                               = 1

    _NESTED = {
        'models'    : tuple_of(NetworkModelConfig.from_dict),
    }

    def __post_init__(self):
        object.__setattr__(self, 'models', tuple(self.models))
        if not self.models:
            raise ArgumentError("A network stack needs at least one member configuration.")
        if self.max_workers < 1:
            raise ArgumentError(f"max_workers must be >= 1, got {self.max_workers}.")

######################################################################
#! EOF
