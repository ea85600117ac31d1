"""
A fully connected feed-forward network (multi-layer perceptron) with per-layer
regularization.

The model owns its parameters: one (weights, biases) pair per layer, weights of shape
(n_in, n_out). The forward pass is layer-by-layer `s = a @ W + b; a = act(s)`; the backward
pass propagates the loss z-gradient through the activation derivatives. A training forward
pass given a random generator multiplies the hidden activations by dropout gates; the
backward pass routes the gradient through the same gates. Updates apply the optimizer step
first and the layer regularization (L1, L2, then the norm constraint) after it.

States:
    UNCONFIGURED -> INITIALIZED -> TRAINING -> TRAINED

Prediction is available from INITIALIZED on.

---------------------------------------------------------------
file    : mlpstack/ml/network.py
---------------------------------------------------------------
"""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from ..common.errors import ArgumentError, InvalidStateError, NumericalInstabilityError
from ..common.flog import get_global_logger
from .activations import ActivationFunction, ActivationKind, get_activation
from .config import NetworkModelConfig, TaskType
from .initializers import RandomLike, as_generator, layer_init
from .losses import LossFunction, SigmoidCrossEntropyLoss, SoftmaxCrossEntropyLoss, SquaredErrorLoss
from .optimizers import Optimizer
from .regularization import (
    DropoutConfig, NormConsConfig, RegL1Config, RegL2Config, apply_l1, apply_l2, apply_norm_constraint, dropout_gates
)

# magnitude above which the parameters are considered diverged
STABILITY_LIMIT = 1e10

#########################################################

class NetworkState(str, Enum):
    UNCONFIGURED    = 'unconfigured'
    INITIALIZED     = 'initialized'
    TRAINING        = 'training'
    TRAINED         = 'trained'

# output layer activation and loss per task type
_OUTPUT_SETUP = {
    TaskType.BINARY         : (ActivationKind.SIGMOID,  SigmoidCrossEntropyLoss),
    TaskType.CATEGORICAL    : (ActivationKind.SOFTMAX,  SoftmaxCrossEntropyLoss),
    TaskType.REGRESSION     : (ActivationKind.LINEAR,   SquaredErrorLoss),
}

@dataclass
class DenseLayer:
    ''' Parameters and regularization of one layer. '''
    n_in            : int
    n_out           : int
    activation      : ActivationFunction
    reg_l1          : RegL1Config
    reg_l2          : RegL2Config
    norm_cons       : NormConsConfig
    dropout         : DropoutConfig         = field(default_factory=DropoutConfig)
    weights         : Optional[np.ndarray]  = None
    biases          : Optional[np.ndarray]  = None

    @property
    def n_params(self) -> int:
        return self.n_in * self.n_out + self.n_out

    def regularize(self) -> None:
        apply_l1(self.weights, self.biases, self.reg_l1)
        apply_l2(self.weights, self.biases, self.reg_l2)
        apply_norm_constraint(self.weights, self.biases, self.norm_cons)

class ForwardCache(NamedTuple):
    ''' Per-layer values of a forward pass, kept for the backward pass. '''
    sums        : List[np.ndarray]                  # weighted sums, one (N, n_out) per layer
    activations : List[np.ndarray]                  # the input, then one (N, n_out) per layer (gated)
    gates       : List[Optional[np.ndarray]]        # dropout gates per layer, None where inactive

#########################################################

class NetworkModel:
    """
    Multi-layer perceptron with task-specific output layer.

    Parameters
    ----------
    config : NetworkModelConfig
        Hidden layers and output-layer regularization (training settings are used by the trainer).
    n_inputs, n_outputs : int
        Widths of the input and output vectors.
    task_type : TaskType
        Selects the output activation and loss: sigmoid / cross-entropy for binary,
        softmax / cross-entropy for categorical, linear / squared error for regression.
    name : str
        Used as the prefix of the log messages.
    """

    _dcol = 'blue'

    def __init__(self,
                config      : NetworkModelConfig,
                n_inputs    : int,
                n_outputs   : int,
                task_type   : Union[str, TaskType],
                name        : str = "NetworkModel"):

        self._name          = name
        self._logger        = get_global_logger()
        self._config        = config
        self._task_type     = TaskType(task_type)

        if n_inputs < 1 or n_outputs < 1:
            raise ArgumentError(f"Network needs at least one input and one output, got {n_inputs} -> {n_outputs}.")
        if self._task_type == TaskType.CATEGORICAL and n_outputs < 2:
            raise ArgumentError(f"A categorical network needs at least two outputs, got {n_outputs}.")

        self._n_inputs      = int(n_inputs)
        self._n_outputs     = int(n_outputs)

        out_kind, loss_cls  = _OUTPUT_SETUP[self._task_type]
        self._loss          : LossFunction = loss_cls()

        # layer skeleton, parameters come with initialize()
        self._layers        : List[DenseLayer] = []
        width               = self._n_inputs
        for hl in config.hidden_layers:
            self._layers.append(DenseLayer(width, hl.neurons, get_activation(hl.activation), hl.reg_l1, hl.reg_l2,
                                        hl.norm_cons, hl.dropout))
            width = hl.neurons
        out = config.output_options
        self._layers.append(DenseLayer(width, self._n_outputs, get_activation(out_kind), out.reg_l1, out.reg_l2, out.norm_cons))

        self._state         = NetworkState.UNCONFIGURED

    # ---------------------------------------------------
    #! INFO
    # ---------------------------------------------------

    def __repr__(self) -> str:
        arch = " -> ".join([str(self._n_inputs)] + [f"{l.n_out}({l.activation.name})" for l in self._layers])
        return f"{self._name}[{self._task_type.value}]({arch}, params={self.n_params}, state={self._state.value})"

    def log(self, msg : str, log : Union[int, str] = 'info', lvl : int = 0, color : Optional[str] = None):
        """
        Log the message prefixed with the network name.
        """
        self._logger.say(f"[{self._name}] {msg}", log=log, lvl=lvl, color=color)

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> NetworkModelConfig:
        return self._config

    @property
    def task_type(self) -> TaskType:
        return self._task_type

    @property
    def n_inputs(self) -> int:
        return self._n_inputs

    @property
    def n_outputs(self) -> int:
        return self._n_outputs

    @property
    def layers(self) -> List[DenseLayer]:
        return self._layers

    @property
    def loss(self) -> LossFunction:
        return self._loss

    @property
    def output_activation(self) -> ActivationFunction:
        return self._layers[-1].activation

    @property
    def n_params(self) -> int:
        return sum(l.n_params for l in self._layers)

    @property
    def has_dropout(self) -> bool:
        return any(l.dropout.enabled for l in self._layers)

    @property
    def state(self) -> NetworkState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state != NetworkState.UNCONFIGURED

    # ---------------------------------------------------
    #! INIT
    # ---------------------------------------------------

    def initialize(self, key: RandomLike = None) -> "NetworkModel":
        """
        Sample fresh parameters. Weights ~ N(0, std) with std taken from each layer's
        activation; biases are zero except the softmax output layer (-log(n - 1)).
        """
        rng = as_generator(key)
        for layer in self._layers:
            layer.weights, layer.biases = layer_init(rng, layer.n_in, layer.n_out, layer.activation)
        self._state = NetworkState.INITIALIZED
        return self

    def _require_initialized(self):
        if not self.initialized:
            raise InvalidStateError(f"{self._name}: network has no weights yet; call initialize() or train it first.")

    def get_params(self) -> dict:
        ''' Copies of the parameters, {'layers': [(weights, biases), ...]}. '''
        self._require_initialized()
        return {'layers': [(l.weights.copy(), l.biases.copy()) for l in self._layers]}

    def set_params(self, params: dict) -> None:
        ''' Replace the parameters; shapes must match the architecture. '''
        pairs = params['layers']
        if len(pairs) != len(self._layers):
            raise ArgumentError(f"Expected {len(self._layers)} layers, got {len(pairs)}.")
        for layer, (w, b) in zip(self._layers, pairs):
            w, b = np.array(w, dtype=np.float64), np.array(b, dtype=np.float64)
            if w.shape != (layer.n_in, layer.n_out) or b.shape != (layer.n_out,):
                raise ArgumentError(f"Parameter shapes {w.shape}, {b.shape} do not match layer {layer.n_in} -> {layer.n_out}.")
            layer.weights, layer.biases = w, b
        if self._state == NetworkState.UNCONFIGURED:
            self._state = NetworkState.INITIALIZED

    def parameters(self) -> List[np.ndarray]:
        ''' Live parameter arrays in the order [W0, b0, W1, b1, ...]. '''
        self._require_initialized()
        out = []
        for l in self._layers:
            out.extend((l.weights, l.biases))
        return out

    # ---------------------------------------------------
    #! STATE
    # ---------------------------------------------------

    def begin_training(self) -> None:
        self._require_initialized()
        self._state = NetworkState.TRAINING

    def finish_training(self) -> None:
        self._require_initialized()
        self._state = NetworkState.TRAINED

    # ---------------------------------------------------
    #! FORWARD
    # ---------------------------------------------------

    def _as_batch(self, x) -> Tuple[np.ndarray, bool]:
        x       = np.asarray(x, dtype=np.float64)
        single  = x.ndim == 1
        x       = np.atleast_2d(x)
        if x.ndim != 2 or x.shape[1] != self._n_inputs:
            raise ArgumentError(f"{self._name}: expected input of width {self._n_inputs}, got shape {x.shape}.")
        return x, single

    def forward(self, x: np.ndarray, key: Optional[np.random.Generator] = None) -> ForwardCache:
        """
        Forward pass over a batch (N, n_inputs).

        Parameters
        ----------
        x : (N, n_inputs) batch
        key : random generator of a training pass; when given, the activations of the hidden
            layers with dropout are multiplied by freshly drawn gates. Prediction never
            passes one.

        Returns
        -------
        ForwardCache : weighted sums, activations (input first) and dropout gates per layer
        """
        self._require_initialized()
        sums, acts, gates = [], [x], []
        a = x
        for layer in self._layers:
            s = a @ layer.weights + layer.biases
            a = layer.activation.compute(s)
            g = dropout_gates(key, a.shape, layer.dropout) if key is not None else None
            if g is not None:
                a = a * g
            sums.append(s)
            acts.append(a)
            gates.append(g)
        return ForwardCache(sums, acts, gates)

    def predict(self, x) -> np.ndarray:
        """
        Output vector(s) of the network: (n_inputs,) -> (n_outputs,), (N, n_inputs) -> (N, n_outputs).

        Raises:
            InvalidStateError: before the weights exist.
            ArgumentError: on an input width mismatch.
        """
        self._require_initialized()
        x, single   = self._as_batch(x)
        out         = self.forward(x).activations[-1]
        return out[0] if single else out

    def __call__(self, x) -> np.ndarray:
        return self.predict(x)

    def compute_loss(self, x, ideal) -> float:
        ''' Mean loss over a batch. '''
        out     = self.predict(np.atleast_2d(x))
        ideal   = np.atleast_2d(np.asarray(ideal, dtype=np.float64))
        return float(np.mean(self._loss.compute(out, ideal)))

    # ---------------------------------------------------
    #! BACKWARD
    # ---------------------------------------------------

    def backward(self,
                cache       : ForwardCache,
                ideal       : np.ndarray,
                average     : bool = True) -> List[Tuple[np.ndarray, np.ndarray]]:
        """
        Gradients of the loss with respect to every layer's parameters.

        Parameters
        ----------
        cache : the ForwardCache returned by `forward`
        ideal : (N, n_outputs) expected outputs
        average : divide by N (False returns plain sums, for a later reduction)

        Returns
        -------
        list of (dW, db) per layer, input layer first
        """
        sums, acts, gates   = cache
        n                   = acts[0].shape[0]
        z                   = self._loss.z_gradient(sums[-1], acts[-1], ideal, self.output_activation)
        grads               = [None] * len(self._layers)
        for idx in range(len(self._layers) - 1, -1, -1):
            layer       = self._layers[idx]
            grads[idx]  = (acts[idx].T @ z, z.sum(axis=0))
            if idx > 0:
                prev    = self._layers[idx - 1]
                gate    = gates[idx - 1]
                if gate is None:
                    z   = (z @ layer.weights.T) * prev.activation.derivative(sums[idx - 1], acts[idx])
                else:
                    # derivative of the ungated activation, then through the gate
                    raw = prev.activation.compute(sums[idx - 1])
                    z   = (z @ layer.weights.T) * prev.activation.derivative(sums[idx - 1], raw) * gate
        if average:
            grads = [(gw / n, gb / n) for gw, gb in grads]
        return grads

    # ---------------------------------------------------
    #! UPDATE
    # ---------------------------------------------------

    def apply_update(self, grads: Sequence[Tuple[np.ndarray, np.ndarray]], optimizer: Optimizer) -> None:
        """
        Optimizer step followed by every layer's L1 shrinkage, L2 decay and norm constraint.
        """
        flat = []
        for gw, gb in grads:
            flat.extend((gw, gb))
        optimizer.step(self.parameters(), flat)
        for layer in self._layers:
            layer.regularize()

    def check_stability(self) -> None:
        """
        Raises NumericalInstabilityError when a weight or bias is NaN/infinite or its
        magnitude reaches the stability limit.
        """
        self._require_initialized()
        for idx, layer in enumerate(self._layers):
            for kind, values in (('weights', layer.weights), ('biases', layer.biases)):
                peak = float(np.max(np.abs(values))) if values.size else 0.0
                if not np.isfinite(peak) or peak >= STABILITY_LIMIT:
                    raise NumericalInstabilityError(f"{self._name}: {kind} of layer {idx} diverged (max |value| = {peak}).")

    # ---------------------------------------------------

    def copy(self) -> "NetworkModel":
        ''' Independent deep copy (parameters included). '''
        return copy.deepcopy(self)

    def __deepcopy__(self, memo):
        out             = NetworkModel.__new__(NetworkModel)
        out.__dict__.update(self.__dict__)
        # the logger is a shared process-wide object
        out._layers     = [replace(l,
                                weights = None if l.weights is None else l.weights.copy(),
                                biases  = None if l.biases is None else l.biases.copy()) for l in self._layers]
        return out

#########################################################
#! EOF
