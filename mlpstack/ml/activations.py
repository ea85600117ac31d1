'''
file: mlpstack/ml/activations.py

This module provides the activation functions of the network layers.

Every activation is a value of the `ActivationFunction` record bundling three capabilities:
    - compute(x)            : the activation of the weighted sums x,
    - derivative(x, a)      : the slope at x, given the already computed activation a,
    - init_std(n_in, n_out) : standard deviation of the Gaussian used for the initial weights.

The set is open: a new function is added by registering a new record in `activations_np`,
callers only ever see the three capabilities.

Functions are accessible through the get_activation factory function.
'''

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Tuple, Union

from scipy.special import expit, softmax as _softmax

from ..common.errors import ArgumentError

###################################################################
#! INIT SCALES
###################################################################

def xavier_std(n_in: int, n_out: int) -> float:
    ''' Glorot scaling for bounded symmetric functions: sqrt(2 / (n_in + n_out)). '''
    return float(np.sqrt(2.0 / (n_in + n_out)))

def he_std(n_in: int, n_out: int) -> float:
    ''' He scaling for rectified functions: sqrt(2 / n_in). '''
    return float(np.sqrt(2.0 / n_in))

def lecun_std(n_in: int, n_out: int) -> float:
    ''' LeCun scaling: sqrt(1 / n_in). '''
    return float(np.sqrt(1.0 / n_in))

###################################################################
#! SET OF ACTIVATION FUNCTIONS
###################################################################

def tanh(x):
    '''
    Hyperbolic tangent activation function.

    Parameters:
        x: Input array

    Returns:
        tanh(x)
    '''
    return np.tanh(x)

def tanh_derivative(x, a):
    return 1.0 - a * a

def sigmoid(x):
    '''
    Sigmoid activation function.

    Parameters:
        x: Input array

    Returns:
        1/(1+exp(-x)), evaluated without overflow
    '''
    return expit(x)

def sigmoid_derivative(x, a):
    return a * (1.0 - a)

def relu(x):
    '''
    Rectified linear unit activation function.

    Parameters:
        x: Input array

    Returns:
        max(0, x)
    '''
    return np.maximum(0.0, x)

def relu_derivative(x, a):
    return np.where(x > 0, 1.0, 0.0)

def leaky_relu(x, alpha=0.01):
    '''
    Leaky rectified linear unit activation function.

    Parameters:
        x: Input array
        alpha: Slope for negative values

    Returns:
        x if x > 0 else alpha*x
    '''
    return np.where(x > 0, x, alpha * x)

def leaky_relu_derivative(x, a, alpha=0.01):
    return np.where(x > 0, 1.0, alpha)

def elu(x, alpha=1.0):
    '''
    Exponential linear unit activation function.

    Parameters:
        x: Input array
        alpha: Scale for negative values

    Returns:
        x if x > 0 else alpha*(exp(x)-1)
    '''
    return np.where(x > 0, x, alpha * np.expm1(np.minimum(x, 0.0)))

def elu_derivative(x, a, alpha=1.0):
    return np.where(x > 0, 1.0, a + alpha)

def elliot_sig(x):
    '''
    Elliot sigmoid: a cheap bounded symmetric function.

    Parameters:
        x: Input array

    Returns:
        x / (1 + |x|)
    '''
    return x / (1.0 + np.abs(x))

def elliot_sig_derivative(x, a):
    return 1.0 / np.square(1.0 + np.abs(x))

def softplus(x):
    '''
    Softplus activation function.

    Parameters:
        x: Input array

    Returns:
        log(1 + exp(x))
    '''
    return np.logaddexp(0.0, x)

def softplus_derivative(x, a):
    return expit(x)

def identity(x):
    return np.asarray(x, dtype=np.float64).copy()

def identity_derivative(x, a):
    return np.ones_like(x, dtype=np.float64)

def softmax(x):
    '''
    Softmax over the last axis (the whole layer).

    Parameters:
        x: Input array, (..., n_neurons)

    Returns:
        exp(x_i) / sum_j exp(x_j)
    '''
    return _softmax(x, axis=-1)

###################################################################
#! REGISTRY
###################################################################

class ActivationKind(str, Enum):
    ''' Names of the registered activation functions. '''
    TANH        = 'tanh'
    SIGMOID     = 'sigmoid'
    RELU        = 'relu'
    LEAKY_RELU  = 'leaky_relu'
    ELU         = 'elu'
    ELLIOT_SIG  = 'elliot_sig'
    SOFTPLUS    = 'softplus'
    LINEAR      = 'linear'
    SOFTMAX     = 'softmax'

@dataclass(frozen=True)
class ActivationFunction:
    """
    Capabilities of one activation function.

    Attributes:
        kind (ActivationKind):
            Registry name.
        compute (Callable):
            Weighted sums -> activations.
        derivative (Callable):
            (weighted sums, activations) -> slopes.
        init_std (Callable):
            (n_inputs, n_outputs) -> std of the initial weights.
        output_range (Tuple[float, float]):
            Interval of the produced values.
        whole_layer (bool):
            True when a neuron's activation depends on the whole layer (softmax).
            Such functions have no per-neuron derivative and are only valid on the
            output layer, paired with a loss whose gradient already includes them.
    """
    kind            : ActivationKind
    compute         : Callable
    derivative      : Callable
    init_std        : Callable[[int, int], float]
    output_range    : Tuple[float, float]
    whole_layer     : bool = False

    def __call__(self, x):
        return self.compute(x)

    @property
    def name(self) -> str:
        return self.kind.value

activations_np = {
    ActivationKind.TANH         : ActivationFunction(ActivationKind.TANH,       tanh,       tanh_derivative,        xavier_std, (-1.0, 1.0)),
    ActivationKind.SIGMOID      : ActivationFunction(ActivationKind.SIGMOID,    sigmoid,    sigmoid_derivative,     xavier_std, (0.0, 1.0)),
    ActivationKind.RELU         : ActivationFunction(ActivationKind.RELU,       relu,       relu_derivative,        he_std,     (0.0, np.inf)),
    ActivationKind.LEAKY_RELU   : ActivationFunction(ActivationKind.LEAKY_RELU, leaky_relu, leaky_relu_derivative,  he_std,     (-np.inf, np.inf)),
    ActivationKind.ELU          : ActivationFunction(ActivationKind.ELU,        elu,        elu_derivative,         lecun_std,  (-1.0, np.inf)),
    ActivationKind.ELLIOT_SIG   : ActivationFunction(ActivationKind.ELLIOT_SIG, elliot_sig, elliot_sig_derivative,  xavier_std, (-1.0, 1.0)),
    ActivationKind.SOFTPLUS     : ActivationFunction(ActivationKind.SOFTPLUS,   softplus,   softplus_derivative,    he_std,     (0.0, np.inf)),
    ActivationKind.LINEAR       : ActivationFunction(ActivationKind.LINEAR,     identity,   identity_derivative,    xavier_std, (-np.inf, np.inf)),
    ActivationKind.SOFTMAX      : ActivationFunction(ActivationKind.SOFTMAX,    softmax,    identity_derivative,    xavier_std, (0.0, 1.0), whole_layer=True),
}

# functions that are meaningful only on the output layer
OUTPUT_ONLY = frozenset({ActivationKind.LINEAR, ActivationKind.SOFTMAX})

############################################################################

def get_activation(name: Union[str, ActivationKind, ActivationFunction]) -> ActivationFunction:
    """
    Factory function to get an activation function by name.

    Parameters:
        name : str | ActivationKind | ActivationFunction
            Name of the activation function. An ActivationFunction is returned as is.

    Returns:
        ActivationFunction: the registered record.

    Raises:
        ArgumentError: If the activation function name is not found.

    Examples:
        >>> act = get_activation('relu')
        >>> act.compute(np.array([-1.0, 0.0, 1.0]))
        array([0., 0., 1.])
    """
    if isinstance(name, ActivationFunction):
        return name
    try:
        kind = ActivationKind(name.lower() if isinstance(name, str) and not isinstance(name, ActivationKind) else name)
    except ValueError:
        raise ArgumentError(f"Activation function '{name}' not found. Available: {[k.value for k in ActivationKind]}.") from None
    return activations_np[kind]

def available_activations(hidden_only: bool = False):
    ''' Names of the registered functions, optionally only those allowed in hidden layers. '''
    return [k.value for k in activations_np if not (hidden_only and k in OUTPUT_ONLY)]

############################################################################
#! EOF
