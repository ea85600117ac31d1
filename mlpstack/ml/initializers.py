"""
file       : mlpstack/ml/initializers.py

Initial parameters of a network layer. Weights are drawn from a zero-mean Gaussian whose
standard deviation comes from the layer's activation function; biases start at zero except
for a softmax output layer.
"""

import numpy as np
from typing import Tuple, Union

from .activations import ActivationFunction, ActivationKind

RandomLike = Union[None, int, np.random.Generator]

def as_generator(key: RandomLike) -> np.random.Generator:
    ''' Accept a seed, a Generator or None (fresh entropy). '''
    if isinstance(key, np.random.Generator):
        return key
    return np.random.default_rng(key)

######################################################################
#! NORMAL INITIALIZATION
######################################################################

def real_normal_init(key: RandomLike, shape, std: float = 1.0, dtype=np.float64) -> np.ndarray:
    """
    Weights ~ N(0, std^2).
    """
    rng = as_generator(key)
    return (rng.normal(loc=0.0, scale=1.0, size=shape) * std).astype(dtype)

def layer_weights_init(key: RandomLike, n_in: int, n_out: int, activation: ActivationFunction, dtype=np.float64) -> np.ndarray:
    """
    Weights of a dense layer, shape (n_in, n_out), scaled by the activation's init policy.
    """
    return real_normal_init(key, (n_in, n_out), activation.init_std(n_in, n_out), dtype)

######################################################################
#! CONSTANT INITIALIZATION
######################################################################

def layer_biases_init(n_out: int, activation: ActivationFunction, dtype=np.float64) -> np.ndarray:
    """
    Biases of a dense layer.

    A softmax layer with n > 1 outputs starts at -log(n - 1), every other layer at zero.
    """
    if activation.kind == ActivationKind.SOFTMAX and n_out > 1:
        return np.full(n_out, -np.log(n_out - 1.0), dtype=dtype)
    return np.zeros(n_out, dtype=dtype)

def layer_init(key: RandomLike, n_in: int, n_out: int, activation: ActivationFunction,
            dtype=np.float64) -> Tuple[np.ndarray, np.ndarray]:
    ''' (weights, biases) of one dense layer. '''
    return layer_weights_init(key, n_in, n_out, activation, dtype), layer_biases_init(n_out, activation, dtype)

######################################################################
