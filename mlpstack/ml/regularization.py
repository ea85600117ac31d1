'''
Regularization applied to a layer after every optimizer step.

    - L1 (lasso)      : w <- w - strength * sign(w)
    - L2 (ridge)      : w <- w - strength * w
    - Norm constraint : the L2 norm of every neuron's incoming weight vector (optionally with
                        its bias) is kept within [min, max]

They act on the weight arrays only. They never decide the learning rate or the gradient
direction, so they compose with any optimizer. A zero L1 or L2 strength and a zero-norm (or
non-finite norm) vector under the norm constraint leave the arrays untouched.

Dropout is the fourth per-layer policy. Unlike the others it acts on the activations of a
training forward pass: `dropout_gates` draws the multiplicative gates of one batch.

---------------------------------------------------------------
file    : mlpstack/ml/regularization.py
---------------------------------------------------------------
'''

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numba
import numpy as np

from ..common.config_base import ConfigBase
from ..common.errors import ArgumentError

# ##############################################################################
#! Configurations
# ##############################################################################

@dataclass(frozen=True)
class RegL1Config(ConfigBase):
    """
    L1 weight shrinkage.

    Attributes:
        strength (float):
            Amount subtracted from |w| per step, >= 0. Zero disables the policy.
        biases (bool):
            Also shrink the biases.
    """
    strength    : float = 0.0
    biases      : bool  = False

    def __post_init__(self):
        if not math.isfinite(self.strength) or self.strength < 0.0:
            raise ArgumentError(f"L1 strength must be a finite non-negative number, got {self.strength}.")

    @property
    def enabled(self) -> bool:
        return self.strength > 0.0

@dataclass(frozen=True)
class RegL2Config(ConfigBase):
    """
    L2 weight decay, w <- (1 - strength) * w per step.

    Attributes:
        strength (float):
            Fraction of every weight removed per step, in [0, 1). Zero disables the policy.
        biases (bool):
            Also decay the biases.
    """
    strength    : float = 0.0
    biases      : bool  = False

    def __post_init__(self):
        if not math.isfinite(self.strength) or not 0.0 <= self.strength < 1.0:
            raise ArgumentError(f"L2 strength must be in [0, 1), got {self.strength}.")

    @property
    def enabled(self) -> bool:
        return self.strength > 0.0

@dataclass(frozen=True)
class NormConsConfig(ConfigBase):
    """
    Norm constraint of the neurons' incoming weight vectors.

    Attributes:
        min (float):
            Vectors with 0 < norm < min are scaled up to norm = min.
        max (float):
            Vectors with norm > max are scaled down to norm = max. Must not be below min;
            min = max = 0 disables the constraint.
        biases (bool):
            Include the neuron's bias in the vector.
    """
    min         : float = 0.0
    max         : float = 0.0
    biases      : bool  = False

    def __post_init__(self):
        if not math.isfinite(self.min) or self.min < 0.0:
            raise ArgumentError(f"Norm constraint min must be a finite non-negative number, got {self.min}.")
        if not math.isfinite(self.max) or self.max < 0.0:
            raise ArgumentError(f"Norm constraint max must be a finite non-negative number, got {self.max}.")
        if self.min > self.max:
            raise ArgumentError(f"Norm constraint min ({self.min}) must not exceed max ({self.max}).")

    @property
    def enabled(self) -> bool:
        return self.max > 0.0

class DropoutMode(str, Enum):
    ''' Gates of the dropout of a hidden layer's activations. '''
    NONE        = 'none'
    BERNOULLI   = 'bernoulli'       # 0 with probability p, 1 / (1 - p) otherwise
    GAUSSIAN    = 'gaussian'        # N(1, p / (1 - p))

@dataclass(frozen=True)
class DropoutConfig(ConfigBase):
    """
    Dropout of a hidden layer's activations during training.

    Attributes:
        mode (str | DropoutMode):
            Kind of the gates; 'none' disables dropout.
        p (float):
            Drop probability in [0, 1); nonzero exactly when the mode is not 'none'.
    """
    mode        : Union[str, DropoutMode]   = DropoutMode.NONE
    p           : float                     = 0.0

    def __post_init__(self):
        try:
            mode = DropoutMode(self.mode)
        except ValueError:
            raise ArgumentError(f"Unknown dropout mode '{self.mode}'. Available: {[m.value for m in DropoutMode]}.") from None
        object.__setattr__(self, 'mode', mode)
        if not math.isfinite(self.p) or not 0.0 <= self.p < 1.0:
            raise ArgumentError(f"Dropout probability must be in [0, 1), got {self.p}.")
        if (mode == DropoutMode.NONE) != (self.p == 0.0):
            raise ArgumentError(f"Dropout mode '{mode.value}' does not match p = {self.p}; a nonzero p needs a mode and vice versa.")

    @property
    def enabled(self) -> bool:
        return self.mode != DropoutMode.NONE

# ##############################################################################
#! Dropout
# ##############################################################################

def dropout_gates(rng: np.random.Generator, shape, config: DropoutConfig) -> Optional[np.ndarray]:
    """
    Multiplicative gates of a batch of activations, None when dropout is disabled.

    Both modes keep the expected activation unchanged, so no rescaling is needed at
    prediction time.
    """
    if not config.enabled:
        return None
    p = config.p
    if config.mode == DropoutMode.BERNOULLI:
        return (rng.random(shape) >= p) / (1.0 - p)
    return rng.normal(1.0, math.sqrt(p / (1.0 - p)), size=shape)

# ##############################################################################
#! Kernels
# ##############################################################################

@numba.njit(cache=True)
def _norm_constraint_kernel(w, b, use_bias, min_norm, max_norm):
    """
    In-place rescaling of the columns of w (and entries of b).
    Zero or non-finite norms are skipped.
    """
    n_in, n_out = w.shape
    for j in range(n_out):
        sq = 0.0
        for i in range(n_in):
            sq += w[i, j] * w[i, j]
        if use_bias:
            sq += b[j] * b[j]
        norm = math.sqrt(sq)
        if norm == 0.0 or not math.isfinite(norm):
            continue
        scale = 1.0
        if max_norm > 0.0 and norm > max_norm:
            scale = max_norm / norm
        elif norm < min_norm:
            scale = min_norm / norm
        if scale != 1.0:
            for i in range(n_in):
                w[i, j] *= scale
            if use_bias:
                b[j] *= scale

def apply_l1(weights: np.ndarray, biases: Optional[np.ndarray], config: RegL1Config) -> None:
    """
    Subtract strength * sign(.) from every weight (and bias, when configured), in place.
    A zero strength leaves the arrays untouched.
    """
    if not config.enabled:
        return
    weights -= config.strength * np.sign(weights)
    if config.biases and biases is not None:
        biases -= config.strength * np.sign(biases)

def apply_l2(weights: np.ndarray, biases: Optional[np.ndarray], config: RegL2Config) -> None:
    """
    Scale every weight (and bias, when configured) by 1 - strength, in place.
    A zero strength leaves the arrays untouched.
    """
    if not config.enabled:
        return
    weights *= 1.0 - config.strength
    if config.biases and biases is not None:
        biases *= 1.0 - config.strength

def apply_norm_constraint(weights: np.ndarray, biases: Optional[np.ndarray], config: NormConsConfig) -> None:
    """
    Keep the L2 norm of every neuron's incoming vector within [min, max], in place.

    The incoming vector of neuron j is the column weights[:, j], extended by biases[j]
    when `config.biases` is set. min = max = 0 is a no-op.
    """
    if not config.enabled:
        return
    if weights.dtype != np.float64:
        raise ArgumentError(f"Norm constraint expects float64 weights, got {weights.dtype}.")
    use_bias    = bool(config.biases and biases is not None)
    b           = biases if use_bias else np.zeros(weights.shape[1], dtype=np.float64)
    _norm_constraint_kernel(weights, b, use_bias, float(config.min), float(config.max))

# ##############################################################################
#! EOF
