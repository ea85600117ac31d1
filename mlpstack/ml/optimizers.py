'''
Optimizers updating the network parameters from averaged gradients.

Namely, it provides:
- SGD  : stochastic gradient descent with momentum, dampening and Nesterov momentum
- Adam : Adam with optional AMSGrad

Configurations are frozen records; the optimizer objects hold the running state (moments)
and are owned by one training attempt. Use `create_optimizer(config)` to build one.

>>> opt = create_optimizer(AdamConfig(learning_rate=1e-3))
>>> opt.step(params, grads)     # in place

---------------------------------------------------------------
file    : mlpstack/ml/optimizers.py
---------------------------------------------------------------
'''

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from ..common.config_base import ConfigBase
from ..common.errors import ArgumentError, ValidationError

# ##############################################################################
#! Configurations
# ##############################################################################

@dataclass(frozen=True)
class SGDConfig(ConfigBase):
    """
    Attributes:
        learning_rate (float): step size, > 0.
        momentum (float): momentum factor in [0, 1).
        dampening (float): dampening of the momentum in [0, 1).
        nesterov (bool): Nesterov momentum; needs momentum > 0 and dampening == 0.
    """
    learning_rate   : float = 1e-2
    momentum        : float = 0.9
    dampening       : float = 0.0
    nesterov        : bool  = False

    def __post_init__(self):
        if not self.learning_rate > 0.0:
            raise ArgumentError(f"SGD learning rate must be positive, got {self.learning_rate}.")
        if not 0.0 <= self.momentum < 1.0:
            raise ArgumentError(f"SGD momentum must be in [0, 1), got {self.momentum}.")
        if not 0.0 <= self.dampening < 1.0:
            raise ArgumentError(f"SGD dampening must be in [0, 1), got {self.dampening}.")
        if self.nesterov and (self.momentum <= 0.0 or self.dampening != 0.0):
            raise ArgumentError("Nesterov momentum requires momentum > 0 and zero dampening.")

@dataclass(frozen=True)
class AdamConfig(ConfigBase):
    """
    Attributes:
        learning_rate (float): step size, > 0.
        beta1, beta2 (float): decay rates of the first and second moments, in [0, 1).
        epsilon (float): denominator guard, > 0.
        amsgrad (bool): use the running maximum of the second moment.
    """
    learning_rate   : float = 1e-3
    beta1           : float = 0.9
    beta2           : float = 0.999
    epsilon         : float = 1e-8
    amsgrad         : bool  = False

    def __post_init__(self):
        if not self.learning_rate > 0.0:
            raise ArgumentError(f"Adam learning rate must be positive, got {self.learning_rate}.")
        for name in ('beta1', 'beta2'):
            val = getattr(self, name)
            if not 0.0 <= val < 1.0:
                raise ArgumentError(f"Adam {name} must be in [0, 1), got {val}.")
        if not self.epsilon > 0.0:
            raise ArgumentError(f"Adam epsilon must be positive, got {self.epsilon}.")

OptimizerConfig = Union[SGDConfig, AdamConfig]

_OPTIMIZER_CONFIGS = {
    'sgd'   : SGDConfig,
    'adam'  : AdamConfig,
}

def optimizer_config_from_dict(data) -> OptimizerConfig:
    """
    Build an optimizer config from {'type': 'sgd' | 'adam', ...parameters}.
    """
    if isinstance(data, (SGDConfig, AdamConfig)):
        return data
    if not isinstance(data, dict) or 'type' not in data:
        raise ValidationError(f"Optimizer config must be a mapping with a 'type' key, got {data!r}.")
    params  = dict(data)
    kind    = str(params.pop('type')).lower()
    if kind not in _OPTIMIZER_CONFIGS:
        raise ValidationError(f"Unknown optimizer type '{kind}'. Available: {sorted(_OPTIMIZER_CONFIGS)}.")
    return _OPTIMIZER_CONFIGS[kind].from_dict(params)

# ##############################################################################
#! Gradient clipping
# ##############################################################################

def clip_gradients(grads: Sequence[np.ndarray], clip_value: float = 0.0, clip_norm: float = 0.0) -> None:
    """
    Clip gradients in place: element-wise to [-clip_value, clip_value], then rescale all of
    them together so the global L2 norm does not exceed clip_norm. Zero disables a step.
    """
    if clip_value > 0.0:
        for g in grads:
            np.clip(g, -clip_value, clip_value, out=g)
    if clip_norm > 0.0:
        norm = math.sqrt(sum(float(np.sum(g * g)) for g in grads))
        if norm > clip_norm:
            scale = clip_norm / norm
            for g in grads:
                g *= scale

# ##############################################################################
#! Optimizers
# ##############################################################################

class Optimizer(ABC):
    ''' Stateful in-place parameter update. '''

    def __init__(self, config: OptimizerConfig):
        self._config    = config
        self._step      = 0

    @property
    def config(self) -> OptimizerConfig:
        return self._config

    @property
    def steps(self) -> int:
        return self._step

    def reset(self) -> None:
        ''' Forget the accumulated moments. '''
        self._step = 0
        self._reset_state()

    def step(self, params: Sequence[np.ndarray], grads: Sequence[np.ndarray]) -> None:
        """
        Update the parameters in place, params[k] -= f(grads[k]).
        The list of parameter shapes must stay the same between calls.
        """
        if len(params) != len(grads):
            raise ArgumentError(f"Got {len(params)} parameter arrays but {len(grads)} gradients.")
        self._step += 1
        self._update(params, grads)

    @abstractmethod
    def _reset_state(self) -> None:
        pass

    @abstractmethod
    def _update(self, params: Sequence[np.ndarray], grads: Sequence[np.ndarray]) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._config})"

class SGD(Optimizer):
    ''' Gradient descent with (Nesterov) momentum. '''

    def __init__(self, config: SGDConfig = SGDConfig()):
        super().__init__(config)
        self._m : Optional[List[np.ndarray]] = None

    def _reset_state(self):
        self._m = None

    def _update(self, params, grads):
        cfg = self._config
        if cfg.momentum > 0.0:
            if self._m is None:
                self._m = [g.copy() for g in grads]
            else:
                for m, g in zip(self._m, grads):
                    m *= cfg.momentum
                    m += (1.0 - cfg.dampening) * g
        for k, (p, g) in enumerate(zip(params, grads)):
            if cfg.momentum > 0.0:
                d = g + cfg.momentum * self._m[k] if cfg.nesterov else self._m[k]
            else:
                d = g
            p -= cfg.learning_rate * d

class Adam(Optimizer):
    ''' Adam / AMSGrad with bias-corrected step size. '''

    def __init__(self, config: AdamConfig = AdamConfig()):
        super().__init__(config)
        self._reset_state()

    def _reset_state(self):
        self._m     : Optional[List[np.ndarray]] = None
        self._v     : Optional[List[np.ndarray]] = None
        self._v_max : Optional[List[np.ndarray]] = None

    def _update(self, params, grads):
        cfg = self._config
        if self._m is None:
            self._m     = [np.zeros_like(p) for p in params]
            self._v     = [np.zeros_like(p) for p in params]
            self._v_max = [np.zeros_like(p) for p in params]
        t   = self._step
        lr  = cfg.learning_rate * math.sqrt(1.0 - cfg.beta2 ** t) / (1.0 - cfg.beta1 ** t)
        for p, g, m, v, v_max in zip(params, grads, self._m, self._v, self._v_max):
            m *= cfg.beta1
            m += (1.0 - cfg.beta1) * g
            v *= cfg.beta2
            v += (1.0 - cfg.beta2) * g * g
            np.maximum(v_max, v, out=v_max)
            denom = np.sqrt(v_max if cfg.amsgrad else v) + cfg.epsilon
            p -= lr * m / denom

def create_optimizer(config: OptimizerConfig) -> Optimizer:
    ''' Fresh optimizer for the given configuration. '''
    if isinstance(config, SGDConfig):
        return SGD(config)
    if isinstance(config, AdamConfig):
        return Adam(config)
    raise ArgumentError(f"Unsupported optimizer configuration {config!r}.")

# ##############################################################################
#! EOF
