'''
Loss functions bound to the output layer.

Each loss returns per-sample losses and the gradient with respect to the output layer's
weighted sums (z-gradient). The z-gradient of the cross-entropy losses already contains the
derivative of the paired sigmoid/softmax activation, so the output layer uses it directly.

---------------------------------------------------------------
file    : mlpstack/ml/losses.py
---------------------------------------------------------------
'''

from abc import ABC, abstractmethod

import numpy as np
from scipy.special import xlogy

from .activations import ActivationFunction

_EPS = 1e-15

######################################################################

class LossFunction(ABC):
    ''' Loss of computed vs. ideal output vectors, both (N, n_outputs). '''

    name = 'loss'

    @abstractmethod
    def compute(self, computed: np.ndarray, ideal: np.ndarray) -> np.ndarray:
        ''' Per-sample loss, shape (N,). '''

    @abstractmethod
    def z_gradient(self, sums: np.ndarray, computed: np.ndarray, ideal: np.ndarray,
                activation: ActivationFunction) -> np.ndarray:
        ''' d loss / d sums, shape (N, n_outputs). '''

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

class SquaredErrorLoss(LossFunction):
    ''' (ideal - computed)^2 / 2, summed over the outputs. Pairs with any activation. '''

    name = 'squared_error'

    def compute(self, computed, ideal):
        return 0.5 * np.sum(np.square(ideal - computed), axis=-1)

    def z_gradient(self, sums, computed, ideal, activation):
        return activation.derivative(sums, computed) * (computed - ideal)

class SigmoidCrossEntropyLoss(LossFunction):
    ''' Binary cross-entropy of independent sigmoid outputs; ideal >= 0.5 counts as the positive class. '''

    name = 'sigmoid_cross_entropy'

    def compute(self, computed, ideal):
        c = np.clip(computed, _EPS, 1.0 - _EPS)
        return np.sum(np.where(ideal >= 0.5, -np.log(c), -np.log1p(-c)), axis=-1)

    def z_gradient(self, sums, computed, ideal, activation):
        return computed - ideal

class SoftmaxCrossEntropyLoss(LossFunction):
    ''' Categorical cross-entropy of a softmax layer. '''

    name = 'softmax_cross_entropy'

    def compute(self, computed, ideal):
        c = np.clip(computed, _EPS, 1.0)
        return -np.sum(xlogy(ideal >= 0.5, c), axis=-1)

    def z_gradient(self, sums, computed, ideal, activation):
        return computed - ideal

######################################################################
#! EOF
