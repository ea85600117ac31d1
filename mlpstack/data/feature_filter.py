'''
Feature filters: per-variable standardization (forward) and naturalization (inverse).

A filter is fit once on the sample values of a single variable and then maps raw values
into the normalized domain the networks work in, and back. Two families exist:

- RealFeatureFilter   : linear maps based on the observed [min, max] interval
- BinFeatureFilter    : binary (0/1) features

Centered normalization maps [min, max] onto [-1, 1], so 0 is the interval midpoint.
Uncentered normalization keeps 0 as a true anchor and maps the magnitude relative to
max(|min|, |max|). Forward and inverse maps are exact algebraic inverses for the same flag.

A filter fit on variable i belongs to variable i. Callers keep filters in variable order.

---------------------------------------------------------------
file    : mlpstack/data/feature_filter.py
---------------------------------------------------------------
'''

import copy
from abc import ABC, abstractmethod
from enum import Enum
from typing import Union

import numpy as np

from ..common.errors import ArgumentError, InvalidStateError
from ..maths.statistics import BasicStat

ArrayOrFloat = Union[float, np.ndarray]

######################################################################
#! ENUMS
######################################################################

class FeatureValueType(str, Enum):
    ''' Kind of values a filter handles. '''
    REAL    = 'real'
    BINARY  = 'binary'

class FeatureUse(str, Enum):
    ''' Whether the filtered variable is a network input or output. '''
    INPUT   = 'input'
    OUTPUT  = 'output'

######################################################################
#! BASE
######################################################################

class FeatureFilterBase(ABC):
    """
    Base of the feature filters.

    Holds the sample statistics of one variable. Statistics are accumulated with
    `update` (or `fit`, which resets first) and are fixed afterwards.
    """

    def __init__(self, value_type: FeatureValueType, use: FeatureUse = FeatureUse.INPUT):
        self._value_type    = FeatureValueType(value_type)
        self._use           = FeatureUse(use)
        self._stat          = BasicStat()

    # ---------------------------------------------------

    @property
    def value_type(self) -> FeatureValueType:
        return self._value_type

    @property
    def use(self) -> FeatureUse:
        return self._use

    @property
    def stat(self) -> BasicStat:
        return self._stat

    @property
    def is_fitted(self) -> bool:
        return self._stat.num_samples > 0

    # ---------------------------------------------------

    def reset(self) -> None:
        ''' Forget the accumulated statistics. '''
        self._stat.reset()

    def update(self, values) -> None:
        """
        Accumulate sample values.

        Raises:
            ArgumentError: on NaN/infinite values or values not admitted by the filter.
        """
        v = np.atleast_1d(np.asarray(values, dtype=np.float64)).ravel()
        if not np.all(np.isfinite(v)):
            raise ArgumentError(f"{type(self).__name__}: sample values must be finite, got {v[~np.isfinite(v)][:3]}.")
        self._check_values(v)
        self._stat.add_sample(v)

    def fit(self, values) -> "FeatureFilterBase":
        ''' Reset and accumulate the given values. Returns self. '''
        self.reset()
        self.update(values)
        return self

    def clone(self) -> "FeatureFilterBase":
        ''' Deep copy, statistics included. '''
        return copy.deepcopy(self)

    def _require_fitted(self):
        if not self.is_fitted:
            raise InvalidStateError(f"{type(self).__name__} has no statistics yet; call fit() first.")

    def _check_values(self, values: np.ndarray) -> None:
        pass

    # ---------------------------------------------------

    @abstractmethod
    def apply_filter(self, value: ArrayOrFloat, centered: bool = True) -> ArrayOrFloat:
        ''' Raw domain -> normalized domain. '''

    @abstractmethod
    def apply_reverse(self, value: ArrayOrFloat, centered: bool = True) -> ArrayOrFloat:
        ''' Normalized domain -> raw domain. '''

    def __repr__(self) -> str:
        return f"{type(self).__name__}(use={self._use.value}, {self._stat!r})"

######################################################################
#! REAL
######################################################################

class RealFeatureFilter(FeatureFilterBase):
    """
    Linear filter for real-valued features.

    centered   : y = 2 (x - min) / (max - min) - 1
    uncentered : y = x / max(|min|, |max|)

    Degenerate statistics (a single distinct value) map to 0 and back to that value.
    """

    def __init__(self, use: FeatureUse = FeatureUse.INPUT):
        super().__init__(FeatureValueType.REAL, use)

    @property
    def magnitude(self) -> float:
        return max(abs(self._stat.min), abs(self._stat.max))

    @staticmethod
    def _out(x, like):
        return float(x) if np.ndim(like) == 0 else x

    def apply_filter(self, value: ArrayOrFloat, centered: bool = True) -> ArrayOrFloat:
        self._require_fitted()
        x = np.asarray(value, dtype=np.float64)
        if centered:
            span = self._stat.span
            if span == 0.0:
                return self._out(np.zeros_like(x), value)
            return self._out(2.0 * (x - self._stat.min) / span - 1.0, value)
        m = self.magnitude
        if m == 0.0:
            return self._out(np.zeros_like(x), value)
        return self._out(x / m, value)

    def apply_reverse(self, value: ArrayOrFloat, centered: bool = True) -> ArrayOrFloat:
        self._require_fitted()
        y = np.asarray(value, dtype=np.float64)
        if centered:
            span = self._stat.span
            if span == 0.0:
                return self._out(np.full_like(y, self._stat.min), value)
            return self._out((y + 1.0) * span / 2.0 + self._stat.min, value)
        m = self.magnitude
        if m == 0.0:
            return self._out(np.zeros_like(y), value)
        return self._out(y * m, value)

######################################################################
#! BINARY
######################################################################

class BinFeatureFilter(FeatureFilterBase):
    """
    Filter for binary (0/1) features.

    As an input, 0 -> -1 and 1 -> 1, and the reverse thresholds at the binary border 0.
    As an output, values pass through unchanged (the network already produces probabilities);
    the binary border is 0.5. The centered flag has no effect.
    """

    def __init__(self, use: FeatureUse = FeatureUse.INPUT):
        super().__init__(FeatureValueType.BINARY, use)

    @property
    def binary_border(self) -> float:
        return 0.0 if self._use == FeatureUse.INPUT else 0.5

    def _check_values(self, values: np.ndarray) -> None:
        bad = values[(values != 0.0) & (values != 1.0)]
        if bad.size:
            raise ArgumentError(f"BinFeatureFilter: sample values must be 0 or 1, got {bad[:3]}.")

    def apply_filter(self, value: ArrayOrFloat, centered: bool = True) -> ArrayOrFloat:
        self._require_fitted()
        x = np.asarray(value, dtype=np.float64)
        if self._use == FeatureUse.OUTPUT:
            return float(x) if x.ndim == 0 else x.copy()
        out = np.where(x == 0.0, -1.0, 1.0)
        return float(out) if out.ndim == 0 else out

    def apply_reverse(self, value: ArrayOrFloat, centered: bool = True) -> ArrayOrFloat:
        self._require_fitted()
        y = np.asarray(value, dtype=np.float64)
        if self._use == FeatureUse.OUTPUT:
            return float(y) if y.ndim == 0 else y.copy()
        out = np.where(y < self.binary_border, 0.0, 1.0)
        return float(out) if out.ndim == 0 else out

######################################################################
#! EOF
