'''
Running sample statistics.

`BasicStat` accumulates count, sum, sum of squares, minimum and maximum of a stream of
samples. It is the statistics holder behind the feature filters and the task error
statistics. Instances are thread-confined: parallel sections accumulate into their own
instance and are combined afterwards with `merge`.

---------------------------------------------------------------
file    : mlpstack/maths/statistics.py
---------------------------------------------------------------
'''

import math
from typing import Tuple, Union, Sequence

import numba
import numpy as np

from ..common.errors import ArgumentError

##############################################################

@numba.njit(cache=True)
def _accumulate(values):
    """
    Single pass over the samples.
    Returns (count, sum, sum of squares, min, max).
    """
    s   = 0.0
    sq  = 0.0
    mn  = np.inf
    mx  = -np.inf
    for v in values:
        s  += v
        sq += v * v
        if v < mn:
            mn = v
        if v > mx:
            mx = v
    return values.shape[0], s, sq, mn, mx

##############################################################

class BasicStat:
    '''
    Running statistics of a stream of real samples.

    Convention:
        - An empty statistics has zero count, zero sums and NaN min/max.
        - The variance is the population variance, clipped at zero.
    '''

    __slots__ = ('_count', '_sum', '_sum_sq', '_min', '_max')

    def __init__(self, values: Union[None, float, Sequence[float], np.ndarray] = None):
        self.reset()
        if values is not None:
            self.add_sample(values)

    #######################################################
    #! Setters
    #######################################################

    def reset(self) -> None:
        ''' Forget every sample. '''
        self._count     = 0
        self._sum       = 0.0
        self._sum_sq    = 0.0
        self._min       = math.nan
        self._max       = math.nan

    def add_sample(self, values) -> None:
        """
        Add one sample or an array of samples.

        Parameters:
        - values: scalar or array-like of real numbers (flattened).
        """
        v = np.ascontiguousarray(np.atleast_1d(values), dtype=np.float64).ravel()
        if v.size == 0:
            return
        n, s, sq, mn, mx = _accumulate(v)
        self._join(n, s, sq, mn, mx)

    def merge(self, other: "BasicStat") -> None:
        """
        Merge another statistics into this one (the reduction after parallel accumulation).
        """
        if other._count == 0:
            return
        self._join(other._count, other._sum, other._sum_sq, other._min, other._max)

    def _join(self, n, s, sq, mn, mx) -> None:
        if self._count == 0:
            self._min, self._max = float(mn), float(mx)
        else:
            self._min = min(self._min, float(mn))
            self._max = max(self._max, float(mx))
        self._count    += int(n)
        self._sum      += float(s)
        self._sum_sq   += float(sq)

    def copy(self) -> "BasicStat":
        ''' Independent copy of the statistics. '''
        out             = BasicStat()
        out._count      = self._count
        out._sum        = self._sum
        out._sum_sq     = self._sum_sq
        out._min        = self._min
        out._max        = self._max
        return out

    #######################################################
    #! Getters
    #######################################################

    @property
    def num_samples(self) -> int:
        return self._count

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def min(self) -> float:
        return self._min

    @property
    def max(self) -> float:
        return self._max

    @property
    def span(self) -> float:
        return self._max - self._min if self._count else 0.0

    @property
    def arith_avg(self) -> float:
        return self._sum / self._count if self._count else 0.0

    @property
    def mean_square(self) -> float:
        return self._sum_sq / self._count if self._count else 0.0

    @property
    def root_mean_square(self) -> float:
        return math.sqrt(self.mean_square)

    @property
    def variance(self) -> float:
        if not self._count:
            return 0.0
        return max(self.mean_square - self.arith_avg ** 2, 0.0)

    @property
    def std_dev(self) -> float:
        return math.sqrt(self.variance)

    def __repr__(self) -> str:
        return (f"BasicStat(n={self._count}, avg={self.arith_avg:.6g}, std={self.std_dev:.6g}, "
                f"min={self._min:.6g}, max={self._max:.6g})")

##############################################################

def index_of_max(values) -> Tuple[int, int]:
    '''
    Index of the first maximum and the number of elements attaining it.
    - values : non-empty 1D array-like
    '''
    v = np.asarray(values, dtype=np.float64).ravel()
    if v.size == 0:
        raise ArgumentError("index_of_max requires at least one value.")
    idx = int(np.argmax(v))
    return idx, int(np.count_nonzero(v == v[idx]))

##############################################################
#! EOF
