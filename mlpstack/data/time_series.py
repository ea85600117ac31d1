'''
Multi-variable time-series patterns.

A pattern owns one numeric vector per variable; all vectors of a usable ("consistent")
pattern have the same non-zero length. Patterns are decoded from and encoded to flat 1D
arrays under two orderings:

- GROUPED       : v1[t1], v2[t1], ..., v1[t2], v2[t2], ...
- VAR_SEQUENCE  : v1[t1], v1[t2], ..., v2[t1], v2[t2], ...

Buffers are owned by exactly one pattern: the constructor copies its input and copies
of a pattern never alias the original.

>>> p = TimeSeriesPattern.from_flat([1, 2, 3, 4, 5, 6], 0, 6, 2, FlatVarSchema.GROUPED)
>>> p.variables[0], p.variables[1]
(array([1., 3., 5.]), array([2., 4., 6.]))

---------------------------------------------------------------
file    : mlpstack/data/time_series.py
---------------------------------------------------------------
'''

from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from ..common.errors import FormatError, InvalidStateError, RangeError
from .feature_filter import FeatureFilterBase

######################################################################

class FlatVarSchema(str, Enum):
    ''' Ordering of the variables in a flat 1D encoding. '''
    GROUPED         = 'grouped'
    VAR_SEQUENCE    = 'var_sequence'

######################################################################
#! PATTERN
######################################################################

class TimeSeriesPattern:
    """
    Ordered collection of per-variable time vectors.

    Parameters
    ----------
    variables : iterable of 1D array-likes or TimeSeriesPattern, optional
        Per-variable data (copied). Passing another pattern makes a deep copy of it.
    """

    def __init__(self, variables: Union[None, "TimeSeriesPattern", Iterable[Sequence[float]]] = None):
        if isinstance(variables, TimeSeriesPattern):
            variables = variables._variables
        self._variables : List[np.ndarray] = []
        for v in (variables if variables is not None else ()):
            self.add_variable(v)

    # ---------------------------------------------------
    #! FLAT DECODING
    # ---------------------------------------------------

    @staticmethod
    def variables_from_flat(data,
                            start_index     : int,
                            length          : int,
                            num_variables   : int,
                            schema          : FlatVarSchema = FlatVarSchema.GROUPED) -> List[np.ndarray]:
        """
        Split a slice of a flat array into per-variable vectors.

        Raises
        ------
        FormatError
            When num_variables < 1, start_index < 0, length < num_variables,
            length is not a multiple of num_variables or the slice exceeds the data.
        """
        data = np.asarray(data, dtype=np.float64).ravel()
        if num_variables < 1:
            raise FormatError(f"Number of variables must be positive, got {num_variables}.")
        if start_index < 0:
            raise FormatError(f"Start index must be non-negative, got {start_index}.")
        if length < num_variables:
            raise FormatError(f"Data length {length} is smaller than the number of variables {num_variables}.")
        if length % num_variables != 0:
            raise FormatError(f"Data length {length} is not a multiple of the number of variables {num_variables}.")
        if start_index + length > data.size:
            raise FormatError(f"Slice [{start_index}, {start_index + length}) exceeds the data of length {data.size}.")

        chunk = data[start_index:start_index + length]
        if FlatVarSchema(schema) == FlatVarSchema.GROUPED:
            # rows are time points, columns are variables
            table = chunk.reshape(-1, num_variables).T
        else:
            table = chunk.reshape(num_variables, -1)
        return [row.copy() for row in table]

    @classmethod
    def from_flat(cls,
                data,
                start_index     : int                   = 0,
                length          : Optional[int]         = None,
                num_variables   : int                   = 1,
                schema          : FlatVarSchema         = FlatVarSchema.GROUPED) -> "TimeSeriesPattern":
        ''' Decode a pattern from a flat slice; length defaults to the rest of the data. '''
        if length is None:
            length = np.asarray(data).size - start_index
        out             = cls()
        out._variables  = cls.variables_from_flat(data, start_index, length, num_variables, schema)
        return out

    # ---------------------------------------------------
    #! PROPERTIES
    # ---------------------------------------------------

    def add_variable(self, values) -> None:
        ''' Append one variable vector (copied). '''
        self._variables.append(np.array(values, dtype=np.float64, copy=True).ravel())

    @property
    def variables(self) -> List[np.ndarray]:
        return self._variables

    @property
    def num_variables(self) -> int:
        return len(self._variables)

    @property
    def consistent(self) -> bool:
        ''' At least one variable, non-empty, all of equal length. '''
        if not self._variables or self._variables[0].size == 0:
            return False
        n = self._variables[0].size
        return all(v.size == n for v in self._variables[1:])

    @property
    def length(self) -> int:
        ''' Number of time points; 0 when the pattern is inconsistent. '''
        return self._variables[0].size if self.consistent else 0

    def __len__(self) -> int:
        return self.length

    def _require_consistent(self):
        if not self.consistent:
            raise InvalidStateError("Pattern is not consistent (no variables, empty or unequal variable vectors).")

    # ---------------------------------------------------
    #! ACCESS
    # ---------------------------------------------------

    def data_at(self, time_index: int) -> np.ndarray:
        """
        Values of all variables at one time point.

        Raises
        ------
        RangeError
            When time_index is negative or >= length.
        """
        if time_index < 0 or time_index >= self.length:
            raise RangeError(f"Time index {time_index} is out of range [0, {self.length}).")
        return np.array([v[time_index] for v in self._variables], dtype=np.float64)

    def all_time_points(self) -> List[np.ndarray]:
        ''' Per-time-point vectors in time order. '''
        self._require_consistent()
        return [row.copy() for row in np.stack(self._variables, axis=1)]

    def flatten(self, schema: FlatVarSchema = FlatVarSchema.GROUPED) -> np.ndarray:
        ''' Encode the pattern into a flat array under the given schema. '''
        if FlatVarSchema(schema) == FlatVarSchema.VAR_SEQUENCE:
            self._require_consistent()
            return np.concatenate(self._variables)
        return np.concatenate(self.all_time_points())

    # ---------------------------------------------------
    #! FILTERS
    # ---------------------------------------------------

    def _apply(self, filters: Iterable[FeatureFilterBase], centered: bool, reverse: bool) -> None:
        self._require_consistent()
        # zip stops at the shorter side: extra filters are never reached, extra variables stay as they are
        for idx, flt in zip(range(self.num_variables), filters):
            fn                      = flt.apply_reverse if reverse else flt.apply_filter
            self._variables[idx]    = np.asarray(fn(self._variables[idx], centered), dtype=np.float64)

    def standardize(self, filters: Iterable[FeatureFilterBase], centered: bool = True) -> None:
        """
        Apply the i-th filter to the i-th variable in place.

        Variables beyond the number of supplied filters stay untouched and filters
        beyond the number of variables are not reached.
        """
        self._apply(filters, centered, reverse=False)

    def naturalize(self, filters: Iterable[FeatureFilterBase], centered: bool = True) -> None:
        ''' Inverse of `standardize` with the same filters and flag. '''
        self._apply(filters, centered, reverse=True)

    # ---------------------------------------------------

    def copy(self) -> "TimeSeriesPattern":
        return TimeSeriesPattern(self)

    def __deepcopy__(self, memo):
        return self.copy()

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeSeriesPattern):
            return NotImplemented
        return (self.num_variables == other.num_variables
                and all(np.array_equal(a, b) for a, b in zip(self._variables, other._variables)))

    __hash__ = None

    def __repr__(self) -> str:
        return f"TimeSeriesPattern(variables={self.num_variables}, length={self.length}, consistent={self.consistent})"

######################################################################
#! EOF
