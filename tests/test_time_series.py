"""
Tests for TimeSeriesPattern: flat decoding/encoding, consistency and filtering.
"""

import copy

import numpy as np
import pytest

from mlpstack.common.errors import FormatError, InvalidStateError, RangeError
from mlpstack.data.feature_filter import RealFeatureFilter
from mlpstack.data.time_series import FlatVarSchema, TimeSeriesPattern

# --------------------------------------------

class TestFlatDecoding:

    def test_grouped_example(self):
        """fromFlat([1..6], 0, 6, 2, Grouped) gives v1 = [1, 3, 5] and v2 = [2, 4, 6]."""
        p = TimeSeriesPattern.from_flat([1, 2, 3, 4, 5, 6], 0, 6, 2, FlatVarSchema.GROUPED)
        np.testing.assert_array_equal(p.variables[0], [1.0, 3.0, 5.0])
        np.testing.assert_array_equal(p.variables[1], [2.0, 4.0, 6.0])

    def test_var_sequence_example(self):
        p = TimeSeriesPattern.from_flat([1, 2, 3, 4, 5, 6], 0, 6, 2, FlatVarSchema.VAR_SEQUENCE)
        np.testing.assert_array_equal(p.variables[0], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(p.variables[1], [4.0, 5.0, 6.0])

    def test_slice_offset(self):
        p = TimeSeriesPattern.from_flat([9, 9, 1, 2, 3, 4, 9], start_index=2, length=4, num_variables=2)
        np.testing.assert_array_equal(p.variables[0], [1.0, 3.0])
        assert p.length == 2

    @pytest.mark.parametrize("schema", list(FlatVarSchema))
    def test_round_trip(self, schema):
        data = np.arange(12, dtype=float) * 0.5
        p = TimeSeriesPattern.from_flat(data, 0, 12, 3, schema)
        np.testing.assert_array_equal(p.flatten(schema), data)

    def test_schema_conversion(self):
        p = TimeSeriesPattern.from_flat([1, 2, 3, 4, 5, 6], 0, 6, 2, FlatVarSchema.GROUPED)
        np.testing.assert_array_equal(p.flatten(FlatVarSchema.VAR_SEQUENCE), [1, 3, 5, 2, 4, 6])

    @pytest.mark.parametrize("start, length, nvars", [
        (0, 5, 2),      # not a multiple
        (0, 1, 2),      # shorter than the number of variables
        (-1, 4, 2),     # negative start
        (4, 4, 2),      # beyond the data
        (0, 4, 0),      # no variables
    ])
    def test_malformed_parameters(self, start, length, nvars):
        with pytest.raises(FormatError):
            TimeSeriesPattern.from_flat(np.arange(6.0), start, length, nvars)

# --------------------------------------------

class TestPatternState:

    def test_consistency(self):
        assert not TimeSeriesPattern().consistent
        assert TimeSeriesPattern().length == 0
        assert not TimeSeriesPattern([[]]).consistent
        p = TimeSeriesPattern([[1, 2], [3]])
        assert not p.consistent
        assert len(p) == 0
        with pytest.raises(InvalidStateError):
            p.all_time_points()
        q = TimeSeriesPattern([[1, 2], [3, 4]])
        assert q.consistent and q.length == 2

    def test_data_at(self):
        p = TimeSeriesPattern([[1, 2, 3], [4, 5, 6]])
        np.testing.assert_array_equal(p.data_at(1), [2.0, 5.0])
        with pytest.raises(RangeError):
            p.data_at(3)
        with pytest.raises(RangeError):
            p.data_at(-1)

    def test_all_time_points(self):
        p = TimeSeriesPattern([[1, 2], [3, 4]])
        points = p.all_time_points()
        assert len(points) == 2
        np.testing.assert_array_equal(points[1], [2.0, 4.0])

    def test_constructor_copies_input(self):
        src = np.array([1.0, 2.0])
        p = TimeSeriesPattern([src])
        src[0] = 100.0
        assert p.variables[0][0] == 1.0

    def test_copies_never_alias(self):
        p = TimeSeriesPattern([[1, 2], [3, 4]])
        for q in (p.copy(), TimeSeriesPattern(p), copy.deepcopy(p)):
            assert q == p
            q.variables[0][0] = -7.0
            assert p.variables[0][0] == 1.0

# --------------------------------------------

class TestPatternFilters:

    def _filters(self, p):
        return [RealFeatureFilter().fit(v) for v in p.variables]

    @pytest.mark.parametrize("centered", [True, False])
    def test_standardize_naturalize_round_trip(self, centered):
        p = TimeSeriesPattern([[1.0, -2.0, 8.0], [10.0, 20.0, 35.0]])
        original = p.copy()
        filters = self._filters(p)
        p.standardize(filters, centered)
        assert not np.allclose(p.variables[1], original.variables[1])
        p.naturalize(filters, centered)
        for a, b in zip(p.variables, original.variables):
            np.testing.assert_allclose(a, b, atol=1e-9)

    def test_fewer_filters_leave_rest_untouched(self):
        p = TimeSeriesPattern([[0.0, 2.0], [5.0, 7.0]])
        p.standardize([RealFeatureFilter().fit([0.0, 2.0])])
        np.testing.assert_allclose(p.variables[0], [-1.0, 1.0])
        np.testing.assert_array_equal(p.variables[1], [5.0, 7.0])

    def test_extra_filters_are_ignored(self):
        p = TimeSeriesPattern([[0.0, 2.0]])
        flt = RealFeatureFilter().fit([0.0, 2.0])
        p.standardize([flt, RealFeatureFilter().fit([1.0, 9.0])])
        np.testing.assert_allclose(p.variables[0], [-1.0, 1.0])

    def test_inconsistent_pattern_rejected(self):
        with pytest.raises(InvalidStateError):
            TimeSeriesPattern([[1.0], [1.0, 2.0]]).standardize([])
