"""
Tests for the feature filters (standardization and naturalization of single variables).
"""

import numpy as np
import pytest

from mlpstack.common.errors import ArgumentError, InvalidStateError
from mlpstack.data.feature_filter import BinFeatureFilter, FeatureUse, FeatureValueType, RealFeatureFilter

# --------------------------------------------

class TestRealFeatureFilter:

    def test_centered_maps_interval_to_unit(self):
        """[min, max] goes to [-1, 1], the midpoint to 0."""
        f = RealFeatureFilter().fit([2.0, 4.0, 10.0])
        np.testing.assert_allclose(f.apply_filter(np.array([2.0, 6.0, 10.0]), centered=True), [-1.0, 0.0, 1.0])

    def test_uncentered_keeps_zero(self):
        f = RealFeatureFilter().fit([-4.0, 2.0])
        assert f.apply_filter(0.0, centered=False) == 0.0
        assert f.apply_filter(2.0, centered=False) == pytest.approx(0.5)
        assert f.apply_filter(-4.0, centered=False) == pytest.approx(-1.0)

    @pytest.mark.parametrize("centered", [True, False])
    def test_reverse_inverts_filter(self, centered):
        rng = np.random.default_rng(3)
        data = rng.normal(5.0, 20.0, size=200)
        f = RealFeatureFilter().fit(data)
        values = rng.uniform(-100.0, 100.0, size=50)
        back = f.apply_reverse(f.apply_filter(values, centered), centered)
        np.testing.assert_allclose(back, values, atol=1e-9)

    def test_scalar_in_scalar_out(self):
        f = RealFeatureFilter().fit([0.0, 1.0])
        out = f.apply_filter(0.25)
        assert isinstance(out, float)
        assert out == pytest.approx(-0.5)

    def test_degenerate_statistics(self):
        f = RealFeatureFilter().fit([3.0, 3.0])
        assert f.apply_filter(3.0, centered=True) == 0.0
        assert f.apply_reverse(0.0, centered=True) == 3.0
        z = RealFeatureFilter().fit([0.0])
        assert z.apply_filter(0.0, centered=False) == 0.0
        assert z.apply_reverse(0.7, centered=False) == 0.0

    def test_unfitted_raises(self):
        with pytest.raises(InvalidStateError):
            RealFeatureFilter().apply_filter(1.0)

    def test_non_finite_values_rejected(self):
        with pytest.raises(ArgumentError):
            RealFeatureFilter().fit([1.0, np.nan])

    def test_update_accumulates_and_fit_resets(self):
        f = RealFeatureFilter(FeatureUse.OUTPUT)
        f.update([1.0, 2.0])
        f.update([5.0])
        assert f.stat.num_samples == 3
        assert f.stat.max == 5.0
        f.fit([7.0])
        assert f.stat.num_samples == 1
        assert f.use == FeatureUse.OUTPUT
        assert f.value_type == FeatureValueType.REAL

    def test_clone_is_independent(self):
        f = RealFeatureFilter().fit([0.0, 1.0])
        g = f.clone()
        g.update([10.0])
        assert f.stat.max == 1.0
        assert g.stat.max == 10.0

# --------------------------------------------

class TestBinFeatureFilter:

    def test_input_maps_to_plus_minus_one(self):
        f = BinFeatureFilter(FeatureUse.INPUT).fit([0, 1, 1])
        np.testing.assert_array_equal(f.apply_filter(np.array([0.0, 1.0])), [-1.0, 1.0])
        np.testing.assert_array_equal(f.apply_reverse(np.array([-0.9, 0.2])), [0.0, 1.0])
        assert f.binary_border == 0.0

    def test_output_passes_through(self):
        f = BinFeatureFilter(FeatureUse.OUTPUT).fit([0, 1])
        assert f.apply_filter(1.0) == 1.0
        assert f.apply_reverse(0.73) == pytest.approx(0.73)
        assert f.binary_border == 0.5

    def test_non_binary_values_rejected(self):
        with pytest.raises(ArgumentError):
            BinFeatureFilter().fit([0.0, 0.5])
