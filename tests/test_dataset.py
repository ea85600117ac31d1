"""
Tests for the sample datasets.
"""

import numpy as np
import pytest

from mlpstack.common.errors import ArgumentError, InvalidStateError
from mlpstack.data.dataset import Sample, SampleDataset
from mlpstack.data.feature_filter import BinFeatureFilter, RealFeatureFilter
from mlpstack.data.time_series import FlatVarSchema, TimeSeriesPattern
from mlpstack.ml.config import TaskType

# --------------------------------------------

class TestSampleDataset:

    def test_from_pairs(self):
        ds = SampleDataset.from_pairs([([1, 2], [0]), ([3, 4], [1])])
        assert len(ds) == 2
        assert ds.is_uniform
        assert (ds.n_inputs, ds.n_outputs) == (2, 1)
        np.testing.assert_array_equal(ds.inputs, [[1.0, 2.0], [3.0, 4.0]])
        assert [s.id for s in ds] == [0, 1]

    def test_sample_copies_vectors(self):
        x = np.array([1.0, 2.0])
        s = Sample(7, x, [0.0])
        x[0] = 5.0
        assert s.input[0] == 1.0

    def test_non_uniform(self):
        ds = SampleDataset()
        assert not ds.is_uniform
        ds.add_sample([1.0], [0.0])
        ds.add_sample([1.0, 2.0], [0.0])
        assert not ds.is_uniform
        with pytest.raises(InvalidStateError):
            ds.inputs
        with pytest.raises(ArgumentError):
            ds.add_sample([1.0])

    def test_from_arrays_row_mismatch(self):
        with pytest.raises(ArgumentError):
            SampleDataset.from_arrays(np.zeros((3, 2)), np.zeros((2, 1)))

    def test_split_and_slice(self):
        ds = SampleDataset.from_arrays(np.arange(10.0).reshape(5, 2), np.zeros((5, 1)))
        first, second = ds.split(2)
        assert (len(first), len(second)) == (3, 2)
        assert second[0].id == 3
        assert isinstance(ds[1:3], SampleDataset)
        with pytest.raises(ArgumentError):
            ds.split(5)

    def test_shuffled_keeps_samples(self):
        ds = SampleDataset.from_arrays(np.arange(20.0).reshape(10, 2), np.zeros((10, 1)))
        sh = ds.shuffled(np.random.default_rng(0))
        assert sorted(s.id for s in sh) == list(range(10))

    def test_convert_input_schema(self):
        ds = SampleDataset.from_pairs([([1, 2, 3, 4, 5, 6], [1.0])])
        out = ds.convert_input_schema(2, FlatVarSchema.GROUPED, FlatVarSchema.VAR_SEQUENCE)
        np.testing.assert_array_equal(out[0].input, [1, 3, 5, 2, 4, 6])
        back = out.convert_input_schema(2, FlatVarSchema.VAR_SEQUENCE, FlatVarSchema.GROUPED)
        np.testing.assert_array_equal(back[0].input, ds[0].input)

# --------------------------------------------

class TestStandardization:

    def test_filters_by_task(self):
        ds = SampleDataset.from_pairs([([0.0, 10.0], [1.0, 0.0]), ([2.0, 20.0], [0.0, 1.0])])
        ins, outs = ds.prepare_feature_filters(TaskType.CATEGORICAL)
        assert all(isinstance(f, RealFeatureFilter) for f in ins)
        assert all(isinstance(f, BinFeatureFilter) for f in outs)
        _, outs = ds.prepare_feature_filters(TaskType.REGRESSION)
        assert all(isinstance(f, RealFeatureFilter) for f in outs)

    def test_standardized_round_trip(self):
        rng = np.random.default_rng(4)
        ds = SampleDataset.from_arrays(rng.normal(3.0, 5.0, size=(20, 3)), rng.normal(-2.0, 9.0, size=(20, 2)))
        std, ins, outs = ds.create_standardized(TaskType.REGRESSION, centered=True)
        assert np.all(np.abs(std.inputs) <= 1.0 + 1e-12)
        assert np.all(np.abs(std.outputs) <= 1.0 + 1e-12)
        # naturalize the outputs through a pattern, one variable per output feature
        pattern = TimeSeriesPattern(std.outputs.T)
        pattern.naturalize(outs, centered=True)
        np.testing.assert_allclose(np.stack(pattern.variables, axis=1), ds.outputs, atol=1e-9)
        assert [s.id for s in std] == [s.id for s in ds]
