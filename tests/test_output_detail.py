"""
Tests for the output details (interpretation of a raw output vector).
"""

import numpy as np
import pytest

from mlpstack.common.errors import ArgumentError
from mlpstack.ml.output_detail import (
    BinaryOutputDetail, CategoricalOutputDetail, RegressionOutputDetail, TaskOutputDetailBase,
    create_output_detail
)

# --------------------------------------------

class TestBinaryOutputDetail:

    def test_single_feature(self):
        d = BinaryOutputDetail(["p"], [0.9])
        np.testing.assert_array_equal(d.binarized_data, [1])
        assert d.mapped_textual_data == [("p", "true")]
        assert d.mapped_binary_data == [("p", 1)]
        assert d.mapped_raw_data == [("p", 0.9)]

    def test_border_is_inclusive(self):
        d = BinaryOutputDetail(["a", "b", "c"], [0.5, 0.4999, 0.0])
        np.testing.assert_array_equal(d.binarized_data, [1, 0, 0])

    def test_render(self):
        d = BinaryOutputDetail(['rain', 'wind'], [0.91, 0.12])
        assert d.render(margin=2) == (
            "  Feature  | rain  | wind \n"
            "    Value  | 0.910 | 0.120\n"
            "   Binary  | 1     | 0    \n"
            "  Textual  | true  | false\n"
        )

    def test_snapshot_is_immutable(self):
        raw = np.array([0.2, 0.8])
        d = BinaryOutputDetail(["x", "y"], raw)
        raw[0] = 0.9
        assert d.raw_data[0] == 0.2
        with pytest.raises(ValueError):
            d.raw_data[0] = 1.0

# --------------------------------------------

class TestCategoricalOutputDetail:

    def test_first_maximum_wins(self):
        d = CategoricalOutputDetail(["A", "B", "C"], [0.5, 0.5, 0.2])
        assert d.resulting_class_name == "A"
        assert d.resulting_class_index == 0
        np.testing.assert_array_equal(d.binarized_data, [1, 0, 0])

    def test_one_hot_even_below_border(self):
        d = CategoricalOutputDetail(["A", "B", "C"], [0.3, 0.4, 0.3])
        np.testing.assert_array_equal(d.binarized_data, [0, 1, 0])
        assert d.mapped_textual_data[1] == ("B", "true")

    def test_render_header(self):
        text = CategoricalOutputDetail(["cat", "dog"], [0.2, 0.8]).render(margin=1)
        lines = text.splitlines()
        assert lines[0] == " Resulting class name is <dog>"
        assert lines[1].startswith(" Feature ")
        assert len(lines) == 5

# --------------------------------------------

class TestRegressionAndFactory:

    def test_regression_rows(self):
        d = RegressionOutputDetail(["t"], [21.123456789])
        assert d.render() == "Feature  | t       \n  Value  | 21.12346\n"

    def test_validation(self):
        with pytest.raises(ArgumentError):
            RegressionOutputDetail([], [])
        with pytest.raises(ArgumentError):
            RegressionOutputDetail(["a"], [1.0, 2.0])
        with pytest.raises(ArgumentError):
            BinaryOutputDetail(["a", ""], [1.0, 2.0])

    @pytest.mark.parametrize("task, cls", [
        ("binary", BinaryOutputDetail),
        ("categorical", CategoricalOutputDetail),
        ("regression", RegressionOutputDetail),
    ])
    def test_factory(self, task, cls):
        d = create_output_detail(task, ["a", "b"], [0.1, 0.9])
        assert isinstance(d, cls)
        assert isinstance(d, TaskOutputDetailBase)
        assert d.feature_names == ("a", "b")

    def test_factory_unknown_task(self):
        with pytest.raises(ArgumentError):
            create_output_detail("ranking", ["a"], [1.0])
