"""
Tests for the task error statistics.
"""

import numpy as np
import pandas as pd
import pytest

from mlpstack.common.errors import ArgumentError
from mlpstack.ml.config import TaskType
from mlpstack.ml.evaluation import TaskErrorStats

# --------------------------------------------

class TestTaskErrorStats:

    def test_regression_rmse(self):
        s = TaskErrorStats(TaskType.REGRESSION, 2)
        s.update([[1.0, 2.0], [0.0, 0.0]], [[1.0, 0.0], [0.0, 2.0]])
        assert s.num_samples == 2
        assert s.rmse == pytest.approx(np.sqrt(2.0))
        assert np.isnan(s.accuracy)

    def test_binary_decisions(self):
        s = TaskErrorStats('binary', 1)
        s.update([[0.9], [0.2], [0.6], [0.4]], [[1.0], [0.0], [0.0], [1.0]])
        assert s.wrong_decision.sum == 2
        assert s.false_positive.sum == 1
        assert s.false_negative.sum == 1
        assert s.binary_accuracy == pytest.approx(0.5)

    def test_categorical_tie_is_wrong(self):
        s = TaskErrorStats('categorical', 3)
        s.update([[0.4, 0.4, 0.2]], [[1.0, 0.0, 0.0]])
        assert s.wrong_classification.sum == 1
        assert s.classification_accuracy == 0.0

    def test_categorical_low_probability(self):
        s = TaskErrorStats('categorical', 3)
        s.update([[0.45, 0.35, 0.2], [0.1, 0.8, 0.1]], [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        assert s.wrong_classification.sum == 0
        assert s.low_probability.sum == 1
        assert s.class_log_loss.num_samples == 2

    def test_is_better(self):
        ideal = [[1.0, 0.0], [0.0, 1.0]]
        good = TaskErrorStats('categorical', 2).update([[0.9, 0.1], [0.2, 0.8]], ideal)
        fair = TaskErrorStats('categorical', 2).update([[0.6, 0.4], [0.4, 0.6]], ideal)
        bad = TaskErrorStats('categorical', 2).update([[0.1, 0.9], [0.2, 0.8]], ideal)
        assert good.is_better(fair)
        assert fair.is_better(bad)
        assert not bad.is_better(good)
        assert not good.is_better(good)

    def test_merge(self):
        a = TaskErrorStats('binary', 1).update([[0.9]], [[1.0]])
        b = TaskErrorStats('binary', 1).update([[0.9]], [[0.0]])
        a.merge(b)
        assert a.num_samples == 2
        assert a.wrong_decision.sum == 1
        with pytest.raises(ArgumentError):
            a.merge(TaskErrorStats('regression', 1))

    def test_shape_mismatch(self):
        with pytest.raises(ArgumentError):
            TaskErrorStats('regression', 2).update([[1.0]], [[1.0]])
        with pytest.raises(ArgumentError):
            TaskErrorStats('regression', 2, output_names=['a'])

    def test_frame_and_report(self):
        s = TaskErrorStats('categorical', 2, ['x', 'y']).update([[0.7, 0.3]], [[1.0, 0.0]])
        frame = s.to_frame('train')
        assert isinstance(frame, pd.DataFrame)
        assert frame.loc['train', 'class_accuracy'] == 1.0
        assert frame.loc['train', 'samples'] == 1
        text = s.report_text(margin=2)
        assert text.startswith("  samples")
        assert "class_accuracy" in text
