'''
Error statistics of a trained network on a dataset.

One statistics object collects, depending on the task type:
    - all tasks         : absolute error of every output (precision, RMSE)
    - binary, categorical : wrong yes/no decisions at the 0.5 border, binary cross-entropy,
                          false positives and false negatives
    - categorical       : wrong classifications (ties count as wrong), correct classifications
                          with a winning probability below 0.5, log-loss of the ideal class

The statistics are mergeable, so partial results (members, partitions) reduce into one.
`is_better` ranks two statistics of the same task: for classification the number of
errors decides first and the losses only break ties.

---------------------------------------------------------------
file    : mlpstack/ml/evaluation.py
---------------------------------------------------------------
'''

from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..common.errors import ArgumentError
from ..maths.statistics import BasicStat
from .config import TaskType

BIN_DECISION_BORDER = 0.5
_EPS                = 1e-15

######################################################################

class TaskErrorStats:
    """
    Error statistics of computed vs. ideal output vectors.

    Parameters
    ----------
    task_type : TaskType
    n_outputs : int
        Width of the output vectors.
    output_names : sequence of str, optional
        Output feature names (only used in reports).
    """

    def __init__(self, task_type: Union[str, TaskType], n_outputs: int, output_names: Optional[Sequence[str]] = None):
        self.task_type              = TaskType(task_type)
        self.n_outputs              = int(n_outputs)
        self.output_names           = list(output_names) if output_names is not None else [f"output_{i}" for i in range(n_outputs)]
        if len(self.output_names) != self.n_outputs:
            raise ArgumentError(f"Got {len(self.output_names)} output names for {self.n_outputs} outputs.")

        self.precision              = BasicStat()
        # yes/no decisions
        self.wrong_decision         = BasicStat()
        self.false_positive         = BasicStat()
        self.false_negative         = BasicStat()
        self.log_loss               = BasicStat()
        # categorical
        self.wrong_classification   = BasicStat()
        self.low_probability        = BasicStat()
        self.class_log_loss         = BasicStat()

    # ---------------------------------------------------
    #! UPDATE
    # ---------------------------------------------------

    @property
    def is_decision_task(self) -> bool:
        return self.task_type in (TaskType.BINARY, TaskType.CATEGORICAL)

    def update(self, computed, ideal) -> "TaskErrorStats":
        """
        Add a batch of computed and ideal output vectors, both (N, n_outputs) or (n_outputs,).
        """
        c = np.atleast_2d(np.asarray(computed, dtype=np.float64))
        i = np.atleast_2d(np.asarray(ideal, dtype=np.float64))
        if c.shape != i.shape or c.shape[1] != self.n_outputs:
            raise ArgumentError(f"Computed {c.shape} and ideal {i.shape} outputs do not match {self.n_outputs} outputs.")

        self.precision.add_sample(np.abs(i - c))
        if not self.is_decision_task:
            return self

        c_pos, i_pos = c >= BIN_DECISION_BORDER, i >= BIN_DECISION_BORDER
        self.wrong_decision.add_sample((c_pos != i_pos).astype(np.float64))
        self.false_positive.add_sample((c_pos & ~i_pos).astype(np.float64))
        self.false_negative.add_sample((~c_pos & i_pos).astype(np.float64))
        cc = np.clip(c, _EPS, 1.0 - _EPS)
        self.log_loss.add_sample(np.where(i_pos, -np.log(cc), -np.log1p(-cc)))

        if self.task_type == TaskType.CATEGORICAL:
            self.class_log_loss.add_sample(-np.log(np.clip(c[i_pos], _EPS, 1.0)))
            c_idx       = np.argmax(c, axis=1)
            i_idx       = np.argmax(i, axis=1)
            c_max       = c[np.arange(c.shape[0]), c_idx]
            ties        = np.count_nonzero(c == c_max[:, None], axis=1) > 1
            wrong       = (c_idx != i_idx) | ties
            self.wrong_classification.add_sample(wrong.astype(np.float64))
            self.low_probability.add_sample((c_max[~wrong] < BIN_DECISION_BORDER).astype(np.float64))
        return self

    @classmethod
    def from_model(cls, model, inputs, outputs, output_names: Optional[Sequence[str]] = None) -> "TaskErrorStats":
        ''' Statistics of `model.predict(inputs)` against `outputs`. '''
        stats = cls(model.task_type, model.n_outputs, output_names)
        return stats.update(model.predict(np.atleast_2d(inputs)), outputs)

    def merge(self, other: "TaskErrorStats") -> None:
        ''' Add the samples of another statistics of the same task. '''
        if other.task_type != self.task_type or other.n_outputs != self.n_outputs:
            raise ArgumentError("Cannot merge error statistics of different tasks.")
        for name in self._STATS:
            getattr(self, name).merge(getattr(other, name))

    _STATS = ('precision', 'wrong_decision', 'false_positive', 'false_negative', 'log_loss',
            'wrong_classification', 'low_probability', 'class_log_loss')

    # ---------------------------------------------------
    #! SUMMARY
    # ---------------------------------------------------

    @property
    def num_samples(self) -> int:
        return self.precision.num_samples // self.n_outputs if self.n_outputs else 0

    @property
    def rmse(self) -> float:
        return self.precision.root_mean_square

    @property
    def binary_accuracy(self) -> float:
        return 1.0 - self.wrong_decision.arith_avg

    @property
    def classification_accuracy(self) -> float:
        return 1.0 - self.wrong_classification.arith_avg

    @property
    def accuracy(self) -> float:
        ''' Headline accuracy: classification accuracy for categorical, decision accuracy for binary. '''
        if self.task_type == TaskType.CATEGORICAL:
            return self.classification_accuracy
        if self.task_type == TaskType.BINARY:
            return self.binary_accuracy
        return float('nan')

    def is_better(self, other: "TaskErrorStats") -> bool:
        """
        True when these statistics are strictly better than `other`.
        """
        if self.task_type == TaskType.CATEGORICAL:
            keys_self   = (self.wrong_classification.sum, self.low_probability.sum, self.class_log_loss.root_mean_square)
            keys_other  = (other.wrong_classification.sum, other.low_probability.sum, other.class_log_loss.root_mean_square)
            return keys_self < keys_other
        if self.task_type == TaskType.BINARY:
            return (self.wrong_decision.sum, self.log_loss.root_mean_square) < (other.wrong_decision.sum, other.log_loss.root_mean_square)
        return self.rmse < other.rmse

    def summary(self) -> Dict[str, float]:
        ''' Headline numbers, keyed by name. '''
        out = {'samples': self.num_samples, 'rmse': self.rmse, 'max_abs_error': self.precision.max}
        if self.is_decision_task:
            out.update({
                'binary_accuracy'   : self.binary_accuracy,
                'wrong_decisions'   : int(self.wrong_decision.sum),
                'false_positives'   : int(self.false_positive.sum),
                'false_negatives'   : int(self.false_negative.sum),
                'cross_entropy'     : self.log_loss.arith_avg,
            })
        if self.task_type == TaskType.CATEGORICAL:
            out.update({
                'class_accuracy'    : self.classification_accuracy,
                'wrong_classes'     : int(self.wrong_classification.sum),
                'low_probabilities' : int(self.low_probability.sum),
                'class_cross_entropy': self.class_log_loss.arith_avg,
            })
        return out

    def to_frame(self, name: str = 'stats') -> pd.DataFrame:
        ''' One-row frame of `summary()`, indexed by `name`. '''
        return pd.DataFrame([self.summary()], index=pd.Index([name], name='name'))

    def report_text(self, margin: int = 0) -> str:
        ''' Plain-text report, one quantity per line. '''
        rows = []
        for key, value in self.summary().items():
            text = f"{value:.5f}" if isinstance(value, float) else str(value)
            rows.append(f"{' ' * margin}{key:<20}: {text}")
        return "\n".join(rows)

    def __repr__(self) -> str:
        return f"TaskErrorStats({self.task_type.value}, samples={self.num_samples}, rmse={self.rmse:.5g})"

######################################################################
#! EOF
