'''
Interpretation of a network's output vector.

An output detail is an immutable snapshot of (feature names, raw output vector) taken at
prediction time, together with its task-specific reading:

    - BinaryOutputDetail      : every output is an independent yes/no decision (raw >= 0.5)
    - CategoricalOutputDetail : exactly one class wins, the first maximum of the raw vector
    - RegressionOutputDetail  : raw values only

Every detail renders as an aligned text table for diagnostics. Cells are padded to the
column width, so the last column keeps its trailing spaces and every row ends with a newline.
BinaryOutputDetail(['rain', 'wind'], [0.91, 0.12]).render(margin=2) reads:

  Feature  | rain  | wind
    Value  | 0.910 | 0.120
   Binary  | 1     | 0
  Textual  | true  | false

---------------------------------------------------------------
file    : mlpstack/ml/output_detail.py
---------------------------------------------------------------
'''

from abc import ABC, abstractmethod
from typing import Dict, List, Sequence, Tuple, Type, Union

import numpy as np

from ..common.errors import ArgumentError
from ..maths.statistics import index_of_max
from .config import TaskType
from .evaluation import BIN_DECISION_BORDER

######################################################################

class TaskOutputDetailBase(ABC):
    """
    Feature names and the raw output vector of one prediction.

    Raises:
        ArgumentError: when there are no names, a name is empty, or the number of names
            differs from the length of the raw vector.
    """

    decimals : int = 3

    def __init__(self, feature_names: Sequence[str], raw_data):
        names   = [str(n) for n in feature_names] if feature_names is not None else []
        raw     = np.array(raw_data, dtype=np.float64).ravel()
        if not names:
            raise ArgumentError("Feature names can not be empty.")
        if len(names) != raw.size:
            raise ArgumentError(f"Number of feature names ({len(names)}) does not correspond to the length of raw data ({raw.size}).")
        if any(len(n) == 0 for n in names):
            raise ArgumentError("Feature names contain one or more zero-length name(s).")
        raw.setflags(write=False)
        self._names = tuple(names)
        self._raw   = raw

    @property
    def feature_names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def raw_data(self) -> np.ndarray:
        return self._raw

    @property
    def mapped_raw_data(self) -> List[Tuple[str, float]]:
        return [(n, float(v)) for n, v in zip(self._names, self._raw)]

    # ---------------------------------------------------

    def _value_text(self, value: float) -> str:
        return f"{value:.{self.decimals}f}"

    @abstractmethod
    def _table_rows(self) -> List[Tuple[str, List[str]]]:
        ''' (title, cells) per table row, one cell per feature. '''

    def render(self, margin: int = 0) -> str:
        """
        Aligned text table: titles right-aligned to the longest one, one column per feature
        wide enough for its widest cell, each row prefixed by `margin` spaces.
        """
        rows        = self._table_rows()
        title_pad   = max(len(title) for title, _ in rows)
        widths      = [max(len(cells[i]) for _, cells in rows) for i in range(len(self._names))]
        indent      = ' ' * max(margin, 0)
        lines       = []
        for title, cells in rows:
            line = indent + title.rjust(title_pad) + " "
            line += "".join(" | " + cell.ljust(w) for cell, w in zip(cells, widths))
            lines.append(line)
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.mapped_raw_data)})"

######################################################################

class _DecisionOutputDetail(TaskOutputDetailBase):
    ''' Shared binarized views of the decision tasks. '''

    def __init__(self, feature_names: Sequence[str], raw_data):
        super().__init__(feature_names, raw_data)
        binary = self._binarize()
        binary.setflags(write=False)
        self._binary = binary

    @abstractmethod
    def _binarize(self) -> np.ndarray:
        pass

    @property
    def binarized_data(self) -> np.ndarray:
        return self._binary

    @property
    def mapped_binary_data(self) -> List[Tuple[str, int]]:
        return [(n, int(b)) for n, b in zip(self._names, self._binary)]

    @property
    def mapped_textual_data(self) -> List[Tuple[str, str]]:
        return [(n, "true" if b else "false") for n, b in zip(self._names, self._binary)]

    def _table_rows(self):
        return [
            ("Feature", list(self._names)),
            ("Value",   [self._value_text(v) for v in self._raw]),
            ("Binary",  [str(int(b)) for b in self._binary]),
            ("Textual", [t for _, t in self.mapped_textual_data]),
        ]

class BinaryOutputDetail(_DecisionOutputDetail):
    ''' Independent yes/no decisions, 1 where raw >= 0.5. '''

    def _binarize(self):
        return (self._raw >= BIN_DECISION_BORDER).astype(np.int64)

class CategoricalOutputDetail(_DecisionOutputDetail):
    ''' One winning class: the first index attaining the maximum raw value. '''

    def _binarize(self):
        self._class_index, _ = index_of_max(self._raw)
        onehot = np.zeros(self._raw.size, dtype=np.int64)
        onehot[self._class_index] = 1
        return onehot

    @property
    def resulting_class_index(self) -> int:
        return self._class_index

    @property
    def resulting_class_name(self) -> str:
        return self._names[self._class_index]

    def render(self, margin: int = 0) -> str:
        indent = ' ' * max(margin, 0)
        return f"{indent}Resulting class name is <{self.resulting_class_name}>\n" + super().render(margin)

class RegressionOutputDetail(TaskOutputDetailBase):
    ''' Real values in natural units. '''

    decimals = 5

    def _table_rows(self):
        return [
            ("Feature", list(self._names)),
            ("Value",   [self._value_text(v) for v in self._raw]),
        ]

######################################################################

_OUTPUT_DETAILS : Dict[TaskType, Type[TaskOutputDetailBase]] = {
    TaskType.BINARY         : BinaryOutputDetail,
    TaskType.CATEGORICAL    : CategoricalOutputDetail,
    TaskType.REGRESSION     : RegressionOutputDetail,
}

def create_output_detail(task_type: Union[str, TaskType], feature_names: Sequence[str], raw_data) -> TaskOutputDetailBase:
    """
    Output detail matching the task type.

    >>> create_output_detail('categorical', ['A', 'B', 'C'], [0.5, 0.5, 0.2]).resulting_class_name
    'A'
    """
    try:
        kind = TaskType(task_type)
    except ValueError:
        raise ArgumentError(f"Unknown task type '{task_type}'. Available: {[t.value for t in TaskType]}.") from None
    return _OUTPUT_DETAILS[kind](feature_names, raw_data)

######################################################################
#! EOF
