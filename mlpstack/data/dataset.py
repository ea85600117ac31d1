'''
Sample datasets: ordered collections of (input vector, output vector) pairs.

The networks consume datasets only as ordered pairs; this module adds the bookkeeping a
training run needs around them: uniformity checks, feature filter preparation,
standardized copies, shuffling and splitting, and re-ordering of time-series inputs.

---------------------------------------------------------------
file    : mlpstack/data/dataset.py
---------------------------------------------------------------
'''

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..common.errors import ArgumentError, InvalidStateError
from ..ml.config import TaskType
from .feature_filter import BinFeatureFilter, FeatureFilterBase, FeatureUse, RealFeatureFilter
from .time_series import FlatVarSchema, TimeSeriesPattern

######################################################################

@dataclass(frozen=True, eq=False)
class Sample:
    """
    One (input, output) pair with an identifier. Vectors are stored as float64 copies.
    """
    id          : int
    input       : np.ndarray    = field(repr=False)
    output      : np.ndarray    = field(repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'input',  np.array(self.input,  dtype=np.float64, copy=True).ravel())
        object.__setattr__(self, 'output', np.array(self.output, dtype=np.float64, copy=True).ravel())

######################################################################
#! DATASET
######################################################################

class SampleDataset:
    """
    Ordered collection of samples.

    A dataset is *uniform* when it is non-empty and all input vectors share one length
    and all output vectors share one length. Training requires a uniform dataset.
    """

    def __init__(self, samples: Optional[Iterable[Sample]] = None):
        self._samples : List[Sample] = list(samples) if samples is not None else []

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Sequence[float], Sequence[float]]]) -> "SampleDataset":
        ''' Build from (input, output) pairs; ids are positions. '''
        return cls(Sample(i, x, y) for i, (x, y) in enumerate(pairs))

    @classmethod
    def from_arrays(cls, inputs, outputs) -> "SampleDataset":
        ''' Build from row-aligned 2D arrays (N, n_in) and (N, n_out). '''
        inputs, outputs = np.atleast_2d(inputs), np.atleast_2d(outputs)
        if inputs.shape[0] != outputs.shape[0]:
            raise ArgumentError(f"Inputs ({inputs.shape[0]}) and outputs ({outputs.shape[0]}) differ in the number of rows.")
        return cls.from_pairs(zip(inputs, outputs))

    # ---------------------------------------------------

    def add_sample(self, sample_or_input, output=None, sample_id: Optional[int] = None) -> None:
        """
        Append a sample, either a `Sample` or an (input, output) pair. The id defaults
        to the current size.
        """
        if isinstance(sample_or_input, Sample):
            self._samples.append(sample_or_input)
            return
        if output is None:
            raise ArgumentError("Output vector is required when adding a raw input vector.")
        self._samples.append(Sample(len(self._samples) if sample_id is None else sample_id, sample_or_input, output))

    def extend(self, other: "SampleDataset") -> None:
        self._samples.extend(other._samples)

    @property
    def samples(self) -> List[Sample]:
        return self._samples

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self):
        return iter(self._samples)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return SampleDataset(self._samples[idx])
        return self._samples[idx]

    # ---------------------------------------------------
    #! SHAPE
    # ---------------------------------------------------

    @property
    def is_uniform(self) -> bool:
        if not self._samples:
            return False
        n_in, n_out = self._samples[0].input.size, self._samples[0].output.size
        return all(s.input.size == n_in and s.output.size == n_out for s in self._samples)

    @property
    def n_inputs(self) -> int:
        return self._samples[0].input.size if self._samples else 0

    @property
    def n_outputs(self) -> int:
        return self._samples[0].output.size if self._samples else 0

    def _require_uniform(self):
        if not self.is_uniform:
            raise InvalidStateError("Dataset is empty or its vectors differ in length.")

    @property
    def inputs(self) -> np.ndarray:
        ''' (N, n_inputs) matrix of the input vectors. '''
        self._require_uniform()
        return np.stack([s.input for s in self._samples])

    @property
    def outputs(self) -> np.ndarray:
        ''' (N, n_outputs) matrix of the output vectors. '''
        self._require_uniform()
        return np.stack([s.output for s in self._samples])

    # ---------------------------------------------------
    #! REORDERING
    # ---------------------------------------------------

    def shuffled(self, rng: Optional[np.random.Generator] = None) -> "SampleDataset":
        ''' New dataset with the samples in a random order. '''
        rng = rng if rng is not None else np.random.default_rng()
        return SampleDataset(self._samples[i] for i in rng.permutation(len(self._samples)))

    def split(self, n_second: int) -> Tuple["SampleDataset", "SampleDataset"]:
        ''' Split off the last `n_second` samples. '''
        if not 0 < n_second < len(self._samples):
            raise ArgumentError(f"Second part size must be within (0, {len(self._samples)}), got {n_second}.")
        cut = len(self._samples) - n_second
        return SampleDataset(self._samples[:cut]), SampleDataset(self._samples[cut:])

    def convert_input_schema(self,
                            num_variables   : int,
                            source_schema   : FlatVarSchema,
                            target_schema   : FlatVarSchema) -> "SampleDataset":
        """
        Re-encode every input vector, seen as a flat time-series pattern with
        `num_variables` variables, from one schema to the other.
        """
        out = SampleDataset()
        for s in self._samples:
            pattern = TimeSeriesPattern.from_flat(s.input, 0, s.input.size, num_variables, source_schema)
            out.add_sample(Sample(s.id, pattern.flatten(target_schema), s.output))
        return out

    # ---------------------------------------------------
    #! FILTERS
    # ---------------------------------------------------

    def prepare_feature_filters(self, task_type: TaskType) -> Tuple[List[FeatureFilterBase], List[FeatureFilterBase]]:
        """
        Fit one filter per input feature and one per output feature.

        Inputs always get real filters. Outputs get real filters for regression and
        pass-through binary filters for classification tasks.
        """
        self._require_uniform()
        x, y            = self.inputs, self.outputs
        in_filters      = [RealFeatureFilter(FeatureUse.INPUT).fit(x[:, j]) for j in range(x.shape[1])]
        if TaskType(task_type) == TaskType.REGRESSION:
            out_filters = [RealFeatureFilter(FeatureUse.OUTPUT).fit(y[:, j]) for j in range(y.shape[1])]
        else:
            out_filters = [BinFeatureFilter(FeatureUse.OUTPUT).fit(y[:, j]) for j in range(y.shape[1])]
        return in_filters, out_filters

    def create_standardized(self,
                            task_type   : TaskType,
                            centered    : bool = True
                            ) -> Tuple["SampleDataset", List[FeatureFilterBase], List[FeatureFilterBase]]:
        """
        Prepare the filters and return a standardized copy of the dataset together with them.

        Returns:
            (standardized dataset, input filters, output filters)
        """
        in_filters, out_filters = self.prepare_feature_filters(task_type)
        x, y                    = self.inputs, self.outputs
        x_std                   = np.column_stack([f.apply_filter(x[:, j], centered) for j, f in enumerate(in_filters)])
        y_std                   = np.column_stack([f.apply_filter(y[:, j], centered) for j, f in enumerate(out_filters)])
        std                     = SampleDataset(Sample(s.id, xi, yi) for s, xi, yi in zip(self._samples, x_std, y_std))
        return std, in_filters, out_filters

    def __repr__(self) -> str:
        return f"SampleDataset(samples={len(self)}, n_inputs={self.n_inputs}, n_outputs={self.n_outputs})"

######################################################################
#! EOF
