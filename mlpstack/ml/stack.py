'''
Stack (ensemble) of independently trained networks.

Every member has its own configuration, random generator, weights and statistics; nothing is
shared between members, so they can be trained concurrently without locks. The output of the
stack is the arithmetic mean of the members' outputs.

>>> stack = NetworkStack(NetworkStackConfig(models=(cfg_a, cfg_b), max_workers=2), 4, 1, 'binary')
>>> stack.train(train_data, key=7)
>>> stack.predict(x)

---------------------------------------------------------------
file    : mlpstack/ml/stack.py
---------------------------------------------------------------
'''

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..common.errors import ArgumentError, InvalidStateError, StackTrainingError
from ..common.flog import get_global_logger, log_training_summary
from .builder import DataLike, NetworkModelBuilder, ProgressCallback, as_arrays
from .config import NetworkModelConfig, NetworkStackConfig, TaskType
from .evaluation import TaskErrorStats
from .initializers import RandomLike, as_generator
from .network import NetworkModel

#########################################################

@dataclass
class MemberReport:
    ''' Outcome of one member's training. '''
    index               : int
    name                : str
    model               : Optional[NetworkModel]    = None
    attempt             : int                       = 0
    epoch               : int                       = 0
    train_stats         : Optional[TaskErrorStats]  = None
    validation_stats    : Optional[TaskErrorStats]  = None
    error               : Optional[BaseException]   = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.model is not None

    def to_row(self) -> dict:
        stats = self.validation_stats or self.train_stats
        return {
            'member'    : self.name,
            'status'    : 'ok' if self.ok else type(self.error).__name__,
            'attempt'   : self.attempt,
            'epoch'     : self.epoch,
            'rmse'      : stats.rmse if stats is not None else float('nan'),
            'accuracy'  : stats.accuracy if stats is not None else float('nan'),
        }

#########################################################

class NetworkStack:
    """
    Ensemble of networks sharing the input/output widths and the task type.

    Parameters
    ----------
    config : NetworkStackConfig
        One model configuration per member and the number of concurrent workers.
    n_inputs, n_outputs : int
    task_type : TaskType
    name : str
        Prefix of the member names and of the log messages.
    output_names : sequence of str, optional
        Output feature names for the error statistics.
    """

    def __init__(self,
                config          : NetworkStackConfig,
                n_inputs        : int,
                n_outputs       : int,
                task_type       : Union[str, TaskType],
                name            : str = "NetworkStack",
                output_names    : Optional[Sequence[str]] = None):
        if config is None or not config.models:
            raise ArgumentError("A network stack needs at least one member configuration.")
        self._config        = config
        self._n_inputs      = int(n_inputs)
        self._n_outputs     = int(n_outputs)
        self._task_type     = TaskType(task_type)
        self._name          = name
        self._output_names  = output_names
        self._logger        = get_global_logger()
        self._members       : List[Optional[NetworkModel]]  = [None] * len(config.models)
        self._reports       : List[MemberReport]            = []

    @classmethod
    def from_models(cls, models: Sequence[NetworkModel], name: str = "NetworkStack") -> "NetworkStack":
        """
        Stack of already trained networks. Such a stack predicts but cannot be retrained.
        """
        models = list(models)
        if not models:
            raise ArgumentError("A network stack needs at least one member.")
        first = models[0]
        for m in models[1:]:
            if m.task_type != first.task_type or m.n_outputs != first.n_outputs or m.n_inputs != first.n_inputs:
                raise ArgumentError(f"Member {m.name} ({m.task_type.value}, {m.n_inputs} -> {m.n_outputs}) does not match "
                                    f"{first.name} ({first.task_type.value}, {first.n_inputs} -> {first.n_outputs}).")
        for m in models:
            if not m.initialized:
                raise InvalidStateError(f"Member {m.name} has no weights.")

        out                 = cls.__new__(cls)
        out._config         = None
        out._n_inputs       = first.n_inputs
        out._n_outputs      = first.n_outputs
        out._task_type      = first.task_type
        out._name           = name
        out._output_names   = None
        out._logger         = get_global_logger()
        out._members        = models
        out._reports        = [MemberReport(i, m.name, model=m) for i, m in enumerate(models)]
        return out

    def log(self, msg: str, log: Union[int, str] = 'info', lvl: int = 0, color: Optional[str] = None):
        self._logger.say(f"[{self._name}] {msg}", log=log, lvl=lvl, color=color)

    # ---------------------------------------------------

    @property
    def config(self) -> Optional[NetworkStackConfig]:
        return self._config

    @property
    def task_type(self) -> TaskType:
        return self._task_type

    @property
    def n_inputs(self) -> int:
        return self._n_inputs

    @property
    def n_outputs(self) -> int:
        return self._n_outputs

    @property
    def n_members(self) -> int:
        return len(self._members)

    @property
    def members(self) -> List[Optional[NetworkModel]]:
        return list(self._members)

    @property
    def reports(self) -> List[MemberReport]:
        return list(self._reports)

    @property
    def trained(self) -> bool:
        return all(m is not None for m in self._members)

    def summary_frame(self) -> pd.DataFrame:
        ''' One row per member report. '''
        return pd.DataFrame([r.to_row() for r in self._reports]).set_index('member') if self._reports else pd.DataFrame()

    # ---------------------------------------------------
    #! TRAINING
    # ---------------------------------------------------

    def _train_member(self,
                    index       : int,
                    config      : NetworkModelConfig,
                    seed        : int,
                    train       : DataLike,
                    validation  : Optional[DataLike],
                    progress    : Optional[ProgressCallback]) -> MemberReport:
        name    = f"{self._name}[{index}]"
        report  = MemberReport(index, name)
        self.log(f"Member {index} training started.", log='debug', lvl=1)
        try:
            builder             = NetworkModelBuilder(config, self._n_inputs, self._n_outputs, self._task_type,
                                                    name=name, output_names=self._output_names, progress=progress)
            report.model        = builder.build(train, validation, key=config.seed if config.seed is not None else seed)
            report.attempt      = builder.best_attempt
            report.epoch        = builder.best_epoch
            report.train_stats  = builder.best_train_stats
            if validation is not None:
                report.validation_stats = builder.best_stats
            self.log(f"Member {index} finished (attempt {report.attempt}, epoch {report.epoch}).", log='debug', lvl=1)
        except Exception as e:
            report.error = e
            self._logger.error(f"[{self._name}] Member {index} failed: {type(e).__name__}: {e}")
        return report

    def train(self,
            train       : DataLike,
            validation  : Optional[DataLike] = None,
            key         : RandomLike = None,
            progress    : Optional[ProgressCallback] = None) -> "NetworkStack":
        """
        Train every member on the same data.

        Raises:
            InvalidStateError: for a stack created from ready models.
            StackTrainingError: when at least one member failed; the error carries all reports
                and the successful members are kept.
        """
        if self._config is None:
            raise InvalidStateError(f"{self._name}: a stack created from ready models cannot be retrained.")
        # validate once up front so that a data error is not reported per member
        x, y = as_arrays(train)
        if x.shape[1] != self._n_inputs or y.shape[1] != self._n_outputs:
            raise ArgumentError(f"Training data {x.shape[1]} -> {y.shape[1]} do not match the stack {self._n_inputs} -> {self._n_outputs}.")

        rng     = as_generator(key)
        seeds   = rng.integers(0, np.iinfo(np.int64).max, size=len(self._config.models))
        jobs    = [(i, cfg, int(s), (x, y), validation, progress) for i, (cfg, s) in enumerate(zip(self._config.models, seeds))]

        self.log(f"Training {len(jobs)} member(s) with {self._config.max_workers} worker(s).")
        run = self._logger.timing(self._train_member)
        if self._config.max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self._config.max_workers) as pool:
                reports = list(pool.map(lambda job: run(*job), jobs))
        else:
            reports = [run(*job) for job in jobs]

        self._reports = reports
        self._members = [r.model for r in reports]
        log_training_summary(self._logger, self.summary_frame(), title=f"{self._name} members",
                            extra_info=[f"Task: {self._task_type.value}"])

        failed = [r for r in reports if r.error is not None]
        if failed:
            raise StackTrainingError(f"{len(failed)} of {len(reports)} stack member(s) failed to train.", reports)
        return self

    # ---------------------------------------------------
    #! COMPUTE
    # ---------------------------------------------------

    def _require_trained(self):
        if not self.trained:
            raise InvalidStateError(f"{self._name}: not every member is trained.")

    def compute_members(self, x) -> np.ndarray:
        """
        Outputs of the members, shape (n_members, n_outputs) or (n_members, N, n_outputs).
        """
        self._require_trained()
        return np.stack([m.predict(x) for m in self._members])

    def predict(self, x) -> np.ndarray:
        """
        Mean of the members' outputs. A single member gives exactly its own output.
        """
        outputs = self.compute_members(x)
        if outputs.shape[0] == 1:
            return outputs[0]
        return outputs.mean(axis=0)

    def __call__(self, x) -> np.ndarray:
        return self.predict(x)

    def evaluate(self, data: DataLike) -> TaskErrorStats:
        ''' Error statistics of the stack output on a dataset. '''
        x, y    = as_arrays(data)
        stats   = TaskErrorStats(self._task_type, self._n_outputs, self._output_names)
        return stats.update(self.predict(x), y)

    def __repr__(self) -> str:
        return f"{self._name}[{self._task_type.value}](members={self.n_members}, {self._n_inputs} -> {self._n_outputs}, trained={self.trained})"

#########################################################
#! EOF
