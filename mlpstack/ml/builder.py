'''
Builder of a trained NetworkModel.

The builder runs `config.attempts` independent training attempts (fresh weights each) and
keeps the best network seen across all of them. "Best" is decided by the task error
statistics on the validation data (or on the training data when no validation data is
given):

    - regression     : lower RMSE
    - binary         : fewer wrong decisions, then lower cross-entropy
    - categorical    : fewer wrong classifications, then fewer low-probability ones,
                       then lower log-loss

An attempt stops when its statistics have not improved for `stop_attempt_patience * epochs`
epochs, or when the training RMSE falls below 1e-6. A classification run stops altogether
once the best network decides every sample correctly. A progress callback is called after
every epoch; returning True abandons the run and the best network so far is returned.

>>> builder = NetworkModelBuilder(cfg, n_inputs=4, n_outputs=1, task_type='regression')
>>> model   = builder.build(train_data, validation_data, key=42)
>>> builder.history.tail()

---------------------------------------------------------------
file    : mlpstack/ml/builder.py
---------------------------------------------------------------
'''

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..common.errors import ArgumentError, InvalidStateError, NumericalInstabilityError
from ..common.flog import get_global_logger
from ..data.dataset import SampleDataset
from .config import NetworkModelConfig, TaskType
from .early_stopping import EarlyStopping
from .evaluation import TaskErrorStats
from .initializers import RandomLike, as_generator
from .network import NetworkModel
from .trainer import NetworkTrainer

# training RMSE below which an attempt is considered solved
STOP_RMSE = 1e-6

DataLike = Union[SampleDataset, Tuple[np.ndarray, np.ndarray]]

#########################################################

@dataclass
class BuildProgress:
    ''' State of the build reported to the progress callback after every epoch. '''
    attempt             : int
    max_attempts        : int
    epoch               : int
    max_epochs          : int
    train_loss          : float
    train_stats         : TaskErrorStats
    validation_stats    : Optional[TaskErrorStats]
    best_attempt        : int
    best_epoch          : int
    improved            : bool

    @property
    def stats(self) -> TaskErrorStats:
        ''' Statistics that decide the ranking. '''
        return self.validation_stats if self.validation_stats is not None else self.train_stats

ProgressCallback = Callable[[BuildProgress], Optional[bool]]

def as_arrays(data: DataLike) -> Tuple[np.ndarray, np.ndarray]:
    ''' (inputs, outputs) arrays of a dataset or of an (inputs, outputs) pair. '''
    if isinstance(data, SampleDataset):
        return data.inputs, data.outputs
    try:
        inputs, outputs = data
    except (TypeError, ValueError):
        raise ArgumentError(f"Expected a SampleDataset or an (inputs, outputs) pair, got {type(data).__name__}.") from None
    x = np.atleast_2d(np.asarray(inputs, dtype=np.float64))
    y = np.atleast_2d(np.asarray(outputs, dtype=np.float64))
    if x.shape[0] != y.shape[0]:
        raise ArgumentError(f"Got {x.shape[0]} input rows but {y.shape[0]} output rows.")
    return x, y

#########################################################

class NetworkModelBuilder:
    """
    Trains networks of one configuration and keeps the best one.

    Parameters
    ----------
    config : NetworkModelConfig
    n_inputs, n_outputs : int
    task_type : TaskType
    name : str
        Name of the produced network and the prefix of the log messages.
    output_names : sequence of str, optional
        Output feature names for the error statistics.
    progress : callable, optional
        Called with a BuildProgress after every epoch; returning True stops the build.
    """

    def __init__(self,
                config          : NetworkModelConfig,
                n_inputs        : int,
                n_outputs       : int,
                task_type       : Union[str, TaskType],
                name            : str = "NetworkModel",
                output_names    : Optional[Sequence[str]] = None,
                progress        : Optional[ProgressCallback] = None):
        self._config        = config
        self._n_inputs      = int(n_inputs)
        self._n_outputs     = int(n_outputs)
        self._task_type     = TaskType(task_type)
        self._name          = name
        self._output_names  = output_names
        self._progress      = progress
        self._logger        = get_global_logger()
        self._reset()

    def _reset(self):
        self._best_model        : Optional[NetworkModel]    = None
        self._best_stats        : Optional[TaskErrorStats]  = None
        self._best_train_stats  : Optional[TaskErrorStats]  = None
        self._best_attempt      = 0
        self._best_epoch        = 0
        self._history           : List[dict]                = []
        self._aborted           = False

    def log(self, msg: str, log: Union[int, str] = 'info', lvl: int = 0, color: Optional[str] = None):
        self._logger.say(f"[{self._name}] {msg}", log=log, lvl=lvl, color=color)

    # ---------------------------------------------------

    @property
    def config(self) -> NetworkModelConfig:
        return self._config

    @property
    def task_type(self) -> TaskType:
        return self._task_type

    @property
    def best_model(self) -> Optional[NetworkModel]:
        return self._best_model

    @property
    def best_stats(self) -> Optional[TaskErrorStats]:
        ''' Ranking statistics of the best network (validation when available). '''
        return self._best_stats

    @property
    def best_train_stats(self) -> Optional[TaskErrorStats]:
        return self._best_train_stats

    @property
    def best_attempt(self) -> int:
        return self._best_attempt

    @property
    def best_epoch(self) -> int:
        return self._best_epoch

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def history(self) -> pd.DataFrame:
        ''' One row per epoch of every attempt. '''
        return pd.DataFrame(self._history, columns=['attempt', 'epoch', 'train_loss', 'train_rmse', 'rmse', 'accuracy', 'improved'])

    # ---------------------------------------------------

    def _evaluate(self, model: NetworkModel, x: np.ndarray, y: np.ndarray) -> TaskErrorStats:
        stats = TaskErrorStats(self._task_type, self._n_outputs, self._output_names)
        return stats.update(model.predict(x), y)

    def _solved(self, stats: TaskErrorStats) -> bool:
        if self._task_type == TaskType.CATEGORICAL:
            return stats.classification_accuracy >= 1.0 and stats.binary_accuracy >= 1.0
        if self._task_type == TaskType.BINARY:
            return stats.binary_accuracy >= 1.0
        return False

    def build(self, train: DataLike, validation: Optional[DataLike] = None, key: RandomLike = None) -> NetworkModel:
        """
        Run the training attempts and return the best network (state TRAINED).

        Raises:
            ArgumentError: when the data do not match the network widths or are empty.
            NumericalInstabilityError: when every attempt diverged before producing a network.
        """
        x, y = as_arrays(train)
        if x.shape[0] == 0:
            raise ArgumentError("Training data are empty.")
        if x.shape[1] != self._n_inputs or y.shape[1] != self._n_outputs:
            raise ArgumentError(f"Training data {x.shape[1]} -> {y.shape[1]} do not match the network {self._n_inputs} -> {self._n_outputs}.")
        vx, vy = as_arrays(validation) if validation is not None else (None, None)

        self._reset()
        cfg         = self._config
        rng         = as_generator(key if key is not None else cfg.seed)
        last_error  = None

        for attempt in range(1, cfg.attempts + 1):
            self._logger.debug(f"[{self._name}] Attempt {attempt}/{cfg.attempts} started.", lvl=1)
            model   = NetworkModel(cfg, self._n_inputs, self._n_outputs, self._task_type, name=self._name).initialize(rng)
            model.begin_training()
            stopper = EarlyStopping.from_fraction(cfg.stop_attempt_patience, cfg.epochs)
            current = None
            try:
                with NetworkTrainer(model, cfg, rng) as trainer:
                    for epoch in range(1, cfg.epochs + 1):
                        loss        = trainer.train_epoch(x, y)
                        train_stats = self._evaluate(model, x, y)
                        val_stats   = self._evaluate(model, vx, vy) if vx is not None else None
                        stats       = val_stats if val_stats is not None else train_stats

                        improved    = current is None or stats.is_better(current)
                        if improved:
                            current = stats
                        if self._best_stats is None or stats.is_better(self._best_stats):
                            self._keep_best(model, stats, train_stats, attempt, epoch)

                        self._history.append({
                            'attempt'   : attempt,
                            'epoch'     : epoch,
                            'train_loss': loss,
                            'train_rmse': train_stats.rmse,
                            'rmse'      : stats.rmse,
                            'accuracy'  : stats.accuracy,
                            'improved'  : improved,
                        })

                        if self._progress is not None:
                            info = BuildProgress(attempt, cfg.attempts, epoch, cfg.epochs, loss, train_stats, val_stats,
                                                self._best_attempt, self._best_epoch, improved)
                            if self._progress(info):
                                self.log(f"Build abandoned at attempt {attempt}, epoch {epoch}.", color='yellow')
                                self._aborted = True
                                break

                        if train_stats.rmse < STOP_RMSE or stopper.step(improved):
                            break
                        if self._best_stats is not None and self._solved(self._best_stats):
                            break
            except NumericalInstabilityError as e:
                last_error = e
                self._logger.warning(f"[{self._name}] Attempt {attempt} diverged: {e}", lvl=1)
                continue

            if self._aborted or (self._best_stats is not None and self._solved(self._best_stats)):
                break

        if self._best_model is None:
            if last_error is not None:
                raise last_error
            raise InvalidStateError(f"{self._name}: build was abandoned before a network was trained.")

        self.log(f"Best network from attempt {self._best_attempt}, epoch {self._best_epoch}: {self._best_stats}", lvl=1)
        return self._best_model

    def _keep_best(self, model: NetworkModel, stats: TaskErrorStats, train_stats: TaskErrorStats, attempt: int, epoch: int):
        self._best_model        = model.copy()
        self._best_model.finish_training()
        self._best_stats        = stats
        self._best_train_stats  = train_stats
        self._best_attempt      = attempt
        self._best_epoch        = epoch
        self.log(f"New best network (attempt {attempt}, epoch {epoch}): rmse={stats.rmse:.5g}", log='debug', lvl=2)

#########################################################
#! EOF
