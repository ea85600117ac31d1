'''
Stopping rule of a training attempt.

An attempt stops when the monitored quantity has not improved for `patience` epochs.
Improvement is either judged here from a scalar metric (lower is better, at least
`min_delta` below the best one) or reported by the caller (`step(improved)`), which is how
the builder feeds in the task-specific ranking of its error statistics.

>>> stop = EarlyStopping(patience=5)
>>> for epoch in range(100):
>>>     if stop(validation_loss(epoch)):
>>>         break

---------------------------------------------------------------
file    : mlpstack/ml/early_stopping.py
---------------------------------------------------------------
'''

import math
from typing import Optional, Union

import numpy as np

from ..common.errors import ArgumentError
from ..common.flog import Logger

_INF = float('inf')

# ##############################################################################

class EarlyStopping:
    """
    Monitors a metric and determines if training should stop.

    A patience of 0 (or None) disables the rule; a non-finite metric always stops.
    """

    def __init__(self, patience: Optional[int] = 0, min_delta: float = 0.0, logger: Optional[Logger] = None):
        if patience is not None and patience < 0:
            raise ArgumentError("Patience must be non-negative.")
        if min_delta < 0.0:
            raise ArgumentError("min_delta must be non-negative.")

        self._logger            = logger
        self._patience          = patience
        self._min_delta         = min_delta
        self._best_metric       = _INF
        self._epoch_since_best  = 0
        self._stop_training     = False

    @classmethod
    def from_fraction(cls, fraction: float, epochs: int, logger: Optional[Logger] = None) -> "EarlyStopping":
        ''' Patience given as a fraction of the number of epochs (at least one epoch when enabled). '''
        patience = max(1, int(math.ceil(fraction * epochs))) if fraction > 0.0 else 0
        return cls(patience=patience, logger=logger)

    def _log(self, message: str, log: Union[int, str] = 'debug', lvl: int = 1, color: Optional[str] = None):
        if self._logger is not None:
            self._logger.say(f"[{self.__class__.__name__}] {message}", log=log, lvl=lvl, color=color)

    def __call__(self, metric: Union[float, np.number]) -> bool:
        """
        Record a metric value (lower is better) and tell whether to stop.
        """
        value = float(metric)
        if not math.isfinite(value):
            self._log("Received NaN or Inf metric. Stopping.", log='warning', color='red')
            self._stop_training = True
            return True

        improved = value < (self._best_metric - self._min_delta)
        if improved:
            self._best_metric = value
        return self.step(improved)

    def step(self, improved: bool) -> bool:
        """
        Record whether the last epoch improved and tell whether to stop.
        """
        if improved:
            self._epoch_since_best  = 0
        else:
            self._epoch_since_best += 1
            self._log(f"No improvement for {self._epoch_since_best} epoch(s).")

        if self._patience and self._epoch_since_best >= self._patience:
            self._log(f"Patience ({self._patience}) exceeded. Stopping.", log='info', color='yellow')
            self._stop_training = True
        return self._stop_training

    def reset(self):
        self._best_metric           = _INF
        self._epoch_since_best      = 0
        self._stop_training         = False

    @property
    def patience(self) -> Optional[int]:
        return self._patience

    @property
    def best_metric(self) -> float:
        return self._best_metric

    @property
    def epochs_since_best(self) -> int:
        return self._epoch_since_best

    @property
    def stopped(self) -> bool:
        return self._stop_training

# ##############################################################################
#! EOF
