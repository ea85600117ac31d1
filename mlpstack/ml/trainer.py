'''
Epoch loop of one training attempt.

The trainer owns the optimizer of the attempt and runs mini-batch gradient descent on a
NetworkModel:

    for every batch:
        gradients   = sum over partitions of backward(forward(part, key)) / batch size
        clip(gradients)
        model.apply_update(gradients, optimizer)     # step, L1, L2, norm constraint
        model.check_stability()

A batch is split into `partitions` contiguous parts whose gradient sums are computed
concurrently and reduced afterwards. The partition count only affects wall-clock time; the
reduction order may change the last floating-point digits. Every partition draws its dropout
gates from its own child generator, so no generator is shared between threads.

---------------------------------------------------------------
file    : mlpstack/ml/trainer.py
---------------------------------------------------------------
'''

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

import numpy as np

from ..common.errors import ArgumentError
from .config import NetworkModelConfig
from .initializers import RandomLike, as_generator
from .network import NetworkModel
from .optimizers import Optimizer, clip_gradients, create_optimizer

Gradients = List[Tuple[np.ndarray, np.ndarray]]

#########################################################

class NetworkTrainer:
    """
    Runs training epochs of a model with the settings of its configuration.

    Use as a context manager (or call `close`) when partitions > 1, so the worker
    threads are released.
    """

    def __init__(self, model: NetworkModel, config: Optional[NetworkModelConfig] = None, key: RandomLike = None):
        self._model         = model
        self._config        = config or model.config
        self._rng           = as_generator(key)
        self._optimizer     : Optimizer = create_optimizer(self._config.optimizer)
        self._executor      = ThreadPoolExecutor(max_workers=self._config.partitions) if self._config.partitions > 1 else None
        self._epoch         = 0

    def __enter__(self) -> "NetworkTrainer":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    @property
    def model(self) -> NetworkModel:
        return self._model

    @property
    def optimizer(self) -> Optimizer:
        return self._optimizer

    @property
    def epoch(self) -> int:
        return self._epoch

    # ---------------------------------------------------

    def _part_gradients(self, x: np.ndarray, y: np.ndarray, key: Optional[np.random.Generator]) -> Tuple[Gradients, float]:
        ''' Summed gradients and summed loss of one partition. '''
        cache       = self._model.forward(x, key)
        loss        = float(np.sum(self._model.loss.compute(cache.activations[-1], y)))
        return self._model.backward(cache, y, average=False), loss

    def batch_gradients(self, x: np.ndarray, y: np.ndarray) -> Tuple[Gradients, float]:
        """
        Batch-averaged gradients and the summed loss of the batch.
        """
        n       = x.shape[0]
        dropout = self._model.has_dropout
        if self._executor is None or n < 2:
            grads, loss = self._part_gradients(x, y, self._rng if dropout else None)
        else:
            bounds  = np.array_split(np.arange(n), min(self._config.partitions, n))
            if dropout:
                keys = [np.random.default_rng(int(s)) for s in self._rng.integers(0, np.iinfo(np.int64).max, size=len(bounds))]
            else:
                keys = [None] * len(bounds)
            futures = [self._executor.submit(self._part_gradients, x[idx], y[idx], k) for idx, k in zip(bounds, keys)]
            parts   = [f.result() for f in futures]
            grads   = parts[0][0]
            for other, _ in parts[1:]:
                for (gw, gb), (ow, ob) in zip(grads, other):
                    gw += ow
                    gb += ob
            loss    = sum(p[1] for p in parts)
        return [(gw / n, gb / n) for gw, gb in grads], loss

    def train_epoch(self, inputs: np.ndarray, outputs: np.ndarray) -> float:
        """
        One pass over the training data.

        Returns
        -------
        float : mean training loss of the epoch (losses of the batches before their updates)
        """
        x = np.asarray(inputs, dtype=np.float64)
        y = np.asarray(outputs, dtype=np.float64)
        if x.ndim != 2 or y.ndim != 2 or x.shape[0] != y.shape[0] or x.shape[0] == 0:
            raise ArgumentError(f"Training data must be non-empty (N, n_in) and (N, n_out) arrays, got {x.shape} and {y.shape}.")

        n           = x.shape[0]
        batch_size  = self._config.batch_size or n
        order       = self._rng.permutation(n) if batch_size < n else np.arange(n)
        total_loss  = 0.0
        for start in range(0, n, batch_size):
            idx             = order[start:start + batch_size]
            grads, loss     = self.batch_gradients(x[idx], y[idx])
            total_loss     += loss
            flat            = [g for pair in grads for g in pair]
            clip_gradients(flat, self._config.grad_clip_value, self._config.grad_clip_norm)
            self._model.apply_update(grads, self._optimizer)
            self._model.check_stability()
        self._epoch += 1
        return total_loss / n

#########################################################
#! EOF
