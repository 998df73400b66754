# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import numpy as np
import proximal.common.typing as tp
from proximal.common import errors
from . import proximal as prox

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------

class OptimizationPrinter:
    """Printer to register as callback in an optimizer, for printing
    current point regularly.

    Parameters
    ----------
    print_interval_iterations: int
        max number of iterations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_iterations: int = 1, print_interval_seconds: float = 60.0) -> None:
        assert print_interval_iterations > 0
        assert print_interval_seconds > 0
        self._print_interval_iterations = int(print_interval_iterations)
        self._print_interval_seconds = print_interval_seconds
        self._next_iteration = self._print_interval_iterations
        self._next_time = time.time() + print_interval_seconds

    def __call__(self, optimizer: prox.ProximalOptimizer, state: prox.SearchState) -> None:
        if time.time() >= self._next_time or state.iteration >= self._next_iteration:
            self._next_time = time.time() + self._print_interval_seconds
            self._next_iteration = state.iteration + self._print_interval_iterations
            print(f"After {state.iteration}, position is {state.position.tolist()} with value {state.value}")

# -------------------------------------------------------------------------------------

class OptimizationLogger:
    """Logger to register as callback in an optimizer, for logging
    current point regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_iterations: int
        max number of iterations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_iterations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_iterations > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_iterations = int(log_interval_iterations)
        self._log_interval_seconds = log_interval_seconds
        self._next_iteration = self._log_interval_iterations
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, optimizer: prox.ProximalOptimizer, state: prox.SearchState) -> None:
        if time.time() >= self._next_time or state.iteration >= self._next_iteration:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_iteration = state.iteration + self._log_interval_iterations
            self._logger.log(
                self._log_level,
                "After %s, position is %s with value %s (%s evaluations)",
                state.iteration,
                state.position.tolist(),
                state.value,
                state.num_evaluations,
            )

# -------------------------------------------------------------------------------------

class StateRecorder:
    """Records a copy of the search state after each iteration, for later inspection.

    Example
    -------

    .. code-block:: python

        recorder = StateRecorder()
        optimizer.register_callback(recorder)
        optimizer.optimize(x0, func)
        steps = recorder.steps  # shape: (iterations, dimension)
    """

    def __init__(self) -> None:
        self._positions: tp.List[np.ndarray] = []
        self._steps: tp.List[np.ndarray] = []
        self.values: tp.List[tp.Comparable] = []

    def __call__(self, optimizer: prox.ProximalOptimizer, state: prox.SearchState) -> None:
        self._positions.append(state.position.copy())
        self._steps.append(state.step.copy())
        self.values.append(state.value)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def positions(self) -> np.ndarray:
        return np.array(self._positions)

    @property
    def steps(self) -> np.ndarray:
        return np.array(self._steps)

    def clear(self) -> None:
        self._positions.clear()
        self._steps.clear()
        self.values.clear()

# -------------------------------------------------------------------------------------

class EarlyStopping:
    """Callback for stopping the :code:`optimize` method before all the
    iterations are performed.

    Parameters
    ----------
    stopping_criterion: func(optimizer, state) -> bool
        function that takes the current optimizer and search state as input and returns True
        if the optimization must be stopped

    Example
    -------
    In the following code, the :code:`optimize` method will be stopped after the 4th iteration

    >>> early_stopping = EarlyStopping(lambda opt, state: state.iteration > 3)
    >>> optimizer.register_callback(early_stopping)
    >>> optimizer.optimize(x0, func)

    Stopping when the value is below 12:

    >>> early_stopping = EarlyStopping(lambda opt, state: state.value < 12)
    """

    def __init__(self, stopping_criterion: tp.Callable[[prox.ProximalOptimizer, prox.SearchState], bool]) -> None:
        self.stopping_criterion = stopping_criterion

    def __call__(self, optimizer: prox.ProximalOptimizer, state: prox.SearchState) -> None:
        if self.stopping_criterion(optimizer, state):
            raise errors.ProximalEarlyStopping("Early stopping criterion is reached")

    @classmethod
    def timer(cls, max_duration: float) -> "EarlyStopping":
        """Early stop when max_duration seconds has been reached (from the first iteration)"""
        return cls(_DurationCriterion(max_duration))

    @classmethod
    def no_improvement_stopper(cls, tolerance_window: int) -> "EarlyStopping":
        """Early stop when the value didn't improve during tolerance_window iterations"""
        return cls(_ValueImprovementToleranceCriterion(tolerance_window))

    @classmethod
    def step_size_stopper(cls, tolerance: float) -> "EarlyStopping":
        """Early stop when the magnitude of all steps is below tolerance (convergence)"""
        return cls(_StepSizeCriterion(tolerance))

class _DurationCriterion:
    def __init__(self, max_duration: float) -> None:
        self._start = float("inf")
        self._max_duration = max_duration

    def __call__(self, optimizer: prox.ProximalOptimizer, state: prox.SearchState) -> bool:
        if np.isinf(self._start):
            self._start = time.time()
        return time.time() > self._start + self._max_duration

class _ValueImprovementToleranceCriterion:
    def __init__(self, tolerance_window: int) -> None:
        self._tolerance_window: int = tolerance_window
        self._best_value: tp.Optional[tp.Comparable] = None
        self._tolerance_count: int = 0

    def __call__(self, optimizer: prox.ProximalOptimizer, state: prox.SearchState) -> bool:
        if self._best_value is None or prox.compare(state.value, self._best_value, optimizer.maximizing) == prox.BETTER:
            self._best_value = state.value
            self._tolerance_count = 0
            return False
        self._tolerance_count += 1
        return self._tolerance_count > self._tolerance_window

class _StepSizeCriterion:
    def __init__(self, tolerance: float) -> None:
        assert tolerance > 0
        self._tolerance = tolerance

    def __call__(self, optimizer: prox.ProximalOptimizer, state: prox.SearchState) -> bool:
        return bool(np.all(np.abs(state.step) < self._tolerance))
