# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
import numpy as np
import proximal.common.typing as tp
from proximal.common import errors


logger = logging.getLogger(__name__)

DEFAULT_EXPANSION_RATIO = 1.5
DEFAULT_COMPRESSION_RATIO = 0.5
DEFAULT_INITIAL_STEP_SIZE = 1.0
DEFAULT_MIN_STEP_SIZE = 1e-12
DEFAULT_NUM_ITERATIONS = 100

# outcomes of the comparison of a candidate with the current position
BETTER = 1
WORSE = -1
INCOMPARABLE = 0  # also used for equality, both lead to a rejection

_StateCallBack = tp.Callable[["ProximalOptimizer", "SearchState"], None]


def compare(candidate: tp.Comparable, current: tp.Comparable, maximize: bool = False) -> int:
    """Three-way comparison of two objective values, only relying on :code:`<`.

    Returns
    -------
    int
        BETTER if the candidate is strictly better than the current value (lower,
        or greater when maximizing), WORSE if it is strictly worse, and INCOMPARABLE
        if they are equal or cannot be ordered (e.g. NaN, or types which :code:`<` does not support)
    """
    if maximize:
        candidate, current = current, candidate
    try:
        if candidate < current:
            return BETTER
        if current < candidate:
            return WORSE
    except TypeError:  # eg: None compared with a float
        pass
    return INCOMPARABLE


def _is_unorderable(value: tp.Comparable) -> bool:
    """Detects values which are not even equal to themselves (NaN)"""
    return bool(value != value)  # pylint: disable=comparison-with-itself


class SearchState:
    """Mutable state of one run of :code:`ProximalOptimizer.optimize`.
    It is created fresh at each call and never stored on the optimizer, callbacks
    receive it after each sweep and must treat it as read-only.

    Parameters
    ----------
    position: np.ndarray
        current (best) point
    step: np.ndarray
        signed step size of each coordinate, the sign providing the direction of the next probe
    value: Comparable
        objective value at the current position
    """

    def __init__(self, position: np.ndarray, step: np.ndarray, value: tp.Comparable) -> None:
        self.position = position
        self.step = step
        self.value = value
        self.iteration = 0  # number of completed sweeps
        self.num_evaluations = 1
        self.num_accepted = 0

    def __repr__(self) -> str:
        return (f"SearchState(iteration={self.iteration}, position={self.position.tolist()}, "
                f"value={self.value}, step={self.step.tolist()})")


class ProximalOptimizer:
    """Hill-climbing optimizer systematically testing nearby candidates along
    each coordinate, with an adaptive signed step size per coordinate.

    Each iteration is a sweep over all coordinates: coordinate i is probed at
    :code:`position[i] + step[i]`. If the objective is strictly better there,
    the move is accepted and the step grows (expansion ratio). Otherwise (worse,
    equal or incomparable, e.g. NaN), the step is reversed and shrinks
    (compression ratio).

    The objective function only needs to return values which can be compared
    with :code:`<`, so that it does not need to be differentiable, or even numeric.

    Parameters
    ----------
    dimension: int
        number of coordinates of the optimized vectors

    Example
    -------
    .. code-block:: python

        optimizer = ProximalOptimizer(2)
        optimizer.set_iterations(10000)
        recommendation = optimizer.optimize([-1.2, 1.0], corefuncs.rosenbrock)

    Note
    ----
    The search state (position and step sizes) only lives during a call to
    :code:`optimize`, each call restarts from the initial step sizes.
    """

    def __init__(self, dimension: int) -> None:
        if isinstance(dimension, bool) or not isinstance(dimension, (int, np.integer)) or dimension < 1:
            raise errors.DimensionError(f"Dimension must be a positive integer (got {dimension!r})")
        self._dimension = int(dimension)
        self._iterations = DEFAULT_NUM_ITERATIONS
        self._initial_steps = np.full(self._dimension, DEFAULT_INITIAL_STEP_SIZE)
        self._expansion_ratios = np.full(self._dimension, DEFAULT_EXPANSION_RATIO)
        self._compression_ratios = np.full(self._dimension, DEFAULT_COMPRESSION_RATIO)
        self._min_step_size = DEFAULT_MIN_STEP_SIZE
        self._maximize = False
        self._callbacks: tp.List[_StateCallBack] = []

    @property
    def dimension(self) -> int:
        """int: Dimension of the optimization space."""
        return self._dimension

    @property
    def iterations(self) -> int:
        """int: Number of sweeps performed by :code:`optimize`."""
        return self._iterations

    @property
    def initial_step_sizes(self) -> np.ndarray:
        return self._initial_steps.copy()

    @property
    def expansion_ratios(self) -> np.ndarray:
        return self._expansion_ratios.copy()

    @property
    def compression_ratios(self) -> np.ndarray:
        return self._compression_ratios.copy()

    @property
    def min_step_size(self) -> float:
        return self._min_step_size

    @property
    def maximizing(self) -> bool:
        return self._maximize

    def __repr__(self) -> str:
        diffs = {"iterations": (self._iterations, DEFAULT_NUM_ITERATIONS),
                 "initial_step_sizes": (self._initial_steps, DEFAULT_INITIAL_STEP_SIZE),
                 "expansion_ratios": (self._expansion_ratios, DEFAULT_EXPANSION_RATIO),
                 "compression_ratios": (self._compression_ratios, DEFAULT_COMPRESSION_RATIO),
                 "min_step_size": (self._min_step_size, DEFAULT_MIN_STEP_SIZE),
                 "maximize": (self._maximize, False)}
        params = [f"dimension={self._dimension}"]
        for name, (value, default) in diffs.items():
            if np.any(np.asarray(value) != default):
                params.append(f"{name}={value.tolist() if isinstance(value, np.ndarray) else value}")
        return f"{self.__class__.__name__}({', '.join(params)})"

    # %% configuration

    def set_iterations(self, iterations: int) -> None:
        """Sets the number of iterations (sweeps over all coordinates) performed
        by :code:`optimize`. 0 is allowed, in which case the initial position is
        returned as is.
        """
        if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)) or iterations < 0:
            raise errors.ProximalValueError(f"Iterations must be a non-negative integer (got {iterations!r})")
        self._iterations = int(iterations)

    def set_initial_step_size(self, step_size: float) -> None:
        """Sets the initial step of all coordinates, its sign providing the
        direction of the first probe.
        """
        self.set_initial_step_sizes([step_size] * self._dimension)

    def set_initial_step_sizes(self, step_sizes: tp.ArrayLike) -> None:
        steps = self._as_vector(step_sizes, "initial step sizes")
        if not np.all(np.isfinite(steps)) or np.any(steps == 0):
            raise errors.ProximalValueError(f"Initial step sizes must be finite and non-zero (got {steps.tolist()})")
        self._initial_steps = steps

    def set_expansion_ratio(self, ratio: float) -> None:
        """Sets the ratio applied to the step of all coordinates after an accepted move"""
        self.set_expansion_ratios([ratio] * self._dimension)

    def set_expansion_ratios(self, ratios: tp.ArrayLike) -> None:
        ratios = self._as_vector(ratios, "expansion ratios")
        if not np.all(np.isfinite(ratios)) or np.any(ratios <= 1):
            raise errors.ProximalValueError(f"Expansion ratios must be finite and > 1 (got {ratios.tolist()})")
        self._expansion_ratios = ratios

    def set_compression_ratio(self, ratio: float) -> None:
        """Sets the ratio applied to the (reversed) step of all coordinates after a rejected move"""
        self.set_compression_ratios([ratio] * self._dimension)

    def set_compression_ratios(self, ratios: tp.ArrayLike) -> None:
        ratios = self._as_vector(ratios, "compression ratios")
        if np.any(~(ratios > 0)) or np.any(~(ratios < 1)):  # also rejects NaN
            raise errors.ProximalValueError(f"Compression ratios must be in ]0, 1[ (got {ratios.tolist()})")
        self._compression_ratios = ratios

    def set_min_step_size(self, min_step_size: float) -> None:
        """Sets the minimum magnitude of the steps, below which they are clamped"""
        if not min_step_size > 0 or not np.isfinite(min_step_size):
            raise errors.ProximalValueError(f"Minimum step size must be finite and positive (got {min_step_size})")
        self._min_step_size = float(min_step_size)

    def maximize(self) -> None:
        """Looks for the position which maximizes the objective function instead of minimizing it"""
        self._maximize = True

    def minimize(self) -> None:
        """Looks for the position which minimizes the objective function (default)"""
        self._maximize = False

    def register_callback(self, callback: _StateCallBack) -> None:
        """Add a callback called after each sweep with the optimizer and the current
        :code:`SearchState` as arguments. This can be useful for custom logging, or
        for early stopping by raising :code:`errors.ProximalEarlyStopping`.
        """
        if not callable(callback):
            raise errors.ProximalRuntimeError(f"Callbacks must be callable (got {callback!r})")
        self._callbacks.append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = []

    def _as_vector(self, values: tp.ArrayLike, name: str) -> np.ndarray:
        array = np.array(values, dtype=float, copy=True)
        if array.ndim != 1 or array.size != self._dimension:
            raise errors.DimensionMismatchError(
                f"Expected {self._dimension} {name} but got shape {array.shape}")
        return array

    # %% optimization

    def optimize(self, initial_position: tp.ArrayLike, objective: tp.Objective) -> np.ndarray:
        """Searches for a position around the initial one which optimizes the objective function

        Parameters
        ----------
        initial_position: array-like
            starting point, with as many coordinates as the dimension of the optimizer.
            It is copied and never modified.
        objective: callable
            function of a 1d np.ndarray returning a value comparable with :code:`<`.
            Incomparable values (eg: NaN) are handled as non-improving ones.

        Returns
        -------
        np.ndarray
            the best position visited through accepted moves

        Raises
        ------
        DimensionMismatchError
            if the initial position does not have the expected number of coordinates.
            The objective function is then never called.
        """
        position = self._as_vector(initial_position, "initial coordinates")
        if not self._iterations:
            return position
        state = SearchState(position, self._initial_steps.copy(), objective(position.copy()))
        if _is_unorderable(state.value):
            warnings.warn(f"Objective value {state.value} at the initial position is not comparable with itself, "
                          "no move can be accepted", errors.UnorderableStartWarning)
        logger.debug("Starting %s sweeps from value %s", self._iterations, state.value)
        try:
            for _ in range(self._iterations):
                self._sweep(state, objective)
                state.iteration += 1
                for callback in self._callbacks:
                    callback(self, state)
        except errors.ProximalEarlyStopping as e:
            logger.debug("Early stopping after %s sweeps: %s", state.iteration, e)
        if not state.num_accepted:
            warnings.warn("No move was accepted, returning the initial position", errors.NoImprovementWarning)
        logger.debug("Finished with value %s after %s evaluations (%s accepted moves)",
                     state.value, state.num_evaluations, state.num_accepted)
        return state.position.copy()

    def _sweep(self, state: SearchState, objective: tp.Objective) -> None:
        """Probes each coordinate in turn, updating the state in place"""
        step = state.step
        for i in range(self._dimension):
            candidate = state.position.copy()
            candidate[i] += step[i]
            value = objective(candidate)
            state.num_evaluations += 1
            if compare(value, state.value, maximize=self._maximize) == BETTER:
                state.position = candidate
                state.value = value
                state.num_accepted += 1
                step[i] *= self._expansion_ratios[i]
            else:
                step[i] *= -self._compression_ratios[i]
            if abs(step[i]) < self._min_step_size:
                step[i] = np.copysign(self._min_step_size, step[i])
