# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import pytest
import numpy as np
import proximal as prx
import proximal.common.typing as tp
from proximal.common import errors
from proximal.functions import corefuncs
from . import proximal
from . import callbacks


class _CountingCallback:
    def __init__(self) -> None:
        self.iterations: tp.List[int] = []

    def __call__(self, optimizer: proximal.ProximalOptimizer, state: proximal.SearchState) -> None:
        self.iterations.append(state.iteration)


def test_callbacks_are_called_after_each_sweep() -> None:
    optimizer = prx.ProximalOptimizer(2)
    optimizer.set_iterations(5)
    counter = _CountingCallback()
    optimizer.register_callback(counter)
    optimizer.optimize([1.0, 1.0], corefuncs.sphere)
    assert counter.iterations == [1, 2, 3, 4, 5]
    optimizer.remove_all_callbacks()
    optimizer.optimize([1.0, 1.0], corefuncs.sphere)
    assert len(counter.iterations) == 5


def test_register_non_callable() -> None:
    optimizer = prx.ProximalOptimizer(2)
    with pytest.raises(errors.ProximalRuntimeError):
        optimizer.register_callback("blublu")  # type: ignore


def test_early_stopping() -> None:
    optimizer = prx.ProximalOptimizer(2)
    optimizer.set_iterations(100)
    recorder = callbacks.StateRecorder()
    optimizer.register_callback(recorder)
    optimizer.register_callback(callbacks.EarlyStopping(lambda opt, state: state.iteration >= 4))
    output = optimizer.optimize([5.0, -3.0], corefuncs.sphere)
    assert len(recorder) == 4
    np.testing.assert_array_equal(output, recorder.positions[-1])


def test_early_stopping_error_does_not_escape() -> None:

    def stopper(optimizer: proximal.ProximalOptimizer, state: proximal.SearchState) -> None:
        raise errors.ProximalEarlyStopping("stop now")

    optimizer = prx.ProximalOptimizer(1)
    optimizer.register_callback(stopper)
    func_calls: tp.List[float] = []
    output = optimizer.optimize([3.0], lambda x: func_calls.append(x[0]) or corefuncs.sphere(x))  # type: ignore
    assert len(func_calls) == 2  # initial evaluation and a single sweep
    assert output[0] <= 3.0


def test_no_improvement_stopper() -> None:
    optimizer = prx.ProximalOptimizer(1)
    optimizer.set_iterations(1000)
    recorder = callbacks.StateRecorder()
    optimizer.register_callback(recorder)
    optimizer.register_callback(callbacks.EarlyStopping.no_improvement_stopper(3))
    with pytest.warns(errors.NoImprovementWarning):
        optimizer.optimize([0.0], corefuncs.sphere)
    # first call records the best value, then 4 calls without improvement
    assert len(recorder) == 5


def test_step_size_stopper() -> None:
    optimizer = prx.ProximalOptimizer(2)
    optimizer.set_iterations(100000)
    recorder = callbacks.StateRecorder()
    optimizer.register_callback(recorder)
    optimizer.register_callback(callbacks.EarlyStopping.step_size_stopper(1e-6))
    output = optimizer.optimize([5.0, -3.0], corefuncs.sphere)
    assert len(recorder) < 100000
    assert np.all(np.abs(recorder.steps[-1]) < 1e-6)
    assert corefuncs.sphere(output) < 1e-6


def test_duration_criterion() -> None:
    optimizer = prx.ProximalOptimizer(2)
    state = proximal.SearchState(np.zeros(2), np.ones(2), 0.0)
    crit = callbacks._DurationCriterion(0.01)
    assert not crit(optimizer, state)
    assert not crit(optimizer, state)
    time.sleep(0.01)
    assert crit(optimizer, state)


def test_optimization_printer(capsys: tp.Any) -> None:
    optimizer = prx.ProximalOptimizer(1)
    optimizer.set_iterations(4)
    optimizer.register_callback(callbacks.OptimizationPrinter(print_interval_iterations=2))
    optimizer.optimize([5.0], corefuncs.sphere)
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "After 2, position is [4.5] with value 20.25",
        "After 4, position is [2.625] with value 6.890625",
    ]


def test_optimization_logger(caplog: tp.Any) -> None:
    logger = logging.getLogger(__name__)
    optimizer = prx.ProximalOptimizer(1)
    optimizer.set_iterations(4)
    optimizer.register_callback(
        callbacks.OptimizationLogger(
            logger=logger, log_level=logging.INFO, log_interval_iterations=2, log_interval_seconds=1e6
        )
    )
    with caplog.at_level(logging.INFO):
        optimizer.optimize([5.0], corefuncs.sphere)
    messages = [record.getMessage() for record in caplog.records if record.name == __name__]
    assert messages == [
        "After 2, position is [4.5] with value 20.25 (3 evaluations)",
        "After 4, position is [2.625] with value 6.890625 (5 evaluations)",
    ]


def test_state_recorder() -> None:
    optimizer = prx.ProximalOptimizer(3)
    optimizer.set_iterations(7)
    recorder = callbacks.StateRecorder()
    optimizer.register_callback(recorder)
    optimizer.optimize([1.0, 2.0, 3.0], corefuncs.sphere)
    assert recorder.positions.shape == (7, 3)
    assert recorder.steps.shape == (7, 3)
    assert len(recorder.values) == 7
    recorder.clear()
    assert not len(recorder)
