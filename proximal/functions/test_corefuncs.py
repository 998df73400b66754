# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import numpy as np
from proximal.common import testing
from . import corefuncs


@testing.parametrized(**{name: (name, func) for name, func in corefuncs.registry.items()})
def testcorefuncs_function(name: str, func: tp.Callable[..., tp.Any]) -> None:
    x = np.abs(np.random.normal(0, 1, 100))
    outputs = [func(x) for _ in range(2)]
    np.testing.assert_equal(outputs[0], outputs[1], f"Function {name} is not deterministic")
    assert isinstance(outputs[0], float)


@testing.parametrized(
    cigar=(corefuncs.cigar, [1, 2, 3, 4], 29000001.0),
    ellipsoid=(corefuncs.ellipsoid, [1, 0, 0, 1], 1000001.0),
    sphere=(corefuncs.sphere, [1, 2, 3, 4], 30.0),
    sphere1=(corefuncs.sphere1, [1, 2, 3, 4], 14.0),
    sphere2=(corefuncs.sphere2, [1, 2, 3, 4], 6.0),
    sphere4=(corefuncs.sphere4, [1, 2, 3, 4], 14.0),
    rosenbrock=(corefuncs.rosenbrock, [-1.2, 1.0], 24.2),
    rosenbrock_min=(corefuncs.rosenbrock, [1.0, 1.0, 1.0], 0.0),
    parabola=(corefuncs.parabola, [1.0, 0.5, 1.0], 12.0),
    parabola_off=(corefuncs.parabola, [2.0, 1.5], 14.0),
    nan_sphere=(corefuncs.nan_sphere, [1.0, 2.0], 5.0),
)
def test_core_function_values(func: tp.Callable[..., float], x: tp.List[float], expected: float) -> None:
    np.testing.assert_almost_equal(func(np.array(x, dtype=float)), expected, decimal=6)


def test_nan_sphere_negative() -> None:
    assert np.isnan(corefuncs.nan_sphere(np.array([-1.0, 0.0])))


def test_registry_collision() -> None:
    try:
        corefuncs._register(corefuncs.sphere)
    except RuntimeError as e:
        assert "name collision" in str(e)
    else:
        raise AssertionError("A collision error should have been raised.")
