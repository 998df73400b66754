# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import proximal.common.typing as tp


_Function = tp.Callable[[np.ndarray], float]
registry: tp.Dict[str, _Function] = {}


def _register(func: _Function) -> _Function:
    if func.__name__ in registry:
        raise RuntimeError(f'Encountered a name collision "{func.__name__}"')
    registry[func.__name__] = func
    return func


@_register
def sphere(x: np.ndarray) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    x = np.asarray(x, dtype=float)
    assert x.ndim == 1
    return float(x.dot(x))


@_register
def sphere1(x: np.ndarray) -> float:
    """Translated sphere function."""
    return sphere(np.asarray(x) - 1.0)


@_register
def sphere2(x: np.ndarray) -> float:
    """A bit more translated sphere function."""
    return sphere(np.asarray(x) - 2.0)


@_register
def sphere4(x: np.ndarray) -> float:
    """Even more translated sphere function."""
    return sphere(np.asarray(x) - 4.0)


@_register
def cigar(x: np.ndarray) -> float:
    """Classical example of ill conditioned function.

    The other classical example is ellipsoid.
    """
    x = np.asarray(x, dtype=float)
    return float(x[0]) ** 2 + 1000000.0 * sphere(x[1:])


@_register
def ellipsoid(x: np.ndarray) -> float:
    """Classical example of ill conditioned function.

    The other classical example is cigar.
    """
    x = np.asarray(x, dtype=float)
    weights = 10 ** np.linspace(0, 6, x.size)
    return float(weights.dot(x ** 2))


@_register
def rosenbrock(x: np.ndarray) -> float:
    """Banana shaped valley with minimum 0 at (1, ..., 1), known to be
    pathological for gradient descent.
    """
    x = np.asarray(x, dtype=float)
    x_m_1 = x[:-1] - 1
    x_diff = x[:-1] ** 2 - x[1:]
    return float(100 * x_diff.dot(x_diff) + x_m_1.dot(x_m_1))


@_register
def parabola(x: np.ndarray) -> float:
    """Shifted parabola, with minimum 12 at (1, 0.5, 1, 0.5, ...)"""
    x = np.asarray(x, dtype=float)
    center = np.where(np.arange(x.size) % 2, 0.5, 1.0)
    return sphere(x - center) + 12.0


@_register
def nan_sphere(x: np.ndarray) -> float:
    """Sphere function which is undefined (NaN) when the first coordinate is negative"""
    x = np.asarray(x, dtype=float)
    return float("nan") if x[0] < 0 else sphere(x)
