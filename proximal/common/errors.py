# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class ProximalError(Exception):
    """Base class for error raised by proximal"""


class ProximalWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class ProximalEarlyStopping(StopIteration, ProximalError):
    """Stops the optimization loop if raised by a callback"""


class ProximalRuntimeError(RuntimeError, ProximalError):
    """Runtime error raised by proximal"""


class ProximalValueError(ValueError, ProximalError):
    """Invalid value provided to proximal"""


class DimensionError(ProximalValueError):
    """The requested dimension is not a positive integer"""


class DimensionMismatchError(ProximalValueError):
    """The length of a vector does not match the dimension of the optimizer"""


# warnings


class ProximalRuntimeWarning(RuntimeWarning, ProximalWarning):
    """Runtime warning raised by proximal"""


class NoImprovementWarning(ProximalRuntimeWarning):
    """The optimization did not accept any move, the initial position is returned"""


class UnorderableStartWarning(ProximalRuntimeWarning):
    """The objective value at the initial position cannot be compared with itself (NaN?)
    so that no candidate can ever be accepted
    """
