"""Coefficient ring adapters.

The engines never touch coefficients directly: every addition, negation,
product, quotient and zero/one test goes through a ``CoefficientRing``. Three
adapters are provided:

* ``NumberRing``: plain Python numbers (int, float, Fraction, complex) and
  numpy scalars, through their operators.
* ``DtypeRing``: coefficients pinned to one numpy dtype.
* ``ParentRing``: any "parent" object in the Sage sense (a type such as
  ``Fraction``, a ``galois`` field, a sympy domain) that can produce its own
  zero and one.
"""

from __future__ import annotations

import numbers
from abc import ABC, abstractmethod
from typing import Any, Optional

import numpy as _np

from free_core import CoefficientError


# ---------------------------------------------------------------------------
# Probing helpers for parent objects
# ---------------------------------------------------------------------------


def _parent_zero(F):
    if hasattr(F, "zero") and callable(F.zero):
        return F.zero()
    if hasattr(F, "Zero") and callable(F.Zero):
        return F.Zero()
    try:
        return F(0)
    except (TypeError, ValueError):
        return 0


def _parent_one(F):
    if hasattr(F, "one") and callable(F.one):
        return F.one()
    if hasattr(F, "One") and callable(F.One):
        return F.One()
    try:
        return F(1)
    except (TypeError, ValueError):
        return 1


def _is_scalar(x) -> bool:
    return isinstance(x, (numbers.Number, _np.generic)) and not isinstance(x, _np.bool_)


# ---------------------------------------------------------------------------
# Ring interface
# ---------------------------------------------------------------------------


class CoefficientRing(ABC):
    """The numeric capability interface coefficients must satisfy."""

    @abstractmethod
    def zero(self) -> Any:
        pass

    @abstractmethod
    def one(self) -> Any:
        pass

    def add(self, a, b):
        return a + b

    def neg(self, a):
        return -a

    def mul(self, a, b):
        return a * b

    def div(self, a, b):
        return a / b

    def is_zero(self, a) -> bool:
        return bool(a == self.zero())

    def is_one(self, a) -> bool:
        return bool(a == self.one())

    def coerce(self, x):
        """Bring an incoming coefficient into the ring's storage representation."""
        return x

    def contains(self, x) -> bool:
        """Whether ``x`` should be treated as a scalar of this ring."""
        return _is_scalar(x)

    def zero_literal(self) -> Optional[str]:
        """The ring's own rendering of zero, or ``None`` if it has none."""
        return None


class NumberRing(CoefficientRing):
    """Python numbers and numpy scalars, used through their operators."""

    def zero(self):
        return 0

    def one(self):
        return 1

    def is_zero(self, a) -> bool:
        return bool(a == 0)

    def is_one(self, a) -> bool:
        return bool(a == 1)

    def __repr__(self) -> str:
        return "NumberRing()"


class DtypeRing(CoefficientRing):
    """
    Coefficients stored as scalars of a single numpy dtype.

    Incoming coefficients are converted to the dtype when stored. Integer
    dtypes refuse non-integral values and only divide exactly; an inexact
    quotient (or a division by zero) raises ``CoefficientError`` instead of
    silently truncating.
    """

    def __init__(self, dtype):
        self.dtype = _np.dtype(dtype)
        if self.dtype.kind not in "iufc":
            raise CoefficientError(f"dtype {self.dtype} is not numeric")
        self._zero = self.dtype.type(0)
        self._one = self.dtype.type(1)

    def _scalar(self, x):
        return self.dtype.type(x)

    def coerce(self, x):
        value = self._scalar(x)
        if self.dtype.kind in "iu" and value != x:
            raise CoefficientError(f"{x!r} is not representable in {self.dtype}")
        return value

    def zero(self):
        return self._zero

    def one(self):
        return self._one

    def add(self, a, b):
        return self._scalar(a + b)

    def neg(self, a):
        return self._scalar(-a)

    def mul(self, a, b):
        return self._scalar(a * b)

    def div(self, a, b):
        if self.dtype.kind in "iu":
            if b == 0:
                raise CoefficientError(f"division by zero in {self.dtype}")
            q, rem = divmod(int(a), int(b))
            if rem != 0:
                raise CoefficientError(f"{a} is not divisible by {b} in {self.dtype}")
            return self._scalar(q)
        return self._scalar(a / b)

    def zero_literal(self) -> Optional[str]:
        return str(self._zero)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DtypeRing):
            return NotImplemented
        return self.dtype == other.dtype

    def __hash__(self) -> int:
        return hash(("DtypeRing", self.dtype.str))

    def __repr__(self) -> str:
        return f"DtypeRing({self.dtype})"


class ParentRing(CoefficientRing):
    """
    A ring described by a parent object.

    The parent supplies its identities through ``zero()``/``one()``
    (``Zero()``/``One()``) or by being callable on ``0`` and ``1``.
    When the parent is a type, its instances are scalars along with plain
    Python numbers.
    """

    def __init__(self, parent):
        self.parent = parent
        self._zero = _parent_zero(parent)
        self._one = _parent_one(parent)

    def zero(self):
        return self._zero

    def one(self):
        return self._one

    def contains(self, x) -> bool:
        if isinstance(self.parent, type) and isinstance(x, self.parent):
            return True
        return _is_scalar(x)

    def zero_literal(self) -> Optional[str]:
        return str(self._zero)

    def __repr__(self) -> str:
        name = getattr(self.parent, "__name__", repr(self.parent))
        return f"ParentRing({name})"


NUMBER_RING = NumberRing()


__all__ = [
    "CoefficientRing",
    "NumberRing",
    "DtypeRing",
    "ParentRing",
    "NUMBER_RING",
]
