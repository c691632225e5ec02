"""
Multiplication rules for the terms of a ``ModuleString``.

Mathematical definition:
    A free module over a ring R on a set T becomes an algebra once a product
    T x T -> R x T is fixed. An ``AlgebraRule`` supplies that product: it maps
    two terms to a resulting term and an optional extra coefficient. The module
    engine then distributes the rule over sums and merges equal terms.

Capability markers:
    ``AssociativeAlgebraRule``, ``CommutativeAlgebraRule`` and
    ``UnitalAlgebraRule`` are zero-data marker classes. Inheriting from one
    asserts the property; nothing checks it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Tuple


# =============================================================================
# 1) Rule contract and markers
# =============================================================================


class AlgebraRule(ABC):
    """Dictates how two terms of a ``ModuleString`` multiply."""

    @abstractmethod
    def apply(self, t1: Any, t2: Any) -> Tuple[Optional[Any], Any]:
        """
        Multiply two terms.

        Returns:
            ``(coefficient, term)`` where ``coefficient`` is an extra ring
            factor or ``None`` when the product contributes none.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AssociativeAlgebraRule(AlgebraRule):
    """An ``AlgebraRule`` whose product does not depend on evaluation order."""


class CommutativeAlgebraRule(AlgebraRule):
    """An ``AlgebraRule`` whose product does not depend on operand order."""


class UnitalAlgebraRule(AlgebraRule):
    """An ``AlgebraRule`` with a unit term."""

    @abstractmethod
    def one(self) -> Any:
        """Create the unit term."""

    @abstractmethod
    def is_one(self, t: Any) -> bool:
        """Whether ``t`` is the unit term."""


# =============================================================================
# 2) Leaf rules
# =============================================================================


def _int_zero() -> int:
    return 0


def _int_one() -> int:
    return 1


class AddRule(AssociativeAlgebraRule, CommutativeAlgebraRule, UnitalAlgebraRule):
    """
    Multiply terms with their own addition.

    Useful for group rings of additive groups: ``x^a * x^b = x^(a+b)`` when the
    exponents are stored as the terms. The unit is the term type's zero,
    produced by ``zero`` (default ``0``).
    """

    def __init__(self, zero: Callable[[], Any] = _int_zero):
        self._zero = zero

    def apply(self, t1, t2):
        return None, t1 + t2

    def one(self):
        return self._zero()

    def is_one(self, t) -> bool:
        probe = getattr(t, "is_zero", None)
        if callable(probe):
            return bool(probe())
        return bool(t == self._zero())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AddRule):
            return NotImplemented
        return type(self) is type(other) and self._zero == other._zero

    def __hash__(self) -> int:
        return hash((type(self), self._zero))


class MulRule(AssociativeAlgebraRule, UnitalAlgebraRule):
    """
    Multiply terms with their own multiplication.

    This is the rule of a monoid ring: the terms are elements of a monoid
    (``FreeMonoid``, ``FreeGroup``, numbers...) and their product is the
    monoid operation. The unit is produced by ``one`` (default ``1``).
    """

    def __init__(self, one: Callable[[], Any] = _int_one):
        self._one = one

    def apply(self, t1, t2):
        return None, t1 * t2

    def one(self):
        return self._one()

    def is_one(self, t) -> bool:
        probe = getattr(t, "is_one", None)
        if callable(probe):
            return bool(probe())
        return bool(t == self._one())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MulRule):
            return NotImplemented
        return type(self) is type(other) and self._one == other._one

    def __hash__(self) -> int:
        return hash((type(self), self._one))


class CommutativeMulRule(MulRule, CommutativeAlgebraRule):
    """``MulRule`` for monoids whose multiplication commutes."""


__all__ = [
    "AlgebraRule",
    "AssociativeAlgebraRule",
    "CommutativeAlgebraRule",
    "UnitalAlgebraRule",
    "AddRule",
    "MulRule",
    "CommutativeMulRule",
]
