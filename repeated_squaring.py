"""
Exponentiation by repeated squaring.

Mathematical definition:
    For an associative product with unit 1 and n >= 0,

        x^n = prod_{k : bit k of n set} x^(2^k)

    which needs O(log n) multiplications. Only associativity is used: the
    partial products are always combined in the same left-to-right order, but
    no commutativity is assumed. With inverses, x^(-n) = (x^n)⁻¹.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, Callable

_logger = logging.getLogger(__name__)


def repeated_squaring(x: Any, n: int, one: Any, mul: Callable[[Any, Any], Any] = operator.mul) -> Any:
    """
    Compute ``x ** n`` for a natural ``n``.

    Args:
        x: base element (not mutated)
        n: exponent, must be a non-negative int
        one: multiplicative unit of ``x``'s structure
        mul: associative product

    Raises:
        ValueError: if ``n`` is negative
        TypeError: if ``n`` is not an int
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"exponent must be int, got {type(n).__name__}")
    if n < 0:
        raise ValueError(f"exponent must be non-negative, got {n}")

    result = one
    base = x
    steps = 0
    while n > 0:
        if n & 1:
            result = mul(result, base)
        n >>= 1
        if n:
            base = mul(base, base)
        steps += 1
    _logger.debug("repeated_squaring: %d squaring steps", steps)
    return result


def repeated_squaring_inv(
    x: Any,
    n: int,
    one: Any,
    invert: Callable[[Any], Any],
    mul: Callable[[Any, Any], Any] = operator.mul,
) -> Any:
    """Compute ``x ** n`` for any int ``n``; negative powers invert the magnitude."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"exponent must be int, got {type(n).__name__}")
    if n < 0:
        return invert(repeated_squaring(x, -n, one, mul))
    return repeated_squaring(x, n, one, mul)


__all__ = [
    "repeated_squaring",
    "repeated_squaring_inv",
]
