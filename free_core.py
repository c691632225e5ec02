"""
Shared foundations for the free-construction engines.

Contents:
    - the strict exception hierarchy used by every module of the toolkit
    - the ``Capability`` flags derived from a rule's declared markers

Capability markers are trusted, never verified. Declaring a property a rule
does not have (say, associativity for a non-associative rule) yields results
that are algebraically wrong but never a detected runtime fault. What *is*
checked is the presence of a marker: an operation that needs a capability the
element type does not declare raises ``CapabilityError``.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import FrozenSet, Iterable


# =============================================================================
# 0) Strict exception hierarchy
# =============================================================================


class FreeAlgebraError(Exception):
    """Root of every error raised by the toolkit."""


class TermLookupError(FreeAlgebraError, KeyError):
    """Indexing a ``ModuleString`` with a term that has no stored coefficient."""


class WordIndexError(FreeAlgebraError, IndexError):
    """Indexing a ``MonoidalString`` outside of its letter range."""


class CapabilityError(FreeAlgebraError, TypeError):
    """An operation needs a rule capability the element type does not declare."""


class CoefficientError(FreeAlgebraError, ArithmeticError):
    """A coefficient ring adapter refused an operation (inexact division etc.)."""


class DisplayConfigError(FreeAlgebraError, ValueError):
    """Invalid rendering configuration."""


# =============================================================================
# 1) Capabilities
# =============================================================================


class Capability(Enum):
    """Algebraic properties an element type carries through its rules."""
    ADD_ASSOCIATIVE = auto()
    ADD_COMMUTATIVE = auto()
    ADD_INVERTIBLE = auto()
    ADD_UNITAL = auto()
    MUL_ASSOCIATIVE = auto()
    MUL_COMMUTATIVE = auto()
    MUL_INVERTIBLE = auto()
    MUL_UNITAL = auto()
    DISTRIBUTIVE = auto()


class FreeElement:
    """
    Marker base of the engine element types.

    Lets one engine recognise the other's elements in mixed operators and
    defer to the reflected operation instead of treating them as a term or a
    letter.
    """


def require(
    owner: type,
    available: Iterable[Capability],
    *needed: Capability,
    operation: str,
) -> None:
    """
    Raise ``CapabilityError`` unless every capability in ``needed`` is available.

    Args:
        owner: element class performing the operation (used in the message)
        available: capabilities the class declares
        needed: capabilities the operation relies on
        operation: human readable operation name
    """
    have: FrozenSet[Capability] = frozenset(available)
    missing = [c.name.lower() for c in needed if c not in have]
    if missing:
        raise CapabilityError(
            f"{owner.__name__}.{operation} requires {', '.join(missing)}"
        )


__all__ = [
    # exceptions
    "FreeAlgebraError",
    "TermLookupError",
    "WordIndexError",
    "CapabilityError",
    "CoefficientError",
    "DisplayConfigError",

    # capabilities
    "Capability",
    "FreeElement",
    "require",
]
