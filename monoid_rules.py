"""
Rewriting rules for the words of a ``MonoidalString``.

Mathematical definition:
    A word is a finite sequence w = a1 a2 ... an of letters. A ``MonoidRule``
    fixes how a letter is appended to a word that is already in canonical
    form, returning the canonical form of the product. Plain concatenation
    gives the free monoid; cancelling adjacent x x⁻¹ pairs gives the free
    group; merging equal adjacent bases under an exponent gives the
    exponent-compressed monoid.

Contract:
    ``apply`` receives a list it owns and may mutate and return it.
    ``apply_many`` and ``apply_iter`` fold ``apply`` by default; a rule may
    override them for speed or for different boundary behaviour.

Capability markers (trusted, never verified):
    ``AssociativeMonoidRule``, ``CommutativeMonoidRule``, ``InvMonoidRule``,
    ``DistributiveMonoidRule``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple, Type


# =============================================================================
# 1) Rule contract and markers
# =============================================================================


class MonoidRule(ABC):
    """Dictates how letters are multiplied (or added) onto a word."""

    @abstractmethod
    def apply(self, word: List[Any], letter: Any) -> List[Any]:
        """Append one letter to a canonical word, returning the canonical result."""

    def apply_many(self, word: List[Any], other: List[Any]) -> List[Any]:
        """Append a whole word; by default applies ``apply`` letter by letter."""
        return self.apply_iter(word, other)

    def apply_iter(self, word: List[Any], letters: Iterable[Any]) -> List[Any]:
        """Append a stream of letters; by default folds ``apply``."""
        for letter in letters:
            word = self.apply(word, letter)
        return word

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonoidRule):
            return NotImplemented
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))


class InvMonoidRule(MonoidRule):
    """A ``MonoidRule`` where every letter has an inverse."""

    @abstractmethod
    def invert(self, letter: Any) -> Any:
        """Invert a letter so that ``x * invert(x)`` is the identity."""


class AssociativeMonoidRule(MonoidRule):
    """A ``MonoidRule`` that is evaluation order independent."""


class CommutativeMonoidRule(MonoidRule):
    """A ``MonoidRule`` that is operand order independent."""


class DistributiveMonoidRule(MonoidRule):
    """
    A ``MonoidRule`` that distributes over other rules.

    ``distributes_over`` lists the rule classes this one distributes over.
    """
    distributes_over: Tuple[Type[MonoidRule], ...] = ()


def distributes(mul_rule, add_rule) -> bool:
    """Whether ``mul_rule`` declares distributivity over ``add_rule``."""
    if not isinstance(mul_rule, DistributiveMonoidRule) or add_rule is None:
        return False
    return isinstance(add_rule, mul_rule.distributes_over)


# =============================================================================
# 2) Letters
# =============================================================================


@dataclass(frozen=True)
class FreeInv:
    """
    A letter of a free group: a value, possibly symbolically inverted.

    ``FreeInv(x)`` is x itself, ``FreeInv(x, inverted=True)`` is x⁻¹.
    """
    value: Any
    inverted: bool = False

    def is_inv(self) -> bool:
        return self.inverted

    def is_id(self) -> bool:
        return not self.inverted

    def inv(self) -> FreeInv:
        return FreeInv(self.value, not self.inverted)

    def __str__(self) -> str:
        if self.inverted:
            return f"{self.value}⁻¹"
        return str(self.value)

    def __mul__(self, other):
        from monoidal_string import FreeGroup

        return FreeGroup(self) * other

    def __truediv__(self, other):
        from monoidal_string import FreeGroup

        return FreeGroup(self) / other


@dataclass(frozen=True)
class FreePow:
    """
    A letter raised to an exponent.

    Used to compress runs of a repeated letter and, with signed exponents, to
    build free groups.
    """
    base: Any
    exponent: Any = 1

    @classmethod
    def from_inv(cls, letter: FreeInv) -> FreePow:
        return cls(letter.value, -1 if letter.inverted else 1)

    def inv(self) -> FreePow:
        return FreePow(self.base, -self.exponent)

    def __str__(self) -> str:
        if self.exponent == 1:
            return str(self.base)
        return f"{self.base}^{self.exponent}"

    def __mul__(self, other):
        from monoidal_string import FreePowMonoid

        return FreePowMonoid(self) * other

    def __truediv__(self, other):
        from monoidal_string import FreePowMonoid

        return FreePowMonoid(self) / other


# =============================================================================
# 3) Leaf rules
# =============================================================================


class ConcatRule(AssociativeMonoidRule):
    """Plain concatenation: the free monoid."""

    def apply(self, word, letter):
        word.append(letter)
        return word

    def apply_many(self, word, other):
        word.extend(other)
        return word

    def apply_iter(self, word, letters):
        word.extend(letters)
        return word


class InvRule(AssociativeMonoidRule, InvMonoidRule):
    """
    Concatenation of ``FreeInv`` letters with cancellation: the free group.

    Appending x⁻¹ right after x (or x right after x⁻¹) removes both.
    """

    def apply(self, word, letter):
        if word:
            last = word[-1]
            if last.value == letter.value and last.inverted != letter.inverted:
                word.pop()
                return word
        word.append(letter)
        return word

    def invert(self, letter):
        return letter.inv()


class PowRule(AssociativeMonoidRule, InvMonoidRule):
    """
    Concatenation of ``FreePow`` letters merging equal adjacent bases.

    x^p followed by x^q becomes x^(p+q), and disappears when p+q is zero.
    """

    def apply(self, word, letter):
        if letter.exponent == 0:
            return word
        if word and word[-1].base == letter.base:
            last = word.pop()
            exponent = last.exponent + letter.exponent
            if exponent != 0:
                word.append(FreePow(letter.base, exponent))
            return word
        word.append(letter)
        return word

    def invert(self, letter):
        return letter.inv()


__all__ = [
    # contract
    "MonoidRule",
    "InvMonoidRule",
    "AssociativeMonoidRule",
    "CommutativeMonoidRule",
    "DistributiveMonoidRule",
    "distributes",

    # letters
    "FreeInv",
    "FreePow",

    # leaves
    "ConcatRule",
    "InvRule",
    "PowRule",
]
