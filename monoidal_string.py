"""
Free monoids and groups as rewritten letter sequences.

Mathematical definition:
    A word over an alphabet C is a finite sequence w = c1 c2 ... cn; the empty
    word ε is the identity. A ``MonoidRule`` fixes how a letter is appended to
    a canonical word. The canonical form of an element is whatever the rule
    leaves after every append: nothing for concatenation, no adjacent x x⁻¹
    pairs for the free group, no adjacent equal bases for the
    exponent-compressed monoid.

Structure:
    ``MonoidalString`` owns a list of letters and two independent rules bound
    at class level: ``add_rule`` drives ``+``/``-`` and ``mul_rule`` drives
    ``*``/``/``. A single operation never uses both. Either slot may be
    ``None``, in which case the corresponding operators raise
    ``CapabilityError``.

    Every rewrite goes through one of three points: ``_apply_one`` (one
    letter), ``_apply`` (a whole word, ``rule.apply_many``) and ``_apply_iter``
    (a stream, ``rule.apply_iter``). Inversion reverses the word, inverts each
    letter and re-runs the rule over the result, since naive reversal is not
    canonical in general.

Equality is sequence equality; the rules bound to each side are ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from display import format_word
from free_core import Capability, CapabilityError, FreeElement, WordIndexError, require
from monoid_rules import (
    AssociativeMonoidRule,
    CommutativeMonoidRule,
    ConcatRule,
    FreeInv,
    FreePow,
    InvMonoidRule,
    InvRule,
    MonoidRule,
    PowRule,
    distributes,
)
from repeated_squaring import repeated_squaring, repeated_squaring_inv

_logger = logging.getLogger(__name__)

_UNSET = object()


def _rule_capabilities(rule: Optional[MonoidRule], associative, commutative, invertible, unital):
    caps = set()
    if rule is None:
        return caps
    caps.add(unital)
    if isinstance(rule, AssociativeMonoidRule):
        caps.add(associative)
    if isinstance(rule, CommutativeMonoidRule):
        caps.add(commutative)
    if isinstance(rule, InvMonoidRule):
        caps.add(invertible)
    return caps


class MonoidalString(FreeElement):
    """
    A canonical word under an additive and a multiplicative rewriting rule.

    Construction:
        ``cls()`` is the empty word; ``cls(c)`` is the one-letter word ``c``.
        Every letter entering a word is first canonicalised under each bound
        rule (additive, then multiplicative), so ``cls(FreePow(x, 0))`` is
        empty under ``PowRule`` in either slot. ``from_letters``, ``sum_of``
        and ``product_of`` fold sequences.

    Operators:
        ``+``/``-``/``*``/``/`` accept another word or a single letter.
        ``-w`` and ``w.inv()`` invert under the additive and multiplicative
        rule respectively. ``w ** n`` uses repeated squaring.
    """

    add_rule: Optional[MonoidRule] = None
    mul_rule: Optional[MonoidRule] = None

    def __init__(self, letter: Any = _UNSET):
        self._letters: List[Any] = []
        if letter is _UNSET:
            return
        if isinstance(letter, MonoidalString):
            self._letters = list(letter._letters)
            return
        self._letters = self._seed(letter)

    # ------------------------------------------------------------------
    # parametrisation
    # ------------------------------------------------------------------

    @classmethod
    def specialize(cls, name: Optional[str] = None, *, add_rule: Any = _UNSET, mul_rule: Any = _UNSET) -> type:
        """Build a subclass bound to other additive and/or multiplicative rules."""
        namespace: Dict[str, Any] = {"__module__": cls.__module__}
        if add_rule is not _UNSET:
            namespace["add_rule"] = add_rule
        if mul_rule is not _UNSET:
            namespace["mul_rule"] = mul_rule
        return type(name or cls.__name__, (cls,), namespace)

    @classmethod
    def capabilities(cls) -> frozenset:
        caps = _rule_capabilities(
            cls.add_rule,
            Capability.ADD_ASSOCIATIVE,
            Capability.ADD_COMMUTATIVE,
            Capability.ADD_INVERTIBLE,
            Capability.ADD_UNITAL,
        )
        caps |= _rule_capabilities(
            cls.mul_rule,
            Capability.MUL_ASSOCIATIVE,
            Capability.MUL_COMMUTATIVE,
            Capability.MUL_INVERTIBLE,
            Capability.MUL_UNITAL,
        )
        if distributes(cls.mul_rule, cls.add_rule):
            caps.add(Capability.DISTRIBUTIVE)
        return frozenset(caps)

    @classmethod
    def _coerce_letter(cls, letter: Any) -> Any:
        """Hook turning a raw value into a letter of this word type."""
        return letter

    @classmethod
    def _seed(cls, letter: Any) -> List[Any]:
        """The canonical form of a single letter under every bound rule, additive first."""
        letters = [cls._coerce_letter(letter)]
        for rule in (cls.add_rule, cls.mul_rule):
            if rule is not None:
                letters = rule.apply_iter([], letters)
        return letters

    @classmethod
    def _additive(cls, *needed: Capability, operation: str) -> MonoidRule:
        if cls.add_rule is None:
            raise CapabilityError(f"{cls.__name__}.{operation} requires an additive rule")
        require(cls, cls.capabilities(), *needed, operation=operation)
        return cls.add_rule

    @classmethod
    def _multiplicative(cls, *needed: Capability, operation: str) -> MonoidRule:
        if cls.mul_rule is None:
            raise CapabilityError(f"{cls.__name__}.{operation} requires a multiplicative rule")
        require(cls, cls.capabilities(), *needed, operation=operation)
        return cls.mul_rule

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls) -> MonoidalString:
        cls._additive(operation="zero")
        return cls()

    @classmethod
    def one(cls) -> MonoidalString:
        cls._multiplicative(operation="one")
        return cls()

    @classmethod
    def from_letters(cls, letters: Iterable[Any]) -> MonoidalString:
        """Multiply a sequence of letters (add them if the class has no multiplicative rule)."""
        out = cls()
        rule = cls.mul_rule if cls.mul_rule is not None else cls._additive(operation="from_letters")
        out._apply_iter(rule, letters)
        return out

    @classmethod
    def sum_of(cls, items: Iterable[Any]) -> MonoidalString:
        """Add letters and/or words in order, starting from the empty word."""
        out = cls.zero()
        for item in items:
            out += item
        return out

    @classmethod
    def product_of(cls, items: Iterable[Any]) -> MonoidalString:
        """Multiply letters and/or words in order, starting from the empty word."""
        out = cls.one()
        for item in items:
            out *= item
        return out

    def copy(self) -> MonoidalString:
        out = type(self)()
        out._letters = list(self._letters)
        return out

    clone = copy
    __copy__ = copy

    # ------------------------------------------------------------------
    # rewriting primitives
    # ------------------------------------------------------------------

    def _apply_one(self, rule: MonoidRule, letter: Any) -> None:
        temp, self._letters = self._letters, []
        self._letters = rule.apply_iter(temp, self._seed(letter))

    def _apply(self, rule: MonoidRule, other: MonoidalString) -> None:
        other_letters = list(other._letters)
        temp, self._letters = self._letters, []
        self._letters = rule.apply_many(temp, other_letters)

    def _apply_iter(self, rule: MonoidRule, letters: Iterable[Any]) -> None:
        temp, self._letters = self._letters, []
        self._letters = rule.apply_iter(temp, (c for letter in letters for c in self._seed(letter)))

    def _invert(self, rule: InvMonoidRule) -> MonoidalString:
        out = type(self)()
        out._letters = rule.apply_iter([], (rule.invert(c) for c in reversed(self._letters)))
        _logger.debug("inverted word of length %d into length %d", len(self._letters), len(out._letters))
        return out

    # ------------------------------------------------------------------
    # reading
    # ------------------------------------------------------------------

    def is_zero(self) -> bool:
        self._additive(operation="is_zero")
        return not self._letters

    def is_one(self) -> bool:
        self._multiplicative(operation="is_one")
        return not self._letters

    def letters(self) -> tuple:
        return tuple(self._letters)

    def __len__(self) -> int:
        return len(self._letters)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._letters)

    def __reversed__(self) -> Iterator[Any]:
        return reversed(self._letters)

    def __contains__(self, letter) -> bool:
        return letter in self._letters

    def __getitem__(self, key):
        if isinstance(key, slice):
            out = type(self)()
            out._letters = self._letters[key]
            return out
        if isinstance(key, bool) or not isinstance(key, int):
            raise TypeError(f"word indices must be int or slice, got {type(key).__name__}")
        n = len(self._letters)
        if not -n <= key < n:
            raise WordIndexError(f"letter index {key} out of range for word of length {n}")
        return self._letters[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonoidalString):
            return NotImplemented
        return self._letters == other._letters

    def __hash__(self) -> int:
        return hash(tuple(self._letters))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._letters!r})"

    def __str__(self) -> str:
        return format_word(self)

    def __format__(self, spec: str) -> str:
        if spec == "#":
            return format_word(self, alternate=True)
        if spec:
            raise ValueError(f"unsupported format spec {spec!r} for {type(self).__name__}")
        return format_word(self)

    # ------------------------------------------------------------------
    # addition
    # ------------------------------------------------------------------

    def add_letter(self, letter) -> None:
        self._apply_one(self._additive(operation="add_letter"), letter)

    def add_letters(self, letters: Iterable[Any]) -> None:
        self._apply_iter(self._additive(operation="add_letters"), letters)

    def __iadd__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        rule = self._additive(operation="add")
        if isinstance(other, MonoidalString):
            self._apply(rule, other)
        else:
            self._apply_one(rule, other)
        return self

    def __isub__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        rule = self._additive(Capability.ADD_INVERTIBLE, operation="sub")
        if isinstance(other, MonoidalString):
            self._apply(rule, other._invert(rule))
        else:
            self._apply_one(rule, rule.invert(self._coerce_letter(other)))
        return self

    def __add__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        out = self.copy()
        out += other
        return out

    def __sub__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        out = self.copy()
        out -= other
        return out

    def __radd__(self, letter):
        return type(self)(letter) + self

    def __rsub__(self, letter):
        return type(self)(letter) - self

    def __neg__(self):
        return self._invert(self._additive(Capability.ADD_INVERTIBLE, operation="neg"))

    # ------------------------------------------------------------------
    # multiplication
    # ------------------------------------------------------------------

    def mul_letter(self, letter) -> None:
        self._apply_one(self._multiplicative(operation="mul_letter"), letter)

    def mul_letters(self, letters: Iterable[Any]) -> None:
        self._apply_iter(self._multiplicative(operation="mul_letters"), letters)

    def __imul__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        rule = self._multiplicative(operation="mul")
        if isinstance(other, MonoidalString):
            self._apply(rule, other)
        else:
            self._apply_one(rule, other)
        return self

    def __itruediv__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        rule = self._multiplicative(Capability.MUL_INVERTIBLE, operation="div")
        if isinstance(other, MonoidalString):
            self._apply(rule, other._invert(rule))
        else:
            self._apply_one(rule, rule.invert(self._coerce_letter(other)))
        return self

    def __mul__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        out = self.copy()
        out *= other
        return out

    def __truediv__(self, other):
        if isinstance(other, FreeElement) and not isinstance(other, MonoidalString):
            return NotImplemented
        out = self.copy()
        out /= other
        return out

    def __rmul__(self, letter):
        return type(self)(letter) * self

    def __rtruediv__(self, letter):
        return type(self)(letter) / self

    def inv(self) -> MonoidalString:
        """The multiplicative inverse."""
        return self._invert(self._multiplicative(Capability.MUL_INVERTIBLE, operation="inv"))

    # ------------------------------------------------------------------
    # derived operations
    # ------------------------------------------------------------------

    def commutator(self, other: MonoidalString) -> MonoidalString:
        """The multiplicative commutator ``[a, b] = a⁻¹b⁻¹ab``."""
        self._multiplicative(Capability.MUL_INVERTIBLE, Capability.MUL_ASSOCIATIVE, operation="commutator")
        return self.inv() * other.inv() * self * other

    def add_commutator(self, other: MonoidalString) -> MonoidalString:
        """The additive commutator ``[a, b] = -a-b+a+b``."""
        self._additive(Capability.ADD_INVERTIBLE, Capability.ADD_ASSOCIATIVE, operation="add_commutator")
        return -self - other + self + other

    def power(self, n: int) -> MonoidalString:
        rule = self._multiplicative(Capability.MUL_ASSOCIATIVE, operation="power")
        one = type(self).one()
        if isinstance(rule, InvMonoidRule):
            return repeated_squaring_inv(self, n, one, invert=lambda w: w.inv())
        if isinstance(n, int) and n < 0:
            raise CapabilityError(f"{type(self).__name__}.power with a negative exponent requires mul_invertible")
        return repeated_squaring(self, n, one)

    def __pow__(self, n: int) -> MonoidalString:
        return self.power(n)


# =============================================================================
# Presets
# =============================================================================


class FreeMonoid(MonoidalString):
    """
    The free monoid: words multiplied by concatenation.

    ``FreeMonoid("x") * "y" * "x"`` is the word ``x*y*x``.
    """
    mul_rule = ConcatRule()


class FreeGroup(MonoidalString):
    """
    The free group on ``FreeInv`` letters.

    Raw values are wrapped as ``FreeInv(value)``; adjacent ``x``/``x⁻¹`` pairs
    cancel.
    """
    mul_rule = InvRule()

    @classmethod
    def _coerce_letter(cls, letter):
        if isinstance(letter, FreeInv):
            return letter
        return FreeInv(letter)


class FreePowMonoid(MonoidalString):
    """
    Words of ``FreePow`` letters, runs of a repeated base merged under one exponent.

    With signed exponents this is another presentation of the free group.
    Raw values become ``FreePow(value, 1)``; ``FreeInv`` letters are converted
    with ``FreePow.from_inv``.
    """
    mul_rule = PowRule()

    @classmethod
    def _coerce_letter(cls, letter):
        if isinstance(letter, FreePow):
            return letter
        if isinstance(letter, FreeInv):
            return FreePow.from_inv(letter)
        return FreePow(letter)


# =============================================================================
# Self test
# =============================================================================


def _self_test() -> Dict[str, Any]:
    """
    Minimal deterministic self check:
      - concatenation keeps every letter
      - inversion-cancellation removes x x⁻¹
      - exponent compression merges and drops zero exponents
    """
    results: Dict[str, Any] = {"ok": True, "tests": []}

    def record(name: str, passed: bool, detail: str = "") -> None:
        results["tests"].append({"name": name, "passed": passed, "detail": detail})
        if not passed:
            results["ok"] = False
            _logger.error("SELF-TEST FAILED: %s - %s", name, detail)

    x_inv = FreeInv("x", inverted=True)

    try:
        w = FreeMonoid.one() * "x" * "y" * x_inv
        assert w.letters() == ("x", "y", x_inv), repr(w)
        record("concatenation", True)
    except Exception as e:
        record("concatenation", False, str(e))

    try:
        g = FreeGroup.one() * "x" * x_inv
        assert g.is_one(), repr(g)
        g = FreeGroup.one() * "x" * "y" * x_inv
        assert len(g) == 3, repr(g)
        record("cancellation", True)
    except Exception as e:
        record("cancellation", False, str(e))

    try:
        p = FreePowMonoid(FreePow("x", 2)) * FreePow("x", 3)
        assert p.letters() == (FreePow("x", 5),), repr(p)
        assert (p * FreePow("x", -5)).is_one()
        record("exponent_compression", True)
    except Exception as e:
        record("exponent_compression", False, str(e))

    if not results["ok"]:
        raise RuntimeError("monoidal_string self-test failed")
    return results


__all__ = [
    "MonoidalString",
    "FreeMonoid",
    "FreeGroup",
    "FreePowMonoid",
]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    print("Running monoidal_string self-test...")
    print(_self_test())
