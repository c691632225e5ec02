"""
Free modules and algebras as term -> coefficient maps.

Mathematical definition:
    Given a set T and a ring R, the free R-module on T is the set of finite
    formal sums  r1*t1 + ... + rn*tn  with ri in R, ti in T pairwise distinct
    and ri != 0. Addition merges equal terms by adding their coefficients.
    Fixing a product of terms (an ``AlgebraRule``) and distributing it over
    sums turns the module into an algebra:

        (sum_i ri*ti) * (sum_j sj*uj) = sum_{i,j} ri*sj*c(ti,uj) * (ti.uj)

    where  rule(ti, uj) = (c(ti,uj), ti.uj)  and a missing c is 1.

Structure:
    ``ModuleString`` owns a ``dict`` from term to coefficient. Invariants:
        - every stored coefficient is nonzero according to the ring
        - absence of a term means coefficient zero
        - nothing depends on dict iteration order

    The rule and the coefficient ring are class attributes, so a concrete
    algebra is a subclass: ``FreeModule`` (no product), ``MonoidRing`` (the
    terms' own product), ``FreeAlgebra`` (``MonoidRing`` over ``FreeMonoid``),
    or anything built with ``ModuleString.specialize``.

Mutation through iteration:
    ``iter_mut`` hands out mutable ``TermHandle`` objects. Storage is detached
    into a staging buffer first, and every handle is merged back through the
    regular insertion path once the caller moves past it, so mutated terms
    that collide are summed and zero sums vanish. The buffer is always fully
    drained: on exhaustion, ``close()``, ``with`` exit, garbage collection, or
    as soon as anything else reads the owning element.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, Iterator, List, Optional, Tuple

from algebra_rules import (
    AlgebraRule,
    AssociativeAlgebraRule,
    CommutativeAlgebraRule,
    CommutativeMulRule,
    MulRule,
    UnitalAlgebraRule,
)
from coefficient_ring import NUMBER_RING, CoefficientRing
from display import format_module
from free_core import Capability, CapabilityError, FreeElement, TermLookupError, require
from monoidal_string import FreeMonoid
from repeated_squaring import repeated_squaring

_logger = logging.getLogger(__name__)

_UNSET = object()


def _identity(r):
    return r


# =============================================================================
# 1) Mutable iteration
# =============================================================================


class TermHandle:
    """A mutable ``(coefficient, term)`` pair handed out by ``iter_mut``."""

    __slots__ = ("coefficient", "term")

    def __init__(self, coefficient, term):
        self.coefficient = coefficient
        self.term = term

    def __iter__(self):
        yield self.coefficient
        yield self.term

    def __repr__(self) -> str:
        return f"TermHandle({self.coefficient!r}, {self.term!r})"


class TermCursor:
    """
    Iterator over mutable handles of a ``ModuleString``.

    Each handle is re-merged into its owner when the next one is requested.
    Whatever is still staged when the cursor is closed (explicitly, by a
    ``with`` block, by garbage collection, or because the owner was read) is
    merged back before the owner is observed again.

    Replace ``handle.term`` rather than mutating a term object in place: the
    same term object may be shared with other elements.
    """

    def __init__(self, owner: ModuleString):
        terms = owner._terms
        self._owner = owner
        self._staged: Deque[TermHandle] = deque(TermHandle(r, t) for t, r in terms.items())
        self._current: Optional[TermHandle] = None
        self._closed = False
        owner._map = {}
        owner._cursor = self

    def __iter__(self) -> TermCursor:
        return self

    def __next__(self) -> TermHandle:
        if self._closed:
            raise StopIteration
        self._merge_current()
        if not self._staged:
            self.close()
            raise StopIteration
        self._current = self._staged.popleft()
        return self._current

    def __length_hint__(self) -> int:
        return len(self._staged)

    def _merge_current(self) -> None:
        handle, self._current = self._current, None
        if handle is not None:
            self._owner._merge(self._owner._map, handle.coefficient, handle.term, _identity)

    def close(self) -> None:
        """Merge every pending handle back into the owner."""
        if self._closed:
            return
        self._closed = True
        self._merge_current()
        pending = len(self._staged)
        while self._staged:
            handle = self._staged.popleft()
            self._owner._merge(self._owner._map, handle.coefficient, handle.term, _identity)
        if self._owner._cursor is self:
            self._owner._cursor = None
        if pending:
            _logger.debug("iter_mut closed early; re-merged %d staged terms", pending)

    def __enter__(self) -> TermCursor:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def __del__(self):
        self.close()


# =============================================================================
# 2) Coefficient map engine
# =============================================================================


class ModuleString(FreeElement):
    """
    A finite linear combination of terms with nonzero coefficients.

    Construction:
        ``cls()`` is zero; ``cls(t)`` is ``1*t``; ``cls((r, t))`` is ``r*t``.
        A term that is itself a 2-tuple must be given as a pair, e.g.
        ``cls((1, (a, b)))``.

    Operators:
        ``+``/``-`` accept another element, a ``(coefficient, term)`` pair or a
        bare term. ``*`` accepts another element (full distribution), a pair
        or bare term (right multiplication by a monomial) or a scalar of the
        ring (scaling); scalars are recognised first, so numeric terms must be
        passed as pairs or through ``mul_term``. ``/`` divides by a scalar.
        ``**`` needs an associative unital rule.
    """

    rule: Optional[AlgebraRule] = None
    ring: CoefficientRing = NUMBER_RING

    def __init__(self, value: Any = _UNSET):
        self._map: Dict[Any, Any] = {}
        self._cursor: Optional[TermCursor] = None
        if value is _UNSET:
            return
        if isinstance(value, ModuleString):
            self._map = dict(value._terms)
        else:
            r, t = self._coerce_pair(value)
            self._merge(self._map, r, t, _identity)

    # ------------------------------------------------------------------
    # parametrisation
    # ------------------------------------------------------------------

    @classmethod
    def specialize(
        cls,
        name: Optional[str] = None,
        *,
        rule: Any = _UNSET,
        ring: Any = _UNSET,
    ) -> type:
        """
        Build a subclass bound to another rule and/or coefficient ring.

        Example:
            >>> from algebra_rules import AddRule
            >>> Poly = ModuleString.specialize("Poly", rule=AddRule())
            >>> (Poly(1) + Poly(2)) ** 2 == Poly(2) + Poly((2, 3)) + Poly(4)
            True
        """
        namespace: Dict[str, Any] = {"__module__": cls.__module__}
        if rule is not _UNSET:
            namespace["rule"] = rule
        if ring is not _UNSET:
            namespace["ring"] = ring
        return type(name or cls.__name__, (cls,), namespace)

    @classmethod
    def capabilities(cls) -> frozenset:
        """Algebraic properties composed from the ring and the rule markers."""
        caps = {
            Capability.ADD_ASSOCIATIVE,
            Capability.ADD_COMMUTATIVE,
            Capability.ADD_INVERTIBLE,
            Capability.ADD_UNITAL,
        }
        rule = cls.rule
        if rule is not None:
            caps.add(Capability.DISTRIBUTIVE)
        if isinstance(rule, AssociativeAlgebraRule):
            caps.add(Capability.MUL_ASSOCIATIVE)
        if isinstance(rule, CommutativeAlgebraRule):
            caps.add(Capability.MUL_COMMUTATIVE)
        if isinstance(rule, UnitalAlgebraRule):
            caps.add(Capability.MUL_UNITAL)
        return frozenset(caps)

    @classmethod
    def _require(cls, *needed: Capability, operation: str) -> None:
        if cls.rule is None:
            raise CapabilityError(f"{cls.__name__}.{operation} requires a multiplication rule")
        require(cls, cls.capabilities(), *needed, operation=operation)

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls) -> ModuleString:
        return cls()

    @classmethod
    def one(cls) -> ModuleString:
        cls._require(Capability.MUL_UNITAL, operation="one")
        return cls((cls.ring.one(), cls.rule.one()))

    @classmethod
    def from_terms(cls, items: Iterable[Any]) -> ModuleString:
        """Sum an iterable of terms and/or ``(coefficient, term)`` pairs."""
        out = cls()
        out.extend(items)
        return out

    @classmethod
    def sum_of(cls, elements: Iterable[ModuleString]) -> ModuleString:
        out = cls()
        for element in elements:
            out += element
        return out

    @classmethod
    def product_of(cls, factors: Iterable[Any]) -> ModuleString:
        """Multiply elements, pairs or terms together, starting from ``one()``."""
        out = cls.one()
        for factor in factors:
            out *= factor
        return out

    def copy(self) -> ModuleString:
        out = type(self)()
        out._map = dict(self._terms)
        return out

    clone = copy
    __copy__ = copy

    # ------------------------------------------------------------------
    # storage access
    # ------------------------------------------------------------------

    @property
    def _terms(self) -> Dict[Any, Any]:
        if self._cursor is not None:
            self._cursor.close()
        return self._map

    def _coerce_pair(self, value: Any) -> Tuple[Any, Any]:
        if isinstance(value, tuple) and len(value) == 2:
            return value
        return self.ring.one(), value

    def _merge(self, terms: Dict[Any, Any], coefficient, term, sign: Callable[[Any], Any]) -> None:
        ring = self.ring
        if ring.is_zero(coefficient):
            return
        r = ring.coerce(sign(coefficient))
        if term in terms:
            total = ring.add(terms[term], r)
            if ring.is_zero(total):
                del terms[term]
            else:
                terms[term] = total
        elif not ring.is_zero(r):
            terms[term] = r

    def _insert_term(self, coefficient, term, sign: Callable[[Any], Any] = _identity) -> None:
        self._merge(self._terms, coefficient, term, sign)

    def _insert(self, pairs: Iterable[Tuple[Any, Any]], sign: Callable[[Any], Any] = _identity) -> None:
        terms = self._terms
        for r, t in pairs:
            self._merge(terms, r, t, sign)

    def _purge(self) -> None:
        ring = self.ring
        terms = self._terms
        for t in [t for t, r in terms.items() if ring.is_zero(r)]:
            del terms[t]

    # ------------------------------------------------------------------
    # reading
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._terms)

    def __bool__(self) -> bool:
        return len(self._terms) > 0

    def is_zero(self) -> bool:
        return len(self._terms) == 0

    def is_one(self) -> bool:
        self._require(Capability.MUL_UNITAL, operation="is_one")
        terms = self._terms
        if len(terms) != 1:
            return False
        (t, r), = terms.items()
        return self.ring.is_one(r) and self.rule.is_one(t)

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        """Yield ``(coefficient, term)`` pairs in no particular order."""
        return ((r, t) for t, r in self._terms.items())

    def iter(self) -> Iterator[Tuple[Any, Any]]:
        return iter(self)

    def iter_mut(self) -> TermCursor:
        """
        Iterate over mutable ``TermHandle`` objects.

        Example:
            >>> p = FreeModule.from_terms([(1.0, "x"), (1.0, "y")])
            >>> for h in p.iter_mut():
            ...     h.term = "a"
            >>> p == FreeModule((2.0, "a"))
            True
        """
        return TermCursor(self)

    def terms(self) -> List[Any]:
        return list(self._terms)

    def coefficients(self) -> List[Any]:
        return list(self._terms.values())

    def items(self) -> List[Tuple[Any, Any]]:
        return [(r, t) for t, r in self._terms.items()]

    def get(self, term) -> Any:
        """The coefficient of ``term``, or the ring's zero when absent."""
        terms = self._terms
        if term in terms:
            return terms[term]
        return self.ring.zero()

    def __getitem__(self, term) -> Any:
        try:
            return self._terms[term]
        except KeyError:
            raise TermLookupError(term) from None

    def __contains__(self, term) -> bool:
        return term in self._terms

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModuleString):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self) -> int:
        return hash(frozenset(self._terms.items()))

    def __repr__(self) -> str:
        body = ", ".join(f"{t!r}: {r!r}" for t, r in self._terms.items())
        return f"{type(self).__name__}({{{body}}})"

    def __str__(self) -> str:
        return format_module(self)

    def __format__(self, spec: str) -> str:
        if spec == "#":
            return format_module(self, alternate=True)
        if spec:
            raise ValueError(f"unsupported format spec {spec!r} for {type(self).__name__}")
        return format_module(self)

    # ------------------------------------------------------------------
    # addition
    # ------------------------------------------------------------------

    def add_term(self, term, coefficient=None) -> None:
        self._insert_term(self.ring.one() if coefficient is None else coefficient, term)

    def sub_term(self, term, coefficient=None) -> None:
        self._insert_term(self.ring.one() if coefficient is None else coefficient, term, self.ring.neg)

    def extend(self, items: Iterable[Any]) -> None:
        """Merge terms and/or ``(coefficient, term)`` pairs into this element."""
        self._insert(self._coerce_pair(item) for item in items)

    def _pairs_of(self, other: Any) -> List[Tuple[Any, Any]]:
        if isinstance(other, ModuleString):
            return other.items()
        return [self._coerce_pair(other)]

    def __iadd__(self, other):
        self._insert(self._pairs_of(other))
        return self

    def __isub__(self, other):
        self._insert(self._pairs_of(other), self.ring.neg)
        return self

    def __add__(self, other):
        out = self.copy()
        out += other
        return out

    def __sub__(self, other):
        out = self.copy()
        out -= other
        return out

    def __neg__(self):
        ring = self.ring
        out = type(self)()
        for t, r in self._terms.items():
            negated = ring.neg(r)
            if not ring.is_zero(negated):
                out._map[t] = negated
        return out

    def __pos__(self):
        return self.copy()

    # ------------------------------------------------------------------
    # scalars
    # ------------------------------------------------------------------

    def scale(self, scalar) -> None:
        """Multiply every coefficient on the right by ``scalar``."""
        ring = self.ring
        terms = self._terms
        for t in list(terms):
            terms[t] = ring.mul(terms[t], scalar)
        self._purge()

    def divide(self, scalar) -> None:
        """Divide every coefficient by ``scalar``; failures are the ring's."""
        ring = self.ring
        terms = self._terms
        for t in list(terms):
            terms[t] = ring.div(terms[t], scalar)
        self._purge()

    def __itruediv__(self, scalar):
        if not self.ring.contains(scalar):
            return NotImplemented
        self.divide(scalar)
        return self

    def __truediv__(self, scalar):
        if not self.ring.contains(scalar):
            return NotImplemented
        out = self.copy()
        out.divide(scalar)
        return out

    # ------------------------------------------------------------------
    # multiplication
    # ------------------------------------------------------------------

    def _product(self, terms: Dict[Any, Any], r1, t1, out: Dict[Any, Any], left: bool = False) -> None:
        ring = self.ring
        rule = self.rule
        for t, r in terms.items():
            if left:
                extra, t2 = rule.apply(t1, t)
                c = ring.mul(r1, r)
            else:
                extra, t2 = rule.apply(t, t1)
                c = ring.mul(r, r1)
            if extra is not None:
                c = ring.mul(c, extra)
            self._merge(out, c, t2, _identity)

    def mul_term(self, term, coefficient=None) -> None:
        """Right-multiply in place by the monomial ``coefficient*term``."""
        self._require(operation="mul_term")
        r1 = self.ring.one() if coefficient is None else coefficient
        source = self._terms
        self._map = {}
        self._product(source, r1, term, self._map)

    def mul(self, other: ModuleString) -> None:
        """Multiply in place by another element, distributing over both sums."""
        self._require(operation="mul")
        source = self._terms
        factors = other.items()
        out: Dict[Any, Any] = {}
        for r1, t1 in factors:
            self._product(source, r1, t1, out)
        self._map = out

    def __imul__(self, other):
        if isinstance(other, ModuleString):
            self.mul(other)
        elif isinstance(other, tuple) and len(other) == 2:
            self.mul_term(other[1], other[0])
        elif self.ring.contains(other):
            self.scale(other)
        else:
            self.mul_term(other)
        return self

    def __mul__(self, other):
        out = self.copy()
        out *= other
        return out

    def __rmul__(self, other):
        ring = self.ring
        out = type(self)()
        if isinstance(other, tuple) and len(other) == 2:
            self._require(operation="mul_term")
            self._product(self._terms, other[0], other[1], out._map, left=True)
            return out
        if ring.contains(other):
            for t, r in self._terms.items():
                c = ring.mul(other, r)
                if not ring.is_zero(c):
                    out._map[t] = c
            return out
        if self.rule is not None:
            self._product(self._terms, ring.one(), other, out._map, left=True)
            return out
        return NotImplemented

    def __radd__(self, other):
        # a scalar on the left is never a term
        if self.ring.contains(other):
            return NotImplemented
        return self + other

    def __rsub__(self, other):
        if self.ring.contains(other):
            return NotImplemented
        return type(self)(other) - self

    def commutator(self, other: ModuleString) -> ModuleString:
        """The algebraic commutator ``[a, b] = a*b - b*a``."""
        return self * other - other * self

    def power(self, n: int) -> ModuleString:
        self._require(Capability.MUL_ASSOCIATIVE, Capability.MUL_UNITAL, operation="power")
        return repeated_squaring(self, n, type(self).one())

    def __pow__(self, n: int) -> ModuleString:
        return self.power(n)


# =============================================================================
# 3) Presets
# =============================================================================


class FreeModule(ModuleString):
    """
    The free module: linear combinations of terms with no product of terms.

    Supports addition, subtraction, negation and scalar multiplication or
    division; term products raise ``CapabilityError``.
    """
    rule = None


class MonoidRing(ModuleString):
    """
    Linear combinations of monoid elements multiplied with the monoid operation.

    The default binding multiplies terms with ``*`` and uses ``1`` as the unit;
    ``MonoidRing.over(monoid)`` binds the unit of another monoid type.
    """
    rule = MulRule()

    @classmethod
    def over(cls, monoid: type, *, ring: Optional[CoefficientRing] = None, commutative: bool = False) -> type:
        rule_type = CommutativeMulRule if commutative else MulRule
        kwargs: Dict[str, Any] = {"rule": rule_type(monoid.one)}
        if ring is not None:
            kwargs["ring"] = ring
        return cls.specialize(f"{cls.__name__}[{monoid.__name__}]", **kwargs)


class FreeAlgebra(MonoidRing):
    """
    Polynomials in non-commuting variables: the monoid ring of ``FreeMonoid``.

    Terms are ``FreeMonoid`` words; products concatenate words.
    """
    rule = MulRule(FreeMonoid.one)


# =============================================================================
# 4) Self test
# =============================================================================


def _self_test() -> Dict[str, Any]:
    """
    Minimal deterministic self check of the engine:
      - merge-insertion accumulates and cancels
      - mutation through iteration re-merges colliding terms
      - products distribute and the unit behaves as one
    """
    results: Dict[str, Any] = {"ok": True, "tests": []}

    def record(name: str, passed: bool, detail: str = "") -> None:
        results["tests"].append({"name": name, "passed": passed, "detail": detail})
        if not passed:
            results["ok"] = False
            _logger.error("SELF-TEST FAILED: %s - %s", name, detail)

    try:
        p = FreeModule.zero()
        p += (1.0, "x")
        assert p == FreeModule((1.0, "x"))
        p += (2.0, "x")
        assert p.get("x") == 3.0
        p += (-3.0, "x")
        assert p.is_zero() and p == FreeModule.zero()
        record("merge_cancels_to_zero", True)
    except Exception as e:
        record("merge_cancels_to_zero", False, str(e))

    try:
        p = FreeModule.from_terms([(1.0, "x"), (1.0, "y")])
        for handle in p.iter_mut():
            handle.term = "a"
        assert p == FreeModule((2.0, "a")), repr(p)
        record("iter_mut_collision", True)
    except Exception as e:
        record("iter_mut_collision", False, str(e))

    try:
        x = FreeMonoid("x")
        y = FreeMonoid("y")
        p = FreeAlgebra.one() + x
        q = FreeAlgebra.one() + y
        c = p.commutator(q)
        assert c.get(x * y) == 1 and c.get(y * x) == -1 and len(c) == 2
        assert (p ** 2) == FreeAlgebra.one() + (2, x) + x * x
        record("algebra_products", True)
    except Exception as e:
        record("algebra_products", False, str(e))

    if not results["ok"]:
        raise RuntimeError("module_string self-test failed")
    return results


__all__ = [
    "TermHandle",
    "TermCursor",
    "ModuleString",
    "FreeModule",
    "MonoidRing",
    "FreeAlgebra",
]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    print("Running module_string self-test...")
    print(_self_test())
