"""Tests for the coefficient map engine (free modules and algebras)."""

import logging
from fractions import Fraction

import pytest
from hypothesis import given, settings, strategies as st

from algebra_rules import AddRule, AssociativeAlgebraRule, UnitalAlgebraRule
from free_core import Capability, CapabilityError, TermLookupError
from module_string import FreeAlgebra, FreeModule, ModuleString, MonoidRing, TermHandle, _self_test
from monoid_rules import FreeInv
from monoidal_string import FreeGroup, FreeMonoid


terms = st.sampled_from(["a", "b", "c", "d"])
coefficients = st.integers(min_value=-4, max_value=4)
pairs = st.lists(st.tuples(coefficients, terms), max_size=20)

words = st.lists(st.sampled_from("xy"), max_size=2).map(FreeMonoid.from_letters)
polynomials = st.lists(
    st.tuples(st.integers(min_value=-2, max_value=2), words), max_size=3
).map(FreeAlgebra.from_terms)


X = FreeMonoid("x")
Y = FreeMonoid("y")


class ShiftRule(AssociativeAlgebraRule, UnitalAlgebraRule):
    """Adds integer terms and doubles every product."""

    def apply(self, t1, t2):
        return 2, t1 + t2

    def one(self):
        return 0

    def is_one(self, t):
        return t == 0


class NilpotentRule(AssociativeAlgebraRule):
    """Integer terms whose square vanishes."""

    def apply(self, t1, t2):
        if t1 == t2:
            return 0, t1 + t2
        return None, t1 + t2


class TestMergeInsertion:
    """Merge-insertion keeps one nonzero coefficient per term."""

    def test_accumulate_then_cancel(self):
        p = FreeModule.zero()
        p += (1.0, "x")
        assert p == FreeModule((1.0, "x"))
        p += (2.0, "x")
        assert p["x"] == 3.0
        assert len(p) == 1
        p += (-3.0, "x")
        assert len(p) == 0
        assert p == FreeModule.zero()

    @given(pairs)
    def test_coefficient_is_sum_of_insertions(self, items):
        p = FreeModule.from_terms(items)
        for term in "abcd":
            expected = sum(r for r, t in items if t == term)
            assert p.get(term) == expected
            assert (term in p) == (expected != 0)
        assert all(r != 0 for r, _ in p)

    @given(st.lists(st.tuples(coefficients, terms), max_size=8).flatmap(
        lambda items: st.tuples(st.just(items), st.permutations(items))))
    def test_insertion_order_is_irrelevant(self, data):
        items, shuffled = data
        assert FreeModule.from_terms(items) == FreeModule.from_terms(shuffled)

    @given(pairs)
    def test_empty_iff_zero(self, items):
        p = FreeModule.from_terms(items)
        assert (len(p) == 0) == (p == FreeModule.zero())
        assert (len(p) == 0) == p.is_zero()
        assert bool(p) == (len(p) > 0)

    def test_zero_coefficient_is_never_stored(self):
        p = FreeModule((0, "x"))
        assert p.is_zero()
        p.add_term("y", 0)
        assert len(p) == 0

    def test_bare_terms_count_once(self):
        p = FreeModule.from_terms(["x", "x", (2, "y")])
        assert p["x"] == 2
        assert p["y"] == 2

    def test_subtraction(self):
        p = FreeModule("x") + "y"
        q = p - "x"
        assert q == FreeModule("y")
        q.sub_term("y")
        assert q.is_zero()
        # the left operand is untouched
        assert len(p) == 2

    def test_term_on_the_left(self):
        p = FreeModule.from_terms([(2, "x"), (1, "y")])
        assert "x" + p == FreeModule.from_terms([(3, "x"), (1, "y")])
        assert "x" - p == FreeModule.from_terms([(-1, "x"), (-1, "y")])
        assert (2, "x") - p == FreeModule((-1, "y"))
        with pytest.raises(TypeError):
            3 - p

    def test_add_self(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y")])
        p += p
        assert p == FreeModule.from_terms([(2, "x"), (4, "y")])

    def test_sum_of(self):
        parts = [FreeModule("x"), FreeModule((2, "y")), FreeModule((-1, "x"))]
        assert FreeModule.sum_of(parts) == FreeModule((2, "y"))

    def test_sum_builtin_needs_start(self):
        parts = [FreeModule("x"), FreeModule("y")]
        assert sum(parts, FreeModule.zero()) == FreeModule.from_terms(["x", "y"])
        with pytest.raises(TypeError):
            sum(parts)

    def test_copy_is_independent(self):
        p = FreeModule((1, "x"))
        q = p.copy()
        q += "y"
        assert "y" not in p
        assert p.clone() == p


class TestLookup:

    def test_get_defaults_to_ring_zero(self):
        assert FreeModule((3, "x")).get("missing") == 0

    def test_index_missing_term_raises(self):
        with pytest.raises(TermLookupError):
            FreeModule((3, "x"))["y"]

    def test_lookup_error_is_a_key_error(self):
        with pytest.raises(KeyError):
            FreeModule()["y"]

    def test_iteration_is_restartable(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y")])
        first = sorted(p, key=lambda pair: pair[1])
        second = sorted(p.iter(), key=lambda pair: pair[1])
        assert first == second == [(1, "x"), (2, "y")]
        assert sorted(p.terms()) == ["x", "y"]
        assert sorted(p.coefficients()) == [1, 2]

    def test_equal_elements_hash_equal(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y")])
        q = FreeModule.from_terms([(2, "y"), (1, "x")])
        assert p == q
        assert hash(p) == hash(q)
        assert len({p, q}) == 1

    def test_tuple_terms_are_given_as_pairs(self):
        p = FreeModule((1, ("a", "b")))
        assert p[("a", "b")] == 1


class TestIterMut:
    """Mutation through iteration re-merges every handle."""

    def test_colliding_terms_are_summed(self):
        p = FreeModule.from_terms([(1.0, "x"), (1.0, "y")])
        for handle in p.iter_mut():
            handle.term = "a"
        assert p == FreeModule((2.0, "a"))
        assert p.get("x") == 0

    def test_colliding_terms_cancel(self):
        p = FreeModule.from_terms([(1.0, "x"), (-1.0, "y")])
        for handle in p.iter_mut():
            handle.term = "a"
        assert p.is_zero()

    def test_coefficient_set_to_zero_is_dropped(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y")])
        for handle in p.iter_mut():
            assert isinstance(handle, TermHandle)
            if handle.term == "x":
                handle.coefficient = 0
        assert p == FreeModule((2, "y"))

    def test_early_break_keeps_remaining_terms(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y"), (3, "z")])
        for handle in p.iter_mut():
            handle.coefficient *= 10
            break
        assert len(p) == 3
        assert sorted(p.coefficients()) in ([2, 3, 10], [1, 3, 20], [1, 2, 30])

    def test_early_close_is_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="module_string")
        p = FreeModule.from_terms([(1, "x"), (2, "y"), (3, "z")])
        cursor = p.iter_mut()
        next(cursor)
        cursor.close()
        assert len(p) == 3
        assert "re-merged 2 staged terms" in caplog.text

    def test_with_block_drains_on_error(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y")])
        with pytest.raises(RuntimeError):
            with p.iter_mut() as cursor:
                handle = next(cursor)
                handle.term = "w"
                raise RuntimeError("boom")
        assert len(p) == 2
        assert "w" in p

    def test_reading_owner_ends_the_cursor(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y")])
        cursor = p.iter_mut()
        handle = next(cursor)
        handle.term = "z"
        assert p.get("z") == handle.coefficient
        assert len(p) == 2
        assert list(cursor) == []

    def test_unconsumed_cursor_restores_terms(self):
        p = FreeModule.from_terms([(1, "x"), (2, "y")])
        p.iter_mut()
        assert p == FreeModule.from_terms([(1, "x"), (2, "y")])

    @given(pairs, st.dictionaries(terms, terms))
    def test_relabeling_matches_rebuilding(self, items, relabel):
        p = FreeModule.from_terms(items)
        expected = FreeModule.from_terms((r, relabel.get(t, t)) for r, t in p)
        for handle in p.iter_mut():
            handle.term = relabel.get(handle.term, handle.term)
        assert p == expected
        assert all(r != 0 for r, _ in p)


class TestScalars:

    def test_scaling_both_sides(self):
        p = FreeModule.from_terms([(2, "x"), (3, "y")])
        expected = FreeModule.from_terms([(4, "x"), (6, "y")])
        assert p * 2 == expected
        assert 2 * p == expected

    def test_scaling_by_zero_purges(self):
        p = FreeModule.from_terms([(2, "x"), (3, "y")])
        assert (p * 0).is_zero()
        assert (0 * p).is_zero()

    def test_division(self):
        p = FreeModule((Fraction(2), "x"))
        assert (p / 4)["x"] == Fraction(1, 2)
        p /= 2
        assert p["x"] == 1

    def test_division_by_term_is_unsupported(self):
        with pytest.raises(TypeError):
            FreeModule("x") / "x"

    def test_negation(self):
        p = FreeModule.from_terms([(2, "x"), (-3, "y")])
        assert -p == FreeModule.from_terms([(-2, "x"), (3, "y")])
        assert (p + -p).is_zero()
        assert +p == p


class TestProducts:

    def test_free_module_has_no_product(self):
        with pytest.raises(CapabilityError):
            FreeModule("x") * FreeModule("y")
        with pytest.raises(CapabilityError):
            FreeModule("x") ** 2
        with pytest.raises(CapabilityError):
            FreeModule.one()

    def test_capabilities(self):
        assert Capability.MUL_ASSOCIATIVE not in FreeModule.capabilities()
        caps = FreeAlgebra.capabilities()
        assert {Capability.MUL_ASSOCIATIVE, Capability.MUL_UNITAL, Capability.DISTRIBUTIVE} <= caps
        assert Capability.MUL_COMMUTATIVE not in caps
        assert Capability.MUL_COMMUTATIVE in MonoidRing.over(FreeMonoid, commutative=True).capabilities()

    def test_monomial_distributes(self):
        p = FreeAlgebra.from_terms([(2, X), (3, Y)])
        q = p * (5, Y)
        assert q == FreeAlgebra.from_terms([(10, X * Y), (15, Y * Y)])
        assert p * Y == FreeAlgebra.from_terms([(2, X * Y), (3, Y * Y)])

    def test_left_monomials(self):
        p = FreeAlgebra(Y)
        assert (2, X) * p == FreeAlgebra((2, X * Y))
        assert X * p == FreeAlgebra(X * Y)

    def test_product_is_noncommutative(self):
        p = FreeAlgebra(X)
        q = FreeAlgebra(Y)
        assert p * q != q * p
        assert (p * q)[X * Y] == 1

    def test_commutator(self):
        p = FreeAlgebra.one() + X
        q = FreeAlgebra.one() + Y
        c = p.commutator(q)
        assert c == FreeAlgebra.from_terms([X * Y, (-1, Y * X)])

    @given(polynomials)
    def test_commutator_with_clone_is_zero(self, p):
        assert p.commutator(p.clone()).is_zero()

    @settings(max_examples=30, deadline=None)
    @given(polynomials, st.integers(min_value=0, max_value=3), st.integers(min_value=0, max_value=3))
    def test_power_law(self, p, a, b):
        assert p ** (a + b) == (p ** a) * (p ** b)

    def test_unit(self):
        one = FreeAlgebra.one()
        assert one.is_one()
        assert not (one * 2).is_one()
        assert not FreeAlgebra(X).is_one()
        p = FreeAlgebra.from_terms([(3, X), (1, Y)])
        assert one * p == p * one == p
        assert p ** 0 == one

    def test_product_of(self):
        assert FreeAlgebra.product_of([X, (2, Y), FreeAlgebra(X)]) == FreeAlgebra((2, X * Y * X))

    def test_rule_coefficient_is_applied(self):
        Doubling = ModuleString.specialize("Doubling", rule=ShiftRule())
        p = Doubling((3, 1)) * (5, 2)
        assert p == Doubling((30, 3))

    def test_zero_rule_coefficient_removes_product(self):
        Nil = ModuleString.specialize("Nil", rule=NilpotentRule())
        assert (Nil(1) * Nil(1)).is_zero()
        assert Nil(1) * Nil(2) == Nil(3)
        with pytest.raises(CapabilityError):
            Nil(1) ** 2

    def test_group_ring_of_integers(self):
        Poly = ModuleString.specialize("Poly", rule=AddRule())
        p = (Poly(0) + Poly(1)) ** 3
        assert p == Poly.from_terms([(1, 0), (3, 1), (3, 2), (1, 3)])
        assert Poly.one() == Poly(0)

    def test_group_ring_cancels_inverses(self):
        G = MonoidRing.over(FreeGroup)
        g = G(FreeGroup("x"))
        h = g * FreeGroup(FreeInv("x", inverted=True))
        assert h.is_one()
        assert h == G.one()


class TestSelfTest:

    def test_self_test_passes(self):
        results = _self_test()
        assert results["ok"]
        assert all(t["passed"] for t in results["tests"])
