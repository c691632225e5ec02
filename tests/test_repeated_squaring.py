"""Tests for exponentiation by repeated squaring."""

from fractions import Fraction

import numpy as np
import pytest
from hypothesis import given, strategies as st

from repeated_squaring import repeated_squaring, repeated_squaring_inv


class TestRepeatedSquaring:

    @given(st.integers(min_value=-6, max_value=6), st.integers(min_value=0, max_value=40))
    def test_matches_builtin_power(self, x, n):
        assert repeated_squaring(x, n, 1) == x ** n

    def test_logarithmic_multiplications(self):
        calls = []

        def mul(a, b):
            calls.append(1)
            return a * b

        assert repeated_squaring(3, 1000, 1, mul) == 3 ** 1000
        # 1000 has 10 bits, 6 of them set
        assert len(calls) <= 2 * 10

    def test_noncommutative_product(self):
        a = np.array([[1, 1], [0, 1]], dtype=np.int64)
        b = np.array([[2, 0], [1, 1]], dtype=np.int64)
        m = a @ b
        one = np.eye(2, dtype=np.int64)
        result = repeated_squaring(m, 7, one, np.matmul)
        assert np.array_equal(result, np.linalg.matrix_power(m, 7))

    def test_zero_exponent_is_unit(self):
        assert repeated_squaring("anything", 0, "unit") == "unit"

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            repeated_squaring(2, -1, 1)

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            repeated_squaring(2, 1.5, 1)
        with pytest.raises(TypeError):
            repeated_squaring(2, True, 1)


class TestRepeatedSquaringInv:

    def test_negative_exponent_inverts(self):
        result = repeated_squaring_inv(Fraction(2), -3, Fraction(1), invert=lambda f: 1 / f)
        assert result == Fraction(1, 8)

    def test_positive_exponent(self):
        assert repeated_squaring_inv(Fraction(2), 3, Fraction(1), invert=lambda f: 1 / f) == 8

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            repeated_squaring_inv(2, "3", 1, invert=lambda f: 1 / f)
