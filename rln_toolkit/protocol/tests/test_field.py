"""Tests for scalar-field arithmetic."""

import pytest

from rln_toolkit.protocol import field
from rln_toolkit.protocol.config import FIELD_MODULUS
from rln_toolkit.protocol.exceptions import FieldArithmeticError, ValidationError

P = FIELD_MODULUS


class TestNormalization:
    def test_negative_values_wrap(self):
        assert field.normalize(-1) == P - 1

    def test_unreduced_values_reduce(self):
        assert field.normalize(P + 5) == 5

    def test_to_field_parses_strings(self):
        assert field.to_field("42") == 42
        assert field.to_field("0x2a") == 42
        assert field.to_field(str(P + 1)) == 1

    def test_to_field_leading_zeros_are_decimal(self):
        assert field.to_field("007") == 7
        assert field.to_field("010") == 10
        assert field.to_field(" 42\n") == 42

    def test_to_field_hex_prefix(self):
        assert field.to_field("0x1f") == 31
        assert field.to_field("0X1F") == 31
        assert field.to_field("-0x1") == P - 1

    def test_to_field_rejects_other_prefixes(self):
        with pytest.raises(ValidationError):
            field.to_field("0b101")
        with pytest.raises(ValidationError):
            field.to_field("")

    def test_to_field_rejects_garbage(self):
        with pytest.raises(ValidationError):
            field.to_field("not a number")
        with pytest.raises(ValidationError):
            field.to_field(True)
        with pytest.raises(ValidationError):
            field.to_field(1.5)


class TestArithmetic:
    def test_sub_wraps(self):
        assert field.sub(1, 2) == P - 1

    def test_mul_reduces(self):
        assert field.mul(P - 1, P - 1) == 1

    def test_inverse(self):
        for value in (1, 2, 12345, P - 1):
            assert field.mul(value, field.inverse(value)) == 1

    def test_inverse_of_zero(self):
        with pytest.raises(FieldArithmeticError):
            field.inverse(0)
        with pytest.raises(FieldArithmeticError):
            field.inverse(P)

    def test_div(self):
        assert field.div(10, 5) == 2
        assert field.mul(field.div(7, 3), 3) == 7

    def test_div_by_zero(self):
        with pytest.raises(FieldArithmeticError, match="division by zero"):
            field.div(1, 0)


class TestRandom:
    def test_random_element_in_range(self):
        for _ in range(20):
            value = field.random_element()
            assert 0 <= value < P

    def test_random_element_uses_given_source(self):
        class FixedSource:
            def get_random_field_element(self):
                return 7

        assert field.random_element(FixedSource()) == 7
