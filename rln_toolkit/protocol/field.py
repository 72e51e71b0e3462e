"""
Scalar-field arithmetic for RLN.

Every identifier, hash output and share is an integer modulo
``FIELD_MODULUS``. Inputs may be negative or unreduced; outputs are always
normalized into ``[0, FIELD_MODULUS)``.
"""

from __future__ import annotations

from typing import Optional

from .config import FIELD_MODULUS
from .exceptions import FieldArithmeticError, ValidationError
from .security import RandomnessSource

_DEFAULT_RNG = RandomnessSource()


def normalize(value: int) -> int:
    """Reduce ``value`` into ``[0, FIELD_MODULUS)``."""
    return value % FIELD_MODULUS


def to_field(value: int | str) -> int:
    """
    Parse an int or a decimal/hex string into a normalized field element.

    Strings are decimal unless prefixed with ``0x``, so ``"007"`` is 7.

    Raises:
        ValidationError: If ``value`` is not an int or parseable string.
    """
    if isinstance(value, bool):
        raise ValidationError("field element cannot be a bool")
    if isinstance(value, int):
        return normalize(value)
    if isinstance(value, str):
        text = value.strip()
        digits = text.lstrip("+-")
        base = 16 if digits[:2].lower() == "0x" else 10
        try:
            return normalize(int(text, base))
        except ValueError as exc:
            raise ValidationError(f"invalid field element: {value!r}") from exc
    raise ValidationError(f"field element must be int or str, got {type(value)}")


def add(a: int, b: int) -> int:
    return normalize(a + b)


def sub(a: int, b: int) -> int:
    return normalize(a - b)


def mul(a: int, b: int) -> int:
    return normalize(a * b)


def inverse(value: int) -> int:
    """
    Multiplicative inverse via Fermat's little theorem.

    Raises:
        FieldArithmeticError: If ``value`` is zero in the field.
    """
    n = normalize(value)
    if n == 0:
        raise FieldArithmeticError("inverse does not exist for 0 in field")
    return pow(n, FIELD_MODULUS - 2, FIELD_MODULUS)


def div(a: int, b: int) -> int:
    """
    Field division ``a / b``.

    Raises:
        FieldArithmeticError: If ``b`` is zero in the field.
    """
    try:
        return mul(a, inverse(b))
    except FieldArithmeticError as exc:
        raise FieldArithmeticError("division by zero in field") from exc


def random_element(rng: Optional[RandomnessSource] = None) -> int:
    """Uniformly random field element."""
    source = rng if rng is not None else _DEFAULT_RNG
    return source.get_random_field_element()
