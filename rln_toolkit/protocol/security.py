"""
⚠️ DRAFT — requires crypto review before production use

Security utilities for RLN field operations.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.
"""

import hmac
import os
import secrets

from py_ecc.bn128 import curve_order as _BN128_CURVE_ORDER

from .config import CURVE_NAME, FIELD_MODULUS


# ============================================================================
# FIELD MODULUS VALIDATION (Run at module import)
# ============================================================================


def _validate_field_modulus():
    """
    Validate FIELD_MODULUS is reasonable.

    Cross-checks the configured modulus against the BN254 group order
    published by py_ecc, so a typo in config.py fails fast instead of
    producing shares the circuit cannot reproduce.

    Raises:
        ValueError: If FIELD_MODULUS is invalid
    """
    if FIELD_MODULUS <= 0:
        raise ValueError(f"Invalid FIELD_MODULUS: {FIELD_MODULUS}")

    if FIELD_MODULUS < 2**128:
        raise ValueError(f"FIELD_MODULUS too small (< 2^128): {FIELD_MODULUS}")

    if CURVE_NAME == "bn254" and FIELD_MODULUS != int(_BN128_CURVE_ORDER):
        raise ValueError(
            f"FIELD_MODULUS mismatch for bn254: "
            f"expected {_BN128_CURVE_ORDER}, got {FIELD_MODULUS}"
        )


# Validate FIELD_MODULUS on module import (fail fast)
_validate_field_modulus()


# ============================================================================
# RANDOMNESS SOURCE (Fork-Safe)
# ============================================================================


class RandomnessSource:
    """
    Cryptographically secure randomness with fork detection.

    Prevents catastrophic randomness reuse if process forks. Instances are
    passed into the RLN engine and identity provider so tests can swap in a
    seeded source.

    Example:
        >>> rng = RandomnessSource()
        >>> identifier = rng.get_random_field_element()
    """

    def __init__(self):
        """Initialize randomness source with fork detection."""
        self._pid = os.getpid()
        self._rng = secrets.SystemRandom()

    def _check_fork(self) -> None:
        if os.getpid() != self._pid:
            self.__init__()

    def get_random_scalar(self, max_value: int) -> int:
        """
        Get random scalar in [0, max_value).

        Args:
            max_value: Upper bound (exclusive)

        Returns:
            Random scalar in [0, max_value)
        """
        self._check_fork()
        return self._rng.randrange(0, max_value)

    def get_random_bytes(self, n: int) -> bytes:
        """
        Get n cryptographically secure random bytes.

        Args:
            n: Number of bytes to generate

        Returns:
            n random bytes
        """
        self._check_fork()
        return secrets.token_bytes(n)

    def get_random_field_element(self) -> int:
        """
        Get a uniformly random element of the scalar field.

        Returns:
            Random scalar in [0, FIELD_MODULUS)
        """
        return self.get_random_scalar(FIELD_MODULUS)


# ============================================================================
# CONSTANT-TIME OPERATIONS
# ============================================================================


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """
    Constant-time comparison to prevent timing attacks.

    Args:
        a: First byte string
        b: Second byte string

    Returns:
        True if a == b, False otherwise
    """
    return hmac.compare_digest(a, b)
