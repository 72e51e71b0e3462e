"""Shared pytest fixtures."""

import hashlib

import pytest

from rln_toolkit.protocol import hashing
from rln_toolkit.protocol.config import FIELD_MODULUS


def sha256_field_hash(inputs):
    """Deterministic stand-in for Poseidon: SHA-256 of 32-byte words, mod p."""
    data = b"".join((int(v) % FIELD_MODULUS).to_bytes(32, "big") for v in inputs)
    digest = hashlib.sha256(len(inputs).to_bytes(1, "big") + data).digest()
    return int.from_bytes(digest, "big") % FIELD_MODULUS


@pytest.fixture(autouse=True)
def _test_hash_function():
    hashing.set_hash_function(sha256_field_hash)
    yield
    hashing.set_hash_function(None)


@pytest.fixture
def field_hash():
    return sha256_field_hash
