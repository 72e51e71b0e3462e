"""Tests for identity material."""

import json

import pytest

from rln_toolkit.protocol.config import IDENTITY_SECRET_BYTES
from rln_toolkit.protocol.exceptions import ValidationError
from rln_toolkit.protocol.identity import Identity


class FixedBytes:
    """Randomness source returning a preset sequence of byte strings."""

    def __init__(self, *chunks):
        self._chunks = list(chunks)

    def get_random_bytes(self, n):
        chunk = self._chunks.pop(0)
        assert len(chunk) == n
        return chunk


class TestGeneration:
    def test_generated_parts_fit(self):
        identity = Identity.generate()
        assert 0 < identity.trapdoor < 2 ** (IDENTITY_SECRET_BYTES * 8)
        assert 0 < identity.nullifier < 2 ** (IDENTITY_SECRET_BYTES * 8)

    def test_generated_identities_differ(self):
        assert Identity.generate() != Identity.generate()

    def test_zero_draw_is_resampled(self):
        zero = b"\x00" * IDENTITY_SECRET_BYTES
        one = b"\x00" * (IDENTITY_SECRET_BYTES - 1) + b"\x01"
        two = b"\x00" * (IDENTITY_SECRET_BYTES - 1) + b"\x02"
        identity = Identity.generate(FixedBytes(zero, one, two))
        assert identity == Identity(trapdoor=1, nullifier=2)


class TestDerivation:
    def test_secret_is_hash_of_nullifier_then_trapdoor(self, field_hash):
        identity = Identity(trapdoor=3, nullifier=4)
        assert identity.secret() == field_hash([4, 3])

    def test_commitment_is_hash_of_secret(self, field_hash):
        identity = Identity(trapdoor=3, nullifier=4)
        assert identity.commitment() == field_hash([identity.secret()])

    def test_explicit_hash(self):
        identity = Identity(trapdoor=3, nullifier=4)
        assert identity.secret(lambda inputs: 42) == 42


class TestSerialization:
    def test_round_trip(self):
        identity = Identity.generate()
        assert Identity.from_string(identity.to_string()) == identity

    def test_string_format(self):
        assert json.loads(Identity(trapdoor=255, nullifier=16).to_string()) == ["0xff", "0x10"]

    @pytest.mark.parametrize("data", ["", "{}", '["0x1"]', '["0x1", "zz"]', '["0x0", "0x1"]'])
    def test_invalid_strings(self, data):
        with pytest.raises(ValidationError):
            Identity.from_string(data)

    def test_rejects_non_integer_parts(self):
        with pytest.raises(ValidationError):
            Identity(trapdoor="1", nullifier=2)
