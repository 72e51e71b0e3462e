"""Tests for the domain hash and the Keccak signal hash."""

import pytest

from rln_toolkit.protocol import hashing
from rln_toolkit.protocol.config import FIELD_MODULUS


class TestKeccak:
    def test_empty_input_vector(self):
        assert hashing.keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_hello_vector(self):
        assert hashing.keccak256(b"hello").hex() == (
            "1c8aff950685c2ed4bc3174f3472287b56d9517b9c948127319a09a7a36deac8"
        )

    def test_is_not_sha3(self):
        import hashlib

        assert hashing.keccak256(b"") != hashlib.sha3_256(b"").digest()

    def test_rejects_str(self):
        with pytest.raises(TypeError):
            hashing.keccak256("hello")


class TestSignalHash:
    def test_shifted_keccak(self):
        expected = int(
            "1c8aff950685c2ed4bc3174f3472287b56d9517b9c948127319a09a7a36deac8", 16
        ) >> 8
        assert hashing.signal_hash("hello") == expected

    def test_below_modulus(self):
        for signal in ("", "a", "hello world", "ünïcödé"):
            assert 0 <= hashing.signal_hash(signal) < FIELD_MODULUS

    def test_utf8_encoding(self):
        assert hashing.signal_hash("é") == (
            int.from_bytes(hashing.keccak256("é".encode("utf-8")), "big") >> 8
        )

    def test_rejects_bytes(self):
        with pytest.raises(TypeError):
            hashing.signal_hash(b"hello")


class TestHashOverride:
    def test_override_is_used(self):
        hashing.set_hash_function(lambda inputs: sum(inputs) % FIELD_MODULUS)
        assert hashing.hash_fields([1, 2, 3]) == 6

    def test_explicit_hash_wins(self, field_hash):
        hashing.set_hash_function(lambda inputs: 0)
        assert hashing.hash_fields([1, 2], field_hash) == field_hash([1, 2])

    def test_reset_restores_poseidon(self):
        hashing.set_hash_function(None)
        assert hashing.get_hash_function() is hashing.poseidon_hash

    def test_poseidon_rejects_empty_input(self):
        with pytest.raises(hashing.ValidationError):
            hashing.poseidon_hash([])


class TestPoseidonParameters:
    def test_constants_cover_both_widths(self):
        constants = hashing.load_constants()
        for width, partial_rounds in (("2", 56), ("3", 57)):
            params = constants[width]
            assert params["full_rounds"] == 8
            assert params["partial_rounds"] == partial_rounds
            assert len(params["round_constants"]) == int(width) * (8 + partial_rounds)
            assert len(params["mds_matrix"]) == int(width)
            assert all(len(row) == int(width) for row in params["mds_matrix"])

    def test_constants_are_field_elements(self):
        for params in hashing.load_constants().values():
            for value in params["round_constants"]:
                assert 0 <= int(value, 16) < FIELD_MODULUS

    def test_rejects_three_inputs(self):
        with pytest.raises(hashing.ValidationError):
            hashing.poseidon_hash([1, 2, 3])


class TestPoseidon:
    """circomlib reference vectors; runs the real permutation, not the test hash."""

    @pytest.fixture(autouse=True)
    def _require_poseidon(self):
        pytest.importorskip("poseidon")
        hashing.set_hash_function(None)

    def test_two_inputs_match_circomlib(self):
        assert hashing.poseidon_hash([1, 2]) == (
            7853200120776062878684798364095072458815029376092732009249414926327459813530
        )

    def test_one_input_matches_circomlib(self):
        assert hashing.poseidon_hash([1]) == (
            18586133768512220936620570745912940619677854269274689475585506675881198879027
        )

    def test_default_domain_hash_is_poseidon(self):
        assert hashing.hash_fields([1, 2]) == (
            7853200120776062878684798364095072458815029376092732009249414926327459813530
        )

    def test_order_matters(self):
        assert hashing.poseidon_hash([1, 2]) != hashing.poseidon_hash([2, 1])
