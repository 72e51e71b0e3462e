"""
Hash primitives used by the registry and the RLN engine.

Two hashes are involved:

- a domain hash over one or two field elements (Poseidon) for commitments,
  nullifiers, shares and Merkle nodes;
- Keccak-256 over raw bytes, used only to map a signal into the field.

The Poseidon permutation comes from the ``poseidon-hash`` package, fed with
circomlib's round constants and MDS matrices (``poseidon_constants.json``)
so digests match the RLN circuit. It is loaded lazily, so modules that never
hash (serialization, CLI help) import without it. ``set_hash_function``
swaps the domain hash process-wide (testing or a different circuit build).
"""

from __future__ import annotations

import contextlib
import io
import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from Crypto.Hash import keccak

from .config import (
    FIELD_MODULUS,
    POSEIDON_ALPHA,
    POSEIDON_MAX_INPUTS,
    POSEIDON_SECURITY_LEVEL,
    SIGNAL_HASH_SHIFT,
)
from .exceptions import ValidationError

HashFunction = Callable[[Sequence[int]], int]

CONSTANTS_FILE = Path(__file__).with_name("poseidon_constants.json")

_hash_override: Optional[HashFunction] = None
_POSEIDON_CACHE: Dict[int, object] = {}
_CACHE_LOCK = threading.Lock()
# run_hash keeps its state on the instance
_HASH_LOCK = threading.Lock()


def _load_poseidon():
    try:
        import poseidon
    except ImportError as exc:
        raise RuntimeError(
            "poseidon-hash is required for the RLN domain hash. "
            "Install with: pip install poseidon-hash"
        ) from exc
    return poseidon


def load_constants(path: Path = CONSTANTS_FILE) -> Dict[str, Any]:
    """circomlib Poseidon parameters keyed by state width."""
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _poseidon_for_width(width: int):
    with _CACHE_LOCK:
        instance = _POSEIDON_CACHE.get(width)
        if instance is None:
            poseidon = _load_poseidon()
            params = load_constants()[str(width)]
            # The constructor reports progress on stdout
            with contextlib.redirect_stdout(io.StringIO()):
                instance = poseidon.Poseidon(
                    FIELD_MODULUS,
                    POSEIDON_SECURITY_LEVEL,
                    POSEIDON_ALPHA,
                    width - 1,
                    width,
                    full_round=params["full_rounds"],
                    partial_round=params["partial_rounds"],
                    mds_matrix=params["mds_matrix"],
                    rc_list=params["round_constants"],
                )
            _POSEIDON_CACHE[width] = instance
    return instance


def poseidon_hash(inputs: Sequence[int]) -> int:
    """
    circomlib-compatible Poseidon over BN254 field elements.

    The state is ``[0, *inputs]`` and the digest is the first state element
    after the permutation, as in circomlib's ``Poseidon(n)`` template.

    Args:
        inputs: One or two field elements

    Returns:
        Field element digest

    Raises:
        ValidationError: If ``inputs`` is empty or longer than two elements
    """
    values = [int(v) % FIELD_MODULUS for v in inputs]
    if not values:
        raise ValidationError("poseidon requires at least one input")
    if len(values) > POSEIDON_MAX_INPUTS:
        raise ValidationError(
            f"poseidon supports at most {POSEIDON_MAX_INPUTS} inputs, got {len(values)}"
        )
    instance = _poseidon_for_width(len(values) + 1)
    with _HASH_LOCK:
        instance.run_hash([0] + values)
        return int(instance.state[0])


def set_hash_function(fn: Optional[HashFunction]) -> None:
    """
    Set in-memory domain hash override (testing only).

    Args:
        fn: Hash over a sequence of field elements, or None to restore Poseidon.
    """
    global _hash_override
    _hash_override = fn


def get_hash_function() -> HashFunction:
    """Return the active domain hash."""
    if _hash_override is not None:
        return _hash_override
    return poseidon_hash


def hash_fields(inputs: Sequence[int], hash_fn: Optional[HashFunction] = None) -> int:
    """Hash field elements with ``hash_fn`` or the active domain hash."""
    fn = hash_fn if hash_fn is not None else get_hash_function()
    return fn(list(inputs))


def keccak256(data: bytes) -> bytes:
    """Keccak-256 (Ethereum variant, not NIST SHA3-256)."""
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"data must be bytes, got {type(data)}")
    digest = keccak.new(digest_bits=256)
    digest.update(bytes(data))
    return digest.digest()


def signal_hash(signal: str) -> int:
    """
    Map a signal string into the field.

    Keccak-256 over the UTF-8 bytes, shifted right by ``SIGNAL_HASH_SHIFT``
    bits. The shifted value is always below the modulus, so no modular
    reduction (and no reduction bias) is needed.
    """
    if not isinstance(signal, str):
        raise TypeError(f"signal must be str, got {type(signal)}")
    digest = keccak256(signal.encode("utf-8"))
    return int.from_bytes(digest, "big") >> SIGNAL_HASH_SHIFT
