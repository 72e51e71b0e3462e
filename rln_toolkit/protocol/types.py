"""
⚠️ DRAFT — requires crypto review before production use

Fixed-field records exchanged between the registry, the RLN engine and the
proving backend.

This module provides:
1. MerkleProof - inclusion proof for one leaf of the membership tree
2. Witness - private + public circuit inputs for one signal
3. PublicSignals - the six public outputs of the RLN circuit, in wire order
4. FullProof - opaque backend proof plus its public signals, with CBOR
   serialization
5. CircuitArtifacts - paths to the compiled circuit and proving key

The public signal ordering is a wire contract with the circuit. It is encoded
in exactly one place: PublicSignals.to_list / PublicSignals.from_list.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import cbor2

from .config import MAX_PROOF_SIZE_BYTES, PROOF_VERSION, PUBLIC_SIGNALS_COUNT
from .exceptions import ValidationError
from .hashing import HashFunction, hash_fields

# ============================================================================
# MERKLE PROOF
# ============================================================================


@dataclass(frozen=True)
class MerkleProof:
    """
    Merkle inclusion proof for a binary tree.

    Attributes:
        root: Tree root the proof was taken against
        leaf: Proven leaf value
        siblings: One sibling per level, leaf level first
        path_indices: One bit per level; 1 means the running node is the
            right child at that level

    The proof is a point-in-time snapshot; it does not follow later
    mutations of the tree it came from.
    """

    root: int
    leaf: int
    siblings: Tuple[int, ...]
    path_indices: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "siblings", tuple(int(s) for s in self.siblings))
        object.__setattr__(
            self, "path_indices", tuple(int(b) for b in self.path_indices)
        )
        if len(self.siblings) != len(self.path_indices):
            raise ValidationError("siblings and path_indices must have equal length")
        if any(bit not in (0, 1) for bit in self.path_indices):
            raise ValidationError("path_indices must contain only 0 or 1")

    @property
    def depth(self) -> int:
        return len(self.siblings)

    def compute_root(self, hash_fn: Optional[HashFunction] = None) -> int:
        """Fold ``leaf`` through ``siblings`` guided by ``path_indices``."""
        node = self.leaf
        for sibling, bit in zip(self.siblings, self.path_indices):
            if bit:
                node = hash_fields([sibling, node], hash_fn)
            else:
                node = hash_fields([node, sibling], hash_fn)
        return node

    def verify(self, hash_fn: Optional[HashFunction] = None) -> bool:
        """True if the recomputed root equals ``root``."""
        return self.compute_root(hash_fn) == self.root

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": str(self.root),
            "leaf": str(self.leaf),
            "siblings": [str(s) for s in self.siblings],
            "pathIndices": list(self.path_indices),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MerkleProof":
        try:
            return cls(
                root=int(data["root"]),
                leaf=int(data["leaf"]),
                siblings=tuple(int(s) for s in data["siblings"]),
                path_indices=tuple(int(b) for b in data["pathIndices"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid Merkle proof: {exc}") from exc


# ============================================================================
# WITNESS
# ============================================================================


@dataclass(frozen=True)
class Witness:
    """
    Inputs for one RLN proof.

    Attributes:
        identity_secret: Private identity secret (y-intercept of the share line)
        path_elements: Merkle siblings of the prover's commitment
        identity_path_index: Merkle path bits of the prover's commitment
        x: Signal hash (or the raw signal when hashing is disabled)
        epoch: Time window the signal belongs to
        rln_identifier: Application identifier
    """

    identity_secret: int
    path_elements: Tuple[int, ...]
    identity_path_index: Tuple[int, ...]
    x: int
    epoch: int
    rln_identifier: int

    def __post_init__(self):
        object.__setattr__(
            self, "path_elements", tuple(int(v) for v in self.path_elements)
        )
        object.__setattr__(
            self, "identity_path_index", tuple(int(v) for v in self.identity_path_index)
        )
        if len(self.path_elements) != len(self.identity_path_index):
            raise ValidationError(
                "path_elements and identity_path_index must have equal length"
            )

    def to_circuit_input(self) -> Dict[str, Any]:
        """
        Render the circuit input JSON.

        Key names match the RLN circom circuit signals; values are decimal
        strings as snarkjs expects.
        """
        return {
            "identity_secret": str(self.identity_secret),
            "path_elements": [str(v) for v in self.path_elements],
            "identity_path_index": [str(v) for v in self.identity_path_index],
            "x": str(self.x),
            "epoch": str(self.epoch),
            "rln_identifier": str(self.rln_identifier),
        }


# ============================================================================
# PUBLIC SIGNALS
# ============================================================================

_SIGNAL_KEYS = (
    ("y_share", "yShare"),
    ("merkle_root", "merkleRoot"),
    ("internal_nullifier", "internalNullifier"),
    ("signal_hash", "signalHash"),
    ("epoch", "epoch"),
    ("rln_identifier", "rlnIdentifier"),
)


@dataclass(frozen=True)
class PublicSignals:
    """
    Public outputs of the RLN circuit.

    Field order is the wire order: (yShare, merkleRoot, internalNullifier,
    signalHash, epoch, rlnIdentifier). Reordering is a protocol break.
    """

    y_share: int
    merkle_root: int
    internal_nullifier: int
    signal_hash: int
    epoch: int
    rln_identifier: int

    def to_list(self) -> List[int]:
        """Ordered public-input vector handed to the verifier."""
        return [getattr(self, attr) for attr, _ in _SIGNAL_KEYS]

    @classmethod
    def from_list(cls, values: Sequence[int | str]) -> "PublicSignals":
        """Build from the ordered vector emitted by the prover."""
        if len(values) != PUBLIC_SIGNALS_COUNT:
            raise ValidationError(
                f"expected {PUBLIC_SIGNALS_COUNT} public signals, got {len(values)}"
            )
        try:
            parsed = [int(v) for v in values]
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid public signal: {exc}") from exc
        return cls(*parsed)

    def to_dict(self) -> Dict[str, str]:
        return {key: str(getattr(self, attr)) for attr, key in _SIGNAL_KEYS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PublicSignals":
        missing = [key for _, key in _SIGNAL_KEYS if key not in data]
        if missing:
            raise ValidationError(f"missing public signals: {', '.join(missing)}")
        return cls.from_list([data[key] for _, key in _SIGNAL_KEYS])


# ============================================================================
# FULL PROOF
# ============================================================================


@dataclass(frozen=True)
class FullProof:
    """
    Proof artifact plus its public signals.

    ``proof`` is whatever the backend produced (for snarkjs: the
    ``pi_a``/``pi_b``/``pi_c`` JSON object) and is treated as opaque.

    Serialization:
        - Primary: CBOR with version field (serialize / deserialize)
        - Interchange: JSON-compatible dict (to_dict / from_dict)

    Example:
        >>> data = full_proof.serialize()
        >>> assert FullProof.deserialize(data) == full_proof
    """

    proof: Dict[str, Any]
    public_signals: PublicSignals

    def serialize(self) -> bytes:
        """
        Serialize to compact CBOR bytes.

        Raises:
            ValidationError: If the proof cannot be encoded or is too large
        """
        try:
            data = cbor2.dumps(
                {
                    "v": PROOF_VERSION,
                    "proof": self.proof,
                    "signals": self.public_signals.to_list(),
                }
            )
        except Exception as e:
            raise ValidationError(f"Failed to serialize proof: {e}") from e
        if len(data) > MAX_PROOF_SIZE_BYTES:
            raise ValidationError("serialized proof too large")
        return data

    @classmethod
    def deserialize(cls, data: bytes) -> "FullProof":
        """
        Deserialize from CBOR bytes.

        Raises:
            ValidationError: If the payload is malformed, too large, or has an
                unsupported version
        """
        if not isinstance(data, (bytes, bytearray)):
            raise ValidationError("proof data must be bytes")
        if len(data) > MAX_PROOF_SIZE_BYTES:
            raise ValidationError("serialized proof too large")
        try:
            obj = cbor2.loads(bytes(data))
        except Exception as e:
            raise ValidationError(f"Failed to deserialize proof: {e}") from e

        if not isinstance(obj, dict):
            raise ValidationError("Invalid proof format: missing required fields")

        version = obj.get("v")
        if version != PROOF_VERSION:
            raise ValidationError(
                f"Unsupported proof version: {version} (expected {PROOF_VERSION})"
            )
        if "proof" not in obj or "signals" not in obj:
            raise ValidationError("Invalid proof format: missing required fields")
        if not isinstance(obj["proof"], dict):
            raise ValidationError("Invalid proof format: proof must be a map")

        return cls(
            proof=obj["proof"],
            public_signals=PublicSignals.from_list(obj["signals"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible form, public signals as decimal strings."""
        return {
            "proof": self.proof,
            "publicSignals": self.public_signals.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FullProof":
        if not isinstance(data, Mapping):
            raise ValidationError("full proof must be a mapping")
        if "proof" not in data or "publicSignals" not in data:
            raise ValidationError("full proof requires 'proof' and 'publicSignals'")
        signals = data["publicSignals"]
        if isinstance(signals, Mapping):
            public_signals = PublicSignals.from_dict(signals)
        else:
            public_signals = PublicSignals.from_list(signals)
        return cls(proof=dict(data["proof"]), public_signals=public_signals)


# ============================================================================
# CIRCUIT ARTIFACTS
# ============================================================================


@dataclass(frozen=True)
class CircuitArtifacts:
    """Compiled circuit (wasm) and Groth16 proving key (zkey)."""

    wasm_path: Path
    zkey_path: Path

    def __post_init__(self):
        object.__setattr__(self, "wasm_path", Path(self.wasm_path))
        object.__setattr__(self, "zkey_path", Path(self.zkey_path))
