from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Mapping, Optional

from .. import field
from ..exceptions import BackendError
from ..hashing import HashFunction, hash_fields
from ..security import constant_time_compare
from ..snark.backend import ProvingBackend, public_inputs_vector
from ..types import CircuitArtifacts, FullProof, MerkleProof, PublicSignals, Witness


class MockProvingBackend(ProvingBackend):
    """
    Backend that evaluates the RLN relation in Python instead of proving it.

    Notes:
    - Public signals are exactly what the circuit would output for the witness.
    - The "proof" is a SHA-256 digest over those signals. Anyone can forge it.
    - It does NOT provide real cryptographic security.
    """

    _BACKEND_NAME = "MockProvingBackend"
    _PROTOCOL = "mock"

    def __init__(self, hash_fn: Optional[HashFunction] = None) -> None:
        self._hash_fn = hash_fn

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def prove(self, witness: Witness, artifacts: CircuitArtifacts) -> FullProof:
        if not isinstance(witness, Witness):
            raise BackendError("witness must be Witness")

        leaf = hash_fields([witness.identity_secret], self._hash_fn)
        path = MerkleProof(
            root=0,
            leaf=leaf,
            siblings=witness.path_elements,
            path_indices=witness.identity_path_index,
        )
        merkle_root = path.compute_root(self._hash_fn)

        external = hash_fields([witness.epoch, witness.rln_identifier], self._hash_fn)
        a1 = hash_fields([witness.identity_secret, external], self._hash_fn)
        public_signals = PublicSignals(
            y_share=field.add(field.mul(a1, witness.x), witness.identity_secret),
            merkle_root=merkle_root,
            internal_nullifier=hash_fields([a1, witness.rln_identifier], self._hash_fn),
            signal_hash=field.normalize(witness.x),
            epoch=field.normalize(witness.epoch),
            rln_identifier=field.normalize(witness.rln_identifier),
        )
        return FullProof(
            proof=self._make_proof(public_signals),
            public_signals=public_signals,
        )

    def verify(
        self,
        verification_key: Mapping[str, Any],
        public_signals: PublicSignals,
        proof: Mapping[str, Any],
    ) -> bool:
        if not isinstance(public_signals, PublicSignals):
            return False
        if not isinstance(proof, Mapping):
            return False
        if proof.get("protocol") != self._PROTOCOL:
            return False
        digest = proof.get("digest")
        if not isinstance(digest, str):
            return False
        expected = self._digest(public_signals)
        return constant_time_compare(digest.encode("utf-8"), expected.encode("utf-8"))

    def _make_proof(self, public_signals: PublicSignals) -> Dict[str, Any]:
        return {"protocol": self._PROTOCOL, "digest": self._digest(public_signals)}

    @staticmethod
    def _digest(public_signals: PublicSignals) -> str:
        payload = json.dumps(public_inputs_vector(public_signals), separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
