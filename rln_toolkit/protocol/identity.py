"""
Semaphore-style identity material.

An identity is a random (trapdoor, nullifier) pair. The RLN identity secret
is Hash(nullifier, trapdoor); the public commitment registered in the
membership tree is Hash(secret).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from .config import IDENTITY_SECRET_BYTES
from .exceptions import ValidationError
from .field import to_field
from .hashing import HashFunction, hash_fields
from .security import RandomnessSource


def _random_secret_part(rng: RandomnessSource) -> int:
    while True:
        value = int.from_bytes(rng.get_random_bytes(IDENTITY_SECRET_BYTES), "big")
        if value != 0:
            return value


@dataclass(frozen=True)
class Identity:
    """
    Identity material for one RLN participant.

    Attributes:
        trapdoor: Random secret component
        nullifier: Random secret component

    Example:
        >>> identity = Identity.generate()
        >>> restored = Identity.from_string(identity.to_string())
        >>> assert restored == identity
    """

    trapdoor: int
    nullifier: int

    def __post_init__(self):
        if not isinstance(self.trapdoor, int) or not isinstance(self.nullifier, int):
            raise ValidationError("trapdoor and nullifier must be integers")
        if self.trapdoor <= 0 or self.nullifier <= 0:
            raise ValidationError("trapdoor and nullifier must be non-zero")

    @classmethod
    def generate(cls, rng: Optional[RandomnessSource] = None) -> "Identity":
        """Fresh identity from a cryptographically secure source."""
        source = rng if rng is not None else RandomnessSource()
        return cls(
            trapdoor=_random_secret_part(source),
            nullifier=_random_secret_part(source),
        )

    def secret(self, hash_fn: Optional[HashFunction] = None) -> int:
        """RLN identity secret: Hash(nullifier, trapdoor)."""
        return hash_fields([self.nullifier, self.trapdoor], hash_fn)

    def commitment(self, hash_fn: Optional[HashFunction] = None) -> int:
        """Public identity commitment: Hash(secret)."""
        return hash_fields([self.secret(hash_fn)], hash_fn)

    def to_string(self) -> str:
        """JSON ``["0x<trapdoor>", "0x<nullifier>"]``."""
        return json.dumps([hex(self.trapdoor), hex(self.nullifier)])

    @classmethod
    def from_string(cls, data: str) -> "Identity":
        """
        Parse ``to_string`` output.

        Raises:
            ValidationError: If the string is not a two-element JSON array
        """
        try:
            parts = json.loads(data)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid identity string: {exc}") from exc
        if not isinstance(parts, list) or len(parts) != 2:
            raise ValidationError("Identity string must encode [trapdoor, nullifier]")
        return cls(trapdoor=to_field(parts[0]), nullifier=to_field(parts[1]))
