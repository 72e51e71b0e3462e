"""
Membership registry with slashing.

Two Merkle trees of the same depth and zero value are kept side by side:
the active registry that RLN proofs are generated against, and the slashed
registry of banned commitments. A commitment appears at most once across
both trees, and the zero value in neither.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from .config import (
    DEFAULT_TREE_DEPTH,
    DEFAULT_ZERO_VALUE,
    MAX_TREE_DEPTH,
    MIN_TREE_DEPTH,
    NOT_FOUND,
)
from .exceptions import ConflictError, NotFoundError, ValidationError
from .hashing import HashFunction
from .merkle import IncrementalMerkleTree, build_tree
from .types import MerkleProof

logger = logging.getLogger(__name__)


def _validate_depth(tree_depth: int) -> int:
    if not isinstance(tree_depth, int) or isinstance(tree_depth, bool):
        raise ValidationError("The tree depth must be an integer")
    if tree_depth < MIN_TREE_DEPTH or tree_depth > MAX_TREE_DEPTH:
        raise ValidationError(
            f"The tree depth must be between {MIN_TREE_DEPTH} and {MAX_TREE_DEPTH}"
        )
    return tree_depth


def generate_merkle_proof(
    depth: int,
    zero_value: int,
    leaves: Sequence[int | str],
    leaf: int | str,
    *,
    hash_fn: Optional[HashFunction] = None,
) -> MerkleProof:
    """
    Build a Merkle proof for ``leaf`` from a snapshot of leaves.

    An ephemeral tree is built from ``leaves`` in the given order, so the
    function is pure and safe to call on a copied snapshot while the live
    registry keeps changing.

    Args:
        depth: Tree depth
        zero_value: Tree zero value
        leaves: Ordered leaves (decimal strings accepted)
        leaf: Leaf to prove

    Returns:
        MerkleProof with one flat sibling per level

    Raises:
        ValidationError: If ``leaf`` equals ``zero_value``
        NotFoundError: If ``leaf`` is not in ``leaves``
    """
    zero = int(zero_value)
    target = int(leaf)
    if target == zero:
        raise ValidationError("Can't generate a proof for a zero leaf")

    tree = build_tree(depth, zero, [int(v) for v in leaves], hash_fn)
    index = tree.index_of(target)
    if index == NOT_FOUND:
        raise NotFoundError("The leaf does not exist")
    return tree.create_proof(index)


class Registry:
    """
    Active and slashed membership sets backed by Merkle trees.

    Args:
        tree_depth: Depth of both trees, in [16, 32]
        zero_value: Value of empty slots; never a valid member
        hash_fn: Domain hash override for both trees

    Example:
        >>> registry = Registry(20)
        >>> registry.add_member(commitment)
        >>> proof = registry.generate_merkle_proof(commitment)
        >>> registry.slash_member(commitment)
    """

    def __init__(
        self,
        tree_depth: int = DEFAULT_TREE_DEPTH,
        zero_value: Optional[int] = None,
        *,
        hash_fn: Optional[HashFunction] = None,
    ) -> None:
        self._tree_depth = _validate_depth(tree_depth)
        self._zero_value = DEFAULT_ZERO_VALUE if zero_value is None else int(zero_value)
        self._hash_fn = hash_fn
        self._registry = IncrementalMerkleTree(self._tree_depth, self._zero_value, hash_fn)
        self._slashed = IncrementalMerkleTree(self._tree_depth, self._zero_value, hash_fn)

    @property
    def tree_depth(self) -> int:
        return self._tree_depth

    @property
    def zero_value(self) -> int:
        return self._zero_value

    @property
    def hash_fn(self) -> Optional[HashFunction]:
        return self._hash_fn

    @property
    def root(self) -> int:
        """Root of the active registry tree."""
        return self._registry.root

    @property
    def slashed_root(self) -> int:
        """Root of the slashed registry tree."""
        return self._slashed.root

    @property
    def members(self) -> List[int]:
        """Active leaves in index order, including zero-valued removed slots."""
        return self._registry.leaves

    @property
    def slashed_members(self) -> List[int]:
        return self._slashed.leaves

    def index_of(self, member: int) -> int:
        """Active-set index of ``member``, or NOT_FOUND (-1)."""
        member = int(member)
        if member == self._zero_value:
            return NOT_FOUND
        return self._registry.index_of(member)

    def slashed_index_of(self, member: int) -> int:
        member = int(member)
        if member == self._zero_value:
            return NOT_FOUND
        return self._slashed.index_of(member)

    def is_member(self, member: int) -> bool:
        return self.index_of(member) != NOT_FOUND

    def is_slashed(self, member: int) -> bool:
        return self.slashed_index_of(member) != NOT_FOUND

    # ------------------------------------------------------------------
    # Active set
    # ------------------------------------------------------------------

    def _check_addable(self, commitment: int) -> None:
        if self.is_slashed(commitment):
            raise ConflictError("Can't add slashed member.")
        if commitment == self._zero_value:
            raise ValidationError("Can't add zero value as member.")
        if self.is_member(commitment):
            raise ConflictError("Member already in registry.")

    def add_member(self, identity_commitment: int) -> int:
        """
        Append a commitment to the active registry.

        Returns:
            Index of the new member

        Raises:
            ConflictError: If the commitment is slashed or already active
            ValidationError: If the commitment is the zero value or the tree is full
        """
        commitment = int(identity_commitment)
        self._check_addable(commitment)
        index = self._registry.insert(commitment)
        logger.debug("Added member at index %d", index)
        return index

    def add_members(self, identity_commitments: Iterable[int]) -> List[int]:
        """
        Append several commitments, all or nothing.

        Every commitment is validated before the first insert, so a
        rejected element leaves the registry untouched.
        """
        commitments = [int(c) for c in identity_commitments]
        seen = set()
        for commitment in commitments:
            self._check_addable(commitment)
            if commitment in seen:
                raise ConflictError("Member already in registry.")
            seen.add(commitment)
        if len(self._registry) + len(commitments) > self._registry.capacity:
            raise ValidationError("Not enough free slots in the registry")
        return [self._registry.insert(c) for c in commitments]

    def remove_member(self, identity_commitment: int) -> int:
        """
        Reset a member's slot to the zero value.

        Returns:
            Index that was cleared

        Raises:
            NotFoundError: If the commitment is not an active member
        """
        commitment = int(identity_commitment)
        index = self.index_of(commitment)
        if index == NOT_FOUND:
            raise NotFoundError("Member is not in the registry.")
        self._registry.delete(index)
        logger.debug("Removed member at index %d", index)
        return index

    def slash_member(self, identity_commitment: int) -> int:
        """
        Move an active member to the slashed registry.

        Returns:
            Index of the commitment in the slashed registry

        Raises:
            NotFoundError: If the commitment is not an active member
        """
        commitment = int(identity_commitment)
        index = self.index_of(commitment)
        if index == NOT_FOUND:
            raise NotFoundError("Member is not in the registry.")
        if len(self._slashed) >= self._slashed.capacity:
            raise ValidationError("Slashed registry is full")
        self._registry.delete(index)
        slashed_index = self._slashed.insert(commitment)
        logger.debug("Slashed member at index %d", index)
        return slashed_index

    # ------------------------------------------------------------------
    # Slashed set
    # ------------------------------------------------------------------

    def _check_slashable(self, commitment: int) -> None:
        if self.is_slashed(commitment):
            raise ConflictError("Member already in slashed registry.")
        if commitment == self._zero_value:
            raise ValidationError("Can't add zero value as member.")
        if self.is_member(commitment):
            raise ConflictError("Member is in the active registry; slash it instead.")

    def add_slashed_member(self, identity_commitment: int) -> int:
        """
        Register a commitment as slashed without prior membership.

        Raises:
            ConflictError: If already slashed or currently active
            ValidationError: If the commitment is the zero value
        """
        commitment = int(identity_commitment)
        self._check_slashable(commitment)
        return self._slashed.insert(commitment)

    def add_slashed_members(self, identity_commitments: Iterable[int]) -> List[int]:
        """Register several slashed commitments, all or nothing."""
        commitments = [int(c) for c in identity_commitments]
        seen = set()
        for commitment in commitments:
            self._check_slashable(commitment)
            if commitment in seen:
                raise ConflictError("Member already in slashed registry.")
            seen.add(commitment)
        if len(self._slashed) + len(commitments) > self._slashed.capacity:
            raise ValidationError("Not enough free slots in the slashed registry")
        return [self._slashed.insert(c) for c in commitments]

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    def generate_merkle_proof(self, identity_commitment: int) -> MerkleProof:
        """Merkle proof for an active member against the current root."""
        return generate_merkle_proof(
            self._tree_depth,
            self._zero_value,
            self.members,
            identity_commitment,
            hash_fn=self._hash_fn,
        )

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """
        Export shape with decimal-string leaves.

        Zero-valued slots left by removals are kept so that import
        reproduces the same indices and roots.
        """
        return {
            "treeDepth": self._tree_depth,
            "zeroValue": str(self._zero_value),
            "registry": [str(x) for x in self._registry.leaves],
            "slashed": [str(x) for x in self._slashed.leaves],
        }

    def export(self) -> str:
        logger.debug("Exporting registry (%d active slots)", len(self._registry))
        return json.dumps(self.to_dict())

    @classmethod
    def from_export(
        cls,
        data: Union[str, bytes, Mapping[str, Any]],
        *,
        hash_fn: Optional[HashFunction] = None,
    ) -> "Registry":
        """
        Rebuild a registry from ``export()`` output.

        Members are replayed in list order through the same validation as
        ``add_member``/``add_slashed_member``; zero entries are restored as
        empty slots.

        Raises:
            ValidationError: If the payload is malformed
            ConflictError: If the payload repeats a commitment
        """
        if isinstance(data, (str, bytes)):
            try:
                obj = json.loads(data)
            except ValueError as exc:
                raise ValidationError(f"Invalid registry export: {exc}") from exc
        else:
            obj = data
        if not isinstance(obj, Mapping):
            raise ValidationError("Invalid registry export: expected an object")

        try:
            tree_depth = obj["treeDepth"]
            zero_value = int(obj["zeroValue"])
            registry_leaves = [int(x) for x in obj["registry"]]
            slashed_leaves = [int(x) for x in obj["slashed"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid registry export: {exc}") from exc

        logger.debug(
            "Importing registry (%d active slots, %d slashed)",
            len(registry_leaves),
            len(slashed_leaves),
        )
        registry = cls(tree_depth, zero_value, hash_fn=hash_fn)
        for leaf in registry_leaves:
            if leaf == zero_value:
                registry._registry.insert(zero_value)
            else:
                registry.add_member(leaf)
        for leaf in slashed_leaves:
            if leaf == zero_value:
                registry._slashed.insert(zero_value)
            else:
                registry.add_slashed_member(leaf)
        return registry


class LockedRegistry:
    """
    Exclusive-access wrapper around a single Registry.

    Every call takes the same re-entrant lock, so read-modify-write
    sequences inside one mutation cannot interleave. Use ``exclusive()``
    when several calls must observe a consistent state together.

    Example:
        >>> shared = LockedRegistry(Registry(20))
        >>> shared.add_member(commitment)
        >>> with shared.exclusive() as registry:
        ...     if not registry.is_slashed(commitment):
        ...         registry.slash_member(commitment)
    """

    def __init__(self, registry: Optional[Registry] = None) -> None:
        self._registry = registry if registry is not None else Registry()
        self._lock = threading.RLock()

    @contextmanager
    def exclusive(self) -> Iterator[Registry]:
        with self._lock:
            yield self._registry

    def snapshot(self) -> Dict[str, Any]:
        """Consistent copy of the registry state (export shape)."""
        with self._lock:
            return self._registry.to_dict()

    def generate_merkle_proof(self, identity_commitment: int) -> MerkleProof:
        with self._lock:
            depth = self._registry.tree_depth
            zero_value = self._registry.zero_value
            leaves = self._registry.members
            hash_fn = self._registry.hash_fn
        # Built outside the lock from the copied leaves
        return generate_merkle_proof(
            depth, zero_value, leaves, identity_commitment, hash_fn=hash_fn
        )

    @property
    def root(self) -> int:
        with self._lock:
            return self._registry.root

    @property
    def slashed_root(self) -> int:
        with self._lock:
            return self._registry.slashed_root

    @property
    def members(self) -> List[int]:
        with self._lock:
            return self._registry.members

    @property
    def slashed_members(self) -> List[int]:
        with self._lock:
            return self._registry.slashed_members

    def index_of(self, member: int) -> int:
        with self._lock:
            return self._registry.index_of(member)

    def slashed_index_of(self, member: int) -> int:
        with self._lock:
            return self._registry.slashed_index_of(member)

    def is_member(self, member: int) -> bool:
        with self._lock:
            return self._registry.is_member(member)

    def is_slashed(self, member: int) -> bool:
        with self._lock:
            return self._registry.is_slashed(member)

    def add_member(self, identity_commitment: int) -> int:
        with self._lock:
            return self._registry.add_member(identity_commitment)

    def add_members(self, identity_commitments: Iterable[int]) -> List[int]:
        with self._lock:
            return self._registry.add_members(identity_commitments)

    def remove_member(self, identity_commitment: int) -> int:
        with self._lock:
            return self._registry.remove_member(identity_commitment)

    def slash_member(self, identity_commitment: int) -> int:
        with self._lock:
            return self._registry.slash_member(identity_commitment)

    def add_slashed_member(self, identity_commitment: int) -> int:
        with self._lock:
            return self._registry.add_slashed_member(identity_commitment)

    def add_slashed_members(self, identity_commitments: Iterable[int]) -> List[int]:
        with self._lock:
            return self._registry.add_slashed_members(identity_commitments)

    def export(self) -> str:
        with self._lock:
            return self._registry.export()
