"""
Incremental binary Merkle tree over field elements.

Leaves are appended left to right; deleting a leaf resets its slot to the
tree's zero value without shifting other indices. Empty subtrees hash to
precomputed "zero" nodes, so the root of a sparse tree of depth 32 is cheap.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .config import NOT_FOUND
from .exceptions import NotFoundError, ValidationError
from .hashing import HashFunction, hash_fields
from .types import MerkleProof


def hash_node(left: int, right: int, hash_fn: Optional[HashFunction] = None) -> int:
    """
    Hash two child nodes.

    Note:
        Uses fixed (left, right) ordering (no sorting).
    """
    return hash_fields([left, right], hash_fn)


class IncrementalMerkleTree:
    """
    Append-only binary Merkle tree with in-place deletion.

    Args:
        depth: Number of levels below the root; capacity is 2**depth leaves
        zero_value: Value of empty leaves
        hash_fn: Domain hash; defaults to the active hash from hashing.py

    Example:
        >>> tree = IncrementalMerkleTree(20, 0)
        >>> tree.insert(42)
        >>> proof = tree.create_proof(tree.index_of(42))
        >>> assert proof.root == tree.root
    """

    def __init__(
        self,
        depth: int,
        zero_value: int = 0,
        hash_fn: Optional[HashFunction] = None,
    ) -> None:
        if not isinstance(depth, int) or depth < 1:
            raise ValidationError("tree depth must be a positive integer")
        self._depth = depth
        self._zero_value = int(zero_value)
        self._hash_fn = hash_fn

        self._zeroes: List[int] = [self._zero_value]
        for _ in range(depth):
            prev = self._zeroes[-1]
            self._zeroes.append(hash_node(prev, prev, hash_fn))

        # _nodes[0] holds the leaves, _nodes[depth] the root (once non-empty)
        self._nodes: List[List[int]] = [[] for _ in range(depth + 1)]

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def zero_value(self) -> int:
        return self._zero_value

    @property
    def capacity(self) -> int:
        return 2 ** self._depth

    @property
    def root(self) -> int:
        top = self._nodes[self._depth]
        return top[0] if top else self._zeroes[self._depth]

    @property
    def leaves(self) -> List[int]:
        """Ordered leaves, including zero-valued deleted slots."""
        return list(self._nodes[0])

    def __len__(self) -> int:
        return len(self._nodes[0])

    def index_of(self, leaf: int) -> int:
        """Index of the first occurrence of ``leaf``, or NOT_FOUND."""
        try:
            return self._nodes[0].index(int(leaf))
        except ValueError:
            return NOT_FOUND

    def insert(self, leaf: int) -> int:
        """
        Append ``leaf`` at the next free index.

        Returns:
            Index the leaf was written to

        Raises:
            ValidationError: If the tree is full
        """
        if len(self._nodes[0]) >= self.capacity:
            raise ValidationError("Merkle tree is full")
        self._nodes[0].append(int(leaf))
        index = len(self._nodes[0]) - 1
        self._update_path(index)
        return index

    def update(self, index: int, leaf: int) -> None:
        """Overwrite the leaf at ``index``."""
        self._check_index(index)
        self._nodes[0][index] = int(leaf)
        self._update_path(index)

    def delete(self, index: int) -> None:
        """Reset the leaf at ``index`` to the zero value."""
        self.update(index, self._zero_value)

    def create_proof(self, index: int) -> MerkleProof:
        """
        Build the inclusion proof for the leaf at ``index``.

        Raises:
            NotFoundError: If ``index`` is outside the populated range
        """
        self._check_index(index)
        leaf = self._nodes[0][index]
        siblings: List[int] = []
        path_indices: List[int] = []
        position = index
        for level in range(self._depth):
            is_right = position % 2
            sibling_index = position - 1 if is_right else position + 1
            siblings.append(self._node_at(level, sibling_index))
            path_indices.append(is_right)
            position //= 2
        return MerkleProof(
            root=self.root,
            leaf=leaf,
            siblings=tuple(siblings),
            path_indices=tuple(path_indices),
        )

    def verify_proof(self, proof: MerkleProof) -> bool:
        """Check ``proof`` against this tree's hash (not its current root)."""
        return proof.verify(self._hash_fn)

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or index < 0 or index >= len(self._nodes[0]):
            raise NotFoundError(f"leaf index {index!r} is not in the tree")

    def _node_at(self, level: int, index: int) -> int:
        nodes = self._nodes[level]
        if index < len(nodes):
            return nodes[index]
        return self._zeroes[level]

    def _update_path(self, index: int) -> None:
        node = self._nodes[0][index]
        position = index
        for level in range(self._depth):
            if position % 2:
                node = hash_node(self._node_at(level, position - 1), node, self._hash_fn)
            else:
                node = hash_node(node, self._node_at(level, position + 1), self._hash_fn)
            position //= 2
            parents = self._nodes[level + 1]
            if position < len(parents):
                parents[position] = node
            else:
                parents.append(node)


def build_tree(
    depth: int,
    zero_value: int,
    leaves: Sequence[int],
    hash_fn: Optional[HashFunction] = None,
) -> IncrementalMerkleTree:
    """Build an ephemeral tree from ``leaves`` in the given order."""
    tree = IncrementalMerkleTree(depth, zero_value, hash_fn)
    for leaf in leaves:
        tree.insert(int(leaf))
    return tree
