"""Tests for the incremental Merkle tree."""

import pytest

from rln_toolkit.protocol.config import NOT_FOUND
from rln_toolkit.protocol.exceptions import NotFoundError, ValidationError
from rln_toolkit.protocol.merkle import IncrementalMerkleTree, build_tree, hash_node


class TestMerkleHashing:
    """Test node hashing"""

    def test_hash_node_order_matters(self, field_hash):
        """Node hash depends on left/right order"""
        assert hash_node(1, 2, field_hash) != hash_node(2, 1, field_hash)

    def test_hash_node_uses_active_hash(self, field_hash):
        """Default hash is the active domain hash"""
        assert hash_node(1, 2) == field_hash([1, 2])


class TestMerkleTreeBuild:
    """Test tree construction and roots"""

    def test_empty_root_is_zero_chain(self, field_hash):
        """Empty tree root is the zero value hashed up depth times"""
        tree = IncrementalMerkleTree(3, 0)
        expected = 0
        for _ in range(3):
            expected = field_hash([expected, expected])
        assert tree.root == expected

    def test_two_leaf_root(self, field_hash):
        """Two leaves in a depth-1 tree hash directly to the root"""
        tree = build_tree(1, 0, [5, 6])
        assert tree.root == field_hash([5, 6])

    def test_root_changes_on_insert(self):
        tree = IncrementalMerkleTree(4)
        before = tree.root
        tree.insert(7)
        assert tree.root != before

    def test_insert_returns_index(self):
        tree = IncrementalMerkleTree(4)
        assert tree.insert(10) == 0
        assert tree.insert(11) == 1
        assert tree.index_of(11) == 1
        assert tree.index_of(12) == NOT_FOUND

    def test_full_tree_rejects_insert(self):
        tree = build_tree(2, 0, [1, 2, 3, 4])
        assert len(tree) == tree.capacity
        with pytest.raises(ValidationError):
            tree.insert(5)

    def test_invalid_depth(self):
        with pytest.raises(ValidationError):
            IncrementalMerkleTree(0)


class TestMerkleDelete:
    """Test deletion keeps indices stable"""

    def test_delete_resets_slot(self):
        tree = build_tree(4, 0, [1, 2, 3])
        tree.delete(1)
        assert tree.leaves == [1, 0, 3]
        assert tree.index_of(3) == 2

    def test_delete_matches_tree_built_with_placeholder(self):
        tree = build_tree(4, 0, [1, 2, 3])
        tree.delete(1)
        assert tree.root == build_tree(4, 0, [1, 0, 3]).root

    def test_deleted_slot_hashes_like_empty(self):
        """Deleted slots count toward length but hash like empty leaves"""
        tree = build_tree(4, 0, [1])
        tree.delete(0)
        assert len(tree) == 1
        assert tree.root == IncrementalMerkleTree(4, 0).root

    def test_delete_out_of_range(self):
        tree = build_tree(4, 0, [1])
        with pytest.raises(NotFoundError):
            tree.delete(3)


class TestMerkleProofs:
    """Test inclusion proofs"""

    @pytest.mark.parametrize("index", [0, 1, 2, 4])
    def test_proof_verifies(self, index):
        tree = build_tree(4, 0, [11, 12, 13, 14, 15])
        proof = tree.create_proof(index)
        assert proof.leaf == tree.leaves[index]
        assert proof.root == tree.root
        assert proof.depth == 4
        assert tree.verify_proof(proof)

    def test_path_indices_are_index_bits(self):
        tree = build_tree(4, 0, list(range(1, 7)))
        proof = tree.create_proof(5)
        assert proof.path_indices == (1, 0, 1, 0)

    def test_tampered_proof_fails(self):
        tree = build_tree(4, 0, [11, 12, 13])
        proof = tree.create_proof(1)
        forged = type(proof)(
            root=proof.root,
            leaf=99,
            siblings=proof.siblings,
            path_indices=proof.path_indices,
        )
        assert not tree.verify_proof(forged)

    def test_proof_is_snapshot(self):
        tree = build_tree(4, 0, [11, 12])
        proof = tree.create_proof(0)
        tree.insert(13)
        assert proof.verify()
        assert proof.root != tree.root

    def test_proof_for_missing_index(self):
        tree = build_tree(4, 0, [11])
        with pytest.raises(NotFoundError):
            tree.create_proof(1)
        with pytest.raises(NotFoundError):
            tree.create_proof(-1)
