"""
Tests for the minimum-depth binary tree.
"""
import pytest

from offset_tree.errors import ConfigurationError, ContractViolation, ResourceExhausted
from offset_tree.topology import MinDepthBinaryTree, TreeNode


def build(leaves, bandwidth=0):
    tree = MinDepthBinaryTree()
    tree.build_tree(leaves, bandwidth)
    return tree


class TestBuildTree:
    """Test tree construction."""

    @pytest.mark.parametrize("leaves", [1, 2, 3, 4, 5, 7, 8, 13, 16, 33])
    def test_node_counts_and_actions(self, leaves):
        """Every leaf maps to a distinct action in [1, leaves]."""
        tree = build(leaves)

        assert len(tree.nodes) == 2 * leaves - 1
        assert tree.internal_node_count() == leaves - 1
        assert tree.leaf_node_count() == leaves

        leaf_nodes = [n for n in tree.nodes if n.is_leaf]
        assert [n.id for n in leaf_nodes] == list(range(leaves - 1, 2 * leaves - 1))
        actions = sorted(tree.leaf_action(n) for n in leaf_nodes)
        assert actions == list(range(1, leaves + 1))

    def test_heap_layout(self):
        """Children of node i are 2i+1 and 2i+2; root is its own parent."""
        tree = build(8)

        assert tree.nodes[0].parent_id == 0
        for node in tree.nodes:
            assert node.id == tree.nodes.index(node)
            if not node.is_leaf:
                assert node.left_id == 2 * node.id + 1
                assert node.right_id == 2 * node.id + 2
                assert tree.nodes[node.left_id].parent_id == node.id
                assert tree.nodes[node.right_id].parent_id == node.id

    def test_depths(self):
        """Depth is nondecreasing in id and matches the level count."""
        assert build(1).depth() == 0
        assert build(2).depth() == 1
        assert build(4).depth() == 2
        assert build(5).depth() == 3
        assert build(8).depth() == 3

        tree = build(5)
        depths = [n.depth for n in tree.nodes]
        assert depths == sorted(depths)
        assert depths == [0, 1, 1, 2, 2, 2, 2, 3, 3]

    def test_single_leaf(self):
        """One leaf is just the root."""
        tree = build(1)

        assert len(tree.nodes) == 1
        assert tree.nodes[0].is_leaf
        assert tree.leaf_action(tree.nodes[0]) == 1

    def test_zero_leaves(self):
        """Zero leaves builds an empty, initialized tree."""
        tree = build(0)

        assert tree.initialized
        assert tree.nodes == []
        assert tree.internal_node_count() == 0
        assert tree.leaf_node_count() == 0
        assert tree.depth() == 0

    def test_rebuild_same_count_is_noop(self):
        """Rebuilding with the same leaf count keeps the existing nodes."""
        tree = build(4)
        nodes = tree.nodes
        tree.nodes[1].learn_count = 3

        tree.build_tree(4)

        assert tree.nodes is nodes
        assert tree.nodes[1].learn_count == 3

    def test_rebuild_different_count_fails(self):
        """Rebuilding with another leaf count raises and leaves the tree alone."""
        tree = build(4)
        before = list(tree.nodes)

        with pytest.raises(ConfigurationError) as exc:
            tree.build_tree(8)

        assert exc.value.current == 4
        assert exc.value.requested == 8
        assert "8" in str(exc.value) and "4" in str(exc.value)
        assert tree.nodes == before
        assert tree.leaf_node_count() == 4

    def test_rebuild_after_zero_fails(self):
        tree = build(0)

        with pytest.raises(ConfigurationError):
            tree.build_tree(2)

    def test_negative_counts_rejected(self):
        with pytest.raises(ConfigurationError):
            build(-1)
        with pytest.raises(ConfigurationError):
            build(4, bandwidth=-2)

    def test_allocation_failure(self, monkeypatch):
        """MemoryError surfaces as ResourceExhausted with no partial tree."""
        def fail(num_nodes, bandwidth):
            raise MemoryError()

        monkeypatch.setattr(MinDepthBinaryTree, "_allocate", staticmethod(fail))
        tree = MinDepthBinaryTree()

        with pytest.raises(ResourceExhausted) as exc:
            tree.build_tree(1 << 20)

        assert exc.value.leaf_count == 1 << 20
        assert not tree.initialized
        assert tree.nodes == []


class TestShortcuts:
    """Test bandwidth shortcut flags."""

    def test_no_bandwidth_no_shortcuts(self):
        tree = build(16, bandwidth=0)
        assert not any(n.left_only or n.right_only for n in tree.nodes)

    def test_bandwidth_two(self):
        """8 leaves, bandwidth 2: node 1 right-only, node 2 left-only."""
        tree = build(8, bandwidth=2)

        assert tree.nodes[1].right_only
        assert not tree.nodes[1].left_only
        assert tree.nodes[2].left_only
        assert not tree.nodes[2].right_only
        flagged = [n.id for n in tree.nodes if n.is_shortcut]
        assert flagged == [1, 2]

    def test_bandwidth_one(self):
        """8 leaves, bandwidth 1: node 3 right-only, node 6 left-only."""
        tree = build(8, bandwidth=1)

        assert tree.nodes[3].right_only
        assert tree.nodes[6].left_only
        assert [n.id for n in tree.nodes if n.is_shortcut] == [3, 6]

    def test_root_never_shortcut(self):
        tree = build(4, bandwidth=4)
        assert not tree.nodes[0].is_shortcut

    def test_never_both_flags(self):
        """Both formulas agree only on the root, which is never flagged."""
        for leaves in range(1, 65):
            for bandwidth in range(1, 9):
                tree = build(leaves, bandwidth=bandwidth)
                assert not any(n.left_only and n.right_only for n in tree.nodes)


class TestQueries:
    """Test navigation and diagnostics."""

    @pytest.mark.parametrize("leaves", [2, 3, 6, 8, 11])
    def test_sibling_involution(self, leaves):
        tree = build(leaves)

        for node in tree.nodes[1:]:
            sibling = tree.get_sibling(node)
            assert sibling.id != node.id
            assert sibling.parent_id == node.parent_id
            assert tree.get_sibling(sibling) is node

    def test_root_has_no_sibling(self):
        tree = build(4)

        with pytest.raises(ContractViolation):
            tree.get_sibling(tree.nodes[0])

    def test_action_node_id(self):
        tree = build(4)

        assert [tree.action_node_id(a) for a in range(1, 5)] == [3, 4, 5, 6]

    def test_stats_string(self):
        tree = build(4)
        tree.nodes[0].learn_count = 2
        tree.nodes[2].learn_count = 1

        assert tree.tree_stats_to_string() == (
            "Learn() count per node: id=0, #l=2; id=1, #l=0; id=2, #l=1; "
        )

    def test_stats_limited_to_low_ids(self):
        tree = build(64)

        assert len(tree.learn_counts()) == 16
        assert "id=15," in tree.tree_stats_to_string()
        assert "id=16," not in tree.tree_stats_to_string()

    def test_node_equality_ignores_learn_count(self):
        a = TreeNode(1, 3, 4, 0, 1, is_leaf=False)
        b = TreeNode(1, 3, 4, 0, 1, is_leaf=False, learn_count=9)
        c = TreeNode(1, 3, 4, 0, 1, right_only=True, is_leaf=False)

        assert a == b
        assert a != c
