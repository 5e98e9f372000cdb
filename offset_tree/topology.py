"""
Minimum-depth binary tree over a fixed number of leaf actions.

Nodes live in one list and refer to each other by integer id: node ``i``
has children ``2i+1`` and ``2i+2``, the root is its own parent, and the
leaves occupy the last ``leaf_count`` ids. Leaf ``id`` maps to the
1-based action ``id - internal_node_count() + 1``.

A non-zero bandwidth marks two tree-global node ids as shortcuts that
always route one way and are never trained.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .errors import ConfigurationError, ContractViolation, ResourceExhausted

logger = logging.getLogger(__name__)

# Only nodes with smaller ids are reported by tree_stats_to_string()
STATS_NODE_LIMIT = 16


@dataclass(eq=False)
class TreeNode:
    """
    One node of the tree.

    Attributes:
        id: Dense node id
        left_id: Left child id (0 for leaves)
        right_id: Right child id (0 for leaves)
        parent_id: Parent id (the root points at itself)
        depth: Distance from the root
        left_only: Shortcut, always route left
        right_only: Shortcut, always route right
        is_leaf: Whether the node is a leaf action
        learn_count: Number of times the node's classifier was trained
    """
    id: int
    left_id: int
    right_id: int
    parent_id: int
    depth: int
    left_only: bool = False
    right_only: bool = False
    is_leaf: bool = True
    learn_count: int = 0

    @property
    def is_shortcut(self) -> bool:
        return self.left_only or self.right_only

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeNode):
            return NotImplemented
        return (
            self.id == other.id
            and self.left_id == other.left_id
            and self.right_id == other.right_id
            and self.parent_id == other.parent_id
            and self.depth == other.depth
            and self.left_only == other.left_only
            and self.right_only == other.right_only
            and self.is_leaf == other.is_leaf
        )

    def __hash__(self) -> int:
        return hash(self.id)


def _shortcut_flags(node_id: int, leaf_count: int, bandwidth: int):
    """Return (left_only, right_only) for a freshly created child."""
    if not bandwidth:
        return False, False
    right_only = node_id == leaf_count // (2 * bandwidth) - 1
    left_only = node_id == leaf_count // bandwidth - 2
    return left_only, right_only


class MinDepthBinaryTree:
    """
    Array-backed binary tree built once from a leaf count.

    Example:
        >>> tree = MinDepthBinaryTree()
        >>> tree.build_tree(4)
        >>> tree.internal_node_count(), tree.depth()
        (3, 2)
    """

    def __init__(self):
        self.nodes: List[TreeNode] = []
        self._num_leaf_nodes = 0
        self._depth = 0
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def build_tree(self, num_nodes: int, bandwidth: int = 0) -> None:
        """
        Build the tree with ``num_nodes`` leaves.

        Args:
            num_nodes: Number of leaf actions (0 gives an empty tree)
            bandwidth: Shortcut bandwidth in actions (0 disables shortcuts)

        Raises:
            ConfigurationError: If already built with a different leaf count
            ResourceExhausted: If the node array cannot be allocated
        """
        if self._initialized:
            if num_nodes != self._num_leaf_nodes:
                raise ConfigurationError(
                    f"Tree already initialized. New leaf node count ({num_nodes}) "
                    f"does not equal current value ({self._num_leaf_nodes})",
                    current=self._num_leaf_nodes,
                    requested=num_nodes,
                )
            return

        if num_nodes < 0 or bandwidth < 0:
            raise ConfigurationError(
                f"Leaf count and bandwidth must be non-negative "
                f"(got {num_nodes}, {bandwidth})"
            )

        if num_nodes == 0:
            self._num_leaf_nodes = 0
            self._initialized = True
            return

        try:
            nodes, depth = self._allocate(num_nodes, bandwidth)
        except MemoryError as e:
            raise ResourceExhausted(
                f"Unable to allocate memory for offset tree. Label count: {num_nodes}",
                leaf_count=num_nodes,
            ) from e

        self.nodes = nodes
        self._num_leaf_nodes = num_nodes
        self._depth = depth
        self._initialized = True
        logger.debug(
            f"Built offset tree: {num_nodes} leaves, {len(self.nodes)} nodes, "
            f"depth {depth}, bandwidth {bandwidth}"
        )

    @staticmethod
    def _allocate(num_nodes: int, bandwidth: int):
        nodes: List[TreeNode] = [TreeNode(0, 0, 0, 0, 0)]

        depth, depth_const = 0, 1
        for i in range(num_nodes - 1):
            parent = nodes[i]
            parent.left_id = 2 * i + 1
            parent.right_id = 2 * i + 2
            parent.is_leaf = False
            if 2 * i + 1 >= depth_const:
                depth += 1
                depth_const = (1 << (depth + 1)) - 1

            for child_id in (2 * i + 1, 2 * i + 2):
                left_only, right_only = _shortcut_flags(child_id, num_nodes, bandwidth)
                nodes.append(TreeNode(
                    id=child_id,
                    left_id=0,
                    right_id=0,
                    parent_id=i,
                    depth=depth,
                    left_only=left_only,
                    right_only=right_only,
                ))

        return nodes, depth

    def internal_node_count(self) -> int:
        return len(self.nodes) - self._num_leaf_nodes

    def leaf_node_count(self) -> int:
        return self._num_leaf_nodes

    def depth(self) -> int:
        return self._depth

    def leaf_action(self, node: TreeNode) -> int:
        """1-based action for a leaf node."""
        return node.id - self.internal_node_count() + 1

    def action_node_id(self, action: int) -> int:
        """Leaf node id for a 1-based action."""
        return action + self.internal_node_count() - 1

    def get_sibling(self, v: TreeNode) -> TreeNode:
        """
        Return the other child of ``v``'s parent.

        Raises:
            ContractViolation: If ``v`` is the root
        """
        if v.parent_id == v.id:
            raise ContractViolation("The root node has no sibling")
        v_parent = self.nodes[v.parent_id]
        return self.nodes[v_parent.right_id if v.id == v_parent.left_id else v_parent.left_id]

    def learn_counts(self) -> List[int]:
        """Learn counts for internal nodes with low ids, in id order."""
        counts = []
        for n in self.nodes:
            if n.is_leaf or n.id >= STATS_NODE_LIMIT:
                break
            counts.append(n.learn_count)
        return counts

    def tree_stats_to_string(self) -> str:
        parts = ["Learn() count per node: "]
        for node_id, count in enumerate(self.learn_counts()):
            parts.append(f"id={node_id}, #l={count}; ")
        return "".join(parts)
