"""
Root-to-leaf routing for action selection.
"""
from __future__ import annotations

import logging

from .base_learner import BinaryLearner
from .topology import MinDepthBinaryTree
from .types import Example, SavedExampleState, SimpleLabel, FLT_MAX

logger = logging.getLogger(__name__)


class Router:
    """
    Walks the tree from the root, asking the base learner at every
    non-shortcut internal node whether to go left (negative score) or
    right, and returns the 1-based action of the reached leaf.
    """

    def __init__(self, tree: MinDepthBinaryTree):
        self.tree = tree

    def predict(self, base: BinaryLearner, ec: Example) -> int:
        """
        Choose an action for ``ec``.

        Returns:
            1-based action, or 0 when the tree has no leaves
        """
        if self.tree.leaf_node_count() == 0:
            return 0

        nodes = self.tree.nodes
        with SavedExampleState(ec):
            ec.label = SimpleLabel(label=FLT_MAX)
            cur_node = nodes[0]
            while not cur_node.is_leaf:
                if cur_node.right_only:
                    cur_node = nodes[cur_node.right_id]
                elif cur_node.left_only:
                    cur_node = nodes[cur_node.left_id]
                else:
                    ec.partial_prediction = 0.0
                    ec.pred.scalar = 0.0
                    ec.label.initial = 0.0
                    score = base.predict(ec, cur_node.id)
                    logger.debug(
                        "predict: node %d scored %.6f", cur_node.id, score,
                        extra={"node_id": cur_node.id, "subsystem": "router"},
                    )
                    if score < 0:
                        cur_node = nodes[cur_node.left_id]
                    else:
                        cur_node = nodes[cur_node.right_id]

        return self.tree.leaf_action(cur_node)
