"""
Bottom-up training of the per-node classifiers from bandit feedback.

A bandit label is read as a cost interval over the leaf ordering: the
first and last entries give the two frontier leaves ``a`` and ``b``, and
every leaf strictly between them is assumed to cost ``cost_star`` (the
inverse-propensity cost of the first entry). One level per iteration,
each frontier node is compared with its sibling; when their costs
differ the parent learns to route toward the cheaper side, and the cost
carried upward is interpolated by how confidently the retrained parent
agrees.
"""
from __future__ import annotations

import logging
from typing import List

from .base_learner import BinaryLearner
from .costs import CostInterpolator, NodeCost
from .errors import ContractViolation
from .random_utils import WeightFloor
from .topology import MinDepthBinaryTree, TreeNode
from .types import CBLabel, Example, SavedExampleState, SimpleLabel

logger = logging.getLogger(__name__)

RIGHT = 1.0
LEFT = -1.0


class BottomUpTrainer:
    """
    Trains the tree's internal nodes from a single bandit example.

    Args:
        tree: Built topology; node learn counts are updated in place
        weight_floor: Sampler holding the process seed for tiny weights
    """

    def __init__(self, tree: MinDepthBinaryTree, weight_floor: WeightFloor):
        self.tree = tree
        self.weight_floor = weight_floor

    def validate(self, ec: Example) -> CBLabel:
        """
        Check the example's bandit label before anything is mutated.

        Raises:
            ContractViolation: If the label cannot drive a learn call
        """
        label = ec.label
        if not isinstance(label, CBLabel):
            raise ContractViolation(
                f"learn() requires a CBLabel, got {type(label).__name__}"
            )
        if not label.costs:
            raise ContractViolation("learn() requires at least one cost entry")

        first, last = label.costs[0], label.costs[-1]
        if first.action <= 0:
            raise ContractViolation(f"First action must be positive, got {first.action}")

        leaves = self.tree.leaf_node_count()
        for entry in (first, last):
            if not 1 <= entry.action <= leaves:
                raise ContractViolation(
                    f"Action {entry.action} outside [1, {leaves}]"
                )
        if first.probability <= 0:
            raise ContractViolation(
                f"First entry probability must be positive, got {first.probability}"
            )
        return label

    def init_node_costs(self, label: CBLabel) -> CostInterpolator:
        first, last = label.costs[0], label.costs[-1]
        cost_star = first.cost / first.probability

        a = NodeCost(self.tree.action_node_id(first.action), cost_star)
        b = NodeCost(self.tree.action_node_id(last.action), cost_star)
        logger.debug(
            "learn: action %d -> node %d, action %d -> node %d, cost* %.6f",
            first.action, a.node_id, last.action, b.node_id, cost_star,
            extra={"node_id": a.node_id, "subsystem": "trainer"},
        )
        return CostInterpolator(a, b, cost_star)

    def learn(self, base: BinaryLearner, ec: Example) -> None:
        if self.tree.leaf_node_count() == 0:
            return
        label = self.validate(ec)

        nodes = self.tree.nodes
        costs = self.init_node_costs(label)

        with SavedExampleState(ec):
            for _ in range(self.tree.depth()):
                a, b = costs.a, costs.b
                if a.node_id == 0 and b.node_id == 0:
                    break

                set_d: List[NodeCost] = [a]
                if nodes[a.node_id].parent_id != nodes[b.node_id].parent_id:
                    set_d.append(b)

                parent_costs = [a.cost, b.cost]
                for i, n_c in enumerate(set_d):
                    parent_costs[i] = self._train_parent(base, ec, costs, nodes[n_c.node_id], n_c.cost)

                costs.advance(
                    NodeCost(nodes[a.node_id].parent_id, parent_costs[0]),
                    NodeCost(nodes[b.node_id].parent_id, parent_costs[1]),
                )

    def _train_parent(
        self,
        base: BinaryLearner,
        ec: Example,
        costs: CostInterpolator,
        v: TreeNode,
        cost_v: float,
    ) -> float:
        """Train ``v``'s parent against ``v``'s sibling and return the parent cost."""
        # A frontier at the root is carried as is; node 0 is not retrained against node 1.
        if v.parent_id == v.id:
            return cost_v

        v_parent = self.tree.nodes[v.parent_id]
        if v_parent.is_shortcut:
            return cost_v

        w = self.tree.get_sibling(v)
        cost_w = costs.cost_at(w.id)
        if cost_v == cost_w:
            return cost_v

        cheaper = v if cost_v < cost_w else w
        local_action = LEFT if cheaper.id == v_parent.left_id else RIGHT

        keep, weight = self.weight_floor.apply(abs(cost_v - cost_w))
        if not keep:
            logger.debug(
                "learn: dropped tiny weight at node %d", v.parent_id,
                extra={"node_id": v.parent_id, "subsystem": "trainer"},
            )
            return cost_v

        ec.label = SimpleLabel(label=local_action, initial=0.0)
        ec.weight = weight
        base.learn(ec, v.parent_id)
        v_parent.learn_count += 1

        score = base.predict(ec, v.parent_id)
        confidence = abs(score)
        trained_action = LEFT if score < 0 else RIGHT
        lo, hi = min(cost_v, cost_w), max(cost_v, cost_w)
        logger.debug(
            "learn: node %d label %+.0f weight %.6f score %.6f",
            v.parent_id, local_action, weight, score,
            extra={"node_id": v.parent_id, "subsystem": "trainer"},
        )

        if trained_action == local_action:
            return lo * confidence + hi * (1 - confidence)
        return hi * confidence + lo * (1 - confidence)
