"""
Frontier tracking and cost interpolation for bottom-up training.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NodeCost:
    """A frontier position: a node id and its current cost estimate."""
    node_id: int
    cost: float


class CostInterpolator:
    """
    Step function over node ids bracketed by two frontier nodes.

    Ids strictly between ``a`` and ``b`` cost ``cost_star``; ``a`` and
    ``b`` cost whatever they currently track; everything outside costs 0.
    """

    def __init__(self, a: NodeCost, b: NodeCost, cost_star: float):
        self.a = a
        self.b = b
        self.cost_star = cost_star

    def advance(self, a: NodeCost, b: NodeCost) -> None:
        """Move both frontier nodes; ``cost_star`` stays fixed."""
        self.a = a
        self.b = b

    def cost_at(self, node_id: int) -> float:
        if node_id < self.a.node_id:
            return 0.0
        if node_id == self.a.node_id:
            return self.a.cost
        if node_id < self.b.node_id:
            return self.cost_star
        if node_id == self.b.node_id:
            return self.b.cost
        return 0.0

    __call__ = cost_at
