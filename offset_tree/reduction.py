"""
Offset tree reduction: K-action bandit learning via binary classifiers.

``OffsetTree`` owns the tree topology and wires routing and bottom-up
training to a per-node base learner. Setup code calls ``init`` once,
then the online loop calls ``predict`` and/or ``learn`` once per example.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from .base_learner import BinaryLearner
from .random_utils import WeightFloor
from .router import Router
from .topology import MinDepthBinaryTree
from .trainer import BottomUpTrainer
from .types import Example

logger = logging.getLogger(__name__)

TraceSink = Callable[[str], None]


class OffsetTree:
    """
    Continuous-action offset tree.

    Example:
        >>> tree = OffsetTree(seed=7)
        >>> tree.init(num_actions=4, bandwidth=0)
        >>> tree.learner_count()
        3
    """

    def __init__(
        self,
        seed: int = 0,
        trace_sink: Optional[TraceSink] = None,
    ):
        """
        Args:
            seed: Process seed for weight-flooring draws
            trace_sink: Receives the node statistics line on close
                (defaults to this module's logger)
        """
        self.binary_tree = MinDepthBinaryTree()
        self.weight_floor = WeightFloor(seed)
        self._router = Router(self.binary_tree)
        self._trainer = BottomUpTrainer(self.binary_tree, self.weight_floor)
        self._trace_sink = trace_sink
        self._closed = False

    def init(self, num_actions: int, bandwidth: int = 0) -> None:
        self.binary_tree.build_tree(num_actions, bandwidth)

    def learner_count(self) -> int:
        """Number of per-node classifiers the base learner must provide."""
        return self.binary_tree.internal_node_count()

    def predict(self, base: BinaryLearner, ec: Example) -> int:
        return self._router.predict(base, ec)

    def learn(self, base: BinaryLearner, ec: Example) -> None:
        self._trainer.learn(base, ec)

    def set_trace_message(self, sink: Optional[TraceSink]) -> None:
        self._trace_sink = sink

    def tree_stats_to_string(self) -> str:
        return self.binary_tree.tree_stats_to_string()

    def close(self) -> None:
        """Emit per-node learn counts to the trace sink. Idempotent."""
        if self._closed:
            return
        self._closed = True
        stats = self.tree_stats_to_string()
        if self._trace_sink is not None:
            self._trace_sink(stats)
        else:
            logger.info(stats)

    def __enter__(self) -> "OffsetTree":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def predict(tree: OffsetTree, base: BinaryLearner, ec: Example) -> int:
    """Route ``ec`` and store the chosen action in ``ec.pred.multiclass``."""
    action = tree.predict(base, ec)
    ec.pred.multiclass = action
    return action


def learn(tree: OffsetTree, base: BinaryLearner, ec: Example) -> None:
    tree.learn(base, ec)
