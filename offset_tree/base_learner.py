"""
Per-node binary learners used underneath the offset tree.

The tree addresses its learner purely by node id; the learner owns all
parameter state. ``LinearNodeLearner`` is the reference implementation:
one hashed linear model per internal node trained with importance-aware
squared-loss updates.
"""
from __future__ import annotations

import hashlib
import logging
import math
from typing import Any, Dict, Protocol

import numpy as np

from .errors import ConfigurationError
from .types import Example, SimpleLabel

logger = logging.getLogger(__name__)

LINKS = ("binary", "glf1")


class BinaryLearner(Protocol):
    """
    Interface the offset tree expects from its base learner.

    Implementations must be deterministic for unchanged parameters and
    must keep parameters for distinct node ids disjoint. The tree calls
    these methods from one thread at a time; a learner shared between
    concurrently running trees must serialize updates per node itself.
    """

    def predict(self, example: Example, node_id: int) -> float:
        """Score ``example`` at ``node_id`` and store it in ``example.pred.scalar``."""
        ...

    def learn(self, example: Example, node_id: int) -> None:
        """Train ``node_id`` on ``example.label`` (a SimpleLabel) and ``example.weight``."""
        ...


class LinearNodeLearner:
    """
    Hashed linear model per node.

    Features are hashed into ``2**bits`` slots; the last slot of each
    node's row is a bias. Rows are allocated the first time a node is
    trained, so untouched nodes cost nothing and score 0. The ``binary``
    link returns -1/+1 by sign, ``glf1`` squashes the raw score into (-1, 1).

    Example:
        >>> learner = LinearNodeLearner(num_nodes=3, bits=8)
        >>> ec = Example(features={"x": 1.0}, label=SimpleLabel(label=1.0))
        >>> learner.learn(ec, 0)
        >>> learner.predict(ec, 0)
        1.0
    """

    def __init__(
        self,
        num_nodes: int,
        bits: int = 12,
        learning_rate: float = 0.5,
        link: str = "binary",
    ):
        if link not in LINKS:
            raise ConfigurationError(f"Unknown link '{link}', expected one of {LINKS}")
        if not 1 <= bits <= 24:
            raise ConfigurationError(f"bits must be in [1, 24], got {bits}")

        self.num_nodes = max(0, num_nodes)
        self.bits = bits
        self.learning_rate = learning_rate
        self.link = link
        self.weights: Dict[int, np.ndarray] = {}
        self.update_counts = np.zeros(self.num_nodes, dtype=np.int64)
        self._index_cache: Dict[str, int] = {}

    def _index(self, name: str) -> int:
        idx = self._index_cache.get(name)
        if idx is None:
            digest = hashlib.sha256(name.encode("utf-8")).digest()
            idx = int.from_bytes(digest[:4], "little") & ((1 << self.bits) - 1)
            self._index_cache[name] = idx
        return idx

    def _row(self, node_id: int) -> np.ndarray:
        if not 0 <= node_id < self.num_nodes:
            raise IndexError(f"node id {node_id} out of range [0, {self.num_nodes})")
        row = self.weights.get(node_id)
        if row is None:
            row = np.zeros((1 << self.bits) + 1, dtype=np.float64)
            self.weights[node_id] = row
        return row

    def _raw_score(self, example: Example, node_id: int) -> float:
        row = self.weights.get(node_id)
        if row is None:
            return 0.0
        score = row[-1]
        for name, value in example.features.items():
            score += row[self._index(name)] * value
        return float(score)

    def _apply_link(self, raw: float) -> float:
        if self.link == "glf1":
            return 2.0 / (1.0 + math.exp(-max(-50.0, min(50.0, raw)))) - 1.0
        return -1.0 if raw < 0 else 1.0

    def predict(self, example: Example, node_id: int) -> float:
        raw = self._raw_score(example, node_id)
        example.partial_prediction = raw
        example.pred.scalar = self._apply_link(raw)
        return example.pred.scalar

    def learn(self, example: Example, node_id: int) -> None:
        label = example.label
        if not isinstance(label, SimpleLabel) or label.is_test():
            return

        row = self._row(node_id)
        raw = self._raw_score(example, node_id) + label.initial
        # Closed-form importance-aware step, never overshoots the label
        norm = 1.0 + sum(v * v for v in example.features.values())
        step = (label.label - raw) * -math.expm1(-self.learning_rate * example.weight * norm) / norm
        for name, value in example.features.items():
            row[self._index(name)] += step * value
        row[-1] += step
        self.update_counts[node_id] += 1

    def reset(self) -> None:
        self.weights.clear()
        self.update_counts.fill(0)

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "num_nodes": self.num_nodes,
            "bits": self.bits,
            "link": self.link,
            "trained_nodes": len(self.weights),
            "updates": int(self.update_counts.sum()),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize non-zero weights per node."""
        nodes = {}
        for node_id, row in sorted(self.weights.items()):
            nz = np.flatnonzero(row)
            nodes[str(node_id)] = {str(int(i)): float(row[i]) for i in nz}
        return {
            "num_nodes": self.num_nodes,
            "bits": self.bits,
            "learning_rate": self.learning_rate,
            "link": self.link,
            "weights": nodes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinearNodeLearner":
        learner = cls(
            num_nodes=data["num_nodes"],
            bits=data.get("bits", 12),
            learning_rate=data.get("learning_rate", 0.5),
            link=data.get("link", "binary"),
        )
        for node_id, values in data.get("weights", {}).items():
            row = learner._row(int(node_id))
            for idx, value in values.items():
                row[int(idx)] = value
        return learner
