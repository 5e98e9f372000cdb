"""
Shared fixtures for offset tree tests.
"""
from typing import Dict, List, Optional, Tuple

import pytest

from offset_tree.types import Example, SimpleLabel


class ScriptedLearner:
    """
    Base learner with fixed per-node scores that records every call.

    ``learn`` calls are recorded as (node_id, label, weight). When
    ``follow_labels`` is set, a trained node afterwards scores its label.
    """

    def __init__(
        self,
        scores: Optional[Dict[int, float]] = None,
        default: float = 0.5,
        follow_labels: bool = False,
    ):
        self.scores = dict(scores or {})
        self.default = default
        self.follow_labels = follow_labels
        self.predict_calls: List[int] = []
        self.learn_calls: List[Tuple[int, float, float]] = []

    def predict(self, example: Example, node_id: int) -> float:
        self.predict_calls.append(node_id)
        score = self.scores.get(node_id, self.default)
        example.pred.scalar = score
        return score

    def learn(self, example: Example, node_id: int) -> None:
        assert isinstance(example.label, SimpleLabel)
        self.learn_calls.append((node_id, example.label.label, example.weight))
        if self.follow_labels:
            self.scores[node_id] = example.label.label

    @property
    def learned_nodes(self) -> List[int]:
        return [call[0] for call in self.learn_calls]


@pytest.fixture
def scripted():
    """Factory for ScriptedLearner instances."""
    return ScriptedLearner
