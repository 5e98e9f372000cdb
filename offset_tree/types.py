"""
Example and label types consumed by the offset tree.

An ``Example`` normally carries a ``CBLabel``. While a node is being
queried or trained its ``label`` slot temporarily holds a ``SimpleLabel``
instead, the same way a single example is reused across reductions.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Union

# Label value that marks an example as test-only (no training signal)
FLT_MAX = 3.4028234663852886e38


@dataclass(frozen=True)
class CBClass:
    """
    One candidate-action entry of a bandit label.

    Attributes:
        action: 1-based action id
        cost: Observed cost for the action
        probability: Probability the logging policy chose the action
    """
    action: int
    cost: float
    probability: float


@dataclass
class CBLabel:
    """Ordered list of (action, cost, probability) entries."""
    costs: List[CBClass] = field(default_factory=list)

    def is_test(self) -> bool:
        return not self.costs

    def to_dict(self) -> Dict[str, Any]:
        return {"costs": [asdict(c) for c in self.costs]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CBLabel":
        return cls(costs=[CBClass(**c) for c in data.get("costs", [])])


@dataclass
class SimpleLabel:
    """Binary regression label handed to a per-node learner."""
    label: float = FLT_MAX
    initial: float = 0.0

    def is_test(self) -> bool:
        return self.label == FLT_MAX


@dataclass
class Prediction:
    """
    Prediction slots shared by the reduction and its base learner.

    Attributes:
        scalar: Per-node score written by the base learner
        multiclass: Action chosen by the tree (0 = none)
    """
    scalar: float = 0.0
    multiclass: int = 0


Label = Union[CBLabel, SimpleLabel]


@dataclass
class Example:
    """
    A single online-learning example.

    Attributes:
        features: Feature name -> value
        label: Bandit label, or a SimpleLabel while a node is being trained
        weight: Importance weight
        pred: Prediction slots
        partial_prediction: Raw (pre-link) score of the last node query
        tag: Optional identifier carried through to prediction output
    """
    features: Dict[str, float] = field(default_factory=dict)
    label: Label = field(default_factory=CBLabel)
    weight: float = 1.0
    pred: Prediction = field(default_factory=Prediction)
    partial_prediction: float = 0.0
    tag: Optional[str] = None

    @property
    def cb_label(self) -> Optional[CBLabel]:
        """The bandit label, or None while the label slot is repurposed."""
        return self.label if isinstance(self.label, CBLabel) else None


class SavedExampleState:
    """
    Context manager that restores an example's label, weight and
    prediction slots on exit, including when an exception escapes.

    The saved objects are reinstated by reference, so callers may swap in
    scratch objects during the block without copying the originals.
    """

    def __init__(self, example: Example):
        self.example = example
        self._label: Optional[Label] = None
        self._weight = 1.0
        self._pred: Optional[Prediction] = None
        self._pred_fields = (0.0, 0)
        self._partial = 0.0

    def __enter__(self) -> Example:
        ec = self.example
        self._label = ec.label
        self._weight = ec.weight
        self._pred = ec.pred
        self._pred_fields = (ec.pred.scalar, ec.pred.multiclass)
        self._partial = ec.partial_prediction
        ec.pred = Prediction()
        return ec

    def __exit__(self, *args) -> None:
        ec = self.example
        ec.label = self._label
        ec.weight = self._weight
        ec.pred = self._pred
        ec.pred.scalar, ec.pred.multiclass = self._pred_fields
        ec.partial_prediction = self._partial
