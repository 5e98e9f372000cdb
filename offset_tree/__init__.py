"""
Offset tree reduction for contextual bandit learning over many actions.

Turns a K-action (or discretized continuous-action) decision into
O(log K) binary decisions, each made by an independently trained
per-node classifier.

Key pieces:
- MinDepthBinaryTree: array-indexed tree with optional bandwidth shortcuts
- Router: root-to-leaf action selection
- BottomUpTrainer: importance-weighted training from bandit feedback
- OffsetTree: facade wiring both to a per-node base learner
"""

from .errors import (
    OffsetTreeError,
    ConfigurationError,
    ResourceExhausted,
    ContractViolation,
    ParseError,
)
from .types import CBClass, CBLabel, SimpleLabel, Prediction, Example, SavedExampleState, FLT_MAX
from .topology import TreeNode, MinDepthBinaryTree
from .costs import NodeCost, CostInterpolator
from .random_utils import WeightFloor, uniform_hash, merand48, WEIGHT_EPSILON
from .base_learner import BinaryLearner, LinearNodeLearner
from .router import Router
from .trainer import BottomUpTrainer
from .reduction import OffsetTree
from .config import OffsetTreeConfig
from .parsing import parse_example, read_examples

__version__ = "0.1.0"

__all__ = [
    # Errors
    "OffsetTreeError",
    "ConfigurationError",
    "ResourceExhausted",
    "ContractViolation",
    "ParseError",

    # Examples and labels
    "CBClass",
    "CBLabel",
    "SimpleLabel",
    "Prediction",
    "Example",
    "SavedExampleState",
    "FLT_MAX",

    # Tree
    "TreeNode",
    "MinDepthBinaryTree",
    "NodeCost",
    "CostInterpolator",
    "Router",
    "BottomUpTrainer",
    "OffsetTree",

    # Collaborators
    "WeightFloor",
    "uniform_hash",
    "merand48",
    "WEIGHT_EPSILON",
    "BinaryLearner",
    "LinearNodeLearner",

    # Setup and I/O
    "OffsetTreeConfig",
    "parse_example",
    "read_examples",
]
