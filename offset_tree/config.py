"""
Run configuration for an offset tree.

Load settings from YAML or JSON files, or build them programmatically;
command-line flags override file values.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple

import yaml

from .base_learner import LinearNodeLearner
from .errors import ConfigurationError
from .reduction import OffsetTree, TraceSink

logger = logging.getLogger(__name__)


@dataclass
class OffsetTreeConfig:
    """
    Configuration for one offset tree run.

    Attributes:
        num_actions: Number of leaf actions (K)
        bandwidth: Shortcut bandwidth in actions (0 disables shortcuts)
        scorer_option: Use the glf1 scorer link in [-1, 1] instead of -1/+1
        seed: Process seed for weight-flooring draws
        learning_rate: Base learner SGD step size
        bits: Feature hash bits per node
        passes: Number of passes over the training data
    """
    num_actions: int
    bandwidth: int = 0
    scorer_option: bool = False
    seed: int = 0
    learning_rate: float = 0.5
    bits: int = 12
    passes: int = 1

    def __post_init__(self):
        if self.num_actions < 0:
            raise ConfigurationError(f"num_actions must be >= 0, got {self.num_actions}")
        if self.bandwidth < 0:
            raise ConfigurationError(f"bandwidth must be >= 0, got {self.bandwidth}")
        if self.learning_rate <= 0:
            raise ConfigurationError(f"learning_rate must be > 0, got {self.learning_rate}")
        if not 1 <= self.bits <= 24:
            raise ConfigurationError(f"bits must be in [1, 24], got {self.bits}")
        if self.passes < 1:
            raise ConfigurationError(f"passes must be >= 1, got {self.passes}")

    @property
    def link(self) -> str:
        return "glf1" if self.scorer_option else "binary"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OffsetTreeConfig":
        """Create from dictionary, ignoring unknown keys."""
        if "num_actions" not in data:
            raise ConfigurationError("num_actions is required")
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def save(self, path: str) -> None:
        """Save config to a JSON or YAML file, chosen by extension."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> Optional["OffsetTreeConfig"]:
        """
        Load config from a JSON or YAML file.

        Returns:
            The config, or None if the file does not exist

        Raises:
            ConfigurationError: If the file cannot be parsed or holds bad values
        """
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            raise ConfigurationError(f"Failed to load config from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must hold a mapping")
        return cls.from_dict(data)

    def merged(self, overrides: Dict[str, Any]) -> "OffsetTreeConfig":
        """Return a copy with the non-None values of ``overrides`` applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None and k in data})
        return OffsetTreeConfig.from_dict(data)

    def build(
        self,
        trace_sink: Optional[TraceSink] = None,
    ) -> Tuple[OffsetTree, LinearNodeLearner]:
        """Build an initialized tree and a base learner sized to match it."""
        tree = OffsetTree(seed=self.seed, trace_sink=trace_sink)
        tree.init(self.num_actions, self.bandwidth)
        learner = LinearNodeLearner(
            num_nodes=tree.learner_count(),
            bits=self.bits,
            learning_rate=self.learning_rate,
            link=self.link,
        )
        logger.info(
            f"Offset tree ready: {self.num_actions} actions, bandwidth {self.bandwidth}, "
            f"{tree.learner_count()} node learners, link={self.link}"
        )
        return tree, learner
