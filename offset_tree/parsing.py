"""
Text format for bandit examples.

Each line is ``<label> | <features>``::

    2:1.0:0.5 | age:0.3 height:1.2 member
    1:0.0:0.25 4:0.0:0.25 | age:0.8
    | age:0.1

The label is zero or more ``action:cost:probability`` triples (none means
a test example). Features are ``name[:value]`` tokens; the value defaults
to 1.0. Blank lines and lines starting with ``#`` are skipped.
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import ParseError
from .types import CBClass, CBLabel, Example


def _parse_float(token: str, what: str, line_no: int) -> float:
    try:
        value = float(token)
    except ValueError:
        raise ParseError(line_no, f"invalid {what} '{token}'") from None
    if math.isnan(value) or math.isinf(value):
        raise ParseError(line_no, f"non-finite {what} '{token}'")
    return value


def parse_label(text: str, line_no: int = 0) -> CBLabel:
    costs: List[CBClass] = []
    for token in text.split():
        parts = token.split(":")
        if len(parts) != 3:
            raise ParseError(line_no, f"expected action:cost:probability, got '{token}'")
        try:
            action = int(parts[0])
        except ValueError:
            raise ParseError(line_no, f"invalid action '{parts[0]}'") from None
        cost = _parse_float(parts[1], "cost", line_no)
        probability = _parse_float(parts[2], "probability", line_no)
        if not 0.0 < probability <= 1.0:
            raise ParseError(line_no, f"probability {probability} outside (0, 1]")
        costs.append(CBClass(action=action, cost=cost, probability=probability))
    return CBLabel(costs=costs)


def parse_features(text: str, line_no: int = 0) -> Dict[str, float]:
    features: Dict[str, float] = {}
    for token in text.split():
        name, sep, value = token.rpartition(":")
        if not sep:
            name, value = token, "1"
        if not name:
            raise ParseError(line_no, f"empty feature name in '{token}'")
        features[name] = features.get(name, 0.0) + _parse_float(value, "feature value", line_no)
    return features


def parse_example(line: str, line_no: int = 0) -> Example:
    """
    Parse one line into an Example.

    Raises:
        ParseError: If the line is malformed
    """
    label_text, sep, feature_text = line.partition("|")
    if not sep:
        raise ParseError(line_no, "missing '|' between label and features")
    return Example(
        features=parse_features(feature_text, line_no),
        label=parse_label(label_text, line_no),
        tag=str(line_no) if line_no else None,
    )


def read_examples(lines: Iterable[str], start: int = 1) -> Iterator[Example]:
    """Yield examples from ``lines``, skipping blanks and ``#`` comments."""
    for line_no, raw in enumerate(lines, start=start):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield parse_example(line, line_no)


def format_label(label: Optional[CBLabel]) -> str:
    if label is None:
        return ""
    return " ".join(f"{c.action}:{c.cost:g}:{c.probability:g}" for c in label.costs)
