"""
Command-line online trainer for the offset tree.

Reads bandit examples in the text format (see ``offset_tree.parsing``),
predicts an action for each, learns from labeled ones, and optionally
writes one predicted action per line.
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
import uuid
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Iterable, List, Optional, TextIO

from .config import OffsetTreeConfig
from .errors import ConfigurationError, ContractViolation, ParseError
from .logging_config import configure_logging, get_logger
from .parsing import read_examples
from .reduction import OffsetTree, predict
from .base_learner import BinaryLearner

logger = get_logger(__name__)


@dataclass
class RunSummary:
    """Totals for one training run."""
    examples: int = 0
    learned: int = 0
    rejected: int = 0
    matched: int = 0
    matched_cost: float = 0.0

    @property
    def average_matched_cost(self) -> float:
        """Mean logged cost over examples whose prediction hit the logged action."""
        return self.matched_cost / max(1, self.matched)


def run_examples(
    tree: OffsetTree,
    base: BinaryLearner,
    lines: Iterable[str],
    predictions: Optional[TextIO] = None,
    run_id: Optional[str] = None,
) -> RunSummary:
    """Predict then learn on each example from ``lines``."""
    summary = RunSummary()
    for ec in read_examples(lines):
        action = predict(tree, base, ec)
        summary.examples += 1
        if predictions is not None:
            predictions.write(f"{action}\n" if ec.tag is None else f"{action} {ec.tag}\n")

        label = ec.cb_label
        if label is None or label.is_test():
            continue

        logged = label.costs[0]
        if logged.action == action:
            summary.matched += 1
            summary.matched_cost += logged.cost

        try:
            tree.learn(base, ec)
        except ContractViolation as e:
            summary.rejected += 1
            logger.warning(f"Skipping example {summary.examples}: {e}")
            continue
        summary.learned += 1
        logger.debug(
            f"learned example {summary.examples}: predicted {action}, logged {logged.action}",
            extra={"example_index": summary.examples, "run_id": run_id},
        )
    return summary


def _read_lines(path: Optional[str]) -> List[str]:
    if path is None or path == "-":
        return sys.stdin.readlines()
    with open(path, "r", encoding="utf-8") as f:
        return f.readlines()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="offset-tree",
        description="Offset tree continuous - online contextual bandit learning over K actions",
    )

    # Tree configuration
    ap.add_argument("--otc", type=int, dest="num_actions",
                    help="Offset tree continuous with <k> labels")
    ap.add_argument("--bandwidth", type=int,
                    help="Bandwidth for continuous actions in terms of #actions")
    ap.add_argument("--scorer-option", action="store_true", default=None,
                    help="Reduce to a scorer in [-1, 1] instead of binary -1/+1")
    ap.add_argument("--config", help="YAML or JSON config file (flags override it)")

    # Learning parameters
    ap.add_argument("--seed", type=int, help="Seed for weight-flooring draws")
    ap.add_argument("--learning-rate", type=float, help="Base learner step size")
    ap.add_argument("--bits", type=int, help="Feature hash bits per node")
    ap.add_argument("--passes", type=int, help="Passes over the data")

    # I/O
    ap.add_argument("-d", "--data", help="Input examples (default: stdin)")
    ap.add_argument("-p", "--predictions", help="Write predicted actions to this file")

    # Logging
    ap.add_argument("--log-level", default="INFO", help="Log level")
    ap.add_argument("--log-dir", help="Directory for rotating log files")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return ap


def resolve_config(args: argparse.Namespace) -> OffsetTreeConfig:
    """
    Combine the optional config file with command-line flags.

    Raises:
        ConfigurationError: If no action count is given or values are invalid
    """
    overrides = {
        "num_actions": args.num_actions,
        "bandwidth": args.bandwidth,
        "scorer_option": args.scorer_option,
        "seed": args.seed,
        "learning_rate": args.learning_rate,
        "bits": args.bits,
        "passes": args.passes,
    }
    if args.config:
        base = OffsetTreeConfig.load(args.config)
        if base is None:
            raise ConfigurationError(f"Config file not found: {args.config}")
        return base.merged(overrides)
    return OffsetTreeConfig.from_dict({k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(
        level="DEBUG" if args.verbose else args.log_level,
        log_dir=args.log_dir,
    )
    run_id = uuid.uuid4().hex

    try:
        config = resolve_config(args)
        lines = _read_lines(args.data)
    except (ConfigurationError, OSError) as e:
        logger.error(f"Setup failed: {e}")
        return 2

    tree, base = config.build(trace_sink=print)
    start = time.perf_counter()
    total = RunSummary()

    with ExitStack() as stack:
        stack.enter_context(tree)
        out = None
        if args.predictions:
            out = stack.enter_context(open(args.predictions, "w", encoding="utf-8"))

        for pass_no in range(config.passes):
            try:
                summary = run_examples(tree, base, lines, out, run_id=run_id)
            except ParseError as e:
                logger.error(f"Bad input: {e}")
                return 2
            logger.event(
                "pass_complete",
                f"pass {pass_no + 1}: {summary.examples} examples, {summary.learned} learned",
                run_id=run_id,
                subsystem="cli",
            )
            total.examples += summary.examples
            total.learned += summary.learned
            total.rejected += summary.rejected
            total.matched += summary.matched
            total.matched_cost += summary.matched_cost

    logger.latency("training", (time.perf_counter() - start) * 1000, run_id=run_id, subsystem="cli")
    print(f"examples: {total.examples}")
    print(f"learned: {total.learned}")
    print(f"rejected: {total.rejected}")
    print(f"matched logged action: {total.matched}")
    print(f"average matched cost: {total.average_matched_cost:.6f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
