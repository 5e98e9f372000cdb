#!/usr/bin/env python3
"""
Offset Tree Demo

Simulates a continuous-action bandit (pick a setting in [0, 1]) discretized
into K actions, logged by a uniform policy, and shows the offset tree
learning to route each context to a low-cost action with only log2(K)
classifier calls per decision.

Run with:
    python demo.py
"""
import os
import random
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from offset_tree import CBClass, CBLabel, Example, OffsetTreeConfig


def print_header(text: str):
    """Print styled header."""
    print(f"\n{'='*70}")
    print(f"  {text}")
    print(f"{'='*70}\n")


def action_center(action: int, num_actions: int) -> float:
    return (action - 0.5) / num_actions


def cost_of(action: int, num_actions: int, target: float) -> float:
    """Negative reward: -1 inside the target's neighborhood, 0 elsewhere."""
    return -1.0 if abs(action_center(action, num_actions) - target) < 0.1 else 0.0


CONTEXTS = {
    "low": 0.15,
    "mid": 0.5,
    "high": 0.85,
}


def run(num_actions: int, bandwidth: int, rounds: int = 3000, seed: int = 7):
    config = OffsetTreeConfig(num_actions=num_actions, bandwidth=bandwidth, seed=seed, bits=10)
    messages = []
    tree, learner = config.build(trace_sink=messages.append)
    rng = random.Random(seed)
    probability = 1.0 / num_actions

    with tree:
        for _ in range(rounds):
            name = rng.choice(list(CONTEXTS))
            logged = rng.randint(1, num_actions)
            ec = Example(
                features={f"ctx_{name}": 1.0},
                label=CBLabel(costs=[CBClass(logged, cost_of(logged, num_actions, CONTEXTS[name]), probability)]),
            )
            tree.learn(learner, ec)

        for name, target in CONTEXTS.items():
            action = tree.predict(learner, Example(features={f"ctx_{name}": 1.0}))
            center = action_center(action, num_actions)
            print(f"  context={name:<5} target={target:.2f}  chose action {action:>3} "
                  f"(center {center:.3f}, cost {cost_of(action, num_actions, target):+.0f})")

    print(f"\n  {messages[0]}")


def main():
    print_header("Offset tree over 32 discretized actions")
    run(num_actions=32, bandwidth=0)

    print_header("Same problem with bandwidth shortcuts (bandwidth=4)")
    run(num_actions=32, bandwidth=4)

    print("\n✓ Each decision used at most 5 classifier calls instead of 32")


if __name__ == "__main__":
    main()
