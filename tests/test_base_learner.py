"""
Tests for the reference per-node linear learner.
"""
import pytest

from offset_tree.base_learner import LinearNodeLearner
from offset_tree.errors import ConfigurationError
from offset_tree.types import Example, SimpleLabel, FLT_MAX


def train_example(label, weight=1.0, features=None):
    return Example(
        features=features or {"x": 1.0, "y": 0.5},
        label=SimpleLabel(label=label),
        weight=weight,
    )


class TestLinearNodeLearner:
    """Test scoring and updates."""

    def test_untrained_scores_zero(self):
        learner = LinearNodeLearner(num_nodes=3, bits=8)
        ec = train_example(1.0)

        assert learner.predict(ec, 0) == 1.0
        assert ec.partial_prediction == 0.0
        assert learner.weights == {}

    def test_binary_link_signs(self):
        learner = LinearNodeLearner(num_nodes=2, bits=8)
        learner.learn(train_example(-1.0), 1)

        assert learner.predict(train_example(-1.0), 1) == -1.0
        assert learner.predict(train_example(-1.0), 0) == 1.0

    def test_glf1_link_bounded(self):
        learner = LinearNodeLearner(num_nodes=1, bits=8, link="glf1")
        for _ in range(50):
            learner.learn(train_example(1.0, weight=10.0), 0)

        score = learner.predict(train_example(1.0), 0)
        assert 0.0 < score < 1.0

    def test_update_never_overshoots(self):
        """A huge importance weight moves the raw score to, not past, the label."""
        learner = LinearNodeLearner(num_nodes=1, bits=8)
        ec = train_example(1.0, weight=1e6, features={"x": 1.0})

        learner.learn(ec, 0)
        learner.predict(ec, 0)

        assert ec.partial_prediction == pytest.approx(1.0)

    def test_weight_scales_update(self):
        small = LinearNodeLearner(num_nodes=1, bits=8)
        large = LinearNodeLearner(num_nodes=1, bits=8)
        small.learn(train_example(1.0, weight=0.01), 0)
        large.learn(train_example(1.0, weight=1.0), 0)

        ec_small, ec_large = train_example(1.0), train_example(1.0)
        small.predict(ec_small, 0)
        large.predict(ec_large, 0)

        assert 0 < ec_small.partial_prediction < ec_large.partial_prediction

    def test_test_label_ignored(self):
        learner = LinearNodeLearner(num_nodes=1, bits=8)
        learner.learn(train_example(FLT_MAX), 0)

        assert learner.get_statistics()["updates"] == 0

    def test_nodes_are_disjoint(self):
        learner = LinearNodeLearner(num_nodes=3, bits=8)
        learner.learn(train_example(-1.0), 2)

        ec = train_example(1.0)
        learner.predict(ec, 1)
        assert ec.partial_prediction == 0.0

    def test_bad_node_id(self):
        learner = LinearNodeLearner(num_nodes=2, bits=8)

        with pytest.raises(IndexError):
            learner.learn(train_example(1.0), 5)

    def test_bad_settings(self):
        with pytest.raises(ConfigurationError):
            LinearNodeLearner(num_nodes=1, link="logistic")
        with pytest.raises(ConfigurationError):
            LinearNodeLearner(num_nodes=1, bits=0)

    def test_serialization_preserves_scores(self):
        learner = LinearNodeLearner(num_nodes=3, bits=8, link="glf1")
        learner.learn(train_example(1.0), 0)
        learner.learn(train_example(-1.0, features={"z": 2.0}), 2)

        restored = LinearNodeLearner.from_dict(learner.to_dict())

        for node_id in range(3):
            for features in ({"x": 1.0, "y": 0.5}, {"z": 2.0}):
                assert restored.predict(Example(features=features), node_id) == pytest.approx(
                    learner.predict(Example(features=features), node_id)
                )
        assert restored.link == "glf1"

    def test_reset(self):
        learner = LinearNodeLearner(num_nodes=1, bits=8)
        learner.learn(train_example(1.0), 0)
        learner.reset()

        ec = train_example(1.0)
        learner.predict(ec, 0)
        assert ec.partial_prediction == 0.0
        assert learner.get_statistics()["updates"] == 0
