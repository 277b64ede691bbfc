from datetime import datetime, timezone

import pytest
import torch

from fedrelay.core import (
    BaselineMismatchPolicy,
    InvalidParameterError,
    ModelUpdate,
    NoUpdatesError,
    ShapeMismatchError,
)
from fedrelay.server import AsyncFedAvgAggregator


def make_update(contributor_id: str, values: list[float], round_number=1):
    return ModelUpdate(
        contributor_id=contributor_id,
        weights=torch.tensor(values),
        round=round_number,
        submitted_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def aggregator():
    return AsyncFedAvgAggregator()


class TestMerge:
    def test_average_without_baseline(self, aggregator):
        merged = aggregator.merge(
            [torch.tensor([2.0, 0.0]), torch.tensor([0.0, 2.0])], None, 1.0
        )
        assert torch.allclose(merged, torch.tensor([1.0, 1.0]))

    def test_learning_rate_ignored_without_baseline(self, aggregator):
        merged = aggregator.merge([torch.tensor([4.0, -2.0])], None, 0.1)
        assert torch.equal(merged, torch.tensor([4.0, -2.0]))

    def test_blends_into_baseline(self, aggregator):
        merged = aggregator.merge(
            [torch.tensor([2.0, 2.0])], torch.tensor([0.0, 0.0]), 0.5
        )
        assert torch.allclose(merged, torch.tensor([1.0, 1.0]))

    def test_zero_learning_rate_keeps_baseline(self, aggregator):
        baseline = torch.tensor([0.3, -0.7, 1.5])
        merged = aggregator.merge([torch.tensor([9.0, 9.0, 9.0])], baseline, 0.0)

        assert torch.equal(merged, baseline)
        assert merged is not baseline

    def test_full_learning_rate_replaces_baseline(self, aggregator):
        merged = aggregator.merge(
            [torch.tensor([1.0, 3.0]), torch.tensor([3.0, 1.0])],
            torch.tensor([100.0, -100.0]),
            1.0,
        )
        assert torch.allclose(merged, torch.tensor([2.0, 2.0]))

    @pytest.mark.parametrize("learning_rate", [0.0, 0.25, 0.5, 1.0])
    def test_fixed_point(self, aggregator, learning_rate):
        vector = torch.tensor([0.5, -1.25, 3.0])
        merged = aggregator.merge([vector], vector.clone(), learning_rate)
        assert torch.allclose(merged, vector)

    def test_inputs_not_mutated(self, aggregator):
        update = torch.tensor([2.0, 2.0])
        baseline = torch.tensor([0.0, 0.0])
        aggregator.merge([update], baseline, 0.5)

        assert torch.equal(update, torch.tensor([2.0, 2.0]))
        assert torch.equal(baseline, torch.tensor([0.0, 0.0]))

    def test_no_updates(self, aggregator):
        with pytest.raises(NoUpdatesError):
            aggregator.merge([], None, 0.5)

    def test_update_lengths_must_match(self, aggregator):
        with pytest.raises(ShapeMismatchError):
            aggregator.merge(
                [torch.tensor([1.0, 2.0]), torch.tensor([1.0])], None, 0.5
            )

    def test_strict_baseline_mismatch(self, aggregator):
        with pytest.raises(ShapeMismatchError) as exc_info:
            aggregator.merge(
                [torch.tensor([1.0, 2.0])], torch.tensor([1.0, 2.0, 3.0]), 0.5
            )
        assert exc_info.value.details == {
            "baseline_length": 3,
            "update_length": 2,
        }

    def test_fallback_baseline_mismatch(self):
        aggregator = AsyncFedAvgAggregator(
            BaselineMismatchPolicy.FALLBACK_TO_AVERAGE
        )
        merged = aggregator.merge(
            [torch.tensor([2.0, 0.0]), torch.tensor([0.0, 2.0])],
            torch.tensor([5.0, 5.0, 5.0]),
            0.5,
        )
        assert torch.allclose(merged, torch.tensor([1.0, 1.0]))

    @pytest.mark.parametrize("learning_rate", [-0.1, 1.5])
    def test_learning_rate_range(self, aggregator, learning_rate):
        with pytest.raises(InvalidParameterError):
            aggregator.merge([torch.tensor([1.0])], None, learning_rate)

    def test_matrix_update_rejected(self, aggregator):
        with pytest.raises(ShapeMismatchError):
            aggregator.merge([torch.ones(2, 2)], None, 0.5)


class TestAggregate:
    def test_result_fields(self, aggregator):
        updates = [
            make_update("alice", [1.0, 1.0], round_number=2),
            make_update("bob", [3.0, 3.0], round_number=5),
        ]
        result = aggregator.aggregate(updates, None, 0.1)

        assert torch.allclose(result.weights, torch.tensor([2.0, 2.0]))
        assert result.round_number == 5
        assert result.num_updates == 2
        assert result.contributor_ids == ["alice", "bob"]
        assert not result.used_baseline

    def test_used_baseline(self, aggregator):
        result = aggregator.aggregate(
            [make_update("alice", [2.0])], torch.tensor([0.0]), 0.25
        )
        assert result.used_baseline
        assert torch.allclose(result.weights, torch.tensor([0.5]))

    def test_dropped_baseline_not_reported(self):
        aggregator = AsyncFedAvgAggregator(
            BaselineMismatchPolicy.FALLBACK_TO_AVERAGE
        )
        result = aggregator.aggregate(
            [make_update("alice", [2.0, 4.0])], torch.tensor([0.0]), 0.25
        )
        assert not result.used_baseline
        assert torch.allclose(result.weights, torch.tensor([2.0, 4.0]))

    def test_result_state(self, aggregator):
        result = aggregator.aggregate(
            [make_update("alice", [1.0, 2.0], round_number=6)], None, 0.5
        )
        state = result.state()

        assert torch.equal(state.weights, result.weights)
        assert state.round == 6
        assert state.updated_at == result.timestamp

    def test_empty_first_update(self, aggregator):
        with pytest.raises(InvalidParameterError):
            aggregator.aggregate(
                [make_update("alice", []), make_update("bob", [1.0])],
                None,
                0.5,
            )
