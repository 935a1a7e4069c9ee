"""Tests for rating domain models"""
import pytest
from pydantic import ValidationError

from rating_service.models.rating import EntityAggregate, RatingChange


class TestEntityAggregate:
    """Aggregate derivations and consistency checks"""

    def test_average_undefined_without_ratings(self):
        assert EntityAggregate(entity_id="d1").average_rating is None

    def test_average(self):
        aggregate = EntityAggregate(entity_id="d1", rating_sum=38, rating_count=11)

        assert aggregate.average_rating == pytest.approx(38 / 11)

    def test_with_delta_returns_new_instance(self):
        original = EntityAggregate(entity_id="d1", rating_sum=4, rating_count=1, info={"name": "Ann"})

        updated = original.with_delta(-4, -1)

        assert (original.rating_sum, original.rating_count) == (4, 1)
        assert (updated.rating_sum, updated.rating_count) == (0, 0)
        assert updated.info == {"name": "Ann"}

    def test_frozen(self):
        aggregate = EntityAggregate(entity_id="d1")

        with pytest.raises(ValidationError):
            aggregate.rating_sum = 5

    @pytest.mark.parametrize("rating_sum,rating_count", [(0, 0), (1, 1), (5, 1), (10, 2), (7, 3)])
    def test_consistent_pairs(self, rating_sum, rating_count):
        aggregate = EntityAggregate(entity_id="d1", rating_sum=rating_sum, rating_count=rating_count)

        assert aggregate.inconsistency(1, 5) is None

    @pytest.mark.parametrize("rating_sum,rating_count,reason", [
        (0, -1, "negative"),
        (4, 0, "non-zero"),
        (0, 1, "outside"),
        (16, 3, "outside"),
    ])
    def test_inconsistent_pairs(self, rating_sum, rating_count, reason):
        aggregate = EntityAggregate(entity_id="d1", rating_sum=rating_sum, rating_count=rating_count)

        assert reason in aggregate.inconsistency(1, 5)


class TestRatingChange:

    def test_created_flag(self):
        aggregate = EntityAggregate(entity_id="d1", rating_sum=4, rating_count=1)

        created = RatingChange(entity_id="d1", rater_id="r1", value=4, sum_delta=4, count_delta=1, aggregate=aggregate)
        replaced = RatingChange(
            entity_id="d1", rater_id="r1", previous_value=2, value=4, sum_delta=2, count_delta=0, aggregate=aggregate
        )
        removed = RatingChange(
            entity_id="d1", rater_id="r1", previous_value=4, sum_delta=-4, count_delta=-1, aggregate=aggregate
        )

        assert created.created is True
        assert replaced.created is False
        assert removed.created is False
