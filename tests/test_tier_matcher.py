"""
Tests for quantity tier selection and tier set validation.
"""
from shop_pricing.engine.models import PriceTier
from shop_pricing.engine.tier_matcher import (
    find_tier_overlaps,
    select_tier,
    tiers_for_product,
    validate_tiers,
)


def tier(min_q, max_q, price, **kwargs):
    return PriceTier(min_quantity=min_q, max_quantity=max_q, price=price, **kwargs)


class TestSelectTier:

    def test_bounds_are_inclusive(self):
        tiers = [tier(1, 9, 100), tier(10, None, 90)]
        assert select_tier(tiers, 9).price == 100
        assert select_tier(tiers, 10).price == 90

    def test_unbounded_tier_covers_large_quantities(self):
        assert select_tier([tier(10, None, 90)], 1_000_000).price == 90

    def test_no_tier_covers_quantity(self):
        assert select_tier([tier(10, 20, 90)], 5) is None
        assert select_tier([tier(10, 20, 90)], 21) is None
        assert select_tier([], 5) is None

    def test_highest_minimum_wins_on_overlap(self):
        tiers = [tier(1, None, 100), tier(10, 20, 80), tier(5, 50, 90)]
        assert select_tier(tiers, 15).price == 80
        assert select_tier(tiers, 30).price == 90
        assert select_tier(tiers, 3).price == 100

    def test_equal_minimums_keep_input_order(self):
        tiers = [tier(10, None, 70, id='first'), tier(10, 100, 60, id='second')]
        assert select_tier(tiers, 50).id == 'first'

    def test_filters_by_product(self):
        tiers = [
            tier(1, None, 10, product_id='a'),
            tier(1, None, 20, product_id='b'),
        ]
        assert select_tier(tiers, 5, 'b').price == 20
        assert select_tier(tiers, 5, 'c') is None


def test_tiers_for_product_keeps_unowned_tiers():
    tiers = [tier(1, None, 10, product_id='a'), tier(1, None, 20), tier(1, None, 30, product_id='b')]
    assert [t.price for t in tiers_for_product(tiers, 'a')] == [10, 20]
    assert len(tiers_for_product(tiers, None)) == 3


def test_find_tier_overlaps():
    tiers = [tier(1, 10, 5), tier(10, 20, 4), tier(21, None, 3)]
    overlaps = find_tier_overlaps(tiers)

    assert len(overlaps) == 1
    assert (overlaps[0][0].min_quantity, overlaps[0][1].min_quantity) == (1, 10)


class TestValidateTiers:

    def test_clean_set(self):
        result = validate_tiers([tier(1, 99, 1.0), tier(100, None, 0.8)])
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_invalid_bounds_are_errors(self):
        result = validate_tiers([tier(0, 10, 1.0), tier(50, 20, 1.0)])
        assert not result.valid
        assert len(result.errors) == 2
        assert "at least 1" in result.errors[0]
        assert "below the minimum" in result.errors[1]

    def test_negative_price_is_error(self):
        result = validate_tiers([tier(1, None, -1)])
        assert not result.valid
        assert "negative" in result.errors[0]

    def test_overlap_is_only_a_warning(self):
        result = validate_tiers([tier(1, 100, 1.0), tier(50, None, 0.8)])
        assert result.valid
        assert any("overlap" in w for w in result.warnings)

    def test_gap_is_a_warning(self):
        result = validate_tiers([tier(1, 10, 1.0), tier(50, None, 0.8)])
        assert result.valid
        assert result.warnings == ["No tier covers quantities between 10 and 50"]
