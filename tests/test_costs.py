"""
Tests for supplies cost aggregation.
"""
import pytest

from shop_pricing.engine.costs import supplies_cost, supplies_cost_map
from shop_pricing.engine.models import ProductSupply, Supply


def test_supplies_cost_sums_quantity_times_cost():
    links = [
        ProductSupply.from_record({'product_id': 'p', 'supply_id': 'paper', 'quantity': '2'}),
        ProductSupply.from_record({'product_id': 'p', 'supply_id': 'ink', 'quantity': 10}),
    ]
    supplies = [
        Supply.from_record({'id': 'paper', 'cost_per_unit': '0,5'}),
        Supply.from_record({'id': 'ink', 'cost_per_unit': 0.1}),
    ]
    assert supplies_cost(links, supplies) == pytest.approx(2.0)


def test_unknown_supply_costs_nothing():
    links = [ProductSupply(product_id='p', supply_id='missing', quantity=3)]
    assert supplies_cost(links, []) == 0


def test_supply_records_are_normalized():
    supply = Supply.from_record({'id': None, 'name': None, 'cost_per_unit': '-3'})
    link = ProductSupply.from_record({'product_id': 'p', 'supply_id': None, 'quantity': 'abc'})

    assert (supply.id, supply.name, supply.unit, supply.cost_per_unit) == ("", "", "un", 0)
    assert (link.supply_id, link.quantity) == ("", 0)


def test_supplies_cost_map_from_rows():
    links = [
        {'product_id': 'a', 'supply_id': 's1', 'quantity': '2'},
        {'product_id': 'a', 'supply_id': 's2', 'quantity': '0,5'},
        {'product_id': 'b', 'supply_id': 's1', 'quantity': None},
        {'product_id': 'c', 'supply_id': 'gone', 'quantity': '4'},
    ]
    supplies = [
        {'id': 's1', 'cost_per_unit': '1.5'},
        {'id': 's2', 'cost_per_unit': 4},
    ]
    costs = supplies_cost_map(links, supplies)

    assert costs['a'] == pytest.approx(5.0)
    assert costs['b'] == 0
    assert costs['c'] == 0


def test_supplies_cost_map_empty_inputs():
    assert supplies_cost_map([], [{'id': 's1', 'cost_per_unit': 1}]) == {}
    assert supplies_cost_map([{'product_id': 'a', 'supply_id': 's1', 'quantity': 1}], []) == {'a': 0.0}
