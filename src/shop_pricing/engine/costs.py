"""
Supply cost aggregation.

The supplies cost of a product is the sum over its supplies of
``quantity × cost_per_unit``. Callers compute it once per product and hand it
to the resolver.
"""
from typing import Iterable

import pandas as pd

from .models import ProductSupply, Supply, to_amount


def supplies_cost(product_supplies: Iterable[ProductSupply], supplies: Iterable[Supply]) -> float:
    """Supplies cost for one product; unknown supplies cost nothing."""
    cost_by_id = {s.id: s.cost_per_unit for s in supplies}
    return sum(
        ps.quantity * cost_by_id.get(ps.supply_id, 0.0)
        for ps in product_supplies
    )


def supplies_cost_map(product_supply_rows: list[dict], supply_rows: list[dict]) -> dict[str, float]:
    """
    Aggregate supplies cost per product from raw data-store rows.

    Args:
        product_supply_rows: rows of the product_supplies table
        supply_rows: rows of the supplies table

    Returns:
        Dict of {product_id: supplies cost}
    """
    if not product_supply_rows:
        return {}

    links = pd.DataFrame(product_supply_rows)
    if 'product_id' not in links.columns or 'supply_id' not in links.columns:
        return {}
    links = links.dropna(subset=['product_id']).copy()
    links['product_id'] = links['product_id'].astype(str)
    links['supply_id'] = links['supply_id'].astype(str)
    if 'quantity' not in links.columns:
        links['quantity'] = 0.0
    links['quantity'] = links['quantity'].map(to_amount)

    costs = pd.DataFrame(supply_rows or [], columns=['id', 'cost_per_unit'])
    costs = costs.rename(columns={'id': 'supply_id'})
    costs['supply_id'] = costs['supply_id'].astype(str)
    costs['cost_per_unit'] = costs['cost_per_unit'].map(to_amount)
    costs = costs.drop_duplicates('supply_id')

    merged = links.merge(costs, on='supply_id', how='left')
    merged['cost_per_unit'] = merged['cost_per_unit'].fillna(0.0)
    merged['line_cost'] = merged['quantity'] * merged['cost_per_unit']

    totals = merged.groupby('product_id')['line_cost'].sum()
    return {str(pid): float(total) for pid, total in totals.items()}
