"""
Tests for the pandas-backed table store.
"""
import pandas as pd
import pytest

from shop_pricing.store.base import MULTIPLE_ROWS, UNIQUE_VIOLATION, DataStoreError, UniqueViolationError
from shop_pricing.store.table_store import TableStore


@pytest.fixture
def store():
    return TableStore.from_records({
        'products': [
            {'id': 'p1', 'name': 'Cards', 'sku': 'CARD', 'unit': 'un'},
            {'id': 'p2', 'name': 'Mug', 'sku': 'MUG', 'unit': 'un'},
            {'id': 'p3', 'name': 'Banner', 'sku': None, 'unit': 'm²'},
        ],
        'price_tiers': [
            {'id': 't1', 'product_id': 'p1', 'min_quantity': '500', 'price': '0.35'},
            {'id': 't2', 'product_id': 'p1', 'min_quantity': '1000', 'price': '0.28'},
            {'id': 't3', 'product_id': 'p1', 'min_quantity': '100', 'price': '0.45'},
        ],
    })


def test_select_with_filters(store):
    rows = store.select('products', eq={'unit': 'un'})
    assert [r['id'] for r in rows] == ['p1', 'p2']


def test_select_unknown_table_or_column(store):
    assert store.select('nope') == []
    assert store.select('products', eq={'nope': 1}) == []


def test_missing_values_come_back_as_none(store):
    assert store.select_one('products', eq={'id': 'p3'})['sku'] is None


def test_order_by_sorts_numbers_numerically(store):
    rows = store.select('price_tiers', order_by='min_quantity')
    assert [r['id'] for r in rows] == ['t3', 't1', 't2']

    rows = store.select('price_tiers', order_by='min_quantity', descending=True, limit=1)
    assert [r['id'] for r in rows] == ['t2']


def test_order_by_unknown_column(store):
    with pytest.raises(DataStoreError) as exc_info:
        store.select('products', order_by='missing')
    assert exc_info.value.code == '42703'


def test_select_one(store):
    assert store.select_one('products', eq={'id': 'zzz'}) is None
    with pytest.raises(DataStoreError) as exc_info:
        store.select_one('products', eq={'unit': 'un'})
    assert exc_info.value.code == MULTIPLE_ROWS


def test_insert_assigns_id(store):
    stored = store.insert('price_tiers', {'product_id': 'p2', 'min_quantity': 10, 'price': 30})[0]

    assert stored['id']
    assert store.select_one('price_tiers', eq={'id': stored['id']})['product_id'] == 'p2'


def test_insert_into_new_table(store):
    store.insert('supplies', [{'id': 's1', 'cost_per_unit': 1}, {'id': 's2', 'cost_per_unit': 2}])
    assert len(store.select('supplies')) == 2


def test_duplicate_sku_is_unique_violation(store):
    with pytest.raises(UniqueViolationError) as exc_info:
        store.insert('products', {'name': 'Other cards', 'sku': 'CARD'})

    assert exc_info.value.code == UNIQUE_VIOLATION
    assert exc_info.value.column == 'sku'
    assert len(store.select('products')) == 3


def test_blank_skus_are_not_compared(store):
    store.insert('products', {'name': 'Poster', 'sku': None})
    store.insert('products', {'name': 'Canvas', 'sku': ''})
    assert len(store.select('products')) == 5


def test_update(store):
    updated = store.update('products', {'name': 'Ceramic Mug'}, eq={'id': 'p2'})

    assert updated[0]['name'] == 'Ceramic Mug'
    assert store.select_one('products', eq={'id': 'p2'})['name'] == 'Ceramic Mug'
    assert store.update('products', {'name': 'x'}, eq={'id': 'zzz'}) == []


def test_update_checks_unique_columns(store):
    with pytest.raises(UniqueViolationError):
        store.update('products', {'sku': 'MUG'}, eq={'id': 'p1'})
    # Keeping its own value is fine
    store.update('products', {'sku': 'MUG'}, eq={'id': 'p2'})


def test_delete(store):
    removed = store.delete('price_tiers', eq={'id': 't1'})

    assert [r['id'] for r in removed] == ['t1']
    assert len(store.select('price_tiers')) == 2
    assert store.delete('price_tiers', eq={'id': 't1'}) == []


def test_save_and_reload(store, tmp_path):
    store.save(tmp_path)
    reloaded = TableStore.from_directory(tmp_path)

    assert reloaded.table_names() == ['price_tiers', 'products']
    assert reloaded.select_one('products', eq={'id': 'p1'})['sku'] == 'CARD'
    assert reloaded.select_one('products', eq={'id': 'p3'})['sku'] is None


def test_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        TableStore.from_directory(tmp_path / 'missing')


def test_from_workbook(tmp_path):
    workbook = tmp_path / 'catalog.xlsx'
    with pd.ExcelWriter(workbook, engine='openpyxl') as writer:
        pd.DataFrame([{'id': 'p1', 'sku': 'CARD'}]).to_excel(writer, sheet_name='products', index=False)
        pd.DataFrame([{'id': 's1', 'cost_per_unit': 0.04}]).to_excel(writer, sheet_name='supplies', index=False)

    store = TableStore.from_workbook(workbook)

    assert store.table_names() == ['products', 'supplies']
    assert store.select_one('supplies', eq={'id': 's1'})['cost_per_unit'] == '0.04'
