from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from storefront.data.models import CartItemModel
from storefront.domain.errors import NotFoundError, StoreError
from storefront.services.cart_service import CartService

USER = "user-1"


def test_add_same_product_twice_keeps_one_row(carts, catalog_data, db):
    carts.add(USER, catalog_data["tomato"], Decimal("1"), 100)
    carts.add(USER, catalog_data["tomato"], Decimal("2"), 200)

    rows = db.execute(select(CartItemModel).where(CartItemModel.user_id == USER)).scalars().unique().all()
    assert len(rows) == 1
    assert rows[0].quantity == Decimal("3")
    assert rows[0].weight_in_grams == 300


def test_list_attaches_product(carts, catalog_data):
    carts.add(USER, catalog_data["apple"], Decimal("2"))

    items = carts.list(USER)
    assert items[0]["products"]["name"] == "Apple"
    assert CartService.total(items) == Decimal("300")
    assert CartService.item_count(items) == Decimal("2")


def test_carts_are_per_user(carts, catalog_data):
    carts.add(USER, catalog_data["apple"])
    assert carts.list("user-2") == []


def test_update_sets_quantity_and_weight(carts, catalog_data):
    carts.add(USER, catalog_data["tomato"])
    item_id = carts.list(USER)[0]["id"]

    carts.update(USER, item_id, Decimal("1.5"), 1500)

    item = carts.list(USER)[0]
    assert item["quantity"] == Decimal("1.5")
    assert item["weight_in_grams"] == 1500


def test_update_to_zero_removes(carts, catalog_data):
    carts.add(USER, catalog_data["tomato"])
    item_id = carts.list(USER)[0]["id"]

    carts.update(USER, item_id, Decimal("0"))
    assert carts.list(USER) == []


def test_remove_of_other_users_item_is_not_found(carts, catalog_data):
    carts.add(USER, catalog_data["tomato"])
    item_id = carts.list(USER)[0]["id"]

    with pytest.raises(NotFoundError):
        carts.remove("user-2", item_id)
    assert len(carts.list(USER)) == 1


def test_clear(carts, catalog_data):
    carts.add(USER, catalog_data["tomato"])
    carts.add(USER, catalog_data["apple"])

    assert carts.clear(USER) == 2
    assert carts.list(USER) == []


def test_non_positive_quantity_rejected(carts, catalog_data):
    with pytest.raises(ValueError):
        carts.add(USER, catalog_data["tomato"], Decimal("-1"))


def test_concurrent_insert_falls_back_to_increment(carts, catalog_data, db):
    """Another session inserted the same product between our read and insert."""
    carts.add(USER, catalog_data["tomato"], Decimal("2"))

    real_get_item = carts.repo.get_item
    calls = []

    def stale_get_item(user_id, product_id):
        calls.append(product_id)
        if len(calls) == 1:
            return None
        return real_get_item(user_id, product_id)

    carts.repo.get_item = stale_get_item
    carts.add(USER, catalog_data["tomato"], Decimal("3"))

    items = carts.list(USER)
    assert len(items) == 1
    assert items[0]["quantity"] == Decimal("5")


def test_store_failure_raises_store_error(carts):
    def broken(user_id):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    carts.repo.list_items = broken
    with pytest.raises(StoreError):
        carts.list(USER)
