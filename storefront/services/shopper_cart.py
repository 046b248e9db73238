# storefront/services/shopper_cart.py
from decimal import Decimal
from typing import Any, Dict, List

from storefront.domain.shopper import Authenticated, Guest, Shopper
from storefront.services.cart_math import cart_total, cart_item_count
from storefront.services.cart_service import CartService
from storefront.services.guest_cart_service import GuestCartService


class ShopperCart:
    """Routes cart operations to the guest store or the account cart."""

    def __init__(self, carts: CartService, guest_carts: GuestCartService):
        self.carts = carts
        self.guest_carts = guest_carts

    def list(self, shopper: Shopper) -> Dict[str, Any]:
        if isinstance(shopper, Guest):
            items, source = self.guest_carts.list(shopper.id), "guest"
        elif isinstance(shopper, Authenticated):
            items, source = self.carts.list(shopper.id), "account"
        else:
            raise TypeError(f"Unknown shopper variant: {type(shopper).__name__}")
        return _summary(source, items)

    def add(
        self,
        shopper: Shopper,
        product_id: str,
        quantity: Decimal,
        weight_in_grams: int | None = None,
    ) -> Dict[str, Any]:
        if isinstance(shopper, Guest):
            self.guest_carts.add(shopper.id, product_id, quantity, weight_in_grams)
        elif isinstance(shopper, Authenticated):
            self.carts.add(shopper.id, product_id, quantity, weight_in_grams)
        else:
            raise TypeError(f"Unknown shopper variant: {type(shopper).__name__}")
        return self.list(shopper)

    def update(
        self,
        shopper: Shopper,
        item_id: str,
        quantity: Decimal,
        weight_in_grams: int | None = None,
    ) -> Dict[str, Any]:
        if isinstance(shopper, Guest):
            self.guest_carts.update(shopper.id, item_id, quantity, weight_in_grams)
        elif isinstance(shopper, Authenticated):
            self.carts.update(shopper.id, item_id, quantity, weight_in_grams)
        else:
            raise TypeError(f"Unknown shopper variant: {type(shopper).__name__}")
        return self.list(shopper)

    def remove(self, shopper: Shopper, item_id: str) -> Dict[str, Any]:
        if isinstance(shopper, Guest):
            self.guest_carts.remove(shopper.id, item_id)
        elif isinstance(shopper, Authenticated):
            self.carts.remove(shopper.id, item_id)
        else:
            raise TypeError(f"Unknown shopper variant: {type(shopper).__name__}")
        return self.list(shopper)

    def clear(self, shopper: Shopper) -> Dict[str, Any]:
        if isinstance(shopper, Guest):
            self.guest_carts.clear(shopper.id)
        elif isinstance(shopper, Authenticated):
            self.carts.clear(shopper.id)
        else:
            raise TypeError(f"Unknown shopper variant: {type(shopper).__name__}")
        return self.list(shopper)


def _summary(source: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "source": source,
        "items": items,
        "total": cart_total(items),
        "item_count": cart_item_count(items),
    }
