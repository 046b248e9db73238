# storefront/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import NotFoundError
from storefront.repos.base import store_errors
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_math import cart_total, cart_item_count
from storefront.services.catalog_service import product_to_dict
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def cart_item_to_dict(item: CartItemModel) -> Dict[str, Any]:
    return {
        "id": item.id,
        "user_id": item.user_id,
        "product_id": item.product_id,
        "quantity": item.quantity,
        "weight_in_grams": item.weight_in_grams,
        "created_at": item.created_at,
        "products": product_to_dict(item.product) if item.product is not None else None,
    }


class CartService:
    """
    Cart of a signed-in shopper, one row per (user, product).
    Store failures propagate as StoreError, nothing is retried.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)

    #query
    def list(self, user_id: str) -> List[Dict[str, Any]]:
        with store_errors(self.db, f"listing cart of {user_id}"):
            items = self.repo.list_items(user_id)
        return [cart_item_to_dict(i) for i in items]

    #commands
    def add(
        self,
        user_id: str,
        product_id: str,
        quantity: Decimal = Decimal("1"),
        weight_in_grams: int | None = None,
    ) -> None:
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")
        weight = weight_in_grams or 0

        with store_errors(self.db, f"adding {product_id} to cart of {user_id}"):
            existing = self.repo.get_item(user_id, product_id)

            if existing:
                logger.info(f"Product {product_id} already in cart of {user_id}, adding {quantity}")
                self.repo.increment_item(existing.id, quantity, weight)
                return

            try:
                self.repo.insert_item(
                    CartItemModel(
                        user_id=user_id,
                        product_id=product_id,
                        quantity=quantity,
                        weight_in_grams=weight,
                    )
                )
                logger.info(f"Added product {product_id} to cart of {user_id}")
            except IntegrityError:
                #another session inserted the same product first
                self.repo.rollback()
                existing = self.repo.get_item(user_id, product_id)
                if existing is None:
                    raise
                logger.info(f"Concurrent insert of {product_id} for {user_id}, incrementing instead")
                self.repo.increment_item(existing.id, quantity, weight)

    def update(
        self,
        user_id: str,
        item_id: str,
        quantity: Decimal,
        weight_in_grams: int | None = None,
    ) -> None:
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            self.remove(user_id, item_id)
            return

        values: Dict[str, Any] = {"quantity": quantity}
        if weight_in_grams is not None:
            values["weight_in_grams"] = weight_in_grams

        with store_errors(self.db, f"updating cart item {item_id}"):
            rowcount = self.repo.update_item(item_id, user_id, values)
        if rowcount == 0:
            raise NotFoundError("This item is no longer in your cart.", title="Cart item not found")

    def remove(self, user_id: str, item_id: str) -> None:
        with store_errors(self.db, f"removing cart item {item_id}"):
            rowcount = self.repo.delete_item(item_id, user_id)
        if rowcount == 0:
            raise NotFoundError("This item is no longer in your cart.", title="Cart item not found")
        logger.info(f"Removed cart item {item_id} of {user_id}")

    def clear(self, user_id: str) -> int:
        with store_errors(self.db, f"clearing cart of {user_id}"):
            removed = self.repo.clear(user_id)
        logger.info(f"Cleared {removed} items from cart of {user_id}")
        return removed

    @staticmethod
    def total(items: List[Dict[str, Any]]) -> Decimal:
        return cart_total(items)

    @staticmethod
    def item_count(items: List[Dict[str, Any]]) -> Decimal:
        return cart_item_count(items)
