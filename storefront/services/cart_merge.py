# storefront/services/cart_merge.py
from dataclasses import dataclass, field
from typing import List

from storefront.domain.errors import StorefrontError
from storefront.services.cart_service import CartService
from storefront.services.guest_cart_service import GuestCartService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class MergeResult:
    migrated: int = 0
    #product ids that stayed in the guest cart
    failed: List[str] = field(default_factory=list)


class CartMergeService:
    """
    Moves a guest cart into the signed-in shopper's cart.

    Quantity and weight are both carried over. Items are removed from the
    guest cart only once they are in the user's cart; an item whose migration
    failed stays behind and is reported in ``MergeResult.failed``.
    """

    def __init__(self, guest_carts: GuestCartService, carts: CartService):
        self.guest_carts = guest_carts
        self.carts = carts

    def merge(self, guest_id: str, user_id: str) -> MergeResult:
        result = MergeResult()
        guest_items = self.guest_carts.list(guest_id)
        if not guest_items:
            return result

        migrated_ids = []
        for item in guest_items:
            try:
                self.carts.add(
                    user_id,
                    item["product_id"],
                    item["quantity"],
                    item.get("weight_in_grams"),
                )
            except (StorefrontError, ValueError) as e:
                logger.warning(f"Could not migrate guest item {item['product_id']} to {user_id}: {e}")
                result.failed.append(item["product_id"])
                continue
            migrated_ids.append(item["id"])

        result.migrated = len(migrated_ids)
        self.guest_carts.remove_items(guest_id, migrated_ids)

        logger.info(
            f"Merged guest cart {guest_id} into {user_id}: "
            f"{result.migrated} migrated, {len(result.failed)} failed"
        )
        return result
