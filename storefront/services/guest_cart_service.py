# storefront/services/guest_cart_service.py
import json
import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List

import redis
from redis.exceptions import WatchError

from storefront.domain.errors import NotFoundError
from storefront.services.cart_math import cart_total, cart_item_count
from storefront.services.catalog_service import CatalogService
from storefront.utils.settings import REDIS_URL, GUEST_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

GuestItems = List[Dict[str, Any]]


def _new_local_id() -> str:
    return f"guest_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _missing_item() -> NotFoundError:
    return NotFoundError("This item is no longer in your cart.", title="Cart item not found")


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Cannot encode {type(value).__name__}")


class GuestCartService:
    """
    Cart and identity of a shopper who has not signed in.

    Two JSON values per guest:
    - guest:<id>:user  the guest identity
    - guest:<id>:cart  the full list of line items, each with a product
      snapshot taken when it was added (never refreshed)

    Every mutation rewrites the whole list. The read-modify-write runs under
    WATCH/MULTI, so a write from another tab forces a re-read instead of
    silently dropping the other tab's change.
    """

    def __init__(self, catalog: CatalogService, client: redis.Redis | None = None, ttl: int = GUEST_TTL_SECONDS):
        self.catalog = catalog
        self.redis = client or redis.Redis.from_url(REDIS_URL, decode_responses=True)
        self.ttl = ttl

    @staticmethod
    def _user_key(guest_id: str) -> str:
        return f"guest:{guest_id}:user"

    @staticmethod
    def _cart_key(guest_id: str) -> str:
        return f"guest:{guest_id}:cart"

    #identity
    def create_guest(self) -> str:
        guest_id = _new_local_id()
        self.redis.set(
            self._user_key(guest_id),
            json.dumps({"id": guest_id, "type": "guest"}),
            ex=self.ttl,
        )
        logger.info(f"Created guest {guest_id}")
        return guest_id

    def get_guest(self, guest_id: str) -> Dict[str, Any] | None:
        raw = self.redis.get(self._user_key(guest_id))
        if not raw:
            return None
        try:
            guest = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Unreadable identity for guest {guest_id}")
            return None
        return guest if guest.get("type") == "guest" else None

    def clear_guest(self, guest_id: str) -> None:
        self.redis.delete(self._user_key(guest_id), self._cart_key(guest_id))
        logger.info(f"Cleared guest {guest_id}")

    #query
    def list(self, guest_id: str) -> GuestItems:
        return self._decode(guest_id, self.redis.get(self._cart_key(guest_id)))

    #commands
    def add(
        self,
        guest_id: str,
        product_id: str,
        quantity: Decimal = Decimal("1"),
        weight_in_grams: int | None = None,
    ) -> GuestItems:
        quantity = Decimal(str(quantity))
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        def mutate(items: GuestItems) -> GuestItems:
            for item in items:
                if item["product_id"] == product_id:
                    item["quantity"] = Decimal(str(item["quantity"])) + quantity
                    if weight_in_grams:
                        item["weight_in_grams"] = (item.get("weight_in_grams") or 0) + weight_in_grams
                    return items

            snapshot = self.catalog.get_product(product_id)
            items.append(
                {
                    "id": _new_local_id(),
                    "product_id": product_id,
                    "quantity": quantity,
                    "weight_in_grams": weight_in_grams,
                    "products": snapshot,
                }
            )
            return items

        return self._mutate(guest_id, mutate)

    def update(
        self,
        guest_id: str,
        item_id: str,
        quantity: Decimal,
        weight_in_grams: int | None = None,
    ) -> GuestItems:
        quantity = Decimal(str(quantity))

        def mutate(items: GuestItems) -> GuestItems:
            if not any(i["id"] == item_id for i in items):
                raise _missing_item()
            if quantity <= 0:
                return [i for i in items if i["id"] != item_id]
            for item in items:
                if item["id"] == item_id:
                    item["quantity"] = quantity
                    if weight_in_grams is not None:
                        item["weight_in_grams"] = weight_in_grams
            return items

        return self._mutate(guest_id, mutate)

    def remove(self, guest_id: str, item_id: str) -> GuestItems:
        def mutate(items: GuestItems) -> GuestItems:
            remaining = [i for i in items if i["id"] != item_id]
            if len(remaining) == len(items):
                raise _missing_item()
            return remaining

        return self._mutate(guest_id, mutate)

    def remove_items(self, guest_id: str, item_ids: List[str]) -> GuestItems:
        """Drops the given lines; ids already gone are skipped."""
        ids = set(item_ids)
        return self._mutate(guest_id, lambda items: [i for i in items if i["id"] not in ids])

    def clear(self, guest_id: str) -> None:
        self.redis.delete(self._cart_key(guest_id))

    @staticmethod
    def total(items: GuestItems) -> Decimal:
        return cart_total(items)

    @staticmethod
    def item_count(items: GuestItems) -> Decimal:
        return cart_item_count(items)

    def _mutate(self, guest_id: str, mutator: Callable[[GuestItems], GuestItems]) -> GuestItems:
        key = self._cart_key(guest_id)
        with self.redis.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(key)
                    items = mutator(self._decode(guest_id, pipe.get(key)))
                    pipe.multi()
                    if items:
                        pipe.set(key, json.dumps(items, default=_json_default), ex=self.ttl)
                    else:
                        pipe.delete(key)
                    #cart activity keeps the identity alive too
                    pipe.expire(self._user_key(guest_id), self.ttl)
                    pipe.execute()
                    return items
                except WatchError:
                    logger.info(f"Guest cart {guest_id} changed concurrently, retrying")

    @staticmethod
    def _decode(guest_id: str, raw: str | None) -> GuestItems:
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Unreadable cart for guest {guest_id}, starting empty")
            return []
        for item in items:
            item["quantity"] = Decimal(str(item["quantity"]))
        return items
