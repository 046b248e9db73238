# storefront/services/cart_math.py
from decimal import Decimal
from typing import Any, Dict, Iterable


def line_price(item: Dict[str, Any]) -> Decimal:
    """Unit price from the product attached to a cart line (0 if missing)."""
    product = item.get("products") or {}
    return Decimal(str(product.get("price") or 0))


def cart_total(items: Iterable[Dict[str, Any]]) -> Decimal:
    return sum(
        (line_price(i) * Decimal(str(i["quantity"])) for i in items),
        Decimal("0.00"),
    )


def cart_item_count(items: Iterable[Dict[str, Any]]) -> Decimal:
    return sum((Decimal(str(i["quantity"])) for i in items), Decimal("0"))
