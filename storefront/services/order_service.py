# storefront/services/order_service.py
import time
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import StoreError
from storefront.domain.schemas import AddressIn
from storefront.repos.address_repo import AddressRepo
from storefront.repos.base import store_errors
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_math import cart_total, line_price
from storefront.services.catalog_service import product_to_dict
from storefront.utils.settings import ORDER_NUMBER_PREFIX
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

FREE_DELIVERY_THRESHOLD = Decimal("500")
DELIVERY_FEE = Decimal("50")

PAYMENT_COD = "cod"
PAYMENT_ONLINE = "online"
PAYMENT_METHODS = (PAYMENT_COD, PAYMENT_ONLINE)

ADDRESS_SNAPSHOT_FIELDS = (
    "full_name",
    "phone",
    "address_line_1",
    "address_line_2",
    "city",
    "state",
    "postal_code",
)


def compute_totals(cart_items: List[Dict[str, Any]]) -> Dict[str, Decimal]:
    subtotal = cart_total(cart_items)
    delivery_fee = Decimal("0") if subtotal >= FREE_DELIVERY_THRESHOLD else DELIVERY_FEE
    return {
        "subtotal": subtotal,
        "delivery_fee": delivery_fee,
        "total": subtotal + delivery_fee,
    }


def payment_status_for(payment_method: str, gateway_payment_id: str | None) -> str:
    if payment_method == PAYMENT_ONLINE and gateway_payment_id:
        return "paid"
    return "pending"


def new_order_number() -> str:
    return f"{ORDER_NUMBER_PREFIX}{time.time_ns() // 1000}"


def order_to_dict(order: OrderModel, warnings: List[str] | None = None) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "order_number": order.order_number,
        "status": order.status,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "total": order.total,
        "delivery_address": order.delivery_address,
        "notes": order.notes,
        "razorpay_payment_id": order.razorpay_payment_id,
        "razorpay_order_id": order.razorpay_order_id,
        "created_at": order.created_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
                "total_price": i.total_price,
                "products": product_to_dict(i.product) if i.product is not None else None,
            }
            for i in order.items
        ],
        "warnings": list(warnings or []),
    }


class OrderService:
    """
    Order placement and order history.
    Kept separate from the cart services; it only reads the cart snapshot it
    is handed and clears the cart once the order is stored.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.addresses = AddressRepo(db)
        self.carts = CartRepo(db)

    def create_order(
        self,
        user_id: str,
        cart_items: List[Dict[str, Any]],
        address: AddressIn,
        payment_method: str,
        notes: str | None = None,
        gateway_payment_id: str | None = None,
        gateway_order_id: str | None = None,
    ) -> Dict[str, Any]:
        """
        Places an order from the given cart snapshot.

        1. Saves the address (best-effort)
        2. Computes subtotal, delivery fee and total from the snapshot
        3. Stores header and items in one transaction
        4. Clears the cart (best-effort)

        Best-effort failures do not fail the call; they are returned in the
        ``warnings`` list of the result.
        """
        if payment_method not in PAYMENT_METHODS:
            raise ValueError(f"Unknown payment method: {payment_method}")

        warnings: List[str] = []

        if not self._save_address(user_id, address):
            warnings.append("address-not-saved")

        totals = compute_totals(cart_items)
        snapshot = {name: getattr(address, name) for name in ADDRESS_SNAPSHOT_FIELDS}

        order = OrderModel(
            user_id=user_id,
            order_number=new_order_number(),
            status="confirmed",
            payment_method=payment_method,
            payment_status=payment_status_for(payment_method, gateway_payment_id),
            subtotal=totals["subtotal"],
            delivery_fee=totals["delivery_fee"],
            total=totals["total"],
            delivery_address=snapshot,
            notes=notes or None,
            razorpay_payment_id=gateway_payment_id or None,
            razorpay_order_id=gateway_order_id or None,
        )

        try:
            self.repo.add_order(order)
            logger.info(f"Order header {order.order_number} written for {user_id}")

            order_items = []
            for position, item in enumerate(cart_items):
                unit_price = line_price(item)
                quantity = Decimal(str(item["quantity"]))
                order_items.append(
                    OrderItemModel(
                        order_id=order.id,
                        product_id=item["product_id"],
                        position=position,
                        quantity=quantity,
                        unit_price=unit_price,
                        total_price=unit_price * quantity,
                    )
                )
            self.repo.add_order_items(order_items)
            self.repo.commit()
        except SQLAlchemyError as e:
            #header goes away together with the items
            self.repo.rollback()
            logger.error(f"Failed to store order {order.order_number}: {e}")
            raise StoreError(
                "We could not place your order. Please try again.",
                title="Error placing order",
            ) from e

        logger.info(
            f"Order {order.order_number} placed for {user_id}: total {order.total}, "
            f"{payment_method}/{order.payment_status}"
        )

        if not self._clear_cart(user_id):
            warnings.append("cart-not-cleared")

        return order_to_dict(order, warnings)

    def list_orders(self, user_id: str) -> List[Dict[str, Any]]:
        with store_errors(self.db, f"listing orders of {user_id}"):
            orders = self.repo.list_orders(user_id)
            return [order_to_dict(o) for o in orders]

    def get_order(self, order_id: str, user_id: str) -> Dict[str, Any] | None:
        with store_errors(self.db, f"fetching order {order_id}"):
            order = self.repo.get_order(order_id, user_id)
            return order_to_dict(order) if order else None

    #best-effort steps, a failure is logged and reported as a warning
    def _save_address(self, user_id: str, address: AddressIn) -> bool:
        try:
            self.addresses.create_address(AddressModel(user_id=user_id, **address.model_dump()))
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not save address for {user_id}: {e}")
            return False

    def _clear_cart(self, user_id: str) -> bool:
        try:
            self.carts.clear(user_id)
            logger.info(f"Cart of {user_id} cleared after order")
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not clear cart of {user_id} after order: {e}")
            return False
