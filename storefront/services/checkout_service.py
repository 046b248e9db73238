# storefront/services/checkout_service.py
import re
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List

from storefront.domain.errors import CheckoutValidationError, PaymentError, StorefrontError
from storefront.domain.schemas import AddressIn
from storefront.domain.shopper import Authenticated, Shopper, require_authenticated
from storefront.services.cart_service import CartService
from storefront.services.checkout_flow import CheckoutFlowStore, CheckoutState, InvalidTransition
from storefront.services.order_service import OrderService, compute_totals, PAYMENT_COD, PAYMENT_ONLINE
from storefront.services.payment_gateway import PaymentGateway
from storefront.utils.settings import CURRENCY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("full_name", "phone", "address_line_1", "postal_code")
PHONE_RE = re.compile(r"^[6-9]\d{9}$")
POSTAL_CODE_RE = re.compile(r"^\d{6}$")


def validate_address(address: AddressIn) -> None:
    if any(not (getattr(address, name) or "").strip() for name in REQUIRED_ADDRESS_FIELDS):
        raise CheckoutValidationError(
            "Please fill in all required delivery information.",
            title="Missing required fields",
        )

    if not PHONE_RE.match(re.sub(r"\D", "", address.phone)):
        raise CheckoutValidationError(
            "Please enter a valid 10-digit phone number.",
            title="Invalid phone number",
        )

    if not POSTAL_CODE_RE.match(address.postal_code.strip()):
        raise CheckoutValidationError(
            "Please enter a valid 6-digit postal code.",
            title="Invalid postal code",
        )


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CheckoutService:
    """
    Checkout for signed-in shoppers.

    Cash on delivery places the order straight away. Online payment goes
    through the gateway first and the order is only created after the
    gateway's signature over the payment has been verified.
    """

    def __init__(
        self,
        carts: CartService,
        orders: OrderService,
        gateway: PaymentGateway,
        flows: CheckoutFlowStore,
    ):
        self.carts = carts
        self.orders = orders
        self.gateway = gateway
        self.flows = flows

    def _prepare(self, shopper: Shopper, address: AddressIn) -> tuple[Authenticated, List[Dict[str, Any]]]:
        user = require_authenticated(shopper)
        validate_address(address)

        cart_items = self.carts.list(user.id)
        if not cart_items:
            raise CheckoutValidationError("Your cart is empty.", title="Invalid order")
        return user, cart_items

    def place_cod_order(self, shopper: Shopper, address: AddressIn, notes: str | None = None) -> Dict[str, Any]:
        user, cart_items = self._prepare(shopper, address)
        order = self.orders.create_order(user.id, cart_items, address, PAYMENT_COD, _clean(notes))
        logger.info(f"COD order {order['order_number']} placed for {user.id}")
        return order

    def start_online(self, shopper: Shopper, address: AddressIn) -> Dict[str, Any]:
        user, cart_items = self._prepare(shopper, address)
        totals = compute_totals(cart_items)
        amount = to_minor_units(totals["total"])

        gateway_order = self.gateway.create_gateway_order(
            amount, CURRENCY, f"order_{int(time.time() * 1000)}"
        )
        gateway_order_id = gateway_order["gateway_order_id"]

        self.flows.open(gateway_order_id, user.id, gateway_order["amount"])
        self.flows.advance(gateway_order_id, CheckoutState.GATEWAY_ORDER_CREATED, CheckoutState.WIDGET_OPEN)

        return {
            "state": CheckoutState.WIDGET_OPEN.value,
            "gateway_order_id": gateway_order_id,
            "amount": gateway_order["amount"],
            "currency": gateway_order["currency"],
            "public_key": gateway_order["public_key"],
            **totals,
        }

    def complete_online(
        self,
        shopper: Shopper,
        address: AddressIn,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        notes: str | None = None,
    ) -> Dict[str, Any]:
        user, cart_items = self._prepare(shopper, address)
        self._owned_flow(user, gateway_order_id)

        try:
            self.flows.advance(gateway_order_id, CheckoutState.WIDGET_OPEN, CheckoutState.PAYMENT_SUCCEEDED)
            self.flows.advance(gateway_order_id, CheckoutState.PAYMENT_SUCCEEDED, CheckoutState.VERIFYING)
            verified = self.gateway.verify_payment(gateway_order_id, gateway_payment_id, signature)

            if not verified:
                self.flows.advance(gateway_order_id, CheckoutState.VERIFYING, CheckoutState.VERIFICATION_FAILED)
                self._abandon(gateway_order_id, CheckoutState.VERIFICATION_FAILED)
                raise PaymentError("We could not verify your payment. Please contact support.")

            self.flows.advance(gateway_order_id, CheckoutState.VERIFYING, CheckoutState.VERIFIED)
        except InvalidTransition as e:
            #replayed, dismissed or expired
            logger.warning(f"Rejected completion of checkout {gateway_order_id}: {e}")
            raise PaymentError("This payment session is no longer active.") from e

        try:
            flow = self.flows.get(gateway_order_id)
            if flow is None:
                raise PaymentError(
                    "Your payment session expired before the order was placed. Please contact support.",
                    title="Order not placed",
                )
            if to_minor_units(compute_totals(cart_items)["total"]) != int(flow["amount"]):
                raise PaymentError(
                    "Your cart changed during payment. Please contact support.",
                    title="Order not placed",
                )

            order = self.orders.create_order(
                user.id,
                cart_items,
                address,
                PAYMENT_ONLINE,
                _clean(notes),
                gateway_payment_id,
                gateway_order_id,
            )
        except StorefrontError:
            self._abandon(gateway_order_id, CheckoutState.VERIFIED)
            raise

        try:
            self.flows.advance(gateway_order_id, CheckoutState.VERIFIED, CheckoutState.ORDER_CREATED)
        except InvalidTransition as e:
            #the order is stored, only the flow record is gone
            logger.warning(f"Checkout {gateway_order_id} not marked complete: {e}")
        logger.info(f"Online order {order['order_number']} placed for {user.id}")
        return order

    def dismiss_online(self, shopper: Shopper, gateway_order_id: str) -> Dict[str, str]:
        user = require_authenticated(shopper)
        self._owned_flow(user, gateway_order_id)

        try:
            self.flows.advance(gateway_order_id, CheckoutState.WIDGET_OPEN, CheckoutState.WIDGET_DISMISSED)
        except InvalidTransition as e:
            raise PaymentError("This payment session is no longer active.") from e
        self.flows.advance(gateway_order_id, CheckoutState.WIDGET_DISMISSED, CheckoutState.IDLE)

        return {"gateway_order_id": gateway_order_id, "state": CheckoutState.IDLE.value}

    def _abandon(self, gateway_order_id: str, current: CheckoutState) -> None:
        try:
            self.flows.advance(gateway_order_id, current, CheckoutState.ERROR)
        except InvalidTransition as e:
            logger.warning(f"Checkout {gateway_order_id} could not be moved to error: {e}")

    def _owned_flow(self, user: Authenticated, gateway_order_id: str) -> Dict[str, str]:
        flow = self.flows.get(gateway_order_id)
        if not flow or flow.get("user_id") != user.id:
            raise PaymentError("This payment session is no longer active.")
        return flow


def _clean(notes: str | None) -> str | None:
    return notes.strip() or None if notes else None
