from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select

from storefront.data.models import OrderModel
from storefront.domain.errors import AuthenticationError, CheckoutValidationError, PaymentError
from storefront.domain.shopper import Authenticated, Guest
from storefront.services.checkout_flow import CheckoutFlowStore, CheckoutState, InvalidTransition
from storefront.services.checkout_service import CheckoutService, to_minor_units, validate_address
from storefront.services.payment_gateway import payment_signature

from tests.conftest import GATEWAY_SECRET


@pytest.fixture
def flows(redis_client):
    return CheckoutFlowStore(redis_client)


@pytest.fixture
def checkout(carts, orders, gateway, flows):
    return CheckoutService(carts, orders, gateway, flows)


@pytest.fixture
def filled_cart(carts, catalog_data, user):
    carts.add(user.id, catalog_data["tomato"], Decimal("2"))
    carts.add(user.id, catalog_data["apple"], Decimal("1"))


def _order_count(db):
    return db.execute(select(func.count()).select_from(OrderModel)).scalar_one()


@pytest.mark.parametrize(
    "field,value,title",
    [
        ("full_name", "  ", "Missing required fields"),
        ("address_line_1", "", "Missing required fields"),
        ("phone", "12345", "Invalid phone number"),
        ("phone", "5876543210", "Invalid phone number"),
        ("phone", "+91 98765 43210", "Invalid phone number"),
        ("postal_code", "62700", "Invalid postal code"),
        ("postal_code", "6270O1", "Invalid postal code"),
    ],
)
def test_validate_address_rejects(address, field, value, title):
    with pytest.raises(CheckoutValidationError) as exc_info:
        validate_address(address.model_copy(update={field: value}))
    assert exc_info.value.title == title


def test_validate_address_accepts_formatted_phone(address):
    validate_address(address.model_copy(update={"phone": "98765-43210"}))


def test_to_minor_units():
    assert to_minor_units(Decimal("549.00")) == 54900
    assert to_minor_units(Decimal("10.005")) == 1001


def test_guest_cannot_check_out(checkout, address):
    with pytest.raises(AuthenticationError):
        checkout.place_cod_order(Guest(id="guest_1"), address)


def test_invalid_address_checked_before_cart_is_read(checkout, user, address):
    checkout.carts = MagicMock()
    with pytest.raises(CheckoutValidationError):
        checkout.place_cod_order(user, address.model_copy(update={"phone": "123"}))
    checkout.carts.list.assert_not_called()


def test_empty_cart_rejected(checkout, user, address, catalog_data):
    with pytest.raises(CheckoutValidationError):
        checkout.place_cod_order(user, address)


def test_cod_order(checkout, user, address, filled_cart, carts):
    order = checkout.place_cod_order(user, address, "  leave at door ")

    assert order["payment_method"] == "cod"
    assert order["payment_status"] == "pending"
    assert order["total"] == Decimal("280")
    assert order["notes"] == "leave at door"
    assert carts.list(user.id) == []


def _complete(checkout, user, address, started, payment_id="pay_1", signature=None):
    gateway_order_id = started["gateway_order_id"]
    if signature is None:
        signature = payment_signature(gateway_order_id, payment_id, GATEWAY_SECRET)
    return checkout.complete_online(user, address, gateway_order_id, payment_id, signature)


def test_online_checkout_places_paid_order_once(checkout, user, address, filled_cart, flows, db):
    started = checkout.start_online(user, address)

    assert started["state"] == "widget-open"
    assert started["amount"] == 28000
    assert started["public_key"] == "rzp_test_key"

    order = _complete(checkout, user, address, started)

    assert order["payment_method"] == "online"
    assert order["payment_status"] == "paid"
    assert order["razorpay_payment_id"] == "pay_1"
    assert order["razorpay_order_id"] == started["gateway_order_id"]
    assert flows.get(started["gateway_order_id"])["state"] == CheckoutState.ORDER_CREATED.value

    #a replayed confirmation does not place a second order
    with pytest.raises(PaymentError):
        _complete(checkout, user, address, started)
    assert _order_count(db) == 1


def test_bad_signature_places_no_order(checkout, user, address, filled_cart, flows, db, carts):
    started = checkout.start_online(user, address)

    with pytest.raises(PaymentError):
        _complete(checkout, user, address, started, signature="0" * 64)

    assert _order_count(db) == 0
    assert flows.get(started["gateway_order_id"])["state"] == CheckoutState.ERROR.value
    assert len(carts.list(user.id)) == 2


def test_cart_changed_during_payment(checkout, user, address, filled_cart, flows, carts, catalog_data, db):
    started = checkout.start_online(user, address)
    carts.add(user.id, catalog_data["potato"], Decimal("1"))

    with pytest.raises(PaymentError):
        _complete(checkout, user, address, started)

    assert _order_count(db) == 0
    assert flows.get(started["gateway_order_id"])["state"] == CheckoutState.ERROR.value


def test_other_user_cannot_complete(checkout, user, address, filled_cart, carts, catalog_data):
    started = checkout.start_online(user, address)

    other = Authenticated(id="user-2", email="ravi@example.com", access_token="token-2")
    carts.add(other.id, catalog_data["apple"], Decimal("1"))

    with pytest.raises(PaymentError):
        _complete(checkout, other, address, started)


def test_dismiss_returns_to_idle(checkout, user, address, filled_cart, flows, db):
    started = checkout.start_online(user, address)

    result = checkout.dismiss_online(user, started["gateway_order_id"])
    assert result["state"] == "idle"

    with pytest.raises(PaymentError):
        _complete(checkout, user, address, started)
    assert _order_count(db) == 0


def test_gateway_failure_opens_no_flow(checkout, user, address, filled_cart, redis_client):
    def failing(*args, **kwargs):
        raise PaymentError()

    checkout.gateway.create_gateway_order = failing
    with pytest.raises(PaymentError):
        checkout.start_online(user, address)
    assert redis_client.keys("checkout:*") == []


def test_flow_store_rejects_skipped_states(flows):
    flows.open("order_1", "user-1", 100)

    with pytest.raises(InvalidTransition):
        flows.advance("order_1", CheckoutState.GATEWAY_ORDER_CREATED, CheckoutState.VERIFIED)
    with pytest.raises(InvalidTransition):
        flows.advance("order_1", CheckoutState.WIDGET_OPEN, CheckoutState.PAYMENT_SUCCEEDED)

    flows.advance("order_1", CheckoutState.GATEWAY_ORDER_CREATED, CheckoutState.WIDGET_OPEN)
    assert flows.get("order_1") == {"state": "widget-open", "user_id": "user-1", "amount": "100"}


def test_flow_expires(flows, redis_client):
    flows.open("order_1", "user-1", 100)
    assert 0 < redis_client.ttl("checkout:order_1") <= flows.ttl


def test_flow_expiring_during_verification(checkout, user, address, filled_cart, redis_client, db, carts):
    started = checkout.start_online(user, address)
    real_verify = checkout.gateway.verify_payment

    def verify_then_expire(order_id, payment_id, signature):
        redis_client.delete(f"checkout:{order_id}")
        return real_verify(order_id, payment_id, signature)

    checkout.gateway.verify_payment = verify_then_expire
    with pytest.raises(PaymentError):
        _complete(checkout, user, address, started)

    assert _order_count(db) == 0
    assert len(carts.list(user.id)) == 2


def test_flow_gone_after_verification(checkout, user, address, filled_cart, flows, db):
    """Flow readable for the ownership check, missing when the amount is compared."""
    started = checkout.start_online(user, address)
    real_get = flows.get
    calls = []

    def get_then_missing(gateway_order_id):
        calls.append(gateway_order_id)
        return real_get(gateway_order_id) if len(calls) == 1 else None

    flows.get = get_then_missing
    with pytest.raises(PaymentError) as exc_info:
        _complete(checkout, user, address, started)

    assert exc_info.value.title == "Order not placed"
    assert _order_count(db) == 0
    assert real_get(started["gateway_order_id"])["state"] == CheckoutState.ERROR.value
