# storefront/api/routers/checkout.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_checkout, get_shopper
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import (
    CheckoutIn,
    CheckoutStateOut,
    OnlineCheckoutCompleteIn,
    OnlineCheckoutDismissIn,
    OnlineCheckoutStartOut,
    OrderOut,
)
from storefront.domain.shopper import Shopper
from storefront.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/cod", response_model=OrderOut, status_code=201)
def place_cod_order(
    payload: CheckoutIn,
    shopper: Shopper = Depends(get_shopper),
    svc: CheckoutService = Depends(get_checkout),
):
    """
    Places a cash-on-delivery order from the current cart.
    """
    try:
        return svc.place_cod_order(shopper, payload.address, payload.notes)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/online/start", response_model=OnlineCheckoutStartOut)
def start_online_checkout(
    payload: CheckoutIn,
    shopper: Shopper = Depends(get_shopper),
    svc: CheckoutService = Depends(get_checkout),
):
    """
    Creates the gateway order; the response carries what the payment widget needs.
    """
    try:
        return svc.start_online(shopper, payload.address)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/online/complete", response_model=OrderOut, status_code=201)
def complete_online_checkout(
    payload: OnlineCheckoutCompleteIn,
    shopper: Shopper = Depends(get_shopper),
    svc: CheckoutService = Depends(get_checkout),
):
    """
    Verifies the widget's payment confirmation, then places a paid order.
    """
    try:
        return svc.complete_online(
            shopper,
            payload.address,
            payload.razorpay_order_id,
            payload.razorpay_payment_id,
            payload.razorpay_signature,
            payload.notes,
        )
    except StorefrontError as e:
        raise http_error(e)


@router.post("/online/dismiss", response_model=CheckoutStateOut)
def dismiss_online_checkout(
    payload: OnlineCheckoutDismissIn,
    shopper: Shopper = Depends(get_shopper),
    svc: CheckoutService = Depends(get_checkout),
):
    try:
        return svc.dismiss_online(shopper, payload.gateway_order_id)
    except StorefrontError as e:
        raise http_error(e)
