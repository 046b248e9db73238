# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends

from storefront.api.deps import get_orders, get_shopper
from storefront.api.errors import http_error
from storefront.domain.errors import NotFoundError, StorefrontError
from storefront.domain.schemas import OrderOut
from storefront.domain.shopper import Shopper, require_authenticated
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderOut])
def list_orders(
    shopper: Shopper = Depends(get_shopper),
    svc: OrderService = Depends(get_orders),
):
    """
    Order history of the signed-in shopper, newest first.
    """
    try:
        user = require_authenticated(shopper)
        return svc.list_orders(user.id)
    except StorefrontError as e:
        raise http_error(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    shopper: Shopper = Depends(get_shopper),
    svc: OrderService = Depends(get_orders),
):
    try:
        user = require_authenticated(shopper)
        order = svc.get_order(order_id, user.id)
    except StorefrontError as e:
        raise http_error(e)

    if order is None:
        raise http_error(NotFoundError("We could not find this order.", title="Order not found"))
    return order
