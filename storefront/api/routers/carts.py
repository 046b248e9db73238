#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_shopper, get_shopper_cart
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CartItemIn, CartItemUpdate, CartOut
from storefront.domain.shopper import Shopper
from storefront.services.shopper_cart import ShopperCart

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    shopper: Shopper = Depends(get_shopper),
    svc: ShopperCart = Depends(get_shopper_cart),
):
    try:
        return svc.list(shopper)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    shopper: Shopper = Depends(get_shopper),
    svc: ShopperCart = Depends(get_shopper_cart),
):
    try:
        return svc.add(shopper, payload.product_id, payload.quantity, payload.weight_in_grams)
    except StorefrontError as e:
        raise http_error(e)


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: str,
    payload: CartItemUpdate,
    shopper: Shopper = Depends(get_shopper),
    svc: ShopperCart = Depends(get_shopper_cart),
):
    try:
        return svc.update(shopper, item_id, payload.quantity, payload.weight_in_grams)
    except StorefrontError as e:
        raise http_error(e)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: str,
    shopper: Shopper = Depends(get_shopper),
    svc: ShopperCart = Depends(get_shopper_cart),
):
    try:
        return svc.remove(shopper, item_id)
    except StorefrontError as e:
        raise http_error(e)


@router.delete("", response_model=CartOut)
def clear_cart(
    shopper: Shopper = Depends(get_shopper),
    svc: ShopperCart = Depends(get_shopper_cart),
):
    try:
        return svc.clear(shopper)
    except StorefrontError as e:
        raise http_error(e)
