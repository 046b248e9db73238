# storefront/api/deps.py
from functools import lru_cache

import redis
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from storefront.api.errors import http_error
from storefront.data.database import get_db
from storefront.domain.errors import AuthenticationError, StorefrontError
from storefront.domain.shopper import Shopper
from storefront.services.auth_client import AuthClient
from storefront.services.cart_merge import CartMergeService
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.checkout_flow import CheckoutFlowStore
from storefront.services.checkout_service import CheckoutService
from storefront.services.guest_cart_service import GuestCartService
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.profile_service import ProfileService
from storefront.services.session_service import (
    AuthStateNotifier,
    SessionManager,
    subscribe_guest_handlers,
)
from storefront.services.shopper_cart import ShopperCart
from storefront.utils.settings import REDIS_URL


@lru_cache
def get_redis() -> redis.Redis:
    return redis.Redis.from_url(REDIS_URL, decode_responses=True)


@lru_cache
def get_auth_client() -> AuthClient:
    return AuthClient()


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway()


def get_catalog(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_carts(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_orders(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


def get_profiles(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_guest_carts(
    catalog: CatalogService = Depends(get_catalog),
    client: redis.Redis = Depends(get_redis),
) -> GuestCartService:
    return GuestCartService(catalog, client)


def get_shopper_cart(
    carts: CartService = Depends(get_carts),
    guest_carts: GuestCartService = Depends(get_guest_carts),
) -> ShopperCart:
    return ShopperCart(carts, guest_carts)


def get_session_manager(
    carts: CartService = Depends(get_carts),
    guest_carts: GuestCartService = Depends(get_guest_carts),
    profiles: ProfileService = Depends(get_profiles),
    auth: AuthClient = Depends(get_auth_client),
) -> SessionManager:
    notifier = AuthStateNotifier()
    subscribe_guest_handlers(notifier, guest_carts, CartMergeService(guest_carts, carts))
    return SessionManager(auth, guest_carts, profiles, notifier)


def get_shopper(
    authorization: str | None = Header(None),
    x_guest_id: str | None = Header(None),
    sessions: SessionManager = Depends(get_session_manager),
) -> Shopper:
    try:
        return sessions.resolve(authorization, x_guest_id)
    except StorefrontError as e:
        raise http_error(e)


def get_checkout(
    carts: CartService = Depends(get_carts),
    orders: OrderService = Depends(get_orders),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    client: redis.Redis = Depends(get_redis),
) -> CheckoutService:
    return CheckoutService(carts, orders, gateway, CheckoutFlowStore(client))


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise http_error(AuthenticationError())
    return token
