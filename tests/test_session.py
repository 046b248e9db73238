from decimal import Decimal

import pytest

from storefront.domain.errors import AuthenticationError, StoreError
from storefront.domain.shopper import (
    AUTHENTICATED_MENU,
    GUEST_MENU,
    Authenticated,
    Guest,
    display_name,
    menu_options,
    require_authenticated,
)
from storefront.services.cart_merge import CartMergeService
from storefront.services.profile_service import ProfileService
from storefront.services.session_service import (
    AuthEvent,
    AuthStateNotifier,
    SessionManager,
    subscribe_guest_handlers,
)
from storefront.services.shopper_cart import ShopperCart


@pytest.fixture
def profiles(db):
    return ProfileService(db)


@pytest.fixture
def sessions(auth_client, guest_carts, carts, profiles):
    notifier = AuthStateNotifier()
    subscribe_guest_handlers(notifier, guest_carts, CartMergeService(guest_carts, carts))
    return SessionManager(auth_client, guest_carts, profiles, notifier)


def test_display_name_and_menu():
    guest = Guest(id="guest_1")
    named = Authenticated(id="u1", email="asha@example.com", access_token="t", full_name="Asha K")
    unnamed = Authenticated(id="u2", email="ravi@example.com", access_token="t")

    assert display_name(guest) == "Guest"
    assert display_name(named) == "Asha K"
    assert display_name(unnamed) == "ravi"
    assert menu_options(guest) == GUEST_MENU
    assert menu_options(named) == AUTHENTICATED_MENU


def test_unknown_shopper_variant_fails_loudly(carts, guest_carts):
    with pytest.raises(TypeError):
        display_name(object())
    with pytest.raises(TypeError):
        require_authenticated("user-1")
    with pytest.raises(TypeError):
        ShopperCart(carts, guest_carts).list(object())


def test_shopper_cart_routes_by_kind(carts, guest_carts, catalog_data, user):
    shopper_cart = ShopperCart(carts, guest_carts)
    guest = Guest(id=guest_carts.create_guest())

    guest_summary = shopper_cart.add(guest, catalog_data["tomato"], Decimal("2"))
    account_summary = shopper_cart.add(user, catalog_data["apple"], Decimal("1"))

    assert guest_summary["source"] == "guest"
    assert guest_summary["total"] == Decimal("80")
    assert account_summary["source"] == "account"
    assert account_summary["total"] == Decimal("150")
    assert carts.list(user.id)[0]["product_id"] == catalog_data["apple"]


def test_resolve_bearer_token(sessions, auth_client):
    shopper = sessions.resolve("Bearer token-1", None)

    assert shopper == Authenticated(id="user-1", email="asha@example.com", access_token="token-1", full_name="Asha")
    auth_client.get_user.assert_called_once_with("token-1")


@pytest.mark.parametrize("header", ["Basic abc", "Bearer", "token-1"])
def test_resolve_rejects_malformed_authorization(sessions, header):
    with pytest.raises(AuthenticationError):
        sessions.resolve(header, None)


def test_resolve_guest(sessions):
    guest = sessions.start_guest()
    assert sessions.resolve(None, guest.id) == guest


def test_resolve_without_session(sessions):
    with pytest.raises(AuthenticationError):
        sessions.resolve(None, "guest_unknown")
    with pytest.raises(AuthenticationError):
        sessions.resolve(None, None)


def test_sign_in_merges_guest_cart(sessions, guest_carts, carts, catalog_data, profiles):
    guest = sessions.start_guest()
    guest_carts.add(guest.id, catalog_data["tomato"], Decimal("2"))

    result = sessions.sign_in("asha@example.com", "secret", guest.id)

    assert result["user_id"] == "user-1"
    assert result["access_token"] == "token-1"
    assert result["merge"] == {"migrated": 1, "failed": []}
    assert carts.list("user-1")[0]["quantity"] == Decimal("2")
    assert guest_carts.get_guest(guest.id) is None
    assert profiles.get_profile("user-1").full_name == "Asha"


def test_sign_in_keeps_guest_when_merge_partly_fails(sessions, guest_carts, carts, catalog_data):
    guest = sessions.start_guest()
    guest_carts.add(guest.id, catalog_data["tomato"], Decimal("1"))

    def failing_add(*args, **kwargs):
        raise StoreError()

    carts.add = failing_add
    result = sessions.sign_in("asha@example.com", "secret", guest.id)

    assert result["merge"] == {"migrated": 0, "failed": [catalog_data["tomato"]]}
    assert guest_carts.get_guest(guest.id) is not None
    assert len(guest_carts.list(guest.id)) == 1


def test_sign_in_without_guest(sessions):
    assert sessions.sign_in("asha@example.com", "secret")["merge"] is None


def test_sign_up_pending_confirmation(sessions, auth_client, profiles):
    auth_client.sign_up.return_value = {"id": "user-3", "email": "new@example.com"}

    result = sessions.sign_up("new@example.com", "secret", "New Shopper")

    assert result == {"user_id": "user-3", "email": "new@example.com"}
    assert profiles.get_profile("user-3").full_name == "New Shopper"


def test_complete_oauth(sessions, auth_client):
    result = sessions.complete_oauth("token-1")
    assert result["user_id"] == "user-1"
    auth_client.get_user.assert_called_once_with("token-1")


def test_sign_out_clears_guest(sessions, guest_carts, auth_client):
    guest = sessions.start_guest()

    sessions.sign_out("token-1", guest.id)

    auth_client.sign_out.assert_called_once_with("token-1")
    assert guest_carts.get_guest(guest.id) is None


def test_notifier_delivers_in_order():
    notifier = AuthStateNotifier()
    seen = []
    notifier.subscribe(AuthEvent.SIGNED_OUT, lambda guest_id: seen.append(("first", guest_id)))
    notifier.subscribe(AuthEvent.SIGNED_OUT, lambda guest_id: seen.append(("second", guest_id)))

    notifier.emit(AuthEvent.SIGNED_OUT, guest_id="g1")
    notifier.emit(AuthEvent.SIGNED_IN, shopper=None, guest_id=None)

    assert seen == [("first", "g1"), ("second", "g1")]
