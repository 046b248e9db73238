# storefront/domain/shopper.py
"""
Who is shopping: a guest (cart kept in the guest store) or an authenticated
user (cart kept in the database). Code that behaves differently per kind
matches on the two classes and fails loudly on anything else.
"""
from dataclasses import dataclass, field
from typing import Union

from storefront.domain.errors import AuthenticationError


@dataclass(frozen=True)
class Guest:
    id: str
    kind: str = field(default="guest", init=False)


@dataclass(frozen=True)
class Authenticated:
    id: str
    email: str
    access_token: str
    full_name: str | None = None
    kind: str = field(default="authenticated", init=False)


Shopper = Union[Guest, Authenticated]

GUEST_MENU = ["products", "categories", "cart", "sign-in"]
AUTHENTICATED_MENU = ["products", "categories", "cart", "orders", "profile", "addresses", "sign-out"]


def _unknown(shopper) -> TypeError:
    return TypeError(f"Unknown shopper variant: {type(shopper).__name__}")


def display_name(shopper: Shopper) -> str:
    if isinstance(shopper, Guest):
        return "Guest"
    if isinstance(shopper, Authenticated):
        return shopper.full_name or shopper.email.split("@")[0]
    raise _unknown(shopper)


def menu_options(shopper: Shopper) -> list[str]:
    if isinstance(shopper, Guest):
        return list(GUEST_MENU)
    if isinstance(shopper, Authenticated):
        return list(AUTHENTICATED_MENU)
    raise _unknown(shopper)


def require_authenticated(shopper: Shopper) -> Authenticated:
    if isinstance(shopper, Authenticated):
        return shopper
    if isinstance(shopper, Guest):
        raise AuthenticationError("Please sign in to continue.")
    raise _unknown(shopper)
