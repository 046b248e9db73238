# storefront/services/session_service.py
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List

from storefront.domain.errors import AuthenticationError
from storefront.domain.shopper import Authenticated, Guest, Shopper
from storefront.services.auth_client import AuthClient
from storefront.services.cart_merge import CartMergeService, MergeResult
from storefront.services.guest_cart_service import GuestCartService
from storefront.services.profile_service import ProfileService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class AuthStateNotifier:
    """Delivers sign-in / sign-out events to subscribed handlers, in order."""

    def __init__(self):
        self._handlers: Dict[AuthEvent, List[Callable[..., Any]]] = defaultdict(list)

    def subscribe(self, event: AuthEvent, handler: Callable[..., Any]) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: AuthEvent, **payload) -> List[Any]:
        logger.info(f"Auth event {event.value}")
        return [handler(**payload) for handler in self._handlers[event]]


def _to_authenticated(user: Dict[str, Any], access_token: str) -> Authenticated:
    metadata = user.get("user_metadata") or {}
    return Authenticated(
        id=user["id"],
        email=user.get("email") or "",
        access_token=access_token,
        full_name=metadata.get("full_name") or None,
    )


class SessionManager:
    """
    Lifecycle of the shopper's session.

    - start_guest: a new guest identity
    - resolve: turns request credentials into a Guest or Authenticated shopper
    - sign_in / complete_oauth: authenticated session, emits SIGNED_IN
    - sign_out: emits SIGNED_OUT
    """

    def __init__(
        self,
        auth: AuthClient,
        guest_carts: GuestCartService,
        profiles: ProfileService,
        notifier: AuthStateNotifier | None = None,
    ):
        self.auth = auth
        self.guest_carts = guest_carts
        self.profiles = profiles
        self.notifier = notifier or AuthStateNotifier()

    def start_guest(self) -> Guest:
        return Guest(id=self.guest_carts.create_guest())

    def resolve(self, authorization: str | None, guest_id: str | None) -> Shopper:
        if authorization:
            scheme, _, token = authorization.partition(" ")
            if scheme.lower() != "bearer" or not token:
                raise AuthenticationError()
            return _to_authenticated(self.auth.get_user(token), token)

        if guest_id and self.guest_carts.get_guest(guest_id):
            return Guest(id=guest_id)

        raise AuthenticationError("Start a guest session or sign in.", title="No session")

    def sign_in(self, email: str, password: str, guest_id: str | None = None) -> Dict[str, Any]:
        data = self.auth.sign_in_with_password(email, password)
        return self._signed_in(data["user"], data["access_token"], data.get("refresh_token"), guest_id)

    def sign_up(self, email: str, password: str, full_name: str, guest_id: str | None = None) -> Dict[str, Any]:
        data = self.auth.sign_up(email, password, full_name)
        user = data.get("user") or data

        if not data.get("access_token"):
            #email confirmation pending, no session yet
            self.profiles.ensure_profile(user["id"], user.get("email") or email, full_name)
            return {"user_id": user["id"], "email": user.get("email") or email}

        return self._signed_in(user, data["access_token"], data.get("refresh_token"), guest_id, full_name)

    def oauth_url(self) -> str:
        return self.auth.oauth_url("google")

    def complete_oauth(self, access_token: str, guest_id: str | None = None) -> Dict[str, Any]:
        user = self.auth.get_user(access_token)
        return self._signed_in(user, access_token, None, guest_id)

    def sign_out(self, access_token: str | None, guest_id: str | None = None) -> None:
        if access_token:
            self.auth.sign_out(access_token)
        self.notifier.emit(AuthEvent.SIGNED_OUT, guest_id=guest_id)

    def _signed_in(
        self,
        user: Dict[str, Any],
        access_token: str,
        refresh_token: str | None,
        guest_id: str | None,
        full_name: str | None = None,
    ) -> Dict[str, Any]:
        shopper = _to_authenticated(user, access_token)
        self.profiles.ensure_profile(shopper.id, shopper.email, full_name or shopper.full_name)

        results = self.notifier.emit(AuthEvent.SIGNED_IN, shopper=shopper, guest_id=guest_id)
        merge = next((r for r in results if isinstance(r, MergeResult)), None)

        logger.info(f"Signed in {shopper.id}")
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user_id": shopper.id,
            "email": shopper.email,
            "merge": {"migrated": merge.migrated, "failed": merge.failed} if merge else None,
        }


def subscribe_guest_handlers(
    notifier: AuthStateNotifier,
    guest_carts: GuestCartService,
    merger: CartMergeService,
) -> None:
    """Guest cart merge and guest teardown on sign-in, teardown on sign-out."""

    def on_signed_in(shopper: Authenticated, guest_id: str | None) -> MergeResult | None:
        if not guest_id:
            return None
        result = merger.merge(guest_id, shopper.id)
        if result.failed:
            #failed items stay in the guest cart for another attempt
            logger.warning(f"Keeping guest {guest_id}: {len(result.failed)} items not migrated")
        else:
            guest_carts.clear_guest(guest_id)
        return result

    def on_signed_out(guest_id: str | None) -> None:
        if guest_id:
            guest_carts.clear_guest(guest_id)

    notifier.subscribe(AuthEvent.SIGNED_IN, on_signed_in)
    notifier.subscribe(AuthEvent.SIGNED_OUT, on_signed_out)
