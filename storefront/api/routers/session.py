# storefront/api/routers/session.py
from typing import List

from fastapi import APIRouter, Depends, Header

from storefront.api.deps import bearer_token, get_profiles, get_session_manager, get_shopper
from storefront.api.errors import http_error
from storefront.domain.errors import NotFoundError, StorefrontError
from storefront.domain.schemas import (
    AddressOut,
    GuestOut,
    OAuthCallbackIn,
    OAuthUrlOut,
    ProfileOut,
    SessionOut,
    SignInIn,
    SignInOut,
    SignUpIn,
)
from storefront.domain.shopper import Authenticated, Shopper, display_name, menu_options, require_authenticated
from storefront.services.profile_service import ProfileService
from storefront.services.session_service import SessionManager

router = APIRouter(tags=["session"])


@router.post("/session/guest", response_model=GuestOut, status_code=201)
def start_guest_session(sessions: SessionManager = Depends(get_session_manager)):
    guest = sessions.start_guest()
    return {"guest_id": guest.id}


@router.get("/session", response_model=SessionOut)
def get_session(shopper: Shopper = Depends(get_shopper)):
    return {
        "kind": shopper.kind,
        "id": shopper.id,
        "display_name": display_name(shopper),
        "menu": menu_options(shopper),
        "email": shopper.email if isinstance(shopper, Authenticated) else None,
    }


@router.post("/auth/sign-in", response_model=SignInOut)
def sign_in(
    payload: SignInIn,
    x_guest_id: str | None = Header(None),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Password sign-in. A guest cart sent along in X-Guest-Id is merged into
    the account cart.
    """
    try:
        return sessions.sign_in(payload.email, payload.password, x_guest_id)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/auth/sign-up", response_model=SignInOut, status_code=201)
def sign_up(
    payload: SignUpIn,
    x_guest_id: str | None = Header(None),
    sessions: SessionManager = Depends(get_session_manager),
):
    try:
        return sessions.sign_up(payload.email, payload.password, payload.full_name, x_guest_id)
    except StorefrontError as e:
        raise http_error(e)


@router.get("/auth/oauth/google", response_model=OAuthUrlOut)
def google_oauth_url(sessions: SessionManager = Depends(get_session_manager)):
    return {"url": sessions.oauth_url()}


@router.post("/auth/callback", response_model=SignInOut)
def oauth_callback(
    payload: OAuthCallbackIn,
    x_guest_id: str | None = Header(None),
    sessions: SessionManager = Depends(get_session_manager),
):
    try:
        return sessions.complete_oauth(payload.access_token, x_guest_id)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/auth/sign-out", status_code=204)
def sign_out(
    authorization: str | None = Header(None),
    x_guest_id: str | None = Header(None),
    sessions: SessionManager = Depends(get_session_manager),
):
    try:
        sessions.sign_out(bearer_token(authorization), x_guest_id)
    except StorefrontError as e:
        raise http_error(e)


@router.get("/profile", response_model=ProfileOut)
def get_profile(
    shopper: Shopper = Depends(get_shopper),
    profiles: ProfileService = Depends(get_profiles),
):
    try:
        user = require_authenticated(shopper)
        profile = profiles.get_profile(user.id)
        if profile is None:
            raise NotFoundError("We could not find your profile.", title="Profile not found")
        return profile
    except StorefrontError as e:
        raise http_error(e)


@router.get("/addresses", response_model=List[AddressOut])
def list_addresses(
    shopper: Shopper = Depends(get_shopper),
    profiles: ProfileService = Depends(get_profiles),
):
    try:
        user = require_authenticated(shopper)
        return profiles.list_addresses(user.id)
    except StorefrontError as e:
        raise http_error(e)
