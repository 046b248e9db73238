# storefront/services/auth_client.py
from typing import Any, Dict
from urllib.parse import urlencode

import requests
from requests import RequestException

from storefront.domain.errors import AuthenticationError, AuthProviderError
from storefront.utils.retry import http_retry
from storefront.utils.settings import (
    SUPABASE_URL,
    SUPABASE_ANON_KEY,
    OAUTH_REDIRECT_URL,
    HTTP_TIMEOUT_SECONDS,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class AuthClient:
    """Thin client for the hosted auth provider's REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        redirect_url: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.base_url = (base_url or SUPABASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else SUPABASE_ANON_KEY
        self.redirect_url = redirect_url or OAUTH_REDIRECT_URL
        self.timeout = timeout

    def _headers(self, access_token: str | None = None) -> Dict[str, str]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _post(self, path: str, payload: Dict[str, Any] | None = None, access_token: str | None = None) -> requests.Response:
        url = f"{self.base_url}/auth/v1/{path}"
        logger.info(f"AuthClient POST {url.split('?')[0]}")
        try:
            return requests.post(url, json=payload or {}, headers=self._headers(access_token), timeout=self.timeout)
        except RequestException as e:
            logger.error(f"Auth provider unreachable: {e}")
            raise AuthProviderError() from e

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        resp = self._post("token?grant_type=password", {"email": email, "password": password})
        if resp.status_code in (400, 401, 422):
            raise AuthenticationError("Invalid email or password.", title="Sign-in failed")
        if not resp.ok:
            logger.error(f"Password sign-in failed with HTTP {resp.status_code}")
            raise AuthProviderError()
        return resp.json()

    def sign_up(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        resp = self._post(
            "signup",
            {"email": email, "password": password, "data": {"full_name": full_name}},
        )
        if resp.status_code in (400, 422):
            raise AuthenticationError("This email cannot be registered.", title="Sign-up failed")
        if not resp.ok:
            logger.error(f"Sign-up failed with HTTP {resp.status_code}")
            raise AuthProviderError()
        return resp.json()

    @http_retry()
    def _get_user(self, access_token: str) -> requests.Response:
        url = f"{self.base_url}/auth/v1/user"
        return requests.get(url, headers=self._headers(access_token), timeout=self.timeout)

    def get_user(self, access_token: str) -> Dict[str, Any]:
        try:
            resp = self._get_user(access_token)
        except RequestException as e:
            logger.error(f"Auth provider unreachable: {e}")
            raise AuthProviderError() from e

        if resp.status_code in (401, 403):
            raise AuthenticationError()
        if not resp.ok:
            logger.error(f"User lookup failed with HTTP {resp.status_code}")
            raise AuthProviderError()
        return resp.json()

    def sign_out(self, access_token: str) -> None:
        resp = self._post("logout", access_token=access_token)
        #an already expired session counts as signed out
        if not resp.ok and resp.status_code not in (401, 403):
            logger.error(f"Sign-out failed with HTTP {resp.status_code}")
            raise AuthProviderError()

    def oauth_url(self, provider: str = "google") -> str:
        query = urlencode({"provider": provider, "redirect_to": self.redirect_url})
        return f"{self.base_url}/auth/v1/authorize?{query}"
