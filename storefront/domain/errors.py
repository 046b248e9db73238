# storefront/domain/errors.py
"""
Error taxonomy.

Services raise these, routers turn them into toast payloads. Every error
carries a short user-facing ``title`` and ``description``; the underlying
cause is only ever logged.
"""


class StorefrontError(Exception):
    title = "Something went wrong"
    description = "Please try again."

    def __init__(self, description: str | None = None, title: str | None = None):
        if title:
            self.title = title
        if description:
            self.description = description
        super().__init__(self.description)

    def toast(self) -> dict:
        return {"title": self.title, "description": self.description}


class CheckoutValidationError(StorefrontError, ValueError):
    title = "Invalid order"
    description = "Please check your delivery details."


class StoreError(StorefrontError, RuntimeError):
    title = "Service unavailable"
    description = "We could not reach the store. Please try again."


class AuthenticationError(StorefrontError, PermissionError):
    title = "Please sign in"
    description = "Your session is missing or has expired."


class PaymentError(StorefrontError, RuntimeError):
    title = "Payment processing failed"
    description = "Please try again or contact support."


class NotFoundError(StorefrontError, LookupError):
    title = "Not found"
    description = "The requested item does not exist."


class AuthProviderError(StorefrontError):
    title = "Sign-in unavailable"
    description = "We could not reach the sign-in service. Please try again."
