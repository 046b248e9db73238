# storefront/services/checkout_flow.py
from enum import Enum
from typing import Dict

import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, CHECKOUT_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutState(str, Enum):
    IDLE = "idle"
    GATEWAY_ORDER_CREATED = "gateway-order-created"
    WIDGET_OPEN = "widget-open"
    PAYMENT_SUCCEEDED = "payment-succeeded"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    ORDER_CREATED = "order-created"
    WIDGET_DISMISSED = "widget-dismissed"
    VERIFICATION_FAILED = "verification-failed"
    ERROR = "error"


TRANSITIONS: Dict[CheckoutState, tuple] = {
    CheckoutState.IDLE: (CheckoutState.GATEWAY_ORDER_CREATED,),
    CheckoutState.GATEWAY_ORDER_CREATED: (CheckoutState.WIDGET_OPEN,),
    CheckoutState.WIDGET_OPEN: (CheckoutState.PAYMENT_SUCCEEDED, CheckoutState.WIDGET_DISMISSED),
    CheckoutState.PAYMENT_SUCCEEDED: (CheckoutState.VERIFYING,),
    CheckoutState.VERIFYING: (CheckoutState.VERIFIED, CheckoutState.VERIFICATION_FAILED),
    CheckoutState.VERIFIED: (CheckoutState.ORDER_CREATED, CheckoutState.ERROR),
    CheckoutState.WIDGET_DISMISSED: (CheckoutState.IDLE,),
    CheckoutState.VERIFICATION_FAILED: (CheckoutState.ERROR,),
    CheckoutState.ORDER_CREATED: (),
    CheckoutState.ERROR: (),
}

#compare-and-set of the state field, atomic in redis
_ADVANCE_LUA = """
if redis.call('HGET', KEYS[1], 'state') == ARGV[1] then
    redis.call('HSET', KEYS[1], 'state', ARGV[2])
    return 1
else
    return 0
end
"""


class InvalidTransition(Exception):
    pass


class CheckoutFlowStore:
    """
    State of each online checkout, keyed by gateway order id:
    checkout:<gateway_order_id> -> {state, user_id, amount}

    Moves between states only along TRANSITIONS and only from the state the
    caller expects, so a confirmation can complete a checkout at most once.
    """

    def __init__(self, client: redis.Redis | None = None, ttl: int = CHECKOUT_TTL_SECONDS):
        self.redis = client or redis.Redis.from_url(REDIS_URL, decode_responses=True)
        self.ttl = ttl

    @staticmethod
    def _key(gateway_order_id: str) -> str:
        return f"checkout:{gateway_order_id}"

    @redis_retry()
    def open(self, gateway_order_id: str, user_id: str, amount: int) -> None:
        key = self._key(gateway_order_id)
        pipe = self.redis.pipeline()
        pipe.hset(
            key,
            mapping={
                "state": CheckoutState.GATEWAY_ORDER_CREATED.value,
                "user_id": user_id,
                "amount": str(amount),
            },
        )
        pipe.expire(key, self.ttl)
        pipe.execute()
        logger.info(f"Checkout {gateway_order_id} opened for {user_id}")

    @redis_retry()
    def get(self, gateway_order_id: str) -> Dict[str, str] | None:
        data = self.redis.hgetall(self._key(gateway_order_id))
        return data or None

    def advance(self, gateway_order_id: str, current: CheckoutState, target: CheckoutState) -> None:
        if target not in TRANSITIONS[current]:
            raise InvalidTransition(f"{current.value} -> {target.value} is not allowed")

        moved = self._compare_and_set(self._key(gateway_order_id), current.value, target.value)
        if not moved:
            raise InvalidTransition(
                f"Checkout {gateway_order_id} is not in state {current.value}"
            )
        logger.info(f"Checkout {gateway_order_id}: {current.value} -> {target.value}")

    @redis_retry()
    def _compare_and_set(self, key: str, expected: str, new: str) -> bool:
        return bool(self.redis.eval(_ADVANCE_LUA, 1, key, expected, new))
