import hashlib
import hmac
from unittest.mock import MagicMock, patch

import pytest
import requests

from storefront.domain.errors import PaymentError
from storefront.services.payment_gateway import PaymentGateway, payment_signature

SECRET = "s3cr3t"


@pytest.fixture
def live_gateway():
    """Gateway whose HTTP layer is patched per test."""
    return PaymentGateway(key_id="rzp_test_key", key_secret=SECRET, base_url="http://gateway.test/v1/")


def _expected(order_id, payment_id, secret=SECRET):
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def test_signature_is_hmac_sha256_of_order_and_payment():
    assert payment_signature("order_1", "pay_1", SECRET) == _expected("order_1", "pay_1")


def test_verify_accepts_correct_signature(live_gateway):
    assert live_gateway.verify_payment("order_1", "pay_1", _expected("order_1", "pay_1")) is True


def test_verify_rejects_any_single_character_change(live_gateway):
    good = _expected("order_1", "pay_1")
    for i, ch in enumerate(good):
        mutated = good[:i] + ("0" if ch != "0" else "1") + good[i + 1:]
        assert live_gateway.verify_payment("order_1", "pay_1", mutated) is False


@pytest.mark.parametrize(
    "order_id,payment_id,signature",
    [
        ("order_2", "pay_1", _expected("order_1", "pay_1")),
        ("order_1", "pay_1", _expected("order_1", "pay_1", "other-secret")),
        ("order_1", "pay_1", ""),
        ("", "pay_1", _expected("", "pay_1")),
        ("order_1", "pay_1", "zé"),
    ],
)
def test_verify_rejects(live_gateway, order_id, payment_id, signature):
    assert live_gateway.verify_payment(order_id, payment_id, signature) is False


def test_verify_without_secret_is_false():
    gateway = PaymentGateway(key_id="rzp_test_key", key_secret="", base_url="http://gateway.test/v1")
    assert gateway.verify_payment("order_1", "pay_1", _expected("order_1", "pay_1", "")) is False


def _response(json_body, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_body
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    return resp


@patch("storefront.services.payment_gateway.requests.post")
def test_create_gateway_order(mock_post, live_gateway):
    mock_post.return_value = _response({"id": "order_9", "amount": 54900, "currency": "INR"})

    result = live_gateway.create_gateway_order(54900, "INR", "order_123")

    assert result == {
        "gateway_order_id": "order_9",
        "amount": 54900,
        "currency": "INR",
        "public_key": "rzp_test_key",
    }
    args, kwargs = mock_post.call_args
    assert args[0] == "http://gateway.test/v1/orders"
    assert kwargs["json"] == {"amount": 54900, "currency": "INR", "receipt": "order_123"}
    assert kwargs["auth"] == ("rzp_test_key", SECRET)
    assert SECRET not in result.values()


@patch("storefront.services.payment_gateway.requests.post")
def test_create_gateway_order_http_error(mock_post, live_gateway):
    mock_post.return_value = _response({"error": {"code": "BAD_REQUEST_ERROR"}}, status_code=400)

    with pytest.raises(PaymentError):
        live_gateway.create_gateway_order(54900, "INR", "order_123")
    assert mock_post.call_count == 1


@patch("storefront.services.payment_gateway.requests.post")
def test_create_gateway_order_malformed_response(mock_post, live_gateway):
    mock_post.return_value = _response({"unexpected": True})

    with pytest.raises(PaymentError):
        live_gateway.create_gateway_order(54900, "INR", "order_123")


@patch("storefront.services.payment_gateway.requests.post")
def test_create_gateway_order_retries_connection_errors(mock_post, live_gateway):
    mock_post.side_effect = [
        requests.ConnectionError("refused"),
        _response({"id": "order_9", "amount": 100, "currency": "INR"}),
    ]

    assert live_gateway.create_gateway_order(100, "INR", "order_1")["gateway_order_id"] == "order_9"
    assert mock_post.call_count == 2


def test_create_gateway_order_rejects_non_positive_amount(live_gateway):
    with pytest.raises(PaymentError):
        live_gateway.create_gateway_order(0, "INR", "order_1")
