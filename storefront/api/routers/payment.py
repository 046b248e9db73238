# storefront/api/routers/payment.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.api.deps import get_payment_gateway
from storefront.domain.errors import PaymentError
from storefront.domain.schemas import GatewayOrderIn, GatewayOrderOut, VerifyPaymentIn, VerifyPaymentOut
from storefront.services.payment_gateway import PaymentGateway
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.post("/create-order", response_model=GatewayOrderOut)
def create_order(payload: GatewayOrderIn, gateway: PaymentGateway = Depends(get_payment_gateway)):
    try:
        return gateway.create_gateway_order(payload.amount, payload.currency, payload.receipt)
    except PaymentError:
        return JSONResponse(status_code=500, content={"error": "Failed to create order"})


@router.post("/verify-payment", response_model=VerifyPaymentOut)
def verify_payment(payload: VerifyPaymentIn, gateway: PaymentGateway = Depends(get_payment_gateway)):
    """
    Always answers with {"verified": bool}; callers branch on the flag.
    """
    try:
        verified = gateway.verify_payment(
            payload.gateway_order_id,
            payload.gateway_payment_id,
            payload.signature,
        )
    except Exception as e:
        logger.error(f"Payment verification failed for {payload.gateway_order_id}: {e}")
        return JSONResponse(status_code=500, content={"verified": False})
    return {"verified": verified}
