# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Any
from decimal import Decimal
from datetime import datetime


class CategoryOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    image_url: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: Decimal
    unit: str
    category_id: str | None = None
    image_url: str | None = None
    is_featured: bool = False
    is_active: bool = True
    stock_quantity: int = 0
    nutritional_info: dict[str, Any] | None = None
    created_at: datetime | None = None
    categories: CategoryOut | None = None

    model_config = ConfigDict(from_attributes=True)


class HomeOut(BaseModel):
    featured: List[ProductOut]
    categories: List[CategoryOut]


class CartItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: str = Field(..., min_length=1)
    quantity: Decimal = Field(Decimal("1"), gt=0)
    weight_in_grams: int | None = Field(None, ge=0)


class CartItemUpdate(BaseModel):
    """Quantity <= 0 removes the line."""

    quantity: Decimal
    weight_in_grams: int | None = Field(None, ge=0)


class CartLineOut(BaseModel):
    id: str
    product_id: str
    quantity: Decimal
    weight_in_grams: int | None = None
    products: ProductOut | None = None


class CartOut(BaseModel):
    source: str
    items: List[CartLineOut]
    total: Decimal
    item_count: Decimal


class AddressIn(BaseModel):
    """Delivery address as typed at checkout; checked by the checkout service."""

    full_name: str = ""
    phone: str = ""
    address_line_1: str = ""
    address_line_2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    is_default: bool = False


class AddressOut(BaseModel):
    id: str
    user_id: str
    full_name: str
    phone: str
    address_line_1: str
    address_line_2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str
    is_default: bool = False
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CheckoutIn(BaseModel):
    address: AddressIn
    notes: str | None = None


class OnlineCheckoutStartOut(BaseModel):
    state: str
    gateway_order_id: str
    amount: int
    currency: str
    public_key: str
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal


class OnlineCheckoutCompleteIn(CheckoutIn):
    """Payload of the payment widget's completion handler plus the checkout form."""

    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class OnlineCheckoutDismissIn(BaseModel):
    gateway_order_id: str = Field(..., min_length=1)


class CheckoutStateOut(BaseModel):
    gateway_order_id: str
    state: str


class OrderItemOut(BaseModel):
    id: str
    product_id: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    products: ProductOut | None = None


class OrderOut(BaseModel):
    id: str
    user_id: str
    order_number: str
    status: str
    payment_method: str
    payment_status: str
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    delivery_address: dict[str, Any]
    notes: str | None = None
    razorpay_payment_id: str | None = None
    razorpay_order_id: str | None = None
    created_at: datetime
    items: List[OrderItemOut] = []
    warnings: List[str] = []


class GatewayOrderIn(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in minor units (paise)")
    currency: str = "INR"
    receipt: str = Field(..., min_length=1)


class GatewayOrderOut(BaseModel):
    gateway_order_id: str = Field(..., alias="gatewayOrderId")
    amount: int
    currency: str
    public_key: str = Field(..., alias="publicKey")

    model_config = ConfigDict(populate_by_name=True)


class VerifyPaymentIn(BaseModel):
    """Missing values verify as false rather than failing the request."""

    gateway_order_id: str = Field("", alias="gatewayOrderId")
    gateway_payment_id: str = Field("", alias="gatewayPaymentId")
    signature: str = ""

    model_config = ConfigDict(populate_by_name=True)


class VerifyPaymentOut(BaseModel):
    verified: bool


class SignInIn(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class SignUpIn(SignInIn):
    full_name: str = Field(..., min_length=1, max_length=100)


class OAuthCallbackIn(BaseModel):
    access_token: str = Field(..., min_length=1)


class MergeOut(BaseModel):
    migrated: int
    failed: List[str]


class SignInOut(BaseModel):
    access_token: str | None = None
    refresh_token: str | None = None
    user_id: str
    email: str
    merge: MergeOut | None = None


class GuestOut(BaseModel):
    guest_id: str


class SessionOut(BaseModel):
    kind: str
    id: str
    display_name: str
    menu: List[str]
    email: str | None = None


class OAuthUrlOut(BaseModel):
    url: str


class ProfileOut(BaseModel):
    id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
