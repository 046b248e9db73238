from sqlalchemy import Column, String, Text, DateTime, Numeric, JSON
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models._ids import new_id, utcnow


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    order_number = Column(String, nullable=False, unique=True)

    status = Column(String, nullable=False, default="confirmed")  # pending, confirmed, shipped, delivered, cancelled
    payment_method = Column(String, nullable=False)  # cod, online
    payment_status = Column(String, nullable=False, default="pending")  # pending, paid

    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    #snapshot, not a reference to addresses
    delivery_address = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)
    razorpay_payment_id = Column(String, nullable=True)
    razorpay_order_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )
