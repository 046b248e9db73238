from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Numeric, ForeignKey, JSON

from storefront.data.database import Base
from storefront.data.models._ids import new_id, utcnow


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    unit = Column(String, nullable=False, default="piece")  # kg, piece, bunch ...
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    image_url = Column(String, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    nutritional_info = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
