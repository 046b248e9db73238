from sqlalchemy import Column, String, DateTime

from storefront.data.database import Base
from storefront.data.models._ids import utcnow


class ProfileModel(Base):
    __tablename__ = "profiles"

    #same id as the auth provider's user
    id = Column(String(36), primary_key=True)
    email = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
