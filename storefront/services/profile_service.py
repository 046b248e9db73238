# storefront/services/profile_service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel
from storefront.data.models.profile import ProfileModel
from storefront.repos.base import store_errors
from storefront.repos.profile_repo import ProfileRepo
from storefront.repos.address_repo import AddressRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProfileRepo(db)
        self.addresses = AddressRepo(db)

    def ensure_profile(self, user_id: str, email: str, full_name: str | None = None) -> ProfileModel:
        with store_errors(self.db, f"ensuring profile of {user_id}"):
            existing = self.repo.get_profile(user_id)
            if existing:
                return existing

            try:
                created = self.repo.create_profile(
                    ProfileModel(id=user_id, email=email, full_name=full_name or "")
                )
            except IntegrityError:
                #created by a parallel sign-in
                self.db.rollback()
                return self.repo.get_profile(user_id)

            logger.info(f"Created profile for {user_id}")
            return created

    def get_profile(self, user_id: str) -> ProfileModel | None:
        with store_errors(self.db, f"fetching profile of {user_id}"):
            return self.repo.get_profile(user_id)

    def list_addresses(self, user_id: str) -> list[AddressModel]:
        with store_errors(self.db, f"listing addresses of {user_id}"):
            return self.addresses.list_addresses(user_id)
