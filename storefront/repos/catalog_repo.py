# storefront/repos/catalog_repo.py
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_products(
        self,
        category_id: str | None = None,
        search_text: str | None = None,
        featured_only: bool = False,
        limit: int | None = None,
    ) -> list[ProductModel]:
        stmt = select(ProductModel).where(ProductModel.is_active.is_(True))

        if category_id:
            stmt = stmt.where(ProductModel.category_id == category_id)
        if search_text:
            stmt = stmt.where(ProductModel.name.icontains(search_text, autoescape=True))
        if featured_only:
            stmt = stmt.where(ProductModel.is_featured.is_(True))

        stmt = stmt.order_by(ProductModel.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)

        return list(self.db.execute(stmt).scalars().all())

    def get_product(self, product_id: str) -> ProductModel | None:
        stmt = select(ProductModel).where(
            ProductModel.id == product_id,
            ProductModel.is_active.is_(True),
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_categories_by_ids(self, category_ids: Iterable[str]) -> list[CategoryModel]:
        ids = list(category_ids)
        if not ids:
            return []
        stmt = select(CategoryModel).where(CategoryModel.id.in_(ids))
        return list(self.db.execute(stmt).scalars().all())

    def get_category(self, category_id: str) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def list_categories(self) -> list[CategoryModel]:
        stmt = select(CategoryModel).order_by(CategoryModel.name)
        return list(self.db.execute(stmt).scalars().all())
