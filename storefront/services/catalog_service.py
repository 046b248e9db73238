# storefront/services/catalog_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel
from storefront.domain.errors import NotFoundError
from storefront.repos.base import store_errors
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

SORT_OPTIONS = ("name", "price-low", "price-high", "featured")


def category_to_dict(category: CategoryModel | None) -> Dict[str, Any] | None:
    if category is None:
        return None
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "image_url": category.image_url,
        "created_at": category.created_at,
    }


def product_to_dict(product: ProductModel, category: CategoryModel | None = None) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "unit": product.unit,
        "category_id": product.category_id,
        "image_url": product.image_url,
        "is_featured": product.is_featured,
        "is_active": product.is_active,
        "stock_quantity": product.stock_quantity,
        "nutritional_info": product.nutritional_info,
        "created_at": product.created_at,
        "categories": category_to_dict(category),
    }


class CatalogService:
    """
    Read-only access to products and categories.
    Only active products are ever returned.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepo(db)

    def list_products(
        self,
        category_id: str | None = None,
        search_text: str | None = None,
        featured_only: bool = False,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        with store_errors(self.db, "listing products"):
            products = self.repo.list_products(
                category_id=category_id,
                search_text=search_text,
                featured_only=featured_only,
                limit=limit,
            )

            #one lookup for all categories on the page
            category_ids = {p.category_id for p in products if p.category_id}
            categories = {c.id: c for c in self.repo.get_categories_by_ids(category_ids)}

        return [product_to_dict(p, categories.get(p.category_id)) for p in products]

    def get_product(self, product_id: str) -> Dict[str, Any]:
        with store_errors(self.db, f"fetching product {product_id}"):
            product = self.repo.get_product(product_id)
            if product is None:
                raise NotFoundError("This product is not available.", title="Product not found")

            category = self.repo.get_category(product.category_id) if product.category_id else None

        return product_to_dict(product, category)

    def list_categories(self) -> List[Dict[str, Any]]:
        with store_errors(self.db, "listing categories"):
            categories = self.repo.list_categories()
        return [category_to_dict(c) for c in categories]

    def featured_products(self, limit: int = 8) -> List[Dict[str, Any]]:
        return self.list_products(featured_only=True, limit=limit)

    def search_products(self, text: str) -> List[Dict[str, Any]]:
        return self.list_products(search_text=text)


def sort_products(products: List[Dict[str, Any]], sort_by: str = "name") -> List[Dict[str, Any]]:
    """Caller-side ordering, applied after retrieval."""
    if sort_by == "price-low":
        return sorted(products, key=lambda p: Decimal(str(p["price"])))
    if sort_by == "price-high":
        return sorted(products, key=lambda p: Decimal(str(p["price"])), reverse=True)
    if sort_by == "name":
        return sorted(products, key=lambda p: p["name"].casefold())
    if sort_by == "featured":
        #stable, so newest-first order is kept inside each group
        return sorted(products, key=lambda p: not p.get("is_featured"))
    raise ValueError(f"Unknown sort option: {sort_by}")


def filter_price_range(
    products: List[Dict[str, Any]],
    low: Decimal | None = None,
    high: Decimal | None = None,
) -> List[Dict[str, Any]]:
    result = []
    for p in products:
        price = Decimal(str(p["price"]))
        if low is not None and price < low:
            continue
        if high is not None and price > high:
            continue
        result.append(p)
    return result
