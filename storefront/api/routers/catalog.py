# storefront/api/routers/catalog.py
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_catalog
from storefront.api.errors import http_error
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import CategoryOut, HomeOut, ProductOut
from storefront.services.catalog_service import (
    CatalogService,
    SORT_OPTIONS,
    filter_price_range,
    sort_products,
)

router = APIRouter(tags=["catalog"])


@router.get("/home", response_model=HomeOut)
def home(svc: CatalogService = Depends(get_catalog)):
    try:
        return {"featured": svc.featured_products(8), "categories": svc.list_categories()}
    except StorefrontError as e:
        raise http_error(e)


@router.get("/products", response_model=List[ProductOut])
def list_products(
    category: str | None = Query(None),
    search: str | None = Query(None),
    featured: bool = Query(False),
    limit: int | None = Query(None, gt=0, le=200),
    sort: str = Query("name"),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    svc: CatalogService = Depends(get_catalog),
):
    if sort not in SORT_OPTIONS:
        raise HTTPException(
            status_code=400,
            detail={"title": "Invalid sort", "description": f"Sort by one of: {', '.join(SORT_OPTIONS)}."},
        )
    try:
        products = svc.list_products(
            category_id=category or None,
            search_text=search or None,
            featured_only=featured,
            limit=limit,
        )
    except StorefrontError as e:
        raise http_error(e)

    return filter_price_range(sort_products(products, sort), min_price, max_price)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: str, svc: CatalogService = Depends(get_catalog)):
    try:
        return svc.get_product(product_id)
    except StorefrontError as e:
        raise http_error(e)


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(svc: CatalogService = Depends(get_catalog)):
    try:
        return svc.list_categories()
    except StorefrontError as e:
        raise http_error(e)
