from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.config.database import get_db
from storefront.shared.schemas import PageParams, page_params
from storefront.shared.security import get_optional_user

from .schemas import CategoriesResponse, ProductDetailResponse, ProductListResponse, ProductResponse
from .service import ProductService

# Catalog reads are public; a valid token is resolved but never required
router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
    dependencies=[Depends(get_optional_user)],
)


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    search: Optional[str] = None,
    sort: Literal["created_at", "price", "name", "stock_quantity"] = "created_at",
    order: Literal["asc", "desc", "ASC", "DESC"] = "desc",
    page: PageParams = Depends(page_params(20)),
    db: AsyncSession = Depends(get_db),
):
    products, total = await ProductService.list_products(
        db, page, category=category, subcategory=subcategory, search=search, sort=sort, order=order
    )
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        pagination=page.describe(total),
    )


@router.get("/categories/list", response_model=CategoriesResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    return CategoriesResponse(categories=await ProductService.categories(db))


@router.get("/search/{query}", response_model=ProductListResponse)
async def search_products(
    query: str,
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    products = await ProductService.search(db, query, limit)
    return ProductListResponse(products=[ProductResponse.model_validate(p) for p in products])


@router.get("/featured/list", response_model=ProductListResponse)
async def featured_products(
    limit: int = Query(default=6, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    products = await ProductService.featured(db, limit)
    return ProductListResponse(products=[ProductResponse.model_validate(p) for p in products])


@router.get("/category/{category}", response_model=ProductListResponse)
async def products_by_category(
    category: str,
    subcategory: Optional[str] = None,
    page: PageParams = Depends(page_params(20)),
    db: AsyncSession = Depends(get_db),
):
    products, total = await ProductService.list_products(db, page, category=category, subcategory=subcategory)
    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in products],
        pagination=page.describe(total),
    )


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await ProductService.get_product(db, product_id)
    return ProductDetailResponse(product=ProductResponse.model_validate(product))
