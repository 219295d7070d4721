from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.shared.errors import ProductNotFound, ValidationFailed
from storefront.shared.schemas import PageParams

from .models import Product
from .repository import ProductRepository
from .schemas import ProductCreate, ProductUpdate


class ProductService:

    @staticmethod
    async def list_products(
        db: AsyncSession,
        page: PageParams,
        *,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "created_at",
        order: str = "desc",
        active_only: bool = True,
    ) -> Tuple[Sequence[Product], int]:
        return await ProductRepository.list_products(
            db,
            category=category,
            subcategory=subcategory,
            search=search,
            active_only=active_only,
            sort=sort,
            descending=order.lower() != "asc",
            limit=page.limit,
            offset=page.offset,
        )

    @staticmethod
    async def get_product(db: AsyncSession, product_id: int, active_only: bool = True) -> Product:
        product = await ProductRepository.get_product_by_id(db, product_id, active_only=active_only)
        if not product:
            raise ProductNotFound()
        return product

    @staticmethod
    async def search(db: AsyncSession, query: str, limit: int) -> Sequence[Product]:
        return await ProductRepository.search(db, query, limit)

    @staticmethod
    async def featured(db: AsyncSession, limit: int) -> Sequence[Product]:
        products, _ = await ProductRepository.list_products(db, limit=limit)
        return products

    @staticmethod
    async def categories(db: AsyncSession) -> Dict[str, List[str]]:
        categories: Dict[str, List[str]] = {}
        for category, subcategory in await ProductRepository.category_pairs(db):
            if category is None:
                continue
            bucket = categories.setdefault(category, [])
            if subcategory and subcategory not in bucket:
                bucket.append(subcategory)
        return categories

    # --- Administration ---

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
        product = Product(**data.model_dump())
        return await ProductRepository.save(db, product)

    @staticmethod
    async def update_product(db: AsyncSession, product_id: int, data: ProductUpdate) -> Product:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationFailed("No fields to update.")

        product = await ProductService.get_product(db, product_id, active_only=False)
        for field, value in changes.items():
            setattr(product, field, value)
        return await ProductRepository.save(db, product)

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: int) -> None:
        product = await ProductService.get_product(db, product_id, active_only=False)
        await ProductRepository.delete(db, product)
