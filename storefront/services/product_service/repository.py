from typing import Optional, Sequence, Tuple

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product

SORTABLE_COLUMNS = {
    "created_at": Product.created_at,
    "price": Product.price,
    "name": Product.name,
    "stock_quantity": Product.stock_quantity,
}


def _like(term: str) -> str:
    return f"%{term}%"


class ProductRepository:

    @staticmethod
    async def save(db: AsyncSession, product: Product) -> Product:
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def delete(db: AsyncSession, product: Product) -> None:
        await db.delete(product)
        await db.commit()

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int, active_only: bool = True) -> Optional[Product]:
        stmt = select(Product).where(Product.id == product_id)
        if active_only:
            stmt = stmt.where(Product.is_active.is_(True))
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def list_products(
        db: AsyncSession,
        *,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        search: Optional[str] = None,
        active_only: bool = True,
        sort: str = "created_at",
        descending: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[Sequence[Product], int]:
        conditions = []
        if active_only:
            conditions.append(Product.is_active.is_(True))
        if category:
            conditions.append(Product.category == category)
        if subcategory:
            conditions.append(Product.subcategory == subcategory)
        if search:
            conditions.append(or_(Product.name.ilike(_like(search)), Product.description.ilike(_like(search))))

        column = SORTABLE_COLUMNS.get(sort, Product.created_at)
        ordering = column.desc() if descending else column.asc()

        result = await db.execute(
            select(Product).where(*conditions).order_by(ordering, Product.id.desc()).limit(limit).offset(offset)
        )
        total = await db.scalar(select(func.count()).select_from(Product).where(*conditions))
        return result.scalars().all(), total or 0

    @staticmethod
    async def search(db: AsyncSession, query: str, limit: int) -> Sequence[Product]:
        rank = case(
            (Product.name.ilike(f"{query}%"), 1),
            (Product.name.ilike(_like(query)), 2),
            else_=3,
        )
        result = await db.execute(
            select(Product)
            .where(
                Product.is_active.is_(True),
                or_(
                    Product.name.ilike(_like(query)),
                    Product.description.ilike(_like(query)),
                    Product.category.ilike(_like(query)),
                ),
            )
            .order_by(rank, Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    async def category_pairs(db: AsyncSession) -> Sequence[Tuple[Optional[str], Optional[str]]]:
        result = await db.execute(
            select(Product.category, Product.subcategory)
            .where(Product.is_active.is_(True))
            .distinct()
            .order_by(Product.category, Product.subcategory)
        )
        return result.all()
