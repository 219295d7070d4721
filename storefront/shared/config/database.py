from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .settings import DATABASE_URL, DB_ECHO

engine = create_async_engine(DATABASE_URL, echo=DB_ECHO)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables(bind=engine) -> None:
    # IMPORTANT: import models so they register with Base
    from storefront.services.auth_service import models as auth_models  # noqa: F401
    from storefront.services.user_service import models as user_models  # noqa: F401
    from storefront.services.product_service import models as product_models  # noqa: F401
    from storefront.services.order_service import models as order_models  # noqa: F401
    from storefront.services.payment_service import models as payment_models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
