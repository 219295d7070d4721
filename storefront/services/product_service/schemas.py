from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from storefront.shared.schemas import CamelModel, Pagination


class ProductCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    currency: str = "INR"
    category: Optional[str] = None
    subcategory: Optional[str] = None
    stock_quantity: int = Field(default=0, ge=0)
    images: List[str] = []
    features: Dict[str, Any] = {}
    specifications: Dict[str, Any] = {}


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    images: Optional[List[str]] = None
    features: Optional[Dict[str, Any]] = None
    specifications: Optional[Dict[str, Any]] = None


class ProductResponse(CamelModel):
    id: int
    name: str
    description: Optional[str]
    price: float
    original_price: Optional[float]
    currency: str
    category: Optional[str]
    subcategory: Optional[str]
    images: List[str]
    features: Dict[str, Any]
    specifications: Dict[str, Any]
    stock_quantity: int
    is_active: bool
    created_at: datetime


class ProductDetailResponse(CamelModel):
    product: ProductResponse


class ProductListResponse(CamelModel):
    products: List[ProductResponse]
    pagination: Optional[Pagination] = None


class CategoriesResponse(CamelModel):
    categories: Dict[str, List[str]]
