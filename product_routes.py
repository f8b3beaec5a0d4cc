"""
Product catalog routes.

Prefix: /api/products. Listing and reading are public; create, update and
delete require an admin token.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pymongo import ReturnDocument
from pymongo.database import Database

from database import PRODUCTS, get_db, serialize_doc, to_object_id
from dependencies import require_admin
from errors import NotFoundError, ValidationError
from queries import build_product_filter, fetch_product_page, resolve_sort
from schemas import Category, Empty, Envelope, Product as ProductSchema, ProductPage, ProductPublic, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

PRODUCT_NOT_FOUND = "Product not found"
CATEGORIES = [c.value for c in Category]


def _normalize_category(value: Any) -> Any:
    if value is None:
        return value
    if not isinstance(value, str) or value.strip().lower() not in CATEGORIES:
        raise ValueError("Invalid category")
    return value.strip().lower()


class ProductIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    category: Category
    image: str = Field(..., min_length=1)
    stock: int = Field(..., ge=0)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _normalize_category(value)


class ProductUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    category: Optional[Category] = None
    image: Optional[str] = Field(None, min_length=1)
    stock: Optional[int] = Field(None, ge=0)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _normalize_category(value)


def to_public(doc: Dict[str, Any]) -> ProductPublic:
    return ProductPublic.model_validate(serialize_doc(doc))


def _find_product(db: Database, product_id: str) -> Dict[str, Any]:
    obj_id = to_object_id(product_id)
    product = db[PRODUCTS].find_one({"_id": obj_id}) if obj_id else None
    if not product:
        raise NotFoundError(PRODUCT_NOT_FOUND)
    return product


@router.get("", response_model=ProductPage)
def list_products(
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    min_rating: Optional[float] = Query(None, alias="minRating"),
    search: Optional[str] = None,
    sort: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query = build_product_filter(
        category=category,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        search=search,
    )
    result = fetch_product_page(db[PRODUCTS], query, resolve_sort(sort), page=page, limit=limit)
    return ProductPage(
        count=result["count"],
        total=result["total"],
        total_pages=result["total_pages"],
        current_page=result["current_page"],
        data=[to_public(d) for d in result["docs"]],
    )


@router.get("/{product_id}", response_model=Envelope[ProductPublic])
def get_product(product_id: str, db: Database = Depends(get_db)):
    return Envelope[ProductPublic](data=to_public(_find_product(db, product_id)))


@router.post("", response_model=Envelope[ProductPublic], status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductIn,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: Database = Depends(get_db),
):
    # rating and review count always start at zero, whatever the client sent
    product = ProductSchema(**data.model_dump(), rating=0, num_reviews=0)
    doc = product.model_dump()
    doc["user"] = to_object_id(current_user["id"])
    res = db[PRODUCTS].insert_one(doc)
    created = db[PRODUCTS].find_one({"_id": res.inserted_id})
    logger.info("Product %s created by %s", res.inserted_id, current_user["id"])
    return Envelope[ProductPublic](data=to_public(created))


@router.put("/{product_id}", response_model=Envelope[ProductPublic])
def update_product(
    product_id: str,
    data: ProductUpdate,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: Database = Depends(get_db),
):
    update_dict = data.model_dump(exclude_unset=True)
    nulls: List[str] = [k for k, v in update_dict.items() if v is None]
    if nulls:
        raise ValidationError(f"{', '.join(nulls)} cannot be null")

    obj_id = to_object_id(product_id)
    if obj_id is None:
        raise NotFoundError(PRODUCT_NOT_FOUND)
    update_dict["updated_at"] = utcnow()
    product = db[PRODUCTS].find_one_and_update(
        {"_id": obj_id},
        {"$set": update_dict},
        return_document=ReturnDocument.AFTER,
    )
    if not product:
        raise NotFoundError(PRODUCT_NOT_FOUND)
    logger.info("Product %s updated by %s (%s)", product_id, current_user["id"], ", ".join(sorted(update_dict)))
    return Envelope[ProductPublic](data=to_public(product))


@router.delete("/{product_id}", response_model=Envelope[Empty])
def delete_product(
    product_id: str,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: Database = Depends(get_db),
):
    obj_id = to_object_id(product_id)
    product = db[PRODUCTS].find_one_and_delete({"_id": obj_id}) if obj_id else None
    if not product:
        raise NotFoundError(PRODUCT_NOT_FOUND)
    logger.info("Product %s deleted by %s", product_id, current_user["id"])
    return Envelope[Empty](data=Empty())
