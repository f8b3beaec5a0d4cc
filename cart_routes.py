"""
Shopping cart routes.

Prefix: /api/cart. Each user has at most one cart document, created on the
first add. Every route works on the caller's own cart only.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pymongo.database import Database

from database import CARTS, PRODUCTS, get_db, to_object_id
from dependencies import get_current_user
from errors import NotFoundError, ValidationError
from product_routes import PRODUCT_NOT_FOUND, to_public
from schemas import Cart as CartSchema, CartItem as CartItemSchema, CartLine, CartPublic, Envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])

ITEM_NOT_IN_CART = "Item not in cart"


class AddCartItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    product_id: str
    quantity: int = Field(1, ge=1)


class UpdateCartItem(BaseModel):
    quantity: int = Field(..., ge=1)


def _load_product(db: Database, product_id: str) -> Dict[str, Any]:
    obj_id = to_object_id(product_id)
    product = db[PRODUCTS].find_one({"_id": obj_id}) if obj_id else None
    if not product:
        raise NotFoundError(PRODUCT_NOT_FOUND)
    return product


def _check_stock(product: Dict[str, Any], quantity: int) -> None:
    if quantity > int(product.get("stock", 0)):
        raise ValidationError("Insufficient stock")


def _render_cart(db: Database, cart: Dict[str, Any]) -> CartPublic:
    lines: List[CartLine] = []
    total_items = 0
    subtotal = 0.0
    for it in cart.get("items", []):
        obj_id = to_object_id(it["product_id"])
        prod = db[PRODUCTS].find_one({"_id": obj_id}) if obj_id else None
        quantity = int(it.get("quantity", 1))
        total_items += quantity
        if prod:
            subtotal += float(prod.get("price", 0)) * quantity
        lines.append(CartLine(product_id=it["product_id"], quantity=quantity, product=to_public(prod) if prod else None))
    return CartPublic(items=lines, total_items=total_items, subtotal=round(subtotal, 2))


def _get_cart(db: Database, user_id: str) -> Dict[str, Any]:
    cart = db[CARTS].find_one({"user_id": user_id})
    return cart or {"user_id": user_id, "items": []}


def _save_items(db: Database, user_id: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    cart = CartSchema(user_id=user_id, items=items)
    stored = [it.model_dump() for it in cart.items]
    db[CARTS].update_one(
        {"user_id": user_id},
        {"$set": {"items": stored, "updated_at": cart.updated_at}, "$setOnInsert": {"created_at": cart.created_at}},
        upsert=True,
    )
    return {"user_id": user_id, "items": stored}


def _index_of(items: List[Dict[str, Any]], product_id: str) -> int:
    for i, it in enumerate(items):
        if it["product_id"] == product_id:
            return i
    return -1


@router.get("", response_model=Envelope[CartPublic])
def get_cart(current_user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    return Envelope[CartPublic](data=_render_cart(db, _get_cart(db, current_user["id"])))


@router.post("", response_model=Envelope[CartPublic], status_code=status.HTTP_201_CREATED)
def add_to_cart(
    item: AddCartItem,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    product = _load_product(db, item.product_id)
    user_id = current_user["id"]
    items = list(_get_cart(db, user_id).get("items", []))

    idx = _index_of(items, item.product_id)
    if idx >= 0:
        quantity = int(items[idx]["quantity"]) + item.quantity
        _check_stock(product, quantity)
        items[idx]["quantity"] = quantity
    else:
        _check_stock(product, item.quantity)
        items.append(CartItemSchema(product_id=item.product_id, quantity=item.quantity).model_dump())

    cart = _save_items(db, user_id, items)
    logger.info("User %s added %s x%d to cart", user_id, item.product_id, item.quantity)
    return Envelope[CartPublic](data=_render_cart(db, cart))


@router.put("/{product_id}", response_model=Envelope[CartPublic])
def update_cart_item(
    product_id: str,
    item: UpdateCartItem,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user_id = current_user["id"]
    items = list(_get_cart(db, user_id).get("items", []))
    idx = _index_of(items, product_id)
    if idx < 0:
        raise NotFoundError(ITEM_NOT_IN_CART)
    _check_stock(_load_product(db, product_id), item.quantity)
    items[idx]["quantity"] = item.quantity
    cart = _save_items(db, user_id, items)
    return Envelope[CartPublic](data=_render_cart(db, cart))


@router.delete("/{product_id}", response_model=Envelope[CartPublic])
def remove_from_cart(
    product_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user_id = current_user["id"]
    items = list(_get_cart(db, user_id).get("items", []))
    idx = _index_of(items, product_id)
    if idx < 0:
        raise NotFoundError(ITEM_NOT_IN_CART)
    del items[idx]
    cart = _save_items(db, user_id, items)
    return Envelope[CartPublic](data=_render_cart(db, cart))


@router.delete("", response_model=Envelope[CartPublic])
def clear_cart(current_user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    cart = _save_items(db, current_user["id"], [])
    return Envelope[CartPublic](data=_render_cart(db, cart))
