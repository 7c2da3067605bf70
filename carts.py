"""
Cart routes

One cart per user. Lines are identified by product plus variant identity,
so adding the same product/variant again only increases its quantity.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo.database import Database

from database import create_document, get_db, now_utc, parse_object_ids, serialize_doc
from pricing import order_total
from products import load_active_product, priced_line
from schemas import Cart, VariantSelection
from variants import VariantKey, line_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddToCartRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    variant: Optional[VariantSelection] = None


class UpdateCartItemRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0)
    variant: Optional[VariantSelection] = None


class RemoveFromCartRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    variant: Optional[VariantSelection] = None


class ClearCartRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


def _find_line(cart: dict, product_id: str, variant: Optional[VariantSelection]) -> int:
    wanted = (product_id, VariantKey.from_combination(variant))
    for index, item in enumerate(cart.get("items", [])):
        if line_key(item) == wanted:
            return index
    return -1


def _load_cart(database: Database, user_id: str) -> dict:
    cart = database["cart"].find_one({"user": user_id})
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


def _save_items(database: Database, cart: dict) -> None:
    database["cart"].update_one({"_id": cart["_id"]}, {"$set": {"items": cart["items"], "updated_at": now_utc()}})


def populate_cart(database: Database, cart: dict) -> dict:
    out = serialize_doc(cart)
    products = {}
    product_ids = [item["product"] for item in out.get("items", [])]
    if product_ids:
        for doc in database["product"].find({"_id": {"$in": parse_object_ids(product_ids)}}):
            products[str(doc["_id"])] = serialize_doc(doc)
    tax_rates = {pid: p.get("tax_percentage", 0) for pid, p in products.items()}
    out["total_amount"] = order_total(out.get("items", []), tax_rates)
    for item in out.get("items", []):
        item["product"] = products.get(item["product"], item["product"])
    return out


@router.post("/add")
def add_to_cart(payload: AddToCartRequest, database: Database = Depends(get_db)):
    logger.info(f"Cart add: user {payload.user_id}, product {payload.product_id}")
    product = load_active_product(database, payload.product_id)
    new_line = priced_line(product, payload.quantity, payload.variant)

    cart = database["cart"].find_one({"user": payload.user_id})
    if not cart:
        create_document(database, "cart", Cart(user=payload.user_id, items=[new_line]))
    else:
        index = next((i for i, item in enumerate(cart["items"]) if line_key(item) == line_key(new_line)), -1)
        if index > -1:
            cart["items"][index]["quantity"] += payload.quantity
        else:
            cart["items"].append(new_line)
        _save_items(database, cart)

    cart = database["cart"].find_one({"user": payload.user_id})
    return {"message": "Item added to cart successfully", "cart": populate_cart(database, cart)}


@router.get("/{user_id}")
def get_cart(user_id: str, database: Database = Depends(get_db)):
    cart = database["cart"].find_one({"user": user_id})
    if not cart:
        return {"cart": {"items": [], "total_amount": 0}}
    return {"cart": populate_cart(database, cart)}


@router.put("/update")
def update_cart_item(payload: UpdateCartItemRequest, database: Database = Depends(get_db)):
    cart = _load_cart(database, payload.user_id)
    index = _find_line(cart, payload.product_id, payload.variant)
    if index == -1:
        raise HTTPException(status_code=404, detail="Item not found in cart")

    if payload.quantity == 0:
        cart["items"].pop(index)
    else:
        product = load_active_product(database, payload.product_id)
        # Re-check availability at the current stock state
        priced_line(product, payload.quantity, payload.variant)
        cart["items"][index]["quantity"] = payload.quantity

    _save_items(database, cart)
    return {"message": "Cart updated successfully", "cart": populate_cart(database, cart)}


@router.delete("/remove")
def remove_from_cart(payload: RemoveFromCartRequest, database: Database = Depends(get_db)):
    cart = _load_cart(database, payload.user_id)
    if payload.variant and payload.variant.combination:
        wanted = (payload.product_id, VariantKey.from_combination(payload.variant))
        cart["items"] = [item for item in cart["items"] if line_key(item) != wanted]
    else:
        # No variant given: drop every line of the product
        cart["items"] = [item for item in cart["items"] if str(item["product"]) != payload.product_id]
    _save_items(database, cart)
    return {"message": "Item removed from cart successfully", "cart": populate_cart(database, cart)}


@router.delete("/clear")
def clear_cart(payload: ClearCartRequest, database: Database = Depends(get_db)):
    cart = _load_cart(database, payload.user_id)
    cart["items"] = []
    _save_items(database, cart)
    return {"message": "Cart cleared successfully", "cart": populate_cart(database, cart)}
