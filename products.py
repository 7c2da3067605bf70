"""
Product routes

Sellers create and maintain products, either with a flat price and stock
status or with attribute definitions and per-combination variants.
Deleting a product only deactivates it.
"""

import logging
import math
import re
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, find_by_id, get_db, now_utc, parse_object_id, serialize_doc
from schemas import Attribute, Product as ProductSchema, ProductVariant, StockStatus, VariantSelection
from variants import VariantKey, combination_matches

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


class CreateProductRequest(ProductSchema):
    pass


class UpdateProductRequest(BaseModel):
    product_id: Optional[str] = None
    name: Optional[str] = None
    brand: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    stock_status: Optional[StockStatus] = None
    tax_percentage: Optional[float] = Field(None, ge=0, le=100)
    has_variations: Optional[bool] = None
    attributes: Optional[List[Attribute]] = None
    variants: Optional[List[ProductVariant]] = None
    photo: Optional[str] = None
    photos: Optional[List[str]] = None
    is_active: Optional[bool] = None
    specifications: Optional[Dict[str, str]] = None


class ProductIdsRequest(BaseModel):
    product_ids: List[str]


class DisplayOrderEntry(BaseModel):
    id: str
    display_order: int


class DisplayOrderRequest(BaseModel):
    items: List[DisplayOrderEntry] = Field(..., min_length=1)


def load_active_product(database: Database, product_id: str) -> dict:
    product = find_by_id(database, "product", product_id, "product")
    if not product.get("is_active", True):
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def priced_line(product: dict, quantity: int, variant: Optional[VariantSelection]) -> dict:
    """Cart/order line carrying the current price of the product or of the selected variant."""
    line = {"product": str(product["_id"]), "quantity": quantity}
    if product.get("has_variations") and product.get("variants"):
        if not variant or not variant.combination:
            raise HTTPException(status_code=400, detail="Variant selection is required for this product")
        selected = next(
            (v for v in product["variants"] if v.get("is_active", True) and combination_matches(variant.combination, v)),
            None,
        )
        if not selected:
            raise HTTPException(status_code=400, detail="Selected variant not found")
        if selected.get("stock") != "in_stock":
            raise HTTPException(status_code=400, detail="Insufficient stock available")
        line["price"] = selected["price"]
        line["discounted_price"] = selected.get("discounted_price")
        line["variant"] = {
            "combination": VariantKey.from_combination(selected).as_dict(),
            "price": selected["price"],
            "original_price": variant.original_price or selected["price"],
            "stock": selected.get("stock"),
        }
    else:
        if product.get("stock_status") == "out_of_stock":
            raise HTTPException(status_code=400, detail="Insufficient stock available")
        line["price"] = product.get("price") or 0
        line["discounted_price"] = product.get("discounted_price")
        line["variant"] = None
    return line


def _require_active_category(database: Database, category: str) -> None:
    if not database["category"].find_one({"name": category, "is_active": True}):
        raise HTTPException(status_code=400, detail="Invalid category. Please select a valid category.")


def _validation_detail(error: ValidationError) -> List[str]:
    return [err["msg"] for err in error.errors()]


@router.post("", status_code=201)
def create_product(payload: CreateProductRequest, database: Database = Depends(get_db)):
    _require_active_category(database, payload.category)
    if database["product"].find_one({"product_id": payload.product_id}):
        raise HTTPException(status_code=400, detail="Product ID already exists. Please use a different Product ID.")

    try:
        new_id = create_document(database, "product", payload)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Product ID already exists. Please use a different Product ID.")
    doc = database["product"].find_one({"_id": parse_object_id(new_id)})
    logger.info(f"Product {payload.product_id} created by seller {payload.seller}")
    return {"message": "Product created successfully", "product": serialize_doc(doc)}


@router.get("")
def list_products(
    category: Optional[str] = None,
    seller: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    database: Database = Depends(get_db),
):
    page = max(page, 1)
    limit = max(limit, 1)
    filter_dict: dict = {"is_active": True}
    if category:
        filter_dict["category"] = category
    if seller:
        filter_dict["seller"] = seller
    if search:
        pattern = re.compile(re.escape(search), re.IGNORECASE)
        filter_dict["$or"] = [{"name": pattern}, {"description": pattern}]

    cursor = (
        database["product"].find(filter_dict)
        .sort("created_at", -1)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    total = database["product"].count_documents(filter_dict)
    return {
        "products": [serialize_doc(d) for d in cursor],
        "pagination": {"current": page, "pages": math.ceil(total / limit), "total": total},
    }


@router.get("/seller/{seller_id}")
def list_products_by_seller(seller_id: str, database: Database = Depends(get_db)):
    cursor = database["product"].find({"seller": seller_id, "is_active": True}).sort(
        [("display_order", 1), ("created_at", -1)]
    )
    return [serialize_doc(d) for d in cursor]


@router.get("/by-product-id/{product_id}")
def get_product_by_product_id(product_id: str, database: Database = Depends(get_db)):
    doc = database["product"].find_one({"product_id": product_id.strip()})
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return serialize_doc(doc)


@router.post("/by-product-ids")
def get_products_by_product_ids(payload: ProductIdsRequest, database: Database = Depends(get_db)):
    wanted = [pid.strip() for pid in payload.product_ids if pid and pid.strip()]
    docs = {d["product_id"]: d for d in database["product"].find({"product_id": {"$in": wanted}, "is_active": True})}
    # Keep the caller's ordering
    return {"products": [serialize_doc(docs[pid]) for pid in wanted if pid in docs]}


@router.put("/order/update")
def update_display_order(payload: DisplayOrderRequest, database: Database = Depends(get_db)):
    updated = 0
    for entry in payload.items:
        result = database["product"].update_one(
            {"_id": parse_object_id(entry.id, "product")},
            {"$set": {"display_order": entry.display_order, "updated_at": now_utc()}},
        )
        updated += result.modified_count
    return {"message": "Product order updated successfully", "updated": updated}


@router.get("/{product_id}")
def get_product(product_id: str, database: Database = Depends(get_db)):
    return serialize_doc(find_by_id(database, "product", product_id, "product"))


@router.put("/{product_id}")
def update_product(product_id: str, payload: UpdateProductRequest, database: Database = Depends(get_db)):
    existing = find_by_id(database, "product", product_id, "product")
    updates = payload.model_dump(exclude_unset=True)

    if updates.get("category"):
        _require_active_category(database, updates["category"])
    if updates.get("product_id") and updates["product_id"].strip() != existing["product_id"]:
        if database["product"].find_one({"product_id": updates["product_id"].strip()}):
            raise HTTPException(status_code=400, detail="Product ID already exists. Please use a different Product ID.")
    if updates.get("has_variations") is False:
        updates.setdefault("attributes", [])
        updates.setdefault("variants", [])

    try:
        merged = ProductSchema.model_validate({**existing, **updates})
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))

    fields = merged.model_dump()
    fields["updated_at"] = now_utc()
    doc = database["product"].find_one_and_update(
        {"_id": existing["_id"]},
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )
    logger.info(f"Product {doc['product_id']} updated: {sorted(updates)}")
    return {"message": "Product updated successfully", "product": serialize_doc(doc)}


@router.delete("/{product_id}")
def delete_product(product_id: str, database: Database = Depends(get_db)):
    result = database["product"].update_one(
        {"_id": parse_object_id(product_id, "product")},
        {"$set": {"is_active": False, "updated_at": now_utc()}},
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info(f"Product {product_id} deactivated")
    return {"message": "Product deleted successfully"}
