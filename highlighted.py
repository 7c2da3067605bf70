"""
Highlighted product routes

Each seller keeps one list of product ids to feature in the customer app.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo.database import Database

from database import create_document, get_db, now_utc, serialize_doc
from schemas import HighlightedProduct

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/highlighted-products", tags=["highlighted-products"])


class ProductIdRequest(BaseModel):
    product_id: str


class ProductIdsRequest(BaseModel):
    product_ids: List[str]


def _clean_id(product_id: str) -> str:
    cleaned = (product_id or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail="Product ID is required")
    return cleaned


def _get_or_create(database: Database, seller_id: str) -> dict:
    highlighted = database["highlighted_product"].find_one({"seller": seller_id})
    if not highlighted:
        create_document(database, "highlighted_product", HighlightedProduct(seller=seller_id))
        highlighted = database["highlighted_product"].find_one({"seller": seller_id})
    return highlighted


def _save_ids(database: Database, highlighted: dict, product_ids: List[str]) -> dict:
    database["highlighted_product"].update_one(
        {"_id": highlighted["_id"]},
        {"$set": {"product_ids": product_ids, "updated_at": now_utc()}},
    )
    highlighted["product_ids"] = product_ids
    return highlighted


@router.get("/seller/{seller_id}")
def get_highlighted_products(seller_id: str, database: Database = Depends(get_db)):
    highlighted = _get_or_create(database, seller_id)
    logger.info(f"Highlighted products for seller {seller_id}: {highlighted['product_ids']}")
    return {"highlighted": serialize_doc(highlighted)}


@router.post("/seller/{seller_id}/add")
def add_highlighted_product(seller_id: str, payload: ProductIdRequest, database: Database = Depends(get_db)):
    product_id = _clean_id(payload.product_id)
    highlighted = _get_or_create(database, seller_id)
    if product_id in highlighted["product_ids"]:
        raise HTTPException(status_code=400, detail="Product ID already exists in highlighted products")
    highlighted = _save_ids(database, highlighted, highlighted["product_ids"] + [product_id])
    logger.info(f"Highlighted product {product_id} added for seller {seller_id}")
    return {"message": "Product added to highlighted products", "highlighted": serialize_doc(highlighted)}


@router.post("/seller/{seller_id}/remove")
def remove_highlighted_product(seller_id: str, payload: ProductIdRequest, database: Database = Depends(get_db)):
    product_id = _clean_id(payload.product_id)
    highlighted = database["highlighted_product"].find_one({"seller": seller_id})
    if not highlighted:
        raise HTTPException(status_code=404, detail="No highlighted products found")
    remaining = [pid for pid in highlighted["product_ids"] if pid != product_id]
    highlighted = _save_ids(database, highlighted, remaining)
    logger.info(f"Highlighted product {product_id} removed for seller {seller_id}")
    return {"message": "Product removed from highlighted products", "highlighted": serialize_doc(highlighted)}


@router.put("/seller/{seller_id}")
def replace_highlighted_products(seller_id: str, payload: ProductIdsRequest, database: Database = Depends(get_db)):
    product_ids = [pid.strip() for pid in payload.product_ids if pid and pid.strip()]
    highlighted = _save_ids(database, _get_or_create(database, seller_id), product_ids)
    return {"message": "Highlighted products updated", "highlighted": serialize_doc(highlighted)}
