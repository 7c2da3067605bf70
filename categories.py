"""
Category routes

Products must belong to an active category. Category names are unique
regardless of letter case; deleting a category only deactivates it.
"""

import logging
import re
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo.database import Database

from config import DEFAULT_CATEGORIES
from database import create_document, find_by_id, get_db, get_documents, now_utc, parse_object_id, serialize_doc
from schemas import Category

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["categories"])


class CreateCategoryRequest(BaseModel):
    name: str
    description: Optional[str] = None
    specifications: Optional[Dict[str, str]] = None


class UpdateCategoryRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    specifications: Optional[Dict[str, str]] = None


def _name_filter(name: str) -> dict:
    return {"name": re.compile(f"^{re.escape(name.strip())}$", re.IGNORECASE)}


def seed_categories(database: Database, categories: List[dict] = DEFAULT_CATEGORIES) -> List[str]:
    """Insert any default category that does not exist yet; returns the names added."""
    added = []
    for category in categories:
        if database["category"].find_one(_name_filter(category["name"])):
            continue
        create_document(database, "category", Category(**category))
        added.append(category["name"])
    if added:
        logger.info(f"Seeded categories: {', '.join(added)}")
    return added


@router.get("")
def list_active_categories(database: Database = Depends(get_db)):
    docs = get_documents(database, "category", {"is_active": True}, sort=[("name", 1)])
    return {"categories": [serialize_doc(d) for d in docs]}


@router.get("/all")
def list_all_categories(database: Database = Depends(get_db)):
    docs = get_documents(database, "category", {}, sort=[("name", 1)])
    return {"categories": [serialize_doc(d) for d in docs]}


@router.post("/seed")
def seed_default_categories(database: Database = Depends(get_db)):
    added = seed_categories(database)
    if not added:
        return {"message": "Categories already exist", "added": []}
    return {"message": "Seeded categories", "added": added}


@router.get("/{category_id}")
def get_category(category_id: str, database: Database = Depends(get_db)):
    return {"category": serialize_doc(find_by_id(database, "category", category_id, "category"))}


@router.post("", status_code=201)
def create_category(payload: CreateCategoryRequest, database: Database = Depends(get_db)):
    if not payload.name or not payload.name.strip():
        raise HTTPException(status_code=400, detail="Category name is required")
    if database["category"].find_one(_name_filter(payload.name)):
        raise HTTPException(status_code=400, detail="Category already exists")

    category = Category(
        name=payload.name,
        description=payload.description or "",
        specifications=payload.specifications or {},
    )
    new_id = create_document(database, "category", category)
    logger.info(f"Category {category.name} created")
    doc = database["category"].find_one({"_id": parse_object_id(new_id)})
    return {"message": "Category created successfully", "category": serialize_doc(doc)}


@router.put("/{category_id}")
def update_category(category_id: str, payload: UpdateCategoryRequest, database: Database = Depends(get_db)):
    category = find_by_id(database, "category", category_id, "category")
    updates = {}

    if payload.name and payload.name.strip():
        name = payload.name.strip()
        if name != category["name"]:
            conflict = database["category"].find_one({**_name_filter(name), "_id": {"$ne": category["_id"]}})
            if conflict:
                raise HTTPException(status_code=400, detail="Category name already exists")
            updates["name"] = name
    if payload.description is not None:
        updates["description"] = payload.description.strip()
    if payload.is_active is not None:
        updates["is_active"] = payload.is_active
    if payload.specifications:
        updates["specifications"] = payload.specifications

    updates["updated_at"] = now_utc()
    database["category"].update_one({"_id": category["_id"]}, {"$set": updates})
    category.update(updates)
    return {"message": "Category updated successfully", "category": serialize_doc(category)}


@router.delete("/{category_id}")
def delete_category(category_id: str, database: Database = Depends(get_db)):
    category = find_by_id(database, "category", category_id, "category")
    database["category"].update_one({"_id": category["_id"]}, {"$set": {"is_active": False, "updated_at": now_utc()}})
    logger.info(f"Category {category['name']} deactivated")
    return {"message": "Category deleted successfully"}
