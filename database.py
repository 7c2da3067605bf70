"""
Database helpers

MongoDB connection plus the small set of helpers every route uses:
document creation with timestamps, listing, id parsing and JSON
serialization of stored documents.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import DATABASE_NAME, DATABASE_URL

logger = logging.getLogger(__name__)

db: Optional[Database] = None

if DATABASE_URL and DATABASE_NAME:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]
    logger.info(f"MongoDB client configured for database {DATABASE_NAME}")
else:
    logger.warning("DATABASE_URL and DATABASE_NAME are not set; database is unavailable")


def get_db() -> Database:
    """FastAPI dependency returning the configured database."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return db


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document stamped with created_at/updated_at and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    timestamp = now_utc()
    data_dict["created_at"] = timestamp
    data_dict["updated_at"] = timestamp
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[dict] = None,
    limit: Optional[int] = None,
    sort: Optional[list] = None,
) -> List[dict]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def parse_object_id(value: str, label: str = "document") -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {label} id")


def parse_object_ids(values) -> List[ObjectId]:
    """Valid ObjectIds among values; anything that is not an id is skipped."""
    ids = []
    for value in values:
        if not value:
            continue
        try:
            ids.append(ObjectId(value))
        except (InvalidId, TypeError):
            continue
    return ids


def find_by_id(database: Database, collection_name: str, doc_id: str, label: str) -> dict:
    """Fetch one document by its _id, raising 400/404 the way every route expects."""
    doc = database[collection_name].find_one({"_id": parse_object_id(doc_id, label)})
    if not doc:
        raise HTTPException(status_code=404, detail=f"{label.capitalize()} not found")
    return doc


def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def serialize_doc(doc: Optional[Dict[str, Any]]):
    if not doc:
        return doc
    out = {}
    for k, v in doc.items():
        if k == "_id":
            out["id"] = str(v)
        elif k == "password":
            continue
        else:
            out[k] = _serialize_value(v)
    return out


def ensure_indexes(database: Database) -> None:
    """Create the indexes the collections rely on for uniqueness and lookups."""
    database["product"].create_index([("product_id", ASCENDING)], unique=True)
    database["product"].create_index([("category", ASCENDING)])
    database["product"].create_index([("seller", ASCENDING)])
    database["order"].create_index([("order_id", ASCENDING)], unique=True)
    database["order"].create_index([("customer", ASCENDING)])
    database["order"].create_index([("items.seller", ASCENDING)])
    database["order"].create_index([("status", ASCENDING)])
    database["cart"].create_index([("user", ASCENDING)], unique=True)
    database["customer"].create_index([("phone", ASCENDING)], unique=True)
    database["category"].create_index([("name", ASCENDING)], unique=True)
    database["category"].create_index([("is_active", ASCENDING)])
    database["highlighted_product"].create_index([("seller", ASCENDING)], unique=True)
    database["user"].create_index([("email", ASCENDING)], unique=True)
    logger.info("Database indexes ensured")
