"""
Order routes

Placing orders, seller-side status/delivery changes, customer views, and
editing the items of an existing order. Editing reconciles the submitted
item list against the stored one, logs whatever was removed as returned
items, re-prices the order and saves it in a single document write.
"""

import copy
import logging
import secrets
import string
import time
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo import ReturnDocument
from pymongo.database import Database

from database import (
    create_document,
    find_by_id,
    get_db,
    get_documents,
    now_utc,
    parse_object_id,
    parse_object_ids,
    serialize_doc,
)
from pricing import order_total
from schemas import CustomerDetails, DeliveryStatus, Order, OrderStatus, VariantSelection
from products import load_active_product, priced_line
from variants import VariantKey, line_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

PRODUCT_SUMMARY_FIELDS = ("product_id", "name", "description", "photo", "category", "tax_percentage")
USER_SUMMARY_FIELDS = ("name", "email", "phone")


class OrderItemsError(ValueError):
    """Submitted item list cannot be applied to the order."""


class EmptyOrderError(OrderItemsError):
    """Applying the submitted item list would leave the order without items."""


def generate_order_id() -> str:
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(5))
    return f"ORD{int(time.time() * 1000)}{suffix}"


# ---------------------------------------------------------------------------
# Item reconciliation
# ---------------------------------------------------------------------------

def reconcile_items(
    order_items: Iterable[Mapping],
    requested: Iterable[Mapping],
    now: datetime,
) -> Tuple[List[dict], List[dict]]:
    """Apply a requested item list to the current order lines.

    Lines are matched on (product, VariantKey). A requested quantity lower
    than the current one returns the difference; zero or an omitted line
    returns everything. Quantities can only go down.

    Returns (kept_lines, new_returned_records). Inputs are not modified.
    """
    requested_quantities: Dict[Tuple[str, VariantKey], int] = {}
    for entry in requested:
        quantity = int(entry.get("quantity", 0))
        if quantity < 0:
            raise OrderItemsError(f"Quantity for product {entry.get('product')} cannot be negative")
        # Last entry for a key wins
        requested_quantities[line_key(entry)] = quantity

    kept: List[dict] = []
    returned: List[dict] = []
    existing_keys = set()

    for line in order_items:
        key = line_key(line)
        existing_keys.add(key)
        current = int(line["quantity"])
        wanted = requested_quantities.get(key, 0)

        if wanted > current:
            raise OrderItemsError(
                f"Quantity for product {key[0]} cannot be increased from {current} to {wanted}"
            )
        if wanted < current:
            record = copy.deepcopy(dict(line))
            record["quantity"] = current - wanted
            record["returned_at"] = now
            returned.append(record)
        if wanted > 0:
            kept_line = copy.deepcopy(dict(line))
            kept_line["quantity"] = wanted
            kept.append(kept_line)

    unknown = [key for key, qty in requested_quantities.items() if key not in existing_keys and qty > 0]
    if unknown:
        products = ", ".join(sorted({product for product, _ in unknown}))
        raise OrderItemsError(f"Items not present in this order: {products}")

    if not kept:
        raise EmptyOrderError("An order must keep at least one item; cancel the order instead")

    return kept, returned


def fetch_tax_rates(database: Database, items: Iterable[Mapping]) -> Dict[str, float]:
    """Tax percentage per product id, looked up in one query.

    Products that no longer resolve are left out, so their lines carry no tax.
    """
    product_ids = {str(item.get("product")) for item in items}
    docs = database["product"].find({"_id": {"$in": parse_object_ids(product_ids)}}, {"tax_percentage": 1})
    rates = {str(doc["_id"]): float(doc.get("tax_percentage") or 0) for doc in docs}
    missing = product_ids - set(rates)
    if missing:
        logger.warning(f"Tax lookup skipped for unresolved products: {sorted(missing)}")
    return rates


def update_order_items(database: Database, order_id: str, items: List[Mapping]) -> dict:
    oid = parse_object_id(order_id, "order")
    order = database["order"].find_one({"_id": oid})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    now = now_utc()
    kept, returned = reconcile_items(order.get("items", []), items, now)

    tax_rates = fetch_tax_rates(database, kept)
    order["items"] = kept
    order["returned_items"] = list(order.get("returned_items", [])) + returned
    order["total_amount"] = order_total(kept, tax_rates)
    order["updated_at"] = now

    database["order"].replace_one({"_id": oid}, order)
    logger.info(
        f"Order {order.get('order_id')} items updated: {len(kept)} kept, "
        f"{len(returned)} returned, total {order['total_amount']}"
    )
    return order


# ---------------------------------------------------------------------------
# Population of references for responses
# ---------------------------------------------------------------------------

def _summaries(database: Database, collection: str, ids: Iterable[str], fields: Iterable[str]) -> Dict[str, dict]:
    projection = {field: 1 for field in fields}
    docs = database[collection].find({"_id": {"$in": parse_object_ids(set(ids))}}, projection)
    return {str(doc["_id"]): serialize_doc(doc) for doc in docs}


def populate_order(database: Database, order: dict) -> dict:
    """Serialize an order with product, seller and customer summaries inlined."""
    out = serialize_doc(order)
    lines = out.get("items", []) + out.get("returned_items", [])
    products = _summaries(database, "product", (l.get("product") for l in lines), PRODUCT_SUMMARY_FIELDS)
    users = _summaries(
        database,
        "user",
        [l.get("seller") for l in lines] + [out.get("customer")],
        USER_SUMMARY_FIELDS,
    )
    for line in lines:
        line["product"] = products.get(line.get("product"), line.get("product"))
        line["seller"] = users.get(line.get("seller"), line.get("seller"))
    out["customer"] = users.get(out.get("customer"), out.get("customer"))
    return out


# ---------------------------------------------------------------------------
# Order creation
# ---------------------------------------------------------------------------

class CreateOrderItem(BaseModel):
    product: str
    quantity: int = Field(..., ge=1)
    variant: Optional[VariantSelection] = None


class CreateOrderRequest(BaseModel):
    customer: str = Field(..., min_length=1)
    customer_details: CustomerDetails
    items: List[CreateOrderItem]
    notes: str = ""


def _price_line(database: Database, item: CreateOrderItem) -> Tuple[dict, float]:
    """Snapshot price and seller for one requested line; returns (line, tax_percentage)."""
    product = load_active_product(database, item.product)
    line = priced_line(product, item.quantity, item.variant)
    line["seller"] = product["seller"]
    return line, float(product.get("tax_percentage") or 0)


def _merge_lines(lines: List[dict]) -> List[dict]:
    merged: Dict[Tuple[str, VariantKey], dict] = {}
    for line in lines:
        key = line_key(line)
        if key in merged:
            merged[key]["quantity"] += line["quantity"]
        else:
            merged[key] = line
    return list(merged.values())


@router.post("", status_code=201)
def create_order(payload: CreateOrderRequest, database: Database = Depends(get_db)):
    if not payload.items:
        raise HTTPException(status_code=400, detail="Cannot place an empty order")

    lines = []
    tax_rates: Dict[str, float] = {}
    for item in payload.items:
        line, tax = _price_line(database, item)
        lines.append(line)
        tax_rates[line["product"]] = tax
    lines = _merge_lines(lines)

    order = Order(
        order_id=generate_order_id(),
        customer=payload.customer,
        customer_details=payload.customer_details,
        items=lines,
        total_amount=order_total(lines, tax_rates),
        notes=payload.notes,
    )
    new_id = create_document(database, "order", order)
    created = database["order"].find_one({"_id": parse_object_id(new_id)})
    logger.info(f"Order {order.order_id} created for customer {payload.customer}, total {order.total_amount}")
    return {"message": "Order created successfully", "order": populate_order(database, created)}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _list_orders(database: Database, filter_dict: dict) -> List[dict]:
    docs = get_documents(database, "order", filter_dict, sort=[("created_at", -1)])
    return [populate_order(database, d) for d in docs]


@router.get("")
def list_orders(database: Database = Depends(get_db)):
    return {"message": "Orders fetched successfully", "orders": _list_orders(database, {})}


@router.get("/seller/{seller_id}")
def list_orders_by_seller(seller_id: str, database: Database = Depends(get_db)):
    return {"message": "Orders fetched successfully", "orders": _list_orders(database, {"items.seller": seller_id})}


@router.get("/customer/{customer_id}")
def list_orders_by_customer(customer_id: str, database: Database = Depends(get_db)):
    return {"message": "Orders fetched successfully", "orders": _list_orders(database, {"customer": customer_id})}


@router.put("/customer/{customer_id}/mark-viewed")
def mark_orders_viewed(customer_id: str, database: Database = Depends(get_db)):
    result = database["order"].update_many(
        {"customer": customer_id, "status": {"$in": ["accepted", "cancelled"]}, "viewed_by_customer": False},
        {"$set": {"viewed_by_customer": True, "updated_at": now_utc()}},
    )
    return {"message": "Orders marked as viewed", "updated": result.modified_count}


@router.get("/{order_id}")
def get_order(order_id: str, database: Database = Depends(get_db)):
    order = find_by_id(database, "order", order_id, "order")
    return {"message": "Order fetched successfully", "order": populate_order(database, order)}


# ---------------------------------------------------------------------------
# Seller-side mutations
# ---------------------------------------------------------------------------

class OrderStatusUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None


class DeliveryStatusUpdate(BaseModel):
    delivery_status: Optional[DeliveryStatus] = None
    tracking_number: Optional[str] = None


class OrderItemUpdate(BaseModel):
    product: str
    quantity: int = Field(..., ge=0)
    variant: Optional[VariantSelection] = None


class UpdateOrderItemsRequest(BaseModel):
    items: List[OrderItemUpdate]


def _apply_update(database: Database, order_id: str, updates: dict) -> dict:
    updates["updated_at"] = now_utc()
    order = database["order"].find_one_and_update(
        {"_id": parse_object_id(order_id, "order")},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.put("/{order_id}/status")
def update_order_status(order_id: str, payload: OrderStatusUpdate, database: Database = Depends(get_db)):
    updates = {}
    if payload.status:
        updates["status"] = payload.status
        updates["viewed_by_customer"] = False
        if payload.status == "accepted":
            updates["accepted_at"] = now_utc()
            updates["delivery_status"] = "pending"
        elif payload.status == "cancelled":
            updates["cancelled_at"] = now_utc()
        elif payload.status in ("shipped", "delivered"):
            updates["delivery_status"] = payload.status
    if payload.notes:
        updates["notes"] = payload.notes
    if payload.tracking_number:
        updates["tracking_number"] = payload.tracking_number

    order = _apply_update(database, order_id, updates)
    logger.info(f"Order {order.get('order_id')} status set to {order.get('status')}")
    return {"message": "Order status updated successfully", "order": populate_order(database, order)}


@router.put("/{order_id}/delivery")
def update_delivery_status(order_id: str, payload: DeliveryStatusUpdate, database: Database = Depends(get_db)):
    updates = {}
    if payload.delivery_status:
        updates["delivery_status"] = payload.delivery_status
        if payload.delivery_status in ("shipped", "delivered"):
            updates["status"] = payload.delivery_status
    if payload.tracking_number:
        updates["tracking_number"] = payload.tracking_number

    order = _apply_update(database, order_id, updates)
    logger.info(f"Order {order.get('order_id')} delivery status set to {order.get('delivery_status')}")
    return {"message": "Delivery status updated successfully", "order": populate_order(database, order)}


@router.put("/{order_id}/items")
def update_items(order_id: str, payload: UpdateOrderItemsRequest, database: Database = Depends(get_db)):
    requested = [item.model_dump() for item in payload.items]
    try:
        order = update_order_items(database, order_id, requested)
    except EmptyOrderError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except OrderItemsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Order items updated successfully", "order": populate_order(database, order)}
