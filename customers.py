"""
Customer routes

Each seller keeps an allow-list of customers identified by phone number.
Only listed, active phone numbers can sign up or log in to the customer
app. The token returned on signup and login is a random placeholder: it is
not stored, not tied to the customer, and no route checks it.
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import DEFAULT_COUNTRY
from database import create_document, find_by_id, get_db, get_documents, now_utc, parse_object_id, serialize_doc
from schemas import Address, AddressUpdate, Customer, merge_address, profile_complete

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["customers"])

NOT_REGISTERED = "Phone number not registered. Please contact the store owner to get access."
DUPLICATE_PHONE = "Customer with this phone number already exists"


class AddCustomerRequest(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    seller_id: str = Field(..., min_length=1)


class UpdateCustomerRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[AddressUpdate] = None


class PhoneRequest(BaseModel):
    phone: str = Field(..., min_length=1)


class CustomerAuthRequest(BaseModel):
    phone: str = Field(..., min_length=1)
    name: Optional[str] = None


def issue_token() -> str:
    return secrets.token_urlsafe(32)


def _find_permitted(database: Database, phone: str) -> dict:
    customer = database["customer"].find_one({"phone": phone.strip(), "is_active": True})
    if not customer:
        raise HTTPException(status_code=404, detail=NOT_REGISTERED)
    return customer


def _session_payload(customer: dict, message: str, default_country: str = DEFAULT_COUNTRY) -> dict:
    return {
        "message": message,
        "token": issue_token(),
        "customer": {
            "id": str(customer["_id"]),
            "name": customer["name"],
            "phone": customer["phone"],
            "seller_id": customer["seller_id"],
            "address": customer.get("address") or Address(country=default_country).model_dump(),
            "profile_complete": bool(customer.get("profile_complete")),
        },
    }


@router.get("/seller/{seller_id}")
def list_customers_by_seller(seller_id: str, database: Database = Depends(get_db)):
    docs = get_documents(database, "customer", {"seller_id": seller_id, "is_active": True}, sort=[("created_at", -1)])
    return [serialize_doc(d) for d in docs]


@router.post("", status_code=201)
def add_customer(payload: AddCustomerRequest, database: Database = Depends(get_db)):
    phone = payload.phone.strip()
    if database["customer"].find_one({"phone": phone}):
        raise HTTPException(status_code=400, detail=DUPLICATE_PHONE)
    try:
        new_id = create_document(
            database,
            "customer",
            Customer(name=payload.name, phone=phone, seller_id=payload.seller_id),
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail=DUPLICATE_PHONE)
    logger.info(f"Customer {phone} added for seller {payload.seller_id}")
    return serialize_doc(database["customer"].find_one({"_id": parse_object_id(new_id)}))


@router.post("/check-phone")
def check_phone(payload: PhoneRequest, database: Database = Depends(get_db)):
    customer = _find_permitted(database, payload.phone)
    return {
        "message": "Phone number is registered",
        "customer": {"name": customer["name"], "phone": customer["phone"]},
    }


@router.post("/signup")
def customer_signup(payload: CustomerAuthRequest, database: Database = Depends(get_db)):
    customer = _find_permitted(database, payload.phone)
    updates = {"last_login": now_utc(), "updated_at": now_utc()}
    if payload.name and payload.name.strip() and payload.name.strip() != customer["name"]:
        updates["name"] = payload.name.strip()
    database["customer"].update_one({"_id": customer["_id"]}, {"$set": updates})
    customer.update(updates)
    logger.info(f"Customer {customer['phone']} signed up")
    return _session_payload(customer, "Account created successfully")


@router.post("/login")
def customer_login(payload: CustomerAuthRequest, database: Database = Depends(get_db)):
    customer = _find_permitted(database, payload.phone)
    now = now_utc()
    database["customer"].update_one({"_id": customer["_id"]}, {"$set": {"last_login": now, "updated_at": now}})
    customer["last_login"] = now
    logger.info(f"Customer {customer['phone']} logged in")
    return _session_payload(customer, "Login successful")


@router.get("/{customer_id}")
def get_customer(customer_id: str, database: Database = Depends(get_db)):
    return {"customer": serialize_doc(find_by_id(database, "customer", customer_id, "customer"))}


@router.put("/{customer_id}")
def update_customer(customer_id: str, payload: UpdateCustomerRequest, database: Database = Depends(get_db)):
    customer = find_by_id(database, "customer", customer_id, "customer")

    if payload.name and payload.name.strip():
        customer["name"] = payload.name.strip()
    if payload.phone and payload.phone.strip():
        phone = payload.phone.strip()
        if database["customer"].find_one({"phone": phone, "_id": {"$ne": customer["_id"]}}):
            raise HTTPException(status_code=400, detail=DUPLICATE_PHONE)
        customer["phone"] = phone
    if payload.address:
        customer["address"] = merge_address(customer.get("address"), payload.address, DEFAULT_COUNTRY)

    customer["profile_complete"] = profile_complete(customer["name"], customer["phone"], customer.get("address"))
    customer["updated_at"] = now_utc()
    fields = {k: customer[k] for k in ("name", "phone", "address", "profile_complete", "updated_at") if k in customer}
    try:
        database["customer"].update_one({"_id": customer["_id"]}, {"$set": fields})
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail=DUPLICATE_PHONE)
    return {"message": "Profile updated successfully", "customer": serialize_doc(customer)}


@router.delete("/{customer_id}")
def delete_customer(customer_id: str, database: Database = Depends(get_db)):
    result = database["customer"].update_one(
        {"_id": parse_object_id(customer_id, "customer")},
        {"$set": {"is_active": False, "updated_at": now_utc()}},
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=404, detail="Customer not found")
    logger.info(f"Customer {customer_id} removed from allow-list")
    return {"message": "Customer removed successfully"}
