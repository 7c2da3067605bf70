"""
User routes

Seller and customer accounts. Registration requires the onboarding code;
customers who already registered may log in with their email alone.
The token returned on login is a placeholder, not a credential.
"""

import logging
from typing import Optional

import bcrypt
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import DEFAULT_COUNTRY, ONBOARDING_CODE, USER_TOKEN
from database import create_document, find_by_id, get_db, now_utc, parse_object_id, serialize_doc
from schemas import AddressUpdate, User, UserRole, merge_address, profile_complete

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


class RegisterUserRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    unique_code: str
    role: UserRole = "customer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: Optional[str] = None
    name: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[AddressUpdate] = None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))


@router.post("", status_code=201)
def register_user(payload: RegisterUserRequest, database: Database = Depends(get_db)):
    email = payload.email.lower()
    if database["user"].find_one({"email": email}):
        raise HTTPException(status_code=400, detail="User already exists")
    if payload.unique_code != ONBOARDING_CODE:
        raise HTTPException(status_code=403, detail="Invalid unique code")

    user = User(
        name=payload.name.strip(),
        email=email,
        password=hash_password(payload.password),
        role=payload.role,
    )
    try:
        new_id = create_document(database, "user", user)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info(f"Registered {payload.role} {email}")
    return serialize_doc(database["user"].find_one({"_id": parse_object_id(new_id)}))


@router.post("/login")
def login_user(payload: LoginRequest, database: Database = Depends(get_db)):
    email = payload.email.lower()
    if payload.password:
        user = database["user"].find_one({"email": email})
        if user and not check_password(payload.password, user.get("password", "")):
            user = None
    else:
        # Email-only login is allowed for registered customers
        user = database["user"].find_one({"email": email, "role": "customer"})

    if not user:
        raise HTTPException(status_code=404, detail="Invalid credentials")
    if payload.name and user["name"].strip().lower() != payload.name.strip().lower():
        raise HTTPException(status_code=400, detail="Name does not match our records")

    logger.info(f"User {email} logged in")
    return {"token": USER_TOKEN, "user": serialize_doc(user)}


@router.get("/{user_id}")
def get_user_profile(user_id: str, database: Database = Depends(get_db)):
    return {"user": serialize_doc(find_by_id(database, "user", user_id, "user"))}


@router.put("/{user_id}")
def update_user_profile(user_id: str, payload: UpdateProfileRequest, database: Database = Depends(get_db)):
    user = find_by_id(database, "user", user_id, "user")

    if payload.name and payload.name.strip():
        user["name"] = payload.name.strip()
    if payload.phone:
        user["phone"] = payload.phone.strip()
    if payload.address:
        user["address"] = merge_address(user.get("address"), payload.address, DEFAULT_COUNTRY)
    user["profile_complete"] = profile_complete(user.get("name"), user.get("phone"), user.get("address"))
    user["updated_at"] = now_utc()

    fields = {k: user.get(k) for k in ("name", "phone", "address", "profile_complete", "updated_at")}
    database["user"].update_one({"_id": user["_id"]}, {"$set": fields})
    return {"message": "Profile updated successfully", "user": serialize_doc(user)}
