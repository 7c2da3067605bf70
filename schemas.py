"""
Database Schemas

Pydantic models that define MongoDB collections used by the app.
Each class name maps to a collection name (snake_case):
Product -> "product", HighlightedProduct -> "highlighted_product".
References to other documents are stored as their _id string.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from config import DEFAULT_COUNTRY, DEFAULT_STOCK_STATUS, DEFAULT_UNIT

StockStatus = Literal["in_stock", "out_of_stock"]
OrderStatus = Literal["pending", "accepted", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
DeliveryStatus = Literal["pending", "shipped", "out_for_delivery", "delivered"]
UserRole = Literal["seller", "customer"]


# Shared address shape
class Address(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = DEFAULT_COUNTRY


# Category collection
class Category(BaseModel):
    name: str = Field(..., min_length=1, description="Unique category name")
    description: str = Field("", description="Category description")
    is_active: bool = Field(True, description="Inactive categories are hidden from sellers")
    specifications: Dict[str, str] = Field(default_factory=dict)

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


# Product attribute definitions (embedded in Product)
class AttributeOption(BaseModel):
    name: str = Field(..., min_length=1)
    display_name: Optional[str] = None


class Attribute(BaseModel):
    name: str = Field(..., min_length=1, description="Attribute name, e.g. Storage")
    options: List[AttributeOption] = Field(..., min_length=1)


# One purchasable combination of attribute values (embedded in Product)
class ProductVariant(BaseModel):
    combination: Dict[str, str] = Field(..., min_length=1, description='e.g. {"Storage": "64GB", "Color": "Black"}')
    price: float = Field(..., ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    stock: StockStatus = DEFAULT_STOCK_STATUS
    images: List[str] = Field(default_factory=list)
    is_active: bool = True


# Product collection
class Product(BaseModel):
    product_id: str = Field(..., min_length=1, description="Human-assigned unique id (case-sensitive)")
    name: str = Field(..., min_length=1)
    brand: str = ""
    unit: str = DEFAULT_UNIT
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="Name of an active category")
    price: Optional[float] = Field(None, ge=0, description="Base price for products without variations")
    discounted_price: Optional[float] = Field(None, ge=0)
    stock_status: StockStatus = DEFAULT_STOCK_STATUS
    tax_percentage: float = Field(0, ge=0, le=100)
    has_variations: bool = False
    attributes: List[Attribute] = Field(default_factory=list)
    variants: List[ProductVariant] = Field(default_factory=list)
    photo: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    seller: str = Field(..., min_length=1, description="Seller user _id as string")
    seller_name: str = Field(..., min_length=1)
    seller_email: str = Field(..., min_length=1)
    is_active: bool = True
    display_order: int = 0
    specifications: Dict[str, str] = Field(default_factory=dict)

    @field_validator("product_id", "name", "description", "category")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def check_pricing_shape(self):
        if self.has_variations:
            if not self.attributes:
                raise ValueError("Attributes must be a non-empty array when has_variations is true")
            if not self.variants:
                raise ValueError("Variants must be a non-empty array when has_variations is true")
        else:
            if self.price is None:
                raise ValueError("Price is required when has_variations is false")
            if self.discounted_price is None:
                self.discounted_price = self.price
        if self.photos and not self.photo:
            self.photo = self.photos[0]
        return self


# Variant selected by a customer (embedded in cart and order items)
class VariantSelection(BaseModel):
    combination: Dict[str, str] = Field(default_factory=dict)
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    stock: Optional[StockStatus] = None


# Cart item (embedded in Cart)
class CartItem(BaseModel):
    product: str = Field(..., description="Referenced product _id as string")
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    variant: Optional[VariantSelection] = None


# Cart collection, one per user
class Cart(BaseModel):
    user: str = Field(..., description="Owner user _id as string")
    items: List[CartItem] = Field(default_factory=list)


# Order item (embedded in Order)
class OrderItem(BaseModel):
    product: str = Field(..., description="Referenced product _id as string")
    quantity: int = Field(..., ge=1, description="Quantity ordered")
    price: float = Field(..., ge=0, description="Unit price at purchase time")
    discounted_price: Optional[float] = Field(None, ge=0, description="Discounted unit price at purchase time")
    seller: str = Field(..., description="Seller user _id as string")
    variant: Optional[VariantSelection] = None


# Audit entry for quantity removed after the order was placed
class ReturnedItem(OrderItem):
    returned_at: datetime


class OrderAddress(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    country: str = DEFAULT_COUNTRY


class CustomerDetails(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    address: OrderAddress


# Order collection
class Order(BaseModel):
    order_id: str = Field(..., description="Human-readable order number")
    customer: str = Field(..., description="Customer user _id as string")
    customer_details: CustomerDetails
    items: List[OrderItem] = Field(..., min_length=1)
    returned_items: List[ReturnedItem] = Field(default_factory=list)
    total_amount: float = Field(..., ge=0)
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    delivery_status: DeliveryStatus = "pending"
    notes: str = ""
    tracking_number: str = ""
    accepted_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    viewed_by_customer: bool = False


# Customer collection: a seller's allow-list of phone numbers
class Customer(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1, description="Unique phone number")
    seller_id: str = Field(..., description="Owning seller _id as string")
    is_active: bool = True
    last_login: Optional[datetime] = None
    address: Address = Field(default_factory=Address)
    profile_complete: bool = False

    @field_validator("name", "phone")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


# HighlightedProduct collection, one per seller
class HighlightedProduct(BaseModel):
    seller: str
    product_ids: List[str] = Field(default_factory=list)


# User collection: sellers and customers with accounts
class User(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., description="bcrypt hash")
    role: UserRole = "customer"
    phone: str = ""
    address: Address = Field(default_factory=Address)
    profile_complete: bool = False


# Partial address sent by profile edits
class AddressUpdate(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None


def merge_address(existing: Optional[dict], update: AddressUpdate, default_country: str = DEFAULT_COUNTRY) -> dict:
    """Blank or missing fields in the update keep the stored value."""
    existing = existing or {}
    merged = {
        field: getattr(update, field) or existing.get(field, "")
        for field in ("street", "city", "state", "pincode")
    }
    merged["country"] = update.country or existing.get("country") or default_country
    return merged


def profile_complete(name: Optional[str], phone: Optional[str], address: Optional[dict]) -> bool:
    address = address or {}
    values = [name, phone] + [address.get(field) for field in ("street", "city", "state", "pincode")]
    return all(v and v.strip() for v in values)
