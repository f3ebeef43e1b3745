"""
Database Schemas for the Course Store

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercased class name (``course``, ``order``).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from errors import StorageOperationError, ValidationError, format_validation_errors

CUSTOMER_REQUIRED_MESSAGE = "Customer name and email are required"


class Course(BaseModel):
    # numbers sent for string fields are stored as strings
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: Optional[str] = Field(None, description="Course title")
    instructor: Optional[str] = None
    category: Optional[str] = Field(None, description="Language / subject, e.g. English")
    location: Optional[str] = None
    price: Optional[float] = None
    rating: Optional[float] = None
    spaces: Optional[int] = Field(None, description="Capacity; orders never decrement it")
    cover: Optional[str] = Field(None, description="Cover image URL")


class Customer(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    # name/email are checked by parse_order so a missing one is a 400
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None
    coupon: Optional[str] = None


class OrderItem(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    courseId: Optional[str] = None
    title: Optional[str] = None
    price: Optional[float] = None
    qty: Optional[int] = None


class OrderCreate(BaseModel):
    customer: Optional[Customer] = None
    items: Optional[List[OrderItem]] = None
    # trusted as sent; never recomputed from items or catalog prices
    total: Optional[float] = None


def validate_order(payload: OrderCreate) -> Customer:
    customer = payload.customer
    if customer is None or not customer.name or not customer.email:
        raise ValidationError(CUSTOMER_REQUIRED_MESSAGE)
    return customer


def parse_order(body: Any) -> OrderCreate:
    """Raw JSON body -> OrderCreate.

    A missing or non-object body or customer, or a falsy name/email, is a
    ValidationError (400). Anything else that cannot be cast to the order
    shape is a StorageOperationError (500).
    """
    customer = body.get("customer") if isinstance(body, dict) else None
    if not isinstance(customer, dict) or not customer.get("name") or not customer.get("email"):
        raise ValidationError(CUSTOMER_REQUIRED_MESSAGE)
    try:
        return OrderCreate.model_validate(body)
    except PydanticValidationError as e:
        raise StorageOperationError(f"Order validation failed: {format_validation_errors(e.errors())}")


def _now() -> datetime:
    # BSON dates keep milliseconds only
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def build_order_document(payload: OrderCreate, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Validated order payload -> document ready for insert."""
    customer = validate_order(payload)
    if payload.total is None:
        raise StorageOperationError("Order validation failed: total is required")
    return {
        "customer": customer.model_dump(exclude_unset=True),
        "items": [item.model_dump(exclude_unset=True) for item in payload.items or []],
        "total": payload.total,
        "createdAt": now or _now(),
    }
