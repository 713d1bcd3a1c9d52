"""
Database Schemas for the shipment API

Shipments live in the MongoDB collection "shipment" (the lowercase of the
class name). Request payloads are deliberately permissive: every field is
optional so that completeness is checked by the normalizer rather than by
request parsing.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, List, Union
from datetime import datetime

# datetime from Mongo, ISO string or epoch milliseconds from operators
Timestamp = Union[datetime, str, int, float]

DEFAULT_CURRENCY = "AED"


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    line1: str
    line2: Optional[str] = None
    city: str
    postalCode: Optional[str] = None
    country: str
    phone: Optional[str] = None
    email: Optional[str] = None


class ParcelInput(BaseModel):
    """Current parcel shape as submitted; may be partial."""
    weight: Optional[float] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class Dims(BaseModel):
    """Legacy dimensions, either spelled out or single-letter."""
    L: Optional[float] = None
    W: Optional[float] = None
    H: Optional[float] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class Parcel(BaseModel):
    weight: float  # kg
    length: float  # cm
    width: float
    height: float


class ShipmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[Address] = Field(default=None, alias="from")
    to: Optional[Address] = None

    parcel: Optional[ParcelInput] = None

    # legacy shape
    weightKg: Optional[float] = None
    dims: Optional[Dims] = None

    speed: Optional[str] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    priceAED: Optional[float] = None
    customerEmail: Optional[str] = None  # accepted from older clients, not stored
    currency: Optional[str] = None


class ShipmentRecord(BaseModel):
    """Canonical shipment, valid against both the legacy and current document shapes."""
    model_config = ConfigDict(populate_by_name=True)

    from_: Address = Field(alias="from")
    to: Address
    parcel: Parcel
    weightKg: float
    speed: Optional[str] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    priceAED: Optional[float] = None
    currency: str = DEFAULT_CURRENCY

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ActivityEntry(BaseModel):
    """Raw activity log entry; only the timestamps are interpreted."""
    time: Optional[Timestamp] = None
    createdAt: Optional[Timestamp] = None
    status: Optional[Any] = None
    # passed through verbatim, whatever the writer stored
    location: Optional[Any] = None
    message: Optional[Any] = None
    note: Optional[Any] = None


class TrackEvent(BaseModel):
    time: str
    status: Optional[str] = None
    location: Optional[Any] = None
    message: Optional[Any] = None
    trackingNo: Optional[str] = None
    createdAt: Optional[str] = None


class PackageSummary(BaseModel):
    tracking: str
    courier: Optional[Any] = None
    status: str
    location: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class TrackingView(BaseModel):
    package: PackageSummary
    events: List[TrackEvent] = []
