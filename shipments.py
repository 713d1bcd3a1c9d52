"""
Shipment normalization.

Creation requests arrive in one of two parcel shapes:

    current:  {"parcel": {"weight", "length", "width", "height"}}
    legacy:   {"weightKg": ..., "dims": {"L"|"length", "W"|"width", "H"|"height"}}

`normalize_shipment` resolves them into a single ShipmentRecord that carries
both `parcel` and the mirrored `weightKg`, so readers of either document
shape see the same data.
"""
import logging
from typing import Any, Mapping, Optional, Tuple, Union

from errors import InvalidParcel, MissingAddress
from schemas import DEFAULT_CURRENCY, Dims, Parcel, ParcelInput, ShipmentCreate, ShipmentRecord

logger = logging.getLogger(__name__)

MISSING_ADDRESS_MESSAGE = "Both from and to addresses are required."
INVALID_PARCEL_MESSAGE = "Invalid parcel - weight, length, width, height are required."

ParcelValues = Tuple[Optional[float], Optional[float], Optional[float], Optional[float]]


def _first_present(preferred: Optional[float], fallback: Optional[float]) -> Optional[float]:
    # Only None falls through; an explicit 0 is kept and rejected later.
    return preferred if preferred is not None else fallback


def _current_shape(parcel: Optional[ParcelInput]) -> Optional[ParcelValues]:
    if parcel and parcel.weight and parcel.length and parcel.width and parcel.height:
        return parcel.weight, parcel.length, parcel.width, parcel.height
    return None


def _legacy_shape(weight_kg: Optional[float], dims: Optional[Dims]) -> Optional[ParcelValues]:
    if not weight_kg or dims is None:
        return None
    return (
        weight_kg,
        _first_present(dims.length, dims.L),
        _first_present(dims.width, dims.W),
        _first_present(dims.height, dims.H),
    )


def resolve_parcel(payload: ShipmentCreate) -> Parcel:
    """
    Pick exactly one parcel shape and return it as a complete Parcel.

    The current shape wins when all four of its fields are truthy; otherwise
    the legacy shape is used when both weightKg and dims are given. Values are
    never merged across shapes. Any falsy value left after resolution,
    including 0, raises InvalidParcel.
    """
    values = _current_shape(payload.parcel) or _legacy_shape(payload.weightKg, payload.dims)
    if not values or not all(values):
        raise InvalidParcel(INVALID_PARCEL_MESSAGE)

    weight, length, width, height = values
    return Parcel(weight=weight, length=length, width=width, height=height)


def normalize_shipment(payload: Union[ShipmentCreate, Mapping[str, Any]]) -> ShipmentRecord:
    """Validate a creation request and build the canonical record to persist."""
    if not isinstance(payload, ShipmentCreate):
        payload = ShipmentCreate.model_validate(payload)

    if payload.from_ is None or payload.to is None:
        raise MissingAddress(MISSING_ADDRESS_MESSAGE)

    parcel = resolve_parcel(payload)
    record = ShipmentRecord(
        from_=payload.from_,
        to=payload.to,
        parcel=parcel,
        weightKg=parcel.weight,
        speed=payload.speed,
        carrier=payload.carrier,
        service=payload.service,
        priceAED=payload.priceAED,
        currency=payload.currency or DEFAULT_CURRENCY,
    )
    logger.debug("Normalized shipment %s -> %s", payload.from_.city, payload.to.city)
    return record
