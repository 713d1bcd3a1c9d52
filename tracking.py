"""
Public tracking view.

Turns a stored shipment document (as returned by pymongo) into the package
summary and event timeline served by /api/track. Nothing here touches the
database; the caller performs the lookup and passes the result in.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Tuple

from errors import NotFound
from schemas import ActivityEntry, PackageSummary, TrackEvent, TrackingView

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

CREATED_MESSAGE = "Shipment created"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _contains_any(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


def classify_status(raw: Optional[Any]) -> str:
    """
    Map free-text status to a display status.

    Matching is case-insensitive and by substring; the first rule that
    matches wins. Text matching no rule is returned with its first character
    upper-cased.
    """
    if not raw:
        return "Pending"
    raw = str(raw)
    text = raw.lower()
    if "out" in text and "deliver" in text:
        return "Out for Delivery"
    if "deliver" in text:
        return "Delivered"
    if _contains_any(text, "transit", "in-transit"):
        return "In Transit"
    if _contains_any(text, "exception", "fail", "problem"):
        return "Problem"
    if _contains_any(text, "pending", "created", "label"):
        return "Pending"
    return raw[0].upper() + raw[1:]


def to_datetime(value: Any) -> datetime:
    """Coerce a stored timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC, which is what pymongo
    returns), ISO-8601 strings and epoch milliseconds.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_datetime(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported timestamp: {value!r}")


def to_iso(value: Any) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T10:00:00.000Z"""
    moment = to_datetime(value)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _optional_iso(value: Any) -> Optional[str]:
    return to_iso(value) if value else None


def destination_label(shipment: Mapping[str, Any]) -> Optional[str]:
    to = shipment.get("to")
    if not isinstance(to, Mapping):
        return None
    city, country = to.get("city"), to.get("country")
    if city and country:
        return f"{city}, {country}"
    return None


def _activity_entry(raw: Any) -> ActivityEntry:
    if isinstance(raw, Mapping):
        return ActivityEntry.model_validate(raw)
    # Entries that are not objects carry no fields of their own.
    return ActivityEntry()


def build_events(shipment: Mapping[str, Any], tracking_no: str, now: Clock = utcnow) -> List[TrackEvent]:
    """
    Build the timeline, most recent first.

    The first event is always the synthetic "Shipment created" one; each
    activity entry adds one more. An entry's time falls back to its own
    createdAt, then the shipment's createdAt, then the clock.
    """
    current = now()
    created_at = shipment.get("createdAt")

    timeline: List[Tuple[datetime, TrackEvent]] = []

    created_moment = to_datetime(created_at or current)
    timeline.append((created_moment, TrackEvent(
        time=to_iso(created_moment),
        status=classify_status(shipment.get("status")) or "Created",
        location=destination_label(shipment),
        message=CREATED_MESSAGE,
        trackingNo=tracking_no,
        createdAt=_optional_iso(created_at),
    )))

    activity = shipment.get("activity")
    if isinstance(activity, list):
        for raw in activity:
            entry = _activity_entry(raw)
            moment = to_datetime(entry.time or entry.createdAt or created_at or current)
            timeline.append((moment, TrackEvent(
                time=to_iso(moment),
                status=classify_status(entry.status),
                location=entry.location,
                message=entry.message if entry.message is not None else entry.note,
                trackingNo=tracking_no,
                createdAt=_optional_iso(entry.createdAt),
            )))
    elif activity is not None:
        logger.debug("Ignoring non-list activity on shipment %s", tracking_no)

    # sort is stable with reverse=True, so simultaneous events keep insertion order
    timeline.sort(key=lambda pair: pair[0], reverse=True)
    return [event for _, event in timeline]


def build_package_summary(shipment: Mapping[str, Any], tracking_no: str) -> PackageSummary:
    return PackageSummary(
        tracking=tracking_no,
        courier=shipment.get("carrier"),
        status=classify_status(shipment.get("status")),
        location=destination_label(shipment),
        createdAt=_optional_iso(shipment.get("createdAt")),
        updatedAt=_optional_iso(shipment.get("updatedAt")),
    )


def build_tracking_view(
    shipment: Optional[Mapping[str, Any]],
    tracking_no: str,
    now: Clock = utcnow,
) -> TrackingView:
    """Derive the public tracking view; raises NotFound when no shipment was found."""
    if shipment is None:
        raise NotFound("Not found")
    return TrackingView(
        package=build_package_summary(shipment, tracking_no),
        events=build_events(shipment, tracking_no, now=now),
    )
