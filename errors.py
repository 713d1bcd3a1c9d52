"""
Error taxonomy for the shipment API.

Every error is rendered to the client as {"ok": false, "error": <message>}
by the exception handler registered in main.py.
"""
from typing import Dict, Optional


class ShipmentError(Exception):
    """Base class for failures reported to the caller as ok: false"""

    status_code = 500

    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers


class MissingAddress(ShipmentError):
    """Sender or receiver address absent from a creation request"""

    status_code = 400


class InvalidParcel(ShipmentError):
    """Parcel weight or one of its dimensions missing after shape resolution"""

    status_code = 400


class MissingIdentifier(ShipmentError):
    """Tracking request without a tracking number"""

    status_code = 400


class NotFound(ShipmentError):
    status_code = 404


class UnexpectedFailure(ShipmentError):
    """Storage or infrastructure fault"""

    status_code = 500
