"""
Shared fixtures.

API tests run against an in-memory ShipmentStore substituted through
FastAPI's dependency overrides, so no MongoDB is needed.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import get_store
from main import app


class InMemoryShipmentStore:
    """Mock store honouring the ShipmentStore contract"""

    def __init__(self):
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}
        self.base_time = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        self.fail_with: Optional[Exception] = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def create_shipment(self, record) -> Dict[str, Any]:
        self._check()
        doc = record.to_document() if hasattr(record, "to_document") else dict(record)
        stamp = self.base_time + timedelta(minutes=len(self.docs))
        doc["createdAt"] = stamp
        doc["updatedAt"] = stamp
        doc["_id"] = ObjectId()
        self.docs[doc["_id"]] = doc
        return doc

    def insert_raw(self, doc: Dict[str, Any]) -> str:
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs[doc["_id"]] = doc
        return str(doc["_id"])

    def find_shipment_by_id(self, shipment_id: str) -> Optional[Dict[str, Any]]:
        self._check()
        if not ObjectId.is_valid(shipment_id):
            return None
        return self.docs.get(ObjectId(shipment_id))

    def list_recent_shipments(self, limit: int = 50) -> List[Dict[str, Any]]:
        self._check()
        ordered = sorted(self.docs.values(), key=lambda d: d["createdAt"], reverse=True)
        return ordered[:limit]

    def diagnostics(self) -> Dict[str, Any]:
        self._check()
        return {
            "database": "✅ Available",
            "database_name": "memory",
            "connection_status": "Connected",
            "collections": ["shipment"] if self.docs else [],
        }


@pytest.fixture
def store():
    return InMemoryShipmentStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def dubai():
    return {"name": "Sender", "line1": "1 Sheikh Zayed Rd", "city": "Dubai", "country": "AE"}


@pytest.fixture
def london():
    return {"name": "Receiver", "line1": "10 Downing St", "city": "London", "postalCode": "SW1A 2AA", "country": "GB"}


@pytest.fixture
def payload(dubai, london):
    return {
        "from": dubai,
        "to": london,
        "parcel": {"weight": 2.5, "length": 30, "width": 20, "height": 10},
        "speed": "express",
        "carrier": "Aramex",
        "service": "Priority",
        "priceAED": 120,
    }
