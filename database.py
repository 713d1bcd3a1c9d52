"""
MongoDB access for the shipment API

Connection settings come from DATABASE_URL / DATABASE_NAME (a local .env file
is honoured). The client is created on first use and shared by the process;
request handlers receive a ShipmentStore through the get_store dependency.
"""
import os
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient
from pymongo.database import Database

from schemas import ShipmentRecord
from tracking import to_iso

load_dotenv()

logger = logging.getLogger(__name__)

SHIPMENT_COLLECTION = "shipment"
RECENT_LIMIT = 50

_client: Optional[MongoClient] = None
_client_lock = threading.Lock()


def get_db() -> Database:
    global _client
    if _client is None:
        with _client_lock:
            # handlers run in a threadpool; only the first caller builds the client
            if _client is None:
                url = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
                logger.info("Creating MongoDB client")
                _client = MongoClient(url, tz_aware=True)
    return _client[os.getenv("DATABASE_NAME", "shipments")]


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document stamped with createdAt/updatedAt and return it with its _id"""
    if isinstance(data, ShipmentRecord):
        doc = data.to_document()
    elif isinstance(data, BaseModel):
        doc = data.model_dump(by_alias=True, exclude_none=True)
    else:
        doc = dict(data)
    now = datetime.now(timezone.utc)
    doc["createdAt"] = now
    doc["updatedAt"] = now
    result = db[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def serialize_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-ready copy: string _id, timestamps as UTC ISO strings with a Z suffix"""
    out = dict(doc)
    if "_id" in out:
        out["_id"] = str(out["_id"])  # convert for JSON
    for key, value in out.items():
        if isinstance(value, datetime):
            out[key] = to_iso(value)
    return out


class ShipmentStore:
    """Storage collaborator for shipments"""

    def __init__(self, db: Database, collection_name: str = SHIPMENT_COLLECTION):
        self.db = db
        self.collection_name = collection_name

    def create_shipment(self, record: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
        doc = create_document(self.db, self.collection_name, record)
        logger.info("Created shipment %s", doc["_id"])
        return doc

    def find_shipment_by_id(self, shipment_id: str) -> Optional[Dict[str, Any]]:
        # Malformed ids cannot match anything
        if not ObjectId.is_valid(shipment_id):
            return None
        return self.db[self.collection_name].find_one({"_id": ObjectId(shipment_id)})

    def list_recent_shipments(self, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
        return get_documents(
            self.db,
            self.collection_name,
            sort=[("createdAt", DESCENDING)],
            limit=limit,
        )

    def diagnostics(self) -> Dict[str, Any]:
        collections = self.db.list_collection_names()
        return {
            "database": "✅ Available",
            "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
            "database_name": self.db.name,
            "connection_status": "Connected",
            "collections": collections[:10],
        }


def get_store() -> ShipmentStore:
    return ShipmentStore(get_db())
