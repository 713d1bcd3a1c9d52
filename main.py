import os
import logging
from typing import Optional

from fastapi import FastAPI, Depends, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database import ShipmentStore, get_store, serialize_document, RECENT_LIMIT
from errors import ShipmentError, MissingIdentifier, NotFound, UnexpectedFailure
from logging_config import setup_logging
from schemas import ShipmentCreate
from shipments import normalize_shipment
from tracking import build_tracking_view

setup_logging()
logger = logging.getLogger("shipment_api")

# Live tracking must never be served from a cache
NO_STORE_HEADERS = {"Cache-Control": "no-store, no-cache, must-revalidate, private"}

# FastAPI app
app = FastAPI(title="Shipment API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error rendering
@app.exception_handler(ShipmentError)
async def shipment_error_handler(request: Request, exc: ShipmentError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())[1:])
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "error": "; ".join(problems) or "Invalid request"},
    )


# Root
@app.get("/")
def read_root():
    return {"message": "Shipment API running"}


# Shipments
@app.post("/api/shipments/new")
@app.post("/api/shipments")
def create_shipment(payload: ShipmentCreate, store: ShipmentStore = Depends(get_store)):
    record = normalize_shipment(payload)
    try:
        doc = store.create_shipment(record)
    except Exception as e:
        logger.exception("Error creating shipment")
        raise UnexpectedFailure(str(e) or "Unknown error") from e
    return {"ok": True, "id": str(doc["_id"])}


@app.get("/api/shipments/list")
@app.get("/api/shipments")
def list_shipments(store: ShipmentStore = Depends(get_store)):
    try:
        items = store.list_recent_shipments(RECENT_LIMIT)
    except Exception as e:
        logger.exception("Error listing shipments")
        raise UnexpectedFailure(str(e) or "Unknown error") from e
    return {"ok": True, "shipments": [serialize_document(x) for x in items]}


@app.get("/api/shipments/{sid}")
def get_shipment(sid: str, store: ShipmentStore = Depends(get_store)):
    try:
        doc = store.find_shipment_by_id(sid)
    except Exception as e:
        logger.exception("Error loading shipment %s", sid)
        raise UnexpectedFailure(str(e) or "Unknown error") from e
    if not doc:
        raise NotFound("Shipment not found")
    return {"ok": True, "shipment": serialize_document(doc)}


# Public tracking
@app.get("/api/track")
def track(
    response: Response,
    trackingNo: Optional[str] = None,
    tracking: Optional[str] = None,
    store: ShipmentStore = Depends(get_store),
):
    response.headers.update(NO_STORE_HEADERS)
    tracking_no = (trackingNo if trackingNo is not None else tracking or "").strip()
    try:
        if not tracking_no:
            raise MissingIdentifier("trackingNo is required")
        # The Mongo _id doubles as the tracking number
        shipment = store.find_shipment_by_id(tracking_no)
        view = build_tracking_view(shipment, tracking_no)
    except ShipmentError as e:
        e.headers = NO_STORE_HEADERS
        raise
    except Exception as e:
        logger.exception("GET /api/track error")
        raise UnexpectedFailure("Server error", headers=NO_STORE_HEADERS) from e
    return {"ok": True, "package": view.package.model_dump(), "events": [ev.model_dump() for ev in view.events]}


# Database diagnostics
@app.get("/test")
def test_database(store: ShipmentStore = Depends(get_store)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        response.update(store.diagnostics())
    except Exception as e:
        response["database"] = f"⚠️  Error: {str(e)[:80]}"
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
