"""Eternal Archive - GEDCOM import backend.

FastAPI server that stages GEDCOM uploads as linked person records.
"""

import logging
import os

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("eternal")

from fastapi import FastAPI, HTTPException, UploadFile, File, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from dotenv import load_dotenv

from gedcom_dates import date_sort_key, format_full_date
from gedcom_import import choose_home, parse_import
from models import ImportResult, PersonRecord, TreeRecord

# Load environment variables
load_dotenv()

DEFAULT_MAX_GENERATIONS = int(os.getenv("ETERNAL_MAX_GENERATIONS", "4"))
CORS_ORIGINS = os.getenv(
    "ETERNAL_CORS_ORIGINS",
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
).split(",")

# Global state
pending_import: ImportResult | None = None


# Create FastAPI app
app = FastAPI(
    title="Eternal Archive",
    description="GEDCOM import service for family archives",
    version="1.0.0",
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in CORS_ORIGINS if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class GedcomImportResponse(BaseModel):
    """Response after uploading a GEDCOM file."""
    message: str
    person_count: int
    people: list[PersonRecord]
    tree: TreeRecord


class ChooseHomeRequest(BaseModel):
    """Pick the home person of the staged import."""
    person_id: str


class DateResponse(BaseModel):
    """Sort key and display text for a GEDCOM date."""
    value: str
    sort_key: float
    display: str


# Endpoints

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {
        "status": "healthy",
        "import_staged": pending_import is not None,
    }


@app.post("/import-gedcom", response_model=GedcomImportResponse)
async def import_gedcom(
    file: UploadFile = File(...),
    owner_id: str = Query(...),
    max_generations: int = Query(default=DEFAULT_MAX_GENERATIONS, ge=0, le=20),
):
    """Upload a GEDCOM file and stage its people for import."""
    global pending_import

    logger.info(f"Received GEDCOM file upload: {file.filename}")

    if not file.filename or not file.filename.lower().endswith((".ged", ".gedcom")):
        logger.warning(f"Invalid file type: {file.filename}")
        raise HTTPException(status_code=400, detail="File must be a GEDCOM file (.ged or .gedcom)")

    content = await file.read()
    logger.debug(f"Read {len(content)} bytes from file")
    try:
        content_str = content.decode("utf-8")
    except UnicodeDecodeError:
        logger.info("UTF-8 decode failed, trying latin-1 encoding")
        content_str = content.decode("latin-1")

    try:
        logger.info("Parsing GEDCOM content...")
        result = parse_import(content_str, owner_id, max_generations)
    except Exception as e:
        logger.error(f"Failed to parse GEDCOM file: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Error parsing GEDCOM: {str(e)}")

    pending_import = result
    count = len(result.person_records)
    logger.info(f"Staged {count} family members from {file.filename}")

    return GedcomImportResponse(
        message=f"Loaded {count} family members",
        person_count=count,
        people=result.person_records,
        tree=result.tree_record,
    )


@app.post("/import-gedcom/home", response_model=TreeRecord)
async def choose_import_home(request: ChooseHomeRequest):
    """Choose the home person of the staged import and name the tree after them."""
    global pending_import

    if pending_import is None:
        logger.warning("Attempted to choose home without a staged import")
        raise HTTPException(status_code=400, detail="No GEDCOM import staged. Upload one first.")

    try:
        tree = choose_home(pending_import, request.person_id)
    except KeyError:
        logger.warning(f"Person {request.person_id} not in staged import")
        raise HTTPException(status_code=404, detail=f"Person with ID {request.person_id} not found")

    pending_import = pending_import.model_copy(update={"tree_record": tree})
    logger.info(f"Home person set to {request.person_id} ({tree.name})")
    return tree


@app.get("/dates", response_model=DateResponse)
async def describe_date(value: str = Query(default="")):
    """Sort key and human readable form of a GEDCOM date string."""
    return DateResponse(
        value=value,
        sort_key=date_sort_key(value),
        display=format_full_date(value),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
