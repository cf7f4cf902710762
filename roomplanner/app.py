"""HTTP surface for the timetable parsers.

Uploaded documents are staged in the uploads directory, parsed, and removed
again; nothing is persisted. Storing the returned schedules is up to the
caller.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import uuid
from typing import Any, Dict

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from .models import PageMapping
from .parsers.parser_pdf import (
    SUPPORTED_SUFFIXES,
    DocumentDecodeError,
    extract_page_labels_from_file,
    extract_schedules_from_file,
)
from .paths import uploads_dir

logger = logging.getLogger(__name__)

app = FastAPI(title="Room Planner API")

cors_origins = [
    origin.strip()
    for origin in os.getenv("ROOMPLANNER_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _stage_upload(file: UploadFile) -> Path:
    if not file.filename:
        raise HTTPException(400, "Missing filename")
    suffix = Path(file.filename).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise HTTPException(400, "Unsupported file type (use .pdf or .json)")

    target = uploads_dir() / f"upload-{uuid.uuid4().hex}{suffix}"
    with target.open("wb") as fh:
        while chunk := await file.read(65536):
            fh.write(chunk)
    return target


@app.post("/api/schedules/upload")
async def upload_schedule(file: UploadFile = File(...)) -> Dict[str, Any]:
    staged = await _stage_upload(file)
    try:
        result = extract_schedules_from_file(staged)
    except DocumentDecodeError as exc:
        logger.warning("Could not parse room schedule %s: %s", file.filename, exc)
        raise HTTPException(422, f"Could not read document: {exc}") from exc
    finally:
        staged.unlink(missing_ok=True)

    schedules = [record.model_dump() for record in result.schedules]
    return {
        "success": True,
        "stats": {
            "roomsFound": len(result.rooms),
            "schedulesCreated": len(schedules),
            "needsReview": sum(1 for record in result.schedules if record.needsReview),
        },
        "schedules": schedules,
        "rooms": result.rooms,
    }


@app.post("/api/semester/upload", response_model=PageMapping)
async def upload_semester(file: UploadFile = File(...)) -> PageMapping:
    staged = await _stage_upload(file)
    try:
        return extract_page_labels_from_file(staged)
    except DocumentDecodeError as exc:
        logger.warning("Could not parse semester schedule %s: %s", file.filename, exc)
        raise HTTPException(422, f"Could not read document: {exc}") from exc
    finally:
        staged.unlink(missing_ok=True)


__all__ = ["app"]
