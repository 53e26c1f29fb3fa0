"""
Document upload, analysis and record management endpoints.

This module handles:
- Multi-file upload, text extraction and report generation
- Listing and keyword search of stored analyses
- Reading, editing and deleting a single analysis

Every failure is reported as {"success": false, "error": ...} with HTTP 200.
"""

import logging
import os
import time
import uuid
from typing import List, Optional

from fastapi import APIRouter, File, UploadFile
from starlette.concurrency import run_in_threadpool

from database import UPLOAD_DIR
from helpers import store_helpers
from helpers.ai_helpers import perform_analysis
from helpers.extractor import extract_text_from_file
from models.schemas import UpdateAnalysisRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analyses"])


async def _save_upload(upload: UploadFile, upload_dir: str) -> str:
    """Write an upload to a unique temp path and return it."""
    os.makedirs(upload_dir, exist_ok=True)
    safe_name = os.path.basename(upload.filename or "upload")
    dest_path = os.path.join(upload_dir, f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}")
    data = await upload.read()
    with open(dest_path, "wb") as f:
        f.write(data)
    return dest_path


def _remove_temp_files(paths: List[str]) -> None:
    for path in paths:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"[Analyze] Failed to delete temp file {path}: {e}")


@router.post("/analyze")
async def analyze_files(files: Optional[List[UploadFile]] = File(None)):
    """
    Analyze uploaded documents.

    - Saves each upload to UPLOAD_DIR
    - Extracts text file by file, in upload order
    - Concatenates texts, each under a "=== <file name> ===" delimiter
    - Builds the Markdown report and stores it with the combined text
    - Deletes the temp files whatever the outcome
    """
    if not files:
        return {"success": False, "error": "No files received"}

    saved_paths: List[str] = []
    try:
        combined_text = ""
        file_names = []

        for upload in files:
            original_name = os.path.basename(upload.filename or "upload")
            path = await _save_upload(upload, UPLOAD_DIR)
            saved_paths.append(path)

            text = await run_in_threadpool(extract_text_from_file, path, original_name)
            combined_text += f"\n\n=== {original_name} ===\n{text}"
            file_names.append(original_name)

        logger.info(f"[Analyze] {len(file_names)} file(s), {len(combined_text)} chars")
        analysis_summary = await perform_analysis(combined_text, file_names)

        try:
            analysis_id = store_helpers.insert_analysis(analysis_summary, combined_text)
        except Exception as e:
            logger.error(f"[Analyze] Database error: {e}")
            return {"success": False, "error": "Failed to save to database"}

        return {"success": True, "id": analysis_id}

    except Exception as e:
        logger.error(f"[Analyze] Failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        _remove_temp_files(saved_paths)


@router.get("/analyses")
async def get_analyses():
    """All analyses, newest first. Empty list on database errors."""
    try:
        return store_helpers.list_analyses()
    except Exception as e:
        logger.error(f"[Analyses] Database error: {e}")
        return []


@router.get("/analyses/search")
async def search_analyses(keyword: str = ""):
    """Case-insensitive substring search over summary and content."""
    try:
        return store_helpers.search_analyses(keyword)
    except Exception as e:
        logger.error(f"[Analyses] Search failed: {e}")
        return []


@router.get("/analyses/{analysis_id}")
async def get_analysis(analysis_id: str):
    try:
        record = store_helpers.get_analysis(analysis_id)
    except Exception as e:
        logger.error(f"[Analyses] Database error: {e}")
        return {"success": False, "error": "Failed to load record"}
    if not record:
        return {"success": False, "error": "Record not found"}
    return record


@router.put("/analyses/{analysis_id}")
async def update_analysis(analysis_id: str, request: Optional[UpdateAnalysisRequest] = None):
    """
    Replace a record's summary and content.

    - Bumps updated_at
    - Unknown id: success false with changes 0
    """
    try:
        request = request or UpdateAnalysisRequest()
        changes = store_helpers.update_analysis(analysis_id, request.analysis_summary, request.content_text)
    except Exception as e:
        logger.error(f"[Analyses] Update failed for {analysis_id}: {e}")
        return {"success": False, "error": "Update failed"}
    if changes == 0:
        return {"success": False, "changes": 0, "error": "Record not found"}
    return {"success": True, "changes": changes}


@router.delete("/analyses/{analysis_id}")
async def delete_analysis(analysis_id: str):
    try:
        changes = store_helpers.delete_analysis(analysis_id)
    except Exception as e:
        logger.error(f"[Analyses] Delete failed for {analysis_id}: {e}")
        return {"success": False, "error": "Delete failed"}
    if changes == 0:
        return {"success": False, "error": "Record not found"}
    return {"success": True, "message": "Deleted"}
