"""
ai/app.py

Gemini-based document summarization.
- summarize_text(): used by the analyzer, raises on any failure so the caller
  can fall back to the local summary
- router: /ai/health

Environment (one of the first two is required for the remote path):
- GOOGLE_APPLICATION_CREDENTIALS: service account JSON path (Vertex AI)
- GOOGLE_API_KEY: API key
- VERTEX_LOCATION (optional, default: us-central1)
- GEMINI_MODEL (optional, default: gemini-2.0-flash)
"""

from __future__ import annotations

import json
import logging
import os

from dotenv import load_dotenv
from fastapi import APIRouter
from google import genai
from google.genai import types

load_dotenv()

# ============ Logging ============
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

API_KEY = os.getenv("GOOGLE_API_KEY")
CREDENTIALS_PATH = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
VERTEX_LOCATION = os.getenv("VERTEX_LOCATION", "us-central1")
client = None


def _load_project_id_from_credentials(path: str) -> str | None:
    """Read project_id from a service account JSON file."""
    try:
        with open(path, "r") as f:
            data = json.load(f)
            return data.get("project_id")
    except Exception as e:
        logger.error(f"Failed to read service account JSON: {e}")
        return None


if CREDENTIALS_PATH and os.path.exists(CREDENTIALS_PATH):
    project_id = _load_project_id_from_credentials(CREDENTIALS_PATH)
    if project_id:
        client = genai.Client(
            vertexai=True,
            project=project_id,
            location=VERTEX_LOCATION,
        )
        logger.info(f"Vertex AI auth - project: {project_id}, location: {VERTEX_LOCATION}")
    else:
        logger.warning("No project_id found in the service account JSON.")
elif API_KEY:
    client = genai.Client(api_key=API_KEY)
    logger.info("API key auth")
else:
    logger.info("No Gemini credentials; summaries use the local fallback.")


router = APIRouter(prefix="/ai", tags=["AI"])


def _load_prompt(filename: str) -> str:
    """Read a prompt file from the ai folder."""
    path = os.path.join(os.path.dirname(__file__), filename)
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


SUMMARY_PROMPT = _load_prompt("summary_prompt.md")


def _require_client():
    if client is None:
        raise RuntimeError(
            "No credentials. Set GOOGLE_APPLICATION_CREDENTIALS or GOOGLE_API_KEY in .env."
        )
    return client


def is_ai_available() -> bool:
    return client is not None


def model_label() -> str:
    return f"Google Gemini ({MODEL})"


async def summarize_text(text: str) -> str:
    """
    Summarize document text with Gemini.

    Raises:
        Exception: missing client, empty input, API failure or empty response
    """
    if not text or not text.strip():
        raise ValueError("Nothing to summarize.")
    c = _require_client()

    logger.info(f"Gemini call - model: {MODEL}")
    resp = c.models.generate_content(
        model=MODEL,
        contents=[f"Document content:\n{text.strip()}", SUMMARY_PROMPT],
        config=types.GenerateContentConfig(
            temperature=0.2,
            max_output_tokens=512,
        ),
    )
    summary = (resp.text or "").strip()
    if not summary:
        raise ValueError("Gemini returned an empty summary.")
    logger.info(f"Gemini summary: {len(summary)} chars")
    return summary


@router.get("/health")
async def health():
    auth_method = None
    if CREDENTIALS_PATH and os.path.exists(CREDENTIALS_PATH):
        auth_method = "service_account"
    elif API_KEY:
        auth_method = "api_key"

    return {
        "status": "ok",
        "auth_method": auth_method,
        "has_credentials": bool(client),
        "model": MODEL,
    }
