"""
Card-note workflow endpoints.

The UI drives three stages one after another:
1. /card-notes/extract-concepts
2. /card-notes/create-cards
3. /card-notes/create-connections

Nothing is persisted between stages. /card-notes/generate runs all three in
one request, and /card-notes/export renders a result as Markdown.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from helpers import store_helpers
from helpers.card_notes import build_cards, build_connections, extract_concepts, render_markdown
from models.schemas import (
    Card,
    Concept,
    Connection,
    CreateCardsRequest,
    CreateConnectionsRequest,
    ExportCardNotesRequest,
    ExtractConceptsRequest,
    GenerateCardNotesRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/card-notes", tags=["Card Notes"])


def _concepts_for(analysis: Dict[str, Any]) -> List[Dict[str, Any]]:
    concepts = extract_concepts(analysis.get("analysis_summary") or "", analysis.get("content_text") or "")
    return [Concept(**c).model_dump() for c in concepts]


def _cards_for(concepts: List[Any], analysis_id: Any) -> List[Dict[str, Any]]:
    return [Card(**card).model_dump() for card in build_cards(concepts, analysis_id)]


def _connections_for(cards: Any) -> List[Dict[str, Any]]:
    return [Connection(**c).model_dump(by_alias=True) for c in build_connections(cards)]


@router.post("/extract-concepts")
async def extract_concepts_endpoint(request: ExtractConceptsRequest):
    """Stage 1: pull up to 5 concepts from the stored analysis report."""
    try:
        analysis = store_helpers.get_analysis(request.analysisId)
        if not analysis:
            return {"success": False, "error": "Analysis record not found"}
        return {"success": True, "data": _concepts_for(analysis)}
    except Exception as e:
        logger.error(f"[CardNotes] Concept extraction failed: {e}")
        return {"success": False, "error": "Concept extraction failed"}


@router.post("/create-cards")
async def create_cards_endpoint(request: CreateCardsRequest):
    """Stage 2: one card per concept. Missing analyses degrade to template text."""
    if not isinstance(request.concepts, list):
        return {"success": False, "error": "Concepts must be a list"}
    try:
        return {"success": True, "data": _cards_for(request.concepts, request.analysisId)}
    except Exception as e:
        logger.error(f"[CardNotes] Card creation failed: {e}")
        return {"success": False, "error": "Card creation failed"}


@router.post("/create-connections")
async def create_connections_endpoint(request: CreateConnectionsRequest):
    """Stage 3: positional links between cards; empty for fewer than 2 cards."""
    try:
        return {"success": True, "data": _connections_for(request.cards)}
    except Exception as e:
        logger.error(f"[CardNotes] Connection building failed: {e}")
        return {"success": False, "error": "Connection building failed"}


@router.post("/generate")
async def generate_card_notes(request: GenerateCardNotesRequest):
    """All three stages in a single request."""
    try:
        analysis = store_helpers.get_analysis(request.analysisId)
        if not analysis:
            return {"success": False, "error": "Analysis record not found"}
        concepts = _concepts_for(analysis)
        cards = _cards_for(concepts, request.analysisId)
        connections = _connections_for(cards)
        return {
            "success": True,
            "data": {"concepts": concepts, "cards": cards, "connections": connections},
        }
    except Exception as e:
        logger.error(f"[CardNotes] Pipeline failed: {e}")
        return {"success": False, "error": "Card note generation failed"}


@router.post("/export")
async def export_card_notes(request: ExportCardNotesRequest):
    """Download cards and connections as a Markdown file."""
    cards = request.cards if isinstance(request.cards, list) else []
    connections = request.connections if isinstance(request.connections, list) else []
    filename = f"card-notes-{datetime.now().strftime('%Y%m%d')}.md"
    return PlainTextResponse(
        render_markdown(cards, connections),
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
