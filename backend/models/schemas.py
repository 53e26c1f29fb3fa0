"""
Pydantic models for request/response validation.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class UpdateAnalysisRequest(BaseModel):
    # Left optional so a missing field reaches the store and fails there (NOT NULL).
    analysis_summary: Optional[str] = None
    content_text: Optional[str] = None


class Concept(BaseModel):
    concept: str
    importance: Literal["high", "medium"]
    source: Literal["smart_summary", "keywords", "filtered_analysis", "fallback"]


class Card(BaseModel):
    title: str
    concept: str
    example: str
    application: str


class Connection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    relationship: str


# Card-note request bodies accept anything for the list fields; shape problems
# are reported as {"success": false} rather than a 422.
class ExtractConceptsRequest(BaseModel):
    analysisId: Any = None


class CreateCardsRequest(BaseModel):
    concepts: Any = None
    analysisId: Any = None


class CreateConnectionsRequest(BaseModel):
    cards: Any = None


class GenerateCardNotesRequest(BaseModel):
    analysisId: Any = None


class ExportCardNotesRequest(BaseModel):
    cards: Any = None
    connections: Any = None
