"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class SuggestionCategorySchema(str, Enum):
    """Suggestion categories for API responses."""

    SPELLING = "spelling"
    GRAMMAR = "grammar"
    STYLE = "style"


# ---------------------------------------------------------------------------
# Analysis Schemas
# ---------------------------------------------------------------------------

class SuggestionResponse(BaseModel):
    id: str
    offset: int
    length: int
    category: SuggestionCategorySchema
    message: str = ""
    replacements: List[str] = []
    rule_id: Optional[str] = None


class ReadabilityResponse(BaseModel):
    score: float = 0.0
    words: int = 0
    sentences: int = 0
    avg_word_length: float = 0.0
    reading_time_minutes: float = 0.0


class AnalysisRequest(BaseModel):
    """Schema for a one-shot analysis of a text."""

    text: str = Field(..., max_length=200_000)
    max_mode: bool = False
    language: Optional[str] = None


class AnalysisResponse(BaseModel):
    suggestions: List[SuggestionResponse]
    stats: ReadabilityResponse
    errors: List[str] = []


# ---------------------------------------------------------------------------
# Session Schemas
# ---------------------------------------------------------------------------

class SessionCreateRequest(BaseModel):
    """Open an editing session over plain text or a list of paragraphs."""

    text: Optional[str] = None
    paragraphs: Optional[List[str]] = None
    max_mode: bool = False
    language: Optional[str] = None
    analyze: bool = Field(False, description="Run an analysis pass immediately")

    @model_validator(mode="after")
    def _one_source(self) -> "SessionCreateRequest":
        if self.text is not None and self.paragraphs is not None:
            raise ValueError("Provide either 'text' or 'paragraphs', not both")
        return self


class DecorationResponse(BaseModel):
    start: int
    end: int
    category: SuggestionCategorySchema
    from_: Optional[int] = Field(None, alias="from")
    to: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class SessionResponse(BaseModel):
    id: str
    revision: int
    text: str
    document: Dict[str, Any]
    max_mode: bool
    generation: int
    analysis_pending: bool
    suggestions: List[SuggestionResponse]
    decorations: List[DecorationResponse]
    stats: ReadabilityResponse
    errors: List[str] = []

    model_config = ConfigDict(populate_by_name=True)


class EditRequest(BaseModel):
    """Replace document positions ``[from, to)`` with ``text``."""

    from_: int = Field(..., alias="from", ge=0)
    to: int = Field(..., ge=0)
    text: str = ""
    analyze: bool = Field(True, description="Schedule a debounced analysis pass")

    model_config = ConfigDict(populate_by_name=True)


class ApplyFixRequest(BaseModel):
    replacement: str


class ApplyFixResponse(BaseModel):
    applied: bool
    suggestion_id: str
    from_: Optional[int] = Field(None, alias="from")
    to: Optional[int] = None
    original: Optional[str] = None
    replacement: Optional[str] = None
    delta: Optional[int] = None
    session: SessionResponse

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Dictionary Schemas
# ---------------------------------------------------------------------------

class DictionaryWordCreate(BaseModel):
    word: str = Field(..., min_length=1, max_length=255)
    language_code: str = Field("en", min_length=2, max_length=16)


class DictionaryWordResponse(BaseModel):
    id: int
    user_id: str
    word: str
    language_code: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DictionaryMutationResponse(BaseModel):
    message: str
    data: Optional[DictionaryWordResponse] = None


# ---------------------------------------------------------------------------
# Assistant Schemas
# ---------------------------------------------------------------------------

class TextRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=200_000)


class DefinitionRequest(BaseModel):
    term: str = Field(..., min_length=1, max_length=255)
    context: str = ""


class SlideDeckRequest(TextRequest):
    minutes: int = 10


class ResearchRequest(TextRequest):
    slide_minutes: int = 10


class ToneSuggestionResponse(BaseModel):
    original: str
    revised: str


class DefinitionResponse(BaseModel):
    term: str
    definition: str
    etymology: str
    example: str


class CitationResponse(BaseModel):
    title: str
    authors: str
    journal: str
    url: str
    citedness: float


class CitationReportResponse(BaseModel):
    keywords: List[str]
    citations: List[CitationResponse]


class SlidePointResponse(BaseModel):
    text: str


class ResearchReportResponse(BaseModel):
    tone_suggestions: List[ToneSuggestionResponse]
    citations: List[CitationResponse]
    slide_deck: List[SlidePointResponse]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    database: str
    language_tool: str
    llm: str
    sessions: int = 0
    timestamp: datetime
