"""Database and schema models for Inkwell."""
from inkwell.models.database_models import UserDictionaryWord
from inkwell.models.schemas import (
    AnalysisRequest,
    AnalysisResponse,
    SessionCreateRequest,
    SessionResponse,
    EditRequest,
    ApplyFixRequest,
    ApplyFixResponse,
    DictionaryWordCreate,
    DictionaryWordResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "UserDictionaryWord",
    # Pydantic schemas
    "AnalysisRequest",
    "AnalysisResponse",
    "SessionCreateRequest",
    "SessionResponse",
    "EditRequest",
    "ApplyFixRequest",
    "ApplyFixResponse",
    "DictionaryWordCreate",
    "DictionaryWordResponse",
    "HealthCheckResponse",
]
