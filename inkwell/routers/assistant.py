"""
LLM-backed writing assistant endpoints.

POST /tone        - sentence-level tone harmonization
POST /definitions - definition, etymology and example for a term
POST /citations   - keyword extraction + OpenAlex lookup
POST /slides      - bullet-point slide outline
POST /research    - tone, citations and slides together

Feature failures (LLM down, unparsable output) come back as 502.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from inkwell.dependencies.services import get_writing_assistant
from inkwell.models.schemas import (
    CitationReportResponse,
    DefinitionRequest,
    DefinitionResponse,
    ResearchReportResponse,
    ResearchRequest,
    SlideDeckRequest,
    SlidePointResponse,
    TextRequest,
    ToneSuggestionResponse,
)
from inkwell.services.writing_assistant import AssistantResult, WritingAssistant

logger = logging.getLogger(__name__)

router = APIRouter()


def _unwrap(result: AssistantResult):
    if not result.is_success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.message)
    return result.data


@router.post("/tone", response_model=List[ToneSuggestionResponse])
async def harmonize_tone(
    body: TextRequest,
    assistant: WritingAssistant = Depends(get_writing_assistant),
):
    suggestions = _unwrap(await assistant.harmonize_tone(body.text))
    return [dataclasses.asdict(s) for s in suggestions]


@router.post("/definitions", response_model=DefinitionResponse)
async def define_term(
    body: DefinitionRequest,
    assistant: WritingAssistant = Depends(get_writing_assistant),
):
    return dataclasses.asdict(_unwrap(await assistant.define_term(body.term, body.context)))


@router.post("/citations", response_model=CitationReportResponse)
async def hunt_citations(
    body: TextRequest,
    assistant: WritingAssistant = Depends(get_writing_assistant),
):
    return dataclasses.asdict(_unwrap(await assistant.hunt_citations(body.text)))


@router.post("/slides", response_model=List[SlidePointResponse])
async def create_slide_deck(
    body: SlideDeckRequest,
    assistant: WritingAssistant = Depends(get_writing_assistant),
):
    points = _unwrap(await assistant.create_slide_deck(body.text, body.minutes))
    return [dataclasses.asdict(p) for p in points]


@router.post("/research", response_model=ResearchReportResponse)
async def research_report(
    body: ResearchRequest,
    assistant: WritingAssistant = Depends(get_writing_assistant),
):
    """Runs the three features concurrently; 502 only when all of them failed."""
    report = _unwrap(await assistant.research_report(body.text, body.slide_minutes))
    logger.info(
        "research_report: %d tone, %d citations, %d slides",
        len(report.tone_suggestions),
        len(report.citations),
        len(report.slide_deck),
    )
    return dataclasses.asdict(report)
