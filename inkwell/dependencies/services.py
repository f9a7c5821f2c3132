"""
Service dependencies.

Long-lived service objects are built once in the application lifespan and
kept on ``app.state``; these helpers hand them to route functions so tests
can swap them through ``app.dependency_overrides``.
"""
from __future__ import annotations

from fastapi import Request

from inkwell.services.analysis import AnalysisService
from inkwell.services.language_tool import LanguageToolClient
from inkwell.services.llm_client import LLMClient
from inkwell.services.session_manager import SessionManager
from inkwell.services.writing_assistant import WritingAssistant


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis


def get_writing_assistant(request: Request) -> WritingAssistant:
    return request.app.state.assistant


def get_language_tool(request: Request) -> LanguageToolClient:
    return request.app.state.analysis.language_tool


def get_llm_client(request: Request) -> LLMClient:
    return request.app.state.assistant.llm
