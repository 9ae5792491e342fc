# services/container.py
"""
Process-wide wiring of the BRAINNOVA services.

Routers receive these through FastAPI Depends(); tests replace them with
app.dependency_overrides.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from config.scoring_config import FlatReferenceRule, ScoringConfig
from config.settings import BrainnovaSettings, load_settings
from services.brainnova_repository import BrainnovaRepository
from services.chatbot_service import ChatbotService
from services.knowledge_search import KnowledgeSearch
from services.score_backend import ScoreBackendClient
from services.scoring_engine import ScoringEngine
from services.territories import TerritoryResolver

logger = logging.getLogger("brainnova-backend")


@lru_cache(maxsize=1)
def get_settings() -> BrainnovaSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_scoring_config() -> ScoringConfig:
    settings = get_settings()
    return ScoringConfig(
        flat_rule=FlatReferenceRule.parse(settings.flat_reference_rule),
        default_period=settings.default_period,
    )


@lru_cache(maxsize=1)
def get_territories() -> TerritoryResolver:
    return TerritoryResolver()


@lru_cache(maxsize=1)
def get_repository() -> BrainnovaRepository:
    # Imported lazily: the client module reads credentials at import time
    from utils.supabase_client import supabase, supabase_init_error

    if supabase is None:
        logger.warning(f"Supabase client unavailable, store reads will fail: {supabase_init_error or 'not configured'}")
    return BrainnovaRepository(supabase, get_scoring_config())


@lru_cache(maxsize=1)
def get_engine() -> ScoringEngine:
    settings = get_settings()
    backend = None
    if settings.score_backend_enabled:
        backend = ScoreBackendClient(settings.api_base_url, timeout=settings.api_timeout_seconds)
        logger.info(f"Score backend enabled at {settings.api_base_url}")
    return ScoringEngine(get_repository(), get_territories(), get_scoring_config(), backend=backend)


@lru_cache(maxsize=1)
def get_knowledge_search() -> KnowledgeSearch:
    return KnowledgeSearch(get_repository())


@lru_cache(maxsize=1)
def get_chatbot() -> ChatbotService:
    return ChatbotService(
        get_repository(),
        get_engine(),
        get_knowledge_search(),
        get_territories(),
        default_period=get_settings().default_period,
    )
