# tests/conftest.py

import pytest
from fastapi.testclient import TestClient

from config.scoring_config import ScoringConfig
from services.brainnova_repository import BrainnovaRepository
from services.chatbot_service import ChatbotService
from services.knowledge_search import KnowledgeSearch
from services.scoring_engine import ScoringEngine
from services.territories import TerritoryResolver
from tests.brainnova_dataset import build_dataset
from tests.fake_supabase import FakeSupabase


@pytest.fixture
def dataset():
    return build_dataset()


@pytest.fixture
def fake_client(dataset):
    return FakeSupabase(dataset)


@pytest.fixture
def config():
    return ScoringConfig()


@pytest.fixture
def territories():
    return TerritoryResolver()


@pytest.fixture
def repository(fake_client, config):
    return BrainnovaRepository(fake_client, config)


@pytest.fixture
def engine(repository, territories, config):
    return ScoringEngine(repository, territories, config)


@pytest.fixture
def knowledge(repository):
    return KnowledgeSearch(repository)


@pytest.fixture
def chatbot(repository, engine, knowledge, territories):
    return ChatbotService(repository, engine, knowledge, territories, default_period=2024)


# ----------------------------------------------------------
# FastAPI client wired to the fixture services
# ----------------------------------------------------------
@pytest.fixture
def client(engine, territories, knowledge, chatbot):
    import main
    from services import container

    main.app.dependency_overrides[container.get_engine] = lambda: engine
    main.app.dependency_overrides[container.get_territories] = lambda: territories
    main.app.dependency_overrides[container.get_knowledge_search] = lambda: knowledge
    main.app.dependency_overrides[container.get_chatbot] = lambda: chatbot
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()
