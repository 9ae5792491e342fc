# tests/test_env.py

from config.knowledge_corpus import KNOWLEDGE_ITEMS
from config.settings import load_settings, load_supabase_env
from tests.fake_supabase import FakeSupabase
from tools.seed_chatbot_knowledge import seed


def test_settings_defaults(monkeypatch):
    for name in ("BRAINNOVA_API_BASE_URL", "BRAINNOVA_API_TIMEOUT_SECONDS", "BRAINNOVA_DEFAULT_PERIOD",
                 "BRAINNOVA_FLAT_REFERENCE_RULE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    s = load_settings()
    assert s.api_base_url == ""
    assert s.score_backend_enabled is False
    assert s.api_timeout_seconds == 5.0
    assert s.default_period == 2024
    assert s.flat_reference_rule == "max_if_positive"
    assert s.log_level == "INFO"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("BRAINNOVA_API_BASE_URL", "https://scores.example.org/")
    monkeypatch.setenv("BRAINNOVA_DEFAULT_PERIOD", "2023")
    monkeypatch.setenv("BRAINNOVA_API_TIMEOUT_SECONDS", "not-a-number")

    s = load_settings()
    assert s.api_base_url == "https://scores.example.org"
    assert s.score_backend_enabled is True
    assert s.default_period == 2023
    assert s.api_timeout_seconds == 5.0


def test_service_role_key_wins(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://x.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")

    env = load_supabase_env()
    assert env.configured
    assert env.key == "service"


def test_seed_skips_existing_titles():
    existing = {"title": KNOWLEDGE_ITEMS[0]["title"], "content": "ya existe"}
    sb = FakeSupabase({"chatbot_knowledge": [existing]})

    inserted = seed(sb, batch_size=5)

    assert inserted == len(KNOWLEDGE_ITEMS) - 1
    titles = [r["title"] for r in sb.tables["chatbot_knowledge"]]
    assert len(titles) == len(set(titles))

    # second run is a no-op
    assert seed(sb) == 0
