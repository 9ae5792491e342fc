# tests/test_chatbot.py

import asyncio
import re

from services.brainnova_repository import BrainnovaRepository
from services.chatbot_service import ChatbotService, format_score
from services.knowledge_search import KnowledgeSearch
from services.scoring_engine import ScoringEngine
from tests.fake_supabase import FakeSupabase


def ask(chatbot, query):
    return asyncio.run(chatbot.respond(query))


def _failing_chatbot(dataset, territories, config, **kwargs):
    repo = BrainnovaRepository(FakeSupabase(dataset, **kwargs), config)
    engine = ScoringEngine(repo, territories, config)
    return ChatbotService(repo, engine, KnowledgeSearch(repo), territories, default_period=2024)


def test_format_score():
    assert format_score(66.8) == "66.8"
    assert format_score(76) == "76"
    assert format_score(0.0) == "0"


# ----------------------------------------------------------
# Index questions
# ----------------------------------------------------------
def test_province_index_alicante(chatbot):
    a = ask(chatbot, "¿Cuál es el índice BRAINNOVA de Alicante?")
    assert a.intent == "province_index"
    assert "66.8" in a.text
    assert "Infraestructura Digital" in a.text


def test_province_index_accepts_valencian_spelling(chatbot):
    a = ask(chatbot, "índice brainnova de Castelló")
    assert a.intent == "province_index"
    assert "64.3" in a.text


def test_province_index_lists_all_provinces(chatbot):
    a = ask(chatbot, "¿Cuál es el índice de cada provincia?")
    assert a.intent == "province_index"
    for name in ("Valencia", "Alicante", "Castellón"):
        assert name in a.text


def test_brand_word_does_not_hijack_survey_question(chatbot):
    a = ask(chatbot, "¿Qué encuestas tiene BRAINNOVA en Alicante?")
    assert a.intent == "surveys"
    assert "Encuesta de digitalización de pymes" in a.text


def test_economy_word_with_country_is_not_global_score(chatbot):
    a = ask(chatbot, "¿Qué indicadores de economía digital hay en España?")
    assert a.intent in ("indicator_info", "knowledge")
    assert "puntuación global" not in a.text


def test_brand_word_alone_still_asks_for_province_index(chatbot):
    a = ask(chatbot, "¿Cómo va la economía de Alicante?")
    assert a.intent == "province_index"
    assert "66.8" in a.text


def test_global_score_comunitat(chatbot):
    a = ask(chatbot, "¿Cuál es la puntuación global de la Comunitat Valenciana?")
    assert a.intent == "global_score"
    assert "**50** sobre 100" in a.text


def test_global_score_defaults_to_comunitat(chatbot):
    a = ask(chatbot, "Dame la puntuación global")
    assert a.intent == "global_score"
    assert "Comunitat Valenciana" in a.text


def test_global_score_without_data_points_to_dashboard(dataset, territories, config):
    bot = _failing_chatbot(dataset, territories, config, fail_tables={"resultado_indicadores"})
    a = asyncio.run(bot.respond("¿Cuál es la puntuación global de España?"))
    assert a.intent == "global_score"
    assert "Comparación Territorial" in a.text


# ----------------------------------------------------------
# Digitization questions
# ----------------------------------------------------------
def test_basic_digitization_business_branch(chatbot):
    a = ask(chatbot, "digitalización básica empresas Castellón")
    assert a.intent == "basic_digitization"
    assert "Digitalización Básica" in a.text
    assert "Castellón" in a.text
    assert "**0** sobre 100" in a.text


def test_basic_digitization_population_branch(chatbot):
    a = ask(chatbot, "digitalización básica de las personas en Valencia")
    assert a.intent == "basic_digitization"
    assert "Personas con habilidades digitales básicas" in a.text
    assert "**60**" in a.text


def test_business_digitization_dimension(chatbot):
    a = ask(chatbot, "¿Cuál es el nivel de digitalización de las empresas en Alicante?")
    assert a.intent == "business_digitization"
    assert "Transformación Digital Empresarial" in a.text
    assert "**60**" in a.text


def test_digital_skills(chatbot):
    a = ask(chatbot, "habilidades digitales en Alicante")
    assert a.intent == "digital_skills"
    assert "Personas con habilidades digitales básicas" in a.text
    assert "**55**" in a.text


# ----------------------------------------------------------
# Catalogue questions
# ----------------------------------------------------------
def test_surveys(chatbot):
    a = ask(chatbot, "¿Qué encuestas hay?")
    assert a.intent == "surveys"
    assert a.text.startswith("Encontré 1 encuesta(s)")
    assert "Encuesta de digitalización de pymes" in a.text
    assert "Encuesta cerrada" not in a.text


def test_dimensions_listed_one_per_line(chatbot, dataset):
    a = ask(chatbot, "¿Qué dimensiones hay?")
    assert a.intent == "dimensions"
    lines = [l for l in a.text.splitlines() if re.match(r"^\d+\. \*\*", l)]
    assert len(lines) == len(dataset["dimensiones"])
    for row in dataset["dimensiones"]:
        assert row["nombre"] in a.text


def test_indicators_of_named_dimension(chatbot):
    a = ask(chatbot, "¿Qué indicadores tiene la dimensión Capital Humano?")
    assert a.intent == "dimensions"
    assert "Personas con habilidades digitales básicas" in a.text
    assert "Empresas que usan ERP" not in a.text


def test_indicator_value_for_territory(chatbot):
    a = ask(chatbot, "¿Cuál es el valor de empresas que usan inteligencia artificial en Valencia?")
    assert a.intent == "indicator_value"
    assert "Empresas que usan inteligencia artificial" in a.text
    assert "**12**" in a.text


def test_indicator_info_single_match(chatbot):
    a = ask(chatbot, "¿Qué es el indicador de ERP?")
    assert a.intent == "indicator_info"
    assert "**Empresas que usan ERP**" in a.text
    assert "⭐ Importancia: Media" in a.text
    assert "📊 Dimensión: Transformación Digital Empresarial" in a.text
    assert "💾 Total de resultados disponibles: 4" in a.text


def test_indicator_info_multiple_matches(chatbot):
    a = ask(chatbot, "indicador de cobertura")
    assert a.intent == "indicator_info"
    assert a.text.startswith("Encontré 2 indicador(es)")


# ----------------------------------------------------------
# Knowledge base and help
# ----------------------------------------------------------
def test_knowledge_answer(chatbot):
    a = ask(chatbot, "¿Qué mide el índice BRAINNOVA?")
    assert a.intent == "knowledge"
    assert "economía digital" in a.text


def test_knowledge_5g(chatbot):
    a = ask(chatbot, "¿Cuál es la cobertura 5G?")
    assert a.intent == "knowledge"
    assert "cobertura 5G" in a.text


def test_punctuation_only_returns_help(chatbot):
    a = ask(chatbot, "¿?")
    assert a.intent == "help"
    assert "Puedo ayudarte con" in a.text


def test_unknown_question_returns_help(chatbot):
    a = ask(chatbot, "xyzzy plugh")
    assert a.intent == "help"


def test_store_error_becomes_apology(dataset, territories, config):
    bot = _failing_chatbot(dataset, territories, config, fail_tables={"surveys"})
    a = asyncio.run(bot.respond("¿Hay alguna encuesta?"))
    assert a.intent == "surveys"
    assert "Encuestas" in a.text
    assert "connection reset" not in a.text


def test_refresh_province_summaries(chatbot):
    summaries = asyncio.run(chatbot.refresh_province_summaries(2024))
    assert summaries["valencia"].index == 86.7
    a = ask(chatbot, "índice de Valencia")
    assert "86.7" in a.text
