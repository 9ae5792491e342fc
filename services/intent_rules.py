# services/intent_rules.py
"""
Ordered intent cascade for the BRAINNOVA chatbot.

A rule is (name, predicate, handler). Rules are tried in order; the first
whose predicate holds runs its handler. A handler may decline by returning
None (e.g. an indicator search found nothing) and the cascade moves on.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Tuple

from config.territories import TerritoryDef
from services.knowledge_search import clean_query
from services.territories import normalize_text

logger = logging.getLogger("brainnova-backend.intents")


@dataclass(frozen=True)
class QueryContext:
    raw: str
    cleaned: str      # punctuation stripped, original case
    lower: str        # cleaned + lowercased + NFKC
    territory: Optional[TerritoryDef]

    def has_any(self, *phrases: str) -> bool:
        return any(p in self.lower for p in phrases)

    def has_word(self, *words: str) -> bool:
        return any(re.search(rf"(?<!\w){re.escape(w)}(?!\w)", self.lower) for w in words)


Predicate = Callable[[QueryContext], bool]
Handler = Callable[[QueryContext], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class IntentRule:
    name: str
    predicate: Predicate
    handler: Handler


def build_context(query: str, find_territory: Callable[[str], Optional[TerritoryDef]]) -> QueryContext:
    cleaned = clean_query(query)
    lower = normalize_text(cleaned)
    return QueryContext(raw=query or "", cleaned=cleaned, lower=lower, territory=find_territory(lower))


async def run_cascade(
    rules: Sequence[IntentRule],
    ctx: QueryContext,
    on_error: Callable[[IntentRule, Exception], str],
) -> Optional[Tuple[str, str]]:
    """
    Returns (rule_name, answer) of the first rule that answers, or None.
    A handler that raises is answered by on_error; it never escapes.
    """
    for rule in rules:
        try:
            matched = rule.predicate(ctx)
        except Exception as e:
            logger.warning("Predicate %s failed: %s", rule.name, e)
            continue
        if not matched:
            continue

        logger.debug("Intent %s matched query=%r", rule.name, ctx.cleaned)
        try:
            answer = await rule.handler(ctx)
        except Exception as e:
            logger.exception("Intent %s failed", rule.name)
            return rule.name, on_error(rule, e)

        if answer is not None:
            return rule.name, answer
    return None


# ------------------------------------------------------------
# Predicate vocabulary
# ------------------------------------------------------------
GLOBAL_SCORE_PHRASES = (
    "puntuación global", "puntuacion global", "score global", "global score",
    "índice global", "indice global", "puntuación total", "puntuacion total",
)
INDEX_WORDS = ("índice", "indice", "index", "puntuación", "puntuacion")
# Brand words name the index only when nothing more specific is asked
BRAND_WORDS = ("economía", "economia", "brainnova")
BASIC_DIGITIZATION_PHRASES = ("digitalización básica", "digitalizacion basica", "digitalización basica", "digitalizacion básica")
BUSINESS_WORDS = ("empresa", "empresas", "empresarial", "empresariales", "negocio", "negocios")
POPULATION_WORDS = ("persona", "personas", "habilidad", "habilidades", "población", "poblacion", "ciudadanía", "ciudadania")
DIGITIZATION_PHRASES = (
    "digitalización", "digitalizacion", "transformación digital", "transformacion digital",
    "nivel digital", "madurez digital",
)
SKILLS_PHRASES = (
    "habilidades digitales", "competencias digitales", "habilidad digital", "competencia digital",
)
SURVEY_WORDS = ("encuesta", "survey", "cuestionario")
DIMENSION_WORDS = ("dimensión", "dimension", "dimensiones")
VALUE_PHRASES = ("valor", "cuánto", "cuanto", "qué valor tiene", "que valor tiene")
INDICATOR_WORDS = (
    "kpi", "indicador", "métrica", "metrica", "dato", "empresa", "persona", "digital",
    "inteligencia artificial", "big data", "banda ancha", "habilidad",
)
TOPIC_WORDS = (
    *SURVEY_WORDS, *DIMENSION_WORDS, *SKILLS_PHRASES, *DIGITIZATION_PHRASES, *VALUE_PHRASES,
    "indicador", "kpi", "métrica", "metrica",
)


def is_global_score(ctx: QueryContext) -> bool:
    if ctx.has_any(*GLOBAL_SCORE_PHRASES):
        return True
    # "índice de la Comunitat Valenciana" / "de España": non-province territory
    return ctx.has_any(*INDEX_WORDS) and ctx.territory is not None and not ctx.territory.is_province


def asks_for_index(ctx: QueryContext) -> bool:
    if ctx.has_any(*INDEX_WORDS):
        return True
    return ctx.has_any(*BRAND_WORDS) and not ctx.has_any(*TOPIC_WORDS)


def is_province_index(ctx: QueryContext) -> bool:
    if not asks_for_index(ctx):
        return False
    # Either a province is named or the question is about "las provincias"
    if ctx.territory is not None and ctx.territory.is_province:
        return True
    return ctx.has_any("provincia", "provincias")


def is_basic_digitization(ctx: QueryContext) -> bool:
    return ctx.has_any(*BASIC_DIGITIZATION_PHRASES)


def is_business_digitization(ctx: QueryContext) -> bool:
    return ctx.has_any(*DIGITIZATION_PHRASES) and ctx.has_word(*BUSINESS_WORDS) and not is_basic_digitization(ctx)


def is_digital_skills(ctx: QueryContext) -> bool:
    return ctx.has_any(*SKILLS_PHRASES)


def is_survey(ctx: QueryContext) -> bool:
    return ctx.has_any(*SURVEY_WORDS)


def is_dimensions(ctx: QueryContext) -> bool:
    return ctx.has_any(*DIMENSION_WORDS)


def is_value_lookup(ctx: QueryContext) -> bool:
    return ctx.has_any(*VALUE_PHRASES)


def is_indicator_info(ctx: QueryContext) -> bool:
    return ctx.has_any(*INDICATOR_WORDS)


def always(ctx: QueryContext) -> bool:
    return True
