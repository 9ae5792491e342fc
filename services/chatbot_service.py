# services/chatbot_service.py
"""
BRAINNOVA chatbot response generator.

Maps a free-text question to one of the computation-backed answers, in
priority order, then falls back to the knowledge base and finally to a
static help message. Every answer is plain Spanish text with **bold**
markers for the chat widget; no branch lets an exception reach the caller.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence

from config.territories import PROVINCE_SUMMARIES, ProvinceSummary, TerritoryDef
from services.brainnova_repository import BrainnovaRepository
from services.intent_rules import (
    BUSINESS_WORDS,
    IntentRule,
    QueryContext,
    always,
    build_context,
    is_basic_digitization,
    is_business_digitization,
    is_digital_skills,
    is_dimensions,
    is_global_score,
    is_indicator_info,
    is_province_index,
    is_survey,
    is_value_lookup,
    run_cascade,
)
from services.knowledge_search import KnowledgeSearch, extract_terms
from services.models import IndicatorDefinition, IndicatorDetails, IndicatorResult
from services.scoring_engine import ScoringEngine
from services.territories import TerritoryResolver, normalize_text

logger = logging.getLogger("brainnova-backend.chatbot")

BASIC_DIGITIZATION_SUBDIMENSION = "Digitalización Básica"
BUSINESS_DIGITIZATION_DIMENSION = "Transformación Digital Empresarial"
POPULATION_SKILLS_SEARCH = ("habilidades digitales básicas", "habilidades digitales")
DIGITAL_SKILLS_SEARCH = ("habilidades digitales", "competencias digitales")

# Words that say what kind of question it is, not which indicator it is about
INDICATOR_QUERY_NOISE = frozenset({
    "valor", "valores", "cuánto", "cuanto", "tiene", "indicador", "indicadores", "kpi", "kpis",
    "métrica", "metrica", "dato", "datos", "hay", "sobre", "cuál", "cual", "qué", "que",
    "es", "del", "los", "las", "más", "mas", "reciente", "último", "ultimo",
})

SECTION_BY_INTENT: Mapping[str, str] = MappingProxyType({
    "global_score": "Comparación Territorial",
    "province_index": "Comparación Territorial",
    "basic_digitization": "Dimensiones",
    "business_digitization": "Dimensiones",
    "digital_skills": "Todos los Indicadores (KPIs)",
    "surveys": "Encuestas",
    "dimensions": "Dimensiones",
    "indicator_value": "Todos los Indicadores (KPIs)",
    "indicator_info": "Todos los Indicadores (KPIs)",
    "knowledge": "Metodología",
})

_YEAR_RE = re.compile(r"(?<!\d)(20\d{2})(?!\d)")


@dataclass(frozen=True)
class ChatAnswer:
    text: str
    intent: str


def format_score(value: float) -> str:
    v = round(float(value), 1)
    return str(int(v)) if v.is_integer() else f"{v:.1f}"


def format_value(value: float) -> str:
    v = float(value)
    if v.is_integer():
        return str(int(v))
    return f"{v:.2f}".rstrip("0").rstrip(".")


def rank_indicator_matches(definitions: Sequence[IndicatorDefinition], terms: Sequence[str]) -> List[IndicatorDefinition]:
    """
    Orders name-search hits by how many query terms each name contains.
    """
    def hits(d: IndicatorDefinition) -> int:
        name = normalize_text(d.name)
        return sum(1 for t in terms if t in name)

    return sorted(definitions, key=hits, reverse=True)


class ChatbotService:
    def __init__(
        self,
        repository: BrainnovaRepository,
        engine: ScoringEngine,
        knowledge: KnowledgeSearch,
        territories: TerritoryResolver,
        *,
        province_summaries: Mapping[str, ProvinceSummary] = PROVINCE_SUMMARIES,
        default_period: int | None = None,
    ):
        self.repository = repository
        self.engine = engine
        self.knowledge = knowledge
        self.territories = territories
        self._province_summaries: Mapping[str, ProvinceSummary] = province_summaries
        self.default_period = default_period if default_period is not None else engine.config.default_period

        self.rules: List[IntentRule] = [
            IntentRule("global_score", is_global_score, self._answer_global_score),
            IntentRule("province_index", is_province_index, self._answer_province_index),
            IntentRule("basic_digitization", is_basic_digitization, self._answer_basic_digitization),
            IntentRule("business_digitization", is_business_digitization, self._answer_business_digitization),
            IntentRule("digital_skills", is_digital_skills, self._answer_digital_skills),
            IntentRule("surveys", is_survey, self._answer_surveys),
            IntentRule("dimensions", is_dimensions, self._answer_dimensions),
            IntentRule("indicator_value", is_value_lookup, self._answer_indicator_value),
            IntentRule("indicator_info", is_indicator_info, self._answer_indicator_info),
            IntentRule("knowledge", always, self._answer_knowledge),
            IntentRule("help", always, self._answer_help),
        ]

    # ------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------
    async def respond(self, query: str) -> ChatAnswer:
        ctx = build_context(query, self.territories.find_in_text)
        result = await run_cascade(self.rules, ctx, self._apology)
        if result is None:
            return ChatAnswer(self._help_text(ctx), "help")
        intent, text = result
        logger.info("chatbot intent=%s territory=%s", intent, ctx.territory.key if ctx.territory else None)
        return ChatAnswer(text, intent)

    @property
    def province_summaries(self) -> Mapping[str, ProvinceSummary]:
        return self._province_summaries

    async def refresh_province_summaries(self, period: int | None = None) -> Mapping[str, ProvinceSummary]:
        """
        Replaces the published province figures with freshly computed ones.
        Keeps the current figures when nothing could be computed.
        """
        computed = await self.engine.province_summaries(period or self.default_period)
        if computed:
            self._province_summaries = MappingProxyType(dict(computed))
        return self._province_summaries

    # ------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------
    def _apology(self, rule: IntentRule, error: Exception) -> str:
        section = SECTION_BY_INTENT.get(rule.name, "Dashboard")
        return (
            "Lo siento, no he podido consultar los datos en este momento. "
            f"Puedes consultarlos manualmente en la sección **{section}** del panel."
        )

    def _period(self, ctx: QueryContext) -> int:
        m = _YEAR_RE.search(ctx.lower)
        return int(m.group(1)) if m else self.default_period

    def _territory_or_default(self, ctx: QueryContext) -> TerritoryDef:
        return ctx.territory or self.territories.default

    def _indicator_terms(self, ctx: QueryContext) -> List[str]:
        terms = [t for t in extract_terms(ctx.lower) if t not in INDICATOR_QUERY_NOISE]
        if ctx.territory is not None:
            # Territory names are filters, not part of an indicator name
            names = {normalize_text(a) for a in (ctx.territory.display, *ctx.territory.aliases)}
            terms = [t for t in terms if t not in names]
        return [t for t in terms if not _YEAR_RE.fullmatch(t)]

    async def _search_indicators(self, terms: Sequence[str]) -> List[IndicatorDefinition]:
        if not terms:
            return []
        found = await self.repository.search_indicator_definitions(terms)
        return rank_indicator_matches(found, terms)

    async def _indicator_details(self, definition: IndicatorDefinition) -> IndicatorDetails:
        sub = await self.repository.get_subdimension(definition.subdimension_name) if definition.subdimension_name else None
        latest = await self.repository.latest_result(definition.name)
        total = await self.repository.count_results(definition.name)
        return IndicatorDetails(
            definition=definition,
            dimension=sub.dimension_name if sub else "",
            latest=latest,
            total_results=total,
        )

    async def _territory_value(
        self,
        name: str,
        territory: Optional[TerritoryDef],
        period: int,
    ) -> Optional[IndicatorResult]:
        values = self.territories.store_values(territory) if territory else None
        return await self.repository.latest_result(name, values, period)

    @staticmethod
    def _describe_result(result: IndicatorResult) -> str:
        where = result.country or "—"
        return f"**{format_value(result.value)}** (período {result.period}, {where})"

    # ------------------------------------------------------------
    # 1. Global score
    # ------------------------------------------------------------
    async def _answer_global_score(self, ctx: QueryContext) -> str:
        terr = self._territory_or_default(ctx)
        period = self._period(ctx)
        report = await self.engine.index_report(terr, period)

        if report.index is None:
            return (
                f"No he podido obtener la puntuación global del índice BRAINNOVA para **{terr.display}** "
                f"en {period}. Puedes consultarla en la sección **Comparación Territorial**."
            )

        text = (
            f"La puntuación global del índice BRAINNOVA para **{terr.display}** en {period} "
            f"es **{format_score(report.index)}** sobre 100."
        )
        scored = [(name, v) for name, v in report.breakdown.items() if v is not None]
        if scored:
            top_name, top_value = max(scored, key=lambda nv: nv[1])
            text += f"\n\nLa dimensión con mejor resultado es **{top_name}** ({format_score(top_value)} puntos)."
        if report.source == "regional":
            text += "\n\nEl valor regional se obtiene como media de los índices de Valencia, Alicante y Castellón."
        return text

    # ------------------------------------------------------------
    # 2. Index per province
    # ------------------------------------------------------------
    def _province_line(self, summary: ProvinceSummary) -> str:
        name = self.territories.get(summary.territory_key).display
        return (
            f"{summary.rank}. **{name}**: índice **{format_score(summary.index)}** "
            f"(dimensión destacada: {summary.top_dimension}, {format_score(summary.top_dimension_score)} puntos)"
        )

    async def _answer_province_index(self, ctx: QueryContext) -> str:
        summaries = self.province_summaries
        total = len(summaries)

        if ctx.territory is not None and ctx.territory.is_province:
            s = summaries.get(ctx.territory.key)
            if s is None:
                return (
                    f"No tengo disponible el índice BRAINNOVA de **{ctx.territory.display}**. "
                    "Puedes consultarlo en la sección **Comparación Territorial**."
                )
            return (
                f"El índice BRAINNOVA de **{ctx.territory.display}** es **{format_score(s.index)}** "
                f"(puesto {s.rank} de {total} provincias).\n\n"
                f"Su dimensión más destacada es **{s.top_dimension}** con {format_score(s.top_dimension_score)} puntos.\n\n"
                "Puedes ver la comparativa completa en la sección **Comparación Territorial**."
            )

        if not summaries:
            return "No hay datos del índice por provincia. Consulta la sección **Comparación Territorial**."

        lines = "\n".join(self._province_line(s) for s in sorted(summaries.values(), key=lambda s: s.rank))
        return f"Índice BRAINNOVA por provincia:\n\n{lines}\n\n¿Quieres el detalle de alguna provincia?"

    # ------------------------------------------------------------
    # 3. "Digitalización básica": businesses vs population
    # ------------------------------------------------------------
    async def _answer_basic_digitization(self, ctx: QueryContext) -> str:
        # Ambiguous phrasing resolves to businesses only when a business word is present
        if ctx.has_word(*BUSINESS_WORDS):
            return await self._basic_digitization_business(ctx)
        return await self._basic_digitization_population(ctx)

    async def _basic_digitization_business(self, ctx: QueryContext) -> str:
        terr = self._territory_or_default(ctx)
        period = self._period(ctx)
        score = await self.engine.subdimension_score(BASIC_DIGITIZATION_SUBDIMENSION, terr, period)

        if score is None:
            return (
                f"No hay datos de la subdimensión **{BASIC_DIGITIZATION_SUBDIMENSION}** (empresas) "
                f"para **{terr.display}** en {period}. Puedes consultar la sección **Dimensiones** → "
                f"{BUSINESS_DIGITIZATION_DIMENSION}."
            )
        return (
            f"La subdimensión **{BASIC_DIGITIZATION_SUBDIMENSION}** de las empresas en **{terr.display}** "
            f"obtiene una puntuación de **{format_score(score.value)}** sobre 100 (período {score.period}).\n\n"
            "Mide la adopción de herramientas digitales básicas por parte del tejido empresarial."
        )

    async def _basic_digitization_population(self, ctx: QueryContext) -> str:
        period = self._period(ctx)
        matches: List[IndicatorDefinition] = []
        for phrase in POPULATION_SKILLS_SEARCH:
            matches = await self.repository.search_indicator_definitions([phrase])
            if matches:
                break

        if not matches:
            return (
                "No encuentro el indicador de **personas con habilidades digitales básicas**. "
                "Puedes buscarlo en la sección **Todos los Indicadores (KPIs)**."
            )

        definition = matches[0]
        details = await self._indicator_details(definition)
        result = await self._territory_value(definition.name, ctx.territory, period) if ctx.territory else details.latest

        text = f"**{definition.name}**"
        if details.dimension:
            text += f" (dimensión {details.dimension})"
        if result is None:
            where = f" para **{ctx.territory.display}**" if ctx.territory else ""
            return text + f"\n\nEste indicador aún no tiene valores calculados{where}."
        return text + f"\n\nÚltimo valor: {self._describe_result(result)}."

    # ------------------------------------------------------------
    # 4. Business digitization (full dimension)
    # ------------------------------------------------------------
    async def _answer_business_digitization(self, ctx: QueryContext) -> str:
        terr = self._territory_or_default(ctx)
        period = self._period(ctx)

        dimension = BUSINESS_DIGITIZATION_DIMENSION
        for d in await self.repository.list_dimensions():
            n = normalize_text(d.name)
            if "transformación digital" in n or "transformacion digital" in n:
                dimension = d.name
                break

        score = await self.engine.dimension_score(dimension, terr, period)
        if score is None:
            return (
                f"No hay datos de la dimensión **{dimension}** para **{terr.display}** en {period}. "
                "Puedes consultar la sección **Dimensiones**."
            )
        return (
            f"El nivel de digitalización empresarial (dimensión **{dimension}**) en **{terr.display}** "
            f"es de **{format_score(score.value)}** sobre 100 (período {period})."
        )

    # ------------------------------------------------------------
    # 5. Digital skills indicator
    # ------------------------------------------------------------
    async def _answer_digital_skills(self, ctx: QueryContext) -> Optional[str]:
        period = self._period(ctx)
        matches = await self._search_indicators(self._indicator_terms(ctx))
        if not matches:
            for phrase in DIGITAL_SKILLS_SEARCH:
                matches = await self.repository.search_indicator_definitions([phrase])
                if matches:
                    break
        if not matches:
            return None

        definition = matches[0]
        result = await self._territory_value(definition.name, ctx.territory, period)
        if result is None:
            where = f" en **{ctx.territory.display}**" if ctx.territory else ""
            return f"El indicador **{definition.name}** no tiene valores disponibles{where}."
        return f"**{definition.name}**: {self._describe_result(result)}."

    # ------------------------------------------------------------
    # 6. Surveys
    # ------------------------------------------------------------
    async def _answer_surveys(self, ctx: QueryContext) -> str:
        surveys = await self.repository.active_surveys()
        if not surveys:
            return "No hay encuestas activas en este momento."

        lines = "\n".join(f"• {s.title}: {s.description or 'Sin descripción'}" for s in surveys)
        return (
            f"Encontré {len(surveys)} encuesta(s) disponible(s):\n\n{lines}\n\n"
            "¿Sobre cuál te gustaría saber más?"
        )

    # ------------------------------------------------------------
    # 7. Dimensions
    # ------------------------------------------------------------
    async def _answer_dimensions(self, ctx: QueryContext) -> Optional[str]:
        dimensions = await self.repository.list_dimensions()
        if not dimensions:
            return None

        named = next((d for d in dimensions if normalize_text(d.name) in ctx.lower), None)
        if named is None:
            lines = "\n".join(f"{i}. **{d.name}**" for i, d in enumerate(dimensions, start=1))
            return (
                f"Tenemos {len(dimensions)} dimensiones en el sistema:\n\n{lines}\n\n"
                "¿Sobre qué dimensión te gustaría saber más? Puedo mostrarte los indicadores de cada una."
            )

        subdimensions = await self.repository.list_subdimensions(named.name)
        indicators = await self.repository.list_indicator_definitions([s.name for s in subdimensions])
        if not indicators:
            return f"La dimensión **{named.name}** no tiene indicadores disponibles en este momento."

        lines = "\n".join(
            f"{i}. **{ind.name}**" + (f" ({ind.importance})" if ind.importance else "")
            for i, ind in enumerate(indicators[:10], start=1)
        )
        more = f"\n\n... y {len(indicators) - 10} más." if len(indicators) > 10 else ""
        return (
            f"La dimensión **{named.name}** tiene {len(indicators)} indicador(es):\n\n{lines}{more}\n\n"
            "¿Sobre cuál indicador te gustaría saber más detalles?"
        )

    # ------------------------------------------------------------
    # 8. Indicator value
    # ------------------------------------------------------------
    async def _answer_indicator_value(self, ctx: QueryContext) -> Optional[str]:
        matches = await self._search_indicators(self._indicator_terms(ctx))
        if not matches:
            return None

        details = await self._indicator_details(matches[0])
        name = details.definition.name
        result = (
            await self._territory_value(name, ctx.territory, self._period(ctx))
            if ctx.territory else details.latest
        )

        if result is not None:
            text = f"El valor más reciente del indicador **{name}** es {self._describe_result(result)}."
            if details.total_results > 0:
                text += f"\n\nTenemos {details.total_results} resultados disponibles para este indicador."
            return text

        text = f"El indicador **{name}** está definido en el sistema pero no tiene valores calculados disponibles"
        text += f" para **{ctx.territory.display}**." if ctx.territory else " aún."
        if details.total_results > 0:
            text += f"\n\nSin embargo, tenemos {details.total_results} registros en la base de datos."
        return text

    # ------------------------------------------------------------
    # 9. Indicator / KPI information
    # ------------------------------------------------------------
    def _indicator_card(self, details: IndicatorDetails) -> str:
        d = details.definition
        lines = [f"**{d.name}**", ""]
        if details.dimension:
            lines.append(f"📊 Dimensión: {details.dimension}")
        if d.subdimension_name:
            lines.append(f"📈 Subdimensión: {d.subdimension_name}")
        if d.importance:
            lines.append(f"⭐ Importancia: {d.importance}")
        if d.formula:
            lines.append(f"🔢 Fórmula: {d.formula}")
        if d.source:
            lines.append(f"📚 Fuente: {d.source}")
        if d.origin:
            lines.append(f"📍 Origen: {d.origin}")

        text = "\n".join(lines)
        if details.latest is not None:
            text += f"\n\n📊 Último valor: {self._describe_result(details.latest)}"
        if details.total_results > 0:
            text += f"\n\n💾 Total de resultados disponibles: {details.total_results}"
        else:
            text += "\n\n⚠️ Este indicador aún no tiene valores calculados en la base de datos."
        return text

    async def _answer_indicator_info(self, ctx: QueryContext) -> Optional[str]:
        matches = await self._search_indicators(self._indicator_terms(ctx))

        if len(matches) == 1:
            return self._indicator_card(await self._indicator_details(matches[0]))

        if matches:
            shown = matches[:5]
            lines = "\n".join(
                f"{i}. **{m.name}**" + (f" ({m.importance})" if m.importance else "")
                for i, m in enumerate(shown, start=1)
            )
            if len(matches) <= 5:
                head = f"Encontré {len(matches)} indicador(es) relacionado(s) con tu búsqueda:"
                tail = ""
            else:
                head = f"Encontré {len(matches)} indicadores relacionados. Aquí tienes los primeros 5:"
                tail = f"\n\n... y {len(matches) - 5} más."
            return (
                f"{head}\n\n{lines}{tail}\n\n"
                "¿Sobre cuál te gustaría saber más detalles? Puedes preguntar por el nombre específico del indicador."
            )

        every = await self.repository.list_indicator_definitions()
        if not every:
            return None
        return (
            f"Tenemos **{len(every)} indicadores** disponibles en la base de datos. Puedes preguntar sobre:\n\n"
            "• **Indicadores específicos** (por ejemplo: \"¿Qué es el indicador de empresas que usan inteligencia artificial?\")\n"
            "• **Indicadores por dimensión** (por ejemplo: \"¿Qué indicadores hay en transformación digital empresarial?\")\n"
            "• **Valores de indicadores** (por ejemplo: \"¿Cuál es el valor de empresas que usan inteligencia artificial?\")\n"
            "• **Listar todas las dimensiones** (pregunta: \"¿Qué dimensiones hay?\")\n\n"
            "¿Sobre qué indicador te gustaría saber más?"
        )

    # ------------------------------------------------------------
    # 10. Knowledge base
    # ------------------------------------------------------------
    async def _answer_knowledge(self, ctx: QueryContext) -> Optional[str]:
        results = await self.knowledge.search(ctx.cleaned)

        if results:
            terms = [t for t in ctx.lower.split() if len(t) > 2]

            def title_hits(r) -> int:
                title = r.item.title.lower()
                return sum(1 for t in terms if t in title)

            ordered = sorted(results, key=lambda r: (title_hits(r), r.relevance), reverse=True)
            text = ordered[0].item.content
            if len(ordered) > 1 and ordered[1].relevance > 2:
                text += f"\n\nTambién encontré información relacionada sobre \"{ordered[1].item.title}\". ¿Te interesa?"
            return text

        # Broader attempt with the first meaningful word only
        key_terms = [t for t in ctx.lower.split() if len(t) > 3]
        if key_terms:
            broad = await self.knowledge.search(key_terms[0])
            if broad:
                return broad[0].item.content
        return None

    # ------------------------------------------------------------
    # 11. Help
    # ------------------------------------------------------------
    def _help_text(self, ctx: QueryContext) -> str:
        about = f" sobre \"{ctx.cleaned}\"" if ctx.cleaned else ""
        return (
            f"No encontré información específica{about} en la base de conocimiento.\n\n"
            "Puedo ayudarte con:\n"
            "• **Índice BRAINNOVA**: \"¿Cuál es el índice BRAINNOVA de Alicante?\" o \"¿Cuál es la puntuación global de la Comunitat Valenciana?\"\n"
            "• **KPIs e Indicadores**: \"¿Qué es el indicador de empresas que usan inteligencia artificial?\"\n"
            "• **Dimensiones**: \"¿Qué dimensiones hay?\" o \"¿Qué indicadores hay en transformación digital empresarial?\"\n"
            "• **Valores**: \"¿Cuál es el valor de empresas que usan inteligencia artificial?\"\n"
            "• **Encuestas**: información sobre encuestas disponibles\n\n"
            "¿Podrías reformular tu pregunta o ser más específico?"
        )

    async def _answer_help(self, ctx: QueryContext) -> str:
        return self._help_text(ctx)
