# services/brainnova_repository.py
"""
Data access layer for the BRAINNOVA tables.

Every method is async: the supabase-py client is synchronous, so each query
runs in a worker thread and independent queries can be awaited jointly.

Tables:
  dimensiones, subdimensiones, definicion_indicadores,
  resultado_indicadores, chatbot_knowledge, surveys

Errors from the client surface as StoreError; callers decide whether that
means "no data" (engines) or an apology (chatbot).
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from config.scoring_config import ScoringConfig
from services.errors import StoreError
from services.models import (
    Dimension,
    IndicatorDefinition,
    IndicatorResult,
    KnowledgeItem,
    Subdimension,
    Survey,
)
from services.territories import normalize_text

logger = logging.getLogger("brainnova-backend.repository")

T = TypeVar("T", bound=BaseModel)

_DEFINITION_COLUMNS = "nombre,importancia,formula,fuente,origen_indicador,nombre_subdimension"
_RESULT_COLUMNS = "nombre_indicador,periodo,valor_calculado,pais,provincia,sector,tamano_empresa"

# Characters with meaning inside a PostgREST or=(...) filter
_FILTER_UNSAFE = re.compile(r"[,()%*\"\\]")


def _safe_term(term: str) -> str:
    return _FILTER_UNSAFE.sub("", term or "").strip()


def _parse_rows(model: Type[T], rows: Iterable[Dict[str, Any]], table: str) -> List[T]:
    out: List[T] = []
    for row in rows or []:
        try:
            out.append(model.model_validate(row))
        except ValidationError as e:
            # Malformed row → skipped, never propagated into aggregation
            logger.warning("Skipping malformed %s row: %s", table, e.errors()[:1])
    return out


class BrainnovaRepository:
    def __init__(self, client: Any, config: ScoringConfig | None = None):
        self._client = client
        self.config = config or ScoringConfig()

        self._alias_lookup: Dict[str, str] = {}
        for canonical, aliases in self.config.indicator_aliases.items():
            for alias in aliases:
                self._alias_lookup[normalize_text(alias)] = canonical

    # ------------------------------------------------------------
    # Query execution
    # ------------------------------------------------------------
    async def _execute(self, table: str, build: Callable[[Any], Any]) -> Any:
        if self._client is None:
            raise StoreError(table, "Supabase client is not configured")

        def _run() -> Any:
            return build(self._client.table(table)).execute()

        try:
            return await asyncio.to_thread(_run)
        except Exception as e:
            logger.warning("Supabase query on %s failed: %s", table, e)
            raise StoreError(table, str(e)) from e

    async def _rows(self, table: str, build: Callable[[Any], Any]) -> List[Dict[str, Any]]:
        res = await self._execute(table, build)
        data = getattr(res, "data", None) or []
        return data if isinstance(data, list) else [data]

    # ------------------------------------------------------------
    # Indicator name aliases
    # ------------------------------------------------------------
    def canonical_indicator_name(self, name: str) -> str:
        return self._alias_lookup.get(normalize_text(name), name)

    def indicator_query_names(self, name: str) -> List[str]:
        canonical = self.canonical_indicator_name(name)
        aliases = self.config.indicator_aliases.get(canonical)
        return list(aliases) if aliases else [name]

    # ------------------------------------------------------------
    # Index structure
    # ------------------------------------------------------------
    async def list_dimensions(self) -> List[Dimension]:
        rows = await self._rows(
            "dimensiones",
            lambda q: q.select("nombre,peso").order("peso", desc=True),
        )
        return _parse_rows(Dimension, rows, "dimensiones")

    async def list_subdimensions(self, dimension_name: str | None = None) -> List[Subdimension]:
        rows = await self._rows(
            "subdimensiones",
            lambda q: q.select("nombre,nombre_dimension,peso").order("nombre_dimension"),
        )
        subdimensions = _parse_rows(Subdimension, rows, "subdimensiones")

        if dimension_name:
            wanted = normalize_text(dimension_name)
            subdimensions = [s for s in subdimensions if normalize_text(s.dimension_name) == wanted]

        # "Acceso a Infraestructuras" and "Acceso a infraestructuras" are one subdimension
        seen: set[str] = set()
        unique: List[Subdimension] = []
        for sub in subdimensions:
            key = normalize_text(sub.name)
            if key in seen:
                continue
            seen.add(key)
            unique.append(sub)
        return unique

    async def get_subdimension(self, name: str) -> Optional[Subdimension]:
        wanted = normalize_text(name)
        for sub in await self.list_subdimensions():
            if normalize_text(sub.name) == wanted:
                return sub
        return None

    async def list_indicator_definitions(
        self,
        subdimension_names: Sequence[str] | None = None,
    ) -> List[IndicatorDefinition]:
        rows = await self._rows(
            "definicion_indicadores",
            lambda q: q.select(_DEFINITION_COLUMNS).order("nombre"),
        )
        definitions = _parse_rows(IndicatorDefinition, rows, "definicion_indicadores")

        if subdimension_names is not None:
            wanted = {normalize_text(n) for n in subdimension_names}
            definitions = [d for d in definitions if normalize_text(d.subdimension_name) in wanted]

        return self._one_per_indicator(definitions)

    def _one_per_indicator(self, definitions: Iterable[IndicatorDefinition]) -> List[IndicatorDefinition]:
        # One definition per canonical indicator (VHCN spelling variants)
        by_canonical: Dict[str, IndicatorDefinition] = {}
        for d in definitions:
            key = normalize_text(self.canonical_indicator_name(d.name))
            if key not in by_canonical or d.name == self.canonical_indicator_name(d.name):
                by_canonical[key] = d
        return list(by_canonical.values())

    async def get_indicator_definition(self, name: str) -> Optional[IndicatorDefinition]:
        names = self.indicator_query_names(name)
        rows = await self._rows(
            "definicion_indicadores",
            lambda q: q.select(_DEFINITION_COLUMNS).in_("nombre", names).limit(1),
        )
        parsed = _parse_rows(IndicatorDefinition, rows, "definicion_indicadores")
        return parsed[0] if parsed else None

    async def search_indicator_definitions(self, terms: Sequence[str], limit: int = 20) -> List[IndicatorDefinition]:
        safe = [t for t in (_safe_term(t) for t in terms) if t]
        if not safe:
            return []
        conditions = ",".join(f"nombre.ilike.%{t}%" for t in safe)
        rows = await self._rows(
            "definicion_indicadores",
            lambda q: q.select(_DEFINITION_COLUMNS).or_(conditions).order("nombre").limit(limit),
        )
        return self._one_per_indicator(_parse_rows(IndicatorDefinition, rows, "definicion_indicadores"))

    # ------------------------------------------------------------
    # Indicator results
    # ------------------------------------------------------------
    async def fetch_results(
        self,
        indicator_name: str,
        territory_values: Sequence[str] | None = None,
        *,
        period: int | None = None,
        sector: str | None = None,
        company_size: str | None = None,
        province: str | None = None,
        limit: int = 10,
    ) -> List[IndicatorResult]:
        """
        Result rows for one indicator, newest period first.
        """
        names = self.indicator_query_names(indicator_name)

        def build(q: Any) -> Any:
            q = q.select(_RESULT_COLUMNS).in_("nombre_indicador", names)
            if territory_values:
                q = q.in_("pais", list(territory_values))
            if period is not None:
                q = q.eq("periodo", period)
            if sector:
                q = q.eq("sector", sector)
            if company_size:
                q = q.eq("tamano_empresa", company_size)
            if province:
                q = q.eq("provincia", province)
            return q.order("periodo", desc=True).limit(limit)

        rows = await self._rows("resultado_indicadores", build)
        return _parse_rows(IndicatorResult, rows, "resultado_indicadores")

    async def latest_result(
        self,
        indicator_name: str,
        territory_values: Sequence[str] | None = None,
        period: int | None = None,
        **filters: Any,
    ) -> Optional[IndicatorResult]:
        """
        Exact period when it has data, otherwise the most recent period on record.
        """
        if period is not None:
            exact = await self.fetch_results(indicator_name, territory_values, period=period, limit=5, **filters)
            if exact:
                return exact[0]

        latest = await self.fetch_results(indicator_name, territory_values, limit=5, **filters)
        return latest[0] if latest else None

    async def reference_values(self, indicator_name: str, period: int) -> List[float]:
        """
        Every recorded value of the indicator for the period (all territories and
        segments). Falls back to all periods when the period has no rows.
        """
        names = self.indicator_query_names(indicator_name)

        rows = await self._rows(
            "resultado_indicadores",
            lambda q: q.select(_RESULT_COLUMNS).in_("nombre_indicador", names).eq("periodo", period),
        )
        if not rows:
            rows = await self._rows(
                "resultado_indicadores",
                lambda q: q.select(_RESULT_COLUMNS).in_("nombre_indicador", names),
            )
        return [r.value for r in _parse_rows(IndicatorResult, rows, "resultado_indicadores")]

    async def count_results(self, indicator_name: str) -> int:
        names = self.indicator_query_names(indicator_name)
        res = await self._execute(
            "resultado_indicadores",
            lambda q: q.select("nombre_indicador", count="exact").in_("nombre_indicador", names).limit(1),
        )
        count = getattr(res, "count", None)
        return int(count) if count is not None else len(getattr(res, "data", None) or [])

    # ------------------------------------------------------------
    # Chatbot knowledge base
    # ------------------------------------------------------------
    async def search_knowledge(
        self,
        terms: Sequence[str],
        category: str | None = None,
        limit: int = 10,
    ) -> List[KnowledgeItem]:
        safe = [t for t in (_safe_term(t) for t in terms) if t]
        if not safe:
            return []
        conditions = ",".join(f"title.ilike.%{t}%,content.ilike.%{t}%" for t in safe)

        def build(q: Any) -> Any:
            q = q.select("*")
            if category:
                q = q.eq("category", category)
            return q.or_(conditions).order("created_at", desc=True).limit(limit)

        rows = await self._rows("chatbot_knowledge", build)
        return _parse_rows(KnowledgeItem, rows, "chatbot_knowledge")

    async def search_knowledge_titles(self, term: str, limit: int = 10) -> List[KnowledgeItem]:
        safe = _safe_term(term)
        if not safe:
            return []
        rows = await self._rows(
            "chatbot_knowledge",
            lambda q: q.select("*").ilike("title", f"%{safe}%").limit(limit),
        )
        return _parse_rows(KnowledgeItem, rows, "chatbot_knowledge")

    # ------------------------------------------------------------
    # Surveys
    # ------------------------------------------------------------
    async def active_surveys(self) -> List[Survey]:
        rows = await self._rows(
            "surveys",
            lambda q: q.select("id,title,description,active").eq("active", True),
        )
        return _parse_rows(Survey, rows, "surveys")
