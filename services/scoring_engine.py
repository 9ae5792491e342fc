# services/scoring_engine.py

"""
BRAINNOVA Scoring Engine

Converts raw indicator results into bounded scores and aggregates them:
- indicator     min-max normalization against every value recorded for the
                indicator in the same period (0–100)
- subdimension  importance-weighted mean of its indicators (Alta=3, Media=2, Baja=1)
- dimension     arithmetic mean of its subdimensions
- global index  dimension-weight mean of the dimensions

Missing data never counts as zero: an element without data is skipped by its
parent, and an element whose children all lack data is itself "no data" (None).
Store failures are logged and treated as no data.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from config.scoring_config import FlatReferenceRule, ScoringConfig
from config.territories import ProvinceSummary, TerritoryDef
from services.brainnova_repository import BrainnovaRepository
from services.errors import ScoreBackendError, StoreError
from services.models import Dimension, IndicatorDefinition, Score, Subdimension
from services.score_backend import BackendScore, ScoreBackendClient
from services.territories import TerritoryResolver, normalize_text

logger = logging.getLogger("brainnova-backend.scoring")

# Territories a Valencia-only backend answer describes
VALENCIA_BACKEND_KEYS = frozenset({"valencia", "comunitat_valenciana"})


# =====================================================================
# Helpers
# =====================================================================
def _clamp(value: float, min_v: float, max_v: float) -> float:
    return max(min_v, min(value, max_v))


def weighted_mean(pairs: Iterable[Tuple[float, float]]) -> Optional[float]:
    """
    Σ(value·weight) / Σ(weight) over (value, weight) pairs.
    fsum keeps the result independent of input order.
    """
    items = [(v, w) for v, w in pairs if w > 0]
    total_weight = math.fsum(w for _, w in items)
    if not items or total_weight <= 0:
        return None
    return math.fsum(v * w for v, w in items) / total_weight


# =====================================================================
# NORMALIZATION FUNCTION
# =====================================================================
def normalize_indicator(
    raw_value: float,
    reference_values: Sequence[float],
    flat_rule: FlatReferenceRule = FlatReferenceRule.MAX_IF_POSITIVE,
) -> float:
    """
    Min-max score of raw_value against the reference set, in 0..100.

    The raw value always belongs to the reference set; when the set has no
    range (single observation or all equal) flat_rule decides the score.
    """
    values = [float(v) for v in reference_values if v is not None and math.isfinite(float(v))]
    values.append(float(raw_value))

    min_v = min(values)
    max_v = max(values)
    span = max_v - min_v

    if span <= 0:
        if flat_rule is FlatReferenceRule.MIDPOINT:
            return 50.0
        if flat_rule is FlatReferenceRule.ZERO:
            return 0.0
        return 100.0 if (raw_value == max_v and max_v > 0) else 0.0

    return _clamp(((raw_value - min_v) / span) * 100.0, 0.0, 100.0)


# =====================================================================
# RESULT SHAPES
# =====================================================================
@dataclass(frozen=True)
class IndexReport:
    territory: str
    period: int
    index: Optional[float]
    breakdown: Dict[str, Optional[float]] = field(default_factory=dict)
    source: str = "local"  # "local" | "backend" | "regional"


class _ScoringContext:
    """
    Per-call memo of store reads. Concurrent branches asking for the same
    reference set share one in-flight query; nothing outlives the call.
    """

    def __init__(self) -> None:
        self._tasks: Dict[Tuple[Any, ...], asyncio.Future] = {}

    async def memo(self, key: Tuple[Any, ...], factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
        return await task


# =====================================================================
# CORE SCORING ENGINE
# =====================================================================
class ScoringEngine:
    def __init__(
        self,
        repository: BrainnovaRepository,
        territories: TerritoryResolver,
        config: ScoringConfig | None = None,
        backend: ScoreBackendClient | None = None,
    ):
        self.repository = repository
        self.territories = territories
        self.config = config or ScoringConfig()
        self.backend = backend

    # ------------------------------------------------------------
    # Territory / context plumbing
    # ------------------------------------------------------------
    def _territory(self, territory: TerritoryDef | str) -> TerritoryDef:
        if isinstance(territory, TerritoryDef):
            return territory
        resolved = self.territories.resolve(territory)
        if resolved is not None:
            return resolved
        # Unknown names are queried literally
        name = str(territory).strip()
        return TerritoryDef(key=normalize_text(name), display=name, aliases=(), store_values=(name,))

    def _period(self, period: int | None) -> int:
        return int(period) if period is not None else self.config.default_period

    async def _dimensions(self, ctx: _ScoringContext) -> List[Dimension]:
        return await ctx.memo(("dimensions",), self.repository.list_dimensions)

    async def _subdimensions(self, ctx: _ScoringContext) -> List[Subdimension]:
        return await ctx.memo(("subdimensions",), self.repository.list_subdimensions)

    async def _definitions(self, ctx: _ScoringContext) -> List[IndicatorDefinition]:
        return await ctx.memo(("definitions",), self.repository.list_indicator_definitions)

    async def _reference(self, ctx: _ScoringContext, indicator: str, period: int) -> List[float]:
        return await ctx.memo(
            ("reference", normalize_text(indicator), period),
            lambda: self.repository.reference_values(indicator, period),
        )

    # ------------------------------------------------------------
    # 1. Indicator
    # ------------------------------------------------------------
    async def _indicator_score(
        self,
        ctx: _ScoringContext,
        indicator: IndicatorDefinition | str,
        terr: TerritoryDef,
        period: int,
    ) -> Optional[Score]:
        name = indicator.name if isinstance(indicator, IndicatorDefinition) else str(indicator)
        try:
            result = await self.repository.latest_result(name, terr.store_values, period)
            if result is None:
                return None
            reference = await self._reference(ctx, name, result.period)
        except StoreError as e:
            logger.warning("Indicator %s treated as no data for %s/%s: %s", name, terr.display, period, e)
            return None

        value = normalize_indicator(result.value, reference, self.config.flat_rule)
        return Score("indicator", name, terr.display, result.period, value)

    async def indicator_score(
        self,
        indicator: IndicatorDefinition | str,
        territory: TerritoryDef | str,
        period: int | None = None,
    ) -> Optional[Score]:
        return await self._indicator_score(_ScoringContext(), indicator, self._territory(territory), self._period(period))

    # ------------------------------------------------------------
    # 2. Subdimension
    # ------------------------------------------------------------
    async def _subdimension_score(
        self,
        ctx: _ScoringContext,
        subdimension: str,
        terr: TerritoryDef,
        period: int,
    ) -> Optional[Score]:
        try:
            definitions = await self._definitions(ctx)
        except StoreError as e:
            logger.warning("Subdimension %s treated as no data: %s", subdimension, e)
            return None

        wanted = normalize_text(subdimension)
        members = [d for d in definitions if normalize_text(d.subdimension_name) == wanted]
        if not members:
            return None

        scores = await asyncio.gather(
            *(self._indicator_score(ctx, d, terr, period) for d in members)
        )
        value = weighted_mean(
            (s.value, float(self.config.importance_weight(d.importance)))
            for d, s in zip(members, scores)
            if s is not None
        )
        if value is None:
            return None
        return Score("subdimension", subdimension, terr.display, period, _clamp(value, 0.0, 100.0))

    async def subdimension_score(
        self,
        subdimension: str,
        territory: TerritoryDef | str,
        period: int | None = None,
    ) -> Optional[Score]:
        return await self._subdimension_score(
            _ScoringContext(), subdimension, self._territory(territory), self._period(period)
        )

    # ------------------------------------------------------------
    # 3. Dimension
    # ------------------------------------------------------------
    async def _dimension_score(
        self,
        ctx: _ScoringContext,
        dimension: str,
        terr: TerritoryDef,
        period: int,
    ) -> Optional[Score]:
        try:
            subdimensions = await self._subdimensions(ctx)
        except StoreError as e:
            logger.warning("Dimension %s treated as no data: %s", dimension, e)
            return None

        wanted = normalize_text(dimension)
        members = [s for s in subdimensions if normalize_text(s.dimension_name) == wanted]
        if not members:
            return None

        # Join barrier: every subdimension resolves before the mean
        scores = await asyncio.gather(
            *(self._subdimension_score(ctx, s.name, terr, period) for s in members)
        )
        present = [s.value for s in scores if s is not None]
        if not present:
            return None
        value = math.fsum(present) / len(present)
        return Score("dimension", dimension, terr.display, period, _clamp(value, 0.0, 100.0))

    async def dimension_score(
        self,
        dimension: str,
        territory: TerritoryDef | str,
        period: int | None = None,
    ) -> Optional[Score]:
        return await self._dimension_score(
            _ScoringContext(), dimension, self._territory(territory), self._period(period)
        )

    # ------------------------------------------------------------
    # 4. Global index
    # ------------------------------------------------------------
    async def _local_report(self, ctx: _ScoringContext, terr: TerritoryDef, period: int) -> IndexReport:
        try:
            dimensions = await self._dimensions(ctx)
        except StoreError as e:
            logger.warning("Global index for %s treated as no data: %s", terr.display, e)
            return IndexReport(terr.display, period, None)

        scores = await asyncio.gather(
            *(self._dimension_score(ctx, d.name, terr, period) for d in dimensions)
        )
        breakdown = {d.name: (s.value if s is not None else None) for d, s in zip(dimensions, scores)}

        # Absent dimensions drop out; the remaining weights are renormalized
        index = weighted_mean(
            (s.value, float(d.weight) if d.weight and d.weight > 0 else 1.0)
            for d, s in zip(dimensions, scores)
            if s is not None
        )
        return IndexReport(
            terr.display,
            period,
            round(_clamp(index, 0.0, 100.0), 1) if index is not None else None,
            breakdown,
        )

    def _backend_covers(self, res: BackendScore, terr: TerritoryDef) -> bool:
        if res.territory is not None:
            echoed = self.territories.resolve(res.territory)
            return echoed is not None and echoed.key == terr.key
        if res.valencia_only:
            return terr.key in VALENCIA_BACKEND_KEYS
        return True

    async def _backend_report(
        self,
        terr: TerritoryDef,
        period: int,
        sector: str | None,
        company_size: str | None,
    ) -> Optional[IndexReport]:
        if self.backend is None:
            return None
        try:
            res = await self.backend.compute_score_async(
                country=terr.display,
                period=period,
                province=terr.display if terr.is_province else None,
                sector=sector,
                company_size=company_size,
            )
        except ScoreBackendError as e:
            logger.warning("Score backend unavailable, aggregating locally: %s", e)
            return None

        if not self._backend_covers(res, terr):
            logger.info("Score backend answered for %s, not %s; aggregating locally", res.territory or "Valencia", terr.display)
            return None

        return IndexReport(
            terr.display,
            period,
            round(res.weighted_index, 1),
            dict(res.breakdown),
            source="backend",
        )

    async def index_report(
        self,
        territory: TerritoryDef | str,
        period: int | None = None,
        *,
        sector: str | None = None,
        company_size: str | None = None,
    ) -> IndexReport:
        terr = self._territory(territory)
        per = self._period(period)

        remote = await self._backend_report(terr, per, sector, company_size)
        if remote is not None:
            return remote

        ctx = _ScoringContext()
        report = await self._local_report(ctx, terr, per)
        if report.index is not None or terr.key != self.config.regional_key:
            logger.info("BRAINNOVA index %s/%s = %s", terr.display, per, report.index)
            return report

        # Regional fallback: mean of the province indices that have data
        provinces = [self.territories.get(k) for k in self.config.province_keys]
        reports = await asyncio.gather(*(self._local_report(ctx, p, per) for p in provinces))
        present = [r.index for r in reports if r.index is not None]
        if not present:
            return report

        regional = round(math.fsum(present) / len(present), 1)
        logger.info("BRAINNOVA index %s/%s = %s (mean of %d provinces)", terr.display, per, regional, len(present))
        return IndexReport(terr.display, per, regional, report.breakdown, source="regional")

    async def global_index(
        self,
        territory: TerritoryDef | str,
        period: int | None = None,
    ) -> Optional[float]:
        return (await self.index_report(territory, period)).index

    async def territory_breakdown(
        self,
        territory: TerritoryDef | str,
        period: int | None = None,
    ) -> Dict[str, Optional[float]]:
        report = await self._local_report(_ScoringContext(), self._territory(territory), self._period(period))
        return report.breakdown

    # ------------------------------------------------------------
    # 5. Province comparison
    # ------------------------------------------------------------
    async def province_summaries(self, period: int | None = None) -> Dict[str, ProvinceSummary]:
        """
        Index, rank and strongest dimension per province; provinces without
        data are omitted. All provinces × dimensions are computed concurrently.
        """
        per = self._period(period)
        ctx = _ScoringContext()
        provinces = [self.territories.get(k) for k in self.config.province_keys]

        reports = await asyncio.gather(*(self._local_report(ctx, p, per) for p in provinces))

        ranked = sorted(
            ((p, r) for p, r in zip(provinces, reports) if r.index is not None),
            key=lambda pr: pr[1].index,
            reverse=True,
        )

        out: Dict[str, ProvinceSummary] = {}
        for rank, (prov, report) in enumerate(ranked, start=1):
            scored = [(name, v) for name, v in report.breakdown.items() if v is not None]
            top_name, top_value = max(scored, key=lambda nv: nv[1]) if scored else ("", 0.0)
            out[prov.key] = ProvinceSummary(
                territory_key=prov.key,
                index=report.index,
                rank=rank,
                top_dimension=top_name,
                top_dimension_score=round(top_value, 1),
            )
        return out
