"""
routers/scores.py

BRAINNOVA Scores API
────────────────────────────────────────
- Indicator / subdimension / dimension scores (0–100)
- Global index with per-dimension breakdown
- Province comparison

Notes:
- Missing data is reported as value=null with HTTP 200
- Territories are resolved through the alias table; unknown names → 404
"""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from config.territories import TerritoryDef
from services.container import get_engine, get_territories
from services.models import Score
from services.scoring_engine import ScoringEngine
from services.territories import TerritoryResolver


router = APIRouter(
    prefix="/api/v1/scores",
    tags=["BRAINNOVA Scores"],
)


# ============================================================
# Response models
# ============================================================

class ScoreOut(BaseModel):
    subject_type: str
    subject: str
    territory: str
    period: int
    value: Optional[float] = None


class IndexOut(BaseModel):
    territory: str
    period: int
    index: Optional[float] = None
    breakdown: Dict[str, Optional[float]] = {}
    source: str = "local"


class ProvinceOut(BaseModel):
    territory: str
    index: float
    rank: int
    top_dimension: str
    top_dimension_score: float


# ============================================================
# Helpers
# ============================================================

def _resolve_territory(name: Optional[str], territories: TerritoryResolver) -> TerritoryDef:
    if not name:
        return territories.default
    terr = territories.resolve(name)
    if terr is None:
        raise HTTPException(status_code=404, detail=f"Unknown territory: {name}")
    return terr


def _score_out(
    score: Optional[Score],
    subject_type: str,
    subject: str,
    terr: TerritoryDef,
    period: Optional[int],
    engine: ScoringEngine,
) -> ScoreOut:
    if score is None:
        return ScoreOut(
            subject_type=subject_type,
            subject=subject,
            territory=terr.display,
            period=period or engine.config.default_period,
            value=None,
        )
    return ScoreOut(
        subject_type=score.subject_type,
        subject=score.subject,
        territory=score.territory,
        period=score.period,
        value=round(score.value, 2),
    )


# ============================================================
# 1. Element scores
# ============================================================

@router.get("/indicator", response_model=ScoreOut)
async def indicator_score(
    name: str = Query(..., min_length=1),
    territory: Optional[str] = None,
    period: Optional[int] = None,
    engine: ScoringEngine = Depends(get_engine),
    territories: TerritoryResolver = Depends(get_territories),
):
    terr = _resolve_territory(territory, territories)
    score = await engine.indicator_score(name, terr, period)
    return _score_out(score, "indicator", name, terr, period, engine)


@router.get("/subdimension", response_model=ScoreOut)
async def subdimension_score(
    name: str = Query(..., min_length=1),
    territory: Optional[str] = None,
    period: Optional[int] = None,
    engine: ScoringEngine = Depends(get_engine),
    territories: TerritoryResolver = Depends(get_territories),
):
    terr = _resolve_territory(territory, territories)
    score = await engine.subdimension_score(name, terr, period)
    return _score_out(score, "subdimension", name, terr, period, engine)


@router.get("/dimension", response_model=ScoreOut)
async def dimension_score(
    name: str = Query(..., min_length=1),
    territory: Optional[str] = None,
    period: Optional[int] = None,
    engine: ScoringEngine = Depends(get_engine),
    territories: TerritoryResolver = Depends(get_territories),
):
    terr = _resolve_territory(territory, territories)
    score = await engine.dimension_score(name, terr, period)
    return _score_out(score, "dimension", name, terr, period, engine)


# ============================================================
# 2. Global index
# ============================================================

@router.get("/global", response_model=IndexOut)
async def global_index(
    territory: Optional[str] = None,
    period: Optional[int] = None,
    sector: Optional[str] = None,
    company_size: Optional[str] = None,
    engine: ScoringEngine = Depends(get_engine),
    territories: TerritoryResolver = Depends(get_territories),
):
    terr = _resolve_territory(territory, territories)
    report = await engine.index_report(terr, period, sector=sector, company_size=company_size)
    return IndexOut(
        territory=report.territory,
        period=report.period,
        index=report.index,
        breakdown={k: (round(v, 2) if v is not None else None) for k, v in report.breakdown.items()},
        source=report.source,
    )


# ============================================================
# 3. Province comparison
# ============================================================

@router.get("/provinces", response_model=List[ProvinceOut])
async def province_comparison(
    period: Optional[int] = None,
    engine: ScoringEngine = Depends(get_engine),
    territories: TerritoryResolver = Depends(get_territories),
):
    summaries = await engine.province_summaries(period)
    return [
        ProvinceOut(
            territory=territories.get(s.territory_key).display,
            index=s.index,
            rank=s.rank,
            top_dimension=s.top_dimension,
            top_dimension_score=s.top_dimension_score,
        )
        for s in sorted(summaries.values(), key=lambda s: s.rank)
    ]
