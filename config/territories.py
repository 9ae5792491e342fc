# config/territories.py
"""
Territory registry for the BRAINNOVA index.

Every canonical key carries:
  - display: the name shown to users
  - aliases: spellings accepted in user text / API input (diacritic variants)
  - store_values: the literal values stored in resultado_indicadores.pais

Matching is an exact lookup on normalized aliases, never fuzzy.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple


@dataclass(frozen=True)
class TerritoryDef:
    key: str
    display: str
    aliases: Tuple[str, ...]
    store_values: Tuple[str, ...]
    is_province: bool = False


TERRITORIES: Mapping[str, TerritoryDef] = MappingProxyType({
    "valencia": TerritoryDef(
        key="valencia",
        display="Valencia",
        aliases=("valencia", "valència", "provincia de valencia"),
        store_values=("Valencia",),
        is_province=True,
    ),
    "alicante": TerritoryDef(
        key="alicante",
        display="Alicante",
        aliases=("alicante", "alacant", "provincia de alicante"),
        store_values=("Alicante",),
        is_province=True,
    ),
    "castellon": TerritoryDef(
        key="castellon",
        display="Castellón",
        aliases=("castellón", "castellon", "castelló", "castello", "provincia de castellón"),
        store_values=("Castellón", "Castellon"),
        is_province=True,
    ),
    "comunitat_valenciana": TerritoryDef(
        key="comunitat_valenciana",
        display="Comunitat Valenciana",
        aliases=(
            "comunitat valenciana",
            "comunidad valenciana",
            "c. valenciana",
            "cv",
            "región",
            "region",
        ),
        store_values=("Comunitat Valenciana", "Comunidad Valenciana", "CV"),
    ),
    "espana": TerritoryDef(
        key="espana",
        display="España",
        aliases=("españa", "espana", "spain", "esp"),
        store_values=("España", "Spain", "Esp"),
    ),
})

DEFAULT_TERRITORY_KEY = "comunitat_valenciana"


@dataclass(frozen=True)
class ProvinceSummary:
    territory_key: str
    index: float
    rank: int
    top_dimension: str
    top_dimension_score: float


# Published figures from the territorial comparison (edition 2025, period 2024).
PROVINCE_SUMMARIES: Mapping[str, ProvinceSummary] = MappingProxyType({
    "valencia": ProvinceSummary("valencia", 69.5, 1, "Capital Humano", 74),
    "alicante": ProvinceSummary("alicante", 66.8, 2, "Infraestructura Digital", 76),
    "castellon": ProvinceSummary("castellon", 64.3, 3, "Transformación Digital", 70),
})
