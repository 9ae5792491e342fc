# services/models.py
"""
Typed records for the BRAINNOVA store.

Rows arrive from Supabase with Spanish column names; each model maps them
through aliases and validates at the data-access boundary so that malformed
rows never reach the aggregation engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def period_to_year(value: Any) -> int:
    """
    Periods are stored either as an integer year (2024) or a date (2024-01-01).
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("period is missing")
    if isinstance(value, (int, float)):
        year = int(value)
    else:
        s = str(value).strip()
        if len(s) < 4 or not s[:4].isdigit():
            raise ValueError(f"unparsable period: {value!r}")
        year = int(s[:4])
    if year <= 0:
        raise ValueError(f"invalid period: {value!r}")
    return year


class _StoreRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# ============================================================
# INDEX STRUCTURE
# ============================================================
class Dimension(_StoreRecord):
    name: str = Field(alias="nombre", min_length=1)
    weight: float = Field(default=0.0, alias="peso")

    @field_validator("weight", mode="before")
    @classmethod
    def _weight_or_zero(cls, v: Any) -> Any:
        return 0.0 if v is None or v == "" else v


class Subdimension(_StoreRecord):
    name: str = Field(alias="nombre", min_length=1)
    dimension_name: str = Field(alias="nombre_dimension", min_length=1)
    weight: float = Field(default=0.0, alias="peso")

    @field_validator("weight", mode="before")
    @classmethod
    def _weight_or_zero(cls, v: Any) -> Any:
        return 0.0 if v is None or v == "" else v


class IndicatorDefinition(_StoreRecord):
    name: str = Field(alias="nombre", min_length=1)
    subdimension_name: str = Field(default="", alias="nombre_subdimension")
    importance: Optional[str] = Field(default=None, alias="importancia")
    formula: Optional[str] = None
    source: Optional[str] = Field(default=None, alias="fuente")
    origin: Optional[str] = Field(default=None, alias="origen_indicador")

    @field_validator("subdimension_name", mode="before")
    @classmethod
    def _empty_subdimension(cls, v: Any) -> Any:
        return v or ""


class IndicatorResult(_StoreRecord):
    indicator_name: str = Field(alias="nombre_indicador", min_length=1)
    period: int = Field(alias="periodo")
    value: float = Field(alias="valor_calculado", allow_inf_nan=False)
    country: str = Field(default="", alias="pais")
    province: Optional[str] = Field(default=None, alias="provincia")
    sector: Optional[str] = None
    company_size: Optional[str] = Field(default=None, alias="tamano_empresa")

    @field_validator("period", mode="before")
    @classmethod
    def _coerce_period(cls, v: Any) -> int:
        return period_to_year(v)

    @field_validator("country", mode="before")
    @classmethod
    def _country_str(cls, v: Any) -> Any:
        return "" if v is None else str(v).strip()


# ============================================================
# CHATBOT CORPUS / SURVEYS
# ============================================================
class KnowledgeItem(_StoreRecord):
    id: str
    category: str = ""
    title: str = Field(min_length=1)
    content: str = ""
    keywords: List[str] = Field(default_factory=list)
    source: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_str(cls, v: Any) -> Any:
        return None if v is None else str(v)

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return [str(k) for k in v if k]

    @field_validator("content", "category", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return v or ""


class Survey(_StoreRecord):
    id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_str(cls, v: Any) -> Any:
        return None if v is None else str(v)


# ============================================================
# DERIVED (never persisted)
# ============================================================
@dataclass(frozen=True)
class Score:
    subject_type: str  # "indicator" | "subdimension" | "dimension" | "index"
    subject: str
    territory: str
    period: int
    value: float


@dataclass(frozen=True)
class IndicatorDetails:
    definition: IndicatorDefinition
    dimension: str
    latest: Optional[IndicatorResult]
    total_results: int
