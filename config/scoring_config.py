# config/scoring_config.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple

# Importance label → weight used in the subdimension weighted mean.
IMPORTANCE_WEIGHTS: Mapping[str, int] = MappingProxyType({
    "Alta": 3,
    "Media": 2,
    "Baja": 1,
})

DEFAULT_IMPORTANCE_WEIGHT = 1

# Canonical indicator name → every spelling found in definitions or results.
INDICATOR_NAME_ALIASES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "Cobertura de redes de muy alta capacidad (VHCN)": (
        "Cobertura de redes de muy alta capacidad (VHCN)",
        "Cobertura De Redes VHCN",
        "Cobertura De Redes Vhcn",
    ),
})


class FlatReferenceRule(str, Enum):
    """
    Score assigned when every reference value of an indicator is equal
    (max == min), so min-max has no range to work with.
    """

    MAX_IF_POSITIVE = "max_if_positive"  # 100 if value == max and max > 0, else 0
    MIDPOINT = "midpoint"                # 50
    ZERO = "zero"                        # 0

    @classmethod
    def parse(cls, value: str | None) -> "FlatReferenceRule":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.MAX_IF_POSITIVE


@dataclass(frozen=True)
class ScoringConfig:
    importance_weights: Mapping[str, int] = field(default_factory=lambda: IMPORTANCE_WEIGHTS)
    default_importance_weight: int = DEFAULT_IMPORTANCE_WEIGHT
    indicator_aliases: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: INDICATOR_NAME_ALIASES)
    flat_rule: FlatReferenceRule = FlatReferenceRule.MAX_IF_POSITIVE
    default_period: int = 2024
    # Regional territory whose index falls back to the mean of its provinces
    regional_key: str = "comunitat_valenciana"
    province_keys: Tuple[str, ...] = ("valencia", "alicante", "castellon")

    def importance_weight(self, importance: str | None) -> int:
        if not importance:
            return self.default_importance_weight
        return int(self.importance_weights.get(importance.strip(), self.default_importance_weight))


def validate_importance_weights(weights: Mapping[str, int] = IMPORTANCE_WEIGHTS) -> None:
    if set(weights) != {"Alta", "Media", "Baja"}:
        raise ValueError(f"IMPORTANCE_WEIGHTS must define Alta/Media/Baja. Current keys = {sorted(weights)}")
    if not weights["Alta"] > weights["Media"] > weights["Baja"] > 0:
        raise ValueError(f"IMPORTANCE_WEIGHTS must be strictly decreasing and positive: {dict(weights)}")


validate_importance_weights()
