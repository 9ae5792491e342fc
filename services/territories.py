# services/territories.py
from __future__ import annotations

import re
import unicodedata
from typing import Dict, List, Mapping, Optional, Tuple

from config.territories import DEFAULT_TERRITORY_KEY, TERRITORIES, TerritoryDef


# ------------------------------------------------------------
# Spanish/Valencian-safe text normalization
# ------------------------------------------------------------
def normalize_text(text: str) -> str:
    if not text:
        return ""

    # Compose accents so "o" + combining acute compares equal to "ó"
    text = unicodedata.normalize("NFKC", text)
    text = text.replace(" ", " ")
    text = re.sub(r"\s+", " ", text)
    return text.lower().strip()


class TerritoryResolver:
    """
    Resolves territory names through an explicit alias table.

    resolve()      exact lookup of a whole name ("Castellon" → castellon)
    find_in_text() first territory mentioned inside a free-text query
    """

    def __init__(
        self,
        territories: Mapping[str, TerritoryDef] = TERRITORIES,
        default_key: str = DEFAULT_TERRITORY_KEY,
    ):
        self._territories = territories
        self.default_key = default_key

        self._alias_to_key: Dict[str, str] = {}
        for key, terr in territories.items():
            self._alias_to_key[normalize_text(key)] = key
            self._alias_to_key[normalize_text(terr.display)] = key
            for alias in terr.aliases:
                self._alias_to_key[normalize_text(alias)] = key
            for stored in terr.store_values:
                self._alias_to_key.setdefault(normalize_text(stored), key)

        # Longest alias first: "comunitat valenciana" must win over "valencia"
        ordered = sorted(self._alias_to_key.items(), key=lambda kv: len(kv[0]), reverse=True)
        self._text_patterns: List[Tuple[re.Pattern[str], str]] = [
            (re.compile(rf"(?<!\w){re.escape(alias)}(?!\w)"), key) for alias, key in ordered
        ]

    def get(self, key: str) -> TerritoryDef:
        return self._territories[key]

    @property
    def default(self) -> TerritoryDef:
        return self._territories[self.default_key]

    def provinces(self) -> List[TerritoryDef]:
        return [t for t in self._territories.values() if t.is_province]

    def resolve(self, name: str | None) -> Optional[TerritoryDef]:
        key = self._alias_to_key.get(normalize_text(name or ""))
        return self._territories[key] if key else None

    def find_in_text(self, text: str) -> Optional[TerritoryDef]:
        norm = normalize_text(text)
        if not norm:
            return None

        # Earliest mention wins; on ties the longer alias (listed first) wins
        best: Optional[Tuple[int, str]] = None
        for pattern, key in self._text_patterns:
            m = pattern.search(norm)
            if m and (best is None or m.start() < best[0]):
                best = (m.start(), key)
        return self._territories[best[1]] if best else None

    def store_values(self, territory: TerritoryDef | str) -> List[str]:
        terr = territory if isinstance(territory, TerritoryDef) else self.resolve(territory)
        if terr is None:
            return [str(territory)]
        return list(terr.store_values)
