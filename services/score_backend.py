# services/score_backend.py
"""
Client for the secondary BRAINNOVA score backend.

POST {base_url}/api/v1/brainnova-score
  request:  {periodo, pais, provincia, sector, tamano_empresa}  ("" not null)
  response: {weightedIndex, breakdown}
        or  {brainnova_global_score, desglose_por_dimension: [{dimension, score_valencia}]}

The second shape ignores pais/provincia and always describes Valencia, unless
the body echoes the territory it was computed for.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from services.errors import ScoreBackendError

logger = logging.getLogger("brainnova-backend.score_backend")


@dataclass(frozen=True)
class BackendScore:
    weighted_index: float
    breakdown: Dict[str, float] = field(default_factory=dict)
    territory: Optional[str] = None    # echoed provincia/pais, if any
    valencia_only: bool = False


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_score_response(payload: Any) -> BackendScore:
    if not isinstance(payload, dict):
        raise ScoreBackendError("score backend returned a non-object body")

    if "weightedIndex" in payload:
        index = _as_float(payload.get("weightedIndex"))
        raw_breakdown = payload.get("breakdown") or {}
        breakdown = {
            str(k): v for k, v in ((k, _as_float(v)) for k, v in raw_breakdown.items()) if v is not None
        } if isinstance(raw_breakdown, dict) else {}
    else:
        index = _as_float(payload.get("brainnova_global_score"))
        breakdown = {}
        for d in payload.get("desglose_por_dimension") or []:
            if not isinstance(d, dict) or not d.get("dimension"):
                continue
            v = _as_float(d.get("score_valencia"))
            if v is not None:
                breakdown[str(d["dimension"])] = v

    if index is None:
        raise ScoreBackendError("score backend response has no numeric index")

    echoed = next(
        (str(payload[k]).strip() for k in ("provincia", "pais") if str(payload.get(k) or "").strip()),
        None,
    )
    return BackendScore(
        weighted_index=max(0.0, min(100.0, index)),
        breakdown=breakdown,
        territory=echoed,
        valencia_only=echoed is None and "weightedIndex" not in payload,
    )


class ScoreBackendClient:
    def __init__(self, base_url: str, timeout: float = 5.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def compute_score(
        self,
        *,
        country: str,
        period: int,
        province: str | None = None,
        sector: str | None = None,
        company_size: str | None = None,
    ) -> BackendScore:
        body = {
            "periodo": int(period),
            "pais": country or "",
            "provincia": province or "",
            "sector": sector or "",
            "tamano_empresa": company_size or "",
        }
        url = f"{self.base_url}/api/v1/brainnova-score"

        try:
            resp = self._session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise ScoreBackendError(f"score backend unreachable: {e}") from e

        if resp.status_code >= 400:
            detail = resp.text[:200]
            try:
                j = resp.json()
                if isinstance(j, dict):
                    detail = str(j.get("detail") or j.get("message") or detail)
            except ValueError:
                pass
            raise ScoreBackendError(f"score backend error {resp.status_code}: {detail}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise ScoreBackendError("score backend returned invalid JSON") from e

        return parse_score_response(payload)

    async def compute_score_async(self, **kwargs: Any) -> BackendScore:
        return await asyncio.to_thread(lambda: self.compute_score(**kwargs))
