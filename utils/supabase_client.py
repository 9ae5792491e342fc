"""
Supabase client + REST helper

Goals:
- Never crash the app at import time (Cloud Run friendly).
- Provide a supabase-py Client when credentials are available.
- Provide a thin REST GET used by the health probe:
  - rest_get
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from config.settings import load_supabase_env

# ----------------------------------------------------
# Environment configuration (.env already loaded by config.settings)
# ----------------------------------------------------
SUPABASE_ENV = load_supabase_env()

# ----------------------------------------------------
# supabase-py client (optional)
# ----------------------------------------------------
supabase = None  # type: ignore
supabase_init_error: Optional[str] = None
try:
    from supabase import create_client  # type: ignore

    if SUPABASE_ENV.configured:
        supabase = create_client(SUPABASE_ENV.url, SUPABASE_ENV.key)
except Exception as e:
    supabase = None  # type: ignore
    supabase_init_error = str(e)

# ----------------------------------------------------
# Requests session (REST helper)
# ----------------------------------------------------
_session = requests.Session()


def _ensure_config() -> None:
    if not SUPABASE_ENV.url:
        raise RuntimeError(
            "SUPABASE_URL is missing. Set it in .env (local) or Cloud Run environment variables."
        )
    if not SUPABASE_ENV.key:
        raise RuntimeError(
            "No Supabase API key found. Set SUPABASE_SERVICE_ROLE_KEY (recommended) or SUPABASE_ANON_KEY."
        )


def _rest_url() -> str:
    _ensure_config()
    return f"{SUPABASE_ENV.url.rstrip('/')}/rest/v1"


def _headers() -> Dict[str, str]:
    _ensure_config()
    return {
        "apikey": SUPABASE_ENV.key,
        "Authorization": f"Bearer {SUPABASE_ENV.key}",
        "Content-Type": "application/json",
    }


# ----------------------------------------------------
# GET helper via REST
# ----------------------------------------------------
def rest_get(path: str, params: Dict[str, Any], timeout: float = 10) -> List[Dict[str, Any]]:
    url = f"{_rest_url()}/{path.lstrip('/')}"
    resp = _session.get(url, headers=_headers(), params=params, timeout=timeout)

    if resp.status_code == 401:
        raise RuntimeError("Unauthorized: Invalid Supabase API key (check service role key).")

    if resp.status_code >= 400:
        raise RuntimeError(f"Supabase GET error {resp.status_code}: {resp.text[:200]}")

    data = resp.json()
    if isinstance(data, list):
        return data
    return [data]
