# config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass

try:
    from dotenv import load_dotenv  # type: ignore

    load_dotenv()
except Exception:
    pass


@dataclass(frozen=True)
class SupabaseEnv:
    url: str | None
    publishable_key: str | None
    secret_key: str | None

    @property
    def key(self) -> str | None:
        # Service role key wins for server-side reads behind RLS
        return self.secret_key or self.publishable_key

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)


@dataclass(frozen=True)
class BrainnovaSettings:
    api_base_url: str
    api_timeout_seconds: float
    default_period: int
    flat_reference_rule: str
    log_level: str

    @property
    def score_backend_enabled(self) -> bool:
        return bool(self.api_base_url)


def load_supabase_env() -> SupabaseEnv:
    url = (os.getenv("SUPABASE_URL") or os.getenv("SUPABASE_PROJECT_URL") or "").strip() or None
    publishable_key = (os.getenv("SUPABASE_ANON_KEY") or "").strip() or None
    secret_key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip() or None

    return SupabaseEnv(url=url, publishable_key=publishable_key, secret_key=secret_key)


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def load_settings() -> BrainnovaSettings:
    return BrainnovaSettings(
        api_base_url=(os.getenv("BRAINNOVA_API_BASE_URL") or "").strip().rstrip("/"),
        api_timeout_seconds=_env_float("BRAINNOVA_API_TIMEOUT_SECONDS", 5.0),
        default_period=_env_int("BRAINNOVA_DEFAULT_PERIOD", 2024),
        flat_reference_rule=(os.getenv("BRAINNOVA_FLAT_REFERENCE_RULE") or "max_if_positive").strip().lower(),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )
