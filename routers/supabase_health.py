from fastapi import APIRouter, Query

from config.settings import load_settings, load_supabase_env

router = APIRouter()


@router.get("/__supabase")
def supabase_health(probe: bool = Query(default=False)):
    env = load_supabase_env()
    settings = load_settings()

    from utils.supabase_client import supabase, supabase_init_error

    if env.secret_key:
        key_in_use = "secret"
    elif env.publishable_key:
        key_in_use = "publishable"
    else:
        key_in_use = "none"

    body = {
        "configured": env.configured,
        "url_set": bool(env.url),
        "url_preview": f"{env.url[:35]}..." if env.url else None,
        "service_role_set": bool(env.secret_key),
        "anon_set": bool(env.publishable_key),
        "key_in_use": key_in_use,
        "client_created": supabase is not None,
        "client_init_error": supabase_init_error if env.configured else "SUPABASE_URL or SUPABASE key missing",
        "score_backend_enabled": settings.score_backend_enabled,
        "default_period": settings.default_period,
    }

    # Optional live read against the smallest table
    if probe and env.configured:
        from utils.supabase_client import rest_get

        try:
            rows = rest_get("dimensiones", {"select": "nombre", "limit": 1}, timeout=5)
            body["probe"] = {"ok": True, "rows": len(rows)}
        except Exception as e:
            body["probe"] = {"ok": False, "error": str(e)[:200]}

    return body
