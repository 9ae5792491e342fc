# main.py

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import load_settings

# ================================================================
# LOGGING (BOOT FIRST)
# ================================================================
SETTINGS = load_settings()

logging.basicConfig(
    level=getattr(logging, SETTINGS.log_level, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("brainnova-backend")
logger.info("BRAINNOVA backend boot sequence started")

# ================================================================
# ROUTERS (GUARDED IMPORTS: DO NOT BLOCK SERVER START)
# ================================================================
scores_router = None
chatbot_router = None
supabase_health_router = None

try:
    from routers.scores import router as scores_router  # type: ignore
    logger.info("Scores router loaded")
except Exception as e:
    logger.error(f"Failed to load scores router (startup continues): {e}")

try:
    from routers.chatbot import router as chatbot_router  # type: ignore
    logger.info("Chatbot router loaded")
except Exception as e:
    logger.error(f"Failed to load chatbot router (startup continues): {e}")

try:
    from routers.supabase_health import router as supabase_health_router  # type: ignore
except Exception as e:
    logger.error(f"Failed to load Supabase health router (startup continues): {e}")

# ================================================================
# FASTAPI APP
# ================================================================
logger.info("Creating FastAPI app")

app = FastAPI(
    title="BRAINNOVA Backend",
    description="BRAINNOVA Digital Economy Index • Scores • Chatbot",
    version="1.0.0",
)

# ================================================================
# CORS
# ================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ================================================================
# ROOT / HEALTH
# ================================================================
@app.get("/")
def root():
    return {
        "message": "BRAINNOVA Engine Online",
        "default_period": SETTINGS.default_period,
        "score_backend_enabled": SETTINGS.score_backend_enabled,
        "scores_router_loaded": bool(scores_router),
        "chatbot_router_loaded": bool(chatbot_router),
    }


@app.get("/healthz", include_in_schema=False)
def health_probe():
    return {"status": "healthy"}


# ================================================================
# ROUTERS
# ================================================================
if scores_router:
    app.include_router(scores_router)

if chatbot_router:
    app.include_router(chatbot_router)

if supabase_health_router:
    app.include_router(supabase_health_router)


# ================================================================
# LIFECYCLE
# ================================================================
@app.on_event("startup")
def startup_event():
    logger.info("BRAINNOVA Backend started.")


@app.on_event("shutdown")
def shutdown_event():
    logger.info("BRAINNOVA Backend stopped.")
