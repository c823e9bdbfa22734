# main.py

import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.llm_env import load_llm_env

# ================================================================
# LOGGING (BOOT FIRST)
# ================================================================
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("comparable-backend")
logger.info("Comparable backend boot sequence started")

# ================================================================
# ROUTERS
# ================================================================
from routers.comparable import router as comparable_router
from routers.ai_estimate import router as ai_estimate_router
from routers.site import router as site_router

# ================================================================
# FASTAPI APP
# ================================================================
logger.info("Creating FastAPI app")

APP_VERSION = "1.0.0"

app = FastAPI(
    title="Comparable Backend",
    description="Concert box-office forecasting • Comparable calibration • AI metric estimation",
    version=APP_VERSION,
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
        "message": "Comparable Engine Online",
        "version": APP_VERSION,
        "ai_estimation_configured": load_llm_env().configured,
    }


@app.get("/healthz", include_in_schema=False)
def health_probe():
    return {"status": "healthy"}


# ================================================================
# ROUTERS
# ================================================================
app.include_router(comparable_router)
app.include_router(ai_estimate_router)
app.include_router(site_router)


# ================================================================
# LIFECYCLE
# ================================================================
@app.on_event("startup")
def startup_event():
    logger.info("Comparable Backend started.")


@app.on_event("shutdown")
def shutdown_event():
    logger.info("Comparable Backend stopped.")
