from __future__ import annotations  # FastAPI server exposing the adaptive interview engine

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agents.llm_models import bind_default_models
from api.routes import router
from config import load_config, settings
from storage.migrate import migrate


logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent


def _config_path() -> Path:  # Resolve the LLM route config relative to the repo root
    path = Path(settings.LLM_CONFIG_PATH)
    return path if path.is_absolute() else ROOT / path


def _allowed_origins() -> List[str]:  # Split the comma separated CORS origin list
    return [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()]


def _bind_models() -> None:  # Bind LLM-backed question service models when routes are configured
    path = _config_path()
    if not path.exists():
        logger.warning("LLM config %s not found; question service will use fallbacks", path)
        return
    bind_default_models(load_config(path))
    logger.info("Bound question service models from %s", path)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    migrate(settings.DB_PATH)
    _bind_models()
    yield


app = FastAPI(title="Adaptive Interview API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
