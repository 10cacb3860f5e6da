from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from .api.vision import router as vision_router
from .core.config import api_status, settings, validate_environment
from .core.logging import configure_logging
from .core.redisq import redis_conn
from .vision.cache import cache_key, get_cached, put_cached
from .vision.display import build_signal_card, render_outcome
from .vision.errors import AnalysisError
from .vision.pipeline import analyze_chart_image_bytes

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name or "ChartSignal API")
app.include_router(vision_router)


@app.on_event("startup")
async def _check_environment():
    env = validate_environment()
    for err in env.errors:
        logger.error("Environment: %s", err)
    for warn in env.warnings:
        logger.warning("Environment: %s", warn)
    if not env.is_valid and settings.is_production:
        raise RuntimeError("Cannot start with invalid environment configuration")


@app.get("/")
def root():
    return {"status": "ChartSignal API running"}


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/v1/status")
def status():
    env = validate_environment()
    return {
        "api": api_status(),
        "environment": env.model_dump(),
        "mode": "production" if settings.is_production else "development",
    }


@app.post("/v1/analyze")
async def analyze(
    image: UploadFile = File(...),
    market: str = Form("NIFTY"),
    strategy: str = Form("INTRADAY"),
    use_cache: bool = Form(True),
):
    raw = await image.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty image upload (image)")

    market = (market or "").strip().upper()
    strategy = (strategy or "").strip().upper()

    key = cache_key(raw, market, strategy)
    if use_cache:
        cached = get_cached(redis_conn, key)
        if cached is not None:
            logger.info("Cache hit market=%s strategy=%s", market, strategy)
            return {
                "status": "success",
                "cached": True,
                "market": market,
                "strategy": strategy,
                "signal": cached.model_dump(by_alias=True),
                "card": build_signal_card(cached),
            }

    try:
        outcome = await asyncio.wait_for(
            analyze_chart_image_bytes(raw, market, strategy, content_type=image.content_type),
            timeout=settings.vision_timeout_sec,
        )
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="Chart analysis timed out. Try a clearer/closer screenshot.")
    except AnalysisError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    body = render_outcome(outcome)
    if not outcome.ok:
        return JSONResponse(status_code=422, content=body)

    put_cached(redis_conn, key, outcome.result, settings.cache_ttl_sec)
    body["cached"] = False
    return body
