"""HTTP surface for alternative discovery."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncGenerator, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from discovery.aggregator import AlternativeAggregator
from discovery.config import DiscoverySettings, load_settings
from discovery.exceptions import ConfigurationError, DiscoveryError, ValidationError
from discovery.geo import GeoMatcher, GooglePlacesClient
from discovery.models import DiscoveryResult, Expense, UserPreferences
from discovery.providers import AlternativeProvider, available_provider_ids, build_default_providers
from discovery.ratelimit import MinIntervalGate
from observability.logging import setup_logging
from observability.metrics import metrics_registry

router = APIRouter(tags=["alternatives"])
logger = logging.getLogger(__name__)

# Process-wide singletons; the web-search gate must be shared by every run.
_settings: Optional[DiscoverySettings] = None
_gate: Optional[MinIntervalGate] = None


class DiscoveryRequest(BaseModel):
    expense: Expense
    preferences: UserPreferences = UserPreferences()


def get_settings() -> DiscoverySettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_gate(settings: DiscoverySettings = Depends(get_settings)) -> MinIntervalGate:
    global _gate
    if _gate is None:
        _gate = MinIntervalGate(settings.web_search_min_interval_seconds)
    return _gate


def get_providers(
    settings: DiscoverySettings = Depends(get_settings),
    gate: MinIntervalGate = Depends(get_gate),
) -> Dict[str, AlternativeProvider]:
    return build_default_providers(settings, gate)


def get_aggregator(
    settings: DiscoverySettings = Depends(get_settings),
    providers: Dict[str, AlternativeProvider] = Depends(get_providers),
) -> AlternativeAggregator:
    geo_matcher = GeoMatcher(GooglePlacesClient(settings.google_places_api_key))
    return AlternativeAggregator.from_settings(settings, providers, geo_matcher)


@router.post("/api/alternatives", response_model=DiscoveryResult)
async def discover_alternatives(
    body: DiscoveryRequest,
    aggregator: AlternativeAggregator = Depends(get_aggregator),
):
    return await aggregator.discover(body.expense, body.preferences)


@router.post("/api/alternatives/stream")
async def discover_alternatives_stream(
    body: DiscoveryRequest,
    aggregator: AlternativeAggregator = Depends(get_aggregator),
):
    """Server-sent events: one ``data:`` line per progress event, then ``complete`` or ``error``."""
    progress = aggregator.new_progress()

    async def generate_sse() -> AsyncGenerator[str, None]:
        task = asyncio.create_task(
            aggregator.discover(body.expense, body.preferences, progress=progress)
        )
        try:
            async for event in progress.events():
                yield f"data: {event.model_dump_json()}\n\n"

            try:
                result = await task
            except DiscoveryError as e:
                logger.warning(f"[API] Stream run rejected: {type(e).__name__}: {e.message}")
                yield f"data: {json.dumps({'event': 'error', **e.to_dict()})}\n\n"
                return
            final_event = {"event": "complete", "result": result.model_dump(mode="json")}
            yield f"data: {json.dumps(final_event)}\n\n"
        finally:
            if not task.done():
                logger.info("[API] Client went away, cancelling discovery")
                task.cancel()

    return StreamingResponse(
        generate_sse(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/health")
async def health_check(providers: Dict[str, AlternativeProvider] = Depends(get_providers)):
    return {"status": "ok", "providers": available_provider_ids(providers)}


@router.get("/metrics")
async def metrics():
    return Response(generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)


async def discovery_error_handler(request: Request, exc: DiscoveryError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        status_code = 422
    elif isinstance(exc, ConfigurationError):
        status_code = 503
    else:
        status_code = 500
    logger.error(f"[API] {type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title="Expense Alternatives",
        description="Finds cheaper alternatives for recurring expenses",
        version="0.1.0",
    )
    app.include_router(router)
    app.add_exception_handler(DiscoveryError, discovery_error_handler)
    return app
