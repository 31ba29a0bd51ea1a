"""FastAPI application."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
import uuid
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query as QueryParam, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from explox import __version__
from explox.api.schemas import HealthResponse, SearchResultResponse
from explox.application.context import AppContext, make_app_context
from explox.application.generate_routes import generate_routes
from explox.application.query import build_query
from explox.config.settings import load_settings
from explox.domain.exceptions import GenerationCancelled, QueryValidationError
from explox.domain.models import Query, SearchResult
from explox.observability.metrics import get_generation_metrics
from explox.services.history_service import get_search_result
from explox.shared.exceptions import PersistenceError

_api_logger = logging.getLogger("explox.api")

load_dotenv()

_settings = load_settings()

app = FastAPI(title="explox", version=__version__, redoc_url=None)


# ── middleware ─────────────────────────────────────

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client sliding window, in process memory, for /generate only."""

    def __init__(self, app, max_requests: int = 60, window_seconds: int = 60):
        super().__init__(app)
        self._max = max_requests
        self._window = window_seconds
        self._counters: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    async def dispatch(self, request: Request, call_next):
        if request.url.path != "/generate":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        with self._lock:
            hits = [t for t in self._counters.get(client_ip, []) if now - t < self._window]
            if len(hits) >= self._max:
                self._counters[client_ip] = hits
                return JSONResponse(status_code=429, content={"detail": "too many requests"})
            hits.append(now)
            self._counters[client_ip] = hits
        return await call_next(request)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    max_requests=_settings.rate_limit_max,
    window_seconds=_settings.rate_limit_window,
)


# ── context ────────────────────────────────────────

_context: Optional[AppContext] = None
_context_lock = threading.Lock()


def get_app_context() -> AppContext:
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = make_app_context()
    return _context


def reset_app_context(ctx: Optional[AppContext] = None) -> None:
    """Drop the cached context (or install `ctx`); settings are re-read lazily."""
    global _context
    with _context_lock:
        _context = ctx


def _generate_with_timeout(query: Query, ctx: AppContext, trace_id: str) -> SearchResult:
    timeout = ctx.settings.generation_timeout_seconds
    cancel_event = threading.Event()
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(generate_routes, query, ctx=ctx, cancel_event=cancel_event, trace_id=trace_id)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as exc:
            cancel_event.set()
            _api_logger.warning("generation %s timed out after %ss", trace_id, timeout)
            raise GenerationCancelled(f"generation timed out after {timeout}s") from exc


# ── routes ─────────────────────────────────────────

@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", version=__version__)


@app.get("/generate", response_model=SearchResultResponse)
def generate(
    distance: Optional[str] = QueryParam(default=None, description="target distance in km"),
    preference: Optional[str] = None,
    duration: Optional[str] = None,
    difficulty: Optional[str] = None,
    sport: Optional[str] = None,
    start: Optional[str] = QueryParam(default=None, description="'lat,lng'"),
    end: Optional[str] = QueryParam(default=None, description="'lat,lng', defaults to start"),
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    user: Optional[str] = None,
):
    params = {
        "distance": distance,
        "preference": preference,
        "duration": duration,
        "difficulty": difficulty,
        "sport": sport,
        "start": start,
        "end": end,
        "lat": lat,
        "lng": lng,
        "user": user,
    }
    trace_id = str(uuid.uuid4())[:8]
    try:
        query = build_query(params)
        result = _generate_with_timeout(query, get_app_context(), trace_id)
    except QueryValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except GenerationCancelled as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except PersistenceError as exc:
        _api_logger.error("generation %s failed to persist: %s", trace_id, exc)
        raise HTTPException(status_code=503, detail="route store unavailable") from exc
    return SearchResultResponse.from_result(result)


@app.get("/search-results/{result_id}", response_model=SearchResultResponse)
def search_result(result_id: str):
    try:
        result = get_search_result(ctx=get_app_context(), result_id=result_id)
    except PersistenceError as exc:
        _api_logger.error("search result %s lookup failed: %s", result_id, exc)
        raise HTTPException(status_code=503, detail="route store unavailable") from exc
    if result is None:
        raise HTTPException(status_code=404, detail="search result not found")
    return SearchResultResponse.from_result(result)


@app.get("/diagnostics")
def diagnostics():
    """Routing, cache and run counters; unauthenticated, keep it off public networks."""
    ctx = get_app_context()
    return {
        "routing": ctx.routing_provider.get_diagnostics(),
        "route_provider": ctx.settings.route_provider,
        "cache": {"route": ctx.cache.stats if ctx.cache is not None else {}},
        "store": {"backend": getattr(ctx.repository, "backend", "unknown")},
        "generation": get_generation_metrics().snapshot(),
    }
