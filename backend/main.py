"""
FastAPI backend — REST API for the GreenPrompt analyzer.

Serves:
- POST /api/analyze      → Analyze a user prompt
- GET  /api/analyze/demo → Analyze a fixed demo prompt
- GET  /health           → Health check
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.rate_limit import SlidingWindowLimiter
from greenprompt import PromptAnalyzer, load_rules
from greenprompt.config import (
    CORS_ALLOW_ORIGINS,
    LOG_LEVEL,
    MAX_PROMPT_CHARS,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    RULES_PATH,
)
from greenprompt.models import AnalyzeRequest

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

DEMO_PROMPT = "Write an essay about automation"
PROMPT_REQUIRED = 'The field "prompt" (string) is required.'
RATE_LIMITED = "Too many requests, please try again later."

# Shared instance; rules are loaded and compiled once
analyzer = PromptAnalyzer(load_rules(RULES_PATH))

# Per-client request budget, shared by every route
limiter = (
    SlidingWindowLimiter(RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS)
    if RATE_LIMIT_MAX_REQUESTS > 0
    else None
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Backend ready (rules=%s, tasks=%s)",
        RULES_PATH,
        ", ".join(task for task, _ in analyzer.rules.task_keywords),
    )
    yield
    logger.info("Backend shutting down")


app = FastAPI(
    title="GreenPrompt",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware (the last one declared runs first) ──────────────


@app.middleware("http")
async def rate_limit(request: Request, call_next):
    if limiter is None:
        return await call_next(request)

    client = request.client.host if request.client else "unknown"
    result = limiter.hit(client)
    if not result.allowed:
        logger.warning("Rate limit exceeded for %s on %s", client, request.url.path)
        response = JSONResponse(status_code=429, content={"error": RATE_LIMITED})
        response.headers["Retry-After"] = str(result.reset_seconds)
    else:
        response = await call_next(request)
    response.headers["RateLimit-Limit"] = str(limiter.limit)
    response.headers["RateLimit-Remaining"] = str(result.remaining)
    response.headers["RateLimit-Reset"] = str(result.reset_seconds)
    return response


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


@app.middleware("http")
async def access_log(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %s - %.3f ms",
        request.method,
        request.url.path,
        response.status_code,
        response.headers.get("content-length", "-"),
        elapsed_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset"],
)


# ── Error handlers ─────────────────────────────────────────────


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    logger.info("Rejected analyze request: %s", exc.errors())
    return JSONResponse(status_code=400, content={"error": PROMPT_REQUIRED})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception):
    logger.error("Unhandled error: %s", exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Server error"})


# ── Analysis Endpoints ─────────────────────────────────────────


@app.get("/api/analyze/demo")
async def analyze_demo():
    """Analyze a hardcoded demo prompt with no parameters."""
    report = analyzer.analyze(DEMO_PROMPT, {})
    return {"prompt": DEMO_PROMPT, "report": report.model_dump(mode="json")}


@app.post("/api/analyze")
async def analyze_prompt(request: AnalyzeRequest):
    """
    Analyze a prompt and return score, issues, tips, autofixes and impact.
    This is the main endpoint used by the web UI.
    """
    if len(request.prompt) > MAX_PROMPT_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"The field \"prompt\" must be at most {MAX_PROMPT_CHARS} characters.",
        )

    logger.info(
        "Analyze request: %s%s params=%s",
        request.prompt[:80],
        "..." if len(request.prompt) > 80 else "",
        request.params,
    )
    report = analyzer.analyze(request.prompt, request.params)
    return {"prompt": request.prompt, "report": report.model_dump(mode="json")}


# ── Health ─────────────────────────────────────────────────────


@app.get("/health")
async def health():
    return {"ok": True, "status": "healthy"}
