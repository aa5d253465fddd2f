from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from save_score.config import Settings
from save_score.errors import (
    LeaderboardConflictError,
    MissingCredentialError,
    ScoreSubmissionError,
    SubmissionValidationError,
)
from save_score.leaderboard import entry_to_dict, top_scores
from save_score.service import LeaderboardStore, ScoreService, utc_now

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}

SUBMIT_PATHS = ("/", "/api/save-score")
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Answers preflight requests and stamps the CORS headers on every response."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        for key, value in CORS_HEADERS.items():
            response.headers[key] = value
        return response


def _error_response(error: Exception, expose_internal_errors: bool) -> JSONResponse:
    if isinstance(error, SubmissionValidationError):
        logger.warning("rejected submission: %s", error.error)
        return JSONResponse({"error": error.error}, status_code=error.status_code)

    if isinstance(error, MissingCredentialError):
        logger.error("GITHUB_TOKEN is not configured")
        return JSONResponse({"error": error.error}, status_code=error.status_code)

    if isinstance(error, LeaderboardConflictError):
        logger.warning("leaderboard changed concurrently, submission dropped: %s", error)
    elif isinstance(error, ScoreSubmissionError):
        logger.error("error saving score: %s", error)
    else:
        logger.exception("unexpected error saving score")

    status_code = error.status_code if isinstance(error, ScoreSubmissionError) else 500
    message = str(error) if expose_internal_errors else "Internal server error"
    return JSONResponse({"error": "Failed to save score", "message": message}, status_code=status_code)


def create_app(
    settings: Settings | None = None,
    store: LeaderboardStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    service = ScoreService(settings, store=store, clock=clock or utc_now)

    app = FastAPI(title="Save Score (HTTP)")
    app.add_middleware(CORSHeadersMiddleware)
    app.state.settings = settings
    app.state.service = service

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed(request: Request, exc: StarletteHTTPException):
        # verbs outside ROUTED_METHODS are rejected by the router before reaching save_score
        if exc.status_code == 405:
            return JSONResponse({"error": "Method not allowed"}, status_code=405)
        return await http_exception_handler(request, exc)

    async def save_score(request: Request):
        if request.method != "POST":
            return JSONResponse({"error": "Method not allowed"}, status_code=405)

        try:
            payload = json.loads(await request.body() or b"null")
        except (ValueError, RecursionError):
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

        try:
            entry, document = await run_in_threadpool(service.submit, payload)
        except Exception as error:
            return _error_response(error, settings.expose_internal_errors)

        return {
            "success": True,
            "message": "Score saved successfully",
            "playerScore": entry_to_dict(entry),
            "topScores": [entry_to_dict(e) for e in top_scores(document)],
        }

    for path in SUBMIT_PATHS:
        app.add_api_route(path, save_score, methods=ROUTED_METHODS, include_in_schema=path == "/")

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    return app


app = create_app()
