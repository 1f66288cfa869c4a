"""
Repo Mirror API

FastAPI application exposing the repository analysis pipeline.
"""

import logging
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from analysis.pipeline import analyze_repository
from analysis.schemas import AnalyzeFailure, AnalyzeRequest, AnalyzeSuccess
from config import Settings, load_settings
from errors import (
    AnalysisError,
    AssessmentSynthesisError,
    InvalidReferenceError,
    UpstreamError,
    UpstreamNotFoundError,
)
from logging_config import setup_logging
from services.gemini import AssessmentClient

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=AnalyzeFailure(error=message).model_dump(),
    )


def status_for(error: AnalysisError) -> int:
    """HTTP status used for a pipeline failure."""
    if isinstance(error, InvalidReferenceError):
        return 400
    if isinstance(error, UpstreamNotFoundError):
        return 404
    if isinstance(error, (UpstreamError, AssessmentSynthesisError)):
        return 502
    return 500


def create_app(
    settings: Settings,
    assessor: Optional[AssessmentClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the API around one immutable Settings object.

    assessor and transport are injection points for the Gemini client and the
    GitHub HTTP transport; production leaves both to their defaults.
    """
    if assessor is None:
        assessor = AssessmentClient(
            settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.gemini_timeout,
        )

    app = FastAPI(
        title="Repo Mirror API",
        description="GitHub repository quality assessment",
        version=API_VERSION,
    )
    app.state.settings = settings

    # Rate limiting
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return failure(429, "Too many requests. Please try again later.")

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return failure(400, "Request body must be a JSON object with a GitHub link.")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    @app.get("/")
    def read_root():
        """Health check endpoint."""
        return {"status": "ok", "version": API_VERSION, "message": "Repo Mirror API"}

    @app.post(
        "/api/analyze",
        response_model=AnalyzeSuccess,
        responses={400: {"model": AnalyzeFailure}, 404: {"model": AnalyzeFailure}, 502: {"model": AnalyzeFailure}},
    )
    @limiter.limit(settings.rate_limit)
    async def analyze(request: Request, body: AnalyzeRequest):
        """
        Analyze a GitHub repository.

        Gathers metrics from the GitHub API, asks Gemini for a score, tier,
        summary and roadmap, and returns both in one envelope.
        """
        if not body.repository_reference or not body.repository_reference.strip():
            return failure(400, "GitHub link is required.")

        try:
            outcome = await analyze_repository(
                body.repository_reference,
                settings,
                assessor,
                transport=transport,
            )
        except AnalysisError as e:
            return failure(status_for(e), f"Analysis failed: {e}")
        except Exception:
            logger.exception(f"Unexpected error analyzing {body.repository_reference}")
            return failure(500, "Analysis failed: an unexpected error occurred.")

        return AnalyzeSuccess(data=outcome)

    return app


settings = load_settings()
setup_logging(settings)
app = create_app(settings)


if __name__ == "__main__":
    logger.info(f"Server is running on http://localhost:{settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
