"""
FastAPI Application for PropPulse.

Thin HTTP layer over the property-data, scoring and confidence-analysis
services. Clients and settings are FastAPI dependencies so they can be
swapped out in tests.

Endpoints:
    GET /api/property-data - Display-formatted metrics for a location
    POST /api/gemini-analysis - Model-backed confidence assessment
    POST /api/deal-evaluation - Rule-based buy-box scoring
    GET /api/test-property - Self-check of the property-data path
    POST /api/history - Save an analysis to the user's history
    GET /api/history - List a user's saved analyses
    GET /api/history/{record_id} - Fetch one saved analysis
    DELETE /api/history/{record_id} - Delete a saved analysis
"""

import logging
import os
from functools import lru_cache
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
    print(f"[ENV] Loaded .env from {env_path}")
from typing import Iterator, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Query, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from proppulse.config import (
    DEAL_PASS_THRESHOLD,
    DEFAULT_DERIVATION_CONFIG,
    HistoryConfig,
    PropertyDataConfig,
)
from proppulse.confidence import run_confidence_analysis
from proppulse.criteria import thresholds_from_strings
from proppulse.engine.formatting import to_display
from proppulse.engine.scoring import evaluate_deal, inputs_from_display
from proppulse.exceptions import (
    InfrastructureError,
    InvalidUpstreamResponseError,
    LLMError,
    UpstreamUnavailableError,
)
from proppulse.history_store import HistoryStore, build_history_store, record_analysis
from proppulse.llm.gemini_client import GeminiLLMClient
from proppulse.llm.interface import LLMClient
from proppulse.llm.mock import MockLLMClient
from proppulse.models import (
    AnalysisRequest,
    ConfidenceAssessment,
    CriteriaThresholds,
    DealEvaluation,
    DealEvaluationRequest,
    ErrorResponse,
    HistoryEntryCreate,
    HistoryRecord,
    PropertyDataResponse,
)
from proppulse.property_service import fetch_property_metrics
from proppulse.upstream.attom_client import AttomPropertyClient
from proppulse.upstream.interface import PropertyDataClient


logger = logging.getLogger(__name__)

TEST_LOCATION = "Los Angeles, CA"


# =============================================================================
# Dependencies
# =============================================================================


def get_llm_client() -> LLMClient:
    """
    Get the LLM client based on environment configuration.

    Returns GeminiLLMClient if GEMINI_API_KEY is set, otherwise MockLLMClient.
    """
    if os.environ.get("GEMINI_API_KEY"):
        print("[LLM] Using GeminiLLMClient (GEMINI_API_KEY is set)")
        return GeminiLLMClient()
    print("[LLM] Using MockLLMClient (no GEMINI_API_KEY)")
    return MockLLMClient()


def get_property_settings() -> PropertyDataConfig:
    return PropertyDataConfig.from_env()


def get_property_client(
    settings: PropertyDataConfig = Depends(get_property_settings),
) -> Iterator[Optional[PropertyDataClient]]:
    """
    Yield an ATTOM client when ATTOM_API_KEY is set, otherwise None.

    The client's connection pool is closed once the request finishes.
    """
    if not settings.upstream_api_key:
        yield None
        return

    client = AttomPropertyClient(settings)
    try:
        yield client
    finally:
        client.close()


@lru_cache(maxsize=1)
def get_history_store() -> HistoryStore:
    """Process-wide history store (Supabase when configured, else in-memory)."""
    return build_history_store(HistoryConfig.from_env())


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="PropPulse API",
    version="1.0.0",
    description="Commercial Real Estate Underwriting Service",
)


# =============================================================================
# Endpoints
# =============================================================================


@app.get(
    "/health",
    summary="Health check",
    description="Returns service health status",
    tags=["System"],
)
def health_check() -> dict:
    return {
        "status": "healthy",
        "service": "PropPulse API",
        "version": "1.0.0",
    }


@app.get(
    "/api/property-data",
    response_model=PropertyDataResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing location"},
        500: {"model": ErrorResponse, "description": "Internal error"},
        503: {"model": ErrorResponse, "description": "Provider unavailable, fallback disabled"},
    },
    summary="Property metrics for a location",
    tags=["Property Data"],
)
def property_data(
    location: Optional[str] = Query(None, description="Address or market, e.g. 'Los Angeles, CA'"),
    client: Optional[PropertyDataClient] = Depends(get_property_client),
    settings: PropertyDataConfig = Depends(get_property_settings),
):
    """
    Derive display-formatted metrics for a location.

    Status Codes:
        200: Success (live provider data or deterministic fallback)
        400: location missing or blank
        500: Unexpected error
        503: Provider failed and fallback is disabled
    """
    if location is None or not location.strip():
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Location parameter is required",
            "Please provide a location parameter",
        )

    try:
        metrics = fetch_property_metrics(
            location.strip(), client, settings, DEFAULT_DERIVATION_CONFIG
        )
        return to_display(metrics)
    except UpstreamUnavailableError as e:
        logger.error(f"Property data unavailable for {location!r}: {e}")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "Property data unavailable", str(e)
        )
    except Exception as e:
        logger.exception(f"Property data failed for {location!r}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch property data", str(e)
        )


@app.post(
    "/api/gemini-analysis",
    response_model=ConfidenceAssessment,
    responses={500: {"model": ErrorResponse, "description": "Model failure"}},
    summary="Confidence assessment of uploaded financials",
    tags=["Analysis"],
)
def gemini_analysis(
    request: AnalysisRequest,
    background_tasks: BackgroundTasks,
    user_id: Optional[str] = Query(None, description="Save the result to this user's history"),
    llm: LLMClient = Depends(get_llm_client),
    store: HistoryStore = Depends(get_history_store),
):
    """
    Run the confidence analysis on T12 and rent-roll data.

    dealPasses and summary are recomputed from confidenceScore, and factor
    targets are taken from userCriteria. When user_id is given the result is
    saved to history after the response is sent; a failed save is logged only.

    Status Codes:
        200: Success
        422: Pydantic validation error (automatic)
        500: Model unreachable, failed, or returned unparseable output
    """
    try:
        assessment = run_confidence_analysis(request, llm, DEAL_PASS_THRESHOLD)
    except InvalidUpstreamResponseError as e:
        logger.error(f"Confidence analysis failed: {e}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to analyze data", f"{e.kind}: {e}"
        )
    except (InfrastructureError, LLMError) as e:
        logger.error(f"Confidence analysis failed: {e}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to analyze data", str(e)
        )
    except Exception as e:
        logger.exception("Confidence analysis failed (unexpected)")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to analyze data", str(e)
        )

    if user_id:
        address = request.property_info.get("address")
        try:
            entry = HistoryEntryCreate(
                user_id=user_id,
                property_address=str(address) if address else "Unknown Property",
                confidence_score=assessment.confidence_score,
                gemini_analysis=assessment.model_dump(mode="json", by_alias=True),
                property_info=request.property_info,
            )
        except ValidationError as e:
            logger.warning(f"Skipping history save for user={user_id}: {e.error_count()} errors")
        else:
            background_tasks.add_task(record_analysis, store, entry)

    return assessment


@app.post(
    "/api/deal-evaluation",
    response_model=DealEvaluation,
    responses={
        400: {"model": ErrorResponse, "description": "Neither location nor metrics given"},
        503: {"model": ErrorResponse, "description": "Provider unavailable, fallback disabled"},
    },
    summary="Score a deal against buy-box criteria",
    tags=["Analysis"],
)
def deal_evaluation(
    request: DealEvaluationRequest,
    client: Optional[PropertyDataClient] = Depends(get_property_client),
    settings: PropertyDataConfig = Depends(get_property_settings),
):
    """
    Score a deal against the seven weighted criteria.

    Metrics come from ``metrics`` (a property-data payload) when given,
    otherwise they are derived for ``location``. ``buyBox`` phrases override
    the matching thresholds in ``criteria``.

    Status Codes:
        200: Success
        400: Neither location nor metrics given
        503: Provider failed and fallback is disabled
    """
    criteria = request.criteria or CriteriaThresholds()
    if request.buy_box:
        criteria = thresholds_from_strings(request.buy_box, criteria)

    if request.metrics is not None:
        return evaluate_deal(inputs_from_display(request.metrics), criteria)

    if not request.location or not request.location.strip():
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Location or metrics required",
            "Provide a location to derive metrics for, or a metrics payload",
        )

    try:
        metrics = fetch_property_metrics(
            request.location.strip(), client, settings, DEFAULT_DERIVATION_CONFIG
        )
    except UpstreamUnavailableError as e:
        logger.error(f"Property data unavailable for {request.location!r}: {e}")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "Property data unavailable", str(e)
        )

    return evaluate_deal(metrics, criteria)


@app.get(
    "/api/test-property",
    summary="Property-data self-check",
    tags=["System"],
)
def test_property(
    client: Optional[PropertyDataClient] = Depends(get_property_client),
    settings: PropertyDataConfig = Depends(get_property_settings),
):
    """
    Run the property-data path for a fixed location and report headline metrics.

    Status Codes:
        200: Property-data path is working
        500: Property-data path failed
    """
    try:
        metrics = fetch_property_metrics(
            TEST_LOCATION, client, settings, DEFAULT_DERIVATION_CONFIG
        )
        display = to_display(metrics)
    except Exception as e:
        logger.exception("Property data self-check failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": str(e),
                "message": "Property data API test failed",
            },
        )

    return {
        "success": True,
        "message": "Property data API is working correctly",
        "data": {
            "capRate": display.cap_rate,
            "cashOnCash": display.cash_on_cash,
            "irr": display.irr,
            "propertyValue": display.property_value,
        },
    }


# =============================================================================
# History API Endpoints
# =============================================================================


@app.post(
    "/api/history",
    status_code=status.HTTP_201_CREATED,
    response_model=HistoryRecord,
    responses={503: {"model": ErrorResponse, "description": "History store unavailable"}},
    summary="Save an analysis to history",
    tags=["History"],
)
def create_history_entry(
    entry: HistoryEntryCreate,
    store: HistoryStore = Depends(get_history_store),
):
    try:
        record = store.append(entry)
    except InfrastructureError as e:
        logger.error(f"History insert failed: {e}")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "History store unavailable", str(e)
        )
    logger.info(f"Saved history record {record.id} for user={record.user_id}")
    return record


@app.get(
    "/api/history",
    response_model=list[HistoryRecord],
    responses={503: {"model": ErrorResponse, "description": "History store unavailable"}},
    summary="List a user's analysis history",
    tags=["History"],
)
def list_history(
    user_id: Optional[str] = Query(None, description="Owner of the records"),
    limit: int = Query(50, ge=1, le=200, description="Maximum records to return"),
    store: HistoryStore = Depends(get_history_store),
):
    """
    List saved analyses, most recent first.

    Status Codes:
        200: Success (may be empty list)
        503: History store unavailable
    """
    try:
        return store.list_for_user(user_id, limit=limit)
    except InfrastructureError as e:
        logger.error(f"History query failed: {e}")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "History store unavailable", str(e)
        )


@app.get(
    "/api/history/{record_id}",
    response_model=HistoryRecord,
    responses={
        404: {"model": ErrorResponse, "description": "Record not found"},
        503: {"model": ErrorResponse, "description": "History store unavailable"},
    },
    summary="Fetch one saved analysis",
    tags=["History"],
)
def get_history_entry(
    record_id: str,
    store: HistoryStore = Depends(get_history_store),
):
    try:
        record = store.get(record_id)
    except InfrastructureError as e:
        logger.error(f"History lookup failed: {e}")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "History store unavailable", str(e)
        )

    if record is None:
        return error_response(
            status.HTTP_404_NOT_FOUND, "History record not found", f"No record with id {record_id}"
        )
    return record


@app.delete(
    "/api/history/{record_id}",
    responses={
        404: {"model": ErrorResponse, "description": "Record not found"},
        503: {"model": ErrorResponse, "description": "History store unavailable"},
    },
    summary="Delete a saved analysis",
    tags=["History"],
)
def delete_history_entry(
    record_id: str,
    store: HistoryStore = Depends(get_history_store),
):
    try:
        deleted = store.delete(record_id)
    except InfrastructureError as e:
        logger.error(f"History delete failed: {e}")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "History store unavailable", str(e)
        )

    if not deleted:
        return error_response(
            status.HTTP_404_NOT_FOUND, "History record not found", f"No record with id {record_id}"
        )
    return {"id": record_id, "deleted": True}
