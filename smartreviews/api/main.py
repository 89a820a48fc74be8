"""
Smart Reviews FastAPI Application
=================================

REST API collecting shop product reviews and serving aggregated review
data with AI-generated summaries and keywords.

Endpoints:
    GET  /ping                           - Liveness probe
    GET  /api/health                     - Health check
    GET  /product/{external_id}/review   - Reviews, rating, summary, keywords
    GET  /shop/{shop_id}/product         - Rating overview of a shop's products
    POST /product/{external_id}/review   - Submit a review

Usage:
    uvicorn smartreviews.api.main:app --reload --port 8000

    Or with CLI:
    python -m smartreviews.api.main
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI, HTTPException, Request, status
from contextlib import asynccontextmanager
from typing import List
import logging

from ..ai.llm_client import get_llm_client
from ..config import get_settings
from ..errors import GenerationError, NotFoundError, StorageError
from ..logging_config import setup_logging
from ..reviews.review_store import PostgresReviewStore
from .models import HealthResponse, MessageResponse, ProductInput, ProductResponse
from .services import ReviewService, build_review_service
from . import db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    setup_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_logs,
        log_file=settings.logging.log_file,
    )
    logger.info("Starting Smart Reviews API...")

    pool = db.get_pool(settings.database)
    if pool is None:
        raise RuntimeError("Database pool not available")

    store = PostgresReviewStore(pool)
    store.init_schema()

    llm_client = get_llm_client(
        provider=settings.llm.provider,
        model=settings.llm.model,
        timeout=settings.llm.timeout_seconds,
    )
    app.state.llm_client = llm_client
    app.state.review_service = build_review_service(store, llm_client, settings)
    logger.info(f"Services initialized (llm={type(llm_client).__name__})")

    yield

    db.close_pool()
    logger.info("Shutting down Smart Reviews API...")


app = FastAPI(
    title="Smart Reviews API",
    description="Product reviews with AI-generated summaries and keywords",
    version="0.1.0",
    lifespan=lifespan,
)


def get_review_service(request: Request) -> ReviewService:
    service = getattr(request.app.state, "review_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service


# ============================================================================
# HEALTH ENDPOINTS
# ============================================================================

@app.get("/ping")
async def ping():
    return {"message": "pong"}


@app.get("/api/health", response_model=HealthResponse)
def health_check(request: Request):
    """
    Health check endpoint.

    Reports database connectivity and whether a completion provider key
    is configured.
    """
    db_health = db.check_health()
    llm_client = getattr(request.app.state, "llm_client", None)

    return HealthResponse(
        status="healthy" if db_health["status"] == "connected" else "degraded",
        version=app.version,
        database=db_health["status"],
        database_version=db_health.get("version"),
        llm_provider=type(llm_client).__name__ if llm_client else None,
        llm_configured=bool(getattr(llm_client, "api_key", None)),
    )


# ============================================================================
# REVIEW ENDPOINTS
# ============================================================================

@app.get(
    "/product/{external_id}/review",
    response_model=ProductResponse,
    response_model_exclude_none=True,
)
def get_product_reviews(external_id: str, service: ReviewService = Depends(get_review_service)):
    """
    Reviews of a product with average rating, count, AI summary and keywords.

    The synthesized summary is returned as `ai_summary`, never as a review,
    and does not count towards the rating or the quantity.
    """
    try:
        return service.get_product_reviews(external_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        logger.error(f"Error fetching reviews for {external_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get(
    "/shop/{shop_id}/product",
    response_model=List[ProductResponse],
    response_model_exclude_none=True,
)
def get_shop_products(shop_id: str, service: ReviewService = Depends(get_review_service)):
    """Average rating and review quantity of every product of a shop."""
    try:
        return service.get_shop_products(shop_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        logger.error(f"Error fetching products for shop {shop_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post(
    "/product/{external_id}/review",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_review(
    external_id: str,
    submission: ProductInput,
    service: ReviewService = Depends(get_review_service),
):
    """
    Submit a review, creating the product if the external id is new.

    Summary and keyword synthesis run first, on the reviews already
    stored; the review is only stored once both succeeded.
    """
    try:
        service.submit_review(external_id, submission)
    except GenerationError as e:
        logger.error(f"Review synthesis failed for {external_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except (StorageError, NotFoundError) as e:
        logger.error(f"Error creating review for {external_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return MessageResponse(message="Review created")


# ============================================================================
# MAIN
# ============================================================================

def run():
    """Serve the API with uvicorn using SERVER_HOST / SERVER_PORT."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "smartreviews.api.main:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level.lower(),
    )


if __name__ == "__main__":
    run()
