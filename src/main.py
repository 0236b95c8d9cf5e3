"""
Patent Search - FastAPI application for keyword patent search

Ranks an in-memory patent collection against free-text queries:
- Collection loaded from patents.json (local disk or Cloud Storage)
- Hand-tuned relevance heuristic (see src/relevance)
- Similarity 0-100 per patent, filtered by minimum similarity
- FastAPI (async REST API)

Architecture:
- Collection cached in memory, reloaded when the source file changes
- Ranking runs in a worker thread (CPU-bound, keeps the event loop free)
- No database, no index: every query scans the whole collection
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List

# Load environment variables from .env.local (local dev) or .env (production)
from dotenv import load_dotenv

# Load .env.local first (highest priority), then .env as fallback
env_local = Path(__file__).parent.parent / ".env.local"
env_file = Path(__file__).parent.parent / ".env"

if env_local.exists():
    load_dotenv(env_local, override=True)
elif env_file.exists():
    load_dotenv(env_file, override=True)

# Configure logging: console (brief) + file (detailed)
from src.logging_config import setup_logging

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
console_level = getattr(logging, log_level, logging.INFO)
setup_logging(
    log_file=os.getenv("LOG_FILE", "logs/patent-search.log"),
    console_level=console_level,
    file_level=logging.DEBUG  # Always DEBUG in file for troubleshooting
)

logger = logging.getLogger(__name__)


from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .collection import CollectionCache, CollectionLoadError, GCSJSONSource, LocalJSONSource
from .presentation import display_identifier, display_slice, format_similarity, similarity_band
from .relevance import rank_with_stats

# Configuration from environment variables
PORT = int(os.getenv("PORT", "8080"))
PATENTS_PATH = os.getenv("PATENTS_PATH", "data/patents.json")
PATENTS_GCS_BUCKET = os.getenv("PATENTS_GCS_BUCKET", "")
PATENTS_GCS_BLOB = os.getenv("PATENTS_GCS_BLOB", "patents.json")
DEFAULT_MIN_SIMILARITY = float(os.getenv("DEFAULT_MIN_SIMILARITY", "5.0"))
STRICT_MIN_SIMILARITY = float(os.getenv("STRICT_MIN_SIMILARITY", "20.0"))
MAX_DISPLAY_RESULTS = int(os.getenv("MAX_DISPLAY_RESULTS", "100"))
SCORING_WORKERS = int(os.getenv("SCORING_WORKERS", "0"))  # 0 = score sequentially

# Version tracking
APP_VERSION = "0.1.0"
APP_START_TIME = datetime.utcnow().isoformat() + "Z"


def _build_source():
    if PATENTS_GCS_BUCKET:
        return GCSJSONSource(bucket_name=PATENTS_GCS_BUCKET, blob_name=PATENTS_GCS_BLOB)
    return LocalJSONSource(PATENTS_PATH)


collection_cache = CollectionCache(_build_source())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warm the patent collection cache"""
    logger.info(f"Loading patent collection from {collection_cache.source}...")
    try:
        await asyncio.to_thread(collection_cache.get)
    except CollectionLoadError as e:
        # Service still starts; search returns 503 until the source is fixed
        logger.error(f"Patent collection not loaded at startup: {e}")
    
    yield
    
    logger.info("Shutting down...")


# FastAPI app
app = FastAPI(
    title="Patent Search API",
    description="Keyword relevance search over a patent collection",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class HealthResponse(BaseModel):
    status: str
    version: str
    started_at: str
    uptime_seconds: float
    collection_loaded: bool
    collection_size: int


class SearchRequest(BaseModel):
    query: str = Field(..., description="Free-text query (Korean and/or English)")
    min_similarity: float = Field(
        default=DEFAULT_MIN_SIMILARITY,
        ge=0.0,
        le=100.0,
        description="Minimum similarity threshold (0-100). Results below this are filtered out."
    )
    strict: bool = Field(
        default=False,
        description="Use the strict threshold (STRICT_MIN_SIMILARITY, default 20) if it is higher than min_similarity"
    )
    limit: int = Field(
        default=MAX_DISPLAY_RESULTS,
        ge=1,
        le=1000,
        description="Maximum number of results returned (total_matches is not truncated)"
    )
    
    class Config:
        json_schema_extra = {
            "example": {
                "query": "전기 자동차 배터리",
                "min_similarity": 20.0,
                "limit": 100,
            }
        }


class SearchResultItem(BaseModel):
    identifier: str
    title: str
    abstract: str
    similarity: float
    similarity_display: str
    similarity_label: str
    similarity_color: str


class SearchResponse(BaseModel):
    query: str
    min_similarity: float
    total_scored: int
    nonzero_count: int
    total_matches: int
    results: List[SearchResultItem]


class ReloadResponse(BaseModel):
    documents_loaded: int
    message: str


# Routes
@app.get("/", response_model=dict)
async def root():
    return {
        "service": "Patent Search API",
        "version": APP_VERSION,
        "docs": "/docs",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint"""
    start_time = datetime.fromisoformat(APP_START_TIME.rstrip('Z'))
    uptime = (datetime.utcnow() - start_time).total_seconds()
    
    return HealthResponse(
        status="healthy",
        version=APP_VERSION,
        started_at=APP_START_TIME,
        uptime_seconds=round(uptime, 2),
        collection_loaded=collection_cache.loaded,
        collection_size=collection_cache.size,
    )


@app.post("/v1/search", response_model=SearchResponse)
async def search_patents(request: SearchRequest):
    """
    Rank the patent collection against a query.
    
    **Scoring (0-100 per patent):**
    - Title matches weigh most, then abstract, then full text (per-field caps)
    - Longer query tokens get a bonus
    - Patents matching more of the query tokens get a coverage bonus
    - Single-token queries are penalized (less specific)
    - Query tokens close together in the full text add up to 5 points
    
    **Parameters:**
    - `query` (str): Free-text query
    - `min_similarity` (float): 0-100 (default: 5)
      - 5 = loose (default)
      - 20 = strict (recommended for UI)
    - `strict` (bool): Raise threshold to the strict default
    - `limit` (int): Results to return (default: 100)
    
    **Example:**
    ```json
    {
        "query": "전기 자동차 배터리 냉각",
        "min_similarity": 20
    }
    ```
    """
    try:
        documents = await asyncio.to_thread(collection_cache.get)
        
        min_similarity = request.min_similarity
        if request.strict:
            min_similarity = max(min_similarity, STRICT_MIN_SIMILARITY)
        
        results, stats = await asyncio.to_thread(
            rank_with_stats,
            request.query,
            documents,
            min_similarity=min_similarity,
            max_workers=SCORING_WORKERS or None,
        )
        
        items = []
        for result in display_slice(results, request.limit):
            band = similarity_band(result.similarity)
            items.append(SearchResultItem(
                identifier=display_identifier(result),
                title=result.title,
                abstract=result.abstract,
                similarity=result.similarity,
                similarity_display=format_similarity(result.similarity),
                similarity_label=band.label,
                similarity_color=band.color,
            ))
        
        return SearchResponse(
            query=request.query,
            min_similarity=min_similarity,
            total_scored=stats.total_scored,
            nonzero_count=stats.nonzero_count,
            total_matches=stats.passed_count,
            results=items,
        )
    
    except CollectionLoadError as e:
        logger.error(f"Search unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Patent collection unavailable: {str(e)}",
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Search failed for query '{request.query}'")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Search failed: {str(e)}",
        )


@app.post("/v1/collection/reload", response_model=ReloadResponse)
async def reload_collection():
    """Drop the cached collection and load it again from the source"""
    collection_cache.invalidate()
    try:
        documents = await asyncio.to_thread(collection_cache.get)
    except CollectionLoadError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Patent collection unavailable: {str(e)}",
        )
    
    return ReloadResponse(
        documents_loaded=len(documents),
        message=f"Reloaded {len(documents)} patents",
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=PORT,
        reload=True,  # Development only
    )
