import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List
import httpx

from photo_search.catalog import SupabaseMediaCatalog
from photo_search.errors import CatalogUnavailable, InvalidRequest, SearchUnconfigured
from photo_search.schemas import EventPhotosResponse, SearchRequest, SearchResponse
from photo_search.search import PhotoSearchService
from photo_search.vision_client import VisionModelClient

# --- CONFIGURATION  ---

class Settings(BaseSettings):
    """
    Application settings managed via pydantic-settings.
    Loads variables from a .env file or environment variables.
    """
    # Project Info
    APP_NAME: str = "Event Photo Search API"
    DEBUG_MODE: bool = False
    VERSION: str = "0.3.0"

    # Media catalog (Supabase). Keys will be loaded from .env
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    CATALOG_TIMEOUT_SECONDS: float = 10.0

    # Vision model (any OpenAI-compatible chat-completions gateway)
    VISION_API_KEY: str = ""
    VISION_API_BASE_URL: str = "https://ai.gateway.lovable.dev/v1"
    VISION_MODEL: str = "google/gemini-2.5-flash"
    VISION_MAX_TOKENS: int = 500
    VISION_TEMPERATURE: float = 0.1 # Low on purpose: same photos, same answer
    VISION_TIMEOUT_SECONDS: float = 60.0 # Image-heavy payloads are slow

    # Batching: photos per model call, and how many calls may be in flight
    SEARCH_BATCH_SIZE: int = 15
    MAX_CONCURRENT_BATCHES: int = 3

    # Explicitly list the exact protocol, domain, and port of frontend
    CORS_ORIGINS: List[str] = [
        "http://localhost:8501",  # Streamlit default
        "http://127.0.0.1:8501"   # Alternative local address
    ]

    # Pydantic Settings Config
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding='utf-8')

@lru_cache()
def get_settings():
    """Returns a cached instance of the settings."""
    return Settings()


# --- LIFESPAN (Startup/Shutdown) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("--- SERVER STARTING ---")

    if not settings.VISION_API_KEY:
        logger.warning("VISION_API_KEY is not set: /search-photos will answer 500 until it is.")

    # One connection pool shared by the catalog and the vision client
    app.state.http_client = httpx.AsyncClient()

    yield

    logger.info("--- SERVER SHUTTING DOWN ---")
    await app.state.http_client.aclose()


# --- INITIALIZATION ---

# Setup basic logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=get_settings().APP_NAME,
    version=get_settings().VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- GLOBAL ERROR HANDLING ---

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest):
    logger.warning(f"Invalid request: {exc}")
    return error_response(400, str(exc))

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are reported like any other invalid request."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
    logger.warning(f"Request validation failed: {errors}")
    return error_response(400, message)

@app.exception_handler(CatalogUnavailable)
async def catalog_unavailable_handler(request: Request, exc: CatalogUnavailable):
    logger.error(f"Catalog unavailable: {exc}")
    return error_response(503, str(exc))

@app.exception_handler(SearchUnconfigured)
async def search_unconfigured_handler(request: Request, exc: SearchUnconfigured):
    logger.error(f"Search unconfigured: {exc}")
    return error_response(500, str(exc))

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Handles unexpected crashes (500 Internal Server Error).
    """
    logger.error(f"Global Crash: {exc}", exc_info=True) # exc_info gives us the stack trace in logs
    return error_response(500, "An internal server error occurred. Please contact support.")

# --- DEPENDENCIES ---

def get_http_client(request: Request) -> httpx.AsyncClient:
    """The pooled client opened by the lifespan."""
    return request.app.state.http_client

def get_catalog(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings)
) -> SupabaseMediaCatalog:
    return SupabaseMediaCatalog(
        http_client,
        base_url=settings.SUPABASE_URL,
        api_key=settings.SUPABASE_SERVICE_ROLE_KEY,
        timeout=settings.CATALOG_TIMEOUT_SECONDS,
    )

def get_vision_client(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings)
) -> VisionModelClient:
    return VisionModelClient(
        http_client,
        api_key=settings.VISION_API_KEY,
        base_url=settings.VISION_API_BASE_URL,
        model=settings.VISION_MODEL,
        max_tokens=settings.VISION_MAX_TOKENS,
        temperature=settings.VISION_TEMPERATURE,
        timeout=settings.VISION_TIMEOUT_SECONDS,
    )

def get_search_service(
    catalog: SupabaseMediaCatalog = Depends(get_catalog),
    vision_client: VisionModelClient = Depends(get_vision_client),
    settings: Settings = Depends(get_settings)
) -> PhotoSearchService:
    """Dependency that wires the search pipeline for one request."""
    return PhotoSearchService(
        catalog,
        vision_client,
        batch_size=settings.SEARCH_BATCH_SIZE,
        max_concurrency=settings.MAX_CONCURRENT_BATCHES,
    )

# --- ENDPOINTS ---

@app.get("/health")
async def health_check(
    catalog: SupabaseMediaCatalog = Depends(get_catalog),
    vision_client: VisionModelClient = Depends(get_vision_client)
):
    """Health check that also verifies catalog connectivity and model configuration."""
    try:
        await catalog.ping()
    except CatalogUnavailable as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "catalog_connected": False,
                "model_configured": vision_client.is_configured, "error": str(e)}
    return {"status": "healthy", "catalog_connected": True,
            "model_configured": vision_client.is_configured}

@app.post("/search-photos", response_model=SearchResponse)
async def search_photos(
    request: SearchRequest,
    service: PhotoSearchService = Depends(get_search_service)
):
    """
    AI photo search: returns the ids of the event photos matching the
    description or showing the person in the reference image.
    An empty list is a successful "no match" answer.
    """
    media_ids = await service.search(request)
    return SearchResponse(media_ids=media_ids)

@app.get("/events/{event_id}/photos", response_model=EventPhotosResponse)
async def list_event_photos(
    event_id: str,
    catalog: SupabaseMediaCatalog = Depends(get_catalog)
):
    """Photos of an event, so clients can resolve matched ids to urls."""
    return EventPhotosResponse(photos=await catalog.fetch_photos(event_id))

@app.get("/")
async def root():
    """Root endpoint for the API."""
    return {"message": f"Welcome to the {get_settings().APP_NAME}"}

if __name__ == "__main__":
    import uvicorn
    # In production, we would use a proper command, but this allows for local testing
    uvicorn.run("photo_search.main:app", host="0.0.0.0", port=8000, reload=True)
