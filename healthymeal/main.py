"""
HealthyMeal FastAPI application.

Main application entry point with route registration, CORS, and the AI
preview rate limiter lifecycle.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from healthymeal.config import settings
from healthymeal.api.routes import auth, profile, recipes
from healthymeal.db.database import SessionLocal
from healthymeal.engine.rate_limiter import RateLimiter
from healthymeal.errors import validation_error_response
from sqlalchemy import text

# Configure logging with configurable level
_log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
logging.basicConfig(
    level=_log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_rate_limiter() -> RateLimiter:
    """AI preview limiter configured from settings."""
    return RateLimiter(
        max_requests=settings.ai_preview_max_requests,
        window_seconds=settings.ai_preview_window_seconds,
        sweep_interval_seconds=settings.ai_preview_sweep_interval_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    app.state.rate_limiter.start()

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.rate_limiter.shutdown()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Recipe management with AI-assisted dietary adaptation",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Per-user AI preview limiter; the sweep is started by the lifespan
app.state.rate_limiter = create_rate_limiter()

# Per-IP limiter for auth endpoints
app.state.limiter = auth.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 with one line per failing field."""
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path"))
        details.append(f"{location}: {error['msg']}" if location else error["msg"])
    return validation_error_response("Validation failed", details)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(recipes.router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint with database connectivity test."""
    db_status = "healthy"
    db_error = None

    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
    except Exception as e:
        db_status = "unhealthy"
        db_error = str(e)

    overall_status = "healthy" if db_status == "healthy" else "unhealthy"

    response = {
        "status": overall_status,
        "version": settings.app_version,
        "database": db_status,
        "rate_limiter": {
            "tracked_identities": app.state.rate_limiter.size,
            "sweep_running": app.state.rate_limiter.running,
        },
    }

    if db_error:
        response["database_error"] = db_error

    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "healthymeal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
