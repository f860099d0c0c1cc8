"""
Site Conformance Checker - Main FastAPI Application

Validates rendered pages, their shared stylesheet and the images they
reference against a fixed catalogue of structural and stylistic rules.
"""
import os
from pathlib import Path
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import structlog

from sitecheck import __version__
from sitecheck.routes import validate
from sitecheck.models import HealthResponse
from sitecheck.services.catalogue import CATALOGUE

# Load environment variables from project root or backend directory
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv()  # Try default location

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("application_starting", version=__version__, **CATALOGUE.counts())
    yield
    logger.info("application_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="Site Conformance Checker",
    description="""
    Validates a small rendered site against a fixed rule catalogue.

    ## Checks

    - **Structure**: head contents, stylesheet order, heading count, page sections
    - **Style**: declarations and breakpoints in the shared stylesheet
    - **Images**: path hygiene, maximum width, declared vs. intrinsic dimensions

    Every (rule, artifact) pair yields one result; the run passes only if all do.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# CORS configuration
cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if os.getenv("APP_ENV") == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception",
                 error=str(exc),
                 path=request.url.path,
                 method=request.method)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal error occurred. Please try again."}
    )


# Include routers
app.include_router(validate.router)


@app.get("/", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns application status, version, and rule counts per engine.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        rules=CATALOGUE.counts()
    )


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    uvicorn.run(
        "sitecheck.main:app",
        host=host,
        port=port,
        reload=os.getenv("APP_ENV") != "production"
    )
