"""Labchat calendar web service."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from labchat.calendar.cache import LookupCache
from labchat.core.config import settings
from labchat.core.database import create_db_and_tables
from labchat.core.errors import add_error_handlers
from labchat.core.scheduler import shutdown_scheduler, start_scheduler
from labchat.routes import calendar, lookups

# Configure logging
settings.log_dir.mkdir(parents=True, exist_ok=True)
log_file = settings.log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting Labchat calendar service")
    create_db_and_tables()
    start_scheduler()
    yield
    # Shutdown
    shutdown_scheduler()
    logger.info("Labchat calendar service shut down")


app = FastAPI(
    title=settings.app_name,
    description="Lab calendar: bookings, tasks and meetings with recurring events and filtered views",
    version="0.1.0",
    lifespan=lifespan,
)

# One lookup cache per process, shared by every request
app.state.lookup_cache = LookupCache()

# Configure CORS for the Labchat web client
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_error_handlers(app)

# Include routers
app.include_router(calendar.router)
app.include_router(lookups.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
