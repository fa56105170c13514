from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sprintplanr.api import routes
from sprintplanr.api.routes import router as api_router
from sprintplanr.config.settings import get_settings
from sprintplanr.storage.database import init_db
from sprintplanr.utils.logging_config import setup_logging


# Setup logging
logger = setup_logging()
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    description="Genetic-algorithm task scheduling balancing utilization, deadlines and workload",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.app_name}...")
    init_db()
    logger.info("Database initialized")
    logger.info(
        f"GA defaults: population={settings.ga_population_size}, "
        f"generations={settings.ga_generations}, mutation_rate={settings.ga_mutation_rate}"
    )

@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.app_name}...")

app.include_router(api_router, prefix="/api/v1", tags=["scheduling"])


@app.get("/health", tags=["health"])
def health_check():
    """Health check endpoint for monitoring and load balancers.

    Optimization keeps working without Redis, so a failed cache ping only
    degrades the status.
    """
    cache_ok = routes.cache.health_check()
    if not cache_ok:
        logger.warning("Health check: cache unavailable")
    return {
        "status": "ok" if cache_ok else "degraded",
        "app": settings.app_name,
        "version": "1.0.0",
        "cache": "ok" if cache_ok else "unavailable",
    }
