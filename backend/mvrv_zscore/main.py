import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mvrv_zscore.config import settings
from mvrv_zscore.database import init_db
from mvrv_zscore.exceptions import AppError
from mvrv_zscore.routers import mvrv_router
from mvrv_zscore.routers import system_router
from mvrv_zscore.routers.system_router import set_refresh_scheduler
from mvrv_zscore.services.coinmetrics_client import close_shared_session
from mvrv_zscore.services.mvrv_service import get_mvrv_service
from mvrv_zscore.services.refresh_scheduler import MVRVRefreshScheduler

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="MVRV Z-Score 2YR Rolling")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)

# Daily forced refresh of the rolling series (replaces the cron trigger)
refresh_scheduler = MVRVRefreshScheduler(
    get_mvrv_service,
    interval_seconds=settings.refresh_interval_hours * 3600,
    initial_delay=settings.refresh_initial_delay_seconds,
)
set_refresh_scheduler(refresh_scheduler)  # Make status accessible via API


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Translate domain errors into {"error": message} responses"""
    logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Include all routers
app.include_router(system_router.router)
app.include_router(mvrv_router.router)


# Startup/Shutdown events
@app.on_event("startup")
async def startup_event():
    logger.info("Starting MVRV Z-Score 2YR Rolling service")

    if settings.cache_backend == "database":
        logger.info("Initializing cache database...")
        await init_db()

    if settings.refresh_enabled:
        await refresh_scheduler.start()
        logger.info(f"Scheduled refresh every {settings.refresh_interval_hours}h")
    else:
        logger.info("Scheduled refresh disabled")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down - stopping refresh scheduler")
    await refresh_scheduler.stop()
    await close_shared_session()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
