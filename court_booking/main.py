"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from court_booking.api import availability, bookings, courts, dashboard
from court_booking.core.config import settings
from court_booking.core.database import AsyncSessionLocal, init_db
from court_booking.core.errors import PersistenceError, ReservationError
from court_booking.services.booking_store import SqlAlchemyBookingStore
from court_booking.services.clock import SystemClock
from court_booking.services.scheduler import CompletionScheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Court Booking API")
    logger.info(f"Debug mode: {settings.DEBUG}")

    await init_db()

    store = SqlAlchemyBookingStore(AsyncSessionLocal)
    app.state.booking_store = store
    app.state.completion_scheduler = CompletionScheduler(
        store, SystemClock(), settings.COMPLETION_SWEEP_MINUTES
    )
    if settings.SCHEDULER_ENABLED:
        await app.state.completion_scheduler.start()

    yield

    # Shutdown
    logger.info("Shutting down Court Booking API")
    await app.state.completion_scheduler.stop()


# Create FastAPI app
app = FastAPI(
    title="Court Booking API",
    description="Book sports courts without double bookings",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "code": exc.code.value,
            "message": exc.message,
            "retryable": exc.retryable,
        },
    )


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Persistence failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "code": exc.code,
            "message": "Storage temporarily unavailable, please retry",
            "retryable": exc.retryable,
        },
    )


# Include routers
app.include_router(courts.router)
app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(dashboard.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    scheduler = getattr(app.state, "completion_scheduler", None)
    return {
        "status": "healthy",
        "scheduler_running": bool(scheduler and scheduler.running),
    }


def run():
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(
        "court_booking.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
