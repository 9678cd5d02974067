import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, status
from app.core.db import init_db, close_db
from app.core.rate_limit import throttle
from app.api.v1.auth import router as auth_router
from app.api.v1.households import router as households_router
from app.api.v1.kitchens import router as kitchens_router
from app.api.v1.inventory import router as inventory_router
from app.api.v1.reminders import router as reminders_router
from app.api.v1.notifications import router as notifications_router
from app.api.v1.shopping import router as shopping_router
from app.consumers.reminder_scheduler import ReminderScheduler
from app.core.config import PROJECT_NAME, VERSION, SCHEDULER_ENABLED
from app.core.exception_handlers import setup_exception_handlers

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("uvicorn")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas
    scheduler = None
    if SCHEDULER_ENABLED:
        # Run the reminder sweeps in-process instead of as a separate service
        scheduler = ReminderScheduler()
        scheduler.start()
    yield
    if scheduler:
        await scheduler.stop()
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers for modular API structure; every API router is throttled
throttled = [Depends(throttle)]
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Auth"], dependencies=throttled)
app.include_router(households_router, prefix="/api/v1/households", tags=["Households"], dependencies=throttled)
app.include_router(kitchens_router, prefix="/api/v1/kitchens", tags=["Kitchens"], dependencies=throttled)
app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"], dependencies=throttled)
app.include_router(reminders_router, prefix="/api/v1/reminders", tags=["Reminders"], dependencies=throttled)
app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["Notifications"], dependencies=throttled)
app.include_router(shopping_router, prefix="/api/v1/shopping", tags=["Shopping"], dependencies=throttled)


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
