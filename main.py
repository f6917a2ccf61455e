from fastapi import FastAPI
from fastapi.responses import JSONResponse

# Internal imports
from config import config
from data.database import create_tables
from api.experience_routes import experience_router
from api.events_routes import events_router

import contextlib
import logging
import middleware

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles startup and shutdown events for the application.
    Code before 'yield' runs on startup.
    Code after 'yield' runs on shutdown.
    """
    try:
        logger.info("Application starting up: %s", config)
        create_tables()
        logger.info("Database tables initialized successfully.")
    except Exception as e:
        logger.error("Failed to initialize database tables: %s", e)

    yield

    logger.info("Application shutting down: Closing resources...")

# --- FastAPI App Initialization ---
app = FastAPI(
    lifespan=lifespan,
    title="Landing Page Experience API",
    version="1.0.0",
    description="Visitor-facing A/B variant assignment, block visibility rules and analytics events for published landing pages."
)

app.add_middleware(middleware.RequestIDMiddleware)

app.include_router(experience_router)
app.include_router(events_router)

# --- API Endpoints ---

@app.get("/health")
def health_check():
    return JSONResponse(content={"status": "healthy"}, status_code=200)
