"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from src.api import auth, posts, uploads
from src.api.dependencies import get_image_storage
from src.config import get_settings
from src.database import Database, get_db
from src.exceptions import register_exception_handlers

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.state.database = Database(settings.database_url)
    get_image_storage().ensure_root()
    logger.info(f"Started in {settings.environment} mode")
    yield
    app.state.database.dispose()


app = FastAPI(
    title="Photo Share API",
    description="Share photos with captions, likes and comments",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:3001",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Register routers
app.include_router(auth.router)
app.include_router(posts.router)
app.include_router(uploads.router)


@app.get("/api/health")
def health_check(db: Annotated[Session, Depends(get_db)]):
    """Health check endpoint, reporting whether the database answers."""
    timestamp = datetime.now(UTC).isoformat()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
                "timestamp": timestamp,
            },
        )

    return {"status": "healthy", "database": "connected", "timestamp": timestamp}
