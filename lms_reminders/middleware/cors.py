"""CORS configuration for the LMS frontend."""
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

logger = logging.getLogger(__name__)

FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")

# Base allowed origins for development
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# Add production frontend URL if provided
if FRONTEND_URL and FRONTEND_URL not in ALLOWED_ORIGINS:
    ALLOWED_ORIGINS.append(FRONTEND_URL)


def add_cors_middleware(app, environment: str = "development"):
    """Add CORS middleware to the FastAPI application."""
    if environment == "production":
        logger.info(f"Using production CORS with origin {FRONTEND_URL}")
        origins = [FRONTEND_URL]
    else:
        logger.info(f"Using development CORS with origins: {ALLOWED_ORIGINS}")
        origins = ALLOWED_ORIGINS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
