# main.py
import os
import uuid
from contextlib import asynccontextmanager

import firebase_admin
import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from firebase_admin import credentials
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.rate_limit import limiter

# --- Core App Imports ---
from app.core.config import settings, BASE_DIR  # Centralized settings
# Import the logging setup module early to configure logging before other imports
import app.core.logging

logger = app.core.logging.get_logger(__name__)

from app.api import errors
from app.api.endpoints import places as places_router

logger.info(f"Starting application in {settings.ENVIRONMENT} mode...")

# --- Sentry Initialization ---
if settings.SENTRY_DSN and settings.ENVIRONMENT != "development": # Often disabled in dev
    try:
        logger.info("Initializing Sentry...")
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            traces_sample_rate=0.2, # Sample 20% of transactions in production
            profiles_sample_rate=0.1,
            environment=settings.ENVIRONMENT,
            integrations=[
                StarletteIntegration(),
                FastApiIntegration(),
            ],
            send_default_pii=False
        )
        logger.info(f"Sentry initialized successfully for environment: {settings.ENVIRONMENT}")
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
else:
    logger.warning("Sentry DSN not found or ENVIRONMENT is development, Sentry integration disabled.")

# --- Firebase Admin SDK Initialization ---
try:
    # In a test environment, we rely on stub tokens and overrides; no real SDK needed.
    if settings.ENVIRONMENT == "test":
        logger.warning("Skipping Firebase Admin SDK initialization in 'test' environment. Auth will be mocked.")
    else:
        if not firebase_admin._apps:
            cred_path = os.path.join(BASE_DIR, settings.FIREBASE_SERVICE_ACCOUNT_KEY_PATH)
            logger.info(f"Attempting to load Firebase credentials from: {cred_path}")

            if not os.path.exists(cred_path):
                logger.critical(f"Firebase service account key not found at: {cred_path}")
                raise FileNotFoundError(f"Service account key not found: {cred_path}")

            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred)
            logger.info("Firebase Admin SDK initialized successfully.")
        else:
            logger.info("Firebase Admin SDK already initialized.")

except Exception as e:
    logger.critical(f"CRITICAL: Failed during Firebase Admin SDK setup: {e}", exc_info=True)
    raise RuntimeError("Could not initialize Firebase Admin SDK.") from e


# --- Lifespan Manager ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles application startup and shutdown events."""
    logger.info("Application startup complete.")
    yield # Application runs here
    logger.info("Application shutdown complete.")

# --- FastAPI App Instance ---
app = FastAPI(
    title="Places API",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Rate Limiting ---
app.state.limiter = limiter # Add limiter to app state for use in endpoints
app.add_exception_handler(RateLimitExceeded, errors.rate_limit_exception_handler) # Handle rate limit errors

# --- Middleware ---
@app.middleware("http")
async def log_request_middleware(request: Request, call_next):
    """Logs basic request and response info and adds/uses a request ID."""
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id

    logger.info(f"RID:{request_id} START Request: {request.method} {request.url.path}")
    try:
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(f"RID:{request_id} END Request: {request.method} {request.url.path} Status: {response.status_code}")
        return response
    except Exception as e:
        logger.error(f"RID:{request_id} Error during request {request.url.path}: {e}", exc_info=True)
        # Re-raise to be caught by exception handlers
        raise e

@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Adds basic security headers to responses."""
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response

# --- Global Exception Handlers ---
app.add_exception_handler(StarletteHTTPException, errors.http_exception_handler)
app.add_exception_handler(RequestValidationError, errors.validation_exception_handler)
app.add_exception_handler(Exception, errors.generic_exception_handler)

# --- Include API Routers ---
app.include_router(places_router.router, prefix=settings.API_V1_STR)


# --- Root Endpoint ---
@app.get("/", include_in_schema=False)
async def read_root():
    """Provides a simple welcome message at the root."""
    return {"message": f"Welcome to the {app.title}!"}
