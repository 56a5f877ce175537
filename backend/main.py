"""
main.py

Application entrypoint for the FundiConnect lifecycle API.
- Initializes structured logging
- Sets up FastAPI application and middlewares
- Registers all API routers
- Integrates rate limiting via SlowAPI
- Adds common security headers
- Configures CORS
- Maps lifecycle errors and unknown routes to the standard error body
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from fundiconnect.core.config import settings
from fundiconnect.core.exceptions import LifecycleError
from fundiconnect.core.limiter import limiter
from fundiconnect.core.logging import init_logging
from fundiconnect.database.init_db import init_db
from fundiconnect.job.routes import router as job_router
from fundiconnect.notification.routes import router as notification_router
from fundiconnect.quote.routes import router as quote_router
from fundiconnect.review.routes import router as review_router

init_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.AUTO_CREATE_TABLES:
        await init_db()
    yield


# -----------------------------
# FastAPI App Initialization
# -----------------------------
app = FastAPI(title=f"{settings.APP_NAME} API", debug=settings.DEBUG, lifespan=lifespan)

# -----------------------------
# Middleware Configuration
# -----------------------------
app.state.limiter = limiter


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    return _rate_limit_exceeded_handler(request, exc)  # type: ignore[arg-type]


app.add_exception_handler(429, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


# -----------------------------
# Security Headers Middleware
# -----------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add common security headers to responses.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response


app.add_middleware(SecurityHeadersMiddleware)

# -----------------------------
# CORSMiddleware Configuration
# -----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Error Handlers
# -----------------------------
@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    """Lifecycle errors raised by read endpoints use the same body as APIError."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"error": exc.message, "code": exc.code.value}},
    )


@app.exception_handler(status.HTTP_404_NOT_FOUND)
async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    detail = getattr(exc, "detail", None)
    if not isinstance(detail, dict):
        detail = {"error": detail or f"Route {request.url.path} not found."}
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": detail})


# -----------------------------
# API Router Registration
# -----------------------------
app.include_router(job_router)
app.include_router(quote_router)
app.include_router(review_router)
app.include_router(notification_router)


# -----------------------------
# Root Endpoint
# -----------------------------
@app.get("/", response_class=HTMLResponse)
async def home() -> Any:
    return f"""
    <html>
        <head>
            <title>Welcome to {settings.APP_NAME}</title>
        </head>
        <body style="font-family: Arial, sans-serif; text-align: center; padding-top: 50px;">
            <h1>Welcome to <span style="color: #2c3e50;">{settings.APP_NAME}</span></h1>
            <p>Job, quote and review lifecycle API for the services marketplace.</p>
        </body>
    </html>
    """
