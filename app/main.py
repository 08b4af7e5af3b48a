"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from app.infrastructure.db.session import check_db_connection
from app.api.v1 import analytics, subscriptions
from app.utils.money import CurrencyFormatter

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches every unhandled exception, logs the traceback, answers 500."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
            )


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="Subscription Tracker",
        debug=settings.DEBUG,
    )

    app.add_middleware(ErrorLoggingMiddleware)

    # One formatter per process, injected via app.api.deps.get_currency_formatter
    app.state.currency_formatter = CurrencyFormatter(default_currency=settings.DEFAULT_CURRENCY)

    # Routers
    app.include_router(subscriptions.router)
    app.include_router(analytics.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database must answer)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
