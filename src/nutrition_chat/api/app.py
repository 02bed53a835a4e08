"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from nutrition_chat.api.routes import router
from nutrition_chat.app_logging import configure_logging
from nutrition_chat.containers import AppContainer
from nutrition_chat.errors import LedgerSaveError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app.state.container.chat_service.load()
        except Exception:
            logger.exception("Failed to restore today's conversation")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(router)

    @app.exception_handler(LedgerSaveError)
    async def ledger_save_failed(
        request: Request, exc: LedgerSaveError
    ) -> JSONResponse:
        logger.warning("Ledger save failed for %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Ledger changes could not be saved"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
