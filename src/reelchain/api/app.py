"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reelchain.api.middleware import reelchain_error_handler
from reelchain.api.routes import artifacts, runs
from reelchain.models.errors import ReelchainError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="reelchain",
        description="Long-form video generation from chained, frame-continuous clips",
        version="0.1.0",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    app.add_exception_handler(ReelchainError, reelchain_error_handler)

    # Routes
    app.include_router(runs.router)
    app.include_router(artifacts.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "0.1.0"}

    return app


app = create_app()
