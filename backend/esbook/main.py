from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from esbook.core import settings, configure_logging
from esbook.kernel import InvalidNotebookError
from esbook.api import api_router, NOTEBOOKS
from esbook.storage import load_notebook, list_notebooks

load_dotenv(override=True)
configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle manager."""
    print(f"Starting {settings.APP_TITLE}...")
    print(f"Using file-based storage: {settings.NOTEBOOK_STORAGE_DIR}")

    # Stored notebooks come back with their saved outputs; nothing is re-run
    notebook_ids = await list_notebooks()
    if notebook_ids:
        print(f"Loading {len(notebook_ids)} notebook(s)...")
        for notebook_id in notebook_ids:
            try:
                notebook = await load_notebook(notebook_id)
                if notebook:
                    NOTEBOOKS[notebook_id] = notebook
                    print(f"  ✓ Loaded: {notebook_id}")
            except (InvalidNotebookError, ValueError, OSError) as e:
                print(f"  ✗ Failed: {notebook_id}: {e}")
    else:
        print("No notebooks found. Users will create their own.")

    yield
    print("👋 Shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.APP_TITLE,
        lifespan=lifespan,
        debug=settings.DEBUG
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API router with /api/v1 prefix
    app.include_router(api_router, prefix="/api/v1")

    # Health check endpoint
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
