"""FastAPI application entry point."""

from fastapi import FastAPI

from .. import __version__
from .routes import migrations

app = FastAPI(
    title="Batch Migration API",
    description="API for running file and database migrations",
    version=__version__,
)

# Include routers
app.include_router(migrations.router, prefix="/api/migrations", tags=["migrations"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
