"""FastAPI application - itinerary draft sessions for the host UI."""

from fastapi import FastAPI

from tripcore.app.api.routes.drafts import router as drafts_router
from tripcore.app.api.routes.experiences import router as experiences_router
from tripcore.app.api.routes.health import router as health_router
from tripcore.app.api.routes.metrics import router as metrics_router

app = FastAPI(title="Trip Draft API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(drafts_router, tags=["drafts"])
app.include_router(experiences_router, tags=["experiences"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Trip Draft API", "version": "0.1.0"}
