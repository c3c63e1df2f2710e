import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from placefinder.api.middleware import log_requests
from placefinder.api.routes import categories, health, places
from placefinder.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Placefinder API",
    description="Points of interest from the local store with Google Places fallback",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

if not settings.is_production:
    app.middleware("http")(log_requests)

# Include routers
app.include_router(health.router, prefix="/api")
app.include_router(places.router, prefix="/api", tags=["places"])
app.include_router(categories.router, prefix="/api", tags=["categories"])


@app.on_event("startup")
async def log_startup():
    logger.info(
        "startup complete: env=%s, google places %s",
        settings.environment,
        "configured" if settings.google_maps_api_key else "NOT configured",
    )


@app.get("/")
async def root():
    return {"message": "Placefinder API", "version": "1.0.0"}
