from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from zenqa.config import get_settings
from zenqa.api import routes_automation, routes_generate, routes_realtime, routes_stories

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: make sure the CSV data directory exists
    data_path = get_settings().get_data_path()
    data_path.mkdir(parents=True, exist_ok=True)
    logger.info("Storing CSV tables and generated sources in %s", data_path.resolve())
    yield


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_title,
    description="User story to test cases, test steps and Playwright automation code",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS for the browser frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes_generate.router)
app.include_router(routes_stories.router)
app.include_router(routes_automation.router)
app.include_router(routes_realtime.router)

if settings.static_dir:
    app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")


@app.get("/", include_in_schema=False)
async def root():
    return {"status": "ok", "health": "/health"}


@app.get("/health")
async def health():
    return {"status": "ok", "service": settings.app_title}
