import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cms_api.config import settings
from cms_api.database import engine
from cms_api.errors import register_exception_handlers
from cms_api.logging_config import setup_logging
from cms_api.media import MediaClient
from cms_api.middleware import RequestLoggingMiddleware
from cms_api.routers import articles, categories, heroes, photography, quotes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    app.state.media = MediaClient.from_settings()
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME is not set; image uploads will fail")
    logger.info("cms-api started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await app.state.media.aclose()
    await engine.dispose()


app = FastAPI(
    title="CMS API",
    description="Content backend for categories, articles, photography, quotes and hero banners",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "X-Content-Range"],
)

register_exception_handlers(app)

# Routers
app.include_router(categories.router)
app.include_router(articles.router)
app.include_router(photography.router)
app.include_router(quotes.router)
app.include_router(heroes.router)


@app.get("/")
async def root():
    return {"success": True, "message": "cms-api is running", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
