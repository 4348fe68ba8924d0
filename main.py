import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wardaqi.core.config import CACHE_DURATION, CORS_ORIGINS, LOG_LEVEL, openaq_api_key
from wardaqi.routes import register_routes
from wardaqi.services.cache import TTLCache

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("wardaqi")

if not openaq_api_key:
    logger.warning("OPENAQ_API_KEY not set, /stations and /wards/aqi/live will fail")


def create_app() -> FastAPI:
    app = FastAPI(title="ward aqi backend")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.station_cache = TTLCache(CACHE_DURATION)
    register_routes(app)
    return app


app = create_app()
