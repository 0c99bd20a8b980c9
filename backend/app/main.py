import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import engine
from app.routes import routers
from app.tables import metadata

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Papeleo Contractual API")


def _bootstrap_database() -> None:
    metadata.create_all(bind=engine)


@app.on_event("startup")
def on_startup() -> None:
    if settings.jwt_secret_key == "change-me":
        raise RuntimeError(
            "BACKEND_JWT_SECRET_KEY must be set to a non-default secure value."
        )
    if settings.bootstrap_schema_on_startup:
        _bootstrap_database()
        logger.info("Database schema bootstrapped")
    else:
        logger.info(
            "Schema bootstrap on startup is disabled (BACKEND_BOOTSTRAP_SCHEMA_ON_STARTUP=false)."
        )
    if not settings.telegram_bot_token:
        logger.warning("TELEGRAM_BOT_TOKEN is not configured. The Telegram webhook will fail updates.")


cors_origins = list(settings.cors_origins or [])
allow_all_origins = "*" in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in routers:
    app.include_router(router)
