from contextlib import asynccontextmanager

from fastapi import FastAPI

from webpay_processor.api.routes import webpay
from webpay_processor.core.config import get_settings
from webpay_processor.core.logging import configure_logging, get_logger


configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    logger.info(
        "application.startup",
        webpay_environment=settings.webpay_environment,
        commerce_code=settings.webpay_commerce_code,
    )
    yield
    logger.info("application.shutdown")


def create_application() -> FastAPI:
    settings = get_settings()
    application = FastAPI(title=settings.app_name, lifespan=lifespan)
    application.include_router(webpay.router)
    return application


app = create_application()
