from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from .config import Settings, get_settings
from .db import build_engine, build_sessionmaker, lifespan_db
from .errors import OtpError, otp_error_handler, validation_error_handler
from .api.routers import health as health_router
from .api.routers import otp as otp_router
from .api.routers import twilio as twilio_router
from .api.routers import metrics as metrics_router
from .observability.logging import setup_logging
from .observability.metrics import MetricsHTTPMiddleware
from .middleware.request_context import RequestContextMiddleware
from .services.sms import TwilioSMSService


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with lifespan_db(app.state.engine):
        yield


def create_app(settings: Optional[Settings] = None, sms_service: Optional[TwilioSMSService] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.sessionmaker = build_sessionmaker(app.state.engine)
    app.state.sms_service = sms_service or TwilioSMSService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    # then the custom middlewares
    app.add_middleware(RequestContextMiddleware, request_id_header=settings.REQUEST_ID_HEADER)
    app.add_middleware(MetricsHTTPMiddleware)

    app.add_exception_handler(OtpError, otp_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health_router.router)
    app.include_router(otp_router.router)
    app.include_router(twilio_router.router)
    app.include_router(metrics_router.router)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("findme_otp.main:app", host=settings.APP_HOST, port=settings.APP_PORT, reload=settings.DEBUG)
