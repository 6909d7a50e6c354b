import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront_payments.config import Settings
from storefront_payments.database import Base, make_engine, make_session_factory
from storefront_payments.errors import PaymentError
from storefront_payments.razorpay_service import RazorpayClient
from storefront_payments.routes import router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, gateway: Optional[RazorpayClient] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = make_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=engine)
        logger.info(
            "Payments backend started: environment=%s razorpay_mode=%s configured=%s",
            settings.environment, settings.razorpay_mode, settings.razorpay_configured,
        )
        yield
        app.state.gateway.close()
        engine.dispose()

    app = FastAPI(title="Storefront Payment Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.gateway = gateway or RazorpayClient(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PaymentError)
    async def payment_error_handler(request: Request, exc: PaymentError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request body", "details": details},
        )

    app.include_router(router)
    return app


app = create_app()
