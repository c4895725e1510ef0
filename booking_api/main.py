import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from booking_api.api.routes import appointments, auth, slots
from booking_api.core.config import Settings, _ENV_FILE
from booking_api.core.db import build_engine, build_session_maker
from booking_api.core.errors import BookingError
from booking_api.services.payment_gateway import RazorpayClient

logger = logging.getLogger(__name__)


def configure_logging(env: str) -> None:
    if env != "production":
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
        )


def _cors_headers(settings: Settings, origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
    }
    if origin and origin in settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = origin
    elif settings.cors_origins_list:
        headers["Access-Control-Allow-Origin"] = settings.cors_origins_list[0]
    return headers


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors or any(e.get("type") == "missing" for e in errors):
        return "Required fields are missing"
    first = errors[0]
    msg = str(first.get("msg", "Invalid request"))
    return msg.removeprefix("Value error, ")


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    settings: Settings = request.app.state.settings
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=_cors_headers(settings, request.headers.get("origin")),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; run with ``uvicorn booking_api.main:create_app --factory``."""
    settings = settings or Settings()
    configure_logging(settings.env)

    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
        if not settings.razorpay_key_id or not settings.razorpay_key_secret:
            logger.warning("Razorpay: NOT configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET")
        if not settings.admin_login_enabled:
            logger.warning("Admin login: NOT configured. Set ADMIN_PASSWORD_HASH")
        yield
        await engine.dispose()

    app = FastAPI(
        title="Appointment Booking API",
        description="Slot booking with Razorpay payment verification and an admin surface",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = build_session_maker(engine)
    app.state.payment_gateway = RazorpayClient(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    app.include_router(auth.router, prefix="/api")
    app.include_router(slots.router, prefix="/api")
    app.include_router(appointments.router, prefix="/api")

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        return _error_response(request, exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(request, 400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return the error in JSON; include CORS so 500 responses are not blocked by browser."""
        logger.exception("Unhandled exception: %s", exc)
        return _error_response(request, 500, f"{type(exc).__name__}: {exc}")

    @app.get("/health")
    async def health() -> dict:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database = "connected"
        except Exception as e:
            logger.warning("Health check: database unreachable: %s", e)
            database = "disconnected"
        return {"status": "ok", "database": database}

    return app
