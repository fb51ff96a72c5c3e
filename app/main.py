import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, settings as default_settings
from app.api import routes
from app.container import Services, build_services
from app.exceptions import BookingError, StorageError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Create the FastAPI app around a set of services"""
    settings = settings or default_settings
    services = services or build_services(settings)

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug
    )
    app.state.services = services

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(routes.router)

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        if isinstance(exc, StorageError):
            logger.error(f"Storage error on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
            return JSONResponse(
                status_code=exc.status_code,
                content={"code": exc.code, "detail": "An internal error occurred, please try again later"},
            )

        content = {"code": exc.code, "detail": exc.message}
        field = getattr(exc, "field", None)
        if field:
            content["field"] = field
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"code": "invalid_data", "detail": jsonable_encoder(exc.errors())},
        )

    @app.on_event("startup")
    async def startup_event():
        """Start the reminder scheduler on app startup"""
        if settings.enable_scheduler:
            services.reminder_scheduler.start()
        logger.info(f"{settings.app_name} started")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop the reminder scheduler on app shutdown"""
        services.reminder_scheduler.stop()
        logger.info(f"{settings.app_name} stopped")

    @app.get("/")
    def read_root():
        return {
            "message": f"Welcome to {settings.app_name}",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
