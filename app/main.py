from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config.settings import Settings, settings
from app.middlewares import RequestIDMiddleware
from app.routers import notifications_router, users_router
from app.routers.users import close_user_directory
from app.utils.errors import setup_error_handlers
from app.utils.logging import get_logger

logger = get_logger()


@asynccontextmanager
async def lifespan(application: FastAPI):
    logger.info(
        f"{application.title} accepting jobs for queue "
        f"'{settings.NOTIFICATION_QUEUE_NAME}' ({settings.ENVIRONMENT})"
    )
    yield
    await close_user_directory()
    logger.info(f"{application.title} stopped")


def create_application(app_settings: Settings = settings) -> FastAPI:
    """Build the producer-side API. Delivery itself runs in the Celery worker."""
    application = FastAPI(
        title=app_settings.NAME, version=app_settings.VERSION, lifespan=lifespan
    )
    setup_error_handlers(application)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    # Added last so it wraps CORS and every response carries the id.
    application.add_middleware(RequestIDMiddleware)

    application.include_router(
        notifications_router,
        prefix=f"{app_settings.API_PREFIX}/notifications",
        tags=["Notifications"],
    )
    application.include_router(
        users_router,
        prefix=f"{app_settings.API_PREFIX}/users",
        tags=["Users"],
    )
    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, log_config=None)
