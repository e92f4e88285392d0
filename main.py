import os
import sys
from pathlib import Path
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
import config
from logger_config import setup_logger, set_console_level
from app.routes.file_routes import router, NOT_FOUND
from app.services.storage_manager import StorageManager
from app.services.upload_log import UploadLog

# Logger setup
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await app.state.storage_manager.initialize()
    yield


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Routes answer a single method; a wrong method reads as a missing page
    if exc.status_code in (404, 405):
        return PlainTextResponse(NOT_FOUND, status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def create_app(settings: config.Settings) -> FastAPI:
    """Build the application around an already loaded, immutable settings value."""
    app = FastAPI(title="HTTP Upload Server", lifespan=lifespan)
    app.state.settings = settings
    app.state.storage_manager = StorageManager(Path(settings.upload_dir))
    app.state.upload_log = UploadLog(Path(settings.log_file), settings.log_timestamp)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.include_router(router)
    return app


def main():
    config_path = os.environ.get(config.CONFIG_ENV_VAR, config.CONFIG_FILE)
    try:
        settings = config.load_settings(config_path)
    except config.ConfigError as e:
        logger.error(f"Unable to load configuration: {str(e)}")
        sys.exit(1)

    set_console_level(settings.log_level)

    upload_dir = Path(settings.upload_dir)
    try:
        upload_dir.mkdir(exist_ok=True, parents=True)
    except OSError as e:
        logger.error(f"Unable to create upload directory {upload_dir}: {str(e)}")
        sys.exit(1)

    app = create_app(settings)

    logger.info("Starting HTTP Upload Server...")
    logger.info(f"Upload directory: {upload_dir}")
    logger.info(f"Upload log: {settings.log_file}")
    logger.info(f"Maximum upload size: {settings.max_upload_size / (1024*1024):.2f} MB")
    logger.info(f"Listening on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
