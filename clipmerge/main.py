"""FastAPI application serving the intake and status endpoints."""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from clipmerge import __version__
from clipmerge.api.routes import (
    clipmerge_exception_handler,
    generic_exception_handler,
    router,
    validation_exception_handler,
)
from clipmerge.config import get_settings
from clipmerge.utils.errors import ClipMergeError
from clipmerge.utils.log import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="clipmerge", version=__version__)

    app.include_router(router)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ClipMergeError, clipmerge_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Video processor listening on {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
