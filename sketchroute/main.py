"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sketchroute.config import settings
from sketchroute.engine.errors import SketchRouteError

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.sketchroute_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)


async def sketchroute_error_handler(request: Request, exc: SketchRouteError) -> JSONResponse:
    """Render the stable kind + message; underlying exception text stays in the logs."""
    logger.info("%s %s → %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    app = FastAPI(
        title="SketchRoute",
        description="Shape-to-route matching — find real streets that trace a freehand drawing",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SketchRouteError, sketchroute_error_handler)

    # Import all transform and metric modules to trigger registration
    from sketchroute.engine.registry import load_builtins

    load_builtins()

    from sketchroute.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
