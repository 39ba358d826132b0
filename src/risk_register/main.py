"""FastAPI application for the risk register.

Wires the router, maps register errors to HTTP responses, and writes one
JSON access log line per request.
"""

import json
import logging
import sys
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from risk_register.api.routes import router
from risk_register.config import get_settings
from risk_register.errors import DuplicateRiskError, RiskNotFoundError, ScoreValidationError

logger = logging.getLogger("risk_register")


def setup_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logger.setLevel(level)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Risk Register API",
        version="1.0.0",
        description="Departmental risk register with 5x5 matrix scoring.",
    )
    app.state.settings = settings
    app.include_router(router)

    @app.exception_handler(ScoreValidationError)
    async def score_validation_error(request: Request, exc: ScoreValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "field": exc.field},
        )

    @app.exception_handler(RiskNotFoundError)
    async def risk_not_found(request: Request, exc: RiskNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DuplicateRiskError)
    async def duplicate_risk(request: Request, exc: DuplicateRiskError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.middleware("http")
    async def request_id_and_access_log(request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.time()
        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error", extra={"request_id": request_id})
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal error."},
                headers={"x-request-id": request_id},
            )

        response.headers["x-request-id"] = request_id
        logger.info(
            json.dumps(
                {
                    "event": "access",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": int((time.time() - start) * 1000),
                }
            )
        )
        return response

    return app


app = create_app()
