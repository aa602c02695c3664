import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from focus_tracker.exceptions import RangeOrderError
from focus_tracker.validation import format_issues

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI):
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        issues = format_issues(exc.errors())
        return JSONResponse(
            status_code=422,
            content={"message": [issue.model_dump() for issue in issues]},
        )

    @app.exception_handler(RangeOrderError)
    async def range_order_handler(request: Request, exc: RangeOrderError):
        return JSONResponse(
            status_code=400,
            content={"message": str(exc)},
        )
