# api/exception_handlers.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import logger
from exceptions import BrokerDeskError


def _error_body(message: str, data=None) -> dict:
    body = {"success": False, "error": message}
    if data is not None:
        body["data"] = data
    return body


async def brokerdesk_error_handler(request: Request, exc: BrokerDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[{request.method} {request.url.path}] {exc.message}")
    else:
        logger.warning(f"[{request.method} {request.url.path}] {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.data))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Internals stay in the server log
    logger.exception(f"[{request.method} {request.url.path}] Unhandled error: {exc}")
    return JSONResponse(status_code=500, content=_error_body("Internal server error"))


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BrokerDeskError, brokerdesk_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
