# app/api/errors.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from app.domain.errors import ShopError
from app.domain.schemas import ErrorDetail, ErrorResponse
from app.utils.logging import get_logger

logger = get_logger("app.api.errors")


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def handle_shop_error(request: Request, exc: ShopError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code} ({exc.message})")
    return _error_response(exc.status_code, exc.code, exc.message)


async def handle_infrastructure_fault(request: Request, exc: Exception) -> JSONResponse:
    #details stay in the log, the client gets a generic message
    logger.error(f"{request.method} {request.url.path} infrastructure fault: {exc}", exc_info=exc)
    return _error_response(500, "infrastructure_fault", "Internal error, please try again later")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopError, handle_shop_error)
    app.add_exception_handler(SQLAlchemyError, handle_infrastructure_fault)
    app.add_exception_handler(RedisError, handle_infrastructure_fault)
