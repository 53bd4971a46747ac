"""Uniform JSON envelope for user routes: {success, message, data, error}."""
import logging
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def send_success(status_code: int, message: str, data: Optional[Any] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "data": jsonable_encoder(data) if data is not None else None,
            "error": None,
        },
    )


def send_error(status_code: int, message: str, data: Optional[Any] = None) -> JSONResponse:
    logger.warning(message)
    payload = jsonable_encoder(data) if data is not None else None
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "data": payload,
            "error": payload,
        },
    )
