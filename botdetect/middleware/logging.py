"""
Structured Logging Middleware for the Behavior Collection API
Provides JSON-formatted logs with request context
"""

import json
import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from botdetect.config import settings
from botdetect.utils.request import get_client_ip


logger = logging.getLogger("botdetect.http")

# extra 필드 중 JSON 로그에 포함할 키
CONTEXT_FIELDS = (
    "request_id",
    "endpoint",
    "http_method",
    "status_code",
    "response_time",
    "client_ip",
    "user_agent",
    "session_id",
    "error_code",
)


class JSONFormatter(logging.Formatter):
    """Custom formatter to output logs in JSON format"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "@timestamp": self.formatTime(record, self.datefmt),
            "service": "behavior-api",
            "environment": settings.ENV,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stack_trace": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, default=str)


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """
    루트 로거 설정

    json: JSONFormatter (로그 수집기용), text: 사람이 읽는 포맷
    """
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root.handlers = [handler]


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add structured logging with request context

    Features:
    - Request ID generation (X-Request-ID)
    - Request/response logging
    - Response time tracking
    - Client IP and User-Agent logging
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        client_ip = get_client_ip(request)
        user_agent = request.headers.get("user-agent", "unknown")

        start_time = time.time()

        logger.debug(
            f"Incoming request: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "endpoint": request.url.path,
                "http_method": request.method,
                "client_ip": client_ip,
                "user_agent": user_agent,
            },
        )

        try:
            response = await call_next(request)
        except Exception:
            response_time = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "endpoint": request.url.path,
                    "http_method": request.method,
                    "status_code": 500,
                    "response_time": response_time,
                    "client_ip": client_ip,
                },
            )
            raise

        response_time = (time.time() - start_time) * 1000  # ms
        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "endpoint": request.url.path,
                "http_method": request.method,
                "status_code": response.status_code,
                "response_time": response_time,
                "client_ip": client_ip,
            },
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{response_time:.2f}ms"
        return response
