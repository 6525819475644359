"""
FastAPI middleware for logging API requests and responses.

Uses pure ASGI middleware (not BaseHTTPMiddleware) so upload bodies are
passed through untouched.

Logged per request:
- method, path, query params, client, status code, duration
- JSON request/response bodies with sensitive keys masked
- multipart and other binary bodies only by size
"""

import json
import logging
import time
import uuid
from typing import Dict, List, Optional
from urllib.parse import parse_qsl
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG_LENGTH = 5000
TEXT_CONTENT_TYPES = ("application/json", "text/", "application/x-www-form-urlencoded")


def _headers(raw: List) -> Dict[str, str]:
    return {
        k.decode("utf-8", errors="ignore").lower(): v.decode("utf-8", errors="ignore")
        for k, v in raw
    }


def _is_text(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith(TEXT_CONTENT_TYPES)


class _BodyCapture:
    """Keeps text bodies for logging; binary bodies are only counted."""

    def __init__(self, content_type: Optional[str] = None):
        self.content_type = content_type
        self.size = 0
        self.chunks: List[bytes] = []

    def add(self, chunk: bytes) -> None:
        self.size += len(chunk)
        if _is_text(self.content_type):
            self.chunks.append(chunk)

    def describe(self) -> Optional[str]:
        """Masked JSON, truncated text, or just the size for anything binary."""
        if not self.size:
            return None
        if not _is_text(self.content_type):
            return f"<{self.content_type or 'unknown'} body, {self.size} bytes>"
        return _describe_text(b"".join(self.chunks))


def _describe_text(body: bytes) -> str:
    text = body.decode("utf-8", errors="ignore")
    try:
        payload = filter_sensitive_data(json.loads(text))
        text = json.dumps(payload, ensure_ascii=False)
    except json.JSONDecodeError:
        pass
    return truncate_large_data(text, max_length=MAX_BODY_LOG_LENGTH)


def _error_reason(body_text: Optional[str]) -> Optional[str]:
    """The ``message`` (or ``detail``) of an error body."""
    if not body_text:
        return None
    try:
        payload = json.loads(body_text)
    except json.JSONDecodeError:
        return truncate_large_data(body_text, max_length=500)
    if isinstance(payload, dict):
        for key in ("message", "detail", "error"):
            if payload.get(key):
                return str(payload[key])
    return truncate_large_data(body_text, max_length=500)


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log all API requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Initialize the logging middleware.

        Args:
            app: The ASGI application
            exclude_paths: Paths that are passed through without logging
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = uuid.uuid4().hex[:12]
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        request_headers = _headers(scope.get("headers", []))
        query_string = scope.get("query_string", b"").decode("utf-8", errors="ignore")
        client = scope.get("client")

        request_body_capture = _BodyCapture(request_headers.get("content-type"))
        response_body_capture = _BodyCapture()
        response_meta: Dict = {"status": 0}

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_body_capture.add(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_meta["status"] = message.get("status", 0)
                response_body_capture.content_type = _headers(message.get("headers", [])).get("content-type")
            elif message["type"] == "http.response.body":
                response_body_capture.add(message.get("body", b""))
            await send(message)

        logger.info(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "query_params": filter_sensitive_data(dict(parse_qsl(query_string))) if query_string else None,
                "client": client[0] if client else None,
                "user_agent": request_headers.get("user-agent"),
            }}
        )

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path} - {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        status_code = response_meta["status"]
        request_body = request_body_capture.describe()
        response_body = response_body_capture.describe()
        error_reason = _error_reason(response_body) if status_code >= 400 else None

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if error_reason:
            message += f" | error_reason={error_reason}"

        logger.log(
            log_level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "request_body": request_body,
                "response_body": response_body if logger.isEnabledFor(logging.DEBUG) else None,
                "error_reason": error_reason,
            }}
        )
