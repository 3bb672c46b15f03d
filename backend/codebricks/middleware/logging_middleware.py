"""
FastAPI middleware for logging API requests and responses.

Uses pure ASGI middleware (not BaseHTTPMiddleware) so request bodies can be
observed without consuming them.

This middleware logs:
- Request: method, path, query params, JSON body (multipart uploads are summarized)
- Response: status code, processing time, body
- Filters sensitive data (tokens, passwords) and inline media (data URIs)
"""

import json
import logging
import time
from typing import Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, redact_data_uris, truncate_large_data

logger = logging.getLogger(__name__)

_MAX_LOGGED_BODY = 5000


def _sanitize_body(data: bytes) -> str:
    """Decode a body, filter sensitive fields if it is JSON, and truncate it."""
    text = data.decode("utf-8", errors="ignore")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return truncate_large_data(redact_data_uris(text), max_length=_MAX_LOGGED_BODY)
    filtered = filter_sensitive_data(payload)
    return truncate_large_data(json.dumps(filtered, ensure_ascii=False), max_length=_MAX_LOGGED_BODY)


def _extract_error_reason(response_text: str) -> Optional[str]:
    """Pull the description out of an error body produced by the API."""
    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError:
        return truncate_large_data(response_text, max_length=500) if response_text else None
    if isinstance(payload, dict):
        for key in ("description", "detail", "error"):
            value = payload.get(key)
            if value:
                return truncate_large_data(str(value), max_length=500)
    return None


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log API requests and responses."""

    def __init__(self, app: ASGIApp, exclude_paths: Optional[list] = None):
        """
        Args:
            app: The ASGI application
            exclude_paths: Paths logged without bodies (e.g., ["/health"])
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = id(scope)
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        headers = {
            k.decode("latin-1"): v.decode("latin-1")
            for k, v in scope.get("headers", [])
        }
        is_multipart = headers.get("content-type", "").startswith("multipart/")
        client = scope.get("client")

        body_chunks: list[bytes] = []
        response_chunks: list[bytes] = []
        status_code = 0

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request" and not is_multipart:
                body_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body":
                response_chunks.append(message.get("body", b""))
            await send(message)

        logger.debug(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "client": client[0] if client else None,
                "user_agent": headers.get("user-agent"),
            }}
        )

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if is_multipart:
            request_body = f"<multipart {headers.get('content-length', '?')} bytes>"
        else:
            request_body = _sanitize_body(b"".join(body_chunks)) if body_chunks else None
        response_body = _sanitize_body(b"".join(response_chunks)) if response_chunks else None
        error_reason = _extract_error_reason(response_body or "") if status_code >= 400 else None

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
                "response_body": response_body,
                "error_reason": error_reason,
            }}
        )
