"""
Request middleware: request ids, body size limits and access logging.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from sublets.services.error_handler import ErrorHandlerService
from sublets.utils.exceptions import APIException, BadRequestError, PayloadTooLargeError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ValidationMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id, rejects oversized bodies and logs
    each request and response.

    A client-supplied X-Request-ID is reused so log lines can be matched
    across services; the id is echoed back and placed on request.state
    for the error handlers.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 10 * 1024 * 1024,
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = self._request_id(request)
        request.state.request_id = request_id

        start_time = time.time()

        try:
            self._validate_request_size(request)
        except APIException as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        if self.enable_request_logging:
            self._log_request(request, request_id)

        response = await call_next(request)

        if self.enable_request_logging:
            self._log_response(request, response, request_id, time.time() - start_time)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _request_id(self, request: Request) -> str:
        supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if supplied and len(supplied) <= 64:
            return supplied
        return str(uuid.uuid4())[:8]

    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If content-length is not a number
            PayloadTooLargeError: If the declared body exceeds the limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return
        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")
        if size > self.max_request_size:
            raise PayloadTooLargeError(size, self.max_request_size)

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _log_request(self, request: Request, request_id: str) -> None:
        logger.info(
            f"Request [{request_id}]: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": self._get_client_ip(request),
            }
        )

    def _log_response(
        self,
        request: Request,
        response: Response,
        request_id: str,
        processing_time: float
    ) -> None:
        logger.info(
            f"Response [{request_id}]: {response.status_code} - {processing_time:.3f}s",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "processing_time": processing_time,
                "path": request.url.path,
                "method": request.method
            }
        )
