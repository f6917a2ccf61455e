from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from contextvars import ContextVar

import logging
import uuid

REQUEST_ID_HEADER = "X-Request-ID"

# Request ID of the request currently being served, read by the logging filter
request_id_context: ContextVar[str] = ContextVar("request_id", default="N/A")

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    @classmethod
    def request_id_context(cls):
        return request_id_context

    async def dispatch(self, request: Request, call_next):
        # Reuse the caller's ID (e.g. the storefront proxy) or mint a short one
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        token = request_id_context.set(request_id)

        logger.debug("%s %s request started", request.method, request.url.path)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

        except Exception:
            logger.exception("Unhandled error during request processing.")
            raise

        finally:
            logger.debug("%s %s request finished", request.method, request.url.path)
            request_id_context.reset(token)

        return response
