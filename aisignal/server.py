"""HTTP boundary: a single POST endpoint in front of SignalService."""

import math
import re

from aiohttp import web

from aisignal.errors import (
    InternalError,
    RateLimitError,
    SignalServiceError,
    ValidationError,
)
from aisignal.service import SignalService
from aisignal.utils.logger import get_logger, new_request_id, request_context

logger = get_logger(__name__)

SERVICE_KEY = web.AppKey("service", SignalService)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID = re.compile(r"^[A-Za-z0-9-]{1,64}$")


@web.middleware
async def request_context_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Tag every log line of a request with its id and echo the id back."""
    request_id = request.headers.get(REQUEST_ID_HEADER, "")
    if not _REQUEST_ID.match(request_id):
        request_id = new_request_id()

    with request_context(request_id, method=request.method, path=request.path):
        response = await handler(request)
        logger.info("Request handled", status=response.status)

    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Map pipeline errors to HTTP responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except RateLimitError as e:
        return web.json_response(
            {"error": e.message},
            status=e.status,
            headers={"Retry-After": str(math.ceil(e.retry_after))},
        )
    except InternalError as e:
        logger.error("Processing error", error=e.message)
        return web.json_response(
            {"error": "Processing failed", "message": e.message}, status=500
        )
    except SignalServiceError as e:
        return web.json_response({"error": e.message}, status=e.status)
    except Exception as e:
        logger.exception("Processing error", error=str(e))
        return web.json_response(
            {"error": "Processing failed", "message": str(e)}, status=500
        )


async def handle_signal(request: web.Request) -> web.Response:
    """Classify the snapshot in the request body."""
    if request.method != "POST":
        return web.Response(
            status=405, text="Method Not Allowed", headers={"Allow": "POST"}
        )

    service = request.app[SERVICE_KEY]
    service.authenticate(request.headers.get("x-api-key"))
    service.admit()

    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON") from None

    signal = await service.process(payload)
    return web.json_response(service.response_body(signal))


async def _close_service(app: web.Application) -> None:
    await app[SERVICE_KEY].close()


def create_app(service: SignalService) -> web.Application:
    """Build the aiohttp application around a service instance."""
    app = web.Application(middlewares=[request_context_middleware, error_middleware])
    app[SERVICE_KEY] = service
    app.router.add_route("*", "/{tail:.*}", handle_signal)
    app.on_cleanup.append(_close_service)
    return app
