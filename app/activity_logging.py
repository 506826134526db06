# =============================================================================
# app/activity_logging.py - Request Activity Logging
# =============================================================================
# ActivityLoggingRoute wraps every endpoint of the routers that use it:
#
#   router = APIRouter(route_class=ActivityLoggingRoute)
#
# For each request it captures the request facts, times the endpoint and
# publishes exactly one StructuredLogRecord, on success or on failure, through
# the ActivityLogPublisher stored on app.state. Failures are re-raised
# unchanged so the exception handlers still build the response.
# =============================================================================

import json
import logging
import time
from typing import Any, Callable, Coroutine

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.datastructures import QueryParams

from app.exceptions import status_code_for_exception

logger = logging.getLogger(__name__)


def format_elapsed(started: float, error: BaseException | None = None) -> str:
    """
    Describe the time spent since `started` (a perf_counter reading).

    Example: "After... 12ms" or "After... 12ms -ValueError: boom"
    """
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    description = f"After... {elapsed_ms}ms"
    if error is not None:
        description += f" -{type(error).__name__}: {error}"
    return description


async def read_body(request: Request) -> Any:
    """
    Return the request body as already-parsed data.

    JSON bodies are decoded, other bodies are returned as text, empty bodies
    as None. The body is cached on the request, so the endpoint still sees it.
    """
    raw = await request.body()
    if not raw:
        return None

    text = raw.decode("utf-8", errors="replace")
    if "json" in request.headers.get("content-type", "").lower():
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    return text


def query_dict(query_params: QueryParams) -> dict[str, str | list[str]]:
    """
    Flatten query params into a dict, keeping every value of repeated keys.

    Example: ?tag=a&tag=b&page=2 -> {"tag": ["a", "b"], "page": "2"}
    """
    result: dict[str, str | list[str]] = {}
    for key, value in query_params.multi_items():
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]
    return result


class ActivityLoggingRoute(APIRoute):
    """APIRoute that publishes one activity record per handled request."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()
        controller_name = self.endpoint.__module__.rsplit(".", 1)[-1]
        handler_name = self.endpoint.__name__

        async def activity_logging_route_handler(request: Request) -> Response:
            started = time.perf_counter()
            body = None

            try:
                # Inside the try: a failed body read (e.g. ClientDisconnect) is still logged
                body = await read_body(request)
                response = await original_route_handler(request)
            except Exception as exc:
                _publish(
                    request,
                    body=body,
                    controller_name=controller_name,
                    handler_name=handler_name,
                    elapsed=format_elapsed(started, exc),
                    status_code=status_code_for_exception(exc),
                )
                logger.error(f"{request.method} {request.url.path} failed: {exc}")
                raise

            _publish(
                request,
                body=body,
                controller_name=controller_name,
                handler_name=handler_name,
                elapsed=format_elapsed(started),
                status_code=response.status_code,
            )
            return response

        return activity_logging_route_handler


def _publish(
    request: Request,
    *,
    body: Any,
    controller_name: str,
    handler_name: str,
    elapsed: str,
    status_code: int,
) -> None:
    publisher = getattr(request.app.state, "activity_log_publisher", None)
    if publisher is None:
        logger.warning("No activity log publisher configured; request not logged")
        return

    settings = getattr(request.app.state, "settings", None)
    consumer_header = settings.CONSUMER_ID_HEADER if settings is not None else "X-Consumer-ID"

    publisher.publish_activity(
        http_method=request.method,
        request_url=request.url.path,
        controller_name=controller_name,
        handler_name=handler_name,
        elapsed=elapsed,
        status_code=status_code,
        body=body,
        params=dict(request.path_params),
        query=query_dict(request.query_params),
        client_ip=request.client.host if request.client else "",
        user_agent=request.headers.get("user-agent", ""),
        consumer_id=request.headers.get(consumer_header),
    )
