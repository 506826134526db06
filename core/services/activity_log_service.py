# =============================================================================
# core/services/activity_log_service.py - Activity Log Publishing
# =============================================================================
# Turns raw request/response facts into a StructuredLogRecord and hands it to
# every registered log sink.
#
# Components:
# - LogSink: anything with handle(record), sync or async
# - LoggingLogSink: default sink, writes one structured log line per record
# - ActivityLogDispatcher: sink registry; delivers each record to each sink
#   on its own asyncio task so sinks never hold up the response
# - ActivityLogPublisher: builds the record and publishes it; never raises
#
# Delivery is in-process only. Records still pending when the process dies
# are lost; drain() flushes them on an orderly shutdown.
#
# Usage:
#   dispatcher = ActivityLogDispatcher()
#   dispatcher.register(LoggingLogSink())
#   publisher = ActivityLogPublisher(dispatcher)
#   publisher.publish_activity(http_method="GET", request_url="/api/users", ...)
# =============================================================================

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Protocol

from core.models.activity_log import StructuredLogRecord

logger = logging.getLogger(__name__)


# =============================================================================
# Sinks
# =============================================================================

class LogSink(Protocol):
    """Receives each published StructuredLogRecord once."""

    def handle(self, record: StructuredLogRecord) -> None | Awaitable[None]:
        ...


class LoggingLogSink:
    """Writes activity records to the application log."""

    def __init__(self, logger_name: str = "activity"):
        self._logger = logging.getLogger(logger_name)

    def handle(self, record: StructuredLogRecord) -> None:
        self._logger.info(record.model_dump_json())


# =============================================================================
# Dispatcher
# =============================================================================

class Subscription:
    """Handle returned by register(); cancel() stops further deliveries."""

    def __init__(self, dispatcher: ActivityLogDispatcher, sink: LogSink):
        self._dispatcher = dispatcher
        self.sink = sink

    def cancel(self) -> None:
        self._dispatcher.unregister(self.sink)


class ActivityLogDispatcher:
    """
    In-process fan-out of activity records to log sinks.

    No ordering is guaranteed across sinks. A sink that raises is logged
    and does not affect the publisher or the other sinks.
    """

    def __init__(self):
        self._sinks: list[LogSink] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def sinks(self) -> list[LogSink]:
        return list(self._sinks)

    def register(self, sink: LogSink) -> Subscription:
        """Add a sink; it receives every record published afterwards."""
        self._sinks.append(sink)
        return Subscription(self, sink)

    def unregister(self, sink: LogSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def publish(self, record: StructuredLogRecord) -> None:
        """
        Deliver a record to every currently registered sink.

        Inside a running event loop each delivery is scheduled as its own
        task and this call returns immediately. Without a loop (worker
        threads, scripts) sinks are called inline.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for sink in list(self._sinks):
            if loop is None:
                self._deliver_inline(sink, record)
                continue
            task = loop.create_task(self._deliver(sink, record))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every delivery scheduled so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver(self, sink: LogSink, record: StructuredLogRecord) -> None:
        try:
            outcome = sink.handle(record)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"Log sink {type(sink).__name__} failed: {e}")

    def _deliver_inline(self, sink: LogSink, record: StructuredLogRecord) -> None:
        try:
            outcome = sink.handle(record)
            if inspect.isawaitable(outcome):
                asyncio.run(outcome)
        except Exception as e:
            logger.error(f"Log sink {type(sink).__name__} failed: {e}")


# =============================================================================
# Publisher
# =============================================================================

def serialize_value(value: Any) -> str:
    """JSON-serialize a request part; absent values become the empty string."""
    return json.dumps(value if value is not None else "")


class ActivityLogPublisher:
    """
    Builds StructuredLogRecords and publishes them.

    Runs after the response is settled, so it must never raise: any failure
    is logged here and the record is dropped.
    """

    def __init__(self, dispatcher: ActivityLogDispatcher):
        self._dispatcher = dispatcher

    def publish_activity(
        self,
        *,
        http_method: str,
        request_url: str,
        controller_name: str,
        handler_name: str,
        elapsed: str,
        status_code: int,
        body: Any = None,
        params: Any = None,
        query: Any = None,
        client_ip: str = "",
        user_agent: str = "",
        consumer_id: str | None = None,
    ) -> StructuredLogRecord | None:
        """
        Build one StructuredLogRecord and publish it.

        Returns:
            The published record, or None when it could not be built
        """
        try:
            record = StructuredLogRecord(
                correlation_consumer_id=consumer_id,
                request_body=serialize_value(body),
                request_params=serialize_value(params),
                request_query=serialize_value(query),
                http_method=http_method,
                request_url=request_url,
                client_ip=client_ip,
                user_agent=user_agent,
                controller_name=controller_name,
                handler_name=handler_name,
                elapsed=elapsed,
                status_code=status_code,
            )
            self._dispatcher.publish(record)
        except Exception as e:
            logger.exception(f"Failed to publish activity log for {http_method} {request_url}: {e}")
            return None

        return record
