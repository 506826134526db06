# =============================================================================
# core/models/activity_log.py - Structured Activity Log Record
# =============================================================================
# One StructuredLogRecord describes one completed (successful or failed)
# request/response cycle. Records are immutable once built and are handed to
# every registered log sink exactly once.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field


class StructuredLogRecord(BaseModel):
    """
    Normalized shape of one logged request/response cycle.

    Body, params and query are stored already JSON-serialized so sinks can
    write them out verbatim.

    Example:
        {
            "correlation_consumer_id": null,
            "request_body": "{\"name\": \"Ann\", \"email\": \"ann@x.com\", \"age\": 30}",
            "request_params": "{}",
            "request_query": "{}",
            "http_method": "POST",
            "request_url": "/api/users",
            "client_ip": "127.0.0.1",
            "user_agent": "curl/8.5.0",
            "controller_name": "users",
            "handler_name": "create_user",
            "elapsed": "After... 12ms",
            "status_code": 201
        }
    """

    model_config = ConfigDict(frozen=True)

    # Caller identity, when the consumer header was sent
    correlation_consumer_id: str | None = Field(
        default=None,
        description="Identity of the calling consumer"
    )

    request_body: str = Field(default='""', description="JSON-serialized request body")
    request_params: str = Field(default='""', description="JSON-serialized path params")
    request_query: str = Field(default='""', description="JSON-serialized query params")

    http_method: str = Field(..., description="HTTP method, e.g. GET")
    request_url: str = Field(..., description="Request path")
    client_ip: str = Field(default="", description="Client IP address")
    user_agent: str = Field(default="", description="User-Agent header")

    # Which router module and which endpoint handled the request
    controller_name: str = Field(..., description="Handling component")
    handler_name: str = Field(..., description="Handling operation")

    elapsed: str = Field(
        ...,
        description="Human-readable duration with an optional error suffix"
    )

    status_code: int = Field(..., description="Final HTTP status code")

    @property
    def failed(self) -> bool:
        """True when the elapsed description carries an error suffix."""
        return " -" in self.elapsed
