# ============================================================================
# HTTP FORWARDING HANDLERS
# ============================================================================
# STATUS: Handler - Forward job payloads to a business HTTP endpoint
# PURPOSE: Call the endpoint, map the response onto a JobOutcome
# CREATED: 17 OCT 2026
# ============================================================================
"""
HTTP Forwarding Handlers

Both strategies POST the same envelope to the configured endpoint:

    {
        "id": "<worker id>",
        "clientTs": "<ISO-8601 UTC>",
        "data": {
            "jobId": "...",
            "processInstanceId": "...",
            "executionId": "...",
            "payload": <resolved payload>
        }
    }

They differ only in how the payload is resolved from the input variable:
    raw   - the whole variable, as a JSON tree (or its plain value)
    path  - a nested value at `payload_path`, or the first property named
            `search_property` anywhere in the tree

Response mapping:
    2xx                          -> Success (status, type, body, headers)
    5xx                          -> Retry
    422 + business error code    -> FinalFailure(BpmnError)
    any other status             -> FinalFailure(Incident)
    transport error / timeout    -> Retry
"""

import logging
import time
from abc import abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from core.config.defaults import get_defaults
from core.config.settings import HttpEndpointSettings
from core.contracts import ResponseKind
from core.models import (
    BpmnError,
    FinalFailure,
    Incident,
    JobOutcome,
    Retry,
    Success,
    TypedValue,
    Variable,
)
from core.serialization import SerializationConfig
from handlers.base import HandlerContext, TaskHandler
from handlers.helpers.json_navigator import JsonNavigator, NotJsonError, PathNotFoundError
from handlers.helpers.response_classifier import extract_headers, interpret, try_parse_json
from handlers.registry import register_strategy

logger = logging.getLogger(__name__)


UNPROCESSABLE_ENTITY = 422


class HttpForwardingHandler(TaskHandler):
    """
    Base class for handlers that forward a payload to an HTTP endpoint.

    Owns one httpx.AsyncClient for its lifetime; call close() on shutdown.
    """

    def __init__(
        self,
        worker_id: str,
        endpoint: HttpEndpointSettings,
        serialization: SerializationConfig,
        navigator: Optional[JsonNavigator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not worker_id:
            raise ValueError("worker_id must be provided")
        if not endpoint.target_url:
            raise ValueError("target_url must be provided")

        self.worker_id = worker_id
        self.endpoint = endpoint
        self.serialization = serialization
        self.navigator = navigator or JsonNavigator(serialization)
        self._client = httpx.AsyncClient(
            timeout=endpoint.timeout_seconds,
            verify=endpoint.verify_ssl,
            transport=transport,
        )

    @abstractmethod
    def resolve_payload(self, ctx: HandlerContext, raw: Optional[TypedValue]) -> Any:
        """Turn the input variable into the value forwarded as data.payload."""

    def build_request_body(self, ctx: HandlerContext, payload: Any) -> Dict[str, Any]:
        return {
            "id": self.worker_id,
            "clientTs": datetime.now(timezone.utc).isoformat(),
            "data": {
                "jobId": ctx.job.id,
                "processInstanceId": ctx.job.process_instance_id,
                "executionId": ctx.job.execution_id,
                "payload": payload,
            },
        }

    async def handle(self, ctx: HandlerContext) -> JobOutcome:
        url = self.endpoint.target_url
        raw = ctx.variable(self.endpoint.input_variable)
        if raw is None:
            logger.warning(
                f"Job {ctx.job_id} has no '{self.endpoint.input_variable}' variable - forwarding null payload"
            )

        payload = self.resolve_payload(ctx, raw)
        body = self.build_request_body(ctx, payload)
        logger.debug(f"Request body for job {ctx.job_id}: {self.serialization.dumps(body)}")

        logger.info(f"Calling external service {url} for job {ctx.job_id}")
        started = time.monotonic()

        try:
            response = await self._client.post(
                url,
                content=self.serialization.dumps(body).encode("utf-8"),
                headers={"Content-Type": "application/json; charset=utf-8"},
            )
        except httpx.TimeoutException as e:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.warning(f"Call to {url} timed out after {elapsed_ms} ms: {e!r}")
            return Retry(f"Call to {url} timed out after {elapsed_ms} ms.")
        except httpx.TransportError as e:
            logger.warning(f"Call to {url} failed: {e!r}")
            return Retry(f"Call to {url} failed: {e}")

        elapsed_ms = int((time.monotonic() - started) * 1000)
        return self.map_response(ctx, response, elapsed_ms)

    def map_response(
        self,
        ctx: HandlerContext,
        response: httpx.Response,
        elapsed_ms: int = 0,
    ) -> JobOutcome:
        """Translate an HTTP response into a JobOutcome."""
        url = self.endpoint.target_url
        status = response.status_code
        body = response.text

        if not response.is_success:
            logger.warning(
                f"External call failed status={status} elapsedMs={elapsed_ms} response={body}"
            )

            if status >= 500:
                return Retry(f"Call to {url} failed with {status}")

            business_error = self._business_error(status, body)
            if business_error is not None:
                return FinalFailure(
                    business_error,
                    f"Business validation failed with code '{business_error.code}'.",
                )

            return FinalFailure(
                Incident(
                    f"HTTP call failed with status {status}",
                    [
                        Variable.integer("httpStatus", status),
                        Variable.string("httpResponse", body),
                    ],
                ),
                f"Call to {url} failed with {status}",
            )

        kind, value = interpret(response.headers.get("content-type"), body)
        value_type = "json" if kind == ResponseKind.JSON else "string"
        headers = extract_headers(response.headers)
        element_id = ctx.element_id

        variables: List[Variable] = [
            Variable.integer(f"{element_id}_statusCode", status),
            Variable.string(f"{element_id}_response_type", kind.value),
            Variable(name=f"{element_id}_response", value=value, type=value_type),
            Variable.json_value(f"{element_id}_headers", headers.to_dict()),
            Variable(name="JsonResponsePayload", value=value, type=value_type),
        ]

        logger.info(
            f"External call succeeded status={status} elapsedMs={elapsed_ms} worker={self.worker_id}"
        )
        return Success(variables)

    def _business_error(self, status: int, body: str) -> Optional[BpmnError]:
        if status != UNPROCESSABLE_ENTITY:
            return None

        ok, tree = try_parse_json(body)
        if not ok or not isinstance(tree, dict):
            return None

        code = tree.get(self.endpoint.business_error_code_field)
        if not isinstance(code, str):
            return None

        message = tree.get(self.endpoint.business_error_message_field)
        if not isinstance(message, str):
            message = get_defaults().endpoint.business_error_fallback_message

        return BpmnError(code, message, [Variable.json_value("businessErrorPayload", tree)])

    async def close(self) -> None:
        await self._client.aclose()


@register_strategy("raw", description="Forward the whole input variable")
class RawPayloadHandler(HttpForwardingHandler):
    """Forwards the input variable as a JSON tree, or its plain value."""

    def resolve_payload(self, ctx: HandlerContext, raw: Optional[TypedValue]) -> Any:
        if raw is None or raw.is_null:
            return None
        try:
            return self.navigator.coerce(raw)
        except NotJsonError:
            return raw.as_tree()


@register_strategy("path", description="Forward a nested value of the input variable")
class PathPayloadHandler(HttpForwardingHandler):
    """Forwards the value at payload_path (or the first search_property match)."""

    def resolve_payload(self, ctx: HandlerContext, raw: Optional[TypedValue]) -> Any:
        if raw is None or raw.is_null:
            return None

        search_property = self.endpoint.search_property
        try:
            if search_property:
                tree = self.navigator.coerce(raw)
                return self.navigator.find_deep(
                    tree,
                    search_property,
                    case_insensitive=self.endpoint.search_case_insensitive,
                )
            return self.navigator.navigate(raw, self.endpoint.payload_path)
        except (NotJsonError, PathNotFoundError) as e:
            logger.warning(f"Payload not found for job {ctx.job_id}: {e}")
            return None


__all__ = [
    "HttpForwardingHandler",
    "RawPayloadHandler",
    "PathPayloadHandler",
]
