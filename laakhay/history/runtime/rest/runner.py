"""REST request runner.

An endpoint describes how to turn fetch parameters into a request; an
adapter turns the decoded body into a typed result. The runner performs
the round trip and never retries; retry belongs to the pagination run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Generic, TypeVar

from .http_client import HTTPClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = dict[str, Any]


@dataclass(frozen=True)
class RestEndpointSpec:
    """Request description for one storage endpoint.

    Attributes:
        id: Endpoint name used in logs
        method: HTTP method (the storage API only serves GET)
        build_path: Builds the request path from fetch parameters
        build_query: Builds query parameters (None = no query string)
    """

    id: str
    method: str
    build_path: Callable[[Params], str]
    build_query: Callable[[Params], dict[str, Any]] | None = None

    def __post_init__(self) -> None:
        if self.method.upper() != "GET":
            raise ValueError(f"Unsupported method for {self.id}: {self.method}")


class ResponseAdapter(Generic[T]):
    """Decodes a response body into a typed result."""

    def parse(self, response: Any, params: Params) -> T:
        raise NotImplementedError


class RestRunner:
    """Executes endpoint requests through an HTTPClient."""

    def __init__(self, http: HTTPClient) -> None:
        self._http = http

    async def run(
        self, *, spec: RestEndpointSpec, adapter: ResponseAdapter[T], params: Params
    ) -> T:
        path = spec.build_path(params)
        query = spec.build_query(params) if spec.build_query else None

        started = perf_counter()
        data = await self._http.get(path, params=query)
        logger.debug(
            "rest_request_complete",
            extra={
                "endpoint": spec.id,
                "path": path,
                "latency_ms": (perf_counter() - started) * 1000.0,
            },
        )
        return adapter.parse(data, params)
