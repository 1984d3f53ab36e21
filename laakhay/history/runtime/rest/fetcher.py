"""REST page fetcher for the storage history endpoint.

Architecture:
    RestPageFetcher implements the PageFetcher contract on top of RestRunner:
    - HISTORY_ENDPOINT describes path and query construction
    - HistoryPageAdapter decodes the JSON envelope into a Page
    - HTTPClient classifies transport and status failures

Wire format:
    GET /v2/history/sub-key/{subscribe_key}/channel/{channel}
        ?count=N&reverse=true|false&include_token=true|false[&start=T][&end=T]

    Response: [messages, oldest_token, newest_token]. Messages are bare
    payloads, or {"message": ..., "timetoken": ...} objects when tokens
    were requested. Errors come back as {"status": 4xx, "error": ...}.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from ...core.enums import Direction
from ...core.exceptions import RateLimitError, TerminalFetchError, TransientFetchError
from ...core.timetoken import TimeToken
from ...models import HistoryEvent, Page
from ..pagination.definitions import MAX_PAGE_SIZE
from .http_client import HTTPClient
from .runner import ResponseAdapter, RestEndpointSpec, RestRunner

DEFAULT_ORIGIN = "https://ps.pndsn.com"


def _build_path(params: dict[str, Any]) -> str:
    channel = quote(params["channel"], safe="")
    return f"/v2/history/sub-key/{params['subscribe_key']}/channel/{channel}"


def _build_query(params: dict[str, Any]) -> dict[str, Any]:
    query: dict[str, Any] = {
        "count": params["count"],
        "reverse": "true" if params["direction"] is Direction.FORWARD else "false",
        "include_token": "true" if params["include_time_token"] else "false",
    }
    if params.get("start") is not None:
        query["start"] = str(params["start"])
    if params.get("end") is not None:
        query["end"] = str(params["end"])
    return query


HISTORY_ENDPOINT = RestEndpointSpec(
    id="history",
    method="GET",
    build_path=_build_path,
    build_query=_build_query,
)


def _envelope_token(value: Any) -> TimeToken | None:
    # The service reports 0 for the bounds of an empty page
    if value in (None, 0, "0"):
        return None
    try:
        return TimeToken(int(value))
    except (TypeError, ValueError) as e:
        raise TerminalFetchError(f"Invalid time token in response: {value!r}") from e


def _decode_event(item: Any, include_time_token: bool) -> HistoryEvent:
    if include_time_token and isinstance(item, dict) and "message" in item:
        token = item.get("timetoken")
        return HistoryEvent(
            payload=item["message"],
            time_token=_envelope_token(token),
        )
    return HistoryEvent(payload=item)


def decode_page(payload: Any, include_time_token: bool) -> Page:
    """Decode one history response body into a Page.

    Args:
        payload: Decoded JSON body
        include_time_token: Whether tokens were requested

    Returns:
        Decoded page, oldest event first

    Raises:
        RateLimitError: Error envelope with status 429
        TransientFetchError: Error envelope with a 5xx status
        TerminalFetchError: Any other error envelope or a malformed body
    """
    if isinstance(payload, dict):
        status = payload.get("status")
        # Some envelopes carry "error": true next to the text in "message"
        error = payload.get("error")
        if not isinstance(error, str) or not error:
            error = None
        message = error or payload.get("message") or "history request failed"
        if status == 429:
            raise RateLimitError(str(message))
        if isinstance(status, int) and status >= 500:
            raise TransientFetchError(str(message), status_code=status)
        raise TerminalFetchError(
            str(message), status_code=status if isinstance(status, int) else None
        )

    if not isinstance(payload, list) or len(payload) < 3 or not isinstance(payload[0], list):
        raise TerminalFetchError(f"Malformed history response: {str(payload)[:200]}")

    messages, oldest, newest = payload[0], payload[1], payload[2]
    events = tuple(_decode_event(item, include_time_token) for item in messages)
    if not events:
        return Page.empty()
    return Page(
        events=events,
        oldest_token=_envelope_token(oldest),
        newest_token=_envelope_token(newest),
    )


class HistoryPageAdapter(ResponseAdapter[Page]):
    """Adapter for history responses."""

    def parse(self, response: Any, params: dict[str, Any]) -> Page:
        return decode_page(response, params["include_time_token"])


class RestPageFetcher:
    """PageFetcher backed by the storage REST API."""

    def __init__(
        self,
        http: HTTPClient,
        subscribe_key: str,
        *,
        endpoint: RestEndpointSpec = HISTORY_ENDPOINT,
        adapter: ResponseAdapter[Page] | None = None,
    ) -> None:
        if not subscribe_key:
            raise ValueError("subscribe_key must be a non-empty string")
        self._http = http
        self._runner = RestRunner(http)
        self._subscribe_key = subscribe_key
        self._endpoint = endpoint
        self._adapter = adapter or HistoryPageAdapter()

    async def fetch(
        self,
        *,
        channel: str,
        start: TimeToken | None,
        end: TimeToken | None,
        count: int,
        direction: Direction,
        include_time_token: bool,
    ) -> Page:
        if not channel or not isinstance(channel, str):
            raise TerminalFetchError("Channel must be a non-empty string")
        if not 1 <= count <= MAX_PAGE_SIZE:
            raise TerminalFetchError(f"count must be between 1 and {MAX_PAGE_SIZE}, got {count}")

        params = {
            "subscribe_key": self._subscribe_key,
            "channel": channel,
            "start": start,
            "end": end,
            "count": count,
            "direction": direction,
            "include_time_token": include_time_token,
        }
        return await self._runner.run(spec=self._endpoint, adapter=self._adapter, params=params)

    async def close(self) -> None:
        await self._http.close()
