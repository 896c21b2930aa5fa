import asyncio
import time
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ._logging import logger, redact_token
from .config import (
    API_CALL_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ENTITIES,
    TEAMS,
    EntityDescriptor,
)
from .exceptions import DatasourceFailedError, InternalError, handle_transport_errors
from .models import PageRequest
from .pagination import PageResponse, next_cursor

_RECORDS = TypeAdapter(list[dict[str, Any]] | None)


class DatasourceResponse(BaseModel):
    """
    Envelope of a PagerDuty list response.

    The record list sits under an entity specific field (e.g. "teams") and is
    kept in the model extras; see parse_response.
    """

    model_config = ConfigDict(extra="allow", strict=True)

    limit: int = 0
    offset: int = 0
    more: bool = False


def parse_response(
    body: bytes | str,
    entity_external_id: str = TEAMS,
    entities: Mapping[str, EntityDescriptor] = ENTITIES,
) -> tuple[list[dict[str, Any]], str]:
    """
    Decodes a datasource response body into the page records and the next cursor.

    Args:
        body: Raw response body
        entity_external_id: Entity the body was requested for
        entities: Entities supported by the adapter

    Returns:
        The records (empty if the record field is missing) and the cursor of the
        next page (empty when the collection is exhausted)

    Raises:
        InternalError: If the body does not match the expected envelope
    """
    descriptor = entities.get(entity_external_id)
    if descriptor is None:
        raise InternalError(f"No response decoder for entity '{entity_external_id}'.")

    try:
        data = DatasourceResponse.model_validate_json(body)
        extras = data.model_extra or {}
        objects = _RECORDS.validate_python(extras.get(descriptor.response_field))
    except ValidationError as e:
        raise InternalError(
            f"Failed to unmarshal the datasource response: {e.error_count()} validation error(s).",
            original_error=e,
        ) from e

    return objects or [], next_cursor(data.limit, data.offset, data.more)


def build_url(request: PageRequest) -> str:
    return (
        f"{request.base_url}/{request.entity_external_id}"
        f"?limit={request.page_size}&offset={request.cursor}"
    )


def build_headers(request: PageRequest) -> dict[str, str]:
    headers: dict[str, str] = {}
    if request.token:
        # Auth token for Bearer or OAuth2.0 client credentials flow
        headers["Authorization"] = request.token
    return headers


def _non_success_page(request: PageRequest, response: httpx.Response) -> PageResponse:
    page = PageResponse(
        status_code=response.status_code,
        retry_after_header=response.headers.get("Retry-After", ""),
    )
    logger.warning(
        "Datasource returned non-success status",
        extra={
            "entity": request.entity_external_id,
            "operation": "get_page",
            "status_code": page.status_code,
            "retry_after": page.retry_after_header,
        },
    )
    return page


def _decoded_page(
    request: PageRequest,
    status_code: int,
    body: bytes,
    entities: Mapping[str, EntityDescriptor],
) -> PageResponse:
    objects, cursor = parse_response(body, request.entity_external_id, entities)
    logger.info(
        "Page fetched",
        extra={
            "entity": request.entity_external_id,
            "operation": "get_page",
            "status_code": status_code,
            "count": len(objects),
            "next_cursor": cursor,
        },
    )
    return PageResponse(status_code=status_code, objects=objects, next_cursor=cursor)


def _timed_out_message(url: str) -> str:
    return f"Failed to send request to datasource: request to {url} timed out."


def _read_body(response: httpx.Response, url: str, deadline: float) -> bytes:
    # Deadline is checked after every chunk
    body = bytearray()
    try:
        for chunk in response.iter_bytes():
            body.extend(chunk)
            if time.monotonic() > deadline:
                raise DatasourceFailedError(
                    f"Failed to read response body: request to {url} timed out."
                )
    except httpx.HTTPError as e:
        raise DatasourceFailedError(original_error=e) from e
    return bytes(body)


class Datasource:
    """
    Issues page requests against the datasource over a blocking httpx client.

    Each call runs under a single deadline of call_timeout seconds, the lower of
    the client timeout and API_CALL_TIMEOUT_SECONDS, covering both the status
    line and the body. A client can be injected; otherwise one is created and
    owned by this instance.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
        entities: Mapping[str, EntityDescriptor] = ENTITIES,
    ) -> None:
        self.timeout = float(timeout)
        self.entities = entities
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=self.timeout)

    def __enter__(self) -> "Datasource":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def call_timeout(self) -> float:
        return min(self.timeout, API_CALL_TIMEOUT_SECONDS)

    def get_page(self, request: PageRequest) -> PageResponse:
        """
        Fetches one page.

        Non-success HTTP statuses are returned as a PageResponse without records,
        carrying the status code and Retry-After header.

        Raises:
            InternalError: Request could not be built or sent, the status line did
                not arrive before the deadline, or the body is malformed
            DatasourceFailedError: Body could not be read in time after a 200 status
        """
        url = build_url(request)
        logger.debug(
            "Fetching page",
            extra={
                "entity": request.entity_external_id,
                "operation": "get_page",
                "cursor": request.cursor,
                "page_size": request.page_size,
                "token_hash": redact_token(request.token),
            },
        )

        deadline = time.monotonic() + self.call_timeout
        with handle_transport_errors(url):
            with self._client.stream(
                "GET", url, headers=build_headers(request), timeout=self.call_timeout
            ) as response:
                if time.monotonic() > deadline:
                    raise InternalError(_timed_out_message(url))
                if response.status_code != httpx.codes.OK:
                    return _non_success_page(request, response)
                body = _read_body(response, url, deadline)

        return _decoded_page(request, response.status_code, body, self.entities)


class AsyncDatasource:
    """
    asyncio counterpart of Datasource.

    The status line and the body share a deadline of call_timeout seconds.
    Cancelling the calling task aborts the in-flight request; the response is
    closed on every exit path.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
        entities: Mapping[str, EntityDescriptor] = ENTITIES,
    ) -> None:
        self.timeout = float(timeout)
        self.entities = entities
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=self.timeout)

    async def __aenter__(self) -> "AsyncDatasource":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def call_timeout(self) -> float:
        return min(self.timeout, API_CALL_TIMEOUT_SECONDS)

    async def get_page(self, request: PageRequest) -> PageResponse:
        """Fetches one page. Same contract as Datasource.get_page."""
        url = build_url(request)
        logger.debug(
            "Fetching page",
            extra={
                "entity": request.entity_external_id,
                "operation": "get_page",
                "cursor": request.cursor,
                "page_size": request.page_size,
                "token_hash": redact_token(request.token),
            },
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.call_timeout

        with handle_transport_errors(url):
            http_request = self._client.build_request(
                "GET", url, headers=build_headers(request), timeout=self.call_timeout
            )
            try:
                response = await asyncio.wait_for(
                    self._client.send(http_request, stream=True), timeout=self.call_timeout
                )
            except asyncio.TimeoutError as e:
                raise InternalError(_timed_out_message(url), original_error=e) from e

        try:
            if response.status_code != httpx.codes.OK:
                return _non_success_page(request, response)
            try:
                body = await asyncio.wait_for(
                    response.aread(), timeout=max(deadline - loop.time(), 0.0)
                )
            except asyncio.TimeoutError as e:
                raise DatasourceFailedError(
                    f"Failed to read response body: request to {url} timed out.",
                    original_error=e,
                ) from e
            except httpx.HTTPError as e:
                raise DatasourceFailedError(original_error=e) from e
        finally:
            await response.aclose()

        return _decoded_page(request, response.status_code, body, self.entities)
