from collections.abc import Mapping
from typing import Any

import httpx

from ._logging import logger
from .config import ENTITIES, DatasourceConfig, EntityDescriptor
from .datasource import AsyncDatasource, Datasource
from .models import GetPageRequest, PageRequest
from .pagination import PageResponse
from .validation import validate_get_page_request


class Adapter:
    """
    Entry point used by the host synchronization engine.

    Validates each GetPage request, then fetches the page from the datasource.
    The host calls get_page repeatedly, feeding back next_cursor, until the
    cursor comes back empty.

    Usage:
        with Adapter() as adapter:
            page = adapter.get_page(request)
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        entities: Mapping[str, EntityDescriptor] = ENTITIES,
    ) -> None:
        self.entities = entities
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client()

    def __enter__(self) -> "Adapter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def get_page(self, request: GetPageRequest) -> PageResponse:
        """
        Raises:
            AdapterError: On validation, transport or decoding failures
        """
        validate_get_page_request(request, self.entities)
        config = request.config or DatasourceConfig()

        logger.info(
            "Requesting page",
            extra={
                "entity": request.entity.external_id,
                "operation": "get_page",
                "cursor": request.cursor,
            },
        )
        datasource = Datasource(
            timeout=config.timeout, client=self._client, entities=self.entities
        )
        return datasource.get_page(PageRequest.from_get_page_request(request))


class AsyncAdapter:
    """asyncio counterpart of Adapter."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        entities: Mapping[str, EntityDescriptor] = ENTITIES,
    ) -> None:
        self.entities = entities
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()

    async def __aenter__(self) -> "AsyncAdapter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_page(self, request: GetPageRequest) -> PageResponse:
        validate_get_page_request(request, self.entities)
        config = request.config or DatasourceConfig()

        logger.info(
            "Requesting page",
            extra={
                "entity": request.entity.external_id,
                "operation": "get_page",
                "cursor": request.cursor,
            },
        )
        datasource = AsyncDatasource(
            timeout=config.timeout, client=self._client, entities=self.entities
        )
        return await datasource.get_page(PageRequest.from_get_page_request(request))
