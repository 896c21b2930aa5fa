from .adapter import Adapter, AsyncAdapter
from .config import (
    API_CALL_TIMEOUT_SECONDS,
    API_HOST,
    ENTITIES,
    MAX_PAGE_SIZE,
    MAX_RESULT_SIZE,
    DatasourceConfig,
    EntityDescriptor,
    build_entity_registry,
)
from .datasource import AsyncDatasource, Datasource, DatasourceResponse, parse_response
from .exceptions import (
    AdapterError,
    DatasourceFailedError,
    ErrorCode,
    InternalError,
    InvalidDatasourceConfigError,
    InvalidEntityConfigError,
    InvalidPageRequestConfigError,
)
from .models import AttributeConfig, DatasourceAuth, EntityConfig, GetPageRequest, PageRequest
from .pagination import PageResponse, next_cursor, parse_cursor
from .validation import validate_get_page_request

__all__ = [
    "Adapter",
    "AsyncAdapter",
    "Datasource",
    "AsyncDatasource",
    # Requests and pages
    "GetPageRequest",
    "EntityConfig",
    "AttributeConfig",
    "DatasourceAuth",
    "PageRequest",
    "PageResponse",
    # Configuration
    "DatasourceConfig",
    "EntityDescriptor",
    "build_entity_registry",
    "ENTITIES",
    "API_HOST",
    "MAX_PAGE_SIZE",
    "MAX_RESULT_SIZE",
    "API_CALL_TIMEOUT_SECONDS",
    # Protocol steps
    "validate_get_page_request",
    "parse_response",
    "DatasourceResponse",
    "parse_cursor",
    "next_cursor",
    # Exceptions
    "ErrorCode",
    "AdapterError",
    "InvalidDatasourceConfigError",
    "InvalidEntityConfigError",
    "InvalidPageRequestConfigError",
    "InternalError",
    "DatasourceFailedError",
]
