from collections.abc import Mapping

from ._logging import logger
from .config import API_HOST, ENTITIES, MAX_PAGE_SIZE, MAX_RESULT_SIZE, EntityDescriptor
from .exceptions import (
    AdapterError,
    InvalidDatasourceConfigError,
    InvalidEntityConfigError,
    InvalidPageRequestConfigError,
)
from .models import GetPageRequest
from .pagination import parse_cursor


def validate_get_page_request(
    request: GetPageRequest, entities: Mapping[str, EntityDescriptor] = ENTITIES
) -> None:
    """
    Validates the fields of a GetPage request before any call to the datasource.

    Checks run in a fixed order and the first violation wins.

    Args:
        request: Request received from the host
        entities: Entities supported by the adapter

    Raises:
        InvalidDatasourceConfigError: Bad config, address or auth
        InvalidEntityConfigError: Unsupported entity shape
        InvalidPageRequestConfigError: Page size or cursor out of bounds
    """
    try:
        _validate(request, entities)
    except AdapterError as e:
        logger.info(
            "Rejected GetPage request",
            extra={
                "entity": request.entity.external_id,
                "operation": "validate",
                "code": e.code.name,
            },
        )
        raise


def _validate(request: GetPageRequest, entities: Mapping[str, EntityDescriptor]) -> None:
    if request.config is None:
        raise InvalidDatasourceConfigError("Provided config is invalid: request contains no config.")
    try:
        request.config.check()
    except ValueError as e:
        raise InvalidDatasourceConfigError(
            f"Provided config is invalid: {e!s}.", original_error=e
        ) from e

    # Only the approved API host may be queried
    if request.address != API_HOST:
        raise InvalidDatasourceConfigError("PagerDuty API URL is invalid.")

    if request.auth is None or not request.auth.http_authorization:
        raise InvalidDatasourceConfigError("PagerDuty auth is missing required token.")

    descriptor = entities.get(request.entity.external_id)
    if descriptor is None:
        raise InvalidEntityConfigError("Provided entity external ID is invalid.")

    # At least the unique ID attribute must be requested
    if not request.entity.has_attribute(descriptor.unique_id_attribute):
        raise InvalidEntityConfigError(
            "Requested entity attributes are missing unique ID attribute."
        )

    if request.entity.child_entities:
        raise InvalidEntityConfigError("Requested entity does not support child entities.")

    # PagerDuty does not sort results by unique ID
    if request.ordered:
        raise InvalidEntityConfigError("Ordered must be set to false.")

    if request.page_size < 1:
        raise InvalidPageRequestConfigError(
            f"Provided page size ({request.page_size}) must be positive."
        )

    if request.page_size > MAX_PAGE_SIZE:
        raise InvalidPageRequestConfigError(
            f"Provided page size ({request.page_size}) exceeds maximum ({MAX_PAGE_SIZE})."
        )

    try:
        offset = parse_cursor(request.cursor)
    except ValueError as e:
        raise InvalidPageRequestConfigError(
            f"Invalid cursor value: {e!s}.", original_error=e
        ) from e

    if offset is not None and request.page_size + offset > MAX_RESULT_SIZE:
        raise InvalidPageRequestConfigError(
            f"PagerDuty does not allow requesting more than {MAX_RESULT_SIZE} records."
        )
